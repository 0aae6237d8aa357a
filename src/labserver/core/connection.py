"""
=============================================================================
CONNECTION MANAGEMENT
=============================================================================

Wraps one accepted client socket for the length of one request/response
exchange.

=============================================================================
TCP IS A BYTE STREAM, NOT A MESSAGE PROTOCOL!
=============================================================================

TCP does NOT preserve message boundaries. The client may write the
request line in one send() and we may receive it in three recv() calls,
or receive it glued to the headers that follow:

    Client sends:
        "GET /static/a.txt HTTP/1.1\r\nHost: x\r\n\r\n"

    Server might receive:
        recv() → "GET /sta"
        recv() → "tic/a.txt HTTP/1.1\r\nHo"
        recv() → "st: x\r\n\r\n"

So we never parse raw recv() chunks. The socket is wrapped in a buffered
reader (socket.makefile) and we read LINES: readline() keeps pulling
bytes until it sees "\n", however many packets that takes.

=============================================================================
ONE REQUEST, THEN CLOSE
=============================================================================

    ┌─────────────────────────────────────────────────────────────────────┐
    │                    CONNECTION LIFECYCLE                             │
    ├─────────────────────────────────────────────────────────────────────┤
    │                                                                      │
    │   NEW ──► READING ──► PROCESSING ──► WRITING ──► CLOSING ──► CLOSED │
    │              │                                      ▲                │
    │              └── EOF / malformed / error ───────────┘                │
    │                                                                      │
    └─────────────────────────────────────────────────────────────────────┘

There is no keep-alive. Every response carries "Connection: close" and
the socket is closed right after it, whichever path we took to get there.
Use the connection as a context manager and that is guaranteed:

    with conn:
        line = conn.read_line()
        ...
    # closed here, even if an exception escaped

=============================================================================
"""

import socket
import time
import logging
from enum import Enum
from dataclasses import dataclass, field
from typing import BinaryIO, Optional
import uuid

from ..http.errors import MalformedRequestLine


logger = logging.getLogger(__name__)

# Bounds on reading leftover client bytes after the response
DRAIN_TIMEOUT = 0.5
DRAIN_LIMIT = 64 * 1024


class ConnectionState(Enum):
    """Where a connection is in its single request/response cycle."""
    NEW = "new"                # Just accepted, nothing read yet
    READING = "reading"        # Reading request line and headers
    PROCESSING = "processing"  # Request parsed, handler is executing
    WRITING = "writing"        # Sending response bytes
    CLOSING = "closing"        # Shutdown sequence in progress
    CLOSED = "closed"          # Socket released


@dataclass
class Connection:
    """
    One accepted client connection.

    ┌─────────────────────────────────────────────────────────────────────┐
    │                    Connection Responsibilities                       │
    ├─────────────────────────────────────────────────────────────────────┤
    │                                                                      │
    │  1. LINE READING                                                     │
    │     └── read_line() returns one CRLF-terminated line                 │
    │     └── skip_headers() consumes header lines up to the blank line    │
    │                                                                      │
    │  2. WRITING                                                          │
    │     └── sendall() so the Response Writer can treat us like a socket  │
    │     └── response_started records whether ANY byte went out           │
    │                                                                      │
    │  3. GRACEFUL CLOSE                                                   │
    │     └── FIN, drain, close; exactly once                              │
    │                                                                      │
    └─────────────────────────────────────────────────────────────────────┘

    Attributes:
        socket: The client socket.
        address: Client's (ip, port) tuple.
        id: Short unique identifier for log lines.
        state: Current connection state.
        response_started: True once the first response byte was handed
                          to the socket. After that, no second response
                          may be attempted on this connection.
    """

    # Required parameters
    socket: socket.socket
    address: tuple

    # Generated/default parameters
    id: str = field(default_factory=lambda: str(uuid.uuid4())[:8])
    state: ConnectionState = ConnectionState.NEW
    created_at: float = field(default_factory=time.time)
    response_started: bool = False

    # Configuration (passed from ServerConfig)
    buffer_size: int = 8192
    timeout: Optional[float] = None
    max_line: int = 8192

    # Internal state (not shown in repr for cleaner logs)
    _reader: Optional[BinaryIO] = field(default=None, repr=False)

    def __post_init__(self):
        # Accepted sockets start out blocking; apply the optional deadline
        self.socket.setblocking(True)
        if self.timeout:
            self.socket.settimeout(self.timeout)

        self._reader = self.socket.makefile("rb", buffering=self.buffer_size)

    @property
    def age(self) -> float:
        """Seconds since the connection was accepted."""
        return time.time() - self.created_at

    # =========================================================================
    # READING
    # =========================================================================

    def read_line(self) -> Optional[bytes]:
        """
        Read one line, including its line terminator.

        Returns:
            The raw line, or None if the peer closed (or reset) the
            connection before sending anything.

        Raises:
            MalformedRequestLine: If the line is longer than max_line.
            TimeoutError: If a timeout is configured and expires.
        """
        self.state = ConnectionState.READING

        try:
            line = self._reader.readline(self.max_line + 1)
        except (ConnectionResetError, BrokenPipeError):
            return None

        if not line:
            return None

        if len(line) > self.max_line:
            raise MalformedRequestLine(f"Line longer than {self.max_line} bytes")

        return line

    def skip_headers(self) -> int:
        """
        Consume header lines up to and including the blank line.

        Header content is not interpreted. Stops early at end of stream.

        Returns:
            Number of header lines discarded.
        """
        count = 0
        while True:
            try:
                line = self._reader.readline(self.max_line)
            except (ConnectionResetError, BrokenPipeError):
                break

            if line in (b"\r\n", b"\n", b""):
                break
            count += 1

        return count

    # =========================================================================
    # WRITING
    # =========================================================================

    def sendall(self, data: bytes) -> None:
        """
        Send bytes to the client.

        Marks the response as started before the first byte leaves, so a
        failure halfway through a send still counts as "already answered".

        Raises:
            OSError: If the client disconnected.
        """
        self.state = ConnectionState.WRITING
        self.response_started = True
        self.socket.sendall(data)

    # =========================================================================
    # CLOSING
    # =========================================================================

    def close(self):
        """
        Close the connection gracefully. Safe to call more than once.

        ┌─────────────────────────────────────────────────────────────────┐
        │                    TCP Close Sequence                            │
        ├─────────────────────────────────────────────────────────────────┤
        │                                                                  │
        │   1. shutdown(SHUT_WR)  → FIN: "no more bytes from me"           │
        │   2. drain              → read and drop anything the client      │
        │                           still sends (e.g. an unread body),     │
        │                           so the kernel doesn't answer with RST  │
        │                           and destroy our response in flight     │
        │   3. close()            → release the file descriptor            │
        │                                                                  │
        └─────────────────────────────────────────────────────────────────┘
        """
        if self.state == ConnectionState.CLOSED:
            return  # Already closed

        self.state = ConnectionState.CLOSING

        try:
            self.socket.shutdown(socket.SHUT_WR)
        except OSError:
            pass  # Peer already gone

        self._drain()

        # The makefile() reader holds a reference to the socket;
        # both must be closed before the descriptor is released.
        try:
            if self._reader is not None:
                self._reader.close()
        except OSError:
            pass

        try:
            self.socket.close()
        except OSError:
            pass

        self.state = ConnectionState.CLOSED
        logger.debug(f"[{self.id}] Connection closed after {self.age:.3f}s")

    def _drain(self) -> None:
        """
        Discard whatever the client still sends, for at most DRAIN_TIMEOUT
        seconds in total (or the connection timeout, if shorter) and
        DRAIN_LIMIT bytes, whichever comes first.

        The deadline is overall, not per recv(): a client trickling one byte
        at a time can't keep the thread here.
        """
        budget = min(DRAIN_TIMEOUT, self.timeout) if self.timeout else DRAIN_TIMEOUT
        deadline = time.monotonic() + budget
        drained = 0
        try:
            while drained < DRAIN_LIMIT:
                remaining = deadline - time.monotonic()
                if remaining <= 0:
                    break
                self.socket.settimeout(remaining)
                data = self.socket.recv(4096)
                if not data:
                    break
                drained += len(data)
        except OSError:
            pass  # socket.timeout is an OSError too

    # =========================================================================
    # CONTEXT MANAGER
    # =========================================================================

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        """Close unconditionally; never suppress the exception."""
        self.close()
        return False
