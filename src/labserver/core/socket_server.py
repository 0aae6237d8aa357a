"""
=============================================================================
TCP SOCKET SERVER
=============================================================================

The listener loop: bind, accept connections forever, hand each one off,
and stop cleanly when asked.

=============================================================================
SERVER STATES
=============================================================================

    ┌─────────────────────────────────────────────────────────────────────┐
    │                       ServerState transitions                       │
    ├─────────────────────────────────────────────────────────────────────┤
    │                                                                      │
    │   STOPPED ──bind()──► STARTING ──listen ok──► RUNNING               │
    │      ▲                    │                      │                  │
    │      │                bind fails             shutdown()             │
    │      │                (OSError raised)           │                  │
    │      │                    │                      ▼                  │
    │      └────────────────────┴─────────────────  STOPPING              │
    │                    accept loop exits, socket closed                 │
    │                                                                      │
    └─────────────────────────────────────────────────────────────────────┘

=============================================================================
HOW DO YOU INTERRUPT A BLOCKING accept()?
=============================================================================

accept() blocks until a client connects. If nobody ever connects again,
a naive loop never notices that it was asked to stop. Two tools, used
together:

1. shutdown() closes the listening socket. On Linux, shutting a listening
   socket down wakes a blocked accept() immediately with an error. The
   loop sees the stop flag is set and treats that error as "we are
   stopping", not as a failure to report.

2. The listening socket has a timeout (accept_poll_interval). Even on a
   platform where closing doesn't wake accept(), it returns within one
   interval, re-checks the stop flag, and exits.

Any OTHER accept() error (e.g. EMFILE, too many open files) is logged and
the loop keeps going. One bad accept doesn't take the server down.

=============================================================================
"""

import socket
import signal
import logging
import threading
from enum import Enum
from typing import Callable, Optional, Tuple

from ..config import ServerConfig
from .connection import Connection


logger = logging.getLogger(__name__)


class ServerState(Enum):
    """Lifecycle of the listener."""
    STOPPED = "stopped"
    STARTING = "starting"
    RUNNING = "running"
    STOPPING = "stopping"


class SocketServer:
    """
    Low-level TCP server that accepts connections.

    ┌─────────────────────────────────────────────────────────────────────┐
    │                      SocketServer Internals                          │
    ├─────────────────────────────────────────────────────────────────────┤
    │                                                                      │
    │    bind()            STOPPED → STARTING → RUNNING                    │
    │        ├──► socket() + SO_REUSEADDR                                  │
    │        ├──► bind((host, port))    (OSError propagates)               │
    │        └──► listen(backlog)                                          │
    │                                                                      │
    │    serve_forever(handler)   blocks here                              │
    │        └──► while not stopping:                                      │
    │                 accept()           wait for a client                 │
    │                 Connection(...)    wrap the client socket            │
    │                 handler(conn)      must return quickly               │
    │                                                                      │
    │    shutdown()        any thread, any number of times                 │
    │        └──► set stop flag, close listening socket                    │
    │                                                                      │
    └─────────────────────────────────────────────────────────────────────┘

    The handler is called on the accept thread, so it must NOT do the
    request work itself; it should start a worker and return.

    Usage:
        server = SocketServer(config)
        server.start(lambda conn: threading.Thread(target=work, args=(conn,)).start())
    """

    def __init__(self, config: ServerConfig):
        self.config = config

        # The listening socket (created in bind())
        self._socket: Optional[socket.socket] = None
        self._bound_address: Optional[Tuple[str, int]] = None

        self._state = ServerState.STOPPED
        # Reentrant: the signal handler calls shutdown() on the main thread,
        # possibly while that same thread is already inside a locked section
        self._state_lock = threading.RLock()

        # Set once by shutdown(), read by the accept loop
        self._stop_event = threading.Event()

        self._original_handlers: dict = {}

    @property
    def state(self) -> ServerState:
        return self._state

    @property
    def is_running(self) -> bool:
        return self._state is ServerState.RUNNING

    @property
    def address(self) -> Tuple[str, int]:
        """
        The address actually bound.

        With port=0 in the config this is where the OS-assigned port shows
        up. Before binding, the configured address is returned.
        """
        return self._bound_address or (self.config.host, self.config.port)

    def _set_state(self, state: ServerState) -> None:
        with self._state_lock:
            self._state = state

    def _create_socket(self) -> socket.socket:
        """
        Create and configure the listening socket.

        SO_REUSEADDR: the previous run's socket may linger in TIME_WAIT
        for a minute after close(); without this, a quick restart fails
        with "Address already in use".
        """
        sock = socket.socket(socket.AF_INET, socket.SOCK_STREAM)
        sock.setsockopt(socket.SOL_SOCKET, socket.SO_REUSEADDR, 1)

        # accept() wakes up at least this often to check the stop flag
        sock.settimeout(self.config.accept_poll_interval)
        return sock

    def bind(self) -> Tuple[str, int]:
        """
        Bind and listen. Does not accept anything yet.

        Returns:
            The bound (host, port).

        Raises:
            RuntimeError: If the server is not STOPPED.
            OSError: If binding fails (port in use, permission denied).
                     The server is left STOPPED; there is no fallback port.
        """
        with self._state_lock:
            if self._state is not ServerState.STOPPED:
                raise RuntimeError(f"Cannot start a server that is {self._state.value}")
            self._state = ServerState.STARTING

        self._stop_event.clear()

        sock = self._create_socket()
        try:
            sock.bind((self.config.host, self.config.port))
            sock.listen(self.config.backlog)
        except OSError as e:
            logger.error(f"Failed to bind to {self.config.host}:{self.config.port}: {e}")
            sock.close()
            self._set_state(ServerState.STOPPED)
            raise

        self._socket = sock
        self._bound_address = sock.getsockname()[:2]
        with self._state_lock:
            # shutdown() may have arrived while we were binding
            if not self._stop_event.is_set():
                self._state = ServerState.RUNNING

        logger.info(f"Server listening on {self._bound_address[0]}:{self._bound_address[1]}")
        return self._bound_address

    def start(self, connection_handler: Callable[[Connection], None]) -> None:
        """
        Bind, then accept connections until shutdown(). Blocks.

        Args:
            connection_handler: Called on the accept thread with each new
                                Connection. Must not block.
        """
        self.bind()
        self.serve_forever(connection_handler)

    def serve_forever(self, connection_handler: Callable[[Connection], None]) -> None:
        """Run the accept loop on an already bound server. Blocks."""
        if self._socket is None:
            raise RuntimeError("serve_forever() called before bind()")

        self._setup_signals()
        try:
            self._accept_loop(connection_handler)
        finally:
            self._cleanup()

    def _accept_loop(self, connection_handler: Callable[[Connection], None]):
        """
        Main loop for accepting connections.

        ┌─────────────────────────────────────────────────────────────────┐
        │                     Accept Loop Flow                             │
        ├─────────────────────────────────────────────────────────────────┤
        │                                                                  │
        │   while not stopping:                                            │
        │       accept()                                                   │
        │         ├── timeout         → loop (re-check stop flag)          │
        │         ├── error, stopping → exit quietly                       │
        │         ├── error, running  → log, loop                          │
        │         └── client socket   → Connection → handler(conn)        │
        │                                                                  │
        └─────────────────────────────────────────────────────────────────┘
        """
        while not self._stop_event.is_set():
            try:
                client_socket, client_address = self._socket.accept()
            except socket.timeout:
                continue
            except OSError as e:
                if self._stop_event.is_set():
                    break  # Listening socket closed by shutdown()
                logger.error(f"Failed to accept client: {e}")
                continue

            logger.debug(f"Accepted connection from {client_address[0]}:{client_address[1]}")

            try:
                conn = Connection(
                    socket=client_socket,
                    address=client_address,
                    buffer_size=self.config.buffer_size,
                    timeout=self.config.timeout,
                    max_line=self.config.max_request_line,
                )
            except OSError as e:
                logger.error(f"Failed to set up connection from {client_address[0]}: {e}")
                client_socket.close()
                continue

            try:
                connection_handler(conn)
            except Exception:
                # e.g. "can't start new thread"; drop this client, keep serving
                logger.exception(f"[{conn.id}] Failed to dispatch connection")
                conn.close()

    def shutdown(self):
        """
        Ask the accept loop to stop.

        Safe from any thread or a signal handler, and idempotent. In-flight
        connections are NOT cancelled; they finish on their own threads.
        """
        with self._state_lock:
            if self._state in (ServerState.STOPPED, ServerState.STOPPING):
                return
            self._state = ServerState.STOPPING

        logger.info("Shutdown signal received.")
        self._stop_event.set()

        sock = self._socket
        if sock is not None:
            try:
                sock.shutdown(socket.SHUT_RDWR)
            except OSError:
                pass  # Not connected / already closed; close() still applies
            try:
                sock.close()
            except OSError:
                pass

    def _cleanup(self):
        """Release the listening socket and restore signal handlers."""
        self._restore_signals()

        if self._socket is not None:
            try:
                self._socket.close()
            except OSError:
                pass  # Already closed
            self._socket = None

        self._set_state(ServerState.STOPPED)
        logger.info("Server shutdown complete.")

    # =========================================================================
    # SIGNALS
    # =========================================================================

    def _setup_signals(self):
        """
        Turn SIGINT (Ctrl+C) and SIGTERM (docker stop, kill) into shutdown().

        Python only allows signal handlers on the main thread; a server
        running in a background thread (tests, embedding) leaves signal
        handling to its owner.
        """
        if threading.current_thread() is not threading.main_thread():
            return

        def shutdown_handler(signum, frame):
            signal_name = signal.Signals(signum).name
            logger.info(f"Received {signal_name}, initiating shutdown...")
            self.shutdown()

        self._original_handlers[signal.SIGINT] = signal.signal(signal.SIGINT, shutdown_handler)
        self._original_handlers[signal.SIGTERM] = signal.signal(signal.SIGTERM, shutdown_handler)

    def _restore_signals(self):
        for sig, handler in self._original_handlers.items():
            signal.signal(sig, handler)
        self._original_handlers.clear()
