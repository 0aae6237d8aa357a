"""
=============================================================================
TCP WEB SERVER
=============================================================================

The raw-socket HTTP server: one request per connection, two routes, no
framework.

=============================================================================
REQUEST FLOW
=============================================================================

    ┌─────────────────────────────────────────────────────────────────────┐
    │                         REQUEST FLOW                                │
    ├─────────────────────────────────────────────────────────────────────┤
    │                                                                      │
    │   SocketServer (accept thread)                                      │
    │        │  accept() → Connection                                     │
    │        ▼                                                            │
    │   _handle_connection()  → new thread, return immediately            │
    │        │                                                            │
    │        ▼  (connection thread)                                       │
    │   read_line()           EOF?        → close, no response            │
    │        │                                                            │
    │   parse_request_line()  malformed?  → 400, close                    │
    │        │                                                            │
    │   skip_headers()                                                    │
    │        │                                                            │
    │   Router.dispatch()     405 / root / static / 404                   │
    │        │                                                            │
    │   HTTPResponse.write_to(conn)                                       │
    │        │                                                            │
    │   close()               always, on every path                       │
    │                                                                      │
    └─────────────────────────────────────────────────────────────────────┘

=============================================================================
FAILURE HANDLING
=============================================================================

Something can go wrong at any step. What we do depends on one question:
has any byte of a response already been handed to the socket?

    NO  → try to send 500 Internal Server Error. If even that fails
          (client gone), give up silently.
    YES → never write again. A second status line in the middle of a
          half-sent body would be worse than a dropped connection.

Either way the connection is closed and the accept loop never hears
about it.

=============================================================================
CONCURRENCY
=============================================================================

One thread per connection, fire and forget. stop() closes the listener
and returns; connection threads that are still running finish on their
own. They are not daemon threads: the interpreter waits for them at
exit, so a slow client can delay shutdown. Nothing forces a deadline
on them unless ServerConfig.timeout is set.

=============================================================================
"""

import logging
import threading
from pathlib import Path
from typing import Optional, Tuple

from .config import ServerConfig
from .core import SocketServer, ServerState, Connection, ConnectionState
from .handlers import RootHandler, StaticFileHandler, StaticFileResolver
from .http import (
    ErrorKind,
    HTTPResponse,
    MalformedRequestLine,
    Router,
    error_response,
    exact,
    parse_request_line,
    prefix,
)
from .http.request import decode_line
from .handlers.static import STATIC_PREFIX


logger = logging.getLogger(__name__)


def create_router(greeting: str, resolver: StaticFileResolver) -> Router:
    """
    The route table shared by both server variants.

    Order matters: "/" is an exact match and is checked before the
    static prefix.
    """
    return (Router()
        .add("root", exact("/"), RootHandler(greeting))
        .add("static", prefix(STATIC_PREFIX), StaticFileHandler(resolver)))


def ensure_directory(path: Path) -> bool:
    """
    Create a directory (and parents) if it does not exist.

    Returns:
        True if it was created, False if it was already there.
    """
    if path.is_dir():
        return False
    path.mkdir(parents=True, exist_ok=True)
    logger.info(f"Created static files directory at {path}")
    return True


class TCPWebServer:
    """
    HTTP/1.1 server built directly on a TCP listener.

    =========================================================================
    USAGE
    =========================================================================

        # Blocking, until Ctrl+C / SIGTERM / stop() from another thread
        TCPWebServer(ServerConfig(port=8080, static_dir="./public")).start()

        # In the background (tests, embedding)
        server = TCPWebServer(ServerConfig(port=0, static_dir=tmp))
        host, port = server.serve_in_background()
        ...
        server.stop()

        # Or as a context manager
        with TCPWebServer(ServerConfig(port=0)) as server:
            port = server.address[1]

    =========================================================================
    """

    def __init__(self, config: Optional[ServerConfig] = None):
        self.config = config or ServerConfig()
        self.config.validate()  # Fail-fast on invalid config

        self.static_root = self.config.static_root
        self._socket_server = SocketServer(self.config)
        self._router = create_router(self.config.greeting, StaticFileResolver(self.static_root))

        # Accept-loop thread when running via serve_in_background()
        self._thread: Optional[threading.Thread] = None

    @property
    def address(self) -> Tuple[str, int]:
        """The bound (host, port); the real port once started with port=0."""
        return self._socket_server.address

    @property
    def state(self) -> ServerState:
        return self._socket_server.state

    @property
    def is_running(self) -> bool:
        return self._socket_server.is_running

    @property
    def router(self) -> Router:
        return self._router

    # =========================================================================
    # LIFECYCLE
    # =========================================================================

    def start(self) -> None:
        """
        Start the server and block until it stops.

        Raises:
            OSError: If the address cannot be bound.
        """
        ensure_directory(self.static_root)
        self._socket_server.start(self._handle_connection)

    def serve_in_background(self) -> Tuple[str, int]:
        """
        Bind on the calling thread, then accept on a daemon thread.

        Binding first means a bind failure is raised right here, to the
        caller, instead of dying quietly in a background thread.

        Returns:
            The bound (host, port).
        """
        ensure_directory(self.static_root)
        address = self._socket_server.bind()

        self._thread = threading.Thread(
            target=self._socket_server.serve_forever,
            args=(self._handle_connection,),
            name="labserver-accept",
            daemon=True,
        )
        self._thread.start()
        return address

    def stop(self, timeout: Optional[float] = 5.0) -> None:
        """
        Stop accepting connections. Idempotent.

        Waits up to `timeout` seconds for the accept loop to exit.
        In-flight requests are not waited for.
        """
        self._socket_server.shutdown()

        thread = self._thread
        if thread is not None and thread is not threading.current_thread():
            thread.join(timeout)
            self._thread = None

    def __enter__(self) -> "TCPWebServer":
        self.serve_in_background()
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.stop()
        return False

    # =========================================================================
    # CONNECTION HANDLING
    # =========================================================================

    def _handle_connection(self, conn: Connection) -> None:
        """
        Hand a freshly accepted connection to its own thread.

        Runs on the accept thread, so it must return immediately.
        """
        worker = threading.Thread(
            target=self._process_connection,
            args=(conn,),
            name=f"labserver-conn-{conn.id}",
            daemon=False,
        )
        worker.start()

    def _process_connection(self, conn: Connection) -> None:
        """
        Serve exactly one request on a connection, then close it.

        Runs on the connection's own thread. Never raises.
        """
        with conn:  # Context manager ensures connection is closed
            try:
                self._serve_request(conn)
            except Exception as e:
                if isinstance(e, OSError):
                    # Peer reset, broken pipe, timeout: nothing to debug
                    logger.warning(f"[{conn.id}] Connection error: {e}")
                else:
                    logger.exception(f"[{conn.id}] Failed to handle client: {e}")

                if not conn.response_started:
                    self._send_best_effort(conn, error_response(ErrorKind.INTERNAL_ERROR))

    def _serve_request(self, conn: Connection) -> None:
        """Read, parse, dispatch, respond. Exceptions go to the caller."""
        try:
            raw_line = conn.read_line()
            if raw_line is None:
                # Client connected and left without a word
                logger.debug(f"[{conn.id}] Closed before sending a request")
                return
            request = parse_request_line(decode_line(raw_line))
        except MalformedRequestLine as e:
            logger.warning(f"[{conn.id}] Bad request: {e}")
            self._write(conn, error_response(e.kind))
            return

        conn.skip_headers()
        logger.info(f"Received request: {request.method} {request.path}")

        conn.state = ConnectionState.PROCESSING
        response = self._router.dispatch(request)

        length = self._write(conn, response)
        if response.file_path is not None:
            logger.info(f"Served static file: {request.path} ({length} bytes)")

    def _write(self, conn: Connection, response: HTTPResponse) -> int:
        return response.write_to(conn, self.config.chunk_size)

    def _send_best_effort(self, conn: Connection, response: HTTPResponse) -> None:
        """Write a response, swallowing any failure to do so."""
        try:
            self._write(conn, response)
        except OSError:
            pass
