"""
=============================================================================
LISTENER WEB SERVER (the comparison variant)
=============================================================================

The same two routes, served through the standard library's HTTP layer
instead of a hand-written one.

=============================================================================
WHAT THE FRAMEWORK DOES FOR US
=============================================================================

    ┌──────────────────────────────┬──────────────────┬───────────────────┐
    │ Concern                      │ TCPWebServer     │ ListenerWebServer │
    ├──────────────────────────────┼──────────────────┼───────────────────┤
    │ Accept loop                  │ SocketServer     │ socketserver      │
    │ Thread per connection        │ our threading    │ ThreadingMixIn    │
    │ Request line + header parse  │ parse_request_   │ BaseHTTPRequest-  │
    │                              │ line()           │ Handler           │
    │ Status line + header write   │ write_response() │ send_response()   │
    │ Routing                      │ Router           │ Router (shared)   │
    │ Static file resolution       │ StaticFile-      │ StaticFile-       │
    │                              │ Resolver         │ Resolver (shared) │
    └──────────────────────────────┴──────────────────┴───────────────────┘

Everything above the wire is shared; only framing differs. Which is the
lesson: the framework hides the parsing and serialization, and little
else.

Two visible differences on the wire:
- http.server adds Server and Date headers to every response.
- A request line it can't parse is answered by http.server itself
  (400, with an HTML error page), not by our error taxonomy.

=============================================================================
"""

import os
import signal
import logging
import threading
from http.server import BaseHTTPRequestHandler, ThreadingHTTPServer
from typing import Optional, Tuple

from .config import ServerConfig, LISTENER_GREETING
from .handlers import StaticFileResolver
from .http import (
    ErrorKind,
    HTTPResponse,
    HTTPStatus,
    ParsedRequest,
    Router,
    error_response,
)
from .server import create_router, ensure_directory


logger = logging.getLogger(__name__)


class _ListenerHTTPServer(ThreadingHTTPServer):
    """ThreadingHTTPServer that carries our router and streaming settings."""

    def __init__(self, address, router: Router, chunk_size: int, server_header: str):
        self.router = router
        self.chunk_size = chunk_size
        self.server_header = server_header  # server_name is taken by HTTPServer
        super().__init__(address, _RequestHandler)


class _RequestHandler(BaseHTTPRequestHandler):
    """
    Bridges BaseHTTPRequestHandler to our Router.

    http.server calls do_<METHOD>() for each request. The standard verbs
    all land in the same dispatcher, where anything but GET gets a bare
    405 with an empty body. A verb with no do_<METHOD>() is answered by
    http.server itself through send_error(), as a 501.
    """

    server: _ListenerHTTPServer
    protocol_version = "HTTP/1.1"

    def version_string(self) -> str:
        return self.server.server_header

    def _dispatch(self) -> None:
        self.close_connection = True  # One request per connection
        self._response_started = False

        request = ParsedRequest(self.command, self.path, self.request_version)
        logger.info(f"Received request: {request.method} {request.path}")

        try:
            if not request.is_get:
                logger.warning(f"Method not allowed: {request.method}")
                self._write(HTTPResponse(status=HTTPStatus.METHOD_NOT_ALLOWED))
                return
            self._write(self.server.router.dispatch(request))
        except Exception as e:
            if isinstance(e, OSError):
                logger.warning(f"Connection error: {e}")
            else:
                logger.exception(f"Failed to handle request: {e}")

            if not self._response_started:
                try:
                    self._write(error_response(ErrorKind.INTERNAL_ERROR))
                except OSError:
                    pass

    do_GET = do_HEAD = do_POST = do_PUT = do_DELETE = do_PATCH = do_OPTIONS = _dispatch

    def _write(self, response: HTTPResponse) -> None:
        if response.file_path is None:
            self._write_head(response, len(response.body))
            self.wfile.write(response.body)
            return

        with open(response.file_path, "rb") as fh:
            length = os.fstat(fh.fileno()).st_size
            self._write_head(response, length)

            remaining = length
            while remaining > 0:
                chunk = fh.read(min(self.server.chunk_size, remaining))
                if not chunk:
                    break
                self.wfile.write(chunk)
                remaining -= len(chunk)

        logger.info(f"Served static file: {self.path} ({length} bytes)")

    def _write_head(self, response: HTTPResponse, length: int) -> None:
        self._response_started = True
        self.send_response(int(response.status), response.status.phrase)
        self.send_header("Content-Type", response.content_type)
        self.send_header("Content-Length", str(length))
        self.send_header("Connection", "close")
        self.end_headers()

    def log_message(self, format: str, *args) -> None:
        """Send http.server's access log through logging instead of stderr."""
        logger.debug(f"{self.address_string()} - {format % args}")


class ListenerWebServer:
    """
    HTTP server built on http.server.ThreadingHTTPServer.

    Same surface as TCPWebServer: start(), serve_in_background(), stop(),
    address, and context manager support.

        with ListenerWebServer(ServerConfig(port=0, static_dir=tmp)) as server:
            port = server.address[1]
    """

    def __init__(self, config: Optional[ServerConfig] = None):
        self.config = config or ServerConfig(greeting=LISTENER_GREETING)
        self.config.validate()

        self.static_root = self.config.static_root
        self._router = create_router(self.config.greeting, StaticFileResolver(self.static_root))

        self._httpd: Optional[_ListenerHTTPServer] = None
        self._thread: Optional[threading.Thread] = None
        self._serving_thread: Optional[threading.Thread] = None
        self._lock = threading.Lock()

    @property
    def address(self) -> Tuple[str, int]:
        if self._httpd is not None:
            return self._httpd.server_address[:2]
        return (self.config.host, self.config.port)

    @property
    def is_running(self) -> bool:
        return self._httpd is not None

    @property
    def router(self) -> Router:
        return self._router

    def _bind(self) -> Tuple[str, int]:
        with self._lock:
            if self._httpd is not None:
                raise RuntimeError("Server is already running")

            ensure_directory(self.static_root)
            try:
                self._httpd = _ListenerHTTPServer(
                    (self.config.host, self.config.port),
                    self._router,
                    self.config.chunk_size,
                    self.config.server_name,
                )
            except OSError as e:
                logger.error(f"Listener failed to start: {e}")
                raise

        host, port = self.address
        logger.info(f"Server started. Listening at http://{host}:{port}/")
        return host, port

    def _serve(self) -> None:
        httpd = self._httpd
        self._serving_thread = threading.current_thread()
        try:
            httpd.serve_forever(poll_interval=self.config.accept_poll_interval)
        finally:
            httpd.server_close()
            with self._lock:
                self._httpd = None
                self._serving_thread = None
            logger.info("Server shutdown complete.")

    def start(self) -> None:
        """
        Start the server and block until stop() is called.

        On the main thread, SIGINT and SIGTERM call stop() while serving.
        """
        self._bind()
        original_handlers = self._setup_signals()
        try:
            self._serve()
        finally:
            for sig, handler in original_handlers.items():
                signal.signal(sig, handler)

    def _setup_signals(self) -> dict:
        if threading.current_thread() is not threading.main_thread():
            return {}

        def shutdown_handler(signum, frame):
            logger.info(f"Received {signal.Signals(signum).name}, initiating shutdown...")
            self.stop()

        return {
            signal.SIGINT: signal.signal(signal.SIGINT, shutdown_handler),
            signal.SIGTERM: signal.signal(signal.SIGTERM, shutdown_handler),
        }

    def serve_in_background(self) -> Tuple[str, int]:
        """Bind on the calling thread, serve on a daemon thread."""
        address = self._bind()
        self._thread = threading.Thread(
            target=self._serve, name="labserver-listener", daemon=True
        )
        self._thread.start()
        return address

    def stop(self, timeout: Optional[float] = 5.0) -> None:
        """
        Stop serving. Idempotent.

        http.server's shutdown() blocks until serve_forever() returns, so
        it would deadlock if called from the serving thread itself (a
        signal handler on the main thread, for instance). In that case
        the shutdown request is handed to a helper thread.
        """
        httpd = self._httpd
        if httpd is None:
            return

        logger.info("Shutdown signal received.")
        if threading.current_thread() is self._serving_thread:
            threading.Thread(target=httpd.shutdown, daemon=True).start()
            return

        httpd.shutdown()
        thread = self._thread
        if thread is not None:
            thread.join(timeout)
            self._thread = None

    def __enter__(self) -> "ListenerWebServer":
        self.serve_in_background()
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.stop()
        return False
