"""
=============================================================================
LABSERVER - A Minimal HTTP/1.1 Server on Raw TCP Sockets
=============================================================================

A tiny web server that answers exactly two kinds of request:

    GET /                  → a plain-text greeting
    GET /static/<path>     → a file from a configured directory

Everything else is an error with a fixed status. Each connection carries
one request and is closed after the response.

=============================================================================
PROJECT OVERVIEW
=============================================================================

    ┌─────────────────────────────────────────────────────────────────────┐
    │                     LABSERVER ARCHITECTURE                          │
    ├─────────────────────────────────────────────────────────────────────┤
    │                                                                      │
    │   1. LISTENER LOOP (core/socket_server.py)                          │
    │      - Bind, listen, accept until stopped                           │
    │      - Bind failure is fatal, there is no fallback port             │
    │                                                                      │
    │   2. CONNECTION HANDLER (server.py, core/connection.py)             │
    │      - One thread per connection                                    │
    │      - Read request line, skip headers, respond, close              │
    │                                                                      │
    │   3. HTTP PIECES (http/)                                            │
    │      - Request line parser, router, response writer                 │
    │      - Error taxonomy with a fixed status per kind                  │
    │                                                                      │
    │   4. STATIC FILES (handlers/static.py)                              │
    │      - Canonicalized, confined to the static root                   │
    │      - Content type from a fixed extension table                    │
    │                                                                      │
    │   5. A FRAMEWORK VARIANT (listener.py)                              │
    │      - Same routes on http.server, for comparison                   │
    │                                                                      │
    └─────────────────────────────────────────────────────────────────────┘

=============================================================================
PACKAGE STRUCTURE
=============================================================================

    labserver/
    ├── __init__.py          # This file - package exports
    ├── __main__.py          # CLI entry point (python -m labserver)
    ├── server.py            # TCPWebServer
    ├── listener.py          # ListenerWebServer (http.server based)
    ├── config.py            # ServerConfig dataclass
    ├── core/
    │   ├── socket_server.py # Accept loop and shutdown
    │   └── connection.py    # One client socket
    ├── http/
    │   ├── request.py       # Request line parsing
    │   ├── response.py      # Response writing
    │   ├── router.py        # Route dispatch
    │   ├── errors.py        # Error taxonomy
    │   ├── status_codes.py  # HTTP status enum
    │   └── mime_types.py    # Extension → content type
    └── handlers/
        ├── root.py          # GET /
        └── static.py        # GET /static/...

=============================================================================
QUICK START
=============================================================================

    from labserver import TCPWebServer, ServerConfig

    server = TCPWebServer(ServerConfig(port=8080, static_dir="./static"))
    server.start()  # Blocks until Ctrl+C

    # Or in the background
    with TCPWebServer(ServerConfig(port=0)) as server:
        host, port = server.address
        ...

=============================================================================
"""

from .config import ServerConfig, DEFAULT_GREETING, LISTENER_GREETING
from .server import TCPWebServer
from .listener import ListenerWebServer
from .http import (
    ErrorKind,
    HTTPError,
    HTTPResponse,
    HTTPStatus,
    MalformedRequestLine,
    ParsedRequest,
    Router,
    parse_request_line,
)
from .handlers import StaticFileResolver, StaticResolution

__version__ = "1.0.0"
__author__ = "labserver contributors"

__all__ = [
    # Servers
    "TCPWebServer",
    "ListenerWebServer",

    # Configuration
    "ServerConfig",
    "DEFAULT_GREETING",
    "LISTENER_GREETING",

    # HTTP
    "ErrorKind",
    "HTTPError",
    "HTTPResponse",
    "HTTPStatus",
    "MalformedRequestLine",
    "ParsedRequest",
    "Router",
    "parse_request_line",

    # Static files
    "StaticFileResolver",
    "StaticResolution",

    # Metadata
    "__version__",
]
