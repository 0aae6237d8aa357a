"""
=============================================================================
SERVER CONFIGURATION
=============================================================================

Centralized configuration for both server variants.

=============================================================================
WHY A CONFIG CLASS?
=============================================================================

Configuration should be:
1. Centralized - One place to see all options
2. Typed - IDE autocomplete and error detection
3. Validated - Catch errors early

A dataclass gives us all of these for free. There is no
config file loader: values come from code, the CLI, or a handful of
environment variables.

    ┌─────────────────────────────────────────────────────────────────────┐
    │                    CONFIGURATION HIERARCHY                          │
    ├─────────────────────────────────────────────────────────────────────┤
    │                                                                      │
    │   Priority (highest to lowest):                                     │
    │                                                                      │
    │   1. Command-line arguments                                         │
    │      └── python -m labserver --port 3000                           │
    │                                                                      │
    │   2. Environment variables                                          │
    │      └── LAB_PORT=3000 python -m labserver                         │
    │                                                                      │
    │   3. Default values (in this dataclass)                            │
    │                                                                      │
    └─────────────────────────────────────────────────────────────────────┘

=============================================================================
"""

import os
from dataclasses import dataclass
from pathlib import Path
from typing import Optional


LOG_LEVELS = ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL")

DEFAULT_GREETING = "Hello from TCP Python server!"
LISTENER_GREETING = "Hello from Python listener server!"


@dataclass
class ServerConfig:
    """
    Configuration for the HTTP server.

    =========================================================================
    CONFIGURATION GROUPS
    =========================================================================

    NETWORK SETTINGS
    - host, port, backlog, buffer_size, timeout, accept_poll_interval

    HTTP SETTINGS
    - max_request_line, greeting, server_name

    STATIC FILES
    - static_dir, chunk_size

    LOGGING
    - log_level

    =========================================================================
    TESTING
    =========================================================================

        ServerConfig(
            port=0,                  # Let the OS pick a free port
            static_dir=str(tmp),     # Throwaway static root
            log_level="WARNING",     # Keep test output quiet
        )

    =========================================================================
    """

    # ─────────────────────────────────────────────────────────────────────
    # NETWORK SETTINGS
    # ─────────────────────────────────────────────────────────────────────

    host: str = "127.0.0.1"
    """
    The IP address to bind to.
    - "127.0.0.1" - Loopback only (the default)
    - "0.0.0.0" - All network interfaces
    """

    port: int = 8080
    """
    The port number to listen on. 0 asks the OS for an ephemeral port;
    read the real one from server.address after startup.
    """

    backlog: int = 128
    """Maximum number of queued connections waiting for accept()."""

    buffer_size: int = 8192
    """Size of the receive buffer used by each connection's line reader."""

    timeout: Optional[float] = None
    """
    Per-connection socket timeout in seconds.
    None = no deadline. A slow client can hold its handler thread (and
    delay process exit) for as long as it likes.
    """

    accept_poll_interval: float = 1.0
    """
    How long a blocked accept() waits before re-checking the stop flag.
    stop() also closes the listening socket, so this is only a backstop.
    """

    # ─────────────────────────────────────────────────────────────────────
    # HTTP SETTINGS
    # ─────────────────────────────────────────────────────────────────────

    max_request_line: int = 8192
    """Longest request line (and header line) accepted, in bytes."""

    greeting: str = DEFAULT_GREETING
    """Body returned by GET /."""

    server_name: str = "labserver/1.0"
    """
    Value of the Server header. Only the listener variant sends it; the
    TCP variant emits exactly Content-Type, Content-Length and Connection.
    """

    # ─────────────────────────────────────────────────────────────────────
    # STATIC FILES
    # ─────────────────────────────────────────────────────────────────────

    static_dir: str = "static"
    """
    Directory served under /static/. Relative paths are resolved against
    the current working directory. Created on startup if missing.
    """

    chunk_size: int = 64 * 1024
    """Bytes read from disk per write when streaming a static file."""

    # ─────────────────────────────────────────────────────────────────────
    # LOGGING
    # ─────────────────────────────────────────────────────────────────────

    log_level: str = "INFO"
    """Logging level (DEBUG, INFO, WARNING, ERROR, CRITICAL)."""

    @property
    def static_root(self) -> Path:
        """Absolute, canonical path of the static directory."""
        return Path(self.static_dir).resolve()

    @classmethod
    def from_env(cls, **overrides) -> "ServerConfig":
        """
        Create configuration from environment variables.

        =====================================================================
        ENVIRONMENT VARIABLES
        =====================================================================

        LAB_HOST        Server host (default: 127.0.0.1)
        LAB_PORT        Server port (default: 8080)
        LAB_STATIC_DIR  Static files directory (default: ./static)
        LAB_GREETING    Body of GET / (default: the TCP greeting)
        LAB_LOG_LEVEL   Logging level (default: INFO)

        =====================================================================

        Keyword overrides win over the environment.
        """
        values = dict(
            host=os.getenv("LAB_HOST", "127.0.0.1"),
            port=int(os.getenv("LAB_PORT", "8080")),
            static_dir=os.getenv("LAB_STATIC_DIR", "static"),
            greeting=os.getenv("LAB_GREETING", DEFAULT_GREETING),
            log_level=os.getenv("LAB_LOG_LEVEL", "INFO"),
        )
        values.update(overrides)
        return cls(**values)

    def validate(self) -> None:
        """
        Validate configuration values.

        We validate at construction of the server, not at first use, so a
        typo in a port number fails before anything binds.
        """
        if not 0 <= self.port < 65536:
            raise ValueError(f"Invalid port: {self.port}. Must be 0-65535.")

        if self.backlog < 1:
            raise ValueError("backlog must be >= 1")

        if self.buffer_size < 1024:
            raise ValueError("buffer_size must be >= 1024")

        if self.chunk_size < 1:
            raise ValueError("chunk_size must be >= 1")

        if self.max_request_line < 16:
            raise ValueError("max_request_line must be >= 16")

        if self.timeout is not None and self.timeout <= 0:
            raise ValueError("timeout must be > 0")

        if self.accept_poll_interval <= 0:
            raise ValueError("accept_poll_interval must be > 0")

        if self.log_level.upper() not in LOG_LEVELS:
            raise ValueError(f"Unknown log level: {self.log_level}")
