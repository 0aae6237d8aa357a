"""
=============================================================================
LABSERVER CLI ENTRY POINT
=============================================================================

    # Run the raw TCP server with defaults (127.0.0.1:8080, ./static)
    python -m labserver

    # Custom port and static directory
    python -m labserver --port 3000 --static ./public

    # The http.server based variant
    python -m labserver --variant listener

Environment variables (LAB_HOST, LAB_PORT, LAB_STATIC_DIR, LAB_GREETING,
LAB_LOG_LEVEL) provide defaults; command-line arguments win over them.

Ctrl+C or SIGTERM stops the server. A bind failure (port in use,
permission denied) exits with status 1.

=============================================================================
"""

import argparse
import logging
import sys

from . import __version__
from .config import ServerConfig, LOG_LEVELS, DEFAULT_GREETING, LISTENER_GREETING
from .listener import ListenerWebServer
from .server import TCPWebServer


logger = logging.getLogger("labserver")


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="labserver",
        description="Minimal HTTP/1.1 server: a greeting at / and files under /static/",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  python -m labserver                       # Run with defaults
  python -m labserver --port 3000           # Custom port
  python -m labserver --static ./public     # Serve files from ./public
  python -m labserver --variant listener    # http.server based variant
        """
    )

    # ─────────────────────────────────────────────────────────────────────
    # NETWORK ARGUMENTS
    # ─────────────────────────────────────────────────────────────────────

    parser.add_argument(
        "--variant",
        choices=["tcp", "listener"],
        default="tcp",
        help="Server implementation (default: tcp)"
    )

    parser.add_argument(
        "--host", "-H",
        default=None,
        help="Host to bind to (default: 127.0.0.1)"
    )

    parser.add_argument(
        "--port", "-p",
        type=int,
        default=None,
        help="Port to listen on (default: 8080, 0 for any free port)"
    )

    # ─────────────────────────────────────────────────────────────────────
    # CONTENT ARGUMENTS
    # ─────────────────────────────────────────────────────────────────────

    parser.add_argument(
        "--static", "-s",
        default=None,
        help="Directory served under /static/ (default: ./static)"
    )

    parser.add_argument(
        "--greeting",
        default=None,
        help="Body returned by GET /"
    )

    parser.add_argument(
        "--log-level", "-l",
        choices=LOG_LEVELS,
        type=str.upper,
        default=None,
        help="Logging level (default: INFO)"
    )

    parser.add_argument(
        "--version", "-v",
        action="version",
        version=f"labserver {__version__}"
    )

    return parser


def config_from_args(args: argparse.Namespace) -> ServerConfig:
    """Environment first, then whatever was given on the command line."""
    overrides = {}
    if args.host is not None:
        overrides["host"] = args.host
    if args.port is not None:
        overrides["port"] = args.port
    if args.static is not None:
        overrides["static_dir"] = args.static
    if args.greeting is not None:
        overrides["greeting"] = args.greeting
    if args.log_level is not None:
        overrides["log_level"] = args.log_level

    config = ServerConfig.from_env(**overrides)

    # The listener has its own greeting unless one was asked for
    if args.variant == "listener" and config.greeting == DEFAULT_GREETING:
        config.greeting = LISTENER_GREETING

    return config


def setup_logging(level: str) -> None:
    logging.basicConfig(
        level=getattr(logging, level.upper(), logging.INFO),
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
    )


def main(argv=None) -> int:
    args = build_parser().parse_args(argv)

    try:
        config = config_from_args(args)
        config.validate()
    except ValueError as e:
        print(f"Error: {e}", file=sys.stderr)
        return 2

    setup_logging(config.log_level)

    if args.variant == "listener":
        server = ListenerWebServer(config)
    else:
        server = TCPWebServer(config)

    try:
        server.start()
    except OSError as e:
        logger.error(f"Could not start server on {config.host}:{config.port}: {e}")
        return 1

    return 0


if __name__ == "__main__":
    sys.exit(main())
