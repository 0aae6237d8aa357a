"""
=============================================================================
HANDLERS MODULE
=============================================================================

The two route handlers the server ships with.

    ┌─────────────────────────────────────────────────────────────────────┐
    │                    REQUEST → HANDLER → RESPONSE                     │
    ├─────────────────────────────────────────────────────────────────────┤
    │                                                                      │
    │   GET /              ──►  RootHandler        ──►  200 greeting      │
    │   GET /static/<name> ──►  StaticFileHandler  ──►  200 file bytes    │
    │                                                   400 / 404 error   │
    │                                                                      │
    └─────────────────────────────────────────────────────────────────────┘

A handler is any callable taking a ParsedRequest and returning an
HTTPResponse. Handlers never touch the socket: the connection handler
writes whatever they return.

=============================================================================
"""

from .root import RootHandler
from .static import StaticFileHandler, StaticFileResolver, StaticResolution

__all__ = [
    "RootHandler",
    "StaticFileHandler",
    "StaticFileResolver",
    "StaticResolution",
]
