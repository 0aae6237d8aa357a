"""
=============================================================================
CORE MODULE - Networking Primitives
=============================================================================

Everything that touches a raw socket lives here.

    ┌─────────────────────────────────────────────────────────────────────┐
    │                        CORE COMPONENTS                              │
    ├─────────────────────────────────────────────────────────────────────┤
    │                                                                      │
    │   SocketServer          Connection                                  │
    │   ────────────          ──────────                                  │
    │   bind / listen         read_line / skip_headers                    │
    │   accept loop           sendall                                     │
    │   shutdown              close (FIN, drain, close)                   │
    │                                                                      │
    └─────────────────────────────────────────────────────────────────────┘

Concurrency is simple: the accept loop runs on one thread
and every accepted connection gets a thread of its own. No pool, no
queue, no shared state between connections.

=============================================================================
"""

from .socket_server import SocketServer, ServerState
from .connection import Connection, ConnectionState

__all__ = [
    "SocketServer",     # Listener loop - accepts connections
    "ServerState",      # STOPPED / STARTING / RUNNING / STOPPING
    "Connection",       # Wrapper for client socket - handles I/O
    "ConnectionState",  # Enum for connection lifecycle states
]
