"""
=============================================================================
ROUTE DISPATCH
=============================================================================

Decides which handler answers a request.

=============================================================================
HOW DISPATCH WORKS
=============================================================================

A router is an ordered list of (predicate, handler) pairs. The first
predicate that accepts the path wins; if none does, the answer is 404.
Before any of that, the method is checked: only GET gets past the gate.

    ┌─────────────────────────────────────────────────────────────────────┐
    │                        DISPATCH ORDER                               │
    ├─────────────────────────────────────────────────────────────────────┤
    │                                                                      │
    │   method != GET ?  ──yes──►  405 Method Not Allowed                │
    │        │ no                                                         │
    │        ▼                                                            │
    │   path == "/" ?    ──yes──►  root handler (greeting)               │
    │        │ no                                                         │
    │        ▼                                                            │
    │   path starts with ──yes──►  static file handler                   │
    │   "/static/" ?                                                      │
    │   (any case)                                                        │
    │        │ no                                                         │
    │        ▼                                                            │
    │   404 Not Found                                                     │
    │                                                                      │
    └─────────────────────────────────────────────────────────────────────┘

Exactly one branch runs per request. There is no fallthrough from a
handler to the next route: once a predicate matches, its handler owns the
answer, even if that answer is a 404 for a missing file.

=============================================================================
WHY PREDICATES AND NOT PATTERNS?
=============================================================================

Two routes do not need a pattern language. A predicate is a plain
function str -> bool, so "exact match" and "case-insensitive prefix" are
each one line, and the order of the list IS the precedence.

=============================================================================
"""

import logging
from dataclasses import dataclass
from typing import Callable, List, Optional

from .errors import ErrorKind
from .request import ParsedRequest
from .response import HTTPResponse, error_response


logger = logging.getLogger(__name__)

# Type aliases
Predicate = Callable[[str], bool]
Handler = Callable[[ParsedRequest], HTTPResponse]


def exact(path: str) -> Predicate:
    """Predicate matching one path exactly (case-sensitive)."""
    return lambda candidate: candidate == path


def prefix(value: str) -> Predicate:
    """Predicate matching any path that starts with value, ignoring case."""
    lowered = value.lower()
    return lambda candidate: candidate.lower().startswith(lowered)


@dataclass(frozen=True)
class Route:
    """
    One dispatch rule.

    Attributes:
        name: Label used in logs ("root", "static").
        predicate: Decides whether this route owns a path.
        handler: Produces the response once the route is chosen.
    """

    name: str
    predicate: Predicate
    handler: Handler

    def matches(self, path: str) -> bool:
        return self.predicate(path)


class Router:
    """
    Ordered, first-match-wins router.

    Usage:
        router = Router()
        router.add("root", exact("/"), root_handler)
        router.add("static", prefix("/static/"), static_handler)

        response = router.dispatch(ParsedRequest("GET", "/", "HTTP/1.1"))
    """

    def __init__(self):
        self._routes: List[Route] = []

    def add(self, name: str, predicate: Predicate, handler: Handler) -> "Router":
        """Append a route. Earlier routes take precedence. Returns self."""
        self._routes.append(Route(name, predicate, handler))
        return self

    @property
    def routes(self) -> List[Route]:
        return list(self._routes)

    def match(self, path: str) -> Optional[Route]:
        """First route whose predicate accepts path, or None."""
        for route in self._routes:
            if route.matches(path):
                return route
        return None

    def dispatch(self, request: ParsedRequest) -> HTTPResponse:
        """
        Produce the response for a request.

        Method gate first, then routes in order, then 404.
        """
        if not request.is_get:
            logger.warning(f"Method not allowed: {request.method} {request.path}")
            return error_response(ErrorKind.UNSUPPORTED_METHOD)

        route = self.match(request.path)
        if route is None:
            logger.warning(f"Route not found: {request.path}")
            return error_response(ErrorKind.ROUTE_NOT_FOUND)

        logger.debug(f"Dispatching {request.path} to {route.name}")
        return route.handler(request)
