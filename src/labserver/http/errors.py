"""
=============================================================================
ERROR TAXONOMY
=============================================================================

Every way a single request can fail, and the status code it maps to.

    ┌──────────────────────────┬────────┬──────────────────────────────────┐
    │ ErrorKind                │ Status │ Raised / returned by             │
    ├──────────────────────────┼────────┼──────────────────────────────────┤
    │ MALFORMED_REQUEST_LINE   │  400   │ parse_request_line()             │
    │ EMPTY_STATIC_PATH        │  400   │ StaticFileResolver.resolve()     │
    │ UNSUPPORTED_METHOD       │  405   │ Router.dispatch()                │
    │ ROUTE_NOT_FOUND          │  404   │ Router.dispatch()                │
    │ FILE_NOT_FOUND           │  404   │ StaticFileResolver.resolve()     │
    │ PATH_TRAVERSAL_REJECTED  │  404   │ StaticFileResolver.resolve()     │
    │ INTERNAL_ERROR           │  500   │ Connection handler (catch-all)   │
    └──────────────────────────┴────────┴──────────────────────────────────┘

Each kind also carries the plain-text body the client sees. Note that
FILE_NOT_FOUND and PATH_TRAVERSAL_REJECTED share a status AND a body: the
distinction exists only in our logs.

Errors that never reach a client (bind failures, accept failures, write
failures) are plain OSError and are handled where they happen.

=============================================================================
"""

from enum import Enum

from .status_codes import HTTPStatus


class ErrorKind(Enum):
    """A per-request failure, mapped to exactly one status and message."""

    MALFORMED_REQUEST_LINE = "malformed_request_line"
    EMPTY_STATIC_PATH = "empty_static_path"
    UNSUPPORTED_METHOD = "unsupported_method"
    ROUTE_NOT_FOUND = "route_not_found"
    FILE_NOT_FOUND = "file_not_found"
    PATH_TRAVERSAL_REJECTED = "path_traversal_rejected"
    INTERNAL_ERROR = "internal_error"

    @property
    def status(self) -> HTTPStatus:
        return _ERROR_RESPONSES[self][0]

    @property
    def message(self) -> str:
        return _ERROR_RESPONSES[self][1]


_ERROR_RESPONSES = {
    ErrorKind.MALFORMED_REQUEST_LINE: (HTTPStatus.BAD_REQUEST, "Invalid HTTP request"),
    ErrorKind.EMPTY_STATIC_PATH: (HTTPStatus.BAD_REQUEST, "Invalid path"),
    ErrorKind.UNSUPPORTED_METHOD: (HTTPStatus.METHOD_NOT_ALLOWED, "Method not allowed"),
    ErrorKind.ROUTE_NOT_FOUND: (HTTPStatus.NOT_FOUND, "Not Found"),
    ErrorKind.FILE_NOT_FOUND: (HTTPStatus.NOT_FOUND, "File not found"),
    ErrorKind.PATH_TRAVERSAL_REJECTED: (HTTPStatus.NOT_FOUND, "File not found"),
    ErrorKind.INTERNAL_ERROR: (HTTPStatus.INTERNAL_SERVER_ERROR, "Internal Server Error"),
}


class HTTPError(Exception):
    """
    Raised when a request cannot be served.

    Carries the ErrorKind so the caller can answer with the right status
    without inspecting the message text.
    """

    def __init__(self, message: str, kind: ErrorKind = ErrorKind.INTERNAL_ERROR):
        super().__init__(message)
        self.kind = kind

    @property
    def status_code(self) -> int:
        return int(self.kind.status)


class MalformedRequestLine(HTTPError):
    """The first line of the request is not METHOD SP PATH SP VERSION."""

    def __init__(self, message: str):
        super().__init__(message, ErrorKind.MALFORMED_REQUEST_LINE)
