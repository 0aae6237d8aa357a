"""
=============================================================================
HTTP PROTOCOL MODULE
=============================================================================

The wire-level pieces of the server: request line parsing, response
writing, routing, status codes, MIME types and the error taxonomy.

    ┌─────────────────────────────────────────────────────────────────────┐
    │                      HTTP MODULE COMPONENTS                         │
    ├─────────────────────────────────────────────────────────────────────┤
    │                                                                      │
    │   Raw line ──► parse_request_line() ──► ParsedRequest              │
    │                                             │                       │
    │                                             ▼                       │
    │                                      Router.dispatch()              │
    │                                             │                       │
    │                                             ▼                       │
    │   Socket  ◄── write_response() ◄──── HTTPResponse                  │
    │                                                                      │
    └─────────────────────────────────────────────────────────────────────┘

None of these modules opens a socket; they operate on strings, bytes and
anything with a sendall() method, which keeps them easy to unit test.

=============================================================================
"""

from .errors import ErrorKind, HTTPError, MalformedRequestLine
from .request import ParsedRequest, parse_request_line
from .response import (
    HTTPResponse,
    write_response,
    serialize_head,
    text_response,
    error_response,
    file_response,
)
from .router import Router, Route, exact, prefix
from .status_codes import HTTPStatus
from .mime_types import get_mime_type

__all__ = [
    # Errors
    "ErrorKind",
    "HTTPError",
    "MalformedRequestLine",

    # Request parsing
    "ParsedRequest",
    "parse_request_line",

    # Response writing
    "HTTPResponse",
    "write_response",
    "serialize_head",
    "text_response",
    "error_response",
    "file_response",

    # Routing
    "Router",
    "Route",
    "exact",
    "prefix",

    # Status codes
    "HTTPStatus",

    # MIME types
    "get_mime_type",
]
