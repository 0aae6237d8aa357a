"""
=============================================================================
HTTP REQUEST LINE PARSER
=============================================================================

Turns the first line of a connection into a ParsedRequest.

=============================================================================
HTTP REQUEST ANATOMY
=============================================================================

    ┌─────────────────────────────────────────────────────────────────────┐
    │                      HTTP REQUEST STRUCTURE                         │
    ├─────────────────────────────────────────────────────────────────────┤
    │                                                                      │
    │  ┌─ REQUEST LINE ─────────────────────────────────────────────────┐ │
    │  │    GET /static/app.css HTTP/1.1\r\n                           │ │
    │  │    ─┬─ ───────┬─────── ───┬────                               │ │
    │  │   Method     Path      Version                                │ │
    │  └─────────────────────────────────────────────────────────────────┘ │
    │                                                                      │
    │  ┌─ HEADERS (read and thrown away) ───────────────────────────────┐ │
    │  │    Host: localhost:8080\r\n                                   │ │
    │  │    User-Agent: curl/8.0\r\n                                   │ │
    │  └─────────────────────────────────────────────────────────────────┘ │
    │                                                                      │
    │  ┌─ EMPTY LINE ───────────────────────────────────────────────────┐ │
    │  │    \r\n                                                         │ │
    │  └─────────────────────────────────────────────────────────────────┘ │
    │                                                                      │
    │  (no body is ever read, whatever Content-Length says)               │
    │                                                                      │
    └─────────────────────────────────────────────────────────────────────┘

Only the request line matters for routing. Headers are consumed so the
socket is left in a sane state, but nothing looks at them: no content
negotiation, no Host checks, no body length.

=============================================================================
WHY SPLIT ON SINGLE SPACES?
=============================================================================

RFC 7230 defines the request line as METHOD SP TARGET SP VERSION with
exactly one SP between the parts. str.split(" ") keeps empty tokens, so
"GET  / HTTP/1.1" (two spaces) yields four tokens and is rejected, while
str.split() would silently accept it.

=============================================================================
"""

from dataclasses import dataclass

from .errors import MalformedRequestLine


@dataclass(frozen=True)
class ParsedRequest:
    """
    The three parts of a request line.

    Frozen: built once per connection and never modified afterwards.

    Attributes:
        method: HTTP verb exactly as sent ("GET", "get", "POST", ...).
        path: Request target exactly as sent ("/", "/static/a.txt").
        version: Protocol version token ("HTTP/1.1").
    """

    method: str
    path: str
    version: str

    @property
    def is_get(self) -> bool:
        """Method comparison is case-insensitive."""
        return self.method.upper() == "GET"


def parse_request_line(line: str) -> ParsedRequest:
    """
    Parse an HTTP request line.

    Args:
        line: The first line of the request, with or without its
              trailing CRLF.

    Returns:
        ParsedRequest with method, path and version.

    Raises:
        MalformedRequestLine: If the line is empty or does not split into
                              exactly three space-separated tokens.

    Examples:
        >>> parse_request_line("GET / HTTP/1.1\\r\\n")
        ParsedRequest(method='GET', path='/', version='HTTP/1.1')
    """
    line = line.rstrip("\r\n")
    if not line:
        raise MalformedRequestLine("Empty request line")

    parts = line.split(" ")
    if len(parts) != 3 or not all(parts):
        raise MalformedRequestLine(f"Invalid request line: {line!r}")

    method, path, version = parts
    return ParsedRequest(method=method, path=path, version=version)


def decode_line(raw: bytes) -> str:
    """
    Decode a raw request or header line.

    HTTP/1.1 header bytes are ISO-8859-1; every byte maps to a code point,
    so decoding never fails and never loses information.
    """
    return raw.decode("iso-8859-1")
