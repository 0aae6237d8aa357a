"""
=============================================================================
HTTP STATUS CODES (RFC 7231)
=============================================================================

The status codes this server can emit, with their reason phrases.

    ┌────────────────────────────────────────────────────────────────────┐
    │                   STATUS CODES USED BY LABSERVER                   │
    ├────────┬───────────────────────────────────────────────────────────┤
    │  200   │ OK                    - Greeting or static file          │
    │  400   │ Bad Request           - Malformed line, empty file name  │
    │  404   │ Not Found             - Unknown route, missing file,     │
    │        │                         path outside the static root     │
    │  405   │ Method Not Allowed    - Anything other than GET          │
    │  500   │ Internal Server Error - Failure before a response began  │
    └────────┴───────────────────────────────────────────────────────────┘

A traversal attempt and an ordinary missing file both get 404. The client
cannot tell them apart, which is the point.

=============================================================================
"""

from enum import IntEnum


class HTTPStatus(IntEnum):
    """
    HTTP status codes and reason phrases.

    This enum extends IntEnum, so status codes can be used as integers:

        >>> HTTPStatus.OK == 200
        True
        >>> HTTPStatus.NOT_FOUND.phrase
        'Not Found'
    """

    OK = 200                        # Standard success response

    BAD_REQUEST = 400               # Malformed request syntax
    NOT_FOUND = 404                 # Resource doesn't exist
    METHOD_NOT_ALLOWED = 405        # HTTP method not supported for resource

    INTERNAL_SERVER_ERROR = 500     # Unexpected server error (catch-all)

    @property
    def phrase(self) -> str:
        """
        Get the reason phrase for this status code.

            HTTP/1.1 404 Not Found
                     ─── ─────────
                      │      │
                      │      └── Reason phrase
                      └───────── Status code
        """
        return _STATUS_PHRASES.get(self, "Unknown")


_STATUS_PHRASES = {
    HTTPStatus.OK: "OK",
    HTTPStatus.BAD_REQUEST: "Bad Request",
    HTTPStatus.NOT_FOUND: "Not Found",
    HTTPStatus.METHOD_NOT_ALLOWED: "Method Not Allowed",
    HTTPStatus.INTERNAL_SERVER_ERROR: "Internal Server Error",
}
