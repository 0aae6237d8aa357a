"""Handler for GET /: a fixed plain-text greeting."""

from ..http.request import ParsedRequest
from ..http.response import HTTPResponse


class RootHandler:
    """
    Answers every request routed to it with the same greeting.

    The body is encoded once, so the bytes on the wire are identical
    for every request and every start of the server.
    """

    def __init__(self, greeting: str):
        self.greeting = greeting
        self._body = greeting.encode("utf-8")

    def __call__(self, request: ParsedRequest) -> HTTPResponse:
        return HTTPResponse(content_type="text/plain", body=self._body)
