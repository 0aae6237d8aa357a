"""
Unit tests for route dispatch.
"""

import pytest

from labserver.http.errors import ErrorKind
from labserver.http.request import ParsedRequest
from labserver.http.response import HTTPResponse, text_response
from labserver.http.router import Router, exact, prefix


def make_request(method: str, path: str) -> ParsedRequest:
    """Helper to create a request for testing."""
    return ParsedRequest(method=method, path=path, version="HTTP/1.1")


def echo_handler(request: ParsedRequest) -> HTTPResponse:
    """Dummy handler that echoes the path."""
    return text_response(request.path)


def failing_handler(request: ParsedRequest) -> HTTPResponse:
    raise AssertionError("handler must not be called")


class TestPredicates:
    """Tests for exact() and prefix()."""

    def test_exact_is_case_sensitive(self):
        match = exact("/")
        assert match("/")
        assert not match("")
        assert not match("/index.html")

    def test_prefix_ignores_case(self):
        match = prefix("/static/")
        assert match("/static/a.txt")
        assert match("/STATIC/a.txt")
        assert match("/static/")
        assert not match("/static")
        assert not match("/statics/a.txt")


class TestRouter:
    """Tests for Router."""

    def make_router(self) -> Router:
        return (Router()
            .add("root", exact("/"), lambda request: text_response("root"))
            .add("static", prefix("/static/"), echo_handler))

    def test_add_route(self):
        """Test adding routes keeps their order."""
        router = self.make_router()
        assert [route.name for route in router.routes] == ["root", "static"]

    def test_match(self):
        router = self.make_router()
        assert router.match("/").name == "root"
        assert router.match("/static/x.css").name == "static"
        assert router.match("/other") is None

    def test_first_match_wins(self):
        """Test that an earlier route shadows a later overlapping one."""
        router = (Router()
            .add("first", prefix("/static/"), lambda request: text_response("first"))
            .add("second", prefix("/static/a"), failing_handler))

        response = router.dispatch(make_request("GET", "/static/a.txt"))
        assert response.body == b"first"

    def test_dispatch_root(self):
        response = self.make_router().dispatch(make_request("GET", "/"))
        assert response.status == 200
        assert response.body == b"root"

    def test_dispatch_lowercase_get(self):
        """Test that the method gate is case-insensitive."""
        response = self.make_router().dispatch(make_request("get", "/"))
        assert response.status == 200

    @pytest.mark.parametrize("method", ["POST", "PUT", "DELETE", "HEAD", "OPTIONS", "BREW"])
    def test_non_get_is_405_before_routing(self, method):
        """Test that the method gate runs before any route is considered."""
        router = Router().add("root", exact("/"), failing_handler)

        response = router.dispatch(make_request(method, "/"))

        assert response.status == 405
        assert response.body == ErrorKind.UNSUPPORTED_METHOD.message.encode()

    def test_non_get_on_unknown_path_is_405(self):
        response = self.make_router().dispatch(make_request("POST", "/nowhere"))
        assert response.status == 405

    def test_no_match_is_404(self):
        response = self.make_router().dispatch(make_request("GET", "/favicon.ico"))
        assert response.status == 404
        assert response.body == b"Not Found"

    def test_root_is_exact(self):
        """Test that / does not match longer paths."""
        response = self.make_router().dispatch(make_request("GET", "/index.html"))
        assert response.status == 404

    def test_empty_router(self):
        response = Router().dispatch(make_request("GET", "/"))
        assert response.status == 404
