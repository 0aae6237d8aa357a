"""
Unit tests for response writing.
"""

import io

import pytest

from labserver.http.errors import ErrorKind
from labserver.http.response import (
    HTTPResponse,
    HTTPStatus,
    error_response,
    file_response,
    serialize_head,
    text_response,
    write_response,
)


class RecordingStream:
    """Stands in for a socket: records every sendall() call."""

    def __init__(self):
        self.calls = []

    def sendall(self, data: bytes) -> None:
        self.calls.append(bytes(data))

    @property
    def data(self) -> bytes:
        return b"".join(self.calls)


class TestSerializeHead:
    """Tests for serialize_head()."""

    def test_exact_bytes(self):
        """Test the exact header block, order and casing included."""
        head = serialize_head(200, "OK", "text/plain", 17)

        assert head == (
            b"HTTP/1.1 200 OK\r\n"
            b"Content-Type: text/plain\r\n"
            b"Content-Length: 17\r\n"
            b"Connection: close\r\n"
            b"\r\n"
        )

    def test_error_status(self):
        head = serialize_head(404, "Not Found", "text/plain", 9)
        assert head.startswith(b"HTTP/1.1 404 Not Found\r\n")


class TestWriteResponse:
    """Tests for write_response()."""

    def test_bytes_body_single_send(self):
        """Test that a small body goes out with the headers in one send."""
        stream = RecordingStream()
        length = write_response(stream, 200, "OK", "text/plain", b"hello")

        assert length == 5
        assert len(stream.calls) == 1
        assert stream.data.endswith(b"\r\n\r\nhello")

    def test_empty_body(self):
        stream = RecordingStream()
        write_response(stream, 405, "Method Not Allowed", "text/plain", b"")

        assert b"Content-Length: 0\r\n" in stream.data
        assert stream.data.endswith(b"\r\n\r\n")

    def test_file_body_streamed_in_chunks(self):
        """Test that a file body is sent in bounded chunks after the head."""
        payload = bytes(range(256)) * 40  # 10240 bytes
        stream = RecordingStream()

        length = write_response(
            stream, 200, "OK", "application/octet-stream", io.BytesIO(payload), chunk_size=1024
        )

        assert length == len(payload)
        assert stream.calls[0].endswith(b"\r\n\r\n")
        assert f"Content-Length: {len(payload)}".encode() in stream.calls[0]
        assert all(len(chunk) <= 1024 for chunk in stream.calls[1:])
        assert b"".join(stream.calls[1:]) == payload

    def test_file_body_from_current_position(self):
        """Test that only the bytes after the current position are sent."""
        fileobj = io.BytesIO(b"skipTHIS")
        fileobj.seek(4)
        stream = RecordingStream()

        length = write_response(stream, 200, "OK", "text/plain", fileobj)

        assert length == 4
        assert stream.data.endswith(b"\r\n\r\nTHIS")

    def test_real_file(self, tmp_path):
        """Test streaming from a file on disk."""
        path = tmp_path / "data.bin"
        path.write_bytes(b"x" * 5000)
        stream = RecordingStream()

        with open(path, "rb") as fh:
            length = write_response(stream, 200, "OK", "application/octet-stream", fh, 2048)

        assert length == 5000
        assert b"Content-Length: 5000\r\n" in stream.calls[0]
        assert stream.data.endswith(b"x" * 5000)

    def test_write_failure_propagates(self):
        """Test that a broken connection surfaces as OSError."""

        class BrokenStream:
            def sendall(self, data):
                raise BrokenPipeError("peer went away")

        with pytest.raises(OSError):
            write_response(BrokenStream(), 200, "OK", "text/plain", b"hi")


class TestHTTPResponse:
    """Tests for HTTPResponse."""

    def test_status_line(self):
        """Test status line generation."""
        assert HTTPResponse(status=HTTPStatus.OK).status_line == "HTTP/1.1 200 OK"
        assert HTTPResponse(status=HTTPStatus.NOT_FOUND).status_line == "HTTP/1.1 404 Not Found"

    def test_to_bytes(self):
        response = text_response("Hello")
        assert response.to_bytes() == serialize_head(200, "OK", "text/plain", 5) + b"Hello"

    def test_to_bytes_rejects_file_response(self, tmp_path):
        response = file_response(tmp_path / "a.txt", "text/plain")
        with pytest.raises(ValueError):
            response.to_bytes()

    def test_write_to_file_response(self, tmp_path):
        """Test that a file response opens, streams and closes the file."""
        path = tmp_path / "test.txt"
        path.write_bytes(b"Test file content")
        stream = RecordingStream()

        length = file_response(path, "text/plain").write_to(stream)

        assert length == 17
        assert stream.data == serialize_head(200, "OK", "text/plain", 17) + b"Test file content"

    def test_write_to_missing_file_raises(self, tmp_path):
        """Test that a file vanishing before the write fails before any byte."""
        stream = RecordingStream()
        with pytest.raises(OSError):
            file_response(tmp_path / "gone.txt", "text/plain").write_to(stream)

        assert stream.calls == []


class TestConvenienceFunctions:
    """Tests for the response helpers."""

    def test_text_response_utf8(self):
        response = text_response("hé")
        assert response.body == "hé".encode("utf-8")
        assert response.content_type == "text/plain"

    @pytest.mark.parametrize("kind,status,body", [
        (ErrorKind.MALFORMED_REQUEST_LINE, 400, b"Invalid HTTP request"),
        (ErrorKind.EMPTY_STATIC_PATH, 400, b"Invalid path"),
        (ErrorKind.UNSUPPORTED_METHOD, 405, b"Method not allowed"),
        (ErrorKind.ROUTE_NOT_FOUND, 404, b"Not Found"),
        (ErrorKind.FILE_NOT_FOUND, 404, b"File not found"),
        (ErrorKind.PATH_TRAVERSAL_REJECTED, 404, b"File not found"),
        (ErrorKind.INTERNAL_ERROR, 500, b"Internal Server Error"),
    ])
    def test_error_response(self, kind, status, body):
        """Test that every error kind maps to its fixed status and text."""
        response = error_response(kind)

        assert response.status == status
        assert response.body == body
        assert response.content_type == "text/plain"
