"""
=============================================================================
HTTP RESPONSE WRITER
=============================================================================

Serializes HTTP/1.1 responses onto a connection.

=============================================================================
HTTP RESPONSE ANATOMY
=============================================================================

Every response this server writes has exactly the same shape:

    ┌─────────────────────────────────────────────────────────────────────┐
    │                     HTTP RESPONSE STRUCTURE                         │
    ├─────────────────────────────────────────────────────────────────────┤
    │                                                                      │
    │  ┌─ STATUS LINE ──────────────────────────────────────────────────┐ │
    │  │    HTTP/1.1 200 OK\r\n                                         │ │
    │  └─────────────────────────────────────────────────────────────────┘ │
    │                                                                      │
    │  ┌─ HEADERS (always these three, always in this order) ───────────┐ │
    │  │    Content-Type: text/plain\r\n                                │ │
    │  │    Content-Length: 17\r\n                                      │ │
    │  │    Connection: close\r\n                                       │ │
    │  └─────────────────────────────────────────────────────────────────┘ │
    │                                                                      │
    │  ┌─ EMPTY LINE (separator) ───────────────────────────────────────┐ │
    │  │    \r\n                                                         │ │
    │  └─────────────────────────────────────────────────────────────────┘ │
    │                                                                      │
    │  ┌─ BODY ─────────────────────────────────────────────────────────┐ │
    │  │    Test file content                                           │ │
    │  └─────────────────────────────────────────────────────────────────┘ │
    │                                                                      │
    └─────────────────────────────────────────────────────────────────────┘

No Date, no Server, no chunked encoding. Tests compare literal bytes.

=============================================================================
CONTENT-LENGTH FIRST, BYTES SECOND
=============================================================================

The length goes into the header block, and the header block goes out
before the body. So the length has to be known before anything is
written:

    - bytes body  → len(body)
    - file body   → size of the open file, measured before streaming

Once we have committed to a length we send exactly that many body bytes.
If a file grows while we stream it, the extra bytes are not sent; if it
shrinks, the client sees a short body followed by close. Either way the
framing we promised is never exceeded.

=============================================================================
INTERVIEW QUESTIONS ABOUT HTTP RESPONSES
=============================================================================

Q: "How does the client know when the response body ends?"
A: "Either Content-Length says how many bytes follow, or the body is sent
   with Transfer-Encoding: chunked. Without either, HTTP/1.0-style, the
   server closes the connection. We send Content-Length AND close, so
   even a sloppy client gets it right."

Q: "Why stream files instead of reading them into memory?"
A: "A 2 GB video read with read_bytes() costs 2 GB of RAM per concurrent
   download. Copying in 64 KB chunks keeps memory flat no matter how big
   the file is."

=============================================================================
"""

import os
from dataclasses import dataclass
from pathlib import Path
from typing import BinaryIO, Optional, Protocol, Union

from .errors import ErrorKind
from .status_codes import HTTPStatus


HTTP_VERSION = "HTTP/1.1"
DEFAULT_CHUNK_SIZE = 64 * 1024


class Writable(Protocol):
    """Anything we can write a response to: a socket or a Connection."""

    def sendall(self, data: bytes) -> None:
        ...


def serialize_head(
    status_code: int,
    status_text: str,
    content_type: str,
    content_length: int,
) -> bytes:
    """
    Build the status line and header block, including the blank line.

    Header order and casing are fixed.

        >>> serialize_head(404, "Not Found", "text/plain", 9)
        b'HTTP/1.1 404 Not Found\\r\\nContent-Type: text/plain\\r\\nContent-Length: 9\\r\\nConnection: close\\r\\n\\r\\n'
    """
    lines = [
        f"{HTTP_VERSION} {status_code} {status_text}",
        f"Content-Type: {content_type}",
        f"Content-Length: {content_length}",
        "Connection: close",
        "",
        "",
    ]
    return "\r\n".join(lines).encode("latin-1")


def write_response(
    stream: Writable,
    status_code: int,
    status_text: str,
    content_type: str,
    body: Union[bytes, BinaryIO],
    chunk_size: int = DEFAULT_CHUNK_SIZE,
) -> int:
    """
    Write one complete response to the stream.

    Args:
        stream: Destination with a sendall() method.
        status_code: Numeric status (200, 404, ...).
        status_text: Reason phrase ("OK", "Not Found", ...).
        content_type: Value of the Content-Type header.
        body: Either the body bytes, or a binary file object positioned
              at the first byte to send. File bodies are streamed in
              chunk_size pieces.
        chunk_size: Bytes per read when streaming a file body.

    Returns:
        The Content-Length that was announced.

    Raises:
        OSError: If the peer goes away mid-write. The caller decides what
                 that means; nothing here retries.
    """
    if isinstance(body, (bytes, bytearray)):
        # Small in-memory bodies go out in a single send with the headers
        head = serialize_head(status_code, status_text, content_type, len(body))
        stream.sendall(head + bytes(body))
        return len(body)

    length = _remaining_length(body)
    stream.sendall(serialize_head(status_code, status_text, content_type, length))

    remaining = length
    while remaining > 0:
        chunk = body.read(min(chunk_size, remaining))
        if not chunk:
            break  # File shrank underneath us
        stream.sendall(chunk)
        remaining -= len(chunk)

    return length


def _remaining_length(fileobj: BinaryIO) -> int:
    """Bytes between the current position and the end of a file object."""
    try:
        # Real files: ask the OS, don't move the file position
        size = os.fstat(fileobj.fileno()).st_size
        return max(size - fileobj.tell(), 0)
    except (AttributeError, OSError, ValueError):
        # In-memory streams (io.BytesIO) have no file descriptor
        position = fileobj.tell()
        end = fileobj.seek(0, os.SEEK_END)
        fileobj.seek(position)
        return end - position


@dataclass
class HTTPResponse:
    """
    A response waiting to be written.

    Handlers return one of these instead of writing to the socket
    themselves, so the connection handler stays the only place that
    touches the wire.

    Exactly one of body / file_path carries the payload:

        HTTPResponse(HTTPStatus.OK, "text/plain", body=b"hi")
        HTTPResponse(HTTPStatus.OK, "image/png", file_path=Path("logo.png"))

    A file_path response opens the file only inside write_to(), inside a
    `with` block, so the handle is released on every exit path.
    """

    status: HTTPStatus = HTTPStatus.OK
    content_type: str = "text/plain"
    body: bytes = b""
    file_path: Optional[Path] = None

    @property
    def status_line(self) -> str:
        """e.g. "HTTP/1.1 200 OK" """
        return f"{HTTP_VERSION} {int(self.status)} {self.status.phrase}"

    def write_to(self, stream: Writable, chunk_size: int = DEFAULT_CHUNK_SIZE) -> int:
        """Write this response to the stream. Returns the Content-Length."""
        if self.file_path is None:
            return write_response(
                stream, int(self.status), self.status.phrase,
                self.content_type, self.body, chunk_size,
            )

        with open(self.file_path, "rb") as fh:
            return write_response(
                stream, int(self.status), self.status.phrase,
                self.content_type, fh, chunk_size,
            )

    def to_bytes(self) -> bytes:
        """
        Serialize a bytes-bodied response in one go.

        File responses must be streamed with write_to() instead.
        """
        if self.file_path is not None:
            raise ValueError("File responses are streamed, use write_to()")
        head = serialize_head(
            int(self.status), self.status.phrase, self.content_type, len(self.body)
        )
        return head + self.body


# =============================================================================
# CONVENIENCE FUNCTIONS
# =============================================================================

def text_response(text: str, status: HTTPStatus = HTTPStatus.OK) -> HTTPResponse:
    """Plain-text response with a UTF-8 encoded body."""
    return HTTPResponse(status=status, content_type="text/plain", body=text.encode("utf-8"))


def error_response(kind: ErrorKind) -> HTTPResponse:
    """Plain-text response for one entry of the error taxonomy."""
    return text_response(kind.message, kind.status)


def file_response(path: Path, content_type: str) -> HTTPResponse:
    """200 response whose body is streamed from a file on disk."""
    return HTTPResponse(status=HTTPStatus.OK, content_type=content_type, file_path=path)
