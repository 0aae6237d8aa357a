"""
pytest configuration and fixtures.
"""

import socket
from dataclasses import dataclass, field
from typing import Dict, Generator, Tuple
import pytest

# Add src to path for imports
import sys
from pathlib import Path
sys.path.insert(0, str(Path(__file__).parent.parent / "src"))

from labserver import TCPWebServer, ListenerWebServer, ServerConfig


@dataclass
class RawResponse:
    """A response as read off the wire, before any interpretation."""
    raw: bytes
    status: int = 0
    reason: str = ""
    headers: Dict[str, str] = field(default_factory=dict)
    header_order: list = field(default_factory=list)
    body: bytes = b""

    @property
    def text(self) -> str:
        return self.body.decode("utf-8")


def parse_raw_response(raw: bytes) -> RawResponse:
    """Split a complete response into status, headers and body."""
    response = RawResponse(raw=raw)
    if not raw:
        return response

    head, _, body = raw.partition(b"\r\n\r\n")
    lines = head.decode("latin-1").split("\r\n")

    _, status, reason = lines[0].split(" ", 2)
    response.status = int(status)
    response.reason = reason

    for line in lines[1:]:
        name, _, value = line.partition(":")
        response.headers[name.strip()] = value.strip()
        response.header_order.append(name.strip())

    response.body = body
    return response


def send_raw(address: Tuple[str, int], payload: bytes, timeout: float = 5.0) -> bytes:
    """Send bytes, half-close, and read until the server closes."""
    with socket.create_connection(address, timeout=timeout) as sock:
        if payload:
            sock.sendall(payload)
        sock.shutdown(socket.SHUT_WR)

        chunks = []
        while True:
            chunk = sock.recv(65536)
            if not chunk:
                break
            chunks.append(chunk)
    return b"".join(chunks)


def send_request(
    address: Tuple[str, int],
    path: str,
    method: str = "GET",
) -> RawResponse:
    """One request per connection, exactly like the server expects."""
    payload = f"{method} {path} HTTP/1.1\r\nHost: localhost\r\n\r\n".encode("latin-1")
    return parse_raw_response(send_raw(address, payload))


@pytest.fixture
def static_dir(tmp_path: Path) -> Path:
    """An empty static root inside a throwaway directory."""
    root = tmp_path / "static"
    root.mkdir()
    return root


@pytest.fixture
def config(static_dir: Path) -> ServerConfig:
    """Test server configuration on an ephemeral port."""
    return ServerConfig(
        host="127.0.0.1",
        port=0,  # Let OS pick a free port
        static_dir=str(static_dir),
        accept_poll_interval=0.1,
        timeout=5.0,
        log_level="WARNING",
    )


@pytest.fixture
def tcp_server(config: ServerConfig) -> Generator[TCPWebServer, None, None]:
    """A TCPWebServer running in the background."""
    server = TCPWebServer(config)
    server.serve_in_background()
    yield server
    server.stop()


@pytest.fixture
def listener_server(config: ServerConfig) -> Generator[ListenerWebServer, None, None]:
    """A ListenerWebServer running in the background."""
    config.greeting = "Hello from Python listener server!"
    server = ListenerWebServer(config)
    server.serve_in_background()
    yield server
    server.stop()


@pytest.fixture(params=["tcp", "listener"])
def any_server(request, config: ServerConfig):
    """Each server variant in turn, for behaviour both must share."""
    cls = TCPWebServer if request.param == "tcp" else ListenerWebServer
    server = cls(config)
    server.serve_in_background()
    yield server
    server.stop()
