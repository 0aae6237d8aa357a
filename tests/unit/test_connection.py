"""
Unit tests for the connection wrapper.

Uses socket.socketpair(), so no listener or port is involved.
"""

import socket
import threading
import time

import pytest

from labserver.core.connection import DRAIN_LIMIT, DRAIN_TIMEOUT, Connection, ConnectionState
from labserver.http.errors import MalformedRequestLine


@pytest.fixture
def pair():
    """(server side Connection, client side socket)."""
    server_sock, client_sock = socket.socketpair()
    conn = Connection(socket=server_sock, address=("127.0.0.1", 0), timeout=5.0, max_line=64)
    yield conn, client_sock
    conn.close()
    client_sock.close()


class TestReadLine:
    """Tests for Connection.read_line()."""

    def test_reads_one_line(self, pair):
        conn, client = pair
        client.sendall(b"GET / HTTP/1.1\r\nHost: x\r\n\r\n")

        assert conn.read_line() == b"GET / HTTP/1.1\r\n"
        assert conn.state == ConnectionState.READING

    def test_line_split_across_sends(self, pair):
        """Test that a line arriving in pieces is reassembled."""
        conn, client = pair
        client.sendall(b"GET /sta")
        client.sendall(b"tic/a.txt HTTP/1.1\r\n")

        assert conn.read_line() == b"GET /static/a.txt HTTP/1.1\r\n"

    def test_eof_before_anything(self, pair):
        conn, client = pair
        client.shutdown(socket.SHUT_WR)

        assert conn.read_line() is None

    def test_too_long(self, pair):
        conn, client = pair
        client.sendall(b"GET /" + b"a" * 100 + b" HTTP/1.1\r\n")

        with pytest.raises(MalformedRequestLine):
            conn.read_line()


class TestSkipHeaders:
    """Tests for Connection.skip_headers()."""

    def test_skips_to_blank_line(self, pair):
        conn, client = pair
        client.sendall(b"GET / HTTP/1.1\r\nHost: x\r\nAccept: */*\r\n\r\nleftover")

        conn.read_line()
        assert conn.skip_headers() == 2

    def test_stops_at_eof(self, pair):
        conn, client = pair
        client.sendall(b"GET / HTTP/1.1\r\nHost: x\r\n")
        client.shutdown(socket.SHUT_WR)

        conn.read_line()
        assert conn.skip_headers() == 1


class TestWritingAndClosing:
    """Tests for sendall() and close()."""

    def test_sendall_marks_response_started(self, pair):
        conn, client = pair
        assert not conn.response_started

        conn.sendall(b"hello")

        assert conn.response_started
        assert client.recv(5) == b"hello"

    def test_close_sends_eof_and_is_idempotent(self, pair):
        conn, client = pair
        conn.sendall(b"bye")
        client.shutdown(socket.SHUT_WR)

        conn.close()
        conn.close()

        assert conn.state == ConnectionState.CLOSED
        assert client.recv(16) == b"bye"
        assert client.recv(16) == b""

    def test_context_manager_closes(self):
        server_sock, client_sock = socket.socketpair()
        try:
            with Connection(socket=server_sock, address=("127.0.0.1", 0), timeout=5.0) as conn:
                client_sock.shutdown(socket.SHUT_WR)
            assert conn.state == ConnectionState.CLOSED
        finally:
            client_sock.close()


class TestDrainBounds:
    """close() must not be held open by a client that keeps talking."""

    def test_trickling_client_cannot_hold_close(self, pair):
        """Test that the drain deadline is overall, not per recv()."""
        conn, client = pair
        stop = threading.Event()

        def trickle():
            while not stop.is_set():
                try:
                    client.sendall(b"x")
                except OSError:
                    return
                time.sleep(0.1)

        sender = threading.Thread(target=trickle, daemon=True)
        sender.start()
        try:
            started = time.monotonic()
            conn.close()
            elapsed = time.monotonic() - started
        finally:
            stop.set()
            sender.join(2)

        assert conn.state == ConnectionState.CLOSED
        assert elapsed < DRAIN_TIMEOUT + 1.0

    def test_flooding_client_does_not_stall_close(self):
        """Test that a client with a full send buffer doesn't stall close()."""
        server_sock, client_sock = socket.socketpair()
        conn = Connection(socket=server_sock, address=("127.0.0.1", 0), timeout=5.0)
        try:
            client_sock.setblocking(False)
            sent = 0
            try:
                while sent < DRAIN_LIMIT * 2:
                    sent += client_sock.send(b"y" * 4096)
            except BlockingIOError:
                pass

            started = time.monotonic()
            conn.close()

            assert conn.state == ConnectionState.CLOSED
            assert time.monotonic() - started < DRAIN_TIMEOUT + 1.0
        finally:
            client_sock.close()

    def test_shorter_connection_timeout_wins(self):
        """Test that a connection timeout below the drain window bounds it."""
        server_sock, client_sock = socket.socketpair()
        conn = Connection(socket=server_sock, address=("127.0.0.1", 0), timeout=0.1)
        try:
            started = time.monotonic()
            conn.close()  # Client never closes: the drain waits out its budget
            assert time.monotonic() - started < DRAIN_TIMEOUT
        finally:
            client_sock.close()
