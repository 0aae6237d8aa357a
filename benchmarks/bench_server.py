"""
=============================================================================
LATENCY BENCHMARK
=============================================================================

Starts a server in-process on an ephemeral port and times sequential
requests against three targets:

    /                    the greeting (no disk access)
    /static/small.txt    12 bytes from disk
    /static/large.bin    1 MiB from disk, streamed in chunks

Each request opens a fresh connection, exactly as the server expects.

    python benchmarks/bench_server.py
    python benchmarks/bench_server.py --variant listener --requests 500

=============================================================================
"""

import argparse
import logging
import socket
import statistics
import sys
import tempfile
import time
from pathlib import Path

sys.path.insert(0, str(Path(__file__).parent.parent / "src"))

from labserver import ListenerWebServer, ServerConfig, TCPWebServer


SMALL_BODY = b"Hello world\n"  # 12 bytes
LARGE_SIZE = 1024 * 1024

TARGETS = ["/", "/static/small.txt", "/static/large.bin"]


def fetch(address, path: str) -> int:
    """One GET on a fresh connection. Returns the number of bytes received."""
    with socket.create_connection(address, timeout=10) as sock:
        sock.sendall(f"GET {path} HTTP/1.1\r\nHost: bench\r\n\r\n".encode("latin-1"))
        received = 0
        while True:
            chunk = sock.recv(65536)
            if not chunk:
                return received
            received += len(chunk)


def percentile(samples, fraction: float) -> float:
    ordered = sorted(samples)
    index = min(int(round(fraction * (len(ordered) - 1))), len(ordered) - 1)
    return ordered[index]


def run(variant: str, requests: int, warmup: int) -> None:
    with tempfile.TemporaryDirectory() as tmp:
        static = Path(tmp)
        (static / "small.txt").write_bytes(SMALL_BODY)
        (static / "large.bin").write_bytes(b"\xab" * LARGE_SIZE)

        config = ServerConfig(port=0, static_dir=tmp, accept_poll_interval=0.1)
        server_cls = ListenerWebServer if variant == "listener" else TCPWebServer

        with server_cls(config) as server:
            print(f"{variant} server on {server.address[0]}:{server.address[1]}, "
                  f"{requests} requests per target\n")
            print(f"{'target':<22}{'mean ms':>10}{'p50 ms':>10}{'p95 ms':>10}{'bytes':>10}")

            for path in TARGETS:
                for _ in range(warmup):
                    fetch(server.address, path)

                samples = []
                received = 0
                for _ in range(requests):
                    started = time.perf_counter()
                    received = fetch(server.address, path)
                    samples.append((time.perf_counter() - started) * 1000)

                print(f"{path:<22}"
                      f"{statistics.mean(samples):>10.3f}"
                      f"{statistics.median(samples):>10.3f}"
                      f"{percentile(samples, 0.95):>10.3f}"
                      f"{received:>10}")


def main() -> None:
    parser = argparse.ArgumentParser(description="Request latency benchmark")
    parser.add_argument("--variant", choices=["tcp", "listener"], default="tcp")
    parser.add_argument("--requests", "-n", type=int, default=200)
    parser.add_argument("--warmup", type=int, default=10)
    args = parser.parse_args()

    # Per-request INFO logs would dominate the timings
    logging.basicConfig(level=logging.WARNING)

    run(args.variant, args.requests, args.warmup)


if __name__ == "__main__":
    main()
