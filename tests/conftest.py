"""Shared fixtures for showtape tests."""

import os
import socket
import threading
from datetime import datetime, timedelta, timezone
from pathlib import Path

import httpx
import pytest

from showtape.capture.fetcher import CancelToken, HttpStreamFetcher
from showtape.storage.local import LocalObjectStore
from showtape.utils.retry import TEST_RETRY_POLICY, RetryExecutor


class InstantFetcher:
    """Fetcher that writes a fixed payload immediately, like a stream that drops at once."""

    def __init__(self, payload: bytes = b"ABCD"):
        self.payload = payload
        self.calls: list[Path] = []

    def fetch(self, url: str, destination: Path, token: CancelToken) -> int:
        self.calls.append(destination)
        with token.lock:
            if token.cancelled:
                return 0
            destination.write_bytes(self.payload)
        return len(self.payload)


class FailingFetcher:
    """Fetcher whose source is unreachable."""

    def __init__(self):
        self.calls = 0

    def fetch(self, url: str, destination: Path, token: CancelToken) -> int:
        self.calls += 1
        destination.touch()
        raise OSError("connection refused")


class StallingStreamServer:
    """Local HTTP stream that sends one chunk of audio and then goes quiet.

    With ``respond=False`` connections are accepted but never answered.
    Setting ``send_late`` makes the server push a second chunk.
    """

    HEADERS = b"HTTP/1.1 200 OK\r\nContent-Type: audio/mpeg\r\nConnection: close\r\n\r\n"

    def __init__(self, respond: bool = True):
        self.respond = respond
        self.first_chunk = b"AAAA"
        self.late_chunk = b"BBBB"
        self.connected = threading.Event()
        self.send_late = threading.Event()
        self._stop = threading.Event()
        self._connections: list[socket.socket] = []
        self._listener = socket.create_server(("127.0.0.1", 0))
        self._listener.settimeout(0.1)
        self.url = f"http://127.0.0.1:{self._listener.getsockname()[1]}/live.mp3"
        self._thread = threading.Thread(target=self._serve, daemon=True)

    def start(self) -> "StallingStreamServer":
        self._thread.start()
        return self

    def stop(self) -> None:
        self._stop.set()
        self.send_late.set()
        self._thread.join(5)
        for conn in self._connections:
            conn.close()
        self._listener.close()

    def _serve(self) -> None:
        while not self._stop.is_set():
            try:
                conn, _ = self._listener.accept()
            except TimeoutError:
                continue
            self._connections.append(conn)
            conn.settimeout(5)
            self.connected.set()
            try:
                conn.recv(65536)
                if not self.respond:
                    continue
                conn.sendall(self.HEADERS + self.first_chunk)
                self.send_late.wait(30)
                if not self._stop.is_set():
                    conn.sendall(self.late_chunk)
            except OSError:
                # Client hung up
                continue


@pytest.fixture
def stalling_server():
    server = StallingStreamServer().start()
    yield server
    server.stop()


@pytest.fixture
def silent_server():
    server = StallingStreamServer(respond=False).start()
    yield server
    server.stop()


@pytest.fixture
def local_http_fetcher():
    """Real fetcher with long timeouts, bypassing any proxy settings."""
    client = httpx.Client(timeout=httpx.Timeout(30.0, connect=5.0), trust_env=False)
    fetcher = HttpStreamFetcher(client=client)
    yield fetcher
    fetcher.close()


@pytest.fixture
def instant_fetcher() -> InstantFetcher:
    return InstantFetcher()


@pytest.fixture
def failing_fetcher() -> FailingFetcher:
    return FailingFetcher()


@pytest.fixture
def no_sleep_retry() -> RetryExecutor:
    """Retry executor with the fast test policy and no real sleeping."""
    return RetryExecutor(TEST_RETRY_POLICY, sleep=lambda seconds: None)


@pytest.fixture
def store(tmp_path: Path) -> LocalObjectStore:
    return LocalObjectStore(tmp_path / "store")


@pytest.fixture
def put_object(store: LocalObjectStore, tmp_path: Path):
    """Store an object and force its modification time."""

    def _put(container: str, key: str, modified: datetime, data: bytes = b"x") -> None:
        source = tmp_path / f"src-{key.replace('/', '_')}"
        source.write_bytes(data)
        store.put(container, key, source)
        target = store.root / container / key
        stamp = modified.timestamp()
        os.utime(target, (stamp, stamp))

    return _put


@pytest.fixture
def base_time() -> datetime:
    return datetime(2025, 11, 7, 6, 0, 0, tzinfo=timezone.utc)


@pytest.fixture
def hours():
    return lambda n: timedelta(hours=n)


@pytest.fixture
def sample_config_dict(tmp_path: Path) -> dict:
    """Minimal valid configuration as it would appear in config.yaml."""
    return {
        "version": "1",
        "log_level": "INFO",
        "account": "radio-account",
        "container": "morning-show",
        "series_name": "Morning Show",
        "source_url": "https://radio.example.com/live.mp3",
        "webhook_url": "https://hooks.example.com/showtape",
        "runtime_seconds": 2,
        "retention_count": 1,
        "work_dir": str(tmp_path / "work"),
        "storage": {"root": str(tmp_path / "store")},
        "retry": {"max_retries": 2, "initial_delay_seconds": 0, "backoff_increment_seconds": 0},
        "capture": {"interval_seconds": 1, "stop_grace_seconds": 2},
    }
