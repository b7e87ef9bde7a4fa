"""Cancellable HTTP stream fetcher using httpx."""

import logging
import socket
import threading
from collections.abc import Callable, Iterator
from contextlib import contextmanager
from pathlib import Path
from typing import Any, Protocol

import httpx

from showtape import __version__
from showtape.utils.errors import FetchError

logger = logging.getLogger(__name__)

DEFAULT_USER_AGENT = f"showtape/{__version__}"


class CancelledError(Exception):
    """Raised inside the capture worker when the token was already cancelled."""

    pass


class CancelToken:
    """Cancellation signal shared by the capture worker and its controller.

    Writers hold ``lock`` while writing a chunk and re-check ``cancelled``
    inside it. ``cancel()`` flips the flag under the same lock, so once it
    returns no further byte reaches disk, even if a worker is still stuck
    in a blocking read. Registered abort callbacks (e.g. closing an
    in-flight response) run right after the flag is set.
    """

    def __init__(self) -> None:
        self.lock = threading.Lock()
        self._event = threading.Event()
        self._aborts: list[Callable[[], None]] = []

    @property
    def cancelled(self) -> bool:
        return self._event.is_set()

    def cancel(self) -> None:
        with self.lock:
            self._event.set()
            aborts = list(self._aborts)
            self._aborts.clear()

        for abort in aborts:
            try:
                abort()
            except Exception as e:
                logger.debug(f"Abort callback raised {type(e).__name__}: {e}")

    def wait(self, timeout: float) -> bool:
        """Sleep up to ``timeout`` seconds; True if cancelled meanwhile."""
        return self._event.wait(timeout)

    @contextmanager
    def on_cancel(self, abort: Callable[[], None]) -> Iterator[None]:
        """Run ``abort`` if the token is cancelled while the block is active.

        Raises:
            CancelledError: If the token is already cancelled
        """
        with self.lock:
            if self._event.is_set():
                raise CancelledError("capture already cancelled")
            self._aborts.append(abort)
        try:
            yield
        finally:
            with self.lock:
                if abort in self._aborts:
                    self._aborts.remove(abort)


class SocketAbort:
    """Abort callback that shuts down the socket of an in-flight request.

    ``shutdown(SHUT_RDWR)`` wakes a ``recv()`` blocked in another thread,
    which closing the response does not. The socket is picked up from
    httpcore's trace events as soon as the connection is made, so a server
    that accepts but never answers can be aborted too.
    """

    TRACE_EVENTS = ("connection.connect_tcp.complete", "connection.start_tls.complete")

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._sock: socket.socket | None = None
        self._aborted = False

    def attach(self, stream: Any) -> None:
        """Remember the socket behind an httpcore network stream."""
        sock = stream.get_extra_info("socket") if stream is not None else None
        if sock is None:
            return
        with self._lock:
            self._sock = sock
            aborted = self._aborted
        if aborted:
            self._shutdown(sock)

    def release(self) -> None:
        with self._lock:
            self._sock = None

    def trace(self, event_name: str, info: dict[str, Any]) -> None:
        if event_name in self.TRACE_EVENTS:
            self.attach(info.get("return_value"))

    def __call__(self) -> None:
        with self._lock:
            self._aborted = True
            sock = self._sock
        if sock is not None:
            self._shutdown(sock)

    @staticmethod
    def _shutdown(sock: socket.socket) -> None:
        fd = sock.fileno()
        if fd < 0:
            return
        # Go through the raw descriptor so a TLS wrapper's state is left alone
        raw = socket.socket(fileno=fd)
        try:
            raw.shutdown(socket.SHUT_RDWR)
        except OSError as e:
            logger.debug(f"Socket already closed: {e}")
        finally:
            raw.detach()


class StreamFetcher(Protocol):
    """Fetches a stream into a file until the stream ends or the token fires."""

    def fetch(self, url: str, destination: Path, token: CancelToken) -> int:
        """Fetch ``url`` into ``destination``; return the number of bytes written."""
        ...


class HttpStreamFetcher:
    """Stream an HTTP(S) resource to disk, chunk by chunk.

    A live radio stream never ends on its own, so a single fetch normally
    runs until the connection drops or the token is cancelled. Cancelling
    shuts down the request's socket, which ends a blocked read or a wait
    for response headers at once. Only a TCP connect still in progress is
    left to ``connect_timeout``.
    """

    def __init__(
        self,
        client: httpx.Client | None = None,
        connect_timeout: float = 10.0,
        read_timeout: float = 10.0,
        user_agent: str = DEFAULT_USER_AGENT,
    ):
        """Initialize stream fetcher.

        Args:
            client: httpx client to use (default: a new client with the given timeouts)
            connect_timeout: Seconds to wait for the connection
            read_timeout: Seconds to wait for each chunk
            user_agent: User-Agent header sent to the stream server
        """
        self.client = client or httpx.Client(
            timeout=httpx.Timeout(read_timeout, connect=connect_timeout),
            follow_redirects=True,
            headers={"User-Agent": user_agent},
        )

    def fetch(self, url: str, destination: Path, token: CancelToken) -> int:
        """Fetch ``url`` into ``destination``.

        Returns:
            Bytes written

        Raises:
            FetchError: On HTTP status or transport errors (unless cancelled)
        """
        written = 0
        abort = SocketAbort()
        try:
            with token.on_cancel(abort):
                with self.client.stream(
                    "GET", url, extensions={"trace": abort.trace}
                ) as response:
                    abort.attach(response.extensions.get("network_stream"))
                    try:
                        response.raise_for_status()
                        # Unbuffered: nothing is left to flush after cancellation
                        with open(destination, "wb", buffering=0) as f:
                            for chunk in response.iter_bytes():
                                with token.lock:
                                    if token.cancelled:
                                        break
                                    f.write(chunk)
                                written += len(chunk)
                    finally:
                        # The connection may go back to the pool
                        abort.release()
        except CancelledError:
            return written
        except httpx.HTTPStatusError as e:
            raise FetchError(
                f"Stream {url} answered HTTP {e.response.status_code}"
            ) from e
        except (httpx.HTTPError, httpx.StreamError) as e:
            if token.cancelled:
                return written
            raise FetchError(f"Stream {url} failed after {written} bytes: {e}") from e
        except OSError as e:
            # A socket shut down from the controlling thread can surface here
            if token.cancelled:
                return written
            raise FetchError(f"Stream {url} failed after {written} bytes: {e}") from e

        return written

    def close(self) -> None:
        self.client.close()
