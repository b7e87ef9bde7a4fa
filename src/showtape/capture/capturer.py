"""Time-boxed stream capture into numbered fragment files."""

import logging
import threading
import time
from pathlib import Path

from pydantic import BaseModel, Field

from showtape.capture.fetcher import CancelToken, StreamFetcher
from showtape.models import Fragment
from showtape.utils.errors import CaptureStartError
from showtape.utils.naming import FRAGMENT_SUFFIX, fragment_name

logger = logging.getLogger(__name__)


class CaptureResult(BaseModel):
    """What the capture worker left behind once it was stopped."""

    working_dir: Path
    fragments: list[Fragment] = Field(default_factory=list)
    stopped: bool = Field(True, description="Worker thread exited before hand-back")
    elapsed_seconds: float = Field(0.0, ge=0)

    @property
    def total_bytes(self) -> int:
        return sum(fragment.size_bytes for fragment in self.fragments)

    @property
    def is_empty(self) -> bool:
        """True when nothing was captured (no fragments, or only empty ones)."""
        return not self.fragments or self.total_bytes == 0


def collect_fragments(working_dir: Path) -> list[Fragment]:
    """List the fragment files in ``working_dir`` in ascending sequence order.

    Zero-byte files and files whose stem is not a sequence number are skipped.
    """
    fragments = []
    for path in working_dir.glob(f"*{FRAGMENT_SUFFIX}"):
        if not path.stem.isdigit():
            continue
        try:
            if path.stat().st_size == 0:
                continue
        except FileNotFoundError:
            continue
        fragments.append(Fragment(sequence=int(path.stem), path=path))

    return sorted(fragments, key=lambda fragment: fragment.sequence)


class Capturer:
    """Record a stream for a fixed wall-clock duration.

    A single background thread fetches the stream over and over into
    ``00000.rec``, ``00001.rec``, ... until it is cancelled. Fetch errors are
    logged and the loop moves on to the next sequence number after the
    retry interval. The controlling thread waits ``duration_seconds`` and
    then cancels the worker, aborting any fetch in flight.

    Example:
        >>> capturer = Capturer(HttpStreamFetcher())
        >>> result = capturer.capture("https://radio.example/live", work_dir, 3600)
        >>> [f.name for f in result.fragments]
        ['00000.rec', '00001.rec']
    """

    def __init__(
        self,
        fetcher: StreamFetcher,
        interval_seconds: float = 1.0,
        stop_grace_seconds: float = 15.0,
    ):
        """Initialize capturer.

        Args:
            fetcher: Stream fetcher used by the worker thread
            interval_seconds: Pause between two fetch attempts
            stop_grace_seconds: How long to wait for the worker to exit after cancelling
        """
        self.fetcher = fetcher
        self.interval_seconds = interval_seconds
        self.stop_grace_seconds = stop_grace_seconds

    def capture(
        self,
        source_url: str,
        working_dir: Path,
        duration_seconds: float,
    ) -> CaptureResult:
        """Capture ``source_url`` into ``working_dir`` for ``duration_seconds``.

        Returns:
            CaptureResult listing the fragments in sequence order

        Raises:
            ValueError: If duration_seconds is not positive
            CaptureStartError: If the working directory or the worker cannot be set up
        """
        if duration_seconds <= 0:
            raise ValueError(f"Capture duration must be positive, got {duration_seconds}")

        token = CancelToken()
        try:
            working_dir.mkdir(parents=True, exist_ok=True)
            worker = threading.Thread(
                target=self._run,
                args=(str(source_url), working_dir, token),
                name="showtape-capture",
                daemon=True,
            )
            worker.start()
        except (OSError, RuntimeError) as e:
            raise CaptureStartError(f"Could not start capture of {source_url}: {e}") from e

        logger.info(f"Capturing {source_url} for {duration_seconds:g}s into {working_dir}")
        started = time.monotonic()

        # The loop never finishes by itself; this is the recording deadline
        worker.join(timeout=duration_seconds)
        token.cancel()
        worker.join(timeout=self.stop_grace_seconds)
        elapsed = time.monotonic() - started

        stopped = not worker.is_alive()
        if not stopped:
            # The token lock already guarantees no further writes
            logger.warning(
                f"Capture worker still unwinding {self.stop_grace_seconds:g}s after cancel"
            )

        result = CaptureResult(
            working_dir=working_dir,
            fragments=collect_fragments(working_dir),
            stopped=stopped,
            elapsed_seconds=elapsed,
        )
        if result.is_empty:
            logger.warning(f"Empty capture: no data received from {source_url}")
        else:
            logger.info(
                f"Captured {len(result.fragments)} fragment(s), "
                f"{result.total_bytes} bytes in {elapsed:.1f}s"
            )
        return result

    def _run(self, source_url: str, working_dir: Path, token: CancelToken) -> None:
        sequence = 0
        while not token.cancelled:
            destination = working_dir / fragment_name(sequence)
            try:
                written = self.fetcher.fetch(source_url, destination, token)
                logger.debug(f"Fragment {destination.name}: {written} bytes")
            except Exception as e:
                # A failed fetch must not end the recording
                logger.warning(f"Fetch of fragment {destination.name} failed: {e}")
                if destination.exists() and destination.stat().st_size == 0:
                    destination.unlink(missing_ok=True)

            if token.wait(self.interval_seconds):
                break
            sequence += 1

        logger.debug(f"Capture worker stopped at sequence {sequence}")
