"""Pipeline orchestrator for recording one episode end to end.

Runs the stages strictly in order:

    notify start -> capture -> stitch -> upload -> notify finish -> retention

Any failure stops the run. Nothing after the failed stage runs: a broken
capture never announces completion and never triggers a retention pass
that could delete older, valid episodes.
"""

import logging
import re
import shutil
import tempfile
import time
from collections.abc import Callable, Iterator
from contextlib import contextmanager
from datetime import datetime, timezone
from pathlib import Path

import httpx

from showtape.capture import Capturer, HttpStreamFetcher, StreamFetcher, stitch
from showtape.config.schema import RecorderConfig
from showtape.models import Episode, Series
from showtape.notify import Notifier, NotifyAction, build_payload
from showtape.pipeline.models import PipelineOptions, PipelineStage, RunReport
from showtape.storage import ObjectStore, RetentionEnforcer, Uploader, open_store
from showtape.utils.errors import CaptureStartError, PipelineError
from showtape.utils.naming import episode_key_pattern, normalize
from showtape.utils.retry import RetryExecutor

logger = logging.getLogger(__name__)


class PipelineOrchestrator:
    """Record, publish and prune one episode of a series.

    Example:
        >>> config = ConfigManager().load_config()
        >>> with PipelineOrchestrator.from_config(config) as orchestrator:
        ...     report = orchestrator.run()
        >>> report.stored.key
        'morning_show_20251107060000.mp3'
    """

    def __init__(
        self,
        series: Series,
        container: str,
        capturer: Capturer,
        uploader: Uploader,
        notifier: Notifier,
        retention: RetentionEnforcer,
        options: PipelineOptions | None = None,
    ):
        """Initialize the orchestrator.

        Args:
            series: Series being recorded
            container: Container receiving the episode
            capturer: Stream capturer
            uploader: Episode uploader
            notifier: Webhook notifier
            retention: Retention enforcer for the container
            options: Run options (defaults if None)
        """
        self.series = series
        self.container = container
        self.capturer = capturer
        self.uploader = uploader
        self.notifier = notifier
        self.retention = retention
        self.options = options or PipelineOptions()

    @classmethod
    def from_config(
        cls,
        config: RecorderConfig,
        store: ObjectStore | None = None,
        fetcher: StreamFetcher | None = None,
        http_client: httpx.Client | None = None,
        sleep: Callable[[float], None] = time.sleep,
    ) -> "PipelineOrchestrator":
        """Wire every component from a validated config.

        The storage credential is resolved here, before any stage runs.

        Args:
            config: Validated configuration
            store: Object store to use instead of the configured one
            fetcher: Stream fetcher to use instead of HttpStreamFetcher
            http_client: httpx client for webhook calls
            sleep: Sleep function used between retries

        Raises:
            AuthenticationError: If the storage credential cannot be resolved
        """
        retry = RetryExecutor(config.retry, sleep=sleep)

        if store is None:
            credential = config.auth.resolve()
            store = open_store(config.storage.root, config.account, credential)

        if fetcher is None:
            fetcher = HttpStreamFetcher(
                connect_timeout=config.capture.connect_timeout_seconds,
                read_timeout=config.capture.read_timeout_seconds,
            )

        series = Series(
            name=config.series_name,
            source_url=config.source_url,
            retention_count=config.retention_count,
        )
        options = PipelineOptions(
            runtime_seconds=config.runtime_seconds,
            media_type=config.media_type,
            notify_start=config.notify_start,
            keep_workdir=config.keep_workdir,
            work_dir=config.work_dir,
        )

        return cls(
            series=series,
            container=config.container,
            capturer=Capturer(
                fetcher,
                interval_seconds=config.capture.interval_seconds,
                stop_grace_seconds=config.capture.stop_grace_seconds,
            ),
            uploader=Uploader(store, retry),
            notifier=Notifier(str(config.webhook_url), retry, client=http_client),
            retention=RetentionEnforcer(store, retry),
            options=options,
        )

    @property
    def retention_prefix(self) -> str:
        """Key prefix shared by every episode of the series."""
        return f"{normalize(self.series.name)}_"

    @property
    def retention_pattern(self) -> re.Pattern[str]:
        """Full-key pattern of the series' episodes."""
        return episode_key_pattern(self.series.name)

    @contextmanager
    def _stage(self, stage: PipelineStage, report: RunReport) -> Iterator[None]:
        logger.info(f"[{stage.value}] starting")
        try:
            yield
        except PipelineError:
            raise
        except Exception as e:
            logger.error(f"[{stage.value}] failed: {type(e).__name__}: {e}")
            raise PipelineError(stage.value, e) from e
        report.stages.append(stage)
        logger.info(f"[{stage.value}] done")

    def _make_work_dir(self, episode: Episode) -> Path:
        try:
            self.options.work_dir.mkdir(parents=True, exist_ok=True)
            prefix = f"{Path(episode.file_name).stem}_"
            return Path(tempfile.mkdtemp(prefix=prefix, dir=self.options.work_dir))
        except OSError as e:
            raise CaptureStartError(f"Cannot create capture directory: {e}") from e

    def _payload(self, episode: Episode, action: NotifyAction | None) -> dict[str, str]:
        return build_payload(self.container, episode.file_name, self.series.name, action)

    def run(self, episode: Episode | None = None) -> RunReport:
        """Run the whole pipeline for one episode.

        Args:
            episode: Episode to record (default: a new episode of the series)

        Returns:
            RunReport describing what happened

        Raises:
            PipelineError: If any stage fails; ``stage`` and ``cause`` tell which and why
        """
        if episode is None:
            episode = self.series.new_episode(
                self.options.runtime_seconds, media_type=self.options.media_type
            )
        else:
            self.series.episode = episode

        report = RunReport(
            series_name=self.series.name,
            container=self.container,
            episode=episode,
        )
        logger.info(
            f"Recording '{self.series.name}' as {episode.file_name} "
            f"for {episode.runtime_seconds}s"
        )

        if self.options.notify_start:
            with self._stage(PipelineStage.NOTIFY_START, report):
                self.notifier.notify(self._payload(episode, NotifyAction.START))

        with self._stage(PipelineStage.CAPTURE, report):
            work_dir = self._make_work_dir(episode)
            report.work_dir = work_dir
            capture = self.capturer.capture(
                str(self.series.source_url), work_dir / "fragments", episode.runtime_seconds
            )
            report.fragment_count = len(capture.fragments)
            report.empty_capture = capture.is_empty

        with self._stage(PipelineStage.STITCH, report):
            output = stitch(capture.fragments, work_dir / episode.file_name)
            episode.file_path = output.resolve()
            if report.empty_capture:
                logger.warning(f"Publishing empty episode {episode.file_name}")

        with self._stage(PipelineStage.UPLOAD, report):
            report.stored = self.uploader.upload(
                episode.file_path, self.container, episode.file_name
            )

        if not self.options.keep_workdir:
            shutil.rmtree(work_dir, ignore_errors=True)
            # The local copy is gone; the stored object is the episode now
            episode.file_path = None

        with self._stage(PipelineStage.NOTIFY_FINISH, report):
            action = NotifyAction.FINISH if self.options.notify_start else None
            self.notifier.notify(self._payload(episode, action))

        with self._stage(PipelineStage.ENFORCE, report):
            report.deleted = self.retention.enforce(
                self.container,
                self.series.retention_count,
                prefix=self.retention_prefix,
                pattern=self.retention_pattern,
            )

        report.stages.append(PipelineStage.DONE)
        report.finished_at = datetime.now(timezone.utc)
        logger.info(
            f"Run complete: {episode.file_name} published, "
            f"{len(report.deleted)} old episode(s) removed"
        )
        return report

    def close(self) -> None:
        self.notifier.close()
        fetcher_close = getattr(self.capturer.fetcher, "close", None)
        if callable(fetcher_close):
            fetcher_close()

    def __enter__(self) -> "PipelineOrchestrator":
        return self

    def __exit__(self, exc_type, exc_val, exc_tb) -> None:
        self.close()
