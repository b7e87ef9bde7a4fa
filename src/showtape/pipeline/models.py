"""Data models for pipeline runs."""

from datetime import datetime, timezone
from enum import Enum
from pathlib import Path

from pydantic import BaseModel, Field

from showtape.models import Episode, StoredObject
from showtape.utils.paths import get_work_dir


class PipelineStage(str, Enum):
    """Pipeline stages, in execution order."""

    NOTIFY_START = "notify_start"
    CAPTURE = "capture"
    STITCH = "stitch"
    UPLOAD = "upload"
    NOTIFY_FINISH = "notify_finish"
    ENFORCE = "enforce"
    DONE = "done"


class PipelineOptions(BaseModel):
    """Per-run options that are not part of the series identity."""

    runtime_seconds: int = Field(default=3600, gt=0)
    media_type: str = "mp3"
    notify_start: bool = Field(default=True, description="Send a Start event before capturing")
    keep_workdir: bool = Field(default=False, description="Keep fragments after upload")
    work_dir: Path = Field(default_factory=get_work_dir)


class RunReport(BaseModel):
    """Outcome of one pipeline run."""

    series_name: str
    container: str
    episode: Episode
    stages: list[PipelineStage] = Field(default_factory=list)
    fragment_count: int = 0
    empty_capture: bool = False
    stored: StoredObject | None = None
    deleted: list[str] = Field(default_factory=list)
    work_dir: Path | None = None
    started_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))
    finished_at: datetime | None = None

    @property
    def succeeded(self) -> bool:
        return PipelineStage.DONE in self.stages

    @property
    def duration_seconds(self) -> float | None:
        if self.finished_at is None:
            return None
        return (self.finished_at - self.started_at).total_seconds()
