"""Data models for series, episodes, fragments and stored objects."""

from datetime import datetime, timezone
from pathlib import Path

from pydantic import BaseModel, ConfigDict, Field, HttpUrl, field_validator

from showtape.utils.naming import episode_file_name, fragment_name


def now_utc() -> datetime:
    """Current UTC time truncated to whole seconds."""
    return datetime.now(timezone.utc).replace(microsecond=0)


class Episode(BaseModel):
    """One capture of a series.

    The file name is derived once, at construction, from the title, the
    media type and the start time. Two episodes of the same title started
    within the same second share a file name.

    Example:
        >>> episode = Episode(title="Morning Show", runtime_seconds=3600)
        >>> episode.file_name
        'morning_show_20251107060000.mp3'
    """

    model_config = ConfigDict(validate_assignment=True)

    title: str = Field(..., min_length=1, frozen=True)
    media_type: str = Field(default="mp3", min_length=1, frozen=True)
    runtime_seconds: int = Field(..., gt=0, frozen=True, description="Target runtime")
    started_at: datetime = Field(default_factory=now_utc, frozen=True)
    file_name: str = ""
    file_path: Path | None = Field(
        default=None,
        description="Absolute path of the stitched file; cleared once the work dir is removed",
    )

    @field_validator("media_type")
    @classmethod
    def _lowercase_media_type(cls, value: str) -> str:
        return value.strip().lstrip(".").lower()

    @field_validator("started_at")
    @classmethod
    def _second_resolution(cls, value: datetime) -> datetime:
        return value.replace(microsecond=0)

    def model_post_init(self, __context) -> None:
        """Derive the file name from title, media type and start time."""
        if not self.file_name:
            self.file_name = episode_file_name(self.title, self.media_type, self.started_at)


class Series(BaseModel):
    """Logical show identity: name, source stream and retention count."""

    model_config = ConfigDict(validate_assignment=True)

    name: str = Field(..., min_length=1, frozen=True)
    source_url: HttpUrl = Field(..., frozen=True)
    retention_count: int = Field(default=10, ge=0, frozen=True)
    episode: Episode | None = None

    @field_validator("name")
    @classmethod
    def _name_not_blank(cls, value: str) -> str:
        if not value.strip():
            raise ValueError("Series name must not be blank")
        return value

    def new_episode(
        self,
        runtime_seconds: int,
        media_type: str = "mp3",
        started_at: datetime | None = None,
    ) -> Episode:
        """Create the in-progress episode for this run and attach it."""
        kwargs = {"started_at": started_at} if started_at else {}
        self.episode = Episode(
            title=self.name,
            media_type=media_type,
            runtime_seconds=runtime_seconds,
            **kwargs,
        )
        return self.episode


class Fragment(BaseModel):
    """One sequentially numbered chunk written by the capture loop."""

    model_config = ConfigDict(frozen=True)

    sequence: int = Field(..., ge=0)
    path: Path

    @property
    def name(self) -> str:
        return fragment_name(self.sequence)

    @property
    def size_bytes(self) -> int:
        return self.path.stat().st_size if self.path.exists() else 0


class StoredObject(BaseModel):
    """An object in the durable store."""

    model_config = ConfigDict(frozen=True)

    container: str
    key: str
    last_modified: datetime
    size_bytes: int = Field(default=0, ge=0)
