"""Configuration schema models using Pydantic."""

from pathlib import Path
from typing import Annotated, Literal

from pydantic import BaseModel, Field, HttpUrl, field_validator

from showtape.storage.auth import ManagedIdentityAuth, ServicePrincipalAuth
from showtape.utils.paths import get_data_dir, get_work_dir
from showtape.utils.retry import RetryPolicy

LogLevel = Literal["DEBUG", "INFO", "WARNING", "ERROR"]

AuthConfig = Annotated[
    ManagedIdentityAuth | ServicePrincipalAuth,
    Field(discriminator="type"),
]


class CaptureConfig(BaseModel):
    """Capture loop tuning."""

    interval_seconds: float = Field(default=1.0, gt=0)
    stop_grace_seconds: float = Field(default=15.0, ge=0)
    connect_timeout_seconds: float = Field(default=10.0, gt=0)
    read_timeout_seconds: float = Field(default=10.0, gt=0)


class StorageConfig(BaseModel):
    """Object store location."""

    root: Path = Field(default_factory=get_data_dir)


class RecorderConfig(BaseModel):
    """Everything a recording run needs, validated before the pipeline starts."""

    version: str = "1"
    log_level: LogLevel = "INFO"

    # Where episodes go
    account: str = Field(..., min_length=1, description="Storage account / resource id")
    container: str = Field(..., min_length=1)

    # What to record
    series_name: str = Field(..., min_length=1)
    source_url: HttpUrl
    runtime_seconds: int = Field(default=3600, gt=0)
    media_type: str = Field(default="mp3", min_length=1)
    retention_count: int = Field(default=10, ge=0)

    # Notifications
    webhook_url: HttpUrl
    notify_start: bool = True

    # Working files
    work_dir: Path = Field(default_factory=get_work_dir)
    keep_workdir: bool = False

    auth: AuthConfig = Field(default_factory=ManagedIdentityAuth)
    storage: StorageConfig = Field(default_factory=StorageConfig)
    capture: CaptureConfig = Field(default_factory=CaptureConfig)
    retry: RetryPolicy = Field(default_factory=RetryPolicy)

    @field_validator("series_name", "container", "account")
    @classmethod
    def _not_blank(cls, value: str) -> str:
        if not value.strip():
            raise ValueError("must not be blank")
        return value.strip()

    @field_validator("media_type")
    @classmethod
    def _normalize_media_type(cls, value: str) -> str:
        return value.strip().lstrip(".").lower()
