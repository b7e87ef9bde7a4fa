"""Utility functions and helpers for showtape."""

from showtape.utils.errors import (
    AuthenticationError,
    CaptureError,
    CaptureStartError,
    ConfigError,
    ConfigNotFoundError,
    FetchError,
    InvalidConfigError,
    NotificationError,
    PipelineError,
    ShowtapeError,
    StitchError,
    StorageError,
    UploadError,
)
from showtape.utils.naming import (
    episode_file_name,
    episode_key_pattern,
    fragment_name,
    normalize,
)
from showtape.utils.retry import DEFAULT_RETRY_POLICY, RetryExecutor, RetryPolicy

__all__ = [
    # Errors
    "ShowtapeError",
    "ConfigError",
    "InvalidConfigError",
    "ConfigNotFoundError",
    "AuthenticationError",
    "CaptureError",
    "CaptureStartError",
    "FetchError",
    "StitchError",
    "StorageError",
    "UploadError",
    "NotificationError",
    "PipelineError",
    # Naming
    "normalize",
    "episode_file_name",
    "episode_key_pattern",
    "fragment_name",
    # Retry
    "RetryExecutor",
    "RetryPolicy",
    "DEFAULT_RETRY_POLICY",
]
