"""Custom exceptions for showtape."""


class ShowtapeError(Exception):
    """Base exception for all showtape errors."""

    pass


class ConfigError(ShowtapeError):
    """Configuration-related errors."""

    pass


class InvalidConfigError(ConfigError):
    """Invalid configuration data."""

    pass


class ConfigNotFoundError(ConfigError):
    """Configuration file not found."""

    pass


class AuthenticationError(ConfigError):
    """Storage credentials could not be resolved."""

    pass


class CaptureError(ShowtapeError):
    """Stream capture errors."""

    pass


class CaptureStartError(CaptureError):
    """The capture worker could not be started."""

    pass


class FetchError(CaptureError):
    """A single stream fetch failed."""

    pass


class StitchError(ShowtapeError):
    """Fragments could not be concatenated into an episode file."""

    pass


class StorageError(ShowtapeError):
    """Object store errors."""

    pass


class UploadError(StorageError):
    """Episode upload failed."""

    pass


class NotificationError(ShowtapeError):
    """Webhook delivery failed."""

    def __init__(self, message: str, status_code: int | None = None) -> None:
        super().__init__(message)
        self.status_code = status_code


class PipelineError(ShowtapeError):
    """A pipeline stage failed and the run was aborted."""

    def __init__(self, stage: str, cause: BaseException) -> None:
        super().__init__(f"Stage '{stage}' failed: {type(cause).__name__}: {cause}")
        self.stage = stage
        self.cause = cause
