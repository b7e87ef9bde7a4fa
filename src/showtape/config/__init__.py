"""Configuration management for showtape."""

from showtape.config.manager import ConfigManager
from showtape.config.schema import CaptureConfig, RecorderConfig, StorageConfig

__all__ = [
    "ConfigManager",
    "RecorderConfig",
    "CaptureConfig",
    "StorageConfig",
]
