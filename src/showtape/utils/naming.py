"""Filesystem-safe names for episodes and fragments."""

import re
import unicodedata
from datetime import datetime

FRAGMENT_SUFFIX = ".rec"
TIMESTAMP_FORMAT = "%Y%m%d%H%M%S"

_WHITESPACE = re.compile(r"\s+")


def normalize(title: str) -> str:
    """Normalize a title into a lowercase, accent-free, underscore-joined name.

    Decomposes the text (NFD), drops combining marks, lowercases, and
    replaces every run of whitespace with a single underscore. Applying it
    twice gives the same result as applying it once.

    Args:
        title: Human-readable title, e.g. "Café del Mar"

    Returns:
        Normalized name, e.g. "cafe_del_mar"
    """
    # Lowercase first: "İ".lower() yields a combining dot that must be dropped too
    decomposed = unicodedata.normalize("NFD", title.lower())
    stripped = "".join(ch for ch in decomposed if not unicodedata.combining(ch))
    return _WHITESPACE.sub("_", stripped)


def episode_file_name(title: str, media_type: str, started_at: datetime) -> str:
    """Build the episode file name from title, media type and start time.

    Second resolution: two episodes of the same title started in the same
    second get the same name.
    """
    return f"{normalize(title)}_{started_at.strftime(TIMESTAMP_FORMAT)}.{media_type.lower()}"


def fragment_name(sequence: int) -> str:
    """Zero-padded fragment file name, e.g. ``00007.rec``."""
    if sequence < 0:
        raise ValueError(f"Fragment sequence must be >= 0, got {sequence}")
    return f"{sequence:05d}{FRAGMENT_SUFFIX}"


def episode_key_pattern(series_title: str) -> re.Pattern[str]:
    """Pattern matching the file names of every episode of one series.

    Only ``<normalized title>_<14-digit timestamp>.<ext>`` matches, so
    "Morning Show" does not claim ``morning_show_extra_...`` episodes.
    """
    return re.compile(rf"{re.escape(normalize(series_title))}_\d{{14}}\.[^./]+")
