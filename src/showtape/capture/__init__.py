"""Stream capture module for showtape."""

from showtape.capture.capturer import Capturer, CaptureResult, collect_fragments
from showtape.capture.fetcher import CancelToken, HttpStreamFetcher, StreamFetcher
from showtape.capture.stitcher import stitch

__all__ = [
    "Capturer",
    "CaptureResult",
    "collect_fragments",
    "CancelToken",
    "HttpStreamFetcher",
    "StreamFetcher",
    "stitch",
]
