"""Frame sources for the capture scheduler."""

from __future__ import annotations

from livedetect.pipeline.capture.core import FrameSource, source_closed
from livedetect.pipeline.capture.opencv import OpenCVCapture


__all__ = [
    "FrameSource",
    "OpenCVCapture",
    "source_closed",
]
