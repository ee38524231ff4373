"""Recording pipeline: session bookkeeping, encoder/muxer, export."""

from __future__ import annotations

from livedetect.pipeline.recording.export import Exporter, FileExporter
from livedetect.pipeline.recording.recorder import Recorder, monotonic_us
from livedetect.pipeline.recording.session import (
    KEYFRAME_INTERVAL_MS,
    advance,
    elapsed_ms,
    new_session,
)
from livedetect.pipeline.recording.writer import AvMp4Writer, VideoWriter


__all__ = [
    "KEYFRAME_INTERVAL_MS",
    "AvMp4Writer",
    "Exporter",
    "FileExporter",
    "Recorder",
    "VideoWriter",
    "advance",
    "elapsed_ms",
    "monotonic_us",
    "new_session",
]
