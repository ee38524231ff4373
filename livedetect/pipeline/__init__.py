from __future__ import annotations

from livedetect.pipeline.arena import TickArena
from livedetect.pipeline.capture import FrameSource, OpenCVCapture, source_closed
from livedetect.pipeline.errors import (
    EncoderError,
    FinalizeFailed,
    LiveDetectError,
    LiveInitError,
    ShapeMismatch,
    SourceEnded,
)
from livedetect.pipeline.logging import (
    attach_log_buffer,
    configure_logging,
    create_log_buffer,
)
from livedetect.pipeline.metrics.performance import PerformanceTracker
from livedetect.pipeline.recording import (
    AvMp4Writer,
    Exporter,
    FileExporter,
    Recorder,
    VideoWriter,
)
from livedetect.pipeline.scheduler import CaptureScheduler, detect_image
from livedetect.pipeline.types import (
    Box,
    CaptureConfig,
    Detection,
    PerformanceMetrics,
    RecorderConfig,
    RecordingSession,
    SchedulerConfig,
    SchedulerState,
    SelectionResult,
    SkipCounter,
    TickOutcome,
)


__all__ = [
    "AvMp4Writer",
    "Box",
    "CaptureConfig",
    "CaptureScheduler",
    "Detection",
    "EncoderError",
    "Exporter",
    "FileExporter",
    "FinalizeFailed",
    "FrameSource",
    "LiveDetectError",
    "LiveInitError",
    "OpenCVCapture",
    "PerformanceMetrics",
    "PerformanceTracker",
    "Recorder",
    "RecorderConfig",
    "RecordingSession",
    "SchedulerConfig",
    "SchedulerState",
    "SelectionResult",
    "ShapeMismatch",
    "SkipCounter",
    "SourceEnded",
    "TickArena",
    "TickOutcome",
    "VideoWriter",
    "attach_log_buffer",
    "configure_logging",
    "create_log_buffer",
    "detect_image",
    "source_closed",
]
