"""Live detection and recording pipeline."""

from livedetect.pipeline import (
    CaptureScheduler,
    FileExporter,
    OpenCVCapture,
    Recorder,
    detect_image,
)


__all__ = [
    "CaptureScheduler",
    "FileExporter",
    "OpenCVCapture",
    "Recorder",
    "detect_image",
]
