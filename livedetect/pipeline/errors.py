"""Error taxonomy for the live detection pipeline."""

from __future__ import annotations


class LiveDetectError(RuntimeError):
    """Base class for pipeline errors."""


class ShapeMismatch(LiveDetectError):
    """Raised when the detector output does not match the expected class count."""

    def __init__(self, shape: tuple[int, ...], num_classes: int) -> None:
        self.shape = tuple(shape)
        self.num_classes = num_classes
        message = (
            f"Detector output shape {self.shape} is incompatible with "
            f"{num_classes} classes (expected an axis of size {4 + num_classes})"
        )
        super().__init__(message)


class EncoderError(LiveDetectError):
    """Raised for codec-level failures while encoding a frame."""


class FinalizeFailed(LiveDetectError):
    """Raised when flushing the encoder or finalizing the container fails."""


class SourceEnded(LiveDetectError):
    """Raised by frame sources that signal end-of-stream by exception."""


class LiveInitError(LiveDetectError):
    """Raised when the host application fails to initialize."""
