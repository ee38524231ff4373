"""Mapping between model-space and source-space coordinates."""

from __future__ import annotations

from dataclasses import dataclass

from livedetect.pipeline.types import Box


@dataclass(frozen=True)
class ScaleRatios:
    """Padded square side divided by the original width and height."""

    x_ratio: float
    y_ratio: float

    def rescale(self, box: Box, *, sx: float = 1.0, sy: float = 1.0) -> Box:
        """Scale a model-space box by the ratios and an extra display factor."""
        fx = self.x_ratio * sx
        fy = self.y_ratio * sy
        return Box(y1=box.y1 * fy, x1=box.x1 * fx, y2=box.y2 * fy, x2=box.x2 * fx)


def compute_scale_ratios(frame_width: int, frame_height: int) -> ScaleRatios:
    if frame_width <= 0 or frame_height <= 0:
        message = f"Frame dimensions must be positive, got {frame_width}x{frame_height}"
        raise ValueError(message)
    max_size = max(frame_width, frame_height)
    return ScaleRatios(x_ratio=max_size / frame_width, y_ratio=max_size / frame_height)


def to_target(
    box: Box,
    ratios: ScaleRatios,
    model_size: tuple[int, int],
    target_size: tuple[int, int],
) -> Box:
    """Map a model-space box onto a target that shows the whole source frame.

    ``model_size`` and ``target_size`` are ``(width, height)``. A target of
    the model size reduces to plain ratio scaling; a target of the source
    frame size yields source pixel coordinates.
    """
    model_w, model_h = model_size
    target_w, target_h = target_size
    return ratios.rescale(box, sx=target_w / model_w, sy=target_h / model_h)
