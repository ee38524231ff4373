"""Overlay rendering onto the shared display surface."""

from __future__ import annotations

from typing import Sequence

import cv2
import numpy as np

from livedetect.pipeline.types import Box, SelectionResult
from livedetect.yolo.core.constants import CLASS_NAMES, class_color
from livedetect.yolo.core.preprocess import as_bgr
from livedetect.yolo.core.scale import ScaleRatios, to_target


FONT = cv2.FONT_HERSHEY_SIMPLEX
FILL_ALPHA = 0.2
NARROW_VIEWPORT_PX = 768


def font_height_px(surface_w: int, surface_h: int) -> int:
    return max(round(max(surface_w, surface_h) / 40), 14)


def line_width_px(surface_w: int, surface_h: int) -> float:
    return max(min(surface_w, surface_h) / 200, 2.5)


def format_label(class_id: int, score: float, class_names: Sequence[str] = CLASS_NAMES) -> str:
    name = class_names[class_id] if 0 <= class_id < len(class_names) else f"class {class_id}"
    return f"{name} - {score * 100:.1f}%"


def label_top(box_y1: float, text_height: int, line_width: float) -> float:
    """Top edge of the label swatch, pushed down to 0 when it would leave the surface."""
    y_text = box_y1 - (text_height + line_width)
    return 0.0 if y_text < 0 else y_text


def viewport_mask_shift(viewport_width: int) -> tuple[float, float]:
    """Source-rectangle shift used by the masked view on narrow and wide viewports."""
    if viewport_width <= NARROW_VIEWPORT_PX:
        return (0.65, 1.0)
    return (1.0, 0.75)


def clear_surface(surface: np.ndarray) -> None:
    surface[...] = 0


def _displayed(source: np.ndarray, surface_w: int, surface_h: int) -> np.ndarray:
    """Return the source as it appears stretched over the whole surface."""
    frame = as_bgr(source)
    if frame.shape[:2] == (surface_h, surface_w):
        return frame
    return cv2.resize(frame, (surface_w, surface_h), interpolation=cv2.INTER_LINEAR)


def _clip_rect(box: Box, surface_w: int, surface_h: int) -> tuple[int, int, int, int] | None:
    x1 = int(np.clip(round(box.x1), 0, surface_w))
    y1 = int(np.clip(round(box.y1), 0, surface_h))
    x2 = int(np.clip(round(box.x2), 0, surface_w))
    y2 = int(np.clip(round(box.y2), 0, surface_h))
    if x2 <= x1 or y2 <= y1:
        return None
    return x1, y1, x2, y2


def _fill_alpha(
    surface: np.ndarray,
    rect: tuple[int, int, int, int],
    color: tuple[int, int, int],
    alpha: float,
) -> None:
    x1, y1, x2, y2 = rect
    roi = surface[y1:y2, x1:x2]
    overlay = np.empty_like(roi)
    overlay[...] = color
    surface[y1:y2, x1:x2] = cv2.addWeighted(overlay, alpha, roi, 1.0 - alpha, 0.0)


def render_boxes(
    surface: np.ndarray,
    selection: SelectionResult,
    ratios: ScaleRatios,
    source: np.ndarray,
    *,
    model_size: tuple[int, int],
    class_names: Sequence[str] = CLASS_NAMES,
) -> np.ndarray:
    """Draw the source frame and the selected detections onto ``surface``.

    ``model_size`` is the detector input ``(width, height)``; boxes are
    scaled by ``ratios`` and by the surface-to-model size factor.
    """
    surface_h, surface_w = surface.shape[:2]
    clear_surface(surface)
    surface[...] = _displayed(source, surface_w, surface_h)

    font_px = font_height_px(surface_w, surface_h)
    line_width = line_width_px(surface_w, surface_h)
    thickness = max(int(round(line_width)), 1)
    font_scale = cv2.getFontScaleFromHeight(FONT, font_px, 1)

    for det in selection.detections:
        box = to_target(det.box, ratios, model_size, (surface_w, surface_h))
        rect = _clip_rect(box, surface_w, surface_h)
        if rect is None:
            continue
        color = class_color(det.class_id)

        _fill_alpha(surface, rect, color, FILL_ALPHA)
        cv2.rectangle(surface, rect[:2], rect[2:], color, thickness)

        label = format_label(det.class_id, det.score, class_names)
        (text_w, _), _ = cv2.getTextSize(label, FONT, font_scale, 1)
        top = int(label_top(box.y1, font_px, line_width))
        left = int(round(box.x1)) - 1
        cv2.rectangle(
            surface,
            (left, top),
            (left + text_w + thickness, top + font_px + thickness),
            color,
            -1,
        )
        cv2.putText(
            surface,
            label,
            (left, top + font_px),
            FONT,
            font_scale,
            (255, 255, 255),
            1,
            cv2.LINE_AA,
        )

    return surface


def render_masked(
    surface: np.ndarray,
    selection: SelectionResult,
    ratios: ScaleRatios,
    source: np.ndarray,
    *,
    model_size: tuple[int, int],
    shift: tuple[float, float] = (1.0, 1.0),
) -> np.ndarray:
    """Black out everything but the first detection, revealing the source there.

    The revealed pixels come from the displayed source at the box position
    scaled by ``shift`` (``(sx, sy)``); see :func:`viewport_mask_shift`.
    """
    surface_h, surface_w = surface.shape[:2]
    clear_surface(surface)
    if not selection.detections:
        return surface

    box = to_target(selection.detections[0].box, ratios, model_size, (surface_w, surface_h))
    rect = _clip_rect(box, surface_w, surface_h)
    if rect is None:
        return surface

    x1, y1, x2, y2 = rect
    width, height = x2 - x1, y2 - y1
    displayed = _displayed(source, surface_w, surface_h)
    sx = int(np.clip(round(x1 * shift[0]), 0, surface_w - width))
    sy = int(np.clip(round(y1 * shift[1]), 0, surface_h - height))
    surface[y1:y2, x1:x2] = displayed[sy : sy + height, sx : sx + width]
    return surface


class Renderer:
    """Callable renderer bound to a model size and drawing mode."""

    def __init__(
        self,
        model_size: tuple[int, int],
        *,
        masked: bool = False,
        mask_shift: tuple[float, float] = (1.0, 1.0),
        class_names: Sequence[str] = CLASS_NAMES,
    ) -> None:
        self.model_size = model_size
        self.masked = masked
        self.mask_shift = mask_shift
        self.class_names = class_names

    def __call__(
        self,
        surface: np.ndarray,
        selection: SelectionResult,
        ratios: ScaleRatios,
        source: np.ndarray,
    ) -> np.ndarray:
        if self.masked:
            return render_masked(
                surface,
                selection,
                ratios,
                source,
                model_size=self.model_size,
                shift=self.mask_shift,
            )
        return render_boxes(
            surface,
            selection,
            ratios,
            source,
            model_size=self.model_size,
            class_names=self.class_names,
        )

    def clear(self, surface: np.ndarray) -> None:
        clear_surface(surface)
