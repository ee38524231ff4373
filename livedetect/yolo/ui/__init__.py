"""Detection overlays and masked rendering."""

from __future__ import annotations

from livedetect.yolo.ui.draw import (
    Renderer,
    clear_surface,
    render_boxes,
    render_masked,
    viewport_mask_shift,
)


__all__ = [
    "Renderer",
    "clear_surface",
    "render_boxes",
    "render_masked",
    "viewport_mask_shift",
]
