"""Frame preprocessing for the detector."""

from __future__ import annotations

from typing import Sequence

import cv2
import numpy as np

from livedetect.yolo.core.scale import ScaleRatios, compute_scale_ratios


def infer_input_size(input_shape: Sequence[object] | None) -> tuple[int, int]:
    """Infer (height, width) from an NHWC or NCHW model input shape."""

    if not input_shape or len(input_shape) < 4:
        return (640, 640)

    if input_shape[-1] == 3:
        height, width = input_shape[1], input_shape[2]
    else:
        height, width = input_shape[-2], input_shape[-1]

    if isinstance(height, int) and isinstance(width, int):
        return (height, width)

    return (640, 640)


def as_bgr(frame: np.ndarray) -> np.ndarray:
    if frame.ndim == 2:
        return cv2.cvtColor(frame, cv2.COLOR_GRAY2BGR)
    if frame.ndim == 3 and frame.shape[2] == 4:
        return cv2.cvtColor(frame, cv2.COLOR_BGRA2BGR)
    return frame


def pad_to_square(frame: np.ndarray) -> np.ndarray:
    """Zero-pad a frame on the bottom and right edges into a square."""
    h, w = frame.shape[:2]
    max_size = max(w, h)
    return cv2.copyMakeBorder(
        frame,
        0,
        max_size - h,
        0,
        max_size - w,
        cv2.BORDER_CONSTANT,
        value=0,
    )


def preprocess(
    frame: np.ndarray,
    model_width: int,
    model_height: int,
    *,
    swap_rb: bool = True,
) -> tuple[np.ndarray, ScaleRatios]:
    """Turn a BGR frame into a ``(1, H, W, 3)`` float tensor in [0, 1].

    The frame is padded to a square on the bottom/right only, so decoded boxes
    map back to the source with ``ScaleRatios`` and no offset. The input
    frame is never modified.
    """
    h, w = frame.shape[:2]
    if h == 0 or w == 0:
        message = f"Cannot preprocess an empty frame of shape {frame.shape}"
        raise ValueError(message)

    ratios = compute_scale_ratios(w, h)
    padded = pad_to_square(as_bgr(frame))
    resized = cv2.resize(
        padded, (model_width, model_height), interpolation=cv2.INTER_LINEAR
    )
    if swap_rb:
        resized = resized[:, :, ::-1]

    tensor = resized.astype(np.float32) / 255.0
    return tensor[np.newaxis, ...], ratios
