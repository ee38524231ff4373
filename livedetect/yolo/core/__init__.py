"""Core YOLO utilities (constants, scaling, preprocess, postprocess)."""

from __future__ import annotations

from livedetect.yolo.core.constants import (
    CLASS_NAMES,
    COLORS,
    IOU_THRESHOLD,
    MAX_OUTPUT_SIZE,
    SCORE_THRESHOLD,
    TARGET_CLASS_ID,
    class_color,
)
from livedetect.yolo.core.postprocess import (
    box_iou,
    decode_detections,
    non_max_suppression,
    select_best_target,
)
from livedetect.yolo.core.preprocess import infer_input_size, pad_to_square, preprocess
from livedetect.yolo.core.scale import ScaleRatios, compute_scale_ratios, to_target


__all__ = [
    "CLASS_NAMES",
    "COLORS",
    "IOU_THRESHOLD",
    "MAX_OUTPUT_SIZE",
    "SCORE_THRESHOLD",
    "TARGET_CLASS_ID",
    "ScaleRatios",
    "box_iou",
    "class_color",
    "compute_scale_ratios",
    "decode_detections",
    "infer_input_size",
    "non_max_suppression",
    "pad_to_square",
    "preprocess",
    "select_best_target",
    "to_target",
]
