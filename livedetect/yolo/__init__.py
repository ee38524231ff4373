from __future__ import annotations

import importlib

from livedetect.yolo.cli import parse_args
from livedetect.yolo.core.constants import CLASS_NAMES, COLORS
from livedetect.yolo.core.postprocess import decode_detections
from livedetect.yolo.core.preprocess import infer_input_size, preprocess
from livedetect.yolo.engine import InferenceEngine, OnnxInferenceEngine, warm_up
from livedetect.yolo.ui.draw import Renderer, viewport_mask_shift


def run_live_detection(*args: object, **kwargs: object) -> int:
    """Run the live detection entry point via lazy import."""
    module = importlib.import_module("livedetect.yolo.live")
    return module.run_live_detection(*args, **kwargs)


__all__ = [
    "CLASS_NAMES",
    "COLORS",
    "InferenceEngine",
    "OnnxInferenceEngine",
    "Renderer",
    "decode_detections",
    "infer_input_size",
    "parse_args",
    "preprocess",
    "run_live_detection",
    "viewport_mask_shift",
]
