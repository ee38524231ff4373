"""Decode raw detector output into the detections worth rendering."""

from __future__ import annotations

import numpy as np
from loguru import logger

from livedetect.pipeline.errors import ShapeMismatch
from livedetect.pipeline.types import Box, Detection, SelectionResult
from livedetect.yolo.core.constants import (
    IOU_THRESHOLD,
    MAX_OUTPUT_SIZE,
    SCORE_THRESHOLD,
    TARGET_CLASS_ID,
)


def _to_candidates(raw: np.ndarray, num_classes: int) -> np.ndarray:
    """Return an ``(N, 4 + C)`` view of a ``(1, 4+C, N)`` or ``(1, N, 4+C)`` output."""
    data = np.asarray(raw)
    channels = 4 + num_classes
    if num_classes < 1 or data.ndim != 3 or data.shape[0] != 1:
        raise ShapeMismatch(data.shape, num_classes)
    # Channels-first is the detector's native layout, so check it first.
    if data.shape[1] == channels:
        return data[0].T
    if data.shape[2] == channels:
        return data[0]
    raise ShapeMismatch(data.shape, num_classes)


def center_to_corner(boxes_xywh: np.ndarray) -> np.ndarray:
    """Convert ``(cx, cy, w, h)`` rows into ``(y1, x1, y2, x2)`` rows."""
    cx, cy, w, h = boxes_xywh.T
    x1 = cx - w / 2
    y1 = cy - h / 2
    return np.stack([y1, x1, y1 + h, x1 + w], axis=1)


def box_iou(box: np.ndarray, others: np.ndarray) -> np.ndarray:
    """IoU between one ``(y1, x1, y2, x2)`` box and an ``(M, 4)`` array."""
    others = np.atleast_2d(others)
    y_min = np.minimum(box[0], box[2])
    x_min = np.minimum(box[1], box[3])
    y_max = np.maximum(box[0], box[2])
    x_max = np.maximum(box[1], box[3])
    o_y_min = np.minimum(others[:, 0], others[:, 2])
    o_x_min = np.minimum(others[:, 1], others[:, 3])
    o_y_max = np.maximum(others[:, 0], others[:, 2])
    o_x_max = np.maximum(others[:, 1], others[:, 3])

    area = (y_max - y_min) * (x_max - x_min)
    o_area = (o_y_max - o_y_min) * (o_x_max - o_x_min)

    inter_h = np.maximum(np.minimum(y_max, o_y_max) - np.maximum(y_min, o_y_min), 0.0)
    inter_w = np.maximum(np.minimum(x_max, o_x_max) - np.maximum(x_min, o_x_min), 0.0)
    inter = inter_h * inter_w
    union = area + o_area - inter

    iou = np.zeros(len(others), dtype=np.float64)
    valid = (area > 0) & (o_area > 0) & (union > 0)
    iou[valid] = inter[valid] / union[valid]
    return iou


def non_max_suppression(
    boxes: np.ndarray,
    scores: np.ndarray,
    max_output_size: int = MAX_OUTPUT_SIZE,
    iou_threshold: float = IOU_THRESHOLD,
    score_threshold: float = SCORE_THRESHOLD,
) -> np.ndarray:
    """Greedy class-agnostic NMS returning kept indices, best score first.

    Candidates at or below ``score_threshold`` are dropped. The rest are
    visited in descending score order (a stable sort, so the earlier index
    wins on equal scores) and a candidate is suppressed when its IoU with an
    already kept box reaches ``iou_threshold``.
    """
    scores = np.asarray(scores, dtype=np.float64).reshape(-1)
    boxes = np.asarray(boxes, dtype=np.float64).reshape(-1, 4)
    if max_output_size <= 0 or scores.size == 0:
        return np.zeros((0,), dtype=np.int64)

    candidates = np.flatnonzero(scores > score_threshold)
    order = candidates[np.argsort(-scores[candidates], kind="stable")]

    keep: list[int] = []
    while order.size > 0 and len(keep) < max_output_size:
        best = int(order[0])
        keep.append(best)
        rest = order[1:]
        if rest.size == 0:
            break
        overlaps = box_iou(boxes[best], boxes[rest])
        order = rest[overlaps < iou_threshold]

    return np.asarray(keep, dtype=np.int64)


def select_best_target(
    classes: np.ndarray,
    scores: np.ndarray,
    target_class_id: int = TARGET_CLASS_ID,
) -> int | None:
    """Index of the highest scoring target-class entry, first seen on ties."""
    best_index: int | None = None
    best_score = -1.0
    for i, (class_id, score) in enumerate(zip(classes, scores, strict=True)):
        if int(class_id) != target_class_id:
            continue
        if float(score) > best_score:
            best_score = float(score)
            best_index = i
    return best_index


def _to_detection(box: np.ndarray, score: float, class_id: int) -> Detection:
    y1, x1, y2, x2 = (float(v) for v in box)
    return Detection(
        class_id=int(class_id), score=float(score), box=Box(y1=y1, x1=x1, y2=y2, x2=x2)
    )


def decode_detections(
    raw: np.ndarray,
    num_classes: int,
    *,
    target_class_id: int = TARGET_CLASS_ID,
    debug_boxes: bool = False,
) -> SelectionResult:
    """Decode, suppress and reduce a raw output to at most one target detection.

    NMS runs across all classes before the target-class filter; the filter
    then keeps only the single best target detection.
    """
    candidates = _to_candidates(raw, num_classes)
    boxes = center_to_corner(candidates[:, :4].astype(np.float32))
    class_scores = candidates[:, 4 : 4 + num_classes]
    scores = class_scores.max(axis=1)
    classes = class_scores.argmax(axis=1)

    kept = non_max_suppression(boxes, scores)
    kept_boxes = boxes[kept]
    kept_scores = scores[kept]
    kept_classes = classes[kept]

    if debug_boxes:
        logger.debug(
            "NMS kept {} of {} candidates; first boxes {}",
            len(kept),
            len(candidates),
            kept_boxes[:3].round(2).tolist(),
        )

    survivors = [
        _to_detection(b, s, c)
        for b, s, c in zip(kept_boxes, kept_scores, kept_classes, strict=True)
    ]

    best = select_best_target(kept_classes, kept_scores, target_class_id)
    if best is None:
        return SelectionResult(survivors=survivors)

    return SelectionResult(
        detections=[survivors[best]],
        boxes=kept_boxes[best : best + 1].copy(),
        scores=kept_scores[best : best + 1].copy(),
        classes=kept_classes[best : best + 1].copy(),
        survivors=survivors,
    )
