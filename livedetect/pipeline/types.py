"""Shared data structures for the live detection pipeline."""

from __future__ import annotations

import math
from dataclasses import dataclass, field
from enum import Enum

import numpy as np


@dataclass
class CaptureConfig:
    """Frame source settings (fixed capture resolution and rate)."""

    source: int | str = 0
    width: int = 640
    height: int = 480
    frame_rate: int = 30


@dataclass
class RecorderConfig:
    """Encoder and container settings for the recorder."""

    width: int = 640
    height: int = 480
    frame_rate: int = 30
    bitrate: int = 2_000_000
    codec: str = "h264"
    codec_options: dict[str, str] = field(default_factory=lambda: {"profile": "high"})
    pix_fmt: str = "yuv420p"
    keyframe_interval_ms: float = 5000.0
    filename: str = "HumanFaceDetection.mp4"


@dataclass
class SchedulerConfig:
    """Tick cadence and rendering mode for the capture scheduler."""

    tick_rate: int = 15
    export_on_source_end: bool = False
    masked: bool = False
    mask_shift: tuple[float, float] = (1.0, 1.0)
    metrics_log_interval_s: float = 2.0

    @property
    def tick_interval_ms(self) -> int:
        """Return the fixed timer interval in whole milliseconds."""
        return math.ceil(1000 / self.tick_rate)


class SchedulerState(Enum):
    """Capture scheduler states."""

    IDLE = "idle"
    RUNNING = "running"


class TickOutcome(Enum):
    """What a single scheduler tick ended up doing."""

    PROCESSED = "processed"
    SKIPPED = "skipped"
    ABORTED = "aborted"
    NO_FRAME = "no_frame"
    SOURCE_ENDED = "source_ended"


@dataclass(frozen=True)
class Box:
    """Corner-form box in model-space pixels."""

    y1: float
    x1: float
    y2: float
    x2: float

    @property
    def width(self) -> float:
        return self.x2 - self.x1

    @property
    def height(self) -> float:
        return self.y2 - self.y1

    def as_tuple(self) -> tuple[float, float, float, float]:
        return (self.y1, self.x1, self.y2, self.x2)


@dataclass(frozen=True)
class Detection:
    """A single decoded detection."""

    class_id: int
    score: float
    box: Box


@dataclass
class SelectionResult:
    """Detections picked for rendering plus every NMS survivor.

    ``boxes``, ``scores`` and ``classes`` are parallel arrays describing
    ``detections``; ``survivors`` keeps the full post-NMS set of all classes.
    """

    detections: list[Detection] = field(default_factory=list)
    boxes: np.ndarray = field(default_factory=lambda: np.zeros((0, 4), dtype=np.float32))
    scores: np.ndarray = field(default_factory=lambda: np.zeros((0,), dtype=np.float32))
    classes: np.ndarray = field(default_factory=lambda: np.zeros((0,), dtype=np.int64))
    survivors: list[Detection] = field(default_factory=list)

    def __len__(self) -> int:
        return len(self.detections)


@dataclass(frozen=True)
class RecordingSession:
    """Recording state owned by the recorder, replaced once per encoded frame."""

    start_time_us: int
    last_keyframe_ms: float = -math.inf
    frame_count: int = 0
    active: bool = True


class SkipCounter:
    """Monotonic count of ticks dropped while the pipeline was busy."""

    def __init__(self) -> None:
        self._value = 0

    @property
    def value(self) -> int:
        return self._value

    def increment(self) -> int:
        self._value += 1
        return self._value

    def __int__(self) -> int:
        return self._value

    def __repr__(self) -> str:
        return f"SkipCounter({self._value})"


@dataclass
class PerformanceMetrics:
    """Container for performance metrics."""

    tick_fps: float = 0.0
    inference_ms: float = 0.0
    inference_capacity_fps: float = 0.0
    frame_budget_percent: float = 0.0
    actual_throughput_fps: float = 0.0
    skipped_frames: int = 0
