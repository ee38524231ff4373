"""Performance tracking for the capture scheduler."""

from __future__ import annotations

import time

from livedetect.pipeline.types import PerformanceMetrics


class PerformanceTracker:
    """Track tick and inference timings with moving averages."""

    def __init__(self, avg_frames: int = 30, tick_interval_ms: float = 67.0) -> None:
        """Initialize the tracker with a rolling window size."""
        self.avg_frames = avg_frames
        self.tick_interval_ms = tick_interval_ms
        self.tick_times: list[float] = []
        self.inference_times: list[float] = []
        self.last_tick_time: float | None = None
        self.frame_count = 0
        self.skipped_frames = 0
        self.start_time = time.perf_counter()

    def tick(self) -> None:
        """Record a processed tick for throughput estimation."""
        now = time.perf_counter()
        if self.last_tick_time is not None:
            self.tick_times.append(now - self.last_tick_time)
            if len(self.tick_times) > self.avg_frames:
                self.tick_times.pop(0)
        self.last_tick_time = now
        self.frame_count += 1

    def add_inference_time(self, elapsed_ms: float) -> None:
        """Record a single inference duration in milliseconds."""
        self.inference_times.append(elapsed_ms)
        if len(self.inference_times) > self.avg_frames:
            self.inference_times.pop(0)

    def add_skip(self) -> None:
        self.skipped_frames += 1

    def get_metrics(self) -> PerformanceMetrics:
        """Compute aggregated performance metrics."""
        metrics = PerformanceMetrics(skipped_frames=self.skipped_frames)

        if self.tick_times:
            avg_tick_time = sum(self.tick_times) / len(self.tick_times)
            metrics.tick_fps = 1.0 / avg_tick_time if avg_tick_time > 0 else 0.0

        if self.inference_times:
            metrics.inference_ms = sum(self.inference_times) / len(self.inference_times)
            metrics.inference_capacity_fps = (
                1000.0 / metrics.inference_ms if metrics.inference_ms > 0 else 0.0
            )
            if self.tick_interval_ms > 0:
                metrics.frame_budget_percent = (
                    metrics.inference_ms / self.tick_interval_ms
                ) * 100

        elapsed = time.perf_counter() - self.start_time
        metrics.actual_throughput_fps = (
            self.frame_count / elapsed if elapsed > 0 else 0.0
        )

        return metrics
