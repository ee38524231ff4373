"""Performance metrics helpers for pipelines."""

from __future__ import annotations

from livedetect.pipeline.metrics.performance import PerformanceTracker


__all__ = [
    "PerformanceTracker",
]
