"""Unit tests for performance tracking."""

import itertools
from types import SimpleNamespace

import pytest

from livedetect.pipeline.metrics import performance
from livedetect.pipeline.metrics.performance import PerformanceTracker


class TestPerformanceTracker:
    """Tests for PerformanceTracker."""

    def test_empty_metrics(self):
        metrics = PerformanceTracker().get_metrics()

        assert metrics.tick_fps == 0.0
        assert metrics.inference_ms == 0.0
        assert metrics.skipped_frames == 0

    def test_inference_budget(self):
        """Test budget against the 67 ms tick interval."""
        tracker = PerformanceTracker(tick_interval_ms=67.0)
        for value in (30.0, 40.0):
            tracker.add_inference_time(value)

        metrics = tracker.get_metrics()

        assert metrics.inference_ms == pytest.approx(35.0)
        assert metrics.inference_capacity_fps == pytest.approx(1000 / 35)
        assert metrics.frame_budget_percent == pytest.approx(35 / 67 * 100)

    def test_rolling_window(self):
        tracker = PerformanceTracker(avg_frames=2)
        for value in (100.0, 10.0, 20.0):
            tracker.add_inference_time(value)

        assert tracker.get_metrics().inference_ms == pytest.approx(15.0)

    def test_skips_counted(self):
        tracker = PerformanceTracker()
        tracker.add_skip()
        tracker.add_skip()

        assert tracker.get_metrics().skipped_frames == 2

    def test_tick_fps(self, monkeypatch):
        clock = itertools.count(start=0.0, step=0.1)
        monkeypatch.setattr(
            performance, "time", SimpleNamespace(perf_counter=lambda: next(clock))
        )
        tracker = PerformanceTracker()
        for _ in range(4):
            tracker.tick()

        metrics = tracker.get_metrics()

        assert metrics.tick_fps == pytest.approx(10.0)
        assert tracker.frame_count == 4
