"""Unit tests for tick-scoped buffer release."""

from unittest.mock import Mock

import numpy as np
import pytest

from livedetect.pipeline.arena import TickArena


class _Disposable:
    def __init__(self):
        self.disposed = False

    def dispose(self):
        self.disposed = True


class TestTickArena:
    """Tests for TickArena."""

    def test_releases_on_exit(self):
        """Test that dispose/release/close are called when the tick ends."""
        disposable = _Disposable()
        released = Mock(spec=["release"])
        closable = Mock(spec=["close"])

        with TickArena() as arena:
            arena.track(disposable)
            arena.track(released)
            arena.track(closable)
            arena.track(np.zeros(4))
            assert arena.live_count == 4

        assert disposable.disposed
        released.release.assert_called_once()
        closable.close.assert_called_once()
        assert arena.live_count == 0
        assert arena.closed

    def test_releases_when_tick_fails(self):
        disposable = _Disposable()

        with pytest.raises(RuntimeError, match="boom"):
            with TickArena() as arena:
                arena.track(disposable)
                raise RuntimeError("boom")

        assert disposable.disposed
        assert arena.live_count == 0

    def test_release_failure_does_not_propagate(self):
        broken = Mock(spec=["dispose"])
        broken.dispose.side_effect = ValueError("already freed")
        other = _Disposable()

        with TickArena() as arena:
            arena.track(other)
            arena.track(broken)

        assert other.disposed

    def test_track_returns_buffer(self):
        buffer = np.ones(3)

        with TickArena() as arena:
            assert arena.track(buffer) is buffer

    def test_track_after_close_rejected(self):
        arena = TickArena()
        arena.close()

        with pytest.raises(RuntimeError):
            arena.track(np.zeros(1))
