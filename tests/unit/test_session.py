"""Unit tests for recording session bookkeeping."""

import math

from livedetect.pipeline.recording.session import advance, elapsed_ms, new_session
from livedetect.pipeline.types import RecordingSession


class TestKeyframeCadence:
    """Tests for the keyframe decision."""

    def test_first_frame_is_keyframe(self):
        session = new_session(1_000_000)

        keyframe, session = advance(session, 0.0)

        assert keyframe is True
        assert session.last_keyframe_ms == 0.0
        assert session.frame_count == 1

    def test_keyframe_every_five_seconds(self):
        """Test baseline 0 with ticks at 1000/3000/5000/7000 ms."""
        session = RecordingSession(start_time_us=0, last_keyframe_ms=0.0)
        decisions = []

        for elapsed in (1000.0, 3000.0, 5000.0, 7000.0):
            keyframe, session = advance(session, elapsed)
            decisions.append(keyframe)

        assert decisions == [False, False, True, False]
        assert session.last_keyframe_ms == 5000.0
        assert session.frame_count == 4

    def test_session_replaced_not_mutated(self):
        session = new_session(0)

        _, updated = advance(session, 10.0)

        assert session.frame_count == 0
        assert math.isinf(session.last_keyframe_ms)
        assert updated is not session

    def test_custom_interval(self):
        session = RecordingSession(start_time_us=0, last_keyframe_ms=0.0)

        keyframe, _ = advance(session, 1000.0, interval_ms=1000.0)

        assert keyframe is True


class TestElapsed:
    def test_elapsed_in_milliseconds(self):
        session = new_session(2_000_000)

        assert elapsed_ms(session, 2_500_000) == 500.0
