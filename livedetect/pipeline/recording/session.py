"""Recording session bookkeeping."""

from __future__ import annotations

from dataclasses import replace

from livedetect.pipeline.types import RecordingSession


KEYFRAME_INTERVAL_MS = 5000.0


def new_session(start_time_us: int) -> RecordingSession:
    return RecordingSession(start_time_us=int(start_time_us))


def elapsed_ms(session: RecordingSession, timestamp_us: int) -> float:
    return (timestamp_us - session.start_time_us) / 1000.0


def advance(
    session: RecordingSession,
    elapsed: float,
    interval_ms: float = KEYFRAME_INTERVAL_MS,
) -> tuple[bool, RecordingSession]:
    """Count one frame and decide whether it must be a keyframe.

    A keyframe is due when ``elapsed - last_keyframe_ms >= interval_ms``; the
    returned session then carries ``elapsed`` as the new baseline. A fresh
    session's baseline is ``-inf`` so the first frame is always a keyframe.
    """
    keyframe = elapsed - session.last_keyframe_ms >= interval_ms
    return keyframe, replace(
        session,
        frame_count=session.frame_count + 1,
        last_keyframe_ms=elapsed if keyframe else session.last_keyframe_ms,
    )
