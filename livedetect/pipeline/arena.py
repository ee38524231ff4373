"""Tick-scoped ownership of intermediate buffers."""

from __future__ import annotations

from typing import TypeVar

from loguru import logger


T = TypeVar("T")

_RELEASE_METHODS = ("dispose", "release", "close")


class TickArena:
    """Hold every buffer allocated during one tick and release them on exit.

    Buffers registered with :meth:`track` are released when the arena is
    closed, whether the tick succeeded or raised. Objects exposing
    ``dispose``, ``release`` or ``close`` (GPU-backed outputs, for example)
    have that method called; plain numpy arrays are simply dropped.
    """

    def __init__(self) -> None:
        self._buffers: list[object] = []
        self._closed = False

    def track(self, buffer: T) -> T:
        if self._closed:
            message = "Cannot track buffers on a closed arena"
            raise RuntimeError(message)
        self._buffers.append(buffer)
        return buffer

    @property
    def live_count(self) -> int:
        return len(self._buffers)

    @property
    def closed(self) -> bool:
        return self._closed

    def close(self) -> None:
        while self._buffers:
            buffer = self._buffers.pop()
            for name in _RELEASE_METHODS:
                method = getattr(buffer, name, None)
                if callable(method):
                    try:
                        method()
                    except Exception as exc:
                        logger.warning("Failed to release tick buffer: {}", exc)
                    break
        self._closed = True

    def __enter__(self) -> TickArena:
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.close()
