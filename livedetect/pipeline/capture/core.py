"""Frame source contract."""

from __future__ import annotations

from typing import TYPE_CHECKING, Protocol


if TYPE_CHECKING:
    import numpy as np


class FrameSource(Protocol):
    """Protocol for live frame sources consumed by the scheduler."""

    @property
    def width(self) -> int:
        """Current pixel width, 0 once the source is closed."""
        ...

    @property
    def height(self) -> int:
        """Current pixel height, 0 once the source is closed."""
        ...

    @property
    def is_live(self) -> bool:
        """Return True while a live stream is attached."""
        ...

    def current_frame(self) -> np.ndarray | None:
        """Return the most recent frame, or None if none has arrived yet.

        Sources may raise ``SourceEnded`` instead of reporting zero size.
        """
        ...

    def close(self) -> None:
        """Detach and release the underlying stream."""
        ...


def source_closed(source: FrameSource) -> bool:
    """Return True when the source reports zero dimensions and no live stream."""
    return (source.width == 0 or source.height == 0) and not source.is_live
