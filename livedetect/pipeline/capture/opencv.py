"""OpenCV frame source with a background grab thread."""

from __future__ import annotations

import threading
import time
from contextlib import suppress
from typing import TYPE_CHECKING

import cv2
from loguru import logger

from livedetect.pipeline.errors import SourceEnded


if TYPE_CHECKING:
    import numpy as np

    from livedetect.pipeline.types import CaptureConfig


class OpenCVCapture:
    """Keep the latest frame of a ``cv2.VideoCapture`` device or file.

    A daemon thread reads frames as fast as the device delivers them and
    overwrites a single slot, so consumers always see the newest frame and
    nothing queues up. When the stream ends (or :meth:`close` is called) the
    reported dimensions drop to zero and ``is_live`` turns False.
    """

    def __init__(self, config: CaptureConfig, read_retry_s: float = 0.01) -> None:
        """Create a capture wrapper; call :meth:`open` to start grabbing."""
        self.config = config
        self.read_retry_s = read_retry_s
        self.cap: cv2.VideoCapture | None = None
        self.actual_width = 0
        self.actual_height = 0
        self.actual_fps = 0.0
        self._frame: np.ndarray | None = None
        self._lock = threading.Lock()
        self._running = False
        self._ended = False
        self._thread: threading.Thread | None = None

    def open(self) -> bool:
        """Open the device or file and start the grab thread."""
        logger.info("Opening source {} with OpenCV...", self.config.source)

        self.cap = cv2.VideoCapture(self.config.source)
        if not self.cap.isOpened():
            logger.error("Cannot open source {} with OpenCV!", self.config.source)
            self.cap = None
            return False

        if isinstance(self.config.source, int):
            self.cap.set(cv2.CAP_PROP_FRAME_WIDTH, self.config.width)
            self.cap.set(cv2.CAP_PROP_FRAME_HEIGHT, self.config.height)
            self.cap.set(cv2.CAP_PROP_FPS, self.config.frame_rate)
            with suppress(Exception):
                self.cap.set(cv2.CAP_PROP_BUFFERSIZE, 1)

        self.actual_width = int(self.cap.get(cv2.CAP_PROP_FRAME_WIDTH))
        self.actual_height = int(self.cap.get(cv2.CAP_PROP_FRAME_HEIGHT))
        self.actual_fps = float(self.cap.get(cv2.CAP_PROP_FPS))

        logger.success(
            "Source opened: {}x{} @ {:.1f} FPS",
            self.actual_width,
            self.actual_height,
            self.actual_fps,
        )

        self._running = True
        self._ended = False
        self._thread = threading.Thread(
            target=self._grab_loop, name="livedetect-capture", daemon=True
        )
        self._thread.start()
        return True

    def _grab_loop(self) -> None:
        # Pace file playback at its native rate; cameras block in read().
        pace_s = 0.0
        if not isinstance(self.config.source, int) and self.actual_fps > 0:
            pace_s = 1.0 / self.actual_fps

        while self._running:
            cap = self.cap
            if cap is None:
                break
            ok, frame = cap.read()
            if not ok or frame is None:
                logger.info("Source {} ended", self.config.source)
                self._ended = True
                break
            with self._lock:
                self._frame = frame
            if pace_s:
                time.sleep(pace_s)

        self._release()

    def _release(self) -> None:
        with self._lock:
            self._running = False
            self._frame = None
            if self.cap is not None:
                self.cap.release()
                self.cap = None
            self.actual_width = 0
            self.actual_height = 0

    @property
    def width(self) -> int:
        return self.actual_width

    @property
    def height(self) -> int:
        return self.actual_height

    @property
    def is_live(self) -> bool:
        return self._running and self.cap is not None

    def current_frame(self) -> np.ndarray | None:
        """Return the newest frame, or None before the first one arrives.

        Raises :class:`SourceEnded` once the stream has run out of frames.
        """
        with self._lock:
            if self._ended:
                message = f"Source {self.config.source} ended"
                raise SourceEnded(message)
            return self._frame

    def close(self) -> None:
        """Stop the grab thread and release the capture handle."""
        self._running = False
        thread = self._thread
        if thread is not None and thread is not threading.current_thread():
            thread.join(timeout=2.0)
        self._thread = None
        self._release()

    def get_info(self) -> dict:
        """Return backend metadata for diagnostics."""
        return {
            "backend": "OpenCV",
            "source": str(self.config.source),
            "width": self.actual_width,
            "height": self.actual_height,
            "fps": self.actual_fps,
        }
