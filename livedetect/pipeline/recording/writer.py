"""MP4 encoder and muxer pair backed by PyAV."""

from __future__ import annotations

import os
import tempfile
from contextlib import suppress
from fractions import Fraction
from pathlib import Path
from typing import TYPE_CHECKING, Protocol

import av
import cv2
from av.error import FFmpegError
from av.video.frame import PictureType
from loguru import logger

from livedetect.pipeline.errors import EncoderError, FinalizeFailed


if TYPE_CHECKING:
    import numpy as np

    from livedetect.pipeline.types import RecorderConfig


# Millisecond pts keep every codec happy (MPEG-4 Part 2 caps the denominator).
TIME_BASE = Fraction(1, 1000)


class VideoWriter(Protocol):
    """Encoder/muxer pair owned exclusively by the recorder."""

    def encode(self, image: np.ndarray, timestamp_us: int, *, keyframe: bool) -> None:
        """Encode one BGR image and mux whatever packets come out."""
        ...

    def flush(self) -> None:
        """Drain the encoder into the muxer."""
        ...

    def finalize(self) -> bytes:
        """Write the trailer and return the complete container."""
        ...


class AvMp4Writer:
    """Encode BGR images to an MP4 file with fast-start metadata.

    Encoded packets go straight from ``stream.encode`` into ``container.mux``
    so no callback state leaks out. The container is written to a temporary
    file because the fast-start pass needs to reopen its output; ``finalize``
    returns the bytes and removes the file.
    """

    def __init__(self, config: RecorderConfig) -> None:
        self.config = config
        fd, tmpname = tempfile.mkstemp(suffix=".mp4", prefix="livedetect-")
        os.close(fd)
        self._path = Path(tmpname)
        self._first_timestamp_us: int | None = None
        self._last_pts = -1
        self._closed = False

        self._container = None
        try:
            self._container = av.open(
                str(self._path),
                mode="w",
                format="mp4",
                options={"movflags": "+faststart"},
            )
            self._stream = self._container.add_stream(
                config.codec, rate=config.frame_rate
            )
            self._stream.width = config.width
            self._stream.height = config.height
            self._stream.pix_fmt = config.pix_fmt
            self._stream.codec_context.bit_rate = config.bitrate
            self._stream.codec_context.time_base = TIME_BASE
            if config.codec_options:
                self._stream.codec_context.options = dict(config.codec_options)
        except (FFmpegError, ValueError) as exc:
            if self._container is not None:
                with suppress(FFmpegError):
                    self._container.close()
            self._path.unlink(missing_ok=True)
            message = f"Cannot configure {config.codec} encoder: {exc}"
            raise EncoderError(message) from exc

        logger.info(
            "Encoder configured: {} {}x{} @ {} FPS, {:.1f} Mbps",
            config.codec,
            config.width,
            config.height,
            config.frame_rate,
            config.bitrate / 1e6,
        )

    def _next_pts(self, timestamp_us: int) -> int:
        if self._first_timestamp_us is None:
            self._first_timestamp_us = timestamp_us
        pts = (timestamp_us - self._first_timestamp_us) // 1000
        # Two ticks inside the same millisecond would collide.
        pts = max(pts, self._last_pts + 1)
        self._last_pts = pts
        return pts

    def encode(self, image: np.ndarray, timestamp_us: int, *, keyframe: bool) -> None:
        if self._closed:
            message = "Writer already finalized"
            raise EncoderError(message)

        if image.shape[1] != self.config.width or image.shape[0] != self.config.height:
            image = cv2.resize(image, (self.config.width, self.config.height))

        frame = av.VideoFrame.from_ndarray(image, format="bgr24")
        frame.pts = self._next_pts(timestamp_us)
        frame.time_base = TIME_BASE
        if keyframe:
            frame.pict_type = PictureType.I

        try:
            for packet in self._stream.encode(frame):
                self._container.mux(packet)
        except FFmpegError as exc:
            message = f"Encoding frame at {timestamp_us} us failed: {exc}"
            raise EncoderError(message) from exc
        finally:
            del frame

    def flush(self) -> None:
        if self._closed:
            return
        try:
            for packet in self._stream.encode(None):
                self._container.mux(packet)
        except FFmpegError as exc:
            message = f"Flushing encoder failed: {exc}"
            raise FinalizeFailed(message) from exc

    def finalize(self) -> bytes:
        if self._closed:
            message = "Writer already finalized"
            raise FinalizeFailed(message)
        self._closed = True
        try:
            self._container.close()
            return self._path.read_bytes()
        except (FFmpegError, OSError) as exc:
            message = f"Finalizing container failed: {exc}"
            raise FinalizeFailed(message) from exc
        finally:
            self._path.unlink(missing_ok=True)
