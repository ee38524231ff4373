"""Record the rendered surface into an MP4 container."""

from __future__ import annotations

import asyncio
import time
from typing import TYPE_CHECKING, Callable

from av.error import FFmpegError
from loguru import logger

from livedetect.pipeline.errors import EncoderError, FinalizeFailed
from livedetect.pipeline.recording import session as sessions
from livedetect.pipeline.recording.writer import AvMp4Writer
from livedetect.pipeline.types import RecorderConfig


if TYPE_CHECKING:
    import numpy as np

    from livedetect.pipeline.recording.export import Exporter
    from livedetect.pipeline.recording.writer import VideoWriter
    from livedetect.pipeline.types import RecordingSession


def monotonic_us() -> int:
    return time.monotonic_ns() // 1000


class Recorder:
    """Own the recording session and its encoder/muxer pair.

    Only the recorder touches the session and the writer. ``encode_tick`` is
    called once per scheduler tick with the freshly rendered surface;
    ``stop`` drains and finalizes the container and optionally exports it.
    """

    def __init__(
        self,
        config: RecorderConfig | None = None,
        *,
        exporter: Exporter | None = None,
        writer_factory: Callable[[RecorderConfig], VideoWriter] = AvMp4Writer,
        on_detach: Callable[[], None] | None = None,
    ) -> None:
        self.config = config or RecorderConfig()
        self.exporter = exporter
        self.writer_factory = writer_factory
        self.on_detach = on_detach
        self.session: RecordingSession | None = None
        self.encoder_errors = 0
        self._writer: VideoWriter | None = None

    @property
    def active(self) -> bool:
        return self.session is not None and self.session.active

    def start(self, start_time_us: int | None = None) -> RecordingSession:
        """Create a new session and configure the encoder and muxer."""
        if self.active:
            message = "Recording already in progress"
            raise RuntimeError(message)

        self._writer = self.writer_factory(self.config)
        self.encoder_errors = 0
        self.session = sessions.new_session(
            monotonic_us() if start_time_us is None else start_time_us
        )
        logger.info("Recording started ({})", self.config.filename)
        return self.session

    def encode_tick(self, surface: np.ndarray, timestamp_us: int) -> bool:
        """Encode the current surface; return True if it was a keyframe.

        Encoder failures are logged and counted but never end the session.
        """
        if not self.active or self._writer is None:
            logger.debug("Encode requested while not recording; ignored")
            return False

        elapsed = sessions.elapsed_ms(self.session, timestamp_us)
        keyframe, self.session = sessions.advance(
            self.session, elapsed, self.config.keyframe_interval_ms
        )
        try:
            self._writer.encode(surface, timestamp_us, keyframe=keyframe)
        except (EncoderError, FFmpegError) as exc:
            self.encoder_errors += 1
            logger.error("Encoder error on frame {}: {}", self.session.frame_count, exc)
            return keyframe

        if keyframe:
            logger.debug("Keyframe at {:.0f} ms", elapsed)
        return keyframe

    def stop(self, export: bool = False) -> bytes | None:
        """Flush, finalize and optionally export; always resets the session.

        Raises ``FinalizeFailed`` when the container cannot be completed; the
        export is skipped in that case.
        """
        if self.session is None:
            logger.debug("Stop requested with no recording session")
            self._detach()
            return None

        frames = self.session.frame_count
        writer = self._writer
        self.session = None
        self._writer = None

        try:
            if writer is None:
                message = "No writer attached to the session"
                raise FinalizeFailed(message)
            writer.flush()
            data = writer.finalize()
        except FinalizeFailed:
            logger.error("Recording of {} frames could not be finalized", frames)
            raise
        finally:
            self._detach()

        logger.info(
            "Recording finalized: {} frames, {:.1f} KB, {} encoder errors",
            frames,
            len(data) / 1024,
            self.encoder_errors,
        )
        if export:
            if self.exporter is None:
                logger.warning("Export requested but no exporter is configured")
            else:
                self.exporter.export(data, self.config.filename)
        return data

    async def stop_async(self, export: bool = False) -> bytes | None:
        """Run :meth:`stop` off the event loop; flush and finalize can block."""
        return await asyncio.to_thread(self.stop, export)

    def _detach(self) -> None:
        if self.on_detach is None:
            return
        try:
            self.on_detach()
        except Exception as exc:
            logger.warning("Detaching the display sink failed: {}", exc)
