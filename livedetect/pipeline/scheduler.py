"""Fixed-cadence capture scheduler with drop-on-busy backpressure."""

from __future__ import annotations

import asyncio
import contextlib
import time
from typing import TYPE_CHECKING, Callable

import numpy as np
from loguru import logger

from livedetect.pipeline.arena import TickArena
from livedetect.pipeline.capture.core import source_closed
from livedetect.pipeline.errors import FinalizeFailed, ShapeMismatch, SourceEnded
from livedetect.pipeline.metrics import PerformanceTracker
from livedetect.pipeline.recording.recorder import monotonic_us
from livedetect.pipeline.types import (
    SchedulerConfig,
    SchedulerState,
    SelectionResult,
    SkipCounter,
    TickOutcome,
)
from livedetect.yolo.core.postprocess import decode_detections
from livedetect.yolo.core.preprocess import preprocess


if TYPE_CHECKING:
    from livedetect.pipeline.capture.core import FrameSource
    from livedetect.pipeline.recording.recorder import Recorder
    from livedetect.yolo.engine import InferenceEngine
    from livedetect.yolo.ui.draw import Renderer


async def _run_pipeline(
    frame: np.ndarray,
    engine: InferenceEngine,
    renderer: Renderer,
    surface: np.ndarray,
    arena: TickArena,
    *,
    perf_tracker: PerformanceTracker | None = None,
    debug_boxes: bool = False,
) -> SelectionResult:
    model_h, model_w = engine.input_size
    tensor, ratios = preprocess(frame, model_w, model_h)
    arena.track(tensor)

    inference_start = time.perf_counter()
    raw = arena.track(await engine.infer(tensor))
    if perf_tracker is not None:
        perf_tracker.add_inference_time((time.perf_counter() - inference_start) * 1000)

    selection = await asyncio.to_thread(
        decode_detections, raw, engine.num_classes, debug_boxes=debug_boxes
    )
    renderer(surface, selection, ratios, frame)
    return selection


async def detect_image(
    image: np.ndarray,
    engine: InferenceEngine,
    renderer: Renderer,
    surface: np.ndarray | None = None,
) -> tuple[np.ndarray, SelectionResult]:
    """Run a single detection pass on a still image outside any scheduler.

    Returns the rendered surface (model-sized unless one is supplied) and
    the selection.
    """
    if surface is None:
        model_h, model_w = engine.input_size
        surface = np.zeros((model_h, model_w, 3), dtype=np.uint8)
    with TickArena() as arena:
        selection = await _run_pipeline(image, engine, renderer, surface, arena)
    logger.info("Image pass: {} detection(s)", len(selection))
    return surface, selection


class CaptureScheduler:
    """Drive preprocess, inference, decode, render and record at a fixed rate.

    A timer task launches one tick task per interval without waiting for the
    previous tick. The ``busy`` field admits at most one pipeline execution;
    ticks arriving while it is set are counted and dropped. All state is
    touched from the event loop thread only.
    """

    def __init__(
        self,
        source: FrameSource,
        engine: InferenceEngine,
        renderer: Renderer,
        recorder: Recorder,
        config: SchedulerConfig | None = None,
        *,
        surface_size: tuple[int, int] | None = None,
        clock: Callable[[], int] = monotonic_us,
        perf_tracker: PerformanceTracker | None = None,
        debug_boxes: bool = False,
    ) -> None:
        self.source = source
        self.engine = engine
        self.renderer = renderer
        self.recorder = recorder
        self.config = config or SchedulerConfig()
        self.clock = clock
        self.debug_boxes = debug_boxes
        self.perf_tracker = perf_tracker or PerformanceTracker(
            tick_interval_ms=self.config.tick_interval_ms
        )

        if surface_size is None:
            model_h, model_w = engine.input_size
            surface_size = (model_w, model_h)
        surface_w, surface_h = surface_size
        self.surface = np.zeros((surface_h, surface_w, 3), dtype=np.uint8)

        self.state = SchedulerState.IDLE
        self.busy = False
        self.skip_counter = SkipCounter()
        self.last_selection = SelectionResult()

        self._timer: asyncio.Task | None = None
        self._ticks: set[asyncio.Task] = set()
        self._active_tick: asyncio.Task | None = None
        self._stopping = False
        self._idle = asyncio.Event()
        self._idle.set()
        self._last_log_time = time.perf_counter()

    @property
    def skipped_frames(self) -> int:
        return self.skip_counter.value

    @property
    def running(self) -> bool:
        return self.state is SchedulerState.RUNNING

    async def start(self) -> None:
        """Start recording and the tick timer (IDLE -> RUNNING)."""
        if self.running:
            logger.warning("Scheduler already running")
            return

        self.recorder.start(self.clock())
        self.state = SchedulerState.RUNNING
        self._idle.clear()
        self._last_log_time = time.perf_counter()
        self._timer = asyncio.create_task(self._run_timer(), name="livedetect-timer")
        logger.info(
            "Scheduler started: tick every {} ms ({} Hz target)",
            self.config.tick_interval_ms,
            self.config.tick_rate,
        )

    async def _run_timer(self) -> None:
        loop = asyncio.get_running_loop()
        interval = self.config.tick_interval_ms / 1000
        deadline = loop.time()
        while self.running:
            deadline += interval
            await asyncio.sleep(max(0.0, deadline - loop.time()))
            if not self.running:
                break
            self._spawn_tick()

    def _spawn_tick(self) -> asyncio.Task:
        task = asyncio.create_task(self.tick())
        self._ticks.add(task)
        task.add_done_callback(self._ticks.discard)
        return task

    async def tick(self) -> TickOutcome:
        """Run one scheduler tick; never raises for per-tick failures."""
        if not self.running:
            return TickOutcome.ABORTED

        if source_closed(self.source):
            await self._shutdown(export=self.config.export_on_source_end, clear=True)
            return TickOutcome.SOURCE_ENDED

        timestamp_us = self.clock()

        if self.busy:
            count = self.skip_counter.increment()
            self.perf_tracker.add_skip()
            logger.debug("Pipeline busy, tick dropped ({} skipped)", count)
            return TickOutcome.SKIPPED

        self.busy = True
        self._active_tick = asyncio.current_task()
        try:
            return await self._process(timestamp_us)
        except SourceEnded as exc:
            logger.info("{}", exc)
            await self._shutdown(export=self.config.export_on_source_end, clear=True)
            return TickOutcome.SOURCE_ENDED
        except ShapeMismatch as exc:
            logger.warning("Tick aborted: {}", exc)
            return TickOutcome.ABORTED
        except Exception:
            logger.exception("Tick aborted by unexpected error")
            return TickOutcome.ABORTED
        finally:
            self.busy = False
            self._active_tick = None

    async def _process(self, timestamp_us: int) -> TickOutcome:
        frame = self.source.current_frame()
        if frame is None:
            logger.debug("No frame available yet")
            return TickOutcome.NO_FRAME

        with TickArena() as arena:
            self.last_selection = await _run_pipeline(
                frame,
                self.engine,
                self.renderer,
                self.surface,
                arena,
                perf_tracker=self.perf_tracker,
                debug_boxes=self.debug_boxes,
            )
            self.recorder.encode_tick(self.surface, timestamp_us)

        self.perf_tracker.tick()
        self._log_metrics()
        return TickOutcome.PROCESSED

    def _log_metrics(self, *, force: bool = False) -> None:
        now = time.perf_counter()
        if not force and now - self._last_log_time < self.config.metrics_log_interval_s:
            return
        self._last_log_time = now
        metrics = self.perf_tracker.get_metrics()
        logger.info(
            "Tick FPS: {:.1f} | Inference: {:.1f} ms ({:.0f}% of budget) | "
            "Capacity: {:.1f} FPS | Throughput: {:.1f} FPS | Skipped: {}",
            metrics.tick_fps,
            metrics.inference_ms,
            metrics.frame_budget_percent,
            metrics.inference_capacity_fps,
            metrics.actual_throughput_fps,
            self.skipped_frames,
        )

    async def stop(self, export: bool = True) -> bytes | None:
        """Stop ticking and finalize the recording (RUNNING -> IDLE)."""
        if not self.running and not self.recorder.active:
            logger.debug("Scheduler already idle")
            return None
        return await self._shutdown(export=export, clear=False)

    async def wait_idle(self) -> None:
        """Block until the scheduler returns to IDLE."""
        await self._idle.wait()

    async def _shutdown(self, *, export: bool, clear: bool) -> bytes | None:
        if self._stopping:
            return None
        self._stopping = True
        self.state = SchedulerState.IDLE
        reason = "source closed" if clear else "stop requested"
        logger.info("Stopping scheduler ({})", reason)

        try:
            if self._timer is not None:
                self._timer.cancel()
                with contextlib.suppress(asyncio.CancelledError):
                    await self._timer
                self._timer = None

            current = asyncio.current_task()
            pending = {task for task in self._ticks if task is not current}
            if self._active_tick is not None and self._active_tick is not current:
                pending.add(self._active_tick)
            if pending:
                await asyncio.gather(*pending, return_exceptions=True)

            if clear:
                self.renderer.clear(self.surface)

            try:
                data = await self.recorder.stop_async(export)
            except FinalizeFailed as exc:
                logger.error("Recording discarded: {}", exc)
                data = None
        finally:
            self._stopping = False
            self._idle.set()

        self._log_metrics(force=True)
        logger.info("Scheduler idle; {} tick(s) skipped", self.skipped_frames)
        return data
