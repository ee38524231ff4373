from __future__ import annotations

import asyncio
import platform
from collections import deque
from dataclasses import dataclass, field
from pathlib import Path
from typing import TYPE_CHECKING

import cv2
import numpy as np
from loguru import logger

from livedetect.pipeline.capture import OpenCVCapture
from livedetect.pipeline.errors import EncoderError, LiveInitError
from livedetect.pipeline.logging import (
    attach_log_buffer,
    configure_logging,
    create_log_buffer,
)
from livedetect.pipeline.recording import FileExporter, Recorder
from livedetect.pipeline.scheduler import CaptureScheduler, detect_image
from livedetect.pipeline.types import CaptureConfig, RecorderConfig, SchedulerConfig
from livedetect.yolo.cli import parse_args
from livedetect.yolo.engine import OnnxInferenceEngine, warm_up
from livedetect.yolo.ui.draw import FONT, Renderer, viewport_mask_shift


if TYPE_CHECKING:
    import argparse


WINDOW_NAME = "Live Detection"
SUPERVISE_INTERVAL_S = 0.03


@dataclass
class PreviewSink:
    """OpenCV preview window fed from the scheduler's surface."""

    enabled: bool = True
    attached: bool = True
    log_lines: deque[str] | None = None
    _opened: bool = field(default=False, repr=False)

    def detach(self) -> None:
        # May run on a worker thread; the window itself is closed on the loop.
        self.attached = False

    def show(self, surface: np.ndarray, skipped: int) -> bool:
        """Display the surface; return True when the user pressed ``q``."""
        if not self.enabled or not self.attached:
            return False
        frame = surface.copy()
        cv2.putText(
            frame,
            f"Frames skipped: {skipped}",
            (8, frame.shape[0] - 10),
            FONT,
            0.5,
            (255, 255, 255),
            1,
            cv2.LINE_AA,
        )
        if self.log_lines:
            cv2.putText(
                frame,
                self.log_lines[-1][:80],
                (8, 18),
                FONT,
                0.45,
                (200, 200, 200),
                1,
                cv2.LINE_AA,
            )
        cv2.imshow(WINDOW_NAME, frame)
        self._opened = True
        return cv2.waitKey(1) & 0xFF == ord("q")

    def close(self) -> None:
        if self._opened:
            cv2.destroyWindow(WINDOW_NAME)
            self._opened = False


@dataclass
class LiveContext:
    args: argparse.Namespace
    engine: OnnxInferenceEngine
    source: OpenCVCapture
    recorder: Recorder
    scheduler: CaptureScheduler
    preview: PreviewSink


def _scheduler_config(args: argparse.Namespace) -> SchedulerConfig:
    shift = (1.0, 1.0)
    if args.masked:
        shift = viewport_mask_shift(args.viewport_width or args.width)
        logger.info("Masked mode, source shift {}", shift)
    return SchedulerConfig(
        tick_rate=args.tick_rate,
        export_on_source_end=args.export_on_end,
        masked=args.masked,
        mask_shift=shift,
    )


def _build_renderer(config: SchedulerConfig, engine: OnnxInferenceEngine) -> Renderer:
    model_h, model_w = engine.input_size
    return Renderer((model_w, model_h), masked=config.masked, mask_shift=config.mask_shift)


def _build_context(args: argparse.Namespace) -> LiveContext:
    engine = OnnxInferenceEngine.from_path(args.model, gpu=args.gpu)

    capture_config = CaptureConfig(
        source=args.source,
        width=args.width,
        height=args.height,
        frame_rate=args.fps,
    )
    logger.info("Requested: {}x{} @ {} FPS", args.width, args.height, args.fps)
    source = OpenCVCapture(capture_config)
    if not source.open():
        message = f"Failed to open video source {args.source!r}"
        raise LiveInitError(message)

    info = source.get_info()
    logger.info("Capture: {}x{} @ {:.1f} FPS", info["width"], info["height"], info["fps"])

    preview = PreviewSink(enabled=not args.no_display)
    recorder = Recorder(
        RecorderConfig(
            width=args.width,
            height=args.height,
            frame_rate=args.fps,
            bitrate=args.bitrate,
            codec=args.codec,
            codec_options={"profile": "high"} if args.codec == "h264" else {},
            filename=args.filename,
        ),
        exporter=FileExporter(args.output_dir),
        on_detach=preview.detach,
    )
    scheduler_config = _scheduler_config(args)
    scheduler = CaptureScheduler(
        source,
        engine,
        _build_renderer(scheduler_config, engine),
        recorder,
        scheduler_config,
        surface_size=(args.width, args.height),
        debug_boxes=args.debug_boxes,
    )
    return LiveContext(
        args=args,
        engine=engine,
        source=source,
        recorder=recorder,
        scheduler=scheduler,
        preview=preview,
    )


async def _supervise(ctx: LiveContext) -> None:
    scheduler = ctx.scheduler
    loop = asyncio.get_running_loop()
    deadline = None
    if ctx.args.duration is not None:
        deadline = loop.time() + ctx.args.duration

    while scheduler.running:
        if ctx.preview.show(scheduler.surface, scheduler.skipped_frames):
            logger.info("Quit requested by user")
            await scheduler.stop(export=True)
            break
        if deadline is not None and loop.time() >= deadline:
            logger.info("Duration limit reached")
            await scheduler.stop(export=True)
            break
        await asyncio.sleep(SUPERVISE_INTERVAL_S)

    await scheduler.wait_idle()


async def _run_live(ctx: LiveContext) -> None:
    await warm_up(ctx.engine)
    try:
        await ctx.scheduler.start()
    except EncoderError as exc:
        message = f"Cannot start recording: {exc}"
        raise LiveInitError(message) from exc

    logger.info("-" * 60)
    logger.info("Detection running. Press 'q' or Ctrl-C to stop and export.")
    logger.info("-" * 60)
    try:
        await _supervise(ctx)
    except asyncio.CancelledError:
        logger.info("Interrupted by user")
        await ctx.scheduler.stop(export=True)


def _run_image(args: argparse.Namespace) -> int:
    image = cv2.imread(args.image)
    if image is None:
        message = f"Cannot read image {args.image}"
        raise LiveInitError(message)

    engine = OnnxInferenceEngine.from_path(args.model, gpu=args.gpu)
    renderer = _build_renderer(_scheduler_config(args), engine)
    surface = np.zeros_like(image)
    rendered, selection = asyncio.run(detect_image(image, engine, renderer, surface))

    output_dir = Path(args.output_dir)
    output_dir.mkdir(parents=True, exist_ok=True)
    output_path = output_dir / f"{Path(args.image).stem}_detected.png"
    cv2.imwrite(str(output_path), rendered)
    for detection in selection.detections:
        logger.info("Detection: {}", detection)
    logger.success("Annotated image written to {}", output_path)

    if not args.no_display:
        cv2.imshow(WINDOW_NAME, rendered)
        cv2.waitKey(0)
        cv2.destroyAllWindows()
    return 0


def run_live_detection(argv: list[str] | None = None) -> int:
    """Entry point for live detection and recording."""
    args = parse_args(argv)
    configure_logging(args.log_level, args.log_dir, json_logs=args.json_logs)
    log_buffer = create_log_buffer(max_lines=50)
    attach_log_buffer(log_buffer, level="INFO")

    logger.info("=" * 60)
    logger.info("Live Detection and Recording")
    logger.info("=" * 60)
    logger.info("Platform: {} {}", platform.system(), platform.release())
    logger.info("Python: {}", platform.python_version())
    logger.info("OpenCV: {}", cv2.__version__)

    try:
        if args.image:
            return _run_image(args)
        ctx = _build_context(args)
        ctx.preview.log_lines = log_buffer
    except LiveInitError as exc:
        logger.error("Initialization failed: {}", exc)
        return 1

    exit_code = 0
    try:
        asyncio.run(_run_live(ctx))
    except KeyboardInterrupt:
        logger.info("Interrupted by user")
    except LiveInitError as exc:
        logger.error("Initialization failed: {}", exc)
        exit_code = 1
    finally:
        logger.info("=" * 60)
        logger.info("Session Summary")
        metrics = ctx.scheduler.perf_tracker.get_metrics()
        logger.info("Processed ticks: {}", ctx.scheduler.perf_tracker.frame_count)
        logger.info("Frames skipped: {}", ctx.scheduler.skipped_frames)
        logger.info("Avg inference: {:.1f}ms", metrics.inference_ms)
        logger.info("Avg budget used: {:.1f}%", metrics.frame_budget_percent)
        logger.info("Throughput: {:.1f} FPS", metrics.actual_throughput_fps)

        ctx.source.close()
        ctx.preview.close()
        cv2.destroyAllWindows()
        logger.success("Cleanup complete. Goodbye!")

    return exit_code


def main() -> None:
    raise SystemExit(run_live_detection())


if __name__ == "__main__":
    main()
