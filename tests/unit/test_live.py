"""Unit tests for the host command line and entry point."""

from types import SimpleNamespace
from unittest.mock import patch

import pytest
from loguru import logger

from livedetect.pipeline.errors import LiveInitError
from livedetect.pipeline.logging import attach_log_buffer, configure_logging, create_log_buffer
from livedetect.yolo.cli import parse_args
from livedetect.yolo.live import _build_renderer, _scheduler_config, run_live_detection
from livedetect.yolo.ui.draw import viewport_mask_shift


@pytest.fixture(autouse=True)
def _reset_logger():
    yield
    logger.remove()


class TestParseArgs:
    """Tests for command line parsing."""

    def test_defaults(self):
        args = parse_args([])

        assert args.source == 0
        assert args.width == 640
        assert args.height == 480
        assert args.tick_rate == 15
        assert args.bitrate == 2_000_000
        assert args.filename == "HumanFaceDetection.mp4"
        assert not args.masked
        assert not args.export_on_end

    def test_file_source(self):
        assert parse_args(["--source", "clip.mp4"]).source == "clip.mp4"

    def test_camera_index(self):
        assert parse_args(["--source", "2"]).source == 2

    def test_env_defaults(self, monkeypatch):
        monkeypatch.setenv("LIVEDETECT_OUTPUT_DIR", "/tmp/out")

        assert parse_args([]).output_dir == "/tmp/out"


class TestSchedulerConfigFromArgs:
    """Tests for the rendering mode carried by the scheduler config."""

    def test_overlay_mode_by_default(self):
        config = _scheduler_config(parse_args([]))

        assert not config.masked
        assert config.mask_shift == (1.0, 1.0)
        assert config.tick_rate == 15

    def test_masked_mode_uses_viewport_shift(self):
        args = parse_args(["--masked", "--viewport-width", "320", "--export-on-end"])

        config = _scheduler_config(args)

        assert config.masked
        assert config.mask_shift == viewport_mask_shift(320)
        assert config.export_on_source_end

    def test_renderer_follows_config(self):
        args = parse_args(["--masked", "--viewport-width", "320"])
        config = _scheduler_config(args)
        engine = SimpleNamespace(input_size=(48, 64))

        renderer = _build_renderer(config, engine)

        assert renderer.masked
        assert renderer.mask_shift == config.mask_shift


class TestRunLiveDetection:
    """Tests for the entry point exit codes."""

    def test_model_load_failure_returns_one(self, tmp_path):
        with patch(
            "livedetect.yolo.live.OnnxInferenceEngine.from_path",
            side_effect=LiveInitError("Failed to load model"),
        ):
            code = run_live_detection(["--log-dir", str(tmp_path), "--no-display"])

        assert code == 1

    def test_unreadable_image_returns_one(self, tmp_path):
        code = run_live_detection(
            [
                "--image",
                str(tmp_path / "missing.png"),
                "--log-dir",
                str(tmp_path),
                "--no-display",
            ]
        )

        assert code == 1


class TestLogging:
    """Tests for loguru configuration helpers."""

    def test_file_sink_created(self, tmp_path):
        configure_logging("INFO", str(tmp_path))
        logger.info("hello file")

        logger.remove()
        files = list(tmp_path.glob("livedetect_*.log"))
        assert len(files) == 1
        assert "hello file" in files[0].read_text()

    def test_env_overrides_level(self, tmp_path, monkeypatch):
        monkeypatch.setenv("LIVEDETECT_LOG_LEVEL", "error")
        configure_logging("DEBUG", str(tmp_path))
        logger.info("quiet")
        logger.error("loud")

        logger.remove()
        text = next(tmp_path.glob("livedetect_*.log")).read_text()
        assert "quiet" not in text
        assert "loud" in text

    def test_log_buffer_keeps_recent_lines(self):
        buffer = create_log_buffer(max_lines=2)
        handler = attach_log_buffer(buffer, level="INFO")
        for text in ("one", "two", "three"):
            logger.info(text)
        logger.remove(handler)

        assert len(buffer) == 2
        assert buffer[-1].endswith("three")
