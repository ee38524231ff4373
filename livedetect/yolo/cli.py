from __future__ import annotations

import argparse
import os


def _source(value: str) -> int | str:
    return int(value) if value.isdigit() else value


def parse_args(argv: list | None = None) -> argparse.Namespace:
    """Parse command line arguments."""
    parser = argparse.ArgumentParser(
        description="Real-time person detection with annotated MP4 recording",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  live-detect --model resources/models/yolov8n.onnx
  live-detect --source clip.mp4 --no-display --export-on-end
  live-detect --masked --viewport-width 640 --duration 30
		""",
    )

    parser.add_argument(
        "--source",
        type=_source,
        default=_source(os.getenv("LIVEDETECT_SOURCE", "0")),
        help="Camera index or video file path",
    )
    parser.add_argument(
        "--model",
        type=str,
        default=os.getenv("LIVEDETECT_MODEL", "resources/models/yolov8n.onnx"),
    )
    parser.add_argument("--width", type=int, default=640)
    parser.add_argument("--height", type=int, default=480)
    parser.add_argument("--fps", type=int, default=30, help="Capture and encode rate")
    parser.add_argument(
        "--tick-rate", type=int, default=15, help="Detection ticks per second"
    )
    parser.add_argument("--gpu", type=int, default=0)
    parser.add_argument(
        "--output-dir",
        type=str,
        default=os.getenv("LIVEDETECT_OUTPUT_DIR", "recordings"),
    )
    parser.add_argument("--filename", type=str, default="HumanFaceDetection.mp4")
    parser.add_argument("--codec", type=str, default="h264")
    parser.add_argument("--bitrate", type=int, default=2_000_000)
    parser.add_argument(
        "--masked",
        action="store_true",
        help="Reveal only the detected region instead of drawing boxes",
    )
    parser.add_argument(
        "--viewport-width",
        type=int,
        default=None,
        help="Viewport width used to pick the masked-mode shift",
    )
    parser.add_argument(
        "--duration",
        type=float,
        default=None,
        help="Stop and export after this many seconds",
    )
    parser.add_argument("--no-display", action="store_true")
    parser.add_argument(
        "--export-on-end",
        action="store_true",
        help="Export the recording when the source ends",
    )
    parser.add_argument(
        "--image",
        type=str,
        default=None,
        help="Run a single detection pass on an image and exit",
    )
    parser.add_argument(
        "--debug-boxes",
        action="store_true",
        help="Log decoded bbox coordinates for debugging",
    )
    parser.add_argument("--log-dir", type=str, default="logs")
    parser.add_argument(
        "--json-logs",
        action="store_true",
        help="Also write serialized JSONL logs to --log-dir",
    )
    parser.add_argument(
        "--log-level",
        type=str,
        default="INFO",
        choices=["TRACE", "DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"],
    )

    return parser.parse_args(argv)
