"""Hand finished recordings to the user."""

from __future__ import annotations

from pathlib import Path
from typing import Protocol

from loguru import logger


class Exporter(Protocol):
    """Receives a finalized container for download or storage."""

    def export(self, data: bytes, filename: str) -> object:
        ...


class FileExporter:
    """Write exported recordings into a directory."""

    def __init__(self, output_dir: str | Path = ".") -> None:
        self.output_dir = Path(output_dir)

    def export(self, data: bytes, filename: str) -> Path:
        self.output_dir.mkdir(parents=True, exist_ok=True)
        path = self.output_dir / filename
        path.write_bytes(data)
        logger.success("Recording exported: {} ({:.1f} KB)", path, len(data) / 1024)
        return path
