"""Local-directory sink for exported CSV files."""

from __future__ import annotations

import re
from pathlib import Path

from .base import BaseExporter


class FileExporter(BaseExporter):
    """Write payloads into ``output_dir``; an existing file is replaced."""

    def __init__(self, output_dir: Path) -> None:
        self.output_dir = Path(output_dir)

    def save(self, payload: bytes, filename: str) -> str:
        safe_name = re.sub(r"[^0-9A-Za-z_.-]+", "_", filename.strip()) or "export.csv"
        self.output_dir.mkdir(parents=True, exist_ok=True)
        path = self.output_dir / safe_name
        path.write_bytes(payload)
        return str(path)


__all__ = ["FileExporter"]
