"""CSV projection and save sinks."""

from .base import BaseExporter
from .csv_exporter import (
    COLUMN_RULES,
    ColumnLayout,
    build_rows,
    export_filename,
    resolve_value,
    serialize,
)
from .file_exporter import FileExporter

__all__ = [
    "BaseExporter",
    "COLUMN_RULES",
    "ColumnLayout",
    "FileExporter",
    "build_rows",
    "export_filename",
    "resolve_value",
    "serialize",
]
