"""Column-driven row projection and CSV serialisation for Canva bulk create."""

from __future__ import annotations

import csv
import io
from datetime import date
from typing import Callable, Iterable, Sequence

from ...config import DEFAULT_COLUMNS
from ..errors import SerializationError
from ..items import Item

COLUMN_RULES: dict[str, Callable[[Item], str]] = {
    "Title": lambda item: item.resolved_title,
    "Original_Title": lambda item: item.title or "",
    "Optimized_Title": lambda item: item.optimized_title or "",
    "Image": lambda item: item.image_url or "",
    "Image_URL": lambda item: item.image_url or "",
    "URL": lambda item: item.permalink or "",
    "Permalink": lambda item: item.permalink or "",
    "Image_Status": lambda item: item.image_status.value,
}


def resolve_value(item: Item, column: str) -> str:
    rule = COLUMN_RULES.get(column)
    return rule(item) if rule else ""


def build_rows(items: Iterable[Item], columns: Sequence[str]) -> list[dict[str, str]]:
    """Project items to ``{column: value}`` rows in collection order."""

    return [{column: resolve_value(item, column) for column in columns} for item in items]


def serialize(rows: Iterable[dict[str, str]], columns: Sequence[str]) -> bytes:
    """Encode a header row plus data rows as UTF-8 CSV."""

    buffer = io.StringIO()
    try:
        writer = csv.writer(buffer, quoting=csv.QUOTE_MINIMAL)
        writer.writerow(list(columns))
        for row in rows:
            writer.writerow([row.get(column, "") for column in columns])
        return buffer.getvalue().encode("utf-8")
    except (csv.Error, UnicodeError, TypeError) as exc:
        raise SerializationError(f"Failed to generate CSV: {exc}") from exc


def export_filename(day: date | None = None) -> str:
    day = day or date.today()
    return f"canva_bulk_create_{day.isoformat()}.csv"


class ColumnLayout:
    """Ordered, caller-mutable list of CSV column names."""

    def __init__(self, columns: Iterable[str] | None = None) -> None:
        self._columns = list(columns) if columns is not None else list(DEFAULT_COLUMNS)
        if not self._columns:
            raise ValueError("At least one column is required")

    @property
    def columns(self) -> list[str]:
        return list(self._columns)

    def __len__(self) -> int:
        return len(self._columns)

    def add(self, name: str | None = None) -> str:
        column = name or f"Column_{len(self._columns) + 1}"
        self._columns.append(column)
        return column

    def remove(self, index: int) -> str:
        if len(self._columns) <= 1:
            raise ValueError("At least one column is required")
        self._check_index(index)
        return self._columns.pop(index)

    def rename(self, index: int, name: str) -> None:
        self._check_index(index)
        self._columns[index] = name

    def _check_index(self, index: int) -> None:
        if not 0 <= index < len(self._columns):
            raise IndexError(f"Column index out of range: {index}")


__all__ = [
    "COLUMN_RULES",
    "ColumnLayout",
    "build_rows",
    "export_filename",
    "resolve_value",
    "serialize",
]
