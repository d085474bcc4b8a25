"""Item value object flowing through fetch → check → rewrite → export."""

from __future__ import annotations

from dataclasses import dataclass, replace
from enum import Enum
from typing import Iterable


class ImageStatus(str, Enum):
    """Labels written by the image checker."""

    PENDING = "pending"
    VALID = "valid"
    INVALID = "invalid"
    NO_IMAGE = "no_image"
    # content-type policy labels
    CANVA_OK = "canva_ok"
    CANVA_FAIL = "canva_fail"

    @property
    def usable(self) -> bool:
        return self in (ImageStatus.VALID, ImageStatus.CANVA_OK)


@dataclass(frozen=True, slots=True)
class Item:
    """One WordPress post. Updates return a new instance."""

    id: int | str
    title: str
    permalink: str
    image_url: str | None = None
    image_status: ImageStatus = ImageStatus.PENDING
    optimized_title: str | None = None

    @property
    def resolved_title(self) -> str:
        return self.optimized_title or self.title or ""

    def with_status(self, status: ImageStatus) -> "Item":
        return replace(self, image_status=status)

    def with_optimized_title(self, title: str) -> "Item":
        return replace(self, optimized_title=title)


def merge_titles(items: Iterable[Item], titles_by_id: dict[int | str, str]) -> tuple[Item, ...]:
    """Return a new snapshot with rewritten titles applied by item identity.

    Empty titles are ignored so a blank answer never clears a previous rewrite.
    """

    merged: list[Item] = []
    for item in items:
        title = titles_by_id.get(item.id)
        if title:
            item = item.with_optimized_title(title)
        merged.append(item)
    return tuple(merged)


__all__ = ["ImageStatus", "Item", "merge_titles"]
