"""Normalise raw WordPress REST records into :class:`Item` values."""

from __future__ import annotations

from typing import Any
from urllib.parse import urljoin, urlparse

from selectolax.parser import HTMLParser

from .items import ImageStatus, Item


class PostParser:
    """Extract the fields the pipeline consumes from ``/wp/v2/posts`` records."""

    def parse_record(self, record: Any, domain: str) -> Item | None:
        """Return an item, or ``None`` when the record has no usable id."""

        if not isinstance(record, dict):
            return None
        identifier = record.get("id")
        if identifier is None or isinstance(identifier, (dict, list)):
            return None
        title = record.get("title")
        rendered = title.get("rendered") if isinstance(title, dict) else title
        return Item(
            id=identifier,
            title=self.plain_text(rendered),
            permalink=str(record.get("link") or ""),
            image_url=self.resolve_image_url(record, domain),
            image_status=ImageStatus.PENDING,
        )

    @staticmethod
    def plain_text(rendered: Any) -> str:
        """Reduce ``title.rendered`` HTML (entities, inline tags) to text."""

        if not isinstance(rendered, str) or not rendered.strip():
            return ""
        body = HTMLParser(rendered).body
        if body is None:
            return rendered.strip()
        return body.text(separator="", strip=False).strip()

    def resolve_image_url(self, record: dict[str, Any], domain: str) -> str | None:
        """Walk the featured-media fallback chain and return an absolute URL.

        Order: ``source_url`` → ``guid.rendered`` → ``sizes.full.source_url`` →
        ``source_url``. The first absolute candidate wins; otherwise the first
        non-empty one that joins cleanly onto ``https://{domain}/``. Malformed
        candidates are skipped.
        """

        media = self._featured_media(record)
        if media is None:
            return None
        candidates = [
            media.get("source_url"),
            _dig(media, "guid", "rendered"),
            _dig(media, "media_details", "sizes", "full", "source_url"),
            media.get("source_url"),
        ]
        present = [c.strip() for c in candidates if isinstance(c, str) and c.strip()]
        if not present:
            return None
        for candidate in present:
            if self.is_absolute(candidate):
                return candidate
        for candidate in present:
            try:
                return urljoin(f"https://{domain}/", candidate)
            except ValueError:
                continue
        return None

    @staticmethod
    def is_absolute(url: str) -> bool:
        try:
            parsed = urlparse(url)
        except ValueError:
            return False
        return parsed.scheme in ("http", "https") and bool(parsed.netloc)

    @staticmethod
    def _featured_media(record: dict[str, Any]) -> dict[str, Any] | None:
        embedded = record.get("_embedded")
        if not isinstance(embedded, dict):
            return None
        media_list = embedded.get("wp:featuredmedia")
        if not isinstance(media_list, list) or not media_list:
            return None
        media = media_list[0]
        return media if isinstance(media, dict) else None


def _dig(data: Any, *keys: str) -> Any:
    for key in keys:
        if not isinstance(data, dict):
            return None
        data = data.get(key)
    return data


__all__ = ["PostParser"]
