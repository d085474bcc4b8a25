"""WordPress REST page fetching with identifier deduplication."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any

import httpx
import structlog

from ..config import HttpConfig
from .dedup import SeenIdentifiers
from .errors import EmptyPageError, FormatError, NetworkError
from .items import Item
from .parser import PostParser
from .validator import clean_domain

EMPTY_PAGE_MESSAGE = (
    "No new posts found. Try increasing the offset or check if all posts have been processed."
)


def build_client(http_config: HttpConfig | None = None) -> httpx.Client:
    """Create the shared httpx client used by every stage."""

    http_config = http_config or HttpConfig()
    return httpx.Client(
        follow_redirects=True,
        timeout=http_config.timeout,
        headers={"User-Agent": http_config.user_agent},
    )


@dataclass(slots=True)
class FetchResult:
    """New items from one page plus an optional non-fatal report."""

    items: tuple[Item, ...] = ()
    error: EmptyPageError | None = None
    url: str = ""
    received: int = 0
    skipped: int = field(default=0)


class Fetcher:
    """Retrieve one page of posts from ``/wp-json/wp/v2/posts``."""

    def __init__(
        self,
        client: httpx.Client | None = None,
        parser: PostParser | None = None,
        logger: structlog.BoundLogger | None = None,
    ) -> None:
        self._owns_client = client is None
        self._client = client or build_client()
        self.parser = parser or PostParser()
        self.logger = logger or structlog.get_logger("wp_canva.fetcher")

    def close(self) -> None:
        if self._owns_client:
            self._client.close()

    @staticmethod
    def build_url(domain: str, page_size: int, offset: int) -> str:
        host = clean_domain(domain).rstrip("/")
        return (
            f"https://{host}/wp-json/wp/v2/posts"
            f"?per_page={page_size}&_embed&offset={offset}"
        )

    def fetch_page(
        self,
        domain: str,
        page_size: int,
        offset: int,
        seen_ids: SeenIdentifiers,
    ) -> FetchResult:
        """Fetch, normalise and deduplicate one page.

        Raises :class:`NetworkError` or :class:`FormatError`. An exhausted page is
        returned as ``FetchResult.error`` instead of being raised. Accepted ids are
        added to ``seen_ids`` only once the whole page has been parsed.
        """

        url = self.build_url(domain, page_size, offset)
        payload = self._get_json(url)
        if not isinstance(payload, list):
            raise FormatError("Invalid response format from WordPress API")

        host = clean_domain(domain).rstrip("/")
        accepted: list[Item] = []
        page_ids = SeenIdentifiers()
        skipped = 0
        for record in payload:
            item = self.parser.parse_record(record, host)
            if item is None:
                skipped += 1
                self.logger.warning("record_skipped", url=url, reason="missing_id")
                continue
            if item.id in seen_ids or page_ids.check_and_store(item.id):
                continue
            accepted.append(item)
        seen_ids.extend(page_ids)

        self.logger.info(
            "page_fetched",
            url=url,
            received=len(payload),
            accepted=len(accepted),
            skipped=skipped,
        )
        result = FetchResult(
            items=tuple(accepted), url=url, received=len(payload), skipped=skipped
        )
        if not accepted:
            result.error = EmptyPageError(EMPTY_PAGE_MESSAGE)
        return result

    def _get_json(self, url: str) -> Any:
        try:
            response = self._client.get(url)
        except httpx.HTTPError as exc:
            self.logger.warning("fetch_error", url=url, error=str(exc))
            raise NetworkError(str(exc) or exc.__class__.__name__) from exc
        if not response.is_success:
            raise NetworkError(f"HTTP {response.status_code}: {response.reason_phrase}")
        try:
            return response.json()
        except ValueError as exc:
            raise FormatError("Invalid response format from WordPress API") from exc


__all__ = ["EMPTY_PAGE_MESSAGE", "FetchResult", "Fetcher", "build_client"]
