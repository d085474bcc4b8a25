"""Featured-image reachability checks with selectable probe policies."""

from __future__ import annotations

import time
from abc import ABC, abstractmethod
from collections import Counter
from dataclasses import dataclass, field
from typing import Callable, Iterable

import httpx
import structlog

from ..config import ImagePolicy
from .errors import ProbeError
from .items import ImageStatus, Item

FALLBACK_LOAD_TIMEOUT = 5.0


class ProbePolicy(ABC):
    """Decide whether an image URL is reachable and which labels to write."""

    success_label: ImageStatus
    failure_label: ImageStatus

    def __init__(self, client: httpx.Client) -> None:
        self.client = client

    @abstractmethod
    def probe(self, url: str) -> bool:
        """Return reachability; raise :class:`ProbeError` on failure."""


class ExistencePolicy(ProbePolicy):
    """Lightweight ``HEAD`` probe with a timed ``GET`` load as fallback."""

    success_label = ImageStatus.VALID
    failure_label = ImageStatus.INVALID

    def probe(self, url: str) -> bool:
        try:
            self.client.head(url)
            return True
        except (httpx.HTTPError, httpx.InvalidURL):
            pass
        return self._load(url)

    def _load(self, url: str) -> bool:
        # FALLBACK_LOAD_TIMEOUT bounds the whole load, not each httpx phase
        deadline = time.monotonic() + FALLBACK_LOAD_TIMEOUT
        try:
            with self.client.stream("GET", url, timeout=FALLBACK_LOAD_TIMEOUT) as response:
                if not response.is_success:
                    return False
                for _ in response.iter_bytes():
                    if time.monotonic() > deadline:
                        raise ProbeError(f"{url}: load exceeded {FALLBACK_LOAD_TIMEOUT}s")
        except (httpx.HTTPError, httpx.InvalidURL) as exc:
            raise ProbeError(f"{url}: {exc.__class__.__name__}") from exc
        return time.monotonic() <= deadline


class ContentTypePolicy(ProbePolicy):
    """Full ``GET``; reachable only for a 2xx ``image/*`` response."""

    success_label = ImageStatus.CANVA_OK
    failure_label = ImageStatus.CANVA_FAIL

    def probe(self, url: str) -> bool:
        try:
            response = self.client.get(url)
        except (httpx.HTTPError, httpx.InvalidURL) as exc:
            raise ProbeError(f"{url}: {exc.__class__.__name__}") from exc
        if not response.is_success:
            return False
        content_type = response.headers.get("content-type", "")
        return content_type.strip().lower().startswith("image/")


POLICIES: dict[ImagePolicy, type[ProbePolicy]] = {
    ImagePolicy.EXISTENCE: ExistencePolicy,
    ImagePolicy.CONTENT_TYPE: ContentTypePolicy,
}


def build_policy(policy: ImagePolicy, client: httpx.Client) -> ProbePolicy:
    return POLICIES[ImagePolicy(policy)](client)


@dataclass(slots=True)
class CheckResult:
    """New snapshot plus per-label counts."""

    items: tuple[Item, ...]
    counts: Counter = field(default_factory=Counter)

    def messages(self, policy: ProbePolicy) -> list[str]:
        ok = self.counts.get(policy.success_label, 0)
        failed = self.counts.get(policy.failure_label, 0)
        missing = self.counts.get(ImageStatus.NO_IMAGE, 0)
        lines: list[str] = []
        if isinstance(policy, ContentTypePolicy):
            if ok:
                lines.append(f"{ok} images are Canva-compatible")
            if failed:
                lines.append(
                    f"{failed} images may not work with Canva (try different image sources)"
                )
        else:
            if ok:
                lines.append(f"{ok} images are reachable")
            if failed:
                lines.append(f"{failed} images could not be loaded")
        if missing:
            lines.append(f"{missing} posts have no featured images")
        return lines


class ImageChecker:
    """Re-check every item in collection order, one probe at a time."""

    def __init__(
        self,
        policy: ProbePolicy,
        logger: structlog.BoundLogger | None = None,
    ) -> None:
        self.policy = policy
        self.logger = logger or structlog.get_logger("wp_canva.image_checker")

    def check_one(self, item: Item) -> Item:
        if not item.image_url:
            return item.with_status(ImageStatus.NO_IMAGE)
        try:
            reachable = self.policy.probe(item.image_url)
        except ProbeError as exc:
            self.logger.info("probe_failed", item_id=item.id, error=str(exc))
            reachable = False
        except Exception as exc:  # noqa: BLE001
            self.logger.warning(
                "probe_crashed", item_id=item.id, url=item.image_url, error=str(exc)
            )
            reachable = False
        label = self.policy.success_label if reachable else self.policy.failure_label
        return item.with_status(label)

    def check_all(
        self,
        items: Iterable[Item],
        on_item: Callable[[Item], None] | None = None,
    ) -> CheckResult:
        checked: list[Item] = []
        counts: Counter = Counter()
        for item in items:
            updated = self.check_one(item)
            checked.append(updated)
            counts[updated.image_status] += 1
            if on_item is not None:
                on_item(updated)
        self.logger.info(
            "images_checked",
            total=len(checked),
            **{status.value: count for status, count in counts.items()},
        )
        return CheckResult(items=tuple(checked), counts=counts)


__all__ = [
    "CheckResult",
    "ContentTypePolicy",
    "ExistencePolicy",
    "FALLBACK_LOAD_TIMEOUT",
    "ImageChecker",
    "ProbePolicy",
    "build_policy",
]
