"""Pinterest title rewriting through the Anthropic Messages API."""

from __future__ import annotations

import json
import os
from dataclasses import dataclass, field
from typing import Iterable, Iterator, Protocol, Sequence

import httpx
import structlog

from ..config import EligibilityPolicy, RewriterConfig
from .errors import RewriteError
from .items import Item, merge_titles

GROUP_SIZE = 5

PROMPT_TEMPLATE = """Rewrite these blog post titles for Pinterest to maximize engagement and clicks. Pinterest users respond to emotional hooks, benefit-driven language, curiosity gaps, and actionable promises.

Transform each title to be more Pinterest-friendly while staying truthful to the content:

Original titles:
{numbered}

Respond with ONLY a JSON array in this exact format:
[
  "optimized title 1",
  "optimized title 2"
]

DO NOT OUTPUT ANYTHING OTHER THAN VALID JSON."""


class TitleService(Protocol):
    def rewrite(self, titles: Sequence[str]) -> list[str]:
        """Return exactly ``len(titles)`` rewritten titles in order."""


def build_prompt(titles: Sequence[str]) -> str:
    numbered = "\n".join(f"{index}. {title}" for index, title in enumerate(titles, start=1))
    return PROMPT_TEMPLATE.format(numbered=numbered)


def extract_json_array(text: str) -> list:
    """Parse the first balanced ``[...]`` span of ``text`` as JSON."""

    start = text.find("[")
    if start == -1:
        raise RewriteError("Invalid response format from AI")
    depth = 0
    in_string = False
    escaped = False
    end = None
    for idx in range(start, len(text)):
        ch = text[idx]
        if in_string:
            if escaped:
                escaped = False
            elif ch == "\\":
                escaped = True
            elif ch == '"':
                in_string = False
            continue
        if ch == '"':
            in_string = True
        elif ch == "[":
            depth += 1
        elif ch == "]":
            depth -= 1
            if depth == 0:
                end = idx + 1
                break
    if end is None:
        raise RewriteError("Unbalanced JSON array in AI response")
    try:
        payload = json.loads(text[start:end])
    except ValueError as exc:
        raise RewriteError(f"AI response is not valid JSON: {exc}") from exc
    if not isinstance(payload, list):
        raise RewriteError("AI response is not a JSON array")
    return payload


class AnthropicTitleService:
    """Send one group of titles per request to ``/v1/messages``."""

    def __init__(self, config: RewriterConfig, client: httpx.Client | None = None) -> None:
        self.config = config
        self._owns_client = client is None
        self._client = client or httpx.Client(timeout=config.timeout)

    def close(self) -> None:
        if self._owns_client:
            self._client.close()

    @property
    def api_key(self) -> str | None:
        return self.config.api_key or os.environ.get(self.config.api_key_env) or None

    def rewrite(self, titles: Sequence[str]) -> list[str]:
        api_key = self.api_key
        if not api_key:
            raise RewriteError(f"Missing API key (set {self.config.api_key_env})")
        body = {
            "model": self.config.model,
            "max_tokens": self.config.max_tokens,
            "messages": [{"role": "user", "content": build_prompt(titles)}],
        }
        headers = {
            "content-type": "application/json",
            "x-api-key": api_key,
            "anthropic-version": self.config.anthropic_version,
        }
        try:
            response = self._client.post(self.config.api_url, json=body, headers=headers)
        except httpx.HTTPError as exc:
            raise RewriteError(f"API call failed: {exc}") from exc
        if not response.is_success:
            raise RewriteError(f"API call failed: {response.status_code}")
        try:
            text = response.json()["content"][0]["text"]
        except (ValueError, KeyError, IndexError, TypeError) as exc:
            raise RewriteError("Unexpected Messages API payload") from exc
        if not isinstance(text, str):
            raise RewriteError("Unexpected Messages API payload")
        rewritten = extract_json_array(text)
        if len(rewritten) != len(titles):
            raise RewriteError(
                f"Expected {len(titles)} titles, received {len(rewritten)}"
            )
        if not all(isinstance(title, str) for title in rewritten):
            raise RewriteError("AI response must be a list of strings")
        return [title.strip() for title in rewritten]


def is_eligible(item: Item, policy: EligibilityPolicy) -> bool:
    if EligibilityPolicy(policy) is EligibilityPolicy.VALID_IMAGE:
        return item.image_status.usable
    return bool(item.image_url)


def partition(items: Sequence[Item], size: int = GROUP_SIZE) -> list[tuple[Item, ...]]:
    return [tuple(items[i : i + size]) for i in range(0, len(items), size)]


@dataclass(slots=True)
class GroupOutcome:
    """Result of one service request."""

    index: int
    item_ids: tuple[int | str, ...]
    titles: dict[int | str, str] = field(default_factory=dict)
    error: RewriteError | None = None

    @property
    def ok(self) -> bool:
        return self.error is None


@dataclass(slots=True)
class RewriteResult:
    items: tuple[Item, ...]
    eligible: int = 0
    groups: list[GroupOutcome] = field(default_factory=list)

    @property
    def failed_groups(self) -> list[GroupOutcome]:
        return [group for group in self.groups if not group.ok]

    @property
    def rewritten(self) -> int:
        return sum(len(group.titles) for group in self.groups if group.ok)


class TitleRewriter:
    """Rewrite eligible titles group by group; failed groups are skipped."""

    def __init__(
        self,
        service: TitleService,
        eligibility: EligibilityPolicy = EligibilityPolicy.HAS_IMAGE,
        logger: structlog.BoundLogger | None = None,
    ) -> None:
        self.service = service
        self.eligibility = EligibilityPolicy(eligibility)
        self.logger = logger or structlog.get_logger("wp_canva.rewriter")

    def eligible(self, items: Iterable[Item]) -> list[Item]:
        return [item for item in items if is_eligible(item, self.eligibility)]

    def iter_groups(self, items: Iterable[Item]) -> Iterator[GroupOutcome]:
        """Yield one outcome per group, strictly in order, one request at a time."""

        for index, group in enumerate(partition(self.eligible(items)), start=1):
            ids = tuple(item.id for item in group)
            try:
                titles = self.service.rewrite([item.title for item in group])
                if len(titles) != len(ids):
                    raise RewriteError(f"Expected {len(ids)} titles, received {len(titles)}")
            except Exception as exc:  # noqa: BLE001
                error = exc if isinstance(exc, RewriteError) else RewriteError(str(exc))
                self.logger.error("rewrite_group_failed", group=index, error=str(error))
                yield GroupOutcome(index=index, item_ids=ids, error=error)
                continue
            mapping = {item_id: title for item_id, title in zip(ids, titles) if title}
            self.logger.info("rewrite_group_done", group=index, rewritten=len(mapping))
            yield GroupOutcome(index=index, item_ids=ids, titles=mapping)

    def optimize_eligible(self, items: Sequence[Item]) -> RewriteResult:
        snapshot = tuple(items)
        result = RewriteResult(items=snapshot, eligible=len(self.eligible(snapshot)))
        for outcome in self.iter_groups(snapshot):
            result.groups.append(outcome)
            if outcome.ok:
                result.items = merge_titles(result.items, outcome.titles)
        return result


__all__ = [
    "AnthropicTitleService",
    "GROUP_SIZE",
    "GroupOutcome",
    "RewriteResult",
    "TitleRewriter",
    "TitleService",
    "build_prompt",
    "extract_json_array",
    "is_eligible",
    "partition",
]
