"""In-memory seen-identifier set guarding against re-ingesting posts."""

from __future__ import annotations

from typing import Hashable, Iterable, Iterator


class SeenIdentifiers:
    """Accumulate post ids across paginated fetches until explicitly reset."""

    def __init__(self, initial: Iterable[Hashable] = ()) -> None:
        self._ids: set[Hashable] = set(initial)

    def __contains__(self, identifier: object) -> bool:
        return identifier in self._ids

    def __len__(self) -> int:
        return len(self._ids)

    def __iter__(self) -> Iterator[Hashable]:
        return iter(self._ids)

    def extend(self, identifiers: Iterable[Hashable]) -> None:
        self._ids.update(identifiers)

    def check_and_store(self, identifier: Hashable) -> bool:
        """Record ``identifier`` and return ``True`` when it was already seen."""

        if identifier in self._ids:
            return True
        self._ids.add(identifier)
        return False

    def reset(self) -> None:
        self._ids.clear()


__all__ = ["SeenIdentifiers"]
