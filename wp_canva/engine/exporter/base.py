"""Save collaborator contract for serialized exports."""

from __future__ import annotations

from abc import ABC, abstractmethod


class BaseExporter(ABC):
    """Uniform sink contract so the CSV payload can land anywhere."""

    @abstractmethod
    def save(self, payload: bytes, filename: str) -> str:
        """Persist ``payload`` and return where it ended up."""

    def close(self) -> None:
        """Release underlying resources."""


__all__ = ["BaseExporter"]
