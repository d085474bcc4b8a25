"""User interaction helpers."""

from .progress import ProgressActivity, ProgressReporter, ProgressState

__all__ = ["ProgressActivity", "ProgressReporter", "ProgressState"]
