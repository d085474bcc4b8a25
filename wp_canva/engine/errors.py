"""Error taxonomy shared by every pipeline stage."""

from __future__ import annotations


class PipelineError(Exception):
    """Base class for failures a stage converts into a user-visible message."""

    stage: str = "pipeline"


class ValidationError(PipelineError):
    """Domain input rejected before any network call."""

    stage = "fetch"


class NetworkError(PipelineError):
    """Transport failure or unsuccessful HTTP status while fetching posts."""

    stage = "fetch"


class FormatError(PipelineError):
    """Content API returned something other than a JSON list."""

    stage = "fetch"


class EmptyPageError(PipelineError):
    """No new posts after deduplication; reported, never raised by the fetcher."""

    stage = "fetch"


class ProbeError(PipelineError):
    """Single image probe failure; absorbed into a failure label."""

    stage = "check_images"


class RewriteError(PipelineError):
    """One rewrite group failed; the batch continues with the next group."""

    stage = "rewrite_titles"


class SerializationError(PipelineError):
    """CSV encoding failed; the export is aborted."""

    stage = "export"


__all__ = [
    "EmptyPageError",
    "FormatError",
    "NetworkError",
    "PipelineError",
    "ProbeError",
    "RewriteError",
    "SerializationError",
    "ValidationError",
]
