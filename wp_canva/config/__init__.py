"""Configuration package exports."""

from .loader import ConfigLocator, ConfigRepository
from .models import (
    DEFAULT_COLUMNS,
    AppConfig,
    EligibilityPolicy,
    HttpConfig,
    ImagePolicy,
    PipelineConfig,
    RewriterConfig,
)

__all__ = [
    "AppConfig",
    "ConfigLocator",
    "ConfigRepository",
    "DEFAULT_COLUMNS",
    "EligibilityPolicy",
    "HttpConfig",
    "ImagePolicy",
    "PipelineConfig",
    "RewriterConfig",
]
