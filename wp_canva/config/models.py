"""Pydantic models used across the wp-canva configuration flow."""

from __future__ import annotations

from enum import Enum
from pathlib import Path
from typing import Any

from pydantic import BaseModel, Field, field_validator, model_validator

DEFAULT_COLUMNS = ["Title", "Image", "URL"]


class ImagePolicy(str, Enum):
    """How the image checker decides an image is reachable."""

    EXISTENCE = "existence"
    CONTENT_TYPE = "content_type"


class EligibilityPolicy(str, Enum):
    """Which items are sent to the title rewriter."""

    HAS_IMAGE = "has_image"
    VALID_IMAGE = "valid_image"


class PipelineConfig(BaseModel):
    """Caller-supplied knobs for one pipeline session."""

    domain: str = ""
    batch_size: int = 20
    offset: int = 0
    columns: list[str] = Field(default_factory=lambda: list(DEFAULT_COLUMNS))
    image_policy: ImagePolicy = ImagePolicy.CONTENT_TYPE
    eligibility: EligibilityPolicy = EligibilityPolicy.HAS_IMAGE

    @field_validator("batch_size")
    @classmethod
    def _check_batch_size(cls, value: int) -> int:
        if not 1 <= value <= 100:
            raise ValueError("batch_size must be between 1 and 100")
        return value

    @field_validator("offset")
    @classmethod
    def _check_offset(cls, value: int) -> int:
        if value < 0:
            raise ValueError("offset must be >= 0")
        return value

    @field_validator("columns", mode="before")
    @classmethod
    def _coerce_columns(cls, value: Any) -> list[str]:
        if value in (None, ""):
            return list(DEFAULT_COLUMNS)
        if isinstance(value, str):
            value = [part.strip() for part in value.split(",")]
        if not isinstance(value, (list, tuple)):
            raise ValueError("columns expects a list of names")
        columns = [str(item) for item in value]
        if not columns:
            raise ValueError("columns must keep at least one entry")
        return columns


class RewriterConfig(BaseModel):
    """Anthropic Messages API settings for the title rewriter."""

    api_url: str = "https://api.anthropic.com/v1/messages"
    model: str = "claude-sonnet-4-20250514"
    max_tokens: int = 1000
    anthropic_version: str = "2023-06-01"
    api_key_env: str = "ANTHROPIC_API_KEY"
    api_key: str | None = Field(default=None, repr=False)
    timeout: float = 60.0

    @field_validator("max_tokens")
    @classmethod
    def _check_max_tokens(cls, value: int) -> int:
        if value <= 0:
            raise ValueError("max_tokens must be positive")
        return value


class HttpConfig(BaseModel):
    """Shared httpx client settings."""

    timeout: float = 15.0
    user_agent: str = "wp-canva/0.1"

    @field_validator("timeout")
    @classmethod
    def _check_timeout(cls, value: float) -> float:
        if value <= 0:
            raise ValueError("timeout must be positive")
        return value


class AppConfig(BaseModel):
    """Top-level configuration persisted in ``data/config.yaml``."""

    pipeline: PipelineConfig = Field(default_factory=PipelineConfig)
    rewriter: RewriterConfig = Field(default_factory=RewriterConfig)
    http: HttpConfig = Field(default_factory=HttpConfig)
    outputs_dir: Path = Field(default=Path("data/outputs"))
    enable_progress_bar: bool = True

    @field_validator("outputs_dir", mode="before")
    @classmethod
    def _coerce_dir(cls, value: Any) -> Path:
        return Path(value)

    @model_validator(mode="after")
    def _validate_rewriter_env(self) -> "AppConfig":
        if not self.rewriter.api_key_env and not self.rewriter.api_key:
            raise ValueError("rewriter needs api_key or api_key_env")
        return self

    def resolved_outputs_dir(self, base_dir: Path) -> Path:
        """Return the outputs directory relative to the project root."""

        if not self.outputs_dir.is_absolute():
            return (base_dir / self.outputs_dir).resolve()
        return self.outputs_dir


__all__ = [
    "AppConfig",
    "DEFAULT_COLUMNS",
    "EligibilityPolicy",
    "HttpConfig",
    "ImagePolicy",
    "PipelineConfig",
    "RewriterConfig",
]
