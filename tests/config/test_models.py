from __future__ import annotations

from pathlib import Path

import pytest

from wp_canva.config import (
    AppConfig,
    EligibilityPolicy,
    ImagePolicy,
    PipelineConfig,
    RewriterConfig,
)


def test_pipeline_defaults() -> None:
    config = PipelineConfig()
    assert config.batch_size == 20
    assert config.offset == 0
    assert config.columns == ["Title", "Image", "URL"]
    assert config.image_policy is ImagePolicy.CONTENT_TYPE
    assert config.eligibility is EligibilityPolicy.HAS_IMAGE


@pytest.mark.parametrize("batch_size", [0, 101, -5])
def test_pipeline_batch_size_bounds(batch_size: int) -> None:
    with pytest.raises(ValueError):
        PipelineConfig(batch_size=batch_size)


def test_pipeline_offset_must_be_non_negative() -> None:
    with pytest.raises(ValueError):
        PipelineConfig(offset=-1)
    assert PipelineConfig(offset=40).offset == 40


def test_pipeline_columns_coercion() -> None:
    assert PipelineConfig(columns="Title, Image_URL").columns == ["Title", "Image_URL"]
    assert PipelineConfig(columns=None).columns == ["Title", "Image", "URL"]
    with pytest.raises(ValueError):
        PipelineConfig(columns=[])


def test_policies_accept_plain_strings() -> None:
    config = PipelineConfig(image_policy="existence", eligibility="valid_image")
    assert config.image_policy is ImagePolicy.EXISTENCE
    assert config.eligibility is EligibilityPolicy.VALID_IMAGE


def test_rewriter_defaults_and_validation() -> None:
    config = RewriterConfig()
    assert config.model == "claude-sonnet-4-20250514"
    assert config.max_tokens == 1000
    assert config.anthropic_version == "2023-06-01"
    assert "secret" not in repr(RewriterConfig(api_key="secret"))
    with pytest.raises(ValueError):
        RewriterConfig(max_tokens=0)


def test_app_config_requires_key_source() -> None:
    with pytest.raises(ValueError):
        AppConfig(rewriter=RewriterConfig(api_key_env="", api_key=None))


def test_resolved_outputs_dir(tmp_path: Path) -> None:
    config = AppConfig(outputs_dir="exports")
    assert config.resolved_outputs_dir(tmp_path) == (tmp_path / "exports").resolve()
    absolute = tmp_path / "abs"
    assert AppConfig(outputs_dir=absolute).resolved_outputs_dir(Path("/elsewhere")) == absolute
