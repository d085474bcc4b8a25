"""Shared fixtures: isolated home directory, config builders and mock HTTP."""

from __future__ import annotations

from pathlib import Path
from typing import Any, Callable

import httpx
import pytest

from wp_canva.config import (
    AppConfig,
    ConfigLocator,
    ConfigRepository,
    HttpConfig,
    PipelineConfig,
    RewriterConfig,
)


@pytest.fixture(autouse=True)
def isolated_home(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> Path:
    monkeypatch.setenv("WP_CANVA_HOME", str(tmp_path))
    monkeypatch.delenv("ANTHROPIC_API_KEY", raising=False)
    return tmp_path


@pytest.fixture
def sample_app_config(tmp_path: Path) -> Callable[..., AppConfig]:
    def _builder(**pipeline_overrides: Any) -> AppConfig:
        pipeline: dict[str, Any] = {"domain": "example.com", "batch_size": 20, "offset": 0}
        pipeline.update(pipeline_overrides)
        return AppConfig(
            pipeline=PipelineConfig(**pipeline),
            rewriter=RewriterConfig(api_key="test-key"),
            http=HttpConfig(timeout=5.0),
            outputs_dir=tmp_path / "outputs",
            enable_progress_bar=False,
        )

    return _builder


@pytest.fixture
def mock_client() -> Callable[[Callable[[httpx.Request], httpx.Response]], httpx.Client]:
    clients: list[httpx.Client] = []

    def _builder(handler: Callable[[httpx.Request], httpx.Response]) -> httpx.Client:
        client = httpx.Client(transport=httpx.MockTransport(handler))
        clients.append(client)
        return client

    yield _builder
    for client in clients:
        client.close()


@pytest.fixture
def wp_record() -> Callable[..., dict[str, Any]]:
    """Build a ``/wp/v2/posts?_embed`` record."""

    def _builder(
        post_id: int,
        title: str | None = None,
        image: str | None = "auto",
        **media: Any,
    ) -> dict[str, Any]:
        record: dict[str, Any] = {
            "id": post_id,
            "title": {"rendered": title if title is not None else f"Post {post_id}"},
            "link": f"https://example.com/post-{post_id}/",
        }
        if image == "auto":
            image = f"https://example.com/wp-content/uploads/{post_id}.jpg"
        if image is not None or media:
            entry: dict[str, Any] = dict(media)
            if image is not None:
                entry["source_url"] = image
            record["_embedded"] = {"wp:featuredmedia": [entry]}
        return record

    return _builder


@pytest.fixture
def temp_config_repository(tmp_path: Path) -> ConfigRepository:
    locator = ConfigLocator(project_root=tmp_path)
    return ConfigRepository(locator)
