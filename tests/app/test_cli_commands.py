from __future__ import annotations

from pathlib import Path

import httpx
import yaml
from typer.testing import CliRunner

from wp_canva.app import AppState, app
from wp_canva.config import ConfigRepository
from wp_canva.orchestrator import Orchestrator


class StubService:
    def __init__(self) -> None:
        self.calls = 0

    def rewrite(self, titles):
        self.calls += 1
        return [f"Pin: {title}" for title in titles]


def make_state(mock_client, pages: dict[str, list], default_out: Path) -> AppState:
    repository = ConfigRepository()

    def handler(request: httpx.Request) -> httpx.Response:
        if request.url.path.startswith("/wp-json/"):
            return httpx.Response(200, json=pages.get(request.url.params.get("offset", "0"), []))
        return httpx.Response(200, headers={"content-type": "image/png"})

    client = mock_client(handler)
    service = StubService()

    def factory(**overrides) -> Orchestrator:
        return Orchestrator(
            repository.load(),
            client=client,
            title_service=service,
            outputs_dir=overrides.get("outputs_dir", default_out),
            progress_enabled=False,
        )

    return AppState(repository=repository, orchestrator_factory=factory)


def test_cli_validate_domain() -> None:
    runner = CliRunner()
    ok = runner.invoke(app, ["validate-domain", "sub.example.co.uk"])
    assert ok.exit_code == 0, ok.stdout
    assert "格式合法" in ok.stdout
    bad = runner.invoke(app, ["validate-domain", "-bad-.com"])
    assert bad.exit_code == 1
    assert "不是合法域名" in bad.stdout


def test_cli_run_pipeline(monkeypatch, mock_client, wp_record, tmp_path: Path) -> None:
    pages = {"0": [wp_record(1), wp_record(2, image=None)]}
    state = make_state(mock_client, pages, tmp_path / "default")
    monkeypatch.setattr("wp_canva.app.build_state", lambda verbose: state)

    out_dir = tmp_path / "exports"
    runner = CliRunner()
    result = runner.invoke(
        app,
        ["run", "--domain", "example.com", "--pages", "3", "--output-dir", str(out_dir)],
    )

    assert result.exit_code == 0, result.stdout
    output = result.stdout
    assert "运行结果" in output
    assert "1 images are Canva-compatible" in output
    assert "1 posts have no featured images" in output
    exported = list(out_dir.glob("canva_bulk_create_*.csv"))
    assert len(exported) == 1
    lines = exported[0].read_text(encoding="utf-8").splitlines()
    assert lines[0] == "Title,Image,URL"
    assert lines[1].startswith("Pin: Post 1,")
    assert lines[2] == "Post 2,,https://example.com/post-2/"


def test_cli_run_skip_stages_quiet(monkeypatch, mock_client, wp_record, tmp_path: Path) -> None:
    pages = {"0": [wp_record(1)]}
    state = make_state(mock_client, pages, tmp_path / "default")
    monkeypatch.setattr("wp_canva.app.build_state", lambda verbose: state)

    result = CliRunner().invoke(
        app,
        ["run", "--domain", "example.com", "--skip-images", "--no-rewrite", "--quiet"],
    )

    assert result.exit_code == 0, result.stdout
    assert "运行结果" not in result.stdout
    lines = next((tmp_path / "default").glob("*.csv")).read_text(encoding="utf-8").splitlines()
    assert lines[1].startswith("Post 1,")


def test_cli_run_invalid_domain(monkeypatch, mock_client, tmp_path: Path) -> None:
    state = make_state(mock_client, {}, tmp_path / "default")
    monkeypatch.setattr("wp_canva.app.build_state", lambda verbose: state)
    result = CliRunner().invoke(app, ["run", "--domain", "not a domain"])
    assert result.exit_code == 1
    assert "Please enter a valid domain" in result.stdout


def test_cli_columns_cycle(tmp_path: Path) -> None:
    runner = CliRunner()
    result = runner.invoke(app, ["columns", "add"])
    assert result.exit_code == 0, result.stdout
    assert "Column_4" in result.stdout

    result = runner.invoke(app, ["columns", "rename", "3", "Image_Status"])
    assert result.exit_code == 0, result.stdout
    result = runner.invoke(app, ["columns", "remove", "0"])
    assert result.exit_code == 0, result.stdout

    stored = yaml.safe_load((tmp_path / "data" / "config.yaml").read_text(encoding="utf-8"))
    assert stored["pipeline"]["columns"] == ["Image", "URL", "Image_Status"]

    listing = runner.invoke(app, ["columns", "list"])
    assert "Image_Status" in listing.stdout


def test_cli_columns_remove_last_column_fails(tmp_path: Path) -> None:
    runner = CliRunner()
    for _ in range(2):
        assert runner.invoke(app, ["columns", "remove", "0"]).exit_code == 0
    result = runner.invoke(app, ["columns", "remove", "0"])
    assert result.exit_code == 1
    assert "At least one column is required" in result.stdout


def test_cli_config_show_hides_api_key() -> None:
    result = CliRunner().invoke(app, ["config", "show"])
    assert result.exit_code == 0, result.stdout
    assert "batch_size: 20" in result.stdout
    assert "api_key:" not in result.stdout


def test_cli_log_show(isolated_home: Path) -> None:
    runner = CliRunner()
    log_dir = isolated_home / "logs"
    log_dir.mkdir(parents=True, exist_ok=True)
    (log_dir / "pipeline.log").write_text(
        "".join(f'{{"event": "line-{i}"}}\n' for i in range(5)), encoding="utf-8"
    )
    result = runner.invoke(app, ["log", "show", "--tail", "2"])
    assert result.exit_code == 0, result.stdout
    assert "line-4" in result.stdout
    assert "line-3" in result.stdout
    assert "line-2" not in result.stdout
