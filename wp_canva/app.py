"""Typer CLI entrypoint for wp-canva."""

from __future__ import annotations

import json
from dataclasses import dataclass
from pathlib import Path
from typing import Callable, Iterable, Optional

import typer
import yaml
from rich import box
from rich.console import Console
from rich.table import Table

from .config import ConfigRepository, EligibilityPolicy, ImagePolicy
from .engine import Item, validate_domain
from .engine.exporter import ColumnLayout
from .logging_conf import configure_logging, default_log_dir, tail_log
from .orchestrator import Orchestrator, StageReport

app = typer.Typer(
    help="wp-canva 命令行工具：WordPress 文章 → Canva 批量创建 CSV",
    no_args_is_help=True,
    rich_markup_mode=None,
)
columns_app = typer.Typer(
    name="columns",
    help="CSV 列配置命令",
    no_args_is_help=True,
    rich_markup_mode=None,
)
config_app = typer.Typer(
    name="config",
    help="配置查看命令",
    no_args_is_help=True,
    rich_markup_mode=None,
)
log_app = typer.Typer(
    name="log",
    help="日志查看命令",
    no_args_is_help=True,
    rich_markup_mode=None,
)

console = Console()


@dataclass
class AppState:
    repository: ConfigRepository
    orchestrator_factory: Callable[..., Orchestrator]
    verbose: bool = False


def build_state(verbose: bool) -> AppState:
    repository = ConfigRepository()
    configure_logging(verbose=verbose)

    def _factory(**overrides) -> Orchestrator:
        overrides.setdefault("outputs_dir", repository.outputs_dir())
        return Orchestrator(repository.load(), **overrides)

    return AppState(repository=repository, orchestrator_factory=_factory, verbose=verbose)


def _get_state(ctx: typer.Context) -> AppState:
    state = ctx.obj
    if state is None:
        state = build_state(verbose=False)
        ctx.obj = state
    return state


# 进度条策略：默认在交互式终端显示，非TTY自动降级为静默
def _progress_default_enabled() -> bool:
    return console.is_terminal


_STAGE_LABELS = {
    "fetch": "获取文章",
    "check_images": "图片检测",
    "rewrite_titles": "标题优化",
    "export": "导出 CSV",
}


def _print_report(report: StageReport, quiet: bool = False) -> None:
    label = _STAGE_LABELS.get(report.stage, report.stage)
    style = "green" if report.ok else "red"
    if quiet:
        for message in report.messages:
            console.print(f"[{label}] {message}", style=style, markup=False)
        return
    console.print(f"{label}：{'完成' if report.ok else '失败'}", style=style)
    for message in report.messages:
        console.print(f"  - {message}", style="dim" if report.ok else "red", markup=False)


def _render_items_table(items: Iterable[Item], limit: int = 50) -> Table:
    rows = list(items)
    table = Table(title=f"文章列表 · 共 {len(rows)} 篇", box=box.SIMPLE_HEAD)
    table.add_column("ID", style="cyan", no_wrap=True)
    table.add_column("标题", overflow="fold")
    table.add_column("优化标题", style="green", overflow="fold")
    table.add_column("图片状态", style="magenta")
    for item in rows[:limit]:
        table.add_row(
            str(item.id),
            item.title,
            item.optimized_title or "-",
            item.image_status.value,
        )
    return table


def _render_columns_table(columns: list[str]) -> Table:
    table = Table(title="CSV 列", box=box.SIMPLE_HEAD)
    table.add_column("#", style="cyan", justify="right")
    table.add_column("列名", style="green")
    for index, column in enumerate(columns):
        table.add_row(str(index), column)
    return table


app.add_typer(columns_app, name="columns", help="管理导出 CSV 的列（list/add/remove/rename）")
app.add_typer(config_app, name="config", help="查看当前配置")
app.add_typer(log_app, name="log", help="查看日志文件")


@app.callback()
def main(
    ctx: typer.Context,
    verbose: bool = typer.Option(False, "--verbose", help="开启调试日志"),
) -> None:
    ctx.obj = build_state(verbose)


@app.command("validate-domain", help="检查域名格式是否合法（不发起网络请求）。")
def validate_domain_command(domain: str = typer.Argument(..., help="例如 example.com")) -> None:
    if validate_domain(domain):
        console.print(f"`{domain}` 格式合法。", style="green", markup=False)
        return
    console.print(f"`{domain}` 不是合法域名。", style="red", markup=False)
    raise typer.Exit(code=1)


@app.command("run", help="获取文章 → 检测图片 → 优化标题 → 导出 CSV。")
def run(
    ctx: typer.Context,
    domain: Optional[str] = typer.Option(None, "--domain", help="WordPress 站点域名。"),
    batch_size: Optional[int] = typer.Option(
        None, "--batch-size", min=1, max=100, help="每页文章数（1-100）。"
    ),
    offset: Optional[int] = typer.Option(None, "--offset", min=0, help="起始偏移量。"),
    pages: int = typer.Option(1, "--pages", min=1, help="最多获取的页数。"),
    check_images: bool = typer.Option(
        True, "--check-images/--skip-images", help="是否检测图片可访问性。"
    ),
    rewrite: bool = typer.Option(True, "--rewrite/--no-rewrite", help="是否调用 AI 优化标题。"),
    image_policy: Optional[ImagePolicy] = typer.Option(
        None, "--image-policy", help="图片检测策略。"
    ),
    eligibility: Optional[EligibilityPolicy] = typer.Option(
        None, "--eligibility", help="标题优化的入选规则。"
    ),
    output_dir: Optional[Path] = typer.Option(None, "--output-dir", help="CSV 输出目录。"),
    quiet: bool = typer.Option(False, "--quiet", help="只输出精简结果。"),
) -> None:
    state = _get_state(ctx)
    show_progress = state.repository.load().enable_progress_bar and not quiet
    overrides: dict = {"progress_enabled": show_progress and _progress_default_enabled()}
    if output_dir is not None:
        overrides["outputs_dir"] = output_dir
    orchestrator: Orchestrator = state.orchestrator_factory(**overrides)
    if domain is not None:
        orchestrator.domain = domain
    if batch_size is not None:
        orchestrator.batch_size = batch_size
    if offset is not None:
        orchestrator.offset = offset
    if image_policy is not None:
        orchestrator.image_policy = image_policy
    if eligibility is not None:
        orchestrator.eligibility = eligibility

    reports: list[StageReport] = []
    try:
        for _ in range(pages):
            report = orchestrator.fetch()
            reports.append(report)
            _print_report(report, quiet)
            if not report.ok or not report.counts.get("new"):
                break
            orchestrator.advance_offset()
        if not orchestrator.items:
            console.print("没有可处理的文章。", style="yellow")
            raise typer.Exit(code=1)
        if check_images:
            report = orchestrator.check_images()
            reports.append(report)
            _print_report(report, quiet)
        if rewrite:
            report = orchestrator.rewrite_titles()
            reports.append(report)
            _print_report(report, quiet)
        report = orchestrator.export()
        reports.append(report)
        _print_report(report, quiet)
    finally:
        orchestrator.close()

    if not quiet:
        console.print(_render_items_table(orchestrator.items))
        table = Table(title="运行结果", box=box.SIMPLE_HEAD)
        table.add_column("阶段", style="cyan")
        table.add_column("状态", style="green")
        table.add_column("统计", overflow="fold")
        for report in reports:
            table.add_row(
                _STAGE_LABELS.get(report.stage, report.stage),
                "成功" if report.ok else "失败",
                ", ".join(f"{key}={value}" for key, value in report.counts.items()),
            )
        console.print(table)
    if not reports[-1].ok:
        raise typer.Exit(code=1)


@columns_app.command("list", help="查看当前 CSV 列。")
def columns_list(ctx: typer.Context) -> None:
    state = _get_state(ctx)
    console.print(_render_columns_table(state.repository.load().pipeline.columns))


@columns_app.command("add", help="追加一列（默认名 Column_N）。")
def columns_add(
    ctx: typer.Context,
    name: Optional[str] = typer.Argument(None, help="列名，留空使用默认名。"),
) -> None:
    state = _get_state(ctx)
    _edit_columns(state, lambda layout: layout.add(name))


@columns_app.command("remove", help="按位置删除一列（至少保留一列）。")
def columns_remove(ctx: typer.Context, index: int = typer.Argument(..., help="列序号，从 0 开始。")) -> None:
    state = _get_state(ctx)
    _edit_columns(state, lambda layout: layout.remove(index))


@columns_app.command("rename", help="重命名指定位置的列。")
def columns_rename(
    ctx: typer.Context,
    index: int = typer.Argument(..., help="列序号，从 0 开始。"),
    name: str = typer.Argument(..., help="新列名。"),
) -> None:
    state = _get_state(ctx)
    _edit_columns(state, lambda layout: layout.rename(index, name))


def _edit_columns(state: AppState, action) -> None:
    config = state.repository.load()
    layout = ColumnLayout(config.pipeline.columns)
    try:
        action(layout)
    except (ValueError, IndexError) as exc:
        console.print(str(exc), style="red", markup=False)
        raise typer.Exit(code=1)
    config.pipeline.columns = layout.columns
    state.repository.save(config)
    console.print(_render_columns_table(layout.columns))


@config_app.command("show", help="以 YAML 形式输出当前配置。")
def config_show(ctx: typer.Context) -> None:
    state = _get_state(ctx)
    config = state.repository.load()
    payload = json.loads(config.model_dump_json(exclude={"rewriter": {"api_key"}}))
    console.print(yaml.safe_dump(payload, allow_unicode=True, sort_keys=False), markup=False)
    console.print(f"配置文件：{state.repository.locator.config_path()}", style="dim", markup=False)


@log_app.command("show", help="查看日志的最近内容。")
def log_show(
    tail: int = typer.Option(100, "--tail", help="显示最近 N 行内容。"),
    errors: bool = typer.Option(False, "--errors", help="查看错误日志。"),
) -> None:
    path = default_log_dir() / ("error.log" if errors else "pipeline.log")
    lines = tail_log(path, tail)
    if not lines:
        console.print("暂无日志信息，请稍后再试。", style="dim")
        return
    console.print(f"{'错误日志' if errors else '运行日志'} · 最近 {len(lines)} 行", style="cyan")
    console.print("".join(lines), markup=False)


def cli() -> None:
    app()


if __name__ == "__main__":  # pragma: no cover
    cli()
