"""Pipeline orchestrator owning the shared item collection and seen-id set."""

from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path
from typing import Callable

import httpx

from .config import AppConfig, EligibilityPolicy, ImagePolicy
from .engine import (
    AnthropicTitleService,
    Fetcher,
    ImageChecker,
    Item,
    SeenIdentifiers,
    TitleRewriter,
    build_client,
    build_policy,
    merge_titles,
    validate_domain,
)
from .engine.errors import PipelineError, ValidationError
from .engine.exporter import (
    BaseExporter,
    ColumnLayout,
    FileExporter,
    build_rows,
    export_filename,
    serialize,
)
from .engine.rewriter import TitleService, partition
from .logging_conf import stage_logger
from .ui import ProgressActivity, ProgressReporter


@dataclass(slots=True)
class StageReport:
    """User-visible outcome of one stage call."""

    stage: str
    ok: bool = True
    messages: list[str] = field(default_factory=list)
    counts: dict[str, int] = field(default_factory=dict)
    output_path: str | None = None


class Orchestrator:
    """Single owner of pipeline state.

    ``fetch``, ``check_images``, ``rewrite_titles`` and ``clear`` are the only
    operations that replace the item snapshot. Every stage catches its own
    failures and returns a :class:`StageReport`; nothing propagates past it.
    """

    def __init__(
        self,
        config: AppConfig,
        *,
        client: httpx.Client | None = None,
        title_service: TitleService | None = None,
        exporter: BaseExporter | None = None,
        outputs_dir: Path | None = None,
        progress_enabled: bool = False,
    ) -> None:
        self.config = config
        pipeline = config.pipeline
        self.domain: str = pipeline.domain
        self.batch_size: int = pipeline.batch_size
        self.offset: int = pipeline.offset
        self.image_policy = ImagePolicy(pipeline.image_policy)
        self.eligibility = EligibilityPolicy(pipeline.eligibility)
        self.layout = ColumnLayout(pipeline.columns)
        self.messages: list[str] = []

        self._items: tuple[Item, ...] = ()
        self._seen = SeenIdentifiers()

        self._owns_client = client is None
        self._client = client or build_client(config.http)
        self._owns_service = title_service is None
        self.title_service: TitleService = title_service or AnthropicTitleService(config.rewriter)
        self.exporter = exporter or FileExporter(outputs_dir or config.outputs_dir)
        self.fetcher = Fetcher(client=self._client, logger=stage_logger("fetch"))
        self.progress_enabled = progress_enabled
        self.logger = stage_logger("orchestrator")

    # ------------------------------------------------------------------
    # Read-only views
    # ------------------------------------------------------------------
    @property
    def items(self) -> tuple[Item, ...]:
        return self._items

    @property
    def seen_ids(self) -> frozenset:
        return frozenset(self._seen)

    @property
    def columns(self) -> list[str]:
        return self.layout.columns

    # ------------------------------------------------------------------
    # Stages
    # ------------------------------------------------------------------
    def fetch(
        self,
        domain: str | None = None,
        batch_size: int | None = None,
        offset: int | None = None,
    ) -> StageReport:
        """Fetch one page and append the new items to the collection."""

        domain = self.domain if domain is None else domain
        batch_size = self.batch_size if batch_size is None else batch_size
        offset = self.offset if offset is None else offset
        report = StageReport(stage="fetch")

        def _run() -> None:
            if not validate_domain(domain):
                raise ValidationError("Please enter a valid domain")
            if not 1 <= batch_size <= 100:
                raise ValidationError("Batch size must be between 1 and 100")
            if offset < 0:
                raise ValidationError("Offset must be 0 or greater")
            self.domain = domain
            activity = ProgressActivity(enabled=self.progress_enabled)
            activity.start(f"Fetching posts from {domain} (offset {offset})…")
            try:
                result = self.fetcher.fetch_page(domain, batch_size, offset, self._seen)
            finally:
                activity.close()
            report.counts.update(received=result.received, skipped=result.skipped)
            if result.error is not None:
                report.messages.append(str(result.error))
                report.counts["new"] = 0
                return
            self._items = self._items + result.items
            report.counts["new"] = len(result.items)

        self._guard(report, _run, prefix="Failed to fetch posts: ")
        report.counts["total"] = len(self._items)
        return self._finish(report)

    def advance_offset(self) -> int:
        """Move the pagination offset forward by one batch."""

        self.offset += self.batch_size
        return self.offset

    def check_images(self) -> StageReport:
        """Re-check every item's image and install the new snapshot."""

        report = StageReport(stage="check_images")
        if not self._items:
            report.ok = False
            report.messages.append("No posts to check. Fetch posts first.")
            return self._finish(report)

        def _run() -> None:
            policy = build_policy(self.image_policy, self._client)
            checker = ImageChecker(policy, logger=stage_logger("check_images"))
            snapshot = self._items
            progress = self._progress("check_images")
            progress.start(len(snapshot))

            def _advance(item: Item) -> None:
                label = item.image_status
                progress.advance(
                    success=label is policy.success_label,
                    failed=label is policy.failure_label,
                    skipped=label not in (policy.success_label, policy.failure_label),
                    current=item.image_url or str(item.id),
                )

            try:
                result = checker.check_all(snapshot, on_item=_advance)
            finally:
                progress.close()
            self._items = result.items
            report.counts.update({status.value: count for status, count in result.counts.items()})
            report.messages.extend(result.messages(policy))

        self._guard(report, _run)
        return self._finish(report)

    def rewrite_titles(self) -> StageReport:
        """Rewrite eligible titles group by group, merging each group by id."""

        report = StageReport(stage="rewrite_titles")

        def _run() -> None:
            rewriter = TitleRewriter(
                self.title_service,
                eligibility=self.eligibility,
                logger=stage_logger("rewrite_titles"),
            )
            eligible = rewriter.eligible(self._items)
            report.counts.update(eligible=len(eligible), groups=0, failed_groups=0, rewritten=0)
            if not eligible:
                report.ok = False
                if self.eligibility is EligibilityPolicy.VALID_IMAGE:
                    report.messages.append(
                        "No posts with validated images to optimize. Run the image check first."
                    )
                else:
                    report.messages.append(
                        "No posts with images to optimize. "
                        "Please fetch posts with featured images first."
                    )
                return
            progress = self._progress("rewrite_titles")
            progress.start(len(partition(eligible)))
            try:
                for outcome in rewriter.iter_groups(self._items):
                    report.counts["groups"] += 1
                    if outcome.ok:
                        # merge into whatever snapshot is current now
                        self._items = merge_titles(self._items, outcome.titles)
                        report.counts["rewritten"] += len(outcome.titles)
                        progress.advance(success=True, current=f"group {outcome.index}")
                    else:
                        report.counts["failed_groups"] += 1
                        report.messages.append(
                            f"Failed to optimize batch {outcome.index}: {outcome.error}"
                        )
                        progress.advance(failed=True, current=f"group {outcome.index}")
            finally:
                progress.close()
            report.messages.append(
                f"Optimized {report.counts['rewritten']} of {len(eligible)} titles"
            )

        self._guard(report, _run)
        return self._finish(report)

    def build_export(self) -> bytes:
        """Serialise the current snapshot with the configured columns."""

        columns = self.layout.columns
        return serialize(build_rows(self._items, columns), columns)

    def export(self, filename: str | None = None) -> StageReport:
        """Serialise the collection and hand the bytes to the save collaborator."""

        report = StageReport(stage="export")
        if not self._items:
            report.ok = False
            report.messages.append("No posts to export. Fetch posts first.")
            return self._finish(report)

        def _run() -> None:
            payload = self.build_export()
            target = filename or export_filename()
            report.output_path = self.exporter.save(payload, target)
            report.counts["rows"] = len(self._items)
            report.messages.append(f"Exported {len(self._items)} rows to {report.output_path}")

        self._guard(report, _run, prefix="Failed to generate CSV: ")
        return self._finish(report)

    def clear(self) -> None:
        """Drop all items and seen ids and reset pagination."""

        self._items = ()
        self._seen.reset()
        self.offset = 0
        self.messages = []
        self.logger.info("pipeline_cleared")

    # ------------------------------------------------------------------
    # Column layout
    # ------------------------------------------------------------------
    def add_column(self, name: str | None = None) -> str:
        return self.layout.add(name)

    def remove_column(self, index: int) -> str:
        return self.layout.remove(index)

    def rename_column(self, index: int, name: str) -> None:
        self.layout.rename(index, name)

    # ------------------------------------------------------------------
    def close(self) -> None:
        if self._owns_client:
            self._client.close()
        if self._owns_service and isinstance(self.title_service, AnthropicTitleService):
            self.title_service.close()
        self.exporter.close()

    def _progress(self, label: str) -> ProgressReporter:
        progress = ProgressReporter(enabled=self.progress_enabled)
        progress.set_label(label)
        return progress

    def _guard(self, report: StageReport, func: Callable[[], None], prefix: str = "") -> None:
        try:
            func()
        except ValidationError as exc:
            report.ok = False
            report.messages.append(str(exc))
        except PipelineError as exc:
            report.ok = False
            message = str(exc)
            if prefix and not message.startswith(prefix):
                message = prefix + message
            report.messages.append(message)
            self.logger.warning("stage_failed", stage=report.stage, error=str(exc))
        except Exception as exc:  # noqa: BLE001
            report.ok = False
            report.messages.append(f"{prefix}{exc}" if prefix else f"Unexpected error: {exc}")
            self.logger.error("stage_crashed", stage=report.stage, error=str(exc), exc_info=True)

    def _finish(self, report: StageReport) -> StageReport:
        self.messages = list(report.messages)
        self.logger.info(
            "stage_finished",
            stage=report.stage,
            ok=report.ok,
            items=len(self._items),
            **report.counts,
        )
        return report


__all__ = ["Orchestrator", "StageReport"]
