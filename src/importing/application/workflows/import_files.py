import traceback
from collections.abc import Awaitable, Callable, Sequence
from dataclasses import dataclass, field
from time import perf_counter

import aiohttp
from tqdm import tqdm

from src.config.logger_config import logger
from src.config.settings import DEFAULT_MODEL
from src.importing.application.ports import DiagnosticSinkPort, ModelClientPort, PageStorePort
from src.importing.application.retry import RetryPolicy
from src.importing.application.scheduler import run_with_concurrency
from src.importing.application.workflows.convert_unit import ConversionConfig, UnitConverter
from src.importing.domain.grouping import group_files
from src.importing.domain.models import (
    GroupingResult,
    ImportReport,
    ImportRequestError,
    ImportResult,
    ImportUnit,
    UploadedFile,
)
from src.importing.domain.rules import IMAGE_EXTENSIONS, get_extension
from src.importing.infrastructure.diagnostic_sink import GuardedDiagnosticSink


@dataclass(frozen=True)
class ImportWorkflowConfig:
    concurrency: int = 3
    model: str = DEFAULT_MODEL
    max_tokens: int = 8192
    retry_policy: RetryPolicy = field(default_factory=RetryPolicy)
    asset_url_prefix: str = "/api/notes/images"
    show_progress: bool = False

    def conversion_config(self) -> ConversionConfig:
        return ConversionConfig(
            model=self.model,
            max_tokens=self.max_tokens,
            retry_policy=self.retry_policy,
            asset_url_prefix=self.asset_url_prefix,
        )


class ImportFilesWorkflow:
    def __init__(
        self,
        model_client: ModelClientPort | None,
        page_store: PageStorePort,
        sink: DiagnosticSinkPort,
        config: ImportWorkflowConfig | None = None,
    ) -> None:
        self.model_client = model_client
        self.page_store = page_store
        self.sink = GuardedDiagnosticSink(sink)
        self.config = config or ImportWorkflowConfig()

    async def run(self, files: Sequence[UploadedFile], instructions: str = "") -> ImportReport:
        self.sink.record("=== Import request started ===")
        self.sink.record(f'Received {len(files)} files, explanation: "{instructions[:100]}"')
        for file in files:
            self.sink.record(f'  File: "{file.filename}" ({file.size / 1024:.1f}KB, type={file.content_type})')

        if not files:
            self.sink.record("ERROR: No files provided")
            raise ImportRequestError("No files provided")
        if self.model_client is None:
            self.sink.record("ERROR: ANTHROPIC_API_KEY not configured")
            raise ImportRequestError("ANTHROPIC_API_KEY not configured")

        grouping = self._group(files)
        units = grouping.units
        total = len(units)
        converter = UnitConverter(
            model_client=self.model_client,
            page_store=self.page_store,
            sink=self.sink,
            config=self.config.conversion_config(),
        )

        self.sink.record(f"Processing {total} groups with concurrency={self.config.concurrency}...")
        started = perf_counter()

        async with aiohttp.ClientSession() as session:
            with tqdm(
                total=total,
                desc="Import units",
                unit="unit",
                leave=True,
                disable=not self.config.show_progress,
            ) as progress:
                tasks = [
                    self._build_task(converter, session, unit, index, total, instructions, progress)
                    for index, unit in enumerate(units)
                ]
                results = await run_with_concurrency(tasks, self.config.concurrency)

        report = ImportReport(results=tuple(results), unmatched=grouping.unmatched)
        self.sink.record(
            f"=== Import complete in {perf_counter() - started:.1f}s: {report.success_count} success, "
            f"{report.failed_count} failed, {len(report.unmatched)} unmatched images ==="
        )
        logger.info(
            "Import batch completed: units={}, success={}, failed={}, unmatched={}",
            total,
            report.success_count,
            report.failed_count,
            len(report.unmatched),
        )
        return report

    def _group(self, files: Sequence[UploadedFile]) -> GroupingResult:
        grouping = group_files(files)
        document_count = len(grouping.units)
        asset_count = sum(1 for file in files if get_extension(file.filename) in IMAGE_EXTENSIONS)
        self.sink.record(f"Grouping: {document_count} HTML files, {asset_count} image files")
        for unit in grouping.units:
            names = ", ".join(asset.filename for asset in unit.assets)
            self.sink.record(f'Group "{unit.name}" → slug="{unit.slug}", {len(unit.assets)} image(s): [{names}]')
        if grouping.unmatched:
            self.sink.record(f"Unmatched images: [{', '.join(grouping.unmatched)}]")
        return grouping

    def _build_task(
        self,
        converter: UnitConverter,
        session: aiohttp.ClientSession,
        unit: ImportUnit,
        index: int,
        total: int,
        instructions: str,
        progress: tqdm,
    ) -> Callable[[], Awaitable[ImportResult]]:
        async def _task() -> ImportResult:
            try:
                return await converter.convert(session, unit, index, total, instructions)
            except Exception as exc:
                message = str(exc) or type(exc).__name__
                self.sink.record(f'[{index + 1}/{total}] FAILED "{unit.name}": {message}')
                self.sink.record(f"[{index + 1}/{total}] Stack: {traceback.format_exc().rstrip()}")
                logger.exception("Import unit failed: name={}, slug={}", unit.name, unit.slug)
                return ImportResult.failed(unit, message)
            finally:
                progress.update(1)

        return _task
