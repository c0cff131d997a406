from __future__ import annotations

import asyncio
import mimetypes
from collections.abc import Iterable, Sequence
from pathlib import Path

from src.config.settings import AppSettings
from src.importing.application.retry import RetryPolicy
from src.importing.application.workflows.analyze_pages import AnalyzePagesConfig, AnalyzePagesWorkflow
from src.importing.application.workflows.import_files import ImportFilesWorkflow, ImportWorkflowConfig
from src.importing.application.workflows.ingest_file import IngestFileWorkflow
from src.importing.domain.models import ImportReport, UploadedFile
from src.importing.infrastructure.anthropic_client import AnthropicMessagesClient
from src.importing.infrastructure.diagnostic_sink import FileDiagnosticSink
from src.notes.infrastructure.fs_page_store import FilePageStore


def build_model_client(settings: AppSettings) -> AnthropicMessagesClient | None:
    if not settings.anthropic_api_key:
        return None
    return AnthropicMessagesClient(
        api_key=settings.anthropic_api_key,
        base_url=settings.anthropic_base_url,
    )


def build_retry_policy(settings: AppSettings) -> RetryPolicy:
    return RetryPolicy(
        max_retries=settings.import_max_retries,
        base_delay_seconds=settings.import_retry_base_delay_seconds,
    )


def build_import_workflow(
    settings: AppSettings,
    page_store: FilePageStore | None = None,
    show_progress: bool = False,
) -> ImportFilesWorkflow:
    return ImportFilesWorkflow(
        model_client=build_model_client(settings),
        page_store=page_store or FilePageStore(settings.notes_dir),
        sink=FileDiagnosticSink(settings.import_log_path),
        config=ImportWorkflowConfig(
            concurrency=settings.import_concurrency,
            model=settings.anthropic_model,
            max_tokens=settings.anthropic_max_tokens,
            retry_policy=build_retry_policy(settings),
            show_progress=show_progress,
        ),
    )


def build_analysis_workflow(settings: AppSettings, page_store: FilePageStore | None = None) -> AnalyzePagesWorkflow:
    return AnalyzePagesWorkflow(
        model_client=build_model_client(settings),
        page_store=page_store or FilePageStore(settings.notes_dir),
        config=AnalyzePagesConfig(
            model=settings.anthropic_model,
            max_tokens=settings.anthropic_max_tokens,
            retry_policy=build_retry_policy(settings),
        ),
    )


def build_ingest_workflow(settings: AppSettings, page_store: FilePageStore | None = None) -> IngestFileWorkflow:
    return IngestFileWorkflow(page_store=page_store or FilePageStore(settings.notes_dir))


def load_uploaded_files(paths: Iterable[str | Path]) -> list[UploadedFile]:
    files: list[UploadedFile] = []
    for raw_path in paths:
        path = Path(raw_path)
        content_type, _ = mimetypes.guess_type(path.name)
        files.append(UploadedFile(filename=path.name, data=path.read_bytes(), content_type=content_type))
    return files


async def run_import_async(
    files: Sequence[UploadedFile],
    *,
    instructions: str = "",
    settings: AppSettings | None = None,
    show_progress: bool = True,
) -> ImportReport:
    workflow = build_import_workflow(settings or AppSettings.from_env(), show_progress=show_progress)
    return await workflow.run(files, instructions)


def run_import(
    files: Sequence[UploadedFile],
    *,
    instructions: str = "",
    settings: AppSettings | None = None,
    show_progress: bool = True,
) -> ImportReport:
    return asyncio.run(
        run_import_async(
            files,
            instructions=instructions,
            settings=settings,
            show_progress=show_progress,
        )
    )
