from dataclasses import dataclass

from src.config.logger_config import logger
from src.importing.application.ports import PageStorePort
from src.importing.domain.csv_table import csv_to_markdown_table, parse_csv
from src.importing.domain.models import IngestRequestError, IngestResult, UploadedFile
from src.importing.domain.rules import (
    INGEST_EXTENSIONS,
    INGEST_IMAGE_EXTENSIONS,
    build_asset_url,
    get_base_name,
    get_extension,
)
from src.importing.infrastructure.pdf_text import extract_pdf_text
from src.notes.domain.rules import join_slug, safe_asset_name, split_slug


@dataclass(frozen=True)
class IngestFileCommand:
    file: UploadedFile | None
    slug: str | None
    title: str | None = None


class IngestFileWorkflow:
    """Creates one page from a CSV, PDF or image without calling the model."""

    def __init__(self, page_store: PageStorePort, asset_url_prefix: str = "/api/notes/images") -> None:
        self.page_store = page_store
        self.asset_url_prefix = asset_url_prefix

    def run(self, command: IngestFileCommand) -> IngestResult:
        if command.file is None:
            raise IngestRequestError("Missing file")
        if not command.slug:
            raise IngestRequestError("Missing slug")

        file = command.file
        ext = get_extension(file.filename)
        if ext not in INGEST_EXTENSIONS:
            raise IngestRequestError(f"Unsupported file type: {ext}. Allowed: PDF, PNG, JPG, CSV")

        slug_parts = split_slug(command.slug)
        if not slug_parts:
            raise IngestRequestError("Missing slug")
        slug = join_slug(slug_parts)
        title = command.title or get_base_name(file.filename).replace("-", " ")

        if ext == ".csv":
            table = csv_to_markdown_table(parse_csv(file.text()))
            self.page_store.create_page(slug_parts)
            self.page_store.save_page_content(slug_parts, f"# {title}\n\n{table}")
        elif ext in INGEST_IMAGE_EXTENSIONS:
            self.page_store.create_page(slug_parts)
            stored_name = safe_asset_name(file.filename)
            image_url = build_asset_url(self.asset_url_prefix, slug, stored_name)
            self.page_store.save_page_content(slug_parts, f"# {title}\n\n![{title}]({image_url})")
            self.page_store.save_asset(slug_parts, stored_name, file.data)
        else:
            text = extract_pdf_text(file.data)
            self.page_store.create_page(slug_parts)
            self.page_store.save_page_content(slug_parts, f"# {title}\n\n{text}")

        logger.info("Ingested file: filename={}, slug={}, type={}", file.filename, slug, ext)
        return IngestResult(slug=slug, path=f"/pages/{slug}")
