"""Domain models and deterministic rules for importing files as pages."""

from src.importing.domain.csv_table import csv_to_markdown_table, parse_csv
from src.importing.domain.grouping import group_files
from src.importing.domain.models import (
    AnalysisRequestError,
    AssetReference,
    GroupingResult,
    ImportReport,
    ImportRequestError,
    ImportResult,
    ImportUnit,
    IngestRequestError,
    IngestResult,
    NotesRequestError,
    UploadedFile,
)
from src.importing.domain.sniffing import media_type_from_extension, sniff_image_type

__all__ = [
    "AnalysisRequestError",
    "AssetReference",
    "csv_to_markdown_table",
    "group_files",
    "GroupingResult",
    "ImportReport",
    "ImportRequestError",
    "ImportResult",
    "ImportUnit",
    "IngestRequestError",
    "IngestResult",
    "media_type_from_extension",
    "NotesRequestError",
    "parse_csv",
    "sniff_image_type",
    "UploadedFile",
]
