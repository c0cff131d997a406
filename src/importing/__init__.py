"""Import pipeline: uploaded files to pages."""

from src.importing.api import load_uploaded_files, run_import, run_import_async
from src.importing.domain.models import ImportReport, ImportResult, UploadedFile

__all__ = [
    "ImportReport",
    "ImportResult",
    "load_uploaded_files",
    "run_import",
    "run_import_async",
    "UploadedFile",
]
