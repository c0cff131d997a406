from dataclasses import dataclass, field
from typing import Any

from src.importing.domain.sniffing import media_type_from_extension


@dataclass(frozen=True)
class UploadedFile:
    filename: str
    data: bytes
    content_type: str | None = None

    @property
    def size(self) -> int:
        return len(self.data)

    def text(self) -> str:
        return self.data.decode("utf-8", errors="replace")


@dataclass(frozen=True)
class AssetReference:
    filename: str
    data: bytes
    declared_extension: str
    sniffed_type: str | None
    stored_name: str

    @property
    def fallback_type(self) -> str:
        return media_type_from_extension(self.declared_extension)

    @property
    def media_type(self) -> str:
        return self.sniffed_type or self.fallback_type


@dataclass(frozen=True)
class ImportUnit:
    name: str
    slug: str
    primary_document: UploadedFile | None
    assets: tuple[AssetReference, ...] = field(default_factory=tuple)


@dataclass(frozen=True)
class GroupingResult:
    units: tuple[ImportUnit, ...]
    unmatched: tuple[str, ...]


@dataclass(frozen=True)
class ImportResult:
    name: str
    slug: str
    success: bool
    error: str | None = None

    @classmethod
    def succeeded(cls, unit: ImportUnit) -> "ImportResult":
        return cls(name=unit.name, slug=unit.slug, success=True)

    @classmethod
    def failed(cls, unit: ImportUnit, error: str) -> "ImportResult":
        return cls(name=unit.name, slug=unit.slug, success=False, error=error)

    def to_dict(self) -> dict[str, Any]:
        payload: dict[str, Any] = {"name": self.name, "slug": self.slug, "success": self.success}
        if not self.success:
            payload["error"] = self.error
        return payload


@dataclass(frozen=True)
class ImportReport:
    results: tuple[ImportResult, ...]
    unmatched: tuple[str, ...]

    @property
    def success_count(self) -> int:
        return sum(1 for result in self.results if result.success)

    @property
    def failed_count(self) -> int:
        return sum(1 for result in self.results if not result.success)

    def to_dict(self) -> dict[str, Any]:
        return {
            "results": [result.to_dict() for result in self.results],
            "unmatched": list(self.unmatched),
        }


@dataclass(frozen=True)
class IngestResult:
    slug: str
    path: str

    def to_dict(self) -> dict[str, Any]:
        return {"ok": True, "slug": self.slug, "path": self.path}


class NotesRequestError(ValueError):
    """A request was rejected before any work started."""


class ImportRequestError(NotesRequestError):
    pass


class IngestRequestError(NotesRequestError):
    pass


class AnalysisRequestError(NotesRequestError):
    pass
