from collections.abc import Sequence

from pathvalidate import sanitize_filename as lib_sanitize

from src.notes.domain.models import InvalidSlugError

CONTENT_FILENAME = "content.md"


def split_slug(slug: str) -> list[str]:
    return [part for part in (slug or "").split("/") if part]


def join_slug(parts: Sequence[str]) -> str:
    return "/".join(parts)


def validate_segment(segment: str) -> str:
    if not segment or segment in {".", ".."} or "/" in segment or "\\" in segment:
        raise InvalidSlugError(f"Invalid page path segment: {segment!r}")
    return segment


def validate_slug(parts: Sequence[str]) -> list[str]:
    if not parts:
        raise InvalidSlugError("Page slug must not be empty")
    return [validate_segment(part) for part in parts]


def safe_asset_name(filename: str) -> str:
    """The name an asset is stored and served under."""
    safe_name = lib_sanitize(filename, replacement_text="_")
    if not safe_name or safe_name in {".", ".."}:
        raise InvalidSlugError(f"Invalid asset filename: {filename!r}")
    return safe_name


def title_from_slug(parts: Sequence[str]) -> str:
    return parts[-1].replace("-", " ") if parts else ""


def is_within_subtree(candidate: Sequence[str], root: Sequence[str]) -> bool:
    """True when ``candidate`` is ``root`` itself or lies below it."""
    root_str = join_slug(root)
    candidate_str = join_slug(candidate)
    return candidate_str == root_str or candidate_str.startswith(root_str + "/")
