import re

DOCUMENT_EXTENSIONS = frozenset({".html", ".htm"})
IMAGE_EXTENSIONS = frozenset({".png", ".jpg", ".jpeg", ".gif", ".webp"})
INGEST_EXTENSIONS = frozenset({".pdf", ".png", ".jpg", ".jpeg", ".csv"})
INGEST_IMAGE_EXTENSIONS = frozenset({".png", ".jpg", ".jpeg"})

_WHITESPACE_RE = re.compile(r"\s+")


def get_extension(filename: str) -> str:
    dot = filename.rfind(".")
    return filename[dot:].lower() if dot >= 0 else ""


def get_base_name(filename: str) -> str:
    dot = filename.rfind(".")
    return filename[:dot] if dot >= 0 else filename


def make_slug(name: str) -> str:
    return _WHITESPACE_RE.sub("-", name)


def asset_matches_document(asset_base: str, document_base: str) -> bool:
    return (
        asset_base == document_base
        or asset_base.startswith(document_base + "-")
        or asset_base.startswith(document_base + "_")
    )


def build_asset_url(prefix: str, slug: str, filename: str) -> str:
    return f"{prefix.rstrip('/')}/{slug}/{filename}"
