"""Filesystem adapters for pages."""

from src.notes.infrastructure.fs_page_store import FilePageStore

__all__ = ["FilePageStore"]
