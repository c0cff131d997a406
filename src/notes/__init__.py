"""File-backed page storage."""

from src.notes.domain.models import InvalidSlugError, PageMoveError, TreeNode
from src.notes.infrastructure.fs_page_store import FilePageStore

__all__ = ["FilePageStore", "InvalidSlugError", "PageMoveError", "TreeNode"]
