"""Page models and slug rules."""

from src.notes.domain.models import InvalidSlugError, PageMoveError, TreeNode
from src.notes.domain.rules import (
    CONTENT_FILENAME,
    is_within_subtree,
    join_slug,
    split_slug,
    title_from_slug,
    validate_slug,
)

__all__ = [
    "CONTENT_FILENAME",
    "InvalidSlugError",
    "is_within_subtree",
    "join_slug",
    "PageMoveError",
    "split_slug",
    "title_from_slug",
    "TreeNode",
    "validate_slug",
]
