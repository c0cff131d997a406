import shutil
from collections.abc import Sequence
from pathlib import Path

from src.notes.domain.models import InvalidSlugError, PageMoveError, TreeNode
from src.notes.domain.rules import (
    CONTENT_FILENAME,
    is_within_subtree,
    join_slug,
    safe_asset_name,
    validate_segment,
    validate_slug,
)


class FilePageStore:
    """Pages are directories under ``root``; each holds a ``content.md`` and its assets."""

    def __init__(self, root: str | Path) -> None:
        self.root = Path(root)
        self.root.mkdir(parents=True, exist_ok=True)

    def get_tree(self) -> list[TreeNode]:
        self.root.mkdir(parents=True, exist_ok=True)
        return self._scan_dir(self.root, "")

    def get_page_content(self, slug: Sequence[str]) -> str:
        file_path = self._page_dir(slug) / CONTENT_FILENAME
        if not file_path.exists():
            return ""
        return file_path.read_text(encoding="utf-8")

    def save_page_content(self, slug: Sequence[str], content: str) -> Path:
        dir_path = self._page_dir(slug)
        dir_path.mkdir(parents=True, exist_ok=True)
        file_path = dir_path / CONTENT_FILENAME
        file_path.write_text(content, encoding="utf-8")
        return file_path

    def create_page(self, slug: Sequence[str]) -> Path:
        dir_path = self._page_dir(slug)
        dir_path.mkdir(parents=True, exist_ok=True)
        content_path = dir_path / CONTENT_FILENAME
        if not content_path.exists():
            content_path.write_text("", encoding="utf-8")
        return dir_path

    def save_asset(self, slug: Sequence[str], filename: str, data: bytes) -> Path:
        dir_path = self._page_dir(slug)
        dir_path.mkdir(parents=True, exist_ok=True)
        file_path = dir_path / safe_asset_name(filename)
        file_path.write_bytes(data)
        return file_path

    def rename_page(self, slug: Sequence[str], new_name: str) -> list[str]:
        old_parts = validate_slug(slug)
        parent = old_parts[:-1]
        new_parts = [*parent, validate_segment(new_name)]
        old_path = self._page_dir(old_parts)
        if old_path.exists():
            old_path.rename(self._page_dir(new_parts))
        return new_parts

    def move_page(self, slug: Sequence[str], new_parent: Sequence[str]) -> list[str]:
        old_parts = validate_slug(slug)
        parent_parts = validate_slug(new_parent) if new_parent else []
        page_name = old_parts[-1]
        old_path = self._page_dir(old_parts)
        new_parent_path = self._page_dir(parent_parts) if parent_parts else self.root
        new_path = new_parent_path / page_name

        if not old_path.exists():
            raise PageMoveError("Source page does not exist")
        if parent_parts and is_within_subtree(parent_parts, old_parts):
            raise PageMoveError("Cannot move a page into its own subtree")
        if new_path.exists():
            raise PageMoveError("A page with that name already exists at the destination")

        new_parent_path.mkdir(parents=True, exist_ok=True)
        old_path.rename(new_path)
        return [*parent_parts, page_name]

    def delete_page(self, slug: Sequence[str]) -> None:
        dir_path = self._page_dir(slug)
        if dir_path.exists():
            shutil.rmtree(dir_path)

    def get_asset_path(self, segments: Sequence[str]) -> Path:
        parts = validate_slug(segments)
        resolved = self.root.joinpath(*parts).resolve()
        root = self.root.resolve()
        if resolved != root and root not in resolved.parents:
            raise InvalidSlugError(f"Asset path escapes notes directory: {join_slug(parts)}")
        return resolved

    def _page_dir(self, slug: Sequence[str]) -> Path:
        return self.root.joinpath(*validate_slug(slug))

    def _scan_dir(self, abs_path: Path, relative_path: str) -> list[TreeNode]:
        nodes: list[TreeNode] = []
        for entry in abs_path.iterdir():
            if entry.name.startswith(".") or not entry.is_dir():
                continue
            child_rel = f"{relative_path}/{entry.name}" if relative_path else entry.name
            nodes.append(
                TreeNode(
                    name=entry.name,
                    path=child_rel,
                    children=tuple(self._scan_dir(entry, child_rel)),
                )
            )
        return sorted(nodes, key=lambda node: (node.name.casefold(), node.name))
