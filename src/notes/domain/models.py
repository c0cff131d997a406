from dataclasses import dataclass, field
from typing import Any


class InvalidSlugError(ValueError):
    """Raised when a slug segment would escape the notes directory."""


class PageMoveError(ValueError):
    """Raised when a page cannot be moved to the requested parent."""


@dataclass(frozen=True)
class TreeNode:
    name: str
    path: str
    children: tuple["TreeNode", ...] = field(default_factory=tuple)

    def to_dict(self) -> dict[str, Any]:
        return {
            "name": self.name,
            "path": self.path,
            "children": [child.to_dict() for child in self.children],
        }
