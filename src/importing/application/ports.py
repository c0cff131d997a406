from collections.abc import Sequence
from pathlib import Path
from typing import Any, Protocol, runtime_checkable

import aiohttp

from src.importing.application.contracts import ModelResponse


@runtime_checkable
class PageStorePort(Protocol):
    def create_page(self, slug: Sequence[str]) -> Path: ...
    """Ensure the page directory and an empty content file exist."""

    def save_page_content(self, slug: Sequence[str], content: str) -> Path: ...
    """Overwrite the page content."""

    def save_asset(self, slug: Sequence[str], filename: str, data: bytes) -> Path: ...
    """Write a binary file next to the page content."""

    def get_page_content(self, slug: Sequence[str]) -> str: ...


@runtime_checkable
class ModelClientPort(Protocol):
    async def create_message(
        self,
        session: aiohttp.ClientSession,
        *,
        model: str,
        max_tokens: int,
        content: list[dict[str, Any]] | str,
    ) -> ModelResponse: ...


@runtime_checkable
class DiagnosticSinkPort(Protocol):
    def record(self, message: str) -> None: ...
    """Append one line to the diagnostic log."""
