from dataclasses import dataclass, field
from time import perf_counter
from typing import Any

import aiohttp

from src.config.settings import DEFAULT_MODEL
from src.importing.application.contracts import ModelResponse
from src.importing.application.ports import DiagnosticSinkPort, ModelClientPort, PageStorePort
from src.importing.application.retry import RetryPolicy, call_with_retry
from src.importing.domain.models import ImportResult, ImportUnit
from src.importing.domain.rules import build_asset_url
from src.importing.infrastructure.anthropic_client import image_block, text_block

CONVERSION_RULES = """Convert the following HTML into clean, well-styled Markdown.

IMPORTANT RULES:
1. This HTML contains forum posts ordered oldest-first. REVERSE the order so the NEWEST post appears first and the OLDEST post appears last.
2. If images are provided, EMBED them in the markdown content using ![description](url) syntax with a descriptive alt text. Place each image where it is most relevant to the surrounding text (e.g. after stats tables, after layout descriptions, etc.).
3. Use rich text styling throughout:
   - # for the page title, ## for post titles, ### for section headings within posts
   - **Bold** for author names, dates, status labels, key metrics, and important terms
   - Tables for any tabular data (stats, comparisons)
   - > blockquotes for quoted text
   - Horizontal rules (---) between posts
   - Bullet lists and numbered lists where appropriate
   - *Italic* for notes, side comments, and emphasis"""


def build_conversion_prompt(html_text: str, instructions: str, image_refs: list[str]) -> str:
    sections = [CONVERSION_RULES, ""]
    if instructions:
        sections.append(f"User instructions: {instructions}\n")
    if image_refs:
        sections.append("Available images, embed these in the content where relevant:")
        sections.append("\n".join(image_refs) + "\n")
    sections.append(f"HTML content:\n```html\n{html_text}\n```\n")
    sections.append("Output ONLY the Markdown content, no wrapping code fences or explanation.")
    return "\n".join(sections)


@dataclass(frozen=True)
class ConversionConfig:
    model: str = DEFAULT_MODEL
    max_tokens: int = 8192
    retry_policy: RetryPolicy = field(default_factory=RetryPolicy)
    asset_url_prefix: str = "/api/notes/images"


class UnitConverter:
    """Turns one import unit into a page through the model."""

    def __init__(
        self,
        model_client: ModelClientPort,
        page_store: PageStorePort,
        sink: DiagnosticSinkPort,
        config: ConversionConfig | None = None,
    ) -> None:
        self.model_client = model_client
        self.page_store = page_store
        self.sink = sink
        self.config = config or ConversionConfig()

    async def convert(
        self,
        session: aiohttp.ClientSession,
        unit: ImportUnit,
        index: int,
        total: int,
        instructions: str = "",
    ) -> ImportResult:
        progress = f"[{index + 1}/{total}]"

        if unit.primary_document is None:
            self.sink.record(f'{progress} SKIP "{unit.name}": no HTML file')
            return ImportResult.failed(unit, "No HTML file")

        self.sink.record(f'{progress} Processing "{unit.name}"...')
        html_text = unit.primary_document.text()
        self.sink.record(f"{progress} HTML size: {len(html_text)} chars")

        content: list[dict[str, Any]] = []
        for asset in unit.assets:
            if asset.sniffed_type and asset.sniffed_type != asset.fallback_type:
                self.sink.record(
                    f'{progress} MIME fix: "{asset.filename}" extension says {asset.fallback_type} '
                    f"but bytes say {asset.sniffed_type}"
                )
            self.sink.record(
                f'{progress} Adding image "{asset.filename}" ({len(asset.data) / 1024:.1f}KB, {asset.media_type})'
            )
            content.append(image_block(asset.media_type, asset.data))

        image_refs = [
            f"- {asset.filename} → {build_asset_url(self.config.asset_url_prefix, unit.slug, asset.stored_name)}"
            for asset in unit.assets
        ]
        content.append(text_block(build_conversion_prompt(html_text, instructions, image_refs)))

        self.sink.record(f"{progress} Calling model API...")
        response = await self._call_model(session, content, progress, unit.name)
        markdown = response.first_text()
        self.sink.record(f"{progress} Markdown output: {len(markdown)} chars")

        slug = [unit.slug]
        self.page_store.create_page(slug)
        self.page_store.save_page_content(slug, markdown)
        self.sink.record(f'{progress} Saved content.md for "{unit.slug}"')

        for asset in unit.assets:
            self.page_store.save_asset(slug, asset.stored_name, asset.data)
            self.sink.record(f'{progress} Saved image "{asset.stored_name}" to "{unit.slug}/"')

        self.sink.record(f'{progress} SUCCESS "{unit.name}"')
        return ImportResult.succeeded(unit)

    async def _call_model(
        self,
        session: aiohttp.ClientSession,
        content: list[dict[str, Any]],
        progress: str,
        unit_name: str,
    ) -> ModelResponse:
        async def _attempt() -> ModelResponse:
            started = perf_counter()
            response = await self.model_client.create_message(
                session,
                model=self.config.model,
                max_tokens=self.config.max_tokens,
                content=content,
            )
            self.sink.record(
                f"{progress} Model responded in {perf_counter() - started:.1f}s, usage: "
                f"input={response.usage.input_tokens}, output={response.usage.output_tokens}, "
                f"stop={response.stop_reason}"
            )
            return response

        def _on_retry(attempt: int, max_retries: int, delay: float, exc: BaseException) -> None:
            self.sink.record(
                f'{progress} Rate limited for "{unit_name}", retry {attempt}/{max_retries} after {delay:g}s...'
            )

        return await call_with_retry(_attempt, self.config.retry_policy, on_retry=_on_retry)
