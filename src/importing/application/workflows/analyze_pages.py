from collections.abc import Sequence
from dataclasses import dataclass, field

import aiohttp

from src.config.logger_config import logger
from src.config.settings import DEFAULT_MODEL
from src.importing.application.ports import ModelClientPort, PageStorePort
from src.importing.application.retry import RetryPolicy, call_with_retry
from src.importing.domain.models import AnalysisRequestError
from src.notes.domain.rules import split_slug, title_from_slug

DEFAULT_ANALYSIS_INSTRUCTIONS = """Please provide:
1. **Key Patterns & Themes**: Common threads, recurring topics, and shared themes across the pages
2. **Gaps & Missing Information**: What's missing, incomplete, or could be expanded
3. **Opportunities & Insights**: Actionable opportunities, connections between pages, and strategic insights
4. **Proposals**: Concrete recommendations for next steps, improvements, or new directions

Format your response in clean Markdown with clear headings and bullet points."""


@dataclass(frozen=True)
class PageExcerpt:
    slug: str
    title: str
    content: str


@dataclass(frozen=True)
class AnalyzePagesConfig:
    model: str = DEFAULT_MODEL
    max_tokens: int = 8192
    retry_policy: RetryPolicy = field(default_factory=RetryPolicy)


def build_analysis_prompt(pages: Sequence[PageExcerpt], context: str = "", prompt: str = "") -> str:
    pages_text = "\n".join(
        f"--- Page {i}: {page.title} ---\n{page.content or '(empty page)'}\n"
        for i, page in enumerate(pages, start=1)
    )
    if prompt:
        context_part = f"Project context:\n{context}\n\n" if context else ""
        return f"{context_part}{prompt}\n\nPages content:\n\n{pages_text}"

    context_part = f"Project context provided by the user:\n{context}\n\n" if context else ""
    return (
        f"Analyze the following {len(pages)} pages and provide a comprehensive analysis with proposals.\n\n"
        f"{context_part}Pages content:\n\n{pages_text}\n\n{DEFAULT_ANALYSIS_INSTRUCTIONS}"
    )


class AnalyzePagesWorkflow:
    def __init__(
        self,
        model_client: ModelClientPort | None,
        page_store: PageStorePort,
        config: AnalyzePagesConfig | None = None,
    ) -> None:
        self.model_client = model_client
        self.page_store = page_store
        self.config = config or AnalyzePagesConfig()

    def load_pages(self, slugs: Sequence[str]) -> list[PageExcerpt]:
        pages: list[PageExcerpt] = []
        for slug in slugs:
            parts = split_slug(slug)
            pages.append(
                PageExcerpt(
                    slug=slug,
                    title=title_from_slug(parts),
                    content=self.page_store.get_page_content(parts),
                )
            )
        return pages

    async def run(self, slugs: Sequence[str], context: str = "", prompt: str = "") -> str:
        if not slugs:
            raise AnalysisRequestError("No pages selected")
        if self.model_client is None:
            raise AnalysisRequestError("ANTHROPIC_API_KEY not configured")

        pages = self.load_pages(slugs)
        user_prompt = build_analysis_prompt(pages, context=context, prompt=prompt)
        logger.info("Page analysis started: pages={}, prompt_chars={}", len(pages), len(user_prompt))

        async with aiohttp.ClientSession() as session:
            response = await call_with_retry(
                lambda: self.model_client.create_message(
                    session,
                    model=self.config.model,
                    max_tokens=self.config.max_tokens,
                    content=user_prompt,
                ),
                self.config.retry_policy,
                on_retry=lambda attempt, max_retries, delay, exc: logger.warning(
                    "Analysis rate limited, retry {}/{} after {}s", attempt, max_retries, delay
                ),
            )

        analysis = response.first_text()
        logger.info("Page analysis completed: analysis_chars={}", len(analysis))
        return analysis
