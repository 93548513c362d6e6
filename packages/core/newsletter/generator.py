from __future__ import annotations

import datetime as dt
import logging
import re
from typing import Any, Dict, List, Protocol, Sequence

from ..errors import GenerationError
from ..storage.base import ArticleState


logger = logging.getLogger("feedletter.generator")

SYSTEM_PROMPT = (
    "You are a professional newsletter curator. Create a concise, engaging daily "
    "newsletter from the provided articles. Include brief summaries and maintain "
    "a consistent, professional tone."
)

CONTENT_PREVIEW_CHARS = 300

_CODE_FENCE = re.compile(r"^```[a-zA-Z]*\s*\n(?P<body>.*?)\n?```\s*$", re.DOTALL)


class CompletionClient(Protocol):
    def complete(
        self,
        messages: List[Dict[str, Any]],
        temperature: float = 0.7,
        max_tokens: int = 1000,
    ) -> str:
        """Return the completion text for a chat."""


def group_by_feed(articles: Sequence[ArticleState]) -> Dict[str, List[ArticleState]]:
    groups: Dict[str, List[ArticleState]] = {}
    for article in articles:
        groups.setdefault(article.source, []).append(article)
    return groups


def _display_date(value: str) -> str:
    try:
        return dt.datetime.fromisoformat(value).strftime("%Y-%m-%d %H:%M UTC")
    except ValueError:
        return value


def build_prompt(articles: Sequence[ArticleState]) -> str:
    sections = []
    for feed_name, feed_articles in group_by_feed(articles).items():
        entries = []
        for article in feed_articles:
            content = (article.content or "")[:CONTENT_PREVIEW_CHARS] or "No content available"
            entries.append(
                f"- Title: {article.title}\n"
                f"  URL: {article.url}\n"
                f"  Published: {_display_date(article.publish_date)}\n"
                f"  Content: {content}"
            )
        sections.append(f"Source: {feed_name}\n" + "\n".join(entries) + "\n---")

    return (
        "Please create a comprehensive newsletter combining news from multiple RSS feeds.\n\n"
        "Available Sources and Articles:\n"
        + "\n".join(sections)
        + "\n\n"
        "Create a newsletter that:\n"
        "1. Highlights the most important stories across all feeds\n"
        "2. Groups related topics together regardless of source\n"
        "3. Provides context when similar stories appear in multiple feeds\n"
        "4. Includes a balanced representation from all sources\n"
        "5. Prioritizes the most recent and most significant stories\n\n"
        "Format the content with:\n"
        "1. A main headline (h1)\n"
        "2. An executive summary of the day's most important news\n"
        "3. Major stories with detailed coverage\n"
        "4. Quick hits for other notable stories\n"
        "5. Clear attribution to sources\n\n"
        "Use appropriate HTML tags (h1, h2, h3, p, ul, li, a) for formatting, "
        "but do not include any styling or HTML boilerplate."
    )


def strip_code_fence(text: str) -> str:
    match = _CODE_FENCE.match(text.strip())
    if match:
        return match.group("body").strip()
    return text.strip()


class ContentGenerator:
    """Turns a batch of articles into newsletter HTML via the LLM."""

    def __init__(
        self,
        llm: CompletionClient,
        temperature: float = 0.7,
        max_tokens: int = 1000,
    ) -> None:
        self._llm = llm
        self._temperature = temperature
        self._max_tokens = max_tokens

    def generate(self, articles: Sequence[ArticleState]) -> str:
        if not articles:
            raise GenerationError("No articles to summarize")

        messages = [
            {"role": "system", "content": SYSTEM_PROMPT},
            {"role": "user", "content": build_prompt(articles)},
        ]
        logger.info("newsletter_generation_started articles=%s", len(articles))
        try:
            reply = self._llm.complete(
                messages,
                temperature=self._temperature,
                max_tokens=self._max_tokens,
            )
        except Exception as exc:
            raise GenerationError(
                "Failed to generate newsletter content", error=str(exc)
            ) from exc

        content = strip_code_fence(reply or "")
        if not content:
            raise GenerationError("Failed to generate newsletter content", error="empty_completion")
        logger.info("newsletter_generation_finished chars=%s", len(content))
        return content


def sources_of(articles: Sequence[ArticleState]) -> List[str]:
    return list(group_by_feed(articles).keys())
