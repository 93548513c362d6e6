from __future__ import annotations

import html
import os
import re
from typing import Any, Dict, Sequence

from jinja2 import (
    Environment,
    FileSystemLoader,
    StrictUndefined,
    TemplateError as JinjaTemplateError,
    select_autoescape,
)

from ..clock import utc_now_iso
from ..errors import TemplateError
from ..storage.base import ArticleState


TEMPLATE_DIR = os.path.join(os.path.dirname(__file__), "templates")
TEMPLATE_NAME = "newsletter.html"

_TAG = re.compile(r"<[^>]+>")
_BLOCK_END = re.compile(r"</(p|h[1-6]|li|ul|ol|div)>", re.IGNORECASE)


def sample_article() -> ArticleState:
    now = utc_now_iso()
    return ArticleState(
        id="sample",
        title="Test Article",
        content="Test Content",
        url="https://example.com",
        feed_id="sample-feed",
        publish_date=now,
        processed=False,
        created_at=now,
        updated_at=now,
        feed_name="Test Feed",
    )


class NewsletterRenderer:
    def __init__(
        self,
        template_dir: str = TEMPLATE_DIR,
        template_name: str = TEMPLATE_NAME,
    ) -> None:
        self._template_dir = template_dir
        self._template_name = template_name
        self._env = Environment(
            loader=FileSystemLoader(template_dir),
            autoescape=select_autoescape(["html"]),
            undefined=StrictUndefined,
        )

    @property
    def template_path(self) -> str:
        return os.path.join(self._template_dir, self._template_name)

    def render(
        self,
        content: str,
        articles: Sequence[ArticleState],
        date: str,
        unsubscribe_link: str = "#",
    ) -> str:
        try:
            template = self._env.get_template(self._template_name)
            return template.render(
                content=content,
                articles=list(articles),
                sources=list(dict.fromkeys(article.source for article in articles)),
                date=date,
                unsubscribe_link=unsubscribe_link,
            )
        except JinjaTemplateError as exc:
            raise TemplateError(f"Template render failed: {exc}", error=self._template_name) from exc

    def render_text(self, content: str, articles: Sequence[ArticleState]) -> str:
        text = _BLOCK_END.sub("\n", content)
        text = html.unescape(_TAG.sub("", text))
        lines = [line.strip() for line in text.splitlines()]
        body = "\n".join(line for line in lines if line)
        links = "\n".join(f"- {article.title}\n  {article.url}" for article in articles)
        if links:
            return f"{body}\n\n---\n\n{links}\n"
        return f"{body}\n"

    def self_check(self) -> Dict[str, Any]:
        """Render a sample issue and confirm the output is a complete document."""
        sample = sample_article()
        rendered = self.render(
            content="<p>Test Content</p>",
            articles=[sample],
            date="1970-01-01",
            unsubscribe_link="#",
        )
        lowered = rendered.lower()
        problems = []
        if not rendered.strip():
            problems.append("empty_output")
        if "<html" not in lowered or "</html>" not in lowered:
            problems.append("missing_html_document")
        if sample.title not in rendered:
            problems.append("missing_article_title")
        if problems:
            raise TemplateError(
                "Template validation failed", error=",".join(problems)
            )
        return {
            "template": self.template_path,
            "rendered_length": len(rendered),
            "contains_html": True,
            "contains_article": True,
            "sample": rendered[:200] + "...",
        }


def template_report(renderer: NewsletterRenderer) -> Dict[str, Any]:
    try:
        report = renderer.self_check()
    except TemplateError as exc:
        return {"success": False, "error": exc.message, "detail": exc.error}
    return {"success": True, **report}
