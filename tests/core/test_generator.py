import pytest

from packages.core.errors import GenerationError
from packages.core.newsletter.generator import (
    SYSTEM_PROMPT,
    ContentGenerator,
    build_prompt,
    group_by_feed,
    strip_code_fence,
)
from packages.core.storage.base import ArticleState


def _article(idx, feed_name, content="body"):
    return ArticleState(
        id=f"article-{idx}",
        title=f"Story {idx}",
        content=content,
        url=f"https://example.com/{idx}",
        feed_id=f"feed-{feed_name}",
        publish_date="2026-10-19T06:00:00+00:00",
        processed=False,
        created_at="2026-10-19T06:00:00+00:00",
        updated_at="2026-10-19T06:00:00+00:00",
        feed_name=feed_name,
    )


class FakeLLM:
    def __init__(self, reply="<h1>Today</h1><p>News.</p>", error=None):
        self.reply = reply
        self.error = error
        self.calls = []

    def complete(self, messages, temperature=0.7, max_tokens=1000):
        self.calls.append(
            {"messages": messages, "temperature": temperature, "max_tokens": max_tokens}
        )
        if self.error:
            raise self.error
        return self.reply


def test_prompt_groups_articles_by_feed_in_order():
    articles = [_article(1, "Tech"), _article(2, "World"), _article(3, "Tech")]

    groups = group_by_feed(articles)
    prompt = build_prompt(articles)

    assert list(groups.keys()) == ["Tech", "World"]
    assert [a.id for a in groups["Tech"]] == ["article-1", "article-3"]
    assert prompt.index("Source: Tech") < prompt.index("Source: World")
    assert "URL: https://example.com/2" in prompt
    assert "Published: 2026-10-19 06:00 UTC" in prompt


def test_prompt_truncates_content_and_marks_missing():
    articles = [_article(1, "Tech", content="x" * 500), _article(2, "Tech", content=None)]

    prompt = build_prompt(articles)

    assert "x" * 300 in prompt
    assert "x" * 301 not in prompt
    assert "Content: No content available" in prompt


def test_generate_uses_curator_instruction():
    llm = FakeLLM()
    generator = ContentGenerator(llm)

    content = generator.generate([_article(1, "Tech")])

    assert content == "<h1>Today</h1><p>News.</p>"
    call = llm.calls[0]
    assert call["messages"][0] == {"role": "system", "content": SYSTEM_PROMPT}
    assert "professional newsletter curator" in SYSTEM_PROMPT
    assert call["max_tokens"] == 1000


def test_generate_strips_markdown_fence():
    generator = ContentGenerator(FakeLLM(reply="```html\n<h1>Today</h1>\n```"))

    assert generator.generate([_article(1, "Tech")]) == "<h1>Today</h1>"
    assert strip_code_fence("<p>plain</p>") == "<p>plain</p>"


@pytest.mark.parametrize(
    "llm",
    [FakeLLM(error=RuntimeError("OpenAI HTTP 500 error")), FakeLLM(reply=""), FakeLLM(reply="   ")],
)
def test_generate_failures_raise_generation_error(llm):
    with pytest.raises(GenerationError):
        ContentGenerator(llm).generate([_article(1, "Tech")])


def test_generate_rejects_empty_batch():
    llm = FakeLLM()
    with pytest.raises(GenerationError):
        ContentGenerator(llm).generate([])
    assert llm.calls == []


def test_articles_without_feed_group_under_unknown_source():
    groups = group_by_feed([_article(1, None), _article(2, "Tech")])

    assert list(groups) == ["Unknown source", "Tech"]
