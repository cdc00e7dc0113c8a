"""
Pytest configuration and shared fixtures.
"""

from pathlib import Path

import pytest

from easy_kindle.models import ExtractedArticle

# ============================================================================
# Sample Pages
# ============================================================================

PARAGRAPH = (
    "Readable articles need a decent amount of prose before extraction "
    "heuristics treat a block as the main content of the page, so this "
    "sentence keeps going for a while, mentioning commas, clauses, and the "
    "general shape of real writing. "
)


@pytest.fixture
def article_page():
    """A blog post page with navigation chrome and relative references."""
    body = "".join(f"<p>{PARAGRAPH * 3}</p>" for _ in range(4))
    return f"""<!DOCTYPE html>
<html>
<head>
  <title>Incremental Reading Lists</title>
  <meta name="author" content="Ada Lovelace">
  <meta name="description" content="How to send a reading list to an e-reader.">
  <meta property="article:published_time" content="2024-03-01T10:00:00Z">
</head>
<body>
  <nav><a href="/">Home</a> <a href="/about">About</a></nav>
  <article>
    <h1>Incremental Reading Lists</h1>
    <p>{PARAGRAPH * 3} See <a href="other">the other post</a> for details.</p>
    {body}
  </article>
  <footer>Copyright</footer>
</body>
</html>"""


# ============================================================================
# Article Fixtures
# ============================================================================


@pytest.fixture
def make_article():
    """Factory for ExtractedArticle records."""

    def _make(url="https://example.com/a", title="An Article", byline="", html="<p>Body text</p>"):
        return ExtractedArticle(
            source_url=url,
            title=title,
            html_content=html,
            plain_text="Body text",
            length=9,
            excerpt="Body text",
            byline=byline,
        )

    return _make


class FakeExtractor:
    """Extractor stand-in returning canned articles; unknown URLs yield None."""

    def __init__(self, articles=None, failing=()):
        self.articles = articles or {}
        self.failing = set(failing)
        self.calls = []

    async def extract(self, url):
        self.calls.append(url)
        if url in self.failing:
            raise RuntimeError(f"boom: {url}")
        return self.articles.get(url)


@pytest.fixture
def fake_extractor_cls():
    return FakeExtractor


# ============================================================================
# Sync File Fixtures
# ============================================================================


@pytest.fixture
def write_sync_file(tmp_path):
    """Write a reading-list file and return its path."""

    def _write(content: str, name: str = "reading-list.txt") -> Path:
        path = tmp_path / name
        path.write_text(content, encoding="utf-8")
        return path

    return _write
