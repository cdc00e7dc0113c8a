import logging
import re
from typing import Optional

from bs4 import BeautifulSoup
from readability import Document

from easy_kindle.http_client import HTTPClient
from easy_kindle.models import ExtractedArticle
from easy_kindle.normalizer import collect_image_urls, normalize_html

logger = logging.getLogger(__name__)

BYLINE_SELECTORS = (
    'meta[name="author"]',
    'meta[property="article:author"]',
    'meta[name="byl"]',
)
EXCERPT_SELECTORS = (
    'meta[name="description"]',
    'meta[property="og:description"]',
    'meta[name="twitter:description"]',
)
PUBLISHED_SELECTORS = (
    'meta[property="article:published_time"]',
    'meta[name="date"]',
    'meta[itemprop="datePublished"]',
)


def _collapse(text: str) -> str:
    return re.sub(r"\s+", " ", text or "").strip()


def _first_meta(page: BeautifulSoup, selectors) -> str:
    for selector in selectors:
        tag = page.select_one(selector)
        if tag and tag.get("content", "").strip():
            return _collapse(tag["content"])
    return ""


class Extractor:
    """Fetches one URL and turns it into an ExtractedArticle, or None."""

    def __init__(self, http_client: HTTPClient):
        self.http_client = http_client

    async def extract(self, url: str) -> Optional[ExtractedArticle]:
        logger.info(f"📥 Fetching: {url}")
        html = await self.http_client.fetch(url)
        if not html:
            return None

        try:
            article = self.parse(html, url)
        except Exception as e:
            logger.warning(f"Failed to parse {url}: {e}")
            return None

        if article is None:
            logger.warning(f"⚠️  Could not extract readable content from {url}")
            return None

        logger.info(f"✅ Extracted: \"{article.title}\" ({article.length} chars, {len(article.image_urls)} images)")
        return article

    def parse(self, html: str, url: str) -> Optional[ExtractedArticle]:
        """
        Run readability over a fetched page and build the article record.
        Returns None when the page has no readable content.
        """
        doc = Document(html)
        content = doc.summary(html_partial=True)
        if not content or not content.strip():
            return None

        content = normalize_html(content, url)
        fragment = BeautifulSoup(content, "lxml")
        plain_text = _collapse(fragment.get_text(separator=" "))
        if not plain_text:
            return None

        page = BeautifulSoup(html, "lxml")
        title = _collapse(doc.short_title()) or _collapse(doc.title())
        if title == "[no-title]":
            title = ""

        return ExtractedArticle(
            source_url=url,
            title=title or "Untitled",
            html_content=content,
            plain_text=plain_text,
            length=len(plain_text),
            excerpt=self._excerpt(page, fragment),
            byline=self._byline(page),
            published_time=self._published_time(page),
            image_urls=frozenset(collect_image_urls(content, url)),
        )

    def _byline(self, page: BeautifulSoup) -> str:
        byline = _first_meta(page, BYLINE_SELECTORS)
        if byline:
            return byline
        tag = page.find(attrs={"rel": "author"})
        return _collapse(tag.get_text()) if tag else ""

    def _excerpt(self, page: BeautifulSoup, fragment: BeautifulSoup) -> str:
        excerpt = _first_meta(page, EXCERPT_SELECTORS)
        if excerpt:
            return excerpt
        # Fall back to the first paragraph of the article itself
        for p in fragment.find_all("p"):
            text = _collapse(p.get_text(separator=" "))
            if text:
                return text
        return ""

    def _published_time(self, page: BeautifulSoup) -> Optional[str]:
        published = _first_meta(page, PUBLISHED_SELECTORS)
        if published:
            return published
        time_tag = page.find("time", attrs={"datetime": True})
        if time_tag and time_tag["datetime"].strip():
            return time_tag["datetime"].strip()
        return None
