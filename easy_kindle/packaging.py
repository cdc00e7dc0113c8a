import html
import logging
import re
import uuid
from datetime import date
from pathlib import Path
from typing import List, Optional, Sequence

from bs4 import BeautifulSoup
from ebooklib import epub

from easy_kindle.errors import PackagingError
from easy_kindle.models import ExtractedArticle

logger = logging.getLogger(__name__)

IMAGE_STYLE = "max-width: 100%; height: auto; display: block; margin: 1em auto;"
PARAGRAPH_STYLE = "margin-top: 1em; margin-bottom: 1em;"
HEADING_STYLE = "margin-top: 1.5em; margin-bottom: 1em;"
STRIPPED_ATTRIBUTES = ("style", "class", "id")
_UNSAFE_FILENAME_CHARS = re.compile(r'[\\/:*?"<>|\x00-\x1f]+')


def book_title(articles: Sequence[ExtractedArticle], title: Optional[str] = None) -> str:
    if title:
        return title
    first = articles[0].title or "Untitled"
    if len(articles) > 1:
        return f"{first} and {len(articles) - 1} more"
    return first


def book_author(articles: Sequence[ExtractedArticle]) -> str:
    authors: List[str] = []
    for article in articles:
        byline = article.byline.strip()
        if byline and byline not in authors:
            authors.append(byline)
    return ", ".join(authors) if authors else "Unknown"


def safe_filename(title: str, max_length: int = 120) -> str:
    name = _UNSAFE_FILENAME_CHARS.sub(" ", title)
    name = re.sub(r"\s+", " ", name).strip(" .")
    return name[:max_length].rstrip() or "Untitled"


def clean_html(content: str) -> str:
    """Drop page styling hooks, space out text blocks and keep images within the page width."""
    soup = BeautifulSoup(content or "", "lxml")
    for tag in soup.find_all(True):
        for attr in STRIPPED_ATTRIBUTES:
            if attr in tag.attrs:
                del tag[attr]
    for p in soup.find_all("p"):
        p["style"] = PARAGRAPH_STYLE
    for heading in soup.find_all(["h1", "h2", "h3", "h4", "h5", "h6"]):
        heading["style"] = HEADING_STYLE
    for img in soup.find_all("img"):
        img["style"] = IMAGE_STYLE
    root = soup.body if soup.body is not None else soup
    return root.decode_contents()


def chapter_html(article: ExtractedArticle) -> str:
    source = html.escape(article.source_url, quote=True)
    author = f"<strong>Author:</strong> {html.escape(article.byline)}<br/>" if article.byline else ""
    header = (
        '<div style="margin-bottom: 20px; padding: 10px; border-left: 3px solid #ccc;">'
        '<p style="margin: 0; font-size: 0.9em; color: #666;">'
        f'<strong>Source:</strong> <a href="{source}">{source}</a><br/>'
        f"{author}"
        f"<strong>Extracted:</strong> {date.today().isoformat()}"
        "</p></div>"
    )
    return f"<h1>{html.escape(article.title)}</h1>{header}{clean_html(article.html_content)}"


class EpubBuilder:
    """Bundles extracted articles into a single EPUB, one chapter per article."""

    def __init__(self, output_dir, language: str = "en", publisher: str = "Easy-Kindle"):
        self.output_dir = Path(output_dir)
        self.language = language
        self.publisher = publisher

    def build(self, articles: Sequence[ExtractedArticle], title: Optional[str] = None) -> Path:
        if not articles:
            raise PackagingError("No content to generate EPUB from")

        title = book_title(articles, title)
        path = self.output_dir / f"{safe_filename(title)}.epub"

        book = epub.EpubBook()
        book.set_identifier(str(uuid.uuid4()))
        book.set_title(title)
        book.set_language(self.language)
        book.add_author(book_author(articles))
        book.add_metadata("DC", "publisher", self.publisher)
        book.add_metadata("DC", "description", f"Collection of {len(articles)} articles")

        chapters = []
        for index, article in enumerate(articles, 1):
            chapter = epub.EpubHtml(
                title=article.title or f"Chapter {index}",
                file_name=f"chapter_{index:03d}.xhtml",
                lang=self.language,
            )
            chapter.content = chapter_html(article)
            book.add_item(chapter)
            chapters.append(chapter)

        book.toc = chapters
        book.add_item(epub.EpubNcx())
        book.add_item(epub.EpubNav())
        book.spine = ["nav"] + chapters

        try:
            self.output_dir.mkdir(parents=True, exist_ok=True)
            epub.write_epub(str(path), book, {})
        except Exception as e:
            raise PackagingError(f"Error generating EPUB {path}: {e}") from e

        logger.info(f"✅ EPUB generated successfully: {path}")
        return path
