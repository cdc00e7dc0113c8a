"""
Unit tests for easy_kindle.packaging.
"""

import zipfile

import pytest

from easy_kindle.errors import PackagingError
from easy_kindle.packaging import EpubBuilder, book_author, book_title, clean_html, safe_filename


@pytest.mark.unit
class TestBookMetadata:
    """Tests for titles, authors and file names."""

    def test_title_single_and_many(self, make_article):
        one = [make_article(title="First")]
        many = one + [make_article(title="Second"), make_article(title="Third")]

        assert book_title(one) == "First"
        assert book_title(many) == "First and 2 more"
        assert book_title(many, "Weekend Reading") == "Weekend Reading"

    def test_author_deduplicated(self, make_article):
        articles = [make_article(byline="Ann"), make_article(byline=""), make_article(byline="Ann"), make_article(byline="Bo")]

        assert book_author(articles) == "Ann, Bo"
        assert book_author([make_article(byline=" ")]) == "Unknown"

    def test_safe_filename(self):
        assert safe_filename('What: "Is" This/That?') == "What Is This That"
        assert safe_filename("...") == "Untitled"

    def test_clean_html_strips_styling(self):
        out = clean_html('<div class="x" id="y"><p style="color:red">Hi</p><img src="https://a.test/i.png"></div>')

        assert "class=" not in out and "id=" not in out and "color:red" not in out
        assert "max-width: 100%" in out

    def test_clean_html_spaces_paragraphs_and_headings(self):
        out = clean_html('<h2 style="margin:0">Part</h2><p class="lead">Body</p>')

        assert '<h2 style="margin-top: 1.5em; margin-bottom: 1em;">Part</h2>' in out
        assert '<p style="margin-top: 1em; margin-bottom: 1em;">Body</p>' in out


@pytest.mark.unit
class TestEpubBuilder:
    """Tests for writing EPUB files."""

    def test_builds_epub_with_one_chapter_per_article(self, tmp_path, make_article):
        articles = [
            make_article(url="https://a.test/1", title="One", byline="Ann", html="<p>First body</p>"),
            make_article(url="https://a.test/2", title="Two", html="<p>Second body</p>"),
        ]

        path = EpubBuilder(tmp_path / "out").build(articles)

        assert path == tmp_path / "out" / "One and 1 more.epub"
        with zipfile.ZipFile(path) as book:
            names = book.namelist()
            chapters = [n for n in names if "chapter_" in n]
            assert len(chapters) == 2
            text = "".join(book.read(n).decode("utf-8") for n in chapters)
        assert "First body" in text and "Second body" in text
        assert "https://a.test/1" in text

    def test_empty_input_raises(self, tmp_path):
        with pytest.raises(PackagingError):
            EpubBuilder(tmp_path).build([])
