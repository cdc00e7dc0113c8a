import logging
from pathlib import Path
from typing import Callable, List, Optional, Protocol, Sequence

from easy_kindle.batch import BatchExtractor
from easy_kindle.classifier import classify
from easy_kindle.errors import EasyKindleError
from easy_kindle.handler import process_requests
from easy_kindle.models import Attachment, ExtractedArticle

logger = logging.getLogger(__name__)

MAIL_BODY = "Sent with easy-kindle."

MailFn = Callable[[str, str, Sequence[Attachment]], None]


class DocumentBuilder(Protocol):
    def build(self, articles: Sequence[ExtractedArticle], title: Optional[str] = None) -> Path: ...


def package_articles(
    builder: DocumentBuilder,
    articles: Sequence[ExtractedArticle],
    combined: bool,
    title: Optional[str] = None,
) -> List[Path]:
    """Build one document for all articles, or one per article. Failed builds are skipped."""
    if not articles:
        return []
    groups = [list(articles)] if combined else [[article] for article in articles]

    paths = []
    for group in groups:
        try:
            paths.append(builder.build(group, title))
        except Exception as e:
            logger.error(f"Packaging failed for {group[0].source_url}: {e}")
    return paths


class Dispatcher:
    """Sends (or just downloads) ad-hoc URLs, URL files and local documents."""

    def __init__(self, batch: BatchExtractor, builder: DocumentBuilder, mail: Optional[MailFn] = None):
        self.batch = batch
        self.builder = builder
        self.mail = mail

    async def _collect(self, inputs: Sequence[str]):
        requests = classify(inputs)
        outcomes = await process_requests(requests, self.batch)

        articles = []
        documents = []
        for outcome in outcomes:
            if not outcome.ok:
                logger.warning(f"Skipping {outcome.request.input}: {outcome.error}")
                continue
            articles.extend(outcome.articles)
            if outcome.file_path is not None:
                documents.append(outcome.file_path)
        return articles, documents

    async def download(self, inputs: Sequence[str], combined: bool = False, title: Optional[str] = None) -> List[Path]:
        articles, _ = await self._collect(inputs)
        return package_articles(self.builder, articles, combined, title)

    async def send(self, inputs: Sequence[str], combined: bool = False, title: Optional[str] = None) -> List[Path]:
        """
        Deliver every extracted article (as EPUB) and every local document,
        one mail per document. Returns the documents that were delivered.
        """
        if self.mail is None:
            raise EasyKindleError("No delivery configured")

        articles, documents = await self._collect(inputs)
        to_send = package_articles(self.builder, articles, combined, title) + documents
        if not to_send:
            logger.warning("Nothing to send.")
            return []

        delivered = []
        for path in to_send:
            try:
                self.mail(path.stem, MAIL_BODY, [Attachment(path.name, path)])
                delivered.append(path)
            except Exception as e:
                logger.error(f"❌ Delivery failed for {path.name}: {e}")

        logger.info(f"Delivered {len(delivered)}/{len(to_send)} document(s)")
        return delivered
