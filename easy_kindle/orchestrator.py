import logging
from pathlib import Path
from typing import Dict, List, Optional, Sequence

from easy_kindle.batch import BatchExtractor
from easy_kindle.classifier import is_url
from easy_kindle.dispatcher import MAIL_BODY, DocumentBuilder, MailFn
from easy_kindle.models import Attachment, ExtractedArticle, RunReport, SyncRecord, SyncStatus
from easy_kindle.sync_store import SyncStateStore

logger = logging.getLogger(__name__)


class SyncOrchestrator:
    """
    Processes the unsent URLs of a reading-list file: extract, package,
    deliver, then record each URL's outcome back into the file so the next
    run only retries what did not go through.
    """

    def __init__(self, store: SyncStateStore, batch: BatchExtractor, builder: DocumentBuilder, mail: MailFn):
        self.store = store
        self.batch = batch
        self.builder = builder
        self.mail = mail

    def _mark_all(self, path, records: Sequence[SyncRecord], status: SyncStatus) -> int:
        for record in records:
            self.store.mark(path, record.line_number, record.url, status)
        return len(records)

    def _deliver(self, articles: Sequence[ExtractedArticle], title: Optional[str] = None):
        """Package and mail articles as one document; any collaborator error propagates."""
        path = self.builder.build(articles, title)
        self.mail(path.stem, MAIL_BODY, [Attachment(path.name, path)])

    async def run(self, path, combined: bool = False) -> RunReport:
        path = Path(path)
        records = self.store.parse(path)
        pending = []
        for record in self.store.unprocessed(records):
            if is_url(record.url):
                pending.append(record)
            else:
                logger.warning(f"Line {record.line_number} is not a URL, skipping: {record.url!r}")
        if not pending:
            logger.info("✅ All URLs have already been sent")
            return RunReport(attempted=0, sent=0, failed=0, summary=self.store.summary(records))

        logger.info(f"🔄 Processing {len(pending)} unsent URL(s) from {path}")
        articles = await self.batch.extract_many([record.url for record in pending])

        sent = failed = 0
        if not articles:
            logger.error("❌ No content could be extracted")
            failed = self._mark_all(path, pending, SyncStatus.FAILED)
            return RunReport(len(pending), sent, failed, self.store.summary(self.store.parse(path)))

        # Pair by source URL; a failed extraction must not shift later articles
        by_url: Dict[str, List[SyncRecord]] = {}
        for record in pending:
            by_url.setdefault(record.url, []).append(record)

        extracted: List[ExtractedArticle] = []
        seen = set()
        for article in articles:
            if article.source_url in by_url and article.source_url not in seen:
                seen.add(article.source_url)
                extracted.append(article)

        missing = [record for record in pending if record.url not in seen]
        if missing:
            logger.warning(f"⚠️  {len(missing)} URL(s) could not be extracted")
            failed += self._mark_all(path, missing, SyncStatus.FAILED)

        if combined:
            delivered_records = [r for a in extracted for r in by_url[a.source_url]]
            try:
                self._deliver(extracted)
            except Exception as e:
                logger.error(f"❌ Delivery failed: {e}")
                failed += self._mark_all(path, delivered_records, SyncStatus.FAILED)
            else:
                sent += self._mark_all(path, delivered_records, SyncStatus.SENT)
        else:
            for article in extracted:
                article_records = by_url[article.source_url]
                try:
                    self._deliver([article])
                except Exception as e:
                    logger.error(f"❌ Delivery failed for {article.source_url}: {e}")
                    failed += self._mark_all(path, article_records, SyncStatus.FAILED)
                else:
                    sent += self._mark_all(path, article_records, SyncStatus.SENT)

        summary = self.store.summary(self.store.parse(path))
        logger.info(f"📊 Sent: {sent}, failed: {failed}, pending: {summary.pending}")
        return RunReport(attempted=len(pending), sent=sent, failed=failed, summary=summary)
