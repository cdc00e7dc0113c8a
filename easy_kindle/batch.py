import asyncio
import logging
from typing import List, Optional, Protocol, Sequence

from easy_kindle.models import ExtractedArticle

logger = logging.getLogger(__name__)

GROUP_SIZE = 3


class ArticleSource(Protocol):
    async def extract(self, url: str) -> Optional[ExtractedArticle]: ...


class BatchExtractor:
    """
    Extracts many URLs, at most GROUP_SIZE at a time.

    URLs are processed in consecutive groups; every member of a group runs
    concurrently and the next group only starts once the whole group has
    settled. A member that fails or finds nothing is skipped without
    affecting the rest of the batch.
    """

    def __init__(self, extractor: ArticleSource, group_size: int = GROUP_SIZE):
        self.extractor = extractor
        self.group_size = group_size

    async def _extract_one(self, url: str) -> Optional[ExtractedArticle]:
        try:
            return await self.extractor.extract(url)
        except Exception as e:
            logger.warning(f"❌ Error extracting {url}: {e}")
            return None

    async def extract_many(self, urls: Sequence[str]) -> List[ExtractedArticle]:
        logger.info(f"📚 Extracting {len(urls)} webpage(s)...")
        results: List[ExtractedArticle] = []

        for start in range(0, len(urls), self.group_size):
            group = urls[start:start + self.group_size]
            tasks = [asyncio.ensure_future(self._extract_one(url)) for url in group]
            # Collect in settle order; _extract_one never raises
            for finished in asyncio.as_completed(tasks):
                article = await finished
                if article is not None:
                    results.append(article)

        logger.info(f"✅ Successfully extracted {len(results)}/{len(urls)} webpages")
        return results
