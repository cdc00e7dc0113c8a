import logging
from pathlib import Path
from typing import List, Sequence

from easy_kindle.batch import BatchExtractor
from easy_kindle.models import ExtractionOutcome, InputKind, InputRequest

logger = logging.getLogger(__name__)


def read_url_file(path) -> List[str]:
    lines = Path(path).read_text(encoding="utf-8").splitlines()
    return [line.strip() for line in lines if line.strip()]


async def process_requests(requests: Sequence[InputRequest], batch: BatchExtractor) -> List[ExtractionOutcome]:
    """
    Turn classified requests into extraction outcomes.

    URLs and URL files go through the batch extractor; local documents are
    passed through untouched for attaching as they are. A failure handling
    one request is recorded on its outcome and does not stop the others.
    """
    outcomes = []
    for request in requests:
        try:
            if request.kind is InputKind.URL:
                articles = await batch.extract_many([request.input])
                error = None if articles else "No readable content extracted"
                outcomes.append(ExtractionOutcome(request, articles=articles, error=error))
            elif request.kind is InputKind.URL_FILE:
                urls = read_url_file(request.input)
                articles = await batch.extract_many(urls)
                outcomes.append(ExtractionOutcome(request, articles=articles))
            else:
                outcomes.append(ExtractionOutcome(request, file_path=Path(request.input)))
        except Exception as e:
            logger.error(f"❌ Error processing {request.input}: {e}")
            outcomes.append(ExtractionOutcome(request, error=str(e)))
    return outcomes
