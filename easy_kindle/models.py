from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from typing import FrozenSet, List, Optional


class InputKind(Enum):
    URL = "url"
    URL_FILE = "url_file"
    LOCAL_DOCUMENT = "local_document"


@dataclass(frozen=True)
class InputRequest:
    input: str
    kind: InputKind


@dataclass(frozen=True)
class ExtractedArticle:
    source_url: str
    title: str
    html_content: str  # Normalized readability fragment
    plain_text: str
    length: int
    excerpt: str
    byline: str
    published_time: Optional[str] = None
    image_urls: FrozenSet[str] = frozenset()


@dataclass
class ExtractionOutcome:
    request: InputRequest
    articles: List[ExtractedArticle] = field(default_factory=list)
    file_path: Optional[Path] = None  # Set for local documents only
    error: Optional[str] = None

    @property
    def ok(self) -> bool:
        return self.error is None


class SyncStatus(Enum):
    PENDING = "PENDING"
    SENT = "SENT"
    FAILED = "FAILED"


@dataclass
class SyncRecord:
    url: str
    status: SyncStatus
    line_number: int  # Zero-based position in the sync file
    raw_line: str


@dataclass
class SyncSummary:
    total: int
    sent: int
    failed: int
    pending: int


@dataclass
class RunReport:
    attempted: int
    sent: int
    failed: int
    summary: SyncSummary


@dataclass(frozen=True)
class Attachment:
    filename: str
    path: Path
