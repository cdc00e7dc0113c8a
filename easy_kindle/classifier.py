import logging
from pathlib import Path
from typing import Iterable, List

from easy_kindle.models import InputKind, InputRequest

logger = logging.getLogger(__name__)

DOCUMENT_EXTENSIONS = {".mobi", ".pdf", ".epub", ".azw3", ".txt"}


def is_url(value: str) -> bool:
    return value.startswith("http://") or value.startswith("https://")


def is_url_file(value: str) -> bool:
    """True if value names an existing file whose every non-blank line is a URL."""
    path = Path(value)
    try:
        if not path.is_file():
            return False
        lines = [line.strip() for line in path.read_text(encoding="utf-8").splitlines()]
    except (OSError, UnicodeDecodeError):
        return False
    return all(line.startswith("http") for line in lines if line)


def is_document(value: str) -> bool:
    path = Path(value)
    return path.is_file() and path.suffix.lower() in DOCUMENT_EXTENSIONS


def classify(args: Iterable[str]) -> List[InputRequest]:
    """
    Tag each raw argument as a URL, a file of URLs or a local document.
    Inputs matching none of them are dropped with a warning.
    """
    requests = []
    for arg in args:
        if is_url(arg):
            requests.append(InputRequest(arg, InputKind.URL))
        elif is_url_file(arg):
            requests.append(InputRequest(arg, InputKind.URL_FILE))
        elif is_document(arg):
            requests.append(InputRequest(arg, InputKind.LOCAL_DOCUMENT))
        else:
            logger.warning(f"Could not classify input {arg!r}, skipping...")
    return requests
