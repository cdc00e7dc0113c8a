import logging
import os
import shutil
import tempfile
from pathlib import Path
from typing import Iterable, List, Tuple, Union

from easy_kindle.errors import SyncFileError
from easy_kindle.models import SyncRecord, SyncStatus, SyncSummary

logger = logging.getLogger(__name__)

PathLike = Union[str, Path]

STATUS_SUFFIXES = {
    SyncStatus.SENT: " - SENT",
    SyncStatus.FAILED: " - FAILED",
}


def split_status(line: str) -> Tuple[str, SyncStatus]:
    """Split a trimmed sync line into its bare URL and recorded status."""
    for status, suffix in STATUS_SUFFIXES.items():
        if line.endswith(suffix):
            return line[: -len(suffix)].strip(), status
    return line, SyncStatus.PENDING


class SyncStateStore:
    """
    Reading-list file doubling as per-URL delivery state.

    Every non-blank line starting with "http" is a record; a trailing
    " - SENT" or " - FAILED" records its outcome. Records are addressed by
    their zero-based line number, which stays valid for a whole run because
    lines are only ever rewritten in place.

    There is no locking: the file must have a single writer.
    """

    def _read_lines(self, path: PathLike) -> List[str]:
        path = Path(path)
        if not path.is_file():
            raise SyncFileError(f"Sync file not found: {path}")
        try:
            # newline="" keeps "\r\n" endings intact when the file is written back
            with open(path, encoding="utf-8", newline="") as f:
                content = f.read()
        except (OSError, UnicodeDecodeError) as e:
            raise SyncFileError(f"Could not read sync file {path}: {e}") from e
        return content.split("\n")

    def _write_lines(self, path: PathLike, lines: List[str]):
        # Write next to the real file so a symlinked list keeps its link
        path = Path(path).resolve()
        fd, tmp_name = tempfile.mkstemp(prefix=f".{path.name}.", dir=path.parent)
        try:
            with os.fdopen(fd, "w", encoding="utf-8", newline="") as f:
                f.write("\n".join(lines))
            shutil.copymode(path, tmp_name)
            os.replace(tmp_name, path)
        except OSError as e:
            if os.path.exists(tmp_name):
                os.unlink(tmp_name)
            raise SyncFileError(f"Could not write sync file {path}: {e}") from e

    def parse(self, path: PathLike) -> List[SyncRecord]:
        records = []
        for index, raw_line in enumerate(self._read_lines(path)):
            line = raw_line.strip()
            if not line or not line.startswith("http"):
                continue
            url, status = split_status(line)
            records.append(SyncRecord(url=url, status=status, line_number=index, raw_line=raw_line))
        logger.debug(f"Parsed {len(records)} URL(s) from {path}")
        return records

    @staticmethod
    def unprocessed(records: Iterable[SyncRecord]) -> List[SyncRecord]:
        """Records still to deliver (pending or previously failed), in file order."""
        return [r for r in records if r.status in (SyncStatus.PENDING, SyncStatus.FAILED)]

    def mark(self, path: PathLike, line_number: int, url: str, status: SyncStatus):
        """
        Rewrite one line as "<url> - <STATUS>".

        The file is re-read on every call since earlier marks in the same run
        may have changed it. A SENT line is never turned back into FAILED.
        """
        if status not in STATUS_SUFFIXES:
            raise ValueError(f"Can only mark SENT or FAILED, got {status}")

        lines = self._read_lines(path)
        if not 0 <= line_number < len(lines):
            logger.warning(f"Line {line_number} is out of range for {path}, not marking {url}")
            return

        current = lines[line_number].strip()
        _, current_status = split_status(current)
        if current_status is SyncStatus.SENT and status is SyncStatus.FAILED:
            logger.warning(f"Refusing to downgrade already sent URL on line {line_number}: {url}")
            return

        clean_url, _ = split_status(url.strip())
        # Keep a trailing "\r" so CRLF files stay consistent
        ending = "\r" if lines[line_number].endswith("\r") else ""
        new_line = f"{clean_url}{STATUS_SUFFIXES[status]}{ending}"
        if lines[line_number] == new_line:
            return

        lines[line_number] = new_line
        self._write_lines(path, lines)
        logger.debug(f"Marked line {line_number} as {status.value}: {clean_url}")

    @staticmethod
    def summary(records: Iterable[SyncRecord]) -> SyncSummary:
        records = list(records)
        return SyncSummary(
            total=len(records),
            sent=sum(1 for r in records if r.status is SyncStatus.SENT),
            failed=sum(1 for r in records if r.status is SyncStatus.FAILED),
            pending=sum(1 for r in records if r.status is SyncStatus.PENDING),
        )
