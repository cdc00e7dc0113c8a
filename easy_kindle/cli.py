import argparse
import asyncio
import functools
import logging
import sys
from pathlib import Path

from easy_kindle.batch import BatchExtractor
from easy_kindle.config import Config
from easy_kindle.dispatcher import Dispatcher
from easy_kindle.errors import ConfigError, EasyKindleError
from easy_kindle.extractor import Extractor
from easy_kindle.http_client import HTTPClient
from easy_kindle.mailer import send_mail_with_attachments
from easy_kindle.orchestrator import SyncOrchestrator
from easy_kindle.packaging import EpubBuilder
from easy_kindle.models import SyncStatus
from easy_kindle.sync_store import SyncStateStore

logger = logging.getLogger(__name__)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="easy-kindle",
        description="Send web articles and documents to your e-reader",
    )
    parser.add_argument("-v", "--verbose", action="store_true", help="enable debug logging")
    sub = parser.add_subparsers(dest="command", required=True)

    send = sub.add_parser("send", help="send files or URLs to your e-reader")
    send.add_argument("items", nargs="+", help="files, URLs, or link files to send")
    send.add_argument("--combined", action="store_true", help="bundle all articles into one EPUB")
    send.add_argument("--title", help="title for the generated EPUB")

    download = sub.add_parser("download", help="download files or URLs locally without sending")
    download.add_argument("items", nargs="+", help="URLs or link files to download")
    download.add_argument("--combined", action="store_true", help="bundle all articles into one EPUB")
    download.add_argument("--title", help="title for the generated EPUB")
    download.add_argument("-o", "--output", type=Path, help="directory to write EPUBs to")

    sync = sub.add_parser("sync", help="send the unsent URLs of your reading list")
    sync.add_argument("--file", type=Path, help="reading list file (defaults to EASY_KINDLE_SYNC_FILE)")
    sync.add_argument("--combined", action="store_true", help="bundle all articles into one EPUB")

    status = sub.add_parser("status", help="show which reading list URLs were sent")
    status.add_argument("--file", type=Path, help="reading list file (defaults to EASY_KINDLE_SYNC_FILE)")
    return parser


def _sync_file(args, config: Config) -> Path:
    path = args.file or config.sync_file_path
    if path is None:
        raise ConfigError("No reading list file given; pass --file or set EASY_KINDLE_SYNC_FILE")
    return path


def show_status(path: Path, store: SyncStateStore):
    records = store.parse(path)
    summary = store.summary(records)
    logger.info(
        f"📊 Sync file status: {summary.total} URL(s), "
        f"✅ sent {summary.sent}, ❌ failed {summary.failed}, ⏳ pending {summary.pending}"
    )
    for record in records:
        if record.status is SyncStatus.PENDING:
            logger.info(f"  ⏳ {record.url}")
        elif record.status is SyncStatus.FAILED:
            logger.info(f"  ⚠️  {record.url} (will retry)")


async def main(argv=None) -> int:
    args = build_parser().parse_args(argv)
    if args.verbose:
        logging.getLogger().setLevel(logging.DEBUG)

    config = Config.from_env()
    store = SyncStateStore()

    if args.command == "status":
        show_status(_sync_file(args, config), store)
        return 0

    output_dir = getattr(args, "output", None) or config.store_path
    builder = EpubBuilder(output_dir)
    mail = None
    if args.command in ("send", "sync"):
        config.require_delivery()
        mail = functools.partial(send_mail_with_attachments, config)

    async with HTTPClient() as http:
        batch = BatchExtractor(Extractor(http))

        if args.command == "sync":
            orchestrator = SyncOrchestrator(store, batch, builder, mail)
            report = await orchestrator.run(_sync_file(args, config), combined=args.combined)
            summary = report.summary
            logger.info(
                f"✅ Sync complete: {summary.sent} sent, {summary.failed} failed, "
                f"{summary.pending} pending ({report.sent} sent this run)"
            )
            return 0

        dispatcher = Dispatcher(batch, builder, mail)
        if args.command == "download":
            paths = await dispatcher.download(args.items, combined=args.combined, title=args.title)
            for path in paths:
                logger.info(f"💾 Saved {path}")
        else:
            await dispatcher.send(args.items, combined=args.combined, title=args.title)
    return 0


def run():
    logging.basicConfig(
        level=logging.INFO,
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s"
    )
    try:
        sys.exit(asyncio.run(main()))
    except EasyKindleError as e:
        logger.error(f"❌ {e}")
        sys.exit(1)


if __name__ == "__main__":
    run()
