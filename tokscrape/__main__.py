"""Command-line entry point.

Usage:
    python -m tokscrape <tiktok-url> [<tiktok-url> ...]
    python -m tokscrape --batch urls.txt
    python -m tokscrape --file urls.txt --summary
    python -m tokscrape --import-dir results/
    python -m tokscrape --setup-storage
"""

import argparse
import asyncio
import logging
import sys
from pathlib import Path
from typing import Optional

from tokscrape.config import Settings, get_settings
from tokscrape.crawler.tiktok.urls import is_tiktok_url, read_url_file
from tokscrape.errors import ConfigurationError, ScraperError
from tokscrape.utils.logging import setup_logging

logger = logging.getLogger(__name__)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="tokscrape", description="Scrape TikTok video pages")
    parser.add_argument("urls", nargs="*", help="TikTok video URLs")
    source = parser.add_mutually_exclusive_group()
    source.add_argument("--batch", "--file", dest="url_file", metavar="FILE", help="File with one URL per line")
    source.add_argument(
        "--import-dir",
        nargs="?",
        const="",
        metavar="DIR",
        help="Upload existing JSON results (default: the results directory)",
    )
    source.add_argument("--setup-storage", action="store_true", help="Create the object-storage bucket")
    parser.add_argument("--extract-only", action="store_true", help="Write JSON files only, skip the database")
    parser.add_argument("--summary", action="store_true", help="Write a batch summary JSON")
    parser.add_argument("--debug", action="store_true", help="Show the browser and save screenshots")
    parser.add_argument("--concurrency", type=int, help="URLs processed at once")
    parser.add_argument("--timeout", type=float, help="Per-URL deadline in seconds")
    parser.add_argument("--log-level", help="Logging level (default: LOG_LEVEL or INFO)")
    return parser


def collect_urls(args: argparse.Namespace) -> Optional[list[str]]:
    """URLs to scrape, or None when the input is missing or unusable."""
    if args.url_file:
        path = Path(args.url_file)
        if not path.is_file():
            logger.error(f"Error: File {path} does not exist")
            return None
        urls = read_url_file(path.read_text(encoding="utf-8").splitlines())
        if not urls:
            logger.error("No valid TikTok URLs found in the file")
            return None
        logger.info(f"Found {len(urls)} TikTok URLs in the file")
        return urls

    if not args.urls:
        logger.error("Please provide at least one TikTok URL, or --batch <file>")
        return None

    urls = [u for u in args.urls if is_tiktok_url(u)]
    if not urls:
        logger.error("No valid TikTok URLs provided")
        return None
    skipped = len(args.urls) - len(urls)
    if skipped:
        logger.warning(f"Ignoring {skipped} argument(s) that are not TikTok URLs")
    return urls


def apply_overrides(settings: Settings, args: argparse.Namespace) -> Settings:
    scraper = settings.scraper.model_copy(
        update={
            key: value
            for key, value in {
                "concurrency": args.concurrency,
                "item_timeout": args.timeout,
                "debug": True if args.debug else None,
                "headless": False if args.debug else None,
            }.items()
            if value is not None
        }
    )
    storage = settings.storage
    if args.summary:
        storage = storage.model_copy(update={"save_summary": True})
    return settings.model_copy(update={"scraper": scraper, "storage": storage})


async def run(args: argparse.Namespace, settings: Settings) -> int:
    from tokscrape.jobs.scrape_job import run_scrape_job
    from tokscrape.services.data_service import DataService
    from tokscrape.services.storage import ResultStorage

    if args.setup_storage:
        ok = await ResultStorage(settings.storage).ensure_bucket()
        return 0 if ok else 1

    if args.import_dir is not None:
        service = DataService(settings)
        async with service:
            count = await service.import_directory(args.import_dir or None)
        print(f"Imported {count} record(s)")
        return 0

    urls = collect_urls(args)
    if urls is None:
        return 1

    summary = await run_scrape_job(urls, settings, extract_only=args.extract_only)
    for result in summary.results:
        status = "ok" if result.success else f"FAILED ({result.error_type}: {result.error})"
        print(f"{result.url}: {status}")
    print(f"\nProcessing complete: {summary.succeeded} out of {summary.total} URLs successfully processed")
    return 0


def main(argv: Optional[list[str]] = None) -> int:
    args = build_parser().parse_args(argv)
    settings = get_settings()
    setup_logging(args.log_level or settings.log_level)
    settings = apply_overrides(settings, args)

    try:
        return asyncio.run(run(args, settings))
    except ConfigurationError as e:
        logger.error(f"Configuration error: {e}")
        return 1
    except ScraperError as e:
        logger.error(f"Scrape aborted: {e}")
        return 1
    except KeyboardInterrupt:
        logger.info("Interrupted")
        return 130


if __name__ == "__main__":
    sys.exit(main())
