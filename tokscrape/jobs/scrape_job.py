"""Batch scrape job: fetch → extract → normalize → persist for a list of URLs.

Each URL is processed independently:
1. Fetch the rendered page (fresh browser context)
2. Extract raw fields
3. Normalize into a VideoRecord (derives the id)
4. Persist: audit JSON + database upsert (or audit JSON only when extract-only)

A failure in any step becomes a failed BatchResult for that URL and the batch
moves on. Results always come back in input order.
"""

import asyncio
import logging
import time
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Awaitable, Callable, Optional

from tokscrape.config import Settings
from tokscrape.crawler.base import BaseFetcher, BatchResult
from tokscrape.crawler.tiktok.extractor import TikTokExtractor
from tokscrape.crawler.tiktok.normalizer import normalize
from tokscrape.errors import FetchError, NavigationTimeoutError
from tokscrape.services.data_service import DataService
from tokscrape.services.storage import ResultStorage

logger = logging.getLogger(__name__)

ProgressCallback = Callable[[int, BatchResult], Awaitable[None]]


@dataclass
class BatchSummary:
    """Outcome of a batch, results in input order."""

    results: list[BatchResult] = field(default_factory=list)
    started_at: Optional[datetime] = None
    completed_at: Optional[datetime] = None

    @property
    def total(self) -> int:
        return len(self.results)

    @property
    def succeeded(self) -> int:
        return sum(1 for r in self.results if r.success)

    @property
    def failed(self) -> int:
        return self.total - self.succeeded

    def to_dict(self) -> dict:
        return {
            "total": self.total,
            "succeeded": self.succeeded,
            "failed": self.failed,
            "startedAt": self.started_at.isoformat() if self.started_at else None,
            "completedAt": self.completed_at.isoformat() if self.completed_at else None,
            "results": [r.to_json_dict() for r in self.results],
        }


class ScrapePipeline:
    """Runs the scrape stages for one URL or a batch of URLs."""

    def __init__(
        self,
        fetcher: BaseFetcher,
        service: Optional[DataService] = None,
        storage: Optional[ResultStorage] = None,
        extractor: Optional[TikTokExtractor] = None,
        concurrency: int = 1,
        item_timeout: Optional[float] = None,
        save_summary: bool = False,
    ):
        """Initialize the pipeline.

        Args:
            fetcher: Page fetcher (real browser or a test double).
            service: Database sink. None means extract-only: audit JSON only.
            storage: Audit storage for extract-only records and batch summaries.
                Defaults to the service's storage.
            extractor: Field extractor.
            concurrency: URLs processed at once (1 = sequential).
            item_timeout: Per-URL deadline in seconds.
            save_summary: Write a summary JSON after each batch.
        """
        if service is None and storage is None:
            raise ValueError("Extract-only pipelines need a ResultStorage")
        self.fetcher = fetcher
        self.service = service
        self.storage = storage or service.storage
        self.extractor = extractor or TikTokExtractor()
        self.concurrency = max(1, concurrency)
        self.item_timeout = item_timeout
        self.save_summary = save_summary

    async def _process(self, url: str) -> BatchResult:
        page = await self.fetcher.fetch(url)
        raw = self.extractor.extract(page)
        record = normalize(raw, url)

        if self.service is not None:
            await self.service.persist(record)
        else:
            await self.storage.save_record(record)

        return BatchResult(url=url, success=True, record=record)

    @staticmethod
    def _failed(url: str, error: Exception) -> BatchResult:
        return BatchResult(url=url, success=False, error=str(error), error_type=type(error).__name__)

    async def fail_all(
        self,
        urls: list[str],
        error: Exception,
        on_result: Optional[ProgressCallback] = None,
    ) -> BatchSummary:
        """Record every URL as failed with the same error (e.g. no browser available)."""
        summary = BatchSummary(started_at=datetime.now(timezone.utc))
        for index, url in enumerate(urls):
            result = self._failed(url, error)
            summary.results.append(result)
            if self.service is not None:
                self.service.log_scrape(url, False, error=result.error)
            if on_result is not None:
                await on_result(index, result)
        summary.completed_at = datetime.now(timezone.utc)
        return summary

    async def scrape_one(self, url: str) -> BatchResult:
        """Process one URL. Never raises; failures come back as results."""
        started = time.monotonic()
        try:
            if self.item_timeout:
                try:
                    result = await asyncio.wait_for(self._process(url), timeout=self.item_timeout)
                except asyncio.TimeoutError as e:
                    raise NavigationTimeoutError(
                        f"Deadline of {self.item_timeout}s exceeded for {url}"
                    ) from e
            else:
                result = await self._process(url)
        except Exception as e:
            logger.error(f"Failed to process URL: {url} ({type(e).__name__}: {e})")
            result = self._failed(url, e)
        else:
            logger.info(f"Successfully processed URL: {url} (TikTok ID: {result.record.id})")

        if self.service is not None:
            duration_ms = int((time.monotonic() - started) * 1000)
            target = result.record.id if result.record else url
            self.service.log_scrape(target, result.success, duration_ms, result.error)
        return result

    async def run(self, urls: list[str], on_result: Optional[ProgressCallback] = None) -> BatchSummary:
        """Process every URL and return results in input order.

        Args:
            urls: URLs to scrape.
            on_result: Awaited with (index, result) as each URL finishes.
        """
        summary = BatchSummary(started_at=datetime.now(timezone.utc))
        semaphore = asyncio.Semaphore(self.concurrency)

        async def bounded(index: int, url: str) -> BatchResult:
            async with semaphore:
                logger.info(f"Processing URL {index + 1}/{len(urls)}: {url}")
                result = await self.scrape_one(url)
            if on_result is not None:
                try:
                    await on_result(index, result)
                except Exception as e:
                    logger.warning(f"Progress callback failed for {url}: {e}")
            return result

        summary.results = list(await asyncio.gather(*(bounded(i, u) for i, u in enumerate(urls))))
        summary.completed_at = datetime.now(timezone.utc)

        logger.info(
            f"Processing complete: {summary.succeeded} out of {summary.total} URLs successfully processed"
        )

        if self.save_summary:
            try:
                await self.storage.save_summary(summary.to_dict())
            except Exception as e:
                logger.warning(f"Error saving summary: {e}")

        return summary


async def run_scrape_job(
    urls: list[str],
    settings: Settings,
    extract_only: bool = False,
    on_result: Optional[ProgressCallback] = None,
    fetcher: Optional[BaseFetcher] = None,
) -> BatchSummary:
    """Build the pipeline from settings and scrape `urls`.

    Raises:
        ConfigurationError: backend settings are unusable (before any fetch).
    """
    from tokscrape.crawler.browser import PageFetcher

    settings.validate_backend()
    storage = ResultStorage(settings.storage)
    service = None if extract_only else DataService(settings, storage=storage)

    async with storage:
        fetcher = fetcher or PageFetcher(settings.scraper, storage=storage)
        pipeline = ScrapePipeline(
            fetcher,
            service=service,
            storage=storage,
            concurrency=settings.scraper.concurrency,
            item_timeout=settings.scraper.item_timeout,
            save_summary=settings.storage.save_summary,
        )
        try:
            await fetcher.__aenter__()
        except FetchError as e:
            logger.error(f"Browser unavailable, failing {len(urls)} URLs: {e}")
            return await pipeline.fail_all(urls, e, on_result=on_result)
        try:
            return await pipeline.run(urls, on_result=on_result)
        finally:
            await fetcher.__aexit__(None, None, None)
