"""In-memory tracking of scrape jobs submitted over HTTP.

A job is accepted immediately (202) and processed in the background; clients
poll GET /jobs/{job_id} for progress and per-URL results.
"""

import asyncio
import logging
from collections import OrderedDict
from datetime import datetime, timezone
from enum import Enum
from typing import Optional
from uuid import uuid4

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

from tokscrape.crawler.base import BaseFetcher, BatchResult
from tokscrape.config import Settings

logger = logging.getLogger(__name__)

MAX_TRACKED_JOBS = 500


class JobStatus(str, Enum):
    PENDING = "pending"
    RUNNING = "running"
    COMPLETED = "completed"
    FAILED = "failed"


class Job(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    job_id: str = Field(default_factory=lambda: str(uuid4()))
    status: JobStatus = JobStatus.PENDING
    urls: list[str]
    results: list[Optional[BatchResult]] = []
    error: Optional[str] = None
    created_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))
    finished_at: Optional[datetime] = None

    @property
    def done(self) -> list[BatchResult]:
        return [r for r in self.results if r is not None]

    def to_response(self) -> dict:
        done = self.done
        succeeded = sum(1 for r in done if r.success)
        return {
            "jobId": self.job_id,
            "status": self.status.value,
            "total": len(self.urls),
            "processed": len(done),
            "succeeded": succeeded,
            "failed": len(done) - succeeded,
            "results": [r.to_json_dict() if r else None for r in self.results],
            "error": self.error,
            "createdAt": self.created_at.isoformat(),
            "finishedAt": self.finished_at.isoformat() if self.finished_at else None,
        }


class JobRegistry:
    """Bounded map of recent jobs; the oldest are dropped past `max_jobs`."""

    def __init__(self, max_jobs: int = MAX_TRACKED_JOBS):
        self._max_jobs = max_jobs
        self._jobs: OrderedDict[str, Job] = OrderedDict()

    def create(self, urls: list[str]) -> Job:
        job = Job(urls=list(urls), results=[None] * len(urls))
        self._jobs[job.job_id] = job
        while len(self._jobs) > self._max_jobs:
            self._jobs.popitem(last=False)
        return job

    def get(self, job_id: str) -> Optional[Job]:
        return self._jobs.get(job_id)


async def execute_job(
    job: Job,
    settings: Settings,
    fetcher: Optional[BaseFetcher] = None,
) -> None:
    """Run a job to completion, recording each URL's result as it lands."""
    from tokscrape.jobs.scrape_job import run_scrape_job

    job.status = JobStatus.RUNNING

    async def record(index: int, result: BatchResult) -> None:
        job.results[index] = result

    try:
        summary = await run_scrape_job(job.urls, settings, on_result=record, fetcher=fetcher)
        job.results = list(summary.results)
        job.status = JobStatus.COMPLETED
        logger.info(
            f"Job {job.job_id} complete: {summary.succeeded} out of {summary.total} URLs successfully processed"
        )
    except asyncio.CancelledError:
        job.status = JobStatus.FAILED
        job.error = "cancelled"
        raise
    except Exception as e:
        logger.error(f"Job {job.job_id} failed: {e}", exc_info=True)
        job.status = JobStatus.FAILED
        job.error = str(e)
    finally:
        job.finished_at = datetime.now(timezone.utc)
