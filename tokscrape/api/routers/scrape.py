"""Scrape endpoints.

Scrapes run as background jobs: the POST returns 202 with a job id right away,
and GET /jobs/{job_id} reports progress and per-URL results.
"""

import logging
from datetime import datetime, timezone
from typing import Any, Optional

from fastapi import APIRouter, BackgroundTasks, Depends, HTTPException
from fastapi.responses import JSONResponse
from pydantic import BaseModel

from tokscrape.api.deps import (
    FetcherFactory,
    get_app_settings,
    get_fetcher_factory,
    get_registry,
    require_api_key,
)
from tokscrape.api.job_registry import JobRegistry, execute_job
from tokscrape.config import Settings
from tokscrape.crawler.tiktok.urls import is_tiktok_url

logger = logging.getLogger(__name__)

router = APIRouter(tags=["scrape"])


class ScrapeRequest(BaseModel):
    url: Optional[str] = None


class BatchScrapeRequest(BaseModel):
    urls: Any = None


def _now() -> str:
    return datetime.now(timezone.utc).isoformat()


def _bad_request(error: str) -> JSONResponse:
    return JSONResponse(status_code=400, content={"success": False, "error": error})


@router.post("/scrape", status_code=202, dependencies=[Depends(require_api_key)])
async def scrape(
    background_tasks: BackgroundTasks,
    body: Optional[ScrapeRequest] = None,
    registry: JobRegistry = Depends(get_registry),
    settings: Settings = Depends(get_app_settings),
    fetcher_factory: FetcherFactory = Depends(get_fetcher_factory),
):
    """Queue one TikTok URL."""
    if body is None or not body.url or not is_tiktok_url(body.url):
        return _bad_request("Invalid or missing TikTok URL")

    url = body.url.strip()
    logger.info(f"Received request to scrape: {url}")
    job = registry.create([url])
    background_tasks.add_task(execute_job, job, settings, fetcher_factory(settings))

    return {
        "success": True,
        "message": "Processing started",
        "url": url,
        "jobId": job.job_id,
        "timestamp": _now(),
    }


@router.post("/scrape/batch", status_code=202, dependencies=[Depends(require_api_key)])
async def scrape_batch(
    background_tasks: BackgroundTasks,
    body: Optional[BatchScrapeRequest] = None,
    registry: JobRegistry = Depends(get_registry),
    settings: Settings = Depends(get_app_settings),
    fetcher_factory: FetcherFactory = Depends(get_fetcher_factory),
):
    """Queue several TikTok URLs; entries that are not TikTok URLs are dropped."""
    if body is None or not isinstance(body.urls, list) or not body.urls:
        return _bad_request("Invalid or missing URLs array")

    urls = [u.strip() for u in body.urls if isinstance(u, str) and is_tiktok_url(u)]
    if not urls:
        return _bad_request("No valid TikTok URLs provided")

    logger.info(f"Received request to scrape {len(urls)} URLs")
    job = registry.create(urls)
    background_tasks.add_task(execute_job, job, settings, fetcher_factory(settings))

    return {
        "success": True,
        "message": "Batch processing started",
        "count": len(urls),
        "jobId": job.job_id,
        "timestamp": _now(),
    }


@router.get("/jobs/{job_id}", dependencies=[Depends(require_api_key)])
async def get_job(job_id: str, registry: JobRegistry = Depends(get_registry)) -> dict:
    """Job status and per-URL results."""
    job = registry.get(job_id)
    if job is None:
        raise HTTPException(status_code=404, detail="Job not found")
    return job.to_response()
