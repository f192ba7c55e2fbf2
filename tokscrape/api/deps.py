"""Shared dependencies for API endpoints."""

from functools import lru_cache
from typing import Callable, Optional

from fastapi import Depends, Header, HTTPException, Query

from tokscrape.api.job_registry import JobRegistry
from tokscrape.config import Settings, get_settings
from tokscrape.crawler.base import BaseFetcher
from tokscrape.services.data_service import DataService

FetcherFactory = Callable[[Settings], Optional[BaseFetcher]]

_registry = JobRegistry()


def get_registry() -> JobRegistry:
    """Get the process-wide job registry."""
    return _registry


def get_app_settings() -> Settings:
    return get_settings()


@lru_cache
def get_data_service() -> DataService:
    """Shared DataService for read-only endpoints."""
    return DataService(get_settings())


def get_fetcher_factory() -> FetcherFactory:
    """Factory for the fetcher a job uses; None selects the Playwright fetcher."""
    return lambda settings: None


async def require_api_key(
    x_api_key: Optional[str] = Header(default=None),
    api_key: Optional[str] = Query(default=None, alias="apiKey"),
    settings: Settings = Depends(get_app_settings),
) -> None:
    """Check the shared secret from the `x-api-key` header or `apiKey` query param.

    With no API_KEY configured every request is let through; the server warns once at startup.
    """
    expected = settings.api.api_key
    if not expected:
        return

    provided = x_api_key or api_key
    if not provided or provided != expected:
        raise HTTPException(status_code=401, detail="Unauthorized: Invalid or missing API key")
