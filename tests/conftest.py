"""Shared fixtures: settings on a temp sqlite file, page snapshots, a fake fetcher."""

from typing import Callable, Optional

import pytest

from tokscrape.config import (
    ApiSettings,
    DatabaseSettings,
    ScraperSettings,
    Settings,
    StorageSettings,
)
from tokscrape.crawler.base import BaseFetcher, RawPage
from tokscrape.crawler.tiktok.constants import HASHTAG_SELECTOR, LIKE_SELECTORS

ALICE_URL = "https://www.tiktok.com/@alice/video/7234567890123456789"


def make_page(url: str = ALICE_URL, **kwargs) -> RawPage:
    return RawPage(url=url, **kwargs)


def alice_page(url: str = ALICE_URL) -> RawPage:
    return make_page(
        url,
        title="Alice dance | TikTok",
        meta={
            "og:title": "Alice on TikTok",
            "og:description": "Dancing #fun #dance",
            "og:image": "https://p16.tiktokcdn.com/thumb.jpg",
        },
        texts={
            LIKE_SELECTORS[0]: ["1.2K"],
            HASHTAG_SELECTOR: ["#fun", "#dance"],
        },
    )


class FakeFetcher(BaseFetcher):
    """Serves pages from a callable; raising from it simulates a fetch failure."""

    def __init__(self, page_for: Optional[Callable[[str], RawPage]] = None):
        self.page_for = page_for or alice_page
        self.fetched: list[str] = []
        self.entered = False
        self.exited = False

    async def __aenter__(self):
        self.entered = True
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        self.exited = True

    async def fetch(self, url: str, timeout_ms: Optional[int] = None) -> RawPage:
        self.fetched.append(url)
        return self.page_for(url)


@pytest.fixture
def settings(tmp_path) -> Settings:
    return Settings(
        log_level="DEBUG",
        scraper=ScraperSettings(settle_delay_ms=0, post_scroll_delay_ms=0),
        database=DatabaseSettings(url=f"sqlite:///{tmp_path / 'db' / 'tiktok.db'}"),
        storage=StorageSettings(results_dir=str(tmp_path / "results"), use_remote=False),
        api=ApiSettings(api_key="", environment="test"),
    )


@pytest.fixture
def fake_fetcher() -> FakeFetcher:
    return FakeFetcher()
