"""Tests for the Playwright page fetcher, with the browser mocked out."""

from unittest.mock import AsyncMock, MagicMock, patch

import pytest
from playwright.async_api import Error as PlaywrightError, TimeoutError as PlaywrightTimeoutError

from tokscrape.config import ScraperSettings
from tokscrape.crawler.browser import PageFetcher
from tokscrape.crawler.tiktok.constants import JS_SNAPSHOT_PAGE
from tokscrape.errors import FetchError, InvalidUrlError, NavigationTimeoutError

URL = "https://www.tiktok.com/@alice/video/123456"


def mock_browser(goto_error: Exception | None = None):
    """Build an async_playwright() stand-in and return (factory, browser, context, page)."""
    page = MagicMock()
    page.goto = AsyncMock(side_effect=goto_error)
    page.wait_for_selector = AsyncMock()
    page.screenshot = AsyncMock()

    async def evaluate(script, arg=None):
        if script == JS_SNAPSHOT_PAGE:
            return {
                "title": "Alice dance | TikTok",
                "html": "<html></html>",
                "text": "12 likes",
                "meta": {"og:title": "Alice on TikTok"},
                "texts": {'span[data-e2e="browse-video-desc"]': ["hello #fun"]},
                "mediaSources": {"video": ["https://v16.tiktokcdn.com/v.mp4"]},
            }
        return None

    page.evaluate = AsyncMock(side_effect=evaluate)

    context = MagicMock()
    context.add_init_script = AsyncMock()
    context.new_page = AsyncMock(return_value=page)
    context.close = AsyncMock()

    browser = MagicMock()
    browser.new_context = AsyncMock(return_value=context)
    browser.close = AsyncMock()

    playwright = MagicMock()
    playwright.chromium.launch = AsyncMock(return_value=browser)
    playwright.stop = AsyncMock()

    factory = MagicMock()
    factory.return_value.start = AsyncMock(return_value=playwright)
    return factory, playwright, browser, context, page


@pytest.fixture
def scraper_settings() -> ScraperSettings:
    return ScraperSettings(settle_delay_ms=10, post_scroll_delay_ms=0, navigation_timeout_ms=1000)


@pytest.mark.asyncio
async def test_invalid_url_never_launches_browser(scraper_settings) -> None:
    factory = MagicMock()
    with patch("tokscrape.crawler.browser.async_playwright", factory):
        with pytest.raises(InvalidUrlError):
            await PageFetcher(scraper_settings).fetch("https://example.com/video/1")
    factory.assert_not_called()


@pytest.mark.asyncio
async def test_fetch_returns_snapshot_and_releases_browser(scraper_settings) -> None:
    factory, playwright, browser, context, page = mock_browser()
    with patch("tokscrape.crawler.browser.async_playwright", factory):
        raw_page = await PageFetcher(scraper_settings).fetch(URL)

    assert raw_page.url == URL
    assert raw_page.title == "Alice dance | TikTok"
    assert raw_page.texts['span[data-e2e="browse-video-desc"]'] == ["hello #fun"]
    assert raw_page.media_sources["video"] == ["https://v16.tiktokcdn.com/v.mp4"]

    page.goto.assert_awaited_once_with(URL, timeout=1000, wait_until="domcontentloaded")
    context.add_init_script.assert_awaited_once()
    context.close.assert_awaited_once()
    browser.close.assert_awaited_once()
    playwright.stop.assert_awaited_once()


@pytest.mark.asyncio
async def test_navigation_timeout_is_classified_and_cleans_up(scraper_settings) -> None:
    factory, playwright, browser, context, page = mock_browser(
        goto_error=PlaywrightTimeoutError("Timeout 1000ms exceeded")
    )
    with patch("tokscrape.crawler.browser.async_playwright", factory):
        with pytest.raises(NavigationTimeoutError):
            await PageFetcher(scraper_settings).fetch(URL)

    context.close.assert_awaited_once()
    browser.close.assert_awaited_once()
    playwright.stop.assert_awaited_once()


@pytest.mark.asyncio
async def test_browser_error_becomes_fetch_error(scraper_settings) -> None:
    factory, playwright, browser, context, page = mock_browser(
        goto_error=PlaywrightError("net::ERR_NAME_NOT_RESOLVED")
    )
    with patch("tokscrape.crawler.browser.async_playwright", factory):
        with pytest.raises(FetchError) as exc:
            await PageFetcher(scraper_settings).fetch(URL)

    assert not isinstance(exc.value, NavigationTimeoutError)
    browser.close.assert_awaited_once()


@pytest.mark.asyncio
async def test_shared_browser_closed_only_on_exit(scraper_settings) -> None:
    factory, playwright, browser, context, page = mock_browser()
    with patch("tokscrape.crawler.browser.async_playwright", factory):
        async with PageFetcher(scraper_settings) as fetcher:
            await fetcher.fetch(URL)
            await fetcher.fetch(URL)
            browser.close.assert_not_awaited()
            assert context.close.await_count == 2

    playwright.chromium.launch.assert_awaited_once()
    browser.close.assert_awaited_once()
    playwright.stop.assert_awaited_once()


@pytest.mark.asyncio
async def test_serverless_adds_sandbox_flags() -> None:
    fetcher = PageFetcher(ScraperSettings(serverless=True))
    assert "--no-sandbox" in fetcher._launch_options()["args"]
    assert "--no-sandbox" not in PageFetcher(ScraperSettings())._launch_options()["args"]


@pytest.mark.asyncio
async def test_browser_launch_failure_is_fetch_error(scraper_settings) -> None:
    factory, playwright, browser, context, page = mock_browser()
    playwright.chromium.launch.side_effect = PlaywrightError("Executable doesn't exist")
    with patch("tokscrape.crawler.browser.async_playwright", factory):
        with pytest.raises(FetchError):
            await PageFetcher(scraper_settings).fetch(URL)
        with pytest.raises(FetchError):
            async with PageFetcher(scraper_settings):
                pass

    assert playwright.stop.await_count == 2
