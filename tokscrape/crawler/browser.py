"""Playwright page fetcher for TikTok video pages.

Each fetch gets its own browser context (no cookies or storage shared between
URLs). The browser process itself is either launched for a single fetch, or
shared across fetches while the fetcher is used as an async context manager:

    async with PageFetcher(settings) as fetcher:
        page = await fetcher.fetch("https://www.tiktok.com/@user/video/123")
"""

import asyncio
import logging
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Optional, Self

from playwright.async_api import (
    Browser,
    BrowserContext,
    Error as PlaywrightError,
    Page,
    Playwright,
    TimeoutError as PlaywrightTimeoutError,
    async_playwright,
)

from tokscrape.config import ScraperSettings
from tokscrape.crawler.base import BaseFetcher, RawPage
from tokscrape.crawler.tiktok.constants import (
    ALL_TEXT_SELECTORS,
    EXTRA_HTTP_HEADERS,
    JS_SNAPSHOT_PAGE,
    LAUNCH_ARGS,
    MEDIA_SELECTORS,
    READY_SELECTOR,
    SERVERLESS_LAUNCH_ARGS,
    STEALTH_JS,
)
from tokscrape.crawler.tiktok.urls import validate_tiktok_url
from tokscrape.errors import FetchError, NavigationTimeoutError

logger = logging.getLogger(__name__)


class PageFetcher(BaseFetcher):
    """Load a TikTok page in headless Chromium and snapshot the rendered DOM."""

    def __init__(self, settings: ScraperSettings, storage=None):
        """Initialize the fetcher.

        Args:
            settings: Browser, timeout and debug settings.
            storage: Optional ResultStorage used to upload debug screenshots.
        """
        self.settings = settings
        self.storage = storage
        self._playwright: Optional[Playwright] = None
        self._browser: Optional[Browser] = None

    async def __aenter__(self) -> Self:
        """Launch one browser shared by every fetch until exit."""
        self._playwright, self._browser = await self._launch()
        return self

    async def __aexit__(
        self,
        exc_type: type[BaseException] | None,
        exc_val: BaseException | None,
        exc_tb: object | None,
    ) -> None:
        """Clean up browser resources."""
        await self._shutdown(self._playwright, self._browser)
        self._playwright = None
        self._browser = None

    def _launch_options(self) -> dict[str, Any]:
        args = list(LAUNCH_ARGS)
        if self.settings.serverless:
            args.extend(SERVERLESS_LAUNCH_ARGS)
        return {"headless": self.settings.headless, "args": args}

    async def _launch(self) -> tuple[Playwright, Browser]:
        """Start Playwright and Chromium.

        Raises:
            FetchError: the driver or the browser could not be started.
        """
        try:
            playwright = await async_playwright().start()
        except PlaywrightError as e:
            raise FetchError(f"Could not start Playwright: {e}") from e
        try:
            browser = await playwright.chromium.launch(**self._launch_options())
        except PlaywrightError as e:
            await playwright.stop()
            raise FetchError(f"Could not launch browser: {e}") from e
        except BaseException:
            await playwright.stop()
            raise
        return playwright, browser

    @staticmethod
    async def _shutdown(playwright: Optional[Playwright], browser: Optional[Browser]) -> None:
        try:
            if browser:
                await browser.close()
        except PlaywrightError as e:
            logger.warning(f"Error closing browser: {e}")
        finally:
            if playwright:
                await playwright.stop()

    async def _new_context(self, browser: Browser) -> BrowserContext:
        context = await browser.new_context(
            viewport={"width": self.settings.viewport_width, "height": self.settings.viewport_height},
            user_agent=self.settings.user_agent,
            locale="en-US",
            extra_http_headers=EXTRA_HTTP_HEADERS,
        )
        await context.add_init_script(STEALTH_JS)
        return context

    async def fetch(self, url: str, timeout_ms: Optional[int] = None) -> RawPage:
        """Navigate to `url` and return a RawPage snapshot.

        Raises:
            InvalidUrlError: not a TikTok URL (raised before any browser starts).
            NavigationTimeoutError: navigation exceeded the timeout.
            FetchError: the browser could not be launched, or failed while loading.
        """
        url = validate_tiktok_url(url)
        timeout = timeout_ms or self.settings.navigation_timeout_ms

        owns_browser = self._browser is None
        playwright, browser = (
            await self._launch() if owns_browser else (self._playwright, self._browser)
        )
        context: Optional[BrowserContext] = None
        try:
            context = await self._new_context(browser)
            page = await context.new_page()
            page.set_default_timeout(timeout)

            logger.info(f"Loading {url}")
            try:
                await page.goto(url, timeout=timeout, wait_until="domcontentloaded")
            except PlaywrightTimeoutError as e:
                raise NavigationTimeoutError(f"Timed out after {timeout}ms loading {url}") from e

            await self._settle(page)

            if self.settings.debug:
                await self._capture_screenshot(page)

            snapshot = await page.evaluate(
                JS_SNAPSHOT_PAGE,
                {"textSelectors": list(ALL_TEXT_SELECTORS), "mediaSelectors": list(MEDIA_SELECTORS)},
            )
            return RawPage(
                url=url,
                title=snapshot.get("title") or "",
                html=snapshot.get("html") or "",
                text=snapshot.get("text") or "",
                meta=snapshot.get("meta") or {},
                texts=snapshot.get("texts") or {},
                media_sources=snapshot.get("mediaSources") or {},
            )
        except PlaywrightTimeoutError as e:
            raise NavigationTimeoutError(f"Timed out loading {url}: {e}") from e
        except PlaywrightError as e:
            raise FetchError(f"Browser error loading {url}: {e}") from e
        finally:
            if context:
                try:
                    await context.close()
                except PlaywrightError as e:
                    logger.warning(f"Error closing browser context: {e}")
            if owns_browser:
                await self._shutdown(playwright, browser)

    async def _settle(self, page: Page) -> None:
        """Wait for the video detail to render, then scroll to trigger lazy content.

        The readiness wait is bounded by the settle delay; when the selector
        never shows up the wait is just the fixed delay.
        """
        try:
            await page.wait_for_selector(READY_SELECTOR, timeout=self.settings.settle_delay_ms)
        except PlaywrightTimeoutError:
            logger.debug(f"Ready selector not found within {self.settings.settle_delay_ms}ms")

        await page.evaluate("(px) => window.scrollBy(0, px)", self.settings.scroll_by_px)
        await asyncio.sleep(self.settings.post_scroll_delay_ms / 1000)

    async def _capture_screenshot(self, page: Page) -> None:
        """Save a screenshot for debugging. Failures are logged only."""
        try:
            screenshot_dir = Path(self.settings.screenshot_dir)
            screenshot_dir.mkdir(parents=True, exist_ok=True)
            timestamp = datetime.now(timezone.utc).strftime("%Y-%m-%dT%H-%M-%S-%fZ")
            path = screenshot_dir / f"tiktok-{timestamp}.png"
            await page.screenshot(path=str(path))
            logger.info(f"Screenshot saved to: {path}")

            if self.storage is not None and self.storage.settings.save_screenshots:
                await self.storage.upload_screenshot(path)
        except Exception as e:
            logger.warning(f"Could not capture screenshot: {e}")
