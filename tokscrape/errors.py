"""Scraper error hierarchy."""


class ScraperError(Exception):
    """Base error for scrape pipeline operations."""


class ConfigurationError(ScraperError):
    """Missing or inconsistent configuration (credentials, database URL)."""


class InvalidUrlError(ScraperError):
    """URL is not a TikTok page URL."""

    def __init__(self, url: str) -> None:
        self.url = url
        super().__init__(f"Not a TikTok URL: {url!r}")


class FetchError(ScraperError):
    """Browser failed to load the page."""


class NavigationTimeoutError(FetchError):
    """Navigation (or the per-URL deadline) timed out."""


class MissingIdError(ScraperError):
    """No video id could be derived from the URL."""

    def __init__(self, url: str) -> None:
        self.url = url
        super().__init__(f"Could not extract TikTok ID from URL: {url}")


class PersistenceError(ScraperError):
    """Writing the record to the database failed."""
