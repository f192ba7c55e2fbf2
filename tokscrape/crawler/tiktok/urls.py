"""TikTok URL helpers."""

from typing import Optional
from urllib.parse import urlparse

from tokscrape.crawler.tiktok.constants import TIKTOK_DOMAIN, USERNAME_PATTERN, VIDEO_ID_PATTERN
from tokscrape.errors import InvalidUrlError


def is_tiktok_url(url: str) -> bool:
    """True for http(s) URLs on tiktok.com or any of its subdomains."""
    if not url or not isinstance(url, str):
        return False
    parsed = urlparse(url.strip())
    if parsed.scheme not in ("http", "https"):
        return False
    host = (parsed.hostname or "").lower()
    return host == TIKTOK_DOMAIN or host.endswith("." + TIKTOK_DOMAIN)


def validate_tiktok_url(url: str) -> str:
    """Return the stripped URL or raise InvalidUrlError."""
    if not is_tiktok_url(url):
        raise InvalidUrlError(url)
    return url.strip()


def extract_username(url: str) -> Optional[str]:
    """Username from the `@<name>` path segment."""
    match = USERNAME_PATTERN.search(urlparse(url).path)
    return match.group(1) if match else None


def extract_video_id(url: str) -> Optional[str]:
    """Video ID from a TikTok URL.

    URL formats:
    - https://www.tiktok.com/@{user}/video/{id}?...  -> {id}
    - anything else                                  -> last path segment
    """
    path = urlparse(url).path
    match = VIDEO_ID_PATTERN.search(path)
    if match:
        return match.group(1)
    last_segment = path.split("/")[-1]
    return last_segment or None


def read_url_file(lines: list[str]) -> list[str]:
    """Keep the TikTok URLs from a one-URL-per-line listing, in order."""
    urls = []
    for line in lines:
        line = line.strip()
        if line and is_tiktok_url(line):
            urls.append(line)
    return urls
