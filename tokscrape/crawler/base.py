"""Base crawler types shared by the fetch, extract and persist stages.

Conventions:
1. Counts stay strings to preserve the page format (e.g., "1.2K")
2. Python attributes are snake_case; JSON output uses camelCase aliases so
   files written by older scrapers load unchanged
3. VideoRecord is frozen once built
"""

from abc import ABC, abstractmethod
from typing import Optional, Self

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel


class RawPage(BaseModel):
    """Snapshot of a rendered page, taken before the browser is released.

    Attributes:
        url: URL that was requested
        title: document.title
        html: Full serialized document
        text: document.body.innerText
        meta: <meta> name/property -> content
        texts: CSS selector -> innerText of every matching element
        media_sources: src attributes of <video> then <source> elements
    """

    url: str
    title: str = ""
    html: str = ""
    text: str = ""
    meta: dict[str, str] = {}
    texts: dict[str, list[str]] = {}
    media_sources: dict[str, list[str]] = {}


class RawRecord(BaseModel):
    """Fields as found on the page; None means the extractor found nothing."""

    url: str
    author: Optional[str] = None
    username: Optional[str] = None
    title: Optional[str] = None
    description: Optional[str] = None
    full_description: Optional[str] = None
    likes: Optional[str] = None
    comments: Optional[str] = None
    shares: Optional[str] = None
    views: Optional[str] = None
    hashtags: Optional[list[str]] = None
    date: Optional[str] = None
    video_url: Optional[str] = None
    thumbnail_url: Optional[str] = None
    audio_info: Optional[str] = None
    raw_metadata: Optional[dict[str, str]] = None


class VideoRecord(BaseModel):
    """Canonical, persisted shape of one TikTok video."""

    model_config = ConfigDict(
        frozen=True,
        alias_generator=to_camel,
        populate_by_name=True,
    )

    id: str = Field(min_length=1)
    url: str
    author: str = ""
    username: str = ""
    title: str = ""
    description: str = ""
    full_description: str = ""
    likes: str = "0"
    comments: str = "0"
    shares: str = "0"
    views: str = "N/A"
    hashtags: tuple[str, ...] = ()
    date: str = ""
    video_url: str = ""
    thumbnail_url: str = ""
    audio_info: str = ""
    raw_metadata: dict[str, str] = {}

    def to_json_dict(self) -> dict:
        """camelCase dict for JSON files and HTTP responses."""
        data = self.model_dump(by_alias=True)
        data["hashtags"] = list(self.hashtags)
        return data


class BatchResult(BaseModel):
    """Outcome of one URL in a batch."""

    model_config = ConfigDict(frozen=True, alias_generator=to_camel, populate_by_name=True)

    url: str
    success: bool
    record: Optional[VideoRecord] = None
    error: Optional[str] = None
    error_type: Optional[str] = None

    def to_json_dict(self) -> dict:
        data = self.model_dump(by_alias=True, exclude={"record"})
        data["record"] = self.record.to_json_dict() if self.record else None
        return data


class BaseFetcher(ABC):
    """Base class for page fetchers.

    Subclasses produce a RawPage for a URL and may hold a browser across calls
    while used as an async context manager.
    """

    @abstractmethod
    async def fetch(self, url: str, timeout_ms: Optional[int] = None) -> RawPage:
        """Load a URL and snapshot the rendered document."""
        pass

    async def __aenter__(self) -> Self:
        """Default async context manager entry - subclasses can override."""
        return self

    async def __aexit__(
        self,
        exc_type: type[BaseException] | None,
        exc_val: BaseException | None,
        exc_tb: object | None,
    ) -> None:
        """Default async context manager exit - subclasses can override."""
        pass
