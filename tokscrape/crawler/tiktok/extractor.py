"""Field extraction from a TikTok RawPage snapshot.

Every field follows the same shape: CSS selector strategies in order (most
specific first), then regex fallbacks over page text or HTML. The first
non-empty trimmed value that passes the field's format check wins. Missing
fields stay None and are defaulted by the normalizer.
"""

import logging
import re
from typing import Iterable, Optional

from tokscrape.crawler.base import RawPage, RawRecord
from tokscrape.crawler.tiktok.constants import (
    AUDIO_PATTERN,
    AUTHOR_SUFFIX,
    COMMENT_SELECTORS,
    COMMENTS_PATTERN,
    COUNT_FORMAT,
    DESCRIPTION_SELECTORS,
    HASHTAG_PATTERN,
    HASHTAG_SELECTOR,
    LIKE_SELECTORS,
    LIKES_PATTERN,
    META_DATE_PATTERN,
    QUOTED_TEXT_PATTERN,
    SHARE_SELECTORS,
    SHARES_PATTERN,
    TEXT_DATE_PATTERN,
    VIEWS_PATTERN,
)
from tokscrape.crawler.tiktok.urls import extract_username

logger = logging.getLogger(__name__)


def first_selector_match(
    page: RawPage,
    selectors: Iterable[str],
    fmt: Optional[re.Pattern] = None,
) -> Optional[str]:
    """First trimmed text across selectors that is non-empty and matches fmt."""
    for selector in selectors:
        for value in page.texts.get(selector, []):
            text = (value or "").strip()
            if not text:
                continue
            if fmt is not None and not fmt.match(text):
                continue
            return text
    return None


def regex_group(source: str, pattern: re.Pattern, group: int = 1) -> Optional[str]:
    if not source:
        return None
    match = pattern.search(source)
    if not match:
        return None
    value = match.group(group).strip()
    return value or None


class TikTokExtractor:
    """Extract a RawRecord from a RawPage. Never raises."""

    def extract(self, page: RawPage) -> RawRecord:
        record = RawRecord(url=page.url)
        meta = page.meta or {}

        steps = (
            ("title", lambda: self._title(page)),
            ("username", lambda: extract_username(page.url)),
            ("description", lambda: self._description(page)),
            ("likes", lambda: self._count(page, LIKE_SELECTORS, LIKES_PATTERN, fmt=COUNT_FORMAT)),
            ("comments", lambda: self._count(page, COMMENT_SELECTORS, COMMENTS_PATTERN, fmt=COUNT_FORMAT)),
            ("shares", lambda: self._count(page, SHARE_SELECTORS, SHARES_PATTERN)),
            ("views", lambda: regex_group(page.text, VIEWS_PATTERN)),
            ("author", lambda: self._author(meta)),
            ("thumbnail_url", lambda: meta.get("og:image") or None),
            ("full_description", lambda: meta.get("description") or None),
            ("date", lambda: self._date(page, meta)),
            ("audio_info", lambda: self._audio_info(meta)),
            ("video_url", lambda: self._video_url(page)),
        )
        for field, step in steps:
            try:
                value = step()
            except Exception as e:
                # A broken strategy only loses its own field
                logger.warning(f"Could not extract {field} from {page.url}: {e}")
                value = None
            if value is not None:
                setattr(record, field, value)
            else:
                logger.debug(f"No {field} found on {page.url}")

        # Hashtags depend on the description found above
        try:
            record.hashtags = self._hashtags(page, record.description or "")
        except Exception as e:
            logger.warning(f"Could not extract hashtags from {page.url}: {e}")

        record.raw_metadata = dict(meta)
        return record

    @staticmethod
    def _title(page: RawPage) -> Optional[str]:
        title = page.title.split("|")[0].strip()
        return title or None

    @staticmethod
    def _description(page: RawPage) -> Optional[str]:
        found = first_selector_match(page, DESCRIPTION_SELECTORS)
        if found:
            return found
        og_description = (page.meta.get("og:description") or "").strip()
        if og_description:
            return og_description
        return regex_group(page.html, QUOTED_TEXT_PATTERN)

    @staticmethod
    def _count(
        page: RawPage,
        selectors: Iterable[str],
        pattern: re.Pattern,
        fmt: Optional[re.Pattern] = None,
    ) -> Optional[str]:
        found = first_selector_match(page, selectors, fmt=fmt)
        if found:
            return found
        return regex_group(page.text, pattern)

    @staticmethod
    def _hashtags(page: RawPage, description: str) -> list[str]:
        """Anchor tags win; description tokens only when no anchor tag exists."""
        anchored = []
        for value in page.texts.get(HASHTAG_SELECTOR, []):
            text = (value or "").strip()
            if text.startswith("#"):
                anchored.append(text)
        if anchored:
            return anchored
        return HASHTAG_PATTERN.findall(description)

    @staticmethod
    def _author(meta: dict[str, str]) -> Optional[str]:
        og_title = meta.get("og:title")
        if not og_title:
            return None
        return og_title.split(AUTHOR_SUFFIX)[0].strip() or None

    @staticmethod
    def _date(page: RawPage, meta: dict[str, str]) -> Optional[str]:
        description = meta.get("description", "")
        if description:
            match = META_DATE_PATTERN.search(description)
            if match:
                return match.group(0)
        match = TEXT_DATE_PATTERN.search(page.text or "")
        return match.group(0) if match else None

    @staticmethod
    def _audio_info(meta: dict[str, str]) -> Optional[str]:
        description = meta.get("description", "")
        if "original sound" not in description:
            return None
        return regex_group(description, AUDIO_PATTERN)

    @staticmethod
    def _video_url(page: RawPage) -> Optional[str]:
        for selector in ("video", "source"):
            for src in page.media_sources.get(selector, []):
                if src:
                    return src
        return None
