"""Tests for field extraction from page snapshots."""

from tokscrape.crawler.base import RawPage
from tokscrape.crawler.tiktok.constants import (
    COMMENT_SELECTORS,
    DESCRIPTION_SELECTORS,
    HASHTAG_SELECTOR,
    LIKE_SELECTORS,
)
from tokscrape.crawler.tiktok.extractor import TikTokExtractor, first_selector_match
from tokscrape.crawler.tiktok.normalizer import normalize

from tests.conftest import alice_page

extractor = TikTokExtractor()


def test_caption_with_hashtag_normalizes_to_expected_record() -> None:
    url = "https://www.tiktok.com/@alice/video/123456"
    page = RawPage(
        url=url,
        meta={"og:title": "Alice on TikTok"},
        texts={DESCRIPTION_SELECTORS[0]: ["hello #fun"]},
    )

    record = normalize(extractor.extract(page), url)

    assert record.id == "123456"
    assert record.username == "alice"
    assert record.author == "Alice"
    assert record.description == "hello #fun"
    assert record.hashtags == ("#fun",)


def test_selectors_and_meta() -> None:
    raw = extractor.extract(alice_page())

    assert raw.title == "Alice dance"
    assert raw.likes == "1.2K"
    assert raw.description == "Dancing #fun #dance"
    assert raw.thumbnail_url == "https://p16.tiktokcdn.com/thumb.jpg"
    assert raw.hashtags == ["#fun", "#dance"]
    assert raw.raw_metadata["og:title"] == "Alice on TikTok"


def test_counts_fall_back_to_page_text() -> None:
    page = RawPage(
        url="https://www.tiktok.com/@a/video/1",
        text="Some video 3.4M likes 120 comments 87 shares 1.1B views",
    )
    raw = extractor.extract(page)

    assert raw.likes == "3.4M"
    assert raw.comments == "120"
    assert raw.shares == "87"
    assert raw.views == "1.1B"


def test_selector_text_failing_count_format_is_skipped() -> None:
    page = RawPage(
        url="https://www.tiktok.com/@a/video/1",
        texts={
            LIKE_SELECTORS[0]: ["Like"],
            LIKE_SELECTORS[1]: ["", "  42K "],
            COMMENT_SELECTORS[0]: ["Comments"],
        },
        text="9 comments",
    )
    raw = extractor.extract(page)

    assert raw.likes == "42K"
    assert raw.comments == "9"


def test_missing_fields_stay_none() -> None:
    raw = extractor.extract(RawPage(url="https://www.tiktok.com/@a/video/1"))

    assert raw.likes is None
    assert raw.views is None
    assert raw.author is None
    assert raw.description is None
    assert raw.hashtags == []
    assert raw.username == "a"


def test_description_falls_back_to_quoted_html() -> None:
    page = RawPage(
        url="https://www.tiktok.com/@a/video/1",
        html='<script>{"desc":"a caption long enough #cats"}</script>',
    )
    raw = extractor.extract(page)

    assert raw.description == "a caption long enough #cats"
    assert raw.hashtags == ["#cats"]


def test_anchor_hashtags_win_over_description_tokens() -> None:
    page = RawPage(
        url="https://www.tiktok.com/@a/video/1",
        texts={
            DESCRIPTION_SELECTORS[0]: ["caption #one #two"],
            HASHTAG_SELECTOR: ["#three", "not-a-tag"],
        },
    )
    raw = extractor.extract(page)

    assert raw.hashtags == ["#three"]


def test_date_audio_and_video_url() -> None:
    page = RawPage(
        url="https://www.tiktok.com/@a/video/1",
        meta={"description": "Posted 3-14. original sound - DJ Alice. Watch more"},
        media_sources={"video": [""], "source": ["https://v16.tiktokcdn.com/v.mp4"]},
    )
    raw = extractor.extract(page)

    assert raw.date == "3-14"
    assert raw.audio_info == "DJ Alice"
    assert raw.full_description.startswith("Posted 3-14")
    assert raw.video_url == "https://v16.tiktokcdn.com/v.mp4"


def test_first_selector_match_respects_order() -> None:
    page = RawPage(url="https://www.tiktok.com/@a/video/1", texts={"b": ["second"], "a": ["first"]})
    assert first_selector_match(page, ["a", "b"]) == "first"
    assert first_selector_match(page, ["c"]) is None
