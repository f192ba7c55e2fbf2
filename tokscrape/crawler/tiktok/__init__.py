from tokscrape.crawler.tiktok.extractor import TikTokExtractor
from tokscrape.crawler.tiktok.normalizer import normalize, record_from_json
from tokscrape.crawler.tiktok.urls import (
    extract_username,
    extract_video_id,
    is_tiktok_url,
    read_url_file,
    validate_tiktok_url,
)

__all__ = [
    "TikTokExtractor",
    "extract_username",
    "extract_video_id",
    "is_tiktok_url",
    "normalize",
    "read_url_file",
    "record_from_json",
    "validate_tiktok_url",
]
