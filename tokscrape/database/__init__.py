from tokscrape.database.models import (
    TIKTOK_TABLE_NAME,
    Base,
    Database,
    ScrapeLog,
    TikTokVideo,
)

__all__ = [
    "TIKTOK_TABLE_NAME",
    "Base",
    "Database",
    "ScrapeLog",
    "TikTokVideo",
]
