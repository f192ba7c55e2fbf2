from tokscrape.crawler.base import BaseFetcher, BatchResult, RawPage, RawRecord, VideoRecord

__all__ = [
    "BaseFetcher",
    "BatchResult",
    "RawPage",
    "RawRecord",
    "VideoRecord",
]
