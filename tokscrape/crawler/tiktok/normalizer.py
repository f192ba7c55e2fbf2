"""Map an extractor RawRecord onto the canonical VideoRecord."""

from tokscrape.crawler.base import RawRecord, VideoRecord
from tokscrape.crawler.tiktok.urls import extract_video_id
from tokscrape.errors import MissingIdError


def normalize(raw: RawRecord, url: str) -> VideoRecord:
    """Build the VideoRecord for `url`, defaulting every field the page lacked.

    Pure: no I/O, same input gives the same record.

    Raises:
        MissingIdError: neither a /video/<digits> segment nor a last path
            segment yields an id.
    """
    video_id = extract_video_id(url)
    if not video_id:
        raise MissingIdError(url)
    return _to_record(raw, url, video_id)


def _to_record(raw: RawRecord, url: str, video_id: str) -> VideoRecord:
    return VideoRecord(
        id=video_id,
        url=url,
        author=raw.author or "",
        username=raw.username or "",
        title=raw.title or "",
        description=raw.description or "",
        full_description=raw.full_description or "",
        likes=raw.likes or "0",
        comments=raw.comments or "0",
        shares=raw.shares or "0",
        views=raw.views or "N/A",
        hashtags=tuple(raw.hashtags or ()),
        date=raw.date or "",
        video_url=raw.video_url or "",
        thumbnail_url=raw.thumbnail_url or "",
        audio_info=raw.audio_info or "",
        raw_metadata=dict(raw.raw_metadata or {}),
    )


def record_from_json(data: dict) -> VideoRecord:
    """Rebuild a VideoRecord from a saved result file (camelCase or snake_case keys).

    Older files carry only the URL, so the id falls back to the URL-derived one.
    """
    url = data.get("url") or ""
    video_id = data.get("id") or data.get("tiktok_id") or (extract_video_id(url) if url else None)
    if not video_id:
        raise MissingIdError(url)

    raw = RawRecord(
        url=url,
        author=data.get("author"),
        username=data.get("username"),
        title=data.get("title"),
        description=data.get("description"),
        full_description=data.get("fullDescription", data.get("full_description")),
        likes=data.get("likes"),
        comments=data.get("comments"),
        shares=data.get("shares"),
        views=data.get("views"),
        hashtags=data.get("hashtags"),
        date=data.get("date"),
        video_url=data.get("videoUrl", data.get("video_url")),
        thumbnail_url=data.get("thumbnailUrl", data.get("thumbnail_url")),
        audio_info=data.get("audioInfo", data.get("audio_info")),
        raw_metadata={str(k): str(v) for k, v in (data.get("rawMetadata") or data.get("raw_metadata") or {}).items()},
    )
    return _to_record(raw, url, str(video_id))
