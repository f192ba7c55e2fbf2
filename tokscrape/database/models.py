"""Database models using SQLAlchemy.

Time field conventions:
- created_at: Record creation time (immutable)
- updated_at: Last modification time (auto-updated on every upsert)
"""

import json
from datetime import datetime, timezone
from pathlib import Path

from sqlalchemy import Column, DateTime, Integer, String, Text, create_engine, text
from sqlalchemy.engine import make_url
from sqlalchemy.orm import DeclarativeBase, Session, sessionmaker

TIKTOK_TABLE_NAME = "tiktok_videos"


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


class Base(DeclarativeBase):
    pass


class TikTokVideo(Base):
    """One scraped TikTok video, keyed by the id taken from its URL."""

    __tablename__ = TIKTOK_TABLE_NAME

    id = Column(String(64), primary_key=True)
    url = Column(Text, nullable=False)

    author = Column(String(256), default="")
    username = Column(String(256), default="", index=True)
    title = Column(Text, default="")
    description = Column(Text, default="")
    full_description = Column(Text, default="")

    # Stats (stored as strings to preserve "1.2K" format)
    likes = Column(String(32), default="0")
    comments = Column(String(32), default="0")
    shares = Column(String(32), default="0")
    views = Column(String(32), default="N/A")

    hashtags = Column(Text, default="[]")  # JSON array
    date = Column(String(32), default="")
    video_url = Column(Text, default="")
    thumbnail_url = Column(Text, default="")
    audio_info = Column(Text, default="")
    raw_metadata = Column(Text, default="{}")  # JSON object

    created_at = Column(DateTime(timezone=True), default=utcnow)
    updated_at = Column(DateTime(timezone=True), default=utcnow, onupdate=utcnow, index=True)

    def get_hashtags(self) -> list[str]:
        if not self.hashtags:
            return []
        return json.loads(self.hashtags)

    def set_hashtags(self, tags: list[str]):
        self.hashtags = json.dumps(list(tags), ensure_ascii=False)

    def get_raw_metadata(self) -> dict[str, str]:
        if not self.raw_metadata:
            return {}
        return json.loads(self.raw_metadata)

    def set_raw_metadata(self, metadata: dict[str, str]):
        self.raw_metadata = json.dumps(metadata or {}, ensure_ascii=False)


class ScrapeLog(Base):
    """Log of scraping operations."""

    __tablename__ = "scrape_logs"

    id = Column(Integer, primary_key=True)
    task_type = Column(String(32), nullable=False)  # video/import
    target_id = Column(Text)  # url or video id

    status = Column(String(16), default="success")  # success/failed
    duration_ms = Column(Integer)
    error_message = Column(Text)

    created_at = Column(DateTime(timezone=True), default=utcnow, index=True)


class Database:
    """Database connection and session management."""

    def __init__(self, url: str = "sqlite:///data/tiktok.db", echo: bool = False):
        self.url = url
        parsed = make_url(url)
        if parsed.get_backend_name() == "sqlite" and parsed.database and parsed.database != ":memory:":
            Path(parsed.database).parent.mkdir(parents=True, exist_ok=True)

        self.engine = create_engine(url, echo=echo)
        self.SessionLocal = sessionmaker(bind=self.engine)

    def init_db(self):
        """Create all tables."""
        Base.metadata.create_all(self.engine)

    def get_session(self) -> Session:
        """Get a new database session."""
        return self.SessionLocal()

    def ping(self) -> bool:
        """Round trip to the database."""
        with self.engine.connect() as conn:
            conn.execute(text("SELECT 1"))
        return True
