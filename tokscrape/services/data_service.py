"""Persistence sink: upsert VideoRecords into the database and keep audit JSON.

Design:
- One row per video id in `tiktok_videos`; re-scraping overwrites every field
- Audit JSON goes through ResultStorage and never fails a persist call
- Configuration problems surface as ConfigurationError at construction time,
  before any page is fetched
"""

import json
import logging
from contextlib import contextmanager
from pathlib import Path
from typing import Generator, Optional

from sqlalchemy.exc import OperationalError, SQLAlchemyError
from sqlalchemy.orm import Session

from tokscrape.config import Settings
from tokscrape.crawler.base import VideoRecord
from tokscrape.crawler.tiktok.normalizer import record_from_json
from tokscrape.database import Database, ScrapeLog, TikTokVideo
from tokscrape.errors import MissingIdError, PersistenceError
from tokscrape.services.storage import ResultStorage
from tokscrape.utils.retry import retry_async

logger = logging.getLogger(__name__)


class DataService:
    """Service for saving scraped videos.

    Supports context manager so a batch shares one object-storage session:

        async with DataService(settings) as service:
            await service.persist(record)
    """

    def __init__(
        self,
        settings: Settings,
        storage: Optional[ResultStorage] = None,
        database: Optional[Database] = None,
    ):
        settings.validate_backend()
        self.settings = settings
        self.db = database or Database(settings.database.url, echo=settings.database.echo)
        self.db.init_db()
        self.storage = storage or ResultStorage(settings.storage)

    async def __aenter__(self):
        await self.storage.__aenter__()
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        await self.storage.__aexit__(exc_type, exc_val, exc_tb)

    @contextmanager
    def transaction(self) -> Generator[Session, None, None]:
        """Context manager for database transactions."""
        session = self.db.get_session()
        try:
            yield session
            session.commit()
        except Exception:
            session.rollback()
            raise
        finally:
            session.close()

    async def persist(self, record: VideoRecord, audit: bool = True) -> str:
        """Write the audit copy, then upsert the row. Returns the video id.

        Raises:
            MissingIdError: record has no id (never written).
            PersistenceError: the database write failed.
        """
        if not record.id:
            raise MissingIdError(record.url)

        if audit:
            await self.save_audit(record)

        try:
            await self._upsert(record)
        except SQLAlchemyError as e:
            raise PersistenceError(f"Error saving TikTok data for ID {record.id}: {e}") from e

        logger.info(f"TikTok video data saved successfully for ID: {record.id}")
        return record.id

    async def save_audit(self, record: VideoRecord) -> list[str]:
        """Audit JSON only; used directly in extract-only runs."""
        try:
            return await self.storage.save_record(record)
        except Exception as e:
            logger.warning(f"Error saving results for {record.id}: {e}")
            return []

    @retry_async(max_retries=2, delay=0.5, exceptions=(OperationalError,))
    async def _upsert(self, record: VideoRecord) -> None:
        with self.transaction() as session:
            video = session.get(TikTokVideo, record.id)
            if video is None:
                video = TikTokVideo(id=record.id)
                session.add(video)

            video.url = record.url
            video.author = record.author
            video.username = record.username
            video.title = record.title
            video.description = record.description
            video.full_description = record.full_description
            video.likes = record.likes
            video.comments = record.comments
            video.shares = record.shares
            video.views = record.views
            video.set_hashtags(list(record.hashtags))
            video.date = record.date
            video.video_url = record.video_url
            video.thumbnail_url = record.thumbnail_url
            video.audio_info = record.audio_info
            video.set_raw_metadata(record.raw_metadata)
            # updated_at will auto-update via onupdate

    def get_video(self, video_id: str) -> Optional[VideoRecord]:
        with self.transaction() as session:
            video = session.get(TikTokVideo, video_id)
            if video is None:
                return None
            return VideoRecord(
                id=video.id,
                url=video.url,
                author=video.author or "",
                username=video.username or "",
                title=video.title or "",
                description=video.description or "",
                full_description=video.full_description or "",
                likes=video.likes or "0",
                comments=video.comments or "0",
                shares=video.shares or "0",
                views=video.views or "N/A",
                hashtags=tuple(video.get_hashtags()),
                date=video.date or "",
                video_url=video.video_url or "",
                thumbnail_url=video.thumbnail_url or "",
                audio_info=video.audio_info or "",
                raw_metadata=video.get_raw_metadata(),
            )

    def count_videos(self) -> int:
        with self.transaction() as session:
            return session.query(TikTokVideo).count()

    def log_scrape(
        self,
        target_id: str,
        success: bool,
        duration_ms: Optional[int] = None,
        error: Optional[str] = None,
        task_type: str = "video",
    ) -> None:
        """Record one scrape attempt. Best-effort."""
        try:
            with self.transaction() as session:
                session.add(
                    ScrapeLog(
                        task_type=task_type,
                        target_id=target_id,
                        status="success" if success else "failed",
                        duration_ms=duration_ms,
                        error_message=error,
                    )
                )
        except SQLAlchemyError as e:
            logger.warning(f"Could not write scrape log for {target_id}: {e}")

    def check_connection(self) -> bool:
        try:
            return self.db.ping()
        except SQLAlchemyError as e:
            logger.error(f"Database connection check failed: {e}")
            return False

    async def import_directory(self, directory: Optional[str] = None) -> int:
        """Upsert every JSON result file in a directory. Returns files imported.

        Files that cannot be read, parsed, or given an id are skipped.
        """
        path = Path(directory or self.settings.storage.results_dir)
        if not path.is_dir():
            logger.error(f"Directory does not exist: {path}")
            return 0

        files = sorted(p for p in path.iterdir() if p.suffix == ".json")
        if not files:
            logger.info("No JSON files found in the directory.")
            return 0

        logger.info(f"Found {len(files)} JSON files to process.")
        success_count = 0
        for file in files:
            try:
                data = json.loads(file.read_text(encoding="utf-8"))
                if not isinstance(data, dict):
                    logger.info(f"Skipping {file.name}: not a single video record")
                    continue
                record = record_from_json(data)
                await self.persist(record, audit=False)
                self.log_scrape(record.id, True, task_type="import")
                success_count += 1
            except (OSError, ValueError, MissingIdError, PersistenceError) as e:
                logger.error(f"Error processing file {file.name}: {e}")

        logger.info(f"Successfully processed {success_count} out of {len(files)} files.")
        return success_count
