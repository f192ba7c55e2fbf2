"""Audit copies of scrape results: local JSON files and a Supabase Storage bucket.

Nothing here is allowed to fail a scrape. Every public save method logs its
own errors and returns the locations that were actually written.

Supports two usage patterns, like the aiohttp-backed downloaders:

    async with ResultStorage(settings) as storage:   # one HTTP session
        await storage.save_record(record)

    storage = ResultStorage(settings)
    await storage.save_record(record)                 # session per upload
"""

import json
import logging
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Optional, Self

import aiohttp

from tokscrape.config import StorageSettings
from tokscrape.crawler.base import VideoRecord
from tokscrape.utils.retry import retry_async

logger = logging.getLogger(__name__)

BUCKET_MIME_TYPES = ["image/png", "application/json"]
BUCKET_FILE_SIZE_LIMIT = 5 * 1024 * 1024


def file_timestamp(now: Optional[datetime] = None) -> str:
    """ISO timestamp usable in file names (no colons)."""
    now = now or datetime.now(timezone.utc)
    return now.isoformat(timespec="milliseconds").replace("+00:00", "Z").replace(":", "-")


class StorageUploadError(Exception):
    """Object storage rejected an upload (non-2xx response)."""


class ResultStorage:
    """Write result JSON locally and/or to object storage."""

    def __init__(self, settings: StorageSettings):
        self.settings = settings
        self.results_dir = Path(settings.results_dir)
        self._session: Optional[aiohttp.ClientSession] = None

    async def __aenter__(self) -> Self:
        """Initialize shared aiohttp session."""
        if self.remote_enabled:
            self._session = aiohttp.ClientSession(headers=self._auth_headers())
        return self

    async def __aexit__(
        self,
        exc_type: type[BaseException] | None,
        exc_val: BaseException | None,
        exc_tb: object | None,
    ) -> None:
        """Close shared aiohttp session."""
        if self._session:
            await self._session.close()
            self._session = None

    @property
    def remote_enabled(self) -> bool:
        return bool(self.settings.use_remote and self.settings.supabase_url and self.settings.supabase_key)

    def _auth_headers(self) -> dict[str, str]:
        return {
            "Authorization": f"Bearer {self.settings.supabase_key}",
            "apikey": self.settings.supabase_key,
        }

    def _storage_url(self, path: str) -> str:
        return f"{self.settings.supabase_url}/storage/v1/{path}"

    async def save_record(self, record: VideoRecord) -> list[str]:
        """Save one record as `tiktok-<username>-<timestamp>.json`."""
        filename = f"tiktok-{record.username or 'video'}-{file_timestamp()}.json"
        return await self._save_json(record.to_json_dict(), filename, remote_folder="results")

    async def save_summary(self, summary: dict[str, Any]) -> list[str]:
        """Save a batch summary as `tiktok-summary-<timestamp>.json`."""
        filename = f"tiktok-summary-{file_timestamp()}.json"
        return await self._save_json(summary, filename, remote_folder="summaries")

    async def _save_json(self, data: Any, filename: str, remote_folder: str) -> list[str]:
        payload = json.dumps(data, ensure_ascii=False, indent=2, default=str)
        locations = []

        if self.settings.save_local:
            try:
                self.results_dir.mkdir(parents=True, exist_ok=True)
                path = self.results_dir / filename
                path.write_text(payload, encoding="utf-8")
                locations.append(str(path))
                logger.info(f"Results saved locally to: {path}")
            except OSError as e:
                logger.warning(f"Could not write {filename} locally: {e}")

        if self.remote_enabled:
            object_path = f"{remote_folder}/{filename}"
            try:
                await self._upload(object_path, payload.encode("utf-8"), "application/json")
                locations.append(f"{self.settings.bucket}/{object_path}")
                logger.info(f"Results saved to object storage: {object_path}")
            except (aiohttp.ClientError, StorageUploadError) as e:
                logger.warning(f"Could not upload {object_path}: {e}")

        return locations

    async def upload_screenshot(self, path: Path) -> Optional[str]:
        """Upload a debug screenshot under `screenshots/`."""
        if not self.remote_enabled:
            return None
        object_path = f"screenshots/{path.name}"
        try:
            await self._upload(object_path, path.read_bytes(), "image/png")
        except (OSError, aiohttp.ClientError, StorageUploadError) as e:
            logger.warning(f"Could not upload screenshot {path}: {e}")
            return None
        logger.info(f"Screenshot uploaded: {object_path}")
        return object_path

    @retry_async(max_retries=2, delay=1.0, exceptions=(aiohttp.ClientError,))
    async def _upload(self, object_path: str, body: bytes, content_type: str) -> None:
        url = self._storage_url(f"object/{self.settings.bucket}/{object_path}")
        headers = {"Content-Type": content_type, "x-upsert": "true"}

        async def send(session: aiohttp.ClientSession) -> None:
            async with session.post(url, data=body, headers=headers) as response:
                if response.status >= 300:
                    detail = await response.text()
                    raise StorageUploadError(f"HTTP {response.status}: {detail[:200]}")

        if self._session:
            await send(self._session)
        else:
            async with aiohttp.ClientSession(headers=self._auth_headers()) as session:
                await send(session)

    async def ensure_bucket(self) -> bool:
        """Create the bucket if it does not exist. Returns True when it is usable."""
        if not self.remote_enabled:
            logger.warning("Object storage is not configured; nothing to set up")
            return False

        async with aiohttp.ClientSession(headers=self._auth_headers()) as session:
            try:
                async with session.get(self._storage_url("bucket")) as response:
                    if response.status < 300:
                        buckets = await response.json()
                        if any(b.get("name") == self.settings.bucket for b in buckets):
                            logger.info(f"Bucket '{self.settings.bucket}' already exists.")
                            return True
                    else:
                        logger.warning(f"Listing buckets failed with HTTP {response.status}")

                logger.info(f"Creating bucket '{self.settings.bucket}'...")
                body = {
                    "id": self.settings.bucket,
                    "name": self.settings.bucket,
                    "public": False,
                    "allowed_mime_types": BUCKET_MIME_TYPES,
                    "file_size_limit": BUCKET_FILE_SIZE_LIMIT,
                }
                async with session.post(self._storage_url("bucket"), json=body) as response:
                    if response.status >= 300:
                        detail = await response.text()
                        logger.error(f"Error creating storage bucket: HTTP {response.status}: {detail[:200]}")
                        return False
            except aiohttp.ClientError as e:
                logger.error(f"Error setting up storage bucket: {e}")
                return False

        logger.info(f"Bucket '{self.settings.bucket}' created successfully.")
        return True
