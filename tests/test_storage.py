"""Tests for audit JSON storage."""

import json
from datetime import datetime, timezone
from unittest.mock import AsyncMock, patch

import aiohttp
import pytest

from tokscrape.config import StorageSettings
from tokscrape.crawler.base import VideoRecord
from tokscrape.services.storage import ResultStorage, file_timestamp


def make_record(**kwargs) -> VideoRecord:
    return VideoRecord(id="42", url="https://www.tiktok.com/@carol/video/42", **kwargs)


def test_file_timestamp_has_no_colons() -> None:
    stamp = file_timestamp(datetime(2024, 3, 14, 9, 26, 53, 589000, tzinfo=timezone.utc))
    assert stamp == "2024-03-14T09-26-53.589Z"


@pytest.mark.asyncio
async def test_save_record_writes_local_json(tmp_path) -> None:
    storage = ResultStorage(StorageSettings(results_dir=str(tmp_path)))
    locations = await storage.save_record(make_record(username="carol", likes="7"))

    assert len(locations) == 1
    files = list(tmp_path.glob("tiktok-carol-*.json"))
    assert len(files) == 1
    data = json.loads(files[0].read_text(encoding="utf-8"))
    assert data["id"] == "42"
    assert data["likes"] == "7"
    assert "fullDescription" in data


@pytest.mark.asyncio
async def test_save_record_without_username(tmp_path) -> None:
    storage = ResultStorage(StorageSettings(results_dir=str(tmp_path)))
    await storage.save_record(make_record())
    assert len(list(tmp_path.glob("tiktok-video-*.json"))) == 1


@pytest.mark.asyncio
async def test_save_summary(tmp_path) -> None:
    storage = ResultStorage(StorageSettings(results_dir=str(tmp_path)))
    await storage.save_summary({"total": 2, "succeeded": 1})
    files = list(tmp_path.glob("tiktok-summary-*.json"))
    assert json.loads(files[0].read_text(encoding="utf-8"))["total"] == 2


@pytest.mark.asyncio
async def test_remote_upload_failure_is_not_fatal(tmp_path) -> None:
    settings = StorageSettings(
        results_dir=str(tmp_path),
        use_remote=True,
        supabase_url="https://project.supabase.co/",
        supabase_key="secret",
    )
    storage = ResultStorage(settings)
    assert storage.settings.supabase_url == "https://project.supabase.co"

    with patch.object(
        ResultStorage, "_upload", new=AsyncMock(side_effect=aiohttp.ClientError("down"))
    ) as upload:
        locations = await storage.save_record(make_record())

    upload.assert_awaited_once()
    assert locations == [str(next(tmp_path.glob("*.json")))]


@pytest.mark.asyncio
async def test_remote_disabled_skips_upload(tmp_path) -> None:
    storage = ResultStorage(StorageSettings(results_dir=str(tmp_path), save_local=False))
    with patch.object(ResultStorage, "_upload", new=AsyncMock()) as upload:
        assert await storage.save_record(make_record()) == []
    upload.assert_not_awaited()
    assert await storage.ensure_bucket() is False
