"""Tests for the in-memory job registry."""

from tokscrape.api.job_registry import JobRegistry, JobStatus


def test_oldest_job_dropped_past_capacity() -> None:
    registry = JobRegistry(max_jobs=2)
    first = registry.create(["https://www.tiktok.com/@a/video/1"])
    second = registry.create(["https://www.tiktok.com/@a/video/2"])
    third = registry.create(["https://www.tiktok.com/@a/video/3"])

    assert registry.get(first.job_id) is None
    assert registry.get(second.job_id) is second
    assert registry.get(third.job_id) is third


def test_new_job_response_is_pending_with_empty_slots() -> None:
    job = JobRegistry().create(["https://www.tiktok.com/@a/video/1", "https://www.tiktok.com/@a/video/2"])
    response = job.to_response()

    assert response["status"] == JobStatus.PENDING.value
    assert response["total"] == 2
    assert response["processed"] == 0
    assert response["results"] == [None, None]
    assert response["finishedAt"] is None
