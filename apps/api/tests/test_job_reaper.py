"""Tests for the terminal-stage job reaper."""
import os

import pytest

from printshop.core.errors import JobNotFoundError
from printshop.core.subscriptions import BOARD_TOPIC
from printshop.db.enums import JobEventType
from printshop.db.models import Job, JobUpdate
from printshop.schemas.job import referenced_file_urls
from printshop.services import job_reaper_service
from printshop.services.job_events import hub


def _store(storage, key: str, content: bytes = b"data") -> str:
    path = storage.resolve_path(key)
    os.makedirs(os.path.dirname(path), exist_ok=True)
    with open(path, "wb") as f:
        f.write(content)
    return storage.public_url(key)


def test_referenced_file_urls_merges_legacy_and_current_fields(design_job, update_factory):
    first = update_factory(design_job, file_url="/files/a.png", file_urls=["/files/b.pdf"])
    second = update_factory(design_job, file_urls=["/files/b.pdf", "/files/c.png"])

    assert referenced_file_urls([first, second]) == ["/files/a.png", "/files/b.pdf", "/files/c.png"]


@pytest.mark.asyncio
async def test_reap_deletes_files_history_and_job(db, design_job, storage, update_factory):
    legacy = _store(storage, f"jobs/{design_job.id}/updates/1_legacy.png")
    current = _store(storage, f"jobs/{design_job.id}/updates/2_current.pdf")
    update_factory(design_job, file_url=legacy)
    update_factory(design_job, file_urls=[current], comment="proof")

    result = await job_reaper_service.reap(db, design_job.id, storage=storage)

    assert result.files_attempted == 2
    assert result.files_deleted == 2
    assert result.file_failures == []
    assert not os.path.exists(storage.resolve_path(f"jobs/{design_job.id}/updates/1_legacy.png"))
    db.expire_all()
    assert db.get(Job, result.job_id) is None
    assert db.query(JobUpdate).count() == 0


@pytest.mark.asyncio
async def test_file_cleanup_is_best_effort(db, design_job, storage, update_factory):
    kept = _store(storage, f"jobs/{design_job.id}/updates/1_kept.png")
    update_factory(
        design_job,
        file_urls=[
            kept,
            "/files/jobs/missing/updates/1_gone.png",
            "https://elsewhere.test/not-ours.png",
        ],
    )

    result = await job_reaper_service.reap(db, design_job.id, storage=storage)

    assert result.files_attempted == 3
    assert result.files_deleted == 1
    assert len(result.file_failures) == 2
    db.expire_all()
    assert db.get(Job, design_job.id) is None


@pytest.mark.asyncio
async def test_job_is_deleted_when_listing_files_fails(
    db, design_job, storage, update_factory, monkeypatch
):
    update_factory(design_job, file_urls=["/files/jobs/x/updates/1_a.png"])

    def _broken(updates):
        raise RuntimeError("history unreadable")

    monkeypatch.setattr(job_reaper_service, "referenced_file_urls", _broken)

    result = await job_reaper_service.reap(db, design_job.id, storage=storage)

    assert result.files_attempted == 0
    db.expire_all()
    assert db.get(Job, design_job.id) is None


@pytest.mark.asyncio
async def test_second_reap_reports_not_found(db, design_job, storage):
    job_id = design_job.id
    await job_reaper_service.reap(db, job_id, storage=storage)

    with pytest.raises(JobNotFoundError):
        await job_reaper_service.reap(db, job_id, storage=storage)


@pytest.mark.asyncio
async def test_reap_publishes_deleted_event(db, design_job, storage):
    subscription = hub.subscribe(BOARD_TOPIC)
    try:
        await job_reaper_service.reap(db, design_job.id, storage=storage)
        event = await subscription.get()
    finally:
        subscription.cancel()

    assert event.type == JobEventType.JOB_DELETED
    assert event.job_id == design_job.id
