"""Terminal-state reaper: removes a delivered job and the files its history references.

File cleanup is best-effort (a file may already be gone, or a URL may not
point at a deletable object). The job delete is strict: a job must never
survive once its history was assumed cleaned, so any failure there propagates.
"""

import asyncio
import logging
from uuid import UUID

from sqlalchemy import select
from sqlalchemy.orm import Session

from printshop.core.errors import JobNotFoundError
from printshop.core.structured_logging import build_log_context
from printshop.db.models import Job, JobUpdate
from printshop.schemas.job import ReapResult, referenced_file_urls
from printshop.services import job_events
from printshop.services.storage_service import FileStorage, delete_url

logger = logging.getLogger(__name__)


async def _delete_files(storage: FileStorage, urls: list[str]) -> list[str]:
    """Delete every URL concurrently; returns the URLs that could not be deleted."""
    results = await asyncio.gather(
        *(delete_url(storage, url) for url in urls),
        return_exceptions=True,
    )
    failures: list[str] = []
    for url, result in zip(urls, results):
        if isinstance(result, Exception):
            failures.append(url)
            logger.warning(
                f"Could not delete file {url}: {type(result).__name__}: {result}"
            )
    return failures


async def reap(db: Session, job_id: UUID, *, storage: FileStorage) -> ReapResult:
    """
    Delete a job that reached the terminal stage.

    Raises:
        JobNotFoundError: the job no longer exists (e.g. already reaped)
    """
    try:
        updates = db.scalars(select(JobUpdate).where(JobUpdate.job_id == job_id)).all()
        urls = referenced_file_urls(list(updates))
    except Exception as exc:
        db.rollback()
        logger.warning(
            f"Could not list files of job {job_id}, deleting job anyway: {type(exc).__name__}: {exc}",
            extra=build_log_context(job_id=str(job_id), operation="reap"),
        )
        urls = []

    failures = await _delete_files(storage, urls) if urls else []

    job = db.get(Job, job_id)
    if job is None:
        raise JobNotFoundError(code="not-found")

    try:
        db.delete(job)
        db.commit()
    except Exception:
        db.rollback()
        raise

    logger.info(
        f"Reaped job {job_id}: {len(urls) - len(failures)}/{len(urls)} file(s) deleted",
        extra=build_log_context(job_id=str(job_id), operation="reap"),
    )
    job_events.publish_job_deleted(job_id)

    return ReapResult(
        job_id=job_id,
        files_attempted=len(urls),
        files_deleted=len(urls) - len(failures),
        file_failures=failures,
    )
