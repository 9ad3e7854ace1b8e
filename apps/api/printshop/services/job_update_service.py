"""
Job update pipeline.

One submission from the job detail page becomes at most one job field patch
plus one appended history entry, committed together:

    validate -> authorize -> (terminal? reap) -> upload files -> commit

Files are uploaded before the commit. If the commit fails, the uploads are
deleted best-effort so no stored file is left without a history entry.
"""

from __future__ import annotations

import asyncio
import logging
import threading
from typing import Callable

from sqlalchemy.orm import Session

from printshop.core.errors import (
    ConfigurationError,
    NoChangesError,
    PermissionDeniedError,
    UnauthenticatedError,
    classify_error,
)
from printshop.core.identity import IdentityContext
from printshop.core.job_access import can_update_job
from printshop.core.stage_definitions import is_terminal
from printshop.core.structured_logging import build_log_context
from printshop.db.models import Department, Job, JobUpdate, User
from printshop.schemas.job import (
    ApprovalRequestResult,
    AttachmentPayload,
    JobChanges,
    JobRead,
    JobUpdateRead,
    UpdateResult,
)
from printshop.services import job_events, job_reaper_service
from printshop.services.storage_service import (
    FileStorage,
    build_storage_key,
    delete_url,
    upload_bytes,
)

logger = logging.getLogger(__name__)

UploadProgress = Callable[[float], None]

SCREENSHOT_NOTE = "Design screenshot attached."
APPROVAL_REQUESTED_NOTE = "Design approval was requested from the client."
BOARD_PATH = "/"


def approval_note(url: str) -> str:
    return f"Client approval recorded: {url}"


def approval_request_message(job: Job, tracking_url: str) -> str:
    return (
        f"Hello! The design for your order {job.id} is ready for review. "
        f"Follow this link to see its progress and preview: {tracking_url}"
    )


# =============================================================================
# Validation
# =============================================================================

class _Diff:
    """What a change set actually changes on a given job."""

    def __init__(self, job: Job, changes: JobChanges):
        self.status = changes.status if changes.status and changes.status != job.status else None
        self.priority = (
            changes.priority.value
            if changes.priority is not None and changes.priority.value != job.priority
            else None
        )
        self.approval_url = (
            changes.approval_url
            if changes.approval_url and changes.approval_url != job.approval_url
            else None
        )
        # An empty string removes the current link; None leaves it alone
        self.clear_approval = changes.approval_url == "" and bool(job.approval_url)
        self.comment = changes.comment or None
        self.files = changes.files

    @property
    def empty(self) -> bool:
        return not (
            self.status
            or self.priority
            or self.approval_url
            or self.clear_approval
            or self.comment
            or self.files
        )


def _require_actor(
    context: IdentityContext[User, Department], job: Job
) -> User:
    profile = context.profile
    if not context.is_authenticated or context.identity is None or profile is None:
        raise UnauthenticatedError()
    if not can_update_job(profile, job):
        raise PermissionDeniedError(
            "Only the owner or the job's current department can update this job.",
            code="permission-denied",
        )
    return profile


def _resolve_department(
    context: IdentityContext[User, Department], name: str
) -> Department:
    for department in context.departments:
        if department.name == name:
            return department
    raise ConfigurationError(f"Unknown department '{name}'.")


# =============================================================================
# Uploads
# =============================================================================

class _ProgressTracker:
    """Aggregates per-chunk byte counts from worker threads into one percentage."""

    def __init__(self, total_bytes: int, callback: UploadProgress | None):
        self._total = max(total_bytes, 1)
        self._sent = 0
        self._lock = threading.Lock()
        self._callback = callback

    def __call__(self, chunk: int) -> None:
        with self._lock:
            self._sent += chunk
            percent = min(100.0, self._sent * 100.0 / self._total)
        if self._callback:
            self._callback(percent)


async def _discard_uploads(storage: FileStorage, urls: list[str]) -> None:
    """Best-effort removal of files that will not be referenced by any update."""
    results = await asyncio.gather(
        *(delete_url(storage, url) for url in urls), return_exceptions=True
    )
    for url, result in zip(urls, results):
        if isinstance(result, Exception):
            logger.warning(f"Could not discard orphaned upload {url}: {result}")


async def upload_files(
    job: Job,
    files: list[AttachmentPayload],
    *,
    storage: FileStorage,
    on_progress: UploadProgress | None = None,
) -> list[str]:
    """
    Upload every file once, concurrently, and return their public URLs in order.

    All-or-nothing: if any upload fails the successful ones are discarded and
    the classified error is raised.
    """
    if not files:
        return []

    tracker = _ProgressTracker(sum(f.size for f in files), on_progress)
    keys = [build_storage_key(job.id, f.filename) for f in files]
    results = await asyncio.gather(
        *(upload_bytes(storage, key, f.content, tracker) for key, f in zip(keys, files)),
        return_exceptions=True,
    )

    urls = [r for r in results if isinstance(r, str)]
    errors = [r for r in results if isinstance(r, BaseException)]
    if errors:
        await _discard_uploads(storage, urls)
        raise classify_error(errors[0]) from errors[0]
    return urls


# =============================================================================
# Pipeline
# =============================================================================

def _compose_comment(diff: _Diff, changes: JobChanges) -> str | None:
    parts: list[str] = []
    if diff.comment:
        parts.append(diff.comment)
    if changes.screenshot and "screenshot" not in (diff.comment or "").lower():
        parts.append(SCREENSHOT_NOTE)
    if diff.approval_url:
        parts.append(approval_note(diff.approval_url))
    return "\n".join(parts) or None


async def apply_update(
    db: Session,
    job: Job,
    changes: JobChanges,
    context: IdentityContext[User, Department],
    *,
    storage: FileStorage,
    on_progress: UploadProgress | None = None,
) -> UpdateResult:
    """
    Apply one change set to a job.

    Raises:
        NoChangesError: nothing differs and no files are attached
        UnauthenticatedError: context has no identity/profile
        PermissionDeniedError: actor may not update this job
        ConfigurationError: target status is not a known department
        JobActionError: classified store/storage failure
    """
    diff = _Diff(job, changes)
    if diff.empty:
        raise NoChangesError()

    actor = _require_actor(context, job)
    target = _resolve_department(context, diff.status) if diff.status else None

    # Terminal stage: the job and its files are removed instead of updated
    if target is not None and is_terminal(target.name):
        logger.info(f"Job {job.id} reached terminal stage, reaping")
        result = await job_reaper_service.reap(db, job.id, storage=storage)
        return UpdateResult(outcome="reaped", job_id=result.job_id, redirect_to=BOARD_PATH)

    file_urls = await upload_files(job, diff.files, storage=storage, on_progress=on_progress)

    if target is not None:
        job.status = target.name
        job.department_id = target.id
    if diff.priority:
        job.priority = diff.priority
    if diff.approval_url:
        job.approval_url = diff.approval_url
    elif diff.clear_approval:
        job.approval_url = None

    comment = _compose_comment(diff, changes)
    update: JobUpdate | None = None
    if comment or diff.status or diff.priority or file_urls:
        update = JobUpdate(
            job_id=job.id,
            user_id=actor.id,
            department_id=actor.department_id,
            comment=comment,
            new_status=target.name if target is not None else None,
            new_priority=diff.priority,
            file_urls=file_urls or None,
        )
        db.add(update)

    try:
        db.commit()
    except Exception as exc:
        db.rollback()
        if file_urls:
            await _discard_uploads(storage, file_urls)
        raise classify_error(exc) from exc

    db.refresh(job)
    if update is not None:
        db.refresh(update)

    logger.info(
        f"Job {job.id} updated (status={bool(diff.status)}, priority={bool(diff.priority)}, "
        f"files={len(file_urls)})",
        extra=build_log_context(
            user_id=str(actor.id), job_id=str(job.id), operation="apply_update"
        ),
    )
    job_events.publish_job_updated(job, update)

    return UpdateResult(
        outcome="updated",
        job_id=job.id,
        job=JobRead.from_job(job),
        update=JobUpdateRead.from_update(update) if update is not None else None,
    )


async def request_client_approval(
    db: Session,
    job: Job,
    context: IdentityContext[User, Department],
    tracking_url: str,
) -> ApprovalRequestResult:
    """Log an approval request in the job history and return the message for the client."""
    actor = _require_actor(context, job)

    update = JobUpdate(
        job_id=job.id,
        user_id=actor.id,
        department_id=actor.department_id,
        comment=APPROVAL_REQUESTED_NOTE,
    )
    db.add(update)
    try:
        db.commit()
    except Exception as exc:
        db.rollback()
        raise classify_error(exc) from exc
    db.refresh(update)

    job_events.publish_update_added(update)
    return ApprovalRequestResult(
        message=approval_request_message(job, tracking_url),
        tracking_url=tracking_url,
        update=JobUpdateRead.from_update(update),
    )
