"""Client tracker: public, read-only progress view of one job."""

from typing import Sequence
from uuid import UUID

from sqlalchemy import select
from sqlalchemy.orm import Session

from printshop.core.errors import JobNotFoundError
from printshop.core.stage_definitions import NamedStage, index_of
from printshop.db.enums import ProgressState
from printshop.db.models import Job, JobUpdate
from printshop.schemas.job import (
    FileLink,
    PublicUpdateRead,
    TrackerProgress,
    TrackerRead,
    TrackerStep,
    referenced_file_urls,
)
from printshop.services import department_service
from printshop.utils.presentation import is_image_url, status_config


def compute_progress(status: str | None, departments: Sequence[NamedStage]) -> TrackerProgress:
    """
    Stepper state for a status over ordered departments.

    A status that matches no department (stale data, or a job read while it
    was being reaped) is reported as unresolved rather than placed at step 0.
    """
    current = index_of(status, departments)
    steps: list[TrackerStep] = []
    for position, department in enumerate(departments):
        if current < 0 or position > current:
            state = ProgressState.PENDING
        elif position == current:
            state = ProgressState.CURRENT
        else:
            state = ProgressState.COMPLETED
        display = status_config(department.name)
        steps.append(
            TrackerStep(
                name=department.name,
                label=display.label,
                icon=display.icon,
                state=state,
            )
        )

    return TrackerProgress(
        resolved=current >= 0,
        current_index=current if current >= 0 else None,
        status=status or "",
        steps=steps,
    )


def latest_image_url(updates: Sequence[JobUpdate]) -> str | None:
    """First image of the newest update that has one; updates are expected newest first.

    The designated screenshot is stored ahead of other attachments, so it wins.
    """
    for update in updates:
        for url in referenced_file_urls([update]):
            if is_image_url(url):
                return url
    return None


def build_tracker(db: Session, job_id: UUID) -> TrackerRead:
    job = db.get(Job, job_id)
    if job is None:
        raise JobNotFoundError(code="not-found")

    updates = db.scalars(
        select(JobUpdate)
        .where(JobUpdate.job_id == job_id)
        .order_by(JobUpdate.timestamp.desc())
    ).all()
    departments = department_service.list_ordered(db)

    return TrackerRead(
        job_id=job.id,
        client_name=job.client_name,
        specifications=job.specifications,
        progress=compute_progress(job.status, departments),
        screenshot_url=latest_image_url(updates),
        updates=[
            PublicUpdateRead(
                timestamp=update.timestamp,
                comment=update.comment,
                new_status=update.new_status,
                files=FileLink.for_urls(referenced_file_urls([update])),
            )
            for update in updates
        ],
    )
