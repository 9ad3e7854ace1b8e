"""Job queries and creation."""

import logging
from uuid import UUID

from sqlalchemy import select
from sqlalchemy.orm import Session

from printshop.core.config import settings
from printshop.core.errors import PermissionDeniedError, UnauthenticatedError, classify_error
from printshop.core.identity import IdentityContext
from printshop.core.job_access import can_create_job
from printshop.db.enums import Priority
from printshop.db.models import Department, Job, JobUpdate, User
from printshop.services import department_service, job_events

logger = logging.getLogger(__name__)


def tracking_url(job_id: UUID) -> str:
    """Public client link for a job."""
    return f"{settings.FRONTEND_URL.rstrip('/')}/track/{job_id}"


def get_job(db: Session, job_id: UUID) -> Job | None:
    return db.get(Job, job_id)


def list_jobs(db: Session) -> list[Job]:
    """Every job, newest first."""
    return list(db.scalars(select(Job).order_by(Job.created_at.desc())).all())


def list_updates(db: Session, job_id: UUID) -> list[JobUpdate]:
    """A job's history, newest first."""
    return list(
        db.scalars(
            select(JobUpdate)
            .where(JobUpdate.job_id == job_id)
            .order_by(JobUpdate.timestamp.desc())
        ).all()
    )


def create_job(
    db: Session,
    context: IdentityContext[User, Department],
    *,
    client_name: str,
    specifications: str = "",
    priority: Priority = Priority.NORMAL,
) -> Job:
    """
    Open a new job in the entry stage.

    Raises:
        UnauthenticatedError: context has no profile
        PermissionDeniedError: caller is neither owner nor design staff
        ConfigurationError: the entry stage department is missing
        ValueError: client name is blank
    """
    if context.profile is None:
        raise UnauthenticatedError("You must sign in to create a job.")
    if not can_create_job(context):
        raise PermissionDeniedError(
            "Only the owner or the design department can create jobs."
        )

    client_name = client_name.strip()
    if not client_name:
        raise ValueError("Client name is required")

    entry = department_service.get_entry_department(db)
    job = Job(
        client_name=client_name,
        specifications=specifications.strip(),
        status=entry.name,
        department_id=entry.id,
        priority=Priority(priority).value,
    )
    db.add(job)
    try:
        db.commit()
    except Exception as exc:
        db.rollback()
        raise classify_error(exc) from exc
    db.refresh(job)

    logger.info(f"Created job {job.id} in {entry.name}")
    job_events.publish_job_created(job)
    return job
