"""Job events facade.

Publishes job snapshots to the board and per-job push channels so callers
don't depend on the subscription hub directly. Must be called from the event
loop thread.
"""

from __future__ import annotations

from uuid import UUID

from printshop.core.subscriptions import BOARD_TOPIC, SubscriptionHub, job_topic
from printshop.db.enums import JobEventType
from printshop.db.models import Job, JobUpdate
from printshop.schemas.job import JobEvent, JobRead, JobUpdateRead

# Singleton instance
hub: SubscriptionHub[JobEvent] = SubscriptionHub()


def _publish(event: JobEvent) -> None:
    hub.publish(BOARD_TOPIC, event)
    hub.publish(job_topic(event.job_id), event)


def publish_job_created(job: Job) -> None:
    _publish(JobEvent(type=JobEventType.JOB_CREATED, job_id=job.id, job=JobRead.from_job(job)))


def publish_job_updated(job: Job, update: JobUpdate | None = None) -> None:
    """Job snapshot changed; an accompanying history entry is published on the job topic."""
    _publish(JobEvent(type=JobEventType.JOB_UPDATED, job_id=job.id, job=JobRead.from_job(job)))
    if update is not None:
        publish_update_added(update)


def publish_update_added(update: JobUpdate) -> None:
    hub.publish(
        job_topic(update.job_id),
        JobEvent(
            type=JobEventType.UPDATE_ADDED,
            job_id=update.job_id,
            update=JobUpdateRead.from_update(update),
        ),
    )


def publish_job_deleted(job_id: UUID) -> None:
    _publish(JobEvent(type=JobEventType.JOB_DELETED, job_id=job_id))
