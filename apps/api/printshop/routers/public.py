"""Public client tracker endpoints (no authentication, rate limited)."""

import asyncio
import logging
from typing import AsyncIterator, Awaitable, Callable
from uuid import UUID

from fastapi import APIRouter, Depends, HTTPException, Request, Response
from fastapi.responses import StreamingResponse
from sqlalchemy.orm import Session, sessionmaker

from printshop.core.deps import get_db
from printshop.core.errors import JobNotFoundError
from printshop.core.rate_limit import PUBLIC_LIMIT, limiter
from printshop.core.subscriptions import SubscriptionHub, job_topic
from printshop.db.enums import JobEventType
from printshop.db.session import SessionLocal
from printshop.schemas.job import JobEvent, TrackerRead
from printshop.services import tracker_service
from printshop.services.job_events import hub
from printshop.utils.sse import KEEPALIVE_SECONDS, STREAM_HEADERS, format_sse, format_sse_comment

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/public", tags=["public"])


@router.get("/track/{job_id}", response_model=TrackerRead)
@limiter.limit(PUBLIC_LIMIT)
def get_tracker(
    request: Request,
    response: Response,
    job_id: UUID,
    db: Session = Depends(get_db),
):
    """Client-facing progress for one job; the job id is the only key."""
    try:
        tracker = tracker_service.build_tracker(db, job_id)
    except JobNotFoundError:
        raise HTTPException(status_code=404, detail="Job not found")
    response.headers["Cache-Control"] = "no-store"
    return tracker


def _snapshot(session_factory: sessionmaker, job_id: UUID) -> str:
    with session_factory() as db:
        try:
            tracker = tracker_service.build_tracker(db, job_id)
        except JobNotFoundError:
            return format_sse("deleted", {"job_id": str(job_id)})
        return format_sse("tracker", tracker.model_dump(mode="json"))


async def tracker_events(
    job_id: UUID,
    *,
    events: SubscriptionHub[JobEvent] = hub,
    session_factory: sessionmaker = SessionLocal,
    is_disconnected: Callable[[], Awaitable[bool]] | None = None,
    keepalive: float = KEEPALIVE_SECONDS,
) -> AsyncIterator[str]:
    """
    Tracker snapshot now and after every change to the job.

    Ends after the job is deleted or the client goes away; the subscription
    is cancelled on every exit path.
    """
    subscription = events.subscribe(job_topic(job_id))
    try:
        frame = _snapshot(session_factory, job_id)
        yield frame
        if frame.startswith("event: deleted"):
            return

        while True:
            if is_disconnected is not None and await is_disconnected():
                break
            try:
                event = await asyncio.wait_for(subscription.get(), timeout=keepalive)
            except asyncio.TimeoutError:
                yield format_sse_comment()
                continue

            if event.type == JobEventType.JOB_DELETED:
                yield format_sse("deleted", {"job_id": str(job_id)})
                break
            yield _snapshot(session_factory, job_id)
    finally:
        subscription.cancel()


@router.get("/track/{job_id}/stream")
@limiter.limit(PUBLIC_LIMIT)
async def stream_tracker(request: Request, job_id: UUID):
    """Server-sent tracker snapshots, pushed whenever the job changes."""
    logger.debug(f"Tracker stream opened for job {job_id}")
    return StreamingResponse(
        tracker_events(job_id, is_disconnected=request.is_disconnected),
        media_type="text/event-stream",
        headers=STREAM_HEADERS,
    )
