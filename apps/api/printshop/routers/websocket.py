"""
WebSocket router for live board and job detail views.

Each connection:
1. Authenticates via the session cookie and settles its identity context
2. Subscribes to its topic before sending the first snapshot
3. Pushes a fresh derived view for every published job event
4. Cancels the subscription before the socket is released
"""

import asyncio
import logging
from typing import Any, Callable
from uuid import UUID

from fastapi import APIRouter, WebSocket, WebSocketDisconnect
from sqlalchemy.orm import Session

from printshop.core.deps import COOKIE_NAME, StaffContext, build_identity_context
from printshop.core.job_access import can_update_job
from printshop.core.subscriptions import BOARD_TOPIC, Subscription, job_topic
from printshop.db.enums import JobEventType
from printshop.db.session import SessionLocal
from printshop.routers.jobs import render_board
from printshop.schemas.job import JobEvent, JobRead, JobUpdateRead
from printshop.services import job_service
from printshop.services.job_events import hub

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/ws", tags=["WebSocket"])

# Returns the message to send, or None to close the channel
Renderer = Callable[[JobEvent | None], dict[str, Any] | None]


async def _receive_until_disconnect(websocket: WebSocket) -> None:
    """Answer heartbeats until the client goes away."""
    try:
        while True:
            if await websocket.receive_text() == "ping":
                await websocket.send_text("pong")
    except WebSocketDisconnect:
        return


async def _pump(
    websocket: WebSocket, subscription: Subscription[JobEvent], render: Renderer
) -> bool:
    """Run until either side ends the channel; True when the server ended it."""
    receiver = asyncio.create_task(_receive_until_disconnect(websocket))
    try:
        message = render(None)
        if message is not None:
            await websocket.send_json(message)

        while message is not None:
            getter = asyncio.create_task(subscription.get())
            done, _ = await asyncio.wait(
                {getter, receiver}, return_when=asyncio.FIRST_COMPLETED
            )
            if receiver in done:
                getter.cancel()
                return False
            message = render(getter.result())
            if message is not None:
                await websocket.send_json(message)
        return True
    finally:
        subscription.cancel()
        receiver.cancel()


async def _connect(websocket: WebSocket, db: Session) -> StaffContext | None:
    context = await build_identity_context(db, websocket.cookies.get(COOKIE_NAME))
    if not context.is_authenticated:
        await websocket.close(code=4001, reason="Authentication required")
        return None
    await websocket.accept()
    return context


@router.websocket("/board")
async def board_channel(websocket: WebSocket):
    """Role-scoped board snapshot, re-sent after every job change."""
    with SessionLocal() as db:
        context = await _connect(websocket, db)
        if context is None:
            return

        def render(event: JobEvent | None) -> dict[str, Any]:
            db.expire_all()
            board = render_board(db, context)
            return {"type": "board", "data": board.model_dump(mode="json")}

        await _pump(websocket, hub.subscribe(BOARD_TOPIC), render)


@router.websocket("/jobs/{job_id}")
async def job_channel(websocket: WebSocket, job_id: UUID):
    """Job snapshot and new history entries; closes once the job is deleted."""
    with SessionLocal() as db:
        context = await _connect(websocket, db)
        if context is None:
            return

        def render(event: JobEvent | None) -> dict[str, Any] | None:
            if event is not None and event.type == JobEventType.JOB_DELETED:
                return None
            if event is not None and event.type == JobEventType.UPDATE_ADDED:
                return {"type": "update", "data": event.update.model_dump(mode="json")}

            db.expire_all()
            job = job_service.get_job(db, job_id)
            if job is None:
                return None
            return {
                "type": "job",
                "data": JobRead.from_job(job).model_dump(mode="json"),
                "can_update": can_update_job(context.profile, job),
                "updates": [
                    JobUpdateRead.from_update(u).model_dump(mode="json")
                    for u in job_service.list_updates(db, job_id)
                ],
            }

        subscription = hub.subscribe(job_topic(job_id))
        if await _pump(websocket, subscription, render):
            await websocket.close(code=1000, reason="Job closed")
