"""Jobs router: board, creation, detail, history and updates."""

import logging
from uuid import UUID

from fastapi import APIRouter, Depends, File, Form, HTTPException, UploadFile
from pydantic import ValidationError
from sqlalchemy.orm import Session

from printshop.core.config import settings
from printshop.core.deps import (
    StaffContext,
    get_db,
    require_authenticated,
    require_csrf_header,
)
from printshop.core.errors import JobNotFoundError
from printshop.core.job_access import build_board, can_update_job
from printshop.db.enums import Priority
from printshop.db.models import Job
from printshop.routers.action_errors import raise_action_error
from printshop.schemas.department import DepartmentRead
from printshop.schemas.job import (
    ApprovalRequestResult,
    AttachmentPayload,
    BoardColumnRead,
    BoardRead,
    JobChanges,
    JobCreate,
    JobDetailRead,
    JobRead,
    JobUpdateRead,
    UpdateResult,
)
from printshop.services import job_service, job_update_service
from printshop.services.storage_service import get_storage, validate_upload

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/jobs", tags=["Jobs"])


def render_board(db: Session, context: StaffContext) -> BoardRead:
    """Role-scoped board for a settled identity context."""
    board = build_board(context, job_service.list_jobs(db))
    return BoardRead(
        columns=[
            BoardColumnRead(
                department=DepartmentRead.from_department(column.department),
                jobs=[JobRead.from_job(job) for job in column.jobs],
            )
            for column in board.columns
        ],
        pending_assignment=board.pending_assignment,
    )


async def _load_job(db: Session, job_id: UUID, context: StaffContext, action: str) -> Job:
    job = job_service.get_job(db, job_id)
    if job is None:
        await raise_action_error(JobNotFoundError(), context, action=action, job_id=job_id)
    return job


async def _read_upload(upload: UploadFile) -> AttachmentPayload:
    content = await upload.read()
    is_valid, error = validate_upload(upload.filename or "", len(content))
    if not is_valid:
        status_code = 413 if len(content) > settings.MAX_UPLOAD_SIZE_BYTES else 422
        raise HTTPException(status_code=status_code, detail=error)
    return AttachmentPayload(
        filename=upload.filename,
        content_type=upload.content_type or "application/octet-stream",
        content=content,
    )


# =============================================================================
# Board & creation
# =============================================================================

@router.get("/board", response_model=BoardRead)
def get_board(
    context: StaffContext = Depends(require_authenticated),
    db: Session = Depends(get_db),
):
    """Kanban columns visible to the caller; empty with pending_assignment for unassigned employees."""
    return render_board(db, context)


@router.post(
    "",
    response_model=JobRead,
    status_code=201,
    dependencies=[Depends(require_csrf_header)],
)
async def create_job(
    data: JobCreate,
    context: StaffContext = Depends(require_authenticated),
    db: Session = Depends(get_db),
):
    """Open a job in the design/customer service stage."""
    try:
        job = job_service.create_job(
            db,
            context,
            client_name=data.client_name,
            specifications=data.specifications,
            priority=data.priority,
        )
    except ValueError as e:
        raise HTTPException(status_code=422, detail=str(e))
    except Exception as e:
        await raise_action_error(e, context, action="create_job", component="NewJobDialog")
    return JobRead.from_job(job)


# =============================================================================
# Detail & history
# =============================================================================

@router.get("/{job_id}", response_model=JobDetailRead)
async def get_job(
    job_id: UUID,
    context: StaffContext = Depends(require_authenticated),
    db: Session = Depends(get_db),
):
    job = await _load_job(db, job_id, context, "get_job")
    return JobDetailRead(
        job=JobRead.from_job(job),
        can_update=can_update_job(context.profile, job),
        tracking_url=job_service.tracking_url(job.id),
        departments=[DepartmentRead.from_department(d) for d in context.departments],
    )


@router.get("/{job_id}/updates", response_model=list[JobUpdateRead])
async def list_job_updates(
    job_id: UUID,
    context: StaffContext = Depends(require_authenticated),
    db: Session = Depends(get_db),
):
    """History, newest first."""
    job = await _load_job(db, job_id, context, "list_updates")
    return [JobUpdateRead.from_update(u) for u in job_service.list_updates(db, job.id)]


# =============================================================================
# Updates
# =============================================================================

@router.post(
    "/{job_id}/updates",
    response_model=UpdateResult,
    dependencies=[Depends(require_csrf_header)],
)
async def submit_job_update(
    job_id: UUID,
    status: str | None = Form(None),
    priority: Priority | None = Form(None),
    approval_url: str | None = Form(None),
    comment: str | None = Form(None),
    screenshot: UploadFile | None = File(None),
    attachments: list[UploadFile] | None = File(None),
    context: StaffContext = Depends(require_authenticated),
    db: Session = Depends(get_db),
):
    """
    Apply one change set (multipart form).

    A status change to the terminal stage deletes the job instead; the
    result then carries outcome "reaped" and a redirect target.
    """
    job = await _load_job(db, job_id, context, "apply_update")

    try:
        changes = JobChanges(
            status=status or None,
            priority=priority,
            approval_url=approval_url,
            comment=comment,
            screenshot=await _read_upload(screenshot) if screenshot else None,
            attachments=[await _read_upload(f) for f in attachments or []],
        )
    except ValidationError as e:
        raise HTTPException(status_code=422, detail=e.errors(include_url=False, include_input=False))

    try:
        return await job_update_service.apply_update(
            db, job, changes, context, storage=get_storage()
        )
    except Exception as e:
        await raise_action_error(e, context, action="apply_update", job_id=job_id)


@router.post(
    "/{job_id}/approval-request",
    response_model=ApprovalRequestResult,
    dependencies=[Depends(require_csrf_header)],
)
async def request_approval(
    job_id: UUID,
    context: StaffContext = Depends(require_authenticated),
    db: Session = Depends(get_db),
):
    """Record an approval request and return the message to send the client."""
    job = await _load_job(db, job_id, context, "request_approval")
    try:
        return await job_update_service.request_client_approval(
            db, job, context, job_service.tracking_url(job.id)
        )
    except Exception as e:
        await raise_action_error(e, context, action="request_approval", job_id=job_id)
