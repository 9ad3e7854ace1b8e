"""Job, job update, board and tracker schemas."""

from __future__ import annotations

from dataclasses import asdict
from datetime import datetime
from typing import Literal
from uuid import UUID

from pydantic import BaseModel, Field, field_validator

from printshop.db.enums import JobEventType, Priority, ProgressState
from printshop.db.models import Job, JobUpdate
from printshop.schemas.department import (
    DepartmentRead,
    PriorityConfigRead,
    StatusConfigRead,
)
from printshop.utils.presentation import (
    display_file_name,
    is_image_url,
    priority_config,
    status_config,
)


# =============================================================================
# Jobs
# =============================================================================

class JobCreate(BaseModel):
    client_name: str = Field(min_length=1, max_length=255)
    specifications: str = ""
    priority: Priority = Priority.NORMAL

    @field_validator("client_name")
    @classmethod
    def _strip_client_name(cls, value: str) -> str:
        value = value.strip()
        if not value:
            raise ValueError("Client name is required")
        return value


class JobRead(BaseModel):
    id: UUID
    client_name: str
    specifications: str
    status: str
    department_id: UUID
    priority: Priority
    approval_url: str | None
    created_at: datetime
    status_display: StatusConfigRead
    priority_display: PriorityConfigRead | None

    @classmethod
    def from_job(cls, job: Job) -> "JobRead":
        status = status_config(job.status)
        priority = priority_config(job.priority)
        return cls(
            id=job.id,
            client_name=job.client_name,
            specifications=job.specifications,
            status=job.status,
            department_id=job.department_id,
            priority=Priority(job.priority),
            approval_url=job.approval_url,
            created_at=job.created_at,
            status_display=StatusConfigRead(**asdict(status)),
            priority_display=PriorityConfigRead(**asdict(priority)) if priority else None,
        )


class FileLink(BaseModel):
    """An attached file as shown in history: URL, original name, image flag."""

    url: str
    name: str
    is_image: bool

    @classmethod
    def for_urls(cls, urls: list[str]) -> list["FileLink"]:
        return [
            cls(url=url, name=display_file_name(url), is_image=is_image_url(url))
            for url in urls
        ]


class JobUpdateRead(BaseModel):
    id: UUID
    job_id: UUID
    user_id: UUID | None
    department_id: UUID | None
    timestamp: datetime
    comment: str | None
    new_status: str | None
    new_priority: Priority | None
    file_urls: list[str]
    files: list[FileLink]

    @classmethod
    def from_update(cls, update: JobUpdate) -> "JobUpdateRead":
        urls = referenced_file_urls([update])
        return cls(
            id=update.id,
            job_id=update.job_id,
            user_id=update.user_id,
            department_id=update.department_id,
            timestamp=update.timestamp,
            comment=update.comment,
            new_status=update.new_status,
            new_priority=Priority(update.new_priority) if update.new_priority else None,
            file_urls=urls,
            files=FileLink.for_urls(urls),
        )


def referenced_file_urls(updates: list[JobUpdate]) -> list[str]:
    """Every file URL referenced by the updates (legacy and current fields), deduplicated."""
    seen: dict[str, None] = {}
    for update in updates:
        if update.file_url and isinstance(update.file_url, str):
            seen.setdefault(update.file_url, None)
        if isinstance(update.file_urls, list):
            for url in update.file_urls:
                if url and isinstance(url, str):
                    seen.setdefault(url, None)
    return list(seen)


# =============================================================================
# Update pipeline input/output
# =============================================================================

class AttachmentPayload(BaseModel):
    """A file handed to the update pipeline, fully read into memory."""

    filename: str
    content_type: str = "application/octet-stream"
    content: bytes

    @property
    def size(self) -> int:
        return len(self.content)


class JobChanges(BaseModel):
    """
    Sparse change set for one job update.

    Every field is optional; None means "leave as is". A screenshot is the
    designated design capture, attachments are any other files.
    """

    status: str | None = None
    priority: Priority | None = None
    approval_url: str | None = None
    comment: str | None = None
    screenshot: AttachmentPayload | None = None
    attachments: list[AttachmentPayload] = Field(default_factory=list)

    @field_validator("comment", "approval_url")
    @classmethod
    def _strip_text(cls, value: str | None) -> str | None:
        return value.strip() if value is not None else None

    @field_validator("screenshot")
    @classmethod
    def _screenshot_must_be_image(cls, value: AttachmentPayload | None) -> AttachmentPayload | None:
        if value is not None and not value.content_type.startswith("image/"):
            raise ValueError("The screenshot must be an image file")
        return value

    @property
    def files(self) -> list[AttachmentPayload]:
        return ([self.screenshot] if self.screenshot else []) + list(self.attachments)


class UpdateResult(BaseModel):
    outcome: Literal["updated", "reaped"]
    job_id: UUID
    job: JobRead | None = None
    update: JobUpdateRead | None = None
    redirect_to: str | None = None


class ReapResult(BaseModel):
    job_id: UUID
    files_attempted: int
    files_deleted: int
    file_failures: list[str] = Field(default_factory=list)


class ApprovalRequestResult(BaseModel):
    message: str
    tracking_url: str
    update: JobUpdateRead


# =============================================================================
# Board
# =============================================================================

class BoardColumnRead(BaseModel):
    department: DepartmentRead
    jobs: list[JobRead]


class BoardRead(BaseModel):
    columns: list[BoardColumnRead]
    pending_assignment: bool = False


class JobDetailRead(BaseModel):
    job: JobRead
    can_update: bool
    tracking_url: str
    departments: list[DepartmentRead]


# =============================================================================
# Client tracker (public)
# =============================================================================

class TrackerStep(BaseModel):
    name: str
    label: str
    icon: str
    state: ProgressState


class TrackerProgress(BaseModel):
    """Stepper over ordered departments; resolved=False means the status is unknown."""

    resolved: bool
    current_index: int | None
    status: str
    steps: list[TrackerStep]


class PublicUpdateRead(BaseModel):
    timestamp: datetime
    comment: str | None
    new_status: str | None
    files: list[FileLink]


class TrackerRead(BaseModel):
    job_id: UUID
    client_name: str
    specifications: str
    progress: TrackerProgress
    screenshot_url: str | None
    updates: list[PublicUpdateRead]


# =============================================================================
# Push events
# =============================================================================

class JobEvent(BaseModel):
    type: JobEventType
    job_id: UUID
    job: JobRead | None = None
    update: JobUpdateRead | None = None
