"""Pydantic schemas for API request/response models."""

from printshop.schemas.auth import LoginRequest, MeResponse
from printshop.schemas.department import (
    DepartmentRead,
    PriorityConfigRead,
    StatusConfigRead,
)
from printshop.schemas.error import ErrorReport
from printshop.schemas.job import (
    ApprovalRequestResult,
    AttachmentPayload,
    BoardColumnRead,
    BoardRead,
    FileLink,
    JobChanges,
    JobCreate,
    JobDetailRead,
    JobEvent,
    JobRead,
    JobUpdateRead,
    ReapResult,
    TrackerProgress,
    TrackerRead,
    UpdateResult,
)
from printshop.schemas.user import DepartmentAssignment, UserRead

__all__ = [
    # Auth
    "LoginRequest",
    "MeResponse",
    # Departments
    "DepartmentRead",
    "StatusConfigRead",
    "PriorityConfigRead",
    # Errors
    "ErrorReport",
    # Jobs
    "JobCreate",
    "JobRead",
    "JobDetailRead",
    "JobUpdateRead",
    "FileLink",
    "JobChanges",
    "AttachmentPayload",
    "UpdateResult",
    "ReapResult",
    "ApprovalRequestResult",
    "BoardRead",
    "BoardColumnRead",
    "JobEvent",
    # Tracker
    "TrackerProgress",
    "TrackerRead",
    # Users
    "UserRead",
    "DepartmentAssignment",
]
