"""User schemas for the owner's staff page."""

from datetime import datetime
from uuid import UUID

from pydantic import BaseModel

from printshop.db.enums import Role


class UserRead(BaseModel):
    model_config = {"from_attributes": True}

    id: UUID
    email: str
    display_name: str
    role: Role
    department_id: UUID | None
    created_at: datetime


class DepartmentAssignment(BaseModel):
    """None clears the assignment."""
    department_id: UUID | None = None
