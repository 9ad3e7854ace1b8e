"""Authentication-related Pydantic schemas."""

from uuid import UUID

from pydantic import BaseModel

from printshop.core.identity import IdentityState
from printshop.db.enums import Role
from printshop.schemas.department import DepartmentRead


class LoginRequest(BaseModel):
    """Owner password sign-in."""
    email: str
    password: str


class MeResponse(BaseModel):
    """
    Identity context snapshot for GET /auth/me.

    Profile fields are null unless the context is ready and authenticated.
    """
    state: IdentityState
    ready: bool
    user_id: UUID | None = None
    email: str | None = None
    display_name: str | None = None
    role: Role | None = None
    department_id: UUID | None = None
    pending_assignment: bool = False
    can_create_jobs: bool = False
    departments: list[DepartmentRead] = []
