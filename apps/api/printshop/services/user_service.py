"""Staff profiles: first sign-in creation and owner-managed department assignment."""

import logging
from uuid import UUID

from sqlalchemy import select
from sqlalchemy.orm import Session

from printshop.core.config import settings
from printshop.core.errors import PermissionDeniedError
from printshop.core.identity import IdentityContext
from printshop.core.job_access import is_owner
from printshop.db.enums import AuthProvider, Role
from printshop.db.models import Department, User

logger = logging.getLogger(__name__)


def get_user(db: Session, user_id: UUID) -> User | None:
    return db.get(User, user_id)


def get_user_by_email(db: Session, email: str) -> User | None:
    return db.scalars(select(User).where(User.email == email.lower())).first()


def role_for_email(email: str) -> Role:
    return Role.OWNER if email.lower() == settings.owner_email else Role.EMPLOYEE


def ensure_profile(
    db: Session,
    *,
    email: str,
    display_name: str,
    provider: AuthProvider,
    provider_subject: str | None = None,
) -> User:
    """
    Return the profile for an email, creating it on first sign-in.

    New profiles are owner when the email is the configured owner address,
    otherwise an employee waiting for a department assignment.
    """
    email = email.lower()
    user = get_user_by_email(db, email)
    if user:
        return user

    role = role_for_email(email)
    user = User(
        email=email,
        display_name=display_name or email.split("@")[0],
        role=role.value,
        department_id=None,
        auth_provider=provider.value,
        provider_subject=provider_subject,
    )
    db.add(user)
    db.commit()
    db.refresh(user)
    logger.info(f"Created {role.value} profile {user.id} via {provider.value}")
    return user


def _require_owner(context: IdentityContext[User, Department]) -> User:
    profile = context.profile
    if not is_owner(profile):
        raise PermissionDeniedError("Only the owner can manage staff.")
    return profile


def list_employees(
    db: Session, context: IdentityContext[User, Department]
) -> list[User]:
    """Every employee profile, newest first."""
    _require_owner(context)
    return list(
        db.scalars(
            select(User)
            .where(User.role == Role.EMPLOYEE.value)
            .order_by(User.created_at.desc())
        ).all()
    )


def assign_department(
    db: Session,
    context: IdentityContext[User, Department],
    user: User,
    department_id: UUID | None,
) -> User:
    """
    Move an employee to a department, or clear the assignment with None.

    Raises:
        PermissionDeniedError: caller is not the owner
        ValueError: target is not an employee, or the department is unknown
    """
    _require_owner(context)
    if user.role != Role.EMPLOYEE.value:
        raise ValueError("Only employees can be assigned to a department")
    if department_id is not None and db.get(Department, department_id) is None:
        raise ValueError(f"Department {department_id} not found")

    user.department_id = department_id
    db.commit()
    db.refresh(user)
    logger.info(f"Assigned user {user.id} to department {department_id}")
    return user
