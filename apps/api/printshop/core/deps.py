"""FastAPI dependencies for identity context, authorization, and database access."""

from typing import Generator
from uuid import UUID

import jwt
from fastapi import Depends, HTTPException, Request
from sqlalchemy.orm import Session

from printshop.core.identity import AuthIdentity, IdentityContext
from printshop.core.job_access import is_owner
from printshop.core.security import decode_session_token
from printshop.db.enums import Role
from printshop.db.models import Department, User
from printshop.db.session import SessionLocal
from printshop.services import department_service


# Cookie and header names
COOKIE_NAME = "printshop_session"
CSRF_HEADER = "X-Requested-With"
CSRF_HEADER_VALUE = "XMLHttpRequest"

StaffContext = IdentityContext[User, Department]


def get_db() -> Generator[Session, None, None]:
    """
    Database session dependency.

    Yields a database session and ensures it's closed after the request.
    """
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()


def identity_from_token(token: str | None) -> tuple[AuthIdentity | None, int | None]:
    """Decode a session cookie value; returns (None, None) when missing or invalid."""
    if not token:
        return None, None
    try:
        payload = decode_session_token(token)
        return (
            AuthIdentity(user_id=UUID(payload["sub"]), email=payload.get("email", "")),
            payload.get("token_version"),
        )
    except (jwt.InvalidTokenError, KeyError, ValueError):
        return None, None


async def build_identity_context(db: Session, token: str | None) -> StaffContext:
    """
    Settle the identity context for one request or socket connection.

    A profile whose role is unknown, or whose token version no longer matches
    (revoked session), is treated as missing.
    """
    identity, token_version = identity_from_token(token)

    async def authenticate() -> AuthIdentity | None:
        return identity

    async def load_profile(auth: AuthIdentity) -> User | None:
        user = db.get(User, auth.user_id)
        if user is None or not Role.has_value(user.role):
            return None
        if user.token_version != token_version:
            return None
        return user

    async def load_departments() -> list[Department]:
        return department_service.list_ordered(db)

    return await IdentityContext.resolve(
        authenticate=authenticate,
        load_profile=load_profile,
        load_departments=load_departments,
    )


async def get_identity_context(
    request: Request, db: Session = Depends(get_db)
) -> StaffContext:
    """Identity context for the request; never raises for anonymous callers."""
    return await build_identity_context(db, request.cookies.get(COOKIE_NAME))


def require_authenticated(
    context: StaffContext = Depends(get_identity_context),
) -> StaffContext:
    """
    Require a ready, authenticated context.

    Raises:
        HTTPException 401: Not authenticated
    """
    if not context.is_authenticated:
        raise HTTPException(status_code=401, detail="Not authenticated")
    return context


def require_owner(
    context: StaffContext = Depends(require_authenticated),
) -> StaffContext:
    """
    Require the owner role.

    Raises:
        HTTPException 403: Authenticated but not the owner
    """
    if not is_owner(context.profile):
        raise HTTPException(status_code=403, detail="Owner access required")
    return context


def require_csrf_header(request: Request) -> None:
    """
    Verify CSRF header on mutations.

    Apply to state-changing endpoints (POST, PATCH, DELETE).

    Raises:
        HTTPException 403: Missing or invalid CSRF header
    """
    if request.headers.get(CSRF_HEADER) != CSRF_HEADER_VALUE:
        raise HTTPException(
            status_code=403,
            detail=f"Missing CSRF header. Include '{CSRF_HEADER}: {CSRF_HEADER_VALUE}'"
        )
