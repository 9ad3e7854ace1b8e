"""Authentication router: owner password sign-in, Google OAuth and session."""

import json
import logging

from fastapi import APIRouter, Depends, HTTPException, Request, Response
from fastapi.responses import RedirectResponse
from sqlalchemy.orm import Session

from printshop.core.config import settings
from printshop.core.deps import (
    COOKIE_NAME,
    StaffContext,
    build_identity_context,
    get_db,
    get_identity_context,
    require_csrf_header,
)
from printshop.core.job_access import can_create_job, is_pending_assignment
from printshop.core.rate_limit import AUTH_LIMIT, limiter
from printshop.core.security import (
    create_oauth_state_payload,
    generate_oauth_nonce,
    generate_oauth_state,
    parse_oauth_state_payload,
    verify_oauth_state,
)
from printshop.db.enums import Role
from printshop.schemas.auth import LoginRequest, MeResponse
from printshop.schemas.department import DepartmentRead
from printshop.services import auth_service
from printshop.services.google_oauth import (
    build_authorization_url,
    exchange_code,
    validate_email_domain,
    verify_identity_token,
)

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/auth", tags=["Auth"])

OAUTH_STATE_COOKIE = "oauth_state"
OAUTH_STATE_MAX_AGE = 300  # 5 minutes


def me_response(context: StaffContext) -> MeResponse:
    """Snapshot of an identity context; profile fields stay empty until ready."""
    profile = context.profile
    return MeResponse(
        state=context.state,
        ready=context.ready,
        user_id=profile.id if profile else None,
        email=profile.email if profile else None,
        display_name=profile.display_name if profile else None,
        role=Role(profile.role) if profile else None,
        department_id=profile.department_id if profile else None,
        pending_assignment=is_pending_assignment(context),
        can_create_jobs=can_create_job(context),
        departments=[DepartmentRead.from_department(d) for d in context.departments],
    )


def _set_session_cookie(response: Response, token: str) -> None:
    response.set_cookie(
        key=COOKIE_NAME,
        value=token,
        max_age=settings.JWT_EXPIRES_HOURS * 3600,
        httponly=True,
        samesite="lax",
        secure=settings.cookie_secure,
        path="/",
    )


# =============================================================================
# Password sign-in (owner)
# =============================================================================

@router.post("/login", response_model=MeResponse, dependencies=[Depends(require_csrf_header)])
@limiter.limit(AUTH_LIMIT)
async def login(
    request: Request,
    response: Response,
    body: LoginRequest,
    db: Session = Depends(get_db),
):
    """Owner email + password sign-in; sets the session cookie."""
    user, error_code = auth_service.sign_in_with_password(db, body.email, body.password)
    if error_code:
        logger.info(f"Password sign-in rejected: {error_code}")
        raise HTTPException(status_code=401, detail=error_code)

    token = auth_service.create_session_for(user)
    _set_session_cookie(response, token)
    return me_response(await build_identity_context(db, token))


# =============================================================================
# Google OAuth (staff)
# =============================================================================

@router.get("/google/login")
@limiter.limit(AUTH_LIMIT)
def google_login(request: Request):
    """
    Start the Google OAuth flow.

    State and nonce go into a short-lived cookie bound to the user-agent;
    the callback checks both before trusting the returned ID token.
    """
    state = generate_oauth_state()
    nonce = generate_oauth_nonce()
    user_agent = request.headers.get("user-agent", "")

    response = RedirectResponse(url=build_authorization_url(state, nonce), status_code=302)
    response.set_cookie(
        key=OAUTH_STATE_COOKIE,
        value=create_oauth_state_payload(state, nonce, user_agent),
        max_age=OAUTH_STATE_MAX_AGE,
        httponly=True,
        samesite="lax",
        secure=settings.cookie_secure,
        path="/auth",
    )
    return response


@router.get("/google/callback")
async def google_callback(
    request: Request,
    code: str | None = None,
    state: str | None = None,
    error: str | None = None,
    db: Session = Depends(get_db),
):
    """Finish Google sign-in: verify state, token and domain, then set the session."""

    def fail(error_code: str) -> RedirectResponse:
        response = RedirectResponse(url=_get_error_redirect(error_code), status_code=302)
        response.delete_cookie(OAUTH_STATE_COOKIE, path="/auth")
        return response

    if error:
        return fail(f"google_{error}")
    if not code or not state:
        return fail("missing_params")

    state_cookie = request.cookies.get(OAUTH_STATE_COOKIE)
    if not state_cookie:
        return fail("state_expired")
    try:
        stored_payload = parse_oauth_state_payload(state_cookie)
    except json.JSONDecodeError:
        return fail("invalid_state")

    valid, reason = verify_oauth_state(
        stored_payload, state, request.headers.get("user-agent", "")
    )
    if not valid:
        logger.warning(f"OAuth state rejected: {reason}")
        return fail("state_mismatch")

    try:
        tokens = await exchange_code(code)
    except Exception as e:
        logger.warning(f"Google token exchange failed: {e}")
        return fail("token_exchange_failed")

    try:
        identity = verify_identity_token(tokens["id_token"], stored_payload.get("nonce", ""))
        validate_email_domain(identity.email)
    except (KeyError, ValueError) as e:
        logger.warning(f"Google identity rejected: {e}")
        return fail("token_invalid")

    user = auth_service.sign_in_with_google(db, identity)

    response = RedirectResponse(url=_get_success_redirect(), status_code=302)
    response.delete_cookie(OAUTH_STATE_COOKIE, path="/auth")
    _set_session_cookie(response, auth_service.create_session_for(user))
    return response


# =============================================================================
# Session Endpoints
# =============================================================================

@router.get("/me", response_model=MeResponse)
def get_me(context: StaffContext = Depends(get_identity_context)):
    """
    Identity context for the current session.

    Never fails for anonymous callers: the snapshot reports the
    unauthenticated state instead, so the frontend can gate its views.
    """
    return me_response(context)


@router.post("/logout", dependencies=[Depends(require_csrf_header)])
def logout(response: Response):
    """Clear the session cookie."""
    response.delete_cookie(COOKIE_NAME, path="/")
    return {"status": "logged_out"}


# =============================================================================
# Helper Functions
# =============================================================================

def _get_success_redirect() -> str:
    """Safe success redirect URL - fixed path, no user input."""
    return f"{settings.FRONTEND_URL.rstrip('/')}/"


def _get_error_redirect(error_code: str) -> str:
    """Safe error redirect URL - fixed path with error code."""
    return f"{settings.FRONTEND_URL.rstrip('/')}/login?error={error_code}"
