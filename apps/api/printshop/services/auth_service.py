"""Authentication service - sign-in resolution and session creation."""

from sqlalchemy.orm import Session

from printshop.core.config import settings
from printshop.core.security import create_session_token, verify_password
from printshop.db.enums import AuthProvider
from printshop.db.models import User
from printshop.services import user_service
from printshop.services.google_oauth import GoogleIdentity


def create_session_for(user: User) -> str:
    return create_session_token(user.id, user.email, user.role, user.token_version)


def sign_in_with_password(
    db: Session, email: str, password: str
) -> tuple[User | None, str | None]:
    """
    Password sign-in, reserved for the owner account.

    Returns:
        (user, error_code) - one will be None
    """
    if email.strip().lower() != settings.owner_email:
        return None, "invalid_credentials"
    if not settings.OWNER_PASSWORD_HASH:
        return None, "password_login_disabled"
    if not verify_password(password, settings.OWNER_PASSWORD_HASH):
        return None, "invalid_credentials"

    user = user_service.ensure_profile(
        db,
        email=settings.owner_email,
        display_name="Owner",
        provider=AuthProvider.PASSWORD,
    )
    return user, None


def sign_in_with_google(db: Session, identity: GoogleIdentity) -> User:
    """Federated sign-in for any staff member; creates the profile on first use."""
    return user_service.ensure_profile(
        db,
        email=identity.email,
        display_name=identity.name,
        provider=AuthProvider.GOOGLE,
        provider_subject=identity.sub,
    )
