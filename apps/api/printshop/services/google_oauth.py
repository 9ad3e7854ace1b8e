"""Google sign-in for staff: authorization URL, code exchange and ID token checks."""

from urllib.parse import urlencode

import httpx
from google.auth.transport import requests as google_requests
from google.oauth2 import id_token
from pydantic import BaseModel

from printshop.core.config import settings

GOOGLE_AUTH_URL = "https://accounts.google.com/o/oauth2/v2/auth"
GOOGLE_TOKEN_URL = "https://oauth2.googleapis.com/token"
GOOGLE_ISSUERS = ("accounts.google.com", "https://accounts.google.com")


class GoogleIdentity(BaseModel):
    """Verified claims from a Google ID token."""

    sub: str
    email: str  # lower-cased
    name: str


def build_authorization_url(state: str, nonce: str) -> str:
    params = {
        "client_id": settings.GOOGLE_CLIENT_ID,
        "redirect_uri": settings.GOOGLE_REDIRECT_URI,
        "response_type": "code",
        "scope": "openid email profile",
        "state": state,
        "nonce": nonce,
        "prompt": "select_account",
    }
    return f"{GOOGLE_AUTH_URL}?{urlencode(params)}"


async def exchange_code(code: str) -> dict:
    """
    Exchange an authorization code for tokens.

    Raises:
        httpx.HTTPStatusError: If Google rejects the exchange
    """
    async with httpx.AsyncClient() as client:
        response = await client.post(
            GOOGLE_TOKEN_URL,
            data={
                "code": code,
                "client_id": settings.GOOGLE_CLIENT_ID,
                "client_secret": settings.GOOGLE_CLIENT_SECRET,
                "redirect_uri": settings.GOOGLE_REDIRECT_URI,
                "grant_type": "authorization_code",
            },
        )
        response.raise_for_status()
        return response.json()


def verify_identity_token(token: str, expected_nonce: str) -> GoogleIdentity:
    """
    Verify a Google ID token (signature and standard claims via google-auth),
    then require a verified email and the nonce sent with the login request.

    Raises:
        ValueError: If any check fails
    """
    claims = id_token.verify_oauth2_token(
        token, google_requests.Request(), settings.GOOGLE_CLIENT_ID
    )
    if claims.get("iss") not in GOOGLE_ISSUERS:
        raise ValueError("Invalid issuer")
    if not claims.get("email_verified"):
        raise ValueError("Email not verified by Google")
    if claims.get("nonce") != expected_nonce:
        raise ValueError("Nonce mismatch")

    email = claims["email"].lower()
    return GoogleIdentity(
        sub=claims["sub"],
        email=email,
        name=claims.get("name") or email.split("@")[0],
    )


def validate_email_domain(email: str) -> None:
    """
    Raise ValueError unless the email's domain is allowed.

    No configured domains means no restriction.
    """
    allowed = settings.allowed_domains_list
    if not allowed:
        return
    domain = email.rsplit("@", 1)[-1].lower()
    if domain not in allowed:
        raise ValueError(f"Email domain '{domain}' not allowed")
