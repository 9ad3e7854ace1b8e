"""Job action error taxonomy and store/storage failure classification.

Every failure that reaches a user goes through one of these classes so the
router layer can render a title, a description and (for the owner) an AI
hint without knowing which backend raised the original exception.
"""

from __future__ import annotations

import httpx
from botocore.exceptions import (
    ClientError,
    ConnectTimeoutError,
    EndpointConnectionError,
    ReadTimeoutError,
)
from sqlalchemy.exc import DBAPIError, OperationalError


class JobActionError(Exception):
    """Base class for user-facing job action failures."""

    kind = "unknown"
    status_code = 500
    title = "Unexpected error"
    default_description = "Something went wrong. Contact support with this code: UNKNOWN"

    def __init__(self, description: str | None = None, *, code: str | None = None):
        self.description = description or self.default_description
        self.code = code
        super().__init__(self.description)


class NoChangesError(JobActionError):
    kind = "no_changes"
    status_code = 400
    title = "No changes"
    default_description = "You have not made any change to save."


class UnauthenticatedError(JobActionError):
    kind = "unauthenticated"
    status_code = 401
    title = "Not signed in"
    default_description = "You must sign in to update a job."


class PermissionDeniedError(JobActionError):
    kind = "permission_denied"
    status_code = 403
    title = "Permission error"
    default_description = (
        "You do not have permission to perform this action. "
        "The access rules rejected the request."
    )


class JobNotFoundError(JobActionError):
    kind = "not_found"
    status_code = 404
    title = "Job not found"
    default_description = "The job no longer exists."


class NetworkError(JobActionError):
    kind = "network"
    status_code = 503
    title = "Network error"
    default_description = (
        "Could not reach the storage servers. Check your connection and try again."
    )


class ConfigurationError(JobActionError):
    kind = "configuration"
    status_code = 409
    title = "Configuration error"
    default_description = "The department pipeline is not configured correctly."


class UnknownError(JobActionError):
    pass


_S3_ACCESS_DENIED_CODES = {
    "AccessDenied",
    "AllAccessDisabled",
    "InvalidAccessKeyId",
    "SignatureDoesNotMatch",
    "Forbidden",
    "403",
}


def classify_error(exc: BaseException) -> JobActionError:
    """Map a raw store/storage exception onto the job action taxonomy."""
    if isinstance(exc, JobActionError):
        return exc

    if isinstance(exc, ClientError):
        code = str(exc.response.get("Error", {}).get("Code", ""))
        if code in _S3_ACCESS_DENIED_CODES:
            return PermissionDeniedError(code=code)
        return UnknownError(
            f"The storage service rejected the request: {code or 'unknown'}", code=code
        )

    if isinstance(exc, (EndpointConnectionError, ConnectTimeoutError, ReadTimeoutError)):
        return NetworkError(code="storage/network-error")

    if isinstance(exc, httpx.TransportError):
        return NetworkError(code="http/transport-error")

    if isinstance(exc, OperationalError):
        return NetworkError(
            "Could not reach the database. Check your connection and try again.",
            code="db/operational-error",
        )

    if isinstance(exc, DBAPIError) and "permission denied" in str(exc.orig).lower():
        return PermissionDeniedError(code="db/permission-denied")

    if isinstance(exc, PermissionError):
        return PermissionDeniedError(code="storage/unauthorized")

    if isinstance(exc, ConnectionError):
        return NetworkError(code="network-error")

    return UnknownError(code=type(exc).__name__)
