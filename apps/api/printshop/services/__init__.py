"""Service layer modules."""

from printshop.services.auth_service import (
    create_session_for,
    sign_in_with_google,
    sign_in_with_password,
)
from printshop.services.google_oauth import (
    GoogleIdentity,
    exchange_code,
    validate_email_domain,
    verify_identity_token,
)
from printshop.services.user_service import (
    assign_department,
    ensure_profile,
    get_user,
    get_user_by_email,
    list_employees,
)

# Import service modules (not individual functions) for cleaner access
from printshop.services import (
    department_service,
    diagnostics_service,
    job_events,
    job_reaper_service,
    job_service,
    job_update_service,
    storage_service,
    tracker_service,
)

__all__ = [
    # Auth
    "create_session_for",
    "sign_in_with_google",
    "sign_in_with_password",
    # Google OAuth
    "GoogleIdentity",
    "exchange_code",
    "validate_email_domain",
    "verify_identity_token",
    # Users
    "assign_department",
    "ensure_profile",
    "get_user",
    "get_user_by_email",
    "list_employees",
    # Modules
    "department_service",
    "diagnostics_service",
    "job_events",
    "job_reaper_service",
    "job_service",
    "job_update_service",
    "storage_service",
    "tracker_service",
]
