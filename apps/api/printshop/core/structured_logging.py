"""Structured logging helpers (client-data safe)."""

from typing import Any


def build_log_context(
    *,
    user_id: str | None = None,
    job_id: str | None = None,
    department_id: str | None = None,
    role: str | None = None,
    operation: str | None = None,
    error_kind: str | None = None,
    request_id: str | None = None,
) -> dict[str, Any]:
    """Return a log context dict carrying identifiers only, never client names or specs."""
    context: dict[str, Any] = {}
    if user_id:
        context["user_id"] = str(user_id)
    if job_id:
        context["job_id"] = str(job_id)
    if department_id:
        context["department_id"] = str(department_id)
    if role:
        context["role"] = role
    if operation:
        context["operation"] = operation
    if error_kind:
        context["error_kind"] = error_kind
    if request_id:
        context["request_id"] = request_id
    return context
