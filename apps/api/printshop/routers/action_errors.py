"""Turn job action failures into HTTP errors with a user-facing report."""

import logging
from typing import NoReturn
from uuid import UUID

from fastapi import HTTPException

from printshop.core.deps import StaffContext
from printshop.core.errors import JobActionError, classify_error
from printshop.core.structured_logging import build_log_context
from printshop.schemas.error import ErrorReport
from printshop.services import diagnostics_service

logger = logging.getLogger(__name__)


async def raise_action_error(
    exc: BaseException,
    context: StaffContext,
    *,
    action: str,
    component: str = "JobActions",
    job_id: UUID | None = None,
) -> NoReturn:
    """
    Classify, log and re-raise a failure as HTTPException(detail=ErrorReport).

    The owner additionally gets an AI diagnosis when the assistant is enabled.
    """
    error: JobActionError = classify_error(exc)
    profile = context.profile

    logger.warning(
        f"job_action_failed: {action} -> {error.kind} ({error.code or type(exc).__name__})",
        extra=build_log_context(
            user_id=str(profile.id) if profile else None,
            job_id=str(job_id) if job_id else None,
            department_id=str(profile.department_id) if profile and profile.department_id else None,
            role=profile.role if profile else None,
            operation=action,
            error_kind=error.kind,
        ),
    )

    diagnosis = await diagnostics_service.diagnose_for(
        profile, error, component=component, action=action
    )
    report = ErrorReport.from_error(error, diagnosis)
    raise HTTPException(
        status_code=error.status_code, detail=report.model_dump(mode="json")
    ) from exc
