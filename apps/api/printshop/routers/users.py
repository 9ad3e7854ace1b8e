"""Users router: owner-only staff list and department assignment."""

from uuid import UUID

from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.orm import Session

from printshop.core.deps import StaffContext, get_db, require_csrf_header, require_owner
from printshop.routers.action_errors import raise_action_error
from printshop.schemas.user import DepartmentAssignment, UserRead
from printshop.services import user_service

router = APIRouter(prefix="/users", tags=["Users"])


@router.get("", response_model=list[UserRead])
def list_users(
    context: StaffContext = Depends(require_owner),
    db: Session = Depends(get_db),
):
    """Employees, newest first."""
    return user_service.list_employees(db, context)


@router.patch(
    "/{user_id}/department",
    response_model=UserRead,
    dependencies=[Depends(require_csrf_header)],
)
async def assign_user_department(
    user_id: UUID,
    data: DepartmentAssignment,
    context: StaffContext = Depends(require_owner),
    db: Session = Depends(get_db),
):
    """Assign an employee to a department, or clear the assignment."""
    user = user_service.get_user(db, user_id)
    if not user:
        raise HTTPException(status_code=404, detail="User not found")

    try:
        return user_service.assign_department(db, context, user, data.department_id)
    except ValueError as e:
        raise HTTPException(status_code=422, detail=str(e))
    except Exception as e:
        await raise_action_error(e, context, action="assign_department", component="AdminUsers")
