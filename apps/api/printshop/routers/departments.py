"""Departments router: the ordered pipeline stages."""

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from printshop.core.deps import get_db
from printshop.schemas.department import DepartmentRead
from printshop.services import department_service

router = APIRouter(prefix="/departments", tags=["Departments"])


@router.get("", response_model=list[DepartmentRead])
def list_departments(db: Session = Depends(get_db)):
    """Departments in pipeline order (board columns and tracker steps)."""
    return [DepartmentRead.from_department(dep) for dep in department_service.list_ordered(db)]
