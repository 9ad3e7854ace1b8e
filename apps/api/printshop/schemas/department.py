"""Department schemas."""

from dataclasses import asdict
from uuid import UUID

from pydantic import BaseModel

from printshop.db.models import Department
from printshop.utils.presentation import status_config


class StatusConfigRead(BaseModel):
    icon: str
    color: str
    label: str
    name: str


class PriorityConfigRead(BaseModel):
    icon: str
    color: str
    background_color: str


class DepartmentRead(BaseModel):
    model_config = {"from_attributes": True}

    id: UUID
    name: str
    description: str | None = None
    display: StatusConfigRead | None = None

    @classmethod
    def from_department(cls, department: Department) -> "DepartmentRead":
        display = status_config(department.name)
        return cls(
            id=department.id,
            name=department.name,
            description=department.description,
            display=StatusConfigRead(**asdict(display)),
        )
