"""Role-scoped job visibility and update authorization.

Viewing and updating are separate questions: the board filter decides what a
user sees, can_update_job decides (again, at action time) what they may change.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Iterable

from printshop.core.identity import IdentityContext
from printshop.core.stage_definitions import DESIGN, is_terminal
from printshop.db.enums import Role
from printshop.db.models import Department, Job, User


@dataclass
class BoardColumn:
    department: Department
    jobs: list[Job] = field(default_factory=list)


@dataclass
class BoardView:
    columns: list[BoardColumn]
    pending_assignment: bool = False

    @property
    def jobs(self) -> list[Job]:
        return [job for column in self.columns for job in column.jobs]


def is_owner(profile: User | None) -> bool:
    return profile is not None and profile.role == Role.OWNER.value


def visible_departments(context: IdentityContext[User, Department]) -> list[Department]:
    """Departments shown as board columns for the context's profile."""
    profile = context.profile
    if not context.is_authenticated or profile is None:
        return []

    if profile.role == Role.OWNER.value:
        return [dep for dep in context.departments if not is_terminal(dep.name)]

    if profile.role == Role.EMPLOYEE.value and profile.department_id:
        return [dep for dep in context.departments if dep.id == profile.department_id]

    return []


def visible_jobs(
    context: IdentityContext[User, Department], jobs: Iterable[Job]
) -> list[Job]:
    """Jobs the context's profile may see on the board."""
    profile = context.profile
    if not context.is_authenticated or profile is None:
        return []

    if profile.role == Role.OWNER.value:
        # Terminal jobs are reaped on arrival; this guards the race window
        return [job for job in jobs if not is_terminal(job.status)]

    if profile.role == Role.EMPLOYEE.value and profile.department_id:
        return [job for job in jobs if job.department_id == profile.department_id]

    return []


def is_pending_assignment(context: IdentityContext[User, Department]) -> bool:
    profile = context.profile
    return (
        profile is not None
        and profile.role == Role.EMPLOYEE.value
        and profile.department_id is None
    )


def build_board(
    context: IdentityContext[User, Department], jobs: Iterable[Job]
) -> BoardView:
    """Group visible jobs into visible department columns (matched by status name)."""
    departments = visible_departments(context)
    jobs_by_status: dict[str, list[Job]] = {}
    for job in visible_jobs(context, jobs):
        jobs_by_status.setdefault(job.status, []).append(job)

    columns = [
        BoardColumn(department=dep, jobs=jobs_by_status.get(dep.name, []))
        for dep in departments
    ]
    return BoardView(columns=columns, pending_assignment=is_pending_assignment(context))


def can_update_job(profile: User | None, job: Job) -> bool:
    """Owner, or an employee whose department is the job's current department."""
    if profile is None:
        return False
    if profile.role == Role.OWNER.value:
        return True
    return profile.department_id is not None and profile.department_id == job.department_id


def can_create_job(context: IdentityContext[User, Department]) -> bool:
    """Owner, or a member of the design/customer service department."""
    profile = context.profile
    if profile is None:
        return False
    if profile.role == Role.OWNER.value:
        return True
    if profile.department_id is None:
        return False
    return any(
        dep.id == profile.department_id and dep.name == DESIGN for dep in context.departments
    )
