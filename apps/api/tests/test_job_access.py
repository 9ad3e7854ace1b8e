"""Tests for role-scoped board visibility and update authorization."""
import pytest

from printshop.core.job_access import (
    build_board,
    can_create_job,
    can_update_job,
    visible_departments,
)
from printshop.core.stage_definitions import (
    BILLING,
    DELIVERED,
    DEPARTMENT_ORDER,
    DESIGN,
    PRINTING,
)


@pytest.fixture
def jobs(departments, job_factory):
    return [
        job_factory(departments[DESIGN], client_name="Acme"),
        job_factory(departments[PRINTING], client_name="Globex"),
        job_factory(departments[BILLING], client_name="Initech"),
        # Left behind by a reap that has not finished yet
        job_factory(departments[DELIVERED], client_name="Umbrella"),
    ]


@pytest.mark.asyncio
async def test_owner_sees_every_column_but_delivered(owner_context, jobs):
    board = build_board(owner_context, jobs)

    assert [c.department.name for c in board.columns] == DEPARTMENT_ORDER[:-1]
    assert {j.client_name for j in board.jobs} == {"Acme", "Globex", "Initech"}
    assert not board.pending_assignment


@pytest.mark.asyncio
async def test_employee_sees_only_own_department(printer_context, jobs):
    board = build_board(printer_context, jobs)

    assert [c.department.name for c in board.columns] == [PRINTING]
    assert [j.client_name for j in board.jobs] == ["Globex"]


@pytest.mark.asyncio
async def test_unassigned_employee_sees_nothing_and_is_pending(unassigned_context, jobs):
    board = build_board(unassigned_context, jobs)

    assert board.columns == []
    assert board.jobs == []
    assert board.pending_assignment


@pytest.mark.asyncio
async def test_anonymous_context_sees_nothing(context_of, jobs):
    context = await context_of(None)

    assert visible_departments(context) == []
    assert build_board(context, jobs).jobs == []


@pytest.mark.asyncio
async def test_jobs_land_in_column_matching_their_status(owner_context, jobs):
    board = build_board(owner_context, jobs)
    by_column = {c.department.name: [j.client_name for j in c.jobs] for c in board.columns}

    assert by_column[DESIGN] == ["Acme"]
    assert by_column[PRINTING] == ["Globex"]
    assert by_column["Finishing"] == []


def test_can_update_job(owner, designer, printer, unassigned, design_job):
    assert can_update_job(owner, design_job)
    assert can_update_job(designer, design_job)
    assert not can_update_job(printer, design_job)
    assert not can_update_job(unassigned, design_job)
    assert not can_update_job(None, design_job)


@pytest.mark.asyncio
async def test_only_owner_and_design_staff_create_jobs(
    owner_context, designer_context, printer_context, unassigned_context
):
    assert can_create_job(owner_context)
    assert can_create_job(designer_context)
    assert not can_create_job(printer_context)
    assert not can_create_job(unassigned_context)
