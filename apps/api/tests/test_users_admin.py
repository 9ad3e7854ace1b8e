"""Tests for the owner's staff management endpoints."""
import uuid

import pytest
from httpx import AsyncClient

from printshop.core.errors import PermissionDeniedError
from printshop.core.stage_definitions import BILLING, DESIGN
from printshop.db.enums import AuthProvider, Role
from printshop.services import user_service


@pytest.mark.asyncio
async def test_owner_lists_employees_newest_first(
    owner_client: AsyncClient, designer, printer, unassigned
):
    response = await owner_client.get("/users")

    assert response.status_code == 200
    emails = [u["email"] for u in response.json()]
    assert emails == [unassigned.email, printer.email, designer.email]


@pytest.mark.asyncio
async def test_employees_cannot_list_staff(designer_client: AsyncClient):
    response = await designer_client.get("/users")
    assert response.status_code == 403


@pytest.mark.asyncio
async def test_owner_assigns_department(
    owner_client: AsyncClient, unassigned, departments, db
):
    response = await owner_client.patch(
        f"/users/{unassigned.id}/department",
        json={"department_id": str(departments[BILLING].id)},
    )

    assert response.status_code == 200
    assert response.json()["department_id"] == str(departments[BILLING].id)
    db.refresh(unassigned)
    assert unassigned.department_id == departments[BILLING].id


@pytest.mark.asyncio
async def test_owner_clears_assignment(owner_client: AsyncClient, designer):
    response = await owner_client.patch(
        f"/users/{designer.id}/department", json={"department_id": None}
    )

    assert response.status_code == 200
    assert response.json()["department_id"] is None


@pytest.mark.asyncio
async def test_unknown_department_or_user(owner_client: AsyncClient, designer, owner):
    unknown_dept = await owner_client.patch(
        f"/users/{designer.id}/department", json={"department_id": str(uuid.uuid4())}
    )
    unknown_user = await owner_client.patch(
        f"/users/{uuid.uuid4()}/department", json={"department_id": None}
    )
    owner_target = await owner_client.patch(
        f"/users/{owner.id}/department", json={"department_id": None}
    )

    assert unknown_dept.status_code == 422
    assert unknown_user.status_code == 404
    assert owner_target.status_code == 422


@pytest.mark.asyncio
async def test_assign_department_requires_owner(db, designer_context, unassigned, departments):
    with pytest.raises(PermissionDeniedError):
        user_service.assign_department(
            db, designer_context, unassigned, departments[DESIGN].id
        )


def test_first_sign_in_roles(db, departments):
    owner = user_service.ensure_profile(
        db, email="OWNER@printshop.test", display_name="", provider=AuthProvider.PASSWORD
    )
    staff = user_service.ensure_profile(
        db, email="staff@printshop.test", display_name="Staff", provider=AuthProvider.GOOGLE
    )

    assert owner.role == Role.OWNER.value
    assert owner.email == "owner@printshop.test"
    assert staff.role == Role.EMPLOYEE.value
    assert staff.department_id is None
    # Second sign-in returns the same profile
    again = user_service.ensure_profile(
        db, email="staff@printshop.test", display_name="Other", provider=AuthProvider.GOOGLE
    )
    assert again.id == staff.id
    assert again.display_name == "Staff"
