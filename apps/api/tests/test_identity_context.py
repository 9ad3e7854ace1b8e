"""Tests for the identity context state machine."""
import uuid
from dataclasses import dataclass

import pytest

from printshop.core.deps import build_identity_context
from printshop.core.identity import (
    AuthIdentity,
    IdentityContext,
    IdentityState,
    IdentityTransitionError,
)
from printshop.core.security import create_session_token
from printshop.core.stage_definitions import BILLING, DESIGN


@dataclass
class _Stage:
    name: str


IDENTITY = AuthIdentity(user_id=uuid.uuid4(), email="designer@printshop.test")


def test_nothing_is_exposed_before_ready():
    context = IdentityContext()
    context.auth_resolved(IDENTITY)
    context.profile_loaded({"role": "employee"})

    assert context.state == IdentityState.FETCHING_DEPARTMENTS
    assert not context.ready
    assert context.identity is None
    assert context.profile is None
    assert context.departments == []


def test_full_sign_in_path_reaches_ready_with_ordered_departments():
    context = IdentityContext()
    context.auth_resolved(IDENTITY)
    context.profile_loaded({"role": "employee"})
    context.departments_loaded([_Stage(BILLING), _Stage(DESIGN)])

    assert context.state == IdentityState.READY
    assert context.is_authenticated
    assert context.identity == IDENTITY
    assert [d.name for d in context.departments] == [DESIGN, BILLING]


def test_anonymous_path_skips_profile_and_keeps_departments():
    context = IdentityContext()
    context.auth_resolved(None)
    assert context.state == IdentityState.FETCHING_DEPARTMENTS

    context.departments_loaded([_Stage(DESIGN)])
    assert context.state == IdentityState.UNAUTHENTICATED
    assert context.ready
    assert not context.is_authenticated
    assert [d.name for d in context.departments] == [DESIGN]


def test_identity_without_profile_is_never_exposed():
    context = IdentityContext()
    context.auth_resolved(IDENTITY)
    context.profile_loaded(None)
    context.departments_loaded([])

    assert context.state == IdentityState.UNAUTHENTICATED
    assert context.identity is None
    assert context.profile is None


def test_out_of_order_transition_raises():
    context = IdentityContext()
    with pytest.raises(IdentityTransitionError):
        context.departments_loaded([])

    context.auth_resolved(None)
    with pytest.raises(IdentityTransitionError):
        context.profile_loaded({"role": "owner"})


@pytest.mark.asyncio
async def test_resolve_runs_loaders_in_order():
    calls = []

    async def authenticate():
        calls.append("auth")
        return IDENTITY

    async def load_profile(identity):
        calls.append("profile")
        assert identity == IDENTITY
        return {"role": "owner"}

    async def load_departments():
        calls.append("departments")
        return [_Stage(DESIGN)]

    context = await IdentityContext.resolve(
        authenticate=authenticate,
        load_profile=load_profile,
        load_departments=load_departments,
    )

    assert calls == ["auth", "profile", "departments"]
    assert context.is_authenticated


@pytest.mark.asyncio
async def test_revoked_session_settles_unauthenticated(db, designer, context_of):
    designer.token_version += 1
    db.commit()

    # Token minted after the bump is fine, one from before is not
    current = await context_of(designer)
    assert current.is_authenticated

    old_token = create_session_token(designer.id, designer.email, designer.role, 1)
    revoked = await build_identity_context(db, old_token)
    assert revoked.state == IdentityState.UNAUTHENTICATED
    assert revoked.profile is None
    assert len(revoked.departments) == 6


@pytest.mark.asyncio
async def test_garbage_token_settles_unauthenticated(db, departments):
    context = await build_identity_context(db, "not-a-jwt")
    assert context.state == IdentityState.UNAUTHENTICATED
