"""Identity & role context: one all-or-nothing snapshot per request/connection.

The context moves through an explicit state machine:

    checking_auth -> fetching_profile -> fetching_departments -> ready
    checking_auth -> fetching_departments -> unauthenticated

While it is not ready, consumers see no identity, no profile and no
departments, so nothing downstream can act on a half-loaded session (for
example a board rendered before departments arrive would have zero columns).
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Awaitable, Callable, Generic, Sequence, TypeVar
from uuid import UUID

from printshop.core.stage_definitions import sort_by_pipeline

P = TypeVar("P")
D = TypeVar("D")


class IdentityState(str, Enum):
    CHECKING_AUTH = "checking_auth"
    FETCHING_PROFILE = "fetching_profile"
    FETCHING_DEPARTMENTS = "fetching_departments"
    READY = "ready"
    UNAUTHENTICATED = "unauthenticated"


class IdentityTransitionError(RuntimeError):
    """Raised when a loader result arrives in a state that does not expect it."""


@dataclass(frozen=True)
class AuthIdentity:
    """Authenticated principal as reported by the session token."""

    user_id: UUID
    email: str


class IdentityContext(Generic[P, D]):
    """Explicit readiness gate over identity, profile and ordered departments."""

    def __init__(self) -> None:
        self._state = IdentityState.CHECKING_AUTH
        self._identity: AuthIdentity | None = None
        self._profile: P | None = None
        self._departments: list[D] = []

    # ------------------------------------------------------------------
    # Transitions
    # ------------------------------------------------------------------

    def auth_resolved(self, identity: AuthIdentity | None) -> None:
        self._expect(IdentityState.CHECKING_AUTH)
        self._identity = identity
        if identity is None:
            self._state = IdentityState.FETCHING_DEPARTMENTS
        else:
            self._state = IdentityState.FETCHING_PROFILE

    def profile_loaded(self, profile: P | None) -> None:
        self._expect(IdentityState.FETCHING_PROFILE)
        if profile is None:
            # An identity without a profile is never exposed
            self._identity = None
        self._profile = profile
        self._state = IdentityState.FETCHING_DEPARTMENTS

    def departments_loaded(self, departments: Sequence[D]) -> None:
        self._expect(IdentityState.FETCHING_DEPARTMENTS)
        self._departments = sort_by_pipeline(departments)
        if self._identity is not None and self._profile is not None:
            self._state = IdentityState.READY
        else:
            self._state = IdentityState.UNAUTHENTICATED

    def _expect(self, state: IdentityState) -> None:
        if self._state != state:
            raise IdentityTransitionError(
                f"Expected state {state.value}, context is {self._state.value}"
            )

    # ------------------------------------------------------------------
    # Consumer view
    # ------------------------------------------------------------------

    @property
    def state(self) -> IdentityState:
        return self._state

    @property
    def ready(self) -> bool:
        return self._state in (IdentityState.READY, IdentityState.UNAUTHENTICATED)

    @property
    def is_authenticated(self) -> bool:
        return self._state == IdentityState.READY

    @property
    def identity(self) -> AuthIdentity | None:
        return self._identity if self.is_authenticated else None

    @property
    def profile(self) -> P | None:
        return self._profile if self.is_authenticated else None

    @property
    def departments(self) -> list[D]:
        return list(self._departments) if self.ready else []

    # ------------------------------------------------------------------
    # Driver
    # ------------------------------------------------------------------

    @classmethod
    async def resolve(
        cls,
        *,
        authenticate: Callable[[], Awaitable[AuthIdentity | None]],
        load_profile: Callable[[AuthIdentity], Awaitable[P | None]],
        load_departments: Callable[[], Awaitable[Sequence[D]]],
    ) -> "IdentityContext[P, D]":
        """Run every loader in order and return a settled context."""
        context: IdentityContext[P, D] = cls()
        context.auth_resolved(await authenticate())
        if context.state == IdentityState.FETCHING_PROFILE:
            context.profile_loaded(await load_profile(context._identity))
        context.departments_loaded(await load_departments())
        return context
