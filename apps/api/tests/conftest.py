"""
Test configuration and fixtures.

Provides:
- In-memory SQLite database (tables created once, rows cleared after each test)
- Seeded departments and staff profiles for every role
- Settled identity contexts and session cookies for authenticated tests
- HTTPX AsyncClient with proper headers
"""
import os
import tempfile
from typing import AsyncGenerator, Generator

# Must be set before any printshop import reads settings
os.environ["DATABASE_URL"] = "sqlite://"
os.environ["TESTING"] = "1"
os.environ["ENV"] = "test"
os.environ["JWT_SECRET"] = "test-secret-for-session-tokens-0123456789"
os.environ["OWNER_EMAIL"] = "owner@printshop.test"
os.environ["STORAGE_BACKEND"] = "local"
os.environ["LOCAL_STORAGE_PATH"] = tempfile.mkdtemp(prefix="printshop-tests-")
os.environ["AI_DIAGNOSIS_ENABLED"] = "false"

import pytest
from httpx import ASGITransport, AsyncClient
from sqlalchemy.orm import Session

from printshop.core.config import settings
from printshop.core.deps import COOKIE_NAME, StaffContext, build_identity_context, get_db
from printshop.core.stage_definitions import DESIGN, PRINTING
from printshop.db.base import Base
from printshop.db.enums import AuthProvider, Priority, Role
from printshop.db.models import Department, Job, JobUpdate, User
from printshop.db.session import SessionLocal, engine
from printshop.main import app
from printshop.services import auth_service, department_service
from printshop.services.storage_service import LocalStorage


# =============================================================================
# Database Fixtures
# =============================================================================

@pytest.fixture(scope="session", autouse=True)
def _schema() -> Generator[None, None, None]:
    Base.metadata.create_all(bind=engine)
    yield
    Base.metadata.drop_all(bind=engine)


@pytest.fixture(scope="function")
def db() -> Generator[Session, None, None]:
    """
    Session on the shared in-memory database.

    App code commits freely; every table is emptied after the test.
    """
    session = SessionLocal()
    yield session
    session.rollback()
    for table in reversed(Base.metadata.sorted_tables):
        session.execute(table.delete())
    session.commit()
    session.close()


@pytest.fixture(autouse=True)
def local_storage_root(tmp_path, monkeypatch) -> str:
    """Point the local storage backend at a per-test directory."""
    root = str(tmp_path / "files")
    monkeypatch.setattr(settings, "LOCAL_STORAGE_PATH", root)
    return root


@pytest.fixture
def storage(local_storage_root: str) -> LocalStorage:
    return LocalStorage(root=local_storage_root, url_prefix="/files")


# =============================================================================
# Domain Fixtures
# =============================================================================

@pytest.fixture
def departments(db: Session) -> dict[str, Department]:
    """The six canonical departments, keyed by name."""
    department_service.seed_default_departments(db)
    return {dep.name: dep for dep in department_service.list_ordered(db)}


def make_user(
    db: Session,
    email: str,
    *,
    role: Role = Role.EMPLOYEE,
    department: Department | None = None,
) -> User:
    user = User(
        email=email,
        display_name=email.split("@")[0],
        role=role.value,
        department_id=department.id if department else None,
        auth_provider=AuthProvider.GOOGLE.value,
    )
    db.add(user)
    db.commit()
    db.refresh(user)
    return user


def make_job(
    db: Session,
    department: Department,
    *,
    client_name: str = "Acme Bakery",
    priority: Priority = Priority.NORMAL,
    approval_url: str | None = None,
) -> Job:
    job = Job(
        client_name=client_name,
        specifications="500 flyers, A5, glossy",
        status=department.name,
        department_id=department.id,
        priority=priority.value,
        approval_url=approval_url,
    )
    db.add(job)
    db.commit()
    db.refresh(job)
    return job


def add_update(db: Session, job: Job, **fields) -> JobUpdate:
    update = JobUpdate(job_id=job.id, **fields)
    db.add(update)
    db.commit()
    db.refresh(update)
    return update


@pytest.fixture
def owner(db: Session, departments) -> User:
    return make_user(db, settings.owner_email, role=Role.OWNER)


@pytest.fixture
def designer(db: Session, departments) -> User:
    return make_user(db, "designer@printshop.test", department=departments[DESIGN])


@pytest.fixture
def printer(db: Session, departments) -> User:
    return make_user(db, "printer@printshop.test", department=departments[PRINTING])


@pytest.fixture
def unassigned(db: Session, departments) -> User:
    return make_user(db, "newhire@printshop.test")


@pytest.fixture
def job_factory(db: Session):
    """Create jobs directly in a department: job_factory(department, **fields)."""
    return lambda department, **fields: make_job(db, department, **fields)


@pytest.fixture
def update_factory(db: Session):
    """Append history entries directly: update_factory(job, **fields)."""
    return lambda job, **fields: add_update(db, job, **fields)


@pytest.fixture
def design_job(db: Session, departments) -> Job:
    return make_job(db, departments[DESIGN])


# =============================================================================
# Identity Fixtures
# =============================================================================

async def context_for(db: Session, user: User | None) -> StaffContext:
    """Settle an identity context the same way a request would."""
    token = auth_service.create_session_for(user) if user else None
    return await build_identity_context(db, token)


@pytest.fixture
def context_of(db: Session):
    """Await context_of(user) for a settled context; None gives an anonymous one."""
    return lambda user: context_for(db, user)


@pytest.fixture
async def owner_context(db: Session, owner: User) -> StaffContext:
    return await context_for(db, owner)


@pytest.fixture
async def designer_context(db: Session, designer: User) -> StaffContext:
    return await context_for(db, designer)


@pytest.fixture
async def printer_context(db: Session, printer: User) -> StaffContext:
    return await context_for(db, printer)


@pytest.fixture
async def unassigned_context(db: Session, unassigned: User) -> StaffContext:
    return await context_for(db, unassigned)


# =============================================================================
# Client Fixtures
# =============================================================================

def _client(db: Session, user: User | None = None) -> AsyncClient:
    def override_get_db():
        yield db

    app.dependency_overrides[get_db] = override_get_db
    cookies = {COOKIE_NAME: auth_service.create_session_for(user)} if user else None
    return AsyncClient(
        transport=ASGITransport(app=app),
        base_url="http://test",
        cookies=cookies,
        headers={"X-Requested-With": "XMLHttpRequest"},  # CSRF header
    )


@pytest.fixture
async def client(db: Session) -> AsyncGenerator[AsyncClient, None]:
    """Unauthenticated AsyncClient for public endpoints."""
    async with _client(db) as c:
        yield c
    app.dependency_overrides.clear()


@pytest.fixture
async def owner_client(db: Session, owner: User) -> AsyncGenerator[AsyncClient, None]:
    async with _client(db, owner) as c:
        yield c
    app.dependency_overrides.clear()


@pytest.fixture
async def designer_client(db: Session, designer: User) -> AsyncGenerator[AsyncClient, None]:
    async with _client(db, designer) as c:
        yield c
    app.dependency_overrides.clear()


@pytest.fixture
async def printer_client(db: Session, printer: User) -> AsyncGenerator[AsyncClient, None]:
    async with _client(db, printer) as c:
        yield c
    app.dependency_overrides.clear()


@pytest.fixture
async def unassigned_client(db: Session, unassigned: User) -> AsyncGenerator[AsyncClient, None]:
    async with _client(db, unassigned) as c:
        yield c
    app.dependency_overrides.clear()
