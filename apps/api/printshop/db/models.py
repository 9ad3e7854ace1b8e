"""SQLAlchemy ORM models."""

from __future__ import annotations

import uuid
from datetime import datetime, timezone

from sqlalchemy import (
    JSON,
    ForeignKey,
    Index,
    String,
    Text,
    Uuid,
    event,
)
from sqlalchemy.engine import Engine
from sqlalchemy.orm import Mapped, mapped_column, relationship

from printshop.db.base import Base


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


@event.listens_for(Engine, "connect")
def _enable_sqlite_foreign_keys(dbapi_connection, connection_record) -> None:
    """SQLite ignores ON DELETE rules unless foreign keys are switched on per connection."""
    if dbapi_connection.__class__.__module__.startswith("sqlite3"):
        cursor = dbapi_connection.cursor()
        cursor.execute("PRAGMA foreign_keys=ON")
        cursor.close()


class Department(Base):
    """
    Pipeline stage (reference data).

    - name is one of the canonical stage names (see core.stage_definitions)
    - seeded out of band, read-only to the application
    """

    __tablename__ = "departments"

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)
    name: Mapped[str] = mapped_column(String(100), unique=True, nullable=False)
    description: Mapped[str | None] = mapped_column(Text, nullable=True)


class User(Base):
    """
    Staff profile, created at first successful sign-in.

    - role: owner | employee
    - department_id: assignment for employees; null for the owner and for
      employees still waiting on an assignment
    """

    __tablename__ = "users"
    __table_args__ = (Index("idx_users_role", "role"),)

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)
    email: Mapped[str] = mapped_column(String(255), unique=True, nullable=False)
    display_name: Mapped[str] = mapped_column(String(255), default="", nullable=False)
    role: Mapped[str] = mapped_column(String(20), nullable=False)
    department_id: Mapped[uuid.UUID | None] = mapped_column(
        Uuid, ForeignKey("departments.id", ondelete="SET NULL"), nullable=True
    )
    auth_provider: Mapped[str] = mapped_column(String(20), nullable=False)
    provider_subject: Mapped[str | None] = mapped_column(String(255), nullable=True)
    token_version: Mapped[int] = mapped_column(default=1, nullable=False)
    created_at: Mapped[datetime] = mapped_column(default=_utcnow, nullable=False)

    department: Mapped[Department | None] = relationship()


class Job(Base):
    """
    One client print order.

    status and department_id always move together: status holds the
    department name, department_id the matching department row.
    """

    __tablename__ = "jobs"
    __table_args__ = (
        Index("idx_jobs_department", "department_id"),
        Index("idx_jobs_created", "created_at"),
    )

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)
    client_name: Mapped[str] = mapped_column(String(255), nullable=False)
    specifications: Mapped[str] = mapped_column(Text, default="", nullable=False)
    status: Mapped[str] = mapped_column(String(100), nullable=False)
    department_id: Mapped[uuid.UUID] = mapped_column(
        Uuid, ForeignKey("departments.id"), nullable=False
    )
    priority: Mapped[str] = mapped_column(String(20), nullable=False)
    approval_url: Mapped[str | None] = mapped_column(Text, nullable=True)
    created_at: Mapped[datetime] = mapped_column(default=_utcnow, nullable=False)

    updates: Mapped[list["JobUpdate"]] = relationship(
        back_populates="job",
        cascade="all, delete-orphan",
        order_by="JobUpdate.timestamp.desc()",
    )


class JobUpdate(Base):
    """
    Append-only history entry for a job.

    Never edited after insert; removed only together with its job.
    file_url is the legacy single-attachment field, file_urls the current one.
    """

    __tablename__ = "job_updates"
    __table_args__ = (Index("idx_job_updates_job_ts", "job_id", "timestamp"),)

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)
    job_id: Mapped[uuid.UUID] = mapped_column(
        Uuid, ForeignKey("jobs.id", ondelete="CASCADE"), nullable=False
    )
    user_id: Mapped[uuid.UUID | None] = mapped_column(
        Uuid, ForeignKey("users.id", ondelete="SET NULL"), nullable=True
    )
    department_id: Mapped[uuid.UUID | None] = mapped_column(
        Uuid, ForeignKey("departments.id", ondelete="SET NULL"), nullable=True
    )
    timestamp: Mapped[datetime] = mapped_column(default=_utcnow, nullable=False)
    comment: Mapped[str | None] = mapped_column(Text, nullable=True)
    new_status: Mapped[str | None] = mapped_column(String(100), nullable=True)
    new_priority: Mapped[str | None] = mapped_column(String(20), nullable=True)
    file_url: Mapped[str | None] = mapped_column(Text, nullable=True)
    file_urls: Mapped[list | None] = mapped_column(JSON, nullable=True)

    job: Mapped[Job] = relationship(back_populates="updates")
