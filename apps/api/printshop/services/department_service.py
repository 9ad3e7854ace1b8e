"""Department registry: ordered pipeline stages loaded from the store."""

import logging
from sqlalchemy import select
from sqlalchemy.orm import Session

from printshop.core.errors import ConfigurationError
from printshop.core.stage_definitions import (
    ENTRY_STAGE,
    TERMINAL_STAGE,
    get_default_department_defs,
    sort_by_pipeline,
)
from printshop.db.models import Department

logger = logging.getLogger(__name__)


def list_ordered(db: Session) -> list[Department]:
    """Every department in pipeline order; unknown names last."""
    departments = db.scalars(select(Department).order_by(Department.name)).all()
    return sort_by_pipeline(departments)


def get_department_by_name(db: Session, name: str) -> Department | None:
    return db.scalars(select(Department).where(Department.name == name)).first()


def get_entry_department(db: Session) -> Department:
    """The stage every job starts in; missing means the shop is misconfigured."""
    department = get_department_by_name(db, ENTRY_STAGE)
    if department is None:
        raise ConfigurationError(
            f"The '{ENTRY_STAGE}' department could not be found. "
            "Make sure the departments are set up correctly."
        )
    return department


def get_terminal_department(db: Session) -> Department | None:
    return get_department_by_name(db, TERMINAL_STAGE)


def seed_default_departments(db: Session) -> list[Department]:
    """Insert any missing canonical department; existing rows are left alone."""
    existing = {dep.name for dep in db.scalars(select(Department)).all()}
    created: list[Department] = []
    for definition in get_default_department_defs():
        if definition["name"] in existing:
            continue
        department = Department(
            name=definition["name"],
            description=definition["description"],
        )
        db.add(department)
        created.append(department)

    if created:
        db.commit()
        logger.info(f"Seeded {len(created)} department(s)")
    return created
