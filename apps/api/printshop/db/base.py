from datetime import datetime

from sqlalchemy import DateTime
from sqlalchemy.orm import DeclarativeBase


class Base(DeclarativeBase):
    """Declarative base for the job tracker tables (timestamps are tz-aware)."""
    type_annotation_map = {
        datetime: DateTime(timezone=True),
    }
