"""Enum definitions for application constants."""

from enum import Enum


class Role(str, Enum):
    """
    Staff roles.

    - OWNER: sole administrator, sees and acts across every department
    - EMPLOYEE: scoped to exactly one assigned department (or none yet)
    """
    OWNER = "owner"
    EMPLOYEE = "employee"

    @classmethod
    def has_value(cls, value: str) -> bool:
        """Check if value is a valid role."""
        return value in cls._value2member_map_


class Priority(str, Enum):
    """Job priority levels, most pressing first."""
    URGENT = "urgent"
    HIGH = "high"
    NORMAL = "normal"
    LOW = "low"


class AuthProvider(str, Enum):
    """Supported sign-in methods."""
    PASSWORD = "password"
    GOOGLE = "google"


class JobEventType(str, Enum):
    """Push event types published to board, job and tracker subscribers."""
    JOB_CREATED = "job_created"
    JOB_UPDATED = "job_updated"
    UPDATE_ADDED = "update_added"
    JOB_DELETED = "job_deleted"


class ProgressState(str, Enum):
    """Client tracker step states."""
    COMPLETED = "completed"
    CURRENT = "current"
    PENDING = "pending"
