"""Presentation helpers for department statuses, priorities and attached files.

Department names come from stored data and may drift from the table below,
so every lookup falls back to a neutral representation instead of failing.
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from urllib.parse import unquote, urlparse

from printshop.core.stage_definitions import (
    BILLING,
    DELIVERED,
    DESIGN,
    FINISHING,
    PRINTING,
    READY_FOR_DELIVERY,
)
from printshop.db.enums import Priority


@dataclass(frozen=True)
class StatusConfig:
    icon: str
    color: str
    label: str
    name: str


@dataclass(frozen=True)
class PriorityConfig:
    icon: str
    color: str
    background_color: str


UNKNOWN_LABEL = "Unknown"
_FALLBACK_ICON = "building"
_FALLBACK_COLOR = "#6B7280"  # Gray

_STATUS_MAP: dict[str, tuple[str, str, str]] = {
    DESIGN: ("pencil", "#3B82F6", "Design & Service"),  # Blue
    BILLING: ("banknote", "#EF4444", "Billing"),  # Red
    PRINTING: ("printer", "#EAB308", "Printing"),  # Yellow
    FINISHING: ("scissors", "#A855F7", "Finishing"),  # Purple
    READY_FOR_DELIVERY: ("package-check", "#06B6D4", "Ready for Delivery"),  # Cyan
    DELIVERED: ("truck", "#22C55E", "Delivered"),  # Green
}

_PRIORITY_MAP: dict[Priority, PriorityConfig] = {
    Priority.URGENT: PriorityConfig("shield-alert", "#F87171", "rgba(127, 29, 29, 0.3)"),
    Priority.HIGH: PriorityConfig("chevrons-up", "#FB923C", "rgba(124, 45, 18, 0.3)"),
    Priority.NORMAL: PriorityConfig("chevron-up", "#60A5FA", "rgba(30, 58, 138, 0.3)"),
    Priority.LOW: PriorityConfig("minus", "#9CA3AF", "rgba(55, 65, 81, 0.3)"),
}


def status_config(name: str | None) -> StatusConfig:
    """Display metadata for a department/status name; unknown names get a fallback."""
    if not name:
        return StatusConfig(_FALLBACK_ICON, _FALLBACK_COLOR, UNKNOWN_LABEL, UNKNOWN_LABEL)

    icon, color, label = _STATUS_MAP.get(name, (_FALLBACK_ICON, _FALLBACK_COLOR, name))
    return StatusConfig(icon=icon, color=color, label=label, name=name)


def priority_config(level: Priority | str | None) -> PriorityConfig | None:
    """Display metadata for a priority; None only when no priority is given."""
    if not level:
        return None
    try:
        priority = Priority(level)
    except ValueError:
        return _PRIORITY_MAP[Priority.NORMAL]
    return _PRIORITY_MAP[priority]


# =============================================================================
# Attached files
# =============================================================================

IMAGE_EXTENSIONS = (".png", ".jpg", ".jpeg", ".gif", ".webp")
_UPLOAD_PREFIX_RE = re.compile(r"^\d{13}_(?:[0-9a-f]{8}_)?")


def is_image_url(url: str | None) -> bool:
    if not url:
        return False
    path = urlparse(url).path.lower()
    return path.endswith(IMAGE_EXTENSIONS)


def display_file_name(url: str) -> str:
    """Original file name from a stored URL, without the upload timestamp and token prefix."""
    path = unquote(urlparse(url).path)
    name = path.rsplit("/", 1)[-1]
    if not name:
        return "attachment"
    return _UPLOAD_PREFIX_RE.sub("", name)
