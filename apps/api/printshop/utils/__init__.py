"""Utility modules."""

from printshop.utils.presentation import (
    PriorityConfig,
    StatusConfig,
    display_file_name,
    is_image_url,
    priority_config,
    status_config,
)
from printshop.utils.sse import format_sse, format_sse_comment

__all__ = [
    # Presentation
    "StatusConfig",
    "PriorityConfig",
    "status_config",
    "priority_config",
    "is_image_url",
    "display_file_name",
    # Server-sent events
    "format_sse",
    "format_sse_comment",
]
