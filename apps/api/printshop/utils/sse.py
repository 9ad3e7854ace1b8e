"""Server-sent events helpers for the public tracker stream."""

from __future__ import annotations

import json
from typing import Any

KEEPALIVE_SECONDS = 15.0

STREAM_HEADERS = {
    "Cache-Control": "no-cache, no-transform",
    "Connection": "keep-alive",
    "X-Accel-Buffering": "no",
}


def format_sse(event_type: str, data: dict[str, Any] | str) -> str:
    """One SSE frame; dicts are JSON-encoded, strings are sent as-is."""
    payload = data if isinstance(data, str) else json.dumps(data)
    return f"event: {event_type}\ndata: {payload}\n\n"


def format_sse_comment(comment: str = "ping") -> str:
    """Comment frame, used as a keepalive through proxies."""
    return f": {comment}\n\n"
