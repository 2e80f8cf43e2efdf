"""Server-Sent Events utilities and formatting - AG-UI Compatible"""
import json
from typing import Dict, Any, Optional

from ..models import BaseEvent


def get_sse_headers() -> Dict[str, str]:
    """Get standard SSE headers"""
    return {
        "Cache-Control": "no-cache",
        "Connection": "keep-alive",
        "Content-Type": "text/event-stream",
        "Access-Control-Allow-Origin": "*",
        "X-Accel-Buffering": "no",
    }


def format_sse_message(data: Any, event: Optional[str] = None, event_id: Optional[str] = None) -> str:
    """Format a message as Server-Sent Event following SSE standard.

    AG-UI clients read the event type from the JSON payload, so the ``event:``
    field is only written when explicitly requested.
    """
    lines = []

    if event_id:
        lines.append(f"id: {event_id}")

    if event:
        lines.append(f"event: {event}")

    data_str = "" if data is None else json.dumps(data, separators=(',', ':'), ensure_ascii=False)
    lines.append(f"data: {data_str}")
    lines.append("")  # Empty line to end the event

    return "\n".join(lines) + "\n"


def format_protocol_event(event: BaseEvent) -> str:
    """One AG-UI event as a single ``data:`` frame"""
    return format_sse_message(event.to_wire())
