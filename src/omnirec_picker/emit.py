"""
Structured picker events.

Default: JSON lines to stderr (journald picks them up from the portal).
Extensible: call add_handler() to forward events elsewhere.

Event format:
    {"event_type": "...", "timestamp": "...", "source": {"tool": "...", "pid": ...}, "data": {...}}

stdout belongs to XDPH, so events never go there.
"""

import json
import logging
import os
import sys
from datetime import datetime, timezone
from typing import Any, Callable, Dict, List, Optional

logger = logging.getLogger(__name__)

EventHandler = Callable[[dict], None]

EVENT_CATALOG = [
    {
        "event_type": "picker.invoked",
        "data_fields": ["mode", "socket_path"],
    },
    {
        "event_type": "selection.received",
        "data_fields": ["response_type", "source_type", "source_id", "has_approval_token"],
    },
    {
        "event_type": "consent.decided",
        "data_fields": ["decision", "description"],
    },
    {
        "event_type": "selection.emitted",
        "data_fields": ["output", "persist_token"],
    },
    {
        "event_type": "token.stored",
        "data_fields": ["success", "error_message"],
    },
    {
        "event_type": "fallback.completed",
        "data_fields": ["picker", "reason", "exit_code"],
    },
    {
        "event_type": "error.handled",
        "data_fields": ["error_type", "message", "stage"],
    },
]

_handlers: List[EventHandler] = []
_source: str = "omnirec-picker"
_stderr_enabled: bool = True


def configure(source: str, stderr: bool = True) -> None:
    """Set the source name for emitted events. Call once at startup."""
    global _source, _stderr_enabled
    _source = source
    _stderr_enabled = stderr


def add_handler(handler: EventHandler) -> None:
    _handlers.append(handler)


def remove_handler(handler: EventHandler) -> None:
    if handler in _handlers:
        _handlers.remove(handler)


def emit(
    event_type: str,
    data: Dict[str, Any],
    source: Optional[str] = None,
) -> None:
    """Emit one event to stderr (if enabled) and to every handler."""
    event = {
        "event_type": event_type,
        "timestamp": datetime.now(timezone.utc).isoformat(),
        "source": {
            "tool": source or _source,
            "pid": os.getpid(),
        },
        "data": data,
    }

    if _stderr_enabled:
        try:
            print(json.dumps(event, default=str), file=sys.stderr, flush=True)
        except (OSError, ValueError) as exc:
            logger.debug("Could not write event %s: %s", event_type, exc)

    for handler in _handlers:
        try:
            handler(event)
        except Exception as exc:
            logger.debug("Event handler error: %s", exc)
