"""Selection output in the format XDPH expects.

Handles:
- Monitor:  [SELECTION]/screen:<output>
- Window:   [SELECTION]/window:<xdph handle>
- Region:   [SELECTION]/region:<output>@<x>,<y>,<w>,<h>

XDPH reads exactly one line from stdout and may kill the picker right
after, so the line is always flushed as soon as it is written.
"""

import logging
import re
import sys
from typing import Optional, TextIO

from .protocol import Response
from .windows import WindowTable

log = logging.getLogger(__name__)

PREFIX = "[SELECTION]"

# ASCII only; int() would also take Unicode digits, signs and underscores
_DEC = re.compile(r"[0-9]+")
_HEX = re.compile(r"[0-9a-fA-F]+")


class WorkflowError(Exception):
    """Raised when a selection cannot be turned into an output line."""
    pass


class UnsupportedSourceType(WorkflowError):
    def __init__(self, source_type: str):
        super().__init__(f"Unknown source type: {source_type}")
        self.source_type = source_type


class MissingGeometry(WorkflowError):
    def __init__(self, source_id: str):
        super().__init__(f"Region selection on {source_id} is missing geometry")
        self.source_id = source_id


def parse_window_address(source_id: str) -> int:
    """Parse a Hyprland window address, either decimal or 0x-prefixed hex.

    Returns 0 if the id is not a valid address.
    """
    if source_id.startswith("0x"):
        digits = source_id[2:]
        if not _HEX.fullmatch(digits):
            return 0
        value = int(digits, 16)
    else:
        if not _DEC.fullmatch(source_id):
            return 0
        value = int(source_id, 10)
    return value if 0 <= value < (1 << 64) else 0


def format_monitor(source_id: str) -> str:
    return f"{PREFIX}/screen:{source_id}"


def format_window(source_id: str, windows: Optional[WindowTable] = None) -> str:
    if windows is None:
        windows = WindowTable.from_env()

    addr = parse_window_address(source_id)
    log.debug("Looking for window with Hyprland addr 0x%x among %d windows", addr, len(windows))

    handle = windows.find_handle(addr)
    if handle is None:
        log.info("Window 0x%x not in XDPH list, using address directly", addr)
        return f"{PREFIX}/window:{addr}"
    return f"{PREFIX}/window:{handle}"


def format_region(source_id: str, x: int, y: int, width: int, height: int) -> str:
    return f"{PREFIX}/region:{source_id}@{x},{y},{width},{height}"


def render(selection: Response, windows: Optional[WindowTable] = None) -> str:
    """Render a selection response as the output line (without newline).

    Raises:
        UnsupportedSourceType: If source_type is not monitor, window or region
        MissingGeometry: If a region selection carries no geometry
    """
    source_type = selection.source_type
    source_id = selection.source_id

    if source_type == "monitor":
        return format_monitor(source_id)
    if source_type == "window":
        return format_window(source_id, windows)
    if source_type == "region":
        geom = selection.geometry
        if geom is None:
            raise MissingGeometry(source_id)
        return format_region(source_id, geom.x, geom.y, geom.width, geom.height)
    raise UnsupportedSourceType(source_type)


def write_line(line: str, stream: Optional[TextIO] = None) -> None:
    """Write one line and flush it before returning."""
    stream = stream or sys.stdout
    stream.write(line + "\n")
    stream.flush()
