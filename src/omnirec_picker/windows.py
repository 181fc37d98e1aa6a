"""Window list handed to the picker by xdg-desktop-portal-hyprland.

XDPH exports the shareable windows in XDPH_WINDOW_SHARING_LIST as a flat
string of records:

    <handle>[HC>]<class>[HT>]<title>[HE>]<address>[HA>]...

The service identifies windows by their Hyprland address, but XDPH wants
its own handle back, so the address is the join key.
"""

import logging
import os
import re
from dataclasses import dataclass, field
from typing import Mapping, Optional

log = logging.getLogger(__name__)

ENV_WINDOW_LIST = "XDPH_WINDOW_SHARING_LIST"

# Each field is terminated by its own marker, in this order
MARKERS = ("[HC>]", "[HT>]", "[HE>]", "[HA>]")

_U64_MAX = (1 << 64) - 1
_DIGITS = re.compile(r"[0-9]+")


def parse_u64(text: str) -> int:
    """Parse an unsigned 64-bit decimal, returning 0 for anything else."""
    text = text.strip()
    if not _DIGITS.fullmatch(text):
        return 0
    value = int(text)
    return value if value <= _U64_MAX else 0


@dataclass
class WindowEntry:
    handle_id: int
    window_class: str
    title: str
    window_addr: int


@dataclass
class WindowTable:
    entries: list[WindowEntry] = field(default_factory=list)

    @classmethod
    def parse(cls, value: str) -> "WindowTable":
        """Parse the XDPH window list. A truncated trailing record is dropped."""
        entries = []
        remaining = value
        while remaining:
            fields = []
            for marker in MARKERS:
                end = remaining.find(marker)
                if end == -1:
                    break
                fields.append(remaining[:end])
                remaining = remaining[end + len(marker):]
            if len(fields) < len(MARKERS):
                log.debug("Dropping truncated window record: %r", remaining)
                break

            handle, window_class, title, addr = fields
            entries.append(WindowEntry(
                handle_id=parse_u64(handle),
                window_class=window_class,
                title=title,
                window_addr=parse_u64(addr),
            ))
        return cls(entries)

    @classmethod
    def from_env(cls, environ: Optional[Mapping[str, str]] = None) -> "WindowTable":
        env = os.environ if environ is None else environ
        return cls.parse(env.get(ENV_WINDOW_LIST, ""))

    def __len__(self) -> int:
        return len(self.entries)

    def find_handle(self, window_addr: int) -> Optional[int]:
        for entry in self.entries:
            if entry.window_addr == window_addr:
                return entry.handle_id
        return None

    def resolve(self, window_addr: int) -> int:
        """Return the XDPH handle for an address, or the address itself."""
        handle = self.find_handle(window_addr)
        return window_addr if handle is None else handle
