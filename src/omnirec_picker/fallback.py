"""Fallback to the standard picker.

When OmniRec is not running or has nothing selected, other applications
(OBS, Zoom, Discord, ...) still need to share their screen, so the
request is handed to hyprland-share-picker and its answer forwarded.
"""

import logging
import subprocess
import sys
from typing import Optional, TextIO

from .output import write_line

log = logging.getLogger(__name__)

DEFAULT_FALLBACK_PICKER = "hyprland-share-picker"


class FallbackLauncher:
    """Runs the delegate picker and forwards its selection."""

    def __init__(self, binary: str = DEFAULT_FALLBACK_PICKER, stdout: Optional[TextIO] = None):
        self.binary = binary
        self.stdout = stdout

    def run(self) -> int:
        """Run the delegate to completion.

        Returns:
            0 if the delegate succeeded, 1 if it failed or could not start
        """
        log.info("Falling back to standard picker: %s", self.binary)
        try:
            # stdin/stderr are inherited; XDPH talks to the delegate directly
            process = subprocess.Popen(
                [self.binary],
                stdout=subprocess.PIPE,
                text=True,
            )
        except OSError as e:
            log.error("Failed to execute fallback picker '%s': %s", self.binary, e)
            if isinstance(e, FileNotFoundError):
                log.error("Make sure '%s' is installed and in PATH", self.binary)
            return 1

        # The user may take as long as they like in the delegate
        out, _ = process.communicate()

        line = first_line(out)
        if line is not None:
            log.info("Fallback picker output: %s", line)
            write_line(line, self.stdout or sys.stdout)

        log.info("Fallback picker exited with code: %d", process.returncode)
        return 0 if process.returncode == 0 else 1


def first_line(text: Optional[str]) -> Optional[str]:
    """Return the first non-empty line of text, without its line ending."""
    for line in (text or "").splitlines():
        if line.strip():
            return line
    return None
