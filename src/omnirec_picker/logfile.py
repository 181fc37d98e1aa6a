"""Logging setup.

The picker is a short-lived process that XDPH may kill at any moment, so
the file handler opens, appends and closes the log for every record
instead of holding a buffered stream that would be lost.
"""

import logging
import time
from pathlib import Path
from typing import Optional

LOG_FORMAT = "%(levelname)s: %(message)s"


class AppendFileHandler(logging.Handler):
    """Appends "[<epoch>] <message>" lines to a file, one open per record."""

    def __init__(self, path: Path, level: int = logging.NOTSET):
        super().__init__(level)
        self.path = Path(path)

    def emit(self, record: logging.LogRecord) -> None:
        try:
            line = f"[{int(time.time())}] {self.format(record)}\n"
            with open(self.path, "a", encoding="utf-8") as f:
                f.write(line)
        except Exception:
            self.handleError(record)


def setup_logging(debug: bool = False, log_file: Optional[Path] = None) -> None:
    """Log to stderr, and append to log_file if one is given."""
    logging.basicConfig(
        level=logging.DEBUG if debug else logging.INFO,
        format=LOG_FORMAT,
    )
    if log_file is None:
        return

    root = logging.getLogger()
    for handler in root.handlers:
        if isinstance(handler, AppendFileHandler) and handler.path == Path(log_file):
            return
    handler = AppendFileHandler(log_file)
    handler.setFormatter(logging.Formatter("%(message)s"))
    root.addHandler(handler)
