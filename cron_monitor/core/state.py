"""File-backed record of the last successfully dispatched notification."""

from __future__ import annotations

import logging
import os
from pathlib import Path

from .errors import StateCorruption
from .stale import parse_epoch

logger = logging.getLogger(__name__)


class NotificationStateStore:
    """Stores a single epoch in a text file.

    A value ``R`` means a ticket already covers any staleness whose last cron
    run is ``<= R``. Reads never fail: a missing or corrupt file reads as 0.
    """

    def __init__(self, path: str | Path):
        self.path = Path(path)

    def ensure_directory(self) -> None:
        self.path.parent.mkdir(parents=True, exist_ok=True)

    def _parse(self, text: str) -> int:
        value = parse_epoch(text)
        if value is None:
            raise StateCorruption(f"Unparseable state in {self.path}: {text[:40]!r}")
        return value

    def read(self) -> int:
        try:
            # Undecodable bytes become U+FFFD and fail parsing below
            text = self.path.read_text(encoding="utf-8", errors="replace")
        except FileNotFoundError:
            return 0
        except OSError as exc:
            logger.warning("Could not read %s (%s); assuming no prior notification.", self.path, exc)
            return 0
        try:
            return self._parse(text)
        except StateCorruption as exc:
            logger.warning("%s; assuming no prior notification.", exc)
            return 0

    def write(self, value: int) -> None:
        if isinstance(value, bool) or not isinstance(value, int) or value < 0:
            raise ValueError(f"State value must be a non-negative integer, got {value!r}")
        self.ensure_directory()
        tmp = self.path.with_name(f"{self.path.name}.tmp")
        with tmp.open("w", encoding="utf-8") as fh:
            fh.write(f"{value}\n")
            fh.flush()
            os.fsync(fh.fileno())
        tmp.replace(self.path)
        logger.info("Recorded last_sent=%s in %s", value, self.path)
