"""Staleness and duplicate-suppression helpers."""

from __future__ import annotations

import re
from typing import Any

from .models import StalenessVerdict

_EPOCH_RE = re.compile(r"^[0-9]+$")


def parse_epoch(value: Any) -> int | None:
    """Return ``value`` as a non-negative epoch, or ``None`` if it is not one.

    Accepts ints and digit-only strings (surrounding whitespace and carriage
    returns are ignored). Booleans, floats, signs and blanks are rejected.
    """
    if isinstance(value, bool):
        return None
    if isinstance(value, int):
        return value if value >= 0 else None
    if value is None:
        return None
    text = str(value).replace("\r", "").strip()
    if not _EPOCH_RE.match(text):
        return None
    return int(text)


def normalize_epoch(value: Any) -> int:
    """Unknown or malformed timestamps count as epoch 0 (maximally stale)."""
    parsed = parse_epoch(value)
    return 0 if parsed is None else parsed


def evaluate_staleness(now: int, last_run: Any, threshold_seconds: int) -> StalenessVerdict:
    if threshold_seconds <= 0:
        raise ValueError(f"threshold_seconds must be positive, got {threshold_seconds}")
    return StalenessVerdict(now=now, last_run=normalize_epoch(last_run), threshold_seconds=threshold_seconds)


def notification_owed(last_sent: int, last_run: int) -> bool:
    """A ticket is owed only while no notification covers this ``last_run``.

    ``last_sent >= last_run`` means a ticket was already sent for the current
    stale window (or a later one).
    """
    return last_sent < last_run
