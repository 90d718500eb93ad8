"""Domain data models for a single monitoring run."""

from __future__ import annotations

import enum
from dataclasses import dataclass


@dataclass(slots=True, frozen=True)
class StalenessVerdict:
    now: int
    last_run: int
    threshold_seconds: int

    @property
    def age(self) -> int:
        return self.now - self.last_run

    @property
    def stale(self) -> bool:
        # Negative age (clock skew) is never stale
        return self.age > self.threshold_seconds


@dataclass(slots=True, frozen=True)
class TicketPayload:
    summary: str
    description: str
    priority: str
    status: str
    ticket_type: str


@dataclass(slots=True)
class DispatchResult:
    ok: bool
    status_code: int | None = None
    url: str | None = None
    body: str = ""
    ticket_ref: str | None = None


class RunOutcome(enum.Enum):
    NOT_STALE = "not_stale"
    SUPPRESSED = "suppressed"
    DISPATCHED = "dispatched"
    DRY_RUN = "dry_run"
    DISPATCH_FAILED = "dispatch_failed"
    RECORD_FAILED = "record_failed"
    CONFIG_ERROR = "config_error"


EXIT_OK = 0
EXIT_DISPATCH_FAILURE = 1
EXIT_CONFIG_ERROR = 2
EXIT_RECORD_FAILURE = 3

_EXIT_CODES: dict[RunOutcome, int] = {
    RunOutcome.DISPATCH_FAILED: EXIT_DISPATCH_FAILURE,
    RunOutcome.CONFIG_ERROR: EXIT_CONFIG_ERROR,
    RunOutcome.RECORD_FAILED: EXIT_RECORD_FAILURE,
}


@dataclass(slots=True)
class RunReport:
    outcome: RunOutcome
    verdict: StalenessVerdict | None = None
    last_sent: int = 0
    recorded: int | None = None
    payload: TicketPayload | None = None
    dispatch: DispatchResult | None = None
    detail: str = ""

    @property
    def exit_code(self) -> int:
        return _EXIT_CODES.get(self.outcome, EXIT_OK)
