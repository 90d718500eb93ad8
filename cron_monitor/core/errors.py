"""Exception hierarchy for a monitoring run."""

from __future__ import annotations


class CronMonitorError(RuntimeError):
    """Base class for all monitor errors."""


class ConfigurationError(CronMonitorError):
    """Settings are invalid or credentials are missing when a ticket is owed."""


class SourceUnavailable(CronMonitorError):
    """The cron timestamp could not be read. Always recovered as epoch 0."""


class StateCorruption(CronMonitorError):
    """The notification state file holds something other than an epoch."""


class DispatchFailure(CronMonitorError):
    """The tracker did not confirm ticket creation."""

    def __init__(self, message: str, *, status_code: int | None = None, url: str | None = None, body: str = ""):
        super().__init__(message)
        self.status_code = status_code
        self.url = url
        self.body = body
