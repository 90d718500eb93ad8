"""CronMonitor: orchestrates reading, evaluation, suppression, and dispatch."""

from __future__ import annotations

import logging
import time
from collections.abc import Callable
from pathlib import Path
from typing import Protocol

from cron_monitor.trackers.codebase_client import build_ticket_xml
from cron_monitor.trackers.factory import TicketDispatcher, build_dispatcher, target_description

from .config import MonitorSettings
from .errors import ConfigurationError, DispatchFailure
from .formatting import build_payload, format_epoch, local_hostname
from .models import RunOutcome, RunReport, StalenessVerdict, TicketPayload
from .stale import evaluate_staleness, notification_owed
from .state import NotificationStateStore
from .timestamp_source import DrushTimestampSource

logger = logging.getLogger(__name__)

Clock = Callable[[], float]
DispatcherFactory = Callable[[MonitorSettings], TicketDispatcher]


class TimestampSource(Protocol):
    def read_last_run(self) -> int: ...


class CronMonitor:
    """One pass of the cron health check.

    ``START -> read timestamp -> evaluate -> (not stale | suppressed |
    dispatch -> record)``. State is written only after the tracker confirms
    the ticket, so a failed dispatch is retried by the next scheduled run.
    """

    def __init__(
        self,
        settings: MonitorSettings,
        *,
        source: TimestampSource | None = None,
        store: NotificationStateStore | None = None,
        dispatcher_factory: DispatcherFactory = build_dispatcher,
        clock: Clock = time.time,
        host: str | None = None,
        env_path: str | Path | None = None,
    ):
        self.settings = settings
        self.source = source or DrushTimestampSource(settings)
        self.store = store or NotificationStateStore(settings.state_path)
        self.dispatcher_factory = dispatcher_factory
        self.clock = clock
        self.host = host or local_hostname()
        self.env_path = env_path

    # ------------------ Pipeline ------------------
    def run(self) -> RunReport:
        now = int(self.clock())
        self.store.ensure_directory()
        last_run = self.source.read_last_run()
        verdict = evaluate_staleness(now, last_run, self.settings.threshold_seconds)
        self._log_verdict(verdict)

        if not verdict.stale:
            logger.info("Cron is within threshold; nothing to do.")
            return RunReport(RunOutcome.NOT_STALE, verdict=verdict)

        last_sent = self.store.read()
        if not notification_owed(last_sent, verdict.last_run):
            logger.info("A ticket was already sent for this stale period (last_sent=%s). Skipping.", last_sent)
            if verdict.last_run == 0:
                logger.warning("Cron last run is unknown (0); no ticket can be owed until it reports a timestamp.")
            return RunReport(RunOutcome.SUPPRESSED, verdict=verdict, last_sent=last_sent)

        payload = build_payload(self.settings, verdict, host=self.host, env_path=self.env_path)

        if self.settings.dry_run:
            logger.info(
                "Dry run: skipping ticket creation at %s. Payload would be:\n%s",
                target_description(self.settings),
                self._preview(payload),
            )
            return RunReport(RunOutcome.DRY_RUN, verdict=verdict, last_sent=last_sent, payload=payload)

        try:
            result = self._dispatch(payload)
        except ConfigurationError as exc:
            logger.error("%s", exc)
            return RunReport(
                RunOutcome.CONFIG_ERROR, verdict=verdict, last_sent=last_sent, payload=payload, detail=str(exc)
            )
        except DispatchFailure as exc:
            logger.error("%s Response:\n%s", exc, exc.body)
            logger.error("Ticket creation failed. Not updating %s.", self.store.path)
            return RunReport(
                RunOutcome.DISPATCH_FAILED,
                verdict=verdict,
                last_sent=last_sent,
                payload=payload,
                detail=str(exc),
            )

        # Record the invocation time, not last_run: it covers this window
        try:
            self.store.write(now)
        except OSError as exc:
            ticket = result.ticket_ref or result.url or "ticket"
            logger.error(
                "Created %s but could not record last_sent=%s in %s (%s). The next run will open a duplicate.",
                ticket,
                now,
                self.store.path,
                exc,
            )
            return RunReport(
                RunOutcome.RECORD_FAILED,
                verdict=verdict,
                last_sent=last_sent,
                payload=payload,
                dispatch=result,
                detail=str(exc),
            )
        return RunReport(
            RunOutcome.DISPATCHED,
            verdict=verdict,
            last_sent=last_sent,
            recorded=now,
            payload=payload,
            dispatch=result,
        )

    def _dispatch(self, payload: TicketPayload):
        dispatcher = self.dispatcher_factory(self.settings)
        result = dispatcher.create_ticket(payload)
        if not result.ok:
            status = result.status_code if result.status_code is not None else "no response"
            raise DispatchFailure(
                f"Failed to create ticket (HTTP {status}).",
                status_code=result.status_code,
                url=result.url,
                body=result.body,
            )
        return result

    def _preview(self, payload: TicketPayload) -> str:
        if self.settings.tracker == "codebase":
            return build_ticket_xml(payload)
        return f"Summary: {payload.summary}\n{payload.description}"

    def _log_verdict(self, verdict: StalenessVerdict) -> None:
        tz = self.settings.timezone
        logger.info("Current time: %s (%s)", format_epoch(verdict.now, tz), verdict.now)
        logger.info("Cron last run: %s (%s)", format_epoch(verdict.last_run, tz), verdict.last_run)
        logger.info("Age (seconds): %s; threshold: %s", verdict.age, verdict.threshold_seconds)
