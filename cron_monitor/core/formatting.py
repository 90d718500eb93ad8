"""Human-readable ticket text for a stale cron verdict."""

from __future__ import annotations

import socket
from datetime import datetime
from pathlib import Path

import pytz

from .config import MonitorSettings
from .models import StalenessVerdict, TicketPayload

DATE_FORMAT = "%Y-%m-%d %H:%M:%S %Z"


def format_epoch(ts: int, tz: pytz.BaseTzInfo | str = pytz.UTC) -> str:
    if isinstance(tz, str):
        tz = pytz.timezone(tz)
    try:
        return datetime.fromtimestamp(ts, tz).strftime(DATE_FORMAT)
    except (OverflowError, OSError, ValueError):
        return str(ts)


def local_hostname() -> str:
    try:
        return socket.gethostname() or "unknown-host"
    except OSError:
        return "unknown-host"


def site_display_name(settings: MonitorSettings, host: str | None = None) -> str:
    return settings.site_name or host or local_hostname()


def build_summary(settings: MonitorSettings, site: str) -> str:
    hours = settings.threshold_seconds // 3600
    return f"Cron has not run for over {hours} hours on {site}"


def build_description(
    verdict: StalenessVerdict,
    *,
    site: str,
    host: str,
    env_path: str | Path,
    tz: pytz.BaseTzInfo | str = pytz.UTC,
) -> str:
    lines = [
        "Automatic alert from cron_monitor",
        "",
        f"Site: {site}",
        f"Host: {host}",
        f"Environment Path: {env_path}",
        "",
        f"Last cron run: {format_epoch(verdict.last_run, tz)} (epoch {verdict.last_run})",
        f"Current time:  {format_epoch(verdict.now, tz)} (epoch {verdict.now})",
        f"Age: {verdict.age} seconds (~{verdict.age // 3600} hours)",
        "",
        "Action: Please investigate why Drupal cron is not running.",
    ]
    return "\n".join(lines)


def build_payload(
    settings: MonitorSettings,
    verdict: StalenessVerdict,
    *,
    host: str | None = None,
    env_path: str | Path | None = None,
) -> TicketPayload:
    host = host or local_hostname()
    site = site_display_name(settings, host)
    return TicketPayload(
        summary=build_summary(settings, site),
        description=build_description(
            verdict,
            site=site,
            host=host,
            env_path=env_path if env_path is not None else Path.cwd(),
            tz=settings.timezone,
        ),
        priority=settings.ticket_priority,
        status=settings.ticket_status,
        ticket_type=settings.ticket_type,
    )
