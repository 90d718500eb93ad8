"""Command-line entry point: settings, logging, and exit codes."""

from __future__ import annotations

import argparse
import logging
import sys
from collections.abc import Sequence

from cron_monitor.core.config import load_settings
from cron_monitor.core.errors import ConfigurationError
from cron_monitor.core.models import EXIT_CONFIG_ERROR
from cron_monitor.core.service import CronMonitor

LOG_PREFIX = "[cron_monitor]"


class _BelowWarning(logging.Filter):
    def filter(self, record: logging.LogRecord) -> bool:
        return record.levelno < logging.WARNING


class _PrefixFormatter(logging.Formatter):
    def format(self, record: logging.LogRecord) -> str:
        tag = f"{LOG_PREFIX}[ERROR]" if record.levelno >= logging.ERROR else LOG_PREFIX
        return f"{tag} {super().format(record)}"


_HANDLERS: list[logging.Handler] = []


def configure_logging(verbose: bool, *, stdout=None, stderr=None) -> None:
    """Info to stdout only when verbose; warnings and errors always to stderr."""
    root = logging.getLogger()
    while _HANDLERS:
        root.removeHandler(_HANDLERS.pop())
    root.setLevel(logging.INFO if verbose else logging.WARNING)

    formatter = _PrefixFormatter("%(message)s")
    out = logging.StreamHandler(stdout or sys.stdout)
    out.setLevel(logging.DEBUG)
    out.addFilter(_BelowWarning())
    out.setFormatter(formatter)
    err = logging.StreamHandler(stderr or sys.stderr)
    err.setLevel(logging.WARNING)
    err.setFormatter(formatter)
    for handler in (out, err):
        root.addHandler(handler)
        _HANDLERS.append(handler)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="cron-monitor",
        description="Open a tracker ticket when Drupal cron has not run within the threshold.",
    )
    parser.add_argument("-c", "--config", dest="config_path", help="YAML settings file (default: cron_monitor.yaml)")
    parser.add_argument("--dry-run", dest="dry_run", action="store_true", default=None, help="Log the ticket only")
    verbosity = parser.add_mutually_exclusive_group()
    verbosity.add_argument("-v", "--verbose", dest="verbose", action="store_true", default=None)
    verbosity.add_argument("-q", "--quiet", dest="verbose", action="store_false")
    parser.add_argument("--threshold", dest="threshold_seconds", type=int, help="Staleness threshold in seconds")
    parser.add_argument("--multisite-host", dest="multisite_host", help="Drupal site URI passed to drush -l")
    parser.add_argument("--state-file", dest="state_file", help="Path of the last-notified record")
    parser.add_argument("--tracker", dest="tracker", choices=("codebase", "jira"))
    return parser


def main(argv: Sequence[str] | None = None) -> int:
    args = build_parser().parse_args(argv)
    overrides = {
        "dry_run": args.dry_run,
        "verbose": args.verbose,
        "threshold_seconds": args.threshold_seconds,
        "multisite_host": args.multisite_host,
        "state_file": args.state_file,
        "tracker": args.tracker,
    }
    try:
        settings = load_settings(config_path=args.config_path, overrides=overrides)
    except ConfigurationError as exc:
        configure_logging(False)
        logging.getLogger(__name__).error("%s", exc)
        return EXIT_CONFIG_ERROR

    configure_logging(settings.verbose)
    report = CronMonitor(settings).run()
    return report.exit_code


if __name__ == "__main__":
    sys.exit(main())
