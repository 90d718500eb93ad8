import io
import logging

import pytest

from cron_monitor import cli
from cron_monitor.core.models import RunOutcome, RunReport


@pytest.fixture(autouse=True)
def _clean_env(tmp_path, monkeypatch):
    monkeypatch.chdir(tmp_path)
    for var in ("CB_THRESHOLD_SECONDS", "CB_DRY_RUN", "CB_VERBOSE", "CB_CONFIG_FILE", "CB_TRACKER"):
        monkeypatch.delenv(var, raising=False)
    configure_logging = cli.configure_logging
    yield
    configure_logging(False, stdout=io.StringIO(), stderr=io.StringIO())


class StubMonitor:
    seen = []

    def __init__(self, settings):
        StubMonitor.seen.append(settings)
        self.settings = settings

    def run(self):
        outcome = RunOutcome.DRY_RUN if self.settings.dry_run else RunOutcome.DISPATCH_FAILED
        return RunReport(outcome)


def test_flags_override_environment(monkeypatch):
    monkeypatch.setenv("CB_THRESHOLD_SECONDS", "3600")
    monkeypatch.setattr(cli, "CronMonitor", StubMonitor)
    monkeypatch.setattr(cli, "configure_logging", lambda verbose: None)
    code = cli.main(["--dry-run", "--threshold", "7200", "--multisite-host", "a.example.com", "-q"])
    settings = StubMonitor.seen[-1]
    assert code == 0
    assert settings.threshold_seconds == 7200
    assert settings.multisite_host == "a.example.com"
    assert settings.verbose is False
    assert settings.dry_run is True


def test_dispatch_failure_exit_code(monkeypatch):
    monkeypatch.setattr(cli, "CronMonitor", StubMonitor)
    monkeypatch.setattr(cli, "configure_logging", lambda verbose: None)
    assert cli.main([]) == 1


def test_invalid_configuration_exit_code(monkeypatch):
    monkeypatch.setenv("CB_THRESHOLD_SECONDS", "soon")
    monkeypatch.setattr(cli, "CronMonitor", StubMonitor)
    assert cli.main([]) == 2


def test_logging_split_between_streams():
    out, err = io.StringIO(), io.StringIO()
    cli.configure_logging(True, stdout=out, stderr=err)
    log = logging.getLogger("cron_monitor.test")
    log.info("Cron is within threshold; nothing to do.")
    log.error("Ticket creation failed.")
    assert out.getvalue() == "[cron_monitor] Cron is within threshold; nothing to do.\n"
    assert err.getvalue() == "[cron_monitor][ERROR] Ticket creation failed.\n"


def test_quiet_logging_keeps_errors():
    out, err = io.StringIO(), io.StringIO()
    cli.configure_logging(False, stdout=out, stderr=err)
    log = logging.getLogger("cron_monitor.test")
    log.info("hidden")
    log.warning("shown")
    assert out.getvalue() == ""
    assert err.getvalue() == "[cron_monitor] shown\n"
