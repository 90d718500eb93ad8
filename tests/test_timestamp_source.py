import os
import subprocess
import sys

from fakes import FakeRunner

from cron_monitor.core.config import MonitorSettings
from cron_monitor.core.timestamp_source import DrushTimestampSource


def _which(available):
    return lambda name: f"/usr/bin/{name}" if name in available else None


def test_prefers_ddev(tmp_path):
    runner = FakeRunner(stdout="1700000000\n")
    source = DrushTimestampSource(MonitorSettings(), runner=runner, which=_which({"ddev", "drush"}), cwd=tmp_path)
    assert source.read_last_run() == 1700000000
    cmd, kwargs = runner.calls[0]
    assert cmd == ["ddev", "drush", "state:get", "system.cron_last"]
    assert kwargs["timeout"] == 60


def test_vendor_drush_before_system_drush(tmp_path):
    drush = tmp_path / "vendor" / "bin" / "drush"
    drush.parent.mkdir(parents=True)
    drush.write_text("#!/bin/sh\n")
    os.chmod(drush, 0o755)
    source = DrushTimestampSource(MonitorSettings(), runner=FakeRunner("1"), which=_which({"drush"}), cwd=tmp_path)
    assert source.resolve_drush() == ["./vendor/bin/drush"]


def test_explicit_command_and_multisite_host(tmp_path):
    settings = MonitorSettings(drush_command="docker compose exec php drush", multisite_host="example.com")
    runner = FakeRunner(stdout="55\r\n")
    source = DrushTimestampSource(settings, runner=runner, which=_which(set()), cwd=tmp_path)
    assert source.read_last_run() == 55
    assert runner.calls[0][0] == [
        "docker", "compose", "exec", "php", "drush", "-l", "example.com", "state:get", "system.cron_last",
    ]


def test_missing_drush_reads_zero(tmp_path):
    runner = FakeRunner(stdout="123")
    source = DrushTimestampSource(MonitorSettings(), runner=runner, which=_which(set()), cwd=tmp_path)
    assert source.read_last_run() == 0
    assert runner.calls == []


def test_empty_output_reads_zero(tmp_path):
    source = DrushTimestampSource(MonitorSettings(), runner=FakeRunner(""), which=_which({"drush"}), cwd=tmp_path)
    assert source.read_last_run() == 0


def test_non_numeric_output_reads_zero(tmp_path):
    source = DrushTimestampSource(
        MonitorSettings(), runner=FakeRunner("[error] bootstrap failed"), which=_which({"drush"}), cwd=tmp_path
    )
    assert source.read_last_run() == 0


def test_failed_command_reads_zero(tmp_path):
    runner = FakeRunner(stdout="1700000000", returncode=1)
    source = DrushTimestampSource(MonitorSettings(), runner=runner, which=_which({"drush"}), cwd=tmp_path)
    assert source.read_last_run() == 0


def test_timeout_reads_zero(tmp_path):
    runner = FakeRunner(exc=subprocess.TimeoutExpired(["drush"], 60))
    source = DrushTimestampSource(MonitorSettings(), runner=runner, which=_which({"drush"}), cwd=tmp_path)
    assert source.read_last_run() == 0


def test_output_is_decoded_leniently(tmp_path):
    runner = FakeRunner(stdout="1700000000\n")
    DrushTimestampSource(MonitorSettings(), runner=runner, which=_which({"drush"}), cwd=tmp_path).read_last_run()
    assert runner.calls[0][1]["errors"] == "replace"


def test_undecodable_output_reads_zero(tmp_path):
    script = "import sys; sys.stdout.buffer.write(b'\\xff\\xfe17')"
    settings = MonitorSettings(drush_command=f'"{sys.executable}" -c "{script}"')
    source = DrushTimestampSource(settings, cwd=tmp_path)
    assert source.read_last_run() == 0
