"""Read Drupal's last cron run through drush."""

from __future__ import annotations

import logging
import os
import shlex
import shutil
import subprocess
from collections.abc import Callable, Sequence
from pathlib import Path

from .config import CRON_STATE_KEY, MonitorSettings
from .errors import SourceUnavailable
from .stale import parse_epoch

logger = logging.getLogger(__name__)

Runner = Callable[..., subprocess.CompletedProcess]
Which = Callable[[str], str | None]

LOCAL_DRUSH = Path("vendor") / "bin" / "drush"


class DrushTimestampSource:
    """Supplies ``system.cron_last`` as epoch seconds.

    Every failure mode (no drush, non-zero exit, timeout, blank or non-numeric
    output) reads as 0 so an unreachable site looks maximally stale.
    """

    def __init__(
        self,
        settings: MonitorSettings,
        *,
        runner: Runner = subprocess.run,
        which: Which = shutil.which,
        cwd: str | Path | None = None,
    ):
        self.settings = settings
        self._run = runner
        self._which = which
        self.cwd = Path(cwd) if cwd is not None else Path.cwd()

    def resolve_drush(self) -> list[str]:
        if self.settings.drush_command:
            return shlex.split(self.settings.drush_command)
        if self._which("ddev"):
            return ["ddev", "drush"]
        local = self.cwd / LOCAL_DRUSH
        if local.is_file() and os.access(local, os.X_OK):
            return [f"./{LOCAL_DRUSH.as_posix()}"]
        if self._which("drush"):
            return ["drush"]
        raise SourceUnavailable(
            "Could not find drush. Ensure DDEV is installed (for 'ddev drush') or ./vendor/bin/drush exists."
        )

    def build_command(self, drush: Sequence[str]) -> list[str]:
        cmd = list(drush)
        if self.settings.multisite_host:
            cmd += ["-l", self.settings.multisite_host]
        cmd += ["state:get", CRON_STATE_KEY]
        return cmd

    def fetch_raw(self) -> str:
        cmd = self.build_command(self.resolve_drush())
        logger.debug("Running %s", " ".join(cmd))
        try:
            proc = self._run(
                cmd,
                capture_output=True,
                text=True,
                errors="replace",
                cwd=str(self.cwd),
                timeout=self.settings.drush_timeout,
                check=False,
            )
        except (OSError, subprocess.SubprocessError) as exc:
            raise SourceUnavailable(f"Failed to run {cmd[0]}: {exc}") from exc
        if proc.returncode != 0:
            raise SourceUnavailable(f"Failed to get {CRON_STATE_KEY} via drush (exit {proc.returncode}).")
        return proc.stdout or ""

    def read_last_run(self) -> int:
        try:
            raw = self.fetch_raw()
        except SourceUnavailable as exc:
            logger.error("%s Treating cron as never run.", exc)
            return 0
        value = parse_epoch(raw)
        if value is None:
            # Sites that never ran cron report nothing
            logger.info("No usable %s value (%r); treating as 0.", CRON_STATE_KEY, raw.strip()[:40])
            return 0
        return value
