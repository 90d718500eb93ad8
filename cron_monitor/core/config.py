"""Central configuration, constants, and the settings object for a monitor run."""

from __future__ import annotations

import os
import re
from collections.abc import Mapping
from dataclasses import dataclass, fields, replace
from pathlib import Path
from typing import Any

import pytz
import yaml

from .errors import ConfigurationError

# =============================================================================
# Tracker Connection Settings
# =============================================================================
CODEBASE_DEFAULT_API_BASE = "https://api3.codebasehq.com"
SUPPORTED_TRACKERS: frozenset[str] = frozenset({"codebase", "jira"})
DEFAULT_TRACKER = "codebase"
DEFAULT_TIMEZONE = "UTC"

# =============================================================================
# Monitoring Defaults
# =============================================================================
DEFAULT_THRESHOLD_SECONDS: int = 14400  # 4 hours
DEFAULT_STATE_DIR = ".monitor_state"
DEFAULT_STATE_FILENAME = "cron_monitor.last_sent"
DEFAULT_CONFIG_FILENAME = "cron_monitor.yaml"
DEFAULT_DRUSH_TIMEOUT: int = 60  # seconds
DEFAULT_HTTP_TIMEOUT: int = 30  # seconds

# Drupal state key holding the epoch of the last successful cron run
CRON_STATE_KEY = "system.cron_last"

# =============================================================================
# Ticket Defaults
# =============================================================================
DEFAULT_TICKET_PRIORITY = "3"  # 1 (lowest) to 5 (highest)
DEFAULT_TICKET_STATUS = "new"
DEFAULT_TICKET_TYPE = "bug"
DEFAULT_JIRA_ISSUE_TYPE = "Bug"

# Priority aliases for normalization (lowercase keys)
PRIORITY_ALIASES: dict[str, str] = {
    "blocker": "Blocker",
    "critical": "Critical",
    "high": "High",
    "medium": "Medium",
    "low": "Low",
    "undefined": "Undefined",
    "none": "Undefined",
    # Numeric CodebaseHQ priorities
    "5": "Blocker",
    "4": "Critical",
    "3": "High",
    "2": "Medium",
    "1": "Low",
    "0": "Undefined",
}


def normalize_priority_name(priority: str | None) -> str:
    """Normalize a ticket priority to its canonical tracker name.

    Handles variations like:
    - Numeric CodebaseHQ values: "3" -> "High"
    - Case variations: "HIGH" -> "High"
    - Whitespace: "  Medium  " -> "Medium"

    Parameters
    ----------
    priority : str or None
        Raw priority value from configuration.

    Returns
    -------
    str
        Canonical priority name, or the cleaned string if no mapping found.
    """
    if priority is None:
        return "Undefined"
    cleaned = str(priority).strip()
    if not cleaned:
        return "Undefined"
    return PRIORITY_ALIASES.get(cleaned.lower(), cleaned)


# =============================================================================
# Environment Variable Names
# =============================================================================
ENV_VARS: dict[str, str] = {
    "project": "CB_PROJECT_PERMALINK",
    "username": "CB_USERNAME",
    "api_key": "CB_API_KEY",
    "api_base": "CB_API_BASE",
    "ticket_priority": "CB_TICKET_PRIORITY",
    "ticket_status": "CB_TICKET_STATUS",
    "ticket_type": "CB_TICKET_TYPE",
    "threshold_seconds": "CB_THRESHOLD_SECONDS",
    "site_name": "CB_SITE_NAME",
    "multisite_host": "CB_MULTISITE_HOST",
    "state_dir": "CB_STATE_DIR",
    "state_file": "CB_STATE_FILE",
    "verbose": "CB_VERBOSE",
    "dry_run": "CB_DRY_RUN",
    "tracker": "CB_TRACKER",
    "timezone": "CB_TIMEZONE",
    "drush_command": "CB_DRUSH_COMMAND",
    "drush_timeout": "CB_DRUSH_TIMEOUT",
    "http_timeout": "CB_HTTP_TIMEOUT",
    "jira_server": "JIRA_SERVER",
    "jira_email": "JIRA_EMAIL",
    "jira_api_token": "JIRA_API_TOKEN",
    "jira_project_key": "JIRA_PROJECT_KEY",
    "jira_issue_type": "JIRA_ISSUE_TYPE",
    "jira_priority": "JIRA_PRIORITY",
}
CONFIG_FILE_ENV = "CB_CONFIG_FILE"

_INT_FIELDS = frozenset({"threshold_seconds", "drush_timeout", "http_timeout"})
_BOOL_FIELDS = frozenset({"verbose", "dry_run"})
_TRUE_VALUES = frozenset({"1", "true", "yes", "on"})
_FALSE_VALUES = frozenset({"0", "false", "no", "off", ""})


@dataclass(slots=True)
class MonitorSettings:
    # CodebaseHQ
    project: str = ""
    username: str = ""
    api_key: str = ""
    api_base: str = CODEBASE_DEFAULT_API_BASE
    ticket_priority: str = DEFAULT_TICKET_PRIORITY
    ticket_status: str = DEFAULT_TICKET_STATUS
    ticket_type: str = DEFAULT_TICKET_TYPE
    # Monitoring behaviour
    threshold_seconds: int = DEFAULT_THRESHOLD_SECONDS
    site_name: str = ""
    multisite_host: str = ""
    state_dir: str = DEFAULT_STATE_DIR
    state_file: str = ""
    verbose: bool = True
    dry_run: bool = False
    tracker: str = DEFAULT_TRACKER
    timezone: str = DEFAULT_TIMEZONE
    # Collaborators
    drush_command: str = ""
    drush_timeout: int = DEFAULT_DRUSH_TIMEOUT
    http_timeout: int = DEFAULT_HTTP_TIMEOUT
    # Jira
    jira_server: str = ""
    jira_email: str = ""
    jira_api_token: str = ""
    jira_project_key: str = ""
    jira_issue_type: str = DEFAULT_JIRA_ISSUE_TYPE
    jira_priority: str = ""

    @property
    def state_path(self) -> Path:
        """Location of the last-notified record.

        Without an explicit state file, a multisite host gets its own file so
        two sites never share suppression state.
        """
        if self.state_file:
            return Path(self.state_file)
        if self.multisite_host:
            slug = re.sub(r"[^A-Za-z0-9._-]+", "_", self.multisite_host)
            return Path(self.state_dir) / f"cron_monitor.{slug}.last_sent"
        return Path(self.state_dir) / DEFAULT_STATE_FILENAME

    def missing_credentials(self) -> list[str]:
        """Names of the environment variables still required to dispatch."""
        if self.tracker == "jira":
            required = ("jira_server", "jira_email", "jira_api_token", "jira_project_key")
        else:
            required = ("project", "username", "api_key")
        return [ENV_VARS[name] for name in required if not getattr(self, name)]

    def validate(self) -> MonitorSettings:
        if self.tracker not in SUPPORTED_TRACKERS:
            raise ConfigurationError(
                f"Unknown tracker {self.tracker!r}; expected one of {', '.join(sorted(SUPPORTED_TRACKERS))}"
            )
        for name in _INT_FIELDS:
            value = getattr(self, name)
            if isinstance(value, bool) or not isinstance(value, int) or value <= 0:
                raise ConfigurationError(f"{ENV_VARS[name]} must be a positive integer, got {value!r}")
        try:
            pytz.timezone(self.timezone)
        except pytz.UnknownTimeZoneError as exc:
            raise ConfigurationError(f"Unknown timezone {self.timezone!r}") from exc
        return self


def _coerce(name: str, value: Any) -> Any:
    if name in _BOOL_FIELDS:
        if isinstance(value, bool):
            return value
        text = str(value).strip().lower()
        if text in _TRUE_VALUES:
            return True
        if text in _FALSE_VALUES:
            return False
        raise ConfigurationError(f"{ENV_VARS[name]} must be a boolean flag, got {value!r}")
    if name in _INT_FIELDS:
        if isinstance(value, bool):
            raise ConfigurationError(f"{ENV_VARS[name]} must be a positive integer, got {value!r}")
        try:
            return int(str(value).strip())
        except ValueError as exc:
            raise ConfigurationError(f"{ENV_VARS[name]} must be a positive integer, got {value!r}") from exc
    return "" if value is None else str(value).strip()


def load_config_file(path: str | Path | None, *, required: bool = False) -> dict[str, Any]:
    """Read a YAML settings file into a ``{field: value}`` mapping.

    A missing optional file yields an empty mapping. Unknown keys are rejected
    so typos do not silently fall back to defaults.
    """
    if path is None:
        return {}
    yaml_path = Path(path)
    if not yaml_path.exists():
        if required:
            raise ConfigurationError(f"Config file not found: {yaml_path}")
        return {}
    try:
        data = yaml.safe_load(yaml_path.read_text(encoding="utf-8")) or {}
    except (OSError, yaml.YAMLError) as exc:
        raise ConfigurationError(f"Could not read config file {yaml_path}: {exc}") from exc
    if not isinstance(data, dict):
        raise ConfigurationError(f"Config file {yaml_path} must contain a mapping")
    known = {f.name for f in fields(MonitorSettings)}
    unknown = sorted(str(key) for key in data if key not in known)
    if unknown:
        raise ConfigurationError(f"Unknown keys in {yaml_path}: {', '.join(unknown)}")
    return dict(data)


def load_settings(
    env: Mapping[str, str] | None = None,
    *,
    config_path: str | Path | None = None,
    overrides: Mapping[str, Any] | None = None,
) -> MonitorSettings:
    """Build settings once at process start.

    Precedence, lowest to highest: defaults, YAML file, environment, overrides.
    ``None`` values in ``overrides`` are ignored so unset CLI flags fall through.
    """
    env = os.environ if env is None else env
    explicit_path = config_path or env.get(CONFIG_FILE_ENV)
    layered: dict[str, Any] = {}
    layered.update(load_config_file(explicit_path or DEFAULT_CONFIG_FILENAME, required=bool(explicit_path)))
    for name, var in ENV_VARS.items():
        # Empty variables behave as unset, like ${VAR:-default}
        if env.get(var, "") != "":
            layered[name] = env[var]
    for name, value in (overrides or {}).items():
        if value is not None:
            layered[name] = value
    coerced = {name: _coerce(name, value) for name, value in layered.items()}
    if "tracker" in coerced:
        coerced["tracker"] = coerced["tracker"].lower()
    return replace(MonitorSettings(), **coerced).validate()
