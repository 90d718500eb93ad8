"""Choose the ticket dispatcher for the configured tracker."""

from __future__ import annotations

from typing import Protocol

from cron_monitor.core.config import MonitorSettings
from cron_monitor.core.errors import ConfigurationError
from cron_monitor.core.models import DispatchResult, TicketPayload


class TicketDispatcher(Protocol):
    def create_ticket(self, payload: TicketPayload) -> DispatchResult: ...


def build_dispatcher(settings: MonitorSettings) -> TicketDispatcher:
    missing = settings.missing_credentials()
    if missing:
        raise ConfigurationError(
            f"{settings.tracker} credentials/config are not fully set. "
            f"Please set environment variables ({', '.join(missing)})."
        )
    if settings.tracker == "jira":
        from .jira_client import JiraAPI

        return JiraAPI(
            settings.jira_server,
            settings.jira_email,
            settings.jira_api_token,
            settings.jira_project_key,
            issue_type=settings.jira_issue_type,
            priority=settings.jira_priority,
            timeout=settings.http_timeout,
        )
    from .codebase_client import CodebaseAPI

    return CodebaseAPI(
        settings.api_base,
        settings.project,
        settings.username,
        settings.api_key,
        timeout=settings.http_timeout,
    )


def target_description(settings: MonitorSettings) -> str:
    """Where a ticket would be created, without requiring credentials."""
    if settings.tracker == "jira":
        project = settings.jira_project_key or "<JIRA_PROJECT_KEY>"
        return f"{settings.jira_server.rstrip('/') or '<JIRA_SERVER>'}/rest/api/3/issue (project {project})"
    project = settings.project or "<CB_PROJECT_PERMALINK>"
    return f"{settings.api_base.rstrip('/')}/{project}/tickets.xml"
