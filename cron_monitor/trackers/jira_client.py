"""Jira API client wrapper (REST v3 issue creation)."""

from __future__ import annotations

import logging
from typing import Any

import requests
from jira import JIRA, JIRAError

from cron_monitor.core.config import normalize_priority_name
from cron_monitor.core.models import DispatchResult, TicketPayload

logger = logging.getLogger(__name__)


def description_document(text: str) -> dict[str, Any]:
    """Wrap plain text in an Atlassian document (REST v3 rejects raw strings)."""
    return {
        "type": "doc",
        "version": 1,
        "content": [{"type": "codeBlock", "content": [{"type": "text", "text": text}]}],
    }


class JiraAPI:
    def __init__(
        self,
        server: str,
        email: str,
        token: str,
        project_key: str,
        *,
        issue_type: str = "Bug",
        priority: str = "",
        timeout: float = 30.0,
    ):
        self.server = server.rstrip("/")
        self.project_key = project_key
        self.issue_type = issue_type
        self.priority = priority
        self.timeout = timeout
        self._auth = (email, token)
        self.client: JIRA | None = None

    def connect(self) -> JIRA:
        # One request per run: no serverInfo lookup and no resilient-session retries
        if self.client is None:
            self.client = JIRA(
                basic_auth=self._auth,
                options={"server": self.server, "rest_api_version": "3"},
                timeout=self.timeout,
                max_retries=0,
                get_server_info=False,
            )
        return self.client

    @property
    def issue_url(self) -> str:
        return f"{self.server}/rest/api/3/issue"

    def build_fields(self, payload: TicketPayload) -> dict[str, Any]:
        fields: dict[str, Any] = {
            "project": {"key": self.project_key},
            "issuetype": {"name": self.issue_type},
            "summary": payload.summary,
            "description": description_document(payload.description),
        }
        priority = self.priority or normalize_priority_name(payload.priority)
        if priority != "Undefined":
            fields["priority"] = {"name": priority}
        return fields

    def create_ticket(self, payload: TicketPayload) -> DispatchResult:
        url = self.issue_url
        logger.info("Creating Jira issue in %s", self.project_key)
        try:
            issue = self.connect().create_issue(fields=self.build_fields(payload))
        except JIRAError as exc:
            return DispatchResult(
                ok=False,
                status_code=exc.status_code,
                url=getattr(exc, "url", None) or url,
                body=exc.text or str(exc),
            )
        except requests.RequestException as exc:
            return DispatchResult(ok=False, url=url, body=str(exc))
        key = getattr(issue, "key", None)
        logger.info("Issue %s created successfully.", key)
        return DispatchResult(ok=True, status_code=201, url=url, ticket_ref=key)
