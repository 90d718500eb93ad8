"""CodebaseHQ API client wrapper (v3 XML ticket creation)."""

from __future__ import annotations

import logging
import xml.etree.ElementTree as ET

import requests

from cron_monitor.core.models import DispatchResult, TicketPayload

logger = logging.getLogger(__name__)

SUCCESS_STATUSES: frozenset[int] = frozenset({200, 201})
XML_HEADERS = {
    "Content-Type": "application/xml",
    "Accept": "application/xml",
}


def build_ticket_xml(payload: TicketPayload) -> str:
    root = ET.Element("ticket")
    for tag, value in (
        ("summary", payload.summary),
        ("description", payload.description),
        ("priority", payload.priority),
        ("status", payload.status),
        ("ticket-type", payload.ticket_type),
    ):
        ET.SubElement(root, tag).text = value
    ET.indent(root, space="  ")
    return ET.tostring(root, encoding="unicode")


class CodebaseAPI:
    def __init__(
        self,
        base_url: str,
        project: str,
        username: str,
        api_key: str,
        *,
        timeout: float = 30.0,
        session: requests.Session | None = None,
    ):
        self.base_url = base_url.rstrip("/")
        self.project = project.strip("/")
        self.timeout = timeout
        self.session = session or requests.Session()
        self.session.auth = (username, api_key)

    @property
    def tickets_url(self) -> str:
        return f"{self.base_url}/{self.project}/tickets"

    def _post(self, url: str, body: str) -> DispatchResult:
        try:
            resp = self.session.post(url, data=body.encode("utf-8"), headers=XML_HEADERS, timeout=self.timeout)
        except requests.RequestException as exc:
            return DispatchResult(ok=False, url=url, body=str(exc))
        return DispatchResult(
            ok=resp.status_code in SUCCESS_STATUSES,
            status_code=resp.status_code,
            url=url,
            body=resp.text or "",
        )

    def create_ticket(self, payload: TicketPayload) -> DispatchResult:
        """POST the ticket, falling back to the extensionless URL on 404.

        Many accounts route only ``tickets.xml``; others negotiate on the
        ``Accept`` header instead.
        """
        body = build_ticket_xml(payload)
        url_xml = f"{self.tickets_url}.xml"
        logger.info("Creating CodebaseHQ ticket at %s", url_xml)
        result = self._post(url_xml, body)
        if result.status_code == 404:
            logger.info("First attempt returned 404, retrying without .xml at %s", self.tickets_url)
            result = self._post(self.tickets_url, body)
        if result.ok:
            logger.info("Ticket created successfully (HTTP %s).", result.status_code)
        return result
