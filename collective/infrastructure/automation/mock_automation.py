from __future__ import annotations

import logging
from typing import Any

from collective.application.ports.automation import AutomationPort
from collective.infrastructure.ghl.mock_crm import MockCRM


class MockAutomation(AutomationPort):
    """Plays the CRM workflow: the appointment appears after a few listing calls."""

    def __init__(self, crm: MockCRM, visible_after: int = 1) -> None:
        self._crm = crm
        self._visible_after = visible_after
        self.triggered: list[dict[str, Any]] = []
        self._logger = logging.getLogger(__name__)

    def trigger(self, payload: dict[str, Any]) -> None:
        self.triggered.append(dict(payload))
        self._crm.defer_appointment(
            {
                "calendarId": payload.get("calendarId"),
                "contactId": payload.get("contactId"),
                "title": payload.get("eventTitle"),
                "startTime": payload.get("startTime"),
                "endTime": payload.get("endTime"),
                "appointmentStatus": "confirmed",
            },
            visible_after=self._visible_after,
        )
        self._logger.info("Mock booking automation triggered", extra={"contact_id": payload.get("contactId")})
