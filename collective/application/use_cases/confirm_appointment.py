from __future__ import annotations

import logging
import time
from dataclasses import dataclass
from datetime import date
from enum import Enum
from typing import Callable
from zoneinfo import ZoneInfo

from collective.application.exceptions import CRMUpstreamError
from collective.application.ports.crm import CRMPort
from collective.application.utils.event_time import start_date_of
from collective.domain.entities.appointment import Appointment


class ConfirmationStatus(str, Enum):
    pending = "pending"
    confirmed = "confirmed"
    unconfirmed = "unconfirmed"


@dataclass(frozen=True)
class ConfirmationResult:
    status: ConfirmationStatus
    appointment: Appointment | None
    attempts: int

    @property
    def confirmed(self) -> bool:
        return self.status is ConfirmationStatus.confirmed


class ConfirmationPollerUseCase:
    """
    Waits for an appointment created by CRM automation to become visible.

    Lists the contact's appointments up to ``max_attempts`` times and matches on
    calendar id and start date. Delays between attempts grow linearly and are
    capped (1s, 2s, 3s, 3s, ... with the defaults).
    """

    def __init__(
        self,
        crm: CRMPort,
        timezone: ZoneInfo,
        max_attempts: int = 8,
        base_delay: float = 1.0,
        max_delay: float = 3.0,
        sleep: Callable[[float], None] = time.sleep,
    ) -> None:
        self._crm = crm
        self._timezone = timezone
        self._max_attempts = max(1, max_attempts)
        self._base_delay = base_delay
        self._max_delay = max_delay
        self._sleep = sleep
        self._logger = logging.getLogger(__name__)

    def delay_for(self, attempt: int) -> float:
        return min(self._base_delay * attempt, self._max_delay)

    def poll(self, contact_id: str, calendar_id: str, target_date: date) -> ConfirmationResult:
        self._logger.info(
            "Waiting for appointment",
            extra={"contact_id": contact_id, "calendar_id": calendar_id, "status": ConfirmationStatus.pending.value},
        )
        for attempt in range(1, self._max_attempts + 1):
            match = self._find(contact_id, calendar_id, target_date, attempt)
            if match is not None:
                self._logger.info(
                    "Appointment confirmed",
                    extra={"appointment_id": match.id, "contact_id": contact_id, "attempt": attempt},
                )
                return ConfirmationResult(ConfirmationStatus.confirmed, match, attempt)

            if attempt < self._max_attempts:
                self._sleep(self.delay_for(attempt))

        self._logger.warning(
            "Appointment not confirmed",
            extra={"contact_id": contact_id, "calendar_id": calendar_id, "attempt": self._max_attempts},
        )
        return ConfirmationResult(ConfirmationStatus.unconfirmed, None, self._max_attempts)

    def _find(self, contact_id: str, calendar_id: str, target_date: date, attempt: int) -> Appointment | None:
        try:
            appointments = self._crm.list_contact_appointments(contact_id)
        except CRMUpstreamError as e:
            self._logger.warning(
                "Appointment lookup failed",
                extra={"contact_id": contact_id, "attempt": attempt, "error": str(e)},
            )
            return None

        for appointment in appointments:
            if appointment.calendar_id != calendar_id:
                continue
            if start_date_of(appointment.start_time, self._timezone) == target_date:
                return appointment
        return None
