from __future__ import annotations

import logging
from datetime import datetime, timezone

from collective.application.exceptions import CRMUpstreamError
from collective.application.ports.crm import CRMPort

CANCELLED_TAG = "Event Cancelled"

REASON_TEXT = {
    "schedule_conflict": "Schedule conflict (work/family)",
    "illness": "Not feeling well",
    "transport": "Transport issues",
    "other": "Other/not specified",
}


def build_cancellation_note(reason: str | None, comments: str | None, cancelled_at: datetime | None = None) -> str:
    cancelled_at = cancelled_at or datetime.now(timezone.utc)
    lines = [
        "Event Booking Cancelled",
        f"Reason: {REASON_TEXT.get(reason or '', reason or 'Not specified')}",
    ]
    if comments:
        lines.append(f"Comments: {comments}")
    lines.append(f"Cancelled at: {cancelled_at.isoformat(timespec='seconds')}")
    return "\n".join(lines)


class CancelBookingUseCase:
    def __init__(self, crm: CRMPort) -> None:
        self._crm = crm
        self._logger = logging.getLogger(__name__)

    def execute(
        self,
        appointment_id: str,
        contact_id: str | None = None,
        reason: str | None = None,
        comments: str | None = None,
    ) -> None:
        """Delete the appointment, then record why on the contact. Only the delete can fail the call."""
        self._logger.info("Cancelling appointment", extra={"appointment_id": appointment_id, "reason": reason})
        try:
            self._crm.delete_appointment(appointment_id)
        except CRMUpstreamError as e:
            if not e.is_not_found:
                raise
            self._logger.info("Appointment already cancelled or not found", extra={"appointment_id": appointment_id})

        if not contact_id:
            return

        if reason or comments:
            try:
                self._crm.add_note(contact_id, build_cancellation_note(reason, comments))
            except CRMUpstreamError as e:
                self._logger.warning("Failed to add cancellation note", extra={"contact_id": contact_id, "error": str(e)})

        try:
            self._crm.add_tags(contact_id, [CANCELLED_TAG])
        except CRMUpstreamError as e:
            self._logger.warning("Failed to add cancellation tag", extra={"contact_id": contact_id, "error": str(e)})
