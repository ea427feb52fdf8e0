from __future__ import annotations

import logging
from datetime import datetime, timezone

from collective.application.exceptions import CRMUpstreamError
from collective.application.ports.crm import CRMPort
from collective.domain.entities.booking import BookingRequest


def build_appointment_notes(
    booking: BookingRequest,
    start: datetime,
    end: datetime,
    booked_at: datetime | None = None,
) -> str:
    booked_at = booked_at or datetime.now(timezone.utc)
    lines = [
        f"Event: {booking.event_title}",
        f"Date: {start.strftime('%A %d %B %Y')}",
        f"Time: {start.strftime('%H:%M')} - {end.strftime('%H:%M')}",
    ]
    if booking.event_venue:
        lines.append(f"Venue: {booking.event_venue}")
    if booking.event_location:
        lines.append(f"Location: {booking.event_location}")
    lines += [
        "",
        f"Attendee: {booking.full_name}",
        f"Email: {booking.email}",
        f"Phone: {booking.phone or 'Not provided'}",
        f"Business: {booking.business_name}",
        f"Marketing opt-in: {'Yes' if booking.opt_in else 'No'}",
        "",
        "Booked via: COLLECTIVE Events Website",
        f"Booked at: {booked_at.isoformat(timespec='seconds')}",
    ]
    return "\n".join(lines)


class AppointmentDetailUpdaterUseCase:
    """Writes the full human-readable booking summary onto an existing appointment."""

    def __init__(self, crm: CRMPort) -> None:
        self._crm = crm
        self._logger = logging.getLogger(__name__)

    def update(self, appointment_id: str, booking: BookingRequest, start: datetime, end: datetime) -> bool:
        fields = {
            "address": booking.address,
            "notes": build_appointment_notes(booking, start, end),
        }
        try:
            self._crm.update_appointment(appointment_id, fields)
        except CRMUpstreamError as e:
            self._logger.warning(
                "Failed to update appointment details",
                extra={"appointment_id": appointment_id, "error": str(e)},
            )
            return False
        return True
