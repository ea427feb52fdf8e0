from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import datetime
from typing import Any
from zoneinfo import ZoneInfo

from collective.application.exceptions import AppointmentCommitError, CRMUpstreamError
from collective.application.ports.automation import AutomationPort
from collective.application.ports.crm import CRMPort
from collective.application.utils.event_time import event_window
from collective.domain.entities.booking import BookingRequest

SLOT_UNAVAILABLE_MESSAGE = "Sorry, this event is no longer available to book. Please choose another date."
CONTACT_ISSUE_MESSAGE = "We couldn't match your contact details. Please check your email address and try again."
SERVICE_UNAVAILABLE_MESSAGE = "Our booking service is temporarily unavailable. Please try again shortly."


def classify_commit_error(message: str) -> str:
    """Map a CRM error message to the attendee-facing explanation."""
    text = message.lower()
    if "slot" in text or "availab" in text:
        return SLOT_UNAVAILABLE_MESSAGE
    if "contact" in text:
        return CONTACT_ISSUE_MESSAGE
    return SERVICE_UNAVAILABLE_MESSAGE


@dataclass(frozen=True)
class CommitResult:
    appointment_id: str | None
    calendar_id: str
    start: datetime
    end: datetime
    deferred: bool = False


class _Committer:
    def __init__(
        self,
        timezone: ZoneInfo,
        default_calendar_id: str,
        default_start: str = "17:00",
        default_end: str = "19:30",
    ) -> None:
        self._timezone = timezone
        self._default_calendar_id = default_calendar_id
        self._default_start = default_start
        self._default_end = default_end
        self._logger = logging.getLogger(__name__)

    def _window(self, booking: BookingRequest) -> tuple[datetime, datetime]:
        return event_window(
            booking.event_date,
            booking.event_start_time,
            booking.event_end_time,
            self._timezone,
            default_start=self._default_start,
            default_end=self._default_end,
        )

    def _calendar_id(self, booking: BookingRequest) -> str:
        return booking.calendar_id or self._default_calendar_id


class DirectAppointmentCommitter(_Committer):
    """Creates the appointment through the calendar API. Any failure is fatal."""

    def __init__(self, crm: CRMPort, **kwargs: Any) -> None:
        super().__init__(**kwargs)
        self._crm = crm

    def commit(self, contact_id: str, booking: BookingRequest) -> CommitResult:
        start, end = self._window(booking)
        calendar_id = self._calendar_id(booking)
        payload = {
            "calendarId": calendar_id,
            "contactId": contact_id,
            "title": f"{booking.event_title} - {booking.full_name}",
            "startTime": start.isoformat(),
            "endTime": end.isoformat(),
            "appointmentStatus": "confirmed",
            "address": booking.address,
            "ignoreFreeSlotValidation": True,
            "ignoreDateRange": True,
            "toNotify": True,
        }

        try:
            appointment = self._crm.create_appointment(payload)
        except CRMUpstreamError as e:
            self._logger.error(
                "Appointment creation failed",
                extra={"contact_id": contact_id, "calendar_id": calendar_id, "error": str(e)},
            )
            raise AppointmentCommitError(str(e), classify_commit_error(str(e))) from e

        self._logger.info(
            "Appointment committed",
            extra={"appointment_id": appointment.id, "contact_id": contact_id, "calendar_id": calendar_id},
        )
        return CommitResult(appointment_id=appointment.id, calendar_id=calendar_id, start=start, end=end)


class WebhookAppointmentCommitter(_Committer):
    """
    Hands the booking to a CRM automation webhook which creates the appointment
    out of band. A failed trigger is only logged since the automation may still
    run; the confirmation poller decides whether the booking landed.
    """

    def __init__(self, automation: AutomationPort, location_id: str, **kwargs: Any) -> None:
        super().__init__(**kwargs)
        self._automation = automation
        self._location_id = location_id

    def commit(self, contact_id: str, booking: BookingRequest) -> CommitResult:
        start, end = self._window(booking)
        calendar_id = self._calendar_id(booking)
        payload = {
            "contactId": contact_id,
            "locationId": self._location_id,
            "calendarId": calendar_id,
            "firstName": booking.first_name,
            "lastName": booking.last_name,
            "email": booking.email,
            "phone": booking.phone or "",
            "businessName": booking.business_name,
            "optIn": booking.opt_in,
            "eventId": booking.event_id or "",
            "eventTitle": booking.event_title,
            "eventDate": booking.event_date,
            "eventStartTime": start.strftime("%H:%M"),
            "eventEndTime": end.strftime("%H:%M"),
            "eventLocation": booking.event_location or "",
            "eventVenue": booking.event_venue or "",
            "address": booking.address,
            "startTime": start.isoformat(),
            "endTime": end.isoformat(),
            "source": "COLLECTIVE Events Website",
        }

        try:
            self._automation.trigger(payload)
        except CRMUpstreamError as e:
            self._logger.error(
                "Booking webhook failed, continuing to confirmation",
                extra={"contact_id": contact_id, "calendar_id": calendar_id, "error": str(e)},
            )

        return CommitResult(appointment_id=None, calendar_id=calendar_id, start=start, end=end, deferred=True)
