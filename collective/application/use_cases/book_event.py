from __future__ import annotations

import logging

from collective.application.exceptions import CRMUpstreamError
from collective.application.ports.crm import CRMPort
from collective.application.use_cases.commit_appointment import (
    DirectAppointmentCommitter,
    WebhookAppointmentCommitter,
)
from collective.application.use_cases.confirm_appointment import ConfirmationPollerUseCase
from collective.application.use_cases.resolve_contact import ContactResolverUseCase
from collective.application.use_cases.update_appointment_details import AppointmentDetailUpdaterUseCase
from collective.domain.entities.booking import BookingOutcome, BookingRequest


class BookEventUseCase:
    """
    Booking reconciliation: resolve contact, commit appointment, confirm it when
    it was created out of band, then enrich it with the full booking details.

    ContactResolutionError and AppointmentCommitError propagate. Everything
    after the commit is best effort.
    """

    def __init__(
        self,
        crm: CRMPort,
        resolver: ContactResolverUseCase,
        committer: DirectAppointmentCommitter | WebhookAppointmentCommitter,
        detail_updater: AppointmentDetailUpdaterUseCase,
        poller: ConfirmationPollerUseCase | None = None,
    ) -> None:
        self._crm = crm
        self._resolver = resolver
        self._committer = committer
        self._detail_updater = detail_updater
        self._poller = poller
        self._logger = logging.getLogger(__name__)

    def execute(self, booking: BookingRequest) -> BookingOutcome:
        self._logger.info("Booking received", extra={"email": booking.email})
        contact_id = self._resolver.resolve(booking)

        result = self._committer.commit(contact_id, booking)
        appointment_id = result.appointment_id
        confirmed = appointment_id is not None

        if result.deferred:
            if self._poller is None:
                self._logger.warning("No confirmation poller configured", extra={"contact_id": contact_id})
            else:
                confirmation = self._poller.poll(contact_id, result.calendar_id, result.start.date())
                if confirmation.confirmed and confirmation.appointment is not None:
                    appointment_id = confirmation.appointment.id
                    confirmed = True

        if appointment_id:
            self._detail_updater.update(appointment_id, booking, result.start, result.end)

        self._add_booking_note(contact_id, booking, confirmed)

        return BookingOutcome(contact_id=contact_id, appointment_id=appointment_id, confirmed=confirmed)

    def _add_booking_note(self, contact_id: str, booking: BookingRequest, confirmed: bool) -> None:
        status = "Confirmed" if confirmed else "Pending confirmation"
        body = (
            f"Booked onto {booking.event_title} ({booking.event_date}) via website.\n"
            f"Status: {status}\n"
            f"Opt-in for marketing: {'Yes' if booking.opt_in else 'No'}"
        )
        try:
            self._crm.add_note(contact_id, body)
        except CRMUpstreamError as e:
            self._logger.warning("Failed to add booking note", extra={"contact_id": contact_id, "error": str(e)})
