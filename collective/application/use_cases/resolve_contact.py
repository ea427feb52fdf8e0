from __future__ import annotations

import logging
from typing import Any

from collective.application.exceptions import ContactResolutionError, CRMUpstreamError
from collective.application.ports.crm import CRMPort
from collective.application.utils.strategies import Strategy, first_result
from collective.domain.entities.booking import BookingRequest
from collective.domain.entities.contact import Contact, ContactType

BOOKING_TAGS = ("COLLECTIVE Event Booking", "Website Booking")
OPT_IN_TAG = "Marketing Opted In"
BOOKING_SOURCE = "COLLECTIVE Events Website"


def booking_tags(booking: BookingRequest) -> list[str]:
    tags = list(BOOKING_TAGS)
    tags.append(f"Event: {booking.event_title}")
    if booking.opt_in:
        tags.append(OPT_IN_TAG)
    return tags


class ContactResolverUseCase:
    """
    Find-or-create the CRM contact for a booking attendee.

    The upsert endpoint is tried first. Locations configured to reject duplicate
    contacts answer an existing email with an error instead of an update, so on
    a duplicate error the contact is looked up through an ordered list of
    fallbacks (error metadata, duplicate lookup, free-text search, bounded
    scan). Email matching is case-insensitive throughout.
    """

    def __init__(self, crm: CRMPort, scan_max_pages: int = 5, page_size: int = 100) -> None:
        self._crm = crm
        self._scan_max_pages = scan_max_pages
        self._page_size = page_size
        self._logger = logging.getLogger(__name__)

    def resolve(self, booking: BookingRequest) -> str:
        fields = self._contact_fields(booking)
        duplicate_error: CRMUpstreamError | None = None

        try:
            contact = self._crm.upsert_contact(fields)
        except CRMUpstreamError as e:
            if not e.is_duplicate:
                raise ContactResolutionError(f"Contact upsert failed: {e}") from e
            self._logger.info("Upsert reported duplicate contact", extra={"email": booking.email})
            duplicate_error = e
            contact = None

        if contact is not None:
            self._logger.info("Contact upserted", extra={"contact_id": contact.id})
            return contact.id

        found = first_result(self._fallbacks(booking.email, duplicate_error))
        if found is None:
            raise ContactResolutionError(f"Could not create or find contact for {booking.email}")

        strategy, contact_id = found
        self._logger.info("Existing contact resolved", extra={"contact_id": contact_id, "strategy": strategy})
        self._refresh(contact_id, fields)
        return contact_id

    def _fallbacks(self, email: str, error: CRMUpstreamError | None) -> list[Strategy[str]]:
        return [
            Strategy("duplicate_error_meta", lambda: _contact_id_from_error(error)),
            Strategy("duplicate_lookup", lambda: _matching_id([self._crm.find_duplicate_contact(email)], email)),
            Strategy("query_search", lambda: _matching_id(self._crm.search_contacts(email), email)),
            Strategy("contact_scan", lambda: self._scan(email)),
        ]

    def _scan(self, email: str) -> str | None:
        start_after: str | None = None
        for _ in range(self._scan_max_pages):
            page = self._crm.list_contacts(limit=self._page_size, start_after=start_after)
            match = _matching_id(page, email)
            if match or len(page) < self._page_size:
                return match
            start_after = page[-1].id
        return None

    def _refresh(self, contact_id: str, fields: dict[str, Any]) -> None:
        update = {k: v for k, v in fields.items() if k not in ("tags", "email", "source", "type") and v is not None}
        try:
            self._crm.update_contact(contact_id, update)
        except CRMUpstreamError as e:
            self._logger.warning("Failed to refresh contact", extra={"contact_id": contact_id, "error": str(e)})
        try:
            self._crm.add_tags(contact_id, fields["tags"])
        except CRMUpstreamError as e:
            self._logger.warning("Failed to tag contact", extra={"contact_id": contact_id, "error": str(e)})

    def _contact_fields(self, booking: BookingRequest) -> dict[str, Any]:
        return {
            "firstName": booking.first_name,
            "lastName": booking.last_name,
            "email": booking.email,
            "phone": booking.phone or None,
            "companyName": booking.business_name,
            "tags": booking_tags(booking),
            "source": BOOKING_SOURCE,
            "type": ContactType.GUEST_BOOKED,
        }


def _contact_id_from_error(error: CRMUpstreamError | None) -> str | None:
    if error is None:
        return None
    meta = error.data.get("meta") or {}
    contact_id = meta.get("contactId") if isinstance(meta, dict) else None
    return str(contact_id) if contact_id else None


def _matching_id(contacts: list[Contact | None], email: str) -> str | None:
    for contact in contacts:
        if contact is not None and contact.id and contact.has_email(email):
            return contact.id
    return None
