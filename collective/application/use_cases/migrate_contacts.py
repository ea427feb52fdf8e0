from __future__ import annotations

import logging
import time
from dataclasses import dataclass, field
from typing import Any, Callable

from collective.application.exceptions import CRMUpstreamError
from collective.application.ports.crm import CRMPort
from collective.domain.entities.appointment import Appointment
from collective.domain.entities.contact import Contact, ContactType

ATTENDED_STATUSES = {"showed", "completed", "confirmed"}
NO_SHOW_STATUSES = {"no_show", "noshow", "no-show"}
MEMBER_TAG = "collective community"
SAMPLE_SIZE = 10


@dataclass(frozen=True)
class BookingStats:
    booked: int = 0
    attended: int = 0
    no_show: int = 0


def booking_stats(appointments: list[Appointment]) -> BookingStats:
    attended = no_show = 0
    for appointment in appointments:
        status = (appointment.status or "").lower()
        if status in ATTENDED_STATUSES:
            attended += 1
        elif status in NO_SHOW_STATUSES:
            no_show += 1
    return BookingStats(booked=len(appointments), attended=attended, no_show=no_show)


def contact_type_for(contact: Contact, has_bookings: bool) -> str:
    if any(tag.lower() == MEMBER_TAG for tag in contact.tags):
        return ContactType.COLLECTIVE_MEMBER
    if has_bookings:
        return ContactType.GUEST_BOOKED
    return ContactType.PROSPECT


@dataclass
class MigrationReport:
    dry_run: bool
    total: int = 0
    processed: int = 0
    updated: int = 0
    errors: int = 0
    by_type: dict[str, int] = field(
        default_factory=lambda: {
            ContactType.PROSPECT: 0,
            ContactType.GUEST_BOOKED: 0,
            ContactType.COLLECTIVE_MEMBER: 0,
        }
    )
    samples: list[dict[str, Any]] = field(default_factory=list)

    def as_response(self) -> dict[str, Any]:
        return {
            "total": self.total,
            "processed": self.processed,
            "updated": self.updated,
            "errors": self.errors,
            "byType": dict(self.by_type),
            "samples": list(self.samples),
            "dryRun": self.dry_run,
        }


class MigrateContactsUseCase:
    """
    Backfills contact type and booking stats custom fields for every contact.

    Dry runs compute everything but write nothing. A failure on one contact is
    counted and the run carries on.
    """

    def __init__(
        self,
        crm: CRMPort,
        page_size: int = 100,
        page_delay: float = 0.1,
        write_delay: float = 0.2,
        sleep: Callable[[float], None] = time.sleep,
    ) -> None:
        self._crm = crm
        self._page_size = page_size
        self._page_delay = page_delay
        self._write_delay = write_delay
        self._sleep = sleep
        self._logger = logging.getLogger(__name__)

    def execute(self, dry_run: bool = True, limit: int = 0) -> MigrationReport:
        contacts = self._fetch_all_contacts()
        if limit > 0:
            contacts = contacts[:limit]

        report = MigrationReport(dry_run=dry_run, total=len(contacts))
        self._logger.info("Starting contact migration (dry_run=%s, total=%s)", dry_run, len(contacts))

        for contact in contacts:
            try:
                self._migrate(contact, report)
            except CRMUpstreamError as e:
                self._logger.error("Error migrating contact", extra={"contact_id": contact.id, "error": str(e)})
                report.errors += 1

        return report

    def _migrate(self, contact: Contact, report: MigrationReport) -> None:
        appointments = self._appointments(contact.id)
        stats = booking_stats(appointments)
        contact_type = contact_type_for(contact, bool(appointments))

        if not report.dry_run:
            self._crm.update_contact(
                contact.id,
                {
                    "type": contact_type,
                    "customFields": [
                        {"key": "events_booked", "field_value": str(stats.booked)},
                        {"key": "events_attended", "field_value": str(stats.attended)},
                        {"key": "no_show", "field_value": str(stats.no_show)},
                    ],
                },
            )
            report.updated += 1
            self._sleep(self._write_delay)

        report.processed += 1
        report.by_type[contact_type] = report.by_type.get(contact_type, 0) + 1

        if len(report.samples) < SAMPLE_SIZE:
            report.samples.append(
                {
                    "id": contact.id,
                    "name": f"{contact.first_name or ''} {contact.last_name or ''}".strip(),
                    "email": contact.email,
                    "tags": list(contact.tags),
                    "currentType": contact.type,
                    "newType": contact_type,
                    "stats": {"booked": stats.booked, "attended": stats.attended, "noShow": stats.no_show},
                    "appointmentCount": len(appointments),
                }
            )

    def _appointments(self, contact_id: str) -> list[Appointment]:
        try:
            return self._crm.list_contact_appointments(contact_id)
        except CRMUpstreamError as e:
            self._logger.warning("Failed to fetch appointments", extra={"contact_id": contact_id, "error": str(e)})
            return []

    def _fetch_all_contacts(self) -> list[Contact]:
        contacts: list[Contact] = []
        start_after: str | None = None
        while True:
            page = self._crm.list_contacts(limit=self._page_size, start_after=start_after)
            contacts.extend(page)
            if len(page) < self._page_size:
                break
            start_after = page[-1].id
            self._logger.info("Fetched contact page, total=%s", len(contacts))
            self._sleep(self._page_delay)
        return contacts
