from __future__ import annotations

from zoneinfo import ZoneInfo

from collective.application.use_cases.book_event import BookEventUseCase
from collective.application.use_cases.commit_appointment import DirectAppointmentCommitter
from collective.application.use_cases.resolve_contact import ContactResolverUseCase
from collective.application.use_cases.update_appointment_details import AppointmentDetailUpdaterUseCase
from collective.domain.entities.booking import BookingRequest
from collective.infrastructure.ghl.mock_crm import MockCRM

LONDON = ZoneInfo("Europe/London")
DEFAULT_CALENDAR = "cal_default"


def make_booking(**overrides) -> BookingRequest:
    fields = {
        "first_name": "Jo",
        "last_name": "Bloggs",
        "email": "jo@x.com",
        "business_name": "Acme",
        "event_title": "Launch Night",
        "event_date": "2025-09-01",
    }
    fields.update(overrides)
    return BookingRequest(**fields)


def make_direct_use_case(crm: MockCRM) -> BookEventUseCase:
    return BookEventUseCase(
        crm=crm,
        resolver=ContactResolverUseCase(crm=crm),
        committer=DirectAppointmentCommitter(crm=crm, timezone=LONDON, default_calendar_id=DEFAULT_CALENDAR),
        detail_updater=AppointmentDetailUpdaterUseCase(crm=crm),
    )
