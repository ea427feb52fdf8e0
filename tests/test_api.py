"""
Tests for the HTTP surface of the booking endpoints.
"""

from __future__ import annotations

from functools import partial

import pytest
from fastapi.testclient import TestClient

from collective.application.use_cases.book_event import BookEventUseCase
from collective.application.use_cases.cancel_booking import CancelBookingUseCase
from collective.application.use_cases.commit_appointment import WebhookAppointmentCommitter
from collective.application.use_cases.confirm_appointment import ConfirmationPollerUseCase
from collective.application.use_cases.resolve_contact import ContactResolverUseCase
from collective.application.use_cases.update_appointment_details import AppointmentDetailUpdaterUseCase
from collective.core.config import settings
from collective.infrastructure.ghl.mock_crm import MockCRM
from collective.main import app
from collective.wiring.dependencies import get_book_event_factory, get_cancel_booking_use_case, get_crm
from tests.helpers import DEFAULT_CALENDAR, LONDON, make_direct_use_case

BOOKING = {
    "firstName": "Jo",
    "lastName": "Bloggs",
    "email": "jo@x.com",
    "businessName": "Acme",
    "eventTitle": "Launch Night",
    "eventDate": "2025-09-01",
}


@pytest.fixture
def crm() -> MockCRM:
    return MockCRM()


@pytest.fixture
def client(crm):
    app.dependency_overrides[get_book_event_factory] = lambda: partial(make_direct_use_case, crm)
    app.dependency_overrides[get_cancel_booking_use_case] = lambda: CancelBookingUseCase(crm=crm)
    try:
        yield TestClient(app)
    finally:
        app.dependency_overrides.clear()


def test_preflight_returns_cors_headers(client):
    resp = client.options("/book")

    assert resp.status_code == 204
    assert resp.headers["Access-Control-Allow-Origin"] == "*"
    assert "POST" in resp.headers["Access-Control-Allow-Methods"]


def test_non_post_rejected(client):
    resp = client.get("/book")

    assert resp.status_code == 405
    assert resp.json() == {"error": "Method not allowed"}


def test_missing_email_is_named(client):
    payload = {k: v for k, v in BOOKING.items() if k != "email"}

    resp = client.post("/book", json=payload)

    assert resp.status_code == 400
    assert resp.json() == {"error": "Missing required fields: email"}


def test_blank_fields_count_as_missing(client):
    resp = client.post("/book", json={**BOOKING, "firstName": "  ", "eventDate": ""})

    assert resp.status_code == 400
    assert resp.json()["error"] == "Missing required fields: firstName, eventDate"


def test_invalid_json_rejected(client):
    resp = client.post("/book", content=b"{not json", headers={"Content-Type": "application/json"})

    assert resp.status_code == 400
    assert resp.json() == {"error": "Invalid JSON body"}


def test_invalid_time_rejected(client, crm):
    resp = client.post("/book", json={**BOOKING, "eventStartTime": "teatime"})

    assert resp.status_code == 400
    assert crm.contacts == {}


def test_booking_with_defaults_succeeds(client, crm):
    """No calendar id or times: default calendar, 17:00 to 19:30."""
    resp = client.post("/book", json=BOOKING)

    assert resp.status_code == 200
    body = resp.json()
    assert body["success"] is True
    assert body["confirmed"] is True
    assert body["contactId"]
    appointment = crm.appointments[body["appointmentId"]]
    assert appointment["contactId"] == body["contactId"]
    assert appointment["calendarId"] == DEFAULT_CALENDAR
    assert appointment["startTime"] == "2025-09-01T17:00:00+01:00"
    assert appointment["endTime"] == "2025-09-01T19:30:00+01:00"


def test_commit_failure_gives_friendly_error(client, crm):
    crm.appointment_error = "Contact does not belong to this location"

    resp = client.post("/book", json=BOOKING)

    assert resp.status_code == 500
    assert "contact details" in resp.json()["error"]
    assert resp.json()["details"] == "Contact does not belong to this location"


def test_unconfirmed_webhook_booking_still_succeeds(crm):
    class _SilentAutomation:
        def trigger(self, payload):
            return None

    use_case = BookEventUseCase(
        crm=crm,
        resolver=ContactResolverUseCase(crm=crm),
        committer=WebhookAppointmentCommitter(
            automation=_SilentAutomation(),
            location_id="loc_1",
            timezone=LONDON,
            default_calendar_id=DEFAULT_CALENDAR,
        ),
        detail_updater=AppointmentDetailUpdaterUseCase(crm=crm),
        poller=ConfirmationPollerUseCase(crm=crm, timezone=LONDON, max_attempts=2, sleep=lambda s: None),
    )
    app.dependency_overrides[get_book_event_factory] = lambda: lambda: use_case
    try:
        resp = TestClient(app).post("/book", json=BOOKING)
    finally:
        app.dependency_overrides.clear()

    assert resp.status_code == 200
    body = resp.json()
    assert body["confirmed"] is False
    assert body["appointmentId"] is None
    assert body["contactId"] in crm.contacts


def test_missing_token_outside_dev_is_configuration_error(monkeypatch):
    monkeypatch.setattr(settings, "COLLECTIVE_API_TOKEN", None)
    monkeypatch.setattr(settings, "ENV", "production")
    get_crm.cache_clear()
    try:
        resp = TestClient(app).post("/book", json=BOOKING)
    finally:
        get_crm.cache_clear()

    assert resp.status_code == 500
    assert resp.json() == {"error": "Server configuration error"}


def test_missing_field_reported_before_configuration_error(monkeypatch):
    """Without a token outside dev, a bad body is still a 400, not a 500."""
    monkeypatch.setattr(settings, "COLLECTIVE_API_TOKEN", None)
    monkeypatch.setattr(settings, "ENV", "production")
    get_crm.cache_clear()
    payload = {k: v for k, v in BOOKING.items() if k != "email"}
    try:
        resp = TestClient(app).post("/book", json=payload)
    finally:
        get_crm.cache_clear()

    assert resp.status_code == 400
    assert resp.json() == {"error": "Missing required fields: email"}


def test_cancel_requires_appointment_id(client):
    resp = client.post("/cancel", json={"contactId": "c1"})

    assert resp.status_code == 400
    assert resp.json()["error"] == "Missing appointment ID"


def test_cancel_deletes_and_tags(client, crm):
    contact = crm.add_contact({"email": "jo@x.com"})
    crm.appointments["a1"] = {"id": "a1", "contactId": contact.id}

    resp = client.post("/cancel", json={"appointmentId": "a1", "contactId": contact.id, "reason": "illness"})

    assert resp.status_code == 200
    assert resp.json() == {"success": True, "message": "Booking cancelled successfully", "appointmentId": "a1"}
    assert "a1" not in crm.appointments
    assert "Event Cancelled" in crm.contacts[contact.id]["tags"]
    assert "Reason: Not feeling well" in crm.notes[contact.id][0]
