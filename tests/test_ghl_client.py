"""
Tests for the GHL httpx adapter and the booking webhook client.
"""

from __future__ import annotations

import json

import httpx
import pytest

from collective.application.exceptions import CRMUpstreamError
from collective.core.config import settings
from collective.infrastructure.automation.webhook_client import WebhookAutomation
from collective.infrastructure.ghl.ghl_client import GHLClient

BASE = "https://ghl.test"


def _client(handler) -> GHLClient:
    return GHLClient(
        api_key="tok",
        location_id="loc_1",
        base_url=BASE,
        api_version="2021-07-28",
        client=httpx.Client(transport=httpx.MockTransport(handler)),
    )


def test_requests_carry_auth_and_version_headers():
    requests: list[httpx.Request] = []

    def handler(request: httpx.Request) -> httpx.Response:
        requests.append(request)
        return httpx.Response(200, json={"contact": {"id": "c1", "email": "jo@x.com"}})

    contact = _client(handler).upsert_contact({"email": "jo@x.com"})

    assert contact.id == "c1"
    request = requests[0]
    assert request.method == "POST"
    assert request.url.path == "/contacts/upsert"
    assert request.headers["Authorization"] == "Bearer tok"
    assert request.headers["Version"] == "2021-07-28"
    assert json.loads(request.content) == {"locationId": "loc_1", "email": "jo@x.com"}


def test_upsert_without_id_returns_none():
    client = _client(lambda request: httpx.Response(200, json={"contact": {}}))
    assert client.upsert_contact({"email": "jo@x.com"}) is None


def test_duplicate_error_is_recognised():
    def handler(request):
        return httpx.Response(
            400,
            json={
                "statusCode": 400,
                "message": "This location does not allow duplicated contacts.",
                "meta": {"contactId": "c9"},
            },
        )

    with pytest.raises(CRMUpstreamError) as exc_info:
        _client(handler).upsert_contact({"email": "jo@x.com"})

    error = exc_info.value
    assert error.status == 400
    assert error.is_duplicate
    assert error.data["meta"]["contactId"] == "c9"


def test_non_json_error_body_falls_back_to_status():
    client = _client(lambda request: httpx.Response(502, text="<html>Bad gateway</html>"))

    with pytest.raises(CRMUpstreamError) as exc_info:
        client.search_contacts("jo@x.com")

    assert str(exc_info.value) == "API error: 502"
    assert exc_info.value.data == {"raw": "<html>Bad gateway</html>"}


def test_delete_not_found_flagged():
    client = _client(lambda request: httpx.Response(404, json={"message": ["Appointment not found"]}))

    with pytest.raises(CRMUpstreamError) as exc_info:
        client.delete_appointment("a1")

    assert exc_info.value.is_not_found
    assert str(exc_info.value) == "Appointment not found"


def test_create_appointment_reads_nested_event_id():
    def handler(request):
        assert request.url.path == "/calendars/events/appointments"
        body = json.loads(request.content)
        assert body["locationId"] == "loc_1"
        return httpx.Response(201, json={"event": {"id": "a1", "calendarId": body["calendarId"]}})

    appointment = _client(handler).create_appointment({"calendarId": "cal_1", "contactId": "c1"})

    assert appointment.id == "a1"
    assert appointment.calendar_id == "cal_1"


def test_list_contacts_paginates_by_id():
    seen = []

    def handler(request):
        seen.append(dict(request.url.params))
        return httpx.Response(200, json={"contacts": [{"id": "c3", "email": "a@x.com"}]})

    _client(handler).list_contacts(limit=50, start_after="c2")

    assert seen[0] == {"locationId": "loc_1", "limit": "50", "startAfterId": "c2"}


def test_contact_appointments_parsed():
    def handler(request):
        assert request.url.path == "/contacts/c1/appointments"
        return httpx.Response(
            200,
            json={"events": [{"id": "a1", "calendarId": "cal_1", "startTime": "2025-09-01T16:00:00Z", "appointmentStatus": "confirmed"}]},
        )

    [appointment] = _client(handler).list_contact_appointments("c1")

    assert appointment.status == "confirmed"
    assert appointment.start_time == "2025-09-01T16:00:00Z"


def test_transport_error_wrapped():
    def handler(request):
        raise httpx.ConnectError("boom", request=request)

    with pytest.raises(CRMUpstreamError):
        _client(handler).find_duplicate_contact("jo@x.com")


def test_missing_api_key_rejected(monkeypatch):
    monkeypatch.setattr(settings, "COLLECTIVE_API_TOKEN", None)
    with pytest.raises(ValueError):
        GHLClient(api_key="", client=httpx.Client(transport=httpx.MockTransport(lambda r: httpx.Response(200))))


def test_webhook_posts_payload_and_raises_on_error():
    posted = []

    def handler(request):
        posted.append(json.loads(request.content))
        return httpx.Response(500 if len(posted) > 1 else 200)

    automation = WebhookAutomation("https://hooks.test/booking", client=httpx.Client(transport=httpx.MockTransport(handler)))

    automation.trigger({"contactId": "c1"})
    with pytest.raises(CRMUpstreamError):
        automation.trigger({"contactId": "c2"})

    assert posted == [{"contactId": "c1"}, {"contactId": "c2"}]
