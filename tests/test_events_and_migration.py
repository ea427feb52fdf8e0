"""
Tests for event listing and the contact type/stats backfill.
"""

from __future__ import annotations

from fastapi.testclient import TestClient

from collective.application.use_cases.list_events import ListEventsUseCase, availability, transform_event
from collective.application.use_cases.migrate_contacts import MigrateContactsUseCase
from collective.main import app
from collective.wiring.dependencies import get_list_events_use_case, get_migrate_contacts_use_case

EVENTS = "custom_objects.collective_event"
VENUES = "custom_objects.collective_venue"


def _seed_events(crm):
    crm.add_object_record(
        EVENTS,
        {"id": "e2", "properties": {"event_title": "Summer Social", "event_date": "2025-07-10", "status": "live", "venue": "v1"}},
    )
    crm.add_object_record(
        EVENTS,
        {"id": "e1", "properties": {"event_title": "Launch Night", "event_date": "2025-06-15", "status": "live", "venue": "v1",
                                    "max_attendees": "30", "current_attendees": "27"}},
    )
    crm.add_object_record(EVENTS, {"id": "e3", "properties": {"title": "TBC", "status": "live"}})
    crm.add_object_record(EVENTS, {"id": "e4", "properties": {"title": "Old", "event_date": "2024-01-01", "status": "past"}})
    crm.add_object_record(VENUES, {"id": "v1", "properties": {"venue_name": "The Hive", "city": "Nottingham"}})


def test_availability_thresholds():
    assert availability(None, 10, False) == ("available", None)
    assert availability(30, 10, False) == ("available", 20)
    assert availability(30, 25, False) == ("limited", 5)
    assert availability(30, 30, False) == ("sold_out", 0)
    assert availability(30, 31, True) == ("waitlist", 0)


def test_transform_event_defaults():
    event = transform_event({"id": "e1", "fields": {"featured": "true"}})

    assert event["title"] == "Untitled Event"
    assert event["status"] == "draft"
    assert event["price"] == "Free"
    assert event["featured"] is True
    assert event["venue"] is None


def test_list_events_sorted_with_venues(crm):
    _seed_events(crm)
    crm_venue_calls = []
    original = crm.get_object_record

    def counting(object_key, record_id):
        crm_venue_calls.append(record_id)
        return original(object_key, record_id)

    crm.get_object_record = counting

    events = ListEventsUseCase(crm, EVENTS, VENUES).execute()

    assert [e["id"] for e in events] == ["e1", "e2", "e3"]
    assert events[0]["capacity"]["status"] == "limited"
    assert events[0]["venue"]["name"] == "The Hive"
    assert crm_venue_calls == ["v1"]


def test_missing_venue_does_not_fail_listing(crm):
    crm.add_object_record(EVENTS, {"id": "e1", "properties": {"title": "A", "status": "live", "venue": "gone"}})

    [event] = ListEventsUseCase(crm, EVENTS, VENUES).execute()

    assert event["venue"] is None


def test_events_endpoint_sets_cache_header(crm):
    _seed_events(crm)
    app.dependency_overrides[get_list_events_use_case] = lambda: ListEventsUseCase(crm, EVENTS, VENUES)
    try:
        resp = TestClient(app).get("/events", params={"limit": "2", "includeVenues": "false"})
    finally:
        app.dependency_overrides.clear()

    assert resp.status_code == 200
    assert resp.headers["Cache-Control"] == "public, max-age=300"
    body = resp.json()
    assert body["count"] == 2
    assert all(e["venue"] is None for e in body["events"])



def test_zero_limit_falls_back_to_default(crm):
    _seed_events(crm)
    app.dependency_overrides[get_list_events_use_case] = lambda: ListEventsUseCase(crm, EVENTS, VENUES)
    try:
        client = TestClient(app)
        zero = client.get("/events", params={"limit": "0"})
        junk = client.get("/events", params={"limit": "lots"})
    finally:
        app.dependency_overrides.clear()

    assert zero.json()["count"] == 3
    assert junk.json()["count"] == 3


def _seed_contacts(crm):
    member = crm.add_contact({"email": "m@x.com", "tags": ["COLLECTIVE Community"]})
    guest = crm.add_contact({"email": "g@x.com"})
    prospect = crm.add_contact({"email": "p@x.com"})
    crm.appointments["a1"] = {"id": "a1", "contactId": guest.id, "appointmentStatus": "showed"}
    crm.appointments["a2"] = {"id": "a2", "contactId": guest.id, "appointmentStatus": "no_show"}
    crm.appointments["a3"] = {"id": "a3", "contactId": guest.id, "appointmentStatus": "cancelled"}
    return member, guest, prospect


def test_migration_dry_run_writes_nothing(crm):
    _seed_contacts(crm)

    report = MigrateContactsUseCase(crm, sleep=lambda s: None).execute()

    assert report.dry_run
    assert report.processed == 3
    assert report.updated == 0
    assert report.by_type == {"Prospect": 1, "Guest Booked": 1, "Collective Member": 1}
    assert "update_contact" not in crm.calls


def test_migration_run_writes_type_and_stats(crm):
    member, guest, prospect = _seed_contacts(crm)

    report = MigrateContactsUseCase(crm, page_size=2, sleep=lambda s: None).execute(dry_run=False)

    assert report.updated == 3
    assert crm.contacts[member.id]["type"] == "Collective Member"
    assert crm.contacts[prospect.id]["type"] == "Prospect"
    assert crm.contacts[guest.id]["type"] == "Guest Booked"
    assert crm.contacts[guest.id]["customFields"] == [
        {"key": "events_booked", "field_value": "3"},
        {"key": "events_attended", "field_value": "1"},
        {"key": "no_show", "field_value": "1"},
    ]
    guest_sample = next(s for s in report.samples if s["id"] == guest.id)
    assert guest_sample["stats"] == {"booked": 3, "attended": 1, "noShow": 1}


def test_migration_endpoint_respects_limit(crm):
    _seed_contacts(crm)
    app.dependency_overrides[get_migrate_contacts_use_case] = lambda: MigrateContactsUseCase(crm, sleep=lambda s: None)
    try:
        resp = TestClient(app).get("/migrate-contacts", params={"limit": "2"})
    finally:
        app.dependency_overrides.clear()

    assert resp.status_code == 200
    body = resp.json()
    assert body["message"].startswith("Dry run complete")
    assert body["results"]["total"] == 2
    assert body["results"]["dryRun"] is True
