from __future__ import annotations

import logging
from typing import Any

from collective.application.exceptions import CRMUpstreamError
from collective.application.ports.crm import CRMPort

LIMITED_SPOTS_THRESHOLD = 5


def _fields(record: dict[str, Any]) -> dict[str, Any]:
    return record.get("properties") or record.get("fields") or record


def _first(fields: dict[str, Any], *keys: str) -> Any:
    for key in keys:
        value = fields.get(key)
        if value not in (None, ""):
            return value
    return None


def _as_int(value: Any) -> int | None:
    try:
        return int(value)
    except (TypeError, ValueError):
        return None


def _truthy(value: Any) -> bool:
    return value is True or (isinstance(value, str) and value.lower() == "true")


def availability(max_attendees: int | None, current: int, waitlist_enabled: bool) -> tuple[str, int | None]:
    """Returns (status, spots remaining). Events without a cap are always available."""
    if not max_attendees:
        return "available", None
    remaining = max(0, max_attendees - current)
    if remaining == 0:
        return ("waitlist" if waitlist_enabled else "sold_out"), 0
    if remaining <= LIMITED_SPOTS_THRESHOLD:
        return "limited", remaining
    return "available", remaining


def transform_venue(venue: dict[str, Any]) -> dict[str, Any]:
    return {
        "name": _first(venue, "venue_name", "name"),
        "address": _first(venue, "address_line_1", "address"),
        "city": venue.get("city"),
        "postcode": venue.get("postcode"),
        "mapsUrl": _first(venue, "google_maps_url", "mapsUrl"),
        "what3words": _first(venue, "what3words", "what_3_words"),
        "parking": _first(venue, "parking_info", "parking"),
        "transport": _first(venue, "public_transport", "transport"),
        "accessibility": venue.get("accessibility"),
        "image": _first(venue, "venue_image", "image"),
    }


def transform_event(record: dict[str, Any], venue: dict[str, Any] | None = None) -> dict[str, Any]:
    fields = _fields(record)
    max_attendees = _as_int(_first(fields, "max_attendees", "maxAttendees"))
    current = _as_int(_first(fields, "current_attendees", "currentAttendees")) or 0
    waitlist_enabled = _truthy(fields.get("waitlist_enabled")) or _truthy(fields.get("waitlistEnabled"))
    status, remaining = availability(max_attendees, current, waitlist_enabled)

    return {
        "id": record.get("id"),
        "title": _first(fields, "event_title", "title") or "Untitled Event",
        "slug": _first(fields, "event_slug", "slug") or "",
        "date": _first(fields, "event_date", "date"),
        "startTime": _first(fields, "start_time", "startTime"),
        "endTime": _first(fields, "end_time", "endTime"),
        "status": fields.get("status") or "draft",
        "shortDescription": _first(fields, "short_description", "shortDescription") or "",
        "fullDescription": _first(fields, "full_description", "fullDescription") or "",
        "speaker": {
            "name": _first(fields, "speaker_name", "speakerName"),
            "title": _first(fields, "speaker_title", "speakerTitle"),
            "bio": _first(fields, "speaker_bio", "speakerBio"),
            "photo": _first(fields, "speaker_photo", "speakerPhoto"),
        },
        "price": fields.get("price") or "Free",
        "bookingUrl": _first(fields, "booking_url", "bookingUrl"),
        "featuredImage": _first(fields, "featured_image", "featuredImage"),
        "locationTag": _first(fields, "location_tag", "locationTag"),
        "featured": _truthy(fields.get("featured")) or _truthy(fields.get("is_featured")),
        "capacity": {
            "max": max_attendees,
            "current": current,
            "remaining": remaining,
            "waitlistEnabled": waitlist_enabled,
            "status": status,
        },
        "calendarId": _first(fields, "calendar_id", "calendarId"),
        "venue": transform_venue(venue) if venue else None,
    }


class ListEventsUseCase:
    def __init__(self, crm: CRMPort, events_object_key: str, venues_object_key: str | None) -> None:
        self._crm = crm
        self._events_object_key = events_object_key
        self._venues_object_key = venues_object_key
        self._logger = logging.getLogger(__name__)

    def execute(self, status: str = "live", limit: int = 10, include_venues: bool = True) -> list[dict[str, Any]]:
        records = self._crm.list_object_records(self._events_object_key, status=status)

        venues: dict[str, dict[str, Any] | None] = {}
        events = []
        for record in records[:limit]:
            venue_id = _first(_fields(record), "venue", "venue_id", "venueId")
            venue = None
            if include_venues and self._venues_object_key and venue_id:
                venue_id = str(venue_id)
                if venue_id not in venues:
                    venues[venue_id] = self._fetch_venue(venue_id)
                venue = venues[venue_id]
            events.append(transform_event(record, venue))

        # Undated events sort last
        events.sort(key=lambda e: (e["date"] is None, str(e["date"] or "")))
        return events

    def _fetch_venue(self, venue_id: str) -> dict[str, Any] | None:
        try:
            return _fields(self._crm.get_object_record(self._venues_object_key, venue_id))
        except CRMUpstreamError as e:
            self._logger.warning("Failed to fetch venue", extra={"error": str(e), "venue_id": venue_id})
            return None
