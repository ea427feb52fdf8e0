from __future__ import annotations

from dataclasses import dataclass


@dataclass(frozen=True)
class BookingRequest:
    first_name: str
    last_name: str
    email: str
    business_name: str
    event_title: str
    event_date: str  # YYYY-MM-DD
    phone: str | None = None
    opt_in: bool = False
    event_id: str | None = None
    event_start_time: str | None = None  # HH:MM
    event_end_time: str | None = None  # HH:MM
    event_location: str | None = None
    event_venue: str | None = None
    calendar_id: str | None = None

    @property
    def full_name(self) -> str:
        return f"{self.first_name} {self.last_name}".strip()

    @property
    def address(self) -> str:
        location = self.event_location or ""
        if self.event_venue:
            return self.event_venue + (f", {location}" if location else "")
        return location


@dataclass(frozen=True)
class BookingOutcome:
    contact_id: str
    appointment_id: str | None
    confirmed: bool
