from __future__ import annotations

from dataclasses import dataclass
from typing import Any


@dataclass(frozen=True)
class Appointment:
    id: str
    calendar_id: str | None = None
    contact_id: str | None = None
    title: str | None = None
    start_time: str | None = None  # as returned by the CRM, ISO-ish
    end_time: str | None = None
    status: str | None = None
    address: str | None = None
    notes: str | None = None

    @classmethod
    def from_payload(cls, data: dict[str, Any]) -> "Appointment":
        # Create responses nest the record under "event" on some API versions
        record = data.get("event") if isinstance(data.get("event"), dict) else data
        return cls(
            id=str(record.get("id") or ""),
            calendar_id=record.get("calendarId"),
            contact_id=record.get("contactId"),
            title=record.get("title"),
            start_time=record.get("startTime"),
            end_time=record.get("endTime"),
            status=record.get("appointmentStatus") or record.get("status"),
            address=record.get("address"),
            notes=record.get("notes"),
        )
