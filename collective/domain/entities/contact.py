from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any


class ContactType:
    PROSPECT = "Prospect"
    GUEST_BOOKED = "Guest Booked"
    COLLECTIVE_MEMBER = "Collective Member"
    COLLECTIVE_COMMUNITY = "Collective Community"


@dataclass(frozen=True)
class Contact:
    id: str
    email: str | None = None
    first_name: str | None = None
    last_name: str | None = None
    phone: str | None = None
    company_name: str | None = None
    tags: list[str] = field(default_factory=list)
    type: str | None = None

    @classmethod
    def from_payload(cls, data: dict[str, Any]) -> "Contact":
        return cls(
            id=str(data.get("id") or ""),
            email=data.get("email"),
            first_name=data.get("firstName"),
            last_name=data.get("lastName"),
            phone=data.get("phone"),
            company_name=data.get("companyName"),
            tags=list(data.get("tags") or []),
            type=data.get("type"),
        )

    def has_email(self, email: str) -> bool:
        return bool(self.email) and self.email.strip().lower() == email.strip().lower()
