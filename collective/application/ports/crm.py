from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Any

from collective.domain.entities.appointment import Appointment
from collective.domain.entities.contact import Contact


class CRMPort(ABC):
    """
    Contacts, appointments and custom objects of one CRM location.

    Implementations raise CRMUpstreamError for any rejected or failed call.
    """

    @abstractmethod
    def upsert_contact(self, fields: dict[str, Any]) -> Contact | None:
        """Create or update a contact keyed by email. Returns None if no id came back."""
        raise NotImplementedError

    @abstractmethod
    def find_duplicate_contact(self, email: str) -> Contact | None:
        """Dedicated duplicate lookup by email."""
        raise NotImplementedError

    @abstractmethod
    def search_contacts(self, query: str) -> list[Contact]:
        """Free-text contact search."""
        raise NotImplementedError

    @abstractmethod
    def list_contacts(self, limit: int = 100, start_after: str | None = None) -> list[Contact]:
        """One page of contacts, ordered, starting after the given contact id."""
        raise NotImplementedError

    @abstractmethod
    def update_contact(self, contact_id: str, fields: dict[str, Any]) -> None:
        raise NotImplementedError

    @abstractmethod
    def add_tags(self, contact_id: str, tags: list[str]) -> None:
        raise NotImplementedError

    @abstractmethod
    def add_note(self, contact_id: str, body: str) -> None:
        raise NotImplementedError

    @abstractmethod
    def create_appointment(self, fields: dict[str, Any]) -> Appointment:
        raise NotImplementedError

    @abstractmethod
    def update_appointment(self, appointment_id: str, fields: dict[str, Any]) -> None:
        raise NotImplementedError

    @abstractmethod
    def delete_appointment(self, appointment_id: str) -> None:
        raise NotImplementedError

    @abstractmethod
    def list_contact_appointments(self, contact_id: str) -> list[Appointment]:
        raise NotImplementedError

    @abstractmethod
    def list_object_records(self, object_key: str, status: str | None = None) -> list[dict[str, Any]]:
        """Records of a custom object, optionally filtered by status."""
        raise NotImplementedError

    @abstractmethod
    def get_object_record(self, object_key: str, record_id: str) -> dict[str, Any]:
        raise NotImplementedError
