from __future__ import annotations

import itertools
import logging
from typing import Any

from collective.application.exceptions import CRMUpstreamError
from collective.application.ports.crm import CRMPort
from collective.domain.entities.appointment import Appointment
from collective.domain.entities.contact import Contact


class MockCRM(CRMPort):
    """
    In-memory CRM for local runs and tests.

    With ``reject_duplicates`` the upsert endpoint behaves like a location that
    forbids duplicate contacts: an existing email is rejected instead of updated.
    """

    def __init__(self, reject_duplicates: bool = False, duplicate_meta: bool = True) -> None:
        self.contacts: dict[str, dict[str, Any]] = {}
        self.appointments: dict[str, dict[str, Any]] = {}
        self.notes: dict[str, list[str]] = {}
        self.objects: dict[str, dict[str, dict[str, Any]]] = {}
        self.appointment_error: str | None = None
        self.calls: list[str] = []
        self._reject_duplicates = reject_duplicates
        self._duplicate_meta = duplicate_meta
        self._deferred: list[tuple[int, dict[str, Any]]] = []
        self._ids = itertools.count(1)
        self._logger = logging.getLogger(__name__)

    def add_contact(self, fields: dict[str, Any]) -> Contact:
        contact_id = f"mock_contact_{next(self._ids)}"
        record = {"id": contact_id, "tags": [], **fields}
        record["tags"] = list(record.get("tags") or [])
        self.contacts[contact_id] = record
        return Contact.from_payload(record)

    def add_object_record(self, object_key: str, record: dict[str, Any]) -> None:
        self.objects.setdefault(object_key, {})[str(record["id"])] = record

    def defer_appointment(self, fields: dict[str, Any], visible_after: int = 0) -> None:
        """Create an appointment that only shows up after ``visible_after`` listing calls."""
        self._deferred.append((visible_after, dict(fields)))

    # contacts

    def upsert_contact(self, fields: dict[str, Any]) -> Contact | None:
        self.calls.append("upsert_contact")
        existing = self._by_email(fields.get("email") or "")
        if existing is None:
            contact = self.add_contact(fields)
            self._logger.info("Mock contact created", extra={"contact_id": contact.id})
            return contact

        if self._reject_duplicates:
            data: dict[str, Any] = {"statusCode": 400, "message": "This location does not allow duplicated contacts."}
            if self._duplicate_meta:
                data["meta"] = {"contactId": existing["id"], "matchingField": "email"}
            raise CRMUpstreamError(data["message"], status=400, data=data)

        self._merge(existing, fields)
        return Contact.from_payload(existing)

    def find_duplicate_contact(self, email: str) -> Contact | None:
        self.calls.append("find_duplicate_contact")
        record = self._by_email(email)
        return Contact.from_payload(record) if record else None

    def search_contacts(self, query: str) -> list[Contact]:
        self.calls.append("search_contacts")
        needle = query.strip().lower()
        found = []
        for record in self.contacts.values():
            haystack = " ".join(
                str(record.get(k) or "") for k in ("email", "firstName", "lastName", "companyName")
            ).lower()
            if needle in haystack:
                found.append(Contact.from_payload(record))
        return found

    def list_contacts(self, limit: int = 100, start_after: str | None = None) -> list[Contact]:
        self.calls.append("list_contacts")
        ids = list(self.contacts)
        start = ids.index(start_after) + 1 if start_after in self.contacts else 0
        return [Contact.from_payload(self.contacts[i]) for i in ids[start : start + limit]]

    def update_contact(self, contact_id: str, fields: dict[str, Any]) -> None:
        self.calls.append("update_contact")
        self._merge(self._contact(contact_id), fields)

    def add_tags(self, contact_id: str, tags: list[str]) -> None:
        self.calls.append("add_tags")
        self._merge(self._contact(contact_id), {"tags": tags})

    def add_note(self, contact_id: str, body: str) -> None:
        self.calls.append("add_note")
        self._contact(contact_id)
        self.notes.setdefault(contact_id, []).append(body)

    # appointments

    def create_appointment(self, fields: dict[str, Any]) -> Appointment:
        self.calls.append("create_appointment")
        if self.appointment_error:
            raise CRMUpstreamError(self.appointment_error, status=400)
        if fields.get("contactId") not in self.contacts:
            raise CRMUpstreamError("Contact not found", status=400)
        if not fields.get("calendarId"):
            raise CRMUpstreamError("calendarId is required", status=422)
        return Appointment.from_payload(self._store_appointment(fields))

    def update_appointment(self, appointment_id: str, fields: dict[str, Any]) -> None:
        self.calls.append("update_appointment")
        if appointment_id not in self.appointments:
            raise CRMUpstreamError("Appointment not found", status=404)
        self.appointments[appointment_id].update(fields)

    def delete_appointment(self, appointment_id: str) -> None:
        self.calls.append("delete_appointment")
        if appointment_id not in self.appointments:
            raise CRMUpstreamError("Appointment not found", status=404)
        del self.appointments[appointment_id]

    def list_contact_appointments(self, contact_id: str) -> list[Appointment]:
        self.calls.append("list_contact_appointments")
        still_deferred = []
        for remaining, fields in self._deferred:
            if remaining <= 0:
                self._store_appointment(fields)
            else:
                still_deferred.append((remaining - 1, fields))
        self._deferred = still_deferred
        return [
            Appointment.from_payload(a) for a in self.appointments.values() if a.get("contactId") == contact_id
        ]

    # custom objects

    def list_object_records(self, object_key: str, status: str | None = None) -> list[dict[str, Any]]:
        records = list(self.objects.get(object_key, {}).values())
        if status:
            records = [r for r in records if (r.get("properties") or r).get("status") == status]
        return records

    def get_object_record(self, object_key: str, record_id: str) -> dict[str, Any]:
        record = self.objects.get(object_key, {}).get(record_id)
        if record is None:
            raise CRMUpstreamError("Record not found", status=404)
        return record

    def _store_appointment(self, fields: dict[str, Any]) -> dict[str, Any]:
        appointment_id = f"mock_appointment_{next(self._ids)}"
        record = {"id": appointment_id, **fields}
        self.appointments[appointment_id] = record
        self._logger.info("Mock appointment created", extra={"appointment_id": appointment_id})
        return record

    def _by_email(self, email: str) -> dict[str, Any] | None:
        wanted = email.strip().lower()
        if not wanted:
            return None
        for record in self.contacts.values():
            if str(record.get("email") or "").strip().lower() == wanted:
                return record
        return None

    def _contact(self, contact_id: str) -> dict[str, Any]:
        record = self.contacts.get(contact_id)
        if record is None:
            raise CRMUpstreamError("Contact not found", status=404)
        return record

    def _merge(self, record: dict[str, Any], fields: dict[str, Any]) -> None:
        for key, value in fields.items():
            if key == "tags":
                record["tags"] = record.get("tags", []) + [t for t in value if t not in record.get("tags", [])]
            elif value is not None:
                record[key] = value
