from __future__ import annotations

import logging
from typing import Any

import httpx

from collective.application.exceptions import CRMUpstreamError
from collective.application.ports.crm import CRMPort
from collective.core.config import settings
from collective.domain.entities.appointment import Appointment
from collective.domain.entities.contact import Contact


class GHLClient(CRMPort):
    """
    GoHighLevel REST adapter implementing CRMPort.

    Every request is bearer-authenticated and pinned to one API version via the
    ``Version`` header. Non-2xx responses raise CRMUpstreamError carrying the
    status code and decoded body so callers can tell duplicates and 404s apart.
    """

    def __init__(
        self,
        api_key: str | None = None,
        location_id: str | None = None,
        base_url: str | None = None,
        api_version: str | None = None,
        client: httpx.Client | None = None,
    ) -> None:
        self._api_key = api_key or settings.COLLECTIVE_API_TOKEN
        self._location_id = location_id or settings.GHL_LOCATION_ID
        self._base_url = (base_url or settings.GHL_API_BASE).rstrip("/")
        self._api_version = api_version or settings.GHL_API_VERSION
        self._client = client or httpx.Client(timeout=settings.GHL_TIMEOUT_SECONDS)
        self._logger = logging.getLogger(__name__)

        if not self._api_key:
            raise ValueError("COLLECTIVE_API_TOKEN is required for the GHL client")

    # contacts

    def upsert_contact(self, fields: dict[str, Any]) -> Contact | None:
        data = self._request("POST", "/contacts/upsert", json={"locationId": self._location_id, **fields})
        contact = data.get("contact") or {}
        if not contact.get("id"):
            return None
        return Contact.from_payload(contact)

    def find_duplicate_contact(self, email: str) -> Contact | None:
        data = self._request(
            "GET",
            "/contacts/search/duplicate",
            params={"locationId": self._location_id, "email": email},
        )
        contact = data.get("contact")
        if not contact or not contact.get("id"):
            return None
        return Contact.from_payload(contact)

    def search_contacts(self, query: str) -> list[Contact]:
        data = self._request("GET", "/contacts/", params={"locationId": self._location_id, "query": query})
        return [Contact.from_payload(c) for c in data.get("contacts") or []]

    def list_contacts(self, limit: int = 100, start_after: str | None = None) -> list[Contact]:
        params: dict[str, Any] = {"locationId": self._location_id, "limit": limit}
        if start_after:
            params["startAfterId"] = start_after
        data = self._request("GET", "/contacts/", params=params)
        return [Contact.from_payload(c) for c in data.get("contacts") or []]

    def update_contact(self, contact_id: str, fields: dict[str, Any]) -> None:
        self._request("PUT", f"/contacts/{contact_id}", json=fields)

    def add_tags(self, contact_id: str, tags: list[str]) -> None:
        self._request("POST", f"/contacts/{contact_id}/tags", json={"tags": tags})

    def add_note(self, contact_id: str, body: str) -> None:
        self._request("POST", f"/contacts/{contact_id}/notes", json={"body": body})

    # appointments

    def create_appointment(self, fields: dict[str, Any]) -> Appointment:
        data = self._request(
            "POST",
            "/calendars/events/appointments",
            json={"locationId": self._location_id, **fields},
        )
        appointment = Appointment.from_payload(data)
        if not appointment.id:
            raise CRMUpstreamError("No appointment id returned from GHL", data=data)
        self._logger.info("Appointment created", extra={"appointment_id": appointment.id})
        return appointment

    def update_appointment(self, appointment_id: str, fields: dict[str, Any]) -> None:
        self._request("PUT", f"/calendars/events/appointments/{appointment_id}", json=fields)

    def delete_appointment(self, appointment_id: str) -> None:
        self._request("DELETE", f"/calendars/events/appointments/{appointment_id}")

    def list_contact_appointments(self, contact_id: str) -> list[Appointment]:
        data = self._request("GET", f"/contacts/{contact_id}/appointments")
        return [Appointment.from_payload(e) for e in data.get("events") or []]

    # custom objects

    def list_object_records(self, object_key: str, status: str | None = None) -> list[dict[str, Any]]:
        params: dict[str, Any] = {"locationId": self._location_id}
        if status:
            params["filter[status]"] = status
        data = self._request("GET", f"/objects/{object_key}/records", params=params)
        return list(data.get("records") or data.get("data") or [])

    def get_object_record(self, object_key: str, record_id: str) -> dict[str, Any]:
        data = self._request(
            "GET",
            f"/objects/{object_key}/records/{record_id}",
            params={"locationId": self._location_id},
        )
        return data.get("record") or data

    def _request(
        self,
        method: str,
        path: str,
        params: dict[str, Any] | None = None,
        json: dict[str, Any] | None = None,
    ) -> dict[str, Any]:
        headers = {
            "Authorization": f"Bearer {self._api_key}",
            "Version": self._api_version,
            "Content-Type": "application/json",
            "Accept": "application/json",
        }
        try:
            resp = self._client.request(method, f"{self._base_url}{path}", params=params, json=json, headers=headers)
        except httpx.HTTPError as e:
            self._logger.error("GHL request failed", extra={"path": path, "error": str(e)})
            raise CRMUpstreamError(f"GHL request failed: {e}") from e

        try:
            data = resp.json() if resp.content else {}
        except ValueError:
            data = {"raw": resp.text}
        if not isinstance(data, dict):
            data = {"data": data}

        if resp.status_code >= 400:
            message = _error_message(data) or f"API error: {resp.status_code}"
            self._logger.error(
                "GHL API error",
                extra={"status": resp.status_code, "path": path, "error": message},
            )
            raise CRMUpstreamError(message, status=resp.status_code, data=data)

        return data


def _error_message(data: dict[str, Any]) -> str | None:
    message = data.get("message") or data.get("error")
    if isinstance(message, list):
        return "; ".join(str(m) for m in message)
    if isinstance(message, dict):
        return message.get("message")
    return str(message) if message else None
