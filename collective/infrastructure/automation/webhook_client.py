from __future__ import annotations

import logging
from typing import Any

import httpx

from collective.application.exceptions import CRMUpstreamError
from collective.application.ports.automation import AutomationPort


class WebhookAutomation(AutomationPort):
    def __init__(self, webhook_url: str, client: httpx.Client | None = None) -> None:
        if not webhook_url:
            raise ValueError("BOOKING_WEBHOOK_URL is required for webhook bookings")
        self._webhook_url = webhook_url
        self._client = client or httpx.Client(timeout=10.0)
        self._logger = logging.getLogger(__name__)

    def trigger(self, payload: dict[str, Any]) -> None:
        try:
            resp = self._client.post(self._webhook_url, json=payload)
        except httpx.HTTPError as e:
            raise CRMUpstreamError(f"Webhook request failed: {e}") from e

        if resp.status_code >= 400:
            self._logger.error(
                "Booking webhook rejected",
                extra={"status": resp.status_code, "error": resp.text[:200]},
            )
            raise CRMUpstreamError(f"Webhook error {resp.status_code}", status=resp.status_code)

        self._logger.info("Booking webhook triggered", extra={"contact_id": payload.get("contactId")})
