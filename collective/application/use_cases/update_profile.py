from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any

from collective.application.exceptions import CRMUpstreamError
from collective.application.ports.crm import CRMPort

PROFILE_FIELDS = {
    "sector": ("business_sector", "Sector"),
    "stage": ("business_stage", "Stage"),
    "team_size": ("team_size", "Team Size"),
    "postcode": ("business_postcode", "Postcode"),
}


@dataclass(frozen=True)
class ProfileUpdate:
    contact_id: str
    sector: str | None = None
    stage: str | None = None
    team_size: str | None = None
    postcode: str | None = None

    def values(self) -> dict[str, str]:
        out = {}
        for attr in PROFILE_FIELDS:
            value = getattr(self, attr)
            if value:
                out[attr] = value.upper() if attr == "postcode" else value
        return out


class UpdateProfileUseCase:
    def __init__(self, crm: CRMPort) -> None:
        self._crm = crm
        self._logger = logging.getLogger(__name__)

    def execute(self, update: ProfileUpdate) -> bool:
        """Returns False when there was nothing to write."""
        values = update.values()
        if not values:
            return False

        payload: dict[str, Any] = {
            "customFields": [
                {"key": PROFILE_FIELDS[attr][0], "field_value": value} for attr, value in values.items()
            ]
        }
        if "postcode" in values:
            payload["postalCode"] = values["postcode"]

        self._crm.update_contact(update.contact_id, payload)

        details = "\n".join(f"{PROFILE_FIELDS[attr][1]}: {value}" for attr, value in values.items())
        try:
            self._crm.add_note(update.contact_id, f"**Profile Updated via Website Quiz**\n\n{details}")
        except CRMUpstreamError as e:
            self._logger.warning("Failed to add profile note", extra={"contact_id": update.contact_id, "error": str(e)})
        return True
