from __future__ import annotations

import logging
from dataclasses import dataclass

from collective.application.exceptions import ContactResolutionError, CRMUpstreamError
from collective.application.ports.crm import CRMPort
from collective.domain.entities.contact import ContactType


@dataclass(frozen=True)
class JoinRequest:
    first_name: str
    last_name: str
    email: str
    phone: str | None = None
    business_name: str | None = None
    opt_in: bool = False


class JoinCommunityUseCase:
    def __init__(self, crm: CRMPort) -> None:
        self._crm = crm
        self._logger = logging.getLogger(__name__)

    def execute(self, request: JoinRequest) -> str:
        tags = ["COLLECTIVE Community", "Website Signup"]
        if request.opt_in:
            tags += ["COLLECTIVE Newsletter", "Marketing Opted In"]

        contact = self._crm.upsert_contact(
            {
                "firstName": request.first_name,
                "lastName": request.last_name,
                "email": request.email,
                "phone": request.phone or None,
                "companyName": request.business_name or None,
                "source": "COLLECTIVE Website - Join",
                "type": ContactType.COLLECTIVE_COMMUNITY,
                "tags": tags,
            }
        )
        if contact is None:
            raise ContactResolutionError("Failed to create contact - no ID returned")

        note = (
            "Joined COLLECTIVE community via website signup.\n\n"
            f"Opt-in for marketing: {'Yes' if request.opt_in else 'No'}\n"
            f"Business: {request.business_name or 'Not provided'}\n"
            f"Phone: {request.phone or 'Not provided'}"
        )
        try:
            self._crm.add_note(contact.id, note)
        except CRMUpstreamError as e:
            self._logger.warning("Failed to add join note", extra={"contact_id": contact.id, "error": str(e)})

        self._logger.info("Community member joined", extra={"contact_id": contact.id})
        return contact.id
