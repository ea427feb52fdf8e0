from functools import lru_cache
import logging
from typing import Callable
from zoneinfo import ZoneInfo

from collective.core.config import settings
from collective.application.exceptions import ConfigurationError
from collective.application.ports.automation import AutomationPort
from collective.application.ports.crm import CRMPort
from collective.application.use_cases.book_event import BookEventUseCase
from collective.application.use_cases.cancel_booking import CancelBookingUseCase
from collective.application.use_cases.commit_appointment import (
    DirectAppointmentCommitter,
    WebhookAppointmentCommitter,
)
from collective.application.use_cases.confirm_appointment import ConfirmationPollerUseCase
from collective.application.use_cases.join_community import JoinCommunityUseCase
from collective.application.use_cases.list_events import ListEventsUseCase
from collective.application.use_cases.migrate_contacts import MigrateContactsUseCase
from collective.application.use_cases.resolve_contact import ContactResolverUseCase
from collective.application.use_cases.update_appointment_details import AppointmentDetailUpdaterUseCase
from collective.application.use_cases.update_profile import UpdateProfileUseCase
from collective.infrastructure.automation.mock_automation import MockAutomation
from collective.infrastructure.automation.webhook_client import WebhookAutomation
from collective.infrastructure.ghl.ghl_client import GHLClient
from collective.infrastructure.ghl.mock_crm import MockCRM


logger = logging.getLogger(__name__)


def _is_local() -> bool:
    return settings.ENV.lower() in {"dev", "local"}


@lru_cache
def get_crm() -> CRMPort:
    if settings.COLLECTIVE_API_TOKEN:
        return GHLClient()
    if _is_local():
        logger.info("Using MockCRM (token missing, ENV=dev/local)")
        return MockCRM()
    logger.error("COLLECTIVE_API_TOKEN not configured")
    raise ConfigurationError("COLLECTIVE_API_TOKEN is not configured")


@lru_cache
def get_webhook_automation(webhook_url: str) -> WebhookAutomation:
    return WebhookAutomation(webhook_url)


def get_automation(crm: CRMPort) -> AutomationPort:
    if settings.BOOKING_WEBHOOK_URL:
        return get_webhook_automation(settings.BOOKING_WEBHOOK_URL)
    if isinstance(crm, MockCRM):
        return MockAutomation(crm)
    raise ConfigurationError("BOOKING_WEBHOOK_URL is required when BOOKING_STRATEGY=webhook")


def get_book_event_use_case() -> BookEventUseCase:
    crm = get_crm()
    if isinstance(crm, MockCRM):
        logger.warning(
            "Booking against in-memory MockCRM, nothing is sent to GHL",
            extra={"strategy": settings.BOOKING_STRATEGY},
        )
    tz = ZoneInfo(settings.EVENT_TIMEZONE)
    window = {
        "timezone": tz,
        "default_calendar_id": settings.GHL_DEFAULT_CALENDAR_ID,
        "default_start": settings.DEFAULT_START_TIME,
        "default_end": settings.DEFAULT_END_TIME,
    }

    poller = None
    strategy = settings.BOOKING_STRATEGY.lower()
    if strategy == "webhook":
        committer = WebhookAppointmentCommitter(
            automation=get_automation(crm),
            location_id=settings.GHL_LOCATION_ID,
            **window,
        )
        poller = ConfirmationPollerUseCase(
            crm=crm,
            timezone=tz,
            max_attempts=settings.CONFIRM_MAX_ATTEMPTS,
            base_delay=settings.CONFIRM_BASE_DELAY,
            max_delay=settings.CONFIRM_MAX_DELAY,
        )
    elif strategy == "direct":
        committer = DirectAppointmentCommitter(crm=crm, **window)
    else:
        raise ConfigurationError(f"Unknown BOOKING_STRATEGY: {settings.BOOKING_STRATEGY}")

    return BookEventUseCase(
        crm=crm,
        resolver=ContactResolverUseCase(crm=crm, scan_max_pages=settings.CONTACT_SCAN_MAX_PAGES),
        committer=committer,
        detail_updater=AppointmentDetailUpdaterUseCase(crm=crm),
        poller=poller,
    )


def get_cancel_booking_use_case() -> CancelBookingUseCase:
    return CancelBookingUseCase(crm=get_crm())


def get_join_community_use_case() -> JoinCommunityUseCase:
    return JoinCommunityUseCase(crm=get_crm())


def get_update_profile_use_case() -> UpdateProfileUseCase:
    return UpdateProfileUseCase(crm=get_crm())


def get_list_events_use_case() -> ListEventsUseCase:
    return ListEventsUseCase(
        crm=get_crm(),
        events_object_key=settings.EVENTS_OBJECT_KEY,
        venues_object_key=settings.VENUES_OBJECT_KEY,
    )


def get_migrate_contacts_use_case() -> MigrateContactsUseCase:
    return MigrateContactsUseCase(crm=get_crm())


# Called by the route only after the request body is validated.
def get_book_event_factory() -> Callable[[], BookEventUseCase]:
    return get_book_event_use_case


def get_join_community_factory() -> Callable[[], JoinCommunityUseCase]:
    return get_join_community_use_case
