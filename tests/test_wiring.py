"""
Tests for adapter selection from settings.
"""

from __future__ import annotations

import logging

import pytest

from collective.application.exceptions import ConfigurationError
from collective.core.config import settings
from collective.infrastructure.automation.webhook_client import WebhookAutomation
from collective.infrastructure.ghl.ghl_client import GHLClient
from collective.infrastructure.ghl.mock_crm import MockCRM
from collective.wiring.dependencies import (
    get_automation,
    get_book_event_use_case,
    get_crm,
    get_webhook_automation,
)


@pytest.fixture(autouse=True)
def fresh_crm_cache(monkeypatch):
    monkeypatch.setattr(settings, "COLLECTIVE_API_TOKEN", None)
    monkeypatch.setattr(settings, "BOOKING_WEBHOOK_URL", "")
    get_crm.cache_clear()
    yield
    get_crm.cache_clear()


def test_dev_without_token_uses_mock_crm(monkeypatch):
    monkeypatch.setattr(settings, "ENV", "dev")

    assert isinstance(get_crm(), MockCRM)
    assert get_crm() is get_crm()


def test_token_selects_ghl_client(monkeypatch):
    monkeypatch.setattr(settings, "COLLECTIVE_API_TOKEN", "tok")

    assert isinstance(get_crm(), GHLClient)


def test_webhook_strategy_wires_poller(monkeypatch):
    monkeypatch.setattr(settings, "ENV", "local")
    monkeypatch.setattr(settings, "BOOKING_STRATEGY", "webhook")

    use_case = get_book_event_use_case()

    assert use_case._poller is not None


def test_unknown_strategy_rejected(monkeypatch):
    monkeypatch.setattr(settings, "ENV", "dev")
    monkeypatch.setattr(settings, "BOOKING_STRATEGY", "carrier-pigeon")

    with pytest.raises(ConfigurationError):
        get_book_event_use_case()


def test_webhook_strategy_needs_url_with_real_crm(monkeypatch):
    monkeypatch.setattr(settings, "COLLECTIVE_API_TOKEN", "tok")
    monkeypatch.setattr(settings, "BOOKING_STRATEGY", "webhook")

    with pytest.raises(ConfigurationError):
        get_book_event_use_case()


def test_webhook_automation_is_reused(monkeypatch):
    monkeypatch.setattr(settings, "BOOKING_WEBHOOK_URL", "https://hooks.example.test/booking")
    get_webhook_automation.cache_clear()
    try:
        first = get_automation(MockCRM())
        second = get_automation(MockCRM())
    finally:
        get_webhook_automation.cache_clear()

    assert isinstance(first, WebhookAutomation)
    assert first is second


def test_mock_crm_booking_logs_warning(monkeypatch, caplog):
    monkeypatch.setattr(settings, "ENV", "dev")
    monkeypatch.setattr(settings, "BOOKING_STRATEGY", "direct")

    with caplog.at_level(logging.WARNING, logger="collective.wiring.dependencies"):
        get_book_event_use_case()

    assert any("MockCRM" in r.getMessage() for r in caplog.records)


def test_ghl_booking_logs_no_mock_warning(monkeypatch, caplog):
    monkeypatch.setattr(settings, "COLLECTIVE_API_TOKEN", "tok")
    monkeypatch.setattr(settings, "BOOKING_STRATEGY", "direct")

    with caplog.at_level(logging.WARNING, logger="collective.wiring.dependencies"):
        get_book_event_use_case()

    assert not any("MockCRM" in r.getMessage() for r in caplog.records)
