from __future__ import annotations

import pytest

from collective.infrastructure.ghl.mock_crm import MockCRM


@pytest.fixture
def crm() -> MockCRM:
    return MockCRM()


@pytest.fixture
def strict_crm() -> MockCRM:
    """CRM location that rejects duplicate contacts on upsert."""
    return MockCRM(reject_duplicates=True)
