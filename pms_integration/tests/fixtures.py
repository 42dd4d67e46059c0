"""
Shared test fixtures for PMS integration tests
Outbound HTTP is mocked with pytest-httpx; inbound with httpx.ASGITransport
"""

import asyncio
from datetime import datetime, timezone
from typing import Any, Dict, List

import httpx
import pytest

from pms_integration.config import PMSIntegrationSettings
from pms_integration.configuration import InMemoryConfigurationStore, PMSConfigurationView
from pms_integration.contracts import ConnectionStatus, PMSVendor
from pms_integration.credentials import CredentialCipher
from pms_integration.event_bus import EventBus

TEST_ENCRYPTION_KEY = "0f1e2d3c4b5a69788796a5b4c3d2e1f00112233445566778899aabbccddeeff0"


@pytest.fixture
def settings() -> PMSIntegrationSettings:
    """Settings with every webhook secret configured"""
    return PMSIntegrationSettings(
        _env_file=None,
        environment="test",
        cloudbeds_webhook_token="cb-token-123",
        opera_webhook_secret="opera-secret",
        mews_webhook_secret="mews-secret",
        pms_encryption_key=TEST_ENCRYPTION_KEY,
        log_json=False,
    )


@pytest.fixture
def cipher() -> CredentialCipher:
    return CredentialCipher.from_hex(TEST_ENCRYPTION_KEY)


@pytest.fixture
def event_bus() -> EventBus:
    return EventBus(history_size=50)


@pytest.fixture
def store(cipher, event_bus) -> InMemoryConfigurationStore:
    return InMemoryConfigurationStore(cipher, event_bus)


@pytest.fixture
def sleeps() -> List[float]:
    """Delays requested by the retry engine"""
    return []


@pytest.fixture
def fake_sleep(sleeps):
    """Records retry delays instead of sleeping"""

    async def _sleep(seconds: float):
        sleeps.append(seconds)

    return _sleep


@pytest.fixture
def slow_transport() -> httpx.MockTransport:
    """Transport whose responses arrive after one second"""

    async def handler(request: httpx.Request) -> httpx.Response:
        await asyncio.sleep(1.0)
        return httpx.Response(200, json={"data": {}})

    return httpx.MockTransport(handler)


def make_view(**overrides: Any) -> PMSConfigurationView:
    """Configuration view for factory tests"""
    now = datetime.now(timezone.utc)
    values: Dict[str, Any] = {
        "id": "cfg-1",
        "tenant_id": "H1",
        "vendor": PMSVendor.CLOUDBEDS,
        "status": ConnectionStatus.CONNECTED,
        "has_credential": True,
        "created_at": now,
        "updated_at": now,
    }
    values.update(overrides)
    return PMSConfigurationView(**values)


@pytest.fixture
def cloudbeds_reservations_response() -> Dict[str, Any]:
    """Cloudbeds getReservations response"""
    return {
        "success": True,
        "data": [
            {
                "reservationID": "R123",
                "propertyID": "P1",
                "status": "confirmed",
                "guestName": "John Doe",
                "startDate": "2024-03-01",
                "endDate": "2024-03-03",
            },
            {
                "reservationID": "R124",
                "propertyID": "P1",
                "status": "checked_in",
                "guestName": "Jane Roe",
                "startDate": "2024-02-28",
                "endDate": "2024-03-02",
            },
        ],
        "count": 2,
    }


@pytest.fixture
def cloudbeds_rooms_response() -> Dict[str, Any]:
    return {
        "success": True,
        "data": [
            {"roomID": "101", "roomName": "101", "roomTypeName": "Standard", "roomStatus": "clean"},
            {"roomID": "102", "roomName": "102", "roomTypeName": "Standard", "roomStatus": "dirty"},
            {"roomID": "201", "roomName": "201", "roomTypeName": "Suite", "roomStatus": "clean"},
        ],
    }


@pytest.fixture
def cloudbeds_guests_response() -> Dict[str, Any]:
    return {
        "success": True,
        "data": [{"guestID": "G1", "firstName": "John", "lastName": "Doe", "email": "john@example.com"}],
    }
