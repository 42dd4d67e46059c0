"""
End-to-end tests for the webhook endpoints
"""

import hashlib
import hmac
import json

import httpx
import pytest

from pms_integration.app import create_app
from pms_integration.contracts import PMSVendor
from pms_integration.webhooks import DeadLetterBuffer

BASE_URL = "http://testserver"


def signed(secret: str, body: bytes, prefix: str = "") -> str:
    return prefix + hmac.new(secret.encode(), body, hashlib.sha256).hexdigest()


def cloudbeds_body(event_type="reservation_created", reservation_id="R123", property_id="P1") -> bytes:
    return json.dumps(
        {
            "type": event_type,
            "data": {"reservationID": reservation_id, "guestName": "Jane Doe"},
            "timestamp": "2024-03-01T10:00:00Z",
            "property_id": property_id,
        }
    ).encode()


@pytest.fixture
def dead_letters() -> DeadLetterBuffer:
    return DeadLetterBuffer(capacity=10)


@pytest.fixture
def app(settings, event_bus, store, dead_letters):
    return create_app(settings, event_bus=event_bus, store=store, dead_letters=dead_letters)


@pytest.fixture
def published(event_bus):
    events = []
    event_bus.subscribe("pms.booking.*", events.append)
    event_bus.subscribe("pms.room.*", events.append)
    return events


def client_for(app) -> httpx.AsyncClient:
    return httpx.AsyncClient(transport=httpx.ASGITransport(app=app), base_url=BASE_URL)


@pytest.mark.webhook
class TestCloudbedsWebhook:
    @pytest.mark.asyncio
    async def test_query_token(self, app):
        async with client_for(app) as client:
            response = await client.post("/webhooks/cloudbeds?token=cb-token-123", content=cloudbeds_body())

        assert response.status_code == 200
        assert response.json() == {"success": True, "processed": 1}

    @pytest.mark.asyncio
    async def test_header_token(self, app):
        async with client_for(app) as client:
            response = await client.post(
                "/webhooks/cloudbeds",
                content=cloudbeds_body(),
                headers={"X-Cloudbeds-Token": "cb-token-123"},
            )

        assert response.status_code == 200

    @pytest.mark.asyncio
    @pytest.mark.parametrize("path", ["/webhooks/cloudbeds", "/webhooks/cloudbeds?token=wrong"])
    async def test_invalid_token(self, app, published, path):
        async with client_for(app) as client:
            response = await client.post(path, content=cloudbeds_body())

        assert response.status_code == 401
        assert response.json() == {"error": "Invalid token"}
        assert published == []

    @pytest.mark.asyncio
    async def test_unconfigured_secret(self, settings, event_bus, store):
        app = create_app(
            settings.model_copy(update={"cloudbeds_webhook_token": None}),
            event_bus=event_bus,
            store=store,
        )

        async with client_for(app) as client:
            response = await client.post("/webhooks/cloudbeds?token=cb-token-123", content=cloudbeds_body())

        assert response.status_code == 500
        assert response.json() == {"error": "Webhook not configured"}

    @pytest.mark.asyncio
    async def test_event_is_published_to_resolved_tenant(self, app, store, published):
        await store.save("H1", PMSVendor.CLOUDBEDS, "cb-key", external_property_id="P1")

        async with client_for(app) as client:
            response = await client.post("/webhooks/cloudbeds?token=cb-token-123", content=cloudbeds_body())

        assert response.status_code == 200
        assert len(published) == 1
        event = published[0]
        assert event.topic == "pms.booking.created"
        assert event.payload == {
            "vendor": "CLOUDBEDS",
            "externalId": "R123",
            "action": "created",
            "data": {"reservationID": "R123", "guestName": "Jane Doe"},
        }
        assert event.context == {"hotelId": "H1"}

    @pytest.mark.asyncio
    async def test_unresolved_tenant_is_dead_lettered(self, app, published, dead_letters):
        async with client_for(app) as client:
            response = await client.post("/webhooks/cloudbeds?token=cb-token-123", content=cloudbeds_body())

        assert response.status_code == 200
        assert published == []
        assert len(dead_letters) == 1
        letter = dead_letters.items()[0]
        assert letter.reason == "tenant_not_found"
        assert letter.vendor == "CLOUDBEDS"
        assert letter.vendor_property_id == "P1"

    @pytest.mark.asyncio
    async def test_event_for_other_property_is_dead_lettered(self, app, store, published, dead_letters):
        await store.save("H1", PMSVendor.CLOUDBEDS, "cb-key", external_property_id="P2")

        async with client_for(app) as client:
            response = await client.post(
                "/webhooks/cloudbeds?token=cb-token-123",
                content=cloudbeds_body(property_id="P1"),
            )

        assert response.status_code == 200
        assert published == []
        assert [letter.reason for letter in dead_letters.items()] == ["tenant_not_found"]

    @pytest.mark.asyncio
    async def test_unknown_event_type_is_acknowledged(self, app, store, published):
        await store.save("H1", PMSVendor.CLOUDBEDS, "cb-key", external_property_id="P1")

        async with client_for(app) as client:
            response = await client.post(
                "/webhooks/cloudbeds?token=cb-token-123",
                content=cloudbeds_body(event_type="invoice_created"),
            )

        assert response.status_code == 200
        assert published == []

    @pytest.mark.asyncio
    async def test_invalid_json_is_acknowledged(self, app, published, dead_letters):
        async with client_for(app) as client:
            response = await client.post("/webhooks/cloudbeds?token=cb-token-123", content=b"{not json")

        assert response.status_code == 200
        assert response.json() == {"success": True, "processed": 0}
        assert published == []
        assert dead_letters.items()[0].reason == "invalid_payload"


@pytest.mark.webhook
class TestOperaWebhook:
    BODY = json.dumps(
        {"eventType": "CHECK_IN", "hotelId": "HOTEL1", "data": {"confirmationNumber": "C-77"}}
    ).encode()

    @pytest.mark.asyncio
    async def test_valid_signature(self, app, store, published):
        await store.save("H2", PMSVendor.OPERA, "op-key", external_property_id="HOTEL1")

        async with client_for(app) as client:
            response = await client.post(
                "/webhooks/opera",
                content=self.BODY,
                headers={"x-opera-signature": signed("opera-secret", self.BODY, "sha256=")},
            )

        assert response.status_code == 200
        assert [e.topic for e in published] == ["pms.booking.checkedin"]
        assert published[0].payload["externalId"] == "C-77"
        assert published[0].context == {"hotelId": "H2"}

    @pytest.mark.asyncio
    async def test_altered_body_is_rejected(self, app, published):
        signature = signed("opera-secret", self.BODY, "sha256=")
        altered = self.BODY.replace(b"C-77", b"C-78")

        async with client_for(app) as client:
            response = await client.post(
                "/webhooks/opera", content=altered, headers={"x-opera-signature": signature}
            )

        assert response.status_code == 401
        assert response.json() == {"error": "Invalid signature"}
        assert published == []

    @pytest.mark.asyncio
    async def test_unconfigured_secret_rejects_signed_request(self, settings, event_bus, store, published):
        await store.save("H2", PMSVendor.OPERA, "op-key", external_property_id="HOTEL1")
        app = create_app(
            settings.model_copy(update={"opera_webhook_secret": None}),
            event_bus=event_bus,
            store=store,
        )

        async with client_for(app) as client:
            response = await client.post(
                "/webhooks/opera",
                content=self.BODY,
                headers={"x-opera-signature": signed("opera-secret", self.BODY, "sha256=")},
            )

        assert response.status_code == 500
        assert response.json() == {"error": "Webhook not configured"}
        assert published == []


@pytest.mark.webhook
class TestMewsWebhook:
    @pytest.mark.asyncio
    async def test_batch(self, app, store, published):
        await store.save("H3", PMSVendor.MEWS, "mews-token", external_property_id="ENT1")
        body = json.dumps(
            {
                "EnterpriseId": "ENT1",
                "Events": [
                    {"Id": "e1", "Type": "ReservationCreated", "Data": {"ReservationId": "M1"}},
                    {"Id": "e2", "Type": "ReservationProcessed", "Data": {"ReservationId": "M2"}},
                ],
            }
        ).encode()

        async with client_for(app) as client:
            response = await client.post(
                "/webhooks/mews",
                content=body,
                headers={"X-Mews-Signature": signed("mews-secret", body)},
            )

        assert response.status_code == 200
        assert response.json() == {"success": True, "processed": 2}
        assert [e.topic for e in published] == ["pms.booking.created", "pms.booking.checkedout"]
        assert [e.payload["action"] for e in published] == ["created", "checkedout"]

    @pytest.mark.asyncio
    async def test_unconfigured_secret(self, settings, event_bus, store):
        app = create_app(
            settings.model_copy(update={"mews_webhook_secret": None}),
            event_bus=event_bus,
            store=store,
        )
        body = b'{"Events": []}'

        async with client_for(app) as client:
            response = await client.post(
                "/webhooks/mews", content=body, headers={"X-Mews-Signature": signed("mews-secret", body)}
            )

        assert response.status_code == 500
        assert response.json() == {"error": "Webhook not configured"}


class TestApplication:
    @pytest.mark.asyncio
    async def test_unknown_vendor(self, app):
        async with client_for(app) as client:
            response = await client.post("/webhooks/acme", content=b"{}")

        assert response.status_code == 404
        assert response.json() == {"error": "Unknown webhook vendor"}

    @pytest.mark.asyncio
    async def test_vendor_without_receiver(self, app):
        async with client_for(app) as client:
            response = await client.post("/webhooks/apaleo", content=b"{}")

        assert response.status_code == 404

    @pytest.mark.asyncio
    async def test_health(self, app):
        async with client_for(app) as client:
            response = await client.get("/health")

        assert response.status_code == 200
        body = response.json()
        assert body["status"] == "healthy"
        assert body["environment"] == "test"
        assert body["webhook_vendors"] == ["cloudbeds", "mews", "opera"]
        assert body["dead_letters"] == 0

    @pytest.mark.asyncio
    async def test_metrics(self, app):
        async with client_for(app) as client:
            response = await client.get("/metrics")

        assert response.status_code == 200
        assert "pms_webhook_requests_total" in response.text
