"""
Tests for tenant configuration and credential encryption
"""

import pytest

from pms_integration.contracts import ConnectionStatus, PMSVendor
from pms_integration.credentials import CredentialCipher, generate_encryption_key
from pms_integration.errors import ConfigurationError, CredentialError


class TestCredentialCipher:
    def test_encrypt_decrypt(self, cipher):
        token = cipher.encrypt("sk_live_abc123")

        assert "sk_live_abc123" not in token
        assert cipher.decrypt(token) == "sk_live_abc123"

    def test_nonce_differs_per_value(self, cipher):
        assert cipher.encrypt("same") != cipher.encrypt("same")

    def test_tampered_ciphertext_is_rejected(self, cipher):
        nonce, ciphertext = cipher.encrypt("secret").split(":")
        flipped = format(int(ciphertext[0], 16) ^ 1, "x") + ciphertext[1:]

        with pytest.raises(CredentialError) as exc_info:
            cipher.decrypt(f"{nonce}:{flipped}")

        assert exc_info.value.error_code == "CREDENTIAL_DECRYPT_FAILED"

    def test_other_key_cannot_decrypt(self, cipher):
        other = CredentialCipher.from_hex(generate_encryption_key())

        with pytest.raises(CredentialError):
            other.decrypt(cipher.encrypt("secret"))

    def test_malformed_token(self, cipher):
        with pytest.raises(CredentialError) as exc_info:
            cipher.decrypt("not-a-token")

        assert exc_info.value.error_code == "MALFORMED_CREDENTIAL"

    @pytest.mark.parametrize("key", [None, "", "zz" * 32, "00" * 16])
    def test_invalid_keys(self, key):
        with pytest.raises(CredentialError):
            CredentialCipher.from_hex(key)


class TestInMemoryConfigurationStore:
    @pytest.mark.asyncio
    async def test_save_creates_connected_configuration(self, store, event_bus):
        view = await store.save("H1", PMSVendor.CLOUDBEDS, "cb-key", external_property_id="P1")

        assert view.tenant_id == "H1"
        assert view.vendor == PMSVendor.CLOUDBEDS
        assert view.status == ConnectionStatus.CONNECTED
        assert view.has_credential is True
        assert view.external_property_id == "P1"
        assert "encrypted_credential" not in view.model_dump()
        assert "cb-key" not in view.model_dump_json()

        event = event_bus.history(topic="pms.external.connected")[-1]
        assert event.payload == {"hotelId": "H1", "pmsType": "CLOUDBEDS", "configId": view.id}

    @pytest.mark.asyncio
    async def test_credential_is_stored_encrypted(self, store, cipher):
        await store.save("H1", PMSVendor.CLOUDBEDS, "cb-key")

        encrypted = await store.get_encrypted_credential("H1")
        assert encrypted != "cb-key"
        assert cipher.decrypt(encrypted) == "cb-key"

    @pytest.mark.asyncio
    async def test_save_is_an_upsert(self, store):
        first = await store.save("H1", PMSVendor.CLOUDBEDS, "cb-key")
        await store.record_sync_failure("H1", "boom")

        second = await store.save("H1", PMSVendor.MEWS, "mews-token", version="v2")

        assert second.id == first.id
        assert second.vendor == PMSVendor.MEWS
        assert second.version == "v2"
        assert second.status == ConnectionStatus.CONNECTED
        assert second.last_error is None
        assert second.created_at == first.created_at

    @pytest.mark.asyncio
    async def test_disconnect_clears_credential(self, store, event_bus):
        await store.save("H1", PMSVendor.OPERA, "op-key", external_property_id="HOTEL1")

        view = await store.disconnect("H1")

        assert view.status == ConnectionStatus.DISCONNECTED
        assert view.has_credential is False
        with pytest.raises(ConfigurationError):
            await store.get_encrypted_credential("H1")
        assert event_bus.history(topic="pms.external.disconnected")[-1].payload == {"hotelId": "H1"}

    @pytest.mark.asyncio
    async def test_disconnect_unknown_tenant(self, store):
        with pytest.raises(ConfigurationError) as exc_info:
            await store.disconnect("nope")

        assert exc_info.value.error_code == "CONFIGURATION_NOT_FOUND"

    @pytest.mark.asyncio
    async def test_get_unknown_tenant_is_none(self, store):
        assert await store.get("nope") is None

    @pytest.mark.asyncio
    async def test_validation(self, store):
        with pytest.raises(ConfigurationError):
            await store.save("H1", PMSVendor.CLOUDBEDS, "")
        with pytest.raises(ConfigurationError):
            await store.save("H1", PMSVendor.CUSTOM, "key")

    @pytest.mark.asyncio
    @pytest.mark.parametrize("vendor", [PMSVendor.OPERA, PMSVendor.PROTEL])
    async def test_property_scoped_vendors_require_property_id(self, store, vendor):
        with pytest.raises(ConfigurationError) as exc_info:
            await store.save("H1", vendor, "key")

        assert exc_info.value.error_code == "MISSING_PROPERTY_ID"
        assert await store.get("H1") is None

    @pytest.mark.asyncio
    async def test_sync_bookkeeping(self, store):
        await store.save("H1", PMSVendor.CLOUDBEDS, "cb-key")

        failed = await store.record_sync_failure("H1", "PMS API request failed: 500")
        assert failed.status == ConnectionStatus.ERROR
        assert failed.last_error == "PMS API request failed: 500"

        recovered = await store.record_sync_success("H1")
        assert recovered.status == ConnectionStatus.CONNECTED
        assert recovered.last_error is None
        assert recovered.last_synced_at is not None


class TestTenantResolution:
    @pytest.mark.asyncio
    async def test_property_id_match_wins(self, store):
        await store.save("H1", PMSVendor.CLOUDBEDS, "k1", external_property_id="P1")
        await store.save("H2", PMSVendor.CLOUDBEDS, "k2", external_property_id="P2")

        assert (await store.find_connected(PMSVendor.CLOUDBEDS, "P2")).tenant_id == "H2"

    @pytest.mark.asyncio
    async def test_single_connected_configuration_is_used(self, store):
        await store.save("H1", PMSVendor.CLOUDBEDS, "k1")

        assert (await store.find_connected(PMSVendor.CLOUDBEDS, "unknown")).tenant_id == "H1"
        assert (await store.find_connected(PMSVendor.CLOUDBEDS)).tenant_id == "H1"

    @pytest.mark.asyncio
    async def test_single_configuration_for_other_property_is_not_used(self, store):
        await store.save("H1", PMSVendor.CLOUDBEDS, "k1", external_property_id="P2")

        assert await store.find_connected(PMSVendor.CLOUDBEDS, "P1") is None
        assert (await store.find_connected(PMSVendor.CLOUDBEDS)).tenant_id == "H1"

    @pytest.mark.asyncio
    async def test_ambiguous_resolution_returns_none(self, store):
        await store.save("H1", PMSVendor.CLOUDBEDS, "k1")
        await store.save("H2", PMSVendor.CLOUDBEDS, "k2")

        assert await store.find_connected(PMSVendor.CLOUDBEDS, "P9") is None

    @pytest.mark.asyncio
    async def test_disconnected_and_other_vendors_are_ignored(self, store):
        await store.save("H1", PMSVendor.CLOUDBEDS, "k1", external_property_id="P1")
        await store.save("H2", PMSVendor.MEWS, "k2", external_property_id="P1")
        await store.disconnect("H1")

        assert await store.find_connected(PMSVendor.CLOUDBEDS, "P1") is None
        assert (await store.find_connected(PMSVendor.MEWS, "P1")).tenant_id == "H2"
