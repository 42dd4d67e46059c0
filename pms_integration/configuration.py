"""
Per-tenant PMS configuration

One configuration per tenant. Credentials are encrypted on save and never
leave the store in a view; only the sync path reads the encrypted form back.
"""

import asyncio
import uuid
from datetime import datetime, timezone
from typing import Dict, List, Optional, Protocol

from pydantic import BaseModel, Field

from .contracts import (
    EXTERNAL_CONNECTED,
    EXTERNAL_DISCONNECTED,
    PROPERTY_SCOPED_VENDORS,
    ConnectionStatus,
    PMSVendor,
)
from .credentials import CredentialCipher
from .errors import ConfigurationError
from .event_bus import EventBus
from .logging_adapter import get_safe_logger

logger = get_safe_logger("pms.configuration")


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class PMSConfigurationView(BaseModel):
    """Configuration as exposed to callers, without credential material"""

    id: str
    tenant_id: str
    vendor: PMSVendor
    version: Optional[str] = None
    endpoint: Optional[str] = None
    external_property_id: Optional[str] = None
    status: ConnectionStatus
    has_credential: bool = False
    last_synced_at: Optional[datetime] = None
    last_error: Optional[str] = None
    created_at: datetime
    updated_at: datetime


class PMSConfiguration(BaseModel):
    """Stored configuration record"""

    id: str = Field(default_factory=lambda: uuid.uuid4().hex)
    tenant_id: str
    vendor: PMSVendor
    encrypted_credential: Optional[str] = Field(default=None, repr=False)
    version: Optional[str] = None
    endpoint: Optional[str] = None
    external_property_id: Optional[str] = None
    status: ConnectionStatus = ConnectionStatus.DISCONNECTED
    last_synced_at: Optional[datetime] = None
    last_error: Optional[str] = None
    created_at: datetime = Field(default_factory=_utcnow)
    updated_at: datetime = Field(default_factory=_utcnow)

    def view(self) -> PMSConfigurationView:
        return PMSConfigurationView(
            **self.model_dump(exclude={"encrypted_credential"}),
            has_credential=self.encrypted_credential is not None,
        )


class ConfigurationStore(Protocol):
    """Persistence boundary for tenant configurations"""

    async def save(
        self,
        tenant_id: str,
        vendor: PMSVendor,
        api_key: str,
        version: Optional[str] = None,
        endpoint: Optional[str] = None,
        external_property_id: Optional[str] = None,
    ) -> PMSConfigurationView:
        ...

    async def get(self, tenant_id: str) -> Optional[PMSConfigurationView]:
        ...

    async def disconnect(self, tenant_id: str) -> PMSConfigurationView:
        ...

    async def find_connected(
        self, vendor: PMSVendor, external_property_id: Optional[str] = None
    ) -> Optional[PMSConfigurationView]:
        ...

    async def get_encrypted_credential(self, tenant_id: str) -> str:
        ...

    async def record_sync_success(
        self, tenant_id: str, synced_at: Optional[datetime] = None
    ) -> PMSConfigurationView:
        ...

    async def record_sync_failure(self, tenant_id: str, message: str) -> PMSConfigurationView:
        ...


class InMemoryConfigurationStore:
    """Process-local ConfigurationStore"""

    def __init__(self, cipher: CredentialCipher, event_bus: Optional[EventBus] = None):
        self._cipher = cipher
        self._event_bus = event_bus
        self._records: Dict[str, PMSConfiguration] = {}
        self._lock = asyncio.Lock()

    def _require(self, tenant_id: str) -> PMSConfiguration:
        record = self._records.get(tenant_id)
        if record is None:
            raise ConfigurationError(
                f"No PMS configuration for tenant {tenant_id}",
                error_code="CONFIGURATION_NOT_FOUND",
                details={"tenant_id": tenant_id},
            )
        return record

    async def _emit(self, topic: str, payload: dict):
        if self._event_bus is not None:
            await self._event_bus.emit(topic, payload)

    async def save(
        self,
        tenant_id: str,
        vendor: PMSVendor,
        api_key: str,
        version: Optional[str] = None,
        endpoint: Optional[str] = None,
        external_property_id: Optional[str] = None,
    ) -> PMSConfigurationView:
        """Create or replace the tenant's configuration and mark it CONNECTED"""
        if not api_key:
            raise ConfigurationError("API key is required", error_code="MISSING_API_KEY")
        vendor = PMSVendor(vendor)
        if vendor == PMSVendor.CUSTOM and not endpoint:
            raise ConfigurationError(
                "Custom PMS requires an endpoint", error_code="MISSING_ENDPOINT"
            )
        if vendor in PROPERTY_SCOPED_VENDORS and not external_property_id:
            raise ConfigurationError(
                f"{vendor.value} requires an external property id",
                error_code="MISSING_PROPERTY_ID",
            )

        encrypted = self._cipher.encrypt(api_key)
        async with self._lock:
            existing = self._records.get(tenant_id)
            now = _utcnow()
            if existing is None:
                record = PMSConfiguration(tenant_id=tenant_id, vendor=vendor)
            else:
                record = existing.model_copy()
            record.vendor = vendor
            record.encrypted_credential = encrypted
            record.version = version
            record.endpoint = endpoint
            record.external_property_id = external_property_id
            record.status = ConnectionStatus.CONNECTED
            record.last_error = None
            record.updated_at = now
            self._records[tenant_id] = record

        logger.info(
            "pms_configuration_saved",
            tenant_id=tenant_id,
            vendor=vendor.value,
            created=existing is None,
        )
        await self._emit(
            EXTERNAL_CONNECTED,
            {"hotelId": tenant_id, "pmsType": vendor.value, "configId": record.id},
        )
        return record.view()

    async def get(self, tenant_id: str) -> Optional[PMSConfigurationView]:
        record = self._records.get(tenant_id)
        return record.view() if record else None

    async def disconnect(self, tenant_id: str) -> PMSConfigurationView:
        async with self._lock:
            record = self._require(tenant_id)
            record.encrypted_credential = None
            record.status = ConnectionStatus.DISCONNECTED
            record.updated_at = _utcnow()

        logger.info("pms_configuration_disconnected", tenant_id=tenant_id)
        await self._emit(EXTERNAL_DISCONNECTED, {"hotelId": tenant_id})
        return record.view()

    async def list_connected(self, vendor: PMSVendor) -> List[PMSConfigurationView]:
        return [
            r.view()
            for r in self._records.values()
            if r.vendor == vendor and r.status == ConnectionStatus.CONNECTED
        ]

    async def find_connected(
        self, vendor: PMSVendor, external_property_id: Optional[str] = None
    ) -> Optional[PMSConfigurationView]:
        """
        Resolve the tenant an inbound vendor event belongs to.

        A CONNECTED configuration recording the vendor property id wins;
        otherwise the vendor's only CONNECTED configuration, unless that one
        records a different property id. Returns None when nothing matches or
        the match is ambiguous.
        """
        candidates = await self.list_connected(vendor)
        if external_property_id:
            matched = [c for c in candidates if c.external_property_id == external_property_id]
            if len(matched) == 1:
                return matched[0]
            if len(matched) > 1:
                return None
        if len(candidates) != 1:
            return None
        only = candidates[0]
        if external_property_id and only.external_property_id is not None:
            return None
        return only

    async def get_encrypted_credential(self, tenant_id: str) -> str:
        record = self._require(tenant_id)
        if record.encrypted_credential is None:
            raise ConfigurationError(
                f"Tenant {tenant_id} has no stored credential",
                error_code="CREDENTIAL_NOT_FOUND",
                details={"tenant_id": tenant_id},
            )
        return record.encrypted_credential

    async def record_sync_success(
        self, tenant_id: str, synced_at: Optional[datetime] = None
    ) -> PMSConfigurationView:
        async with self._lock:
            record = self._require(tenant_id)
            record.last_synced_at = synced_at or _utcnow()
            record.last_error = None
            record.status = ConnectionStatus.CONNECTED
            record.updated_at = _utcnow()
        return record.view()

    async def record_sync_failure(self, tenant_id: str, message: str) -> PMSConfigurationView:
        async with self._lock:
            record = self._require(tenant_id)
            record.status = ConnectionStatus.ERROR
            record.last_error = message
            record.updated_at = _utcnow()
        return record.view()
