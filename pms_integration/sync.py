"""
Pull synchronization of a tenant's PMS data

Resolves the tenant configuration, builds the vendor adapter and fetches the
requested resources modified since the last successful sync. Outcome is
recorded on the configuration store and announced on the event bus.
"""

import uuid
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, Dict, Iterable

from .configuration import ConfigurationStore
from .contracts import SYNC_COMPLETED, SYNC_FAILED, ConnectionStatus
from .credentials import CredentialCipher
from .errors import ConfigurationError, PMSBaseError
from .event_bus import EventBus
from .factory import AdapterFactory
from .logging_adapter import get_safe_logger
from .metrics import sync_runs_total

logger = get_safe_logger("pms.sync")

SYNC_RESOURCES = ("reservations", "rooms", "guests")


@dataclass
class SyncResult:
    """Records fetched by one sync run, in vendor-native shape"""

    sync_id: str
    tenant_id: str
    vendor: str
    started_at: datetime
    completed_at: datetime
    records: Dict[str, Any] = field(default_factory=dict)
    counts: Dict[str, int] = field(default_factory=dict)

    @property
    def processed(self) -> int:
        return sum(self.counts.values())


def count_records(result: Any) -> int:
    """Best-effort record count of a vendor-native response"""
    if result is None:
        return 0
    if isinstance(result, list):
        return len(result)
    if isinstance(result, dict):
        for value in result.values():
            if isinstance(value, list):
                return len(value)
            # Relay-style connection: {"edges": [...]}
            if isinstance(value, dict) and isinstance(value.get("edges"), list):
                return len(value["edges"])
        return 1
    return 1


class SyncJob:
    """Runs one pull sync per call"""

    def __init__(
        self,
        store: ConfigurationStore,
        event_bus: EventBus,
        factory: AdapterFactory,
        cipher: CredentialCipher,
    ):
        self.store = store
        self.event_bus = event_bus
        self.factory = factory
        self.cipher = cipher

    async def run(self, tenant_id: str, resources: Iterable[str] = SYNC_RESOURCES) -> SyncResult:
        """
        Sync the given resources for a tenant.

        Raises:
            ConfigurationError: tenant is unknown, disconnected or misconfigured
            PMSIntegrationError, GraphQLError, TransportError: the vendor call failed
        """
        resources = tuple(resources)
        unknown = [r for r in resources if r not in SYNC_RESOURCES]
        if unknown:
            raise ConfigurationError(
                f"Unknown sync resources: {', '.join(unknown)}",
                error_code="UNKNOWN_SYNC_RESOURCE",
            )

        config = await self.store.get(tenant_id)
        if config is None:
            raise ConfigurationError(
                f"No PMS configuration for tenant {tenant_id}",
                error_code="CONFIGURATION_NOT_FOUND",
            )
        if config.status == ConnectionStatus.DISCONNECTED:
            raise ConfigurationError(
                f"PMS for tenant {tenant_id} is disconnected",
                error_code="PMS_DISCONNECTED",
            )

        sync_id = uuid.uuid4().hex
        started_at = datetime.now(timezone.utc)
        vendor = config.vendor.value
        property_id = config.external_property_id or tenant_id
        since = config.last_synced_at

        log = logger.bind(tenant_id=tenant_id, vendor=vendor, sync_id=sync_id)
        log.info("pms_sync_started", resources=list(resources), since=since.isoformat() if since else None)

        adapter = None
        records: Dict[str, Any] = {}
        try:
            # Credential and adapter failures count as failed syncs too
            api_key = self.cipher.decrypt(await self.store.get_encrypted_credential(tenant_id))
            adapter = self.factory.create(config, api_key)
            for resource in resources:
                if resource == "reservations":
                    records[resource] = await adapter.get_reservations(property_id, since=since)
                elif resource == "rooms":
                    records[resource] = await adapter.get_rooms(property_id)
                else:
                    records[resource] = await adapter.get_guests(property_id, since=since)
        except PMSBaseError as e:
            occurred_at = datetime.now(timezone.utc)
            await self.store.record_sync_failure(tenant_id, e.message)
            sync_runs_total.labels(vendor=vendor, status="failed").inc()
            log.error("pms_sync_failed", error=e.message, error_code=e.error_code)
            await self.event_bus.emit(
                SYNC_FAILED,
                {
                    "hotelId": tenant_id,
                    "provider": vendor,
                    "syncId": sync_id,
                    "error": e.message,
                    "occurredAt": occurred_at,
                },
            )
            raise
        finally:
            if adapter is not None:
                await adapter.aclose()

        completed_at = datetime.now(timezone.utc)
        result = SyncResult(
            sync_id=sync_id,
            tenant_id=tenant_id,
            vendor=vendor,
            started_at=started_at,
            completed_at=completed_at,
            records=records,
            counts={name: count_records(value) for name, value in records.items()},
        )

        # The next run picks up changes made while this one was in flight
        await self.store.record_sync_success(tenant_id, synced_at=started_at)
        sync_runs_total.labels(vendor=vendor, status="completed").inc()
        log.info("pms_sync_completed", counts=result.counts)
        await self.event_bus.emit(
            SYNC_COMPLETED,
            {
                "hotelId": tenant_id,
                "provider": vendor,
                "syncId": sync_id,
                "processed": result.processed,
                "failed": 0,
                "counts": result.counts,
                "startedAt": started_at,
                "completedAt": completed_at,
            },
        )
        return result
