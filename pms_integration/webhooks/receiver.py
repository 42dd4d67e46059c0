"""
Webhook receiver

Per request: RECEIVED -> AUTHENTICATED -> NORMALIZED -> PUBLISHED, or
RECEIVED -> REJECTED. Authenticated events that cannot be routed to a tenant
end in DROPPED and are kept in a bounded dead-letter buffer.

Once a request is authenticated the vendor always gets a 200; processing
failures are logged, never surfaced as 5xx.
"""

import json
from collections import deque
from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import Any, Deque, Dict, List, Mapping, Optional

from ..configuration import ConfigurationStore
from ..contracts import PMSVendor
from ..errors import NormalizationError, WebhookError
from ..event_bus import EventBus, EventContext
from ..logging_adapter import get_safe_logger
from ..metrics import webhook_events_dropped_total, webhook_requests_total
from .auth import WebhookAuthenticator
from .normalizers import NormalizedEvent, RawVendorEvent, VendorNormalizer

logger = get_safe_logger("pms.webhooks.receiver")


class WebhookState(str, Enum):
    RECEIVED = "received"
    AUTHENTICATED = "authenticated"
    NORMALIZED = "normalized"
    PUBLISHED = "published"
    REJECTED = "rejected"
    DROPPED = "dropped"


@dataclass
class DeadLetter:
    vendor: str
    reason: str
    event_type: Optional[str]
    data: Dict[str, Any]
    vendor_property_id: Optional[str] = None
    received_at: datetime = field(default_factory=lambda: datetime.now(timezone.utc))


class DeadLetterBuffer:
    """Bounded buffer of unroutable events; oldest entries are evicted first"""

    def __init__(self, capacity: int = 100):
        self._items: Deque[DeadLetter] = deque(maxlen=capacity)

    def push(self, letter: DeadLetter):
        self._items.append(letter)

    def items(self) -> List[DeadLetter]:
        return list(self._items)

    def clear(self):
        self._items.clear()

    def __len__(self) -> int:
        return len(self._items)


@dataclass
class WebhookResult:
    status_code: int
    body: Dict[str, Any]
    state: WebhookState
    # Request path through the state machine, RECEIVED first
    transitions: List[WebhookState] = field(default_factory=list)
    # Final state of each vendor event in the body
    event_states: List[WebhookState] = field(default_factory=list)


class WebhookReceiver:
    """Authenticates, normalizes and publishes one vendor's webhooks"""

    def __init__(
        self,
        vendor: PMSVendor,
        authenticator: WebhookAuthenticator,
        normalizer: VendorNormalizer,
        store: ConfigurationStore,
        event_bus: EventBus,
        dead_letters: Optional[DeadLetterBuffer] = None,
    ):
        self.vendor = vendor
        self.authenticator = authenticator
        self.normalizer = normalizer
        self.store = store
        self.event_bus = event_bus
        self.dead_letters = dead_letters if dead_letters is not None else DeadLetterBuffer()

    async def handle(
        self,
        raw_body: bytes,
        headers: Mapping[str, str],
        query: Mapping[str, str],
    ) -> WebhookResult:
        vendor = self.vendor.value
        headers = {k.lower(): v for k, v in headers.items()}
        transitions = [WebhookState.RECEIVED]

        try:
            self.authenticator.authenticate(raw_body, headers, query)
        except WebhookError as e:
            webhook_requests_total.labels(vendor=vendor, outcome="rejected").inc()
            return WebhookResult(
                status_code=e.status_code,
                body={"error": e.message},
                state=WebhookState.REJECTED,
                transitions=transitions + [WebhookState.REJECTED],
            )

        transitions.append(WebhookState.AUTHENTICATED)

        try:
            body = json.loads(raw_body)
            raw_events = self.normalizer.split(body)
        except (ValueError, NormalizationError) as e:
            logger.error("webhook_payload_invalid", vendor=vendor, error=str(e))
            self._dead_letter(RawVendorEvent(event_type=None, data={}), "invalid_payload")
            webhook_requests_total.labels(vendor=vendor, outcome="dropped").inc()
            return WebhookResult(
                status_code=200,
                body={"success": True, "processed": 0},
                state=WebhookState.DROPPED,
                transitions=transitions + [WebhookState.DROPPED],
            )

        logger.info("webhook_received", vendor=vendor, events=len(raw_events))

        states = []
        normalized = []
        for raw_event in raw_events:
            try:
                states.append(await self._process(raw_event, normalized))
            except Exception as e:
                # Authenticated requests always answer 200
                logger.error(
                    "webhook_event_processing_failed",
                    vendor=vendor,
                    event_type=raw_event.event_type,
                    error=str(e),
                    exc_info=True,
                )
                self._dead_letter(raw_event, "processing_failed")
                states.append(WebhookState.DROPPED)

        published = states.count(WebhookState.PUBLISHED)
        if published:
            state = WebhookState.PUBLISHED
        elif states:
            state = WebhookState.DROPPED
        else:
            state = WebhookState.AUTHENTICATED

        if normalized:
            transitions.append(WebhookState.NORMALIZED)
        if state != WebhookState.AUTHENTICATED:
            transitions.append(state)

        webhook_requests_total.labels(vendor=vendor, outcome=state.value).inc()
        return WebhookResult(
            status_code=200,
            body={"success": True, "processed": len(raw_events)},
            state=state,
            transitions=transitions,
            event_states=states,
        )

    async def _process(self, raw_event: RawVendorEvent, normalized: List[NormalizedEvent]) -> WebhookState:
        vendor = self.vendor.value

        try:
            event = self.normalizer.normalize(raw_event)
        except NormalizationError as e:
            logger.warning(
                "webhook_event_unhandled",
                vendor=vendor,
                event_type=raw_event.event_type,
                reason=e.error_code,
            )
            webhook_events_dropped_total.labels(vendor=vendor, reason=e.error_code.lower()).inc()
            return WebhookState.DROPPED

        normalized.append(event)
        config = await self.store.find_connected(self.vendor, event.vendor_property_id)
        if config is None:
            logger.error(
                "webhook_tenant_not_found",
                vendor=vendor,
                event_type=raw_event.event_type,
                external_id=event.external_id,
                vendor_property_id=event.vendor_property_id,
            )
            self._dead_letter(raw_event, "tenant_not_found")
            return WebhookState.DROPPED

        await self.event_bus.emit(
            event.topic.value,
            event.payload(),
            EventContext(hotel_id=config.tenant_id),
        )
        logger.info(
            "webhook_event_published",
            vendor=vendor,
            topic=event.topic.value,
            external_id=event.external_id,
            tenant_id=config.tenant_id,
        )
        return WebhookState.PUBLISHED

    def _dead_letter(self, raw_event: RawVendorEvent, reason: str):
        self.dead_letters.push(
            DeadLetter(
                vendor=self.vendor.value,
                reason=reason,
                event_type=raw_event.event_type,
                data=raw_event.data,
                vendor_property_id=raw_event.vendor_property_id,
            )
        )
        webhook_events_dropped_total.labels(vendor=self.vendor.value, reason=reason).inc()
