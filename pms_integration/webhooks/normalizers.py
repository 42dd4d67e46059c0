"""
Vendor webhook normalization

Each vendor has an explicit lookup table from its event type strings to the
canonical topic vocabulary and the data field carrying the external id.
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Tuple

from ..contracts import PMSVendor, Topic
from ..errors import NormalizationError
from ..event_bus import EventPayload


@dataclass(frozen=True)
class EventRule:
    topic: Topic
    action: str
    id_fields: Tuple[str, ...]


@dataclass
class RawVendorEvent:
    """One vendor event as found in the webhook body"""

    event_type: Optional[str]
    data: Dict[str, Any]
    vendor_property_id: Optional[str] = None


@dataclass
class NormalizedEvent:
    topic: Topic
    vendor: PMSVendor
    external_id: str
    action: str
    data: Dict[str, Any] = field(default_factory=dict)
    vendor_property_id: Optional[str] = None

    def payload(self) -> EventPayload:
        return EventPayload(
            vendor=self.vendor.value,
            external_id=self.external_id,
            action=self.action,
            data=self.data,
        )


CLOUDBEDS_RULES: Dict[str, EventRule] = {
    "reservation_created": EventRule(Topic.BOOKING_CREATED, "created", ("reservationID",)),
    "reservation_updated": EventRule(Topic.BOOKING_UPDATED, "updated", ("reservationID",)),
    "reservation_canceled": EventRule(Topic.BOOKING_CANCELED, "canceled", ("reservationID",)),
    "guest_checked_in": EventRule(Topic.BOOKING_CHECKED_IN, "checkedin", ("reservationID",)),
    "guest_checked_out": EventRule(Topic.BOOKING_CHECKED_OUT, "checkedout", ("reservationID",)),
    "room_status_changed": EventRule(Topic.ROOM_UPDATED, "updated", ("roomID",)),
}

OPERA_RESERVATION_IDS = ("reservationId", "confirmationNumber")

OPERA_RULES: Dict[str, EventRule] = {
    "NEW_RESERVATION": EventRule(Topic.BOOKING_CREATED, "created", OPERA_RESERVATION_IDS),
    "UPDATE_RESERVATION": EventRule(Topic.BOOKING_UPDATED, "updated", OPERA_RESERVATION_IDS),
    "CANCEL_RESERVATION": EventRule(Topic.BOOKING_CANCELED, "canceled", OPERA_RESERVATION_IDS),
    "CHECK_IN": EventRule(Topic.BOOKING_CHECKED_IN, "checkedin", OPERA_RESERVATION_IDS),
    "CHECK_OUT": EventRule(Topic.BOOKING_CHECKED_OUT, "checkedout", OPERA_RESERVATION_IDS),
    "ROOM_STATUS_UPDATE": EventRule(Topic.ROOM_UPDATED, "updated", ("roomId",)),
}

MEWS_RULES: Dict[str, EventRule] = {
    "ReservationCreated": EventRule(Topic.BOOKING_CREATED, "created", ("ReservationId",)),
    "ReservationUpdated": EventRule(Topic.BOOKING_UPDATED, "updated", ("ReservationId",)),
    "ReservationCanceled": EventRule(Topic.BOOKING_CANCELED, "canceled", ("ReservationId",)),
    "ReservationStarted": EventRule(Topic.BOOKING_CHECKED_IN, "checkedin", ("ReservationId",)),
    "ReservationProcessed": EventRule(Topic.BOOKING_CHECKED_OUT, "checkedout", ("ReservationId",)),
    "ResourceUpdated": EventRule(Topic.ROOM_UPDATED, "updated", ("ResourceId",)),
}


def _as_str(value: Any) -> Optional[str]:
    if value is None or value == "":
        return None
    return str(value)


class VendorNormalizer(ABC):
    """Splits a vendor body into events and maps each onto a canonical topic"""

    vendor: PMSVendor
    rules: Dict[str, EventRule] = {}

    @abstractmethod
    def split(self, body: Any) -> List[RawVendorEvent]:
        """Break a decoded body into vendor events"""

    def normalize(self, event: RawVendorEvent) -> NormalizedEvent:
        rule = self.rules.get(event.event_type or "")
        if rule is None:
            raise NormalizationError(
                f"Unhandled {self.vendor.value} event type: {event.event_type}",
                error_code="UNKNOWN_EVENT_TYPE",
                details={"event_type": event.event_type},
            )

        external_id = None
        for id_field in rule.id_fields:
            external_id = _as_str(event.data.get(id_field))
            if external_id:
                break
        if external_id is None:
            raise NormalizationError(
                f"{self.vendor.value} {event.event_type} event is missing {'/'.join(rule.id_fields)}",
                error_code="MISSING_EXTERNAL_ID",
                details={"event_type": event.event_type},
            )

        return NormalizedEvent(
            topic=rule.topic,
            vendor=self.vendor,
            external_id=external_id,
            action=rule.action,
            data=event.data,
            vendor_property_id=event.vendor_property_id,
        )


def _require_object(body: Any, vendor: PMSVendor) -> Dict[str, Any]:
    if not isinstance(body, dict):
        raise NormalizationError(
            f"{vendor.value} webhook body must be a JSON object",
            error_code="INVALID_PAYLOAD",
        )
    return body


def _data_of(container: Dict[str, Any], key: str) -> Dict[str, Any]:
    data = container.get(key)
    return data if isinstance(data, dict) else {}


class CloudbedsNormalizer(VendorNormalizer):
    """{"type", "property_id", "data": {...}}"""

    vendor = PMSVendor.CLOUDBEDS
    rules = CLOUDBEDS_RULES

    def split(self, body: Any) -> List[RawVendorEvent]:
        body = _require_object(body, self.vendor)
        data = _data_of(body, "data")
        return [
            RawVendorEvent(
                event_type=body.get("type"),
                data=data,
                vendor_property_id=_as_str(body.get("property_id") or data.get("propertyID")),
            )
        ]


class OperaNormalizer(VendorNormalizer):
    """{"eventType", "hotelId", "data": {...}}"""

    vendor = PMSVendor.OPERA
    rules = OPERA_RULES

    def split(self, body: Any) -> List[RawVendorEvent]:
        body = _require_object(body, self.vendor)
        return [
            RawVendorEvent(
                event_type=body.get("eventType"),
                data=_data_of(body, "data"),
                vendor_property_id=_as_str(body.get("hotelId")),
            )
        ]


class MewsNormalizer(VendorNormalizer):
    """{"Events": [{"Type", "Data": {...}}, ...]}, batched"""

    vendor = PMSVendor.MEWS
    rules = MEWS_RULES

    def split(self, body: Any) -> List[RawVendorEvent]:
        body = _require_object(body, self.vendor)
        events = body.get("Events")
        if not isinstance(events, list):
            raise NormalizationError("Mews webhook body has no Events list", error_code="INVALID_PAYLOAD")

        raw_events = []
        for item in events:
            item = item if isinstance(item, dict) else {}
            data = _data_of(item, "Data")
            raw_events.append(
                RawVendorEvent(
                    event_type=item.get("Type"),
                    data=data,
                    vendor_property_id=_as_str(data.get("EnterpriseId") or body.get("EnterpriseId")),
                )
            )
        return raw_events


NORMALIZERS: Dict[PMSVendor, VendorNormalizer] = {
    PMSVendor.CLOUDBEDS: CloudbedsNormalizer(),
    PMSVendor.OPERA: OperaNormalizer(),
    PMSVendor.MEWS: MewsNormalizer(),
}
