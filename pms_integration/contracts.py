"""
PMS integration contracts
Vendor enumeration and the interface every PMS adapter satisfies
"""

from datetime import date, datetime, timezone
from enum import Enum
from typing import Any, Optional, Protocol, Union, runtime_checkable

from dateutil import parser as date_parser


class PMSVendor(str, Enum):
    """Supported PMS vendors"""

    OPERA = "OPERA"
    MEWS = "MEWS"
    CLOUDBEDS = "CLOUDBEDS"
    PROTEL = "PROTEL"
    APALEO = "APALEO"
    CUSTOM = "CUSTOM"

    @classmethod
    def from_slug(cls, slug: str) -> "PMSVendor":
        """Resolve a URL slug such as 'cloudbeds'"""
        return cls(slug.upper())

    @property
    def slug(self) -> str:
        return self.value.lower()


# Vendors whose API is addressed per property (Opera hotel code, Protel property id)
PROPERTY_SCOPED_VENDORS = frozenset({PMSVendor.OPERA, PMSVendor.PROTEL})


class ConnectionStatus(str, Enum):
    """Tenant connection status"""

    DISCONNECTED = "DISCONNECTED"
    CONNECTED = "CONNECTED"
    ERROR = "ERROR"


class Topic(str, Enum):
    """Canonical topics for normalized PMS events"""

    BOOKING_CREATED = "pms.booking.created"
    BOOKING_UPDATED = "pms.booking.updated"
    BOOKING_CANCELED = "pms.booking.canceled"
    BOOKING_CHECKED_IN = "pms.booking.checkedin"
    BOOKING_CHECKED_OUT = "pms.booking.checkedout"
    ROOM_UPDATED = "pms.room.updated"


# Lifecycle topics emitted by the configuration store and sync jobs
EXTERNAL_CONNECTED = "pms.external.connected"
EXTERNAL_DISCONNECTED = "pms.external.disconnected"
SYNC_COMPLETED = "pms.sync.completed"
SYNC_FAILED = "pms.sync.failed"


SinceInput = Union[datetime, date, str, None]


@runtime_checkable
class PMSAdapter(Protocol):
    """
    Common operation set of every vendor adapter.

    Operations return the vendor-native JSON shape unmodified; normalization
    into canonical records happens downstream.
    """

    vendor: PMSVendor

    async def get_reservations(self, property_id: str, since: SinceInput = None) -> Any:
        """Reservations for a property, optionally modified since a point in time"""
        ...

    async def get_rooms(self, property_id: str) -> Any:
        """Room inventory for a property"""
        ...

    async def get_guests(self, property_id: str, since: SinceInput = None) -> Any:
        """Guest profiles for a property"""
        ...

    async def aclose(self) -> None:
        """Release network resources"""
        ...


def normalize_datetime(value: SinceInput) -> Optional[datetime]:
    """Normalize various date inputs to an aware UTC datetime"""
    if value is None:
        return None
    if isinstance(value, str):
        value = date_parser.isoparse(value)
    if not isinstance(value, datetime):
        value = datetime(value.year, value.month, value.day, tzinfo=timezone.utc)
    if value.tzinfo is None:
        value = value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


def to_iso_timestamp(value: SinceInput) -> Optional[str]:
    """ISO-8601 UTC timestamp with millisecond precision, e.g. 2024-01-15T00:00:00.000Z"""
    normalized = normalize_datetime(value)
    if normalized is None:
        return None
    return normalized.isoformat(timespec="milliseconds").replace("+00:00", "Z")


def to_iso_date(value: SinceInput) -> Optional[str]:
    """ISO-8601 calendar date, e.g. 2024-01-15"""
    normalized = normalize_datetime(value)
    if normalized is None:
        return None
    return normalized.date().isoformat()
