"""
Protel PMS adapter
GraphQL API with one endpoint per property, authenticated with X-API-Key
"""

from typing import Any, Optional

from ..contracts import PMSVendor, SinceInput, to_iso_date
from .graphql import GraphQLAdapter

PROTEL_GRAPHQL_BASE = "https://api.protel.io/graphql"

BOOKINGS_QUERY = """
query GetBookings($dateFrom: Date, $dateTo: Date) {
  bookings(arrivalFrom: $dateFrom, arrivalTo: $dateTo) {
    edges {
      node {
        id
        reservationNumber
        status
        arrival
        departure
        guest { firstName lastName email phoneNumber }
        room { number type }
        totalAmount
        currency
        lastModified
      }
    }
  }
}
"""

ROOM_STATUS_QUERY = """
query GetRoomStatus {
  rooms {
    id
    number
    type
    floor
    status
    housekeepingStatus
    maxOccupancy
    rackRate
    amenities
  }
}
"""

GUEST_PROFILES_QUERY = """
query GetGuestProfiles($limit: Int) {
  guests(first: $limit) {
    edges {
      node {
        id
        firstName
        lastName
        email
        phone
        address { country }
        dateOfBirth
        loyaltyProgram { tier points }
        preferences
        stayCount
        totalRevenue
      }
    }
  }
}
"""


class ProtelAdapter(GraphQLAdapter):
    """Protel GraphQL adapter"""

    vendor = PMSVendor.PROTEL

    def __init__(self, api_key: str, property_id: str, endpoint: Optional[str] = None, **kwargs):
        self.property_id = property_id
        super().__init__(
            endpoint or f"{PROTEL_GRAPHQL_BASE}/{property_id}",
            headers={"X-API-Key": api_key},
            **kwargs,
        )

    async def get_bookings(self, date_from: SinceInput = None, date_to: SinceInput = None) -> Any:
        variables = {"dateFrom": to_iso_date(date_from), "dateTo": to_iso_date(date_to)}
        return await self.query(BOOKINGS_QUERY, variables=variables)

    async def get_room_status(self) -> Any:
        return await self.query(ROOM_STATUS_QUERY)

    async def get_guest_profiles(self, limit: Optional[int] = None) -> Any:
        return await self.query(GUEST_PROFILES_QUERY, variables={"limit": limit})

    # PMSAdapter interface; the property is fixed by the endpoint

    async def get_reservations(self, property_id: Optional[str] = None, since: SinceInput = None) -> Any:
        return await self.get_bookings(date_from=since)

    async def get_rooms(self, property_id: Optional[str] = None) -> Any:
        return await self.get_room_status()

    async def get_guests(self, property_id: Optional[str] = None, since: SinceInput = None) -> Any:
        return await self.get_guest_profiles()
