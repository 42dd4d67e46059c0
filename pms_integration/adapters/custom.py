"""
Adapter for tenants whose PMS exposes a generic REST endpoint (vendor CUSTOM)
"""

from typing import Any, Optional

from ..contracts import PMSVendor, SinceInput, to_iso_timestamp
from ..retry import RetryPolicy
from .rest import RESTAdapter


class CustomRESTAdapter(RESTAdapter):
    """Bearer-authenticated REST adapter against a tenant-supplied endpoint"""

    vendor = PMSVendor.CUSTOM

    def __init__(
        self,
        api_key: str,
        endpoint: str,
        retry_policy: Optional[RetryPolicy] = None,
        **kwargs,
    ):
        super().__init__(
            endpoint,
            headers={"Authorization": f"Bearer {api_key}"},
            retry_policy=retry_policy,
            **kwargs,
        )

    async def get_reservations(self, property_id: str, since: SinceInput = None) -> Any:
        params = {"propertyId": property_id}
        if since is not None:
            params["modifiedSince"] = to_iso_timestamp(since)
        return await self.get("/reservations", params=params, operation="getReservations")

    async def get_rooms(self, property_id: str) -> Any:
        return await self.get("/rooms", params={"propertyId": property_id}, operation="getRooms")

    async def get_guests(self, property_id: str, since: SinceInput = None) -> Any:
        params = {"propertyId": property_id}
        if since is not None:
            params["modifiedSince"] = to_iso_timestamp(since)
        return await self.get("/guests", params=params, operation="getGuests")
