"""
Apaleo PMS adapter
Modern REST API; the stored credential is used as a bearer token
"""

from typing import Any, Optional

from ..contracts import PMSVendor, SinceInput, to_iso_timestamp
from ..retry import RetryPolicy
from .rest import RESTAdapter

APALEO_BASE_URL = "https://api.apaleo.com"


class ApaleoAdapter(RESTAdapter):
    """Apaleo REST adapter"""

    vendor = PMSVendor.APALEO

    def __init__(
        self,
        api_key: str,
        base_url: Optional[str] = None,
        retry_policy: Optional[RetryPolicy] = None,
        **kwargs,
    ):
        super().__init__(
            base_url or APALEO_BASE_URL,
            headers={"Authorization": f"Bearer {api_key}"},
            retry_policy=retry_policy,
            **kwargs,
        )

    async def get_reservations(self, property_id: str, since: SinceInput = None) -> Any:
        params = {"propertyIds": property_id}
        if since is not None:
            params["dateFilter"] = "Modification"
            params["from"] = to_iso_timestamp(since)
        return await self.get("/booking/v1/reservations", params=params, operation="getReservations")

    async def get_rooms(self, property_id: str) -> Any:
        return await self.get(
            "/inventory/v1/units", params={"propertyId": property_id}, operation="getRooms"
        )

    async def get_guests(self, property_id: str, since: SinceInput = None) -> Any:
        params = {"propertyId": property_id}
        if since is not None:
            params["modifiedFrom"] = to_iso_timestamp(since)
        return await self.get("/booking/v1/guests", params=params, operation="getGuests")
