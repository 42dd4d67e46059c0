"""
Oracle Opera Cloud adapter
REST API scoped to a hotel code, authenticated with x-api-key
"""

from typing import Any, Dict, Optional

from ..contracts import PMSVendor, SinceInput, to_iso_date
from ..retry import RetryPolicy
from .rest import RESTAdapter

OPERA_BASE_URL = "https://opera-pms.oracle.com/api/v1"


class OperaAdapter(RESTAdapter):
    """Opera Cloud REST adapter"""

    vendor = PMSVendor.OPERA

    def __init__(
        self,
        api_key: str,
        hotel_code: str,
        base_url: Optional[str] = None,
        retry_policy: Optional[RetryPolicy] = None,
        **kwargs,
    ):
        self.hotel_code = hotel_code
        super().__init__(
            f"{(base_url or OPERA_BASE_URL).rstrip('/')}/{hotel_code}",
            headers={"x-api-key": api_key},
            retry_policy=retry_policy or RetryPolicy(max_retries=2, initial_delay=2.0),
            **kwargs,
        )

    async def get_reservations(
        self,
        property_id: Optional[str] = None,
        since: SinceInput = None,
        until: SinceInput = None,
    ) -> Any:
        # Opera scopes by hotel code in the base URL; property_id is accepted for
        # interface compatibility only
        params: Dict[str, str] = {}
        if since is not None:
            params["arrivalStart"] = to_iso_date(since)
        if until is not None:
            params["arrivalEnd"] = to_iso_date(until)
        return await self.get("/reservations", params=params or None, operation="getReservations")

    async def get_rooms(self, property_id: Optional[str] = None) -> Any:
        return await self.get("/rooms/inventory", operation="getRooms")

    async def get_guests(self, property_id: Optional[str] = None, since: SinceInput = None) -> Any:
        return await self.get("/guests/profiles", operation="getGuests")
