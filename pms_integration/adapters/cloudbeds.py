"""
Cloudbeds PMS adapter
REST API with bearer-token authentication
"""

from typing import Any, Dict, Optional

from ..contracts import PMSVendor, SinceInput, to_iso_timestamp
from ..retry import RetryPolicy
from .rest import RESTAdapter

CLOUDBEDS_BASE_URL = "https://api.cloudbeds.com/v1"


class CloudbedsAdapter(RESTAdapter):
    """Cloudbeds REST adapter"""

    vendor = PMSVendor.CLOUDBEDS

    def __init__(
        self,
        api_key: str,
        base_url: Optional[str] = None,
        retry_policy: Optional[RetryPolicy] = None,
        **kwargs,
    ):
        super().__init__(
            base_url or CLOUDBEDS_BASE_URL,
            headers={"Authorization": f"Bearer {api_key}"},
            retry_policy=retry_policy or RetryPolicy(max_retries=3),
            **kwargs,
        )

    async def get_reservations(self, property_id: str, since: SinceInput = None) -> Any:
        params = {"propertyId": property_id}
        if since is not None:
            params["modifiedSince"] = to_iso_timestamp(since)
        return await self.get("/reservations", params=params, operation="getReservations")

    async def get_rooms(self, property_id: str) -> Any:
        return await self.get(f"/properties/{property_id}/rooms", operation="getRooms")

    async def get_guests(self, property_id: str, since: SinceInput = None) -> Any:
        params = {}
        if since is not None:
            params["modifiedSince"] = to_iso_timestamp(since)
        return await self.get(
            f"/properties/{property_id}/guests", params=params or None, operation="getGuests"
        )

    async def create_reservation(
        self,
        property_id: str,
        reservation: Dict[str, Any],
        idempotency_key: Optional[str] = None,
    ) -> Any:
        return await self.post(
            "/reservations",
            body={"propertyId": property_id, **reservation},
            idempotency_key=idempotency_key,
            operation="createReservation",
        )

    async def update_reservation(
        self,
        reservation_id: str,
        changes: Dict[str, Any],
        idempotency_key: Optional[str] = None,
    ) -> Any:
        return await self.put(
            f"/reservations/{reservation_id}",
            body=changes,
            idempotency_key=idempotency_key,
            operation="updateReservation",
        )
