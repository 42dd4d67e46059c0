"""
Mews PMS adapter
GraphQL API keyed by enterprise id
"""

from typing import Any, Dict, Optional

from ..contracts import PMSVendor, SinceInput, to_iso_timestamp
from .graphql import GraphQLAdapter

MEWS_GRAPHQL_ENDPOINT = "https://api.mews.com/graphql"

RESERVATIONS_QUERY = """
query GetReservations($enterpriseId: ID!, $since: DateTime) {
  reservations(
    enterpriseId: $enterpriseId
    updatedUtc: { value: $since, operator: GREATER_THAN_OR_EQUAL }
  ) {
    id
    state
    number
    startUtc
    endUtc
    customer { firstName lastName email phone }
    assignedResource { name }
    totalCost { amount currency }
    createdUtc
    updatedUtc
  }
}
"""

RESOURCES_QUERY = """
query GetRooms($enterpriseId: ID!) {
  resources(enterpriseId: $enterpriseId) {
    id
    name
    type
    state
    floor
    capacity
    category { name }
    features
    updatedUtc
  }
}
"""

CUSTOMERS_QUERY = """
query GetCustomers($enterpriseId: ID!, $since: DateTime) {
  customers(enterpriseId: $enterpriseId, updatedUtc: { value: $since, operator: GREATER_THAN_OR_EQUAL }) {
    id
    firstName
    lastName
    email
    phone
    nationalityCode
    birthDate
    loyaltyLevel
    classifications
    updatedUtc
  }
}
"""


class MewsAdapter(GraphQLAdapter):
    """Mews GraphQL adapter"""

    vendor = PMSVendor.MEWS

    def __init__(self, access_token: str, endpoint: Optional[str] = None, **kwargs):
        super().__init__(
            endpoint or MEWS_GRAPHQL_ENDPOINT,
            headers={"Authorization": f"Bearer {access_token}"},
            **kwargs,
        )

    async def get_reservations(self, enterprise_id: str, since: SinceInput = None) -> Any:
        variables: Dict[str, Any] = {"enterpriseId": enterprise_id}
        if since is not None:
            variables["since"] = to_iso_timestamp(since)
        return await self.query(RESERVATIONS_QUERY, variables=variables)

    async def get_rooms(self, enterprise_id: str) -> Any:
        return await self.query(RESOURCES_QUERY, variables={"enterpriseId": enterprise_id})

    async def get_guests(self, enterprise_id: str, since: SinceInput = None) -> Any:
        variables: Dict[str, Any] = {"enterpriseId": enterprise_id}
        if since is not None:
            variables["since"] = to_iso_timestamp(since)
        return await self.query(CUSTOMERS_QUERY, variables=variables)
