"""
GraphQL adapter

Posts {query, variables} to a single endpoint and unwraps the data envelope.
GraphQL calls are not retried automatically.
"""

from typing import Any, Dict, Optional

import httpx

from ..contracts import PMSVendor
from ..errors import GraphQLError, NetworkError, RequestTimeoutError
from ..logging_adapter import get_safe_logger
from ..transport import HttpTransport
from .rest import USER_AGENT

logger = get_safe_logger("pms.adapters.graphql")

DEFAULT_GRAPHQL_TIMEOUT = 30.0


class GraphQLAdapter:
    """Generic GraphQL client"""

    vendor: PMSVendor = PMSVendor.CUSTOM

    def __init__(
        self,
        endpoint: str,
        headers: Optional[Dict[str, str]] = None,
        timeout: float = DEFAULT_GRAPHQL_TIMEOUT,
        transport: Optional[httpx.AsyncBaseTransport] = None,
        vendor: Optional[PMSVendor] = None,
    ):
        if vendor is not None:
            self.vendor = vendor
        self.endpoint = endpoint
        self.transport = HttpTransport(
            endpoint,
            headers={
                "Content-Type": "application/json",
                "User-Agent": USER_AGENT,
                **(headers or {}),
            },
            timeout=timeout,
            vendor=self.vendor.value,
            transport=transport,
        )

    async def aclose(self):
        await self.transport.aclose()

    async def __aenter__(self):
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        await self.aclose()

    async def query(
        self,
        query: str,
        variables: Optional[Dict[str, Any]] = None,
        timeout: Optional[float] = None,
    ) -> Any:
        """
        Execute a query and return its data member.

        Raises:
            GraphQLError: errors array present, data missing, or body not JSON
            RequestTimeoutError: the call exceeded its timeout
            NetworkError: the call never produced a response
        """
        try:
            response = await self.transport.send(
                "",
                method="POST",
                json={"query": query, "variables": variables},
                timeout=timeout,
            )
        except RequestTimeoutError as e:
            raise RequestTimeoutError(
                "GraphQL request timed out", status_code=504, details=e.details
            ) from e
        except NetworkError as e:
            raise NetworkError(
                "GraphQL request failed", status_code=502, details=e.details
            ) from e

        try:
            result = response.json()
        except ValueError as e:
            raise GraphQLError(
                f"GraphQL response is not JSON (HTTP {response.status_code})",
                status_code=response.status_code,
                error_code="INVALID_RESPONSE",
            ) from e

        if not isinstance(result, dict):
            raise GraphQLError(
                "GraphQL response missing data",
                status_code=response.status_code,
                error_code="INVALID_RESPONSE",
            )

        errors = result.get("errors")
        if errors:
            first = errors[0] if isinstance(errors[0], dict) else {"message": str(errors[0])}
            logger.warning(
                "graphql_errors_returned",
                vendor=self.vendor.value,
                error_count=len(errors),
                first_error=first.get("message"),
            )
            raise GraphQLError(
                f"GraphQL error: {first.get('message')}",
                status_code=response.status_code,
                details={"errors": errors},
            )

        if result.get("data") is None:
            raise GraphQLError(
                "GraphQL response missing data",
                status_code=response.status_code,
                error_code="INVALID_RESPONSE",
            )

        return result["data"]

    async def mutate(
        self,
        mutation: str,
        variables: Optional[Dict[str, Any]] = None,
        timeout: Optional[float] = None,
    ) -> Any:
        return await self.query(mutation, variables=variables, timeout=timeout)
