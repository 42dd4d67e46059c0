"""
Vendor-agnostic REST adapter built on HttpTransport and RetryEngine
"""

from typing import Any, Awaitable, Callable, Dict, Optional

import httpx

from ..contracts import PMSVendor
from ..retry import RetryEngine, RetryPolicy
from ..transport import DEFAULT_TIMEOUT, HttpTransport

USER_AGENT = "PMS-Integration/1.0"

# Methods that are safe to replay without an idempotency key
IDEMPOTENT_METHODS = frozenset({"GET", "HEAD", "OPTIONS", "PUT", "DELETE"})


class RESTAdapter:
    """REST client with vendor auth headers, timeout and retry policy"""

    vendor: PMSVendor = PMSVendor.CUSTOM

    def __init__(
        self,
        base_url: str,
        headers: Optional[Dict[str, str]] = None,
        retry_policy: Optional[RetryPolicy] = None,
        timeout: float = DEFAULT_TIMEOUT,
        transport: Optional[httpx.AsyncBaseTransport] = None,
        vendor: Optional[PMSVendor] = None,
        sleep: Optional[Callable[[float], Awaitable[None]]] = None,
    ):
        if vendor is not None:
            self.vendor = vendor
        self.transport = HttpTransport(
            base_url,
            headers={"User-Agent": USER_AGENT, **(headers or {})},
            timeout=timeout,
            vendor=self.vendor.value,
            transport=transport,
        )
        self.retry = RetryEngine(
            retry_policy or RetryPolicy(), vendor=self.vendor.value, sleep=sleep
        )

    @property
    def base_url(self) -> str:
        return self.transport.base_url

    async def aclose(self):
        await self.transport.aclose()

    async def __aenter__(self):
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        await self.aclose()

    async def request(
        self,
        path: str,
        method: str = "GET",
        body: Any = None,
        params: Optional[Dict[str, Any]] = None,
        headers: Optional[Dict[str, str]] = None,
        timeout: Optional[float] = None,
        idempotency_key: Optional[str] = None,
        operation: Optional[str] = None,
    ) -> Any:
        """
        Issue a request under the adapter's retry policy.

        POST and PATCH are retried only when an idempotency key is supplied;
        the key is forwarded to the vendor as the Idempotency-Key header.
        """
        method = method.upper()
        request_headers = dict(headers or {})
        if idempotency_key:
            request_headers["Idempotency-Key"] = idempotency_key
        idempotent = method in IDEMPOTENT_METHODS or bool(idempotency_key)

        async def _call():
            return await self.transport.request(
                path,
                method=method,
                headers=request_headers,
                json=body,
                params=params,
                timeout=timeout,
            )

        return await self.retry.execute(
            _call,
            operation=operation or f"{method} {path}",
            idempotent=idempotent,
        )

    async def get(self, path: str, params: Optional[Dict[str, Any]] = None, **kwargs) -> Any:
        return await self.request(path, method="GET", params=params, **kwargs)

    async def post(self, path: str, body: Any = None, **kwargs) -> Any:
        return await self.request(path, method="POST", body=body, **kwargs)

    async def put(self, path: str, body: Any = None, **kwargs) -> Any:
        return await self.request(path, method="PUT", body=body, **kwargs)

    async def patch(self, path: str, body: Any = None, **kwargs) -> Any:
        return await self.request(path, method="PATCH", body=body, **kwargs)

    async def delete(self, path: str, **kwargs) -> Any:
        return await self.request(path, method="DELETE", **kwargs)
