"""
HTTP transport shared by every PMS adapter.

Issues one call, enforces the timeout, parses the body and translates failures
into TransportError subclasses. Retries are the caller's decision.
"""

import asyncio
import time
from typing import Any, Dict, Optional

import httpx

from .errors import HTTPStatusError, NetworkError, RequestTimeoutError, TransportError
from .logging_adapter import get_safe_logger, sanitize_url
from .metrics import adapter_request_duration

logger = get_safe_logger("pms.transport")

DEFAULT_TIMEOUT = 15.0
MAX_ERROR_BODY = 500


class HttpTransport:
    """Thin async HTTP client with timeout and structured errors"""

    def __init__(
        self,
        base_url: str = "",
        headers: Optional[Dict[str, str]] = None,
        timeout: float = DEFAULT_TIMEOUT,
        vendor: str = "unknown",
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self.base_url = base_url.rstrip("/")
        self.default_headers = dict(headers or {})
        self.timeout = timeout
        self.vendor = vendor
        self._transport = transport
        self._client: Optional[httpx.AsyncClient] = None

    def _get_client(self) -> httpx.AsyncClient:
        # Created lazily so adapters can be built outside a running loop
        if self._client is None:
            self._client = httpx.AsyncClient(
                timeout=httpx.Timeout(self.timeout, connect=min(self.timeout, 10.0)),
                limits=httpx.Limits(
                    max_keepalive_connections=10,
                    max_connections=25,
                    keepalive_expiry=30.0,
                ),
                headers={"Accept": "application/json"},
                transport=self._transport,
            )
        return self._client

    async def aclose(self):
        if self._client is not None:
            await self._client.aclose()
            self._client = None

    async def __aenter__(self):
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        await self.aclose()

    def build_url(self, path: str) -> str:
        if path.startswith("http://") or path.startswith("https://"):
            return path
        if not path:
            return self.base_url
        if not path.startswith("/"):
            path = f"/{path}"
        return f"{self.base_url}{path}"

    def _merge_headers(self, headers: Optional[Dict[str, str]], has_body: bool) -> Dict[str, str]:
        merged = {**self.default_headers, **(headers or {})}
        if has_body and not any(k.lower() == "content-type" for k in merged):
            merged["Content-Type"] = "application/json"
        return merged

    async def send(
        self,
        path: str,
        method: str = "GET",
        headers: Optional[Dict[str, str]] = None,
        json: Any = None,
        params: Optional[Dict[str, Any]] = None,
        timeout: Optional[float] = None,
    ) -> httpx.Response:
        """
        Issue the call and return the raw response, whatever its status.

        Raises:
            RequestTimeoutError: the call exceeded its timeout
            NetworkError: the call never produced a response
        """
        url = self.build_url(path)
        effective_timeout = timeout if timeout is not None else self.timeout
        request_headers = self._merge_headers(headers, json is not None)
        started = time.monotonic()

        try:
            # The timer races the request; on expiry the request task is cancelled
            response = await asyncio.wait_for(
                self._get_client().request(
                    method,
                    url,
                    headers=request_headers,
                    json=json,
                    params=params,
                    timeout=effective_timeout,
                ),
                timeout=effective_timeout,
            )
        except (asyncio.TimeoutError, httpx.TimeoutException) as e:
            logger.warning(
                "pms_request_timed_out",
                vendor=self.vendor,
                method=method,
                url=sanitize_url(url),
                timeout=effective_timeout,
            )
            raise RequestTimeoutError(
                details={"method": method, "url": sanitize_url(url), "timeout": effective_timeout}
            ) from e
        except httpx.RequestError as e:
            logger.warning(
                "pms_request_network_error",
                vendor=self.vendor,
                method=method,
                url=sanitize_url(url),
                error=str(e),
            )
            raise NetworkError(
                details={"method": method, "url": sanitize_url(url), "error": str(e)}
            ) from e
        finally:
            adapter_request_duration.labels(vendor=self.vendor).observe(time.monotonic() - started)

        logger.debug(
            "pms_request_completed",
            vendor=self.vendor,
            method=method,
            url=sanitize_url(str(response.request.url)),
            status_code=response.status_code,
            duration_ms=round((time.monotonic() - started) * 1000, 2),
        )
        return response

    async def request(
        self,
        path: str,
        method: str = "GET",
        headers: Optional[Dict[str, str]] = None,
        json: Any = None,
        params: Optional[Dict[str, Any]] = None,
        timeout: Optional[float] = None,
    ) -> Any:
        """
        Issue the call and return the parsed body.

        JSON content types are decoded; anything else is returned as text.

        Raises:
            HTTPStatusError: non-2xx status, with a truncated body snippet
            RequestTimeoutError, NetworkError: see send()
        """
        response = await self.send(
            path, method=method, headers=headers, json=json, params=params, timeout=timeout
        )

        if not response.is_success:
            raise HTTPStatusError(
                response.status_code,
                response.text[:MAX_ERROR_BODY],
                details={"method": method, "url": sanitize_url(str(response.request.url))},
            )

        return self.parse_body(response)

    @staticmethod
    def parse_body(response: httpx.Response) -> Any:
        content_type = response.headers.get("content-type", "")
        if "json" not in content_type.lower():
            return response.text
        if not response.content:
            return None
        try:
            return response.json()
        except ValueError as e:
            raise TransportError(
                "PMS API returned invalid JSON",
                status_code=response.status_code,
                error_code="INVALID_RESPONSE",
            ) from e

    async def get(self, path: str, params: Optional[Dict[str, Any]] = None, headers: Optional[Dict[str, str]] = None, **kwargs) -> Any:
        return await self.request(path, method="GET", params=params, headers=headers, **kwargs)

    async def post(self, path: str, body: Any = None, headers: Optional[Dict[str, str]] = None, **kwargs) -> Any:
        return await self.request(path, method="POST", json=body, headers=headers, **kwargs)

    async def put(self, path: str, body: Any = None, headers: Optional[Dict[str, str]] = None, **kwargs) -> Any:
        return await self.request(path, method="PUT", json=body, headers=headers, **kwargs)

    async def patch(self, path: str, body: Any = None, headers: Optional[Dict[str, str]] = None, **kwargs) -> Any:
        return await self.request(path, method="PATCH", json=body, headers=headers, **kwargs)

    async def delete(self, path: str, headers: Optional[Dict[str, str]] = None, **kwargs) -> Any:
        return await self.request(path, method="DELETE", headers=headers, **kwargs)
