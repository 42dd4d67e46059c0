"""
PMS connection checks

Builds a throwaway adapter from credentials a tenant is about to save and
issues one read against the vendor. Failures are reported in the result,
never raised, so callers can show them next to the configuration form.
"""

import time
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional, Union

from pydantic import BaseModel, Field

from .configuration import PMSConfigurationView
from .contracts import ConnectionStatus, PMSAdapter, PMSVendor
from .errors import ConfigurationError, PMSBaseError, UnsupportedVendorError
from .factory import AdapterFactory
from .logging_adapter import get_safe_logger

logger = get_safe_logger("pms.connection")

UNSUPPORTED_SUGGESTIONS = [
    "Please contact support to request this integration",
    "Check if your PMS has a REST API available",
    "Consider using CUSTOM type for manual configuration",
]

FAILURE_ERRORS = [
    "Please verify your API key and endpoint",
    "Check if your PMS API is accessible from our servers",
]

FAILURE_SUGGESTIONS = [
    "Verify API key is correct and has not expired",
    "Check endpoint URL format (https://...)",
    "Ensure firewall allows our IP addresses",
    "Confirm PMS API version is compatible",
]


class ConnectionTestResult(BaseModel):
    """Outcome of a connection check"""

    success: bool
    message: str
    details: Dict[str, Any] = Field(default_factory=dict)
    errors: List[str] = Field(default_factory=list)
    suggestions: List[str] = Field(default_factory=list)


async def health_check(adapter: PMSAdapter, property_id: str) -> Dict[str, Any]:
    """Read the room inventory as a liveness check; vendor errors propagate"""
    started = time.monotonic()
    await adapter.get_rooms(property_id)
    return {
        "status": "healthy",
        "vendor": adapter.vendor.value,
        "property_id": property_id,
        "property_accessible": True,
        "response_time_ms": round((time.monotonic() - started) * 1000, 2),
        "timestamp": datetime.now(timezone.utc).isoformat(),
    }


class ConnectionChecker:
    """Checks candidate credentials against a vendor before they are stored"""

    def __init__(self, factory: Optional[AdapterFactory] = None):
        self.factory = factory or AdapterFactory()

    async def check(
        self,
        vendor: Union[PMSVendor, str],
        api_key: str,
        endpoint: Optional[str] = None,
        version: Optional[str] = None,
        external_property_id: Optional[str] = None,
        tenant_id: str = "connection-check",
    ) -> ConnectionTestResult:
        try:
            vendor = PMSVendor(vendor.upper() if isinstance(vendor, str) else vendor)
        except ValueError:
            return self._unsupported(str(vendor))

        if not api_key:
            return ConnectionTestResult(
                success=False,
                message="API key is required",
                errors=["API key is required"],
                details={"error_code": "MISSING_CREDENTIAL"},
            )

        now = datetime.now(timezone.utc)
        config = PMSConfigurationView(
            id="connection-check",
            tenant_id=tenant_id,
            vendor=vendor,
            version=version,
            endpoint=endpoint,
            external_property_id=external_property_id,
            status=ConnectionStatus.DISCONNECTED,
            has_credential=True,
            created_at=now,
            updated_at=now,
        )

        try:
            adapter = self.factory.create(config, api_key)
        except UnsupportedVendorError:
            return self._unsupported(vendor.value)
        except ConfigurationError as e:
            logger.warning("pms_connection_check_invalid", vendor=vendor.value, error_code=e.error_code)
            return ConnectionTestResult(
                success=False,
                message=e.message,
                errors=[e.message],
                details={"error_code": e.error_code},
            )

        try:
            health = await health_check(adapter, external_property_id or tenant_id)
        except PMSBaseError as e:
            logger.warning(
                "pms_connection_check_failed",
                vendor=vendor.value,
                error_code=e.error_code,
                status_code=getattr(e, "status_code", None),
            )
            return ConnectionTestResult(
                success=False,
                message="Connection test failed",
                errors=[e.message] + FAILURE_ERRORS,
                suggestions=list(FAILURE_SUGGESTIONS),
                details={
                    "error_code": e.error_code,
                    "status_code": getattr(e, "status_code", None),
                    "outcome": getattr(e, "outcome", None),
                },
            )
        finally:
            await adapter.aclose()

        logger.info(
            "pms_connection_check_passed",
            vendor=vendor.value,
            response_time_ms=health["response_time_ms"],
        )
        return ConnectionTestResult(
            success=True,
            message=f"Connected to {vendor.value}",
            details=health,
        )

    def _unsupported(self, vendor: str) -> ConnectionTestResult:
        logger.warning("pms_connection_check_unsupported", vendor=vendor)
        return ConnectionTestResult(
            success=False,
            message=f"PMS type {vendor} is not yet implemented",
            suggestions=list(UNSUPPORTED_SUGGESTIONS),
        )
