"""
PMS adapter factory
Strategy table mapping each vendor to the adapter built for a tenant configuration
"""

from dataclasses import dataclass
from typing import Any, Callable, Dict, List, Optional

import httpx

from .adapters import (
    ApaleoAdapter,
    CloudbedsAdapter,
    CustomRESTAdapter,
    MewsAdapter,
    OperaAdapter,
    ProtelAdapter,
)
from .config import PMSIntegrationSettings
from .configuration import PMSConfigurationView
from .contracts import PMSAdapter, PMSVendor
from .errors import ConfigurationError, UnsupportedVendorError
from .logging_adapter import get_safe_logger
from .retry import RetryPolicy

logger = get_safe_logger("pms.factory")


@dataclass
class AdapterOptions:
    """Process-wide knobs applied to every adapter the factory builds"""

    rest_timeout: float = 15.0
    graphql_timeout: float = 30.0
    # None keeps each vendor's own default policy
    retry_policy: Optional[RetryPolicy] = None
    transport: Optional[httpx.AsyncBaseTransport] = None

    @classmethod
    def from_settings(cls, settings: PMSIntegrationSettings) -> "AdapterOptions":
        """Options from process settings; the configured retry policy applies to every vendor"""
        return cls(
            rest_timeout=settings.pms_http_timeout,
            graphql_timeout=settings.pms_graphql_timeout,
            retry_policy=settings.retry_policy(),
        )


AdapterBuilder = Callable[[PMSConfigurationView, str, AdapterOptions], PMSAdapter]


@dataclass
class AdapterSpec:
    """Registry entry for one vendor"""

    vendor: PMSVendor
    protocol: str  # rest, graphql
    builder: AdapterBuilder
    requires_property_id: bool = False
    requires_endpoint: bool = False


def _rest_kwargs(options: AdapterOptions) -> Dict[str, Any]:
    kwargs: Dict[str, Any] = {"timeout": options.rest_timeout, "transport": options.transport}
    if options.retry_policy is not None:
        kwargs["retry_policy"] = options.retry_policy
    return kwargs


def _graphql_kwargs(options: AdapterOptions) -> Dict[str, Any]:
    return {"timeout": options.graphql_timeout, "transport": options.transport}


def _build_cloudbeds(config, api_key, options):
    return CloudbedsAdapter(api_key, base_url=config.endpoint, **_rest_kwargs(options))


def _build_opera(config, api_key, options):
    return OperaAdapter(
        api_key,
        hotel_code=config.external_property_id,
        base_url=config.endpoint,
        **_rest_kwargs(options),
    )


def _build_apaleo(config, api_key, options):
    return ApaleoAdapter(api_key, base_url=config.endpoint, **_rest_kwargs(options))


def _build_custom(config, api_key, options):
    return CustomRESTAdapter(api_key, endpoint=config.endpoint, **_rest_kwargs(options))


def _build_mews(config, api_key, options):
    return MewsAdapter(api_key, endpoint=config.endpoint, **_graphql_kwargs(options))


def _build_protel(config, api_key, options):
    return ProtelAdapter(
        api_key,
        property_id=config.external_property_id,
        endpoint=config.endpoint,
        **_graphql_kwargs(options),
    )


DEFAULT_ADAPTERS: List[AdapterSpec] = [
    AdapterSpec(PMSVendor.CLOUDBEDS, "rest", _build_cloudbeds),
    AdapterSpec(PMSVendor.OPERA, "rest", _build_opera, requires_property_id=True),
    AdapterSpec(PMSVendor.APALEO, "rest", _build_apaleo),
    AdapterSpec(PMSVendor.CUSTOM, "rest", _build_custom, requires_endpoint=True),
    AdapterSpec(PMSVendor.MEWS, "graphql", _build_mews),
    AdapterSpec(PMSVendor.PROTEL, "graphql", _build_protel, requires_property_id=True),
]


class AdapterFactory:
    """Builds vendor adapters from tenant configurations"""

    def __init__(self, options: Optional[AdapterOptions] = None):
        self.options = options or AdapterOptions()
        self._specs: Dict[PMSVendor, AdapterSpec] = {}
        for spec in DEFAULT_ADAPTERS:
            self.register(spec)

    def register(self, spec: AdapterSpec):
        """Register or replace the adapter for a vendor"""
        self._specs[spec.vendor] = spec

    def supported_vendors(self) -> List[PMSVendor]:
        return list(self._specs)

    def protocol_for(self, vendor: PMSVendor) -> str:
        return self._get_spec(vendor).protocol

    def _get_spec(self, vendor: PMSVendor) -> AdapterSpec:
        spec = self._specs.get(vendor)
        if spec is None:
            raise UnsupportedVendorError(
                f"No adapter registered for vendor: {vendor}",
                error_code="UNSUPPORTED_VENDOR",
                details={"vendor": str(vendor)},
            )
        return spec

    def create(self, config: PMSConfigurationView, api_key: str) -> PMSAdapter:
        """
        Build the adapter for a configuration.

        Args:
            config: tenant configuration (view, without credential)
            api_key: decrypted vendor credential

        Raises:
            UnsupportedVendorError: vendor has no registered adapter
            ConfigurationError: configuration lacks a field the vendor needs
        """
        spec = self._get_spec(config.vendor)

        if spec.requires_property_id and not config.external_property_id:
            raise ConfigurationError(
                f"{config.vendor.value} requires an external property id",
                error_code="MISSING_PROPERTY_ID",
                details={"tenant_id": config.tenant_id},
            )
        if spec.requires_endpoint and not config.endpoint:
            raise ConfigurationError(
                f"{config.vendor.value} requires an endpoint",
                error_code="MISSING_ENDPOINT",
                details={"tenant_id": config.tenant_id},
            )

        adapter = spec.builder(config, api_key, self.options)
        logger.info(
            "pms_adapter_created",
            tenant_id=config.tenant_id,
            vendor=config.vendor.value,
            protocol=spec.protocol,
        )
        return adapter
