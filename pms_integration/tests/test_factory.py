"""
Test the PMS adapter factory
"""

import pytest

from pms_integration.adapters import (
    ApaleoAdapter,
    CloudbedsAdapter,
    CustomRESTAdapter,
    MewsAdapter,
    OperaAdapter,
    ProtelAdapter,
)
from pms_integration.contracts import PMSVendor
from pms_integration.errors import ConfigurationError, UnsupportedVendorError
from pms_integration.factory import AdapterFactory, AdapterOptions, AdapterSpec
from pms_integration.retry import RetryPolicy

from .fixtures import make_view


class TestAdapterFactory:
    @pytest.mark.parametrize(
        "vendor, overrides, expected",
        [
            (PMSVendor.CLOUDBEDS, {}, CloudbedsAdapter),
            (PMSVendor.OPERA, {"external_property_id": "HOTEL1"}, OperaAdapter),
            (PMSVendor.APALEO, {}, ApaleoAdapter),
            (PMSVendor.CUSTOM, {"endpoint": "https://pms.acme.test/api"}, CustomRESTAdapter),
            (PMSVendor.MEWS, {}, MewsAdapter),
            (PMSVendor.PROTEL, {"external_property_id": "PROP1"}, ProtelAdapter),
        ],
    )
    def test_builds_vendor_adapter(self, vendor, overrides, expected):
        adapter = AdapterFactory().create(make_view(vendor=vendor, **overrides), "api-key")

        assert isinstance(adapter, expected)
        assert adapter.vendor == vendor

    def test_protocols(self):
        factory = AdapterFactory()

        assert factory.protocol_for(PMSVendor.CLOUDBEDS) == "rest"
        assert factory.protocol_for(PMSVendor.MEWS) == "graphql"
        assert set(factory.supported_vendors()) == set(PMSVendor)

    def test_endpoint_override(self):
        adapter = AdapterFactory().create(
            make_view(vendor=PMSVendor.CLOUDBEDS, endpoint="https://sandbox.cloudbeds.test/v1"),
            "api-key",
        )

        assert adapter.base_url == "https://sandbox.cloudbeds.test/v1"

    def test_opera_requires_hotel_code(self):
        with pytest.raises(ConfigurationError) as exc_info:
            AdapterFactory().create(make_view(vendor=PMSVendor.OPERA), "api-key")

        assert exc_info.value.error_code == "MISSING_PROPERTY_ID"

    def test_custom_requires_endpoint(self):
        with pytest.raises(ConfigurationError) as exc_info:
            AdapterFactory().create(make_view(vendor=PMSVendor.CUSTOM), "api-key")

        assert exc_info.value.error_code == "MISSING_ENDPOINT"

    def test_vendor_defaults_kept_without_override(self):
        adapter = AdapterFactory().create(
            make_view(vendor=PMSVendor.OPERA, external_property_id="HOTEL1"), "api-key"
        )

        assert adapter.retry.policy.max_retries == 2

    def test_options_override_retry_policy(self):
        policy = RetryPolicy(max_retries=0)
        factory = AdapterFactory(AdapterOptions(retry_policy=policy, rest_timeout=5.0))

        adapter = factory.create(make_view(vendor=PMSVendor.CLOUDBEDS), "api-key")

        assert adapter.retry.policy is policy
        assert adapter.transport.timeout == 5.0

    def test_options_from_settings(self, settings):
        configured = settings.model_copy(
            update={"pms_http_timeout": 7.5, "pms_retry_max_retries": 1, "pms_retry_initial_delay": 0.5}
        )

        options = AdapterOptions.from_settings(configured)

        assert options.rest_timeout == 7.5
        assert options.graphql_timeout == 30.0
        assert options.retry_policy == RetryPolicy(max_retries=1, initial_delay=0.5)

    def test_unregistered_vendor(self):
        factory = AdapterFactory()
        factory._specs.pop(PMSVendor.PROTEL)

        with pytest.raises(UnsupportedVendorError):
            factory.create(make_view(vendor=PMSVendor.PROTEL, external_property_id="PROP1"), "k")

    def test_register_replaces_builder(self):
        factory = AdapterFactory()
        sentinel = object()
        factory.register(AdapterSpec(PMSVendor.APALEO, "rest", lambda config, key, options: sentinel))

        assert factory.create(make_view(vendor=PMSVendor.APALEO), "k") is sentinel
