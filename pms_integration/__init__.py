"""
PMS Integration Package

External property-management-system integration layer:
- outbound REST and GraphQL adapters with a shared transport and retry engine
- inbound vendor webhooks normalized onto an in-process event bus
- per-tenant PMS configuration and pull synchronization
"""

from .adapters import (
    ApaleoAdapter,
    CloudbedsAdapter,
    CustomRESTAdapter,
    GraphQLAdapter,
    MewsAdapter,
    OperaAdapter,
    ProtelAdapter,
    RESTAdapter,
)
from .configuration import (
    ConfigurationStore,
    InMemoryConfigurationStore,
    PMSConfiguration,
    PMSConfigurationView,
)
from .connection_check import ConnectionChecker, ConnectionTestResult
from .contracts import ConnectionStatus, PMSAdapter, PMSVendor, Topic
from .credentials import CredentialCipher, generate_encryption_key
from .errors import (
    ConfigurationError,
    CredentialError,
    GraphQLError,
    HTTPStatusError,
    NetworkError,
    NormalizationError,
    PMSBaseError,
    PMSIntegrationError,
    RequestTimeoutError,
    TransportError,
    UnsupportedVendorError,
    WebhookAuthenticationError,
    WebhookConfigurationError,
)
from .event_bus import BusEvent, EventBus, EventContext, EventPayload
from .factory import AdapterFactory, AdapterOptions, AdapterSpec
from .retry import AttemptRecord, RetryEngine, RetryPolicy
from .sync import SyncJob, SyncResult
from .transport import HttpTransport

__version__ = "1.0.0"

__all__ = [
    # Transport and retry
    "HttpTransport",
    "RetryPolicy",
    "RetryEngine",
    "AttemptRecord",
    # Adapters
    "PMSAdapter",
    "RESTAdapter",
    "GraphQLAdapter",
    "CloudbedsAdapter",
    "OperaAdapter",
    "ApaleoAdapter",
    "CustomRESTAdapter",
    "MewsAdapter",
    "ProtelAdapter",
    "AdapterFactory",
    "AdapterOptions",
    "AdapterSpec",
    # Events
    "EventBus",
    "BusEvent",
    "EventPayload",
    "EventContext",
    "Topic",
    # Configuration and sync
    "PMSVendor",
    "ConnectionStatus",
    "PMSConfiguration",
    "PMSConfigurationView",
    "ConfigurationStore",
    "InMemoryConfigurationStore",
    "CredentialCipher",
    "generate_encryption_key",
    "SyncJob",
    "SyncResult",
    "ConnectionChecker",
    "ConnectionTestResult",
    # Errors
    "PMSBaseError",
    "TransportError",
    "NetworkError",
    "RequestTimeoutError",
    "HTTPStatusError",
    "GraphQLError",
    "PMSIntegrationError",
    "WebhookAuthenticationError",
    "WebhookConfigurationError",
    "NormalizationError",
    "ConfigurationError",
    "UnsupportedVendorError",
    "CredentialError",
]
