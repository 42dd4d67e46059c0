"""
Exception hierarchy for the PMS integration layer

Adapter-side errors (transport, GraphQL, retry exhaustion) propagate to callers.
Webhook-side errors carry the HTTP status the receiver must answer with.
"""

from typing import Optional, Dict, Any, List, TYPE_CHECKING

if TYPE_CHECKING:
    from .retry import AttemptRecord


class PMSBaseError(Exception):
    """Base exception for all PMS integration errors"""

    def __init__(
        self,
        message: str,
        error_code: Optional[str] = None,
        details: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(message)
        self.message = message
        self.error_code = error_code or self.__class__.__name__
        self.details = details or {}


# Transport errors


class TransportError(PMSBaseError):
    """A single outbound call failed"""

    def __init__(
        self,
        message: str,
        status_code: Optional[int] = None,
        error_code: Optional[str] = None,
        details: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(message, error_code=error_code, details=details)
        self.status_code = status_code


class NetworkError(TransportError):
    """Connection-level failure (DNS, refused, reset)"""

    def __init__(self, message: str = "PMS API request failed", **kwargs):
        kwargs.setdefault("error_code", "NETWORK_ERROR")
        super().__init__(message, **kwargs)


class RequestTimeoutError(TransportError):
    """The call did not complete within its timeout"""

    def __init__(self, message: str = "PMS API request timed out", **kwargs):
        kwargs.setdefault("error_code", "TIMEOUT")
        super().__init__(message, **kwargs)


class HTTPStatusError(TransportError):
    """Vendor answered with a non-2xx status"""

    def __init__(self, status_code: int, body: str = "", **kwargs):
        kwargs.setdefault("error_code", f"HTTP_{status_code}")
        super().__init__(
            f"PMS API request failed: {status_code} {body}".rstrip(),
            status_code=status_code,
            **kwargs,
        )
        self.body = body


class GraphQLError(TransportError):
    """GraphQL logical failure or malformed GraphQL response"""

    def __init__(self, message: str, **kwargs):
        kwargs.setdefault("error_code", "GRAPHQL_ERROR")
        super().__init__(message, **kwargs)


class PMSIntegrationError(PMSBaseError):
    """Terminal failure of an adapter operation, with its attempt history"""

    def __init__(
        self,
        message: str,
        vendor: str,
        operation: str,
        status_code: Optional[int] = None,
        attempts: Optional[List["AttemptRecord"]] = None,
        outcome: str = "fatal-error",
        error_code: Optional[str] = None,
    ):
        super().__init__(
            message,
            error_code=error_code,
            details={
                "vendor": vendor,
                "operation": operation,
                "status_code": status_code,
                "outcome": outcome,
                "attempts": [a.as_dict() for a in attempts or []],
            },
        )
        self.vendor = vendor
        self.operation = operation
        self.status_code = status_code
        self.attempts = list(attempts or [])
        self.outcome = outcome

    @property
    def attempt_count(self) -> int:
        return len(self.attempts)


# Webhook errors


class WebhookError(PMSBaseError):
    """Errors answered directly to the calling vendor"""

    status_code: int = 400


class WebhookAuthenticationError(WebhookError):
    """Missing or invalid token/signature"""

    status_code = 401


class WebhookConfigurationError(WebhookError):
    """Server-side secret is not configured"""

    status_code = 500


class NormalizationError(PMSBaseError):
    """Vendor payload cannot be mapped to a canonical event"""

    pass


# Configuration errors


class ConfigurationError(PMSBaseError):
    """Tenant or process configuration is missing or invalid"""

    pass


class UnsupportedVendorError(ConfigurationError):
    """No adapter is registered for the vendor"""

    pass


class CredentialError(ConfigurationError):
    """Credential material cannot be encrypted or decrypted"""

    pass
