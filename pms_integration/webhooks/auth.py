"""
Webhook authentication
Shared-token and HMAC-SHA256 verification of inbound vendor callbacks
"""

import hashlib
import hmac
from typing import Mapping, Optional, Protocol

from ..errors import WebhookAuthenticationError, WebhookConfigurationError
from ..logging_adapter import get_safe_logger

logger = get_safe_logger("pms.webhooks.auth")


class WebhookAuthenticator(Protocol):
    """Verifies one inbound request; raises on failure"""

    vendor: str

    def authenticate(
        self,
        raw_body: bytes,
        headers: Mapping[str, str],
        query: Mapping[str, str],
    ) -> None:
        ...


def _constant_time_equals(provided: str, expected: str) -> bool:
    return hmac.compare_digest(provided.encode("utf-8"), expected.encode("utf-8"))


class SharedTokenAuthenticator:
    """Static token sent as a query parameter or an x-<vendor>-token header"""

    def __init__(
        self,
        vendor: str,
        secret: Optional[str],
        header_name: Optional[str] = None,
        query_param: str = "token",
    ):
        self.vendor = vendor
        self._secret = secret
        self.header_name = (header_name or f"x-{vendor.lower()}-token").lower()
        self.query_param = query_param

    def authenticate(self, raw_body: bytes, headers: Mapping[str, str], query: Mapping[str, str]) -> None:
        if not self._secret:
            logger.error("webhook_secret_not_configured", vendor=self.vendor)
            raise WebhookConfigurationError("Webhook not configured")

        token = query.get(self.query_param) or headers.get(self.header_name)
        if not token or not _constant_time_equals(token, self._secret):
            logger.warning("webhook_invalid_token", vendor=self.vendor, token_present=bool(token))
            raise WebhookAuthenticationError("Invalid token")


class HmacSignatureAuthenticator:
    """HMAC-SHA256 over the raw body, hex encoded, with an optional prefix"""

    def __init__(
        self,
        vendor: str,
        secret: Optional[str],
        header_name: Optional[str] = None,
        prefix: str = "",
    ):
        self.vendor = vendor
        self._secret = secret
        self.header_name = (header_name or f"x-{vendor.lower()}-signature").lower()
        self.prefix = prefix

    def compute_signature(self, raw_body: bytes) -> str:
        digest = hmac.new(self._secret.encode("utf-8"), raw_body, hashlib.sha256).hexdigest()
        return f"{self.prefix}{digest}"

    def authenticate(self, raw_body: bytes, headers: Mapping[str, str], query: Mapping[str, str]) -> None:
        if not self._secret:
            logger.error("webhook_secret_not_configured", vendor=self.vendor)
            raise WebhookConfigurationError("Webhook not configured")

        signature = headers.get(self.header_name)
        if not signature:
            logger.warning("webhook_missing_signature", vendor=self.vendor, header=self.header_name)
            raise WebhookAuthenticationError("Invalid signature")

        # Verified over the exact bytes received; never re-serialize the body
        expected = self.compute_signature(raw_body)
        if not _constant_time_equals(signature, expected):
            logger.warning("webhook_invalid_signature", vendor=self.vendor)
            raise WebhookAuthenticationError("Invalid signature")
