"""
Inbound vendor webhooks
"""

from .auth import HmacSignatureAuthenticator, SharedTokenAuthenticator, WebhookAuthenticator
from .normalizers import NORMALIZERS, NormalizedEvent, RawVendorEvent, VendorNormalizer
from .receiver import DeadLetter, DeadLetterBuffer, WebhookReceiver, WebhookResult, WebhookState
from .router import create_webhook_router

__all__ = [
    "WebhookAuthenticator",
    "SharedTokenAuthenticator",
    "HmacSignatureAuthenticator",
    "VendorNormalizer",
    "RawVendorEvent",
    "NormalizedEvent",
    "NORMALIZERS",
    "WebhookReceiver",
    "WebhookResult",
    "WebhookState",
    "DeadLetter",
    "DeadLetterBuffer",
    "create_webhook_router",
]
