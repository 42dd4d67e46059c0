"""
FastAPI application exposing the PMS webhook receivers
"""

from typing import Dict, Optional

from fastapi import FastAPI
from fastapi.responses import Response
from prometheus_client import CONTENT_TYPE_LATEST, generate_latest

from .config import PMSIntegrationSettings, get_settings
from .configuration import ConfigurationStore, InMemoryConfigurationStore
from .contracts import PMSVendor
from .credentials import CredentialCipher
from .event_bus import EventBus
from .logging_adapter import configure_logging, get_safe_logger
from .webhooks import (
    NORMALIZERS,
    DeadLetterBuffer,
    HmacSignatureAuthenticator,
    SharedTokenAuthenticator,
    WebhookReceiver,
    create_webhook_router,
)

logger = get_safe_logger("pms.app")


def build_receivers(
    settings: PMSIntegrationSettings,
    store: ConfigurationStore,
    event_bus: EventBus,
    dead_letters: DeadLetterBuffer,
) -> Dict[PMSVendor, WebhookReceiver]:
    """One receiver per webhook vendor; an unset secret rejects every request with 500"""
    secrets = {
        PMSVendor.CLOUDBEDS: settings.secret_value(settings.cloudbeds_webhook_token),
        PMSVendor.OPERA: settings.secret_value(settings.opera_webhook_secret),
        PMSVendor.MEWS: settings.secret_value(settings.mews_webhook_secret),
    }
    authenticators = {
        PMSVendor.CLOUDBEDS: SharedTokenAuthenticator("cloudbeds", secrets[PMSVendor.CLOUDBEDS]),
        PMSVendor.OPERA: HmacSignatureAuthenticator(
            "opera", secrets[PMSVendor.OPERA], prefix="sha256="
        ),
        PMSVendor.MEWS: HmacSignatureAuthenticator("mews", secrets[PMSVendor.MEWS]),
    }

    receivers = {}
    for vendor, authenticator in authenticators.items():
        receivers[vendor] = WebhookReceiver(
            vendor,
            authenticator,
            NORMALIZERS[vendor],
            store,
            event_bus,
            dead_letters,
        )
        if not secrets[vendor]:
            logger.warning("webhook_secret_not_configured", vendor=vendor.value)
    return receivers


def create_app(
    settings: Optional[PMSIntegrationSettings] = None,
    event_bus: Optional[EventBus] = None,
    store: Optional[ConfigurationStore] = None,
    dead_letters: Optional[DeadLetterBuffer] = None,
) -> FastAPI:
    """
    Build the webhook application.

    Without an explicit store an in-memory one is created, which requires
    PMS_ENCRYPTION_KEY.
    """
    settings = settings or get_settings()
    configure_logging(settings.log_level, json_logs=settings.log_json)

    event_bus = event_bus or EventBus()
    if store is None:
        store = InMemoryConfigurationStore(CredentialCipher.from_settings(settings), event_bus)
    if dead_letters is None:
        dead_letters = DeadLetterBuffer(settings.pms_dead_letter_capacity)

    app = FastAPI(title="PMS Integration", version="1.0.0")
    app.state.settings = settings
    app.state.event_bus = event_bus
    app.state.store = store
    app.state.dead_letters = dead_letters

    receivers = build_receivers(settings, store, event_bus, dead_letters)
    app.include_router(create_webhook_router(receivers))

    @app.get("/health")
    async def health():
        return {
            "status": "healthy",
            "environment": settings.environment,
            "webhook_vendors": sorted(v.slug for v in receivers),
            "dead_letters": len(dead_letters),
        }

    @app.get("/metrics", include_in_schema=False)
    async def metrics():
        return Response(generate_latest(), media_type=CONTENT_TYPE_LATEST)

    logger.info("pms_app_created", environment=settings.environment, vendors=len(receivers))
    return app
