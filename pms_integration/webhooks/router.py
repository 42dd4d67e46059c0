"""
Webhook router
POST /webhooks/{vendor} for every vendor with a configured receiver
"""

import uuid
from typing import Dict

import structlog
from fastapi import APIRouter, Request
from fastapi.responses import JSONResponse

from ..contracts import PMSVendor
from ..logging_adapter import get_safe_logger
from ..metrics import webhook_requests_total
from .receiver import WebhookReceiver

logger = get_safe_logger("pms.webhooks.router")


def create_webhook_router(receivers: Dict[PMSVendor, WebhookReceiver]) -> APIRouter:
    router = APIRouter(prefix="/webhooks", tags=["webhooks"])

    @router.post("/{vendor}")
    async def receive_webhook(vendor: str, request: Request):
        """Receive a vendor callback; the raw body is read once and used for verification"""
        try:
            receiver = receivers.get(PMSVendor.from_slug(vendor))
        except ValueError:
            receiver = None
        if receiver is None:
            logger.warning("webhook_unknown_vendor", vendor=vendor)
            webhook_requests_total.labels(vendor="unknown", outcome="unknown_vendor").inc()
            return JSONResponse({"error": "Unknown webhook vendor"}, status_code=404)

        request_id = request.headers.get("x-request-id") or uuid.uuid4().hex
        with structlog.contextvars.bound_contextvars(request_id=request_id, webhook_vendor=receiver.vendor.value):
            raw_body = await request.body()
            result = await receiver.handle(raw_body, request.headers, request.query_params)
            logger.info(
                "webhook_request_completed",
                status_code=result.status_code,
                state=result.state.value,
            )

        return JSONResponse(result.body, status_code=result.status_code)

    return router
