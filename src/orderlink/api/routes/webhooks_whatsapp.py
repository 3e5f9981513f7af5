"""WhatsApp webhook routes - Meta Cloud API integration.

Acknowledgement contract: POST always answers 200, whatever happens
downstream. The request path only verifies, parses and normalizes; handling
(venue lookups, issuance, the reply) goes to the Bridge dispatcher and the
ack does not wait for it. Every failure is logged and converted into the same
`200 ok`.

Security:
- Sender phone and message text exist only in memory during handling
- Logs contain NO PII and NO credentials
"""

from __future__ import annotations

import os
from datetime import datetime, timezone
from typing import Any

from fastapi import APIRouter, Header, Query, Request, Response

from orderlink.api.deps import Bridge, get_bridge, resolve_short_base
from orderlink.domain.interpreter import InboundEvent
from orderlink.observability.correlation import get_correlation_id
from orderlink.observability.logging import get_logger
from orderlink.observability.redaction import fingerprint, safe_log_context
from orderlink.services.inbound import handle_inbound
from orderlink.whatsapp.meta_adapter import (
    WHATSAPP_OBJECT,
    InvalidPayloadError,
    SignatureVerificationError,
    get_phone_number_id,
    normalize,
    verify_signature,
)

router = APIRouter(prefix="/integrations/whatsapp", tags=["webhooks"])

logger = get_logger(__name__)


def _ack() -> Response:
    return Response(status_code=200, content="ok")


@router.get("/ping")
def ping() -> dict:
    """Route check for tunnels and proxies."""
    return {
        "ok": True,
        "path": "/integrations/whatsapp/ping",
        "time": datetime.now(timezone.utc).isoformat(),
    }


@router.get("/webhook")
async def webhook_verify(
    hub_mode: str = Query(None, alias="hub.mode"),
    hub_verify_token: str = Query(None, alias="hub.verify_token"),
    hub_challenge: str = Query(None, alias="hub.challenge"),
) -> Response:
    """Echo hub.challenge if hub.verify_token matches META_VERIFY_TOKEN.

    Returns:
        200 with hub.challenge if valid, 403 otherwise.
    """
    expected_token = os.environ.get("META_VERIFY_TOKEN", "")
    token_match = bool(expected_token) and hub_verify_token == expected_token

    if hub_mode == "subscribe" and token_match:
        logger.info(
            "webhook verification successful",
            extra={"extra_fields": safe_log_context(hub_mode=hub_mode)},
        )
        return Response(status_code=200, content=hub_challenge or "")

    logger.warning(
        "webhook verification failed",
        extra={
            "extra_fields": safe_log_context(
                hub_mode=hub_mode or "missing",
                token_match=token_match if expected_token else "no_token_configured",
            )
        },
    )
    return Response(status_code=403, content="verification failed")


@router.post("/webhook")
async def webhook_receive(
    request: Request,
    x_hub_signature_256: str | None = Header(None, alias="X-Hub-Signature-256"),
) -> Response:
    """Receive a Meta Cloud API webhook. Always 200 (see module docstring)."""
    correlation_id = get_correlation_id()

    try:
        body_bytes = await request.body()
    except Exception:
        logger.warning(
            "failed to read request body",
            extra={"extra_fields": safe_log_context(correlationId=correlation_id)},
        )
        return _ack()

    app_secret = os.environ.get("META_APP_SECRET", "")
    if app_secret:
        try:
            verify_signature(body_bytes, x_hub_signature_256 or "", app_secret)
        except SignatureVerificationError as e:
            logger.warning(
                "webhook signature verification failed",
                extra={
                    "extra_fields": safe_log_context(
                        correlationId=correlation_id,
                        error=str(e),
                    )
                },
            )
            return _ack()

    try:
        payload: dict[str, Any] = await request.json()
    except Exception:
        logger.warning(
            "invalid json body",
            extra={"extra_fields": safe_log_context(correlationId=correlation_id)},
        )
        return _ack()

    if not isinstance(payload, dict) or payload.get("object") != WHATSAPP_OBJECT:
        logger.info(
            "non-message webhook ignored",
            extra={"extra_fields": safe_log_context(correlationId=correlation_id)},
        )
        return _ack()

    try:
        event = normalize(payload)
    except InvalidPayloadError:
        # Status updates and other non-message events
        logger.debug(
            "no message in webhook payload",
            extra={"extra_fields": safe_log_context(correlationId=correlation_id)},
        )
        return _ack()

    try:
        bridge = get_bridge()
        short_base = resolve_short_base(request, bridge.settings)
        bridge.dispatcher.submit(
            process_inbound_event,
            event,
            bridge,
            short_base=short_base,
            correlation_id=correlation_id,
            channel=get_phone_number_id(payload),
        )
    except Exception:
        logger.exception(
            "webhook dispatch failed",
            extra={"extra_fields": safe_log_context(correlationId=correlation_id)},
        )

    return _ack()


def process_inbound_event(
    event: InboundEvent,
    bridge: Bridge,
    *,
    short_base: str,
    correlation_id: str,
    channel: str | None = None,
) -> None:
    """Dispatched half of webhook_receive. Logs every failure, raises nothing."""
    try:
        outcome = handle_inbound(
            event,
            venues=bridge.venues,
            sender=bridge.sender,
            signer=bridge.signer,
            registry=bridge.registry,
            settings=bridge.settings,
            short_base=short_base,
            correlation_id=correlation_id,
        )
    except Exception:
        logger.exception(
            "webhook processing failed",
            extra={"extra_fields": safe_log_context(correlationId=correlation_id)},
        )
        return

    logger.info(
        "webhook message handled",
        extra={
            "extra_fields": safe_log_context(
                correlationId=correlation_id,
                action=outcome.action_name,
                delivery=outcome.delivery.status if outcome.delivery else "none",
                delivered=outcome.delivery.delivered if outcome.delivery else False,
                channel=fingerprint(channel) if channel else "unknown",
                kind="text" if event.text else "other",
            )
        },
    )
