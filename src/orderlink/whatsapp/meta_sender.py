"""Outbound WhatsApp messaging via Meta Cloud API.

Security: NEVER log to_phone or text. Only log hashes and lengths.

send_text_via_meta() raises; MetaSender.deliver() is the best-effort entry
point used while handling inbound messages and never raises.
"""

from __future__ import annotations

import json
import os
import time
import urllib.error
import urllib.request
from dataclasses import dataclass
from typing import Any, Literal, Protocol

from orderlink.observability.logging import get_logger
from orderlink.observability.redaction import fingerprint, safe_log_context

logger = get_logger(__name__)

HTTP_TIMEOUT = 5

MAX_RETRIES = 1
RETRY_DELAY = 0.2

DEFAULT_GRAPH_API_VERSION = "v18.0"
GRAPH_API_BASE = "https://graph.facebook.com"


class MissingChannelCredentials(RuntimeError):
    """Phone number id or access token not configured."""


@dataclass(frozen=True)
class SendOutcome:
    status: Literal["sent", "skipped", "failed"]
    reason: str | None = None

    @property
    def delivered(self) -> bool:
        return self.status == "sent"


class MessageSender(Protocol):
    def deliver(self, to_phone: str, text: str, correlation_id: str | None = None) -> SendOutcome: ...


def _get_config() -> dict[str, str]:
    """Read Meta Cloud API config from the environment.

    Required: META_PHONE_NUMBER_ID and META_ACCESS_TOKEN (or
    META_ACCESS_PERMANENT_TOKEN). Optional: META_GRAPH_API_VERSION.

    Raises:
        MissingChannelCredentials: If a required value is absent.
    """
    phone_number_id = os.environ.get("META_PHONE_NUMBER_ID", "")
    access_token = os.environ.get("META_ACCESS_TOKEN") or os.environ.get(
        "META_ACCESS_PERMANENT_TOKEN", ""
    )
    if not phone_number_id or not access_token:
        raise MissingChannelCredentials(
            "Missing Meta config: META_PHONE_NUMBER_ID and META_ACCESS_TOKEN required"
        )
    return {
        "phone_number_id": phone_number_id,
        "access_token": access_token,
        "api_version": os.environ.get("META_GRAPH_API_VERSION", DEFAULT_GRAPH_API_VERSION),
    }


def _do_request(
    url: str,
    headers: dict[str, str],
    data: bytes | None = None,
    method: str = "POST",
) -> dict[str, Any]:
    """Execute an HTTP request and decode the JSON body. Raises on error."""
    req = urllib.request.Request(url, data=data, headers=headers, method=method)
    with urllib.request.urlopen(req, timeout=HTTP_TIMEOUT) as resp:
        return json.loads(resp.read().decode())


def send_text_via_meta(
    *,
    to_phone: str,
    text: str,
    correlation_id: str | None = None,
) -> dict[str, Any]:
    """Send a text message, retrying once on network errors and 5xx.

    Args:
        to_phone: Recipient in international format. NEVER logged.
        text: Message text. NEVER logged.
        correlation_id: Optional correlation ID for tracing.

    Raises:
        MissingChannelCredentials: If config is missing.
        urllib.error.URLError: On network/HTTP errors after retry.
    """
    config = _get_config()
    url = f"{GRAPH_API_BASE}/{config['api_version']}/{config['phone_number_id']}/messages"
    data = json.dumps(
        {
            "messaging_product": "whatsapp",
            "recipient_type": "individual",
            "to": to_phone,
            "type": "text",
            "text": {"body": text},
        }
    ).encode("utf-8")
    headers = {
        "Content-Type": "application/json",
        "Authorization": f"Bearer {config['access_token']}",
    }

    log_ctx = safe_log_context(
        correlationId=correlation_id or "",
        to_hash=fingerprint(to_phone),
        text_len=len(text),
        provider="meta",
    )
    logger.info("sending outbound message via meta", extra={"extra_fields": log_ctx})

    for attempt in range(MAX_RETRIES + 1):
        try:
            result = _do_request(url, headers, data)
        except (urllib.error.URLError, TimeoutError) as e:
            is_5xx = isinstance(e, urllib.error.HTTPError) and 500 <= e.code < 600
            is_network = not isinstance(e, urllib.error.HTTPError)
            if attempt < MAX_RETRIES and (is_5xx or is_network):
                logger.warning(
                    "outbound send via meta failed, retrying",
                    extra={
                        "extra_fields": safe_log_context(
                            **log_ctx, attempt=attempt, error_type=type(e).__name__
                        )
                    },
                )
                time.sleep(RETRY_DELAY)
                continue
            logger.error(
                "outbound send via meta failed",
                extra={
                    "extra_fields": safe_log_context(
                        **log_ctx, attempt=attempt, error_type=type(e).__name__
                    )
                },
            )
            raise
        logger.info(
            "outbound message sent via meta",
            extra={"extra_fields": safe_log_context(**log_ctx, attempt=attempt)},
        )
        return result
    raise RuntimeError("unreachable")


def inspect_phone_number() -> dict[str, Any]:
    """Fetch details of the configured sender number (debug utility).

    Raises:
        MissingChannelCredentials: If config is missing.
        urllib.error.URLError: On network/HTTP errors.
    """
    config = _get_config()
    url = (
        f"{GRAPH_API_BASE}/{config['api_version']}/{config['phone_number_id']}"
        "?fields=id,display_phone_number,verified_name,quality_rating"
    )
    headers = {"Authorization": f"Bearer {config['access_token']}"}
    return _do_request(url, headers, method="GET")


class MetaSender:
    """Best-effort delivery used by the inbound flow."""

    def deliver(
        self,
        to_phone: str,
        text: str,
        correlation_id: str | None = None,
    ) -> SendOutcome:
        try:
            send_text_via_meta(to_phone=to_phone, text=text, correlation_id=correlation_id)
        except MissingChannelCredentials:
            logger.warning(
                "meta credentials missing, outbound reply skipped",
                extra={
                    "extra_fields": safe_log_context(
                        correlationId=correlation_id or "",
                        to_hash=fingerprint(to_phone),
                    )
                },
            )
            return SendOutcome(status="skipped", reason="missing_channel_credentials")
        except Exception as e:
            # Already logged with context by send_text_via_meta for HTTP errors
            logger.warning(
                "outbound reply not delivered",
                extra={
                    "extra_fields": safe_log_context(
                        correlationId=correlation_id or "",
                        error_type=type(e).__name__,
                    )
                },
            )
            return SendOutcome(status="failed", reason=type(e).__name__)
        return SendOutcome(status="sent")
