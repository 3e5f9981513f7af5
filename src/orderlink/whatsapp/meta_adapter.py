"""Meta Cloud API adapter - validate and normalize webhook payloads.

Payload shape:
{
  "object": "whatsapp_business_account",
  "entry": [{
    "changes": [{
      "value": {
        "metadata": {"display_phone_number": "...", "phone_number_id": "..."},
        "messages": [{"from": "PHONE", "id": "MSG_ID", "type": "text",
                      "text": {"body": "..."}}]
      },
      "field": "messages"
    }]
  }]
}
"""

from __future__ import annotations

import hashlib
import hmac
from typing import Any

from orderlink.domain.interpreter import InboundEvent

WHATSAPP_OBJECT = "whatsapp_business_account"


class InvalidPayloadError(Exception):
    """Raised when a Meta payload carries no usable message."""


class SignatureVerificationError(Exception):
    """Raised when HMAC signature verification fails."""


def verify_signature(payload_bytes: bytes, signature_header: str, app_secret: str) -> None:
    """Verify the `X-Hub-Signature-256: sha256=<hex>` header.

    Raises:
        SignatureVerificationError: If signature is invalid or missing.
    """
    if not signature_header:
        raise SignatureVerificationError("missing signature header")

    if not signature_header.startswith("sha256="):
        raise SignatureVerificationError("invalid signature format")

    computed = hmac.new(
        key=app_secret.encode("utf-8"),
        msg=payload_bytes,
        digestmod=hashlib.sha256,
    ).hexdigest()

    if not hmac.compare_digest(computed, signature_header[len("sha256="):]):
        raise SignatureVerificationError("signature mismatch")


def normalize(payload: dict[str, Any]) -> InboundEvent:
    """Extract the first message as an InboundEvent.

    Text comes from a text body or, for quick-reply buttons, the button text.

    Raises:
        InvalidPayloadError: If no message with a sender is present (e.g. a
            delivery status update).
    """
    value = _first_change_value(payload)
    messages = value.get("messages") if value else None
    if not messages or not isinstance(messages, list) or not isinstance(messages[0], dict):
        raise InvalidPayloadError("no message found in payload")

    message = messages[0]
    sender = message.get("from")
    if not sender or not isinstance(sender, str):
        raise InvalidPayloadError("missing sender phone number")

    metadata = value.get("metadata") or {}
    return InboundEvent(
        sender_id=sender,
        text=_message_text(message),
        channel_number=metadata.get("display_phone_number") if isinstance(metadata, dict) else None,
        message_id=message.get("id") if isinstance(message.get("id"), str) else None,
    )


def get_phone_number_id(payload: dict[str, Any]) -> str | None:
    value = _first_change_value(payload)
    if not value:
        return None
    metadata = value.get("metadata") or {}
    return metadata.get("phone_number_id") if isinstance(metadata, dict) else None


def _message_text(message: dict[str, Any]) -> str | None:
    for key in ("text", "button"):
        container = message.get(key)
        if isinstance(container, dict):
            body = container.get("body") if key == "text" else container.get("text")
            if isinstance(body, str) and body.strip():
                return body.strip()
    return None


def _first_change_value(payload: dict[str, Any]) -> dict[str, Any] | None:
    try:
        entry = payload.get("entry") or []
        changes = entry[0].get("changes") or []
        value = changes[0].get("value")
    except (IndexError, KeyError, TypeError, AttributeError):
        return None
    return value if isinstance(value, dict) else None
