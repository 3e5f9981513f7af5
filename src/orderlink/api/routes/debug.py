"""Diagnostic routes - NOT mounted when APP_ENV=production.

- credential introspection without issuing a session
- sender number inspection and test send against Meta Cloud API
"""

from __future__ import annotations

import os
import urllib.error

from fastapi import APIRouter, Depends, HTTPException, Query
from fastapi.responses import JSONResponse
from pydantic import BaseModel

from orderlink.api.deps import Bridge, get_bridge
from orderlink.domain.credentials import CredentialError, decode_unverified
from orderlink.observability.logging import get_logger
from orderlink.observability.redaction import safe_log_context
from orderlink.whatsapp.meta_sender import (
    MissingChannelCredentials,
    inspect_phone_number,
    send_text_via_meta,
)

router = APIRouter(prefix="/debug", tags=["debug"])

logger = get_logger(__name__)

TEST_MESSAGE = "Test message from OrderLink"


class VerifyRequest(BaseModel):
    token: str


class TestSendRequest(BaseModel):
    to: str | None = None


@router.post("/credentials/verify")
def verify_credential(body: VerifyRequest, bridge: Bridge = Depends(get_bridge)) -> dict:
    """Verify a credential and return its claims, or the error name/message."""
    try:
        bridge.signer.verify(body.token)
    except CredentialError as e:
        return {"ok": False, "error": {"name": type(e).__name__, "message": str(e)}}
    return {"ok": True, "payload": decode_unverified(body.token)}


@router.get("/whatsapp/inspect")
def inspect_sender_number() -> JSONResponse:
    """Details of the configured sender number, fetched with the current token."""
    try:
        data = inspect_phone_number()
    except MissingChannelCredentials:
        return JSONResponse(
            status_code=400,
            content={
                "ok": False,
                "message": "Missing META_ACCESS_TOKEN or META_PHONE_NUMBER_ID",
                "haveToken": bool(
                    os.environ.get("META_ACCESS_TOKEN")
                    or os.environ.get("META_ACCESS_PERMANENT_TOKEN")
                ),
                "phoneNumberId": os.environ.get("META_PHONE_NUMBER_ID") or None,
            },
        )
    except (urllib.error.URLError, TimeoutError) as e:
        logger.warning(
            "sender number inspection failed",
            extra={"extra_fields": safe_log_context(error_type=type(e).__name__)},
        )
        return JSONResponse(status_code=502, content={"ok": False, "error": type(e).__name__})
    return JSONResponse(content={"ok": True, "data": data})


@router.post("/whatsapp/test-send")
def test_send(
    body: TestSendRequest | None = None,
    to: str | None = Query(None),
) -> dict:
    """Send a fixed test message to ?to= or body {to} (E.164)."""
    recipient = (body.to if body else None) or to
    if not recipient:
        raise HTTPException(
            status_code=400,
            detail="Provide ?to= or body { to } in E.164 format",
        )
    try:
        result = send_text_via_meta(to_phone=recipient, text=TEST_MESSAGE)
    except MissingChannelCredentials as e:
        raise HTTPException(status_code=400, detail=str(e))
    except (urllib.error.URLError, TimeoutError) as e:
        raise HTTPException(status_code=502, detail=f"send failed: {type(e).__name__}")
    return {"ok": True, "result": result}
