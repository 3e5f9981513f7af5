"""Credential exchange: bridge credential -> guest or customer session."""

from __future__ import annotations

from fastapi import APIRouter, Depends, HTTPException
from pydantic import BaseModel, ConfigDict

from orderlink.api.deps import Bridge, get_bridge
from orderlink.api.session_auth import get_current_session, require_customer
from orderlink.domain.credentials import (
    CredentialPayload,
    ExpiredCredential,
    InvalidCredential,
)
from orderlink.observability.correlation import get_correlation_id
from orderlink.observability.logging import get_logger
from orderlink.observability.redaction import safe_log_context

router = APIRouter(prefix="/auth", tags=["auth"])

logger = get_logger(__name__)


class ExchangeRequest(BaseModel):
    model_config = ConfigDict(extra="forbid")

    token: str


def _session_dict(session: CredentialPayload) -> dict:
    return {
        "guest": session.guest,
        "subject": session.subject,
        "phone": session.phone,
        "name": session.name,
        **session.location.as_dict(),
    }


@router.post("/magic/exchange")
def exchange_magic_token(
    body: ExchangeRequest,
    bridge: Bridge = Depends(get_bridge),
) -> dict:
    """Exchange a bridge credential for a session credential.

    Raises:
        HTTPException: 401 for invalid/expired credentials, 503 when the
            customer store cannot be reached.
    """
    correlation_id = get_correlation_id()
    try:
        verified = bridge.signer.verify_bridge(body.token)
    except ExpiredCredential:
        raise HTTPException(status_code=401, detail="Token expired")
    except InvalidCredential as e:
        logger.info(
            "magic token rejected",
            extra={
                "extra_fields": safe_log_context(
                    correlationId=correlation_id,
                    reason=str(e),
                )
            },
        )
        raise HTTPException(status_code=401, detail="Invalid token")

    payload = verified.payload
    try:
        grant = bridge.resolver().resolve(payload.phone, payload.location, name=payload.name)
    except Exception as e:
        logger.exception(
            "identity resolution failed",
            extra={
                "extra_fields": safe_log_context(
                    correlationId=correlation_id,
                    error_type=type(e).__name__,
                )
            },
        )
        raise HTTPException(status_code=503, detail="Identity lookup unavailable")

    logger.info(
        "magic token exchanged",
        extra={
            "extra_fields": safe_log_context(
                correlationId=correlation_id,
                guest=grant.identity.guest,
                expires_in=grant.expires_in,
            )
        },
    )
    return {
        "guest": grant.identity.guest,
        "identity": grant.identity.as_dict(),
        "sessionToken": grant.token,
        "expiresIn": grant.expires_in,
    }


@router.get("/session")
def current_session(session: CredentialPayload = Depends(get_current_session)) -> dict:
    """Echo the caller's session (guest or customer)."""
    return _session_dict(session)


@router.get("/me")
def current_customer(session: CredentialPayload = Depends(require_customer)) -> dict:
    """Customer-only view; guest sessions get 403."""
    return {"customerId": session.subject, **_session_dict(session)}
