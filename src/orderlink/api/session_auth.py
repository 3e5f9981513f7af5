"""Session credential authentication for portal requests.

Provides:
- get_current_session(): any valid session (guest or customer)
- require_customer(): rejects guest sessions with 403
"""

from __future__ import annotations

from fastapi import Depends, HTTPException, Request

from orderlink.api.deps import Bridge, get_bridge
from orderlink.domain.credentials import (
    CredentialPayload,
    ExpiredCredential,
    InvalidCredential,
)


def _extract_bearer_token(request: Request) -> str:
    """Extract Bearer token from Authorization header.

    Raises:
        HTTPException: 401 if header missing or malformed.
    """
    auth_header = request.headers.get("Authorization")
    if not auth_header:
        raise HTTPException(status_code=401, detail="Missing authorization header")

    parts = auth_header.split()
    if len(parts) != 2 or parts[0].lower() != "bearer":
        raise HTTPException(status_code=401, detail="Invalid authorization header")

    return parts[1]


def get_current_session(
    request: Request,
    bridge: Bridge = Depends(get_bridge),
) -> CredentialPayload:
    """FastAPI dependency: verified session payload from the bearer token."""
    token = _extract_bearer_token(request)
    try:
        verified = bridge.signer.verify_session(token)
    except ExpiredCredential:
        raise HTTPException(status_code=401, detail="Token expired")
    except InvalidCredential:
        raise HTTPException(status_code=401, detail="Invalid token")
    return verified.payload


def require_customer(
    session: CredentialPayload = Depends(get_current_session),
) -> CredentialPayload:
    """FastAPI dependency: only persisted-customer sessions pass."""
    if session.guest is not False:
        raise HTTPException(status_code=403, detail="Customer session required")
    return session
