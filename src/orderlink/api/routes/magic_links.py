"""Bridge-link issuance API (admin tools, QR generators, tests)."""

from __future__ import annotations

import hmac

from fastapi import APIRouter, Depends, Header, HTTPException, Request
from pydantic import BaseModel, ConfigDict

from orderlink.api.deps import Bridge, get_bridge, resolve_short_base
from orderlink.domain.bridge_links import issue_bridge_link
from orderlink.domain.location import LocationTriple
from orderlink.observability.correlation import get_correlation_id
from orderlink.observability.logging import get_logger
from orderlink.observability.redaction import safe_log_context

router = APIRouter(prefix="/integrations/whatsapp", tags=["magic-links"])

logger = get_logger(__name__)


class MagicLinkRequest(BaseModel):
    model_config = ConfigDict(extra="ignore")

    restaurantId: str | None = None
    branchId: str | None = None
    tableId: str | None = None
    phone: str | None = None
    name: str | None = None


def _check_api_key(bridge: Bridge, provided: str | None) -> None:
    expected = bridge.settings.issuer_api_key
    if expected is None:
        return
    if not provided or not hmac.compare_digest(provided, expected):
        raise HTTPException(status_code=401, detail="Invalid API key")


@router.post("/generate-magic")
def generate_magic_link(
    body: MagicLinkRequest,
    request: Request,
    bridge: Bridge = Depends(get_bridge),
    x_api_key: str | None = Header(None, alias="X-Api-Key"),
) -> dict:
    """Issue a bridge credential and its short link.

    Returns:
        {link, shortLink, token, expiresIn}

    Raises:
        HTTPException: 401 on a bad API key, 400 if any id is missing.
    """
    _check_api_key(bridge, x_api_key)

    if not (body.restaurantId and body.branchId and body.tableId):
        raise HTTPException(
            status_code=400,
            detail="restaurantId, branchId, and tableId are required",
        )

    link = issue_bridge_link(
        bridge.signer,
        bridge.registry,
        location=LocationTriple(
            restaurant_id=body.restaurantId,
            branch_id=body.branchId,
            table_id=body.tableId,
        ),
        phone=body.phone,
        name=body.name,
        short_base=resolve_short_base(request, bridge.settings),
        portal_base=bridge.settings.portal_base_url,
    )

    logger.info(
        "bridge link issued via api",
        extra={
            "extra_fields": safe_log_context(
                correlationId=get_correlation_id(),
                has_phone=bool(body.phone),
                expires_in=link.expires_in,
            )
        },
    )
    return {
        "link": link.link,
        "shortLink": link.short_link,
        "token": link.token,
        "expiresIn": link.expires_in,
    }
