"""Bridge configuration loaded from environment variables.

Every option has a default except JWT_SECRET. Channel credentials are not part
of BridgeSettings: the Meta sender reads them at send time so that their
absence degrades outbound replies instead of failing startup.
"""

from __future__ import annotations

import os
from dataclasses import dataclass, field
from typing import Literal

DEFAULT_PORTAL_BASE_URL = "http://localhost:5173"
DEFAULT_BRAND_NAME = "DynLeaf"

_TRUTHY = {"1", "true", "yes", "on"}


def truthy_env(value: str | None, default: bool = False) -> bool:
    """Parse a boolean flag the way operators write it (1/true/yes/on)."""
    if value is None:
        return default
    return value.strip().lower() in _TRUTHY


def _int_env(name: str, default: int) -> int:
    raw = os.environ.get(name)
    if raw is None or not raw.strip():
        return default
    try:
        value = int(raw)
    except ValueError:
        raise RuntimeError(f"{name} must be an integer") from None
    if value <= 0:
        raise RuntimeError(f"{name} must be positive")
    return value


@dataclass(frozen=True)
class BridgeSettings:
    """Runtime options of the magic-link bridge.

    Attributes:
        jwt_secret: HMAC secret for every credential. Never logged.
        jwt_issuer: `iss` claim written and required on verification.
        jwt_audience: `aud` claim written and required on verification.
        link_ttl_minutes: Lifetime of bridge credentials and short codes.
        link_one_time: Delete a short code on its first redemption.
        guest_session_ttl_minutes: Lifetime of guest session credentials.
        customer_session_ttl_days: Lifetime of customer session credentials.
        short_link_base: Explicit base for `/r/<code>` links. When None the
            base is derived from the incoming request.
        portal_base_url: Customer portal that receives redeemed links.
        link_store: Backing store of the link registry.
        brand_name: Name used in replies and themed pages.
        support_phone: Optional phone number appended to help replies.
        app_env: Deployment environment; debug routes are off in production.
        issuer_api_key: When set, the bridge-link issuance API requires it in
            the X-Api-Key header.
        inbound_dispatch: How the webhook hands inbound messages off the
            request path ("thread" or "inline").
    """

    jwt_secret: str = field(repr=False)
    jwt_issuer: str = "orderlink"
    jwt_audience: str = "orderlink-portal"
    link_ttl_minutes: int = 60
    link_one_time: bool = False
    guest_session_ttl_minutes: int = 120
    customer_session_ttl_days: int = 30
    short_link_base: str | None = None
    portal_base_url: str = DEFAULT_PORTAL_BASE_URL
    link_store: Literal["memory", "postgres"] = "memory"
    brand_name: str = DEFAULT_BRAND_NAME
    support_phone: str | None = None
    app_env: str = "development"
    issuer_api_key: str | None = None
    inbound_dispatch: Literal["thread", "inline"] = "thread"

    @property
    def is_production(self) -> bool:
        return self.app_env == "production"


def load_settings() -> BridgeSettings:
    """Build BridgeSettings from the current environment.

    Raises:
        RuntimeError: If JWT_SECRET is missing or a numeric option is invalid.
    """
    secret = os.environ.get("JWT_SECRET")
    if not secret:
        raise RuntimeError(
            "JWT_SECRET not configured. Generate with: openssl rand -hex 32"
        )

    short_base = os.environ.get("LINK_SHORT_BASE") or os.environ.get(
        "BACKEND_PUBLIC_BASE_URL"
    )

    link_store = os.environ.get("LINK_STORE", "memory").strip().lower()
    if link_store not in ("memory", "postgres"):
        raise RuntimeError("LINK_STORE must be 'memory' or 'postgres'")

    inbound_dispatch = os.environ.get("INBOUND_DISPATCH", "thread").strip().lower()
    if inbound_dispatch not in ("thread", "inline"):
        raise RuntimeError("INBOUND_DISPATCH must be 'thread' or 'inline'")

    return BridgeSettings(
        jwt_secret=secret,
        jwt_issuer=os.environ.get("JWT_ISSUER", "orderlink"),
        jwt_audience=os.environ.get("JWT_AUDIENCE", "orderlink-portal"),
        link_ttl_minutes=_int_env("MAGIC_LINK_TTL_MINUTES", 60),
        link_one_time=truthy_env(os.environ.get("MAGIC_LINK_ONE_TIME")),
        guest_session_ttl_minutes=_int_env("GUEST_SESSION_TTL_MINUTES", 120),
        customer_session_ttl_days=_int_env("CUSTOMER_SESSION_TTL_DAYS", 30),
        short_link_base=short_base.rstrip("/") if short_base else None,
        portal_base_url=os.environ.get(
            "CUSTOMER_PORTAL_BASE_URL", DEFAULT_PORTAL_BASE_URL
        ).rstrip("/"),
        link_store=link_store,  # type: ignore[arg-type]
        brand_name=os.environ.get("BRAND_NAME", DEFAULT_BRAND_NAME),
        support_phone=os.environ.get("SUPPORT_PHONE") or None,
        app_env=os.environ.get("APP_ENV", "development").strip().lower(),
        issuer_api_key=os.environ.get("BRIDGE_API_KEY") or None,
        inbound_dispatch=inbound_dispatch,  # type: ignore[arg-type]
    )
