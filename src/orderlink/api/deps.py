"""Process-wide wiring of the bridge collaborators.

The Bridge is built once, on first use, from the environment. Tests install
their own with set_bridge() (fakes, fixed clocks) and reset it afterwards.
"""

from __future__ import annotations

import threading
from dataclasses import dataclass, field
from datetime import timedelta

from fastapi import Request

from orderlink.domain.credentials import CredentialSigner
from orderlink.domain.identity import CustomerLookup, IdentityResolver
from orderlink.domain.link_registry import InMemoryLinkStore, LinkRegistry, LinkStore
from orderlink.domain.venues import VenueLookup
from orderlink.infra.settings import BridgeSettings, load_settings
from orderlink.infra.time import Clock, utc_now
from orderlink.tasks.dispatcher import InboundDispatcher
from orderlink.whatsapp.meta_sender import MessageSender, MetaSender

# Last resort when neither config nor the request names a host
_FALLBACK_SHORT_BASE = "http://localhost:5001"


@dataclass
class Bridge:
    settings: BridgeSettings
    signer: CredentialSigner
    registry: LinkRegistry
    venues: VenueLookup
    customers: CustomerLookup
    sender: MessageSender
    clock: Clock = utc_now
    dispatcher: InboundDispatcher = field(default_factory=InboundDispatcher)

    def resolver(self) -> IdentityResolver:
        return IdentityResolver(
            self.signer,
            self.customers,
            guest_ttl=timedelta(minutes=self.settings.guest_session_ttl_minutes),
            customer_ttl=timedelta(days=self.settings.customer_session_ttl_days),
            clock=self.clock,
        )


_bridge: Bridge | None = None
_bridge_lock = threading.Lock()


def build_bridge(settings: BridgeSettings, clock: Clock = utc_now) -> Bridge:
    """Assemble production collaborators for settings."""
    # Imported here so the in-memory configuration never needs psycopg2
    from orderlink.infra.repositories.customers_repository import PostgresCustomerLookup
    from orderlink.infra.repositories.venues_repository import PostgresVenueLookup

    store: LinkStore
    if settings.link_store == "postgres":
        from orderlink.infra.repositories.short_links_repository import PostgresLinkStore

        store = PostgresLinkStore()
    else:
        store = InMemoryLinkStore()

    return Bridge(
        settings=settings,
        signer=CredentialSigner(
            settings.jwt_secret,
            issuer=settings.jwt_issuer,
            audience=settings.jwt_audience,
            clock=clock,
        ),
        registry=LinkRegistry(
            store,
            ttl=timedelta(minutes=settings.link_ttl_minutes),
            one_time=settings.link_one_time,
            clock=clock,
        ),
        venues=PostgresVenueLookup(),
        customers=PostgresCustomerLookup(),
        sender=MetaSender(),
        clock=clock,
        dispatcher=InboundDispatcher(settings.inbound_dispatch),
    )


def get_bridge() -> Bridge:
    """FastAPI dependency: the process-wide Bridge.

    Raises:
        RuntimeError: If settings are invalid (e.g. JWT_SECRET missing).
    """
    global _bridge

    with _bridge_lock:
        if _bridge is None:
            _bridge = build_bridge(load_settings())
        return _bridge


def set_bridge(bridge: Bridge | None) -> None:
    """Install (or clear, with None) the process-wide Bridge."""
    global _bridge

    with _bridge_lock:
        _bridge = bridge


def resolve_short_base(request: Request, settings: BridgeSettings) -> str:
    """Base URL for `/r/<code>` links.

    Priority:
    1. LINK_SHORT_BASE / BACKEND_PUBLIC_BASE_URL
    2. X-Forwarded-Proto + X-Forwarded-Host (behind a proxy or tunnel)
    3. Request scheme + Host header
    """
    if settings.short_link_base:
        return settings.short_link_base

    proto = request.headers.get("x-forwarded-proto") or request.url.scheme or "http"
    host = request.headers.get("x-forwarded-host") or request.headers.get("host")
    if host:
        return f"{proto.split(',')[0].strip()}://{host.split(',')[0].strip()}"
    return _FALLBACK_SHORT_BASE
