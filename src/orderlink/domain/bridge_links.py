"""Bridge link issuance: credential + short code + portal URL."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import timedelta
from urllib.parse import urlencode

from orderlink.domain.credentials import BRIDGE_KIND, CredentialPayload, CredentialSigner
from orderlink.domain.link_registry import LinkRegistry
from orderlink.domain.location import LocationTriple


@dataclass(frozen=True)
class BridgeLink:
    """Result of issuing a bridge credential.

    Attributes:
        link: Long portal URL carrying the credential.
        short_link: `<base>/r/<code>` URL that redirects to `link`.
        token: The bridge credential itself.
        code: The short code.
        expires_in: Credential and short-code lifetime in seconds.
    """

    link: str
    short_link: str
    token: str
    code: str
    expires_in: int


def build_portal_link(portal_base: str, token: str, location: LocationTriple) -> str:
    """`<portal>/?token=...&restaurantId=...&branchId=...&tableId=...`"""
    query = urlencode([("token", token), *location.as_query()])
    return f"{portal_base.rstrip('/')}/?{query}"


def build_short_link(short_base: str, code: str) -> str:
    return f"{short_base.rstrip('/')}/r/{code}"


def issue_bridge_link(
    signer: CredentialSigner,
    registry: LinkRegistry,
    *,
    location: LocationTriple,
    short_base: str,
    portal_base: str,
    phone: str | None = None,
    name: str | None = None,
) -> BridgeLink:
    """Mint a bridge credential and register it under a fresh short code.

    The credential and the short code share the registry TTL and one issue
    instant, so the code never outlives the credential it carries.
    """
    ttl = registry.ttl
    issued_at = signer.current_instant()
    token = signer.issue(
        CredentialPayload(kind=BRIDGE_KIND, phone=phone, name=name, location=location),
        ttl,
        issued_at=issued_at,
    )
    entry = registry.create(token, location, created_at=issued_at)
    return BridgeLink(
        link=build_portal_link(portal_base, token, location),
        short_link=build_short_link(short_base, entry.code),
        token=token,
        code=entry.code,
        expires_in=int(ttl / timedelta(seconds=1)),
    )
