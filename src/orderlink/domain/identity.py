"""Identity resolution: known customer or anonymous guest.

Resolution strategy
───────────────────
  1. No phone                       → guest, phone=None.
  2. Phone matches a customer       → customer session (long TTL, guest=False).
     (scoped by restaurant when the location names one)
  3. Phone without a customer       → guest session (short TTL, guest=True).

The guest path never writes to persisted storage. Customer lookup errors
propagate: handing a known customer a guest session is not a safe fallback.
"""

from __future__ import annotations

import hashlib
import re
from dataclasses import dataclass, field
from datetime import timedelta
from typing import Protocol

from orderlink.domain.credentials import SESSION_KIND, CredentialPayload, CredentialSigner
from orderlink.domain.location import LocationTriple
from orderlink.infra.time import Clock, utc_now

_PHONE_NOISE = re.compile(r"[\s\-().]")


@dataclass(frozen=True)
class CustomerRecord:
    id: str
    phone: str
    name: str | None = None
    email: str | None = None


class CustomerLookup(Protocol):
    def find_by_phone(
        self, phone: str, restaurant_id: str | None = None
    ) -> CustomerRecord | None: ...


@dataclass(frozen=True)
class ResolvedIdentity:
    """Who the caller is. Written only by IdentityResolver."""

    guest: bool
    phone: str | None
    location: LocationTriple = field(default_factory=LocationTriple)
    ephemeral_id: str | None = None
    customer_id: str | None = None
    name: str | None = None
    email: str | None = None

    @property
    def subject(self) -> str:
        return (self.customer_id if not self.guest else self.ephemeral_id) or ""

    def as_dict(self) -> dict[str, object]:
        data: dict[str, object] = {
            "guest": self.guest,
            "phone": self.phone,
            **self.location.as_dict(),
        }
        if self.guest:
            data["ephemeralId"] = self.ephemeral_id
        else:
            data.update(
                {"customerId": self.customer_id, "name": self.name, "email": self.email}
            )
        return data


@dataclass(frozen=True)
class SessionGrant:
    identity: ResolvedIdentity
    token: str
    expires_in: int


def normalize_phone(phone: str | None) -> str | None:
    """Strip formatting characters; empty results become None."""
    if phone is None:
        return None
    cleaned = _PHONE_NOISE.sub("", phone)
    return cleaned or None


class IdentityResolver:
    def __init__(
        self,
        signer: CredentialSigner,
        customers: CustomerLookup,
        *,
        guest_ttl: timedelta,
        customer_ttl: timedelta,
        clock: Clock = utc_now,
    ) -> None:
        self._signer = signer
        self._customers = customers
        self.guest_ttl = guest_ttl
        self.customer_ttl = customer_ttl
        self._clock = clock

    def resolve(
        self,
        phone: str | None,
        location: LocationTriple,
        *,
        name: str | None = None,
    ) -> SessionGrant:
        """Resolve the caller and mint the matching session credential."""
        phone = normalize_phone(phone)

        customer = None
        if phone:
            customer = self._customers.find_by_phone(
                phone, restaurant_id=location.restaurant_id
            )

        if customer is not None:
            identity = ResolvedIdentity(
                guest=False,
                phone=customer.phone,
                location=location,
                customer_id=customer.id,
                name=customer.name or name,
                email=customer.email,
            )
            ttl = self.customer_ttl
        else:
            identity = ResolvedIdentity(
                guest=True,
                phone=phone,
                location=location,
                ephemeral_id=self._ephemeral_id(phone),
                name=name,
            )
            ttl = self.guest_ttl

        token = self._signer.issue(
            CredentialPayload(
                kind=SESSION_KIND,
                phone=identity.phone,
                name=identity.name,
                location=location,
                guest=identity.guest,
                subject=identity.subject,
            ),
            ttl,
        )
        return SessionGrant(
            identity=identity,
            token=token,
            expires_in=int(ttl.total_seconds()),
        )

    def _ephemeral_id(self, phone: str | None) -> str:
        seed = hashlib.sha256((phone or "anonymous").encode()).hexdigest()[:12]
        millis = int(self._clock().timestamp() * 1000)
        return f"guest_{seed}_{millis}"
