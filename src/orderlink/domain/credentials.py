"""Signed, time-bounded credentials (HS256 JWT).

Two kinds are issued:
- bridge credentials ("wa-magic"): short-lived, only used to seed a session.
- session credentials ("session"): carry an explicit `guest` flag that
  downstream authorization must check.

Security: tokens and the secret are never logged.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime, timedelta
from typing import Any

import jwt
from jwt.utils import base64url_decode, base64url_encode

from orderlink.domain.location import LocationTriple
from orderlink.infra.time import Clock, epoch_seconds, from_epoch_seconds, utc_now

BRIDGE_KIND = "wa-magic"
SESSION_KIND = "session"
KNOWN_KINDS = (BRIDGE_KIND, SESSION_KIND)

_ALGORITHM = "HS256"

# Optional string claims and the payload attribute each maps to
_STRING_CLAIMS = {
    "phone": "phone",
    "name": "name",
    "sub": "subject",
}
_LOCATION_CLAIMS = {
    "restaurantId": "restaurant_id",
    "branchId": "branch_id",
    "tableId": "table_id",
}


class CredentialError(Exception):
    """Base class for credential verification failures."""


class InvalidCredential(CredentialError):
    """Signature mismatch, malformed token or missing/invalid claims."""


class ExpiredCredential(CredentialError):
    """Signature is valid but the embedded expiry has passed."""


@dataclass(frozen=True)
class CredentialPayload:
    """Identity/location hint carried by a credential."""

    kind: str
    phone: str | None = None
    name: str | None = None
    location: LocationTriple = field(default_factory=LocationTriple)
    guest: bool | None = None
    subject: str | None = None


@dataclass(frozen=True)
class VerifiedCredential:
    payload: CredentialPayload
    issued_at: datetime
    expires_at: datetime


class CredentialSigner:
    """Issue and verify credentials with a process-wide secret.

    Expiry is evaluated against the injected clock, not the wall clock, so
    verification is a pure function of token + secret + clock.
    """

    def __init__(
        self,
        secret: str,
        *,
        issuer: str,
        audience: str,
        clock: Clock = utc_now,
    ) -> None:
        if not secret:
            raise ValueError("signer secret must not be empty")
        self._secret = secret
        self._issuer = issuer
        self._audience = audience
        self._clock = clock

    def __repr__(self) -> str:
        return f"CredentialSigner(issuer={self._issuer!r}, audience={self._audience!r})"

    def current_instant(self) -> datetime:
        """The signer clock truncated to whole seconds, as claims carry it."""
        return from_epoch_seconds(epoch_seconds(self._clock()))

    def issue(
        self,
        payload: CredentialPayload,
        ttl: timedelta,
        *,
        issued_at: datetime | None = None,
    ) -> str:
        """Sign payload with an expiry of issued_at + ttl.

        issued_at defaults to current_instant(); callers that stamp another
        record with the same instant pass it explicitly.

        Raises:
            ValueError: If ttl is shorter than one second or the payload kind
                is unknown.
        """
        if ttl.total_seconds() < 1:
            raise ValueError("ttl must be at least one second")
        if payload.kind not in KNOWN_KINDS:
            raise ValueError(f"unknown credential kind: {payload.kind}")
        if payload.kind == SESSION_KIND and not isinstance(payload.guest, bool):
            raise ValueError("session credentials require an explicit guest flag")

        iat = epoch_seconds(issued_at if issued_at is not None else self._clock())
        claims: dict[str, Any] = {
            "typ": payload.kind,
            "iss": self._issuer,
            "aud": self._audience,
            "iat": iat,
            "exp": iat + int(ttl.total_seconds()),
        }
        for claim, attr in _STRING_CLAIMS.items():
            value = getattr(payload, attr)
            if value is not None:
                claims[claim] = value
        for claim, attr in _LOCATION_CLAIMS.items():
            value = getattr(payload.location, attr)
            if value is not None:
                claims[claim] = value
        if payload.guest is not None:
            claims["guest"] = payload.guest

        return jwt.encode(claims, self._secret, algorithm=_ALGORITHM)

    def verify(self, token: str) -> VerifiedCredential:
        """Verify signature, shape and expiry.

        Raises:
            InvalidCredential: Bad signature, malformed token or claims.
            ExpiredCredential: Valid token whose expiry has passed.
        """
        _require_canonical_signature(token)
        try:
            claims = jwt.decode(
                token,
                self._secret,
                algorithms=[_ALGORITHM],
                issuer=self._issuer,
                audience=self._audience,
                options={
                    "require": ["typ", "iat", "exp"],
                    # Checked below against the injected clock
                    "verify_exp": False,
                    "verify_iat": False,
                },
            )
        except jwt.InvalidTokenError as e:
            raise InvalidCredential(_describe(e)) from None

        verified = _claims_to_credential(claims)
        if self._clock() >= verified.expires_at:
            raise ExpiredCredential("credential expired")
        return verified

    def verify_bridge(self, token: str) -> VerifiedCredential:
        """Verify a bridge credential; session tokens are rejected."""
        verified = self.verify(token)
        if verified.payload.kind != BRIDGE_KIND:
            raise InvalidCredential("not a bridge credential")
        return verified

    def verify_session(self, token: str) -> VerifiedCredential:
        """Verify a session credential; bridge tokens are rejected."""
        verified = self.verify(token)
        if verified.payload.kind != SESSION_KIND:
            raise InvalidCredential("not a session credential")
        return verified


def decode_unverified(token: str) -> dict[str, Any]:
    """Decode claims without checking the signature. Debug output only."""
    try:
        return jwt.decode(token, options={"verify_signature": False})
    except jwt.InvalidTokenError as e:
        raise InvalidCredential(_describe(e)) from None


def _describe(error: jwt.InvalidTokenError) -> str:
    if isinstance(error, jwt.InvalidSignatureError):
        return "signature mismatch"
    if isinstance(error, jwt.MissingRequiredClaimError):
        return f"missing claim: {error.claim}"
    if isinstance(error, (jwt.InvalidIssuerError, jwt.InvalidAudienceError)):
        return "issuer or audience mismatch"
    return "malformed credential"


def _require_canonical_signature(token: str) -> None:
    """Reject signatures whose base64url text is not the canonical encoding.

    Lenient base64 decoding ignores trailing bits, so two different texts can
    decode to the same signature bytes.
    """
    if not isinstance(token, str):
        raise InvalidCredential("malformed credential")
    parts = token.split(".")
    if len(parts) != 3 or not all(parts):
        raise InvalidCredential("malformed credential")
    signature = parts[2]
    try:
        canonical = base64url_encode(base64url_decode(signature)).decode("ascii")
    except (ValueError, UnicodeError):
        raise InvalidCredential("malformed credential") from None
    if canonical != signature:
        raise InvalidCredential("signature mismatch")


def _claims_to_credential(claims: dict[str, Any]) -> VerifiedCredential:
    kind = claims.get("typ")
    if kind not in KNOWN_KINDS:
        raise InvalidCredential("unknown credential type")

    iat = claims.get("iat")
    exp = claims.get("exp")
    if not _is_int(iat) or not _is_int(exp) or exp <= iat:
        raise InvalidCredential("invalid timestamps")

    strings: dict[str, str | None] = {}
    for claim, attr in {**_STRING_CLAIMS, **_LOCATION_CLAIMS}.items():
        value = claims.get(claim)
        if value is not None and not isinstance(value, str):
            raise InvalidCredential(f"invalid claim: {claim}")
        strings[attr] = value

    guest = claims.get("guest")
    if guest is not None and not isinstance(guest, bool):
        raise InvalidCredential("invalid claim: guest")
    if kind == SESSION_KIND and guest is None:
        raise InvalidCredential("missing claim: guest")

    payload = CredentialPayload(
        kind=kind,
        phone=strings["phone"],
        name=strings["name"],
        subject=strings["subject"],
        location=LocationTriple(
            restaurant_id=strings["restaurant_id"],
            branch_id=strings["branch_id"],
            table_id=strings["table_id"],
        ),
        guest=guest,
    )
    return VerifiedCredential(
        payload=payload,
        issued_at=from_epoch_seconds(iat),
        expires_at=from_epoch_seconds(exp),
    )


def _is_int(value: Any) -> bool:
    return isinstance(value, int) and not isinstance(value, bool)
