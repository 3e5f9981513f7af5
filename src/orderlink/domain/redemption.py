"""Short-code redemption state machine.

  lookup(code)
    ├─ unknown            → 404
    ├─ expired            → entry deleted, 410
    └─ valid              → (one-time: entry deleted) → 302 to portal link

redeem() never raises: any internal error becomes a 500 outcome.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Literal

from orderlink.domain.bridge_links import build_portal_link
from orderlink.domain.link_registry import CodeExpired, CodeUnknown, LinkRegistry
from orderlink.observability.logging import get_logger
from orderlink.observability.redaction import safe_log_context

logger = get_logger(__name__)

RedemptionState = Literal["valid", "unknown", "expired", "error"]

_STATUS_BY_STATE: dict[str, int] = {
    "valid": 302,
    "unknown": 404,
    "expired": 410,
    "error": 500,
}


@dataclass(frozen=True)
class Redemption:
    state: RedemptionState
    location: str | None = None

    @property
    def status_code(self) -> int:
        return _STATUS_BY_STATE[self.state]


def redeem(registry: LinkRegistry, code: str, portal_base: str) -> Redemption:
    """Resolve a short code to a redirect target."""
    try:
        entry = registry.consume(code)
        target = build_portal_link(portal_base, entry.credential, entry.location)
    except CodeUnknown:
        return Redemption(state="unknown")
    except CodeExpired:
        return Redemption(state="expired")
    except Exception as e:
        logger.exception(
            "short link redemption failed",
            extra={"extra_fields": safe_log_context(error_type=type(e).__name__)},
        )
        return Redemption(state="error")

    logger.info(
        "short link redeemed",
        extra={
            "extra_fields": safe_log_context(
                one_time=registry.one_time,
                complete_location=entry.location.is_complete(),
            )
        },
    )
    return Redemption(state="valid", location=target)
