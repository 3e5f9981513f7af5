"""Handle one inbound chat message end to end.

Ordering within one event: venue lookups, then credential issuance, then the
reply. Lookups and the reply are best-effort; only a failure to issue the
bridge link itself propagates, and the webhook boundary absorbs it.
Security: NEVER log sender phone, message text or credentials.
"""

from __future__ import annotations

from dataclasses import dataclass, field

from orderlink.domain.bridge_links import BridgeLink, issue_bridge_link
from orderlink.domain.credentials import CredentialSigner
from orderlink.domain.interpreter import (
    Action,
    Ignore,
    InboundEvent,
    IssueBridgeLink,
    PromptForCode,
    ReplyHelp,
    interpret,
)
from orderlink.domain.link_registry import LinkRegistry
from orderlink.domain.location import LocationTriple
from orderlink.domain.results import BestEffort
from orderlink.domain.venues import VenueLookup
from orderlink.infra.settings import BridgeSettings
from orderlink.observability.logging import get_logger
from orderlink.observability.redaction import safe_log_context
from orderlink.whatsapp.meta_sender import MessageSender, SendOutcome
from orderlink.whatsapp.replies import (
    help_reply,
    prompt_for_code_reply,
    venue_title,
    welcome_reply,
)

logger = get_logger(__name__)


@dataclass(frozen=True)
class InboundOutcome:
    action: Action
    delivery: SendOutcome | None = None
    bridge_link: BridgeLink | None = None
    degraded: tuple[str, ...] = field(default_factory=tuple)

    @property
    def action_name(self) -> str:
        return type(self.action).__name__


def venue_names_best_effort(
    venues: VenueLookup,
    location: LocationTriple,
) -> BestEffort[tuple[str | None, str | None]]:
    """Display names for the greeting; missing names are not an error."""
    restaurant_name = None
    branch_name = None
    try:
        if location.restaurant_id:
            restaurant_name = venues.restaurant_name(location.restaurant_id)
        if location.branch_id:
            branch_name = venues.branch_name(location.branch_id)
    except Exception as e:
        logger.warning(
            "venue name lookup failed",
            extra={"extra_fields": safe_log_context(error_type=type(e).__name__)},
        )
        return BestEffort.degrade("venue_name_lookup_failed", (restaurant_name, branch_name))
    return BestEffort.ok((restaurant_name, branch_name))


def handle_inbound(
    event: InboundEvent,
    *,
    venues: VenueLookup,
    sender: MessageSender,
    signer: CredentialSigner,
    registry: LinkRegistry,
    settings: BridgeSettings,
    short_base: str,
    correlation_id: str | None = None,
) -> InboundOutcome:
    """Interpret event, issue a link when asked, and reply to the sender."""
    action = interpret(event, venues)
    brand = settings.brand_name

    if isinstance(action, Ignore):
        logger.info(
            "inbound message ignored",
            extra={"extra_fields": safe_log_context(correlationId=correlation_id or "")},
        )
        return InboundOutcome(action=action)

    if isinstance(action, ReplyHelp):
        delivery = sender.deliver(
            event.sender_id, help_reply(brand, settings.support_phone), correlation_id
        )
        return InboundOutcome(action=action, delivery=delivery)

    if isinstance(action, PromptForCode):
        delivery = sender.deliver(event.sender_id, prompt_for_code_reply(brand), correlation_id)
        return InboundOutcome(action=action, delivery=delivery)

    if not isinstance(action, IssueBridgeLink):
        raise TypeError(f"unhandled inbound action: {type(action).__name__}")

    degraded = list(action.degraded)

    names = venue_names_best_effort(venues, action.location)
    if names.reason:
        degraded.append(names.reason)

    link = issue_bridge_link(
        signer,
        registry,
        location=action.location,
        phone=action.sender_phone,
        short_base=short_base,
        portal_base=settings.portal_base_url,
    )

    logger.info(
        "bridge link issued from inbound message",
        extra={
            "extra_fields": safe_log_context(
                correlationId=correlation_id or "",
                complete_location=action.location.is_complete(),
                degraded=",".join(degraded) or "none",
            )
        },
    )

    title = venue_title(brand, *names.value)
    delivery = sender.deliver(
        event.sender_id,
        welcome_reply(title, link.short_link, settings.link_ttl_minutes),
        correlation_id,
    )
    return InboundOutcome(
        action=action,
        delivery=delivery,
        bridge_link=link,
        degraded=tuple(degraded),
    )
