"""Reply texts sent back over WhatsApp.

Replies never contain internal ids; only display names and the short link.
"""

from __future__ import annotations


def help_reply(brand: str, support_phone: str | None = None) -> str:
    lines = [
        f"*{brand} Support*",
        '• Send the QR text "JOIN" to get your ordering link.',
        "• If the link expires, just send JOIN again.",
    ]
    if support_phone:
        lines.append(f"• Call: {support_phone}")
    return "\n".join(lines)


def prompt_for_code_reply(brand: str) -> str:
    return "\n".join(
        [
            f"*{brand}*",
            "Please scan the QR code on your table, or send your table code",
            "like: JOIN T=12",
        ]
    )


def venue_title(
    brand: str,
    restaurant_name: str | None,
    branch_name: str | None,
) -> str:
    """`Restaurant - Branch`, whichever part is known, else the brand."""
    if restaurant_name and branch_name:
        return f"{restaurant_name} - {branch_name}"
    return restaurant_name or branch_name or brand


def welcome_reply(title: str, short_link: str, ttl_minutes: int) -> str:
    return "\n".join(
        [
            f"*Welcome to {title}* 🍽️",
            f"Order now: {short_link}",
            "Reply HELP for assistance",
            f"Link valid for {ttl_minutes} min",
        ]
    )
