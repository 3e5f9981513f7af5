"""Issue a bridge link for a table, for local/staging E2E checks.

Usage:
    JWT_SECRET=... uv run python scripts/generate_test_link.py <restaurantId> <branchId> <tableId> [phone]

Codes live in the process that created them unless LINK_STORE=postgres, so
with the in-memory store only the portal link (not the short link) is usable.
"""

from __future__ import annotations

import sys


def main() -> None:
    if len(sys.argv) < 4:
        print(
            "Usage: uv run python scripts/generate_test_link.py "
            "<restaurantId> <branchId> <tableId> [phone]"
        )
        sys.exit(2)

    restaurant_id, branch_id, table_id = sys.argv[1:4]
    phone = sys.argv[4] if len(sys.argv) > 4 else None

    # Import after argument checks so usage errors don't need the environment
    from orderlink.api.deps import build_bridge
    from orderlink.domain.bridge_links import issue_bridge_link
    from orderlink.domain.location import LocationTriple
    from orderlink.infra.settings import load_settings

    try:
        settings = load_settings()
    except RuntimeError as e:
        print(f"ERROR: {e}")
        sys.exit(1)

    bridge = build_bridge(settings)
    link = issue_bridge_link(
        bridge.signer,
        bridge.registry,
        location=LocationTriple(restaurant_id, branch_id, table_id),
        phone=phone,
        short_base=settings.short_link_base or "http://localhost:5001",
        portal_base=settings.portal_base_url,
    )

    print()
    print("=== Bridge Link Issued ===")
    print(f"  link:       {link.link}")
    print(f"  short_link: {link.short_link}")
    print(f"  expires_in: {link.expires_in}s")


if __name__ == "__main__":
    main()
