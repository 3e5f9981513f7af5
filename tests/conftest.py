"""Shared pytest fixtures for OrderLink tests."""
import sys
sys.dont_write_bytecode = True

import pytest  # noqa: E402

# Variables read by load_settings() and the Meta integration
_BRIDGE_ENV = (
    "JWT_SECRET",
    "JWT_ISSUER",
    "JWT_AUDIENCE",
    "MAGIC_LINK_TTL_MINUTES",
    "MAGIC_LINK_ONE_TIME",
    "GUEST_SESSION_TTL_MINUTES",
    "CUSTOMER_SESSION_TTL_DAYS",
    "LINK_SHORT_BASE",
    "BACKEND_PUBLIC_BASE_URL",
    "CUSTOMER_PORTAL_BASE_URL",
    "LINK_STORE",
    "INBOUND_DISPATCH",
    "BRAND_NAME",
    "SUPPORT_PHONE",
    "APP_ENV",
    "BRIDGE_API_KEY",
    "META_VERIFY_TOKEN",
    "META_APP_SECRET",
    "META_PHONE_NUMBER_ID",
    "META_ACCESS_TOKEN",
    "META_ACCESS_PERMANENT_TOKEN",
    "META_GRAPH_API_VERSION",
)


@pytest.fixture(autouse=True)
def _isolate_bridge(monkeypatch):
    """Clear bridge env vars and the process-wide Bridge around each test.

    The Bridge is a module-level singleton; without the reset a Bridge
    installed by one test (fixed clock, fakes) would leak into the next.
    """
    from orderlink.api.deps import set_bridge

    for name in _BRIDGE_ENV:
        monkeypatch.delenv(name, raising=False)

    set_bridge(None)
    yield
    set_bridge(None)
