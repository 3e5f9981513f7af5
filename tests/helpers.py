"""Shared test helpers for OrderLink tests.

Regular functions and fakes, NOT fixtures: importable from conftest.py and
from individual test modules alike.
"""

from __future__ import annotations

from datetime import datetime, timedelta, timezone

from orderlink.api.deps import Bridge
from orderlink.domain.credentials import CredentialSigner
from orderlink.domain.identity import CustomerRecord
from orderlink.domain.link_registry import InMemoryLinkStore, LinkRegistry
from orderlink.domain.venues import TableRecord
from orderlink.infra.settings import BridgeSettings
from orderlink.tasks.dispatcher import InboundDispatcher
from orderlink.whatsapp.meta_sender import SendOutcome

TEST_SECRET = "test-secret-0123456789abcdef0123456789abcdef"
START = datetime(2026, 3, 1, 12, 0, 0, tzinfo=timezone.utc)


class FakeClock:
    """Manually advanced clock."""

    def __init__(self, now: datetime = START):
        self.now = now

    def __call__(self) -> datetime:
        return self.now

    def advance(self, **kwargs) -> None:
        self.now += timedelta(**kwargs)


class FakeVenueLookup:
    """In-memory venues. Tables are keyed by lowercase code."""

    def __init__(self, tables=None, restaurants=None, branches=None, fail=False):
        self.tables: dict[str, list[TableRecord]] = {}
        for code, record in tables or []:
            self.tables.setdefault(code.lower(), []).append(record)
        self.restaurants = restaurants or {}
        self.branches = branches or {}
        self.fail = fail
        self.calls: list[tuple[str, str | None]] = []

    def find_table(self, code, branch_id=None):
        self.calls.append((code, branch_id))
        if self.fail:
            raise ConnectionError("venue store unavailable")
        for record in self.tables.get(code.lower(), []):
            if branch_id is None or record.branch_id == branch_id:
                return record
        return None

    def restaurant_name(self, restaurant_id):
        if self.fail:
            raise ConnectionError("venue store unavailable")
        return self.restaurants.get(restaurant_id)

    def branch_name(self, branch_id):
        if self.fail:
            raise ConnectionError("venue store unavailable")
        return self.branches.get(branch_id)


class FakeCustomerLookup:
    """Customers keyed by (phone, restaurant_id); restaurant None matches any."""

    def __init__(self, customers=None, fail=False):
        self.customers: list[tuple[CustomerRecord, str | None]] = list(customers or [])
        self.fail = fail
        self.calls: list[tuple[str, str | None]] = []

    def find_by_phone(self, phone, restaurant_id=None):
        self.calls.append((phone, restaurant_id))
        if self.fail:
            raise ConnectionError("customer store unavailable")
        for record, scope in self.customers:
            if record.phone != phone:
                continue
            if restaurant_id is None or scope is None or scope == restaurant_id:
                return record
        return None


class RecordingSender:
    """MessageSender that records deliveries instead of calling Meta."""

    def __init__(self, outcome: SendOutcome | None = None):
        self.sent: list[tuple[str, str]] = []
        self.outcome = outcome or SendOutcome(status="sent")

    def deliver(self, to_phone, text, correlation_id=None):
        self.sent.append((to_phone, text))
        return self.outcome

    @property
    def last_text(self) -> str:
        return self.sent[-1][1]


class LogRecorder:
    """Simple recorder to capture log calls deterministically."""

    def __init__(self):
        self.calls: list[tuple[str, tuple, dict]] = []

    def _record(self, level: str, *args, **kwargs):
        self.calls.append((level, args, kwargs))

    def info(self, *args, **kwargs):
        self._record("info", *args, **kwargs)

    def warning(self, *args, **kwargs):
        self._record("warning", *args, **kwargs)

    def error(self, *args, **kwargs):
        self._record("error", *args, **kwargs)

    def exception(self, *args, **kwargs):
        self._record("exception", *args, **kwargs)

    def debug(self, *args, **kwargs):
        self._record("debug", *args, **kwargs)

    def get_all_logged_content(self) -> str:
        """Concatenate all args and kwargs from all calls into one string."""
        parts = []
        for _, args, kwargs in self.calls:
            parts.append(str(args))
            parts.append(str(kwargs))
        return " ".join(parts)

    def has_extra_field(self, key: str) -> bool:
        for _, _, kwargs in self.calls:
            extra_fields = kwargs.get("extra", {}).get("extra_fields", {})
            if key in extra_fields:
                return True
        return False


def make_signer(clock=None, secret: str = TEST_SECRET) -> CredentialSigner:
    return CredentialSigner(
        secret,
        issuer="orderlink",
        audience="orderlink-portal",
        clock=clock or FakeClock(),
    )


def make_bridge(
    *,
    clock: FakeClock | None = None,
    venues: FakeVenueLookup | None = None,
    customers: FakeCustomerLookup | None = None,
    sender: RecordingSender | None = None,
    dispatcher: InboundDispatcher | None = None,
    **overrides,
) -> Bridge:
    """Bridge wired with fakes and a fixed clock; overrides go to BridgeSettings."""
    clock = clock or FakeClock()
    settings = BridgeSettings(jwt_secret=TEST_SECRET, **overrides)
    return Bridge(
        settings=settings,
        signer=CredentialSigner(
            settings.jwt_secret,
            issuer=settings.jwt_issuer,
            audience=settings.jwt_audience,
            clock=clock,
        ),
        registry=LinkRegistry(
            InMemoryLinkStore(),
            ttl=timedelta(minutes=settings.link_ttl_minutes),
            one_time=settings.link_one_time,
            clock=clock,
        ),
        venues=venues or FakeVenueLookup(),
        customers=customers or FakeCustomerLookup(),
        sender=sender or RecordingSender(),
        clock=clock,
        dispatcher=dispatcher or InboundDispatcher("inline"),
    )
