"""Tests for the ephemeral short-code registry."""

import re
from datetime import timedelta
from unittest.mock import patch

import pytest

from helpers import FakeClock
from orderlink.domain.link_registry import (
    CODE_LENGTH,
    MAX_CODE_ATTEMPTS,
    CodeExpired,
    CodeUnknown,
    InMemoryLinkStore,
    LinkEntry,
    LinkRegistry,
    new_code,
)
from orderlink.domain.location import LocationTriple

LOCATION = LocationTriple("R1", "B1", "T1")
URL_SAFE = re.compile(r"^[A-Za-z0-9_-]+$")


def _registry(clock, **kwargs) -> LinkRegistry:
    return LinkRegistry(InMemoryLinkStore(), ttl=timedelta(minutes=60), clock=clock, **kwargs)


class TestCodes:
    def test_code_is_fixed_length_url_safe(self):
        for _ in range(50):
            code = new_code()
            assert len(code) == CODE_LENGTH
            assert URL_SAFE.match(code)

    def test_codes_differ(self):
        assert len({new_code() for _ in range(200)}) == 200


class TestTtl:
    def test_live_before_ttl(self):
        clock = FakeClock()
        registry = _registry(clock)
        entry = registry.create("cred", LOCATION)

        clock.advance(minutes=59, seconds=59)
        assert registry.lookup(entry.code).credential == "cred"

    def test_expired_at_ttl_and_deleted(self):
        clock = FakeClock()
        registry = _registry(clock)
        entry = registry.create("cred", LOCATION)

        clock.advance(minutes=60)
        with pytest.raises(CodeExpired):
            registry.lookup(entry.code)
        # Lazy expiry removed it: now it is unknown
        with pytest.raises(CodeUnknown):
            registry.lookup(entry.code)
        assert len(registry.store) == 0

    def test_unknown_code(self):
        with pytest.raises(CodeUnknown):
            _registry(FakeClock()).lookup("nope1234")

    def test_ttl_must_be_positive(self):
        with pytest.raises(ValueError):
            LinkRegistry(InMemoryLinkStore(), ttl=timedelta(0))

    def test_ttl_seconds(self):
        assert _registry(FakeClock()).ttl_seconds == 3600


class TestOneTime:
    def test_consume_deletes_in_one_time_mode(self):
        registry = _registry(FakeClock(), one_time=True)
        entry = registry.create("cred", LOCATION)

        assert registry.consume(entry.code).location == LOCATION
        with pytest.raises(CodeUnknown):
            registry.consume(entry.code)

    def test_consume_keeps_entry_otherwise(self):
        registry = _registry(FakeClock())
        entry = registry.create("cred", LOCATION)

        registry.consume(entry.code)
        assert registry.consume(entry.code).credential == "cred"

    def test_lookup_never_deletes_live_entry(self):
        registry = _registry(FakeClock(), one_time=True)
        entry = registry.create("cred", LOCATION)

        registry.lookup(entry.code)
        assert registry.consume(entry.code).credential == "cred"


class TestCollisions:
    def test_live_collision_is_redrawn(self):
        clock = FakeClock()
        registry = _registry(clock)
        with patch("orderlink.domain.link_registry.new_code", side_effect=["AAAAAAAA", "AAAAAAAA", "BBBBBBBB"]):
            first = registry.create("first", LOCATION)
            second = registry.create("second", LOCATION)

        assert first.code == "AAAAAAAA"
        assert second.code == "BBBBBBBB"
        assert registry.lookup("AAAAAAAA").credential == "first"

    def test_expired_entry_is_overwritten(self):
        clock = FakeClock()
        registry = _registry(clock)
        with patch("orderlink.domain.link_registry.new_code", return_value="AAAAAAAA"):
            registry.create("old", LOCATION)
            clock.advance(hours=2)
            fresh = registry.create("new", LOCATION)

        assert fresh.code == "AAAAAAAA"
        assert registry.lookup("AAAAAAAA").credential == "new"

    def test_gives_up_after_max_attempts(self):
        clock = FakeClock()
        store = InMemoryLinkStore()
        store.put("AAAAAAAA", LinkEntry("AAAAAAAA", "taken", LOCATION, clock()))
        registry = LinkRegistry(store, ttl=timedelta(minutes=60), clock=clock)

        with patch("orderlink.domain.link_registry.new_code", return_value="AAAAAAAA") as drawn:
            with pytest.raises(RuntimeError):
                registry.create("cred", LOCATION)
        assert drawn.call_count == MAX_CODE_ATTEMPTS


class TestInMemoryLinkStore:
    def test_put_get_delete(self):
        store = InMemoryLinkStore()
        entry = LinkEntry("code1234", "cred", LOCATION, FakeClock()())

        store.put("code1234", entry)
        assert store.get("code1234") == entry
        store.delete("code1234")
        assert store.get("code1234") is None

    def test_delete_missing_is_noop(self):
        InMemoryLinkStore().delete("missing1")
