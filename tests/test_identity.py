"""Tests for guest/customer identity resolution."""

from datetime import timedelta

import pytest

from helpers import FakeClock, FakeCustomerLookup, make_signer
from orderlink.domain.identity import CustomerRecord, IdentityResolver, normalize_phone
from orderlink.domain.location import LocationTriple

LOCATION = LocationTriple("R1", "B1", "T1")
CUSTOMER = CustomerRecord(id="cust-1", phone="5511999999999", name="Ana", email="ana@example.com")


def _resolver(customers, clock=None):
    clock = clock or FakeClock()
    return IdentityResolver(
        make_signer(clock),
        customers,
        guest_ttl=timedelta(minutes=120),
        customer_ttl=timedelta(days=30),
        clock=clock,
    )


class TestResolve:
    def test_known_customer_gets_customer_session(self):
        clock = FakeClock()
        grant = _resolver(FakeCustomerLookup([(CUSTOMER, "R1")]), clock).resolve(
            "55 (11) 99999-9999", LOCATION
        )

        assert grant.identity.guest is False
        assert grant.identity.customer_id == "cust-1"
        assert grant.expires_in == 30 * 24 * 3600

        session = make_signer(clock).verify_session(grant.token).payload
        assert session.guest is False
        assert session.subject == "cust-1"
        assert session.location == LOCATION

    def test_unknown_phone_gets_guest_session(self):
        clock = FakeClock()
        grant = _resolver(FakeCustomerLookup(), clock).resolve("5511000000000", LOCATION)

        assert grant.identity.guest is True
        assert grant.identity.phone == "5511000000000"
        assert grant.identity.ephemeral_id.startswith("guest_")
        assert grant.expires_in == 120 * 60
        assert make_signer(clock).verify_session(grant.token).payload.guest is True

    def test_no_phone_is_guest_without_lookup(self):
        customers = FakeCustomerLookup([(CUSTOMER, None)])
        grant = _resolver(customers).resolve(None, LOCATION)

        assert grant.identity.guest is True
        assert grant.identity.phone is None
        assert customers.calls == []

    def test_lookup_is_scoped_by_restaurant(self):
        customers = FakeCustomerLookup([(CUSTOMER, "R2")])
        grant = _resolver(customers).resolve("5511999999999", LOCATION)

        assert customers.calls == [("5511999999999", "R1")]
        assert grant.identity.guest is True

    def test_lookup_error_propagates(self):
        with pytest.raises(ConnectionError):
            _resolver(FakeCustomerLookup(fail=True)).resolve("5511999999999", LOCATION)

    def test_ephemeral_ids_unique_per_resolution(self):
        clock = FakeClock()
        resolver = _resolver(FakeCustomerLookup(), clock)

        first = resolver.resolve("5511000000000", LOCATION).identity.ephemeral_id
        clock.advance(milliseconds=5)
        second = resolver.resolve("5511000000000", LOCATION).identity.ephemeral_id

        assert first != second

    def test_as_dict_guest_hides_customer_fields(self):
        identity = _resolver(FakeCustomerLookup()).resolve(None, LOCATION).identity
        data = identity.as_dict()

        assert data["guest"] is True
        assert data["restaurantId"] == "R1"
        assert "customerId" not in data
        assert "ephemeralId" in data


class TestNormalizePhone:
    @pytest.mark.parametrize(
        "raw,expected",
        [
            ("+55 (11) 99999-9999", "+5511999999999"),
            ("5511.9999.9999", "551199999999"),
            ("  ", None),
            (None, None),
        ],
    )
    def test_normalize(self, raw, expected):
        assert normalize_phone(raw) == expected
