"""Tests for placeholder visitor geolocation."""

from datetime import datetime, timedelta

import pytest

from scrolltracker.metrics.geo import (
    COUNTRIES,
    CountryResolver,
    assign_country,
    build_visitors,
    country_breakdown,
    hash_address,
)


class TestHashAddress:
    """Tests for the address hash."""

    @pytest.mark.parametrize(
        "address,expected",
        [("", 0), ("a", 97), ("ab", 3105), ("0", 48), ("A", 65)],
    )
    def test_known_values(self, address, expected):
        """Should match h * 31 + code unit."""
        assert hash_address(address) == expected

    def test_wraps_to_signed_32_bit(self):
        """Long inputs should stay within the signed 32-bit range."""
        value = hash_address("2001:0db8:85a3:0000:0000:8a2e:0370:7334" * 4)

        assert -(2**31) <= value < 2**31


class TestAssignCountry:
    """Tests for weighted country assignment."""

    @pytest.mark.parametrize(
        "address,expected",
        [("0", "CN"), ("A", "NP"), ("ab", "US"), ("a", "US")],
    )
    def test_known_assignments(self, address, expected):
        """Buckets map onto cumulative weights; buckets past the table fall back to US."""
        assert assign_country(address).code == expected

    def test_deterministic(self):
        """The same address always gets the same country."""
        assert assign_country("203.0.113.7") == assign_country("203.0.113.7")

    def test_weights(self):
        """The table's weights should sum to 96."""
        assert sum(c.weight for c in COUNTRIES) == 96

    def test_resolver_caches(self):
        """The resolver should return the same object for repeat lookups."""
        resolver = CountryResolver()

        assert resolver.resolve("0") is resolver.resolve("0")


class TestVisitors:
    """Tests for visitor list and country breakdown."""

    def test_one_visitor_per_address(self, make_record):
        """The newest event for an address supplies last-seen and device."""
        now = datetime(2026, 1, 10, 12, 0, 0)
        events = [
            make_record(occurred_at=now, ip_address="0", ua="Mozilla/5.0 (iPhone) Mobile"),
            make_record(occurred_at=now - timedelta(hours=1), ip_address="A"),
            make_record(occurred_at=now - timedelta(hours=2), ip_address="0", ua="Windows"),
            make_record(occurred_at=now - timedelta(hours=3), ip_address=None),
        ]

        visitors = build_visitors(events)

        assert [v.ip for v in visitors] == ["0", "A"]
        assert visitors[0].last_seen == now
        assert visitors[0].device_type == "Mobile"
        assert visitors[0].country_name == "China"
        assert visitors[1].device_type == "Unknown"
        assert visitors[0].avatar.endswith("seed=0")

    def test_avatar_seed_is_url_encoded(self, make_record):
        """IPv6 addresses should be quoted in the avatar URL."""
        visitors = build_visitors([make_record(ip_address="2001:db8::1")])

        assert visitors[0].avatar.endswith("seed=2001%3Adb8%3A%3A1")

    def test_country_breakdown(self, make_record):
        """Countries should be ranked by count with a rounded share."""
        events = [make_record(ip_address=ip) for ip in ("0", "A", "ab", "a")]
        visitors = build_visitors(events)

        breakdown = country_breakdown(visitors)

        assert breakdown[0].country == "US"
        assert breakdown[0].count == 2
        assert breakdown[0].share == 50
        assert {c.country for c in breakdown} == {"US", "CN", "NP"}

    def test_country_breakdown_limit(self, make_record):
        """Only the most common countries are kept."""
        events = [make_record(ip_address=ip) for ip in ("0", "A", "ab")]

        assert len(country_breakdown(build_visitors(events), limit=1)) == 1

    def test_country_breakdown_empty(self):
        """No visitors means no countries."""
        assert country_breakdown(()) == ()
