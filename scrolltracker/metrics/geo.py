"""Placeholder visitor geolocation.

There is no real IP lookup. Each network address is hashed to a signed
32-bit integer and mapped onto a fixed, weighted country table, so the same
address always lands on the same country. CountryResolver is the seam where
a real lookup service should be plugged in.
"""

import struct
from collections import Counter
from collections.abc import Sequence
from dataclasses import dataclass
from datetime import datetime
from urllib.parse import quote

from scrolltracker.metrics.devices import classify_device
from scrolltracker.metrics.engagement import round_half_up
from scrolltracker.metrics.records import EventRecord

AVATAR_URL = "https://api.dicebear.com/7.x/avataaars/svg?seed={seed}"


@dataclass(frozen=True)
class Country:
    code: str
    name: str
    weight: int


# Weights sum to 96; buckets 96-99 fall back to the first entry
COUNTRIES: tuple[Country, ...] = (
    Country("US", "United States", 20),
    Country("IN", "India", 18),
    Country("CN", "China", 15),
    Country("NP", "Nepal", 15),
    Country("GB", "United Kingdom", 8),
    Country("DE", "Germany", 6),
    Country("CA", "Canada", 5),
    Country("AU", "Australia", 4),
    Country("FR", "France", 3),
    Country("JP", "Japan", 2),
)

COUNTRY_NAMES: dict[str, str] = {c.code: c.name for c in COUNTRIES}


def _to_int32(value: int) -> int:
    value &= 0xFFFFFFFF
    return value - 0x100000000 if value & 0x80000000 else value


def hash_address(address: str) -> int:
    """Signed 32-bit hash over UTF-16 code units: h = h * 31 + unit, wrapped each step."""
    h = 0
    for (code_unit,) in struct.iter_unpack("<H", address.encode("utf-16-le")):
        h = _to_int32((h << 5) - h + code_unit)
    return h


def assign_country(address: str) -> Country:
    """Pick a country for an address by cumulative weight over abs(hash) % 100."""
    bucket = abs(hash_address(address)) % 100
    cumulative = 0
    for country in COUNTRIES:
        cumulative += country.weight
        if bucket < cumulative:
            return country
    return COUNTRIES[0]


class CountryResolver:
    """
    Per-load cache of address -> country assignments.

    Create one per loaded event set; assignments are stable for its lifetime.
    """

    def __init__(self) -> None:
        self._cache: dict[str, Country] = {}

    def resolve(self, address: str) -> Country:
        if address not in self._cache:
            self._cache[address] = assign_country(address)
        return self._cache[address]


@dataclass(frozen=True)
class Visitor:
    ip: str
    country: str
    country_name: str
    last_seen: datetime
    avatar: str
    device_type: str


@dataclass(frozen=True)
class CountryCount:
    country: str
    country_name: str
    count: int
    share: int


def build_visitors(
    events: Sequence[EventRecord],
    resolver: CountryResolver | None = None,
) -> tuple[Visitor, ...]:
    """
    One visitor per distinct network address.

    Events are expected newest first, so the first event seen for an address
    supplies its last-seen time and device class.
    """
    resolver = resolver or CountryResolver()
    visitors: dict[str, Visitor] = {}
    for event in events:
        address = event.ip_address
        if not address or address in visitors:
            continue
        country = resolver.resolve(address)
        visitors[address] = Visitor(
            ip=address,
            country=country.code,
            country_name=country.name,
            last_seen=event.occurred_at,
            avatar=AVATAR_URL.format(seed=quote(address, safe="")),
            device_type=classify_device(event.ua, event.viewport_w, event.viewport_h).value,
        )
    return tuple(visitors.values())


def country_breakdown(visitors: Sequence[Visitor], limit: int = 6) -> tuple[CountryCount, ...]:
    """Visitor counts per country, most common first, with share of all visitors."""
    counts = Counter(v.country for v in visitors)
    total = len(visitors)
    return tuple(
        CountryCount(
            country=code,
            country_name=COUNTRY_NAMES.get(code, code),
            count=count,
            share=round_half_up(count / total * 100) if total else 0,
        )
        for code, count in counts.most_common(limit)
    )
