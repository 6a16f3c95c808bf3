"""Bundle location codes.

Locations are stored as free text (``"A14"``, ``"a-14"``, ``"Shelf 3"``). Every
consumer that filters, groups or sorts by location goes through this module so
there is exactly one normalisation rule.
"""

import re
from collections.abc import Iterable
from dataclasses import dataclass
from functools import cmp_to_key

from phoneshop.core.exceptions import UnparseableLocationError

LOCATION_PATTERN = re.compile(r"^([A-Z])(-?)(\d+)$")
_FIRST_DIGITS = re.compile(r"(\d+)")


@dataclass(frozen=True)
class LocationKey:
    prefix_letter: str
    has_dash: bool
    numeric_suffix: int
    raw_upper: str

    @property
    def filter_prefix(self) -> str:
        return f"{self.prefix_letter}-" if self.has_dash else self.prefix_letter


def normalize_location(raw: str | None) -> str:
    return (raw or "").strip().upper()


def parse_location(raw: str | None) -> LocationKey:
    upper = normalize_location(raw)
    match = LOCATION_PATTERN.match(upper)
    if not match:
        raise UnparseableLocationError(raw or "")
    letter, dash, digits = match.groups()
    return LocationKey(
        prefix_letter=letter,
        has_dash=bool(dash),
        numeric_suffix=int(digits),
        raw_upper=upper,
    )


def try_parse_location(raw: str | None) -> LocationKey | None:
    try:
        return parse_location(raw)
    except UnparseableLocationError:
        return None


def natural_compare(a: str, b: str) -> int:
    """Order by the first embedded number, so ``A2`` sorts before ``A10``.

    Falls back to plain string order when either side has no digits, or when
    both numbers are equal.
    """
    a_match = _FIRST_DIGITS.search(a)
    b_match = _FIRST_DIGITS.search(b)
    if a_match and b_match:
        a_num = int(a_match.group(1))
        b_num = int(b_match.group(1))
        if a_num != b_num:
            return -1 if a_num < b_num else 1
    if a == b:
        return 0
    return -1 if a < b else 1


natural_sort_key = cmp_to_key(natural_compare)


def natural_sorted(labels: Iterable[str]) -> list[str]:
    return sorted(labels, key=natural_sort_key)


def is_prefix_filter(value: str) -> bool:
    return bool(re.fullmatch(r"[A-Z]-?", value))


def normalize_prefix_filter(value: str | None) -> str | None:
    if value is None:
        return None
    normalized = value.strip().upper()
    if not normalized or normalized == "ALL":
        return None
    if not is_prefix_filter(normalized):
        raise ValueError(f"Invalid bundle prefix filter: {value!r}")
    return normalized


def key_matches_prefix(key: LocationKey | None, prefix: str) -> bool:
    if key is None:
        return False
    return key.filter_prefix == prefix


def enumerate_filter_prefixes(locations: Iterable[str | None]) -> list[str]:
    """Filter buckets present in the data.

    A letter used both as ``A14`` and ``A-14`` yields two independent
    filters, ``"A"`` and ``"A-"``.
    """
    prefixes: set[str] = set()
    for raw in locations:
        key = try_parse_location(raw)
        if key is not None:
            prefixes.add(key.filter_prefix)
    return sorted(prefixes)


def bundle_numbers(locations: Iterable[str | None], prefix: str) -> list[str]:
    numbers = {
        key.raw_upper
        for key in (try_parse_location(raw) for raw in locations)
        if key_matches_prefix(key, prefix)
    }
    return natural_sorted(numbers)
