import pytest

from phoneshop.core.exceptions import UnparseableLocationError
from phoneshop.services.locations import (
    LocationKey,
    bundle_numbers,
    enumerate_filter_prefixes,
    natural_compare,
    natural_sorted,
    normalize_prefix_filter,
    parse_location,
    try_parse_location,
)


class TestParseLocation:
    def test_dash_form(self):
        assert parse_location("B-7") == LocationKey(
            prefix_letter="B", has_dash=True, numeric_suffix=7, raw_upper="B-7"
        )

    def test_lowercase_is_normalized(self):
        key = parse_location("c3")
        assert key.prefix_letter == "C"
        assert key.has_dash is False
        assert key.numeric_suffix == 3
        assert key.raw_upper == "C3"

    def test_surrounding_whitespace_is_ignored(self):
        assert parse_location("  a-14 ").raw_upper == "A-14"

    @pytest.mark.parametrize("raw", ["XYZ", "", None, "AB12", "A--1", "12", "A-", "Shelf 3"])
    def test_unparseable(self, raw):
        with pytest.raises(UnparseableLocationError):
            parse_location(raw)
        assert try_parse_location(raw) is None

    def test_filter_prefix_keeps_dash_variant(self):
        assert parse_location("A14").filter_prefix == "A"
        assert parse_location("A-14").filter_prefix == "A-"


class TestNaturalSort:
    def test_numeric_order(self):
        assert natural_sorted(["A10", "A2", "A1"]) == ["A1", "A2", "A10"]

    def test_falls_back_to_string_order_without_digits(self):
        assert natural_compare("FLOOR", "A1") == 1
        assert natural_compare("A1", "FLOOR") == -1

    def test_equal_numbers_tie_break_on_text(self):
        assert natural_sorted(["B2", "A-2", "A2"]) == ["A-2", "A2", "B2"]

    def test_identical_labels(self):
        assert natural_compare("A1", "A1") == 0


class TestPrefixFilters:
    def test_both_forms_surface_as_independent_filters(self):
        assert enumerate_filter_prefixes(["A14", "a-3", "B2", "junk", None]) == ["A", "A-", "B"]

    def test_only_present_forms_are_listed(self):
        assert enumerate_filter_prefixes(["A-1", "A-2"]) == ["A-"]

    @pytest.mark.parametrize("value", [None, "", "  ", "all", "ALL"])
    def test_empty_or_all_means_no_filter(self, value):
        assert normalize_prefix_filter(value) is None

    def test_filter_is_uppercased(self):
        assert normalize_prefix_filter("a-") == "A-"

    @pytest.mark.parametrize("value", ["AB", "1", "A--", "-"])
    def test_invalid_filter(self, value):
        with pytest.raises(ValueError):
            normalize_prefix_filter(value)

    def test_bundle_numbers_respect_dash_variant(self):
        locations = ["A10", "a2", "A-5", "A2", "B1", "junk"]
        assert bundle_numbers(locations, "A") == ["A2", "A10"]
        assert bundle_numbers(locations, "A-") == ["A-5"]
