"""
Unit tests for document value helpers.
"""

import copy
from datetime import datetime, timezone

import pytest

from localcosmos.services.cosmosdb.document import (
    MISSING,
    compare_values,
    get_document_id,
    is_missing,
    is_null_or_missing,
    lookup_key,
    parse_timestamp,
    to_boolean,
    to_number,
    to_text,
)


class TestMissing:
    """Tests for the MISSING sentinel."""

    def test_distinct_from_null(self):
        """Test MISSING is not None."""
        assert MISSING is not None
        assert is_missing(MISSING)
        assert not is_missing(None)
        assert is_null_or_missing(None)
        assert is_null_or_missing(MISSING)

    def test_falsy(self):
        """Test MISSING is falsy."""
        assert not MISSING

    def test_survives_copy(self):
        """Test copies keep the singleton identity."""
        assert copy.deepcopy(MISSING) is MISSING
        assert copy.copy(MISSING) is MISSING


class TestCoercion:
    """Tests for permissive coercion."""

    @pytest.mark.parametrize("value,expected", [
        (30, 30.0),
        (30.5, 30.5),
        ("30", 30.0),
        (" -1.5e2 ", -150.0),
        (10 ** 400, float("inf")),
        (-(10 ** 400), float("-inf")),
        ("abc", None),
        ("30abc", None),
        (True, None),
        (None, None),
        (MISSING, None),
    ])
    def test_to_number(self, value, expected):
        """Test numeric coercion."""
        assert to_number(value) == expected

    @pytest.mark.parametrize("value,expected", [
        (True, True),
        ("false", False),
        ("TRUE", True),
        ("yes", None),
        (1, None),
    ])
    def test_to_boolean(self, value, expected):
        """Test boolean coercion."""
        assert to_boolean(value) is expected

    def test_to_text(self):
        """Test text forms of JSON values."""
        assert to_text("a") == "a"
        assert to_text(True) == "true"
        assert to_text(5) == "5"
        assert to_text({"a": [1, 2]}) == '{"a":[1,2]}'
        assert to_text(None) is None
        assert to_text(MISSING) is None

    def test_parse_timestamp(self):
        """Test ISO timestamps parse as aware datetimes."""
        parsed = parse_timestamp("2024-01-15T10:30:00Z")

        assert parsed == datetime(2024, 1, 15, 10, 30, tzinfo=timezone.utc)
        assert parse_timestamp("2024-01-15") == datetime(2024, 1, 15, tzinfo=timezone.utc)
        assert parse_timestamp("not a date") is None
        assert parse_timestamp(20240115) is None


class TestLookup:
    """Tests for key lookup."""

    def test_exact_match_preferred(self):
        """Test exact key wins over case-insensitive match."""
        assert lookup_key({"Name": "upper", "name": "lower"}, "name") == "lower"

    def test_case_insensitive_fallback(self):
        """Test fallback to case-insensitive key."""
        assert lookup_key({"Name": "Alice"}, "name") == "Alice"

    def test_absent_key(self):
        """Test absent key yields MISSING, present null yields None."""
        assert lookup_key({"a": 1}, "b") is MISSING
        assert lookup_key({"a": None}, "a") is None

    def test_get_document_id(self):
        """Test id with Id fallback."""
        assert get_document_id({"id": "1"}) == "1"
        assert get_document_id({"Id": 7}) == "7"
        assert get_document_id({"name": "x"}) is None


class TestCompareValues:
    """Tests for the generic comparer."""

    def test_null_sorts_first(self):
        """Test null and MISSING sort before values and tie with each other."""
        assert compare_values(None, 0) < 0
        assert compare_values("a", MISSING) > 0
        assert compare_values(None, MISSING) == 0

    def test_numbers(self):
        """Test mixed int/float comparison."""
        assert compare_values(2, 10.5) < 0
        assert compare_values(3.0, 3) == 0

    def test_integers_beyond_float_range(self):
        """Test huge integers compare exactly."""
        assert compare_values(10 ** 400, 10 ** 400 + 1) < 0
        assert compare_values(10 ** 400, 1.5) > 0
        assert compare_values(-(10 ** 400), 0) < 0

    def test_strings_ordinal(self):
        """Test ordinal string comparison."""
        assert compare_values("B", "a") < 0
        assert compare_values("b", "a") > 0

    def test_booleans(self):
        """Test false sorts before true."""
        assert compare_values(False, True) < 0

    def test_mixed_types_use_text(self):
        """Test mixed types compare by text form."""
        assert compare_values(10, "9") < 0
