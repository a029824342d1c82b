"""
Tests for Dynamic Value Access

Tests cover value classification, strict accessors and lenient converters.
"""

import pytest
import xmlrpc.client
from datetime import datetime, timezone, timedelta
import sys
import os

# Add parent directory to path for imports
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from data.dynamic import (
    ValueKind, kind_of, expect_map, expect_list, expect_string, expect_bool, first_value,
    to_string, to_bool, to_int, to_string_list, to_utc_datetime,
)
from utils.exceptions import ParsingError


class TestKindOf:
    """Tests for kind_of classification."""

    @pytest.mark.parametrize("value,kind", [
        ({}, ValueKind.MAP),
        ([], ValueKind.LIST),
        ("x", ValueKind.STRING),
        (True, ValueKind.BOOL),
        (3, ValueKind.NUMBER),
        (2.5, ValueKind.NUMBER),
        (None, ValueKind.NULL),
        (datetime(2024, 1, 1), ValueKind.DATETIME),
        (xmlrpc.client.DateTime("20240101T00:00:00"), ValueKind.DATETIME),
        (xmlrpc.client.Binary(b"abc"), ValueKind.BYTES),
    ])
    def test_classification(self, value, kind):
        assert kind_of(value) is kind

    def test_bool_is_not_a_number(self):
        assert kind_of(False) is ValueKind.BOOL

    def test_unknown_type_raises(self):
        with pytest.raises(ParsingError):
            kind_of(object())


class TestStrictAccessors:
    """Tests for expect_* helpers."""

    def test_expect_map_accepts_map(self):
        assert expect_map({"a": 1}) == {"a": 1}

    def test_expect_map_rejects_list(self):
        with pytest.raises(ParsingError, match="expected map but got list"):
            expect_map([1], "the post")

    def test_expect_list_accepts_tuple(self):
        assert expect_list((1, 2)) == [1, 2]

    def test_expect_string_rejects_number(self):
        with pytest.raises(ParsingError):
            expect_string(5)

    def test_expect_bool_rejects_int(self):
        with pytest.raises(ParsingError):
            expect_bool(1)

    def test_first_value_of_empty_result(self):
        with pytest.raises(ParsingError, match="empty response"):
            first_value([])

    def test_first_value_of_non_list(self):
        with pytest.raises(ParsingError):
            first_value("42")


class TestLenientConverters:
    """Tests for to_* converters."""

    def test_to_string(self):
        assert to_string("a") == "a"
        assert to_string(7) == "7"
        assert to_string(None) == ""
        assert to_string({"a": 1}, "fallback") == "fallback"
        assert to_string(xmlrpc.client.Binary(b"hi")) == "hi"

    def test_to_bool(self):
        assert to_bool(True) is True
        assert to_bool(0) is False
        assert to_bool("1") is True
        assert to_bool("closed") is False
        assert to_bool([], default=True) is True

    def test_to_int(self):
        assert to_int("12") == 12
        assert to_int(3.9) == 3
        assert to_int("x", default=-1) == -1

    def test_to_string_list_skips_empty(self):
        assert to_string_list(["a", "", 3]) == ["a", "3"]
        assert to_string_list("a") == []


class TestToUtcDatetime:
    """Tests for to_utc_datetime."""

    def test_naive_datetime_is_utc(self):
        value = to_utc_datetime(datetime(2024, 1, 1, 12, 0))
        assert value == datetime(2024, 1, 1, 12, 0, tzinfo=timezone.utc)

    def test_aware_datetime_is_converted(self):
        plus_two = timezone(timedelta(hours=2))
        value = to_utc_datetime(datetime(2024, 1, 1, 12, 0, tzinfo=plus_two))
        assert value == datetime(2024, 1, 1, 10, 0, tzinfo=timezone.utc)

    def test_xmlrpc_datetime(self):
        value = to_utc_datetime(xmlrpc.client.DateTime("20240102T03:04:05"))
        assert value == datetime(2024, 1, 2, 3, 4, 5, tzinfo=timezone.utc)

    def test_iso_string(self):
        value = to_utc_datetime("2024-01-02T03:04:05Z")
        assert value == datetime(2024, 1, 2, 3, 4, 5, tzinfo=timezone.utc)

    def test_xmlrpc_string_format(self):
        value = to_utc_datetime("20240102T03:04:05")
        assert value == datetime(2024, 1, 2, 3, 4, 5, tzinfo=timezone.utc)

    @pytest.mark.parametrize("value", [None, "", "not a date", 42, {}])
    def test_invalid_gives_none(self, value):
        assert to_utc_datetime(value) is None
