"""
Unit tests for src/common/utils.py
"""

import asyncio

import pytest

from src.common.utils import (
    format_age,
    format_duration,
    hash_object,
    normalize_location,
    run_async,
)


class TestNormalizeLocation:
    """Tests for normalize_location."""

    @pytest.mark.parametrize(
        "raw,expected",
        [
            ("  New York ", "new york"),
            ("San   Francisco,\tCA", "san francisco, ca"),
            ("", ""),
            (None, ""),
        ],
    )
    def test_normalizes(self, raw, expected):
        assert normalize_location(raw) == expected


class TestHashObject:
    """Tests for hash_object."""

    def test_key_order_independent(self):
        assert hash_object({"a": 1, "b": 2}) == hash_object({"b": 2, "a": 1})

    def test_different_values_differ(self):
        assert hash_object({"rent": 1500}) != hash_object({"rent": 1600})

    def test_length(self):
        assert len(hash_object({"a": 1})) == 8
        assert len(hash_object({"a": 1}, length=12)) == 12


class TestFormatting:
    """Tests for format_age and format_duration."""

    def test_format_age(self):
        assert format_age(5400) == "1.5 hours"
        assert format_age(0) == "0.0 hours"

    def test_negative_age_is_zero(self):
        assert format_age(-30) == "0.0 hours"

    def test_format_duration(self):
        assert format_duration(1234) == "1.23s"


class TestRunAsync:
    """Tests for run_async."""

    def test_without_running_loop(self):
        async def compute():
            return 42

        assert run_async(compute()) == 42

    @pytest.mark.asyncio
    async def test_inside_running_loop(self):
        """Runs the coroutine on a worker thread when a loop is already running."""
        async def compute():
            await asyncio.sleep(0)
            return "done"

        assert run_async(compute()) == "done"
