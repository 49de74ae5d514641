"""
Unit tests for src/rag/schema.py lenient number coercion.
"""

import pytest

from src.rag.schema import CompensationAnalysis, to_number


class TestToNumber:
    """Tests for to_number on completion-style values."""

    @pytest.mark.parametrize("raw,expected", [
        ("$120,000", 120000.0),
        ("85k", 85000.0),
        ("1.5M", 1_500_000.0),
        ("25%", 25.0),
        ("1.2e5", 120000.0),
        ("3.5E4", 35000.0),
        ("-2e-2", -0.02),
        (None, 0.0),
        ("n/a", 0.0),
    ])
    def test_coercion(self, raw, expected):
        assert to_number(raw) == pytest.approx(expected)

    def test_overflowing_exponent_is_zero(self):
        assert to_number("1e400") == 0.0

    def test_exponent_reaches_model_fields(self):
        analysis = CompensationAnalysis.model_validate(
            {"compensation": {"salaryRange": {"min": "9.5e4", "max": "1.2e5"}}}
        )
        salary = analysis.compensation.salary_range

        assert salary.min == 95000
        assert salary.max == 120000
