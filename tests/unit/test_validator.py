"""
Unit tests for src/rag/validator.py

Each rule is tested on a minimal draft, then the full synthesis fixture is
used for the ordering, bounds and idempotency properties.
"""

import pytest

from fixtures.sample_jobs import SYNTHESIS_REPLY
from src.rag.schema import CompensationAnalysis
from src.rag.validator import Validator, salary_ceiling


# ===== FIXTURES =====

@pytest.fixture
def validator():
    return Validator()


def _draft(**sections) -> CompensationAnalysis:
    return CompensationAnalysis.model_validate(sections)


def _salary(**values) -> CompensationAnalysis:
    return _draft(compensation={"salaryRange": values})


# ===== TESTS: Salary range =====

class TestSalaryRange:
    """Rules 0-2: ordering, median backfill and the plausible ceiling."""

    def test_reversed_range_swapped(self, validator):
        salary = validator.validate(_salary(min=120000, max=90000, median=100000, currency="USD")).compensation.salary_range
        assert (salary.min, salary.max) == (90000, 120000)

    def test_negative_values_floored(self, validator):
        salary = validator.validate(_salary(min=-5, max=80000, currency="USD")).compensation.salary_range
        assert salary.min == 0
        assert salary.median == 80000

    def test_missing_max_backfilled_from_min(self, validator):
        salary = validator.validate(_salary(min=70000, max=0, currency="EUR")).compensation.salary_range
        assert salary.max == 70000
        assert salary.median == 70000

    def test_median_only_fills_range(self, validator):
        """{0, 0, median 90k} keeps the estimate instead of wiping it."""
        draft = _draft(compensation={
            "salaryRange": {"min": 0, "max": 0, "median": 90000, "currency": "USD"},
            "totalCompensation": {"base": 0, "bonus": 0, "total": 0},
        })
        analysis = validator.validate(draft)
        salary = analysis.compensation.salary_range

        assert (salary.min, salary.median, salary.max) == (90000, 90000, 90000)
        assert analysis.compensation.total_compensation.base == 90000
        assert analysis.compensation.total_compensation.total == 90000

    def test_median_backfilled_as_rounded_mean(self, validator):
        salary = validator.validate(_salary(min=90001, max=120000, currency="USD")).compensation.salary_range
        assert salary.median == 105000

    def test_median_clamped_into_range(self, validator):
        salary = validator.validate(_salary(min=90000, max=120000, median=150000, currency="USD")).compensation.salary_range
        assert salary.median == 120000

    def test_unrealistic_usd_range_clamped(self, validator):
        """{2M, 3M, median 0, USD} -> bounded by 500k, median is their mean."""
        salary = validator.validate(
            _salary(min=2_000_000, max=3_000_000, median=0, currency="USD")
        ).compensation.salary_range

        assert salary.min <= 500_000
        assert salary.max <= 500_000
        assert salary.median == round((salary.min + salary.max) / 2)

    def test_ceiling_scales_with_currency(self, validator):
        """A KRW salary in the tens of millions is not clamped."""
        salary = validator.validate(
            _salary(min=60_000_000, max=90_000_000, currency="KRW")
        ).compensation.salary_range

        assert salary.max == 90_000_000
        assert salary_ceiling("krw") == 500_000_000
        assert salary_ceiling("") == 500_000


# ===== TESTS: Total compensation =====

class TestTotalCompensation:
    """Rule 3: base and total backfill."""

    def test_base_and_total_backfilled(self, validator):
        draft = _draft(compensation={
            "salaryRange": {"min": 100000, "max": 120000, "median": 110000},
            "totalCompensation": {"base": 0, "bonus": 10000, "equity": 5000, "benefits": 0, "total": 0},
        })
        total = validator.validate(draft).compensation.total_compensation

        assert total.base == 110000
        assert total.total == 125000

    def test_total_below_base_recomputed(self, validator):
        draft = _draft(compensation={"totalCompensation": {"base": 100000, "bonus": 5000, "total": 50000}})
        assert validator.validate(draft).compensation.total_compensation.total == 105000


# ===== TESTS: Housing =====

class TestHousing:
    """Rule 4: de-scaling and the monthly band."""

    @pytest.mark.parametrize(
        "raw,expected",
        [(2400, 2400), (2_400_000, 2400), (60_000_000, 50000), (0, 100), (-50, 100)],
    )
    def test_housing_band(self, validator, raw, expected):
        analysis = validator.validate(_draft(location={"housingCosts": raw}))
        assert analysis.location.housing_costs == expected


# ===== TESTS: Taxes =====

class TestTaxes:
    """Rule 5: rates as decimals, total backfill."""

    def test_percentages_converted_and_total_backfilled(self, validator):
        """{25, 8, 2, total 0} -> {0.25, 0.08, 0.02, 0.35}."""
        draft = _draft(location={"taxes": {"federal": 25, "state": 8, "local": 2, "total": 0}})
        taxes = validator.validate(draft).location.taxes

        assert (taxes.federal, taxes.state, taxes.local, taxes.total) == (0.25, 0.08, 0.02, 0.35)

    def test_decimal_rates_untouched(self, validator):
        draft = _draft(location={"taxes": {"federal": 0.22, "state": 0.05, "local": 0, "total": 0.27}})
        taxes = validator.validate(draft).location.taxes
        assert (taxes.federal, taxes.total) == (0.22, 0.27)

    def test_rates_rounded_to_four_places(self, validator):
        draft = _draft(location={"taxes": {"federal": 3.876}})
        assert validator.validate(draft).location.taxes.federal == 0.0388

    def test_absurd_rate_clamped(self, validator):
        draft = _draft(location={"taxes": {"federal": 250}})
        assert validator.validate(draft).location.taxes.federal == 1.0


# ===== TESTS: Market and scores =====

class TestMarketAndScores:
    """Rules 6-7."""

    def test_growth_percentage_converted(self, validator):
        assert validator.validate(_draft(market={"growth": 15})).market.growth == 0.15

    def test_large_growth_capped(self, validator):
        assert validator.validate(_draft(market={"growth": 250})).market.growth == 1.0

    def test_small_growth_kept(self, validator):
        assert validator.validate(_draft(market={"growth": 1.5})).market.growth == 1.5

    def test_negative_growth_bounded(self, validator):
        assert validator.validate(_draft(market={"growth": -3})).market.growth == -1.0

    def test_scores_clamped(self, validator):
        analysis = validator.validate(_draft(
            role={"marketDemand": 140},
            market={"demand": -5, "competition": 101, "timeToHire": -2},
            analysis={"overallScore": 180},
            compensation={"negotiationPower": 12},
        ))

        assert analysis.role.market_demand == 100
        assert analysis.market.demand == 0
        assert analysis.market.competition == 100
        assert analysis.market.time_to_hire == 0
        assert analysis.analysis.overall_score == 100
        assert analysis.compensation.negotiation_power == 10

    def test_confidences_normalized(self, validator):
        analysis = validator.validate(_draft(
            compensation={"salaryRange": {"confidence": 85}},
            confidence={"overall": 1.4, "market": -0.1},
        ))

        assert analysis.compensation.salary_range.confidence == 0.85
        assert analysis.confidence.overall == 1.0
        assert analysis.confidence.market == 0.0


# ===== TESTS: Properties on a full draft =====

class TestProperties:
    """Ordering, bounds, idempotency and non-mutation on a realistic draft."""

    def test_full_draft(self, validator):
        analysis = validator.validate(CompensationAnalysis.model_validate(SYNTHESIS_REPLY))
        salary = analysis.compensation.salary_range
        taxes = analysis.location.taxes

        assert salary.min <= salary.median <= salary.max
        assert (salary.min, salary.median, salary.max) == (150000, 170000, 190000)
        assert analysis.compensation.total_compensation.total == 217000
        assert analysis.location.housing_costs == 50000
        assert taxes.total == 0.3273
        assert all(0 <= rate <= 1 for rate in (taxes.federal, taxes.state, taxes.local, taxes.total))
        assert analysis.market.growth <= 2.0

    def test_idempotent(self, validator):
        once = validator.validate(CompensationAnalysis.model_validate(SYNTHESIS_REPLY))
        twice, corrections = validator.validate_with_report(once)

        assert twice == once
        assert corrections == []

    @pytest.mark.parametrize("draft", [
        _salary(min=120000, max=90000, median=100000, currency="USD"),
        _salary(min=2_000_000, max=3_000_000, median=0, currency="USD"),
        _salary(min=0, max=0, median=90000, currency="USD"),
        _draft(location={"housingCosts": 2_400_000}),
        _draft(location={"housingCosts": 60_000_000}),
        _draft(location={"taxes": {"federal": 25, "state": 8, "local": 2, "total": 0}}),
        _draft(market={"growth": 250}),
        _draft(compensation={"salaryRange": {"confidence": 85}}, confidence={"overall": 1.4, "market": -0.1}),
    ], ids=["reversed", "ceiling", "median-only", "housing-annual", "housing-huge", "tax-percent", "growth", "confidence"])
    def test_idempotent_on_corrected_drafts(self, validator, draft):
        once = validator.validate(draft)
        twice, corrections = validator.validate_with_report(once)

        assert twice == once
        assert corrections == []

    def test_input_not_mutated(self, validator):
        draft = _salary(min=120000, max=90000)
        validator.validate(draft)
        assert draft.compensation.salary_range.min == 120000

    def test_report_lists_corrections(self, validator):
        _, corrections = validator.validate_with_report(_salary(min=120000, max=90000, currency="USD"))
        fields = {correction.field for correction in corrections}
        assert "compensation.salaryRange.min" in fields
        assert "compensation.salaryRange.median" in fields
