"""
Validator/Corrector: numeric repair of a draft CompensationAnalysis.

Rules run in a fixed order and are idempotent: validating an already valid
analysis changes nothing. The input is never mutated; a corrected deep copy
is returned. Every correction is logged at INFO.

Rule order:
    0. Salary range ordering (negatives floored, empty bounds backfilled,
       reversed bounds swapped)
    1. Median backfill
    2. Plausible-ceiling clamp (currency-scaled), median clamped into [min, max]
    3. Total compensation backfill
    4. Housing cost de-scaling and band clamp
    5. Tax rates as decimals, total backfill
    6. Market demand/competition clamp, growth as decimal
    7. Remaining 0-100 scores, negotiation power and confidences
"""

import logging
from typing import Any, List, Tuple

from src.common.errors import ValidationCorrection
from src.rag.schema import CompensationAnalysis

logger = logging.getLogger(__name__)

ANNUAL_SALARY_CEILING = 500_000
HOUSING_MIN = 100.0
HOUSING_MAX = 50_000.0
HOUSING_DESCALE_FACTOR = 1000.0
GROWTH_PERCENT_THRESHOLD = 2.0
GROWTH_MIN = -1.0
GROWTH_MAX = 2.0
TAX_DECIMALS = 4

# Currencies whose typical annual salaries are orders of magnitude larger
# than USD/EUR/GBP figures.
CURRENCY_MAGNITUDE = {
    "JPY": 100,
    "INR": 100,
    "RUB": 100,
    "PHP": 100,
    "THB": 100,
    "KRW": 1000,
    "HUF": 1000,
    "CLP": 1000,
    "COP": 10_000,
    "IDR": 10_000,
    "VND": 10_000,
}


def salary_ceiling(currency: str) -> float:
    """
    Plausible annual-salary ceiling in the given currency.

    Example:
        >>> salary_ceiling("USD")
        500000.0
        >>> salary_ceiling("krw")
        500000000.0
    """
    return float(ANNUAL_SALARY_CEILING * CURRENCY_MAGNITUDE.get((currency or "").strip().upper(), 1))


def _clamp(value: float, low: float, high: float) -> float:
    return min(max(value, low), high)


class _Recorder:
    """Assigns a field and records a correction when the value actually changes."""

    def __init__(self):
        self.corrections: List[ValidationCorrection] = []

    def set(self, obj: Any, attr: str, value: Any, path: str, rule: str) -> None:
        original = getattr(obj, attr)
        if original == value:
            return
        setattr(obj, attr, value)
        self.corrections.append(ValidationCorrection(path, original, value, rule))


class Validator:
    """Stateless corrector. Safe to share between requests."""

    def validate(self, draft: CompensationAnalysis) -> CompensationAnalysis:
        """Return a corrected copy of ``draft``."""
        analysis, _ = self.validate_with_report(draft)
        return analysis

    def validate_with_report(
        self, draft: CompensationAnalysis
    ) -> Tuple[CompensationAnalysis, List[ValidationCorrection]]:
        """Return a corrected copy of ``draft`` and the corrections applied."""
        analysis = draft.model_copy(deep=True)
        recorder = _Recorder()

        self._fix_salary_range(analysis, recorder)
        self._fix_total_compensation(analysis, recorder)
        self._fix_housing(analysis, recorder)
        self._fix_taxes(analysis, recorder)
        self._fix_market(analysis, recorder)
        self._fix_scores(analysis, recorder)

        for correction in recorder.corrections:
            logger.info(f"[Validator] Corrected {correction}")
        if recorder.corrections:
            logger.info(f"[Validator] Applied {len(recorder.corrections)} corrections")

        return analysis, recorder.corrections

    # ===== RULES 0-2: SALARY RANGE =====

    @staticmethod
    def _fix_salary_range(analysis: CompensationAnalysis, recorder: _Recorder) -> None:
        salary = analysis.compensation.salary_range
        path = "compensation.salaryRange"

        for field in ("min", "max", "median"):
            if getattr(salary, field) < 0:
                recorder.set(salary, field, 0.0, f"{path}.{field}", "negative salary floored at 0")

        if salary.min == 0 and salary.max == 0 and salary.median > 0:
            recorder.set(salary, "min", salary.median, f"{path}.min", "missing range backfilled from median")
            recorder.set(salary, "max", salary.median, f"{path}.max", "missing range backfilled from median")
        elif salary.max == 0 and salary.min > 0:
            recorder.set(salary, "max", salary.min, f"{path}.max", "missing max backfilled from min")
        elif salary.min > salary.max:
            low, high = salary.max, salary.min
            recorder.set(salary, "min", low, f"{path}.min", "reversed range swapped")
            recorder.set(salary, "max", high, f"{path}.max", "reversed range swapped")

        if salary.median == 0:
            if salary.min and salary.max:
                median = float(round((salary.min + salary.max) / 2))
            else:
                median = salary.min or salary.max
            recorder.set(salary, "median", median, f"{path}.median", "median backfilled")

        ceiling = salary_ceiling(salary.currency)
        if salary.min > ceiling or salary.max > ceiling:
            logger.warning(
                f"[Validator] Unrealistic salary range {salary.min:.0f}-{salary.max:.0f} "
                f"{salary.currency or '(no currency)'}, clamping to {ceiling:.0f}"
            )
            recorder.set(salary, "min", min(salary.min, ceiling), f"{path}.min", "salary ceiling")
            recorder.set(salary, "max", min(salary.max, ceiling), f"{path}.max", "salary ceiling")
            recorder.set(
                salary, "median", float(round((salary.min + salary.max) / 2)),
                f"{path}.median", "median recomputed after ceiling clamp",
            )

        recorder.set(
            salary, "median", _clamp(salary.median, salary.min, salary.max),
            f"{path}.median", "median clamped into range",
        )

    # ===== RULE 3: TOTAL COMPENSATION =====

    @staticmethod
    def _fix_total_compensation(analysis: CompensationAnalysis, recorder: _Recorder) -> None:
        total_comp = analysis.compensation.total_compensation
        path = "compensation.totalCompensation"

        for field in ("base", "bonus", "equity", "benefits", "total"):
            if getattr(total_comp, field) < 0:
                recorder.set(total_comp, field, 0.0, f"{path}.{field}", "negative amount floored at 0")

        median = analysis.compensation.salary_range.median
        if total_comp.base == 0 and median > 0:
            recorder.set(total_comp, "base", median, f"{path}.base", "base backfilled from median")

        if total_comp.total == 0 or total_comp.total < total_comp.base:
            components = total_comp.base + total_comp.bonus + total_comp.equity + total_comp.benefits
            recorder.set(total_comp, "total", components, f"{path}.total", "total recomputed from components")

    # ===== RULE 4: HOUSING =====

    @staticmethod
    def _fix_housing(analysis: CompensationAnalysis, recorder: _Recorder) -> None:
        location = analysis.location
        path = "location.housingCosts"

        if location.housing_costs > HOUSING_MAX:
            logger.warning(
                f"[Validator] Unrealistic housing cost {location.housing_costs:.0f}/month, de-scaling"
            )
            recorder.set(
                location, "housing_costs", location.housing_costs / HOUSING_DESCALE_FACTOR,
                path, "annual or mis-scaled housing cost divided by 1000",
            )

        recorder.set(
            location, "housing_costs", _clamp(location.housing_costs, HOUSING_MIN, HOUSING_MAX),
            path, "housing cost clamped to monthly band",
        )

    # ===== RULE 5: TAXES =====

    @staticmethod
    def _normalize_rate(value: float) -> float:
        if value > 1:
            value = value / 100
        return round(_clamp(value, 0.0, 1.0), TAX_DECIMALS)

    @classmethod
    def _fix_taxes(cls, analysis: CompensationAnalysis, recorder: _Recorder) -> None:
        taxes = analysis.location.taxes
        path = "location.taxes"

        for field in ("federal", "state", "local", "total"):
            recorder.set(
                taxes, field, cls._normalize_rate(getattr(taxes, field)),
                f"{path}.{field}", "tax rate normalized to decimal",
            )

        if taxes.total == 0:
            combined = round(_clamp(taxes.federal + taxes.state + taxes.local, 0.0, 1.0), TAX_DECIMALS)
            recorder.set(taxes, "total", combined, f"{path}.total", "total tax rate backfilled")

    # ===== RULE 6: MARKET =====

    @staticmethod
    def _fix_market(analysis: CompensationAnalysis, recorder: _Recorder) -> None:
        market = analysis.market

        recorder.set(market, "demand", _clamp(market.demand, 0.0, 100.0), "market.demand", "clamped to 0-100")
        recorder.set(
            market, "competition", _clamp(market.competition, 0.0, 100.0),
            "market.competition", "clamped to 0-100",
        )

        if market.growth > GROWTH_PERCENT_THRESHOLD:
            recorder.set(
                market, "growth", min(market.growth / 100, 1.0),
                "market.growth", "percentage growth converted to decimal",
            )
        recorder.set(
            market, "growth", _clamp(market.growth, GROWTH_MIN, GROWTH_MAX),
            "market.growth", "growth bounded",
        )

        recorder.set(market, "time_to_hire", max(market.time_to_hire, 0.0), "market.timeToHire", "non-negative")
        recorder.set(market, "alternatives", max(market.alternatives, 0.0), "market.alternatives", "non-negative")

    # ===== RULE 7: REMAINING SCORES =====

    @staticmethod
    def _fix_scores(analysis: CompensationAnalysis, recorder: _Recorder) -> None:
        role = analysis.role
        recorder.set(
            role, "market_demand", _clamp(role.market_demand, 0.0, 100.0),
            "role.marketDemand", "clamped to 0-100",
        )

        location = analysis.location
        recorder.set(
            location, "quality_of_life", _clamp(location.quality_of_life, 0.0, 100.0),
            "location.qualityOfLife", "clamped to 0-100",
        )
        recorder.set(
            location, "cost_of_living", max(location.cost_of_living, 0.0),
            "location.costOfLiving", "non-negative",
        )

        summary = analysis.analysis
        recorder.set(
            summary, "overall_score", _clamp(summary.overall_score, 0.0, 100.0),
            "analysis.overallScore", "clamped to 0-100",
        )

        compensation = analysis.compensation
        recorder.set(
            compensation, "negotiation_power", _clamp(compensation.negotiation_power, 0.0, 10.0),
            "compensation.negotiationPower", "clamped to 0-10",
        )

        salary = compensation.salary_range
        salary_confidence = salary.confidence / 100 if salary.confidence > 1 else salary.confidence
        recorder.set(
            salary, "confidence", _clamp(salary_confidence, 0.0, 1.0),
            "compensation.salaryRange.confidence", "confidence normalized to 0-1",
        )

        confidence = analysis.confidence
        for field, wire in (("overall", "overall"), ("salary", "salary"),
                            ("market", "market"), ("location", "location")):
            recorder.set(
                confidence, field, _clamp(getattr(confidence, field), 0.0, 1.0),
                f"confidence.{wire}", "confidence clamped to 0-1",
            )
