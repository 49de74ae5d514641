"""
CompensationAnalysis schema.

Pydantic models for the structured analysis. The wire shape is camelCase
(``salaryRange``, ``effectiveLocation``); Python code uses snake_case
attributes. Every field has a default, and inputs are coerced leniently:
completion output routinely carries numbers as strings ("$120,000", "25%"),
nulls where zero is meant, and enum values outside the allowed set.

Numeric sanity (ordering, decimal rates, ceilings) is NOT enforced here;
that is the Validator's job, so it can log every correction it makes.
"""

import math
import re
from typing import Annotated, Any, Callable, List, Literal, Optional, Tuple

from pydantic import BaseModel, BeforeValidator, ConfigDict, Field
from pydantic.alias_generators import to_camel

FAILED_TITLE = "Analysis Failed"
PARSE_FAILURE_MESSAGE = "Failed to parse AI response"

JOB_TYPES = ("fulltime", "parttime", "contract", "internship")
WORK_MODES = ("onsite", "hybrid", "remote")
COMPENSATION_MODELS = ("salary", "hourly", "commission", "equity_heavy")
ESTIMATE_TYPES = ("posted_salary", "ai_estimate", "market_calculation")

_NUMBER_PATTERN = re.compile(r"-?\d+(?:\.\d+)?(?:e[-+]?\d+)?")


# ===== LENIENT COERCION =====

def to_number(value: Any) -> float:
    """
    Best-effort numeric coercion for completion output.

    Example:
        >>> to_number("$120,000")
        120000.0
        >>> to_number("85k")
        85000.0
        >>> to_number(None)
        0.0
    """
    if value is None:
        return 0.0
    if isinstance(value, bool):
        return float(value)
    if isinstance(value, (int, float)):
        return float(value) if math.isfinite(value) else 0.0
    if isinstance(value, str):
        text = value.replace(",", "").replace("_", "").strip().lower()
        match = _NUMBER_PATTERN.search(text)
        if not match:
            return 0.0
        number = float(match.group(0))
        if not math.isfinite(number):
            return 0.0
        suffix = text[match.end():match.end() + 1]
        if suffix == "k":
            number *= 1_000
        elif suffix == "m":
            number *= 1_000_000
        return number
    return 0.0


def _to_text(value: Any) -> str:
    if value is None:
        return ""
    return value if isinstance(value, str) else str(value)


def _to_text_list(value: Any) -> List[str]:
    if value is None:
        return []
    if isinstance(value, str):
        return [value] if value.strip() else []
    if isinstance(value, (list, tuple)):
        return [_to_text(item) for item in value if item is not None]
    return [_to_text(value)]


def _to_bool(value: Any) -> bool:
    if isinstance(value, str):
        return value.strip().lower() in ("true", "yes", "1")
    return bool(value)


def _choice(allowed: Tuple[str, ...], default: str) -> Callable[[Any], str]:
    """Map free-form enum text onto the allowed set ("Full-Time" -> "fulltime")."""

    def normalize(value: Any) -> str:
        text = _to_text(value).strip().lower()
        for candidate in (text, text.replace("-", "").replace(" ", "").replace("_", ""),
                          text.replace("-", "_").replace(" ", "_")):
            if candidate in allowed:
                return candidate
        return default

    return normalize


Number = Annotated[float, BeforeValidator(to_number)]
Text = Annotated[str, BeforeValidator(_to_text)]
TextList = Annotated[List[str], BeforeValidator(_to_text_list)]
Flag = Annotated[bool, BeforeValidator(_to_bool)]

JobType = Annotated[Literal["fulltime", "parttime", "contract", "internship"],
                    BeforeValidator(_choice(JOB_TYPES, "fulltime"))]
WorkMode = Annotated[Literal["onsite", "hybrid", "remote"],
                     BeforeValidator(_choice(WORK_MODES, "onsite"))]
CompensationModel = Annotated[Literal["salary", "hourly", "commission", "equity_heavy"],
                              BeforeValidator(_choice(COMPENSATION_MODELS, "salary"))]
EstimateType = Annotated[Literal["posted_salary", "ai_estimate", "market_calculation"],
                         BeforeValidator(_choice(ESTIMATE_TYPES, "ai_estimate"))]


def _none_to_empty(value: Any) -> Any:
    return {} if value is None else value


class AnalysisModel(BaseModel):
    """Base for all analysis models: camelCase wire names, unknown keys dropped."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, extra="ignore")


# ===== ROLE =====

class RoleInfo(AnalysisModel):
    title: Text = ""
    normalized_title: Text = ""
    seniority_level: Text = ""
    industry: Text = ""
    skills_required: TextList = Field(default_factory=list)
    experience_level: Number = 0
    market_demand: Number = 0
    job_type: JobType = "fulltime"
    work_mode: WorkMode = "onsite"
    compensation_model: CompensationModel = "salary"


# ===== COMPENSATION =====

class SalaryRange(AnalysisModel):
    min: Number = 0
    max: Number = 0
    median: Number = 0
    currency: Text = ""
    confidence: Number = 0


class TotalCompensation(AnalysisModel):
    base: Number = 0
    bonus: Number = 0
    equity: Number = 0
    benefits: Number = 0
    total: Number = 0


class CompensationInfo(AnalysisModel):
    salary_range: Annotated[SalaryRange, BeforeValidator(_none_to_empty)] = Field(default_factory=SalaryRange)
    total_compensation: Annotated[TotalCompensation, BeforeValidator(_none_to_empty)] = Field(
        default_factory=TotalCompensation
    )
    market_position: Text = ""
    negotiation_power: Number = 0


# ===== LOCATION =====

class Taxes(AnalysisModel):
    """Tax rates as decimals (0.25 == 25%)."""

    federal: Number = 0
    state: Number = 0
    local: Number = 0
    total: Number = 0


class SalaryAdjustment(AnalysisModel):
    factor: Number = 1.0
    reason: Text = ""


class LocationInfo(AnalysisModel):
    job_location: Text = ""
    user_location: Optional[str] = None
    is_remote: Flag = False
    effective_location: Text = ""
    cost_of_living: Number = 0
    housing_costs: Number = 0
    taxes: Annotated[Taxes, BeforeValidator(_none_to_empty)] = Field(default_factory=Taxes)
    quality_of_life: Number = 0
    market_multiplier: Number = 1.0
    salary_adjustment: Optional[SalaryAdjustment] = None


# ===== MARKET & ANALYSIS =====

class MarketInfo(AnalysisModel):
    demand: Number = 0
    competition: Number = 0
    growth: Number = 0
    outlook: Text = ""
    time_to_hire: Number = 0
    alternatives: Number = 0


class AnalysisSummary(AnalysisModel):
    overall_score: Number = 0
    pros: TextList = Field(default_factory=list)
    cons: TextList = Field(default_factory=list)
    risks: TextList = Field(default_factory=list)
    opportunities: TextList = Field(default_factory=list)
    recommendations: TextList = Field(default_factory=list)


class ConfidenceBlock(AnalysisModel):
    """Provenance-aware confidence, every score in [0, 1]."""

    overall: Number = 0
    salary: Number = 0
    market: Number = 0
    location: Number = 0
    data_sources: TextList = Field(default_factory=list)
    estimate_type: EstimateType = "ai_estimate"
    disclaimer: Optional[str] = None
    error: Optional[str] = None


# ===== ROOT =====

class CompensationAnalysis(AnalysisModel):
    """The full structured analysis for one job."""

    role: Annotated[RoleInfo, BeforeValidator(_none_to_empty)] = Field(default_factory=RoleInfo)
    compensation: Annotated[CompensationInfo, BeforeValidator(_none_to_empty)] = Field(
        default_factory=CompensationInfo
    )
    location: Annotated[LocationInfo, BeforeValidator(_none_to_empty)] = Field(default_factory=LocationInfo)
    market: Annotated[MarketInfo, BeforeValidator(_none_to_empty)] = Field(default_factory=MarketInfo)
    analysis: Annotated[AnalysisSummary, BeforeValidator(_none_to_empty)] = Field(
        default_factory=AnalysisSummary
    )
    confidence: Annotated[ConfidenceBlock, BeforeValidator(_none_to_empty)] = Field(
        default_factory=ConfidenceBlock
    )

    @property
    def is_failure(self) -> bool:
        """True for the zero-confidence sentinel returned on synthesis parse failure."""
        return self.role.title == FAILED_TITLE

    def to_dict(self) -> dict:
        """camelCase, JSON-ready dict."""
        return self.model_dump(by_alias=True, mode="json")

    @classmethod
    def from_dict(cls, data: dict) -> "CompensationAnalysis":
        return cls.model_validate(data)


def failure_analysis(
    job_location: Optional[str] = None,
    user_location: Optional[str] = None,
    is_remote: bool = False,
    effective_location: Optional[str] = None,
) -> CompensationAnalysis:
    """
    The sentinel analysis returned when synthesis output cannot be parsed.

    Zero compensation, zero confidence, and a con naming the parse failure.
    No currency is guessed.
    """
    return CompensationAnalysis(
        role=RoleInfo(
            title=FAILED_TITLE,
            normalized_title="Unknown",
            seniority_level="unknown",
            industry="Unknown",
            job_type="fulltime",
            work_mode="hybrid",
            compensation_model="salary",
        ),
        compensation=CompensationInfo(market_position="unknown"),
        location=LocationInfo(
            job_location=job_location or "Unknown",
            user_location=user_location,
            is_remote=is_remote,
            effective_location=effective_location or "Unknown",
        ),
        market=MarketInfo(outlook="unknown"),
        analysis=AnalysisSummary(
            cons=["Failed to analyze job due to AI parsing error"],
            risks=["Analysis unavailable"],
            recommendations=["Please retry the analysis"],
        ),
        confidence=ConfidenceBlock(
            data_sources=["Error"],
            estimate_type="ai_estimate",
            error=PARSE_FAILURE_MESSAGE,
        ),
    )
