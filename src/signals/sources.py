"""
The signal sources: job-description analysis plus eight market sources.

Base confidences reflect how authoritative each kind of source is:
official labor statistics and economic data rank highest, sentiment lowest.
"""

import logging
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator
from pydantic.alias_generators import to_camel

from src.signals import prompts
from src.signals.base import SignalSource
from src.signals.types import (
    COMPANY_INTELLIGENCE,
    COMPETITOR_ANALYSIS,
    COST_OF_LIVING,
    ECONOMIC_INDICATORS,
    INDUSTRY_TRENDS,
    JOB_ANALYSIS,
    JOB_MARKET,
    LABOR_STATISTICS,
    MARKET_SENTIMENT,
    Signal,
)

logger = logging.getLogger(__name__)

DEFAULT_JOB_TITLE = "Unknown Position"
DEFAULT_INDUSTRY = "General"
FALLBACK_OCCUPATION = "Software Engineer"
FALLBACK_INDUSTRY = "Technology"

_REMOTE_POLICIES = ("onsite", "hybrid", "remote")


# ===== JOB ATTRIBUTES SCHEMA =====

class PostedSalaryRange(BaseModel):
    min: float = 0
    max: float = 0
    currency: str = ""

    @field_validator("min", "max", mode="before")
    @classmethod
    def _none_to_zero(cls, value: Any) -> Any:
        return 0 if value is None else value

    @field_validator("currency", mode="before")
    @classmethod
    def _upper_currency(cls, value: Any) -> str:
        return str(value or "").strip().upper()


class JobAttributes(BaseModel):
    """
    Structured attributes classified from the job description.

    Every field has a default so a partial reply still yields usable
    attributes. Unknown keys in the reply are kept.
    """

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, extra="allow")

    job_title: str = DEFAULT_JOB_TITLE
    seniority_level: str = "mid"
    industry: str = DEFAULT_INDUSTRY
    skills: List[str] = Field(default_factory=list)
    experience_required: float = 0
    remote_policy: str = "onsite"
    normalized_location: Optional[str] = None
    job_type: str = "fulltime"
    compensation_model: str = "salary"
    compensation_mentioned: bool = False
    equity_mentioned: bool = False
    benefits_mentioned: List[str] = Field(default_factory=list)
    salary_range: Optional[PostedSalaryRange] = None
    is_posted_salary: bool = False

    @field_validator("job_title", "industry", "seniority_level", "job_type", "compensation_model", mode="before")
    @classmethod
    def _blank_to_default(cls, value: Any, info) -> Any:
        if value is None or (isinstance(value, str) and not value.strip()):
            return cls.model_fields[info.field_name].default
        return value

    @field_validator("remote_policy", mode="before")
    @classmethod
    def _normalize_remote_policy(cls, value: Any) -> str:
        policy = str(value or "").strip().lower().replace("-", "")
        return policy if policy in _REMOTE_POLICIES else "onsite"

    @field_validator("experience_required", mode="before")
    @classmethod
    def _coerce_years(cls, value: Any) -> Any:
        if value is None or isinstance(value, bool):
            return 0
        if isinstance(value, str):
            digits = "".join(ch for ch in value if ch.isdigit() or ch == ".")
            return float(digits) if digits else 0
        return value

    @field_validator("skills", "benefits_mentioned", mode="before")
    @classmethod
    def _coerce_list(cls, value: Any) -> Any:
        if value is None:
            return []
        if isinstance(value, str):
            return [item.strip() for item in value.split(",") if item.strip()]
        return value

    @model_validator(mode="after")
    def _posted_salary_needs_figures(self) -> "JobAttributes":
        if self.is_posted_salary and (self.salary_range is None or self.salary_range.max <= 0):
            self.is_posted_salary = False
        return self

    @property
    def is_remote(self) -> bool:
        return self.remote_policy == "remote"

    @classmethod
    def from_signal(cls, signal: Signal) -> "JobAttributes":
        """Attributes from a job-analysis signal, defaulted when it degraded."""
        if signal.error is not None:
            return cls()
        try:
            return cls.model_validate(dict(signal.payload))
        except ValueError as e:
            logger.warning(f"[JobAttributes] Falling back to defaults: {e}")
            return cls()


# ===== JOB DESCRIPTION ANALYZER =====

class JobDescriptionAnalyzer(SignalSource):
    """Classifies free-text job descriptions into JobAttributes."""

    source_id = JOB_ANALYSIS
    step_name = "job_analysis"
    base_confidence = 0.90

    def build_prompt(self, job_text: str, **_: Any) -> str:
        return prompts.JOB_ANALYSIS_PROMPT.format(job_text=job_text.strip())

    def shape_payload(self, data: Dict[str, Any], **_: Any) -> Dict[str, Any]:
        return JobAttributes.model_validate(data).model_dump(by_alias=True)


# ===== SALARY SOURCES =====

class LaborStatisticsSource(SignalSource):
    """Official wage statistics for an occupation and location."""

    source_id = LABOR_STATISTICS
    step_name = "labor_statistics"
    base_confidence = 0.95

    def build_prompt(self, occupation: str, location: str, **_: Any) -> str:
        return prompts.LABOR_STATISTICS_PROMPT.format(occupation=occupation, location=location)


class JobMarketSource(SignalSource):
    """Live postings, offered salary ranges and demand for a title."""

    source_id = JOB_MARKET
    step_name = "job_market"
    base_confidence = 0.85

    def build_prompt(self, job_title: str, location: str, company: Optional[str] = None, **_: Any) -> str:
        company_clause = f" at {company}" if company else ""
        return prompts.JOB_MARKET_PROMPT.format(
            job_title=job_title, location=location, company_clause=company_clause
        )


# ===== LOCATION SOURCES =====

class CostOfLivingSource(SignalSource):
    source_id = COST_OF_LIVING
    step_name = "cost_of_living"
    base_confidence = 0.90

    def build_prompt(self, location: str, **_: Any) -> str:
        return prompts.COST_OF_LIVING_PROMPT.format(location=location)


class EconomicIndicatorsSource(SignalSource):
    source_id = ECONOMIC_INDICATORS
    step_name = "economic_indicators"
    base_confidence = 0.90

    def build_prompt(self, location: str, **_: Any) -> str:
        return prompts.ECONOMIC_INDICATORS_PROMPT.format(location=location)


# ===== COMPANY AND SECTOR SOURCES =====

class CompanyIntelligenceSource(SignalSource):
    """
    Funding, size and compensation philosophy of the hiring company.

    Only consulted when the request names a company.
    """

    source_id = COMPANY_INTELLIGENCE
    step_name = "company_intelligence"
    base_confidence = 0.80

    def build_prompt(self, company: str, **_: Any) -> str:
        return prompts.COMPANY_INTELLIGENCE_PROMPT.format(company=company)


class IndustryTrendsSource(SignalSource):
    source_id = INDUSTRY_TRENDS
    step_name = "industry_trends"
    base_confidence = 0.75

    def build_prompt(self, industry: str, job_title: str, **_: Any) -> str:
        return prompts.INDUSTRY_TRENDS_PROMPT.format(industry=industry, job_title=job_title)


class MarketSentimentSource(SignalSource):
    source_id = MARKET_SENTIMENT
    step_name = "market_sentiment"
    base_confidence = 0.70

    def build_prompt(self, job_title: str, industry: str, **_: Any) -> str:
        return prompts.MARKET_SENTIMENT_PROMPT.format(job_title=job_title, industry=industry)


class CompetitorAnalysisSource(SignalSource):
    source_id = COMPETITOR_ANALYSIS
    step_name = "competitor_analysis"
    base_confidence = 0.75

    def build_prompt(self, job_title: str, location: str, company: Optional[str] = None, **_: Any) -> str:
        company_clause = f" competing with {company}" if company else ""
        return prompts.COMPETITOR_ANALYSIS_PROMPT.format(
            job_title=job_title, location=location, company_clause=company_clause
        )
