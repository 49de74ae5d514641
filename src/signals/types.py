"""
Signal and RAGContext types.

A Signal is one confidence-tagged datum from one source. A RAGContext is the
aggregate of every signal gathered for a single request; it is built fresh
per uncached request and never persisted.
"""

from dataclasses import dataclass, field
from datetime import datetime, timezone
from types import MappingProxyType
from typing import Any, Dict, List, Mapping, Optional

# Source identifiers
JOB_ANALYSIS = "job-analysis"
LABOR_STATISTICS = "labor-statistics"
JOB_MARKET = "job-market"
COST_OF_LIVING = "cost-of-living"
COMPANY_INTELLIGENCE = "company-intelligence"
ECONOMIC_INDICATORS = "economic-indicators"
INDUSTRY_TRENDS = "industry-trends"
MARKET_SENTIMENT = "market-sentiment"
COMPETITOR_ANALYSIS = "competitor-analysis"

ERROR_CONFIDENCE = 0.3
PLACEHOLDER_CONFIDENCE = 0.0
GLOBAL_REMOTE = "Global Remote"


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


@dataclass(frozen=True)
class Signal:
    """
    One piece of evidence from one source.

    Attributes:
        source_id: Stable source name, e.g. "labor-statistics"
        confidence: Source reliability in [0, 1]; 0 marks an unusable placeholder
        timestamp: When the signal was produced (UTC)
        payload: Source-specific loose map (read-only view)
    """

    source_id: str
    confidence: float
    payload: Mapping[str, Any] = field(default_factory=dict, hash=False)
    timestamp: datetime = field(default_factory=_utcnow, compare=False)

    def __post_init__(self):
        confidence = min(max(float(self.confidence), 0.0), 1.0)
        object.__setattr__(self, "confidence", confidence)
        object.__setattr__(self, "payload", MappingProxyType(dict(self.payload)))

    @property
    def is_placeholder(self) -> bool:
        return self.confidence <= PLACEHOLDER_CONFIDENCE

    @property
    def error(self) -> Optional[str]:
        value = self.payload.get("error")
        return str(value) if value else None

    @property
    def is_degraded(self) -> bool:
        """True for placeholders and for signals that carry an error marker."""
        return self.is_placeholder or self.error is not None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "source": self.source_id,
            "confidence": self.confidence,
            "timestamp": self.timestamp.isoformat(),
            "data": dict(self.payload),
        }

    @classmethod
    def error_signal(cls, source_id: str, reason: str) -> "Signal":
        """Low-confidence signal recording why a source failed."""
        return cls(source_id=source_id, confidence=ERROR_CONFIDENCE, payload={"error": reason})

    @classmethod
    def placeholder(cls, source_id: str, reason: str) -> "Signal":
        """Zero-confidence signal for a source that was not consulted."""
        return cls(source_id=source_id, confidence=PLACEHOLDER_CONFIDENCE, payload={"reason": reason})


@dataclass
class RAGContext:
    """
    Aggregation root for one analysis request.

    Attributes:
        job_analysis: Classified job attributes plus resolved location fields
        salary_signals: Labor statistics then job market
        job_location: Where the job says it is (None if unknown)
        user_location: Where the user is (None if not provided)
        effective_location: Location used for cost/economic lookups
        is_remote: Whether the job is remote
        degraded_sources: Source ids that fell back to error or placeholder signals
    """

    job_analysis: Signal
    salary_signals: List[Signal]
    cost_of_living: Signal
    economic_indicators: Signal
    company_intelligence: Signal
    industry_trends: Signal
    market_sentiment: Signal
    competitor_analysis: Signal
    effective_location: str = GLOBAL_REMOTE
    job_location: Optional[str] = None
    user_location: Optional[str] = None
    is_remote: bool = False
    degraded_sources: List[str] = field(default_factory=list)

    def all_signals(self) -> List[Signal]:
        """Every signal in the context, job analysis first."""
        return [
            self.job_analysis,
            *self.salary_signals,
            self.cost_of_living,
            self.economic_indicators,
            self.company_intelligence,
            self.industry_trends,
            self.market_sentiment,
            self.competitor_analysis,
        ]

    def signal(self, source_id: str) -> Optional[Signal]:
        for signal in self.all_signals():
            if signal.source_id == source_id:
                return signal
        return None

    def location_facts(self) -> Dict[str, Any]:
        """Location fields the analysis must echo verbatim."""
        return {
            "jobLocation": self.job_location or self.effective_location,
            "userLocation": self.user_location,
            "isRemote": self.is_remote,
            "effectiveLocation": self.effective_location,
        }
