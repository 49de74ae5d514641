"""
Signal sources for compensation analysis.

Each source wraps one completion call with a source-specific prompt and
returns an immutable, confidence-tagged Signal. Sources never raise for
ordinary failures; they degrade to an error signal instead.
"""

from .types import Signal, RAGContext
from .base import SignalSource
from .sources import (
    CompanyIntelligenceSource,
    CompetitorAnalysisSource,
    CostOfLivingSource,
    EconomicIndicatorsSource,
    IndustryTrendsSource,
    JobAttributes,
    JobDescriptionAnalyzer,
    JobMarketSource,
    LaborStatisticsSource,
    MarketSentimentSource,
)

__all__ = [
    "Signal",
    "RAGContext",
    "SignalSource",
    "JobAttributes",
    "JobDescriptionAnalyzer",
    "LaborStatisticsSource",
    "CostOfLivingSource",
    "JobMarketSource",
    "CompanyIntelligenceSource",
    "EconomicIndicatorsSource",
    "IndustryTrendsSource",
    "MarketSentimentSource",
    "CompetitorAnalysisSource",
]
