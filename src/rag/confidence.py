"""
ConfidenceScorer: provenance-aware confidence from the gathered signals.

The score describes the evidence, not the model's self-assessment, so it is
computed from the RAGContext alone and replaces whatever confidence block
the synthesis reply carried.
"""

import logging
from statistics import mean

from src.rag.schema import ConfidenceBlock
from src.signals.sources import JobAttributes
from src.signals.types import RAGContext

logger = logging.getLogger(__name__)

POSTED_SALARY = "posted_salary"
MARKET_CALCULATION = "market_calculation"
AI_ESTIMATE = "ai_estimate"

DISCLAIMERS = {
    AI_ESTIMATE: (
        "This salary estimate is generated by AI based on market data and may not "
        "reflect actual compensation for this specific position."
    ),
    MARKET_CALCULATION: "Salary range calculated from current market data and industry benchmarks.",
    POSTED_SALARY: "Salary information extracted from job posting.",
}


def _unit(value: float) -> float:
    return round(min(max(value, 0.0), 1.0), 4)


class ConfidenceScorer:
    """Stateless scorer. Safe to share between requests."""

    def score(self, context: RAGContext) -> ConfidenceBlock:
        """
        Score one context.

        - overall: mean confidence of every non-placeholder signal (0 if none)
        - salary: best salary signal
        - market / location: market-sentiment / cost-of-living confidence
        - estimate_type: posted salary > market calculation > AI estimate
        """
        signals = context.all_signals()
        usable = [signal for signal in signals if not signal.is_placeholder]

        overall = mean(signal.confidence for signal in usable) if usable else 0.0
        salary = max((signal.confidence for signal in context.salary_signals), default=0.0)

        estimate_type = self.classify_estimate(context)

        block = ConfidenceBlock(
            overall=_unit(overall),
            salary=_unit(salary),
            market=_unit(context.market_sentiment.confidence),
            location=_unit(context.cost_of_living.confidence),
            data_sources=[signal.source_id for signal in usable],
            estimate_type=estimate_type,
            disclaimer=DISCLAIMERS[estimate_type],
        )
        logger.info(
            f"[ConfidenceScorer] overall={block.overall:.2f} salary={block.salary:.2f} "
            f"estimate={estimate_type} sources={len(usable)}/{len(signals)}"
        )
        return block

    @staticmethod
    def classify_estimate(context: RAGContext) -> str:
        """
        Salary provenance.

        A posted salary wins. Otherwise a healthy (non-degraded) market-style
        salary signal makes it a market calculation. Everything else is an
        AI estimate.
        """
        if JobAttributes.from_signal(context.job_analysis).is_posted_salary:
            return POSTED_SALARY
        if any(
            "market" in signal.source_id and not signal.is_degraded
            for signal in context.salary_signals
        ):
            return MARKET_CALCULATION
        return AI_ESTIMATE
