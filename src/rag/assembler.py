"""
ContextAssembler: job text in, RAGContext out.

Flow:
1. Classify the job description (one completion call).
2. Resolve the effective analysis location.
3. Fan out to the eight market sources concurrently and wait for all of them.
4. Aggregate into a RAGContext, recording which sources degraded.

No retries and no side effects. Cancelling the awaiting task cancels every
in-flight source call.
"""

import asyncio
import logging
from dataclasses import replace
from typing import Any, Awaitable, List, Optional

from src.common.completion import CompletionClient
from src.common.errors import ErrorCollector
from src.signals.base import SignalSource
from src.signals.sources import (
    DEFAULT_INDUSTRY,
    DEFAULT_JOB_TITLE,
    FALLBACK_INDUSTRY,
    FALLBACK_OCCUPATION,
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
from src.signals.types import COMPANY_INTELLIGENCE, GLOBAL_REMOTE, RAGContext, Signal

logger = logging.getLogger(__name__)

UNKNOWN_LOCATION = "Unknown Location"
NO_COMPANY_REASON = "No company specified"


def _clean(value: Optional[str]) -> Optional[str]:
    if value is None:
        return None
    text = value.strip()
    return text or None


def resolve_effective_location(
    user_location: Optional[str],
    job_location: Optional[str],
) -> str:
    """
    The location that drives cost, economic, labor and competitor lookups.

    User location wins (it is where the salary will be spent), then the job
    location, then "Global Remote".
    """
    return _clean(user_location) or _clean(job_location) or GLOBAL_REMOTE


class ContextAssembler:
    """
    Builds a RAGContext from a job description.

    Sources are constructed from one CompletionClient unless passed in
    explicitly (tests replace individual sources).
    """

    def __init__(
        self,
        client: CompletionClient,
        job_analyzer: Optional[SignalSource] = None,
        labor_statistics: Optional[SignalSource] = None,
        job_market: Optional[SignalSource] = None,
        cost_of_living: Optional[SignalSource] = None,
        economic_indicators: Optional[SignalSource] = None,
        company_intelligence: Optional[SignalSource] = None,
        industry_trends: Optional[SignalSource] = None,
        market_sentiment: Optional[SignalSource] = None,
        competitor_analysis: Optional[SignalSource] = None,
    ):
        self.job_analyzer = job_analyzer or JobDescriptionAnalyzer(client)
        self.labor_statistics = labor_statistics or LaborStatisticsSource(client)
        self.job_market = job_market or JobMarketSource(client)
        self.cost_of_living = cost_of_living or CostOfLivingSource(client)
        self.economic_indicators = economic_indicators or EconomicIndicatorsSource(client)
        self.company_intelligence = company_intelligence or CompanyIntelligenceSource(client)
        self.industry_trends = industry_trends or IndustryTrendsSource(client)
        self.market_sentiment = market_sentiment or MarketSentimentSource(client)
        self.competitor_analysis = competitor_analysis or CompetitorAnalysisSource(client)

    async def assemble(
        self,
        job_text: str,
        job_location: Optional[str] = None,
        company: Optional[str] = None,
        user_location: Optional[str] = None,
        errors: Optional[ErrorCollector] = None,
    ) -> RAGContext:
        """
        Gather every signal for one job.

        Args:
            job_text: Free-text job description
            job_location: Location stated by the caller (overrides the classified one)
            company: Hiring company; company intelligence is skipped without it
            user_location: Where the user lives
            errors: Optional collector that receives one entry per degraded source

        Returns:
            RAGContext with location fields resolved
        """
        job_signal = await self.job_analyzer.fetch(job_text=job_text)
        attributes = JobAttributes.from_signal(job_signal)

        company = _clean(company)
        resolved_job_location = _clean(job_location) or _clean(attributes.normalized_location)
        effective_location = resolve_effective_location(user_location, resolved_job_location)
        user_location = _clean(user_location)

        job_title = attributes.job_title
        if job_title == DEFAULT_JOB_TITLE:
            job_title = FALLBACK_OCCUPATION
        industry = attributes.industry
        if industry == DEFAULT_INDUSTRY:
            industry = FALLBACK_INDUSTRY

        logger.info(
            f"[ContextAssembler] Title: {job_title}, Industry: {industry}, "
            f"Job location: {resolved_job_location}, User location: {user_location}, "
            f"Analysis location: {effective_location}, Remote: {attributes.is_remote}"
        )

        sources: List[SignalSource] = [
            self.labor_statistics,
            self.job_market,
            self.cost_of_living,
            self.economic_indicators,
            self.company_intelligence,
            self.industry_trends,
            self.market_sentiment,
            self.competitor_analysis,
        ]
        calls: List[Awaitable[Signal]] = [
            self.labor_statistics.fetch(occupation=job_title, location=effective_location),
            self.job_market.fetch(job_title=job_title, location=effective_location, company=company),
            self.cost_of_living.fetch(location=effective_location),
            self.economic_indicators.fetch(location=effective_location),
            self.company_intelligence.fetch(company=company) if company
            else self._placeholder(COMPANY_INTELLIGENCE, NO_COMPANY_REASON),
            self.industry_trends.fetch(industry=industry, job_title=job_title),
            self.market_sentiment.fetch(job_title=job_title, industry=industry),
            self.competitor_analysis.fetch(job_title=job_title, location=effective_location, company=company),
        ]

        results = await asyncio.gather(*calls, return_exceptions=True)
        (
            labor_statistics,
            job_market,
            cost_of_living,
            economic_indicators,
            company_intelligence,
            industry_trends,
            market_sentiment,
            competitor_analysis,
        ) = [self._settle(source, result) for source, result in zip(sources, results)]

        job_signal = replace(
            job_signal,
            payload={
                **job_signal.payload,
                "jobLocation": resolved_job_location or UNKNOWN_LOCATION,
                "userLocation": user_location,
                "isRemote": attributes.is_remote,
                "effectiveAnalysisLocation": effective_location,
            },
        )

        context = RAGContext(
            job_analysis=job_signal,
            salary_signals=[labor_statistics, job_market],
            cost_of_living=cost_of_living,
            economic_indicators=economic_indicators,
            company_intelligence=company_intelligence,
            industry_trends=industry_trends,
            market_sentiment=market_sentiment,
            competitor_analysis=competitor_analysis,
            effective_location=effective_location,
            job_location=resolved_job_location,
            user_location=user_location,
            is_remote=attributes.is_remote,
        )
        context.degraded_sources = self._record_degraded(context, errors)
        return context

    @staticmethod
    async def _placeholder(source_id: str, reason: str) -> Signal:
        return Signal.placeholder(source_id, reason)

    @staticmethod
    def _settle(source: SignalSource, result: Any) -> Signal:
        """Turn a gather() result into a Signal, re-raising cancellation."""
        if isinstance(result, Signal):
            return result
        if isinstance(result, asyncio.CancelledError):
            raise result
        if isinstance(result, Exception):
            logger.error(
                f"[ContextAssembler] {source.source_id} raised {type(result).__name__}: {result}"
            )
            return Signal.error_signal(source.source_id, f"{type(result).__name__}: {result}")
        if isinstance(result, BaseException):
            raise result
        return Signal.error_signal(source.source_id, f"Unexpected result type {type(result).__name__}")

    @staticmethod
    def _record_degraded(context: RAGContext, errors: Optional[ErrorCollector]) -> List[str]:
        degraded = []
        for signal in context.all_signals():
            if not signal.is_degraded:
                continue
            reason = signal.error or str(signal.payload.get("reason", "placeholder"))
            degraded.append(signal.source_id)
            logger.warning(f"[ContextAssembler] Degraded source {signal.source_id}: {reason}")
            if errors is not None:
                errors.add_error(
                    stage="assembly",
                    operation=signal.source_id,
                    message=reason,
                    severity="low" if signal.is_placeholder else "medium",
                )
        return degraded
