"""
Compensation Analysis Service.

Request boundary for the analysis pipeline: cache lookup, then
assembly -> synthesis -> validation -> scoring, then cache write.

Usage:
    service = CompensationAnalysisService(client=LangChainCompletionClient(), cache=AnalysisCache())
    result = await service.analyze(AnalysisRequest(job_description_text=text, job_id="j1", user_id="u1"))
    payload = result.to_dict()
"""

import logging
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Any, Dict, Mapping, Optional, Tuple

from src.cache import CACHE_VERSION, AnalysisCache, CacheMetadata
from src.common.completion import CompletionClient
from src.common.config import Config
from src.common.errors import (
    ErrorCollector,
    PipelineException,
    SynthesisParseError,
    UpstreamUnavailableError,
)
from src.common.structured_logger import StageContext, StructuredLogger
from src.common.utils import format_age, run_async
from src.rag import (
    CompensationAnalysis,
    ConfidenceScorer,
    ContextAssembler,
    FailurePolicy,
    Synthesizer,
    Validator,
    resolve_effective_location,
)
from src.services.operation_base import OperationResult, OperationService
from src.signals.types import RAGContext

logger = logging.getLogger(__name__)

ANALYSIS_FAILED = "Compensation analysis failed"


@dataclass
class AnalysisRequest:
    """One analysis request as received at the boundary."""

    job_description_text: str
    job_id: str = ""
    user_id: str = ""
    job_location: Optional[str] = None
    company: Optional[str] = None
    user_location: Optional[str] = None
    profile_hash: Optional[str] = None
    work_mode: Optional[str] = None
    currency: Optional[str] = None

    @classmethod
    def from_job(
        cls,
        job: Mapping[str, Any],
        user_id: str = "",
        user_location: Optional[str] = None,
        custom_context: Optional[str] = None,
        profile_hash: Optional[str] = None,
    ) -> "AnalysisRequest":
        """Build a request from a stored job record."""
        text = CompensationAnalysisService.build_job_description(job)
        if custom_context:
            text += f"\n\nAdditional Context: {custom_context}"
        return cls(
            job_description_text=text,
            job_id=str(job.get("job_id") or job.get("_id") or ""),
            user_id=user_id,
            job_location=job.get("location"),
            company=job.get("company"),
            user_location=user_location,
            profile_hash=profile_hash,
            work_mode=job.get("work_mode"),
            currency=job.get("salary_currency"),
        )


def _amount(value: Any) -> str:
    try:
        number = float(value)
    except (TypeError, ValueError):
        return str(value)
    if number.is_integer():
        return f"{int(number):,}"
    return f"{number:,.2f}"


class CompensationAnalysisService(OperationService):
    """
    Runs one compensation analysis per request.

    All collaborators are injected; the pipeline stages default to
    instances built on the given completion client.
    """

    operation_name: str = "compensation-analysis"

    def __init__(
        self,
        client: CompletionClient,
        cache: Optional[AnalysisCache] = None,
        assembler: Optional[ContextAssembler] = None,
        synthesizer: Optional[Synthesizer] = None,
        validator: Optional[Validator] = None,
        scorer: Optional[ConfidenceScorer] = None,
        failure_policy: Optional[FailurePolicy] = None,
        preflight_check: Optional[bool] = None,
        structured_events: Optional[bool] = None,
    ):
        self.client = client
        self.cache = cache if cache is not None else AnalysisCache()
        self.assembler = assembler or ContextAssembler(client)
        self.synthesizer = synthesizer or Synthesizer(client)
        self.validator = validator or Validator()
        self.scorer = scorer or ConfidenceScorer()
        self.failure_policy = failure_policy or FailurePolicy.from_string(
            Config.SYNTHESIS_FAILURE_POLICY
        )
        self.preflight_check = (
            Config.PREFLIGHT_AVAILABILITY_CHECK if preflight_check is None else preflight_check
        )
        self.structured_events = (
            Config.ENABLE_STRUCTURED_EVENTS if structured_events is None else structured_events
        )

    # ===== PUBLIC OPERATIONS =====

    async def analyze(
        self, request: AnalysisRequest, force_refresh: bool = False
    ) -> OperationResult:
        """Read path: serve from cache when fresh, otherwise compute."""
        return await self.execute(request, force_refresh=force_refresh, policy=self.failure_policy)

    async def recompute(self, request: AnalysisRequest) -> OperationResult:
        """Explicit recompute: bypasses the cache and never returns the failure sentinel."""
        return await self.execute(request, force_refresh=True, policy=FailurePolicy.STRICT)

    def analyze_sync(self, request: AnalysisRequest, force_refresh: bool = False) -> OperationResult:
        return run_async(self.analyze(request, force_refresh=force_refresh))

    def recompute_sync(self, request: AnalysisRequest) -> OperationResult:
        return run_async(self.recompute(request))

    def invalidate(
        self,
        job_id: Optional[str] = None,
        user_id: Optional[str] = None,
        location: Optional[str] = None,
    ) -> int:
        """Drop cached analyses matching any of the given fields (all when none given)."""
        return self.cache.invalidate(job_id=job_id, user_id=user_id, location=location)

    def cache_key(self, request: AnalysisRequest) -> str:
        return AnalysisCache.key(
            job_id=request.job_id,
            user_id=request.user_id,
            location=resolve_effective_location(request.user_location, request.job_location),
            profile_hash=request.profile_hash,
            work_mode=request.work_mode,
            currency=request.currency,
        )

    # ===== EXECUTION =====

    async def execute(
        self,
        request: AnalysisRequest,
        force_refresh: bool = False,
        policy: Optional[FailurePolicy] = None,
        **kwargs,
    ) -> OperationResult:
        """
        Run one analysis.

        Args:
            request: The analysis request
            force_refresh: Skip the cache lookup
            policy: Synthesis parse-failure policy (defaults to the service's)

        Returns:
            OperationResult whose to_dict() is the boundary envelope
        """
        run_id = self.create_run_id()
        policy = policy or self.failure_policy
        events = StructuredLogger(run_id, enabled=self.structured_events)
        key = self.cache_key(request)

        logger.info(
            f"[{run_id[:16]}] Starting compensation analysis for job {request.job_id or '-'} "
            f"(force_refresh={force_refresh}, policy={policy.value})"
        )
        events.analysis_start({"job_id": request.job_id, "cache_key": key, "force_refresh": force_refresh})

        with self.timed_execution() as timer:
            if not force_refresh:
                cached = self._from_cache(run_id, key, events)
                if cached is not None:
                    data, metadata = cached
                    events.analysis_complete("cached", timer.duration_ms, {"cache_key": key})
                    return self.create_success_result(run_id, data, timer.duration_ms, metadata)

            try:
                analysis, context = await self._run_pipeline(run_id, request, policy, events)
            except (UpstreamUnavailableError, SynthesisParseError) as e:
                logger.error(f"[{run_id[:16]}] {ANALYSIS_FAILED}: {e}")
                events.analysis_complete("error", timer.duration_ms, {"error_type": type(e).__name__})
                return self.create_error_result(
                    run_id=run_id,
                    error=ANALYSIS_FAILED,
                    message=str(e),
                    duration_ms=timer.duration_ms,
                )
            except PipelineException as e:
                logger.exception(f"[{run_id[:16]}] {ANALYSIS_FAILED}: {e}")
                events.analysis_complete("error", timer.duration_ms, {"error_type": type(e).__name__})
                return self.create_error_result(
                    run_id=run_id,
                    error=ANALYSIS_FAILED,
                    message=str(e),
                    duration_ms=timer.duration_ms,
                )

            if analysis.is_failure:
                logger.warning(f"[{run_id[:16]}] Returning failure analysis (not cached)")
            else:
                self.cache.set(
                    key,
                    analysis,
                    CacheMetadata(
                        job_id=request.job_id,
                        user_id=request.user_id,
                        location=context.effective_location,
                        profile_hash=request.profile_hash or "",
                    ),
                )

            metadata = {
                "analysisTimestamp": datetime.now(timezone.utc).isoformat(),
                "ragVersion": CACHE_VERSION,
                "cached": False,
                "cacheAge": None,
                "degradedSources": list(context.degraded_sources),
            }
            status = "degraded" if analysis.is_failure or context.degraded_sources else "success"
            events.analysis_complete(
                status,
                timer.duration_ms,
                {"degraded_sources": len(context.degraded_sources), "overall_confidence": analysis.confidence.overall},
            )
            logger.info(
                f"[{run_id[:16]}] Analysis complete in {timer.duration_ms}ms "
                f"(confidence={analysis.confidence.overall:.2f}, "
                f"degraded={len(context.degraded_sources)})"
            )
            return self.create_success_result(run_id, analysis.to_dict(), timer.duration_ms, metadata)

    def _from_cache(
        self, run_id: str, key: str, events: StructuredLogger
    ) -> Optional[Tuple[Dict[str, Any], Dict[str, Any]]]:
        entry = self.cache.get_entry(key)
        if entry is None:
            logger.info(f"[{run_id[:16]}] Cache MISS for {key}")
            return None

        age_seconds = self.cache.age_of(entry).total_seconds()
        logger.info(f"[{run_id[:16]}] Cache HIT for {key} ({format_age(age_seconds)} old)")
        events.cache_hit(key, age_seconds / 3600)
        metadata = {
            "analysisTimestamp": entry.timestamp.isoformat(),
            "ragVersion": entry.metadata.version,
            "cached": True,
            "cacheAge": format_age(age_seconds),
        }
        return entry.data.to_dict(), metadata

    async def _run_pipeline(
        self,
        run_id: str,
        request: AnalysisRequest,
        policy: FailurePolicy,
        events: StructuredLogger,
    ) -> Tuple[CompensationAnalysis, RAGContext]:
        if self.preflight_check:
            available = await self.client.is_available(timeout_seconds=Config.PREFLIGHT_TIMEOUT_SECONDS)
            if not available:
                raise UpstreamUnavailableError(
                    "Completion service unavailable - preflight availability check failed"
                )

        errors = ErrorCollector()
        with StageContext(events, "assembly") as stage:
            context = await self.assembler.assemble(
                request.job_description_text,
                job_location=request.job_location,
                company=request.company,
                user_location=request.user_location,
                errors=errors,
            )
            stage.add_metadata("degraded_sources", len(context.degraded_sources))

        for source_id in context.degraded_sources:
            signal = context.signal(source_id)
            events.signal_degraded(source_id, signal.error if signal is not None else "unknown")
        if errors.errors:
            logger.info(f"[{run_id[:16]}] Assembly errors: {errors.summary()}")

        with StageContext(events, "synthesis") as stage:
            draft = await self.synthesizer.synthesize(
                context,
                request.job_description_text,
                user_location=request.user_location,
                policy=policy,
            )
            stage.add_metadata("failure_sentinel", draft.is_failure)

        if draft.is_failure:
            return draft, context

        with StageContext(events, "validation") as stage:
            validated, corrections = self.validator.validate_with_report(draft)
            stage.add_metadata("corrections", len(corrections))

        with StageContext(events, "scoring") as stage:
            confidence = self.scorer.score(context)
            stage.add_metadata("estimate_type", confidence.estimate_type)

        return validated.model_copy(update={"confidence": confidence}), context

    # ===== JOB TEXT =====

    @staticmethod
    def build_job_description(job: Mapping[str, Any]) -> str:
        """
        Compose the analysis text from a stored job record.

        Adds a job type hint from the title and states whether the salary was
        posted, so the classifier can tell posted figures from estimates.
        """
        title = job.get("title") or ""
        parts = [f"Job Title: {title}", f"Company: {job.get('company') or ''}"]

        if job.get("location"):
            parts.append(f"Location: {job['location']}")
        if job.get("work_mode"):
            parts.append(f"Work Mode: {job['work_mode']}")
        if job.get("contract_type"):
            parts.append(f"Contract Type: {job['contract_type']}")

        title_lower = title.lower()
        if "intern" in title_lower:
            parts.append("Job Type: Internship position")
        elif any(word in title_lower for word in ("contractor", "freelance", "consultant")):
            parts.append("Job Type: Contract/Freelance position")
        elif "part-time" in title_lower or "part time" in title_lower:
            parts.append("Job Type: Part-time position")
        else:
            parts.append("Job Type: Full-time position")

        currency = job.get("salary_currency") or "USD"
        frequency = job.get("salary_frequency") or "annual"
        salary_min = job.get("salary_min")
        salary_max = job.get("salary_max")

        has_salary = True
        if job.get("salary"):
            parts.append(f"Posted Salary Information: {job['salary']}")
        elif salary_min and salary_max:
            parts.append(
                f"Posted Salary Range: {currency} {_amount(salary_min)} - {_amount(salary_max)} {frequency}"
            )
            if frequency == "hourly":
                parts.append("Compensation Model: Hourly rate")
            else:
                parts.append("Compensation Model: Annual salary")
        elif salary_min:
            parts.append(f"Minimum Posted Salary: {currency} {_amount(salary_min)} {frequency}")
        else:
            has_salary = False

        if has_salary:
            parts.append("Salary Source: Posted in job listing (high confidence)")
        else:
            parts.append("Salary Source: Not posted - requires market estimation")

        optional_fields = (
            ("bonus_structure", "Bonus Structure"),
            ("equity_offered", "Equity Offered"),
            ("description", "Job Description"),
            ("requirements", "Requirements"),
            ("skills", "Required Skills"),
            ("perks", "Perks and Benefits"),
            ("summary", "Summary"),
            ("notes", "Additional Notes"),
        )
        for field_name, label in optional_fields:
            if job.get(field_name):
                parts.append(f"{label}: {job[field_name]}")

        return "\n\n".join(parts)
