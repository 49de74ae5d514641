"""
Synthesizer: RAGContext in, draft CompensationAnalysis out.

Makes exactly one completion call at low temperature. The reply is parsed
into the typed schema immediately; nothing downstream touches raw JSON.

Failure handling:
- Backend unreachable (completion returned None): UpstreamUnavailableError,
  regardless of policy. No numbers are fabricated.
- Empty, unparseable or schema-invalid reply: the failure sentinel under
  FailurePolicy.LENIENT, SynthesisParseError under FailurePolicy.STRICT.
"""

import logging
from enum import Enum
from typing import Any, Dict, Optional

from pydantic import ValidationError

from src.common.completion import CompletionClient
from src.common.errors import SynthesisParseError, UpstreamUnavailableError
from src.common.json_utils import parse_llm_json
from src.common.llm_config import SYNTHESIS_STEP, StepConfig, get_step_config
from src.rag.schema import CompensationAnalysis, failure_analysis
from src.rag.synthesis_prompts import build_synthesis_prompt
from src.signals.types import RAGContext

logger = logging.getLogger(__name__)

REQUIRED_SECTIONS = ("role", "compensation", "analysis")


class FailurePolicy(str, Enum):
    """What to do when the synthesis reply cannot be parsed."""

    LENIENT = "lenient"  # return the zero-confidence sentinel
    STRICT = "strict"  # raise SynthesisParseError

    @classmethod
    def from_string(cls, value: Optional[str], default: "FailurePolicy" = None) -> "FailurePolicy":
        try:
            return cls((value or "").strip().lower())
        except ValueError:
            return default or cls.LENIENT


class Synthesizer:
    """Single-call synthesis of a RAGContext into a CompensationAnalysis."""

    def __init__(self, client: CompletionClient, config: Optional[StepConfig] = None):
        self.client = client
        self.config = config or get_step_config(SYNTHESIS_STEP)

    async def synthesize(
        self,
        context: RAGContext,
        job_text: str,
        user_location: Optional[str] = None,
        policy: FailurePolicy = FailurePolicy.LENIENT,
    ) -> CompensationAnalysis:
        """
        Synthesize a draft analysis.

        Args:
            context: Assembled signals
            job_text: Original job description
            user_location: Caller-supplied user location; overrides the context's
            policy: Parse-failure policy

        Returns:
            Draft CompensationAnalysis with location facts taken from the context
            (not yet validated or scored), or the failure sentinel.

        Raises:
            UpstreamUnavailableError: Completion service returned nothing
            SynthesisParseError: Unusable reply under FailurePolicy.STRICT
        """
        facts = context.location_facts()
        if user_location and user_location.strip():
            facts["userLocation"] = user_location.strip()

        prompt = build_synthesis_prompt(context, job_text)
        logger.info(
            f"[Synthesizer] Synthesizing analysis for {facts['effectiveLocation']} "
            f"({len(prompt)} chars, {len(context.degraded_sources)} degraded sources)"
        )

        result = await self.client.complete(
            prompt,
            max_tokens=self.config.max_tokens,
            temperature=self.config.temperature,
            step_name=SYNTHESIS_STEP,
            timeout_seconds=self.config.timeout_seconds,
        )
        if result is None:
            raise UpstreamUnavailableError(
                "Completion service unavailable - unable to synthesize market data"
            )

        try:
            analysis = self._parse(result.content, facts)
        except SynthesisParseError as e:
            if policy == FailurePolicy.STRICT:
                raise
            logger.error(f"[Synthesizer] {e}; returning failure analysis")
            return failure_analysis(
                job_location=facts["jobLocation"],
                user_location=facts["userLocation"],
                is_remote=facts["isRemote"],
                effective_location=facts["effectiveLocation"],
            )

        logger.info(
            f"[Synthesizer] Parsed analysis: {analysis.role.title or 'untitled role'}, "
            f"{analysis.compensation.salary_range.currency or 'no currency'}"
        )
        return analysis

    @staticmethod
    def _parse(content: Optional[str], facts: Dict[str, Any]) -> CompensationAnalysis:
        if not content or not content.strip():
            raise SynthesisParseError("Empty synthesis response", raw_text=content)

        try:
            data = parse_llm_json(content)
        except ValueError as e:
            logger.debug(f"[Synthesizer] Unparseable reply (first 500 chars): {content[:500]}")
            raise SynthesisParseError(f"Unparseable synthesis response: {e}", raw_text=content)

        if not any(section in data for section in REQUIRED_SECTIONS):
            raise SynthesisParseError(
                f"Synthesis response has none of {', '.join(REQUIRED_SECTIONS)}",
                raw_text=content,
            )

        location = data.get("location")
        if not isinstance(location, dict):
            location = {}
        data["location"] = {**location, **facts}

        try:
            return CompensationAnalysis.model_validate(data)
        except ValidationError as e:
            raise SynthesisParseError(
                f"Synthesis response does not match the analysis schema: {e.error_count()} errors",
                raw_text=content,
            )
