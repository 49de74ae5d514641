"""
Unit tests for src/rag/assembler.py

Covers location resolution, the concurrent fan-out, degraded-source
recording, and cancellation.
"""

import asyncio
import time

import pytest

from helpers.fake_completion import FakeCompletionClient
from fixtures.sample_jobs import JOB_DESCRIPTION_TEXT, healthy_replies
from src.common.errors import ErrorCollector
from src.rag.assembler import ContextAssembler, resolve_effective_location
from src.signals.types import GLOBAL_REMOTE


# ===== TESTS: Location resolution =====

class TestResolveEffectiveLocation:
    """User location wins, then job location, then Global Remote."""

    def test_user_location_wins(self):
        assert resolve_effective_location("Lisbon, Portugal", "New York, NY") == "Lisbon, Portugal"

    def test_job_location_when_no_user(self):
        assert resolve_effective_location(None, "New York, NY") == "New York, NY"

    def test_blank_values_ignored(self):
        assert resolve_effective_location("   ", "") == GLOBAL_REMOTE


# ===== TESTS: Assembly =====

class TestAssemble:
    """Tests for ContextAssembler.assemble."""

    @pytest.mark.asyncio
    async def test_healthy_assembly(self):
        """Every source succeeds; nothing is degraded."""
        client = FakeCompletionClient(healthy_replies())
        context = await ContextAssembler(client).assemble(
            JOB_DESCRIPTION_TEXT, job_location="New York, NY", company="StreamCo"
        )

        assert context.degraded_sources == []
        assert context.effective_location == "New York, NY"
        assert [s.source_id for s in context.salary_signals] == ["labor-statistics", "job-market"]
        assert len(client.calls) == 9

    @pytest.mark.asyncio
    async def test_job_analysis_runs_first(self):
        """Classification happens before the fan-out."""
        client = FakeCompletionClient(healthy_replies())
        await ContextAssembler(client).assemble(JOB_DESCRIPTION_TEXT, company="StreamCo")

        assert client.steps_called()[0] == "job_analysis"

    @pytest.mark.asyncio
    async def test_user_location_drives_lookups(self):
        """Cost and economic lookups use the user's location."""
        client = FakeCompletionClient(healthy_replies())
        context = await ContextAssembler(client).assemble(
            JOB_DESCRIPTION_TEXT, job_location="New York, NY", user_location="Austin, TX"
        )

        assert context.effective_location == "Austin, TX"
        assert context.job_location == "New York, NY"
        assert "Austin, TX" in client.prompt_for("cost_of_living")
        assert "Austin, TX" in client.prompt_for("economic_indicators")

    @pytest.mark.asyncio
    async def test_classified_location_used_when_none_given(self):
        """Without an explicit job location the classified one is used."""
        client = FakeCompletionClient(healthy_replies())
        context = await ContextAssembler(client).assemble(JOB_DESCRIPTION_TEXT)

        assert context.job_location == "New York, NY"

    @pytest.mark.asyncio
    async def test_job_payload_enriched_with_location(self):
        """The job-analysis payload carries the resolved location fields."""
        client = FakeCompletionClient(healthy_replies())
        context = await ContextAssembler(client).assemble(
            JOB_DESCRIPTION_TEXT, job_location="New York, NY", user_location="Austin, TX"
        )

        payload = context.job_analysis.payload
        assert payload["jobLocation"] == "New York, NY"
        assert payload["userLocation"] == "Austin, TX"
        assert payload["effectiveAnalysisLocation"] == "Austin, TX"
        assert payload["isRemote"] is False

    @pytest.mark.asyncio
    async def test_no_company_gives_placeholder(self):
        """Company intelligence is not called without a company."""
        client = FakeCompletionClient(healthy_replies())
        context = await ContextAssembler(client).assemble(JOB_DESCRIPTION_TEXT)

        assert "company_intelligence" not in client.steps_called()
        assert context.company_intelligence.is_placeholder
        assert context.degraded_sources == ["company-intelligence"]

    @pytest.mark.asyncio
    async def test_failed_sources_are_recorded(self):
        """Failed sources become error signals and collector entries."""
        replies = healthy_replies()
        replies["job_market"] = None
        replies["market_sentiment"] = "not json at all"
        client = FakeCompletionClient(replies)
        errors = ErrorCollector()

        context = await ContextAssembler(client).assemble(
            JOB_DESCRIPTION_TEXT, company="StreamCo", errors=errors
        )

        assert set(context.degraded_sources) == {"job-market", "market-sentiment"}
        assert context.salary_signals[1].confidence == 0.3
        assert set(errors.operations_for_stage("assembly")) == {"job-market", "market-sentiment"}

    @pytest.mark.asyncio
    async def test_all_sources_failing_still_builds_context(self):
        """Total source failure degrades every signal but does not raise."""
        client = FakeCompletionClient(default=None)
        context = await ContextAssembler(client).assemble(JOB_DESCRIPTION_TEXT, company="StreamCo")

        assert len(context.degraded_sources) == 9
        assert context.effective_location == GLOBAL_REMOTE
        assert all(signal.is_degraded for signal in context.all_signals())

    @pytest.mark.asyncio
    async def test_sources_run_concurrently(self):
        """Eight slow sources take roughly one delay, not eight."""
        steps = [
            "labor_statistics", "job_market", "cost_of_living", "economic_indicators",
            "company_intelligence", "industry_trends", "market_sentiment", "competitor_analysis",
        ]
        client = FakeCompletionClient(healthy_replies(), delays={step: 0.2 for step in steps})

        started = time.perf_counter()
        await ContextAssembler(client).assemble(JOB_DESCRIPTION_TEXT, company="StreamCo")
        elapsed = time.perf_counter() - started

        assert elapsed < 1.0

    @pytest.mark.asyncio
    async def test_cancellation_propagates(self):
        """Cancelling assembly cancels the in-flight fan-out."""
        client = FakeCompletionClient(healthy_replies(), delays={"cost_of_living": 5.0})
        task = asyncio.create_task(
            ContextAssembler(client).assemble(JOB_DESCRIPTION_TEXT, company="StreamCo")
        )
        await asyncio.sleep(0.05)
        task.cancel()

        with pytest.raises(asyncio.CancelledError):
            await task
