"""
Unit tests for src/services/operation_base.py

Tests the OperationService base class, the OperationResult envelope,
and the OperationTimer utility.
"""

import time
from datetime import datetime

import pytest

from src.services.operation_base import (
    DEFAULT_RECOMMENDATION,
    OperationResult,
    OperationService,
    OperationTimer,
)


class EchoService(OperationService):
    operation_name = "echo"

    async def execute(self, request, **kwargs):
        run_id = self.create_run_id()
        with self.timed_execution() as timer:
            return self.create_success_result(run_id, {"echo": request}, timer.duration_ms)


class TestOperationResult:
    """Tests for OperationResult dataclass."""

    def test_has_default_optional_fields(self):
        """Should have sensible defaults for optional fields."""
        result = OperationResult(success=True, run_id="op_echo_1", operation="echo", data={}, duration_ms=0)

        assert result.error is None
        assert result.recommendation is None
        assert result.metadata == {}
        assert isinstance(result.timestamp, datetime)

    def test_success_envelope(self):
        """Success merges data with metadata, adding run id and timing."""
        result = OperationResult(
            success=True,
            run_id="op_echo_1",
            operation="echo",
            data={"role": {"title": "SRE"}},
            duration_ms=2500,
            metadata={"cached": False},
        )

        payload = result.to_dict()

        assert payload["role"] == {"title": "SRE"}
        assert payload["metadata"] == {
            "cached": False,
            "runId": "op_echo_1",
            "processingTime": 2500,
            "processingTimeFormatted": "2.50s",
        }

    def test_cached_envelope_reports_no_processing_time(self):
        result = OperationResult(
            success=True, run_id="op_echo_1", operation="echo", data={}, duration_ms=3, metadata={"cached": True}
        )

        metadata = result.to_dict()["metadata"]

        assert metadata["processingTime"] == 0
        assert metadata["processingTimeFormatted"] == "cached"

    def test_error_envelope(self):
        result = OperationResult(
            success=False,
            run_id="op_echo_1",
            operation="echo",
            data={},
            duration_ms=10,
            error="Compensation analysis failed",
            message="Completion service unavailable",
            recommendation=DEFAULT_RECOMMENDATION,
        )

        assert result.to_dict() == {
            "error": "Compensation analysis failed",
            "message": "Completion service unavailable",
            "recommendation": DEFAULT_RECOMMENDATION,
            "fallbackUsed": False,
        }


class TestOperationService:
    """Tests for the OperationService helpers."""

    def test_run_id_format(self):
        run_id = EchoService().create_run_id()
        assert run_id.startswith("op_echo_")
        assert len(run_id) == len("op_echo_") + 12

    def test_run_ids_unique(self):
        service = EchoService()
        assert service.create_run_id() != service.create_run_id()

    def test_error_result_defaults_recommendation(self):
        result = EchoService().create_error_result("op_echo_1", "failed", "boom", 5)

        assert result.success is False
        assert result.recommendation == DEFAULT_RECOMMENDATION

    @pytest.mark.asyncio
    async def test_execute(self):
        result = await EchoService().execute("hello")
        assert result.success is True
        assert result.data == {"echo": "hello"}


class TestOperationTimer:
    """Tests for OperationTimer."""

    def test_measures_elapsed_time(self):
        timer = OperationTimer()
        time.sleep(0.01)
        assert timer.duration_ms >= 10

    def test_stop_freezes_duration(self):
        timer = OperationTimer()
        timer.stop()
        frozen = timer.duration_ms
        time.sleep(0.01)
        assert timer.duration_ms == frozen
        assert timer.duration_seconds == frozen / 1000
