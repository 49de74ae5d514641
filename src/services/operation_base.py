"""
Base class for request-boundary operation services.

Each operation extends this to get consistent run ids, timing, and the
success/failure envelope returned to callers.
"""

from abc import ABC, abstractmethod
from contextlib import contextmanager
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, Dict, Generator, Optional
import time
import uuid

from src.common.utils import format_duration


DEFAULT_RECOMMENDATION = (
    "Please ensure all external data sources are available or try again later"
)


@dataclass
class OperationResult:
    """
    Result from an operation execution.

    ``to_dict()`` produces the boundary envelope:
    success -> the payload plus a ``metadata`` block,
    failure -> ``{error, message, recommendation, fallbackUsed: False}``.
    """

    success: bool
    run_id: str
    operation: str
    data: Dict[str, Any]
    duration_ms: int
    error: Optional[str] = None
    message: Optional[str] = None
    recommendation: Optional[str] = None
    metadata: Dict[str, Any] = field(default_factory=dict)
    timestamp: datetime = field(default_factory=lambda: datetime.now(timezone.utc))

    def to_dict(self) -> Dict[str, Any]:
        """Convert result to the JSON envelope."""
        if not self.success:
            return {
                "error": self.error,
                "message": self.message,
                "recommendation": self.recommendation or DEFAULT_RECOMMENDATION,
                "fallbackUsed": False,
            }

        # Cache hits report no processing time
        cached = bool(self.metadata.get("cached"))
        return {
            **self.data,
            "metadata": {
                **self.metadata,
                "runId": self.run_id,
                "processingTime": 0 if cached else self.duration_ms,
                "processingTimeFormatted": "cached" if cached else format_duration(self.duration_ms),
            },
        }


class OperationService(ABC):
    """Base class for boundary operations."""

    operation_name: str  # Override in subclass

    @abstractmethod
    async def execute(self, request: Any, **kwargs) -> OperationResult:
        """
        Execute the operation. Override in subclass.

        Returns:
            OperationResult with success status and data
        """
        pass

    def create_run_id(self) -> str:
        """
        Generate unique run ID for tracking.

        Returns:
            Unique run ID string in format "op_{operation}_{random_hex}"
        """
        return f"op_{self.operation_name}_{uuid.uuid4().hex[:12]}"

    def create_success_result(
        self,
        run_id: str,
        data: Dict[str, Any],
        duration_ms: int,
        metadata: Optional[Dict[str, Any]] = None,
    ) -> OperationResult:
        return OperationResult(
            success=True,
            run_id=run_id,
            operation=self.operation_name,
            data=data,
            duration_ms=duration_ms,
            metadata=metadata or {},
        )

    def create_error_result(
        self,
        run_id: str,
        error: str,
        message: str,
        duration_ms: int,
        recommendation: Optional[str] = None,
    ) -> OperationResult:
        """
        Create a failed operation result.

        Args:
            run_id: The operation run ID
            error: Short error label, e.g. "Compensation analysis failed"
            message: Underlying cause
            duration_ms: Duration in milliseconds
            recommendation: What the caller should do next

        Returns:
            OperationResult with success=False
        """
        return OperationResult(
            success=False,
            run_id=run_id,
            operation=self.operation_name,
            data={},
            duration_ms=duration_ms,
            error=error,
            message=message,
            recommendation=recommendation or DEFAULT_RECOMMENDATION,
        )

    @contextmanager
    def timed_execution(self) -> Generator["OperationTimer", None, None]:
        """
        Context manager for timing operation execution.

        Usage:
            with self.timed_execution() as timer:
                # do work
                pass
            duration_ms = timer.duration_ms
        """
        timer = OperationTimer()
        try:
            yield timer
        finally:
            timer.stop()


@dataclass
class OperationTimer:
    """Timer utility for tracking operation duration."""

    start_time: float = field(default_factory=time.perf_counter)
    end_time: Optional[float] = None

    @property
    def duration_ms(self) -> int:
        """Duration in milliseconds, measured to now if not stopped yet."""
        if self.end_time is None:
            return int((time.perf_counter() - self.start_time) * 1000)
        return int((self.end_time - self.start_time) * 1000)

    @property
    def duration_seconds(self) -> float:
        return self.duration_ms / 1000.0

    def stop(self) -> int:
        self.end_time = time.perf_counter()
        return self.duration_ms
