"""
Structured JSON logger for analysis events.

Emits one JSON line per event for:
- Stage start/complete/error (assembly, synthesis, validation, scoring)
- Degraded signal sources
- Cache hits and request completion

Usage:
    events = StructuredLogger(run_id="abc123")
    with StageContext(events, "synthesis") as ctx:
        analysis = await synthesizer.synthesize(context, job_text)
        ctx.add_metadata("estimate_type", "ai_estimate")
"""

import json
import sys
import time
from datetime import datetime, timezone
from typing import Any, Dict, Optional
from dataclasses import dataclass, asdict
from enum import Enum


class EventType(str, Enum):
    """Standard analysis event types."""
    STAGE_START = "stage_start"
    STAGE_COMPLETE = "stage_complete"
    STAGE_ERROR = "stage_error"
    SIGNAL_DEGRADED = "signal_degraded"
    CACHE_HIT = "cache_hit"
    ANALYSIS_START = "analysis_start"
    ANALYSIS_COMPLETE = "analysis_complete"


class StageStatus(str, Enum):
    SUCCESS = "success"
    ERROR = "error"
    DEGRADED = "degraded"


@dataclass
class LogEvent:
    """Structured log event with all optional fields."""
    timestamp: str
    event: str
    run_id: str
    stage: Optional[str] = None
    status: Optional[str] = None
    duration_ms: Optional[int] = None
    metadata: Optional[Dict[str, Any]] = None
    error: Optional[str] = None

    def to_json(self) -> str:
        """Convert to JSON string, excluding None values."""
        data = {k: v for k, v in asdict(self).items() if v is not None}
        return json.dumps(data, default=str)


class StructuredLogger:
    """
    Structured JSON logger for one analysis run.

    Emits JSON lines to stdout so a log shipper can pick them up.
    """

    def __init__(self, run_id: str, enabled: bool = True):
        """
        Args:
            run_id: Run ID for correlation
            enabled: Whether to emit events (disabled in tests)
        """
        self.run_id = run_id
        self.enabled = enabled
        self._stage_start_times: Dict[str, float] = {}

    def _emit(self, event: LogEvent) -> None:
        if self.enabled:
            print(event.to_json(), file=sys.stdout, flush=True)

    def _now(self) -> str:
        return datetime.now(timezone.utc).isoformat().replace("+00:00", "Z")

    def emit(
        self,
        event: str,
        stage: Optional[str] = None,
        status: Optional[str] = None,
        duration_ms: Optional[int] = None,
        metadata: Optional[Dict[str, Any]] = None,
        error: Optional[str] = None,
    ) -> None:
        """Emit a custom log event."""
        self._emit(
            LogEvent(
                timestamp=self._now(),
                event=event,
                run_id=self.run_id,
                stage=stage,
                status=status,
                duration_ms=duration_ms,
                metadata=metadata,
                error=error,
            )
        )

    def _elapsed_ms(self, stage: str) -> Optional[int]:
        started = self._stage_start_times.pop(stage, None)
        if started is None:
            return None
        return int((time.time() - started) * 1000)

    # ===== Convenience Methods =====

    def stage_start(self, stage: str) -> None:
        self._stage_start_times[stage] = time.time()
        self.emit(event=EventType.STAGE_START.value, stage=stage)

    def stage_complete(
        self,
        stage: str,
        duration_ms: Optional[int] = None,
        metadata: Optional[Dict[str, Any]] = None,
    ) -> None:
        """
        Log stage completion.

        Args:
            stage: Stage name
            duration_ms: Duration (auto-calculated if stage_start was called)
            metadata: Additional metadata (e.g., degraded source count)
        """
        if duration_ms is None:
            duration_ms = self._elapsed_ms(stage)
        self.emit(
            event=EventType.STAGE_COMPLETE.value,
            stage=stage,
            status=StageStatus.SUCCESS.value,
            duration_ms=duration_ms,
            metadata=metadata,
        )

    def stage_error(
        self,
        stage: str,
        error: str,
        duration_ms: Optional[int] = None,
        metadata: Optional[Dict[str, Any]] = None,
    ) -> None:
        if duration_ms is None:
            duration_ms = self._elapsed_ms(stage)
        self.emit(
            event=EventType.STAGE_ERROR.value,
            stage=stage,
            status=StageStatus.ERROR.value,
            duration_ms=duration_ms,
            error=error,
            metadata=metadata,
        )

    def signal_degraded(self, source_id: str, reason: str) -> None:
        """Log a signal source that fell back to an error or placeholder signal."""
        self.emit(
            event=EventType.SIGNAL_DEGRADED.value,
            stage="assembly",
            status=StageStatus.DEGRADED.value,
            metadata={"source_id": source_id, "reason": reason},
        )

    def cache_hit(self, cache_key: str, age_hours: float) -> None:
        self.emit(
            event=EventType.CACHE_HIT.value,
            stage="cache",
            metadata={"cache_key": cache_key, "age_hours": round(age_hours, 2)},
        )

    def analysis_start(self, metadata: Optional[Dict[str, Any]] = None) -> None:
        self.emit(event=EventType.ANALYSIS_START.value, metadata=metadata)

    def analysis_complete(
        self,
        status: str = "success",
        duration_ms: Optional[int] = None,
        metadata: Optional[Dict[str, Any]] = None,
    ) -> None:
        """
        Log request completion.

        Args:
            status: Final status (success, degraded, error)
            duration_ms: Total duration
            metadata: Summary metadata
        """
        self.emit(
            event=EventType.ANALYSIS_COMPLETE.value,
            status=status,
            duration_ms=duration_ms,
            metadata=metadata,
        )


# ===== Context Manager for Stage Timing =====

class StageContext:
    """
    Context manager for automatic stage timing.

    Usage:
        with StageContext(events, "validation") as ctx:
            validated = validator.validate(draft)
            ctx.add_metadata("corrections", len(validator.last_corrections))
    """

    def __init__(self, logger: StructuredLogger, stage: str):
        self.logger = logger
        self.stage = stage
        self.metadata: Dict[str, Any] = {}
        self._start_time: float = 0

    def __enter__(self) -> "StageContext":
        self._start_time = time.time()
        self.logger.stage_start(self.stage)
        return self

    def __exit__(self, exc_type, exc_val, exc_tb) -> bool:
        duration_ms = int((time.time() - self._start_time) * 1000)

        if exc_type is not None:
            self.logger.stage_error(
                self.stage,
                str(exc_val) or exc_type.__name__,
                duration_ms,
                self.metadata if self.metadata else None,
            )
            return False  # Re-raise exception

        self.logger.stage_complete(
            self.stage,
            duration_ms,
            self.metadata if self.metadata else None,
        )
        return False

    def add_metadata(self, key: str, value: Any) -> None:
        """Add metadata to be included in completion event."""
        self.metadata[key] = value
