"""
Error taxonomy and error collection for the compensation pipeline.

Only UpstreamUnavailableError and (under the strict failure policy)
SynthesisParseError ever reach the request boundary. Source and cache
failures are recovered where they happen and recorded in an ErrorCollector
so they can be logged and reported as degraded sources.
"""

import logging
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, Callable, List, Optional, TypeVar

T = TypeVar("T")


class PipelineException(Exception):
    """Base class for all pipeline failures."""


class SourceFetchError(PipelineException):
    """A single signal source failed (timeout, empty reply, unparseable reply)."""

    def __init__(self, source_id: str, reason: str):
        self.source_id = source_id
        self.reason = reason
        super().__init__(f"{source_id}: {reason}")


class SynthesisParseError(PipelineException):
    """The synthesis reply was empty, not JSON, or did not fit the analysis schema."""

    def __init__(self, message: str, raw_text: Optional[str] = None):
        self.raw_text = raw_text
        super().__init__(message)


class CacheCorruptionError(PipelineException):
    """A stored cache entry could not be decoded."""

    def __init__(self, key: str, reason: str):
        self.key = key
        self.reason = reason
        super().__init__(f"Corrupt cache entry {key}: {reason}")


class UpstreamUnavailableError(PipelineException):
    """The completion service could not be reached at all."""


@dataclass
class ValidationCorrection:
    """Record of one numeric repair applied by the validator. Not an error."""

    field: str
    original: Any
    corrected: Any
    rule: str

    def __str__(self) -> str:
        return f"{self.field}: {self.original!r} -> {self.corrected!r} ({self.rule})"


@dataclass
class PipelineError:
    """
    Structured error information for a recoverable failure.

    Attributes:
        stage: Pipeline stage, e.g. "assembly", "cache"
        operation: What was being done, e.g. the signal source id
        severity: "critical", "high", "medium", "low"
    """

    stage: str
    operation: str
    severity: str
    message: str
    timestamp: str = field(default_factory=lambda: datetime.now(timezone.utc).isoformat())
    recoverable: bool = True
    exception_type: Optional[str] = None

    def to_dict(self) -> dict:
        """Convert to dictionary for JSON serialization."""
        return {
            "stage": self.stage,
            "operation": self.operation,
            "severity": self.severity,
            "message": self.message,
            "timestamp": self.timestamp,
            "recoverable": self.recoverable,
            "exception_type": self.exception_type,
        }


class ErrorCollector:
    """
    Collects recoverable errors during one request.

    Provides aggregation and summary capabilities for error tracking.
    """

    def __init__(self):
        self.errors: List[PipelineError] = []

    def add(self, error: PipelineError) -> None:
        self.errors.append(error)

    def add_error(
        self,
        stage: str,
        operation: str,
        message: str,
        severity: str = "medium",
        recoverable: bool = True,
        exception: Optional[BaseException] = None,
    ) -> None:
        """Convenience method to add an error with parameters."""
        self.errors.append(
            PipelineError(
                stage=stage,
                operation=operation,
                message=message,
                severity=severity,
                recoverable=recoverable,
                exception_type=type(exception).__name__ if exception else None,
            )
        )

    def has_critical_errors(self) -> bool:
        """Check if any critical (non-recoverable) errors occurred."""
        return any(e.severity == "critical" and not e.recoverable for e in self.errors)

    def operations_for_stage(self, stage: str) -> List[str]:
        """Operation names that failed in a stage, in insertion order, deduplicated."""
        seen: List[str] = []
        for error in self.errors:
            if error.stage == stage and error.operation not in seen:
                seen.append(error.operation)
        return seen

    def get_error_messages(self) -> List[str]:
        return [e.message for e in self.errors]

    def summary(self) -> dict:
        """Get error summary statistics."""
        by_severity = {"critical": 0, "high": 0, "medium": 0, "low": 0}
        for error in self.errors:
            if error.severity in by_severity:
                by_severity[error.severity] += 1
        return {
            "total": len(self.errors),
            "by_severity": by_severity,
            "recoverable": sum(1 for e in self.errors if e.recoverable),
            "non_recoverable": sum(1 for e in self.errors if not e.recoverable),
        }


def safe_execute(
    func: Callable[..., T],
    *args,
    operation_name: str = "operation",
    logger: Optional[logging.Logger] = None,
    fallback: T = None,
    critical: bool = False,
    **kwargs,
) -> T:
    """
    Execute a function, logging and returning ``fallback`` on failure.

    Used around the optional secondary cache tier, whose failures must
    degrade to a cache miss rather than fail the request.

    Usage:
        doc = safe_execute(
            repo.find_by_key,
            key,
            operation_name="cache lookup",
            logger=logger,
        )
    """
    if logger is None:
        logger = logging.getLogger(__name__)

    try:
        return func(*args, **kwargs)
    except Exception as e:
        log_level = logging.ERROR if critical else logging.WARNING
        logger.log(
            log_level,
            f"[{operation_name}] Failed: {e}",
            exc_info=critical,
        )
        return fallback
