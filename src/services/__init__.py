"""
Services module for request-boundary operations.

Each service extends OperationService to provide consistent
run ids, timing, and success/failure envelopes.
"""

from src.services.operation_base import OperationResult, OperationService, OperationTimer
from src.services.compensation_analysis_service import (
    AnalysisRequest,
    CompensationAnalysisService,
)

__all__ = [
    # Base classes
    "OperationResult",
    "OperationService",
    "OperationTimer",
    # Services
    "AnalysisRequest",
    "CompensationAnalysisService",
]
