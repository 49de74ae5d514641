"""
Retrieval-synthesis-validation pipeline.

ContextAssembler -> Synthesizer -> Validator -> ConfidenceScorer
"""

from .assembler import ContextAssembler, resolve_effective_location
from .confidence import ConfidenceScorer
from .schema import CompensationAnalysis, ConfidenceBlock, failure_analysis
from .synthesizer import FailurePolicy, Synthesizer
from .validator import Validator

__all__ = [
    "ContextAssembler",
    "resolve_effective_location",
    "Synthesizer",
    "FailurePolicy",
    "Validator",
    "ConfidenceScorer",
    "CompensationAnalysis",
    "ConfidenceBlock",
    "failure_analysis",
]
