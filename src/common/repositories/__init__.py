"""
Repository Pattern for MongoDB Operations

Provides an abstraction layer over MongoDB so the analysis cache can run
with or without a persistent tier.

Usage:
    from src.common.repositories import create_analysis_cache_repository

    repository = create_analysis_cache_repository()  # None when disabled
    cache = AnalysisCache(repository=repository)
"""

from .analysis_cache_repository import (
    AnalysisCacheRepositoryInterface,
    AtlasAnalysisCacheRepository,
    create_analysis_cache_repository,
)

__all__ = [
    "AnalysisCacheRepositoryInterface",
    "AtlasAnalysisCacheRepository",
    "create_analysis_cache_repository",
]
