"""
Analysis cache: TTL staleness, forced refresh and pattern invalidation.
"""

from .analysis_cache import (
    CACHE_VERSION,
    AnalysisCache,
    CacheEntry,
    CacheMetadata,
)

__all__ = ["AnalysisCache", "CacheEntry", "CacheMetadata", "CACHE_VERSION"]
