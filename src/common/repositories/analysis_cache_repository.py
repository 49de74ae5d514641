"""
Analysis Cache Repository

Repository interface for the analysis_cache collection: the optional
persistent tier behind the in-process AnalysisCache.

Document shape:
    {
        "cache_key": "9f2c01ab44d1e3c7",
        "job_id": "job-1",
        "user_id": "user-1",
        "location": "new york",
        "profile_hash": "default",
        "analysis": {...},            # camelCase CompensationAnalysis
        "analysis_date": datetime,    # UTC write time
        "ttl_seconds": 86400,
        "version": "1.0.0",
    }
"""

import logging
import re
from abc import ABC, abstractmethod
from typing import Any, Dict, Optional

from pymongo import ASCENDING, MongoClient

from src.common.config import Config

logger = logging.getLogger(__name__)


class AnalysisCacheRepositoryInterface(ABC):
    """
    Abstract interface for the analysis_cache collection.

    Implementations only store and retrieve raw documents; staleness and
    decoding are decided by AnalysisCache.
    """

    @abstractmethod
    def find_by_key(self, cache_key: str) -> Optional[Dict[str, Any]]:
        """Return the stored document for a cache key, or None."""
        pass

    @abstractmethod
    def upsert_entry(self, cache_key: str, document: Dict[str, Any]) -> bool:
        """
        Insert or replace the document for a cache key.

        Returns:
            True if successful
        """
        pass

    @abstractmethod
    def delete_by_key(self, cache_key: str) -> bool:
        pass

    @abstractmethod
    def delete_matching(
        self,
        job_id: Optional[str] = None,
        user_id: Optional[str] = None,
        location: Optional[str] = None,
    ) -> int:
        """
        Delete documents matching ANY of the given fields.

        ``location`` matches as a case-insensitive substring of the stored
        normalized location. With no arguments nothing is deleted; use clear().

        Returns:
            Number of deleted documents
        """
        pass

    @abstractmethod
    def clear(self) -> int:
        """Delete every document. Returns the number deleted."""
        pass

    @abstractmethod
    def count(self) -> int:
        pass

    @abstractmethod
    def delete_oldest(self, limit: int) -> int:
        """Delete the ``limit`` documents with the oldest analysis_date."""
        pass

    @abstractmethod
    def ensure_indexes(self) -> None:
        """Ensure required indexes exist."""
        pass


class AtlasAnalysisCacheRepository(AnalysisCacheRepositoryInterface):
    """
    Atlas MongoDB implementation of AnalysisCacheRepository.
    """

    _client: Optional[MongoClient] = None

    def __init__(
        self,
        mongodb_uri: Optional[str] = None,
        database: Optional[str] = None,
        collection: Optional[str] = None,
    ):
        """
        Args:
            mongodb_uri: MongoDB connection string (defaults to Config.MONGODB_URI)
            database: Database name (defaults to Config.MONGODB_DATABASE)
            collection: Collection name (defaults to Config.ANALYSIS_CACHE_COLLECTION)
        """
        self._mongodb_uri = mongodb_uri or Config.MONGODB_URI
        self._database = database or Config.MONGODB_DATABASE
        self._collection_name = collection or Config.ANALYSIS_CACHE_COLLECTION

        if not self._mongodb_uri:
            raise ValueError("MongoDB URI is required")

    def _get_client(self) -> MongoClient:
        """Get or create the MongoDB client (shared by all instances)."""
        if AtlasAnalysisCacheRepository._client is None:
            AtlasAnalysisCacheRepository._client = MongoClient(self._mongodb_uri)
            logger.info("Created new MongoDB client for analysis_cache repository")
        return AtlasAnalysisCacheRepository._client

    def _get_collection(self):
        client = self._get_client()
        return client[self._database][self._collection_name]

    @classmethod
    def reset_connection(cls) -> None:
        """Reset the MongoDB client connection."""
        if cls._client is not None:
            cls._client.close()
            cls._client = None
            logger.info("Analysis cache repository connection reset")

    def find_by_key(self, cache_key: str) -> Optional[Dict[str, Any]]:
        collection = self._get_collection()
        return collection.find_one({"cache_key": cache_key}, {"_id": 0})

    def upsert_entry(self, cache_key: str, document: Dict[str, Any]) -> bool:
        try:
            collection = self._get_collection()
            collection.replace_one(
                {"cache_key": cache_key},
                {**document, "cache_key": cache_key},
                upsert=True,
            )
            return True
        except Exception as e:
            logger.error(f"Error upserting analysis cache for {cache_key}: {e}")
            return False

    def delete_by_key(self, cache_key: str) -> bool:
        collection = self._get_collection()
        result = collection.delete_one({"cache_key": cache_key})
        return result.deleted_count > 0

    def delete_matching(
        self,
        job_id: Optional[str] = None,
        user_id: Optional[str] = None,
        location: Optional[str] = None,
    ) -> int:
        clauses = []
        if job_id:
            clauses.append({"job_id": job_id})
        if user_id:
            clauses.append({"user_id": user_id})
        if location:
            clauses.append({"location": {"$regex": re.escape(location.strip()), "$options": "i"}})
        if not clauses:
            return 0

        collection = self._get_collection()
        result = collection.delete_many({"$or": clauses})
        return result.deleted_count

    def clear(self) -> int:
        collection = self._get_collection()
        result = collection.delete_many({})
        return result.deleted_count

    def count(self) -> int:
        collection = self._get_collection()
        return collection.count_documents({})

    def delete_oldest(self, limit: int) -> int:
        if limit <= 0:
            return 0
        collection = self._get_collection()
        oldest = collection.find({}, {"cache_key": 1}).sort("analysis_date", ASCENDING).limit(limit)
        keys = [doc["cache_key"] for doc in oldest]
        if not keys:
            return 0
        result = collection.delete_many({"cache_key": {"$in": keys}})
        return result.deleted_count

    def ensure_indexes(self) -> None:
        try:
            collection = self._get_collection()
            collection.create_index("cache_key", unique=True, background=True)
            collection.create_index("analysis_date", background=True)
            collection.create_index("job_id", background=True)
            collection.create_index("user_id", background=True)
            logger.info("Analysis cache indexes ensured")
        except Exception as e:
            logger.warning(f"Error creating analysis cache indexes: {e}")


def create_analysis_cache_repository() -> Optional[AnalysisCacheRepositoryInterface]:
    """
    Build the persistent cache tier if it is enabled in Config.

    Returns:
        AtlasAnalysisCacheRepository, or None when ENABLE_PERSISTENT_CACHE is off
    """
    if not Config.ENABLE_PERSISTENT_CACHE:
        logger.info("Persistent analysis cache disabled; using in-memory tier only")
        return None

    repository = AtlasAnalysisCacheRepository()
    repository.ensure_indexes()
    return repository
