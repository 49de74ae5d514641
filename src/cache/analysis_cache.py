"""
AnalysisCache: fingerprint-keyed cache of finished analyses.

Two tiers:
- an in-process map guarded by an RLock, bounded by entry count and evicted
  oldest-write-first;
- an optional persistent repository (MongoDB), pruned by 25% when it grows
  past its bound.

Lookups consult memory first, then the repository; a repository hit is
restored into memory. Stale entries (age >= TTL) and undecodable entries are
misses and are removed. Repository failures never fail a request; they
degrade to a miss.

Request state machine:
    MISS          -> COMPUTE -> STORE
    HIT_FRESH     -> RETURN
    HIT_STALE     -> COMPUTE -> STORE (overwrite)
    FORCE_REFRESH -> COMPUTE -> STORE
"""

import hashlib
import logging
import threading
from dataclasses import asdict, dataclass, field
from datetime import datetime, timedelta, timezone
from typing import Any, Callable, Dict, Mapping, Optional, Union

from pydantic import ValidationError

from src.common.config import Config
from src.common.errors import CacheCorruptionError, safe_execute
from src.common.repositories.analysis_cache_repository import AnalysisCacheRepositoryInterface
from src.common.utils import hash_object, normalize_location
from src.rag.schema import CompensationAnalysis

logger = logging.getLogger(__name__)

CACHE_VERSION = "1.0.0"
DEFAULT_PROFILE = "default"
DEFAULT_WORK_MODE = "onsite"
DEFAULT_CURRENCY = "USD"
KEY_LENGTH = 16
PRUNE_FRACTION = 0.25

Clock = Callable[[], datetime]


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


def _as_utc(value: datetime) -> datetime:
    # pymongo hands back naive datetimes that are already UTC
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value


@dataclass
class CacheMetadata:
    """What an entry was computed for; used by pattern invalidation."""

    job_id: str = ""
    user_id: str = ""
    location: str = ""
    profile_hash: str = DEFAULT_PROFILE
    version: str = CACHE_VERSION

    def __post_init__(self):
        self.location = normalize_location(self.location)


@dataclass
class CacheEntry:
    key: str
    data: CompensationAnalysis
    timestamp: datetime
    ttl: timedelta
    metadata: CacheMetadata = field(default_factory=CacheMetadata)

    def age(self, now: datetime) -> timedelta:
        return now - self.timestamp

    def is_stale(self, now: datetime) -> bool:
        """An entry is stale once its age reaches the TTL."""
        return self.age(now) >= self.ttl

    def to_document(self) -> Dict[str, Any]:
        """Repository document for this entry."""
        return {
            "cache_key": self.key,
            **asdict(self.metadata),
            "analysis": self.data.to_dict(),
            "analysis_date": self.timestamp,
            "ttl_seconds": self.ttl.total_seconds(),
        }

    @classmethod
    def from_document(cls, key: str, document: Mapping[str, Any]) -> "CacheEntry":
        """
        Decode a repository document.

        Raises:
            CacheCorruptionError: Missing fields or an analysis that fails the schema
        """
        try:
            analysis = document["analysis"]
            timestamp = document["analysis_date"]
            ttl_seconds = float(document["ttl_seconds"])
        except (KeyError, TypeError, ValueError) as e:
            raise CacheCorruptionError(key, f"missing or invalid field: {e}")

        if not isinstance(analysis, Mapping):
            raise CacheCorruptionError(key, "analysis is not an object")
        if not isinstance(timestamp, datetime):
            raise CacheCorruptionError(key, "analysis_date is not a datetime")

        try:
            data = CompensationAnalysis.model_validate(dict(analysis))
        except ValidationError as e:
            raise CacheCorruptionError(key, f"analysis does not match schema ({e.error_count()} errors)")

        metadata = CacheMetadata(
            job_id=str(document.get("job_id", "")),
            user_id=str(document.get("user_id", "")),
            location=str(document.get("location", "")),
            profile_hash=str(document.get("profile_hash", DEFAULT_PROFILE)),
            version=str(document.get("version", CACHE_VERSION)),
        )
        return cls(
            key=key,
            data=data,
            timestamp=_as_utc(timestamp),
            ttl=timedelta(seconds=ttl_seconds),
            metadata=metadata,
        )


class AnalysisCache:
    """
    Two-tier analysis cache.

    Args:
        repository: Optional persistent tier
        ttl: Entry lifetime (defaults to Config.CACHE_TTL_HOURS)
        max_memory_entries: In-memory bound (defaults to Config.CACHE_MAX_MEMORY_ENTRIES)
        max_persistent_entries: Repository bound (defaults to Config.CACHE_MAX_PERSISTENT_ENTRIES)
        clock: Returns the current UTC time; injectable for tests
    """

    def __init__(
        self,
        repository: Optional[AnalysisCacheRepositoryInterface] = None,
        ttl: Optional[timedelta] = None,
        max_memory_entries: Optional[int] = None,
        max_persistent_entries: Optional[int] = None,
        clock: Optional[Clock] = None,
    ):
        self.repository = repository
        self.ttl = ttl or timedelta(hours=Config.CACHE_TTL_HOURS)
        self.max_memory_entries = max_memory_entries or Config.CACHE_MAX_MEMORY_ENTRIES
        self.max_persistent_entries = max_persistent_entries or Config.CACHE_MAX_PERSISTENT_ENTRIES
        self._clock = clock or _utcnow
        self._entries: Dict[str, CacheEntry] = {}
        self._lock = threading.RLock()
        self._hits = 0
        self._misses = 0

    # ===== KEYS =====

    @staticmethod
    def key(
        job_id: str,
        user_id: str,
        location: Optional[str],
        profile_hash: Union[str, Mapping[str, Any], None] = None,
        work_mode: Optional[str] = None,
        currency: Optional[str] = None,
    ) -> str:
        """
        Deterministic fingerprint for one analysis request.

        Location is case- and whitespace-insensitive. ``profile_hash`` may be
        a precomputed hash or the expense-profile dict itself.

        Example:
            >>> AnalysisCache.key("j1", "u1", "  New York ") == AnalysisCache.key("j1", "u1", "new york")
            True
        """
        if isinstance(profile_hash, Mapping):
            profile = hash_object(dict(profile_hash))
        else:
            profile = (profile_hash or "").strip() or DEFAULT_PROFILE

        params = {
            "currency": (currency or "").strip().upper() or DEFAULT_CURRENCY,
            "expenseProfile": profile,
            "jobId": str(job_id),
            "location": normalize_location(location),
            "userId": str(user_id),
            "version": CACHE_VERSION,
            "workMode": (work_mode or "").strip().lower() or DEFAULT_WORK_MODE,
        }
        fingerprint = "|".join(f"{name}:{params[name]}" for name in sorted(params))
        return hashlib.sha256(fingerprint.encode("utf-8")).hexdigest()[:KEY_LENGTH]

    # ===== READS =====

    def get_entry(self, key: str) -> Optional[CacheEntry]:
        """Fresh entry for ``key``, or None on miss, staleness or corruption."""
        now = self._clock()

        with self._lock:
            entry = self._entries.get(key)
            if entry is not None:
                if entry.is_stale(now):
                    del self._entries[key]
                    logger.info(f"[AnalysisCache] Stale in-memory entry {key} removed")
                else:
                    self._hits += 1
                    return entry

        entry = self._load_persistent(key, now)
        with self._lock:
            if entry is None:
                self._misses += 1
                return None
            self._hits += 1
            self._store_memory(entry)
        return entry

    def get(self, key: str) -> Optional[CompensationAnalysis]:
        entry = self.get_entry(key)
        return entry.data if entry is not None else None

    def should_refresh(self, key: str, max_age: Optional[timedelta] = None, force_refresh: bool = False) -> bool:
        """True when the caller must recompute: forced, missing, or older than ``max_age``."""
        if force_refresh:
            return True
        entry = self.get_entry(key)
        if entry is None:
            return True
        if max_age is not None and entry.age(self._clock()) >= max_age:
            return True
        return False

    def age_of(self, entry: CacheEntry) -> timedelta:
        return entry.age(self._clock())

    def _load_persistent(self, key: str, now: datetime) -> Optional[CacheEntry]:
        if self.repository is None:
            return None

        document = safe_execute(
            self.repository.find_by_key, key,
            operation_name="AnalysisCache persistent lookup", logger=logger,
        )
        if document is None:
            return None

        try:
            entry = CacheEntry.from_document(key, document)
        except CacheCorruptionError as e:
            logger.warning(f"[AnalysisCache] {e}; treating as miss")
            self._delete_persistent(key)
            return None

        if entry.is_stale(now):
            logger.info(f"[AnalysisCache] Stale persistent entry {key} removed")
            self._delete_persistent(key)
            return None

        return entry

    def _delete_persistent(self, key: str) -> None:
        safe_execute(
            self.repository.delete_by_key, key,
            operation_name="AnalysisCache persistent delete", logger=logger,
        )

    # ===== WRITES =====

    def set(
        self,
        key: str,
        data: CompensationAnalysis,
        metadata: Optional[CacheMetadata] = None,
        ttl: Optional[timedelta] = None,
    ) -> CacheEntry:
        """Store ``data`` under ``key`` in both tiers, overwriting any previous entry."""
        entry = CacheEntry(
            key=key,
            data=data,
            timestamp=self._clock(),
            ttl=ttl or self.ttl,
            metadata=metadata or CacheMetadata(),
        )

        with self._lock:
            self._store_memory(entry)

        if self.repository is not None:
            safe_execute(
                self.repository.upsert_entry, key, entry.to_document(),
                operation_name="AnalysisCache persistent write", logger=logger,
            )
            self._prune_persistent()

        logger.info(f"[AnalysisCache] Stored {key} (ttl {entry.ttl})")
        return entry

    def _store_memory(self, entry: CacheEntry) -> None:
        # Caller holds the lock
        self._entries[entry.key] = entry
        overflow = len(self._entries) - self.max_memory_entries
        if overflow <= 0:
            return
        oldest = sorted(self._entries.values(), key=lambda cached: cached.timestamp)[:overflow]
        for evicted in oldest:
            del self._entries[evicted.key]
        logger.info(f"[AnalysisCache] Evicted {overflow} oldest in-memory entries")

    def _prune_persistent(self) -> None:
        count = safe_execute(
            self.repository.count,
            operation_name="AnalysisCache persistent count", logger=logger, fallback=0,
        )
        if count <= self.max_persistent_entries:
            return
        to_remove = max(1, int(count * PRUNE_FRACTION))
        removed = safe_execute(
            self.repository.delete_oldest, to_remove,
            operation_name="AnalysisCache persistent prune", logger=logger, fallback=0,
        )
        logger.info(f"[AnalysisCache] Pruned {removed} oldest persistent entries ({count} stored)")

    # ===== INVALIDATION =====

    def invalidate(
        self,
        job_id: Optional[str] = None,
        user_id: Optional[str] = None,
        location: Optional[str] = None,
    ) -> int:
        """
        Remove entries matching ANY of the given fields from both tiers.

        ``location`` matches as a case-insensitive substring. With no
        arguments every entry is removed.

        Returns:
            Number of entries removed across both tiers
        """
        if not (job_id or user_id or location):
            return self.clear()

        needle = normalize_location(location) if location else None

        def matches(entry: CacheEntry) -> bool:
            meta = entry.metadata
            return bool(
                (job_id and meta.job_id == job_id)
                or (user_id and meta.user_id == user_id)
                or (needle and needle in meta.location)
            )

        with self._lock:
            doomed = [key for key, entry in self._entries.items() if matches(entry)]
            for key in doomed:
                del self._entries[key]

        removed = len(doomed)
        if self.repository is not None:
            removed += safe_execute(
                self.repository.delete_matching, job_id, user_id, needle,
                operation_name="AnalysisCache persistent invalidate", logger=logger, fallback=0,
            )

        logger.info(
            f"[AnalysisCache] Invalidated {removed} entries "
            f"(job_id={job_id}, user_id={user_id}, location={location})"
        )
        return removed

    def clear(self) -> int:
        with self._lock:
            removed = len(self._entries)
            self._entries.clear()

        if self.repository is not None:
            removed += safe_execute(
                self.repository.clear,
                operation_name="AnalysisCache persistent clear", logger=logger, fallback=0,
            )

        logger.info(f"[AnalysisCache] Cleared {removed} entries")
        return removed

    # ===== STATS =====

    def stats(self) -> Dict[str, Any]:
        with self._lock:
            timestamps = [entry.timestamp for entry in self._entries.values()]
            return {
                "memory_entries": len(timestamps),
                "max_memory_entries": self.max_memory_entries,
                "oldest_entry": min(timestamps).isoformat() if timestamps else None,
                "newest_entry": max(timestamps).isoformat() if timestamps else None,
                "hits": self._hits,
                "misses": self._misses,
                "persistent": self.repository is not None,
            }

    def __len__(self) -> int:
        with self._lock:
            return len(self._entries)

    def __contains__(self, key: str) -> bool:
        with self._lock:
            return key in self._entries
