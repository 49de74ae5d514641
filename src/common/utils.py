"""
Common utility functions for the compensation pipeline.

Shared helpers for sync/async bridging, location normalization and stable
hashing used by the cache fingerprint.
"""

import asyncio
import concurrent.futures
import hashlib
import json
import re
from typing import Any, Coroutine, TypeVar

T = TypeVar('T')


def run_async(coro: Coroutine[None, None, T]) -> T:
    """
    Run an async coroutine from a sync context, handling nested event loops.

    Strategy:
    1. If no event loop is running: use asyncio.run() (simple case)
    2. If an event loop IS running: use a thread pool executor to run the coroutine
       in a new thread with its own event loop

    Example:
        >>> async def fetch_data():
        ...     return "data"
        >>> result = run_async(fetch_data())  # Works from both sync and async contexts
    """
    try:
        asyncio.get_running_loop()
    except RuntimeError:
        return asyncio.run(coro)

    with concurrent.futures.ThreadPoolExecutor(max_workers=1) as executor:
        future = executor.submit(asyncio.run, coro)
        return future.result()


def normalize_location(value: Any) -> str:
    """
    Canonical form of a location string for cache keys and matching.

    Lower-cases, trims and collapses inner whitespace.

    Example:
        >>> normalize_location("  New   York ")
        'new york'
    """
    if value is None:
        return ""
    return re.sub(r"\s+", " ", str(value)).strip().lower()


def hash_object(value: Any, length: int = 8) -> str:
    """
    Short, order-independent hash of a JSON-serializable value.

    Dict keys are sorted so {"a": 1, "b": 2} and {"b": 2, "a": 1} hash equal.
    """
    serialized = json.dumps(value, sort_keys=True, separators=(",", ":"), default=str)
    return hashlib.md5(serialized.encode("utf-8")).hexdigest()[:length]


def format_age(seconds: float) -> str:
    """
    Human-readable age in hours with one decimal.

    Example:
        >>> format_age(5400)
        '1.5 hours'
    """
    return f"{max(seconds, 0.0) / 3600:.1f} hours"


def format_duration(milliseconds: int) -> str:
    """
    Example:
        >>> format_duration(1234)
        '1.23s'
    """
    return f"{milliseconds / 1000:.2f}s"
