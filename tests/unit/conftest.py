"""
Global fixtures for all unit tests.

This conftest provides autouse fixtures that prevent real external service calls:
- MongoDB connection attempts (would cause 5-30s timeout per test)
- Environment variable isolation (prevents credential leakage)

These fixtures apply automatically to ALL tests in tests/unit/.
"""

import os
import pytest
from unittest.mock import patch, MagicMock

# Set test environment BEFORE any imports to prevent Config from loading real values
os.environ["ENABLE_PERSISTENT_CACHE"] = "false"
os.environ["ENABLE_STRUCTURED_EVENTS"] = "false"
os.environ["PREFLIGHT_AVAILABILITY_CHECK"] = "false"


@pytest.fixture(autouse=True)
def mock_mongodb():
    """
    Prevent MongoDB connection attempts in all unit tests.

    The analysis cache repository imports MongoClient directly, so both the
    pymongo attribute and the module-level name are patched.

    MongoClient("") defaults to localhost:27017, causing 5-30s timeout per test.
    """
    from src.common.repositories.analysis_cache_repository import AtlasAnalysisCacheRepository

    AtlasAnalysisCacheRepository._client = None
    with patch("pymongo.MongoClient") as mock_client, patch(
        "src.common.repositories.analysis_cache_repository.MongoClient", mock_client
    ):
        mock_instance = MagicMock()
        mock_db = MagicMock()
        mock_collection = MagicMock()

        # Setup chain: client["db"]["collection"]
        mock_instance.__getitem__ = MagicMock(return_value=mock_db)
        mock_db.__getitem__ = MagicMock(return_value=mock_collection)
        mock_collection.find_one = MagicMock(return_value=None)
        mock_collection.find = MagicMock(return_value=[])

        mock_client.return_value = mock_instance
        yield mock_client

    AtlasAnalysisCacheRepository._client = None


@pytest.fixture(autouse=True)
def isolate_environment(monkeypatch):
    """
    Isolate test environment from real credentials and configurations.

    This prevents:
    - Real API keys being used if tests accidentally call the completion service
    - Per-step LLM overrides from the developer's shell leaking into configs
    """
    monkeypatch.setenv("OPENAI_API_KEY", "sk-test-mock-key")
    monkeypatch.delenv("LLM_BASE_URL", raising=False)
    for name in list(os.environ):
        if name.startswith(("LLM_MAX_TOKENS_", "LLM_TEMPERATURE_", "LLM_TIMEOUT_")):
            monkeypatch.delenv(name, raising=False)
