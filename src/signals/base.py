"""
SignalSource base class.

Every source follows the same contract: build a prompt, make exactly one
completion call under a per-source timeout, parse the reply with repair, and
return a Signal. Any ordinary failure becomes a low-confidence error signal;
only asyncio cancellation propagates.
"""

import asyncio
import logging
from abc import ABC, abstractmethod
from typing import Any, Dict, Optional

from src.common.completion import CompletionClient
from src.common.errors import SourceFetchError
from src.common.json_utils import parse_llm_json
from src.common.llm_config import StepConfig, get_step_config
from src.signals.types import Signal

logger = logging.getLogger(__name__)

PARSE_FAILURE_REASON = "Failed to parse AI response"


class SignalSource(ABC):
    """
    One external signal, fetched through the completion service.

    Subclasses set ``source_id``, ``step_name`` and ``base_confidence`` and
    implement ``build_prompt``. They may override ``shape_payload`` to
    normalize the parsed reply.
    """

    source_id: str = "unknown"
    step_name: str = "unknown"
    base_confidence: float = 0.5

    def __init__(self, client: CompletionClient, config: Optional[StepConfig] = None):
        self.client = client
        self.config = config or get_step_config(self.step_name)

    @abstractmethod
    def build_prompt(self, **params: Any) -> str:
        """Render the source-specific prompt."""

    def shape_payload(self, data: Dict[str, Any], **params: Any) -> Dict[str, Any]:
        """Hook for normalizing the parsed reply. Default: unchanged."""
        return data

    async def fetch(self, **params: Any) -> Signal:
        """
        Fetch this source's signal.

        Returns:
            Signal with ``base_confidence`` on success, or an error signal
            (confidence 0.3, payload ``{"error": reason}``) on any failure.
        """
        try:
            payload = await self._fetch_payload(**params)
        except SourceFetchError as e:
            logger.warning(f"[{self.__class__.__name__}] Degraded: {e.reason}")
            return Signal.error_signal(self.source_id, e.reason)

        return Signal(
            source_id=self.source_id,
            confidence=self.base_confidence,
            payload=payload,
        )

    async def _fetch_payload(self, **params: Any) -> Dict[str, Any]:
        prompt = self.build_prompt(**params)
        timeout = self.config.timeout_seconds

        try:
            result = await asyncio.wait_for(
                self.client.complete(
                    prompt,
                    max_tokens=self.config.max_tokens,
                    temperature=self.config.temperature,
                    step_name=self.step_name,
                    timeout_seconds=timeout,
                ),
                timeout=timeout,
            )
        except asyncio.TimeoutError:
            raise SourceFetchError(self.source_id, f"Timed out after {timeout:g}s")
        except Exception as e:
            raise SourceFetchError(self.source_id, f"{type(e).__name__}: {e}")

        if result is None:
            raise SourceFetchError(self.source_id, "Completion service returned no result")
        if not result.content or not result.content.strip():
            raise SourceFetchError(self.source_id, "Empty response")

        try:
            data = parse_llm_json(result.content)
        except ValueError:
            logger.debug(f"[{self.__class__.__name__}] Unparseable reply: {result.content[:200]}")
            raise SourceFetchError(self.source_id, PARSE_FAILURE_REASON)

        if not data:
            raise SourceFetchError(self.source_id, "Empty response")

        try:
            return self.shape_payload(data, **params)
        except (TypeError, ValueError) as e:
            raise SourceFetchError(self.source_id, f"{PARSE_FAILURE_REASON}: {e}")
