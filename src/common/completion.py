"""
Completion service client.

The pipeline treats the generative backend as an opaque, fallible function:
prompt in, text out. ``CompletionClient.complete`` never raises for ordinary
failures. It returns ``None`` when the backend could not produce anything, so
callers decide between degrading (signal sources) and failing (synthesis).

Usage:
    from src.common.completion import LangChainCompletionClient

    client = LangChainCompletionClient()
    result = await client.complete(prompt, max_tokens=800, temperature=0.0,
                                   step_name="cost_of_living")
    if result is not None:
        print(result.content, result.duration_ms)
"""

import asyncio
import logging
from abc import ABC, abstractmethod
from dataclasses import dataclass, asdict
from datetime import datetime
from typing import Any, Dict, Optional, Tuple

from langchain_core.messages import HumanMessage, SystemMessage
from langchain_openai import ChatOpenAI

from src.common.config import Config

logger = logging.getLogger(__name__)

DEFAULT_SYSTEM_PROMPT = (
    "You are a compensation and labor-market data assistant. "
    "Answer with a single JSON object and nothing else."
)


@dataclass
class CompletionResult:
    """
    One completion reply with attribution.

    Attributes:
        content: Raw reply text (may be empty)
        model: Model identifier that produced it
        step_name: Pipeline step that asked for it
        duration_ms: Wall time of the call
        input_tokens: Prompt tokens (if reported)
        output_tokens: Completion tokens (if reported)
    """

    content: str
    model: str
    step_name: str
    duration_ms: int
    input_tokens: Optional[int] = None
    output_tokens: Optional[int] = None

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


class CompletionClient(ABC):
    """Interface for the generative text-completion service."""

    @abstractmethod
    async def complete(
        self,
        prompt: str,
        max_tokens: int,
        temperature: float,
        step_name: str = "unnamed",
        timeout_seconds: Optional[float] = None,
    ) -> Optional[CompletionResult]:
        """
        Run one completion.

        Returns:
            CompletionResult, or None if the backend failed. Never raises
            except for asyncio cancellation.
        """

    @abstractmethod
    async def is_available(self, timeout_seconds: float = 5.0) -> bool:
        """Bounded reachability probe for the backend."""


class LangChainCompletionClient(CompletionClient):
    """
    CompletionClient backed by langchain_openai.ChatOpenAI.

    Chat models are created lazily and reused per (temperature, max_tokens)
    pair. Retries are disabled: a failed call is reported, not repeated.
    """

    def __init__(
        self,
        model: Optional[str] = None,
        api_key: Optional[str] = None,
        base_url: Optional[str] = None,
        system_prompt: str = DEFAULT_SYSTEM_PROMPT,
    ):
        self.model = model or Config.ANALYSIS_MODEL
        self._api_key = api_key if api_key is not None else Config.get_llm_api_key()
        self._base_url = base_url if base_url is not None else Config.get_llm_base_url()
        self.system_prompt = system_prompt
        self._llms: Dict[Tuple[float, int, Optional[float]], ChatOpenAI] = {}

    def _get_llm(
        self, temperature: float, max_tokens: int, timeout_seconds: Optional[float]
    ) -> ChatOpenAI:
        key = (temperature, max_tokens, timeout_seconds)
        if key not in self._llms:
            self._llms[key] = ChatOpenAI(
                model=self.model,
                temperature=temperature,
                max_tokens=max_tokens,
                api_key=self._api_key,
                base_url=self._base_url,
                timeout=timeout_seconds,
                max_retries=0,
            )
            logger.debug(
                f"[Completion] Created ChatOpenAI: model={self.model}, "
                f"temperature={temperature}, max_tokens={max_tokens}"
            )
        return self._llms[key]

    async def complete(
        self,
        prompt: str,
        max_tokens: int,
        temperature: float,
        step_name: str = "unnamed",
        timeout_seconds: Optional[float] = None,
    ) -> Optional[CompletionResult]:
        start_time = datetime.utcnow()
        messages = [
            SystemMessage(content=self.system_prompt),
            HumanMessage(content=prompt),
        ]

        try:
            llm = self._get_llm(temperature, max_tokens, timeout_seconds)
            response = await llm.ainvoke(messages)
        except asyncio.CancelledError:
            raise
        except Exception as e:
            duration_ms = int((datetime.utcnow() - start_time).total_seconds() * 1000)
            logger.error(
                f"[Completion:{step_name}] Backend call failed after {duration_ms}ms: "
                f"{type(e).__name__}: {e}"
            )
            return None

        content = response.content if isinstance(response.content, str) else str(response.content)
        duration_ms = int((datetime.utcnow() - start_time).total_seconds() * 1000)

        input_tokens = None
        output_tokens = None
        if getattr(response, "usage_metadata", None):
            input_tokens = response.usage_metadata.get("input_tokens")
            output_tokens = response.usage_metadata.get("output_tokens")

        logger.info(
            f"[Completion:{step_name}] {self.model} returned {len(content)} chars "
            f"in {duration_ms}ms"
        )

        return CompletionResult(
            content=content,
            model=self.model,
            step_name=step_name,
            duration_ms=duration_ms,
            input_tokens=input_tokens,
            output_tokens=output_tokens,
        )

    async def is_available(self, timeout_seconds: float = 5.0) -> bool:
        if not self._api_key:
            logger.warning("[Completion] No API key configured")
            return False

        try:
            result = await asyncio.wait_for(
                self.complete(
                    'Reply with {"ok": true}',
                    max_tokens=10,
                    temperature=0.0,
                    step_name="availability_probe",
                    timeout_seconds=timeout_seconds,
                ),
                timeout=timeout_seconds,
            )
        except asyncio.TimeoutError:
            logger.warning(f"[Completion] Availability probe timed out after {timeout_seconds}s")
            return False

        return result is not None
