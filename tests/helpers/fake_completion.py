"""
Scripted completion client for pipeline tests.

Replies are looked up by step name. A reply may be:
- a str: returned as the completion content
- a dict: serialized to JSON
- None: the backend "failed" (complete() returns None)
- an Exception instance: raised from complete()
- a callable(prompt) returning any of the above

Every call is recorded in ``calls`` as (step_name, prompt).
"""

import asyncio
import json
from typing import Any, Dict, List, Optional, Tuple

from src.common.completion import CompletionClient, CompletionResult

_MISSING = object()


class FakeCompletionClient(CompletionClient):
    def __init__(
        self,
        replies: Optional[Dict[str, Any]] = None,
        default: Any = None,
        delays: Optional[Dict[str, float]] = None,
        available: bool = True,
    ):
        self.replies = dict(replies or {})
        self.default = default
        self.delays = dict(delays or {})
        self.available = available
        self.calls: List[Tuple[str, str]] = []

    def steps_called(self) -> List[str]:
        return [step for step, _ in self.calls]

    def prompt_for(self, step_name: str) -> Optional[str]:
        for step, prompt in self.calls:
            if step == step_name:
                return prompt
        return None

    async def complete(
        self,
        prompt: str,
        max_tokens: int,
        temperature: float,
        step_name: str = "unnamed",
        timeout_seconds: Optional[float] = None,
    ) -> Optional[CompletionResult]:
        self.calls.append((step_name, prompt))

        delay = self.delays.get(step_name)
        if delay:
            await asyncio.sleep(delay)

        reply = self.replies.get(step_name, _MISSING)
        if reply is _MISSING:
            reply = self.default
        if callable(reply):
            reply = reply(prompt)
        if isinstance(reply, Exception):
            raise reply
        if reply is None:
            return None
        if isinstance(reply, (dict, list)):
            reply = json.dumps(reply)

        return CompletionResult(
            content=reply,
            model="fake-model",
            step_name=step_name,
            duration_ms=0,
        )

    async def is_available(self, timeout_seconds: float = 5.0) -> bool:
        return self.available
