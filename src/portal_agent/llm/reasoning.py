"""
Reasoning Capability

The text-in/text-out contract every agent consults, plus the adapter
that fulfils it with an LLM provider.

The return value is untyped text. Callers parse it themselves and must
tolerate prose without JSON, malformed JSON and empty payloads.
"""

from typing import Any, Optional, Protocol, runtime_checkable

from .provider import LLMProvider, Message


@runtime_checkable
class ReasoningCapability(Protocol):
    """Contract: ``invoke(system_instructions, user_prompt) -> str``."""

    async def invoke(self, system_instructions: str, user_prompt: str) -> str:
        ...


class LLMReasoning:
    """
    ReasoningCapability backed by an LLMProvider.

    Usage:
        >>> reasoning = LLMReasoning(create_provider_from_env())
        >>> text = await reasoning.invoke("You are a planner...", "Goal: ...")
    """

    def __init__(
        self,
        provider: LLMProvider,
        model: Optional[str] = None,
        **overrides: Any,
    ):
        """
        Args:
            provider: Provider used for every call
            model: Model override (provider default if None)
            **overrides: max_tokens / temperature overrides
        """
        self.provider = provider
        self._overrides = dict(overrides)
        if model:
            self._overrides["model"] = model

    async def invoke(self, system_instructions: str, user_prompt: str) -> str:
        response = await self.provider.complete(
            [
                Message(role="system", content=system_instructions),
                Message(role="user", content=user_prompt),
            ],
            **self._overrides,
        )
        return response.content

    async def close(self) -> None:
        await self.provider.close()
