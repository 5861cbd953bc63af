"""
Anthropic Claude LLM Provider

Native implementation for Anthropic's Claude API through the official
SDK. SDK errors surface as ReasoningError.
"""

from typing import List, Any, Optional
from anthropic import APIError, APIStatusError, AsyncAnthropic
from anthropic.types import Message as AnthropicMessage

from ..config import get_logger
from ..errors import ReasoningError
from .provider import (
    LLMProvider,
    LLMConfig,
    LLMResponse,
    Message,
)

logger = get_logger(__name__)


class AnthropicProvider(LLMProvider):
    """
    Anthropic Claude API provider.

    System messages are joined into the dedicated ``system`` parameter;
    all other messages are passed through in order.
    """

    def __init__(self, config: LLMConfig):
        super().__init__(config)
        self._client: Optional[AsyncAnthropic] = None

    async def initialize(self) -> None:
        """Initialize the Anthropic async client."""
        if self._client is None:
            self._client = AsyncAnthropic(
                api_key=self.config.api_key,
                base_url=self.config.base_url,  # Can override for proxy
                timeout=self.config.timeout,
            )

    async def complete(
        self,
        messages: List[Message],
        **kwargs: Any,
    ) -> LLMResponse:
        """
        Generate a completion using Anthropic's API.

        Args:
            messages: List of chat messages
            **kwargs: model, max_tokens, temperature overrides

        Returns:
            LLMResponse with the concatenated text blocks

        Raises:
            ReasoningError: The API call failed
        """
        await self.initialize()

        system_parts = [m.content for m in messages if m.role == "system"]
        params = self.config.sampling(**kwargs)
        params["messages"] = [
            {"role": m.role, "content": m.content}
            for m in messages
            if m.role != "system"
        ]
        if system_parts:
            params["system"] = "\n\n".join(system_parts)

        try:
            response: AnthropicMessage = await self._client.messages.create(**params)
        except APIStatusError as e:
            raise ReasoningError(f"Anthropic API error: {e.status_code} - {e.message}", original_error=e)
        except APIError as e:
            raise ReasoningError(f"Anthropic request failed: {e.message}", original_error=e)

        content = "".join(
            block.text for block in response.content if getattr(block, "type", None) == "text"
        )
        logger.debug("Completion from %s: %d chars, stop=%s", response.model, len(content), response.stop_reason)

        return LLMResponse(
            content=content,
            model=response.model,
            usage={
                "input_tokens": response.usage.input_tokens,
                "output_tokens": response.usage.output_tokens,
                "total_tokens": response.usage.input_tokens + response.usage.output_tokens,
            },
            stop_reason=response.stop_reason,
        )

    async def close(self) -> None:
        """Close the Anthropic client."""
        if self._client:
            await self._client.close()
            self._client = None
