"""
OpenAI-Compatible LLM Provider

Universal provider for any API that follows the OpenAI chat completion
format: OpenAI itself, OpenRouter, or local servers such as Ollama.
Transport and protocol failures surface as ReasoningError.
"""

from typing import List, Any, Optional
import httpx

from ..config import get_logger
from ..errors import ReasoningError
from .provider import (
    LLMProvider,
    LLMConfig,
    LLMResponse,
    Message,
)

logger = get_logger(__name__)


class OpenAICompatibleProvider(LLMProvider):
    """
    OpenAI-compatible API provider over plain HTTP.
    """

    def __init__(self, config: LLMConfig):
        super().__init__(config)
        self._client: Optional[httpx.AsyncClient] = None

    async def initialize(self) -> None:
        """Initialize the HTTP client."""
        if self._client is None:
            self._client = httpx.AsyncClient(
                base_url=self.config.base_url,
                headers={
                    "Authorization": f"Bearer {self.config.api_key}",
                    "Content-Type": "application/json",
                },
                timeout=self.config.timeout,
            )

    async def complete(
        self,
        messages: List[Message],
        **kwargs: Any,
    ) -> LLMResponse:
        """
        Generate a completion using the /chat/completions endpoint.

        Raises:
            ReasoningError: Timeout, transport failure, error status or a
                            body without a first choice
        """
        await self.initialize()

        payload = self.config.sampling(**kwargs)
        payload["messages"] = [{"role": msg.role, "content": msg.content} for msg in messages]
        model = payload["model"]

        try:
            response = await self._client.post("/chat/completions", json=payload)
            response.raise_for_status()
            data = response.json()
        except httpx.TimeoutException as e:
            raise ReasoningError(f"LLM request timed out after {self.config.timeout}s", original_error=e)
        except httpx.HTTPStatusError as e:
            raise ReasoningError(
                f"LLM API error: {e.response.status_code} - {e.response.text[:200]}",
                original_error=e,
            )
        except (httpx.HTTPError, ValueError) as e:
            raise ReasoningError(f"LLM request failed: {e}", original_error=e)

        try:
            choice = data["choices"][0]
            content = choice["message"].get("content") or ""
        except (KeyError, IndexError, TypeError) as e:
            raise ReasoningError("LLM response has no choices", original_error=e)

        usage = data.get("usage") or {}
        logger.debug("Completion from %s: %d chars", data.get("model", model), len(content))

        return LLMResponse(
            content=content,
            model=data.get("model", model),
            usage={
                "prompt_tokens": usage.get("prompt_tokens", 0),
                "completion_tokens": usage.get("completion_tokens", 0),
                "total_tokens": usage.get("total_tokens", 0),
            },
            stop_reason=choice.get("finish_reason"),
        )

    async def close(self) -> None:
        """Close the HTTP client."""
        if self._client:
            await self._client.aclose()
            self._client = None
