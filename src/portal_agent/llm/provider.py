"""
Reasoning Provider Contract

Connection settings and the chat-completion interface behind
LLMReasoning. Every agent call is one system message plus one user
message answered with short JSON, so the sampling defaults keep answers
small and close to deterministic.
"""

import os
from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Any, Optional

from pydantic import BaseModel

DEFAULT_MODEL = "claude-sonnet-4-20250514"

ANTHROPIC = "anthropic"
OPENAI_COMPATIBLE = "openai-compatible"


@dataclass
class LLMConfig:
    """Endpoint, credentials and sampling defaults for one provider."""

    api_key: str
    base_url: Optional[str] = None
    model: str = DEFAULT_MODEL
    max_tokens: int = 2000
    temperature: float = 0.2
    timeout: int = 60
    provider_type: str = ANTHROPIC

    @classmethod
    def from_env(cls) -> "LLMConfig":
        """
        Resolve the provider from the environment.

        OPENAI_API_BASE with OPENAI_API_KEY selects an OpenAI-compatible
        endpoint and wins over ANTHROPIC_API_KEY (ANTHROPIC_BASE_URL is an
        optional proxy). REASONING_MODEL names the model for every role.

        Raises:
            ValueError: If neither provider has credentials
        """
        model = os.getenv("REASONING_MODEL") or DEFAULT_MODEL
        openai_base, openai_key = os.getenv("OPENAI_API_BASE"), os.getenv("OPENAI_API_KEY")
        if openai_base and openai_key:
            return cls(api_key=openai_key, base_url=openai_base, model=model, provider_type=OPENAI_COMPATIBLE)

        anthropic_key = os.getenv("ANTHROPIC_API_KEY")
        if anthropic_key:
            return cls(api_key=anthropic_key, base_url=os.getenv("ANTHROPIC_BASE_URL"), model=model)

        raise ValueError(
            "No LLM provider configured: set ANTHROPIC_API_KEY, "
            "or OPENAI_API_BASE and OPENAI_API_KEY"
        )

    def sampling(self, **overrides: Any) -> dict[str, Any]:
        """Model and sampling parameters for one call, per-call overrides first."""
        return {
            "model": overrides.get("model", self.model),
            "max_tokens": overrides.get("max_tokens", self.max_tokens),
            "temperature": overrides.get("temperature", self.temperature),
        }


class Message(BaseModel):
    role: str
    content: str


class LLMResponse(BaseModel):
    content: str
    model: str
    usage: dict[str, int] = {}
    stop_reason: Optional[str] = None


class LLMProvider(ABC):
    """
    One chat-completion backend. Clients are created lazily on the first
    call and released by ``close()``; failures raise ReasoningError.
    """

    def __init__(self, config: LLMConfig):
        self.config = config
        self._client: Any = None

    @abstractmethod
    async def initialize(self) -> None:
        ...

    @abstractmethod
    async def complete(self, messages: list[Message], **overrides: Any) -> LLMResponse:
        ...

    @abstractmethod
    async def close(self) -> None:
        ...
