"""
LLM Provider Abstraction

The reasoning capability consulted by every agent, backed by one of:
- Anthropic Claude (native)
- OpenAI-compatible APIs (OpenAI, OpenRouter, local models)
"""

from .provider import LLMProvider, LLMConfig, Message, LLMResponse
from .anthropic_provider import AnthropicProvider
from .openai_compatible_provider import OpenAICompatibleProvider
from .factory import create_provider_from_env, create_provider
from .reasoning import LLMReasoning, ReasoningCapability

__all__ = [
    "LLMProvider",
    "LLMConfig",
    "Message",
    "LLMResponse",
    "AnthropicProvider",
    "OpenAICompatibleProvider",
    "create_provider_from_env",
    "create_provider",
    "LLMReasoning",
    "ReasoningCapability",
]
