"""
Provider selection for the reasoning capability.
"""

from typing import Any, Optional

from ..errors import ConfigurationError
from .anthropic_provider import AnthropicProvider
from .openai_compatible_provider import OpenAICompatibleProvider
from .provider import ANTHROPIC, DEFAULT_MODEL, OPENAI_COMPATIBLE, LLMConfig, LLMProvider

PROVIDERS: dict[str, type[LLMProvider]] = {
    ANTHROPIC: AnthropicProvider,
    OPENAI_COMPATIBLE: OpenAICompatibleProvider,
}


def _build(config: LLMConfig) -> LLMProvider:
    try:
        provider_class = PROVIDERS[config.provider_type]
    except KeyError:
        raise ConfigurationError(
            f"Unknown provider type {config.provider_type!r}, expected one of {sorted(PROVIDERS)}"
        ) from None
    return provider_class(config)


def create_provider_from_env() -> LLMProvider:
    """
    Provider chosen by ``LLMConfig.from_env()``.

    Raises:
        ValueError: If no provider credentials are configured
    """
    return _build(LLMConfig.from_env())


def create_provider(
    provider_type: str = ANTHROPIC,
    api_key: Optional[str] = None,
    base_url: Optional[str] = None,
    model: str = DEFAULT_MODEL,
    **settings: Any,
) -> LLMProvider:
    """Provider with explicit settings; ``settings`` are extra LLMConfig fields."""
    return _build(LLMConfig(
        api_key=api_key or "",
        base_url=base_url,
        model=model,
        provider_type=provider_type,
        **settings,
    ))
