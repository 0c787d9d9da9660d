from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Optional, Type

from anthropic import AsyncAnthropic
from openai import AsyncOpenAI

from llm_dialog.errors import ValidationError
from llm_dialog.providers import Provider, get_api_key
from llm_dialog.providers.anthropic import AnthropicProvider
from llm_dialog.providers.base import ChatProvider
from llm_dialog.providers.openai import GeminiProvider, OpenAIProvider

__all__ = ["ModelSpec", "parse_model_spec", "create_provider"]

# map Provider enum to its implementation
_PROVIDER_REGISTRY: dict[Provider, Type[OpenAIProvider] | Type[AnthropicProvider]] = {
    Provider.OPENAI: OpenAIProvider,
    Provider.ANTHROPIC: AnthropicProvider,
    Provider.GEMINI: GeminiProvider,
}


@dataclass(frozen=True, slots=True)
class ModelSpec:
    """A parsed ``"provider:model"`` string."""

    provider: Provider
    model: str

    def __str__(self) -> str:
        return f"{self.provider.value}:{self.model}"


def parse_model_spec(spec: str) -> ModelSpec:
    """
    Split ``"provider:model"`` into its parts.

    Only the first colon separates the provider, so model ids may contain colons
    (e.g. ``"openai:ft:gpt-4o-mini:acme"``).
    """
    if not isinstance(spec, str):
        raise ValidationError(f"Model spec must be a string, got {type(spec).__name__}")
    prefix, sep, model = spec.partition(":")
    if not sep or not prefix.strip() or not model.strip():
        raise ValidationError(f"Model spec must look like 'provider:model', got {spec!r}")
    return ModelSpec(provider=Provider.parse(prefix), model=model.strip())


def create_provider(
    provider: Provider,
    *,
    api_key: str | None = None,
    base_url: str | None = None,
    timeout: float | None = None,
    client: AsyncOpenAI | AsyncAnthropic | None = None,
    logger: Optional[logging.Logger] = None,
) -> ChatProvider:
    """
    Factory for creating any supported provider.

    Args:
        provider: Which provider to use (OPENAI, ANTHROPIC, GEMINI).
        api_key: Overrides automatic lookup; if omitted, pulled from env.
        base_url: Optional endpoint override, passed through untouched.
        timeout: Optional request timeout in seconds, passed through untouched.
        client: Optional pre-configured SDK client to use.
            - For Provider.OPENAI / Provider.GEMINI: an AsyncOpenAI instance
            - For Provider.ANTHROPIC: an AsyncAnthropic instance
        logger: Optional custom logger.
    """
    try:
        provider_cls = _PROVIDER_REGISTRY[provider]
    except KeyError as exc:
        raise ValidationError(f"Unsupported provider: {provider}") from exc

    if client is not None:  # use caller-supplied client verbatim
        return provider_cls.from_client(client, logger=logger)  # type: ignore[arg-type]

    key = api_key or get_api_key(provider)
    return provider_cls(api_key=key, base_url=base_url, timeout=timeout, logger=logger)
