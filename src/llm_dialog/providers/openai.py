from __future__ import annotations

import logging
from typing import Any, Optional, Self, Sequence

from openai import AsyncOpenAI
from openai.types.chat import ChatCompletion

from llm_dialog.adapters import OpenAIRequestAdapter
from llm_dialog.errors import PROVIDER_ERRORS, classify_error
from llm_dialog.params import RequestConfig
from llm_dialog.providers.base import ChatProvider, ProviderReply
from llm_dialog.types.chat import Message
from llm_dialog.types.tool import ToolDefinition

__all__ = ["OpenAIProvider", "GeminiProvider"]

DEFAULT_TIMEOUT = 60.0
_DEFAULT_GEMINI_BASE_URL = "https://generativelanguage.googleapis.com/v1beta/openai/"


class OpenAIProvider(ChatProvider):
    """
    OpenAI Chat Completions provider (async-only).

    Use ``OpenAIProvider.from_client`` when you already have an ``AsyncOpenAI`` instance.
    """

    name = "openai"

    def __init__(
        self,
        *,
        api_key: str,
        timeout: Optional[float] = None,
        base_url: Optional[str] = None,
        logger: Optional[logging.Logger] = None,
    ) -> None:
        super().__init__(logger=logger)
        # Retry policy belongs to the caller
        self._client = AsyncOpenAI(
            api_key=api_key,
            timeout=timeout if timeout is not None else DEFAULT_TIMEOUT,
            max_retries=0,
            base_url=base_url,
        )
        self._adapter = OpenAIRequestAdapter()

    @classmethod
    def from_client(
        cls,
        client: AsyncOpenAI,
        *,
        logger: Optional[logging.Logger] = None,
    ) -> Self:
        """
        Build a provider around an already-configured ``AsyncOpenAI`` client.
        """
        if not isinstance(client, AsyncOpenAI):
            raise TypeError(
                f"{cls.__name__}.from_client expects AsyncOpenAI; got {type(client).__name__}"
            )

        self = cls.__new__(cls)  # bypass __init__
        ChatProvider.__init__(self, logger=logger)
        self._client = client
        self._adapter = OpenAIRequestAdapter()
        return self

    @property
    def adapter(self) -> OpenAIRequestAdapter:
        return self._adapter

    async def complete_chat(
        self,
        model_id: str,
        messages: Sequence[Message],
        config: RequestConfig,
        *,
        tools: Sequence[ToolDefinition] = (),
        response_format: Optional[dict[str, Any]] = None,
    ) -> ProviderReply:
        request_data = self._adapter.to_provider(
            messages, config, tools=tools, response_format=response_format
        )
        args = {"model": model_id, **request_data}

        self._log(f"Sending request to model {model_id} ({len(messages)} messages)")

        try:
            response: ChatCompletion = await self._client.chat.completions.create(**args)
        except PROVIDER_ERRORS as exc:
            raise classify_error(exc, self.logger, provider=self.name) from exc
        return self._adapter.from_provider(response)


class GeminiProvider(OpenAIProvider):
    """
    Gemini provider via the OpenAI-compatible endpoint.
    """

    name = "gemini"

    def __init__(
        self,
        *,
        api_key: str,
        timeout: Optional[float] = None,
        base_url: Optional[str] = None,
        logger: Optional[logging.Logger] = None,
    ) -> None:
        super().__init__(
            api_key=api_key,
            timeout=timeout,
            base_url=base_url or _DEFAULT_GEMINI_BASE_URL,
            logger=logger,
        )
