from __future__ import annotations

import logging
from typing import Any, Optional, Self, Sequence

from anthropic import AsyncAnthropic
from anthropic.types import Message as AnthropicMessage

from llm_dialog.adapters import AnthropicRequestAdapter
from llm_dialog.errors import PROVIDER_ERRORS, classify_error
from llm_dialog.params import RequestConfig
from llm_dialog.providers.base import ChatProvider, ProviderReply
from llm_dialog.types.chat import Message
from llm_dialog.types.tool import ToolDefinition

__all__ = ["AnthropicProvider"]

DEFAULT_TIMEOUT = 60.0


class AnthropicProvider(ChatProvider):
    """
    Anthropic Messages provider (async-only).

    Use ``AnthropicProvider.from_client`` when you already have an ``AsyncAnthropic`` instance.
    The Messages API has no JSON response mode, so structured output is not offered.
    """

    name = "anthropic"
    supports_structured_output = False

    def __init__(
        self,
        *,
        api_key: str,
        timeout: Optional[float] = None,
        base_url: Optional[str] = None,
        logger: Optional[logging.Logger] = None,
    ) -> None:
        super().__init__(logger=logger)
        self._client = AsyncAnthropic(
            api_key=api_key,
            timeout=timeout if timeout is not None else DEFAULT_TIMEOUT,
            max_retries=0,
            base_url=base_url,
        )
        self._adapter = AnthropicRequestAdapter()

    @classmethod
    def from_client(
        cls,
        client: AsyncAnthropic,
        *,
        logger: Optional[logging.Logger] = None,
    ) -> Self:
        """
        Wrap an existing ``AsyncAnthropic`` client.
        """
        if not isinstance(client, AsyncAnthropic):
            raise TypeError(
                f"AnthropicProvider.from_client expects AsyncAnthropic; got {type(client).__name__}"
            )

        self = cls.__new__(cls)  # bypass __init__
        ChatProvider.__init__(self, logger=logger)
        self._client = client
        self._adapter = AnthropicRequestAdapter()
        return self

    @property
    def adapter(self) -> AnthropicRequestAdapter:
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
        request_data = self._adapter.to_provider(messages, config, tools=tools)
        args = {"model": model_id, **request_data}

        self._log(f"Sending request to model {model_id} ({len(messages)} messages)")

        try:
            response: AnthropicMessage = await self._client.messages.create(**args)
        except PROVIDER_ERRORS as exc:
            raise classify_error(exc, self.logger, provider=self.name) from exc
        return self._adapter.from_provider(response)
