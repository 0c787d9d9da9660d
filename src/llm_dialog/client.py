"""
Session entry point: ``LLM("provider:model")``.
"""

from __future__ import annotations

import logging
from typing import Any, Iterable, Mapping, Optional, Union

from llm_dialog.builders import PlainBuilder, SchemaLike, StructuredBuilder, ToolBuilder
from llm_dialog.factory import ModelSpec, create_provider, parse_model_spec
from llm_dialog.params import RequestConfig
from llm_dialog.providers.base import ChatProvider
from llm_dialog.types.tool import ToolDefinition

__all__ = ["LLM"]


class LLM(PlainBuilder):
    """
    One model on one provider, with its own default RequestConfig.

    ``complete()`` runs a plain completion; ``structured()`` and
    ``with_tools()`` start builders that inherit the current config.

    Args:
        model: ``"provider:model"``, e.g. ``"openai:gpt-4o"``.
        api_key: Overrides the environment lookup.
        base_url: Endpoint override, passed through to the provider.
        timeout: Request timeout in seconds, passed through to the provider.
        provider: A ready ChatProvider; when given, no vendor client is created.
        options: Initial options, as for ``with_options``.
    """

    def __init__(
        self,
        model: str,
        *,
        api_key: Optional[str] = None,
        base_url: Optional[str] = None,
        timeout: Optional[float] = None,
        provider: Optional[ChatProvider] = None,
        options: Optional[Mapping[str, Any]] = None,
        logger: Optional[logging.Logger] = None,
    ) -> None:
        self.spec: ModelSpec = parse_model_spec(model)
        if provider is None:
            provider = create_provider(
                self.spec.provider,
                api_key=api_key,
                base_url=base_url,
                timeout=timeout,
                logger=logger,
            )
        super().__init__(provider, self.spec.model, RequestConfig(), logger=logger)
        if options:
            self.with_options(options)

    def structured(self, schema: Optional[SchemaLike] = None) -> StructuredBuilder:
        """Create a builder for structured (JSON) output."""
        return StructuredBuilder(
            self.provider, self.model, self.config, schema=schema, logger=self.logger
        )

    def with_tools(
        self,
        tools: Optional[Iterable[Union[ToolDefinition, Mapping[str, Any]]]] = None,
    ) -> ToolBuilder:
        """Create a builder for tool calling."""
        return ToolBuilder(self.provider, self.model, self.config, tools=tools, logger=self.logger)

    async def aclose(self) -> None:
        await self.provider.aclose()

    async def __aenter__(self) -> "LLM":
        return self

    async def __aexit__(self, exc_type, exc, tb) -> None:
        await self.aclose()

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}({str(self.spec)!r})"
