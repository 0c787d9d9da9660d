"""
Fluent request builders.

Every setter validates immediately, stores a new immutable RequestConfig on
the builder and returns the builder, so configuration can be chained::

    response = await llm.with_tools([weather]).set_temperature(0.0).complete(messages)

``complete()`` is the only coroutine; it performs exactly one provider call
and never retries.
"""

from __future__ import annotations

import json
import logging
from typing import Any, Iterable, Mapping, Optional, Self, Sequence, Union

from pydantic import BaseModel

from llm_dialog.errors import StructuredOutputError, ToolCallError, ValidationError
from llm_dialog.messages import MessageCollection, MessageLike, coerce_messages
from llm_dialog.params import RequestConfig
from llm_dialog.providers.base import ChatProvider, ProviderReply
from llm_dialog.response import (
    DEFAULT_FINISH_REASON,
    Response,
    StructuredResponse,
    ToolCallState,
    ToolResponse,
)
from llm_dialog.types.chat import Usage
from llm_dialog.types.tool import ToolDefinition

__all__ = ["PlainBuilder", "StructuredBuilder", "ToolBuilder", "Messages"]

Messages = Union[MessageCollection, Iterable[MessageLike]]
SchemaLike = Union[Mapping[str, Any], str, type[BaseModel]]

STRUCTURED_FORMATS = ("json", "json_schema")


class _BaseBuilder:
    """Shared configuration and dispatch for all builders."""

    def __init__(
        self,
        provider: ChatProvider,
        model: str,
        config: Optional[RequestConfig] = None,
        *,
        logger: Optional[logging.Logger] = None,
        name: Optional[str] = None,
    ) -> None:
        self.provider = provider
        self.model = model
        self.config = config or RequestConfig()
        self.logger = logger or logging.getLogger(__name__)
        self.name = name if name is not None else self.__class__.__name__

    # --- fluent configuration ---------------------------------------------
    def set_temperature(self, temperature: float) -> Self:
        self.config = self.config.copy(temperature=temperature)
        return self

    def set_max_tokens(self, max_tokens: int) -> Self:
        self.config = self.config.copy(max_tokens=max_tokens)
        return self

    def set_top_p(self, top_p: float) -> Self:
        self.config = self.config.copy(top_p=top_p)
        return self

    def set_frequency_penalty(self, penalty: float) -> Self:
        self.config = self.config.copy(frequency_penalty=penalty)
        return self

    def set_presence_penalty(self, penalty: float) -> Self:
        self.config = self.config.copy(presence_penalty=penalty)
        return self

    def with_options(self, options: Mapping[str, Any]) -> Self:
        """Apply several options at once; unknown keys are passed to the provider as-is."""
        self.config = self.config.merge(options)
        return self

    # --- dispatch ----------------------------------------------------------
    async def _dispatch(
        self,
        messages: Messages,
        *,
        tools: Sequence[ToolDefinition] = (),
        response_format: Optional[dict[str, Any]] = None,
    ) -> ProviderReply:
        collection = coerce_messages(messages)
        pending = collection.pending_tool_calls()
        if pending:
            raise ToolCallError(
                "Conversation has tool calls without results: "
                + ", ".join(call.id for call in pending)
            )

        self._log(
            f"Dispatching {collection.count()} messages to {self.provider.name}:{self.model}"
        )
        return await self.provider.complete_chat(
            self.model,
            collection.all(),
            self.config,
            tools=tools,
            response_format=response_format,
        )

    def _log(self, message: str, level: int = logging.INFO) -> None:
        self.logger.log(level, f"[{self.name}] {message}")

    @staticmethod
    def _usage(reply: ProviderReply) -> Usage:
        return reply.usage if reply.usage is not None else Usage()

    @staticmethod
    def _finish_reason(reply: ProviderReply) -> str:
        return reply.finish_reason or DEFAULT_FINISH_REASON


class PlainBuilder(_BaseBuilder):
    """Builder for ordinary text completions."""

    async def complete(self, messages: Messages) -> Response:
        reply = await self._dispatch(messages)
        return Response(
            content=reply.content,
            usage=self._usage(reply),
            model=self.model,
            finish_reason=self._finish_reason(reply),
        )


class StructuredBuilder(_BaseBuilder):
    """Builder for JSON output, optionally constrained by a JSON Schema."""

    def __init__(
        self,
        provider: ChatProvider,
        model: str,
        config: Optional[RequestConfig] = None,
        *,
        schema: Optional[SchemaLike] = None,
        format: Optional[str] = None,
        logger: Optional[logging.Logger] = None,
        name: Optional[str] = None,
    ) -> None:
        super().__init__(provider, model, config, logger=logger, name=name)
        self.schema: Optional[dict[str, Any]] = None
        self.schema_name = "response"
        self.format: Optional[str] = None
        if schema is not None:
            self.with_schema(schema)
        if format is not None:
            self.with_format(format)

    def with_schema(self, schema: SchemaLike, *, name: Optional[str] = None) -> Self:
        """Set the JSON Schema from a dict, a JSON string or a pydantic model class."""
        if isinstance(schema, type) and issubclass(schema, BaseModel):
            self.schema = schema.model_json_schema()
            self.schema_name = name or schema.__name__
            return self
        if isinstance(schema, str):
            try:
                schema = json.loads(schema)
            except json.JSONDecodeError as exc:
                raise ValidationError(f"Invalid JSON schema: {exc}") from exc
        if not isinstance(schema, Mapping):
            raise ValidationError("Schema must be a JSON object")
        self.schema = dict(schema)
        if name:
            self.schema_name = name
        return self

    def with_format(self, format: str) -> Self:
        """Set the output format: ``"json"`` or ``"json_schema"``."""
        if format not in STRUCTURED_FORMATS:
            raise ValidationError(
                f"Unsupported structured format {format!r}; use one of {STRUCTURED_FORMATS}"
            )
        self.format = format
        return self

    @property
    def effective_format(self) -> str:
        if self.format is not None:
            return self.format
        return "json_schema" if self.schema is not None else "json"

    def _response_format(self) -> dict[str, Any]:
        if self.effective_format == "json_schema":
            if self.schema is None:
                raise ValidationError("Format 'json_schema' requires a schema; call with_schema()")
            return {"type": "json_schema", "name": self.schema_name, "schema": self.schema}
        return {"type": "json"}

    async def complete(self, messages: Messages) -> StructuredResponse:
        response_format = self._response_format()
        if not self.provider.supports_structured_output:
            raise StructuredOutputError(
                f"Structured output not supported by provider {self.provider.name!r}"
            )

        reply = await self._dispatch(messages, response_format=response_format)
        usage = self._usage(reply)

        # Parse once; a failure is reported, not retried
        if reply.structured is not None:
            structured = reply.structured
        else:
            try:
                structured = json.loads(reply.content)
            except json.JSONDecodeError as exc:
                self._log(f"Structured output is not valid JSON: {exc.msg}", logging.WARNING)
                raise StructuredOutputError(
                    f"Structured output is not valid JSON: {exc.msg}",
                    raw_text=reply.content,
                    usage=usage,
                ) from exc

        return StructuredResponse(
            content=reply.content,
            usage=usage,
            model=self.model,
            finish_reason=self._finish_reason(reply),
            structured=structured,
        )


class ToolBuilder(_BaseBuilder):
    """Builder for completions that may request tool calls.

    This layer never runs tools itself; see ``ToolResponse`` for the
    caller's side of the round trip.
    """

    def __init__(
        self,
        provider: ChatProvider,
        model: str,
        config: Optional[RequestConfig] = None,
        *,
        tools: Optional[Iterable[Union[ToolDefinition, Mapping[str, Any]]]] = None,
        logger: Optional[logging.Logger] = None,
        name: Optional[str] = None,
    ) -> None:
        super().__init__(provider, model, config, logger=logger, name=name)
        self._tools: list[ToolDefinition] = []
        self._auto_execute = False
        self.state = ToolCallState.AWAITING_INITIAL
        if tools is not None:
            self.set_tools(tools)

    @property
    def tools(self) -> list[ToolDefinition]:
        return list(self._tools)

    @property
    def auto_execute(self) -> bool:
        return self._auto_execute

    def add_tool(self, tool: Union[ToolDefinition, Mapping[str, Any]]) -> Self:
        tool = self._to_tool(tool)
        if any(t.name == tool.name for t in self._tools):
            raise ValidationError(f"Duplicate tool name {tool.name!r}")
        self._tools.append(tool)
        return self

    def set_tools(self, tools: Iterable[Union[ToolDefinition, Mapping[str, Any]]]) -> Self:
        """Replace all tools. Nothing changes if any entry is invalid."""
        new_tools: list[ToolDefinition] = []
        for item in tools:
            tool = self._to_tool(item)
            if any(t.name == tool.name for t in new_tools):
                raise ValidationError(f"Duplicate tool name {tool.name!r}")
            new_tools.append(tool)
        self._tools = new_tools
        return self

    def set_auto_execute(self, auto: bool) -> Self:
        """Reserved. The flag is stored but tools are never executed by this layer."""
        self._auto_execute = bool(auto)
        self._log(f"auto_execute={self._auto_execute} has no effect", logging.DEBUG)
        return self

    @staticmethod
    def _to_tool(item: Union[ToolDefinition, Mapping[str, Any]]) -> ToolDefinition:
        if isinstance(item, ToolDefinition):
            return item
        if isinstance(item, Mapping):
            return ToolDefinition.from_dict(item)
        raise ValidationError(f"Expected a ToolDefinition or a dict, got {type(item).__name__}")

    async def complete(self, messages: Messages) -> ToolResponse:
        reply = await self._dispatch(messages, tools=tuple(self._tools))
        response = ToolResponse(
            content=reply.content,
            usage=self._usage(reply),
            model=self.model,
            finish_reason=self._finish_reason(reply),
            tool_calls=tuple(reply.tool_calls),
            response_id=reply.response_id,
        )

        offered = {t.name for t in self._tools}
        seen: set[str] = set()
        for call in response.tool_calls:
            if call.id in seen:
                raise ToolCallError(f"Duplicate tool call id {call.id!r}", response=response)
            seen.add(call.id)
            if call.name not in offered:
                raise ToolCallError(
                    f"Model called unknown tool {call.name!r} (call {call.id!r})",
                    response=response,
                )

        self.state = response.state
        if response.has_tool_calls():
            self._log(f"Model requested {len(response.tool_calls)} tool call(s)")
        return response
