"""OpenAI adapter for pure request/response transformations."""

from __future__ import annotations

import json
import logging
from typing import Any, Optional, Sequence

from openai.types.chat import ChatCompletion

from llm_dialog.params import RequestConfig
from llm_dialog.providers.base import ProviderReply
from llm_dialog.types.chat import Message, Role, Usage
from llm_dialog.types.tool import ToolCall, ToolDefinition

logger = logging.getLogger(__name__)


class OpenAIRequestAdapter:
    """Adapter for converting between generic format and OpenAI format."""

    def build_messages(self, messages: Sequence[Message]) -> list[dict[str, Any]]:
        """Convert generic Messages to OpenAI's expected format."""
        openai_messages: list[dict[str, Any]] = []
        for msg in messages:
            openai_msg: dict[str, Any] = {"role": msg.role.value, "content": msg.content}

            # Assistant turn that requested tools: replay the calls verbatim
            if msg.role is Role.ASSISTANT and msg.tool_calls:
                openai_msg["tool_calls"] = [
                    {
                        "id": call.id,
                        "type": "function",
                        "function": {
                            "name": call.name,
                            "arguments": call.arguments
                            if isinstance(call.arguments, str)
                            else json.dumps(call.arguments),
                        },
                    }
                    for call in msg.tool_calls
                ]
                # OpenAI spec: content should be null when tool_calls is present
                if not msg.content:
                    openai_msg["content"] = None

            # Tool result turn
            if msg.role is Role.TOOL:
                openai_msg["tool_call_id"] = msg.tool_call_id

            openai_messages.append(openai_msg)

        return openai_messages

    def build_tools(self, tools: Sequence[ToolDefinition]) -> list[dict[str, Any]]:
        return [
            {
                "type": "function",
                "function": {
                    "name": tool.name,
                    "description": tool.description,
                    "parameters": tool.parameters,
                },
            }
            for tool in tools
        ]

    def build_response_format(self, response_format: dict[str, Any]) -> dict[str, Any]:
        if response_format.get("type") == "json_schema":
            return {
                "type": "json_schema",
                "json_schema": {
                    "name": response_format.get("name", "response"),
                    "schema": response_format["schema"],
                },
            }
        return {"type": "json_object"}

    def to_provider(
        self,
        messages: Sequence[Message],
        config: RequestConfig,
        *,
        tools: Sequence[ToolDefinition] = (),
        response_format: Optional[dict[str, Any]] = None,
    ) -> dict[str, Any]:
        """Convert generic messages and config to OpenAI request format."""
        base_params = config.as_dict(exclude_none=True)

        # Handle extra params
        extras = base_params.pop("extra", {})
        # Responses are always read whole
        extras.pop("stream", None)

        if tools:
            base_params["tools"] = self.build_tools(tools)
        if response_format:
            base_params["response_format"] = self.build_response_format(response_format)

        # Add extra params to base_params
        for k, v in extras.items():
            base_params.setdefault(k, v)

        return {"messages": self.build_messages(messages), **base_params}

    def from_provider(self, raw: ChatCompletion) -> ProviderReply:
        """Convert OpenAI response to a ProviderReply."""
        content = ""
        finish_reason = None
        tool_calls: list[ToolCall] = []

        if raw.choices and raw.choices[0].message:
            choice = raw.choices[0]
            message = choice.message
            content = message.content or ""
            finish_reason = choice.finish_reason

            for tc in message.tool_calls or ():
                function = getattr(tc, "function", None)
                if function is None:
                    # Custom (non-function) tool calls are not modelled here
                    continue
                tool_calls.append(
                    ToolCall(id=tc.id, name=function.name, arguments=self._parse_arguments(function.arguments))
                )

        usage = None
        if raw.usage is not None:
            usage = Usage(
                prompt_tokens=raw.usage.prompt_tokens or 0,
                output_tokens=raw.usage.completion_tokens or 0,
                total_tokens=raw.usage.total_tokens,
            )

        return ProviderReply(
            content=content,
            finish_reason=finish_reason,
            usage=usage,
            tool_calls=tool_calls,
            response_id=raw.id,
            raw=raw,
        )

    @staticmethod
    def _parse_arguments(raw_args: Any) -> Any:
        if isinstance(raw_args, dict):
            return raw_args
        if isinstance(raw_args, str) and raw_args.strip():
            try:
                return json.loads(raw_args)
            except json.JSONDecodeError as exc:
                logger.warning("Bad JSON in tool call: %s", raw_args, exc_info=exc)
        return {}
