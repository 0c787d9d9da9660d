"""Anthropic adapter for pure request/response transformations."""

from __future__ import annotations

from typing import Any, Optional, Sequence

from anthropic.types import Message as AnthropicMessage

from llm_dialog.params import RequestConfig
from llm_dialog.providers.base import ProviderReply
from llm_dialog.types.chat import Message, Role, Usage
from llm_dialog.types.tool import ToolCall, ToolDefinition

# Anthropic requires max_tokens on every request
DEFAULT_MAX_TOKENS = 4096


class AnthropicRequestAdapter:
    """Adapter for converting between generic format and Anthropic format."""

    def build_messages(self, messages: Sequence[Message]) -> tuple[str, list[dict[str, Any]]]:
        """Split out the system prompt and convert the rest to Anthropic's format."""
        system_parts: list[str] = []
        anthropic_messages: list[dict[str, Any]] = []

        for msg in messages:
            if msg.role is Role.SYSTEM:
                system_parts.append(msg.content)
                continue

            if msg.role is Role.TOOL:
                block = {
                    "type": "tool_result",
                    "tool_use_id": msg.tool_call_id,
                    "content": msg.content,
                }
                # All results for one tool_use turn belong in a single user message
                previous = anthropic_messages[-1] if anthropic_messages else None
                if (
                    previous is not None
                    and previous["role"] == "user"
                    and isinstance(previous["content"], list)
                    and all(b.get("type") == "tool_result" for b in previous["content"])
                ):
                    previous["content"].append(block)
                else:
                    anthropic_messages.append({"role": "user", "content": [block]})
                continue

            if msg.role is Role.ASSISTANT and msg.tool_calls:
                content: list[dict[str, Any]] = []
                if msg.content:
                    content.append({"type": "text", "text": msg.content})
                content.extend(
                    {
                        "type": "tool_use",
                        "id": call.id,
                        "name": call.name,
                        "input": call.arguments if isinstance(call.arguments, dict) else {},
                    }
                    for call in msg.tool_calls
                )
                anthropic_messages.append({"role": "assistant", "content": content})
                continue

            anthropic_messages.append({"role": msg.role.value, "content": msg.content})

        return "\n\n".join(system_parts), anthropic_messages

    def build_tools(self, tools: Sequence[ToolDefinition]) -> list[dict[str, Any]]:
        return [
            {
                "name": tool.name,
                "description": tool.description,
                "input_schema": tool.parameters,
            }
            for tool in tools
        ]

    def to_provider(
        self,
        messages: Sequence[Message],
        config: RequestConfig,
        *,
        tools: Sequence[ToolDefinition] = (),
        response_format: Optional[dict[str, Any]] = None,
    ) -> dict[str, Any]:
        """Convert generic messages and config to Anthropic request format."""
        system_prompt, anthropic_messages = self.build_messages(messages)

        base_params = config.as_dict(exclude_none=True)
        extras = base_params.pop("extra", {})
        extras.pop("stream", None)

        # Anthropic has no frequency/presence penalties
        base_params.pop("frequency_penalty", None)
        base_params.pop("presence_penalty", None)

        base_params.setdefault("max_tokens", DEFAULT_MAX_TOKENS)

        # Handle stop sequences
        if "stop" in extras:
            stop = extras.pop("stop")
            extras["stop_sequences"] = stop if isinstance(stop, list) else [stop]

        if tools:
            base_params["tools"] = self.build_tools(tools)

        for k, v in extras.items():
            base_params.setdefault(k, v)

        request: dict[str, Any] = {"messages": anthropic_messages, **base_params}
        if system_prompt:
            request["system"] = system_prompt
        return request

    def from_provider(self, raw: AnthropicMessage) -> ProviderReply:
        """Convert Anthropic response to a ProviderReply."""
        text_parts: list[str] = []
        tool_calls: list[ToolCall] = []

        for block in raw.content or ():
            if block.type == "text":
                text_parts.append(block.text)
            elif block.type == "tool_use":
                tool_calls.append(
                    ToolCall(
                        id=block.id,
                        name=block.name,
                        arguments=dict(block.input) if hasattr(block.input, "items") else {},
                    )
                )

        usage = None
        if raw.usage is not None:
            usage = Usage(
                prompt_tokens=raw.usage.input_tokens or 0,
                output_tokens=raw.usage.output_tokens or 0,
            )

        return ProviderReply(
            content="".join(text_parts),
            finish_reason=raw.stop_reason,
            usage=usage,
            tool_calls=tool_calls,
            response_id=raw.id,
            raw=raw,
        )
