"""Shared fixtures: a scripted provider that records every request."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Optional, Sequence

import pytest

from llm_dialog import LLM, MessageCollection, ToolDefinition
from llm_dialog.params import RequestConfig
from llm_dialog.providers.base import ChatProvider, ProviderReply
from llm_dialog.types.chat import Message


@dataclass
class RecordedCall:
    model_id: str
    messages: list[Message]
    config: RequestConfig
    tools: tuple[ToolDefinition, ...]
    response_format: Optional[dict[str, Any]]


class ScriptedProvider(ChatProvider):
    """Returns queued replies (or raises queued exceptions) in order."""

    name = "scripted"

    def __init__(self, *replies: Any) -> None:
        super().__init__()
        self.replies: list[Any] = list(replies)
        self.calls: list[RecordedCall] = []

    def queue(self, *replies: Any) -> "ScriptedProvider":
        self.replies.extend(replies)
        return self

    async def complete_chat(
        self,
        model_id: str,
        messages: Sequence[Message],
        config: RequestConfig,
        *,
        tools: Sequence[ToolDefinition] = (),
        response_format: Optional[dict[str, Any]] = None,
    ) -> ProviderReply:
        self.calls.append(
            RecordedCall(model_id, list(messages), config, tuple(tools), response_format)
        )
        if not self.replies:
            raise AssertionError("ScriptedProvider ran out of replies")
        reply = self.replies.pop(0)
        if isinstance(reply, Exception):
            raise reply
        return reply


@pytest.fixture
def provider() -> ScriptedProvider:
    return ScriptedProvider()


@pytest.fixture
def llm(provider: ScriptedProvider) -> LLM:
    return LLM("openai:gpt-4o", provider=provider)


@pytest.fixture
def weather_tool() -> ToolDefinition:
    return ToolDefinition(
        "get_weather",
        "Get the current weather in a given location",
        {
            "type": "object",
            "properties": {"location": {"type": "string", "description": "City name"}},
            "required": ["location"],
        },
    )


@pytest.fixture
def conversation() -> MessageCollection:
    return (
        MessageCollection()
        .append_system("You are a helpful assistant.")
        .append_user("What's the weather in Paris?")
    )
