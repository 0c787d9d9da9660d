"""Tests for the Anthropic adapter and provider."""

import asyncio

import anthropic
import pytest
from anthropic.types import Message as AnthropicMessage

from llm_dialog import Message, RequestConfig, Role, ToolCall, ToolDefinition
from llm_dialog.adapters.anthropic import DEFAULT_MAX_TOKENS, AnthropicRequestAdapter
from llm_dialog.providers.anthropic import AnthropicProvider


def _message(content: list, *, stop_reason: str = "end_turn") -> AnthropicMessage:
    return AnthropicMessage.model_validate(
        {
            "id": "msg_1",
            "type": "message",
            "role": "assistant",
            "model": "claude-3-5-sonnet-latest",
            "content": content,
            "stop_reason": stop_reason,
            "stop_sequence": None,
            "usage": {"input_tokens": 11, "output_tokens": 7},
        }
    )


class TestToProvider:
    def test_system_prompt_is_split_out(self):
        """Test that system messages become the top-level system prompt."""
        adapter = AnthropicRequestAdapter()
        messages = [Message.system("Be brief."), Message.system("Use metric."), Message.user("Hi")]

        result = adapter.to_provider(messages, RequestConfig())

        assert result["system"] == "Be brief.\n\nUse metric."
        assert result["messages"] == [{"role": "user", "content": "Hi"}]
        assert result["max_tokens"] == DEFAULT_MAX_TOKENS

    def test_no_system_key_without_system_messages(self):
        """Test that no system key is sent when there is no system message."""
        result = AnthropicRequestAdapter().to_provider([Message.user("Hi")], RequestConfig())
        assert "system" not in result

    def test_unsupported_params_are_dropped(self):
        """Test penalty removal, stop mapping and stream exclusion."""
        config = RequestConfig(
            temperature=0.5, max_tokens=64, frequency_penalty=1.0, presence_penalty=1.0
        ).merge({"stop": "END", "stream": True})

        result = AnthropicRequestAdapter().to_provider([Message.user("Hi")], config)

        assert result["temperature"] == 0.5
        assert result["max_tokens"] == 64
        assert result["stop_sequences"] == ["END"]
        for key in ("frequency_penalty", "presence_penalty", "stop", "stream"):
            assert key not in result

    def test_tool_round_trip_format(self):
        """Test tool_use and tool_result block conversion."""
        adapter = AnthropicRequestAdapter()
        messages = [
            Message.user("Weather in Paris and Rome?"),
            Message(
                Role.ASSISTANT,
                "Checking.",
                tool_calls=(
                    ToolCall("toolu_1", "get_weather", {"location": "Paris"}),
                    ToolCall("toolu_2", "get_weather", {"location": "Rome"}),
                ),
                id="msg_1",
            ),
            Message.tool("toolu_1", "18C"),
            Message.tool("toolu_2", "24C"),
        ]

        _, built = adapter.build_messages(messages)

        assert built[1] == {
            "role": "assistant",
            "content": [
                {"type": "text", "text": "Checking."},
                {"type": "tool_use", "id": "toolu_1", "name": "get_weather", "input": {"location": "Paris"}},
                {"type": "tool_use", "id": "toolu_2", "name": "get_weather", "input": {"location": "Rome"}},
            ],
        }
        # consecutive results share one user turn
        assert built[2] == {
            "role": "user",
            "content": [
                {"type": "tool_result", "tool_use_id": "toolu_1", "content": "18C"},
                {"type": "tool_result", "tool_use_id": "toolu_2", "content": "24C"},
            ],
        }
        assert len(built) == 3

    def test_tools(self):
        """Test tool definition conversion to input_schema."""
        tool = ToolDefinition("get_weather", "Weather", {"type": "object"})
        result = AnthropicRequestAdapter().to_provider([Message.user("x")], RequestConfig(), tools=[tool])
        assert result["tools"] == [
            {"name": "get_weather", "description": "Weather", "input_schema": {"type": "object"}}
        ]


class TestFromProvider:
    def test_text(self):
        """Test text block joining and usage totals."""
        reply = AnthropicRequestAdapter().from_provider(
            _message([{"type": "text", "text": "Hello "}, {"type": "text", "text": "there"}])
        )
        assert reply.content == "Hello there"
        assert reply.finish_reason == "end_turn"
        assert reply.usage.total_tokens == 18
        assert reply.response_id == "msg_1"

    def test_tool_use(self):
        """Test tool_use blocks become tool calls."""
        reply = AnthropicRequestAdapter().from_provider(
            _message(
                [
                    {"type": "text", "text": "Let me check."},
                    {"type": "tool_use", "id": "toolu_1", "name": "get_weather", "input": {"location": "Paris"}},
                ],
                stop_reason="tool_use",
            )
        )
        assert reply.content == "Let me check."
        assert reply.finish_reason == "tool_use"
        assert reply.tool_calls == [ToolCall("toolu_1", "get_weather", {"location": "Paris"})]


class TestAnthropicProvider:
    def test_complete_chat(self, monkeypatch):
        """Test one request through a real AsyncAnthropic client."""
        client = anthropic.AsyncAnthropic(api_key="sk-ant-test")
        sent = []

        async def create(**kwargs):
            sent.append(kwargs)
            return _message([{"type": "text", "text": "pong"}])

        monkeypatch.setattr(client.messages, "create", create)
        provider = AnthropicProvider.from_client(client)

        reply = asyncio.run(
            provider.complete_chat(
                "claude-3-5-sonnet-latest",
                [Message.system("Be brief."), Message.user("ping")],
                RequestConfig(),
            )
        )

        assert reply.content == "pong"
        assert sent == [
            {
                "model": "claude-3-5-sonnet-latest",
                "messages": [{"role": "user", "content": "ping"}],
                "max_tokens": DEFAULT_MAX_TOKENS,
                "system": "Be brief.",
            }
        ]

    def test_structured_output_not_offered(self):
        """Test that Anthropic does not claim structured output."""
        assert AnthropicProvider.supports_structured_output is False

    def test_from_client_type_check(self):
        """Test from_client rejects foreign clients."""
        with pytest.raises(TypeError):
            AnthropicProvider.from_client(object())
