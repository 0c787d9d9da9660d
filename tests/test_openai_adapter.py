"""Tests for the OpenAI adapter and provider."""

import asyncio
import json

import httpx
import openai
import pytest
from openai.types.chat import ChatCompletion

from llm_dialog import LLMConnectionError, Message, RequestConfig, Role, ToolCall, ToolDefinition
from llm_dialog.adapters.openai import OpenAIRequestAdapter
from llm_dialog.params import normalize_options
from llm_dialog.providers.openai import GeminiProvider, OpenAIProvider


def _completion(message: dict, *, finish_reason: str = "stop", usage: dict | None = None) -> ChatCompletion:
    data = {
        "id": "chatcmpl-1",
        "object": "chat.completion",
        "created": 0,
        "model": "gpt-4o",
        "choices": [{"index": 0, "finish_reason": finish_reason, "message": message}],
    }
    if usage is not None:
        data["usage"] = usage
    return ChatCompletion.model_validate(data)


def _tool_call(call_id: str, name: str, arguments: str) -> dict:
    return {"id": call_id, "type": "function", "function": {"name": name, "arguments": arguments}}


class TestToProvider:
    def test_basic(self):
        """Test basic to_provider functionality."""
        adapter = OpenAIRequestAdapter()
        config = RequestConfig(**normalize_options({"temperature": 0.7, "max_tokens": 100}))

        result = adapter.to_provider([Message.user("Hello")], config)

        assert result == {
            "messages": [{"role": "user", "content": "Hello"}],
            "temperature": 0.7,
            "max_tokens": 100,
        }

    def test_message_conversion(self):
        """Test message format conversion."""
        adapter = OpenAIRequestAdapter()
        messages = [Message.system("You are helpful"), Message.user("Hello")]

        result = adapter.to_provider(messages, RequestConfig())

        assert [m["role"] for m in result["messages"]] == ["system", "user"]

    def test_stream_exclusion(self):
        """Test that stream parameter is excluded."""
        adapter = OpenAIRequestAdapter()
        config = RequestConfig().merge({"stream": True, "temperature": 0.7})

        result = adapter.to_provider([Message.user("test")], config)

        assert "stream" not in result
        assert result["temperature"] == 0.7

    def test_extra_params_pass_through(self):
        """Test extra parameters reach the request."""
        adapter = OpenAIRequestAdapter()
        config = RequestConfig().merge({"reasoning_effort": "minimal", "seed": 7})

        result = adapter.to_provider([Message.user("x")], config)

        assert result["reasoning_effort"] == "minimal"
        assert result["seed"] == 7

    def test_tool_replay_format(self):
        """Test assistant tool calls and tool results in OpenAI format."""
        adapter = OpenAIRequestAdapter()
        messages = [
            Message.user("weather?"),
            Message(
                Role.ASSISTANT,
                "",
                tool_calls=(ToolCall("call_1", "get_weather", {"location": "Paris"}),),
                id="chatcmpl-1",
            ),
            Message.tool("call_1", '{"temp": 18}'),
        ]

        built = adapter.build_messages(messages)

        assert built[1] == {
            "role": "assistant",
            "content": None,
            "tool_calls": [
                {
                    "id": "call_1",
                    "type": "function",
                    "function": {"name": "get_weather", "arguments": '{"location": "Paris"}'},
                }
            ],
        }
        assert built[2] == {"role": "tool", "content": '{"temp": 18}', "tool_call_id": "call_1"}

    def test_tools_and_response_format(self):
        """Test tool and json_schema conversion."""
        adapter = OpenAIRequestAdapter()
        tool = ToolDefinition("get_weather", "Weather", {"type": "object"})

        result = adapter.to_provider(
            [Message.user("x")],
            RequestConfig(),
            tools=[tool],
            response_format={"type": "json_schema", "name": "Person", "schema": {"type": "object"}},
        )

        assert result["tools"] == [
            {
                "type": "function",
                "function": {"name": "get_weather", "description": "Weather", "parameters": {"type": "object"}},
            }
        ]
        assert result["response_format"] == {
            "type": "json_schema",
            "json_schema": {"name": "Person", "schema": {"type": "object"}},
        }

    def test_json_mode(self):
        """Test JSON mode maps to json_object."""
        adapter = OpenAIRequestAdapter()
        result = adapter.to_provider([Message.user("x")], RequestConfig(), response_format={"type": "json"})
        assert result["response_format"] == {"type": "json_object"}


class TestFromProvider:
    def test_text_and_usage(self):
        """Test text, finish reason and usage extraction."""
        completion = _completion(
            {"role": "assistant", "content": "Hi there"},
            usage={"prompt_tokens": 9, "completion_tokens": 3, "total_tokens": 15},
        )

        reply = OpenAIRequestAdapter().from_provider(completion)

        assert reply.content == "Hi there"
        assert reply.finish_reason == "stop"
        assert reply.usage.prompt_tokens == 9
        assert reply.usage.output_tokens == 3
        # reported total is kept as is
        assert reply.usage.total_tokens == 15
        assert reply.response_id == "chatcmpl-1"
        assert reply.tool_calls == []

    def test_missing_usage(self):
        """Test a completion without usage."""
        reply = OpenAIRequestAdapter().from_provider(_completion({"role": "assistant", "content": "x"}))
        assert reply.usage is None

    def test_tool_calls(self):
        """Test tool call extraction."""
        completion = _completion(
            {
                "role": "assistant",
                "content": None,
                "tool_calls": [
                    _tool_call("call_1", "get_weather", json.dumps({"location": "Paris"})),
                    _tool_call("call_2", "get_time", "{}"),
                ],
            },
            finish_reason="tool_calls",
        )

        reply = OpenAIRequestAdapter().from_provider(completion)

        assert reply.content == ""
        assert reply.finish_reason == "tool_calls"
        assert reply.tool_calls == [
            ToolCall("call_1", "get_weather", {"location": "Paris"}),
            ToolCall("call_2", "get_time", {}),
        ]

    def test_invalid_tool_call_arguments_returns_empty_dict_instead_of_none(self):
        """Test bad argument JSON becomes an empty dict."""
        completion = _completion(
            {"role": "assistant", "tool_calls": [_tool_call("id1", "test", "{not valid json")]}
        )

        tool_calls = OpenAIRequestAdapter().from_provider(completion).tool_calls

        assert len(tool_calls) == 1
        assert tool_calls[0].id == "id1"
        assert tool_calls[0].name == "test"
        assert tool_calls[0].arguments == {}


class TestOpenAIProvider:
    def _provider(self, monkeypatch, create) -> OpenAIProvider:
        client = openai.AsyncOpenAI(api_key="sk-test")
        monkeypatch.setattr(client.chat.completions, "create", create)
        return OpenAIProvider.from_client(client)

    def test_complete_chat_sends_one_request(self, monkeypatch):
        """Test one request through a real AsyncOpenAI client."""
        sent = []

        async def create(**kwargs):
            sent.append(kwargs)
            return _completion({"role": "assistant", "content": "pong"})

        provider = self._provider(monkeypatch, create)
        reply = asyncio.run(
            provider.complete_chat("gpt-4o", [Message.user("ping")], RequestConfig(temperature=0.0))
        )

        assert reply.content == "pong"
        assert sent == [
            {"model": "gpt-4o", "messages": [{"role": "user", "content": "ping"}], "temperature": 0.0}
        ]

    def test_sdk_errors_are_wrapped(self, monkeypatch):
        """Test SDK errors become LLMConnectionError."""
        error = openai.APITimeoutError(request=httpx.Request("POST", "https://api.openai.com/v1"))

        async def create(**kwargs):
            raise error

        provider = self._provider(monkeypatch, create)
        with pytest.raises(LLMConnectionError) as excinfo:
            asyncio.run(provider.complete_chat("gpt-4o", [Message.user("ping")], RequestConfig()))

        assert excinfo.value.original_exc is error
        assert excinfo.value.provider == "openai"

    def test_from_client_type_check(self):
        """Test from_client rejects foreign clients."""
        with pytest.raises(TypeError):
            OpenAIProvider.from_client(object())

    def test_sdk_retries_disabled(self):
        """Test SDK retries are off."""
        provider = OpenAIProvider(api_key="sk-test")
        assert provider._client.max_retries == 0

    def test_gemini_uses_compatible_endpoint(self):
        """Test Gemini's default base URL."""
        provider = GeminiProvider(api_key="g-test")
        assert provider.name == "gemini"
        assert "generativelanguage.googleapis.com" in str(provider._client.base_url)
