from __future__ import annotations

import argparse
import asyncio
import logging

from llm_dialog import LLM, MessageCollection, ToolCall, ToolDefinition

logger = logging.getLogger(__name__)
logging.basicConfig(level=logging.INFO)

MAX_ROUNDS = 5

WEATHER_TOOL = ToolDefinition(
    "get_weather",
    "Get the current weather in a given location",
    {
        "type": "object",
        "properties": {
            "location": {
                "type": "string",
                "description": "City and state, e.g. San Francisco, CA",
            },
            "unit": {
                "type": "string",
                "enum": ["celsius", "fahrenheit"],
            },
        },
        "required": ["location"],
    },
)


def run_local_tool(call: ToolCall) -> dict[str, object]:
    """Stub implementation of get_weather."""
    # imagine we call a real weather API here
    return {"location": call.arguments.get("location"), "temperature": "15 °C", "sky": "mostly cloudy"}


async def tool_roundtrip(model: str) -> None:
    """
    Run a tool-calling conversation with the given "provider:model".

    1) Send user prompt
    2) Let model emit tool calls
    3) Replay the assistant turn, then append one result per call
    4) Ask model again until it answers without tools
    """
    messages = MessageCollection().append_user("What's the weather in San Francisco?")

    async with LLM(model) as llm:
        tools = llm.with_tools([WEATHER_TOOL]).set_max_tokens(500)

        response = await tools.complete(messages)
        rounds = 0
        while response.has_tool_calls() and rounds < MAX_ROUNDS:
            messages.from_response(response)
            for call in response.tool_calls:
                messages.append_tool_result(call.id, run_local_tool(call))
            response = await tools.complete(messages)
            rounds += 1

        if response.has_tool_calls():
            logger.warning("Stopped after %d tool rounds", MAX_ROUNDS)

    logger.info("%s says: %s", model, response.content)
    logger.info("Usage of last turn: %s", response.usage.to_dict())


if __name__ == "__main__":
    parser = argparse.ArgumentParser()
    parser.add_argument(
        "--model",
        default="anthropic:claude-3-5-haiku-20241022",  # "openai:gpt-4.1-nano", "gemini:gemini-2.0-flash-lite"
    )
    args = parser.parse_args()

    asyncio.run(tool_roundtrip(args.model))
