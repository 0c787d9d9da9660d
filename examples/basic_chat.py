import asyncio

from anthropic import AsyncAnthropic
from openai import AsyncOpenAI

from llm_dialog import LLM, MessageCollection, Provider, Response, create_provider


def _conversation() -> MessageCollection:
    return (
        MessageCollection()
        .append_system("You are a helpful assistant.")
        .append_user("What's your name?")
    )


async def chat_example_default_client():
    openai_llm = LLM("openai:gpt-4o-mini").set_max_tokens(1000).set_temperature(0.7)
    anthropic_llm = LLM("anthropic:claude-3-5-haiku-20241022").set_max_tokens(1000)
    gemini_llm = LLM("gemini:gemini-2.0-flash-lite").set_max_tokens(1000)

    messages = _conversation()

    async with openai_llm, anthropic_llm, gemini_llm:
        openai_response: Response = await openai_llm.complete(messages)
        anthropic_response: Response = await anthropic_llm.complete(messages)
        gemini_response: Response = await gemini_llm.complete(messages)

    print("OpenAI: ", openai_response.content)
    print("Anthropic: ", anthropic_response.content)
    print("Gemini: ", gemini_response.content)


async def chat_example_pass_client():
    openai_client = AsyncOpenAI(max_retries=3, timeout=10)  # caller-owned retry policy
    anthropic_client = AsyncAnthropic()

    openai_llm = LLM(
        "openai:gpt-4o-mini",
        provider=create_provider(Provider.OPENAI, client=openai_client),
    )
    anthropic_llm = LLM(
        "anthropic:claude-3-5-haiku-20241022",
        provider=create_provider(Provider.ANTHROPIC, client=anthropic_client),
    )

    messages = _conversation()

    async with openai_llm, anthropic_llm:
        openai_response = await openai_llm.complete(messages)
        anthropic_response = await anthropic_llm.complete(messages)

    print("OpenAI: ", openai_response.content, openai_response.usage.to_dict())
    print("Anthropic: ", anthropic_response.content, anthropic_response.usage.to_dict())


if __name__ == "__main__":
    asyncio.run(chat_example_default_client())
    asyncio.run(chat_example_pass_client())
