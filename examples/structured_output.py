"""
This example demonstrates how to get structured JSON output from LLMs
by solving a mathematical equation step-by-step.
"""

from __future__ import annotations

import asyncio
import logging
from typing import List

from pydantic import BaseModel

from llm_dialog import LLM, MessageCollection, StructuredOutputError

logging.basicConfig(level=logging.INFO, format="%(message)s")
logger = logging.getLogger(__name__)


class Step(BaseModel):
    explanation: str
    output: str


class MathResponse(BaseModel):
    steps: List[Step]
    final_answer: str


async def solve_math_with_json_output(llm: LLM, equation: str):
    """Solve a mathematical equation with structured JSON output."""

    messages = (
        MessageCollection()
        .append_system("You are a mathematical assistant. Solve the given equation step by step.")
        .append_user(f"Solve this equation step by step: {equation}")
    )

    builder = (
        llm.structured()
        .with_schema(MathResponse, name="math_solution")
        .set_temperature(0.1)  # Lower temperature for more consistent output
        .set_max_tokens(1000)
    )

    logger.info(f"Solving '{equation}' with structured JSON output")

    try:
        response = await builder.complete(messages)
    except StructuredOutputError as e:
        logger.error(f"Failed to parse JSON response: {e}")
        logger.error(f"Raw response: {e.raw_text}")
        return None

    math_response = response.parse_as(MathResponse)

    print(f"\nSolution for: {equation}")
    print("Steps:")
    for i, step in enumerate(math_response.steps, 1):
        print(f"  {i}. {step.explanation}")
        print(f"     Result: {step.output}")

    print(f"\nFinal Answer: {math_response.final_answer}")
    print(f"Tokens used: {response.usage.total_tokens}")

    return math_response


async def main():
    async with LLM("openai:gpt-4o-mini") as llm:
        # Example 1: Linear equation
        await solve_math_with_json_output(llm, "3x + 7 = 16")

        print("\n" + "=" * 50 + "\n")

        # Example 2: Quadratic equation
        await solve_math_with_json_output(llm, "x^2 - 5x + 6 = 0")


if __name__ == "__main__":
    asyncio.run(main())
