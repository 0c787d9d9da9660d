"""Supported vendors and credential lookup.

A ``.env`` file in the working directory is loaded on import, so keys can
live there instead of the shell environment.
"""

from __future__ import annotations

import os
from enum import StrEnum
from typing import Final

from dotenv import load_dotenv

from llm_dialog.errors import ValidationError
from llm_dialog.providers.base import ChatProvider, ProviderReply

load_dotenv()


class Provider(StrEnum):
    OPENAI = "openai"
    ANTHROPIC = "anthropic"
    GEMINI = "gemini"

    @classmethod
    def parse(cls, name: str) -> "Provider":
        """Case-insensitive lookup by prefix name (``"OpenAI"`` -> OPENAI)."""
        try:
            return cls(name.strip().lower())
        except ValueError:
            supported = ", ".join(p.value for p in cls)
            raise ValidationError(f"Unsupported provider {name!r} (supported: {supported})") from None

    @property
    def env_var(self) -> str:
        return _ENV_VARS[self]


_ENV_VARS: Final[dict[Provider, str]] = {
    Provider.OPENAI: "OPENAI_API_KEY",
    Provider.ANTHROPIC: "ANTHROPIC_API_KEY",
    Provider.GEMINI: "GEMINI_API_KEY",
}


def get_api_key(provider: Provider) -> str:
    """Return the API key for *provider* from the environment.

    Raises:
        ValidationError: if the variable is unset or blank.
    """
    env_var = Provider.parse(provider).env_var
    key = os.environ.get(env_var, "").strip()
    if not key:
        raise ValidationError(f"{env_var} missing; set it or pass api_key explicitly")
    return key


__all__ = ["Provider", "get_api_key", "ChatProvider", "ProviderReply"]
