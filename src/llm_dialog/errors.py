"""
Error kinds raised by llm-dialog, plus translation of noisy provider SDK
tracebacks into a single `LLMConnectionError` that keeps the original
exception for full tracebacks.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Any, Final, Optional, Type

import anthropic
import openai

if TYPE_CHECKING:
    from llm_dialog.response import ToolResponse
    from llm_dialog.types.chat import Usage

__all__: tuple[str, ...] = (
    "LLMError",
    "ValidationError",
    "StructuredOutputError",
    "ToolCallError",
    "LLMConnectionError",
    "classify_error",
)


class LLMError(RuntimeError):
    """Base class for every error raised by this package."""


class ValidationError(LLMError, ValueError):
    """Raised for malformed messages, tool definitions or out-of-range config."""


class StructuredOutputError(LLMError):
    """Raised when structured content cannot be produced or parsed.

    Attributes:
        raw_text: The unparsed content returned by the model.
        usage: Token usage of the failed exchange, if the call was made.
    """

    def __init__(
        self,
        message: str,
        *,
        raw_text: str = "",
        usage: Optional["Usage"] = None,
    ) -> None:
        super().__init__(message)
        self.raw_text = raw_text
        self.usage = usage


class ToolCallError(LLMError):
    """Raised for unknown tool names or replay-before-result ordering violations.

    Attributes:
        response: The parsed tool response, when the error was detected in one.
    """

    def __init__(self, message: str, *, response: Optional["ToolResponse"] = None) -> None:
        super().__init__(message)
        self.response = response


class LLMConnectionError(LLMError, ConnectionError):
    """Provider-level failure (network, timeout, rate limit, API status).

    Attributes:
        original_exc: The underlying provider exception.
        provider: Name of the provider that failed, if known.
    """

    original_exc: Exception

    def __init__(
        self,
        message: str,
        original_exc: Exception,
        *,
        provider: Optional[str] = None,
    ) -> None:
        super().__init__(message)
        self.original_exc = original_exc
        self.provider = provider
        self.__cause__ = original_exc


API_ERRORS: Final[tuple[Type[Exception], ...]] = (
    openai.APIError,
    anthropic.APIError,
)

CONN_ERRORS: Final[tuple[Type[Exception], ...]] = (
    openai.APIConnectionError,
    anthropic.APIConnectionError,
    TimeoutError,
    ConnectionError,
)

RATE_LIMIT_ERRORS: Final[tuple[Type[Exception], ...]] = (
    openai.RateLimitError,
    anthropic.RateLimitError,
)

PROVIDER_ERRORS: Final[tuple[Type[Exception], ...]] = API_ERRORS + CONN_ERRORS


def classify_error(
    exc: Exception,
    logger: Optional[logging.Logger] = None,
    *,
    provider: Optional[str] = None,
) -> LLMConnectionError:
    """Wrap an SDK exception in LLMConnectionError with a friendly, concise message."""
    log = logger or logging.getLogger("llm_dialog.errors")

    if isinstance(exc, LLMConnectionError):
        return exc

    if isinstance(exc, RATE_LIMIT_ERRORS):
        msg = "Rate-limit exceeded, please retry later"
    elif isinstance(exc, CONN_ERRORS):
        msg = "Connection problem, unable to reach the LLM provider"
    elif isinstance(exc, API_ERRORS):
        status: Any = getattr(exc, "status_code", None)
        msg = f"Provider reported an API error ({status})" if status else "Provider reported an API error"
    else:
        msg = exc.__class__.__name__

    prefix = f"[{provider}] " if provider else ""
    log.warning("Wrapping provider exception", extra={"exc": exc, "provider": provider})
    return LLMConnectionError(f"{prefix}{msg}: {exc}", exc, provider=provider)
