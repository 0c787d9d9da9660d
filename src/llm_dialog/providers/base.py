"""Provider contract: the only collaborator that performs network I/O."""
from __future__ import annotations

import logging
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import Any, Optional, Sequence

from llm_dialog.params import RequestConfig
from llm_dialog.types.chat import Message, Usage
from llm_dialog.types.tool import ToolCall, ToolDefinition

__all__ = ["ChatProvider", "ProviderReply"]


@dataclass
class ProviderReply:
    """Raw outcome of one provider call, before mapping to a Response variant.

    Attributes:
        content: Text produced by the model (may be empty for tool-only turns).
        finish_reason: Provider stop reason, if reported.
        usage: Token usage, if reported.
        tool_calls: Tool calls requested by the model, in provider order.
        structured: Value already decoded by the provider for structured output.
        response_id: Provider-assigned exchange id.
    """

    content: str = ""
    finish_reason: Optional[str] = None
    usage: Optional[Usage] = None
    tool_calls: list[ToolCall] = field(default_factory=list)
    structured: Any = None
    response_id: Optional[str] = None
    raw: Any = None


class ChatProvider(ABC):
    """
    Abstract base class for provider implementations. All implementations are async-first.

    Implementations translate the ordered messages into their vendor format,
    perform exactly one request (no retries) and return a ProviderReply.
    Provider failures should surface as ``LLMConnectionError``.
    """

    name: str = "provider"
    supports_structured_output: bool = True

    def __init__(self, *, logger: Optional[logging.Logger] = None) -> None:
        self.logger = logger or logging.getLogger(__name__)

    @abstractmethod
    async def complete_chat(
        self,
        model_id: str,
        messages: Sequence[Message],
        config: RequestConfig,
        *,
        tools: Sequence[ToolDefinition] = (),
        response_format: Optional[dict[str, Any]] = None,
    ) -> ProviderReply:
        """
        Send one chat completion request.

        Args:
            model_id: Vendor model identifier (without the provider prefix).
            messages: The conversation, in order.
            config: Sampling parameters; None fields mean provider defaults.
            tools: Tool definitions offered to the model.
            response_format: ``{"type": "json"}`` or
                ``{"type": "json_schema", "schema": {...}}`` for structured output.

        Returns:
            The provider reply.
        """
        ...

    def _log(self, message: str, level: int = logging.INFO) -> None:
        self.logger.log(level, f"[{self.name}] {message}")

    # --- lifecycle ---------------------------------------------------------
    async def aclose(self) -> None:
        """
        Close underlying async HTTP clients to avoid cleanup after the loop closes.
        Safe to call multiple times.
        """
        client = getattr(self, "_client", None)
        close = getattr(client, "close", None)
        if close:
            await close()

    async def __aenter__(self) -> "ChatProvider":
        return self

    async def __aexit__(self, exc_type, exc, tb) -> None:
        await self.aclose()
