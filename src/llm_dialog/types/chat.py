"""Conversation value types: roles, messages and token usage."""

from __future__ import annotations

from dataclasses import dataclass
from enum import StrEnum
from typing import TYPE_CHECKING, Any, Mapping, Optional, Self

from llm_dialog.errors import ValidationError
from llm_dialog.types._json import compact, decode, require_id, require_mapping
from llm_dialog.types.tool import ToolCall

if TYPE_CHECKING:
    from llm_dialog.response import ToolResponse

__all__ = ["Role", "Message", "Usage"]


class Role(StrEnum):
    SYSTEM = "system"
    USER = "user"
    ASSISTANT = "assistant"
    TOOL = "tool"


@dataclass(frozen=True, slots=True)
class Message:
    """
    A single conversation turn.

    The role decides which optional fields are legal: ``tool_call_id`` only
    (and always) on tool results, ``tool_calls`` only on assistant turns.
    Instances are immutable; build them with the named constructors.
    """

    role: Role
    content: str
    tool_calls: Optional[tuple[ToolCall, ...]] = None
    id: Optional[str] = None
    tool_call_id: Optional[str] = None

    def __post_init__(self) -> None:
        try:
            role = Role(self.role)
        except ValueError:
            raise ValidationError(f"Invalid message role: {self.role}") from None
        object.__setattr__(self, "role", role)

        if not isinstance(self.content, str):
            raise ValidationError("Message content must be a string")

        if role is Role.TOOL:
            if self.tool_call_id is None:
                raise ValidationError("Tool message must have tool_call_id")
            require_id(self.tool_call_id, "tool_call_id")
        elif self.tool_call_id is not None:
            raise ValidationError(f"{role} message cannot carry tool_call_id")
        if self.id is not None:
            require_id(self.id, "Message id")

        if self.tool_calls is not None:
            if role is not Role.ASSISTANT:
                raise ValidationError(f"{role} message cannot carry tool_calls")
            calls = tuple(
                c if isinstance(c, ToolCall) else ToolCall.from_dict(c) for c in self.tool_calls
            )
            object.__setattr__(self, "tool_calls", calls or None)

    # --- constructors -----------------------------------------------------
    @classmethod
    def system(cls, content: str) -> Self:
        return cls(Role.SYSTEM, content)

    @classmethod
    def user(cls, content: str) -> Self:
        return cls(Role.USER, content)

    @classmethod
    def assistant(cls, content: str) -> Self:
        return cls(Role.ASSISTANT, content)

    @classmethod
    def tool(cls, tool_call_id: str, result: str) -> Self:
        return cls(Role.TOOL, result, tool_call_id=tool_call_id)

    @classmethod
    def from_response(cls, response: "ToolResponse") -> Self:
        """Replay of the assistant turn that issued the response's tool calls.

        Providers reject tool results that are not preceded by their own
        tool-call request, so the exchange id and calls are kept verbatim.
        """
        # ToolCall values are immutable, so they can be shared
        calls = tuple(response.tool_calls) or None
        return cls(
            Role.ASSISTANT,
            response.content,
            tool_calls=calls,
            id=response.response_id,
        )

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> Self:
        """Build a message from an untyped map (e.g. decoded JSON)."""
        require_mapping(data, "Message")
        role = data.get("role")
        if not isinstance(role, str):
            raise ValidationError("Message must have 'role' field")
        content = data.get("content")
        if not isinstance(content, str):
            raise ValidationError("Message must have 'content' field")

        raw_calls = data.get("tool_calls")
        if isinstance(raw_calls, str):
            raw_calls = decode(raw_calls, "tool_calls")
        tool_calls = None
        if raw_calls:
            if not isinstance(raw_calls, list):
                raise ValidationError("Message 'tool_calls' must be a list")
            tool_calls = tuple(ToolCall.from_dict(c) for c in raw_calls)

        return cls(
            role,  # type: ignore[arg-type]
            content,
            tool_calls=tool_calls,
            id=data.get("id"),
            tool_call_id=data.get("tool_call_id"),
        )

    @classmethod
    def from_json(cls, raw: str) -> Self:
        return cls.from_dict(decode(raw, "message"))

    # --- serialization ----------------------------------------------------
    def to_dict(self) -> dict[str, Any]:
        result: dict[str, Any] = {"role": self.role.value, "content": self.content}
        if self.tool_calls:
            result["tool_calls"] = [c.to_dict() for c in self.tool_calls]
        if self.id is not None:
            result["id"] = self.id
        if self.tool_call_id is not None:
            result["tool_call_id"] = self.tool_call_id
        return result

    def to_json(self) -> str:
        return compact(self.to_dict())


@dataclass(frozen=True, slots=True)
class Usage:
    """Token accounting for one exchange.

    A provider-reported ``total_tokens`` is kept as is, even when it differs
    from the sum; the sum is only used when the provider omitted the total.
    """

    prompt_tokens: int = 0
    output_tokens: int = 0
    total_tokens: Optional[int] = None

    def __post_init__(self) -> None:
        for name in ("prompt_tokens", "output_tokens"):
            value = getattr(self, name)
            if not isinstance(value, int) or isinstance(value, bool) or value < 0:
                raise ValidationError(f"{name} must be a non-negative integer, got {value!r}")
        if self.total_tokens is None:
            object.__setattr__(self, "total_tokens", self.prompt_tokens + self.output_tokens)
        elif (
            not isinstance(self.total_tokens, int)
            or isinstance(self.total_tokens, bool)
            or self.total_tokens < 0
        ):
            raise ValidationError(f"total_tokens must be a non-negative integer, got {self.total_tokens!r}")

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> Self:
        require_mapping(data, "Usage")
        return cls(
            prompt_tokens=data.get("prompt_tokens", 0),
            output_tokens=data.get("output_tokens", 0),
            total_tokens=data.get("total_tokens"),
        )

    @classmethod
    def from_json(cls, raw: str) -> Self:
        return cls.from_dict(decode(raw, "usage"))

    def to_dict(self) -> dict[str, int]:
        return {
            "prompt_tokens": self.prompt_tokens,
            "output_tokens": self.output_tokens,
            "total_tokens": self.total_tokens,  # type: ignore[dict-item]
        }

    def to_json(self) -> str:
        return compact(self.to_dict())
