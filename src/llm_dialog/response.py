from __future__ import annotations

import copy
from dataclasses import dataclass, field
from enum import StrEnum
from typing import Any, Mapping, Optional, Self, Type, TypeVar

from pydantic import BaseModel

from llm_dialog.types._json import compact, decode, require_mapping
from llm_dialog.types.chat import Usage
from llm_dialog.types.tool import ToolCall

__all__ = ["Response", "StructuredResponse", "ToolResponse", "ToolCallState"]

DEFAULT_FINISH_REASON = "stop"

ModelT = TypeVar("ModelT", bound=BaseModel)


class ToolCallState(StrEnum):
    """Where a tool-calling conversation stands after one ``complete()``."""

    AWAITING_INITIAL = "awaiting_initial"
    HAS_TOOL_CALLS = "has_tool_calls"
    TERMINAL = "terminal"


@dataclass(frozen=True)
class Response:
    """Outcome of one plain completion call."""

    content: str
    usage: Usage = field(default_factory=Usage)
    model: str = ""
    finish_reason: str = DEFAULT_FINISH_REASON

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> Self:
        require_mapping(data, "Response")
        return cls(
            content=data.get("content", ""),
            usage=Usage.from_dict(data.get("usage") or {}),
            model=data.get("model", ""),
            finish_reason=data.get("finish_reason") or DEFAULT_FINISH_REASON,
        )

    @classmethod
    def from_json(cls, raw: str) -> Self:
        return cls.from_dict(decode(raw, "response"))

    def to_dict(self) -> dict[str, Any]:
        return {
            "content": self.content,
            "usage": self.usage.to_dict(),
            "model": self.model,
            "finish_reason": self.finish_reason,
        }

    def to_json(self) -> str:
        return compact(self.to_dict())

    def __str__(self) -> str:
        return self.content


@dataclass(frozen=True)
class StructuredResponse(Response):
    """Completion whose content was decoded as JSON.

    ``content`` always holds the raw text the model produced.
    """

    structured: Any = None

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> Self:
        base = Response.from_dict(data)
        return cls(
            content=base.content,
            usage=base.usage,
            model=base.model,
            finish_reason=base.finish_reason,
            structured=copy.deepcopy(data.get("structured")),
        )

    def to_dict(self) -> dict[str, Any]:
        result = super().to_dict()
        result["structured"] = copy.deepcopy(self.structured)
        return result

    def get_structured(self) -> Any:
        return copy.deepcopy(self.structured)

    def parse_as(self, model: Type[ModelT]) -> ModelT:
        """Validate the structured value into a pydantic model.

        Raises:
            pydantic.ValidationError: if the value does not fit ``model``.
        """
        return model.model_validate(self.structured)


@dataclass(frozen=True)
class ToolResponse(Response):
    """Completion that may ask the caller to run tools.

    When ``has_tool_calls()`` is true the caller must replay the assistant
    turn with ``MessageCollection.from_response`` and append one result per
    call, in order, before calling ``complete()`` again.
    """

    tool_calls: tuple[ToolCall, ...] = ()
    response_id: Optional[str] = None

    def __post_init__(self) -> None:
        object.__setattr__(self, "tool_calls", tuple(self.tool_calls or ()))

    @property
    def state(self) -> ToolCallState:
        return ToolCallState.HAS_TOOL_CALLS if self.tool_calls else ToolCallState.TERMINAL

    def has_tool_calls(self) -> bool:
        return bool(self.tool_calls)

    def get_tool_calls(self) -> list[ToolCall]:
        return list(self.tool_calls)

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> Self:
        base = Response.from_dict(data)
        return cls(
            content=base.content,
            usage=base.usage,
            model=base.model,
            finish_reason=base.finish_reason,
            tool_calls=tuple(ToolCall.from_dict(c) for c in data.get("tool_calls") or ()),
            response_id=data.get("response_id"),
        )

    def to_dict(self) -> dict[str, Any]:
        result = super().to_dict()
        result["tool_calls"] = [c.to_dict() for c in self.tool_calls]
        result["response_id"] = self.response_id
        return result
