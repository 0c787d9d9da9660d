"""
Provider-neutral dataclasses for client-side tool use.

They are intentionally minimal: everything provider-specific lives in adapters.
Both types keep a private copy of their JSON payload and hand out deep copies,
so a value cannot change after validation.
"""
from __future__ import annotations

import copy
import re
from dataclasses import dataclass
from typing import Any, Mapping, Optional, Self

from llm_dialog.errors import ValidationError
from llm_dialog.types._json import compact, decode, require_id, require_mapping

__all__ = ["ToolDefinition", "ToolCall"]

_TOOL_NAME_RE = re.compile(r"^[A-Za-z0-9_-]{1,64}$")


def _coerce_parameters(parameters: Any) -> dict[str, Any]:
    """Accept a mapping or a JSON string and return a JSON-Schema object."""
    if isinstance(parameters, str):
        parameters = decode(parameters, "schema")
    if not isinstance(parameters, Mapping):
        raise ValidationError("Parameters must be a JSON object or a JSON string")
    if parameters.get("type") != "object":
        raise ValidationError('Parameters schema must declare "type": "object"')
    return copy.deepcopy(dict(parameters))


@dataclass(frozen=True, slots=True, init=False)
class ToolDefinition:
    """A function contract offered to the model."""

    name: str
    description: str
    _parameters: dict[str, Any]

    def __init__(self, name: str, description: str, parameters: Any = None) -> None:
        if not isinstance(name, str) or not _TOOL_NAME_RE.fullmatch(name):
            raise ValidationError(
                f"Invalid tool name {name!r}: use 1-64 letters, digits, '_' or '-'"
            )
        if not isinstance(description, str):
            raise ValidationError("Tool description must be a string")
        if parameters is None:
            parameters = {"type": "object", "properties": {}}
        object.__setattr__(self, "name", name)
        object.__setattr__(self, "description", description)
        object.__setattr__(self, "_parameters", _coerce_parameters(parameters))

    @property
    def parameters(self) -> dict[str, Any]:
        return copy.deepcopy(self._parameters)

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> Self:
        """Build a tool definition from an untyped map (e.g. decoded JSON)."""
        require_mapping(data, "Tool")
        for key in ("name", "description", "parameters"):
            if key not in data:
                raise ValidationError(f"Tool must have '{key}' field")
        return cls(
            name=data["name"],
            description=data["description"],
            parameters=data["parameters"],
        )

    @classmethod
    def from_json(cls, raw: str) -> Self:
        return cls.from_dict(decode(raw, "tool"))

    def to_dict(self) -> dict[str, Any]:
        return {
            "name": self.name,
            "description": self.description,
            "parameters": self.parameters,
        }

    def to_json(self) -> str:
        return compact(self.to_dict())


@dataclass(frozen=True, slots=True, init=False)
class ToolCall:
    """A model-agnostic request emitted by the LLM to call a local tool.

    ``arguments`` is whatever the provider sent; it is not checked against
    the tool's schema. Reading it returns a fresh copy.
    """

    id: str
    name: str
    _arguments: Any

    def __init__(self, id: str, name: str, arguments: Optional[Any] = None) -> None:
        object.__setattr__(self, "id", require_id(id, "Tool call id"))
        object.__setattr__(self, "name", require_id(name, "Tool call name"))
        object.__setattr__(
            self, "_arguments", {} if arguments is None else copy.deepcopy(arguments)
        )

    @property
    def arguments(self) -> Any:
        return copy.deepcopy(self._arguments)

    def __repr__(self) -> str:
        return f"ToolCall(id={self.id!r}, name={self.name!r}, arguments={self._arguments!r})"

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> Self:
        require_mapping(data, "Tool call")
        for key in ("id", "name"):
            if key not in data:
                raise ValidationError(f"Tool call must have '{key}' field")
        return cls(id=data["id"], name=data["name"], arguments=data.get("arguments"))

    @classmethod
    def from_json(cls, raw: str) -> Self:
        return cls.from_dict(decode(raw, "tool call"))

    def to_dict(self) -> dict[str, Any]:
        return {"id": self.id, "name": self.name, "arguments": self.arguments}

    def to_json(self) -> str:
        return compact(self.to_dict())
