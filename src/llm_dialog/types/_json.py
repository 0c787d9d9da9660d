"""Wire-format JSON helpers shared by the value types."""

from __future__ import annotations

import json
from typing import Any, Mapping

from llm_dialog.errors import ValidationError


def compact(data: Any) -> str:
    return json.dumps(data, ensure_ascii=False, separators=(",", ":"))


def decode(raw: str, what: str) -> Any:
    """Parse *raw* as JSON, reporting failures as ValidationError."""
    if not isinstance(raw, (str, bytes, bytearray)):
        raise ValidationError(f"{what} JSON must be a string, got {type(raw).__name__}")
    try:
        return json.loads(raw)
    except json.JSONDecodeError as exc:
        raise ValidationError(f"Invalid {what} JSON: {exc.msg}") from exc


def require_mapping(data: Any, what: str) -> Mapping[str, Any]:
    if not isinstance(data, Mapping):
        raise ValidationError(f"{what} must be a JSON object, got {type(data).__name__}")
    return data


def require_id(value: Any, field: str) -> str:
    """Ids are opaque, non-empty strings."""
    if not isinstance(value, str) or not value:
        raise ValidationError(f"{field} must be a non-empty string, got {value!r}")
    return value
