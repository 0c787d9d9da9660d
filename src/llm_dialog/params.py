"""
Generation parameters for llm-dialog.

Public API
- Builders carry a `RequestConfig` and update it through fluent setters or
  `with_options(dict)`.

Contract
- Standard keys work across providers and are range checked:
  temperature: float in [0, 2]
  max_tokens: int > 0
  top_p: float in [0, 1]
  frequency_penalty: float in [-2, 2]
  presence_penalty: float in [-2, 2]

- Provider specific keys go under `extra` and pass through unchanged.
  Examples:
    extra.seed: int
    extra.stop: str | list[str]

Unknown top-level option keys are moved into extra.
None means "use the provider default".
"""

from __future__ import annotations

from dataclasses import asdict, dataclass, field
from typing import Any, Mapping, Optional

from llm_dialog.errors import ValidationError

__all__ = ["RequestConfig", "STANDARD_KEYS", "normalize_options"]

_RANGES: dict[str, tuple[float, float]] = {
    "temperature": (0.0, 2.0),
    "top_p": (0.0, 1.0),
    "frequency_penalty": (-2.0, 2.0),
    "presence_penalty": (-2.0, 2.0),
}

STANDARD_KEYS = frozenset({*_RANGES, "max_tokens"})


@dataclass(frozen=True)
class RequestConfig:
    """Sampling parameters for one completion request."""

    temperature: Optional[float] = None
    max_tokens: Optional[int] = None
    top_p: Optional[float] = None
    frequency_penalty: Optional[float] = None
    presence_penalty: Optional[float] = None

    # Provider-specific parameters
    extra: dict[str, Any] = field(default_factory=dict)

    def __post_init__(self) -> None:
        for name, (low, high) in _RANGES.items():
            value = getattr(self, name)
            if value is None:
                continue
            if isinstance(value, bool) or not isinstance(value, (int, float)):
                raise ValidationError(f"{name} must be a number, got {value!r}")
            if not low <= value <= high:
                raise ValidationError(f"{name} must be between {low} and {high}, got {value}")

        if self.max_tokens is not None:
            if isinstance(self.max_tokens, bool) or not isinstance(self.max_tokens, int):
                raise ValidationError(f"max_tokens must be an integer, got {self.max_tokens!r}")
            if self.max_tokens <= 0:
                raise ValidationError(f"max_tokens must be positive, got {self.max_tokens}")

        if not isinstance(self.extra, Mapping):
            raise ValidationError("extra must be a dict")
        object.__setattr__(self, "extra", dict(self.extra))

    def as_dict(self, exclude_none: bool = True) -> dict[str, Any]:
        """
        Convert to dictionary, optionally excluding None values.

        Args:
            exclude_none: If True, exclude fields with None values

        Returns:
            Dictionary representation of the config
        """
        result = asdict(self)
        if exclude_none:
            return {k: v for k, v in result.items() if v is not None}
        return result

    def copy(self, **kwargs: Any) -> "RequestConfig":
        """
        Create a validated copy of this config with optional overrides.

        Args:
            **kwargs: Field values to override

        Returns:
            New RequestConfig instance with overrides applied
        """
        current = self.as_dict(exclude_none=False)
        current.update(kwargs)
        return RequestConfig(**current)

    def merge(self, options: Mapping[str, Any] | None) -> "RequestConfig":
        """Return a copy updated from a loose options dict (see `normalize_options`)."""
        normalized = normalize_options(options)
        extra = {**self.extra, **normalized.pop("extra")}
        return self.copy(**normalized, extra=extra)


def normalize_options(options: Mapping[str, Any] | None) -> dict[str, Any]:
    """
    Normalize a user-supplied options dict to a single internal shape.

    Returns a dict with only standard keys plus an `extra` dict.
    Rules:
      - Keys not in STANDARD_KEYS are moved into extra
      - If the caller already passed an `extra` dict it is merged last

    Example
    -------
    >>> normalize_options({"temperature": 0.2, "seed": 7, "extra": {"stop": "END"}})
    {'temperature': 0.2, 'extra': {'seed': 7, 'stop': 'END'}}
    """
    if options is None:
        return {"extra": {}}
    if not isinstance(options, Mapping):
        raise ValidationError(f"options must be a dict, got {type(options).__name__}")

    user_extra = options.get("extra") or {}
    if not isinstance(user_extra, Mapping):
        raise ValidationError("options['extra'] must be a dict")

    std: dict[str, Any] = {}
    extra: dict[str, Any] = {}
    for key, value in options.items():
        if key == "extra":
            continue
        if key in STANDARD_KEYS:
            std[key] = value
        else:
            extra[key] = value

    std["extra"] = {**extra, **user_extra}
    return std
