"""
LLM Dialog - multi-turn conversations with tool calling and structured
output over any supported LLM provider.
"""

import logging

from .builders import PlainBuilder, StructuredBuilder, ToolBuilder
from .client import LLM
from .errors import (
    LLMConnectionError,
    LLMError,
    StructuredOutputError,
    ToolCallError,
    ValidationError,
)
from .factory import ModelSpec, create_provider, parse_model_spec
from .messages import MessageCollection
from .params import RequestConfig
from .providers import ChatProvider, Provider, ProviderReply, get_api_key
from .response import Response, StructuredResponse, ToolCallState, ToolResponse
from .types import Message, Role, ToolCall, ToolDefinition, Usage

__version__ = "0.1.0"

logging.getLogger(__name__).addHandler(logging.NullHandler())

__all__ = [
    "LLM",
    "PlainBuilder",
    "StructuredBuilder",
    "ToolBuilder",
    "MessageCollection",
    "Message",
    "Role",
    "ToolCall",
    "ToolDefinition",
    "Usage",
    "RequestConfig",
    "Response",
    "StructuredResponse",
    "ToolResponse",
    "ToolCallState",
    "ChatProvider",
    "ProviderReply",
    "Provider",
    "get_api_key",
    "ModelSpec",
    "parse_model_spec",
    "create_provider",
    "LLMError",
    "ValidationError",
    "StructuredOutputError",
    "ToolCallError",
    "LLMConnectionError",
]
