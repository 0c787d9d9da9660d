from .chat import Message, Role, Usage
from .tool import ToolCall, ToolDefinition

__all__ = [
    "Message",
    "Role",
    "Usage",
    "ToolCall",
    "ToolDefinition",
]
