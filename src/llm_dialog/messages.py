"""Ordered conversation history with tool-call replay bookkeeping."""

from __future__ import annotations

import json
import logging
from typing import Any, Iterable, Iterator, Mapping, Optional, Self, Union

from llm_dialog.errors import ToolCallError, ValidationError
from llm_dialog.response import ToolResponse
from llm_dialog.types._json import compact, decode
from llm_dialog.types.chat import Message, Role
from llm_dialog.types.tool import ToolCall

__all__ = ["MessageCollection", "MessageLike", "coerce_messages"]

logger = logging.getLogger(__name__)

MessageLike = Union[Message, Mapping[str, Any]]


def _to_message(item: MessageLike) -> Message:
    if isinstance(item, Message):
        return item
    if isinstance(item, Mapping):
        return Message.from_dict(item)
    raise ValidationError(f"Expected a Message or a dict, got {type(item).__name__}")


class MessageCollection:
    """
    Append-only conversation owned by one caller.

    Insertion order is conversation order. Tool results are only accepted
    right after the assistant turn that requested them, one per call, in the
    order the calls were returned.
    """

    def __init__(self, messages: Optional[Iterable[MessageLike]] = None) -> None:
        self._messages: list[Message] = []
        for item in messages or ():
            self.append(_to_message(item))

    # --- appending --------------------------------------------------------
    def append(self, message: Message) -> Self:
        if not isinstance(message, Message):
            raise ValidationError(f"Expected a Message, got {type(message).__name__}")
        if message.role is Role.TOOL:
            self._check_tool_result(message.tool_call_id)  # type: ignore[arg-type]
        self._messages.append(message)
        return self

    def append_user(self, content: str) -> Self:
        return self.append(Message.user(content))

    def append_assistant(self, content: str) -> Self:
        return self.append(Message.assistant(content))

    def append_system(self, content: str) -> Self:
        return self.append(Message.system(content))

    def append_tool_result(self, tool_call_id: str, result: Any) -> Self:
        """Append the output of one tool call. Non-string results are JSON encoded."""
        if not isinstance(result, str):
            result = json.dumps(result, ensure_ascii=False)
        return self.append(Message.tool(tool_call_id, result))

    def from_response(self, response: ToolResponse) -> Self:
        """Append the assistant turn of ``response``, keeping its id and tool calls."""
        pending = self.pending_tool_calls()
        if pending:
            raise ToolCallError(
                "Cannot replay a new assistant turn while tool calls are awaiting results: "
                + ", ".join(call.id for call in pending),
                response=response,
            )
        message = Message.from_response(response)
        logger.debug(
            "Replaying assistant turn %s with %d tool call(s)",
            message.id,
            len(message.tool_calls or ()),
        )
        return self.append(message)

    def _check_tool_result(self, tool_call_id: str) -> None:
        pending = self.pending_tool_calls()
        if not pending:
            raise ToolCallError(
                f"Tool result for {tool_call_id!r} is not preceded by an assistant "
                "tool-call turn; call from_response() first"
            )
        expected = pending[0].id
        if tool_call_id == expected:
            return
        if any(call.id == tool_call_id for call in pending):
            raise ToolCallError(
                f"Tool result for {tool_call_id!r} is out of order; expected {expected!r}"
            )
        raise ToolCallError(f"Unknown tool call id {tool_call_id!r}; expected {expected!r}")

    # --- reading ----------------------------------------------------------
    def pending_tool_calls(self) -> list[ToolCall]:
        """Calls from the latest assistant tool-call turn that still lack a result."""
        answered = 0
        for message in reversed(self._messages):
            if message.role is Role.TOOL:
                answered += 1
                continue
            if message.role is Role.ASSISTANT and message.tool_calls:
                return list(message.tool_calls[answered:])
            break
        return []

    def get(self, index: int) -> Optional[Message]:
        if 0 <= index < len(self._messages):
            return self._messages[index]
        return None

    def all(self) -> list[Message]:
        return list(self._messages)

    def count(self) -> int:
        return len(self._messages)

    def __len__(self) -> int:
        return len(self._messages)

    def __iter__(self) -> Iterator[Message]:
        return iter(list(self._messages))

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}(count={len(self._messages)})"

    # --- serialization ----------------------------------------------------
    def to_serializable(self) -> list[dict[str, Any]]:
        return [m.to_dict() for m in self._messages]

    def to_json(self) -> str:
        return compact(self.to_serializable())

    @classmethod
    def from_serializable(cls, data: Iterable[Mapping[str, Any]]) -> Self:
        return cls(data)

    @classmethod
    def from_json(cls, raw: str) -> Self:
        data = decode(raw, "message collection")
        if not isinstance(data, list):
            raise ValidationError("Message collection JSON must be a list")
        return cls(data)


def coerce_messages(
    messages: Union[MessageCollection, Iterable[MessageLike]],
) -> MessageCollection:
    """Accept a collection or a plain sequence of messages/dicts."""
    if isinstance(messages, MessageCollection):
        return messages
    if isinstance(messages, (str, bytes, Mapping)):
        raise ValidationError("Messages must be a MessageCollection or a list of messages")
    return MessageCollection(messages)
