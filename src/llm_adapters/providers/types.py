"""
Conversation types shared by chat models and the function-calling loop.
"""

from __future__ import annotations

import json
from collections.abc import Mapping, Sequence
from dataclasses import dataclass, field
from enum import Enum
from typing import Any

from ..errors import InvalidMessageError


class Role(str, Enum):
    SYSTEM = "system"
    USER = "user"
    ASSISTANT = "assistant"
    TOOL = "tool"


@dataclass(frozen=True)
class ToolCall:
    """A model request to invoke the function ``name`` with JSON ``arguments``."""

    id: str
    name: str
    arguments: str

    def parse_arguments(self) -> dict[str, Any]:
        return json.loads(self.arguments) if self.arguments else {}

    @classmethod
    def from_wire(cls, data: Mapping[str, Any], fallback_id: str) -> ToolCall:
        """
        Build from a wire tool call.

        Ollama sends ``arguments`` as an object and may omit the id;
        OpenAI-compatible servers send a JSON string.
        """
        fn = data["function"]
        arguments = fn.get("arguments") or {}
        if not isinstance(arguments, str):
            arguments = json.dumps(dict(arguments))
        return cls(id=data.get("id") or fallback_id, name=fn["name"], arguments=arguments)


@dataclass
class Message:
    """
    One conversation entry.

    Tool results carry the id of the call they answer in ``tool_call_id``
    and the function name in ``name``.
    """

    role: Role
    content: str | None = None
    name: str | None = None
    tool_calls: list[ToolCall] | None = None
    tool_call_id: str | None = None

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> Message:
        try:
            role = Role(data["role"])
        except (KeyError, ValueError) as e:
            raise InvalidMessageError(f"Message has no valid role: {data.get('role')!r}", cause=e) from e
        raw_calls = data.get("tool_calls") or []
        tool_calls = [ToolCall.from_wire(tc, fallback_id=f"call_{i}") for i, tc in enumerate(raw_calls)]
        return cls(
            role=role,
            content=data.get("content"),
            name=data.get("name") or data.get("tool_name"),
            tool_calls=tool_calls or None,
            tool_call_id=data.get("tool_call_id"),
        )

    @classmethod
    def user(cls, content: str) -> Message:
        return cls(role=Role.USER, content=content)

    @classmethod
    def assistant(cls, content: str | None = None, tool_calls: list[ToolCall] | None = None) -> Message:
        return cls(role=Role.ASSISTANT, content=content, tool_calls=tool_calls)

    @classmethod
    def system(cls, content: str) -> Message:
        return cls(role=Role.SYSTEM, content=content)

    @classmethod
    def tool_result(cls, tool_call_id: str, content: str, name: str | None = None) -> Message:
        return cls(role=Role.TOOL, content=content, tool_call_id=tool_call_id, name=name)


@dataclass
class Usage:
    """Token counts; Ollama reports prompt_eval_count and eval_count."""

    input_tokens: int = 0
    output_tokens: int = 0
    total_tokens: int = 0

    def add(self, other: Usage | None) -> None:
        if other is None:
            return
        self.input_tokens += other.input_tokens
        self.output_tokens += other.output_tokens
        self.total_tokens += other.total_tokens

    def to_dict(self) -> dict[str, int]:
        return {
            "input_tokens": self.input_tokens,
            "output_tokens": self.output_tokens,
            "total_tokens": self.total_tokens,
        }


@dataclass
class CompletionResult:
    """One model turn: an answer, function call requests, or both."""

    content: str | None = None
    tool_calls: list[ToolCall] | None = None
    usage: Usage | None = None
    model: str | None = None
    finish_reason: str | None = None
    raw_response: Any | None = field(default=None, repr=False)

    @property
    def has_tool_calls(self) -> bool:
        return bool(self.tool_calls)

    def to_message(self) -> Message:
        """The assistant message that goes back into the conversation."""
        return Message.assistant(content=self.content, tool_calls=self.tool_calls)


@dataclass
class EmbeddingResult:
    embeddings: list[list[float]]
    usage: Usage | None = None
    model: str | None = None


MessageInput = str | Mapping[str, Any] | Message | Sequence[str | Mapping[str, Any] | Message]


def _to_message(item: Any) -> Message:
    if isinstance(item, Message):
        return item
    if isinstance(item, str):
        return Message.user(item)
    if isinstance(item, Mapping):
        return Message.from_dict(item)
    raise InvalidMessageError(f"Unsupported message type: {type(item).__name__}")


def normalize_messages(messages: MessageInput) -> list[Message]:
    """
    Turn user text, a message, a message dict or a list of those into a message list.

    A bare string becomes a single user message.
    """
    if isinstance(messages, (str, Message, Mapping)):
        return [_to_message(messages)]
    if isinstance(messages, (list, tuple)):
        return [_to_message(m) for m in messages]
    raise InvalidMessageError(f"Unsupported messages type: {type(messages).__name__}")


__all__ = [
    "Role",
    "ToolCall",
    "Message",
    "Usage",
    "CompletionResult",
    "EmbeddingResult",
    "MessageInput",
    "normalize_messages",
]
