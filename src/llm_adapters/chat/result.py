"""
Chat result types.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any

if TYPE_CHECKING:
    from ..providers.types import CompletionResult, Message, ToolCall, Usage


@dataclass
class RoundResult:
    """One model turn and the function calls it triggered."""

    completion: CompletionResult
    tool_calls: list[ToolCall] = field(default_factory=list)
    tool_results: list[Message] = field(default_factory=list)
    round_number: int = 0

    @property
    def has_tool_calls(self) -> bool:
        return bool(self.tool_calls)

    @property
    def content(self) -> str | None:
        return self.completion.content


@dataclass
class ChatResult:
    """Final answer of a function-calling chat request."""

    content: str | None = None
    messages: list[Message] = field(default_factory=list)
    rounds: list[RoundResult] = field(default_factory=list)
    usage: Usage | None = None
    model: str | None = None
    finish_reason: str | None = None

    @property
    def num_rounds(self) -> int:
        return len(self.rounds)

    @property
    def all_tool_calls(self) -> list[ToolCall]:
        """Every tool call across all rounds, in order."""
        calls = []
        for r in self.rounds:
            calls.extend(r.tool_calls)
        return calls

    def to_dict(self) -> dict[str, Any]:
        return {
            "content": self.content,
            "num_rounds": self.num_rounds,
            "tool_calls": [{"id": tc.id, "name": tc.name, "arguments": tc.arguments} for tc in self.all_tool_calls],
            "usage": self.usage.to_dict() if self.usage else None,
            "model": self.model,
            "finish_reason": self.finish_reason,
        }


__all__ = ["RoundResult", "ChatResult"]
