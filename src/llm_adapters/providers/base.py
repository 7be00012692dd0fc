"""
Chat model interface.

The function-calling loop and ProviderEmbeddingModel only depend on the
``Provider`` protocol, so any model server exposing chat with tools and
embeddings can be plugged in.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from collections.abc import Sequence
from typing import TYPE_CHECKING, Any, Protocol, runtime_checkable

from .types import CompletionResult, EmbeddingResult, Message, MessageInput, normalize_messages

if TYPE_CHECKING:
    from ..tools.base import FunctionCallback


@runtime_checkable
class Provider(Protocol):
    name: str

    @property
    def model_name(self) -> str: ...

    async def complete(
        self,
        messages: MessageInput,
        *,
        tools: Sequence[FunctionCallback] | None = None,
        model: str | None = None,
        temperature: float | None = None,
        options: dict[str, Any] | None = None,
        **kwargs: Any,
    ) -> CompletionResult:
        """
        Run one model turn.

        Args:
            messages: Conversation so far (str, dict, Message, or a list of these)
            tools: Function callbacks the model may ask to invoke
            model: Override the default model for this request
            temperature: Sampling temperature
            options: Server-specific model options
        """
        ...

    async def embed(self, inputs: str | list[str], *, model: str | None = None, **kwargs: Any) -> EmbeddingResult: ...

    async def close(self) -> None: ...


class BaseProvider(ABC):
    """Shared plumbing for Provider implementations."""

    name: str = "base"

    def __init__(self, model: str) -> None:
        if not model:
            raise ValueError("model must be a non-empty model name")
        self._model_name = model

    @property
    def model_name(self) -> str:
        return self._model_name

    @staticmethod
    def _normalize_messages(messages: MessageInput) -> list[Message]:
        return normalize_messages(messages)

    @staticmethod
    def _tools_to_api_format(tools: Sequence[FunctionCallback] | None) -> list[dict[str, Any]] | None:
        if not tools:
            return None
        return [callback.to_tool_definition() for callback in tools]

    @abstractmethod
    async def complete(
        self,
        messages: MessageInput,
        *,
        tools: Sequence[FunctionCallback] | None = None,
        model: str | None = None,
        temperature: float | None = None,
        options: dict[str, Any] | None = None,
        **kwargs: Any,
    ) -> CompletionResult: ...

    async def embed(self, inputs: str | list[str], *, model: str | None = None, **kwargs: Any) -> EmbeddingResult:
        raise NotImplementedError(f"{type(self).__name__} does not support embeddings")

    async def close(self) -> None:
        return None

    async def __aenter__(self) -> BaseProvider:
        return self

    async def __aexit__(self, exc_type: Any, exc_val: Any, exc_tb: Any) -> None:
        await self.close()


__all__ = ["Provider", "BaseProvider"]
