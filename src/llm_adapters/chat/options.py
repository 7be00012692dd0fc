"""
Per-request chat options.
"""

from __future__ import annotations

from dataclasses import dataclass, field, replace
from typing import TYPE_CHECKING, Any

if TYPE_CHECKING:
    from ..tools.base import FunctionCallback


@dataclass
class ChatOptions:
    """
    Options for a single function-calling chat request.

    Attributes:
        model: Chat model name (provider default when None)
        temperature: Sampling temperature
        top_p: Nucleus sampling cutoff
        num_ctx: Context window size
        options: Additional model options passed through unchanged
        functions: Names of registered callbacks enabled for this request;
            None enables every registered callback
        function_callbacks: Extra callbacks available only to this request
        keep_alive: How long the server keeps the model loaded after the request
    """

    model: str | None = None
    temperature: float | None = None
    top_p: float | None = None
    num_ctx: int | None = None
    options: dict[str, Any] = field(default_factory=dict)

    functions: set[str] | None = None
    function_callbacks: list[FunctionCallback] = field(default_factory=list)

    keep_alive: str | None = None

    def __post_init__(self) -> None:
        if self.temperature is not None and not (0.0 <= self.temperature <= 2.0):
            raise ValueError("temperature must be between 0.0 and 2.0")
        if self.top_p is not None and not (0.0 < self.top_p <= 1.0):
            raise ValueError("top_p must be in (0.0, 1.0]")
        if self.num_ctx is not None and self.num_ctx < 1:
            raise ValueError("num_ctx must be positive")
        if self.functions is not None:
            self.functions = set(self.functions)

    def model_options(self) -> dict[str, Any]:
        """The provider `options` object: free-form options plus the typed fields."""
        merged = dict(self.options)
        if self.top_p is not None:
            merged["top_p"] = self.top_p
        if self.num_ctx is not None:
            merged["num_ctx"] = self.num_ctx
        return merged

    def merge(self, override: ChatOptions | None) -> ChatOptions:
        """Return a copy with every field set on ``override`` taking precedence."""
        if override is None:
            return replace(self, options=dict(self.options), function_callbacks=list(self.function_callbacks))
        return ChatOptions(
            model=override.model or self.model,
            temperature=override.temperature if override.temperature is not None else self.temperature,
            top_p=override.top_p if override.top_p is not None else self.top_p,
            num_ctx=override.num_ctx if override.num_ctx is not None else self.num_ctx,
            options={**self.options, **override.options},
            functions=override.functions if override.functions is not None else self.functions,
            function_callbacks=[*self.function_callbacks, *override.function_callbacks],
            keep_alive=override.keep_alive or self.keep_alive,
        )


__all__ = ["ChatOptions"]
