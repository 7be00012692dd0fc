"""
Function-calling chat loop.

This module provides FunctionCallingChat, which sends a conversation to a chat
model together with the enabled function callbacks, executes the calls the
model requests and feeds the results back until the model answers in text.
"""

from __future__ import annotations

from collections.abc import Iterable
from typing import Any

from ..config.functions import FunctionCallingConfig
from ..errors import MaxRoundsExceededError
from ..logging import StructuredLogger, get_logger
from ..providers.base import Provider
from ..providers.types import Message, MessageInput, Role, Usage, normalize_messages
from ..tools.base import FunctionCallback, FunctionCallbackRegistry
from ..tools.execution import execute_tool_calls
from .options import ChatOptions
from .result import ChatResult, RoundResult


class FunctionCallingChat:
    """
    Chat client that resolves model-requested function calls automatically.

    Example:
        ```python
        chat = FunctionCallingChat(
            OllamaChatModel(model="mistral"),
            callbacks=[weather],
            system_message="You are a helpful assistant.",
        )

        result = await chat.call(
            "What's the weather like in San Francisco, Tokyo, and Paris?",
            ChatOptions(functions={"CurrentWeather"}),
        )
        print(result.content)
        ```
    """

    def __init__(
        self,
        model: Provider,
        *,
        callbacks: FunctionCallbackRegistry | Iterable[FunctionCallback] | None = None,
        default_options: ChatOptions | None = None,
        config: FunctionCallingConfig | None = None,
        system_message: str | None = None,
        logger: StructuredLogger | None = None,
    ) -> None:
        """
        Initialize the chat client.

        Args:
            model: Chat model provider
            callbacks: Registered function callbacks (registry or iterable)
            default_options: Options applied to every request
            config: Loop settings (max rounds, parallel dispatch)
            system_message: Prepended when a request has no system message
            logger: Structured logger
        """
        self.model = model
        if isinstance(callbacks, FunctionCallbackRegistry):
            self.callbacks = callbacks
        else:
            self.callbacks = FunctionCallbackRegistry(callbacks)
        self.default_options = default_options or ChatOptions()
        self.config = config or FunctionCallingConfig()
        self.system_message = system_message
        self._logger = logger

    @property
    def logger(self) -> StructuredLogger:
        return self._logger or get_logger()

    def enabled_callbacks(self, options: ChatOptions) -> FunctionCallbackRegistry:
        """
        Callbacks offered to the model for one request.

        Named functions are resolved from the registry (unknown names raise
        FunctionNotFoundError); per-request callbacks are added on top.
        """
        if options.functions is None:
            selected = list(self.callbacks)
        else:
            selected = self.callbacks.resolve_many(sorted(options.functions))
        enabled = FunctionCallbackRegistry(selected)
        for cb in options.function_callbacks:
            if cb.name in enabled:
                enabled.unregister(cb.name)
            enabled.register(cb)
        return enabled

    def _initial_messages(self, prompt: MessageInput) -> list[Message]:
        messages = normalize_messages(prompt)
        if self.system_message and not any(m.role is Role.SYSTEM for m in messages):
            messages.insert(0, Message.system(self.system_message))
        return messages

    async def call(
        self,
        prompt: MessageInput,
        options: ChatOptions | None = None,
        *,
        max_rounds: int | None = None,
        **kwargs: Any,
    ) -> ChatResult:
        """
        Run the conversation until the model answers without function calls.

        Args:
            prompt: User text or a full message list
            options: Request options merged over ``default_options``
            max_rounds: Override the configured round limit
            **kwargs: Passed through to the provider

        Returns:
            ChatResult with the final answer, the full conversation and the
            per-round function calls

        Raises:
            FunctionNotFoundError: the model (or the options) named an unknown function
            SchemaMismatchError: the model sent arguments that do not fit a schema
            FunctionExecutionError: a function raised
            MaxRoundsExceededError: the model kept calling functions past the limit
            ValueError: ``max_rounds`` is less than 1
        """
        opts = self.default_options.merge(options)
        if max_rounds is None:
            max_rounds = self.config.max_rounds
        elif max_rounds < 1:
            raise ValueError("max_rounds must be at least 1")
        enabled = self.enabled_callbacks(opts)
        tools = list(enabled) or None

        messages = self._initial_messages(prompt)
        rounds: list[RoundResult] = []
        total_usage = Usage()

        with self.logger.trace_context():
            for round_number in range(max_rounds):
                completion = await self.model.complete(
                    messages,
                    tools=tools,
                    model=opts.model,
                    temperature=opts.temperature,
                    options=opts.model_options() or None,
                    keep_alive=opts.keep_alive,
                    **kwargs,
                )
                total_usage.add(completion.usage)
                messages.append(completion.to_message())

                current = RoundResult(
                    completion=completion,
                    tool_calls=list(completion.tool_calls or []),
                    round_number=round_number,
                )
                rounds.append(current)

                if not completion.has_tool_calls:
                    return ChatResult(
                        content=completion.content,
                        messages=messages,
                        rounds=rounds,
                        usage=total_usage,
                        model=completion.model,
                        finish_reason=completion.finish_reason,
                    )

                self.logger.debug(
                    f"Round {round_number}: model requested {len(current.tool_calls)} function call(s)",
                    functions=[tc.name for tc in current.tool_calls],
                )
                current.tool_results = await execute_tool_calls(
                    current.tool_calls,
                    enabled,
                    parallel=self.config.parallel_calls,
                    logger=self.logger,
                )
                messages.extend(current.tool_results)

        raise MaxRoundsExceededError(max_rounds=max_rounds)


__all__ = ["FunctionCallingChat"]
