"""
Dispatch of model-requested function calls.
"""

from __future__ import annotations

from collections.abc import Iterable, Mapping, Sequence

from ..concurrency import gather_limited
from ..errors import FunctionCallError, FunctionNotFoundError
from ..logging import FunctionCallLog, StructuredLogger, get_logger, timed, truncate_for_log
from ..providers.types import Message, ToolCall
from .base import FunctionCallback, FunctionCallbackRegistry

CallbackSource = FunctionCallbackRegistry | Mapping[str, FunctionCallback] | Iterable[FunctionCallback]


def _as_registry(callbacks: CallbackSource) -> FunctionCallbackRegistry:
    if isinstance(callbacks, FunctionCallbackRegistry):
        return callbacks
    if isinstance(callbacks, Mapping):
        return FunctionCallbackRegistry(callbacks.values())
    return FunctionCallbackRegistry(callbacks)


async def execute_tool_call(
    tool_call: ToolCall,
    callback: FunctionCallback,
    *,
    logger: StructuredLogger | None = None,
) -> Message:
    """
    Run one tool call and wrap its output as a tool-result message.

    Errors from the callback are logged and re-raised unchanged.
    """
    logger = logger or get_logger()
    with timed() as timer:
        try:
            output = await callback.call(tool_call.arguments)
        except FunctionCallError as e:
            logger.log_function_call(
                FunctionCallLog(
                    function_name=callback.name,
                    tool_call_id=tool_call.id,
                    request_id=logger.context.request_id,
                    success=False,
                    error=e.message,
                )
            )
            raise

    logger.log_function_call(
        FunctionCallLog(
            function_name=callback.name,
            tool_call_id=tool_call.id,
            request_id=logger.context.request_id,
            duration_ms=timer.elapsed_ms,
            output_preview=truncate_for_log(output),
            output_length=len(output),
        )
    )
    return Message.tool_result(tool_call.id, output, name=callback.name)


async def execute_tool_calls(
    tool_calls: Sequence[ToolCall],
    callbacks: CallbackSource,
    *,
    parallel: bool = True,
    max_concurrency: int | None = None,
    logger: StructuredLogger | None = None,
) -> list[Message]:
    """
    Execute model-requested calls and return their results in call order.

    Every name is resolved by exact match before anything runs, so an
    unregistered name fails without invoking any function.

    Args:
        tool_calls: Calls from one assistant turn
        callbacks: Registry, name mapping, or iterable of callbacks
        parallel: Run the calls concurrently
        max_concurrency: Bound on concurrent calls when ``parallel`` is set
        logger: Structured logger for function call records

    Returns:
        Tool-result messages, one per call, in the order of ``tool_calls``

    Raises:
        FunctionNotFoundError: a call names an unregistered function
        SchemaMismatchError: arguments do not fit the callback's schema
        FunctionExecutionError: a function raised
    """
    if not tool_calls:
        return []

    registry = _as_registry(callbacks)
    resolved: list[tuple[ToolCall, FunctionCallback]] = []
    for tc in tool_calls:
        callback = registry.get(tc.name)
        if callback is None:
            raise FunctionNotFoundError(function_name=tc.name)
        resolved.append((tc, callback))

    if parallel and len(resolved) > 1:
        return await gather_limited(
            (execute_tool_call(tc, cb, logger=logger) for tc, cb in resolved),
            limit=max_concurrency,
        )

    results = []
    for tc, cb in resolved:
        results.append(await execute_tool_call(tc, cb, logger=logger))
    return results


__all__ = ["CallbackSource", "execute_tool_call", "execute_tool_calls"]
