"""
Ollama provider implementation.

This module implements the Provider protocol on top of the ``ollama`` Python
client, supporting chat completions with function calling and embeddings.
"""

from __future__ import annotations

import json
import uuid
from collections.abc import Mapping, Sequence
from typing import TYPE_CHECKING, Any

import httpx
import ollama
from ollama import AsyncClient

from ..config.provider import OllamaConfig
from ..errors import (
    ErrorContext,
    InvalidResponseError,
    ProviderError,
    ProviderTimeoutError,
    ProviderUnavailableError,
    error_from_status,
)
from ..logging import RequestLog, ResponseLog, StructuredLogger, get_logger, timed
from ..validation import validate_embedding_inputs
from .base import BaseProvider
from .types import (
    CompletionResult,
    EmbeddingResult,
    Message,
    MessageInput,
    Role,
    ToolCall,
    Usage,
)

if TYPE_CHECKING:
    from ..tools.base import FunctionCallback


def _new_call_id() -> str:
    return f"call_{uuid.uuid4().hex[:12]}"


def _field(obj: Any, name: str, default: Any = None) -> Any:
    """Read a response field from either a pydantic response object or a mapping."""
    if isinstance(obj, Mapping):
        return obj.get(name, default)
    return getattr(obj, name, default)


class OllamaChatModel(BaseProvider):
    """
    Ollama chat and embedding model.

    Supports:
    - Chat completions with function (tool) calling
    - Embeddings through a separate embedding model
    - Per-request model options (temperature, num_ctx, top_p, ...)

    Example:
        ```python
        model = OllamaChatModel(model="mistral")
        result = await model.complete("What's the weather in Paris?", tools=[weather])
        ```
    """

    name = "ollama"

    def __init__(
        self,
        model: str | None = None,
        *,
        config: OllamaConfig | None = None,
        embedding_model: str | None = None,
        client: AsyncClient | None = None,
        logger: StructuredLogger | None = None,
    ) -> None:
        """
        Initialize the Ollama provider.

        Args:
            model: Chat model name (defaults to ``config.default_model``)
            config: Connection and default option settings
            embedding_model: Model used by ``embed`` (defaults to ``config.embedding_model``)
            client: Pre-built ``ollama.AsyncClient`` (mainly for tests)
            logger: Structured logger for request/response records
        """
        self.config = config or OllamaConfig()
        super().__init__(model or self.config.default_model)
        self.embedding_model = embedding_model or self.config.embedding_model
        self.client = client or AsyncClient(host=self.config.base_url, timeout=self.config.timeout)
        self._logger = logger

    @property
    def logger(self) -> StructuredLogger:
        return self._logger or get_logger()

    # === Message conversion ===

    @staticmethod
    def _message_to_api(message: Message) -> dict[str, Any]:
        d: dict[str, Any] = {"role": message.role.value, "content": message.content or ""}
        if message.tool_calls:
            d["tool_calls"] = [
                {"function": {"name": tc.name, "arguments": tc.parse_arguments()}} for tc in message.tool_calls
            ]
        if message.role is Role.TOOL and message.name:
            d["tool_name"] = message.name
        return d

    def _parse_tool_calls(self, raw_calls: Sequence[Any] | None) -> list[ToolCall] | None:
        if not raw_calls:
            return None
        calls = []
        for raw in raw_calls:
            fn = _field(raw, "function")
            if fn is None:
                raise InvalidResponseError("Tool call without a function payload", context=self._context())
            arguments = _field(fn, "arguments") or {}
            if not isinstance(arguments, str):
                arguments = json.dumps(dict(arguments))
            calls.append(ToolCall(id=_field(raw, "id") or _new_call_id(), name=_field(fn, "name"), arguments=arguments))
        return calls

    @staticmethod
    def _parse_usage(response: Any) -> Usage:
        prompt = _field(response, "prompt_eval_count") or 0
        output = _field(response, "eval_count") or 0
        return Usage(input_tokens=prompt, output_tokens=output, total_tokens=prompt + output)

    def _context(self, model: str | None = None, operation: str = "chat") -> ErrorContext:
        return ErrorContext(provider=self.name, model=model or self.model_name, operation=operation)

    def _translate_error(self, exc: Exception, model: str, operation: str) -> ProviderError:
        ctx = self._context(model, operation)
        if isinstance(exc, ollama.ResponseError):
            return error_from_status(exc.status_code, exc.error, provider=self.name, model=model, context=ctx)
        if isinstance(exc, httpx.TimeoutException):
            return ProviderTimeoutError(
                f"Ollama request timed out: {exc}", timeout=self.config.timeout, context=ctx, cause=exc
            )
        return ProviderUnavailableError(f"Cannot reach Ollama at {self.config.base_url}: {exc}", context=ctx, cause=exc)

    def _build_options(self, temperature: float | None, options: dict[str, Any] | None) -> dict[str, Any] | None:
        merged = dict(self.config.options)
        if self.config.default_temperature is not None:
            merged["temperature"] = self.config.default_temperature
        if options:
            merged.update(options)
        if temperature is not None:
            merged["temperature"] = temperature
        return merged or None

    # === Provider API ===

    async def complete(
        self,
        messages: MessageInput,
        *,
        tools: Sequence[FunctionCallback] | None = None,
        model: str | None = None,
        temperature: float | None = None,
        options: dict[str, Any] | None = None,
        keep_alive: str | None = None,
        **kwargs: Any,
    ) -> CompletionResult:
        """
        Generate a chat completion.

        Args:
            messages: Conversation so far
            tools: Function callbacks offered to the model
            model: Override the chat model for this request
            temperature: Sampling temperature
            options: Ollama model options merged over the configured defaults
            keep_alive: How long the server keeps the model loaded

        Returns:
            CompletionResult with content and any requested tool calls
        """
        model = model or self.model_name
        normalized = self._normalize_messages(messages)
        api_tools = self._tools_to_api_format(tools)

        params: dict[str, Any] = {
            "model": model,
            "messages": [self._message_to_api(m) for m in normalized],
        }
        if api_tools:
            params["tools"] = api_tools
        merged_options = self._build_options(temperature, options)
        if merged_options:
            params["options"] = merged_options
        if keep_alive or self.config.keep_alive:
            params["keep_alive"] = keep_alive or self.config.keep_alive
        params.update(kwargs)

        with self.logger.request_context(provider=self.name, model=model, operation="chat") as request_id:
            self.logger.log_request(
                RequestLog(
                    request_id=request_id,
                    provider=self.name,
                    model=model,
                    operation="chat",
                    message_count=len(normalized),
                    function_count=len(api_tools or []),
                    temperature=(merged_options or {}).get("temperature"),
                )
            )
            with timed() as timer:
                try:
                    response = await self.client.chat(**params)
                except (ollama.ResponseError, httpx.HTTPError, ConnectionError) as exc:
                    error = self._translate_error(exc, model, "chat")
                    self.logger.log_response(
                        ResponseLog(
                            request_id=request_id,
                            provider=self.name,
                            model=model,
                            operation="chat",
                            success=False,
                            error=error.message,
                        )
                    )
                    raise error from exc

            message = _field(response, "message")
            if message is None:
                raise InvalidResponseError("Ollama response has no message", context=self._context(model))

            result = CompletionResult(
                content=_field(message, "content") or None,
                tool_calls=self._parse_tool_calls(_field(message, "tool_calls")),
                usage=self._parse_usage(response),
                model=_field(response, "model") or model,
                finish_reason=_field(response, "done_reason"),
                raw_response=response,
            )
            self.logger.log_response(
                ResponseLog(
                    request_id=request_id,
                    provider=self.name,
                    model=model,
                    operation="chat",
                    duration_ms=timer.elapsed_ms,
                    finish_reason=result.finish_reason,
                    tool_call_count=len(result.tool_calls or []),
                    input_tokens=result.usage.input_tokens if result.usage else 0,
                    output_tokens=result.usage.output_tokens if result.usage else 0,
                )
            )
            return result

    async def embed(
        self,
        inputs: str | list[str],
        *,
        model: str | None = None,
        **kwargs: Any,
    ) -> EmbeddingResult:
        """
        Embed one or more texts with the embedding model.

        Returns:
            EmbeddingResult with one vector per input, in input order
        """
        validate_embedding_inputs(inputs)
        model = model or self.embedding_model
        batch = [inputs] if isinstance(inputs, str) else list(inputs)

        try:
            response = await self.client.embed(model=model, input=batch, **kwargs)
        except (ollama.ResponseError, httpx.HTTPError, ConnectionError) as exc:
            raise self._translate_error(exc, model, "embed") from exc

        embeddings = [list(map(float, vector)) for vector in (_field(response, "embeddings") or [])]
        if len(embeddings) != len(batch):
            raise InvalidResponseError(
                f"Expected {len(batch)} embeddings, got {len(embeddings)}",
                context=self._context(model, "embed"),
            )
        prompt = _field(response, "prompt_eval_count") or 0
        return EmbeddingResult(
            embeddings=embeddings,
            usage=Usage(input_tokens=prompt, total_tokens=prompt),
            model=model,
        )

    async def close(self) -> None:
        inner = getattr(self.client, "_client", None)
        if inner is not None and hasattr(inner, "aclose"):
            await inner.aclose()


__all__ = ["OllamaChatModel"]
