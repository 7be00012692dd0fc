"""
Structured logging for llm-adapters.

Every record is a JSON object carrying the active LogContext (trace id,
request id, model or index) plus an ``event_type`` for the typed records:

- ``request`` / ``response``: one chat model turn
- ``function_call``: one function callback invocation
- ``vector_store``: one add or similarity_search
- ``error``: an exception passed to ``log_error``
"""

from __future__ import annotations

import json
import logging
import sys
import time
import uuid
from collections.abc import Iterator
from contextlib import contextmanager
from dataclasses import asdict, dataclass, field, fields, replace
from datetime import datetime, timezone
from pathlib import Path
from typing import TYPE_CHECKING, Any

if TYPE_CHECKING:
    from .config.logging import LoggingConfig


def _utcnow() -> str:
    return datetime.now(timezone.utc).isoformat()


# =============================================================================
# Log Record Types
# =============================================================================


@dataclass
class LogContext:
    """Fields attached to every record logged while the context is active."""

    trace_id: str | None = None
    request_id: str | None = None
    provider: str | None = None
    model: str | None = None
    index_name: str | None = None
    operation: str | None = None
    extra: dict[str, Any] = field(default_factory=dict)

    def to_dict(self) -> dict[str, Any]:
        d = {k: v for k, v in asdict(self).items() if v is not None and k != "extra"}
        d.update(self.extra)
        return d

    def with_update(self, **kwargs) -> LogContext:
        """Copy with ``kwargs`` applied; ``extra`` is merged rather than replaced."""
        extra = {**self.extra, **kwargs.pop("extra", {})}
        known = {f.name for f in fields(self)}
        return replace(self, extra=extra, **{k: v for k, v in kwargs.items() if k in known})


class _Record:
    """Base for typed records; unset optional fields are left out of the payload."""

    def to_dict(self) -> dict[str, Any]:
        return {k: v for k, v in asdict(self).items() if v is not None}


@dataclass
class RequestLog(_Record):
    request_id: str
    provider: str
    model: str
    operation: str
    timestamp: str = field(default_factory=_utcnow)
    message_count: int = 0
    function_count: int = 0
    temperature: float | None = None


@dataclass
class ResponseLog(_Record):
    request_id: str
    provider: str
    model: str
    operation: str
    success: bool = True
    error: str | None = None
    timestamp: str = field(default_factory=_utcnow)
    duration_ms: float | None = None
    finish_reason: str | None = None
    tool_call_count: int = 0
    input_tokens: int = 0
    output_tokens: int = 0


@dataclass
class FunctionCallLog(_Record):
    function_name: str
    tool_call_id: str | None = None
    request_id: str | None = None
    timestamp: str = field(default_factory=_utcnow)
    duration_ms: float | None = None
    success: bool = True
    error: str | None = None
    # Truncated serialized result
    output_preview: str | None = None
    output_length: int = 0


@dataclass
class VectorStoreLog(_Record):
    store: str
    index_name: str
    operation: str
    timestamp: str = field(default_factory=_utcnow)
    duration_ms: float | None = None
    success: bool = True
    error: str | None = None
    document_count: int = 0
    top_k: int | None = None
    similarity_threshold: float | None = None
    native_filter: str | None = None
    result_count: int | None = None


# =============================================================================
# Structured Logger
# =============================================================================


class StructuredLogger:
    """
    Logger emitting one JSON object per record, tagged with the active context.

    Example:
        ```python
        logger = StructuredLogger("llm_adapters")

        with logger.request_context(provider="ollama", model="mistral") as request_id:
            logger.log_request(RequestLog(request_id=request_id, ...))
            ...
        ```
    """

    def __init__(
        self,
        name: str = "llm_adapters",
        level: str = "INFO",
        json_output: bool = True,
        log_file: str | Path | None = None,
        *,
        log_requests: bool = True,
        log_function_calls: bool = True,
        log_vector_store: bool = True,
    ):
        self.name = name
        self.json_output = json_output
        self.log_requests = log_requests
        self.log_function_calls = log_function_calls
        self.log_vector_store_ops = log_vector_store
        self._context = LogContext()

        self._logger = logging.getLogger(name)
        self._logger.setLevel(logging.getLevelName(level.upper()))
        if not self._logger.handlers:
            handler: logging.Handler = logging.FileHandler(log_file) if log_file else logging.StreamHandler(sys.stdout)
            handler.setFormatter(JSONFormatter() if json_output else TextFormatter())
            self._logger.addHandler(handler)

    @property
    def context(self) -> LogContext:
        return self._context

    def set_context(self, **kwargs) -> None:
        """Update the context for all following records."""
        self._context = self._context.with_update(**kwargs)

    @contextmanager
    def trace_context(self, trace_id: str | None = None, **kwargs) -> Iterator[str]:
        """Tag records with a trace id (new unless given) until the block exits."""
        trace_id = trace_id or generate_trace_id()
        previous = self._context
        self._context = previous.with_update(trace_id=trace_id, **kwargs)
        try:
            yield trace_id
        finally:
            self._context = previous

    @contextmanager
    def request_context(self, provider: str, model: str, operation: str = "chat") -> Iterator[str]:
        """Scope of one model request inside the current trace; yields the request id."""
        request_id = generate_request_id()
        with self.trace_context(
            trace_id=self._context.trace_id,
            request_id=request_id,
            provider=provider,
            model=model,
            operation=operation,
        ):
            yield request_id

    @contextmanager
    def store_context(self, store: str, index_name: str, operation: str) -> Iterator[str]:
        """Scope of one vector store operation inside the current trace."""
        with self.trace_context(
            trace_id=self._context.trace_id,
            provider=store,
            index_name=index_name,
            operation=operation,
        ) as trace_id:
            yield trace_id

    def _log(self, level: int, message: str, event_type: str | None = None, data: dict[str, Any] | None = None) -> None:
        payload: dict[str, Any] = {"message": message, **self._context.to_dict()}
        if event_type:
            payload["event_type"] = event_type
        payload.update(data or {})

        if self.json_output:
            self._logger.log(level, json.dumps(payload, default=str))
        else:
            extras = " ".join(f"{k}={v}" for k, v in payload.items() if k != "message")
            self._logger.log(level, f"{message} {extras}")

    def debug(self, message: str, **kwargs) -> None:
        self._log(logging.DEBUG, message, data=kwargs)

    def info(self, message: str, **kwargs) -> None:
        self._log(logging.INFO, message, data=kwargs)

    def warning(self, message: str, **kwargs) -> None:
        self._log(logging.WARNING, message, data=kwargs)

    def error(self, message: str, **kwargs) -> None:
        self._log(logging.ERROR, message, data=kwargs)

    # Typed records; failures are logged even when the category is switched off

    def log_request(self, request: RequestLog) -> None:
        if self.log_requests:
            self._log(
                logging.INFO,
                f"Chat request to {request.provider}/{request.model}",
                event_type="request",
                data=request.to_dict(),
            )

    def log_response(self, response: ResponseLog) -> None:
        if response.success and not self.log_requests:
            return
        message = f"Chat response from {response.provider}/{response.model}"
        if response.duration_ms:
            message += f" ({response.duration_ms:.0f}ms)"
        self._log(_level_for(response.success), message, event_type="response", data=response.to_dict())

    def log_function_call(self, call_log: FunctionCallLog) -> None:
        if call_log.success and not self.log_function_calls:
            return
        self._log(
            _level_for(call_log.success),
            f"Function '{call_log.function_name}' invoked",
            event_type="function_call",
            data=call_log.to_dict(),
        )

    def log_vector_store(self, op_log: VectorStoreLog) -> None:
        if op_log.success and not self.log_vector_store_ops:
            return
        self._log(
            _level_for(op_log.success),
            f"Vector store {op_log.operation} on {op_log.store}/{op_log.index_name}",
            event_type="vector_store",
            data=op_log.to_dict(),
        )

    def log_error(self, error: Exception, message: str | None = None, **kwargs) -> None:
        """Log an exception; library errors add their code, retryable flag and context."""
        data: dict[str, Any] = {"error_type": type(error).__name__, "error_message": str(error), **kwargs}
        code = getattr(error, "code", None)
        if code is not None:
            data["error_code"] = str(getattr(code, "value", code))
        if hasattr(error, "retryable"):
            data["retryable"] = error.retryable
        context = getattr(error, "context", None)
        if context is not None:
            data["error_context"] = context.to_dict()
        self._log(logging.ERROR, message or f"Error: {error}", event_type="error", data=data)


def _level_for(success: bool) -> int:
    return logging.INFO if success else logging.WARNING


# =============================================================================
# Formatters
# =============================================================================


def _record_time(record: logging.LogRecord) -> datetime:
    return datetime.fromtimestamp(record.created, tz=timezone.utc)


class JSONFormatter(logging.Formatter):
    """Merges structured payloads into the envelope; plain messages go under ``message``."""

    def format(self, record: logging.LogRecord) -> str:
        out: dict[str, Any] = {
            "timestamp": _record_time(record).isoformat(),
            "level": record.levelname,
            "logger": record.name,
        }
        message = record.getMessage()
        try:
            payload = json.loads(message)
        except json.JSONDecodeError:
            payload = None
        if isinstance(payload, dict):
            out.update(payload)
        else:
            out["message"] = message

        if record.exc_info:
            out["exception"] = self.formatException(record.exc_info)
        return json.dumps(out, default=str)


class TextFormatter(logging.Formatter):
    LEVEL_COLORS = {
        "DEBUG": "\033[36m",
        "INFO": "\033[32m",
        "WARNING": "\033[33m",
        "ERROR": "\033[31m",
        "CRITICAL": "\033[35m",
    }
    RESET = "\033[0m"

    def format(self, record: logging.LogRecord) -> str:
        timestamp = _record_time(record).strftime("%H:%M:%S.%f")[:-3]
        color = self.LEVEL_COLORS.get(record.levelname, "")
        reset = self.RESET if color else ""
        return f"{timestamp} {color}{record.levelname:8}{reset} {record.getMessage()}"


# =============================================================================
# Utilities
# =============================================================================


def generate_trace_id() -> str:
    return f"trace_{uuid.uuid4().hex[:16]}"


def generate_request_id() -> str:
    return f"req_{uuid.uuid4().hex[:12]}"


def truncate_for_log(text: str, max_length: int = 200) -> str:
    if len(text) <= max_length:
        return text
    return text[:max_length] + f"... ({len(text)} chars total)"


@dataclass
class Timer:
    start_time: float = field(default_factory=time.perf_counter)
    end_time: float | None = None

    def stop(self) -> float:
        """Stop the timer; returns the elapsed milliseconds."""
        self.end_time = time.perf_counter()
        return self.elapsed_ms

    @property
    def elapsed_ms(self) -> float:
        end = self.end_time or time.perf_counter()
        return (end - self.start_time) * 1000


@contextmanager
def timed() -> Iterator[Timer]:
    timer = Timer()
    try:
        yield timer
    finally:
        timer.stop()


# =============================================================================
# Global Logger
# =============================================================================

_default_logger: StructuredLogger | None = None


def get_logger(name: str = "llm_adapters") -> StructuredLogger:
    """Default logger used by components constructed without one."""
    global _default_logger
    if _default_logger is None or _default_logger.name != name:
        _default_logger = StructuredLogger(name)
    return _default_logger


def configure_logging(level: str = "INFO", json_output: bool = True, **kwargs: Any) -> StructuredLogger:
    """Replace the default logger."""
    global _default_logger
    _default_logger = StructuredLogger(level=level, json_output=json_output, **kwargs)
    return _default_logger


def configure_logging_from_config(config: LoggingConfig) -> StructuredLogger:
    return configure_logging(
        level=config.level,
        json_output=config.format == "json",
        log_file=config.log_file,
        log_requests=config.log_requests,
        log_function_calls=config.log_function_calls,
        log_vector_store=config.log_vector_store,
    )


__all__ = [
    "LogContext",
    "RequestLog",
    "ResponseLog",
    "FunctionCallLog",
    "VectorStoreLog",
    "StructuredLogger",
    "JSONFormatter",
    "TextFormatter",
    "Timer",
    "timed",
    "generate_trace_id",
    "generate_request_id",
    "truncate_for_log",
    "get_logger",
    "configure_logging",
    "configure_logging_from_config",
]
