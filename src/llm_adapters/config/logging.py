"""
Logging configuration.
"""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path
from typing import Literal, get_args

LogLevel = Literal["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"]
LogFormat = Literal["text", "json"]


@dataclass
class LoggingConfig:
    """
    Logging settings.

    The ``log_*`` switches silence successful records of one category;
    failures are always logged.
    """

    level: LogLevel = "INFO"
    format: LogFormat = "text"
    log_file: Path | None = None

    log_requests: bool = True
    log_function_calls: bool = True
    log_vector_store: bool = True

    def __post_init__(self):
        self.level = str(self.level).upper()
        self.format = str(self.format).lower()
        if self.level not in get_args(LogLevel):
            raise ValueError(f"Invalid log level: {self.level}. Must be one of {get_args(LogLevel)}")
        if self.format not in get_args(LogFormat):
            raise ValueError(f"Invalid log format: {self.format}. Must be one of {get_args(LogFormat)}")
        if isinstance(self.log_file, str):
            self.log_file = Path(self.log_file)


__all__ = ["LogLevel", "LogFormat", "LoggingConfig"]
