"""
Function calling configuration.
"""

from __future__ import annotations

from dataclasses import dataclass


@dataclass
class FunctionCallingConfig:
    """Configuration for the function-calling chat loop."""

    # Upper bound on model -> tool calls -> model round trips per call
    max_rounds: int = 10

    # Dispatch the calls of one model turn concurrently
    parallel_calls: bool = True

    def __post_init__(self):
        if self.max_rounds < 1:
            raise ValueError("max_rounds must be at least 1")


__all__ = ["FunctionCallingConfig"]
