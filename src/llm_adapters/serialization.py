"""
JSON serialization helpers.

Function callback outputs and vector store documents are converted into
JSON-friendly structures here before they are sent to the model or to Redis.
"""

from __future__ import annotations

import dataclasses
import datetime as dt
import json
from decimal import Decimal
from enum import Enum
from pathlib import Path
from typing import Any
from uuid import UUID

import numpy as np


def to_jsonable(obj: Any) -> Any:
    """
    Convert an arbitrary value into plain JSON types.

    Handles dataclasses, pydantic-style models (``model_dump``), enums,
    numpy scalars/arrays, dates, UUIDs, sets and objects exposing ``to_dict``.
    Unknown objects fall back to ``str``.
    """
    if obj is None or isinstance(obj, (bool, int, float, str)):
        return obj
    if isinstance(obj, Enum):
        return to_jsonable(obj.value)
    if isinstance(obj, dict):
        return {str(k): to_jsonable(v) for k, v in obj.items()}
    if isinstance(obj, (list, tuple)):
        return [to_jsonable(v) for v in obj]
    if isinstance(obj, (set, frozenset)):
        return sorted((to_jsonable(v) for v in obj), key=repr)
    if dataclasses.is_dataclass(obj) and not isinstance(obj, type):
        return {f.name: to_jsonable(getattr(obj, f.name)) for f in dataclasses.fields(obj)}
    if hasattr(obj, "model_dump") and callable(obj.model_dump):
        return to_jsonable(obj.model_dump())
    if isinstance(obj, np.ndarray):
        return obj.tolist()
    if isinstance(obj, np.generic):
        return obj.item()
    if isinstance(obj, (dt.datetime, dt.date, dt.time)):
        return obj.isoformat()
    if isinstance(obj, Decimal):
        return float(obj)
    if isinstance(obj, (UUID, Path)):
        return str(obj)
    if isinstance(obj, bytes):
        return obj.decode("utf-8", errors="replace")
    if hasattr(obj, "to_dict") and callable(obj.to_dict):
        return to_jsonable(obj.to_dict())
    return str(obj)


def canonicalize(obj: Any) -> Any:
    """Convert to JSON types with dict keys sorted for deterministic output."""
    obj = to_jsonable(obj)
    if isinstance(obj, dict):
        return {k: canonicalize(obj[k]) for k in sorted(obj)}
    if isinstance(obj, list):
        return [canonicalize(v) for v in obj]
    return obj


def stable_json_dumps(obj: Any) -> str:
    """Dump an object to compact JSON with stable key ordering for hashing."""
    return json.dumps(canonicalize(obj), sort_keys=True, separators=(",", ":"), ensure_ascii=True)


def structural_json_dumps(obj: Any) -> str:
    """
    Serialize a function return value as the text sent back to the model.

    Strings pass through unchanged; everything else becomes JSON.
    """
    if isinstance(obj, str):
        return obj
    return json.dumps(to_jsonable(obj), ensure_ascii=False)


__all__ = [
    "to_jsonable",
    "canonicalize",
    "stable_json_dumps",
    "structural_json_dumps",
]
