"""
Canonical form encoding of request records.

The gateway signs and decrypts the exact query string we produce, so the
output has to be deterministic: keys are sorted and ``None`` fields are
dropped rather than sent empty.
"""

from __future__ import annotations

import dataclasses
from typing import Any, Dict, Mapping
from urllib.parse import urlencode

from .errors import MalformedRecord
from .schema import to_wire

__all__ = ["build_query", "stringify"]


def stringify(value: Any) -> str:
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, int):
        return str(value)
    if isinstance(value, str):
        return value
    raise MalformedRecord(f"Value {value!r} of type {type(value).__name__} is not a scalar")


def _as_mapping(record: Any) -> Mapping[str, Any]:
    if isinstance(record, Mapping):
        return record
    if dataclasses.is_dataclass(record) and not isinstance(record, type):
        return to_wire(record)
    raise MalformedRecord(f"Cannot encode a record of type {type(record).__name__}")


def build_query(record: Any) -> str:
    """
    Encode ``record`` as ``key=value&...`` with keys in sorted order.

    ``record`` is either a mapping or a request schema dataclass. Values are
    form-encoded the way ``application/x-www-form-urlencoded`` bodies are.
    """
    values: Dict[str, str] = {}
    for key, value in _as_mapping(record).items():
        if not isinstance(key, str):
            raise MalformedRecord(f"Field name {key!r} is not a string")
        if value is None:
            continue
        values[key] = stringify(value)
    return urlencode(sorted(values.items()))
