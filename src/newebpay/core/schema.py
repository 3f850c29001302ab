"""
Mapping between Python dataclasses and NewebPay wire field names.

Request and result schemas are plain dataclasses whose fields declare the
gateway's field name (``MerchantOrderNo``, ``Amt`` ...) through :func:`wire`.
:func:`to_wire` flattens a request into a ``dict`` keyed by those names and
:func:`from_wire` builds a result from a decoded JSON object.
"""

from __future__ import annotations

import dataclasses
import re
from typing import Any, Dict, Mapping, Type, TypeVar

from .errors import MalformedRecord, ResultShapeMismatch

__all__ = ["from_wire", "to_wire", "wire"]

T = TypeVar("T")

_INTEGER = re.compile(r"^-?\d+$")


def wire(name: str, *, kind: type = str, default: Any = dataclasses.MISSING) -> Any:
    """Declare a dataclass field carried on the wire as ``name``."""
    return dataclasses.field(default=default, metadata={"wire": name, "kind": kind})


def _wire_name(field: dataclasses.Field) -> str:
    return field.metadata.get("wire", field.name)


def to_wire(record: Any) -> Dict[str, Any]:
    """
    Flatten a request dataclass into ``{wire_name: value}``.

    ``None`` values are kept here; the encoder decides to omit them.
    """
    if not dataclasses.is_dataclass(record) or isinstance(record, type):
        raise MalformedRecord(f"{type(record).__name__} is not a request schema")
    return {_wire_name(f): getattr(record, f.name) for f in dataclasses.fields(record)}


def _coerce(value: Any, kind: type, label: str) -> Any:
    if kind is int:
        if isinstance(value, bool):
            raise ResultShapeMismatch(f"{label} must be an integer, got a boolean")
        if isinstance(value, int):
            return value
        if isinstance(value, str) and _INTEGER.match(value.strip()):
            return int(value.strip())
        raise ResultShapeMismatch(f"{label} must be an integer, got {value!r}")

    if isinstance(value, str):
        return value
    if isinstance(value, (int, float)) and not isinstance(value, bool):
        return str(value)
    raise ResultShapeMismatch(f"{label} must be a string, got {value!r}")


def from_wire(cls: Type[T], document: Mapping[str, Any]) -> T:
    """
    Build ``cls`` from a decoded JSON object.

    Missing or ``null`` optional fields fall back to their defaults; a missing
    required field or a value of the wrong shape raises
    :class:`ResultShapeMismatch`.
    """
    if not isinstance(document, Mapping):
        raise ResultShapeMismatch(
            f"{cls.__name__} expects a JSON object, got {type(document).__name__}"
        )

    kwargs: Dict[str, Any] = {}
    for field in dataclasses.fields(cls):
        name = _wire_name(field)
        value = document.get(name)
        has_default = (
            field.default is not dataclasses.MISSING
            or field.default_factory is not dataclasses.MISSING
        )
        if value is None or (value == "" and field.metadata.get("kind") is int):
            if has_default:
                continue
            raise ResultShapeMismatch(f"{cls.__name__} is missing required field {name}")
        kwargs[field.name] = _coerce(
            value, field.metadata.get("kind", str), f"{cls.__name__}.{name}"
        )
    return cls(**kwargs)
