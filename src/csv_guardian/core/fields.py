"""
Field types that coerce raw CSV text before pydantic validates it.

Every helper returns an ``Annotated`` type usable as a model annotation::

    class Person(BaseModel):
        name: string()
        age: number(Annotated[float, Field(ge=0)])
        active: boolean()

An empty cell becomes ``None`` so the inner type decides whether a blank
value is acceptable (``string(Optional[str])`` allows it, ``string()`` does
not). Text the coercion cannot handle is passed through unchanged and the
inner type reports the error. Numeric cells with ``_`` digit separators
and ``nan``/``inf`` spellings are rejected outright.
"""

from __future__ import annotations

import math
from datetime import datetime
from enum import Enum
from typing import Annotated, Any, Callable, Optional, Type

from pydantic import BeforeValidator, Strict


def _empty_to_none(value: Any) -> Any:
    if value == "":
        return None
    return value


def _reject_separators(value: str) -> None:
    if "_" in value:
        raise ValueError("digit separators are not allowed in numeric cells")


def _to_number(value: Any) -> Any:
    if value == "":
        return None
    if isinstance(value, str):
        _reject_separators(value)
        try:
            result = float(value)
        except ValueError:
            return value
        if not math.isfinite(result):
            raise ValueError("Input should be a finite number")
        return result
    return value


def _to_integer(value: Any) -> Any:
    if value == "":
        return None
    if isinstance(value, str):
        _reject_separators(value)
        try:
            return int(value)
        except ValueError:
            return value
    return value


def _to_boolean(value: Any) -> Any:
    if value == "":
        return None
    if value == "true":
        return True
    if value == "false":
        return False
    return value


def _to_datetime(value: Any) -> Any:
    if value == "":
        return None
    if isinstance(value, str):
        try:
            return datetime.fromisoformat(value)
        except ValueError:
            return value
    return value


def _coerce(inner: Any, fn: Callable[[Any], Any]) -> Any:
    return Annotated[inner, BeforeValidator(fn)]


def string(inner: Any = str) -> Any:
    return _coerce(inner, _empty_to_none)


def number(inner: Any = float) -> Any:
    return _coerce(inner, _to_number)


def integer(inner: Any = int) -> Any:
    return _coerce(inner, _to_integer)


def boolean(inner: Optional[Any] = None) -> Any:
    """Only the literals ``true`` and ``false`` are booleans; ``yes``/``1`` are rejected."""
    if inner is None:
        inner = Annotated[bool, Strict()]
    return _coerce(inner, _to_boolean)


def date(inner: Any = datetime) -> Any:
    return _coerce(inner, _to_datetime)


def enum_(enum_type: Type[Enum], inner: Optional[Any] = None) -> Any:
    """
    Accept either a member name or a member value of ``enum_type``.

    An empty cell stays ``""`` (it is not turned into ``None``), so it only
    validates when the enum has a member whose value is ``""``.
    """
    members = enum_type.__members__

    def to_member(value: Any) -> Any:
        if isinstance(value, str) and value in members:
            return members[value]
        return value

    return _coerce(inner if inner is not None else enum_type, to_member)


__all__ = ["boolean", "date", "enum_", "integer", "number", "string"]
