from __future__ import annotations

from typing import Any, Dict, List, Mapping, Protocol, Sequence, TypeVar

from pydantic import BaseModel

from ..core.parser import ParseResult

FrameT = TypeVar("FrameT", covariant=True)

ROW_SELECTIONS = ("valid", "all")


class FrameBackend(Protocol[FrameT]):
    """Protocol implemented by concrete dataframe backends."""

    name: str

    def supports(self, data: object) -> bool:
        """Return True when ``data`` is a frame produced by this backend."""

    def from_records(self, records: Sequence[Mapping[str, Any]], columns: Sequence[str] = ()) -> FrameT:
        """Build a frame from row mappings; ``columns`` names an empty frame's columns."""


def to_record(value: Any) -> Dict[str, Any]:
    if isinstance(value, BaseModel):
        return value.model_dump()
    if isinstance(value, Mapping):
        return dict(value)
    return {"value": value}


def result_records(result: ParseResult[Any], rows: str = "valid") -> List[Dict[str, Any]]:
    """Select ``valid_rows`` (validated values) or ``all_rows`` (raw text) as plain dicts."""
    if rows == "valid":
        return [to_record(value) for value in result.valid_rows]
    if rows == "all":
        return [dict(row) for row in result.all_rows]
    raise ValueError(f"rows must be one of {ROW_SELECTIONS}, got {rows!r}")
