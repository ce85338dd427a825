"""Backend implementations for popular dataframe libraries."""

from __future__ import annotations

from typing import Any, Dict

from ..core.errors import BackendNotAvailableError
from ..core.parser import ParseResult
from .base import FrameBackend, result_records
from .pandas_backend import PandasBackend
from .polars_backend import PolarsBackend

BACKENDS: Dict[str, FrameBackend[Any]] = {
    PandasBackend.name: PandasBackend(),
    PolarsBackend.name: PolarsBackend(),
}


def to_frame(result: ParseResult[Any], backend: str = "pandas", rows: str = "valid") -> Any:
    """
    Convert a batch parse result into a DataFrame.

    Args:
        result: ParseResult from ``parse_content``/``parse_file``
        backend: ``"pandas"`` or ``"polars"``
        rows: ``"valid"`` for validated values (models are dumped with
            ``model_dump()``) or ``"all"`` for the raw text of every row
    """
    try:
        frame_backend = BACKENDS[backend]
    except KeyError as exc:
        raise BackendNotAvailableError(
            f"Backend '{backend}' is not registered. Registered backends: " + ", ".join(BACKENDS)
        ) from exc
    return frame_backend.from_records(result_records(result, rows), columns=result.header)


__all__ = ["BACKENDS", "FrameBackend", "PandasBackend", "PolarsBackend", "to_frame"]
