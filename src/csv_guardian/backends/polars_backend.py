from __future__ import annotations

from typing import Any, Mapping, Sequence

import polars as pl


class PolarsBackend:
    """Builds Polars DataFrames from parsed rows."""

    name = "polars"

    def supports(self, data: object) -> bool:
        return isinstance(data, pl.DataFrame)

    def from_records(self, records: Sequence[Mapping[str, Any]], columns: Sequence[str] = ()) -> pl.DataFrame:
        if not records:
            return pl.DataFrame(schema={column: pl.Utf8 for column in columns})
        return pl.DataFrame([dict(record) for record in records])
