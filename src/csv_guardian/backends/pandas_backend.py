from __future__ import annotations

from typing import Any, Mapping, Sequence

import pandas as pd


class PandasBackend:
    """Builds pandas DataFrames from parsed rows."""

    name = "pandas"

    def supports(self, data: object) -> bool:
        return isinstance(data, pd.DataFrame)

    def from_records(self, records: Sequence[Mapping[str, Any]], columns: Sequence[str] = ()) -> pd.DataFrame:
        if not records:
            return pd.DataFrame(columns=list(columns))
        return pd.DataFrame.from_records(list(records))
