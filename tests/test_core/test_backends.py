from __future__ import annotations

import pandas as pd
import polars as pl
import pytest
from pydantic import BaseModel

from csv_guardian import BackendNotAvailableError, PandasBackend, PolarsBackend, parse_content, to_frame
from csv_guardian.backends.base import result_records, to_record


class Person(BaseModel):
    name: str
    age: int


@pytest.fixture()
def mixed_result(mixed_people_csv: str):
    return parse_content(mixed_people_csv, Person)


class TestRecords:
    def test_to_record(self) -> None:
        assert to_record(Person(name="A", age=1)) == {"name": "A", "age": 1}
        assert to_record({"x": 1}) == {"x": 1}
        assert to_record(5) == {"value": 5}

    def test_result_records(self, mixed_result) -> None:
        assert result_records(mixed_result) == [{"name": "John", "age": 30}, {"name": "Bob", "age": 40}]
        assert result_records(mixed_result, rows="all")[1] == {"name": "Jane", "age": "abc"}

    def test_unknown_row_selection(self, mixed_result) -> None:
        with pytest.raises(ValueError):
            result_records(mixed_result, rows="invalid")


class TestPandasBackend:
    def test_valid_rows(self, mixed_result) -> None:
        df = to_frame(mixed_result)

        assert PandasBackend().supports(df)
        assert list(df.columns) == ["name", "age"]
        assert df["age"].tolist() == [30, 40]

    def test_all_rows_are_text(self, mixed_result) -> None:
        df = to_frame(mixed_result, rows="all")
        assert df["age"].tolist() == ["30", "abc", "40"]

    def test_empty_result_keeps_header(self) -> None:
        df = to_frame(parse_content("name,age\n", Person))
        assert len(df) == 0
        assert list(df.columns) == ["name", "age"]


class TestPolarsBackend:
    def test_valid_rows(self, mixed_result) -> None:
        df = to_frame(mixed_result, backend="polars")

        assert PolarsBackend().supports(df)
        assert not PandasBackend().supports(df)
        assert df.columns == ["name", "age"]
        assert df["age"].to_list() == [30, 40]

    def test_all_rows(self, mixed_result) -> None:
        df = to_frame(mixed_result, backend="polars", rows="all")
        assert df["name"].to_list() == ["John", "Jane", "Bob"]

    def test_empty_result_keeps_header(self) -> None:
        df = to_frame(parse_content("name,age\n", Person), backend="polars")
        assert isinstance(df, pl.DataFrame)
        assert df.height == 0
        assert df.columns == ["name", "age"]


def test_unknown_backend(mixed_result) -> None:
    with pytest.raises(BackendNotAvailableError, match="Registered backends: pandas, polars"):
        to_frame(mixed_result, backend="arrow")


def test_pandas_supports_only_pandas() -> None:
    assert not PolarsBackend().supports(pd.DataFrame())
