import io
import logging
from pathlib import Path

import pytest
from pydantic import BaseModel

from csv_guardian import (
    CSVOptions,
    HeaderError,
    HeaderErrorCode,
    ParseFailedError,
    fields,
    parse_content,
    parse_file,
    parse_file_sync,
    parse_row,
)
from csv_guardian.core.parser import check_header
from csv_guardian.core.schema import error_issues


class NumberPerson(BaseModel):
    name: fields.string()
    age: fields.number()


class Contact(BaseModel):
    name: str
    email: str
    phone: str


class TestParseContent:
    def test_valid_content(self) -> None:
        result = parse_content("name,age\nJohn,20\nDoe,30", NumberPerson)

        assert result.success
        assert result.header == ["name", "age"]
        assert [row.model_dump() for row in result.valid_rows] == [
            {"name": "John", "age": 20},
            {"name": "Doe", "age": 30},
        ]
        assert result.errors is None

    def test_all_rows_hold_raw_text(self, person_model, people_csv: str) -> None:
        result = parse_content(people_csv, person_model)

        assert result.all_rows == [{"name": "John", "age": "30"}, {"name": "Jane", "age": "25"}]
        assert len(result.valid_rows) == len(result.all_rows)

    def test_missing_column(self) -> None:
        result = parse_content("name\nJohn,20\nDoe,30", NumberPerson)

        assert not result.success
        assert result.header == ["name"]
        assert result.errors is not None
        assert result.errors.header == HeaderError(HeaderErrorCode.MISSING_COLUMN, "age")
        assert result.errors.header.to_dict() == {"errorCode": "MISSING_COLUMN", "header": "age"}
        # body rows are still validated positionally
        assert len(result.valid_rows) == 2
        assert result.errors.rows is None

    def test_missing_columns_joined_in_schema_order(self) -> None:
        result = parse_content("phone\n1,2,3\n", Contact)
        assert result.errors.header.header == "name, email"

    def test_empty_content_is_missing_header(self, person_model) -> None:
        result = parse_content("", person_model)

        assert not result.success
        assert result.header == []
        assert result.errors.header.error_code is HeaderErrorCode.MISSING_HEADER
        assert result.errors.header.header == "name, age"
        assert result.all_rows == []

    def test_header_order_and_extra_columns_ignored(self, person_model) -> None:
        result = parse_content("age,name,extra\nJohn,30,x\n", person_model)

        assert result.errors is None
        # cells are still paired with schema fields by position
        assert result.all_rows == [{"name": "John", "age": "30"}]

    def test_header_names_are_compared_trimmed(self, person_model) -> None:
        result = parse_content(" name , age \nJohn,30\n", person_model)
        assert result.success
        assert result.header == [" name ", " age "]

    def test_invalid_row_kept_in_all_rows(self) -> None:
        result = parse_content("name,age\nDoe,wewr\n", NumberPerson)

        assert not result.success
        assert result.valid_rows == []
        assert result.all_rows == [{"name": "Doe", "age": "wewr"}]
        error = result.errors.rows[0]
        issues = error_issues(error)
        assert [issue["path"] for issue in issues] == ["age"]
        assert issues[0]["type"] == "float_parsing"

    def test_row_errors_keyed_by_data_row_index(self, person_model, mixed_people_csv: str) -> None:
        result = parse_content(mixed_people_csv, person_model)

        assert set(result.errors.rows) == {1}
        assert [row.name for row in result.valid_rows] == ["John", "Bob"]
        assert len(result.all_rows) == 3

    def test_short_row_reports_missing_field(self, person_model) -> None:
        result = parse_content("name,age\nJohn\n", person_model)

        assert result.all_rows == [{"name": "John", "age": None}]
        assert error_issues(result.errors.rows[0])[0]["type"] == "missing"

    def test_cells_are_trimmed(self, person_model) -> None:
        result = parse_content("name,age\n  John  , 30 \n", person_model)
        assert result.all_rows == [{"name": "John", "age": "30"}]
        assert result.success

    def test_quoted_cells(self, person_model) -> None:
        result = parse_content('name,age\n"Doe, ""JD"" John",41\n', person_model)
        assert result.valid_rows[0].name == 'Doe, "JD" John'

    def test_blank_lines_are_rows_by_default(self, person_model) -> None:
        result = parse_content("name,age\nJohn,30\n\nJane,25\n", person_model)

        assert len(result.all_rows) == 3
        assert result.all_rows[1] == {"name": "", "age": None}
        assert set(result.errors.rows) == {1}

    def test_skip_empty_lines(self, person_model) -> None:
        options = CSVOptions(skip_empty_lines=True)
        result = parse_content("name,age\nJohn,30\n\n,\nJane,25\n", person_model, options)

        assert result.success
        assert [row.name for row in result.valid_rows] == ["John", "Jane"]

    def test_skip_empty_lines_does_not_shift_header(self, person_model) -> None:
        result = parse_content("\nname,age\nJohn,30\n", person_model, {"skip_empty_lines": True})

        assert result.header == [""]
        assert result.errors.header.error_code is HeaderErrorCode.MISSING_COLUMN

    def test_nested_model_columns(self, customer_model) -> None:
        text = "name,address.city,address.zip,tags.label\nAnn,Oslo,0150,vip\nBo,Bergen,5003\n"
        result = parse_content(text, customer_model)

        assert result.errors.header is None
        customer = result.valid_rows[0]
        assert customer.address.zip == "0150"
        assert [tag.label for tag in customer.tags] == ["vip"]
        # no tags.label cell means no tags list at all
        assert error_issues(result.errors.rows[1])[0]["path"] == "tags"

    def test_semicolon_delimiter(self, person_model) -> None:
        result = parse_content("name;age\nJohn;30\n", person_model, {"delimiter": ";"})
        assert result.success

    def test_unterminated_quote_drops_tail(self, person_model, caplog: pytest.LogCaptureFixture) -> None:
        with caplog.at_level(logging.WARNING, logger="csv_guardian.parser"):
            result = parse_content('name,age\nJohn,30\n"Jane,25\n', person_model)

        assert [row.name for row in result.valid_rows] == ["John"]
        assert len(result.all_rows) == 1
        assert "unterminated" in caplog.text

    def test_raise_for_errors(self, person_model, mixed_people_csv: str) -> None:
        parse_content("name,age\nJohn,30\n", person_model).raise_for_errors()

        result = parse_content(mixed_people_csv, person_model)
        with pytest.raises(ParseFailedError, match="1 invalid row") as excinfo:
            result.raise_for_errors()
        assert excinfo.value.result is result

    def test_raise_for_header_errors(self, person_model) -> None:
        with pytest.raises(ParseFailedError, match="MISSING_HEADER"):
            parse_content("", person_model).raise_for_errors()

    def test_logs_summary(self, person_model, people_csv: str, caplog: pytest.LogCaptureFixture) -> None:
        with caplog.at_level(logging.DEBUG, logger="csv_guardian.parser"):
            parse_content(people_csv, person_model)
        assert "2 valid, 0 invalid" in caplog.text


class TestCheckHeader:
    def test_no_header(self) -> None:
        error = check_header(None, ["a", "b"])
        assert error == HeaderError(HeaderErrorCode.MISSING_HEADER, "a, b")

    def test_all_present(self) -> None:
        assert check_header(["b", "a", "c"], ["a", "b"]) is None

    def test_missing(self) -> None:
        error = check_header(["b"], ["a", "b", "c"])
        assert error == HeaderError(HeaderErrorCode.MISSING_COLUMN, "a, c")


class TestParseRow:
    def test_valid_row(self) -> None:
        result = parse_row("John,30", NumberPerson)
        assert result.success
        assert result.row.model_dump() == {"name": "John", "age": 30}
        assert result.errors == []

    def test_invalid_row(self) -> None:
        result = parse_row("Doe,wewr", NumberPerson)
        assert not result.success
        assert result.row is None
        assert len(result.errors) == 1
        assert error_issues(result.errors[0])[0]["path"] == "age"

    def test_quoted_line(self, person_model) -> None:
        result = parse_row('"Doe, John",41', person_model)
        assert result.row.name == "Doe, John"

    def test_delimiter_option(self, person_model) -> None:
        assert parse_row("John|30", person_model, {"delimiter": "|"}).success


class TestParseFile:
    @pytest.mark.asyncio
    async def test_path(self, person_model, people_csv_file: Path) -> None:
        result = await parse_file(people_csv_file, person_model)
        assert result.success
        assert len(result.valid_rows) == 2

    @pytest.mark.asyncio
    async def test_str_path(self, person_model, people_csv_file: Path) -> None:
        result = await parse_file(str(people_csv_file), person_model)
        assert result.success

    @pytest.mark.asyncio
    async def test_binary_file_object(self, person_model) -> None:
        result = await parse_file(io.BytesIO("name,age\nZoë,30\n".encode("utf-8")), person_model)
        assert result.valid_rows[0].name == "Zoë"

    @pytest.mark.asyncio
    async def test_text_file_object(self, person_model, people_csv: str) -> None:
        result = await parse_file(io.StringIO(people_csv), person_model)
        assert result.success

    @pytest.mark.asyncio
    async def test_async_reader(self, person_model, people_csv: str) -> None:
        class Upload:
            async def read(self) -> bytes:
                return people_csv.encode("utf-8")

        result = await parse_file(Upload(), person_model)
        assert len(result.valid_rows) == 2

    @pytest.mark.asyncio
    async def test_encoding_option(self, person_model) -> None:
        data = io.BytesIO("name,age\nJosé,30\n".encode("latin-1"))
        result = await parse_file(data, person_model, CSVOptions(encoding="latin-1"))
        assert result.valid_rows[0].name == "José"

    @pytest.mark.asyncio
    async def test_missing_file_propagates(self, person_model, tmp_path: Path) -> None:
        with pytest.raises(FileNotFoundError):
            await parse_file(tmp_path / "nope.csv", person_model)

    @pytest.mark.asyncio
    async def test_read_failure_propagates(self, person_model) -> None:
        class Broken:
            def read(self) -> bytes:
                raise OSError("disk on fire")

        with pytest.raises(OSError, match="disk on fire"):
            await parse_file(Broken(), person_model)

    @pytest.mark.asyncio
    async def test_unsupported_source(self, person_model) -> None:
        with pytest.raises(TypeError):
            await parse_file(42, person_model)

    def test_sync_wrapper(self, person_model, mixed_people_csv_file: Path) -> None:
        result = parse_file_sync(mixed_people_csv_file, person_model)
        assert not result.success
        assert set(result.errors.rows) == {1}
