from __future__ import annotations

import asyncio
import inspect
import logging
import os
from dataclasses import dataclass, field, replace
from enum import Enum
from pathlib import Path
from typing import Any, Dict, Generic, List, Optional, Sequence, TypeVar

from pydantic import ValidationError

from .errors import ParseFailedError, UnterminatedQuoteError
from .options import CSVOptions, OptionsLike
from .schema import RawRow, as_record_schema
from .tokenizer import Row, drop_empty_rows, serialize_rows, tokenize

T = TypeVar("T")

logger = logging.getLogger("csv_guardian.parser")

HEADER_JOINER = ", "


class HeaderErrorCode(str, Enum):
    """Header problems reported alongside the parsed body."""

    MISSING_HEADER = "MISSING_HEADER"
    MISSING_COLUMN = "MISSING_COLUMN"


@dataclass(frozen=True)
class HeaderError:
    """A header problem and the joined list of the names involved."""

    error_code: HeaderErrorCode
    header: str

    def to_dict(self) -> Dict[str, str]:
        return {"errorCode": self.error_code.value, "header": self.header}


@dataclass(frozen=True)
class ParseErrors:
    header: Optional[HeaderError] = None
    rows: Optional[Dict[int, ValidationError]] = None


@dataclass
class ParseResult(Generic[T]):
    """
    Outcome of a batch parse.

    ``errors`` is set exactly when ``success`` is false. ``all_rows`` has one
    raw row per data line; ``valid_rows`` keeps only the rows that validated,
    in their original order.
    """

    success: bool
    header: List[str]
    all_rows: List[RawRow] = field(default_factory=list)
    valid_rows: List[T] = field(default_factory=list)
    errors: Optional[ParseErrors] = None

    def raise_for_errors(self) -> None:
        if not self.success:
            raise ParseFailedError(self)


@dataclass
class RowResult(Generic[T]):
    """Outcome of validating a single line."""

    success: bool
    row: Optional[T] = None
    errors: List[ValidationError] = field(default_factory=list)


def check_header(actual: Optional[Sequence[str]], expected: Sequence[str]) -> Optional[HeaderError]:
    """
    Compare a detected header with the schema's column names.

    ``actual`` is ``None`` when the content has no header line at all. Only the
    presence of expected names is checked; order and extra columns are ignored.
    """
    if actual is None:
        return HeaderError(HeaderErrorCode.MISSING_HEADER, HEADER_JOINER.join(expected))
    present = {name.strip() for name in actual}
    missing = [name.strip() for name in expected if name.strip() not in present]
    if missing:
        return HeaderError(HeaderErrorCode.MISSING_COLUMN, HEADER_JOINER.join(missing))
    return None


def parse_content(text: str, schema: Any, options: OptionsLike = None) -> ParseResult[Any]:
    """
    Parse CSV ``text`` and validate every data line against ``schema``.

    Header problems and row failures are collected into ``errors``; neither
    stops the rest of the content from being processed.
    """
    opts = CSVOptions.coerce(options)
    record_schema = as_record_schema(schema)

    rows = _tokenize_all(text, opts)
    header_cells: Optional[Row] = rows[0] if rows else None
    body = rows[1:]
    if opts.skip_empty_lines:
        body = drop_empty_rows(body)

    all_rows: List[RawRow] = []
    valid_rows: List[Any] = []
    row_errors: Dict[int, ValidationError] = {}

    for index, cells in enumerate(body):
        raw = record_schema.build_row(cells)
        all_rows.append(raw)
        outcome = record_schema.validate(raw)
        if outcome.error is None:
            valid_rows.append(outcome.value)
        else:
            row_errors[index] = outcome.error

    header_error = check_header(header_cells, record_schema.field_names)
    header = list(header_cells) if header_cells is not None else []

    logger.debug(
        "Parsed %d row(s) against %s: %d valid, %d invalid",
        len(all_rows),
        record_schema.name,
        len(valid_rows),
        len(row_errors),
    )

    if header_error is None and not row_errors:
        return ParseResult(True, header, all_rows, valid_rows)

    errors = ParseErrors(header=header_error, rows=row_errors or None)
    return ParseResult(False, header, all_rows, valid_rows, errors)


async def parse_file(source: Any, schema: Any, options: OptionsLike = None) -> ParseResult[Any]:
    """
    Read the full text of ``source`` and parse it with :func:`parse_content`.

    ``source`` is a filesystem path or a file-like object whose ``read()``
    returns ``str``/``bytes`` (or an awaitable of either, as async upload
    objects do). Read failures propagate unchanged.
    """
    opts = CSVOptions.coerce(options)
    text = await read_text(source, encoding=opts.encoding)
    return parse_content(text, schema, opts)


def parse_file_sync(source: Any, schema: Any, options: OptionsLike = None) -> ParseResult[Any]:
    """Synchronous version of parse_file."""
    return asyncio.run(parse_file(source, schema, options))


def parse_row(line: str, schema: Any, options: OptionsLike = None) -> RowResult[Any]:
    """
    Validate one already-delimited line by pairing it with the schema's
    header and running it through the batch path.
    """
    opts = CSVOptions.coerce(options)
    record_schema = as_record_schema(schema)
    document = serialize_rows([record_schema.field_names], opts) + line
    result = parse_content(document, record_schema, opts)

    if result.errors is not None and result.errors.rows:
        return RowResult(False, errors=list(result.errors.rows.values()))
    return RowResult(True, row=result.valid_rows[0] if result.valid_rows else None)


async def read_text(source: Any, *, encoding: str = "utf-8") -> str:
    if isinstance(source, (str, os.PathLike)):
        path = Path(source)
        return await asyncio.to_thread(path.read_text, encoding=encoding)

    read = getattr(source, "read", None)
    if read is None:
        raise TypeError(f"Unsupported CSV source: {type(source).__name__}")

    content = read()
    if inspect.isawaitable(content):
        content = await content
    if isinstance(content, (bytes, bytearray)):
        return bytes(content).decode(encoding)
    if isinstance(content, str):
        return content
    raise TypeError(f"read() returned {type(content).__name__}, expected str or bytes")


def _tokenize_all(text: str, opts: CSVOptions) -> List[Row]:
    # header is always the first physical row, so empty lines are dropped later
    raw_opts = replace(opts, skip_empty_lines=False)
    try:
        return tokenize(text, raw_opts)
    except UnterminatedQuoteError as exc:
        logger.warning(
            "Dropping unterminated quoted content at offset %d (%d character(s))",
            exc.offset,
            len(text) - exc.offset,
        )
        return exc.rows
