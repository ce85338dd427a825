"""Quote-aware CSV tokenizer shared by the batch and streaming parsers."""

from __future__ import annotations

from typing import Iterable, List, Optional, Sequence

from .errors import UnterminatedQuoteError
from .options import CSVOptions

Row = List[str]

# Scanner states. A quote only opens a quoted field at the start of a field.
_FIELD_START = 0
_UNQUOTED = 1
_QUOTED = 2
_CLOSED = 3


def tokenize(text: str, options: Optional[CSVOptions] = None) -> List[Row]:
    """
    Split CSV text into rows of cells.

    One row is produced per row terminator (``\\n``, ``\\r\\n`` or a lone
    ``\\r`` outside quotes) plus a final row for trailing content that has no
    terminator, so ``""`` yields no rows and ``"\\n"`` yields ``[[""]]``.

    Inside a quoted field the delimiter and line terminators are literal and a
    doubled quote character stands for one quote. Characters following a
    closing quote are kept verbatim up to the next delimiter or terminator.

    Raises:
        UnterminatedQuoteError: the text ends inside a quoted field. The error
            carries the complete rows scanned so far and the offset of the
            incomplete row.
    """
    opts = options or CSVOptions()
    delimiter = opts.delimiter
    quote = opts.quote_char

    rows: List[Row] = []
    row: Row = []
    field: List[str] = []
    state = _FIELD_START
    row_start = 0
    length = len(text)
    i = 0

    while i < length:
        ch = text[i]

        if state == _QUOTED:
            if ch == quote:
                if i + 1 < length and text[i + 1] == quote:
                    field.append(quote)
                    i += 2
                    continue
                state = _CLOSED
            else:
                field.append(ch)
            i += 1
            continue

        if ch == delimiter:
            row.append("".join(field))
            field = []
            state = _FIELD_START
        elif ch == "\n" or ch == "\r":
            row.append("".join(field))
            field = []
            rows.append(row)
            row = []
            state = _FIELD_START
            if ch == "\r" and i + 1 < length and text[i + 1] == "\n":
                i += 1
            row_start = i + 1
        elif ch == quote and state == _FIELD_START:
            state = _QUOTED
        else:
            field.append(ch)
            if state == _FIELD_START:
                state = _UNQUOTED
        i += 1

    if state == _QUOTED:
        raise UnterminatedQuoteError(_filter(rows, opts), row_start)

    if state != _FIELD_START or row:
        row.append("".join(field))
        rows.append(row)

    return _filter(rows, opts)


def find_safe_newline(buffer: str, options: Optional[CSVOptions] = None, start: int = 0) -> int:
    """
    Return the index of the first ``\\n`` in ``buffer`` that is not inside a
    quoted field, or ``-1`` when there is none.

    Quote state follows the same rules as :func:`tokenize`; a doubled quote
    inside a quoted field is consumed as one unit.
    """
    scanner = NewlineScanner(options)
    scanner.position = start
    return scanner.scan(buffer)


class NewlineScanner:
    """
    Resumable form of :func:`find_safe_newline` for a buffer that only grows
    at the end.

    ``position`` and the quote state survive between calls, so text already
    scanned is not scanned again when more arrives. After a caller drops the
    first ``count`` characters of its buffer it must call :meth:`consume`.
    """

    def __init__(self, options: Optional[CSVOptions] = None) -> None:
        opts = options or CSVOptions()
        self._delimiter = opts.delimiter
        self._quote = opts.quote_char
        self._state = _FIELD_START
        self.position = 0

    def scan(self, buffer: str) -> int:
        """Continue scanning ``buffer``; return the next safe ``\\n`` index or ``-1``."""
        delimiter = self._delimiter
        quote = self._quote
        state = self._state
        length = len(buffer)
        i = self.position

        while i < length:
            ch = buffer[i]
            if state == _QUOTED:
                if ch == quote:
                    if i + 1 == length:
                        # may be the first half of a doubled quote
                        break
                    if buffer[i + 1] == quote:
                        i += 2
                        continue
                    state = _CLOSED
                i += 1
                continue

            if ch == "\n":
                self._state = _FIELD_START
                self.position = i + 1
                return i
            if ch == delimiter or ch == "\r":
                state = _FIELD_START
            elif ch == quote and state == _FIELD_START:
                state = _QUOTED
            elif state == _FIELD_START:
                state = _UNQUOTED
            i += 1

        self._state = state
        self.position = i
        return -1

    def consume(self, count: int) -> None:
        """Shift the scan position after ``count`` leading characters were removed."""
        self.position = max(self.position - count, 0)

    def reset(self) -> None:
        self._state = _FIELD_START
        self.position = 0


def is_empty_row(row: Sequence[str]) -> bool:
    return all(cell == "" for cell in row)


def drop_empty_rows(rows: Iterable[Row]) -> List[Row]:
    """Remove rows whose every cell is an empty string."""
    return [row for row in rows if not is_empty_row(row)]


def serialize_rows(rows: Iterable[Sequence[str]], options: Optional[CSVOptions] = None) -> str:
    """Render rows back to CSV text, each row terminated by ``\\n``."""
    opts = options or CSVOptions()
    lines = [opts.delimiter.join(_quote_cell(cell, opts) for cell in row) for row in rows]
    return "".join(line + "\n" for line in lines)


def _quote_cell(cell: str, opts: CSVOptions) -> str:
    quote = opts.quote_char
    if any(token in cell for token in (opts.delimiter, quote, "\n", "\r")):
        return quote + cell.replace(quote, quote + quote) + quote
    return cell


def _filter(rows: List[Row], opts: CSVOptions) -> List[Row]:
    if opts.skip_empty_lines:
        return drop_empty_rows(rows)
    return rows
