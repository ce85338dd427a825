from __future__ import annotations

from typing import TYPE_CHECKING, Any, List

if TYPE_CHECKING:
    from .parser import ParseResult


class CSVGuardianError(Exception):
    """Base error for csv_guardian failures."""


class InvalidOptionsError(CSVGuardianError, ValueError):
    """Raised when CSV parsing options are not usable."""


class CSVTokenizeError(CSVGuardianError):
    """Raised when CSV text cannot be split into rows."""


class UnterminatedQuoteError(CSVTokenizeError):
    """Raised when the text ends while a quoted field is still open.

    ``rows`` holds every complete row scanned before the open field and
    ``offset`` is the position in the text where the incomplete row starts.
    """

    def __init__(self, rows: List[List[str]], offset: int) -> None:
        super().__init__(f"unterminated quoted field starting in row at offset {offset}")
        self.rows = rows
        self.offset = offset


class StreamClosedError(CSVGuardianError):
    """Raised when data is written to a stream that has already ended."""


class ParseFailedError(CSVGuardianError):
    """Raised by ``ParseResult.raise_for_errors`` when parsing was not clean."""

    def __init__(self, result: "ParseResult") -> None:
        super().__init__(_describe_failure(result))
        self.result = result


def _describe_failure(result: Any) -> str:
    errors = result.errors
    parts: list[str] = []
    if errors is not None and errors.header is not None:
        parts.append(f"{errors.header.error_code.value}: {errors.header.header}")
    if errors is not None and errors.rows:
        parts.append(f"{len(errors.rows)} invalid row(s)")
    return "CSV parsing failed" + (" (" + "; ".join(parts) + ")" if parts else "")


class BackendNotAvailableError(CSVGuardianError, ValueError):
    """Raised when a dataframe backend name is not registered."""
