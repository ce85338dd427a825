"""Core parsing primitives for csv_guardian."""

from .errors import (
    BackendNotAvailableError,
    CSVGuardianError,
    CSVTokenizeError,
    InvalidOptionsError,
    ParseFailedError,
    StreamClosedError,
    UnterminatedQuoteError,
)
from .options import CSVOptions
from .parser import (
    HeaderError,
    HeaderErrorCode,
    ParseErrors,
    ParseResult,
    RowResult,
    check_header,
    parse_content,
    parse_file,
    parse_file_sync,
    parse_row,
)
from .schema import RecordSchema, describe, error_issues, field_names
from .streaming import (
    CSVStream,
    StreamingResult,
    StreamingValidator,
    StreamMetrics,
    StreamRowError,
    StreamState,
    create_stream,
    validate_csv_streaming,
    validate_csv_streaming_sync,
)
from .tokenizer import NewlineScanner, find_safe_newline, serialize_rows, tokenize

__all__ = [
    "BackendNotAvailableError",
    "CSVGuardianError",
    "CSVOptions",
    "CSVStream",
    "CSVTokenizeError",
    "HeaderError",
    "HeaderErrorCode",
    "InvalidOptionsError",
    "NewlineScanner",
    "ParseErrors",
    "ParseFailedError",
    "ParseResult",
    "RecordSchema",
    "RowResult",
    "StreamClosedError",
    "StreamMetrics",
    "StreamRowError",
    "StreamState",
    "StreamingResult",
    "StreamingValidator",
    "UnterminatedQuoteError",
    "check_header",
    "create_stream",
    "describe",
    "error_issues",
    "field_names",
    "find_safe_newline",
    "parse_content",
    "parse_file",
    "parse_file_sync",
    "parse_row",
    "serialize_rows",
    "tokenize",
    "validate_csv_streaming",
    "validate_csv_streaming_sync",
]
