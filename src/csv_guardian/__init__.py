"""Public interface for the csv_guardian package."""

from .core import fields
from .core.errors import (
    BackendNotAvailableError,
    CSVGuardianError,
    InvalidOptionsError,
    ParseFailedError,
    StreamClosedError,
    UnterminatedQuoteError,
)
from .core.options import CSVOptions
from .core.parser import (
    HeaderError,
    HeaderErrorCode,
    ParseErrors,
    ParseResult,
    RowResult,
    parse_content,
    parse_file,
    parse_file_sync,
    parse_row,
)
from .core.schema import RecordSchema, field_names
from .core.streaming import (
    CSVStream,
    StreamingResult,
    StreamingValidator,
    StreamMetrics,
    StreamRowError,
    create_stream,
    validate_csv_streaming,
    validate_csv_streaming_sync,
)
from .backends import PandasBackend, PolarsBackend, to_frame
from .utils.logging_setup import configure_logging
from .utils.reporting import MetricsExporter, ParseReporter

__all__ = [
    "BackendNotAvailableError",
    "CSVGuardianError",
    "CSVOptions",
    "CSVStream",
    "HeaderError",
    "HeaderErrorCode",
    "InvalidOptionsError",
    "MetricsExporter",
    "PandasBackend",
    "ParseErrors",
    "ParseFailedError",
    "ParseReporter",
    "ParseResult",
    "PolarsBackend",
    "RecordSchema",
    "RowResult",
    "StreamClosedError",
    "StreamMetrics",
    "StreamRowError",
    "StreamingResult",
    "StreamingValidator",
    "UnterminatedQuoteError",
    "configure_logging",
    "create_stream",
    "field_names",
    "fields",
    "parse_content",
    "parse_file",
    "parse_file_sync",
    "parse_row",
    "to_frame",
    "validate_csv_streaming",
    "validate_csv_streaming_sync",
]

__version__ = "0.1.0"
