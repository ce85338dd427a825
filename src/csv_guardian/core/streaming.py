"""Incremental CSV validation for content that arrives in chunks."""

from __future__ import annotations

import asyncio
import codecs
import logging
import time
from collections import deque
from contextlib import aclosing
from dataclasses import dataclass, field, replace
from enum import Enum
from pathlib import Path
from typing import (
    Any,
    AsyncIterable,
    AsyncIterator,
    Callable,
    Deque,
    Dict,
    Generic,
    Iterable,
    List,
    Optional,
    Protocol,
    TypeVar,
    Union,
)

from pydantic import ValidationError

from .errors import CSVTokenizeError, StreamClosedError, UnterminatedQuoteError
from .options import CSVOptions, OptionsLike
from .parser import HeaderError, check_header
from .schema import RawRow, as_record_schema, error_issues
from .tokenizer import NewlineScanner, Row, drop_empty_rows, tokenize

T = TypeVar("T")
Chunk = Union[str, bytes, bytearray]
Listener = Callable[..., Any]

logger = logging.getLogger("csv_guardian.stream")

EVENTS = ("headers", "data", "error", "end")


@dataclass
class StreamMetrics:
    """Running counters for a stream."""

    total_rows: int = 0
    valid_rows: int = 0
    invalid_rows: int = 0
    error_rate: float = 0.0
    common_errors: Dict[str, int] = field(default_factory=dict)
    processing_time: float = 0.0
    chunks_processed: int = 0
    early_terminated: bool = False

    def update(
        self,
        chunk_valid: int,
        chunk_invalid: int,
        errors: List[str],
        *,
        count_chunk: bool = True,
    ) -> None:
        """Update metrics with the rows resolved by one chunk."""
        self.total_rows += chunk_valid + chunk_invalid
        self.valid_rows += chunk_valid
        self.invalid_rows += chunk_invalid
        if count_chunk:
            self.chunks_processed += 1

        for error in errors:
            error_key = self._normalize_error(error)
            self.common_errors[error_key] = self.common_errors.get(error_key, 0) + 1

        if self.total_rows > 0:
            self.error_rate = self.invalid_rows / self.total_rows

    def _normalize_error(self, error: str) -> str:
        """Normalize error message for grouping."""
        first_line = error.strip().split("\n")[0]
        if len(first_line) > 100:
            return first_line[:100] + "..."
        return first_line

    def to_dict(self) -> Dict[str, Any]:
        """Serialize metrics to dictionary."""
        return {
            "total_rows": self.total_rows,
            "valid_rows": self.valid_rows,
            "invalid_rows": self.invalid_rows,
            "error_rate": round(self.error_rate, 4),
            "common_errors": dict(
                sorted(self.common_errors.items(), key=lambda x: -x[1])[:10]
            ),
            "processing_time": round(self.processing_time, 3),
            "chunks_processed": self.chunks_processed,
            "early_terminated": self.early_terminated,
        }


@dataclass(frozen=True)
class StreamRowError:
    """Payload of the ``error`` event."""

    index: int
    row: RawRow
    error: ValidationError

    def to_dict(self) -> Dict[str, Any]:
        return {"index": self.index, "row": dict(self.row), "issues": error_issues(self.error)}


class StreamState(str, Enum):
    AWAITING_HEADER = "awaiting_header"
    STREAMING_ROWS = "streaming_rows"
    ENDED = "ended"


class CSVStream(Generic[T]):
    """
    Event-driven CSV parser fed by ``write(chunk)`` calls.

    Events:
        headers: fired once with the detected header cells.
        data: fired per row that validates, with the validated value.
        error: fired per row that fails, with a :class:`StreamRowError`.
        end: fired once after ``end()`` has flushed the remaining buffer.

    Listeners run synchronously inside ``write``/``end``. A row is only
    processed once an unquoted newline terminates it, or at ``end()``.
    """

    def __init__(self, schema: Any, options: OptionsLike = None) -> None:
        self.options = CSVOptions.coerce(options)
        self._schema = as_record_schema(schema)
        self._header_options = replace(self.options, skip_empty_lines=False)
        self._decoder = codecs.getincrementaldecoder(self.options.encoding)()
        self._listeners: Dict[str, List[Listener]] = {event: [] for event in EVENTS}
        self._buffer = ""
        self._scanner = NewlineScanner(self.options)
        self._pending: Deque[Row] = deque()
        self._started_at: Optional[float] = None
        self._chunk_valid = 0
        self._chunk_invalid = 0
        self._chunk_errors: List[str] = []

        self.state = StreamState.AWAITING_HEADER
        self.headers: List[str] = []
        self.header_error: Optional[HeaderError] = None
        self.row_index = 0
        self.metrics = StreamMetrics()

    @property
    def schema_name(self) -> str:
        return self._schema.name

    @property
    def buffered(self) -> int:
        """Number of characters waiting for a row terminator."""
        return len(self._buffer)

    def on(self, event: str, listener: Listener) -> "CSVStream[T]":
        self._listeners_for(event).append(listener)
        return self

    def off(self, event: str, listener: Listener) -> "CSVStream[T]":
        listeners = self._listeners_for(event)
        if listener in listeners:
            listeners.remove(listener)
        return self

    def write(self, chunk: Chunk) -> None:
        """Append a chunk of CSV text (or encoded bytes) and process every complete row."""
        if self.state is StreamState.ENDED:
            raise StreamClosedError("cannot write to a stream that has ended")
        if self._started_at is None:
            self._started_at = time.perf_counter()
        if isinstance(chunk, (bytes, bytearray)):
            chunk = self._decoder.decode(bytes(chunk))
        self._buffer += chunk
        self._process(final=False)
        self._flush_metrics()

    def end(self) -> None:
        """Process whatever is left in the buffer as the final row(s) and emit ``end``."""
        if self.state is StreamState.ENDED:
            raise StreamClosedError("stream has already ended")
        if self._started_at is None:
            self._started_at = time.perf_counter()
        self._buffer += self._decoder.decode(b"", final=True)
        self._process(final=True)
        self._flush_metrics(count_chunk=False)
        self.state = StreamState.ENDED
        logger.debug(
            "Stream for %s ended after %d row(s), %d invalid",
            self.schema_name,
            self.metrics.total_rows,
            self.metrics.invalid_rows,
        )
        self._emit("end")

    def feed(self, chunks: Iterable[Chunk]) -> "CSVStream[T]":
        """Write every chunk from an iterable. Does not call ``end()``."""
        for chunk in chunks:
            self.write(chunk)
        return self

    async def afeed(self, chunks: AsyncIterable[Chunk]) -> "CSVStream[T]":
        """Write every chunk from an async iterable. Does not call ``end()``."""
        async for chunk in chunks:
            self.write(chunk)
        return self

    # -- state machine

    def _process(self, *, final: bool) -> None:
        # rows left over when a listener raised during an earlier call
        self._drain()

        if self.state is StreamState.AWAITING_HEADER and not self._resolve_header(final=final):
            return

        start = 0
        try:
            while True:
                position = self._scanner.scan(self._buffer)
                if position == -1:
                    break
                segment = self._buffer[start : position + 1]
                start = position + 1
                self._process_segment(segment)
        finally:
            self._buffer = self._buffer[start:]
            self._scanner.consume(start)

        if final and self._buffer:
            self._process_tail()

    def _resolve_header(self, *, final: bool) -> bool:
        position = self._scanner.scan(self._buffer)
        if position == -1 and not final:
            return False

        if position == -1:
            line, self._buffer = self._buffer, ""
            self._scanner.reset()
        else:
            line, self._buffer = self._buffer[: position + 1], self._buffer[position + 1 :]
            self._scanner.consume(position + 1)

        try:
            rows = tokenize(line, self._header_options)
        except UnterminatedQuoteError as exc:
            logger.warning(
                "Discarding %d character(s) left inside an unterminated quoted field at end of stream",
                len(line) - exc.offset,
            )
            rows = exc.rows

        header_cells: Optional[Row] = rows[0] if rows else None
        self.headers = list(header_cells) if header_cells is not None else []
        self.header_error = check_header(header_cells, self._schema.field_names)
        if self.header_error is not None:
            logger.warning(
                "CSV header problem for %s: %s (%s)",
                self.schema_name,
                self.header_error.error_code.value,
                self.header_error.header,
            )

        # a lone CR ends a row without ending the header segment
        body = rows[1:]
        if self.options.skip_empty_lines:
            body = drop_empty_rows(body)
        self._pending.extend(body)

        self.state = StreamState.STREAMING_ROWS
        self._emit("headers", list(self.headers))
        self._drain()
        return True

    def _process_segment(self, segment: str) -> None:
        try:
            rows = tokenize(segment, self.options)
        except CSVTokenizeError as exc:
            logger.warning("Skipping malformed CSV segment of %d character(s): %s", len(segment), exc)
            return
        self._pending.extend(rows)
        self._drain()

    def _process_tail(self) -> None:
        tail, self._buffer = self._buffer, ""
        self._scanner.reset()
        try:
            rows = tokenize(tail, self.options)
        except UnterminatedQuoteError as exc:
            logger.warning(
                "Discarding %d character(s) left inside an unterminated quoted field at end of stream",
                len(tail) - exc.offset,
            )
            rows = exc.rows
        self._pending.extend(rows)
        self._drain()

    def _drain(self) -> None:
        while self._pending:
            self._process_row(self._pending.popleft())

    def _process_row(self, cells: Row) -> None:
        raw = self._schema.build_row(cells)
        outcome = self._schema.validate(raw)
        index = self.row_index
        self.row_index += 1

        if outcome.error is None:
            self._chunk_valid += 1
            self._emit("data", outcome.value)
            return

        self._chunk_invalid += 1
        self._chunk_errors.extend(
            f"{issue['path']}: {issue['message']}" for issue in error_issues(outcome.error)
        )
        self._emit("error", StreamRowError(index, raw, outcome.error))

    # -- plumbing

    def _flush_metrics(self, *, count_chunk: bool = True) -> None:
        self.metrics.update(
            self._chunk_valid,
            self._chunk_invalid,
            self._chunk_errors,
            count_chunk=count_chunk,
        )
        self._chunk_valid = 0
        self._chunk_invalid = 0
        self._chunk_errors = []
        if self._started_at is not None:
            self.metrics.processing_time = time.perf_counter() - self._started_at

    def _listeners_for(self, event: str) -> List[Listener]:
        try:
            return self._listeners[event]
        except KeyError as exc:
            raise ValueError(f"Unknown stream event '{event}'; expected one of {EVENTS}") from exc

    def _emit(self, event: str, *args: Any) -> None:
        for listener in list(self._listeners[event]):
            listener(*args)


def create_stream(schema: Any, options: OptionsLike = None) -> CSVStream[Any]:
    """Create a stream parser that emits events for each parsed record.

    Example:
        >>> stream = create_stream(Person)
        >>> stream.on("data", print).on("error", lambda err: print(err.index))
        >>> stream.write("name,age\\nJohn,30\\n")
        >>> stream.end()
    """
    return CSVStream(schema, options)


@dataclass
class StreamingResult:
    """Final result of driving a stream over a whole source."""

    is_valid: bool
    metrics: StreamMetrics
    schema_name: str
    source: str
    header: List[str] = field(default_factory=list)
    header_error: Optional[HeaderError] = None
    errors_sample: List[StreamRowError] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        """Serialize result to dictionary."""
        return {
            "is_valid": self.is_valid,
            "schema_name": self.schema_name,
            "source": self.source,
            "header": list(self.header),
            "header_error": self.header_error.to_dict() if self.header_error else None,
            "metrics": self.metrics.to_dict(),
            "errors_sample": [error.to_dict() for error in self.errors_sample[:10]],
        }


class ProgressCallback(Protocol):
    """Protocol for progress reporting callbacks."""

    def __call__(self, metrics: StreamMetrics) -> None:
        """Report current validation progress."""
        ...


class StreamingValidator:
    """Drives a :class:`CSVStream` over files or async chunk sources."""

    def __init__(
        self,
        schema: Any,
        *,
        chunk_size: int = 65536,
        error_threshold: float | None = None,
        max_errors_sample: int = 100,
        options: OptionsLike = None,
    ) -> None:
        """
        Initialize streaming validator.

        Args:
            schema: pydantic model (or TypeAdapter-compatible type) for each row
            chunk_size: Number of characters read per chunk
            error_threshold: Stop writing once the error rate exceeds this (0.0-1.0)
            max_errors_sample: Maximum row errors to keep for reporting
            options: CSV dialect options
        """
        self._schema = as_record_schema(schema)
        self.options = CSVOptions.coerce(options)
        self.chunk_size = chunk_size
        self.error_threshold = error_threshold
        self.max_errors_sample = max_errors_sample

    async def validate_csv(
        self,
        filepath: Path | str,
        *,
        report_callback: Optional[ProgressCallback] = None,
    ) -> StreamingResult:
        """
        Validate a CSV file chunk by chunk.

        Args:
            filepath: Path to CSV file
            report_callback: Optional callback for progress reporting
        """
        filepath = Path(filepath)
        source = str(filepath)

        async def chunk_iterator() -> AsyncIterator[str]:
            with open(filepath, "r", encoding=self.options.encoding, newline="") as f:
                while True:
                    chunk = f.read(self.chunk_size)
                    if not chunk:
                        break
                    yield chunk
                    await asyncio.sleep(0)  # Yield control

        async with aclosing(chunk_iterator()) as chunks:
            return await self._validate_chunks(chunks, source, report_callback)

    async def validate_stream(
        self,
        data_stream: AsyncIterable[Chunk],
        *,
        source: str = "stream",
        report_callback: Optional[ProgressCallback] = None,
    ) -> StreamingResult:
        """
        Validate an async source of text or byte chunks.

        Args:
            data_stream: Async iterable yielding chunks of CSV content
            source: Source identifier for reporting
            report_callback: Optional callback for progress reporting
        """
        return await self._validate_chunks(data_stream, source, report_callback)

    def validate_csv_sync(
        self,
        filepath: Path | str,
        *,
        report_callback: Optional[ProgressCallback] = None,
    ) -> StreamingResult:
        """Synchronous version of validate_csv."""
        return asyncio.run(self.validate_csv(filepath, report_callback=report_callback))

    async def _validate_chunks(
        self,
        chunks: AsyncIterable[Chunk],
        source: str,
        report_callback: Optional[ProgressCallback],
    ) -> StreamingResult:
        """Core loop: write chunks until exhausted or the error threshold trips."""
        stream: CSVStream[Any] = CSVStream(self._schema, self.options)
        errors_sample: List[StreamRowError] = []

        def collect(error: StreamRowError) -> None:
            if len(errors_sample) < self.max_errors_sample:
                errors_sample.append(error)

        stream.on("error", collect)

        async for chunk in chunks:
            stream.write(chunk)
            logger.debug(
                "Chunk %d of %s processed, %d row(s) so far",
                stream.metrics.chunks_processed,
                source,
                stream.metrics.total_rows,
            )

            if report_callback is not None:
                report_callback(stream.metrics)

            if self.error_threshold is not None and stream.metrics.error_rate > self.error_threshold:
                stream.metrics.early_terminated = True
                logger.info(
                    "Stopping %s early: error rate %.2f exceeds %.2f",
                    source,
                    stream.metrics.error_rate,
                    self.error_threshold,
                )
                break
        else:
            stream.end()
            if report_callback is not None:
                report_callback(stream.metrics)

        metrics = stream.metrics
        return StreamingResult(
            is_valid=not metrics.early_terminated and metrics.invalid_rows == 0 and stream.header_error is None,
            metrics=metrics,
            schema_name=stream.schema_name,
            source=source,
            header=list(stream.headers),
            header_error=stream.header_error,
            errors_sample=errors_sample,
        )


async def validate_csv_streaming(
    filepath: Path | str,
    schema: Any,
    *,
    chunk_size: int = 65536,
    error_threshold: float | None = None,
    report_callback: Optional[ProgressCallback] = None,
    options: OptionsLike = None,
) -> StreamingResult:
    """
    Convenience function for streaming CSV validation.

    Args:
        filepath: Path to CSV file
        schema: Schema each row is validated against
        chunk_size: Number of characters read per chunk
        error_threshold: Stop if error rate exceeds this
        report_callback: Optional callback for progress reporting
        options: CSV dialect options

    Returns:
        StreamingResult with validation outcome and metrics
    """
    validator = StreamingValidator(
        schema,
        chunk_size=chunk_size,
        error_threshold=error_threshold,
        options=options,
    )
    return await validator.validate_csv(filepath, report_callback=report_callback)


def validate_csv_streaming_sync(
    filepath: Path | str,
    schema: Any,
    *,
    chunk_size: int = 65536,
    error_threshold: float | None = None,
    report_callback: Optional[ProgressCallback] = None,
    options: OptionsLike = None,
) -> StreamingResult:
    """Synchronous version of validate_csv_streaming."""
    return asyncio.run(
        validate_csv_streaming(
            filepath,
            schema,
            chunk_size=chunk_size,
            error_threshold=error_threshold,
            report_callback=report_callback,
            options=options,
        )
    )
