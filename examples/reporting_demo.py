"""Demonstration of csv-guardian reporting features."""

import asyncio
from pathlib import Path
from typing import Annotated

from pydantic import BaseModel, Field

from csv_guardian import (
    MetricsExporter,
    ParseReporter,
    StreamingValidator,
    configure_logging,
    fields,
    parse_content,
    to_frame,
)


class Measurement(BaseModel):
    id: fields.integer(Annotated[int, Field(ge=0)])
    email: fields.string(Annotated[str, Field(pattern=r"^[a-zA-Z0-9._%+-]+@[a-zA-Z0-9.-]+\.[a-zA-Z]{2,}$")])
    age: fields.integer(Annotated[int, Field(ge=0, le=120)])
    score: fields.number(Annotated[float, Field(ge=0.0, le=100.0)])


INVALID_CSV = """id,email,age,score
-1,invalid,-5,-10
2,no-at-sign,150,150
3,test@example.com,30,78.1
4,bad@,200,88.9
5,x@y.zz,45,95
"""


def demo_parse_reporting():
    """Demonstrate parse reporting with various output formats."""
    print("=" * 80)
    print("csv-guardian - Parse Reporting Demo")
    print("=" * 80)
    print()

    result = parse_content(INVALID_CSV, Measurement)
    reporter = ParseReporter(result)

    print("Console report (verbose):")
    reporter.to_console(verbose=True)

    output_dir = Path("reports")
    output_dir.mkdir(exist_ok=True)
    reporter.to_html(output_dir / "parse_report.html", title="Measurement Import")
    reporter.to_json(output_dir / "parse_report.json")
    print(f"Reports written to {output_dir.resolve()}")
    print()

    print("Errors as a DataFrame:")
    print(reporter.to_dataframe().groupby("column").size())
    print()

    print("Valid rows as a polars DataFrame:")
    print(to_frame(result, backend="polars"))
    print()


def demo_streaming_metrics():
    """Stream a generated file and export its metrics."""
    print("=" * 80)
    print("Streaming Metrics Export")
    print("=" * 80)
    print()

    filepath = Path("reports") / "measurements.csv"
    filepath.parent.mkdir(exist_ok=True)
    lines = ["id,email,age,score"]
    for i in range(1000):
        age = 200 if i % 17 == 0 else 20 + i % 50
        lines.append(f"{i},user{i}@example.com,{age},{i % 100}")
    filepath.write_text("\n".join(lines) + "\n", encoding="utf-8")

    validator = StreamingValidator(Measurement, chunk_size=4096)
    result = asyncio.run(validator.validate_csv(filepath))

    print(f"Valid: {result.is_valid}")
    print(f"Metrics: {result.metrics.to_dict()}")
    print()
    print("Prometheus:")
    print(MetricsExporter.to_prometheus(result.metrics))


if __name__ == "__main__":
    configure_logging("INFO")
    demo_parse_reporting()
    demo_streaming_metrics()
