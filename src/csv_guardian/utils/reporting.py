"""Parse reporting with multiple export formats."""

from __future__ import annotations

import json
from collections import Counter
from dataclasses import dataclass
from datetime import datetime
from pathlib import Path
from typing import Any, Dict, List, Optional

import pandas as pd
from jinja2 import Template
from rich.console import Console
from rich.panel import Panel
from rich.table import Table
from rich.text import Text

from ..core.parser import ParseResult
from ..core.schema import error_issues
from ..core.streaming import StreamMetrics

REPORT_COLUMNS = ["row", "column", "message", "type"]


@dataclass(frozen=True)
class ErrorDetail:
    """One failed check on one data row (``row`` is the 0-based data-row index)."""

    row: int
    column: str
    message: str
    type: str

    def to_dict(self) -> Dict[str, Any]:
        return {"row": self.row, "column": self.column, "message": self.message, "type": self.type}


class ParseReporter:
    """Render a batch ParseResult for people and downstream tools."""

    def __init__(self, result: ParseResult[Any]) -> None:
        """
        Initialize reporter with a parse result.

        Args:
            result: ParseResult from parse_content / parse_file
        """
        self.result = result
        self.errors = self._collect_errors()

    @property
    def header_error(self) -> Optional[Dict[str, str]]:
        errors = self.result.errors
        if errors is None or errors.header is None:
            return None
        return errors.header.to_dict()

    @property
    def invalid_row_count(self) -> int:
        errors = self.result.errors
        return len(errors.rows) if errors is not None and errors.rows else 0

    def summary(self) -> Dict[str, Any]:
        return {
            "success": self.result.success,
            "total_rows": len(self.result.all_rows),
            "valid_rows": len(self.result.valid_rows),
            "invalid_rows": self.invalid_row_count,
            "total_errors": len(self.errors),
        }

    def to_console(self, verbose: bool = False, console: Console | None = None) -> None:
        """
        Print formatted parse report to console using rich.

        Args:
            verbose: Include the most common error messages
            console: Optional custom Console instance
        """
        console = console or Console()
        summary_data = self.summary()

        summary = Table(title="CSV Parse Summary", show_header=True, header_style="bold magenta")
        summary.add_column("Metric", style="cyan", width=20)
        summary.add_column("Value", style="white", width=30)

        status_text = Text("VALID", style="bold green") if self.result.success else Text("INVALID", style="bold red")
        summary.add_row("Status", status_text)
        summary.add_row("Total Rows", str(summary_data["total_rows"]))
        summary.add_row("Valid Rows", str(summary_data["valid_rows"]))
        summary.add_row("Invalid Rows", str(summary_data["invalid_rows"]))
        summary.add_row("Total Errors", str(summary_data["total_errors"]))

        console.print(summary)
        console.print()

        header_error = self.header_error
        if header_error is not None:
            console.print(
                Panel(
                    f"{header_error['errorCode']}: {header_error['header']}",
                    title="Header",
                    border_style="yellow",
                )
            )
            console.print()

        if not self.errors:
            return

        error_by_column = self._group_errors_by_column()
        error_table = Table(title="Errors by Column", show_header=True)
        error_table.add_column("Column", style="yellow")
        error_table.add_column("Count", style="red", justify="right")
        error_table.add_column("Percentage", style="red", justify="right")

        for column, count in error_by_column.most_common(10):
            pct = (count / len(self.errors)) * 100
            error_table.add_row(column or "(row)", str(count), f"{pct:.1f}%")

        console.print(error_table)
        console.print()

        if verbose:
            top_errors = Table(title="Top 10 Error Messages", show_header=True)
            top_errors.add_column("Error Message", style="red", overflow="fold")
            top_errors.add_column("Count", style="red", justify="right")

            for msg, count in Counter(err.message for err in self.errors).most_common(10):
                truncated = msg[:100] + "..." if len(msg) > 100 else msg
                top_errors.add_row(truncated, str(count))

            console.print(top_errors)
            console.print()

    def to_html(self, filepath: Path | str, title: str = "CSV Parse Report") -> None:
        """
        Generate an HTML report.

        Args:
            filepath: Output path for HTML file
            title: Report title
        """
        filepath = Path(filepath)
        error_by_column = self._group_errors_by_column()
        top_errors = [
            {"message": msg[:150], "count": count}
            for msg, count in Counter(err.message for err in self.errors).most_common(10)
        ]

        template = Template(HTML_TEMPLATE, autoescape=True)
        html_content = template.render(
            title=title,
            summary=self.summary(),
            header_error=self.header_error,
            error_columns=[
                {"column": column or "(row)", "count": count}
                for column, count in error_by_column.most_common(10)
            ],
            top_errors=top_errors,
            errors=[err.to_dict() for err in self.errors[:50]],
            timestamp=datetime.now().isoformat(),
        )
        filepath.write_text(html_content, encoding="utf-8")

    def to_json(self, filepath: Path | str, indent: int = 2) -> None:
        """
        Export the parse outcome as JSON.

        Args:
            filepath: Output path for JSON file
            indent: JSON indentation level
        """
        filepath = Path(filepath)
        data = {
            "success": self.result.success,
            "summary": self.summary(),
            "header": list(self.result.header),
            "header_error": self.header_error,
            "errors": [err.to_dict() for err in self.errors],
            "timestamp": datetime.now().isoformat(),
        }
        filepath.write_text(json.dumps(data, indent=indent), encoding="utf-8")

    def to_dataframe(self) -> pd.DataFrame:
        """
        Convert row errors to a DataFrame for analysis.

        Returns:
            DataFrame with columns: row, column, message, type
        """
        if not self.errors:
            return pd.DataFrame(columns=REPORT_COLUMNS)
        return pd.DataFrame([err.to_dict() for err in self.errors], columns=REPORT_COLUMNS)

    def _collect_errors(self) -> List[ErrorDetail]:
        errors = self.result.errors
        if errors is None or not errors.rows:
            return []
        details: List[ErrorDetail] = []
        for row_index in sorted(errors.rows):
            for issue in error_issues(errors.rows[row_index]):
                details.append(ErrorDetail(row_index, issue["path"], issue["message"], issue["type"]))
        return details

    def _group_errors_by_column(self) -> Counter[str]:
        column_counts: Counter[str] = Counter()
        for err in self.errors:
            column_counts[err.column] += 1
        return column_counts


class MetricsExporter:
    """Export stream metrics to monitoring systems."""

    @staticmethod
    def to_prometheus(metrics: StreamMetrics) -> str:
        """
        Export metrics in Prometheus text format.

        Args:
            metrics: StreamMetrics from a CSVStream or StreamingValidator

        Returns:
            Prometheus-formatted metrics string
        """
        series = [
            ("total_rows", "Total rows parsed", "counter", str(metrics.total_rows)),
            ("valid_rows", "Valid rows count", "counter", str(metrics.valid_rows)),
            ("invalid_rows", "Invalid rows count", "counter", str(metrics.invalid_rows)),
            ("error_rate", "Error rate (0.0-1.0)", "gauge", f"{metrics.error_rate:.4f}"),
            (
                "processing_time_seconds",
                "Processing time in seconds",
                "gauge",
                f"{metrics.processing_time:.3f}",
            ),
            ("chunks_processed", "Total chunks processed", "counter", str(metrics.chunks_processed)),
        ]
        lines: List[str] = []
        for name, help_text, kind, value in series:
            lines.extend([
                f"# HELP csv_guardian_{name} {help_text}",
                f"# TYPE csv_guardian_{name} {kind}",
                f"csv_guardian_{name} {value}",
                "",
            ])

        for error_key, count in list(metrics.common_errors.items())[:10]:
            error_label = error_key.replace("\\", "\\\\").replace('"', '\\"')[:50]
            lines.append(f'csv_guardian_common_errors{{error="{error_label}"}} {count}')

        return "\n".join(lines)

    @staticmethod
    def to_opentelemetry(metrics: StreamMetrics) -> Dict[str, Any]:
        """
        Export metrics for OpenTelemetry.

        Args:
            metrics: StreamMetrics from a CSVStream or StreamingValidator

        Returns:
            Dictionary compatible with OpenTelemetry format
        """
        return {
            "resource": {
                "service.name": "csv-guardian",
                "service.version": "0.1.0",
            },
            "metrics": [
                _otel_metric("total_rows", "Total rows parsed", "rows", "counter", metrics.total_rows),
                _otel_metric("valid_rows", "Valid rows count", "rows", "counter", metrics.valid_rows),
                _otel_metric("invalid_rows", "Invalid rows count", "rows", "counter", metrics.invalid_rows),
                _otel_metric("error_rate", "Error rate (0.0-1.0)", "1", "gauge", metrics.error_rate),
                _otel_metric("processing_time", "Processing time in seconds", "s", "gauge", metrics.processing_time),
                _otel_metric("chunks_processed", "Total chunks processed", "chunks", "counter", metrics.chunks_processed),
            ],
            "attributes": {
                "early_terminated": metrics.early_terminated,
                "common_errors_count": len(metrics.common_errors),
            },
            "timestamp": datetime.now().isoformat(),
        }


def _otel_metric(name: str, description: str, unit: str, kind: str, value: Any) -> Dict[str, Any]:
    return {
        "name": f"csv_guardian.{name}",
        "description": description,
        "unit": unit,
        "type": kind,
        "value": value,
    }


HTML_TEMPLATE = """
<!DOCTYPE html>
<html lang="en">
<head>
    <meta charset="UTF-8">
    <title>{{ title }}</title>
    <style>
        body { font-family: -apple-system, 'Segoe UI', Roboto, sans-serif; background: #f3f4f6; padding: 20px; }
        .container { max-width: 1100px; margin: 0 auto; background: white; border-radius: 10px; overflow: hidden; }
        .header { background: {% if summary.success %}#10b981{% else %}#ef4444{% endif %}; color: white; padding: 30px; text-align: center; }
        .summary { display: grid; grid-template-columns: repeat(auto-fit, minmax(180px, 1fr)); gap: 16px; padding: 30px; }
        .metric-card { background: #f9fafb; padding: 20px; border-radius: 8px; text-align: center; }
        .metric-card .value { font-size: 2em; font-weight: bold; }
        .section { padding: 30px; border-top: 1px solid #e5e7eb; }
        .header-error { padding: 15px; background: #fef3c7; border-left: 4px solid #f59e0b; }
        table { width: 100%; border-collapse: collapse; }
        th, td { padding: 10px; text-align: left; border-bottom: 1px solid #e5e7eb; }
        th { background: #f9fafb; text-transform: uppercase; font-size: 0.8em; }
        .footer { padding: 15px 30px; color: #6b7280; font-size: 0.9em; text-align: center; }
    </style>
</head>
<body>
    <div class="container">
        <div class="header">
            <h1>{{ title }}</h1>
            <div>{% if summary.success %}VALID{% else %}INVALID{% endif %}</div>
        </div>

        <div class="summary">
            <div class="metric-card"><h3>Total Rows</h3><div class="value">{{ summary.total_rows }}</div></div>
            <div class="metric-card"><h3>Valid Rows</h3><div class="value">{{ summary.valid_rows }}</div></div>
            <div class="metric-card"><h3>Invalid Rows</h3><div class="value">{{ summary.invalid_rows }}</div></div>
            <div class="metric-card"><h3>Total Errors</h3><div class="value">{{ summary.total_errors }}</div></div>
        </div>

        {% if header_error %}
        <div class="section">
            <h2>Header</h2>
            <div class="header-error"><strong>{{ header_error.errorCode }}</strong>: {{ header_error.header }}</div>
        </div>
        {% endif %}

        {% if error_columns %}
        <div class="section">
            <h2>Errors by Column</h2>
            <table>
                <thead><tr><th>Column</th><th>Count</th></tr></thead>
                <tbody>
                    {% for item in error_columns %}
                    <tr><td>{{ item.column }}</td><td>{{ item.count }}</td></tr>
                    {% endfor %}
                </tbody>
            </table>
        </div>
        {% endif %}

        {% if top_errors %}
        <div class="section">
            <h2>Most Common Errors</h2>
            <table>
                <thead><tr><th>Error Message</th><th>Count</th></tr></thead>
                <tbody>
                    {% for error in top_errors %}
                    <tr><td>{{ error.message }}</td><td>{{ error.count }}</td></tr>
                    {% endfor %}
                </tbody>
            </table>
        </div>
        {% endif %}

        {% if errors %}
        <div class="section">
            <h2>Row Errors</h2>
            <table>
                <thead><tr><th>Row</th><th>Column</th><th>Message</th><th>Type</th></tr></thead>
                <tbody>
                    {% for error in errors %}
                    <tr><td>{{ error.row }}</td><td>{{ error.column }}</td><td>{{ error.message }}</td><td>{{ error.type }}</td></tr>
                    {% endfor %}
                </tbody>
            </table>
        </div>
        {% endif %}

        <div class="footer">Generated by CSV Guardian v0.1.0 on {{ timestamp }}</div>
    </div>
</body>
</html>
"""
