#!/usr/bin/env python3
"""
PC Diag CLI Interface
Command-line interface for the PC health diagnostic core
"""

from typing import Optional

import typer
from rich.console import Console
from rich.panel import Panel
from rich.table import Table

from pcdiag.core.engine import DiagnosticEngine
from pcdiag.core.evidence import SnapshotError, load_sensors, load_snapshot
from pcdiag.core.model import RawReading
from pcdiag.core.result_manager import ResultManager
from pcdiag.core.rule_loader import RuleLoader
from pcdiag.core.validation import MetricKind, validate, validate_counter
from pcdiag.utils.logger import setup_logger
from pcdiag.utils.report import ReportGenerator, console_summary

app = typer.Typer(
    name="pcdiag",
    help="PC Diag - reconciliation, scoring and remediation readiness of PC telemetry",
    no_args_is_help=True
)

console = Console()

REPORT_FORMATS = ("json", "html", "txt", "csv")

TEMPERATURE_KINDS = (MetricKind.CPU_TEMP, MetricKind.GPU_TEMP, MetricKind.DISK_TEMP)


def parse_formats(formats: str) -> list:
    requested = [fmt.strip().lower() for fmt in formats.split(",") if fmt.strip()]
    unknown = [fmt for fmt in requested if fmt not in REPORT_FORMATS]
    if unknown:
        raise typer.BadParameter(f"Unknown format(s): {', '.join(unknown)} (expected {', '.join(REPORT_FORMATS)})")
    return requested


def grade_style(score: int) -> str:
    if score >= 80:
        return "green"
    if score >= 60:
        return "yellow"
    return "red"


@app.command()
def analyze(
    snapshot: str = typer.Argument(..., help="Collector snapshot JSON file"),
    sensors: Optional[str] = typer.Option(
        None, "--sensors", "-s",
        help="Native sensor snapshot JSON file (default: 'sensors' embedded in the snapshot)"
    ),
    output_dir: str = typer.Option(
        "./reports", "--output-dir", "-o",
        help="Output directory for reports"
    ),
    formats: str = typer.Option(
        "json,html", "--format", "-f",
        help="Comma-separated report formats: json, html, txt, csv"
    ),
    no_reports: bool = typer.Option(
        False, "--no-reports",
        help="Only print the summary, write no report file"
    ),
    verbose: int = typer.Option(
        1, "--verbose", "-v",
        help="Verbosity level: 0=minimal, 1=standard, 2=debug"
    ),
    log_file: Optional[str] = typer.Option(
        None, "--log-file",
        help="Log file path (default: logs/pcdiag_<timestamp>.log)"
    )
):
    """Run the diagnostic pipeline on a collected snapshot."""
    report_formats = parse_formats(formats)
    setup_logger(verbose, log_file)

    try:
        raw_snapshot = load_snapshot(snapshot)
        native_sensors = load_sensors(sensors) if sensors else None
    except SnapshotError as e:
        console.print(f"[red]ERROR: {e}[/red]")
        raise typer.Exit(1)

    engine = DiagnosticEngine()
    result = engine.run(raw_snapshot, native_sensors)

    composite = result.composite
    style = grade_style(composite.composite_score)
    console.print(Panel(
        f"[bold {style}]{composite.composite_score}/100 ({composite.grade})[/bold {style}]\n{composite.message}",
        title="Indice composite",
        border_style=style,
    ))

    console.print(console_summary(result), markup=False)

    if result.failed:
        console.print(f"[red]Diagnostic failed: {result.error}[/red]")

    if not no_reports:
        generator = ReportGenerator(output_dir)
        result_manager = ResultManager(output_dir)
        reports = result_manager.generate_reports(result, [fmt for fmt in report_formats if fmt in ("json", "html")])
        if "txt" in report_formats:
            reports["txt"] = generator.generate_summary_report(result)
        if "csv" in report_formats:
            reports["csv"] = generator.generate_csv_report(result.findings)
        for fmt, path in reports.items():
            console.print(f"[green]{fmt.upper()} report: {path}[/green]")

    if result.failed:
        raise typer.Exit(1)


@app.command()
def rules():
    """List the loaded finding rules."""
    loader = RuleLoader()
    loader.load_all_rules()

    table = Table(title="Finding rules")
    table.add_column("Order", justify="right")
    table.add_column("ID", style="cyan")
    table.add_column("Name")
    table.add_column("Category", style="yellow")
    table.add_column("Severity")
    table.add_column("Issue types")

    for rule in loader.ordered_rules():
        metadata = rule.METADATA
        table.add_row(
            str(metadata["order"]),
            metadata["id"],
            metadata["name"],
            metadata["category"],
            metadata["severity_hint"],
            ", ".join(metadata.get("issue_types", [])),
        )

    console.print(table)
    stats = loader.get_rule_stats()
    console.print(f"{stats['total_rules']} rules, {stats['total_issue_types']} issue types")


@app.command("validate-metric")
def validate_metric(
    kind: str = typer.Argument(..., help="cpu_temp, gpu_temp, disk_temp, or a counter name (e.g. diskQueueLength)"),
    value: str = typer.Argument(..., help="Raw value to validate")
):
    """Run the metric validator on a single value."""
    if kind in TEMPERATURE_KINDS:
        metric = validate(RawReading(value=value, available=True), kind, kind)
    else:
        metric = validate_counter(value, kind)

    style = "green" if metric.is_valid else "red"
    console.print(f"[{style}]{metric.validity}[/{style}] ({metric.source}) {metric.display_value}")
    if not metric.is_valid:
        raise typer.Exit(1)


@app.command()
def version():
    """Show version information."""
    from pcdiag import __version__, __author__
    console.print(f"PC Diag v{__version__}")
    console.print(f"By {__author__}")


if __name__ == "__main__":
    app()
