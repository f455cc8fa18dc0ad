"""Gap analysis run: resolve config, load the workspace, report.

Status and errors go to stderr through rich; the report itself goes to
stdout (or the configured output file) as plain text.
"""

from __future__ import annotations

import threading
import time
from pathlib import Path
from typing import Optional

import click
from rich.console import Console
from rich.markup import escape

from ..compliance.errors import ErrorList
from ..formatters.junit import build_junit_xml, export_junit_results
from ..formatters.report import format_inventory, format_json_report, format_text_report
from ..utils.sanitize import sanitize_error
from .config import MasonryConfig
from .gap import analyze_model, build_inventory, load_for_certification

console = Console(stderr=True, highlight=False, soft_wrap=True)

EXIT_OK = 0
EXIT_REFUSED = 1


def report_errors(errors: ErrorList, refused: bool) -> None:
    """Print every collected error at once."""
    for error in errors:
        level = "[red]ERROR[/red]" if refused else "[yellow]WARN[/yellow]"
        console.print(f"  {level} {escape(sanitize_error(str(error)))}")


def _emit(content: str | bytes, output_path: Optional[str]) -> None:
    if output_path:
        path = Path(output_path)
        path.parent.mkdir(parents=True, exist_ok=True)
        if isinstance(content, bytes):
            path.write_bytes(content)
        else:
            path.write_text(content, encoding="utf-8")
        return
    if isinstance(content, bytes):
        content = content.decode("utf-8")
    click.echo(content, nl=False)


def _load(config: MasonryConfig, cancel: Optional[threading.Event]):
    if config.verbose:
        console.print(
            f"  [cyan]Loading[/cyan] {config.opencontrol_dir} "
            f"for certification {config.certification or '?'} "
            f"({config.loader.max_workers} workers)"
        )
    model, degraded, errors = load_for_certification(config, cancel)
    report_errors(errors, refused=model is None)

    if model is None:
        console.print(
            f"  [red]ERROR[/red] Unable to load data in {escape(sanitize_error(str(config.opencontrol_dir)))} "
            f"for certification {escape(config.certification)}"
        )
    elif config.verbose:
        console.print(
            f"  [green]OK[/green] Loaded {len(model.components)} components, "
            f"{len(model.standards)} standards"
        )
    if degraded:
        console.print("  [yellow]WARN[/yellow] Some components failed to load; results may be incomplete")
    return model, degraded, errors


def run_diff(config: MasonryConfig, cancel: Optional[threading.Event] = None) -> int:
    """Compute and report the gap analysis. Returns exit code."""
    start_time = time.time()

    model, degraded, errors = _load(config, cancel)
    if model is None:
        return EXIT_REFUSED

    result = analyze_model(model, degraded=degraded)
    duration = time.time() - start_time

    output_format = config.output.format
    if output_format == "json":
        _emit(format_json_report(result, errors), config.output.path)
    elif output_format == "junit" and config.output.path:
        summary = export_junit_results(result, Path(config.output.path), duration)
        console.print(
            f"  [green]OK[/green] JUnit XML: {summary['total_tests']} tests, "
            f"{summary['failures']} failures"
        )
    elif output_format == "junit":
        _emit(build_junit_xml(result, duration), None)
    else:
        _emit("\n" + format_text_report(result), config.output.path)

    if config.verbose:
        console.print(
            f"  [green]OK[/green] {len(result.master_control_list)} required, "
            f"{len(result.missing_control_list)} missing in {round(duration, 2)}s"
        )
    if config.output.path:
        console.print(f"  Results: {sanitize_error(config.output.path)}")
    return EXIT_OK


def run_inventory(config: MasonryConfig, cancel: Optional[threading.Event] = None) -> int:
    """Print each control with the components that satisfy it. Returns exit code."""
    model, _, _ = _load(config, cancel)
    if model is None:
        return EXIT_REFUSED
    _emit(format_inventory(build_inventory(model)), config.output.path)
    return EXIT_OK
