"""Default report generator: cucumber JSON results in, one HTML page out."""

from __future__ import annotations

import datetime
import json
from pathlib import Path
from typing import Dict, List, Optional, Tuple

from rich.console import Console
from rich.markup import escape

from conformance_report.config import NOT_AVAILABLE, ReportRequest
from conformance_report.cucumber import Feature, ReportSummary, load_features, summarize
from conformance_report.rendering import render_report

REPORT_SUFFIX = "-report.json"
INDEX_FILE = "index.html"
TREND_FILE = "trend.json"

console = Console()


class ReportGenerationError(RuntimeError):
    pass


def discover_result_files(json_dir: str | Path) -> List[Path]:
    """Return every ``*-report.json`` file below ``json_dir``, sorted by path."""
    root = Path(json_dir)
    if not root.is_dir():
        raise ReportGenerationError(f"Input directory {root} does not exist")

    files = sorted(
        path for path in root.rglob(f"*{REPORT_SUFFIX}") if path.is_file()
    )
    if not files:
        raise ReportGenerationError(f"No *{REPORT_SUFFIX} files found in {root}")
    return files


def resolve_output(report_path: str | Path) -> Tuple[Path, bool]:
    """Return the HTML file to write and whether ``report_path`` is a directory."""
    target = Path(report_path)
    if target.suffix.lower() == ".html":
        return target, False
    return target / INDEX_FILE, True


def write_text(path: Path, content: str) -> None:
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(content, encoding="utf-8")


def update_trend(
    trend_file: Path,
    request: ReportRequest,
    summary: ReportSummary,
    generated_at: datetime.datetime,
    console: Console = console,
) -> List[Dict]:
    history: List[Dict] = []
    if trend_file.exists():
        try:
            loaded = json.loads(trend_file.read_text(encoding="utf-8"))
        except (json.JSONDecodeError, UnicodeDecodeError) as exc:
            console.print(f"[yellow]Warning: ignoring unreadable trend file {escape(str(trend_file))}: {escape(str(exc))}[/]")
            loaded = []
        if isinstance(loaded, list):
            history = loaded
        else:
            console.print(f"[yellow]Warning: trend file {trend_file} is not a list, starting over[/]")

    entry = {"build": request.build or NOT_AVAILABLE, "generated": generated_at.isoformat()}
    entry.update(summary.as_dict())
    history.append(entry)
    write_text(trend_file, json.dumps(history, indent=2))
    return history


def generate(
    request: ReportRequest,
    *,
    console: Console = console,
    now: Optional[datetime.datetime] = None,
) -> Path:
    """
    Render the results under ``request.json_dir`` into an HTML report.

    Args:
        request: Validated report request
        console: Where progress is printed
        now: Generation timestamp, defaults to the current UTC time

    Returns:
        Path of the written HTML report
    """
    generated_at = now or datetime.datetime.now(datetime.timezone.utc)

    result_files = discover_result_files(request.json_dir)
    console.print(f"[dim]Found {len(result_files)} result file(s) in {request.json_dir}[/]")

    features: List[Feature] = []
    for result_file in result_files:
        features.extend(load_features(result_file))

    summary = summarize(features)
    html_file, directory_mode = resolve_output(request.report_path)
    write_text(html_file, render_report(request, features, summary, generated_at))

    if directory_mode:
        update_trend(html_file.parent / TREND_FILE, request, summary, generated_at, console=console)

    scenarios = summary.scenarios
    console.print(
        f"Report for {len(features)} feature(s): "
        f"{scenarios['passed']}/{sum(scenarios.values())} scenarios passed"
    )
    console.print(f"[green]Report written to {html_file}[/]")
    return html_file
