#!/usr/bin/env python3
"""
Tests for the default HTML report generator.
"""

import datetime
import io
import json
import tempfile
from pathlib import Path

from rich.console import Console

from conformance_report.config import PAGE_FOOTER, IngressInfo, ReportRequest
from conformance_report.cucumber import CucumberFormatError
from conformance_report.generator import (
    ReportGenerationError,
    discover_result_files,
    generate,
    resolve_output,
)

NOW = datetime.datetime(2024, 5, 17, 12, 30, tzinfo=datetime.timezone.utc)

RESULTS = [
    {
        "uri": "features/path_rules.feature",
        "name": "Path rules",
        "elements": [
            {
                "type": "scenario",
                "keyword": "Scenario",
                "name": "An Ingress with exact path rules",
                "steps": [
                    {"keyword": "When ", "name": "I send a GET request",
                     "result": {"status": "passed", "duration": 2_000_000}},
                ],
            },
            {
                "type": "scenario",
                "keyword": "Scenario",
                "name": "An Ingress with prefix <path> rules",
                "steps": [
                    {"keyword": "Then ", "name": "the response status-code must be 200",
                     "result": {"status": "failed", "duration": 1_000_000,
                                "error_message": "expected 200 but got <404>"}},
                ],
            },
        ],
    }
]


def _quiet_console():
    return Console(file=io.StringIO())


def _write_results(directory: Path, name: str = "path_rules.feature-report.json") -> Path:
    path = directory / name
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(json.dumps(RESULTS), encoding="utf-8")
    return path


def test_discover_only_report_files():
    with tempfile.TemporaryDirectory() as tmpdir:
        root = Path(tmpdir)
        _write_results(root, "b-report.json")
        _write_results(root / "nested", "a-report.json")
        (root / "trend.json").write_text("[]", encoding="utf-8")
        (root / "notes.txt").write_text("x", encoding="utf-8")

        files = discover_result_files(root)
        assert [f.name for f in files] == ["b-report.json", "a-report.json"]


def test_discover_missing_directory():
    try:
        discover_result_files("/nonexistent/results")
        assert False, "Should have raised ReportGenerationError"
    except ReportGenerationError as e:
        assert "/nonexistent/results" in str(e)


def test_discover_empty_directory():
    with tempfile.TemporaryDirectory() as tmpdir:
        try:
            discover_result_files(tmpdir)
            assert False, "Should have raised ReportGenerationError"
        except ReportGenerationError as e:
            assert "-report.json" in str(e)


def test_resolve_output():
    assert resolve_output("/out") == (Path("/out/index.html"), True)
    assert resolve_output("/out/report.html") == (Path("/out/report.html"), False)


def test_generate_into_directory():
    with tempfile.TemporaryDirectory() as tmpdir:
        root = Path(tmpdir)
        _write_results(root / "input")
        request = ReportRequest(
            json_dir=str(root / "input"),
            report_path=str(root / "output"),
            ingress=IngressInfo(controller="contour", version="1.28.0"),
            build="17",
        )

        html_file = generate(request, console=_quiet_console(), now=NOW)

        assert html_file == root / "output" / "index.html"
        html = html_file.read_text(encoding="utf-8")
        assert PAGE_FOOTER in html
        assert "contour" in html
        assert "1.28.0" in html
        assert "<th>Build</th><td>17</td>" in html
        assert "<th>Release</th>" not in html
        assert "Path rules" in html
        assert "expected 200 but got &lt;404&gt;" in html
        assert "prefix &lt;path&gt; rules" in html

        trend = json.loads((root / "output" / "trend.json").read_text(encoding="utf-8"))
        assert len(trend) == 1
        assert trend[0]["build"] == "17"
        assert trend[0]["generated"] == NOW.isoformat()
        assert trend[0]["scenarios"] == {"passed": 1, "failed": 1}


def test_generate_appends_to_trend():
    with tempfile.TemporaryDirectory() as tmpdir:
        root = Path(tmpdir)
        _write_results(root / "input")
        request = ReportRequest(json_dir=str(root / "input"), report_path=str(root / "output"))

        generate(request, console=_quiet_console(), now=NOW)
        generate(request, console=_quiet_console(), now=NOW)

        trend = json.loads((root / "output" / "trend.json").read_text(encoding="utf-8"))
        assert len(trend) == 2
        assert trend[0]["build"] == "N/A"


def test_generate_recovers_from_broken_trend():
    with tempfile.TemporaryDirectory() as tmpdir:
        root = Path(tmpdir)
        _write_results(root / "input")
        (root / "output").mkdir()
        (root / "output" / "trend.json").write_text("{broken", encoding="utf-8")
        output = io.StringIO()
        request = ReportRequest(json_dir=str(root / "input"), report_path=str(root / "output"))

        generate(request, console=Console(file=output), now=NOW)

        trend = json.loads((root / "output" / "trend.json").read_text(encoding="utf-8"))
        assert len(trend) == 1
        assert "Warning" in output.getvalue()


def test_generate_to_html_file():
    with tempfile.TemporaryDirectory() as tmpdir:
        root = Path(tmpdir)
        _write_results(root / "input")
        target = root / "site" / "conformance.html"
        request = ReportRequest(json_dir=str(root / "input"), report_path=str(target))

        html_file = generate(request, console=_quiet_console(), now=NOW)

        assert html_file == target
        assert target.is_file()
        assert not (root / "site" / "trend.json").exists()
        assert "N/A" in target.read_text(encoding="utf-8")


def test_generate_propagates_invalid_results():
    with tempfile.TemporaryDirectory() as tmpdir:
        root = Path(tmpdir)
        (root / "input").mkdir()
        (root / "input" / "bad-report.json").write_text("not json", encoding="utf-8")
        request = ReportRequest(json_dir=str(root / "input"), report_path=str(root / "output"))

        try:
            generate(request, console=_quiet_console(), now=NOW)
            assert False, "Should have raised CucumberFormatError"
        except CucumberFormatError:
            pass
        assert not (root / "output" / "index.html").exists()


def test_generate_renders_background_errors():
    with tempfile.TemporaryDirectory() as tmpdir:
        root = Path(tmpdir)
        (root / "input").mkdir()
        results = [{"name": "Default backend", "elements": [
            {"type": "background", "keyword": "Background", "steps": [
                {"keyword": "Given ", "name": "a new random namespace",
                 "result": {"status": "failed", "error_message": "namespace quota exceeded"}}]},
            {"type": "scenario", "keyword": "Scenario", "name": "No rules", "steps": [
                {"keyword": "When ", "name": "I send a request", "result": {"status": "skipped"}}]},
        ]}]
        (root / "input" / "default-report.json").write_text(json.dumps(results), encoding="utf-8")
        request = ReportRequest(json_dir=str(root / "input"), report_path=str(root / "output"))

        html = generate(request, console=_quiet_console(), now=NOW).read_text(encoding="utf-8")

        assert "namespace quota exceeded" in html
        assert "FAILED" in html
        trend = json.loads((root / "output" / "trend.json").read_text(encoding="utf-8"))
        assert trend[0]["features"] == {"failed": 1}


def test_generate_recovers_from_non_utf8_trend():
    with tempfile.TemporaryDirectory() as tmpdir:
        root = Path(tmpdir)
        _write_results(root / "input")
        (root / "output").mkdir()
        (root / "output" / "trend.json").write_bytes(b"\xff\xfe[")
        output = io.StringIO()
        request = ReportRequest(json_dir=str(root / "input"), report_path=str(root / "output"))

        generate(request, console=Console(file=output), now=NOW)

        trend = json.loads((root / "output" / "trend.json").read_text(encoding="utf-8"))
        assert len(trend) == 1
        assert "Warning" in output.getvalue()
