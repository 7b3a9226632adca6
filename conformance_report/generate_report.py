#!/usr/bin/env python3
"""CLI entry point: build the conformance HTML report from environment settings.

Environment:
    INPUT_DIRECTORY      directory holding the cucumber ``*-report.json`` files (required)
    OUTPUT_DIRECTORY     report directory, or an ``.html`` file path (required)
    INGRESS_CONTROLLER   controller label shown in the report (default N/A)
    CONTROLLER_VERSION   controller version label (default N/A)
    BUILD                optional build label, also recorded in trend.json
    RELEASE              optional release classification
"""

from __future__ import annotations

import sys
from typing import Callable, Mapping, Optional

from rich.console import Console

from conformance_report.config import MissingEnvironmentVariable, ReportRequest, build_request
from conformance_report.generator import generate

error_console = Console(stderr=True)


def main(
    environ: Optional[Mapping[str, str]] = None,
    generator: Callable[[ReportRequest], object] = generate,
) -> int:
    try:
        request = build_request(environ)
    except MissingEnvironmentVariable as exc:
        error_console.print(f"[red]{exc}[/]")
        return 1

    generator(request)
    return 0


if __name__ == "__main__":  # pragma: no cover
    sys.exit(main())
