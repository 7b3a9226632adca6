"""Environment configuration for the conformance report entry point."""

from __future__ import annotations

import os
from typing import Dict, List, Mapping, Optional

import attrs

NOT_AVAILABLE = "N/A"

REPORT_TITLE = "Ingress Conformance"

PAGE_FOOTER = (
    '<p><a href="https://github.com/kubernetes-sigs/ingress-controller-conformance">'
    "Kubernetes ingress controller conformance</a></p>"
)

# Checked in this order; the first missing one aborts.
REQUIRED_VARIABLES = ("INPUT_DIRECTORY", "OUTPUT_DIRECTORY")


class MissingEnvironmentVariable(ValueError):
    def __init__(self, name: str):
        self.name = name
        super().__init__(f"Environment variable {name} is not optional")


def validate_non_empty_string(instance, attribute, value):
    """Validate string is not empty"""
    if not value:
        raise ValueError(f"{attribute.name} cannot be empty")


@attrs.define(frozen=True)
class IngressInfo:
    controller: str = NOT_AVAILABLE
    version: str = NOT_AVAILABLE


@attrs.define(frozen=True)
class ReportRequest:
    json_dir: str = attrs.field(validator=validate_non_empty_string)
    report_path: str = attrs.field(validator=validate_non_empty_string)
    page_footer: str = PAGE_FOOTER
    ingress: IngressInfo = attrs.field(factory=IngressInfo)
    build: Optional[str] = None
    release: Optional[str] = None

    def to_dict(self) -> Dict:
        payload: Dict = {
            "jsonDir": self.json_dir,
            "reportPath": self.report_path,
            "pageFooter": self.page_footer,
            "ingress": {
                "controller": self.ingress.controller,
                "version": self.ingress.version,
            },
        }
        if self.build is not None:
            payload["build"] = self.build
        if self.release is not None:
            payload["release"] = self.release
        return payload


def require_env(environ: Mapping[str, str], name: str) -> str:
    value = environ.get(name)
    if not value:
        raise MissingEnvironmentVariable(name)
    return value


def optional_env(environ: Mapping[str, str], name: str, default=None):
    return environ.get(name) or default


def missing_variables(environ: Mapping[str, str]) -> List[str]:
    """Return every required variable that is absent or empty, in check order."""
    return [name for name in REQUIRED_VARIABLES if not environ.get(name)]


def build_request(environ: Optional[Mapping[str, str]] = None) -> ReportRequest:
    """
    Validate the environment and assemble the report request.

    Args:
        environ: Variables to read; defaults to the process environment

    Returns:
        The request to hand to a report generator

    Raises:
        MissingEnvironmentVariable: on the first required variable that is
            absent or empty
    """
    if environ is None:
        environ = os.environ

    json_dir = require_env(environ, "INPUT_DIRECTORY")
    report_path = require_env(environ, "OUTPUT_DIRECTORY")

    return ReportRequest(
        json_dir=json_dir,
        report_path=report_path,
        ingress=IngressInfo(
            controller=optional_env(environ, "INGRESS_CONTROLLER", NOT_AVAILABLE),
            version=optional_env(environ, "CONTROLLER_VERSION", NOT_AVAILABLE),
        ),
        build=optional_env(environ, "BUILD"),
        release=optional_env(environ, "RELEASE"),
    )
