"""Models and parsing for cucumber-style JSON test results."""

from __future__ import annotations

import json
from collections import Counter
from pathlib import Path
from typing import Any, Dict, Iterable, List, Optional

import attrs

# Most severe first.
STATUS_PRECEDENCE = ("failed", "ambiguous", "undefined", "pending", "skipped", "passed")

STATUS_EMOJI = {
    "passed": "✅",
    "failed": "❌",
    "ambiguous": "❌",
    "undefined": "❔",
    "pending": "⏳",
    "skipped": "⚠️",
}


class CucumberFormatError(ValueError):
    pass


def worst_status(statuses: Iterable[str], empty: str = "skipped") -> str:
    seen = set(statuses)
    if not seen:
        return empty
    for status in STATUS_PRECEDENCE:
        if status in seen:
            return status
    return "undefined"


def _normalise_status(value: Any) -> str:
    status = str(value or "").lower()
    return status if status in STATUS_PRECEDENCE else "undefined"


def _tag_names(entry: Dict) -> List[str]:
    return [tag.get("name", "") for tag in entry.get("tags") or [] if isinstance(tag, dict)]


@attrs.define
class Step:
    keyword: str
    name: str
    status: str
    duration: int = 0
    error_message: Optional[str] = None


@attrs.define
class Scenario:
    name: str
    keyword: str = "Scenario"
    kind: str = "scenario"
    tags: List[str] = attrs.field(factory=list)
    steps: List[Step] = attrs.field(factory=list)
    # Steps of the background that precedes this scenario in its feature.
    background_steps: List[Step] = attrs.field(factory=list)

    @property
    def is_background(self) -> bool:
        return self.kind == "background"

    @property
    def all_steps(self) -> List[Step]:
        return self.background_steps + self.steps

    @property
    def status(self) -> str:
        return worst_status(step.status for step in self.all_steps)

    @property
    def duration(self) -> int:
        return sum(step.duration for step in self.all_steps)


@attrs.define
class Feature:
    name: str
    uri: str = ""
    description: str = ""
    tags: List[str] = attrs.field(factory=list)
    elements: List[Scenario] = attrs.field(factory=list)

    @property
    def scenarios(self) -> List[Scenario]:
        return [element for element in self.elements if not element.is_background]

    @property
    def status(self) -> str:
        return worst_status(scenario.status for scenario in self.scenarios)

    @property
    def duration(self) -> int:
        return sum(scenario.duration for scenario in self.scenarios)


@attrs.define
class ReportSummary:
    features: Counter = attrs.field(factory=Counter)
    scenarios: Counter = attrs.field(factory=Counter)
    steps: Counter = attrs.field(factory=Counter)
    duration: int = 0

    @property
    def status(self) -> str:
        return worst_status(self.features.elements())

    def as_dict(self) -> Dict[str, Dict[str, int]]:
        return {
            "features": dict(self.features),
            "scenarios": dict(self.scenarios),
            "steps": dict(self.steps),
        }


def _objects(value: Any, what: str, source: str) -> List[Dict]:
    if value is None:
        return []
    if not isinstance(value, list):
        raise CucumberFormatError(f"{source}: {what} must be a list")
    for index, entry in enumerate(value):
        if not isinstance(entry, dict):
            raise CucumberFormatError(f"{source}: {what} #{index} is not an object")
    return value


def _parse_step(entry: Dict, source: str) -> Step:
    result = entry.get("result") or {}
    if not isinstance(result, dict):
        raise CucumberFormatError(f"{source}: step {entry.get('name', '')!r} has a malformed result")
    try:
        duration = int(result.get("duration") or 0)
    except (TypeError, ValueError, OverflowError) as exc:
        raise CucumberFormatError(
            f"{source}: step {entry.get('name', '')!r} has a non-numeric duration"
        ) from exc
    return Step(
        keyword=str(entry.get("keyword", "")).strip(),
        name=str(entry.get("name", "")),
        status=_normalise_status(result.get("status")),
        duration=duration,
        error_message=result.get("error_message") or None,
    )


def _parse_element(entry: Dict, source: str, background: List[Step]) -> Scenario:
    return Scenario(
        name=str(entry.get("name", "")),
        keyword=str(entry.get("keyword", "Scenario")).strip(),
        kind=str(entry.get("type", "scenario")),
        tags=_tag_names(entry),
        steps=[_parse_step(step, source) for step in _objects(entry.get("steps"), "step", source)],
        background_steps=list(background),
    )


def _parse_elements(entries: List[Dict], source: str) -> List[Scenario]:
    elements: List[Scenario] = []
    background: List[Step] = []
    for entry in entries:
        element = _parse_element(entry, source, background)
        if element.is_background:
            background = element.steps
            element.background_steps = []
        elements.append(element)
    return elements


def parse_features(payload: Any, source: str = "<memory>") -> List[Feature]:
    """
    Turn a decoded cucumber JSON document into features.

    Each scenario picks up the steps of the closest background element
    before it, so a failing background fails the scenarios it set up.
    """
    if not isinstance(payload, list):
        raise CucumberFormatError(f"{source}: expected a list of features")

    features: List[Feature] = []
    for entry in _objects(payload, "feature", source):
        features.append(
            Feature(
                name=str(entry.get("name", "unnamed")),
                uri=str(entry.get("uri", "")),
                description=str(entry.get("description", "")).strip(),
                tags=_tag_names(entry),
                elements=_parse_elements(_objects(entry.get("elements"), "element", source), source),
            )
        )
    return features


def load_features(path: Path) -> List[Feature]:
    try:
        payload = json.loads(Path(path).read_text(encoding="utf-8"))
    except UnicodeDecodeError as exc:
        raise CucumberFormatError(f"{path}: not UTF-8 encoded: {exc}") from exc
    except json.JSONDecodeError as exc:
        raise CucumberFormatError(f"{path}: invalid JSON: {exc}") from exc
    return parse_features(payload, source=str(path))


def summarize(features: Iterable[Feature]) -> ReportSummary:
    """Count features, scenarios and steps by status; background steps count once per scenario."""
    summary = ReportSummary()
    for feature in features:
        summary.features[feature.status] += 1
        summary.duration += feature.duration
        for scenario in feature.scenarios:
            summary.scenarios[scenario.status] += 1
            for step in scenario.all_steps:
                summary.steps[step.status] += 1
    return summary
