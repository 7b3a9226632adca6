"""HTML rendering of parsed conformance results."""

from __future__ import annotations

import datetime
from typing import List

import jinja2

from conformance_report.config import REPORT_TITLE, ReportRequest
from conformance_report.cucumber import STATUS_EMOJI, STATUS_PRECEDENCE, Feature, ReportSummary

_jinja_env = jinja2.Environment(
    undefined=jinja2.StrictUndefined,
    autoescape=True,
    trim_blocks=True,
    lstrip_blocks=True,
)


def _seconds(nanoseconds: int) -> str:
    return f"{nanoseconds / 1e9:.2f}s"


_jinja_env.filters["seconds"] = _seconds
_jinja_env.filters["emoji"] = lambda status: STATUS_EMOJI.get(status, "❔")

REPORT_TEMPLATE = """<!DOCTYPE html>
<html lang="en">
<head>
<meta charset="utf-8">
<title>{{ title }}</title>
<style>
body { font-family: -apple-system, BlinkMacSystemFont, 'Segoe UI', Roboto, sans-serif; color: #333; margin: 0 auto; max-width: 1100px; padding: 24px; }
h1 { border-bottom: 2px solid #326ce5; padding-bottom: 8px; }
table { border-collapse: collapse; margin: 12px 0; }
th, td { border: 1px solid #ddd; padding: 4px 10px; text-align: left; }
.passed { color: #2e7d32; }
.failed, .ambiguous { color: #c62828; }
.skipped, .pending, .undefined { color: #ef6c00; }
pre { background: #fafafa; border: 1px solid #eee; padding: 8px; overflow-x: auto; }
footer { border-top: 1px solid #eee; margin-top: 32px; padding-top: 8px; color: #999; font-size: 12px; }
</style>
</head>
<body>
<h1>{{ title }}</h1>

<table class="metadata">
  <tr><th>Ingress controller</th><td>{{ request.ingress.controller }}</td></tr>
  <tr><th>Controller version</th><td>{{ request.ingress.version }}</td></tr>
{% if request.build is not none %}
  <tr><th>Build</th><td>{{ request.build }}</td></tr>
{% endif %}
{% if request.release is not none %}
  <tr><th>Release</th><td>{{ request.release }}</td></tr>
{% endif %}
  <tr><th>Generated</th><td>{{ generated_at.strftime('%Y-%m-%d %H:%M:%S %Z') }}</td></tr>
</table>

<h2 class="{{ summary.status }}">{{ summary.status | emoji }} {{ summary.status | upper }}</h2>
<table class="totals">
  <tr><th></th>{% for status in statuses %}<th class="{{ status }}">{{ status }}</th>{% endfor %}<th>total</th></tr>
{% for label, counter in [("Features", summary.features), ("Scenarios", summary.scenarios), ("Steps", summary.steps)] %}
  <tr><th>{{ label }}</th>{% for status in statuses %}<td>{{ counter[status] }}</td>{% endfor %}<td>{{ counter.values() | sum }}</td></tr>
{% endfor %}
</table>
<p>Total duration: {{ summary.duration | seconds }}</p>

{% for feature in features %}
<section class="feature">
  <h2 class="{{ feature.status }}">{{ feature.status | emoji }} {{ feature.name }}</h2>
{% if feature.uri %}
  <p><code>{{ feature.uri }}</code></p>
{% endif %}
{% if feature.description %}
  <p>{{ feature.description }}</p>
{% endif %}
  <ul>
{% for scenario in feature.scenarios %}
    <li class="{{ scenario.status }}">{{ scenario.status | emoji }} {{ scenario.keyword }}: {{ scenario.name }} ({{ scenario.duration | seconds }})
{% for step in scenario.all_steps if step.error_message %}
      <pre>{{ step.keyword }} {{ step.name }}
{{ step.error_message }}</pre>
{% endfor %}
    </li>
{% endfor %}
  </ul>
</section>
{% endfor %}

<footer>{{ request.page_footer | safe }}</footer>
</body>
</html>
"""


def render_report(
    request: ReportRequest,
    features: List[Feature],
    summary: ReportSummary,
    generated_at: datetime.datetime,
) -> str:
    template = _jinja_env.from_string(REPORT_TEMPLATE)
    return template.render(
        title=REPORT_TITLE,
        request=request,
        features=features,
        summary=summary,
        statuses=STATUS_PRECEDENCE,
        generated_at=generated_at,
    )
