"""Rendering of the HTML status report from the log."""

import json
from dataclasses import dataclass, field

import jinja2

from ponghub.defaults import LOG_PATH, REPORT_PATH
from ponghub.status import TestResult

DEFAULT_TEMPLATE_PATH = "templates/report.html"


class ReportError(Exception):
    """Raised when the report cannot be built, rendered or written."""


@dataclass(frozen=True)
class ServiceHistory:
    """One recorded outcome of a whole service."""

    status: str
    time: str


@dataclass(frozen=True)
class PortHistory:
    """One recorded outcome of a single endpoint."""

    url: str
    time: str
    status: str


@dataclass
class ServiceReport:
    """Everything the report shows about one service."""

    name: str
    history: list = field(default_factory=list)
    ports: dict = field(default_factory=dict)
    availability: float = 0.0


def _text(entry, key):
    if isinstance(entry, dict):
        value = entry.get(key)
        if isinstance(value, str):
            return value
    return ""


def build_report(log_data):
    """Turn decoded log data into service reports and the latest time seen.

    Returns ``(reports, update_time)`` with reports ordered by service name.
    """
    if log_data is None:
        log_data = {}
    if not isinstance(log_data, dict):
        raise ReportError("Failed to parse log data: expected a mapping")

    reports = []
    latest = ""
    for name in sorted(log_data):
        service = log_data[name]
        if service is None:
            service = {}
        if not isinstance(service, dict):
            raise ReportError(f"Failed to parse log data for service {name!r}")

        history = []
        raw_history = service.get("service_history")
        if isinstance(raw_history, list):
            for entry in raw_history:
                item = ServiceHistory(status=_text(entry, "online"), time=_text(entry, "time"))
                history.append(item)
                latest = max(latest, item.time)

        ports = {}
        raw_ports = service.get("ports")
        if isinstance(raw_ports, dict):
            for url in sorted(raw_ports):
                entries = raw_ports[url]
                if not isinstance(entries, list):
                    continue
                for entry in entries:
                    item = PortHistory(url=url, time=_text(entry, "time"), status=_text(entry, "online"))
                    ports.setdefault(url, []).append(item)
                    latest = max(latest, item.time)

        online = sum(1 for item in history if item.status == TestResult.ALL.value)
        availability = online / len(history) if history else 0.0
        reports.append(
            ServiceReport(name=name, history=history, ports=ports, availability=availability)
        )
    return reports, latest


def _environment():
    env = jinja2.Environment(
        autoescape=True,
        undefined=jinja2.StrictUndefined,
        keep_trailing_newline=True,
    )
    env.globals.update(
        sub=lambda a, b: a - b,
        until=lambda n: list(range(n)),
        mul=lambda a, b: a * b,
    )
    return env


def render_report(log_data, template_path=DEFAULT_TEMPLATE_PATH):
    """Render the template at ``template_path`` with the report for ``log_data``.

    The template sees ``results``, ``update_time`` and the helpers ``sub``,
    ``until`` and ``mul``.
    """
    reports, update_time = build_report(log_data)
    try:
        with open(template_path, encoding="utf-8") as stream:
            source = stream.read()
    except OSError as exc:
        raise ReportError(f"Failed to read report template: {exc}") from exc
    try:
        template = _environment().from_string(source)
        return template.render(results=reports, update_time=update_time)
    except jinja2.TemplateError as exc:
        raise ReportError(f"Failed to render report template: {exc}") from exc


def generate_report(log_path=LOG_PATH, out_path=REPORT_PATH, template_path=DEFAULT_TEMPLATE_PATH):
    """Read the log at ``log_path`` and write the rendered report to ``out_path``."""
    try:
        with open(log_path, encoding="utf-8") as stream:
            text = stream.read()
    except OSError as exc:
        raise ReportError(f"Failed to read log file: {exc}") from exc
    try:
        log_data = json.loads(text)
    except json.JSONDecodeError as exc:
        raise ReportError(f"Failed to parse log data: {exc}") from exc

    html = render_report(log_data, template_path)
    try:
        with open(out_path, "w", encoding="utf-8") as stream:
            stream.write(html)
    except OSError as exc:
        raise ReportError(f"Failed to create report file: {exc}") from exc