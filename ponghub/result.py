"""Keeping the rolling JSON log of check outcomes."""

import copy
import json
import logging
import re
from datetime import datetime, timedelta, timezone

from ponghub.defaults import LOG_PATH
from ponghub.status import TestResult, parse_test_results

logger = logging.getLogger(__name__)

_RFC3339 = re.compile(
    r"(\d{4})-(\d{2})-(\d{2})[Tt](\d{2}):(\d{2}):(\d{2})"
    r"(?:\.(\d+))?([Zz]|[+-]\d{2}:\d{2})\Z"
)


class LogError(Exception):
    """Raised when the log file cannot be read back or written."""


def _parse_time(text):
    """Parse an RFC 3339 timestamp, returning ``None`` if it is malformed."""
    match = _RFC3339.match(text)
    if match is None:
        return None
    year, month, day, hour, minute, second, fraction, zone = match.groups()
    if zone in ("Z", "z"):
        tz = timezone.utc
    else:
        hours, minutes = int(zone[1:3]), int(zone[4:6])
        if hours > 23 or minutes > 59:
            return None
        offset = timedelta(hours=hours, minutes=minutes)
        tz = timezone(-offset if zone[0] == "-" else offset)
    micro = int((fraction or "0")[:6].ljust(6, "0"))
    try:
        return datetime(
            int(year), int(month), int(day),
            int(hour), int(minute), int(second), micro, tzinfo=tz,
        )
    except ValueError:
        return None


def _as_text(value):
    """Render a decoded JSON value as plain text."""
    if isinstance(value, str):
        return value
    if isinstance(value, bool):
        return "true" if value else "false"
    if value is None:
        return "<nil>"
    if isinstance(value, float) and value.is_integer():
        return str(int(value))
    return str(value)


def _entries(raw):
    """Turn a decoded history list into a list of text-only mappings."""
    if not isinstance(raw, list):
        return []
    return [
        {key: _as_text(value) for key, value in item.items()}
        for item in raw
        if isinstance(item, dict)
    ]


def _recent(entries, now, max_log_days):
    """Keep entries whose time parses and is at most ``max_log_days`` old."""
    limit = timedelta(hours=max_log_days * 24)
    kept = []
    for entry in entries:
        moment = _parse_time(entry.get("time", ""))
        if moment is not None and now - moment <= limit:
            kept.append(entry)
    return kept


def merge_online_status(statuses):
    """Combine several outcomes into one.

    An empty list gives ``NONE``; only failures give ``NONE``; only full
    successes give ``ALL``; anything else gives ``PART``.
    """
    statuses = list(statuses)
    if not statuses:
        return TestResult.NONE
    has_none = TestResult.NONE in statuses
    has_all = TestResult.ALL in statuses
    if has_none and not has_all:
        return TestResult.NONE
    if has_all and not has_none:
        return TestResult.ALL
    return TestResult.PART


def update_log(log_data, results, max_log_days, now=None):
    """Return a copy of ``log_data`` with ``results`` appended and old entries dropped.

    Only services present in ``results`` are touched. ``now`` defaults to the
    current time; a naive ``now`` is taken as local time.
    """
    if now is None:
        now = datetime.now(timezone.utc)
    elif now.tzinfo is None:
        now = now.astimezone()

    updated = copy.deepcopy(dict(log_data or {}))
    for result in results:
        service = updated.get(result.name)
        if not isinstance(service, dict):
            service = {"service_history": [], "ports": {}}
            updated[result.name] = service

        history = _entries(service.get("service_history"))
        history.append({"time": result.start_time, "online": str(result.online)})
        service["service_history"] = _recent(history, now, max_log_days)

        raw_ports = service.get("ports")
        ports = (
            {url: _entries(entries) for url, entries in raw_ports.items()}
            if isinstance(raw_ports, dict)
            else {}
        )

        statuses = {}
        times = {}
        for port in [*result.health, *result.api]:
            statuses.setdefault(port.url, []).append(str(port.online))
            if not times.get(port.url):
                times[port.url] = port.start_time
        for url, values in statuses.items():
            merged = merge_online_status(parse_test_results(values))
            ports.setdefault(url, []).append(
                {"time": times[url], "online": str(merged)}
            )

        service["ports"] = {
            url: _recent(entries, now, max_log_days) for url, entries in ports.items()
        }
    return updated


def _read_log(log_path):
    try:
        with open(log_path, encoding="utf-8") as stream:
            text = stream.read()
    except OSError:
        return {}
    try:
        data = json.loads(text)
    except json.JSONDecodeError as exc:
        raise LogError(f"Failed to read existing log file: {exc}") from exc
    if data is None:
        return {}
    if not isinstance(data, dict) or not all(
        value is None or isinstance(value, dict) for value in data.values()
    ):
        raise LogError("Failed to read existing log file: unexpected structure")
    return data


def output_results(results, max_log_days, log_path=LOG_PATH):
    """Merge ``results`` into the log at ``log_path`` and write it back.

    A missing or unreadable log starts a new one. Returns the written data.
    Raises :class:`LogError` if the existing log is malformed or the file
    cannot be written.
    """
    updated = update_log(_read_log(log_path), results, max_log_days)
    text = json.dumps(updated, indent=2, sort_keys=True, ensure_ascii=False)
    try:
        with open(log_path, "w", encoding="utf-8") as stream:
            stream.write(text)
    except OSError as exc:
        raise LogError(f"Failed to write log file: {exc}") from exc
    return updated