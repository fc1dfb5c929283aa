"""Probing of configured endpoints over HTTP."""

import logging
import re
from contextlib import ExitStack
from dataclasses import dataclass, field
from datetime import datetime

import requests

from ponghub.status import PortType, TestResult

logger = logging.getLogger(__name__)

_SUPPORTED_METHODS = frozenset({"GET", "POST", "PUT"})
_UNSUPPORTED_METHODS = frozenset(
    {"DELETE", "HEAD", "PATCH", "OPTIONS", "TRACE", "CONNECT"}
)


class UnsupportedMethodError(ValueError):
    """Raised for an HTTP method that is known but not supported."""


def _timestamp():
    """Current local time in RFC 3339 form with second precision."""
    text = datetime.now().astimezone().isoformat(timespec="seconds")
    if text.endswith("+00:00"):
        text = text[: -len("+00:00")] + "Z"
    return text


@dataclass
class PortResult:
    """Outcome of probing one endpoint."""

    url: str
    method: str
    online: TestResult
    start_time: str
    end_time: str
    total_attempts: int
    success_count: int
    body: str = ""
    status_code: int = 0
    failures: list = field(default_factory=list)
    response_body: str = ""

    def to_dict(self):
        """Return a JSON-ready mapping, leaving out empty optional fields."""
        data = {"url": self.url, "method": self.method}
        if self.body:
            data["body"] = self.body
        data["online"] = str(self.online)
        if self.status_code:
            data["status_code"] = self.status_code
        data["start_time"] = self.start_time
        data["end_time"] = self.end_time
        data["total_attempts"] = self.total_attempts
        data["success_count"] = self.success_count
        if self.failures:
            data["failures"] = list(self.failures)
        if self.response_body:
            data["response_body"] = self.response_body
        return data


@dataclass
class CheckResult:
    """Outcome of probing every endpoint of one service."""

    name: str
    online: TestResult
    start_time: str
    end_time: str
    total_attempts: int
    success_count: int
    health: list = field(default_factory=list)
    api: list = field(default_factory=list)

    def to_dict(self):
        """Return a JSON-ready mapping, leaving out empty port lists."""
        data = {"name": self.name, "online": str(self.online)}
        if self.health:
            data["health"] = [port.to_dict() for port in self.health]
        if self.api:
            data["api"] = [port.to_dict() for port in self.api]
        data["start_time"] = self.start_time
        data["end_time"] = self.end_time
        data["total_attempts"] = self.total_attempts
        data["success_count"] = self.success_count
        return data


def http_method(method):
    """Normalise ``method``; unknown names fall back to ``GET``.

    Raises :class:`UnsupportedMethodError` for DELETE, HEAD, PATCH, OPTIONS,
    TRACE and CONNECT.
    """
    name = (method or "").upper()
    if name in _SUPPORTED_METHODS:
        return name
    if name in _UNSUPPORTED_METHODS:
        raise UnsupportedMethodError(f"method not supported: {name}")
    return "GET"


def test_result(success_count, attempts):
    """Classify ``success_count`` out of ``attempts``."""
    if success_count == attempts:
        return TestResult.ALL
    if success_count == 0:
        return TestResult.NONE
    return TestResult.PART


test_result.__test__ = False


def is_successful_response(port, status_code, body):
    """Decide whether a response satisfies the expectations of ``port``.

    ``body`` may be bytes or text. An invalid ``response_regex`` raises
    :class:`re.error`.
    """
    if port.response_regex:
        if isinstance(body, bytes):
            pattern = port.response_regex.encode("utf-8")
        else:
            pattern = port.response_regex
        if re.search(pattern, body) is None:
            return False
        if not port.status_code:
            return True
    elif not port.status_code:
        return status_code == 200
    return status_code == port.status_code


def check_port(port, timeout, retry, service_name, port_type, session=None):
    """Probe ``port`` up to ``retry`` times, stopping at the first success."""
    method = http_method(port.method)
    failures = []
    success_count = 0
    attempts = 0
    status_code = 0
    response_body = ""
    payload = port.body.encode("utf-8") if port.body else None
    port_type = PortType.parse(port_type)

    with ExitStack() as stack:
        if session is None:
            session = stack.enter_context(requests.Session())

        start = _timestamp()
        for attempt in range(1, retry + 1):
            attempts += 1
            logger.info(
                "[%s] %s %s %s (attempt %d/%d)",
                service_name, port_type, method, port.url, attempt, retry,
            )
            try:
                response = session.request(
                    method, port.url, data=payload, timeout=timeout, stream=True
                )
            except requests.RequestException as exc:
                failures.append(f"StatusCode: N/A, Error: {exc}")
                logger.warning("FAILED - Error: %s", exc)
                continue

            with response:
                try:
                    content = response.content
                except requests.RequestException as exc:
                    failures.append(
                        f"StatusCode: {response.status_code}, Error: {exc}"
                    )
                    logger.warning(
                        "FAILED - StatusCode: %d, Error: %s",
                        response.status_code, exc,
                    )
                    continue

                status_code = response.status_code
                response_body = content.decode("utf-8", errors="replace")
                if is_successful_response(port, status_code, content):
                    success_count += 1
                    response_body = ""
                    break
                failures.append(
                    f"StatusCode or ResponseRegex mismatch: {status_code}"
                )
                logger.warning(
                    "FAILED - StatusCode or ResponseRegex mismatch: %d", status_code
                )
        end = _timestamp()

    return PortResult(
        url=port.url,
        method=method,
        body=port.body,
        online=test_result(success_count, attempts),
        status_code=status_code,
        start_time=start,
        end_time=end,
        total_attempts=attempts,
        success_count=success_count,
        failures=failures,
        response_body=response_body,
    )


def check_services(config, session=None):
    """Probe every service in ``config`` and return one result per service."""
    results = []
    with ExitStack() as stack:
        if session is None:
            session = stack.enter_context(requests.Session())

        for service in config.services:
            start = _timestamp()
            health = [
                check_port(port, service.timeout, service.retry, service.name,
                           PortType.HEALTH, session)
                for port in service.health
            ]
            api = [
                check_port(port, service.timeout, service.retry, service.name,
                           PortType.API, session)
                for port in service.api
            ]
            end = _timestamp()

            ports = health + api
            online_ports = sum(1 for port in ports if port.online is TestResult.ALL)
            results.append(
                CheckResult(
                    name=service.name,
                    online=test_result(online_ports, len(ports)),
                    health=health,
                    api=api,
                    start_time=start,
                    end_time=end,
                    total_attempts=sum(port.total_attempts for port in ports),
                    success_count=sum(port.success_count for port in ports),
                )
            )
    return results