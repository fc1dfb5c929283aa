"""Loading and defaulting of the YAML configuration."""

from dataclasses import dataclass, field, replace

import yaml

from ponghub.defaults import (
    DEFAULT_MAX_LOG_DAYS,
    DEFAULT_RETRY,
    DEFAULT_TIMEOUT,
    positive_or_default,
)


class ConfigError(Exception):
    """Raised when the configuration cannot be decoded or is unusable."""


def _mapping(data, what):
    if data is None:
        return {}
    if not isinstance(data, dict):
        raise ConfigError(f"{what} must be a mapping, got {type(data).__name__}")
    return data


def _text(data, key):
    value = data.get(key)
    if value is None:
        return ""
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, (str, int, float)):
        return str(value)
    raise ConfigError(f"field {key!r} must be a string, got {type(value).__name__}")


def _integer(data, key):
    value = data.get(key)
    if value is None:
        return 0
    if isinstance(value, bool):
        raise ConfigError(f"field {key!r} must be an integer, got a boolean")
    if isinstance(value, int):
        return value
    if isinstance(value, float) and value.is_integer():
        return int(value)
    raise ConfigError(f"field {key!r} must be an integer, got {value!r}")


def _sequence(data, key):
    value = data.get(key)
    if value is None:
        return []
    if not isinstance(value, list):
        raise ConfigError(f"field {key!r} must be a list, got {type(value).__name__}")
    return value


@dataclass
class PortConfig:
    """One endpoint to probe and what counts as a good answer."""

    url: str
    method: str = ""
    body: str = ""
    status_code: int = 0
    response_regex: str = ""

    @classmethod
    def from_dict(cls, data):
        data = _mapping(data, "port")
        return cls(
            url=_text(data, "url"),
            method=_text(data, "method"),
            body=_text(data, "body"),
            status_code=_integer(data, "status_code"),
            response_regex=_text(data, "response_regex"),
        )


@dataclass
class ServiceConfig:
    """A named service with its health and API endpoints."""

    name: str
    health: list = field(default_factory=list)
    api: list = field(default_factory=list)
    timeout: int = 0
    retry: int = 0

    @classmethod
    def from_dict(cls, data):
        data = _mapping(data, "service")
        return cls(
            name=_text(data, "name"),
            health=[PortConfig.from_dict(p) for p in _sequence(data, "health")],
            api=[PortConfig.from_dict(p) for p in _sequence(data, "api")],
            timeout=_integer(data, "timeout"),
            retry=_integer(data, "retry"),
        )


@dataclass
class Config:
    """The whole configuration file."""

    services: list = field(default_factory=list)
    timeout: int = 0
    retry: int = 0
    max_log_days: int = 0

    @classmethod
    def from_dict(cls, data):
        data = _mapping(data, "configuration")
        return cls(
            services=[ServiceConfig.from_dict(s) for s in _sequence(data, "services")],
            timeout=_integer(data, "timeout"),
            retry=_integer(data, "retry"),
            max_log_days=_integer(data, "max_log_days"),
        )


def apply_defaults(config):
    """Return a copy of ``config`` with unset or non-positive values defaulted."""
    services = [
        replace(
            service,
            timeout=positive_or_default(service.timeout, DEFAULT_TIMEOUT),
            retry=positive_or_default(service.retry, DEFAULT_RETRY),
        )
        for service in config.services
    ]
    return replace(
        config,
        services=services,
        timeout=positive_or_default(config.timeout, DEFAULT_TIMEOUT),
        retry=positive_or_default(config.retry, DEFAULT_RETRY),
        max_log_days=positive_or_default(config.max_log_days, DEFAULT_MAX_LOG_DAYS),
    )


def load_config(path):
    """Read, decode and default the YAML configuration at ``path``.

    Raises ``OSError`` if the file cannot be opened and :class:`ConfigError`
    if it cannot be decoded or defines no services.
    """
    with open(path, encoding="utf-8") as stream:
        try:
            data = yaml.safe_load(stream)
        except yaml.YAMLError as exc:
            raise ConfigError(f"Failed to decode YAML config: {exc}") from exc
    if data is None:
        raise ConfigError("Failed to decode YAML config: empty document")
    config = apply_defaults(Config.from_dict(data))
    if not config.services:
        raise ConfigError("No services defined in the configuration file")
    return config