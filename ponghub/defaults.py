"""Default settings and file locations."""

DEFAULT_TIMEOUT = 5
"""Seconds to wait for a single request."""

DEFAULT_RETRY = 2
"""Attempts made against each port."""

DEFAULT_MAX_LOG_DAYS = 30
"""Days of history kept in the log."""

CONFIG_PATH = "config.yaml"
LOG_PATH = "data/ponghub_log.json"
REPORT_PATH = "data/index.html"


def positive_or_default(value, default):
    """Return ``value`` if it is a positive number, otherwise ``default``."""
    if value is None or value <= 0:
        return default
    return value