"""Outcome and port kinds used throughout the checks."""

from enum import Enum


class TestResult(str, Enum):
    """How many of a set of checks succeeded."""

    __test__ = False

    ALL = "all"
    PART = "part"
    NONE = "none"
    UNKNOWN = "unknown"

    def __str__(self):
        return self.value

    @classmethod
    def parse(cls, value):
        """Return the member for ``value``, or ``UNKNOWN`` if there is none."""
        try:
            member = cls(value)
        except ValueError:
            return cls.UNKNOWN
        return member

    def is_valid(self):
        """True for every member except ``UNKNOWN``."""
        return self is not TestResult.UNKNOWN


class PortType(str, Enum):
    """Kind of endpoint a port describes."""

    HEALTH = "health"
    API = "api"
    UNKNOWN = "unknown"

    def __str__(self):
        return self.value

    @classmethod
    def parse(cls, value):
        """Return the member for ``value``, or ``UNKNOWN`` if there is none."""
        try:
            member = cls(value)
        except ValueError:
            return cls.UNKNOWN
        return member

    def is_valid(self):
        """True for ``HEALTH`` and ``API``."""
        return self is not PortType.UNKNOWN


def parse_test_results(values):
    """Parse each string in ``values`` into a :class:`TestResult`."""
    return [TestResult.parse(value) for value in values]