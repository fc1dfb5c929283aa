"""Probe HTTP services, keep a rolling availability log and render a status page."""

__version__ = "0.1.0"

__all__ = ["__version__"]