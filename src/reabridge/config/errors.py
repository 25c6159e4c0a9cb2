"""Errors raised while reading reabridge settings from the environment.

The command line reports any ``ConfigurationError`` as a usage error (exit 2).
"""

from __future__ import annotations


class ConfigurationError(RuntimeError):
    """A ``REABRIDGE_*`` or ``DATABASE_URI`` setting holds an unusable value."""


class MissingConfigurationError(ConfigurationError):
    """A required setting such as ``REABRIDGE_GRAPH_URL`` is unset or blank."""
