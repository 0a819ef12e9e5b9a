"""Environment-level errors.

Anything raised from here aborts a publish run. Per-unit problems are never
raised; they travel as ``UnitFailure`` values instead.
"""

from __future__ import annotations


class PagepressError(Exception):
    """Base class for fatal pipeline errors."""


class ConfigError(PagepressError):
    """Site configuration file exists but cannot be loaded."""


class ContentRootError(PagepressError):
    """Content root is missing or unreadable."""


class OutputError(PagepressError):
    """Output destination cannot be written."""


class PublishError(PagepressError):
    """Hosting branch could not be replaced."""
