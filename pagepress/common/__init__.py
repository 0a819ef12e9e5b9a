# Common utilities and shared modules
"""
Shared components used by every pipeline stage:
- Site configuration (YAML + .env + environment)
- Logging configuration
- Fatal error types
- Text helpers
"""

from .config import CONFIG_FILENAME, Settings
from .errors import (
    ConfigError,
    ContentRootError,
    OutputError,
    PagepressError,
    PublishError,
)
from .logging import set_level, setup_logging
from .text import slugify, truncate_words

__all__ = [
    "CONFIG_FILENAME",
    "ConfigError",
    "ContentRootError",
    "OutputError",
    "PagepressError",
    "PublishError",
    "Settings",
    "set_level",
    "setup_logging",
    "slugify",
    "truncate_words",
]
