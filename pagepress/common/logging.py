"""Structured logging configuration for pagepress."""

from __future__ import annotations

import logging
import sys

ROOT_LOGGER = "pagepress"


def setup_logging(
    level: int = logging.INFO,
    module_name: str = ROOT_LOGGER,
) -> logging.Logger:
    """Return a logger under the ``pagepress`` namespace.

    The stdout handler lives on the ``pagepress`` logger only; module
    loggers such as ``pagepress.render_engine.renderer`` propagate to it.

    Args:
        level: Logging level, applied when the handler is first attached.
        module_name: Logger name; prefixed with ``pagepress.`` if needed.

    Returns:
        Configured logger.
    """
    if module_name != ROOT_LOGGER and not module_name.startswith(ROOT_LOGGER + "."):
        module_name = f"{ROOT_LOGGER}.{module_name}"

    root = logging.getLogger(ROOT_LOGGER)
    if not root.handlers:
        root.setLevel(level)

        handler = logging.StreamHandler(sys.stdout)
        handler.setLevel(level)

        formatter = logging.Formatter(
            fmt="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
            datefmt="%Y-%m-%d %H:%M:%S",
        )
        handler.setFormatter(formatter)
        root.addHandler(handler)

    return logging.getLogger(module_name)


def set_level(level: int) -> None:
    """Change the level of every pagepress logger at once."""
    root = setup_logging()
    root.setLevel(level)
    for handler in root.handlers:
        handler.setLevel(level)
