"""Per-plugin loggers whose level comes from the environment."""

from __future__ import annotations

import logging
import os

TRACE = 5
OFF = logging.CRITICAL + 10

_LEVELS = {
    "trace": TRACE,
    "debug": logging.DEBUG,
    "info": logging.INFO,
    "warn": logging.WARNING,
    "error": logging.ERROR,
    "off": OFF,
}


def log_level(plugin: str) -> int:
    """Read TF_POLICY_LOG_LEVEL_<plugin>; unknown or unset means ERROR."""
    raw = os.environ.get(f"TF_POLICY_LOG_LEVEL_{plugin}", "")
    return _LEVELS.get(raw.strip().lower(), logging.ERROR)


def new_logger(plugin: str) -> logging.Logger:
    """Return a stderr logger for the plugin at its configured level."""
    logger = logging.getLogger(f"tfpolicy.{plugin}")
    logger.setLevel(log_level(plugin))
    if not logger.handlers:
        logger.addHandler(logging.StreamHandler())
        logger.propagate = False
    return logger