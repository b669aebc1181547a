"""
Project-wide logging setup for fastprops.

Provides a simple, consistent console logger with optional JSON output.
Controlled via environment variables:
- FASTPROPS_LOG_LEVEL: DEBUG|INFO|WARNING|ERROR (default: INFO)
- FASTPROPS_LOG_FORMAT: text|json (default: text)
"""
from __future__ import annotations

import logging
import os
from typing import Optional

from pythonjsonlogger.json import JsonFormatter

TEXT_FORMAT = "%(asctime)s - %(levelname)s - %(name)s - %(message)s"
DATE_FORMAT = "%Y-%m-%dT%H:%M:%S%z"


def _get_level(level: Optional[str] = None) -> int:
    if level is None:
        level = os.getenv("FASTPROPS_LOG_LEVEL", "INFO")
    return getattr(logging, level.upper(), logging.INFO)


def _build_formatter() -> logging.Formatter:
    fmt = os.getenv("FASTPROPS_LOG_FORMAT", "text").lower()
    if fmt == "json":
        return JsonFormatter(
            fmt="%(asctime)s %(levelname)s %(name)s %(message)s",
            rename_fields={"levelname": "level", "name": "logger"},
        )
    return logging.Formatter(fmt=TEXT_FORMAT, datefmt=DATE_FORMAT)


def setup_logging(
    force: bool = False,
    *,
    logger: Optional[logging.Logger] = None,
    level: Optional[str] = None,
) -> None:
    """Configure root logging for console output.

    If a handler is already present and force is False, this is a no-op.
    An explicit ``level`` wins over FASTPROPS_LOG_LEVEL.
    If FASTPROPS_LOG_FORMAT=json, records are emitted as JSON objects.
    """
    target_logger = logger or logging.getLogger()
    if target_logger.handlers and not force:
        return

    # Clear existing handlers when forcing
    if force:
        for h in list(target_logger.handlers):
            target_logger.removeHandler(h)

    target_logger.setLevel(_get_level(level))

    handler = logging.StreamHandler()
    handler.setFormatter(_build_formatter())
    target_logger.addHandler(handler)
