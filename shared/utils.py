"""
Shared utilities for the stock exporter.

This module provides logging setup and duration parsing used across the
exporter.
"""

import logging
import logging.handlers
import re
import sys
from datetime import timedelta
from pathlib import Path
from typing import TYPE_CHECKING, Optional

if TYPE_CHECKING:
    from .config import Config


_DURATION_UNITS = {
    "ns": 1e-9,
    "us": 1e-6,
    "µs": 1e-6,
    "ms": 1e-3,
    "s": 1.0,
    "m": 60.0,
    "h": 3600.0,
}

_DURATION_PART = re.compile(r"(\d+(?:\.\d*)?|\.\d+)(ns|us|µs|ms|s|m|h)")


def setup_logging(config: "Config", service_name: Optional[str] = None) -> logging.Logger:
    """
    Setup logging configuration for the service.

    Handlers are attached to the root logger so that module-level loggers
    (``logging.getLogger(__name__)``) share the same output.

    Args:
        config: Configuration object
        service_name: Name of the service (used for the log file name)

    Returns:
        Logger named after the service
    """
    log_config = config.logging
    level = getattr(logging, log_config.level)
    formatter = logging.Formatter(log_config.format)

    root = logging.getLogger()
    root.setLevel(level)

    # Clear existing handlers
    root.handlers.clear()

    # Console handler
    if log_config.enable_console:
        console_handler = logging.StreamHandler(sys.stdout)
        console_handler.setLevel(level)
        console_handler.setFormatter(formatter)
        root.addHandler(console_handler)

    # File handler with rotation
    if log_config.enable_file:
        log_file = Path(log_config.file_path)
        if service_name:
            log_file = log_file.parent / f"{service_name}.log"
        log_file.parent.mkdir(parents=True, exist_ok=True)

        file_handler = logging.handlers.RotatingFileHandler(
            filename=str(log_file),
            maxBytes=log_config.max_file_size,
            backupCount=log_config.backup_count,
            encoding="utf-8",
        )
        file_handler.setLevel(level)
        file_handler.setFormatter(formatter)
        root.addHandler(file_handler)

    return logging.getLogger(service_name or config.service_name)


def parse_duration(value: str) -> timedelta:
    """
    Parse a Go-style duration string such as ``"1m30s"`` or ``"250ms"``.

    Args:
        value: Duration string; ``"0"`` is accepted as zero

    Returns:
        Equivalent timedelta

    Raises:
        ValueError: If the string is not a valid duration
    """
    text = value.strip()
    if not text:
        raise ValueError("empty duration")

    sign = 1
    if text[0] in "+-":
        sign = -1 if text[0] == "-" else 1
        text = text[1:]

    if text == "0":
        return timedelta(0)

    seconds = 0.0
    pos = 0
    for match in _DURATION_PART.finditer(text):
        if match.start() != pos:
            raise ValueError(f"invalid duration: {value!r}")
        number, unit = match.groups()
        seconds += float(number) * _DURATION_UNITS[unit]
        pos = match.end()

    if pos == 0 or pos != len(text):
        raise ValueError(f"invalid duration: {value!r}")

    return timedelta(seconds=sign * seconds)
