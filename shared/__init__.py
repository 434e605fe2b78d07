"""
Shared models and utilities for the stock exporter.

This package provides the configuration layer, the upstream data models and
common utilities used by the exporter service.
"""

from .config import (
    Config,
    ConfigurationError,
    ExporterConfig,
    ExporterSettings,
    LoggingConfig,
    get_config,
    load_exporter_config,
)
from .models import CompanyNewsRecord, NewsItem, Quote
from .utils import parse_duration, setup_logging

__version__ = "1.0.0"

__all__ = [
    "Config",
    "ConfigurationError",
    "ExporterConfig",
    "ExporterSettings",
    "LoggingConfig",
    "get_config",
    "load_exporter_config",
    "CompanyNewsRecord",
    "NewsItem",
    "Quote",
    "parse_duration",
    "setup_logging",
]
