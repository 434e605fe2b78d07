"""
Centralized configuration management for the stock exporter.

Process-level settings come from environment variables (with an optional
``.env`` file) and sensible defaults. The exporter configuration itself,
i.e. which symbols to track and the Finnhub API key, is read from a JSON file.
"""

import json
from datetime import timedelta
from pathlib import Path
from typing import Any, List, Optional, Union

from pydantic import BaseModel, Field, ValidationError, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from .utils import parse_duration


class ConfigurationError(Exception):
    """Raised when the exporter configuration cannot be loaded."""


class LoggingConfig(BaseSettings):
    """Logging configuration."""

    level: str = Field(default="INFO", alias="LOG_LEVEL")
    format: str = Field(
        default="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
        alias="LOG_FORMAT"
    )
    file_path: str = Field(default="data/logs/stock_exporter.log", alias="LOG_FILE_PATH")
    max_file_size: int = Field(default=10485760, alias="LOG_MAX_FILE_SIZE")  # 10MB
    backup_count: int = Field(default=5, alias="LOG_BACKUP_COUNT")
    enable_console: bool = Field(default=True, alias="LOG_ENABLE_CONSOLE")
    enable_file: bool = Field(default=False, alias="LOG_ENABLE_FILE")

    model_config = SettingsConfigDict(
        env_prefix="",
        case_sensitive=False
    )

    @field_validator('level')
    @classmethod
    def validate_log_level(cls, v):
        """Validate log level."""
        valid_levels = ["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"]
        if v.upper() not in valid_levels:
            raise ValueError(f"Invalid log level. Must be one of: {valid_levels}")
        return v.upper()


class ExporterSettings(BaseSettings):
    """HTTP exposure and upstream timing settings."""

    listen_address: str = Field(default=":9103", alias="EXPORTER_LISTEN")
    metrics_path: str = Field(default="/metrics", alias="EXPORTER_METRICS_PATH")
    config_file: str = Field(default="config.json", alias="EXPORTER_CONFIG_FILE")
    scrape_timeout: float = Field(default=30.0, alias="EXPORTER_SCRAPE_TIMEOUT")  # seconds
    request_timeout: float = Field(default=10.0, alias="FINNHUB_TIMEOUT")  # seconds
    finnhub_base_url: str = Field(default="https://finnhub.io/api/v1", alias="FINNHUB_BASE_URL")

    model_config = SettingsConfigDict(
        env_prefix="",
        case_sensitive=False
    )

    @field_validator('metrics_path')
    @classmethod
    def validate_metrics_path(cls, v):
        """Metrics path must be absolute."""
        if not v.startswith("/"):
            raise ValueError("Metrics path must start with '/'")
        return v

    @field_validator('scrape_timeout', 'request_timeout')
    @classmethod
    def validate_timeouts(cls, v):
        """Validate timeouts are positive."""
        if v <= 0:
            raise ValueError("Timeouts must be positive")
        return v


class ExporterConfig(BaseModel):
    """Contents of the JSON configuration file."""

    symbols: List[str] = Field(..., description="Ticker symbols to export")
    frequency: timedelta = Field(
        default=timedelta(minutes=1),
        description="Advisory polling frequency, e.g. '1m30s'",
    )
    finnhub_api_key: str = Field(default="", description="Finnhub API key")

    @field_validator('symbols')
    @classmethod
    def validate_symbols(cls, v):
        """Require at least one non-blank symbol."""
        if not v:
            raise ValueError("Must specify at least one symbol")
        symbols = [s.strip() for s in v]
        if any(not s for s in symbols):
            raise ValueError("Symbols must not be blank")
        duplicates = sorted({s for s in symbols if symbols.count(s) > 1})
        if duplicates:
            raise ValueError(f"Duplicate symbols: {duplicates}")
        return symbols

    @field_validator('frequency', mode='before')
    @classmethod
    def parse_frequency(cls, v: Union[str, int, float, timedelta, Any]):
        """Accept Go-style duration strings or a number of seconds."""
        if isinstance(v, str):
            return parse_duration(v)
        if isinstance(v, (int, float)) and not isinstance(v, bool):
            return timedelta(seconds=v)
        return v


def load_exporter_config(path: Union[str, Path]) -> ExporterConfig:
    """
    Load the exporter configuration file.

    Args:
        path: Path to the JSON configuration file

    Returns:
        Validated ExporterConfig

    Raises:
        ConfigurationError: If the file is missing, is not valid JSON, or
            fails validation
    """
    path = Path(path)
    try:
        raw = path.read_text(encoding="utf-8")
    except OSError as e:
        raise ConfigurationError(f"failed to read config file '{path}': {e}") from e

    try:
        data = json.loads(raw)
    except json.JSONDecodeError as e:
        raise ConfigurationError(f"failed to unmarshal JSON config '{path}': {e}") from e

    if not isinstance(data, dict):
        raise ConfigurationError(f"config file '{path}' must contain a JSON object")

    try:
        return ExporterConfig(**data)
    except ValidationError as e:
        raise ConfigurationError(f"invalid config file '{path}': {e}") from e


class Config(BaseSettings):
    """Main configuration class."""

    service_name: str = Field(default="stock_exporter", alias="SERVICE_NAME")

    @property
    def logging(self) -> LoggingConfig:
        """Get logging configuration."""
        return LoggingConfig(**{})

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )


# Global configuration instance
config: Optional[Config] = None


def get_config() -> Config:
    """Get the global configuration instance."""
    global config
    if config is None:
        config = Config()
    return config

