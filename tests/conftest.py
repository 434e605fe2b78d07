import json
from datetime import date
from pathlib import Path
from typing import Any, Callable, Dict, List, Optional
from unittest.mock import MagicMock

import pytest
from prometheus_client.core import CollectorRegistry

from monitoring.metrics import ExporterMetrics
from services.stock_exporter.src.finnhub_client import FinnhubClient
from shared.models import CompanyNewsRecord, Quote

FIXED_TODAY = date(2024, 3, 15)


def make_news(
    news_id: Optional[int] = 1,
    headline: Optional[str] = "Apple beats earnings",
    url: Optional[str] = "https://example.com/news/1",
    timestamp: Optional[int] = 1710500000,
    **extra: Any,
) -> CompanyNewsRecord:
    """Build an upstream news record; pass None to leave a field out."""
    return CompanyNewsRecord(
        id=news_id, headline=headline, url=url, datetime=timestamp, **extra
    )


@pytest.fixture
def registry() -> CollectorRegistry:
    """Isolated Prometheus registry"""
    return CollectorRegistry()


@pytest.fixture
def exporter_metrics(registry: CollectorRegistry) -> ExporterMetrics:
    return ExporterMetrics(registry)


@pytest.fixture
def fixed_today() -> Callable[[], date]:
    return lambda: FIXED_TODAY


@pytest.fixture
def mock_finnhub_client() -> MagicMock:
    """Finnhub client returning no price and no news unless configured"""
    client = MagicMock(spec=FinnhubClient)
    client.get_quote.return_value = Quote()
    client.get_company_news.return_value = []
    return client


@pytest.fixture
def configure_client(mock_finnhub_client: MagicMock):
    """Configure per-symbol quote and news responses on the mock client.

    Values may be a Quote / list of records, or an exception instance to raise.
    """

    def _configure(
        quotes: Optional[Dict[str, Any]] = None,
        news: Optional[Dict[str, Any]] = None,
    ) -> MagicMock:
        quotes = quotes or {}
        news = news or {}

        def get_quote(symbol: str, timeout: Optional[float] = None) -> Quote:
            result = quotes.get(symbol, Quote())
            if isinstance(result, Exception):
                raise result
            return result

        def get_company_news(
            symbol: str, from_date: str, to_date: str, timeout: Optional[float] = None
        ) -> List[CompanyNewsRecord]:
            result = news.get(symbol, [])
            if isinstance(result, Exception):
                raise result
            return result

        mock_finnhub_client.get_quote.side_effect = get_quote
        mock_finnhub_client.get_company_news.side_effect = get_company_news
        return mock_finnhub_client

    return _configure


@pytest.fixture
def write_config(tmp_path: Path):
    """Write an exporter JSON config file and return its path"""

    def _write(content: Any, name: str = "config.json") -> Path:
        path = tmp_path / name
        if isinstance(content, str):
            path.write_text(content, encoding="utf-8")
        else:
            path.write_text(json.dumps(content), encoding="utf-8")
        return path

    return _write
