"""
Prometheus self-metrics for the stock exporter.

These describe the exporter's own behaviour (upstream calls, per-symbol
failures, scrape latency) and are kept apart from the exported
``stock_price`` / ``stock_company_news`` families.
"""

from typing import Optional

from prometheus_client import REGISTRY, Counter, Histogram
from prometheus_client.core import CollectorRegistry


class ExporterMetrics:
    """Prometheus metrics for the stock exporter"""

    def __init__(self, registry: Optional[CollectorRegistry] = None):
        self.registry = registry or REGISTRY

        self.upstream_requests_total = Counter(
            "stock_exporter_upstream_requests_total",
            "Total requests sent to the market data provider",
            ["endpoint", "status"],
            registry=self.registry,
        )

        self.symbol_errors_total = Counter(
            "stock_exporter_symbol_errors_total",
            "Per-symbol collection failures",
            ["symbol", "kind"],
            registry=self.registry,
        )

        self.scrape_duration = Histogram(
            "stock_exporter_scrape_duration_seconds",
            "Time spent collecting stock metrics for one scrape",
            buckets=[0.1, 0.25, 0.5, 1.0, 2.5, 5.0, 10.0, 30.0, 60.0],
            registry=self.registry,
        )

    def record_upstream_request(self, endpoint: str, status: str) -> None:
        self.upstream_requests_total.labels(endpoint=endpoint, status=status).inc()

    def record_symbol_error(self, symbol: str, kind: str) -> None:
        self.symbol_errors_total.labels(symbol=symbol, kind=kind).inc()
