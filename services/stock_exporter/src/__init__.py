"""
Stock exporter service.

Exposes Finnhub stock prices and same-day company news as Prometheus metrics.
"""

__version__ = "1.0.0"
