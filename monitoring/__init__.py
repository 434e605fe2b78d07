"""Monitoring and self-metrics for the stock exporter."""

from .metrics import ExporterMetrics

__all__ = ["ExporterMetrics"]
