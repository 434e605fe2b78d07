"""
Main application entry point for the stock exporter.

This is the composition root: it parses flags, loads settings and the
exporter configuration, builds the Finnhub client and the stocks collector,
registers the collector once and serves the metrics endpoint.
"""

import argparse
import asyncio
import logging
import signal
import sys
from typing import List, Optional

from prometheus_client.core import CollectorRegistry

from monitoring.metrics import ExporterMetrics
from shared.config import (
    Config,
    ConfigurationError,
    ExporterConfig,
    ExporterSettings,
    get_config,
    load_exporter_config,
)
from shared.utils import setup_logging

from .collector import StocksCollector
from .finnhub_client import FinnhubClient, FinnhubConfig
from .http_server import StockExporterHTTPServer, parse_listen_address

logger = logging.getLogger(__name__)


class StockExporterApp:
    """Wires the collector to a registry and serves it over HTTP."""

    def __init__(
        self,
        settings: ExporterSettings,
        exporter_config: ExporterConfig,
        registry: Optional[CollectorRegistry] = None,
    ):
        self.settings = settings
        self.exporter_config = exporter_config
        host, port = parse_listen_address(settings.listen_address)
        self.registry = registry if registry is not None else CollectorRegistry()
        self.metrics = ExporterMetrics(self.registry)
        self.client = FinnhubClient(
            FinnhubConfig(
                api_key=exporter_config.finnhub_api_key,
                base_url=settings.finnhub_base_url,
                timeout=settings.request_timeout,
            ),
            metrics=self.metrics,
        )
        self.collector = StocksCollector(
            self.client,
            exporter_config.symbols,
            scrape_timeout=settings.scrape_timeout,
            metrics=self.metrics,
        )
        self.http_server = StockExporterHTTPServer(
            self.registry,
            metrics_path=settings.metrics_path,
            host=host,
            port=port,
            symbols_count=len(exporter_config.symbols),
        )
        self._shutdown_event = asyncio.Event()

    def register(self) -> None:
        """
        Register the stocks collector with the registry.

        Raises:
            ValueError: If a collector with the same metric names is already
                registered
        """
        self.registry.register(self.collector)
        logger.debug("Registered stocks collector")

    async def start(self) -> None:
        await self.http_server.start()

    async def stop(self) -> None:
        logger.info("Stopping stock exporter...")
        await self.http_server.stop()
        self.client.close()

    def request_shutdown(self) -> None:
        self._shutdown_event.set()

    async def run(self) -> None:
        """Serve until a termination signal is received."""
        loop = asyncio.get_running_loop()
        for sig in (signal.SIGTERM, signal.SIGINT):
            try:
                loop.add_signal_handler(sig, self.request_shutdown)
            except NotImplementedError:
                # add_signal_handler is unavailable on Windows event loops
                pass

        await self.start()
        try:
            await self._shutdown_event.wait()
        finally:
            await self.stop()


def parse_args(argv: Optional[List[str]] = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        description="Export Finnhub stock prices and company news as Prometheus metrics"
    )
    parser.add_argument("-p", dest="metrics_path", help="HTTP path where to expose metrics to")
    parser.add_argument("-l", dest="listen_address", help="Address to listen to")
    parser.add_argument("-c", dest="config_file", help="Configuration file")
    return parser.parse_args(argv)


def load_settings(args: argparse.Namespace) -> ExporterSettings:
    """Environment settings, with command line flags taking precedence."""
    fields = ExporterSettings.model_fields
    overrides = {
        fields[key].alias: value
        for key, value in vars(args).items()
        if value is not None and key in fields
    }
    return ExporterSettings(**overrides)


def build_app(
    settings: ExporterSettings, registry: Optional[CollectorRegistry] = None
) -> StockExporterApp:
    """
    Load the exporter configuration and assemble a registered application.

    Raises:
        ConfigurationError: On a missing, malformed or invalid config file
        ValueError: If the collector cannot be registered
    """
    exporter_config = load_exporter_config(settings.config_file)
    logger.info(
        f"Symbols ({len(exporter_config.symbols)}): {exporter_config.symbols}, "
        f"frequency {exporter_config.frequency}"
    )
    app = StockExporterApp(settings, exporter_config, registry=registry)
    try:
        app.register()
    except ValueError:
        app.client.close()
        raise
    return app


def main(argv: Optional[List[str]] = None) -> int:
    args = parse_args(argv)

    try:
        config: Config = get_config()
        setup_logging(config, service_name=config.service_name)
        settings = load_settings(args)
        app = build_app(settings)
    except ConfigurationError as e:
        logger.error(f"Failed to load configuration: {e}")
        return 1
    except ValueError as e:
        logger.error(f"Failed to initialize stock exporter: {e}")
        return 1

    try:
        asyncio.run(app.run())
    except Exception as e:
        logger.error(f"Application error: {e}")
        return 1

    logger.info("Stock exporter shut down")
    return 0


if __name__ == "__main__":
    sys.exit(main())
