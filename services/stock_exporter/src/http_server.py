"""
HTTP server for the stock exporter.

Exposes the Prometheus metrics endpoint plus small health and index
endpoints. Collection is synchronous (the collector performs blocking
upstream calls), so the exposition is rendered in the default executor to
keep the event loop responsive.
"""

import asyncio
import logging
from datetime import datetime, timezone
from typing import Optional, Tuple

from aiohttp import web
from aiohttp.web_request import Request
from aiohttp.web_response import Response
from prometheus_client import CONTENT_TYPE_LATEST, generate_latest
from prometheus_client.core import CollectorRegistry

logger = logging.getLogger(__name__)


def parse_listen_address(address: str) -> Tuple[str, int]:
    """
    Split a ``host:port`` listen address.

    An empty host (``":9103"``) binds all interfaces.

    Raises:
        ValueError: If the port is missing or not a valid number
    """
    host, sep, port = address.rpartition(":")
    if not sep or not port:
        raise ValueError(f"invalid listen address {address!r}, expected host:port")
    try:
        port_number = int(port)
    except ValueError:
        raise ValueError(f"invalid port in listen address {address!r}") from None
    if not 0 <= port_number <= 65535:
        raise ValueError(f"port out of range in listen address {address!r}")
    host = host.strip("[]") or "0.0.0.0"
    return host, port_number


class StockExporterHTTPServer:
    """HTTP server for stock exporter endpoints."""

    def __init__(
        self,
        registry: CollectorRegistry,
        metrics_path: str = "/metrics",
        host: str = "0.0.0.0",
        port: int = 9103,
        symbols_count: int = 0,
    ):
        """
        Initialize the HTTP server.

        Args:
            registry: Registry holding the stocks collector
            metrics_path: Path where metrics are exposed
            host: Host to bind the server to
            port: Port to bind the server to
            symbols_count: Number of configured symbols, reported by /health
        """
        self.registry = registry
        self.metrics_path = metrics_path
        self.host = host
        self.port = port
        self.symbols_count = symbols_count
        self.started_at = datetime.now(timezone.utc)
        self.app: Optional[web.Application] = None
        self.runner: Optional[web.AppRunner] = None
        self.site: Optional[web.TCPSite] = None

    def create_app(self) -> web.Application:
        """Create and configure the web application."""
        app = web.Application()
        app.router.add_get(self.metrics_path, self.prometheus_metrics)
        app.router.add_get("/health", self.health_check)
        if self.metrics_path != "/":
            app.router.add_get("/", self.index)
        return app

    async def start(self) -> None:
        """Start the HTTP server."""
        try:
            self.app = self.create_app()
            self.runner = web.AppRunner(self.app)
            await self.runner.setup()

            self.site = web.TCPSite(self.runner, self.host, self.port)
            await self.site.start()

            logger.info(f"Starting server on {self.host}:{self.port}{self.metrics_path}")

        except Exception as e:
            logger.error(f"Failed to start HTTP server: {e}")
            raise

    async def stop(self) -> None:
        """Stop the HTTP server."""
        if self.site:
            await self.site.stop()
        if self.runner:
            await self.runner.cleanup()
        logger.info("HTTP server stopped")

    async def index(self, request: Request) -> Response:
        """Landing page pointing at the metrics endpoint."""
        html = (
            "<html><head><title>Stock Exporter</title></head><body>"
            "<h1>Stock Exporter</h1>"
            f'<p><a href="{self.metrics_path}">Metrics</a></p>'
            "</body></html>"
        )
        return web.Response(text=html, content_type="text/html")

    async def health_check(self, request: Request) -> Response:
        """Health check endpoint; does not touch the upstream provider."""
        now = datetime.now(timezone.utc)
        return web.json_response(
            {
                "status": "healthy",
                "service": "stock_exporter",
                "symbols": self.symbols_count,
                "uptime_seconds": (now - self.started_at).total_seconds(),
                "timestamp": now.isoformat(),
            }
        )

    async def prometheus_metrics(self, request: Request) -> Response:
        """Prometheus exposition endpoint."""
        try:
            loop = asyncio.get_running_loop()
            output = await loop.run_in_executor(None, generate_latest, self.registry)
        except Exception as e:
            logger.error(f"Prometheus metrics collection failed: {e}")
            return web.Response(
                text=f"# Error collecting metrics: {str(e)}\n",
                content_type="text/plain",
                status=500,
            )

        return web.Response(body=output, headers={"Content-Type": CONTENT_TYPE_LATEST})
