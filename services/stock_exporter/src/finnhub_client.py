"""
Finnhub API client for stock quotes and company news.

The client is synchronous: it is called from inside a Prometheus collector,
which the registry invokes synchronously during a scrape. Authentication is
attached as a default header so callers never see the API key.
"""

import logging
from typing import Any, Dict, List, Optional

import httpx
from pydantic import BaseModel, Field, ValidationError

from monitoring.metrics import ExporterMetrics
from shared.models import CompanyNewsRecord, Quote


logger = logging.getLogger(__name__)


class FinnhubError(Exception):
    """Raised when a Finnhub request fails or returns an unusable payload."""


class FinnhubTimeoutError(FinnhubError):
    """Raised when a Finnhub request exceeds its deadline."""


class FinnhubConfig(BaseModel):
    """Finnhub API configuration."""

    api_key: str = Field(default="", description="Finnhub API key")
    base_url: str = Field(default="https://finnhub.io/api/v1", description="Base API URL")
    timeout: float = Field(default=10.0, gt=0, description="Default request timeout in seconds")


class FinnhubClient:
    """
    Finnhub API client.

    Exposes the two calls the exporter needs, ``get_quote`` and
    ``get_company_news``. Every failure mode surfaces as ``FinnhubError``.
    """

    def __init__(
        self,
        config: FinnhubConfig,
        http_client: Optional[httpx.Client] = None,
        metrics: Optional[ExporterMetrics] = None,
    ):
        self.config = config
        self.metrics = metrics
        self._owns_client = http_client is None
        if http_client is None:
            http_client = httpx.Client(
                base_url=config.base_url,
                timeout=config.timeout,
            )
        http_client.headers["X-Finnhub-Token"] = config.api_key
        self._client = http_client

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.close()

    def close(self) -> None:
        """Close the underlying HTTP client if this instance created it."""
        if self._owns_client:
            self._client.close()

    def _record(self, endpoint: str, status: str) -> None:
        if self.metrics is not None:
            self.metrics.record_upstream_request(endpoint, status)

    def _make_request(
        self,
        endpoint: str,
        params: Dict[str, Any],
        timeout: Optional[float] = None,
    ) -> Any:
        """
        Make an HTTP request to the Finnhub API.

        Args:
            endpoint: API endpoint, relative to the base URL
            params: Query parameters
            timeout: Timeout in seconds; it can only shorten the configured
                timeout. httpx applies it to each phase (connect, read, write,
                pool), so it does not cap the total request time

        Returns:
            Decoded JSON payload

        Raises:
            FinnhubTimeoutError: On timeouts
            FinnhubError: On HTTP, transport or decoding errors
        """
        request_timeout = self.config.timeout
        if timeout is not None:
            request_timeout = min(timeout, request_timeout)

        try:
            response = self._client.get(
                endpoint, params=params, timeout=request_timeout
            )
            response.raise_for_status()
            data = response.json()
        except httpx.TimeoutException as e:
            self._record(endpoint, "timeout")
            raise FinnhubTimeoutError(
                f"request to {endpoint} timed out after {request_timeout:.2f}s"
            ) from e
        except httpx.HTTPStatusError as e:
            self._record(endpoint, "http_error")
            raise FinnhubError(
                f"request to {endpoint} failed with HTTP {e.response.status_code}"
            ) from e
        except httpx.HTTPError as e:
            self._record(endpoint, "transport_error")
            raise FinnhubError(f"request to {endpoint} failed: {e}") from e
        except ValueError as e:
            self._record(endpoint, "invalid_response")
            raise FinnhubError(f"invalid JSON from {endpoint}: {e}") from e

        # Finnhub reports some failures as 200 with an error body
        if isinstance(data, dict) and "error" in data:
            self._record(endpoint, "api_error")
            raise FinnhubError(f"Finnhub API error from {endpoint}: {data['error']}")

        self._record(endpoint, "ok")
        return data

    def get_quote(self, symbol: str, timeout: Optional[float] = None) -> Quote:
        """
        Get the current quote for a symbol.

        Args:
            symbol: Ticker symbol
            timeout: Optional per-request timeout in seconds

        Returns:
            Quote; its current price may be None
        """
        data = self._make_request("/quote", {"symbol": symbol}, timeout=timeout)
        if not isinstance(data, dict):
            raise FinnhubError(f"unexpected quote payload for {symbol}: {type(data).__name__}")
        try:
            return Quote.model_validate(data)
        except ValidationError as e:
            raise FinnhubError(f"malformed quote payload for {symbol}: {e}") from e

    def get_company_news(
        self,
        symbol: str,
        from_date: str,
        to_date: str,
        timeout: Optional[float] = None,
    ) -> List[CompanyNewsRecord]:
        """
        Get company news for a symbol between two dates (inclusive).

        Args:
            symbol: Ticker symbol
            from_date: Start date, YYYY-MM-DD
            to_date: End date, YYYY-MM-DD
            timeout: Optional per-request timeout in seconds

        Returns:
            News records in provider order; fields may be missing
        """
        params = {"symbol": symbol, "from": from_date, "to": to_date}
        data = self._make_request("/company-news", params, timeout=timeout)
        if not isinstance(data, list):
            raise FinnhubError(
                f"unexpected company news payload for {symbol}: {type(data).__name__}"
            )

        records = []
        for raw in data:
            if not isinstance(raw, dict):
                logger.warning(f"Ignoring non-object company news entry for {symbol}: {raw!r}")
                continue
            try:
                records.append(CompanyNewsRecord.model_validate(raw))
            except ValidationError as e:
                logger.warning(f"Ignoring malformed company news entry for {symbol}: {e}")
        return records
