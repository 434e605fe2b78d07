"""
Prometheus collector exporting stock prices and company news.

Company news are exported as point-in-time samples: each news item becomes a
``stock_company_news`` sample with value 1 and an explicit timestamp equal to
the item's publication time, which makes them usable as Grafana annotations.
"""

import logging
import threading
import time
from datetime import date
from typing import Callable, Iterable, Iterator, List, Optional, Sequence, Set, Tuple

from prometheus_client.core import GaugeMetricFamily, Metric

from monitoring.metrics import ExporterMetrics
from shared.models import NewsItem

from .finnhub_client import FinnhubClient, FinnhubError, FinnhubTimeoutError


logger = logging.getLogger(__name__)

STOCK_PRICE = "stock_price"
STOCK_PRICE_HELP = "Stocks - Symbol price"
STOCK_PRICE_LABELS = ["symbol"]

COMPANY_NEWS = "stock_company_news"
COMPANY_NEWS_HELP = "Stocks - Company News"
COMPANY_NEWS_LABELS = ["symbol", "headline", "url", "id"]


def _price_family() -> GaugeMetricFamily:
    return GaugeMetricFamily(STOCK_PRICE, STOCK_PRICE_HELP, labels=STOCK_PRICE_LABELS)


def _news_family() -> GaugeMetricFamily:
    return GaugeMetricFamily(COMPANY_NEWS, COMPANY_NEWS_HELP, labels=COMPANY_NEWS_LABELS)


class StocksCollector:
    """
    Custom collector fetching quotes and same-day company news on each scrape.

    Symbols are processed sequentially in configured order. A failure for one
    symbol (quote or news) is logged and skipped; it never aborts the scrape.
    Nothing is kept between scrapes, so a news item is exported again on
    every scrape for as long as the provider returns it for "today".
    """

    def __init__(
        self,
        client: FinnhubClient,
        symbols: Sequence[str],
        *,
        scrape_timeout: Optional[float] = None,
        today: Callable[[], date] = date.today,
        metrics: Optional[ExporterMetrics] = None,
        clock: Callable[[], float] = time.monotonic,
    ):
        if not symbols:
            raise ValueError("Must specify at least one symbol")
        if scrape_timeout is not None and scrape_timeout <= 0:
            raise ValueError("scrape_timeout must be positive")

        self.client = client
        self.symbols: Tuple[str, ...] = tuple(symbols)
        self.scrape_timeout = scrape_timeout
        self.metrics = metrics
        self._today = today
        self._clock = clock
        self._lock = threading.Lock()

    def describe(self) -> List[Metric]:
        """Return the metric families this collector can emit, without fetching."""
        return [_price_family(), _news_family()]

    def collect(self) -> Iterator[Metric]:
        """Fetch upstream data for every symbol and yield the metric families."""
        with self._lock:
            started = time.perf_counter()
            try:
                yield from self._collect_once()
            finally:
                if self.metrics is not None:
                    self.metrics.scrape_duration.observe(time.perf_counter() - started)

    def _collect_once(self) -> Iterator[Metric]:
        # one date for both bounds, fixed for the whole scrape
        today = self._today().isoformat()
        deadline = None
        if self.scrape_timeout is not None:
            deadline = self._clock() + self.scrape_timeout

        logger.info(
            f"Fetching company news for {list(self.symbols)} from {today} to {today}"
        )

        prices = _price_family()
        news = _news_family()
        seen_news: Set[Tuple[str, ...]] = set()

        for symbol in self.symbols:
            price = self._fetch_price(symbol, deadline)
            if price is not None:
                prices.add_metric([symbol], price)

            for item in self._fetch_news(symbol, today, deadline):
                labels = (symbol, item.headline, item.url, str(item.id))
                # a registry rejects repeated label sets within one exposition
                if labels in seen_news:
                    logger.debug(f"Skipping duplicate company news {item.id} for {symbol}")
                    continue
                seen_news.add(labels)
                news.add_metric(list(labels), 1, timestamp=item.datetime)

        for family in (prices, news):
            if family.samples:
                yield family

    def _remaining(self, deadline: Optional[float], what: str) -> Optional[float]:
        """Seconds left before the scrape deadline, or None if unbounded."""
        if deadline is None:
            return None
        remaining = deadline - self._clock()
        if remaining <= 0:
            raise FinnhubTimeoutError(f"scrape deadline exceeded at {what}")
        return remaining

    def _record_error(self, symbol: str, kind: str) -> None:
        if self.metrics is not None:
            self.metrics.record_symbol_error(symbol, kind)

    def _fetch_price(self, symbol: str, deadline: Optional[float]) -> Optional[float]:
        logger.debug(f"Getting stock price for {symbol}")
        try:
            quote = self.client.get_quote(
                symbol, timeout=self._remaining(deadline, f"quote for {symbol}")
            )
            # httpx timeouts are per phase, so a slow response can outlive the budget
            self._remaining(deadline, f"quote for {symbol}")
        except FinnhubError as e:
            logger.error(f"Failed to get stock price for '{symbol}': {e}")
            self._record_error(symbol, "quote")
            return None
        except Exception as e:
            logger.exception(f"Unexpected error getting stock price for '{symbol}': {e}")
            self._record_error(symbol, "quote")
            return None

        if quote.current_price is None:
            logger.warning(f"Skipping {symbol}: current price is not set")
            self._record_error(symbol, "quote_missing_price")
            return None
        return quote.current_price

    def _fetch_news(
        self, symbol: str, day: str, deadline: Optional[float]
    ) -> Iterable[NewsItem]:
        try:
            records = self.client.get_company_news(
                symbol,
                day,
                day,
                timeout=self._remaining(deadline, f"company news for {symbol}"),
            )
            self._remaining(deadline, f"company news for {symbol}")
        except FinnhubError as e:
            logger.error(f"Failed to get company news for '{symbol}': {e}")
            self._record_error(symbol, "news")
            return []
        except Exception as e:
            logger.exception(f"Unexpected error getting company news for '{symbol}': {e}")
            self._record_error(symbol, "news")
            return []

        logger.info(f"Found {len(records)} company news for {symbol}")
        items = []
        for record in records:
            item = record.to_news_item()
            if item is None:
                logger.warning(
                    f"Skipping company news for {symbol}: missing fields "
                    f"{record.missing_fields()} in {record.model_dump(exclude_none=True)}"
                )
                self._record_error(symbol, "news_invalid_record")
                continue
            items.append(item)
        return items
