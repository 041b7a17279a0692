"""Market feed backed by the Binance public API.

Live prices come from the 24h ticker endpoint; indicator series are the
latest candles enriched with fast/slow SMAs.
"""
from typing import Dict, List, Optional

from loguru import logger

from .feed_interface import MarketFeed
from .models import IndicatorPoint
from ..data.binance_client import BinanceClient, Ticker
from ..strategies.indicators import enrich_with_sma, to_indicator_points


class BinanceMarketFeed(MarketFeed):
    """Binance feed. Ticker lookups reuse the last mover refresh when possible."""

    def __init__(
        self,
        client: Optional[BinanceClient] = None,
        interval: str = "1h",
        kline_limit: int = 200,
        fast_period: int = 7,
        slow_period: int = 25,
        top_n: int = 5,
        quote_asset: str = "USDT",
        min_quote_volume: float = 10_000_000,
    ):
        self.client = client or BinanceClient()
        self.interval = interval
        self.kline_limit = kline_limit
        self.fast_period = fast_period
        self.slow_period = slow_period
        self.top_n = top_n
        self.quote_asset = quote_asset
        self.min_quote_volume = min_quote_volume

        self._movers: Dict[str, Ticker] = {}

    def get_top_movers(self) -> List[Ticker]:
        movers = self.client.get_top_gainers(
            limit=self.top_n,
            quote_asset=self.quote_asset,
            min_quote_volume=self.min_quote_volume,
        )
        # An empty refresh also drops the previous cycle's tickers
        self._movers = {t.symbol: t for t in movers}
        return movers

    def get_ticker(self, symbol: str) -> Optional[Ticker]:
        cached = self._movers.pop(symbol, None)
        if cached is not None:
            return cached
        return self.client.get_ticker(symbol)

    def get_indicator_series(self, symbol: str) -> List[IndicatorPoint]:
        candles = self.client.get_klines(symbol, interval=self.interval, limit=self.kline_limit)
        if candles.empty:
            return []

        enriched = enrich_with_sma(candles, self.fast_period, self.slow_period)
        points = to_indicator_points(enriched)
        logger.debug(f"{symbol}: {len(points)} indicator points")
        return points
