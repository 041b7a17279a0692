# tests/conftest.py
"""Test configuration and fixtures."""

from datetime import datetime, timedelta, timezone
from typing import Dict, List, Optional

import pytest

from paper_momentum.data.binance_client import Ticker
from paper_momentum.live.feed_interface import MarketFeed
from paper_momentum.live.models import IndicatorPoint
from paper_momentum.live.session import TradingSession

T0 = datetime(2025, 1, 6, 12, 0, tzinfo=timezone.utc)


def point(fast=None, slow=None, low=100.0, close=100.0, hours=0) -> IndicatorPoint:
    """Build one indicator point; OHLC default to a flat 100 candle."""
    return IndicatorPoint(
        open_time=T0 + timedelta(hours=hours),
        open=close,
        high=max(close, low),
        low=low,
        close=close,
        fast_sma=fast,
        slow_sma=slow,
    )


def entry_series(low=109.5, close=110.0) -> List[IndicatorPoint]:
    """prev fast=100, curr fast=105 / slow=100: a rising uptrend."""
    return [
        point(fast=None, slow=None, hours=0),
        point(fast=100.0, slow=99.0, hours=1),
        point(fast=105.0, slow=100.0, low=low, close=close, hours=2),
    ]


def flat_series(low: float, close: float) -> List[IndicatorPoint]:
    """Fast below slow: never permits an entry, only drives exits."""
    return [
        point(fast=101.0, slow=102.0, hours=0),
        point(fast=100.0, slow=102.0, low=low, close=close, hours=1),
    ]


class FakeClock:
    def __init__(self, start: datetime = T0):
        self.now = start

    def __call__(self) -> datetime:
        return self.now

    def advance(self, **kwargs):
        self.now += timedelta(**kwargs)


class FakeFeed(MarketFeed):
    """In-memory market feed keyed by symbol."""

    def __init__(self):
        self.movers: List[Ticker] = []
        self.prices: Dict[str, float] = {}
        self.series: Dict[str, List[IndicatorPoint]] = {}
        self.series_calls: List[str] = []
        self.on_series_fetch = None

    def set_market(self, symbol: str, price: float, series: List[IndicatorPoint]):
        self.prices[symbol] = price
        self.series[symbol] = series

    def get_top_movers(self) -> List[Ticker]:
        return list(self.movers)

    def get_ticker(self, symbol: str) -> Optional[Ticker]:
        if symbol not in self.prices:
            return None
        return Ticker(symbol=symbol, last_price=self.prices[symbol],
                      price_change_percent=0.0, quote_volume=0.0)

    def get_indicator_series(self, symbol: str) -> List[IndicatorPoint]:
        self.series_calls.append(symbol)
        if self.on_series_fetch is not None:
            self.on_series_fetch(symbol)
        return list(self.series.get(symbol, []))


def ticker(symbol: str, price: float = 1.0, change: float = 0.0) -> Ticker:
    return Ticker(symbol=symbol, last_price=price, price_change_percent=change,
                  quote_volume=50_000_000.0)


@pytest.fixture(name="clock")
def clock_fixture():
    return FakeClock()


@pytest.fixture(name="session")
def session_fixture(clock):
    """Fresh inactive session on a controllable clock."""
    return TradingSession(clock=clock)


@pytest.fixture(name="active_session")
def active_session_fixture(session):
    session.start()
    return session


@pytest.fixture(name="feed")
def feed_fixture():
    return FakeFeed()
