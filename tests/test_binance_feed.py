# tests/test_binance_feed.py
from __future__ import annotations

import numpy as np
import pandas as pd

from conftest import ticker
from paper_momentum.live.binance_feed import BinanceMarketFeed


class StubClient:
    def __init__(self, movers=None, klines=None, single=None):
        self.movers = movers or []
        self.klines = klines if klines is not None else pd.DataFrame()
        self.single = single
        self.ticker_lookups = []
        self.kline_requests = []

    def get_top_gainers(self, limit, quote_asset, min_quote_volume):
        return self.movers[:limit]

    def get_ticker(self, symbol):
        self.ticker_lookups.append(symbol)
        return self.single

    def get_klines(self, symbol, interval, limit):
        self.kline_requests.append((symbol, interval, limit))
        return self.klines


def _klines(n=30) -> pd.DataFrame:
    index = pd.date_range("2025-01-01", periods=n, freq="h", tz="UTC", name="open_time")
    closes = np.linspace(100, 130, n)
    return pd.DataFrame(
        {"open": closes, "high": closes + 1, "low": closes - 1, "close": closes, "volume": 1.0},
        index=index,
    )


def test_series_is_enriched_with_both_averages():
    client = StubClient(klines=_klines())
    feed = BinanceMarketFeed(client=client, interval="15m", kline_limit=30)

    points = feed.get_indicator_series("BTCUSDT")

    assert client.kline_requests == [("BTCUSDT", "15m", 30)]
    assert len(points) == 30
    assert points[5].fast_sma is None
    assert points[6].fast_sma is not None and points[6].slow_sma is None
    assert points[-1].has_averages
    assert points[-1].fast_sma > points[-1].slow_sma


def test_empty_klines_give_empty_series():
    assert BinanceMarketFeed(client=StubClient()).get_indicator_series("BTCUSDT") == []


def test_ticker_reuses_mover_refresh_once():
    single = ticker("AUSDT", price=2.0)
    client = StubClient(movers=[ticker("AUSDT", price=1.0)], single=single)
    feed = BinanceMarketFeed(client=client)

    feed.get_top_movers()

    assert feed.get_ticker("AUSDT").last_price == 1.0
    assert client.ticker_lookups == []
    assert feed.get_ticker("AUSDT") is single
    assert client.ticker_lookups == ["AUSDT"]


def test_top_movers_respect_top_n():
    client = StubClient(movers=[ticker(f"S{i}USDT") for i in range(8)])
    assert len(BinanceMarketFeed(client=client, top_n=3).get_top_movers()) == 3


def test_empty_refresh_drops_previous_tickers():
    client = StubClient(movers=[ticker("AUSDT", price=1.0), ticker("BUSDT", price=2.0)])
    feed = BinanceMarketFeed(client=client)
    feed.get_top_movers()
    feed.get_ticker("AUSDT")

    client.movers = []
    assert feed.get_top_movers() == []

    # No cached price from the earlier cycle; the lookup goes to the exchange
    assert feed.get_ticker("BUSDT") is None
    assert client.ticker_lookups == ["BUSDT"]
