"""
Binance API Client
Wrapper for the public Binance spot REST API with retry logic and rate limiting
"""

import time
from dataclasses import dataclass
from typing import Any, Callable, Dict, List, Optional

import pandas as pd
import requests
from loguru import logger

from ..utils.helpers import to_price, validate_symbol

DEFAULT_BASE_URL = "https://api.binance.com/api/v3"

# Leveraged tokens track a multiple of the underlying and distort momentum
LEVERAGED_MARKERS = ("UP", "DOWN", "BULL", "BEAR")

KLINE_COLUMNS = [
    "open_time", "open", "high", "low", "close", "volume", "close_time",
]


@dataclass(frozen=True)
class Ticker:
    """24h ticker record for one symbol."""
    symbol: str
    last_price: float
    price_change_percent: float
    quote_volume: float

    @classmethod
    def from_payload(cls, payload: Dict[str, Any]) -> Optional["Ticker"]:
        """Parse a raw /ticker/24hr entry. Returns None if malformed."""
        symbol = payload.get("symbol")
        last_price = to_price(payload.get("lastPrice"))
        if not symbol or last_price is None:
            return None
        return cls(
            symbol=symbol,
            last_price=last_price,
            price_change_percent=to_price(payload.get("priceChangePercent")) or 0.0,
            quote_volume=to_price(payload.get("quoteVolume")) or 0.0,
        )


class BinanceClient:
    """
    Binance public market-data client

    Features:
    - Automatic retry logic with exponential backoff
    - Rate limiting protection
    - Connection pooling via requests.Session
    - Failures degrade to empty results
    """

    def __init__(
        self,
        base_url: str = DEFAULT_BASE_URL,
        timeout: float = 10.0,
        max_retries: int = 3,
        backoff_factor: float = 2.0,
        session: Optional[requests.Session] = None,
    ):
        """
        Initialize Binance client

        Args:
            base_url: REST API root (e.g. https://api.binance.com/api/v3)
            timeout: Per-request timeout in seconds
            max_retries: Attempts per request before giving up
            backoff_factor: Backoff multiplier between attempts
            session: Pre-built requests session (a new one if not provided)
        """
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout
        self.max_retries = max_retries
        self.backoff_factor = backoff_factor
        self.session = session or requests.Session()

        # Rate limiting
        self.last_request_time = 0.0
        self.min_request_interval = 0.1

        logger.info(f"Binance client initialized: {self.base_url}")

    def _rate_limit(self):
        """Enforce rate limiting"""
        current_time = time.time()
        time_since_last_request = current_time - self.last_request_time

        if time_since_last_request < self.min_request_interval:
            time.sleep(self.min_request_interval - time_since_last_request)

        self.last_request_time = time.time()

    @staticmethod
    def _is_retryable(error: Exception) -> bool:
        """True for errors worth another attempt (connection, timeout, 429, 5xx)."""
        if isinstance(error, (requests.ConnectionError, requests.Timeout)):
            return True
        if isinstance(error, requests.HTTPError):
            response = error.response
            status = response.status_code if response is not None else None
            return status is not None and (status == 429 or status >= 500)
        return False

    def _retry_request(self, func: Callable[[], Any]) -> Any:
        """
        Retry API request with exponential backoff

        Only transient failures are retried; a 4xx response or a malformed
        body is raised on the first attempt.

        Raises:
            requests.RequestException: If all retries fail or the error is not transient
        """
        for attempt in range(self.max_retries):
            try:
                self._rate_limit()
                return func()
            except (requests.RequestException, ValueError) as e:
                if not self._is_retryable(e):
                    logger.error(f"Request failed without retry: {e}")
                    raise
                if attempt == self.max_retries - 1:
                    logger.error(f"Request failed after {self.max_retries} attempts: {e}")
                    raise

                wait_time = self.backoff_factor ** attempt
                logger.warning(
                    f"Request failed (attempt {attempt + 1}/{self.max_retries}): {e}. "
                    f"Retrying in {wait_time}s..."
                )
                time.sleep(wait_time)

    def _get(self, path: str, params: Optional[Dict[str, Any]] = None) -> Any:
        def request():
            response = self.session.get(
                f"{self.base_url}{path}", params=params, timeout=self.timeout
            )
            response.raise_for_status()
            return response.json()

        return self._retry_request(request)

    def get_24hr_tickers(self) -> List[Dict[str, Any]]:
        """Raw 24h statistics for every symbol. Empty list on failure."""
        try:
            data = self._get("/ticker/24hr")
        except (requests.RequestException, ValueError) as e:
            logger.error(f"Error fetching 24h tickers: {e}")
            return []

        if not isinstance(data, list):
            logger.warning(f"Unexpected 24h ticker payload: {type(data).__name__}")
            return []
        return data

    def get_ticker(self, symbol: str) -> Optional[Ticker]:
        """24h ticker for a single symbol, or None if unavailable."""
        symbol = validate_symbol(symbol)
        try:
            data = self._get("/ticker/24hr", params={"symbol": symbol})
        except (requests.RequestException, ValueError) as e:
            logger.error(f"Error fetching ticker for {symbol}: {e}")
            return None

        if not isinstance(data, dict):
            return None
        return Ticker.from_payload(data)

    def get_top_gainers(
        self,
        limit: int = 5,
        quote_asset: str = "USDT",
        min_quote_volume: float = 10_000_000,
    ) -> List[Ticker]:
        """
        Top movers by 24h percentage change

        Args:
            limit: Number of symbols to return
            quote_asset: Only symbols quoted in this asset
            min_quote_volume: Liquidity floor on 24h quote volume

        Returns:
            Tickers sorted by price change percent, descending
        """
        movers = []
        for payload in self.get_24hr_tickers():
            ticker = Ticker.from_payload(payload)
            if ticker is None:
                continue
            if not ticker.symbol.endswith(quote_asset):
                continue
            if any(marker in ticker.symbol for marker in LEVERAGED_MARKERS):
                continue
            if ticker.quote_volume <= min_quote_volume:
                continue
            movers.append(ticker)

        movers.sort(key=lambda t: t.price_change_percent, reverse=True)
        return movers[:limit]

    def get_klines(self, symbol: str, interval: str = "1h", limit: int = 200) -> pd.DataFrame:
        """
        Fetch recent candles

        Args:
            symbol: Exchange symbol (e.g., 'BTCUSDT')
            interval: Candle interval (1m, 5m, 15m, 1h, 4h, 1d, ...)
            limit: Number of candles (max 1000)

        Returns:
            DataFrame indexed by open_time (UTC) with OHLCV columns.
            Empty on failure.
        """
        symbol = validate_symbol(symbol)
        params = {"symbol": symbol, "interval": interval, "limit": min(limit, 1000)}
        try:
            rows = self._get("/klines", params=params)
        except (requests.RequestException, ValueError) as e:
            logger.error(f"Error fetching klines for {symbol}: {e}")
            return pd.DataFrame()

        if not rows or not isinstance(rows, list):
            logger.warning(f"No klines returned for {symbol} {interval}")
            return pd.DataFrame()

        # Each row: [openTime, open, high, low, close, volume, closeTime, ...]
        try:
            df = pd.DataFrame([row[:len(KLINE_COLUMNS)] for row in rows], columns=KLINE_COLUMNS)
            df["open_time"] = pd.to_datetime(df["open_time"], unit="ms", utc=True)
            df["close_time"] = pd.to_datetime(df["close_time"], unit="ms", utc=True)
            for col in ["open", "high", "low", "close", "volume"]:
                df[col] = df[col].astype(float)
        except (TypeError, ValueError) as e:
            logger.error(f"Malformed kline payload for {symbol}: {e}")
            return pd.DataFrame()

        df.set_index("open_time", inplace=True)
        df.sort_index(inplace=True)

        logger.debug(f"Fetched {len(df)} candles for {symbol} ({interval})")
        return df
