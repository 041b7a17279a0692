"""Abstract market feed: live tickers and indicator series for the session."""
from abc import ABC, abstractmethod
from typing import List, Optional

from .models import IndicatorPoint
from ..data.binance_client import Ticker


class MarketFeed(ABC):
    """Abstract market-data source. Implement for each exchange."""

    @abstractmethod
    def get_top_movers(self) -> List[Ticker]:
        """Current watch list, strongest movers first. Empty if unavailable."""
        pass

    @abstractmethod
    def get_ticker(self, symbol: str) -> Optional[Ticker]:
        """Latest ticker for a symbol, or None if unavailable."""
        pass

    @abstractmethod
    def get_indicator_series(self, symbol: str) -> List[IndicatorPoint]:
        """Full enriched candle series for a symbol, oldest first.

        Regenerated on every call. Empty if unavailable.
        """
        pass
