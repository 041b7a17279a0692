"""Market data clients."""

from .binance_client import BinanceClient, Ticker

__all__ = [
    'BinanceClient',
    'Ticker',
]
