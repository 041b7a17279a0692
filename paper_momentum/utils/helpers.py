"""
Helper utilities for the paper trading engine
"""

import math
import uuid
from datetime import datetime, timedelta, timezone
from typing import Any, Optional


def format_currency(amount: float, currency: str = "USDT") -> str:
    """Format amount as currency"""
    if currency == "USD":
        return f"${amount:,.2f}"
    return f"{amount:,.2f} {currency}"


def format_percentage(value: float, decimals: int = 2) -> str:
    """Format value as percentage"""
    return f"{value * 100:.{decimals}f}%"


def format_signed(value: float, decimals: int = 2) -> str:
    """Format a PnL figure with an explicit sign for gains"""
    sign = "+" if value >= 0 else ""
    return f"{sign}{value:.{decimals}f}"


def utc_now() -> datetime:
    """Get current UTC time"""
    return datetime.now(timezone.utc)


def format_duration(td: Optional[timedelta]) -> str:
    """Format elapsed time as HH:MM:SS (hours are not wrapped at 24)"""
    if td is None:
        return "00:00:00"
    total = max(int(td.total_seconds()), 0)
    hours = total // 3600
    minutes = (total % 3600) // 60
    seconds = total % 60
    return f"{hours:02d}:{minutes:02d}:{seconds:02d}"


def new_position_id() -> str:
    """Short opaque identifier for a virtual position"""
    return uuid.uuid4().hex[:12]


def validate_symbol(symbol: str) -> str:
    """
    Validate and normalize an exchange symbol

    Args:
        symbol: Trading pair (e.g., "btcusdt", "BTC/USDT", "BTC-USDT")

    Returns:
        Normalized exchange format (e.g., "BTCUSDT")
    """
    symbol = symbol.replace("/", "").replace("-", "").replace("_", "").strip().upper()

    if not symbol.isalnum():
        raise ValueError(f"Invalid symbol format: {symbol!r}")

    return symbol


def to_price(value: Any) -> Optional[float]:
    """Parse an exchange price field. Returns None for missing or non-finite values."""
    if value is None:
        return None
    try:
        price = float(value)
    except (TypeError, ValueError):
        return None
    if not math.isfinite(price):
        return None
    return price
