"""Signal engine: decides whether a new long entry is allowed this cycle.

Stateless. Takes the two most recent indicator points, the live price and
the ledger's current figures, and returns an entry size or nothing. It
never touches positions or balances.
"""
from dataclasses import dataclass
from typing import Optional, Sequence

from loguru import logger

from .models import IndicatorPoint, Position


@dataclass(frozen=True)
class EntrySignal:
    """A permitted entry and its sizing."""
    symbol: str
    price: float
    amount: float
    spread: float
    spread_pct: float


class SignalEngine:
    """Dual-SMA momentum entry rules.

    Entry requires the fast SMA above the slow SMA, the live price above the
    slow SMA and the fast SMA rising versus the previous candle. Size is
    proportional to the SMA spread and capped by cash and by the exposure
    limit.

    Parameters:
        max_exposure_pct: share of equity that may be committed at once
        size_base: notional scale for spread-proportional sizing
        size_multiplier: multiplier applied to the spread percentage
        min_trade_amount: entries at or below this size are dropped as dust
    """

    def __init__(
        self,
        max_exposure_pct: float = 0.8,
        size_base: float = 50.0,
        size_multiplier: float = 10.0,
        min_trade_amount: float = 1.0,
    ):
        if not 0 < max_exposure_pct <= 1:
            raise ValueError(f"max_exposure_pct must be in (0, 1], got {max_exposure_pct}")
        self.max_exposure_pct = max_exposure_pct
        self.size_base = size_base
        self.size_multiplier = size_multiplier
        self.min_trade_amount = min_trade_amount

    def check_entry(
        self,
        symbol: str,
        curr: IndicatorPoint,
        prev: Optional[IndicatorPoint],
        live_price: float,
        equity: float,
        available_cash: float,
        open_positions: Sequence[Position],
    ) -> Optional[EntrySignal]:
        """Return an EntrySignal if every entry rule holds, None otherwise."""
        if not curr.has_averages:
            return None
        fast, slow = curr.fast_sma, curr.slow_sma

        spread = fast - slow
        if spread <= 0:
            return None
        if live_price <= slow:
            return None

        # Warm-up candles have no previous fast SMA and never qualify
        if prev is None or prev.fast_sma is None or fast <= prev.fast_sma:
            return None

        total_exposure = sum(p.amount for p in open_positions)
        max_exposure = self.max_exposure_pct * equity
        if total_exposure >= max_exposure:
            logger.debug(f"{symbol}: exposure {total_exposure:.2f} at cap {max_exposure:.2f}")
            return None

        if any(p.symbol == symbol for p in open_positions):
            return None

        spread_pct = spread / live_price
        amount = min(
            available_cash,
            max_exposure - total_exposure,
            self.size_base * spread_pct * self.size_multiplier,
        )
        if amount <= self.min_trade_amount:
            logger.debug(f"{symbol}: proposed size {amount:.4f} below dust threshold")
            return None

        return EntrySignal(
            symbol=symbol,
            price=live_price,
            amount=amount,
            spread=spread,
            spread_pct=spread_pct,
        )
