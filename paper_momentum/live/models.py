"""Shared data types for the paper trading session.

Positions and session snapshots are immutable: every transition produces
a new value via ``dataclasses.replace`` so each intermediate state can be
inspected on its own.
"""
from dataclasses import dataclass, field, replace
from datetime import datetime
from enum import Enum
from typing import Optional, Tuple

from ..utils.helpers import utc_now


class LedgerInvariantError(RuntimeError):
    """Raised when the ledger reaches a state its contracts forbid.

    This is a programming error, not an expected runtime failure.
    """


class ExitReason(Enum):
    """Why a position left the ledger"""
    STOP_LOSS = "STOP_LOSS"
    SESSION_STOP = "SESSION_STOP"


class EventType(Enum):
    """Session state transitions published to listeners"""
    SESSION_STARTED = "session_started"
    SESSION_STOPPED = "session_stopped"
    POSITION_OPENED = "position_opened"
    POSITION_SCALED = "position_scaled"
    POSITION_CLOSED = "position_closed"


@dataclass(frozen=True)
class IndicatorPoint:
    """One enriched candle. SMAs are None during warm-up."""
    open_time: datetime
    open: float
    high: float
    low: float
    close: float
    fast_sma: Optional[float] = None
    slow_sma: Optional[float] = None

    @property
    def has_averages(self) -> bool:
        return self.fast_sma is not None and self.slow_sma is not None


@dataclass(frozen=True)
class Position:
    """A virtual long position.

    ``amount`` and ``quantity`` are fixed at creation. Entry, stop-loss and
    take-profit levels are replaced wholesale when the position scales.
    """
    id: str
    symbol: str
    entry_price: float
    original_entry_price: float
    amount: float  # USDT committed at the original entry
    quantity: float  # amount / original_entry_price
    stop_loss: float
    take_profit: float
    opened_at: datetime
    unrealized_pnl: float = 0.0

    def market_value(self, price: float) -> float:
        return self.quantity * price

    def marked(self, price: float) -> "Position":
        """Copy with the presentation PnL recomputed at ``price``."""
        return replace(self, unrealized_pnl=self.market_value(price) - self.amount)

    def rebased(self, new_entry: float, stop_loss: float, take_profit: float) -> "Position":
        """Copy with new entry/SL/TP levels. Size fields are untouched."""
        return replace(
            self,
            entry_price=new_entry,
            stop_loss=stop_loss,
            take_profit=take_profit,
        )


@dataclass(frozen=True)
class ClosedTrade:
    """Record of a realized position."""
    position: Position
    exit_price: float
    exit_time: datetime
    reason: ExitReason

    @property
    def proceeds(self) -> float:
        return self.position.quantity * self.exit_price

    @property
    def realized_pnl(self) -> float:
        return self.proceeds - self.position.amount


@dataclass(frozen=True)
class SessionState:
    """Read-only snapshot handed to observers."""
    is_active: bool = False
    started_at: Optional[datetime] = None
    cash_balance: float = 50.0
    equity: float = 50.0
    initial_balance: float = 50.0
    positions: Tuple[Position, ...] = ()

    @property
    def total_exposure(self) -> float:
        return sum(p.amount for p in self.positions)

    @property
    def session_pnl(self) -> float:
        return self.equity - self.initial_balance

    @property
    def newest_position(self) -> Optional[Position]:
        return self.positions[-1] if self.positions else None

    def position_for(self, symbol: str) -> Optional[Position]:
        return next((p for p in self.positions if p.symbol == symbol), None)

    def opened_since(self, previous: "SessionState") -> Optional[str]:
        """Symbol of the newest position if the collection grew since ``previous``."""
        if len(self.positions) > len(previous.positions):
            return self.positions[-1].symbol
        return None


@dataclass(frozen=True)
class SessionEvent:
    """Notification emitted on each session transition."""
    event_type: EventType
    state: SessionState
    position: Optional[Position] = None
    trade: Optional[ClosedTrade] = None
    timestamp: datetime = field(default_factory=utc_now)
