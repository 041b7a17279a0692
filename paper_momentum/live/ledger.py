"""
Position Ledger

Owns the virtual cash balance and the open-position collection. Applies
stop-loss exits, take-profit scaling and new entries, and checks the
accounting invariants after every mutation.
"""

from dataclasses import dataclass, field
from datetime import datetime
from typing import List, Mapping, Optional, Tuple

from loguru import logger

from .models import ClosedTrade, ExitReason, LedgerInvariantError, Position
from .signal_engine import EntrySignal
from ..utils.helpers import new_position_id, utc_now

# Records bound with trade=True also go to the trade journal sink
journal = logger.bind(trade=True)

# Float slack for cash comparisons
CASH_EPSILON = 1e-9


@dataclass
class ExitResult:
    """Outcome of one exit/scaling pass."""
    closed: List[ClosedTrade] = field(default_factory=list)
    scaled: List[Tuple[Position, Position]] = field(default_factory=list)  # (before, after)


class PositionLedger:
    """
    Virtual long-only ledger for one trading session.

    Tracks:
    - Cash balance (never negative)
    - Open positions in insertion order, at most one per symbol
    - Closed trades for the current session
    """

    def __init__(
        self,
        initial_balance: float = 50.0,
        stop_loss_pct: float = 0.01,
        take_profit_pct: float = 0.01,
    ):
        """
        Initialize ledger.

        Args:
            initial_balance: Starting cash in USDT
            stop_loss_pct: Stop distance below entry (0.01 = 1%)
            take_profit_pct: Target distance above entry (0.01 = 1%)
        """
        if initial_balance <= 0:
            raise ValueError(f"initial_balance must be positive, got {initial_balance}")

        self.initial_balance = initial_balance
        self.stop_loss_pct = stop_loss_pct
        self.take_profit_pct = take_profit_pct

        self.cash_balance = initial_balance
        self.positions: Tuple[Position, ...] = ()
        self.closed_trades: List[ClosedTrade] = []

    def reset(self) -> None:
        """Back to the initial balance with no positions or history."""
        self.cash_balance = self.initial_balance
        self.positions = ()
        self.closed_trades = []

    @property
    def total_exposure(self) -> float:
        """Cash committed across open positions."""
        return sum(p.amount for p in self.positions)

    def stop_loss_for(self, entry: float) -> float:
        return entry * (1 - self.stop_loss_pct)

    def take_profit_for(self, entry: float) -> float:
        return entry * (1 + self.take_profit_pct)

    def equity(self, marks: Mapping[str, float]) -> float:
        """
        Cash plus market value of open positions.

        Args:
            marks: Last live price per symbol. A position without a mark is
                valued at its current entry price.
        """
        value = 0.0
        for position in self.positions:
            value += position.market_value(marks.get(position.symbol, position.entry_price))
        return self.cash_balance + value

    def apply_exits(
        self,
        symbol: str,
        candle_low: float,
        live_price: float,
        now: Optional[datetime] = None,
    ) -> ExitResult:
        """
        Evaluate stop-loss and take-profit for positions in ``symbol``.

        Stop-loss is checked first against the candle low and closes the
        position at the stop price. Otherwise a live price at or above the
        take-profit re-bases the position one band higher.

        Args:
            symbol: Instrument reporting the update
            candle_low: Low of the latest candle
            live_price: Latest traded price
            now: Timestamp for closed-trade records

        Returns:
            ExitResult with closed trades and (before, after) scaling pairs
        """
        now = now or utc_now()
        result = ExitResult()
        kept: List[Position] = []

        for position in self.positions:
            if position.symbol != symbol:
                kept.append(position)
                continue

            if candle_low <= position.stop_loss:
                trade = ClosedTrade(
                    position=position,
                    exit_price=position.stop_loss,
                    exit_time=now,
                    reason=ExitReason.STOP_LOSS,
                )
                self.cash_balance += trade.proceeds
                self.closed_trades.append(trade)
                result.closed.append(trade)
                journal.info(
                    f"STOP LOSS: {symbol} id={position.id} @ {position.stop_loss:.6f} "
                    f"(low={candle_low:.6f}), P&L={trade.realized_pnl:+.4f}"
                )
                continue

            if live_price >= position.take_profit:
                new_entry = position.take_profit
                scaled = position.rebased(
                    new_entry=new_entry,
                    stop_loss=self.stop_loss_for(new_entry),
                    take_profit=self.take_profit_for(new_entry),
                )
                result.scaled.append((position, scaled))
                kept.append(scaled)
                journal.info(
                    f"SCALED: {symbol} id={position.id} entry {position.entry_price:.6f} -> "
                    f"{scaled.entry_price:.6f}, SL={scaled.stop_loss:.6f}, TP={scaled.take_profit:.6f}"
                )
                continue

            kept.append(position)

        self.positions = tuple(kept)
        self.check_invariants()
        return result

    def open_position(self, signal: EntrySignal, now: Optional[datetime] = None) -> Position:
        """
        Open a position from a permitted entry signal.

        Raises:
            LedgerInvariantError: If the entry would overdraw cash or stack a
                second position on the same symbol
        """
        if self.position_for(signal.symbol) is not None:
            raise LedgerInvariantError(f"Duplicate position for {signal.symbol}")
        if signal.amount > self.cash_balance + CASH_EPSILON:
            raise LedgerInvariantError(
                f"Entry of {signal.amount:.6f} exceeds cash {self.cash_balance:.6f}"
            )

        price = signal.price
        position = Position(
            id=new_position_id(),
            symbol=signal.symbol,
            entry_price=price,
            original_entry_price=price,
            amount=signal.amount,
            quantity=signal.amount / price,
            stop_loss=self.stop_loss_for(price),
            take_profit=self.take_profit_for(price),
            opened_at=now or utc_now(),
        )
        self.cash_balance -= signal.amount
        self.positions = self.positions + (position,)

        journal.info(
            f"OPENED: {position.symbol} id={position.id} @ {price:.6f}, "
            f"amount={position.amount:.4f}, qty={position.quantity:.8f}, "
            f"SL={position.stop_loss:.6f}, TP={position.take_profit:.6f}"
        )

        self.check_invariants()
        return position

    def realize_all(self, marks: Mapping[str, float], now: Optional[datetime] = None) -> List[ClosedTrade]:
        """
        Close every open position at its own symbol's mark.

        Args:
            marks: Last live price per symbol; missing symbols exit at entry

        Returns:
            Closed trades in position order
        """
        now = now or utc_now()
        trades = []
        for position in self.positions:
            exit_price = marks.get(position.symbol, position.entry_price)
            trade = ClosedTrade(
                position=position,
                exit_price=exit_price,
                exit_time=now,
                reason=ExitReason.SESSION_STOP,
            )
            self.cash_balance += trade.proceeds
            trades.append(trade)
            journal.info(
                f"CLOSED: {position.symbol} id={position.id} @ {exit_price:.6f}, "
                f"reason=session stop, P&L={trade.realized_pnl:+.4f}"
            )

        self.closed_trades.extend(trades)
        self.positions = ()
        self.check_invariants()
        return trades

    def mark_to_market(self, marks: Mapping[str, float]) -> None:
        """Refresh each position's presentation PnL."""
        self.positions = tuple(
            p.marked(marks[p.symbol]) if p.symbol in marks else p
            for p in self.positions
        )

    def position_for(self, symbol: str) -> Optional[Position]:
        return next((p for p in self.positions if p.symbol == symbol), None)

    def realized_pnl(self) -> float:
        return sum(t.realized_pnl for t in self.closed_trades)

    def check_invariants(self) -> None:
        """
        Raises:
            LedgerInvariantError: On negative cash or duplicate symbols/ids
        """
        if self.cash_balance < -CASH_EPSILON:
            raise LedgerInvariantError(f"Negative cash balance: {self.cash_balance:.6f}")

        symbols = [p.symbol for p in self.positions]
        if len(symbols) != len(set(symbols)):
            raise LedgerInvariantError(f"More than one position per symbol: {symbols}")

        ids = [p.id for p in self.positions]
        if len(ids) != len(set(ids)):
            raise LedgerInvariantError(f"Duplicate position ids: {ids}")

    def __repr__(self) -> str:
        return (
            f"PositionLedger(cash={self.cash_balance:.2f}, "
            f"positions={len(self.positions)}, "
            f"trades={len(self.closed_trades)})"
        )
