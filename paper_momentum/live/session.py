"""Trading session: start/stop lifecycle around the position ledger.

All state changes go through one lock, so market updates arriving from
different polling paths are applied strictly one at a time. Observers get
immutable SessionState snapshots and SessionEvent notifications.
"""
import math
import threading
from datetime import datetime, timedelta
from typing import Callable, Dict, List, Mapping, Optional, Sequence

from loguru import logger

from .ledger import PositionLedger
from .models import (
    ClosedTrade,
    EventType,
    IndicatorPoint,
    Position,
    SessionEvent,
    SessionState,
)
from .signal_engine import SignalEngine
from ..utils.helpers import format_duration, utc_now

INITIAL_BALANCE = 50.0

SessionListener = Callable[[SessionEvent], None]


class TradingSession:
    """Paper trading session state machine (Inactive <-> Active)."""

    def __init__(
        self,
        signal_engine: Optional[SignalEngine] = None,
        initial_balance: float = INITIAL_BALANCE,
        stop_loss_pct: float = 0.01,
        take_profit_pct: float = 0.01,
        clock: Callable[[], datetime] = utc_now,
    ):
        self.signal_engine = signal_engine or SignalEngine()
        self.ledger = PositionLedger(
            initial_balance=initial_balance,
            stop_loss_pct=stop_loss_pct,
            take_profit_pct=take_profit_pct,
        )
        self.clock = clock

        self._lock = threading.RLock()
        self._listeners: List[SessionListener] = []
        self._marks: Dict[str, float] = {}
        self._active = False
        self._started_at: Optional[datetime] = None
        self._state = self._build_state()

    # --- Observers ---

    @property
    def state(self) -> SessionState:
        """Latest published snapshot."""
        return self._state

    @property
    def is_active(self) -> bool:
        with self._lock:
            return self._active

    @property
    def closed_trades(self) -> List[ClosedTrade]:
        with self._lock:
            return list(self.ledger.closed_trades)

    def subscribe(self, listener: SessionListener) -> None:
        with self._lock:
            if listener not in self._listeners:
                self._listeners.append(listener)

    def unsubscribe(self, listener: SessionListener) -> None:
        with self._lock:
            if listener in self._listeners:
                self._listeners.remove(listener)

    # --- Commands ---

    def start(self) -> SessionState:
        """Begin a fresh session. Ignored if already active."""
        with self._lock:
            if self._active:
                logger.warning("start() ignored: session already active")
                return self._state

            self.ledger.reset()
            self._marks = {}
            self._active = True
            self._started_at = self.clock()
            self._publish_state()

            logger.info(f"Session started: balance={self.ledger.initial_balance:.2f} USDT")
            self._emit(SessionEvent(EventType.SESSION_STARTED, self._state))
            return self._state

    def stop(self, prices: Optional[Mapping[str, float]] = None) -> SessionState:
        """
        Realize every open position and end the session. Ignored if inactive.

        Args:
            prices: Optional exit prices per symbol; override the last marks
        """
        with self._lock:
            if not self._active:
                logger.warning("stop() ignored: session not active")
                return self._state

            if prices:
                for symbol, price in prices.items():
                    if self._valid_price(price):
                        self._marks[symbol] = float(price)

            trades = self.ledger.realize_all(self._marks, now=self.clock())
            self._active = False
            self._started_at = None
            self._publish_state()

            logger.info(
                f"Session stopped: cash={self.ledger.cash_balance:.2f} USDT, "
                f"closed {len(trades)} positions, "
                f"session P&L={self._state.session_pnl:+.4f}"
            )
            for trade in trades:
                self._emit(SessionEvent(EventType.POSITION_CLOSED, self._state,
                                        position=trade.position, trade=trade))
            self._emit(SessionEvent(EventType.SESSION_STOPPED, self._state))
            return self._state

    def on_market_update(
        self,
        symbol: str,
        live_price: float,
        series: Sequence[IndicatorPoint],
    ) -> SessionState:
        """
        Run one evaluation cycle for ``symbol``.

        Exits and scaling are applied first, then a possible new entry, then
        equity and per-position PnL are refreshed. Missing or warm-up data
        leaves the previous snapshot untouched.

        Returns:
            The snapshot after this cycle (unchanged on a no-op)
        """
        with self._lock:
            if not self._active:
                return self._state
            if not self._valid_price(live_price):
                logger.debug(f"{symbol}: no usable live price ({live_price!r}), skipping cycle")
                return self._state
            if not series:
                logger.debug(f"{symbol}: empty indicator series, skipping cycle")
                return self._state

            curr = series[-1]
            prev = series[-2] if len(series) > 1 else None
            if not curr.has_averages:
                logger.debug(f"{symbol}: indicators still warming up, skipping cycle")
                return self._state

            live_price = float(live_price)
            now = self.clock()
            self._marks[symbol] = live_price

            exits = self.ledger.apply_exits(symbol, curr.low, live_price, now=now)

            signal = self.signal_engine.check_entry(
                symbol=symbol,
                curr=curr,
                prev=prev,
                live_price=live_price,
                equity=self.ledger.equity(self._marks),
                available_cash=self.ledger.cash_balance,
                open_positions=self.ledger.positions,
            )
            opened: Optional[Position] = None
            if signal is not None:
                opened = self.ledger.open_position(signal, now=now)

            self._publish_state()

            for trade in exits.closed:
                self._emit(SessionEvent(EventType.POSITION_CLOSED, self._state,
                                        position=trade.position, trade=trade))
            for _, scaled in exits.scaled:
                self._emit(SessionEvent(EventType.POSITION_SCALED, self._state,
                                        position=self._state.position_for(scaled.symbol)))
            if opened is not None:
                self._emit(SessionEvent(EventType.POSITION_OPENED, self._state,
                                        position=self._state.position_for(opened.symbol)))
            return self._state

    # --- Reporting ---

    def elapsed(self) -> Optional[timedelta]:
        with self._lock:
            if self._started_at is None:
                return None
            return self.clock() - self._started_at

    def summary(self) -> Dict:
        """Session figures as shown on a status panel."""
        with self._lock:
            state = self._state
            pnl_pct = state.session_pnl / state.initial_balance if state.initial_balance else 0.0
            return {
                'active': state.is_active,
                'duration': format_duration(self.elapsed()),
                'cash_balance': state.cash_balance,
                'equity': state.equity,
                'session_pnl': state.session_pnl,
                'session_pnl_pct': pnl_pct,
                'exposure': state.total_exposure,
                'open_positions': len(state.positions),
                'closed_trades': len(self.ledger.closed_trades),
                'realized_pnl': self.ledger.realized_pnl(),
            }

    # --- Internal helpers ---

    @staticmethod
    def _valid_price(price) -> bool:
        try:
            value = float(price)
        except (TypeError, ValueError):
            return False
        return math.isfinite(value) and value > 0

    def _build_state(self) -> SessionState:
        return SessionState(
            is_active=self._active,
            started_at=self._started_at,
            cash_balance=self.ledger.cash_balance,
            equity=self.ledger.equity(self._marks),
            initial_balance=self.ledger.initial_balance,
            positions=self.ledger.positions,
        )

    def _publish_state(self) -> None:
        self.ledger.mark_to_market(self._marks)
        self._state = self._build_state()

    def _emit(self, event: SessionEvent) -> None:
        for listener in list(self._listeners):
            try:
                listener(event)
            except Exception as e:
                logger.exception(f"Session listener failed on {event.event_type.value}: {e}")
