"""Live engine: polling loop that feeds market updates into the session.

Each cycle:
- Refresh the top-mover list
- Fetch ticker + indicator series for the watched symbol and dispatch it
- Optionally refresh every other symbol holding an open position

Updates are dispatched one at a time from this loop. Switching the watched
symbol bumps a focus generation; a fetch that started under an older
generation is dropped instead of applied.
"""
import threading
import time
from typing import Callable, Dict, List, Optional

from loguru import logger

from .feed_interface import MarketFeed
from .models import EventType, SessionEvent, SessionState
from .session import TradingSession
from ..data.binance_client import Ticker


class LiveEngine:
    """Main paper trading loop."""

    def __init__(
        self,
        feed: MarketFeed,
        session: Optional[TradingSession] = None,
        poll_interval: float = 15.0,
        track_open_positions: bool = True,
        sleep: Callable[[float], None] = time.sleep,
    ):
        if poll_interval <= 0:
            raise ValueError(f"poll_interval must be positive, got {poll_interval}")

        self.feed = feed
        self.session = session or TradingSession()
        self.poll_interval = poll_interval
        self.track_open_positions = track_open_positions
        self._sleep = sleep

        self.movers: List[Ticker] = []
        self.watched_symbol: Optional[str] = None
        self._focus_generation = 0
        self._focus_lock = threading.Lock()

        self.running = False
        self.cycles = 0
        self.stale_updates_dropped = 0

        self.session.subscribe(self._on_session_event)

    # --- Commands ---

    def start_session(self) -> SessionState:
        return self.session.start()

    def stop_session(self) -> SessionState:
        return self.session.stop()

    def select_symbol(self, symbol: str) -> None:
        """Change the watched symbol. In-flight fetches for the old one become stale."""
        with self._focus_lock:
            if symbol == self.watched_symbol:
                return
            previous = self.watched_symbol
            self.watched_symbol = symbol
            self._focus_generation += 1
        logger.info(f"Watching {symbol} (was {previous})")

    def stop(self):
        """Signal the loop to stop after the current cycle."""
        self.running = False

    # --- Loop ---

    def run(self, max_cycles: Optional[int] = None) -> None:
        """
        Poll until stopped or until max_cycles have run. The session is
        stopped (all positions realized) when the loop exits.
        """
        logger.info(f"Live engine running: poll={self.poll_interval}s, "
                    f"track_open_positions={self.track_open_positions}")
        self.running = True
        try:
            while self.running:
                self.tick()
                if max_cycles is not None and self.cycles >= max_cycles:
                    break
                self._sleep(self.poll_interval)
        except KeyboardInterrupt:
            logger.info("Keyboard interrupt received")
        finally:
            self.running = False
            if self.session.is_active:
                self.session.stop()
            logger.info("Live engine stopped")

    def tick(self) -> SessionState:
        """Run one polling cycle and return the resulting snapshot."""
        self.cycles += 1

        movers = self.feed.get_top_movers()
        if movers:
            self.movers = movers
        else:
            logger.warning("No movers returned, keeping previous list")

        if self.watched_symbol is None and self.movers:
            self.select_symbol(self.movers[0].symbol)

        updated = set()
        watched = self.watched_symbol
        if watched is not None:
            self._dispatch_watched()
            updated.add(watched)

        if self.track_open_positions:
            for position in self.session.state.positions:
                if position.symbol in updated:
                    continue
                self._dispatch(position.symbol)
                updated.add(position.symbol)

        return self.session.state

    # --- Internal helpers ---

    def _dispatch_watched(self) -> None:
        with self._focus_lock:
            symbol = self.watched_symbol
            generation = self._focus_generation

        fetched = self._fetch(symbol)
        if fetched is None:
            return

        if generation != self._focus_generation:
            self.stale_updates_dropped += 1
            logger.info(f"{symbol}: focus changed during fetch, dropping stale update")
            return

        ticker, series = fetched
        self.session.on_market_update(symbol, ticker.last_price, series)

    def _dispatch(self, symbol: str) -> None:
        fetched = self._fetch(symbol)
        if fetched is None:
            return
        ticker, series = fetched
        self.session.on_market_update(symbol, ticker.last_price, series)

    def _fetch(self, symbol: str):
        ticker = self.feed.get_ticker(symbol)
        if ticker is None:
            logger.debug(f"{symbol}: no ticker this cycle")
            return None
        series = self.feed.get_indicator_series(symbol)
        if not series:
            logger.debug(f"{symbol}: no indicator data this cycle")
            return None
        return ticker, series

    def _on_session_event(self, event: SessionEvent) -> None:
        if event.event_type == EventType.POSITION_OPENED and event.position is not None:
            self.select_symbol(event.position.symbol)

    def status(self) -> Dict:
        """Return current engine status."""
        status = self.session.summary()
        status.update({
            'running': self.running,
            'cycles': self.cycles,
            'watched_symbol': self.watched_symbol,
            'movers': [t.symbol for t in self.movers],
            'positions_by_symbol': {p.symbol: p.amount for p in self.session.state.positions},
            'stale_updates_dropped': self.stale_updates_dropped,
        })
        return status
