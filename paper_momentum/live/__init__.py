"""Paper trading engine.

Modules:
- models: Shared data types (positions, snapshots, events)
- signal_engine: Entry rules and sizing
- ledger: Virtual cash and position bookkeeping
- session: Start/stop state machine around the ledger
- feed_interface: Abstract market-data source
- binance_feed: Binance-backed market feed
- live_engine: Polling loop
"""
from .models import (
    IndicatorPoint, Position, ClosedTrade, SessionState, SessionEvent,
    EventType, ExitReason, LedgerInvariantError,
)
from .signal_engine import SignalEngine, EntrySignal
from .ledger import PositionLedger, ExitResult
from .session import TradingSession, INITIAL_BALANCE
from .feed_interface import MarketFeed
from .live_engine import LiveEngine

__all__ = [
    'IndicatorPoint', 'Position', 'ClosedTrade', 'SessionState', 'SessionEvent',
    'EventType', 'ExitReason', 'LedgerInvariantError',
    'SignalEngine', 'EntrySignal',
    'PositionLedger', 'ExitResult',
    'TradingSession', 'INITIAL_BALANCE',
    'MarketFeed', 'LiveEngine',
]
