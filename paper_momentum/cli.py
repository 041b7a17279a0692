"""Command-line entry point for the paper trading engine.

Usage:
    # Paper trade the top movers, polling every 15 seconds
    paper-momentum

    # Start focused on a specific symbol, stop after 20 cycles
    paper-momentum --symbol SOLUSDT --cycles 20

    # Only evaluate the watched symbol each cycle
    paper-momentum --no-track

    # Print the current top movers and exit
    paper-momentum --list-movers
"""
import argparse
from typing import List, Optional

from loguru import logger

from .data.binance_client import BinanceClient
from .live.binance_feed import BinanceMarketFeed
from .live.live_engine import LiveEngine
from .live.session import TradingSession
from .live.signal_engine import SignalEngine
from .utils.config import Config, get_config
from .utils.helpers import format_currency, format_percentage, format_signed, validate_symbol
from .utils.logger import setup_logger


def build_engine(config: Config, track_open_positions: Optional[bool] = None) -> LiveEngine:
    """Wire client, feed, session and engine from configuration."""
    client = BinanceClient(base_url=config.binance_base_url, timeout=config.request_timeout)
    feed = BinanceMarketFeed(
        client=client,
        interval=config.kline_interval,
        kline_limit=config.kline_limit,
        fast_period=config.fast_period,
        slow_period=config.slow_period,
        top_n=config.top_n,
        quote_asset=config.quote_asset,
        min_quote_volume=config.min_quote_volume,
    )
    session = TradingSession(
        signal_engine=SignalEngine(
            max_exposure_pct=config.max_exposure_pct,
            size_base=config.size_base,
            size_multiplier=config.size_multiplier,
            min_trade_amount=config.min_trade_amount,
        ),
        initial_balance=config.initial_balance,
        stop_loss_pct=config.stop_loss_pct,
        take_profit_pct=config.take_profit_pct,
    )
    if track_open_positions is None:
        track_open_positions = config.track_open_positions
    return LiveEngine(
        feed=feed,
        session=session,
        poll_interval=config.poll_interval,
        track_open_positions=track_open_positions,
    )


def list_movers(engine: LiveEngine):
    movers = engine.feed.get_top_movers()
    if not movers:
        print("No movers available (market data unreachable?)")
        return
    print(f"\n{'Symbol':<14} {'Last':>14} {'24h %':>9} {'Quote Vol':>18}")
    print("-" * 58)
    for t in movers:
        print(f"{t.symbol:<14} {t.last_price:>14.6f} {t.price_change_percent:>8.2f}% "
              f"{t.quote_volume:>18,.0f}")


def print_summary(engine: LiveEngine):
    status = engine.status()
    print("\nSession Summary:")
    print(f"  Duration:      {status['duration']}")
    print(f"  Cash:          {format_currency(status['cash_balance'])}")
    print(f"  Equity:        {format_currency(status['equity'])}")
    print(f"  Session P&L:   {format_signed(status['session_pnl'])} "
          f"({format_percentage(status['session_pnl_pct'])})")
    print(f"  Closed trades: {status['closed_trades']}")
    print(f"  Cycles:        {status['cycles']}")


def main(argv: Optional[List[str]] = None):
    parser = argparse.ArgumentParser(description='Paper momentum trading engine')
    parser.add_argument('--symbol', type=str, default=None,
                        help='Symbol to watch first (default: top mover)')
    parser.add_argument('--cycles', type=int, default=None,
                        help='Stop after this many polling cycles (default: run until Ctrl+C)')
    parser.add_argument('--interval', type=float, default=None,
                        help='Seconds between cycles (default: from config)')
    parser.add_argument('--no-track', action='store_true',
                        help='Only evaluate the watched symbol each cycle')
    parser.add_argument('--list-movers', action='store_true',
                        help='Print the current top movers and exit')
    parser.add_argument('--log-level', type=str, default=None,
                        help='Override the configured log level')

    args = parser.parse_args(argv)

    config = get_config()
    try:
        config.validate()
    except ValueError as exc:
        parser.error(f"invalid configuration: {exc}")
    setup_logger(level=args.log_level)

    engine = build_engine(config, track_open_positions=False if args.no_track else None)
    if args.interval is not None:
        if args.interval <= 0:
            parser.error("--interval must be positive")
        engine.poll_interval = args.interval

    if args.list_movers:
        list_movers(engine)
        return

    if args.symbol:
        engine.select_symbol(validate_symbol(args.symbol))

    logger.info("=" * 60)
    logger.info("PAPER MOMENTUM - LIVE SESSION")
    logger.info("=" * 60)
    logger.info(f"Initial balance: {config.initial_balance} USDT")
    logger.info(f"SMA: fast={config.fast_period}, slow={config.slow_period}, "
                f"interval={config.kline_interval}")

    print("Press Ctrl+C to stop\n")
    engine.start_session()
    engine.run(max_cycles=args.cycles)
    print_summary(engine)


if __name__ == '__main__':
    main()
