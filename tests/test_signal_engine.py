# tests/test_signal_engine.py
from __future__ import annotations

import pytest

from conftest import T0, point
from paper_momentum.live.models import Position
from paper_momentum.live.signal_engine import SignalEngine


def _position(symbol="ETHUSDT", amount=10.0, price=100.0) -> Position:
    return Position(
        id="p1", symbol=symbol, entry_price=price, original_entry_price=price,
        amount=amount, quantity=amount / price, stop_loss=price * 0.99,
        take_profit=price * 1.01, opened_at=T0,
    )


def _check(engine=None, curr=None, prev=None, price=110.0, equity=50.0, cash=50.0, positions=()):
    engine = engine or SignalEngine()
    return engine.check_entry(
        symbol="BTCUSDT",
        curr=curr or point(fast=105.0, slow=100.0),
        prev=prev if prev is not None else point(fast=100.0, slow=99.0),
        live_price=price,
        equity=equity,
        available_cash=cash,
        open_positions=list(positions),
    )


def test_entry_sized_by_spread():
    # spread 5, spread_pct 5/110, size = min(50, 40, 50 * 0.04545 * 10 = 22.73)
    signal = _check()
    assert signal is not None
    assert signal.symbol == "BTCUSDT"
    assert signal.price == 110.0
    assert signal.spread == pytest.approx(5.0)
    assert signal.spread_pct == pytest.approx(5 / 110)
    assert signal.amount == pytest.approx(50 * (5 / 110) * 10)


def test_no_entry_when_fast_not_above_slow():
    assert _check(curr=point(fast=100.0, slow=100.0)) is None
    assert _check(curr=point(fast=99.0, slow=100.0)) is None


def test_no_entry_when_price_not_above_slow():
    assert _check(price=100.0) is None
    assert _check(price=95.0) is None


def test_slope_filter_requires_rising_fast_sma():
    assert _check(prev=point(fast=105.0, slow=99.0)) is None
    assert _check(prev=point(fast=106.0, slow=99.0)) is None


def test_warm_up_previous_point_never_qualifies():
    assert _check(prev=point(fast=None, slow=None)) is None
    engine = SignalEngine()
    signal = engine.check_entry(
        symbol="BTCUSDT", curr=point(fast=105.0, slow=100.0), prev=None,
        live_price=110.0, equity=50.0, available_cash=50.0, open_positions=[],
    )
    assert signal is None


def test_missing_current_averages():
    assert _check(curr=point(fast=105.0, slow=None)) is None
    assert _check(curr=point(fast=None, slow=100.0)) is None


def test_exposure_cap_blocks_and_limits_size():
    # 40 committed of a 50 equity: cap of 40 reached
    assert _check(cash=10.0, positions=[_position(amount=40.0)]) is None

    # 30 committed: only 10 of headroom remains
    signal = _check(cash=20.0, positions=[_position(amount=30.0)])
    assert signal is not None
    assert signal.amount == pytest.approx(10.0)


def test_size_capped_by_available_cash():
    signal = _check(cash=5.0, equity=50.0)
    assert signal is not None
    assert signal.amount == pytest.approx(5.0)


def test_one_position_per_symbol():
    assert _check(positions=[_position(symbol="BTCUSDT", amount=5.0)]) is None
    assert _check(positions=[_position(symbol="ETHUSDT", amount=5.0)]) is not None


def test_dust_entries_are_dropped():
    # spread 0.1 on price 110: 50 * 0.000909 * 10 = 0.45
    assert _check(curr=point(fast=100.1, slow=100.0), prev=point(fast=100.0, slow=99.0)) is None
    assert _check(cash=1.0) is None


def test_custom_parameters():
    engine = SignalEngine(max_exposure_pct=0.5, size_base=100.0, size_multiplier=20.0)
    signal = _check(engine=engine)
    # min(50, 25, 100 * 0.04545 * 20 = 90.9)
    assert signal.amount == pytest.approx(25.0)


def test_invalid_exposure_pct():
    with pytest.raises(ValueError):
        SignalEngine(max_exposure_pct=0)
    with pytest.raises(ValueError):
        SignalEngine(max_exposure_pct=1.5)
