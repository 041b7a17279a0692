# tests/test_helpers.py
from __future__ import annotations

from datetime import timedelta

import pytest

from paper_momentum.utils.helpers import (
    format_currency,
    format_duration,
    format_percentage,
    format_signed,
    new_position_id,
    to_price,
    validate_symbol,
)


def test_format_duration():
    assert format_duration(None) == "00:00:00"
    assert format_duration(timedelta(seconds=59)) == "00:00:59"
    assert format_duration(timedelta(hours=26, minutes=3, seconds=4)) == "26:03:04"
    assert format_duration(timedelta(seconds=-5)) == "00:00:00"


def test_formatting():
    assert format_currency(1234.5) == "1,234.50 USDT"
    assert format_currency(12.0, "USD") == "$12.00"
    assert format_percentage(0.0062) == "0.62%"
    assert format_signed(0.31) == "+0.31"
    assert format_signed(-1.2) == "-1.20"


def test_validate_symbol():
    assert validate_symbol("btc/usdt") == "BTCUSDT"
    assert validate_symbol("ETH-USDT") == "ETHUSDT"
    with pytest.raises(ValueError):
        validate_symbol("BTC USDT")


def test_to_price():
    assert to_price("1.25") == 1.25
    assert to_price(None) is None
    assert to_price("abc") is None
    assert to_price("inf") is None


def test_position_ids_are_unique():
    ids = {new_position_id() for _ in range(1000)}
    assert len(ids) == 1000
