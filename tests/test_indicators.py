# tests/test_indicators.py
from __future__ import annotations

import numpy as np
import pandas as pd
import pytest

from paper_momentum.strategies.indicators import enrich_with_sma, sma, to_indicator_points


def _candles(closes) -> pd.DataFrame:
    index = pd.date_range("2025-01-01", periods=len(closes), freq="h", tz="UTC", name="open_time")
    closes = np.asarray(closes, dtype=float)
    return pd.DataFrame(
        {
            "open": closes,
            "high": closes + 1,
            "low": closes - 1,
            "close": closes,
            "volume": 1.0,
        },
        index=index,
    )


def test_sma_warm_up_is_nan():
    result = sma(pd.Series([1.0, 2.0, 3.0, 4.0]), 3)
    assert result.iloc[:2].isna().all()
    assert result.iloc[2] == pytest.approx(2.0)
    assert result.iloc[3] == pytest.approx(3.0)


def test_enrich_with_sma_defaults():
    df = enrich_with_sma(_candles(range(1, 31)))

    assert df["fast_sma"].iloc[:6].isna().all()
    assert df["fast_sma"].iloc[6] == pytest.approx(4.0)  # mean(1..7)
    assert df["slow_sma"].iloc[:24].isna().all()
    assert df["slow_sma"].iloc[24] == pytest.approx(13.0)  # mean(1..25)
    assert df["slow_sma"].iloc[-1] == pytest.approx(18.0)  # mean(6..30)


def test_enrich_does_not_mutate_input():
    candles = _candles(range(10))
    enrich_with_sma(candles, 2, 3)
    assert "fast_sma" not in candles.columns


def test_enrich_rejects_inverted_periods():
    with pytest.raises(ValueError):
        enrich_with_sma(_candles(range(10)), 25, 7)


def test_to_indicator_points_maps_nan_to_none():
    points = to_indicator_points(enrich_with_sma(_candles(range(1, 6)), 2, 3))

    assert len(points) == 5
    assert points[0].fast_sma is None and points[0].slow_sma is None
    assert points[1].fast_sma == pytest.approx(1.5) and points[1].slow_sma is None
    assert points[2].has_averages
    assert points[-1].low == pytest.approx(4.0)
    assert points[0].open_time < points[-1].open_time


def test_to_indicator_points_sorts_by_open_time():
    df = enrich_with_sma(_candles(range(1, 6)), 2, 3).iloc[::-1]
    points = to_indicator_points(df)
    assert [p.close for p in points] == [1.0, 2.0, 3.0, 4.0, 5.0]


def test_malformed_frames_yield_no_points():
    assert to_indicator_points(pd.DataFrame()) == []
    assert to_indicator_points(_candles(range(5))) == []  # not enriched

    broken = enrich_with_sma(_candles(range(1, 6)), 2, 3)
    broken.iloc[2, broken.columns.get_loc("low")] = np.nan
    assert to_indicator_points(broken) == []


def test_empty_frame_enrichment():
    df = enrich_with_sma(pd.DataFrame())
    assert to_indicator_points(df) == []
