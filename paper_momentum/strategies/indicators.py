"""
Technical Indicators

Vectorized moving-average enrichment for candle frames, and conversion to
the IndicatorPoint records consumed by the trading session.
"""

from typing import List, Optional

import numpy as np
import pandas as pd
from loguru import logger

from ..live.models import IndicatorPoint

OHLC_COLUMNS = ['open', 'high', 'low', 'close']


def sma(data: pd.Series, period: int) -> pd.Series:
    """
    Simple Moving Average.

    Args:
        data: Price series
        period: MA period

    Returns:
        SMA series, NaN for the first period-1 values
    """
    if period < 1:
        raise ValueError(f"SMA period must be >= 1, got {period}")
    return data.rolling(window=period, min_periods=period).mean()


def enrich_with_sma(data: pd.DataFrame, fast_period: int = 7, slow_period: int = 25) -> pd.DataFrame:
    """
    Add fast and slow SMA columns computed on close.

    Args:
        data: OHLCV DataFrame ordered by open time
        fast_period: Fast SMA period (default: 7)
        slow_period: Slow SMA period (default: 25)

    Returns:
        Copy of data with 'fast_sma' and 'slow_sma' columns
    """
    if fast_period >= slow_period:
        raise ValueError(f"fast_period ({fast_period}) must be below slow_period ({slow_period})")

    df = data.copy()
    if df.empty or 'close' not in df.columns:
        df['fast_sma'] = pd.Series(dtype=float)
        df['slow_sma'] = pd.Series(dtype=float)
        return df

    df['fast_sma'] = sma(df['close'], fast_period)
    df['slow_sma'] = sma(df['close'], slow_period)
    return df


def _optional(value) -> Optional[float]:
    if value is None or pd.isna(value):
        return None
    return float(value)


def to_indicator_points(data: pd.DataFrame) -> List[IndicatorPoint]:
    """
    Convert an enriched frame into IndicatorPoint records.

    The frame index is used as the candle open time. Frames missing OHLC or
    SMA columns yield an empty list.
    """
    required = OHLC_COLUMNS + ['fast_sma', 'slow_sma']
    missing = [col for col in required if col not in data.columns]
    if missing:
        logger.warning(f"Cannot build indicator points, missing columns: {missing}")
        return []

    df = data.sort_index()
    if not np.isfinite(df[OHLC_COLUMNS].to_numpy(dtype=float)).all():
        logger.warning("Cannot build indicator points, OHLC data contains gaps")
        return []

    points = []
    for open_time, row in df.iterrows():
        points.append(IndicatorPoint(
            open_time=pd.Timestamp(open_time).to_pydatetime(),
            open=float(row['open']),
            high=float(row['high']),
            low=float(row['low']),
            close=float(row['close']),
            fast_sma=_optional(row['fast_sma']),
            slow_sma=_optional(row['slow_sma']),
        ))
    return points
