"""Indicator module for the paper trading engine."""

from . import indicators
from .indicators import sma, enrich_with_sma, to_indicator_points

__all__ = [
    'indicators',
    'sma',
    'enrich_with_sma',
    'to_indicator_points',
]
