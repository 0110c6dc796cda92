from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from typing import List, Tuple


@dataclass(frozen=True)
class PricePoint:
    date: datetime
    open: float
    high: float
    low: float
    close: float
    adj_close: float
    volume: int


@dataclass(frozen=True)
class HistoricalSeries:
    symbol: str
    currency: str
    interval: str  # "1d", "1wk", "1mo", "3mo"
    points: Tuple[PricePoint, ...]
    fetched_at: datetime


@dataclass(frozen=True)
class ReturnStatistics:
    symbol: str
    total_years: float
    rolling_years: int
    median_return: float
    percentile5_return: float
    percentile95_return: float
    standard_deviation: float
    data_start: datetime
    data_end: datetime
    calculated_at: datetime
    rolling_returns: Tuple[float, ...] = field(default=(), repr=False)


@dataclass(frozen=True)
class SupportedIndex:
    symbol: str
    name: str
    description: str


DEFAULT_SUPPORTED_INDEXES: List[SupportedIndex] = [
    SupportedIndex(symbol="SPY", name="S&P 500", description="500 largest US companies"),
    SupportedIndex(
        symbol="QQQ",
        name="NASDAQ 100",
        description="100 largest non-financial NASDAQ companies",
    ),
    SupportedIndex(
        symbol="EFA",
        name="MSCI EAFE",
        description="Developed markets excluding US & Canada",
    ),
]


@dataclass(frozen=True)
class IndexInfo:
    """
    One cache entry: display metadata plus the statistics rounded for display.

    pessimistic/optimistic are the 5th/95th percentile rolling returns.
    """

    symbol: str
    name: str
    description: str
    median_return: float
    pessimistic_return: float
    optimistic_return: float
    standard_deviation: float
    data_years: float
    data_start_date: str
    rolling_period_years: int
    loaded_at: datetime
    statistics: ReturnStatistics = field(repr=False, compare=False)
