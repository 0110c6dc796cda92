"""Rolling-return statistics over a historical price series."""

from __future__ import annotations

import math
from datetime import datetime, timezone
from typing import List, Optional, Sequence

from backend.core.market_data import points_per_year
from backend.domain.errors import InsufficientDataError, NoValidReturnsError
from backend.domain.market import HistoricalSeries, ReturnStatistics

# Annualized returns outside this open interval are treated as data errors
# (splits, bad ticks). Legitimate extreme periods are dropped along with them.
MIN_PLAUSIBLE_RETURN = -50.0
MAX_PLAUSIBLE_RETURN = 100.0


def rolling_returns(prices: Sequence[float], window: int, rolling_years: int) -> List[float]:
    """
    Annualized percentage returns between every pair of prices `window` steps apart.

    Pairs with a non-positive price are skipped and results outside
    (MIN_PLAUSIBLE_RETURN, MAX_PLAUSIBLE_RETURN) are discarded.
    """
    returns: List[float] = []
    for i in range(window, len(prices)):
        start_price = prices[i - window]
        end_price = prices[i]
        if start_price <= 0 or end_price <= 0:
            continue

        annualized = ((end_price / start_price) ** (1.0 / rolling_years) - 1) * 100
        if MIN_PLAUSIBLE_RETURN < annualized < MAX_PLAUSIBLE_RETURN:
            returns.append(annualized)
    return returns


def percentile(sorted_values: Sequence[float], p: float) -> float:
    """p-th percentile of an ascending sequence, linearly interpolated between ranks."""
    if not sorted_values:
        return 0.0

    index = (p / 100.0) * (len(sorted_values) - 1)
    lower = int(math.floor(index))
    upper = int(math.ceil(index))
    if lower == upper or upper >= len(sorted_values):
        return sorted_values[lower]

    weight = index - lower
    return sorted_values[lower] * (1 - weight) + sorted_values[upper] * weight


def standard_deviation(values: Sequence[float]) -> float:
    """Population standard deviation (divides by n, not n - 1)."""
    if not values:
        return 0.0
    mean = sum(values) / len(values)
    variance = sum((value - mean) ** 2 for value in values) / len(values)
    return math.sqrt(variance)


def calculate_statistics(
    series: HistoricalSeries,
    rolling_years: int,
    now: Optional[datetime] = None,
) -> ReturnStatistics:
    """
    Build return statistics for `series` using `rolling_years`-long windows.

    Raises InsufficientDataError when the series is shorter than one window,
    and NoValidReturnsError when every window was skipped or filtered out.
    """
    per_year = points_per_year(series.interval)
    window = rolling_years * per_year
    points = series.points

    if len(points) < window:
        raise InsufficientDataError(
            required=window,
            available=len(points),
            rolling_years=rolling_years,
            interval=series.interval,
        )

    returns = rolling_returns([point.adj_close for point in points], window, rolling_years)
    if not returns:
        raise NoValidReturnsError(f"no valid rolling returns calculated for {series.symbol}")

    ordered = sorted(returns)
    return ReturnStatistics(
        symbol=series.symbol,
        total_years=len(points) / per_year,
        rolling_years=rolling_years,
        median_return=percentile(ordered, 50),
        percentile5_return=percentile(ordered, 5),
        percentile95_return=percentile(ordered, 95),
        standard_deviation=standard_deviation(returns),
        data_start=points[0].date,
        data_end=points[-1].date,
        calculated_at=now or datetime.now(timezone.utc),
        rolling_returns=tuple(returns),
    )
