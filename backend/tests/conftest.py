from __future__ import annotations

import math
import threading
from datetime import datetime, timedelta, timezone
from typing import Dict, List, Optional, Union

import pytest
from flask.testing import FlaskClient

from backend.app import create_app
from backend.config import Settings
from backend.core.index_cache import IndexStatisticsCache
from backend.domain.market import HistoricalSeries, IndexInfo, PricePoint, ReturnStatistics

NOW = datetime(2025, 6, 15, 12, 0, tzinfo=timezone.utc)


def make_series(
    prices: List[float],
    symbol: str = "TEST",
    interval: str = "1mo",
    start: datetime = datetime(1990, 1, 1, tzinfo=timezone.utc),
) -> HistoricalSeries:
    points = tuple(
        PricePoint(
            date=start + timedelta(days=31 * i),
            open=price,
            high=price,
            low=price,
            close=price,
            adj_close=price,
            volume=1000,
        )
        for i, price in enumerate(prices)
    )
    return HistoricalSeries(
        symbol=symbol, currency="USD", interval=interval, points=points, fetched_at=NOW
    )


def wavy_prices(months: int, monthly_growth: float = 0.006) -> List[float]:
    """Steady growth with a deterministic wobble so rolling returns spread out."""
    return [
        100.0 * (1 + monthly_growth) ** i * (1 + 0.08 * math.sin(i / 9.0))
        for i in range(months)
    ]


def make_info(
    symbol: str,
    median: float,
    pessimistic: float,
    optimistic: float,
    name: Optional[str] = None,
) -> IndexInfo:
    stats = ReturnStatistics(
        symbol=symbol,
        total_years=30.0,
        rolling_years=20,
        median_return=median,
        percentile5_return=pessimistic,
        percentile95_return=optimistic,
        standard_deviation=1.5,
        data_start=datetime(1995, 1, 1, tzinfo=timezone.utc),
        data_end=NOW,
        calculated_at=NOW,
    )
    return IndexInfo(
        symbol=symbol,
        name=name or symbol,
        description="",
        median_return=median,
        pessimistic_return=pessimistic,
        optimistic_return=optimistic,
        standard_deviation=1.5,
        data_years=30.0,
        data_start_date="Jan 1995",
        rolling_period_years=20,
        loaded_at=NOW,
        statistics=stats,
    )


class FakeClock:
    def __init__(self, now: datetime = NOW):
        self.now = now

    def __call__(self) -> datetime:
        return self.now

    def advance(self, **kwargs) -> None:
        self.now = self.now + timedelta(**kwargs)


class FakeFetcher:
    """Serves canned series (or raises canned errors) per symbol."""

    def __init__(self, responses: Dict[str, Union[HistoricalSeries, Exception]]):
        self.responses = dict(responses)
        self.calls: List[str] = []
        self.gate: Optional[threading.Event] = None

    def fetch_historical_data(self, symbol: str, interval: str = "1mo", range_period: str = "max"):
        self.calls.append(symbol)
        if self.gate is not None:
            self.gate.wait(5)
        response = self.responses[symbol]
        if isinstance(response, Exception):
            raise response
        return response


@pytest.fixture()
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture()
def fetcher() -> FakeFetcher:
    return FakeFetcher(
        {
            "SPY": make_series(wavy_prices(360, 0.007), symbol="SPY"),
            "QQQ": make_series(wavy_prices(300, 0.009), symbol="QQQ"),
            "EFA": make_series(wavy_prices(180, 0.004), symbol="EFA"),
        }
    )


@pytest.fixture()
def index_cache(fetcher: FakeFetcher, clock: FakeClock) -> IndexStatisticsCache:
    cache = IndexStatisticsCache(fetcher, clock=clock)
    cache.initialize()
    yield cache
    cache.close()
    cache.wait(5)


@pytest.fixture()
def app(index_cache: IndexStatisticsCache):
    settings = Settings(APP_ENV="development", INDEX_CACHE_PRELOAD=False)
    flask_app = create_app(settings=settings, cache=index_cache)
    flask_app.config.update(TESTING=True, CLOCK=lambda: NOW)
    return flask_app


@pytest.fixture()
def client(app) -> FlaskClient:
    with app.test_client() as test_client:
        yield test_client
