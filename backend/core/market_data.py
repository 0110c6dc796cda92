"""Historical price series from the Yahoo Finance chart API."""

from __future__ import annotations

import logging
from datetime import datetime, timezone
from typing import Any, List, Optional

import requests

from backend.domain.errors import (
    DataFetchError,
    DataParseError,
    NoDataError,
    ProviderError,
)
from backend.domain.market import HistoricalSeries, PricePoint

logger = logging.getLogger(__name__)

DEFAULT_BASE_URL = "https://query1.finance.yahoo.com/v8/finance/chart"
DEFAULT_TIMEOUT = 30.0

_POINTS_PER_YEAR = {
    "1d": 252,  # trading days
    "1wk": 52,
    "1mo": 12,
    "3mo": 4,
}


def points_per_year(interval: str) -> int:
    """Expected number of samples per year for a provider interval (monthly if unknown)."""
    return _POINTS_PER_YEAR.get(interval, 12)


class YahooClient:
    """
    Thin client over the chart endpoint.

    One request per call, no retry and no caching: the index cache decides
    when to fetch again.
    """

    HEADERS = {
        # yahoo rate-limits obvious scripts
        "User-Agent": "Mozilla/5.0 (Macintosh; Intel Mac OS X 10_15_7)",
        "Accept": "application/json",
    }

    def __init__(
        self,
        base_url: str = DEFAULT_BASE_URL,
        timeout: float = DEFAULT_TIMEOUT,
        session: Optional[requests.Session] = None,
    ):
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout
        self.session = session or requests.Session()

    def fetch_historical_data(
        self,
        symbol: str,
        interval: str = "1mo",
        range_period: str = "max",
    ) -> HistoricalSeries:
        url = f"{self.base_url}/{symbol}"
        params = {"interval": interval, "range": range_period}

        try:
            response = self.session.get(
                url, params=params, headers=self.HEADERS, timeout=self.timeout
            )
        except requests.Timeout as exc:
            raise DataFetchError(f"timed out fetching {symbol} after {self.timeout}s") from exc
        except requests.RequestException as exc:
            raise DataFetchError(f"fetching data for {symbol}: {exc}") from exc

        if response.status_code != 200:
            raise DataFetchError(
                f"unexpected status code: {response.status_code}",
                status_code=response.status_code,
            )

        try:
            payload = response.json()
        except ValueError as exc:
            raise DataParseError(f"decoding response for {symbol}: {exc}") from exc

        series = parse_chart_payload(payload, symbol, interval)
        logger.debug(
            "fetched %d %s points for %s", len(series.points), interval, series.symbol
        )
        return series


def parse_chart_payload(payload: Any, symbol: str, interval: str) -> HistoricalSeries:
    """Normalize a chart payload, dropping samples without a close price."""
    if not isinstance(payload, dict) or not isinstance(payload.get("chart"), dict):
        raise DataParseError(f"missing chart object in response for {symbol}")
    chart = payload["chart"]

    error = chart.get("error")
    if error:
        if isinstance(error, dict):
            raise ProviderError(str(error.get("code", "")), str(error.get("description", "")))
        raise ProviderError("unknown", str(error))

    results = _expect(chart.get("result") or [], list, "result", symbol)
    if not results:
        raise NoDataError(symbol)
    result = _expect(results[0], dict, "result entry", symbol)

    timestamps = _expect(result.get("timestamp") or [], list, "timestamp", symbol)
    if not timestamps:
        raise DataParseError(f"no timestamps in data for symbol {symbol}")

    indicators = _expect(result.get("indicators") or {}, dict, "indicators", symbol)
    quotes = _expect(indicators.get("quote") or [], list, "quote", symbol)
    if not quotes:
        raise DataParseError(f"no quote data for symbol {symbol}")
    quote = _expect(quotes[0] or {}, dict, "quote block", symbol)

    adj_close: Optional[List[Any]] = None
    adj_blocks = _expect(indicators.get("adjclose") or [], list, "adjclose", symbol)
    if adj_blocks and adj_blocks[0]:
        adj_block = _expect(adj_blocks[0], dict, "adjclose block", symbol)
        if adj_block.get("adjclose") is not None:
            adj_close = _expect(adj_block["adjclose"], list, "adjclose series", symbol)

    closes = _expect(quote.get("close") or [], list, "close series", symbol)
    series = {
        field: _expect(quote.get(field) or [], list, f"{field} series", symbol)
        for field in ("open", "high", "low", "volume")
    }
    points: List[PricePoint] = []
    try:
        for index, ts in enumerate(timestamps):
            close = _value_at(closes, index)
            if not close:
                continue

            adjusted = _value_at(adj_close, index) if adj_close is not None else None
            points.append(
                PricePoint(
                    date=datetime.fromtimestamp(int(ts), tz=timezone.utc),
                    open=float(_value_at(series["open"], index) or 0.0),
                    high=float(_value_at(series["high"], index) or 0.0),
                    low=float(_value_at(series["low"], index) or 0.0),
                    close=float(close),
                    adj_close=float(adjusted) if adjusted is not None else float(close),
                    volume=int(_value_at(series["volume"], index) or 0),
                )
            )
    except (TypeError, ValueError, OverflowError, OSError) as exc:
        raise DataParseError(f"malformed data point for {symbol}: {exc}") from exc

    meta = result.get("meta") or {}
    if not isinstance(meta, dict):
        meta = {}
    return HistoricalSeries(
        symbol=str(meta.get("symbol") or symbol),
        currency=str(meta.get("currency") or ""),
        interval=interval,
        points=tuple(points),
        fetched_at=datetime.now(timezone.utc),
    )


def _expect(value: Any, kind: type, what: str, symbol: str) -> Any:
    if not isinstance(value, kind):
        raise DataParseError(
            f"unexpected {what} for symbol {symbol}: {type(value).__name__}"
        )
    return value


def _value_at(values: Optional[List[Any]], index: int) -> Any:
    if values is None or index >= len(values):
        return None
    return values[index]
