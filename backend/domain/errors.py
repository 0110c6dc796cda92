"""Exception hierarchy shared by the market-data and simulation layers."""

from __future__ import annotations

from typing import Optional


class MarketDataError(Exception):
    """Base class for anything that goes wrong while producing index statistics."""


class DataFetchError(MarketDataError):
    """Network, transport or provider-side failure while fetching a series."""

    def __init__(self, message: str, status_code: Optional[int] = None):
        super().__init__(message)
        self.status_code = status_code


class ProviderError(DataFetchError):
    """The provider answered, but with an embedded error payload."""

    def __init__(self, code: str, description: str):
        super().__init__(f"provider error: {code} - {description}")
        self.code = code
        self.description = description


class NoDataError(DataFetchError):
    def __init__(self, symbol: str):
        super().__init__(f"no data returned for symbol {symbol}")
        self.symbol = symbol


class DataParseError(MarketDataError):
    """The provider payload could not be decoded into a price series."""


class InsufficientDataError(MarketDataError):
    def __init__(self, required: int, available: int, rolling_years: int, interval: str):
        super().__init__(
            f"insufficient data: need at least {required} data points "
            f"({rolling_years} years of {interval} data), got {available}"
        )
        self.required = required
        self.available = available
        self.rolling_years = rolling_years
        self.interval = interval


class NoValidReturnsError(MarketDataError):
    """Every rolling return was skipped or filtered out as an anomaly."""


class CacheInitializationError(MarketDataError):
    """Not a single supported symbol could be loaded."""


class SimulationError(ValueError):
    """Base class for user-facing errors raised while preparing a simulation."""


class ValidationError(SimulationError):
    pass


class InvalidPercentageError(SimulationError):
    pass


class UnknownSymbolError(SimulationError):
    def __init__(self, symbol: str):
        super().__init__(f"unknown index symbol: {symbol}")
        self.symbol = symbol
