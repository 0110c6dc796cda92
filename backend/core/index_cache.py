"""In-memory, freshness-bounded cache of per-index return statistics."""

from __future__ import annotations

import logging
import threading
from datetime import datetime, timedelta, timezone
from typing import Callable, Dict, Iterable, List, Optional, Protocol, Sequence

from backend.core.statistics import calculate_statistics
from backend.domain.errors import (
    CacheInitializationError,
    InsufficientDataError,
    MarketDataError,
)
from backend.domain.market import (
    DEFAULT_SUPPORTED_INDEXES,
    HistoricalSeries,
    IndexInfo,
    ReturnStatistics,
    SupportedIndex,
)

logger = logging.getLogger(__name__)

PREFERRED_ROLLING_YEARS = 20
FALLBACK_ROLLING_YEARS = 10
DEFAULT_TTL = timedelta(hours=24)


class SeriesFetcher(Protocol):
    def fetch_historical_data(
        self, symbol: str, interval: str = ..., range_period: str = ...
    ) -> HistoricalSeries:
        ...


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class IndexStatisticsCache:
    """
    Holds one IndexInfo per supported symbol.

    Readers take the lock only for a dict lookup; the network is touched
    only by initialize() and the background refresh thread. Entries are
    frozen and swapped whole, so a reader sees either the old or the new
    record for a symbol, never a mix.
    """

    def __init__(
        self,
        fetcher: SeriesFetcher,
        indexes: Sequence[SupportedIndex] = DEFAULT_SUPPORTED_INDEXES,
        ttl: timedelta = DEFAULT_TTL,
        clock: Callable[[], datetime] = _utcnow,
        interval: str = "1mo",
        range_period: str = "max",
    ):
        self._fetcher = fetcher
        self._indexes = list(indexes)
        self._ttl = ttl
        self._clock = clock
        self._interval = interval
        self._range_period = range_period

        self._entries: Dict[str, IndexInfo] = {}
        self._lock = threading.Lock()
        self._last_update: Optional[datetime] = None
        self._refresh_thread: Optional[threading.Thread] = None
        self._cancelled = threading.Event()

    # ------------------------------------------------------------------
    # loading
    # ------------------------------------------------------------------

    def initialize(self, symbols: Optional[Iterable[str]] = None) -> int:
        """
        Load every supported index (or the given subset).

        Individual failures are logged and skipped. Raises
        CacheInitializationError if the cache ends up empty. Returns the
        number of symbols loaded by this call.
        """
        logger.info("initializing index cache, fetching historical data...")
        loaded = 0
        for index in self._select(symbols):
            try:
                info = self._load(index)
            except MarketDataError as exc:
                logger.error("failed to fetch index data for %s: %s", index.symbol, exc)
                continue
            self._store(info)
            loaded += 1

        with self._lock:
            self._last_update = self._clock()
            cached = len(self._entries)

        if cached == 0:
            raise CacheInitializationError("failed to load any index data")

        logger.info("index cache initialized, %d indexes loaded", cached)
        return loaded

    def _select(self, symbols: Optional[Iterable[str]]) -> List[SupportedIndex]:
        if symbols is None:
            return list(self._indexes)
        wanted = set(symbols)
        known = [index for index in self._indexes if index.symbol in wanted]
        for symbol in wanted - {index.symbol for index in known}:
            # not in the supported list, no display metadata available
            known.append(SupportedIndex(symbol=symbol, name=symbol, description=""))
        return known

    def _load(self, index: SupportedIndex) -> IndexInfo:
        series = self._fetcher.fetch_historical_data(
            index.symbol, self._interval, self._range_period
        )
        now = self._clock()
        try:
            stats = calculate_statistics(series, PREFERRED_ROLLING_YEARS, now=now)
        except InsufficientDataError as exc:
            logger.warning(
                "%s: %s, falling back to %d-year window",
                index.symbol,
                exc,
                FALLBACK_ROLLING_YEARS,
            )
            stats = calculate_statistics(series, FALLBACK_ROLLING_YEARS, now=now)

        info = _to_index_info(index, stats, now)
        logger.info(
            "loaded index data symbol=%s name=%s median=%.2f pessimistic=%.2f "
            "optimistic=%.2f years=%.1f",
            info.symbol,
            info.name,
            info.median_return,
            info.pessimistic_return,
            info.optimistic_return,
            info.data_years,
        )
        return info

    def _store(self, info: IndexInfo) -> None:
        with self._lock:
            self._entries[info.symbol] = info

    # ------------------------------------------------------------------
    # reads
    # ------------------------------------------------------------------

    def get(self, symbol: str) -> Optional[IndexInfo]:
        with self._lock:
            return self._entries.get(symbol)

    def get_all(self) -> List[IndexInfo]:
        """All cached entries, supported indexes first in their declared order."""
        with self._lock:
            entries = dict(self._entries)
        ordered = [entries.pop(index.symbol) for index in self._indexes if index.symbol in entries]
        ordered.extend(entries[symbol] for symbol in sorted(entries))
        return ordered

    def symbols(self) -> List[str]:
        return [info.symbol for info in self.get_all()]

    @property
    def last_update(self) -> Optional[datetime]:
        with self._lock:
            return self._last_update

    def is_stale(self) -> bool:
        with self._lock:
            last_update = self._last_update
        return last_update is None or self._clock() - last_update >= self._ttl

    # ------------------------------------------------------------------
    # background refresh
    # ------------------------------------------------------------------

    def refresh_if_stale(self) -> bool:
        """
        Start a background reload when the TTL has expired.

        Never blocks on the network. Returns True only when this call
        started a refresh; a refresh already in flight makes it a no-op.
        """
        if self._cancelled.is_set() or not self.is_stale():
            return False

        with self._lock:
            if self._refresh_thread is not None and self._refresh_thread.is_alive():
                return False
            thread = threading.Thread(
                target=self._refresh, name="index-cache-refresh", daemon=True
            )
            self._refresh_thread = thread
        thread.start()
        return True

    def _refresh(self) -> None:
        logger.info("refreshing index cache...")
        refreshed = 0
        try:
            for index in list(self._indexes):
                if self._cancelled.is_set():
                    break
                try:
                    info = self._load(index)
                except MarketDataError as exc:
                    logger.error("failed to refresh %s, keeping previous entry: %s", index.symbol, exc)
                    continue
                except Exception:
                    logger.exception("unexpected error refreshing %s, keeping previous entry", index.symbol)
                    continue
                if self._cancelled.is_set():
                    break
                self._store(info)
                refreshed += 1
        finally:
            # last_update advances even when some symbols failed
            if self._cancelled.is_set():
                logger.info("index cache refresh cancelled")
            else:
                with self._lock:
                    self._last_update = self._clock()
                logger.info("index cache refresh finished, %d indexes updated", refreshed)

    def wait(self, timeout: Optional[float] = None) -> None:
        """Block until an in-flight refresh finishes (used at shutdown and in tests)."""
        with self._lock:
            thread = self._refresh_thread
        if thread is not None:
            thread.join(timeout)

    def close(self) -> None:
        """Cancel any in-flight refresh; existing entries stay untouched."""
        self._cancelled.set()


def _to_index_info(index: SupportedIndex, stats: ReturnStatistics, loaded_at: datetime) -> IndexInfo:
    return IndexInfo(
        symbol=index.symbol,
        name=index.name,
        description=index.description,
        median_return=round(stats.median_return, 2),
        pessimistic_return=round(stats.percentile5_return, 2),
        optimistic_return=round(stats.percentile95_return, 2),
        standard_deviation=round(stats.standard_deviation, 2),
        data_years=round(stats.total_years, 1),
        data_start_date=stats.data_start.strftime("%b %Y"),
        rolling_period_years=stats.rolling_years,
        loaded_at=loaded_at,
        statistics=stats,
    )
