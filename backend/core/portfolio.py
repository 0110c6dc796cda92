"""Blend several indexes' return statistics into one set of portfolio rates."""

from __future__ import annotations

import math
from dataclasses import dataclass
from typing import List, Optional, Protocol, Sequence

from backend.domain.errors import InvalidPercentageError, UnknownSymbolError
from backend.domain.market import IndexInfo
from backend.schemas.simulation import PortfolioAllocation, PortfolioBreakdown

WEIGHT_TOLERANCE = 0.01


class IndexLookup(Protocol):
    def get(self, symbol: str) -> Optional[IndexInfo]:
        ...


@dataclass(frozen=True)
class BlendedRates:
    """Annual median / 5th / 95th percentile returns, in percent."""

    median: float
    pessimistic: float
    optimistic: float

    @classmethod
    def from_index(cls, info: IndexInfo) -> "BlendedRates":
        return cls(
            median=info.median_return,
            pessimistic=info.pessimistic_return,
            optimistic=info.optimistic_return,
        )


@dataclass(frozen=True)
class PortfolioBlend:
    rates: BlendedRates
    breakdown: List[PortfolioBreakdown]


def validate_weights(allocations: Sequence[PortfolioAllocation]) -> None:
    if not allocations:
        raise InvalidPercentageError("portfolio cannot be empty")

    total = 0.0
    for allocation in allocations:
        if allocation.weight <= 0:
            raise InvalidPercentageError(
                f"weight must be positive for symbol: {allocation.symbol}"
            )
        total += allocation.weight

    if abs(total - 100) > WEIGHT_TOLERANCE:
        raise InvalidPercentageError("portfolio weights must sum to 100")


def blend_portfolio(allocations: Sequence[PortfolioAllocation], cache: IndexLookup) -> PortfolioBlend:
    """
    Weighted linear combination of each allocation's cached rates.

    Any unknown symbol fails the whole blend. The breakdown keeps input order.
    """
    validate_weights(allocations)

    medians: List[float] = []
    pessimistic: List[float] = []
    optimistic: List[float] = []
    breakdown: List[PortfolioBreakdown] = []

    for allocation in allocations:
        info = cache.get(allocation.symbol)
        if info is None:
            raise UnknownSymbolError(allocation.symbol)

        share = allocation.weight / 100.0
        medians.append(info.median_return * share)
        pessimistic.append(info.pessimistic_return * share)
        optimistic.append(info.optimistic_return * share)

        breakdown.append(
            PortfolioBreakdown(
                symbol=allocation.symbol,
                name=info.name,
                weight=allocation.weight,
                medianReturn=round(info.median_return, 1),
            )
        )

    # fsum keeps the result independent of allocation order
    return PortfolioBlend(
        rates=BlendedRates(
            median=math.fsum(medians),
            pessimistic=math.fsum(pessimistic),
            optimistic=math.fsum(optimistic),
        ),
        breakdown=breakdown,
    )
