"""Turn a validated simulation request into projections and a summary."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import datetime
from typing import List, Optional, Tuple

from backend.core.portfolio import BlendedRates, IndexLookup, blend_portfolio
from backend.core.simulation import build_summary, simulate_monthly, simulate_with_range
from backend.domain.errors import UnknownSymbolError, ValidationError
from backend.schemas.simulation import (
    MonthProjection,
    PortfolioBreakdown,
    SimulateByTargetRequest,
    SimulateByTargetResponse,
    SimulateByYearsRequest,
    SimulateByYearsResponse,
    SimulationSummary,
    SimulateRequestBase,
)

logger = logging.getLogger(__name__)

DEFAULT_ANNUAL_RETURN = 7.0
DEFAULT_CONTRIBUTION_GROWTH = 0.0
DEFAULT_TARGET_MONTH = 12
MAX_TOTAL_MONTHS = 600


@dataclass
class ResolvedRates:
    """Where the annual return comes from: portfolio > index symbol > explicit rate > default."""

    annual_rate: float
    range_rates: Optional[BlendedRates] = None
    breakdown: Optional[List[PortfolioBreakdown]] = None
    blended_median: Optional[float] = None


def resolve_rates(request: SimulateRequestBase, cache: IndexLookup) -> ResolvedRates:
    if request.portfolio:
        blend = blend_portfolio(request.portfolio, cache)
        return ResolvedRates(
            annual_rate=blend.rates.median,
            range_rates=blend.rates,
            breakdown=blend.breakdown,
            blended_median=round(blend.rates.median, 1),
        )

    if request.indexSymbol:
        info = cache.get(request.indexSymbol)
        if info is None:
            raise UnknownSymbolError(request.indexSymbol)
        rates = BlendedRates.from_index(info)
        return ResolvedRates(annual_rate=rates.median, range_rates=rates)

    if request.annualReturnRate is not None:
        return ResolvedRates(annual_rate=request.annualReturnRate)
    return ResolvedRates(annual_rate=DEFAULT_ANNUAL_RETURN)


def _run(
    request: SimulateRequestBase,
    resolved: ResolvedRates,
    contribution_growth: float,
    start: datetime,
    total_months: int,
    end_year: int,
    end_month: int,
) -> Tuple[List[MonthProjection], SimulationSummary]:
    if resolved.range_rates is not None:
        projections, summary = simulate_with_range(
            request.initialInvestment,
            request.monthlyContribution,
            start.year,
            start.month,
            total_months,
            resolved.range_rates,
            contribution_growth,
            end_year,
            end_month,
        )
        if resolved.breakdown is not None:
            summary.portfolio = resolved.breakdown
            summary.blendedMedianReturn = resolved.blended_median
        return projections, summary

    projections = simulate_monthly(
        request.initialInvestment,
        request.monthlyContribution,
        start.year,
        start.month,
        total_months,
        resolved.annual_rate,
        contribution_growth,
    )
    return projections, build_summary(projections, total_months, end_year, end_month, start.year)


def _contribution_growth(request: SimulateRequestBase) -> float:
    growth = (
        request.contributionGrowthRate
        if request.contributionGrowthRate is not None
        else DEFAULT_CONTRIBUTION_GROWTH
    )
    if growth < 0 or growth > 20:
        raise ValidationError("contributionGrowthRate must be between 0 and 20")
    return growth


def project_by_years(
    request: SimulateByYearsRequest, cache: IndexLookup, now: datetime
) -> SimulateByYearsResponse:
    if request.years < 1 or request.years > 50:
        raise ValidationError("years must be between 1 and 50")

    resolved = resolve_rates(request, cache)
    growth = _contribution_growth(request)
    total_months = request.years * 12

    projections, summary = _run(
        request, resolved, growth, now, total_months, now.year + request.years, now.month
    )

    logger.debug(
        "simulation by years completed initial=%s monthly=%s years=%s growth=%s final=%s range=%s",
        request.initialInvestment,
        request.monthlyContribution,
        request.years,
        growth,
        summary.finalValue,
        summary.hasRange,
    )

    inputs = request.model_copy(
        update={"annualReturnRate": resolved.annual_rate, "contributionGrowthRate": growth}
    )
    return SimulateByYearsResponse(inputs=inputs, projections=projections, summary=summary)


def months_until(now: datetime, target_year: int, target_month: int) -> int:
    return (target_year - now.year) * 12 + (target_month - now.month)


def project_by_target(
    request: SimulateByTargetRequest, cache: IndexLookup, now: datetime
) -> SimulateByTargetResponse:
    end_month = request.targetMonth if request.targetMonth is not None else DEFAULT_TARGET_MONTH
    if end_month < 1 or end_month > 12:
        raise ValidationError("targetMonth must be between 1 and 12")

    if request.targetYear < now.year or (request.targetYear == now.year and end_month <= now.month):
        raise ValidationError("target date must be in the future")

    total_months = months_until(now, request.targetYear, end_month)
    if total_months < 1:
        raise ValidationError("simulation period must be at least 1 month")
    if total_months > MAX_TOTAL_MONTHS:
        raise ValidationError("simulation period cannot exceed 50 years")

    resolved = resolve_rates(request, cache)
    growth = _contribution_growth(request)

    projections, summary = _run(
        request, resolved, growth, now, total_months, request.targetYear, end_month
    )

    logger.debug(
        "simulation by target completed initial=%s monthly=%s target=%s growth=%s final=%s range=%s",
        request.initialInvestment,
        request.monthlyContribution,
        summary.targetDate,
        growth,
        summary.finalValue,
        summary.hasRange,
    )

    inputs = request.model_copy(
        update={
            "annualReturnRate": resolved.annual_rate,
            "contributionGrowthRate": growth,
            "targetMonth": end_month,
        }
    )
    return SimulateByTargetResponse(inputs=inputs, projections=projections, summary=summary)
