from __future__ import annotations

import calendar
from typing import List, Tuple

from backend.core.portfolio import BlendedRates
from backend.schemas.simulation import (
    ContributionMilestone,
    MonthProjection,
    SimulationSummary,
)

MILESTONE_INTERVAL_YEARS = 5


def monthly_rate(annual_percent: float) -> float:
    """Monthly compounding rate equivalent to an annual percentage."""
    return (1 + annual_percent / 100) ** (1.0 / 12.0) - 1


def _gain_percent(gain: float, contributed: float) -> float:
    if contributed > 0:
        return round(gain / contributed * 100, 1)
    return 0.0


def target_date_label(year: int, month: int) -> str:
    return f"{calendar.month_name[month]} {year}"


def simulate_monthly(
    initial: float,
    monthly_base: float,
    start_year: int,
    start_month: int,
    total_months: int,
    annual_rate: float,
    contribution_growth: float,
) -> List[MonthProjection]:
    """
    Month-by-month growth starting the month after (start_year, start_month).

    Order of operations (per month):
      1) Advance the calendar.
      2) Apply this month's return to the balance.
      3) Add this month's contribution (it earns nothing until next month).
      4) Record the rounded row, then grow the contribution for next month.

    Inputs are assumed valid; there is no error path.
    """
    rate = monthly_rate(annual_rate)
    growth = monthly_rate(contribution_growth)

    balance = float(initial)
    total_contributed = float(initial)
    contribution = float(monthly_base)
    year, month = start_year, start_month

    rows: List[MonthProjection] = []
    for _ in range(total_months):
        month += 1
        if month > 12:
            month = 1
            year += 1

        balance *= 1 + rate
        balance += contribution
        total_contributed += contribution

        rows.append(
            MonthProjection(
                year=year,
                month=month,
                monthlyContribution=round(contribution, 2),
                totalContributed=round(total_contributed, 2),
                portfolioValue=round(balance, 2),
            )
        )

        contribution *= 1 + growth

    return rows


def build_contribution_milestones(
    projections: List[MonthProjection], start_year: int
) -> List[ContributionMilestone]:
    """Contribution at every 5-year anniversary (January rows) plus the final year."""
    final = projections[-1]
    total_years = final.year - start_year

    milestone_years = {
        start_year + offset
        for offset in range(MILESTONE_INTERVAL_YEARS, total_years + 1, MILESTONE_INTERVAL_YEARS)
    }
    milestone_years.add(final.year)

    milestones: List[ContributionMilestone] = []
    added = set()
    for row in projections:
        if row.month == 1 and row.year in milestone_years and row.year not in added:
            milestones.append(
                ContributionMilestone(
                    year=row.year,
                    yearsFromNow=row.year - start_year,
                    monthlyContribution=row.monthlyContribution,
                )
            )
            added.add(row.year)

    if final.year not in added:
        milestones.append(
            ContributionMilestone(
                year=final.year,
                yearsFromNow=total_years,
                monthlyContribution=final.monthlyContribution,
            )
        )

    return milestones


def build_summary(
    projections: List[MonthProjection],
    total_months: int,
    end_year: int,
    end_month: int,
    start_year: int,
) -> SimulationSummary:
    final = projections[-1]
    total_contributed = final.totalContributed
    total_gain = final.portfolioValue - total_contributed

    return SimulationSummary(
        targetDate=target_date_label(end_year, end_month),
        finalValue=round(final.portfolioValue, 2),
        totalContributed=round(total_contributed, 2),
        totalGain=round(total_gain, 2),
        percentageGain=_gain_percent(total_gain, total_contributed),
        totalMonths=total_months,
        finalMonthlyContribution=final.monthlyContribution,
        contributionMilestones=build_contribution_milestones(projections, start_year),
    )


def simulate_with_range(
    initial: float,
    monthly_base: float,
    start_year: int,
    start_month: int,
    total_months: int,
    rates: BlendedRates,
    contribution_growth: float,
    end_year: int,
    end_month: int,
) -> Tuple[List[MonthProjection], SimulationSummary]:
    """
    Run the median, pessimistic and optimistic scenarios and merge them.

    The three runs share nothing; rows are zipped index by index with the
    median run as the primary value.
    """
    rows_med = simulate_monthly(
        initial, monthly_base, start_year, start_month, total_months, rates.median, contribution_growth
    )
    rows_pess = simulate_monthly(
        initial, monthly_base, start_year, start_month, total_months, rates.pessimistic, contribution_growth
    )
    rows_opt = simulate_monthly(
        initial, monthly_base, start_year, start_month, total_months, rates.optimistic, contribution_growth
    )

    projections: List[MonthProjection] = []
    for r_med, r_pess, r_opt in zip(rows_med, rows_pess, rows_opt):
        assert r_med.year == r_pess.year == r_opt.year
        assert r_med.month == r_pess.month == r_opt.month

        projections.append(
            r_med.model_copy(
                update={
                    "pessimisticValue": r_pess.portfolioValue,
                    "optimisticValue": r_opt.portfolioValue,
                }
            )
        )

    summary = build_summary(projections, total_months, end_year, end_month, start_year)

    contributed = summary.totalContributed
    pess_gain = rows_pess[-1].portfolioValue - contributed
    opt_gain = rows_opt[-1].portfolioValue - contributed

    summary.hasRange = True
    summary.pessimisticValue = round(rows_pess[-1].portfolioValue, 2)
    summary.optimisticValue = round(rows_opt[-1].portfolioValue, 2)
    summary.pessimisticGain = round(pess_gain, 2)
    summary.optimisticGain = round(opt_gain, 2)
    summary.pessimisticPercent = _gain_percent(pess_gain, contributed)
    summary.optimisticPercent = _gain_percent(opt_gain, contributed)

    return projections, summary


__all__ = [
    "monthly_rate",
    "target_date_label",
    "simulate_monthly",
    "build_contribution_milestones",
    "build_summary",
    "simulate_with_range",
]
