from __future__ import annotations

from math import isclose

from backend.core.portfolio import BlendedRates
from backend.core.simulation import (
    build_contribution_milestones,
    build_summary,
    monthly_rate,
    simulate_monthly,
    simulate_with_range,
    target_date_label,
)


def test_zero_growth_accumulates_contributions_only():
    """
    With zero investment return, the final value is the initial amount plus every contribution.
    """
    rows = simulate_monthly(
        initial=1000.0,
        monthly_base=250.0,
        start_year=2025,
        start_month=6,
        total_months=36,
        annual_rate=0.0,
        contribution_growth=0.0,
    )

    assert len(rows) == 36
    assert rows[-1].portfolioValue == 1000.0 + 250.0 * 36
    assert rows[-1].totalContributed == 1000.0 + 250.0 * 36
    prev = 0.0
    for row in rows:
        assert row.monthlyContribution == 250.0
        assert row.portfolioValue >= prev, "value should not decrease without losses"
        prev = row.portfolioValue


def test_monthly_rate_compounds_to_annual():
    assert isclose(monthly_rate(7.0), 0.005654, abs_tol=1e-6)
    assert isclose((1 + monthly_rate(7.0)) ** 12, 1.07)
    assert monthly_rate(0.0) == 0.0


def test_one_year_at_seven_percent():
    rows = simulate_monthly(10000.0, 500.0, 2025, 6, 12, 7.0, 0.0)
    summary = build_summary(rows, 12, 2026, 6, 2025)

    # initial grows a full year (10700); contributions grow 0 to 11 months (~6190.20)
    assert isclose(summary.finalValue, 16890.20, abs_tol=1.0)
    assert summary.totalContributed == 16000.0
    assert isclose(summary.totalGain, 890.20, abs_tol=1.0)
    assert summary.percentageGain == round(summary.totalGain / 16000.0 * 100, 1)
    assert summary.totalMonths == 12
    assert summary.targetDate == "June 2026"
    assert summary.hasRange is False
    assert summary.pessimisticValue is None


def test_return_is_applied_before_contribution():
    rows = simulate_monthly(0.0, 100.0, 2025, 1, 2, 12.0, 0.0)
    assert rows[0].portfolioValue == 100.0
    assert isclose(rows[1].portfolioValue, 100.0 * (1 + monthly_rate(12.0)) + 100.0, abs_tol=0.01)


def test_calendar_starts_next_month_and_wraps():
    rows = simulate_monthly(0.0, 10.0, 2025, 11, 3, 5.0, 0.0)
    assert [(r.year, r.month) for r in rows] == [(2025, 12), (2026, 1), (2026, 2)]


def test_contribution_grows_after_being_recorded():
    rows = simulate_monthly(0.0, 100.0, 2025, 6, 13, 0.0, 12.0)
    assert rows[0].monthlyContribution == 100.0
    assert isclose(rows[12].monthlyContribution, 112.0, abs_tol=0.01)


def test_simulation_is_deterministic():
    args = (2500.0, 320.0, 2025, 3, 240, 8.3, 2.5)
    assert simulate_monthly(*args) == simulate_monthly(*args)


def test_milestones_every_five_years_prefer_january():
    rows = simulate_monthly(0.0, 100.0, 2025, 6, 120, 0.0, 3.0)
    milestones = build_contribution_milestones(rows, 2025)

    assert [(m.year, m.yearsFromNow) for m in milestones] == [(2030, 5), (2035, 10)]
    january_2030 = next(r for r in rows if r.year == 2030 and r.month == 1)
    january_2035 = next(r for r in rows if r.year == 2035 and r.month == 1)
    assert milestones[0].monthlyContribution == january_2030.monthlyContribution
    assert milestones[1].monthlyContribution == january_2035.monthlyContribution


def test_final_milestone_without_january_uses_last_row():
    # July 2025 .. December 2025: no January in the final year
    rows = simulate_monthly(0.0, 100.0, 2025, 6, 6, 0.0, 5.0)
    milestones = build_contribution_milestones(rows, 2025)

    assert len(milestones) == 1
    assert milestones[0].year == 2025
    assert milestones[0].yearsFromNow == 0
    assert milestones[0].monthlyContribution == rows[-1].monthlyContribution


def test_last_milestone_matches_last_projection():
    rows = simulate_monthly(5000.0, 400.0, 2025, 6, 84, 6.0, 0.0)
    summary = build_summary(rows, 84, 2032, 6, 2025)

    assert summary.contributionMilestones[-1].monthlyContribution == rows[-1].monthlyContribution
    assert summary.finalMonthlyContribution == rows[-1].monthlyContribution


def test_percentage_gain_is_zero_without_contributions():
    rows = simulate_monthly(0.0, 0.0, 2025, 6, 12, 7.0, 0.0)
    summary = build_summary(rows, 12, 2026, 6, 2025)
    assert summary.finalValue == 0.0
    assert summary.percentageGain == 0.0


def test_range_bounds_are_ordered_every_month():
    rates = BlendedRates(median=8.0, pessimistic=5.0, optimistic=11.0)
    rows, summary = simulate_with_range(1000.0, 200.0, 2025, 6, 24, rates, 0.0, 2027, 6)

    assert len(rows) == 24
    for row in rows:
        assert row.pessimisticValue <= row.portfolioValue <= row.optimisticValue

    assert summary.hasRange is True
    assert summary.pessimisticValue <= summary.finalValue <= summary.optimisticValue
    assert summary.pessimisticGain < summary.totalGain < summary.optimisticGain
    assert summary.pessimisticPercent <= summary.percentageGain <= summary.optimisticPercent


def test_range_primary_values_match_single_median_run():
    rates = BlendedRates(median=7.5, pessimistic=3.0, optimistic=12.0)
    rows, summary = simulate_with_range(500.0, 100.0, 2025, 6, 60, rates, 2.0, 2030, 6)
    median_rows = simulate_monthly(500.0, 100.0, 2025, 6, 60, 7.5, 2.0)
    pessimistic_rows = simulate_monthly(500.0, 100.0, 2025, 6, 60, 3.0, 2.0)

    assert [r.portfolioValue for r in rows] == [r.portfolioValue for r in median_rows]
    assert [r.pessimisticValue for r in rows] == [r.portfolioValue for r in pessimistic_rows]
    assert summary.finalValue == median_rows[-1].portfolioValue
    assert summary.pessimisticValue == pessimistic_rows[-1].portfolioValue


def test_target_date_label():
    assert target_date_label(2035, 12) == "December 2035"
    assert target_date_label(2030, 1) == "January 2030"
