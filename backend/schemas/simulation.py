"""Data contracts for the simulation endpoints."""

from __future__ import annotations

from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field


class PortfolioAllocation(BaseModel):
    model_config = ConfigDict(extra="forbid")

    symbol: str = Field(min_length=1)
    weight: float = Field(gt=0, le=100, description="Allocation percentage; all weights sum to 100.")


class SimulateRequestBase(BaseModel):
    model_config = ConfigDict(extra="forbid")

    initialInvestment: float = Field(ge=0, description="Starting amount.")
    monthlyContribution: float = Field(ge=0, description="First month's contribution.")
    portfolio: List[PortfolioAllocation] = Field(default_factory=list)
    # ignored when portfolio is given
    indexSymbol: Optional[str] = None
    # ignored when portfolio or indexSymbol is given; defaults to 7.0
    annualReturnRate: Optional[float] = Field(default=None, ge=-50, le=100)
    contributionGrowthRate: Optional[float] = Field(default=None, ge=0, le=20)


class SimulateByYearsRequest(SimulateRequestBase):
    years: int = Field(ge=1, le=50)


class SimulateByTargetRequest(SimulateRequestBase):
    targetYear: int = Field(ge=1)
    targetMonth: Optional[int] = Field(default=None, ge=1, le=12)


class MonthProjection(BaseModel):
    """Portfolio state at the end of one simulated month."""

    year: int
    month: int
    monthlyContribution: float
    totalContributed: float
    portfolioValue: float
    # only set in range mode
    pessimisticValue: Optional[float] = None
    optimisticValue: Optional[float] = None


class ContributionMilestone(BaseModel):
    year: int
    yearsFromNow: int
    monthlyContribution: float


class PortfolioBreakdown(BaseModel):
    symbol: str
    name: str
    weight: float
    medianReturn: float


class SimulationSummary(BaseModel):
    targetDate: str
    finalValue: float
    totalContributed: float
    totalGain: float
    percentageGain: float
    totalMonths: int
    finalMonthlyContribution: float
    contributionMilestones: List[ContributionMilestone] = Field(default_factory=list)

    hasRange: bool = False
    pessimisticValue: Optional[float] = None
    optimisticValue: Optional[float] = None
    pessimisticGain: Optional[float] = None
    optimisticGain: Optional[float] = None
    pessimisticPercent: Optional[float] = None
    optimisticPercent: Optional[float] = None

    portfolio: Optional[List[PortfolioBreakdown]] = None
    blendedMedianReturn: Optional[float] = None


class SimulateByYearsResponse(BaseModel):
    inputs: SimulateByYearsRequest
    projections: List[MonthProjection]
    summary: SimulationSummary


class SimulateByTargetResponse(BaseModel):
    inputs: SimulateByTargetRequest
    projections: List[MonthProjection]
    summary: SimulationSummary
