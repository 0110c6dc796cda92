"""Pydantic schema for the index listing endpoint."""

from typing import List

from pydantic import BaseModel

from backend.domain.market import IndexInfo


class IndexSummary(BaseModel):
    symbol: str
    name: str
    description: str
    medianReturn: float
    pessimisticReturn: float
    optimisticReturn: float
    standardDeviation: float
    dataYears: float
    dataStartDate: str
    rollingPeriodYears: int

    @classmethod
    def from_info(cls, info: IndexInfo) -> "IndexSummary":
        return cls(
            symbol=info.symbol,
            name=info.name,
            description=info.description,
            medianReturn=info.median_return,
            pessimisticReturn=info.pessimistic_return,
            optimisticReturn=info.optimistic_return,
            standardDeviation=info.standard_deviation,
            dataYears=info.data_years,
            dataStartDate=info.data_start_date,
            rollingPeriodYears=info.rolling_period_years,
        )


class IndexesResponse(BaseModel):
    indexes: List[IndexSummary]
