"""Reporting domain schemas"""

from datetime import datetime
from typing import Optional

from pydantic import BaseModel, Field


class ProfitabilitySummary(BaseModel):
    totalRevenue: float = 0
    totalLaborCost: float = 0
    totalExpenses: float = 0
    totalCosts: float = 0
    grossProfit: float = 0
    profitMargin: float = 0
    totalJobs: int = 0
    averageJobValue: float = 0


class RevenueLine(BaseModel):
    id: str
    name: str
    revenue: float
    jobCount: int


class ExpenseLine(BaseModel):
    category: str
    amount: float


class ProfitabilityBreakdown(BaseModel):
    byCustomer: list[RevenueLine] = Field(default_factory=list)
    byEmployee: list[RevenueLine] = Field(default_factory=list)
    expensesByCategory: list[ExpenseLine] = Field(default_factory=list)


class PeriodRange(BaseModel):
    startDate: datetime
    endDate: datetime


class ProfitabilityResponse(BaseModel):
    period: PeriodRange
    summary: ProfitabilitySummary
    breakdown: ProfitabilityBreakdown


class TrendPointResponse(BaseModel):
    label: str
    startDate: datetime
    revenue: float
    costs: float
    profit: float


class TrendResponse(BaseModel):
    period: PeriodRange
    granularity: str
    points: list[TrendPointResponse]
    previous: Optional[ProfitabilitySummary] = None
    changes: dict[str, float] = Field(default_factory=dict)
