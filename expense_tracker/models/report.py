"""
Report Models

Output shapes of the report aggregator. These are plain data: they are
computed in memory, rendered by the exporters and never persisted.
"""

import datetime as dt
from decimal import Decimal
from typing import Optional

from pydantic import BaseModel, Field

from expense_tracker.models.finance import DateRange


class CategoryTotal(BaseModel):
    """Sum and count of one category's transactions of one type."""

    category: str
    amount: Decimal = Decimal("0")
    count: int = Field(default=0, ge=0)


class MonthlyTrend(BaseModel):
    """Expense and income totals of one calendar month."""

    month: str = Field(..., description="Label such as 'Oct 2026'")
    month_start: dt.date
    expenses: Decimal = Decimal("0")
    income: Decimal = Decimal("0")

    @property
    def net(self) -> Decimal:
        return self.income - self.expenses


class GoalProgress(BaseModel):
    goal_id: Optional[str]
    title: str
    progress: float = Field(..., ge=0.0, le=100.0)
    target_amount: Decimal
    current_amount: Decimal


class ReportData(BaseModel):
    """
    Everything the Reports page shows.

    monthly_trends always holds exactly 12 entries, oldest first, ending
    with the month the report was generated in.
    """

    total_expenses: Decimal = Decimal("0")
    total_income: Decimal = Decimal("0")
    net_income: Decimal = Decimal("0")
    expenses_by_category: list[CategoryTotal] = Field(default_factory=list)
    income_by_category: list[CategoryTotal] = Field(default_factory=list)
    monthly_trends: list[MonthlyTrend] = Field(default_factory=list)
    goal_progress: list[GoalProgress] = Field(default_factory=list)

    date_range: Optional[DateRange] = None
    generated_at: dt.datetime = Field(default_factory=dt.datetime.now)
    transaction_count: int = Field(default=0, ge=0)


class DashboardStats(BaseModel):
    """Headline numbers for the dashboard cards."""

    total_balance: Decimal = Decimal("0")
    monthly_expenses: Decimal = Decimal("0")
    monthly_income: Decimal = Decimal("0")
    total_saved: Decimal = Decimal("0")
    total_goal_target: Decimal = Decimal("0")
    active_goals: int = 0
    completed_goals: int = 0

    @property
    def savings_progress(self) -> float:
        """Percent of all goal targets saved so far, capped at 100."""
        if self.total_goal_target <= 0:
            return 0.0
        return min(float(self.total_saved / self.total_goal_target * 100), 100.0)
