"""
Report Aggregator

Pure computation over already-loaded transactions and goals. Nothing in
this module touches storage, so every number on the Reports page and the
dashboard can be tested with plain lists.

DESIGN DECISION: The twelve monthly trend buckets are always the twelve
calendar months ending with the current month, whatever date range the
report uses. The range still filters which transactions are summed into
those buckets, so a narrow range simply leaves most buckets at zero.
"""

from datetime import date, datetime, timedelta
from decimal import Decimal
from typing import Callable, Iterable, Literal, Optional

from expense_tracker.models.finance import (
    DateRange,
    Goal,
    GoalStatus,
    Transaction,
    TransactionType,
)
from expense_tracker.models.report import (
    CategoryTotal,
    DashboardStats,
    GoalProgress,
    MonthlyTrend,
    ReportData,
)


TREND_MONTHS = 12

SpendingPeriod = Literal["week", "month", "year"]


class InvalidGoalError(ValueError):
    """A goal with a non-positive target reached progress computation."""

    def __init__(self, goal: Goal):
        self.goal_id = goal.id
        super().__init__(
            f"Goal '{goal.title}' has target amount {goal.target_amount}; "
            "progress needs a target greater than zero"
        )


def shift_month(month_start: date, months: int) -> date:
    """First day of the month `months` away from `month_start`."""
    index = month_start.year * 12 + (month_start.month - 1) + months
    return date(index // 12, index % 12 + 1, 1)


def goal_progress_percent(goal: Goal) -> float:
    """
    Percent of the target saved, capped at 100.

    Raises:
        InvalidGoalError: target_amount <= 0
    """
    if goal.target_amount <= 0:
        raise InvalidGoalError(goal)
    return min(float(goal.current_amount / goal.target_amount * 100), 100.0)


class ReportAggregator:
    """
    Builds ReportData and DashboardStats.

    The clock decides what "now" is for the trend window, spending
    periods and "this month" on the dashboard.
    """

    def __init__(self, clock: Optional[Callable[[], datetime]] = None):
        self._clock = clock or datetime.now

    def _today(self) -> date:
        return self._clock().date()

    # -------------------------------------------------------------------------
    # Building blocks
    # -------------------------------------------------------------------------

    def filter_by_range(
        self,
        transactions: Iterable[Transaction],
        date_range: Optional[DateRange],
    ) -> list[Transaction]:
        if date_range is None or date_range.is_open:
            return list(transactions)
        return [t for t in transactions if date_range.contains(t.date)]

    def category_totals(
        self,
        transactions: Iterable[Transaction],
        transaction_type: TransactionType,
        category_names: Optional[dict[str, str]] = None,
    ) -> list[CategoryTotal]:
        """Sum and count per category in first-seen order."""
        names = category_names or {}
        totals: dict[str, CategoryTotal] = {}
        for transaction in transactions:
            if transaction.type != transaction_type:
                continue
            key = transaction.category_id
            if key not in totals:
                totals[key] = CategoryTotal(category=names.get(key, key))
            entry = totals[key]
            entry.amount += transaction.amount
            entry.count += 1
        return list(totals.values())

    def monthly_trends(self, transactions: Iterable[Transaction]) -> list[MonthlyTrend]:
        """Twelve calendar months ending with the current one, oldest first."""
        current = self._today().replace(day=1)
        buckets: dict[date, MonthlyTrend] = {}
        for offset in range(TREND_MONTHS - 1, -1, -1):
            month_start = shift_month(current, -offset)
            buckets[month_start] = MonthlyTrend(
                month=month_start.strftime("%b %Y"),
                month_start=month_start,
            )

        for transaction in transactions:
            bucket = buckets.get(transaction.date.replace(day=1))
            if bucket is None:
                continue
            if transaction.type == TransactionType.EXPENSE:
                bucket.expenses += transaction.amount
            else:
                bucket.income += transaction.amount

        return list(buckets.values())

    def goal_progress(self, goals: Iterable[Goal]) -> list[GoalProgress]:
        return [
            GoalProgress(
                goal_id=goal.id,
                title=goal.title,
                progress=goal_progress_percent(goal),
                target_amount=goal.target_amount,
                current_amount=goal.current_amount,
            )
            for goal in goals
        ]

    # -------------------------------------------------------------------------
    # Reports
    # -------------------------------------------------------------------------

    def aggregate(
        self,
        transactions: Iterable[Transaction],
        goals: Iterable[Goal],
        date_range: Optional[DateRange] = None,
        category_names: Optional[dict[str, str]] = None,
    ) -> ReportData:
        """
        Build the full report.

        Args:
            transactions: The user's transactions (any order)
            goals: The user's goals; each needs target_amount > 0
            date_range: Inclusive window; None means all time
            category_names: Optional id -> display name map for the
                            breakdowns (ids are shown otherwise)

        Raises:
            InvalidGoalError: A goal has target_amount <= 0
        """
        in_range = self.filter_by_range(transactions, date_range)

        total_expenses = sum(
            (t.amount for t in in_range if t.type == TransactionType.EXPENSE),
            Decimal("0"),
        )
        total_income = sum(
            (t.amount for t in in_range if t.type == TransactionType.INCOME),
            Decimal("0"),
        )

        return ReportData(
            total_expenses=total_expenses,
            total_income=total_income,
            net_income=total_income - total_expenses,
            expenses_by_category=self.category_totals(
                in_range, TransactionType.EXPENSE, category_names
            ),
            income_by_category=self.category_totals(
                in_range, TransactionType.INCOME, category_names
            ),
            monthly_trends=self.monthly_trends(in_range),
            goal_progress=self.goal_progress(goals),
            date_range=date_range,
            generated_at=self._clock(),
            transaction_count=len(in_range),
        )

    def spending_trends(
        self,
        transactions: Iterable[Transaction],
        period: SpendingPeriod,
    ) -> list[Transaction]:
        """
        Expenses since the start of `period`.

        week: the last 7 days; month: since the 1st of this month;
        year: since January 1st.
        """
        today = self._today()
        if period == "week":
            start = today - timedelta(days=7)
        elif period == "month":
            start = today.replace(day=1)
        elif period == "year":
            start = today.replace(month=1, day=1)
        else:
            raise ValueError(f"Unknown spending period: {period}")

        return [
            t for t in transactions
            if t.type == TransactionType.EXPENSE and t.date >= start
        ]

    def dashboard_stats(
        self,
        transactions: Iterable[Transaction],
        goals: Iterable[Goal],
    ) -> DashboardStats:
        """Headline numbers: balance, this month's flows, goal savings."""
        transactions = list(transactions)
        goals = list(goals)
        month_start = self._today().replace(day=1)

        this_month = [t for t in transactions if t.date >= month_start]

        return DashboardStats(
            total_balance=sum((t.signed_amount for t in transactions), Decimal("0")),
            monthly_expenses=sum(
                (t.amount for t in this_month if t.type == TransactionType.EXPENSE),
                Decimal("0"),
            ),
            monthly_income=sum(
                (t.amount for t in this_month if t.type == TransactionType.INCOME),
                Decimal("0"),
            ),
            total_saved=sum((g.current_amount for g in goals), Decimal("0")),
            total_goal_target=sum((g.target_amount for g in goals), Decimal("0")),
            active_goals=sum(1 for g in goals if g.status == GoalStatus.ACTIVE),
            completed_goals=sum(1 for g in goals if g.status == GoalStatus.COMPLETED),
        )
