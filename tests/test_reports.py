"""Tests for the report aggregator."""

from datetime import date, datetime
from decimal import Decimal

import pytest
from hypothesis import given, strategies as st

from expense_tracker.models.finance import (
    DateRange,
    Goal,
    GoalStatus,
    Transaction,
    TransactionType,
)
from expense_tracker.models.report import CategoryTotal
from expense_tracker.reports import (
    InvalidGoalError,
    ReportAggregator,
    goal_progress_percent,
    shift_month,
)


NOW = datetime(2026, 10, 19, 14, 30)


def make_tx(amount, category_id="food", type_=TransactionType.EXPENSE, day=date(2026, 10, 1)):
    return Transaction(
        owner_id="alice",
        amount=Decimal(str(amount)),
        category_id=category_id,
        type=type_,
        date=day,
    )


def make_goal(target, current="0", status=GoalStatus.ACTIVE, title="Goal"):
    return Goal(
        id=title.lower(),
        owner_id="alice",
        title=title,
        target_amount=Decimal(str(target)),
        current_amount=Decimal(str(current)),
        status=status,
        target_date=date(2027, 1, 1),
    )


amounts = st.decimals(min_value=Decimal("0.01"), max_value=Decimal("100000"), places=2)
transactions = st.lists(
    st.builds(
        make_tx,
        amount=amounts,
        category_id=st.sampled_from(["food", "rent", "salary", "fun"]),
        type_=st.sampled_from(list(TransactionType)),
        day=st.dates(min_value=date(2024, 1, 1), max_value=date(2026, 12, 31)),
    ),
    max_size=40,
)


class TestReportProperties:
    """Invariants that must hold for any input."""

    @given(transactions)
    def test_totals_are_additive(self, txs):
        report = ReportAggregator(lambda: NOW).aggregate(txs, [])

        expenses = sum((t.amount for t in txs if t.type == TransactionType.EXPENSE), Decimal("0"))
        income = sum((t.amount for t in txs if t.type == TransactionType.INCOME), Decimal("0"))

        assert report.total_expenses == expenses
        assert report.total_income == income
        assert report.net_income == income - expenses
        assert report.total_expenses + report.total_income == sum((t.amount for t in txs), Decimal("0"))
        assert sum((c.amount for c in report.expenses_by_category), Decimal("0")) == expenses
        assert sum((c.count for c in report.income_by_category), 0) == sum(
            1 for t in txs if t.type == TransactionType.INCOME
        )

    @given(
        target=st.decimals(min_value=Decimal("0.01"), max_value=Decimal("1000000"), places=2),
        current=st.decimals(min_value=Decimal("0"), max_value=Decimal("5000000"), places=2),
    )
    def test_progress_is_bounded(self, target, current):
        progress = goal_progress_percent(make_goal(target, current))
        assert 0.0 <= progress <= 100.0
        if current >= target:
            assert progress == 100.0

    @given(transactions)
    def test_always_twelve_months(self, txs):
        trends = ReportAggregator(lambda: NOW).aggregate(txs, []).monthly_trends
        assert len(trends) == 12
        assert [t.month_start for t in trends] == sorted(t.month_start for t in trends)


class TestMonthlyTrends:

    def test_window_ends_with_current_month(self, aggregator):
        trends = aggregator.monthly_trends([])
        assert trends[0].month == "Nov 2025"
        assert trends[-1].month == "Oct 2026"
        assert trends[-1].month_start == date(2026, 10, 1)

    def test_buckets_and_out_of_window(self, aggregator):
        trends = aggregator.monthly_trends([
            make_tx(10, day=date(2026, 10, 3)),
            make_tx(5, day=date(2026, 10, 30)),
            make_tx(100, type_=TransactionType.INCOME, day=date(2026, 1, 15)),
            make_tx(999, day=date(2025, 10, 31)),
        ])
        by_month = {t.month: t for t in trends}

        assert by_month["Oct 2026"].expenses == Decimal("15")
        assert by_month["Jan 2026"].income == Decimal("100")
        assert by_month["Jan 2026"].net == Decimal("100")
        assert sum((t.expenses for t in trends), Decimal("0")) == Decimal("15")

    def test_shift_month_crosses_years(self):
        assert shift_month(date(2026, 1, 1), -1) == date(2025, 12, 1)
        assert shift_month(date(2026, 11, 1), 2) == date(2027, 1, 1)
        assert shift_month(date(2026, 10, 1), -11) == date(2025, 11, 1)


class TestAggregate:

    def test_category_breakdown_in_first_seen_order(self, aggregator):
        report = aggregator.aggregate(
            [
                make_tx(20, "rent"),
                make_tx(5, "food"),
                make_tx(7, "rent"),
                make_tx(1000, "salary", TransactionType.INCOME),
            ],
            [],
            category_names={"rent": "Rent", "food": "Food"},
        )

        assert report.expenses_by_category == [
            CategoryTotal(category="Rent", amount=Decimal("27"), count=2),
            CategoryTotal(category="Food", amount=Decimal("5"), count=1),
        ]
        assert report.income_by_category == [
            CategoryTotal(category="salary", amount=Decimal("1000"), count=1),
        ]
        assert report.net_income == Decimal("968")
        assert report.transaction_count == 4
        assert report.generated_at == NOW

    def test_date_range_is_inclusive(self, aggregator):
        window = DateRange(start=date(2026, 9, 1), end=date(2026, 9, 30))
        report = aggregator.aggregate(
            [
                make_tx(1, day=date(2026, 8, 31)),
                make_tx(2, day=date(2026, 9, 1)),
                make_tx(4, day=date(2026, 9, 30)),
                make_tx(8, day=date(2026, 10, 1)),
            ],
            [],
            window,
        )
        assert report.total_expenses == Decimal("6")
        assert report.date_range == window
        # Trend window stays the same; only in-range amounts land in it
        assert len(report.monthly_trends) == 12
        assert {t.month: t.expenses for t in report.monthly_trends}["Oct 2026"] == 0

    def test_empty_input(self, aggregator):
        report = aggregator.aggregate([], [])
        assert report.total_expenses == 0
        assert report.expenses_by_category == []
        assert report.goal_progress == []

    def test_goal_progress(self, aggregator):
        report = aggregator.aggregate([], [make_goal(200, 50, title="Bike")])
        progress = report.goal_progress[0]
        assert progress.goal_id == "bike"
        assert progress.progress == 25.0

    def test_zero_target_goal_rejected(self, aggregator):
        with pytest.raises(InvalidGoalError) as exc_info:
            aggregator.aggregate([], [make_goal(0, title="Broken")])
        assert exc_info.value.goal_id == "broken"


class TestSpendingAndDashboard:

    def test_spending_periods(self, aggregator):
        txs = [
            make_tx(1, day=date(2026, 10, 12)),
            make_tx(2, day=date(2026, 10, 11)),
            make_tx(4, day=date(2026, 10, 1)),
            make_tx(8, day=date(2026, 2, 1)),
            make_tx(16, day=date(2025, 12, 31)),
            make_tx(32, type_=TransactionType.INCOME, day=date(2026, 10, 18)),
        ]

        def total(period):
            return sum(t.amount for t in aggregator.spending_trends(txs, period))

        assert total("week") == 1
        assert total("month") == 7
        assert total("year") == 15

    def test_unknown_period(self, aggregator):
        with pytest.raises(ValueError):
            aggregator.spending_trends([], "decade")

    def test_dashboard_stats(self, aggregator):
        stats = aggregator.dashboard_stats(
            [
                make_tx(3000, "salary", TransactionType.INCOME, date(2026, 10, 1)),
                make_tx(200, day=date(2026, 10, 5)),
                make_tx(50, day=date(2026, 9, 20)),
            ],
            [
                make_goal(1000, 250, title="Car"),
                make_goal(100, 100, GoalStatus.COMPLETED, title="Phone"),
            ],
        )

        assert stats.total_balance == Decimal("2750")
        assert stats.monthly_expenses == Decimal("200")
        assert stats.monthly_income == Decimal("3000")
        assert stats.total_saved == Decimal("350")
        assert stats.active_goals == 1
        assert stats.completed_goals == 1
        assert stats.savings_progress == pytest.approx(350 / 1100 * 100)
