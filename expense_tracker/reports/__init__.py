"""Report aggregation package."""

from expense_tracker.reports.aggregator import (
    InvalidGoalError,
    ReportAggregator,
    goal_progress_percent,
    shift_month,
)

__all__ = [
    "InvalidGoalError",
    "ReportAggregator",
    "goal_progress_percent",
    "shift_month",
]
