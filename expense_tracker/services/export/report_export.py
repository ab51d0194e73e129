"""
Report Export

CSV and PDF renderings of a ReportData. Both follow the same section
order as the Reports page: period, summary, expense breakdown, income
breakdown, then goal progress. The PDF also lists the monthly trends.
"""

import csv
from datetime import datetime
from io import StringIO
from typing import Callable, Optional

from expense_tracker.config import get_settings
from expense_tracker.models.report import CategoryTotal, ReportData
from expense_tracker.services.export.canvas import (
    PANEL,
    PRIMARY,
    SECONDARY,
    WHITE,
    PdfPage,
    save_pages,
)
from expense_tracker.services.export.voucher_pdf import format_amount


BREAKDOWN_HEADER = ["Category", "Amount", "Transactions"]
GOAL_HEADER = ["Goal", "Saved", "Target", "Progress"]

PAGE_BOTTOM_MM = 275


def report_filename(ext: str, clock: Optional[Callable[[], datetime]] = None) -> str:
    """financial-report-{ms timestamp}.{ext}"""
    now = (clock or datetime.now)()
    return f"financial-report-{int(now.timestamp() * 1000)}.{ext.lstrip('.')}"


def _period_text(report: ReportData) -> Optional[str]:
    if report.date_range is None or report.date_range.is_open:
        return None
    return report.date_range.describe()


def report_to_csv(report: ReportData, currency_symbol: Optional[str] = None) -> bytes:
    """Render the report as UTF-8 CSV."""
    symbol = currency_symbol if currency_symbol is not None else get_settings().app.currency_symbol

    def money(amount) -> str:
        return f"{symbol}{amount:.2f}"

    buffer = StringIO()
    writer = csv.writer(buffer, lineterminator="\n")

    writer.writerow(["Financial Report"])
    writer.writerow([])

    period = _period_text(report)
    if period:
        writer.writerow([f"Period: {period}"])
        writer.writerow([])

    writer.writerow(["Summary"])
    writer.writerow(["Total Income", money(report.total_income)])
    writer.writerow(["Total Expenses", money(report.total_expenses)])
    writer.writerow(["Net Income", money(report.net_income)])
    writer.writerow([])

    sections: list[tuple[str, list[CategoryTotal]]] = [
        ("Expense Breakdown", report.expenses_by_category),
        ("Income Breakdown", report.income_by_category),
    ]
    for title, totals in sections:
        if not totals:
            continue
        writer.writerow([title])
        writer.writerow(BREAKDOWN_HEADER)
        for entry in totals:
            writer.writerow([entry.category, money(entry.amount), entry.count])
        writer.writerow([])

    if report.goal_progress:
        writer.writerow(["Goal Progress"])
        writer.writerow(GOAL_HEADER)
        for goal in report.goal_progress:
            writer.writerow([
                goal.title,
                money(goal.current_amount),
                money(goal.target_amount),
                f"{goal.progress:.1f}%",
            ])

    return buffer.getvalue().encode("utf-8")


class _ReportLayout:
    """Flows rows down the page and starts a new page when one fills up."""

    def __init__(self):
        self.pages: list[PdfPage] = []
        self.y = 0.0
        self._new_page()

    @property
    def page(self) -> PdfPage:
        return self.pages[-1]

    def _new_page(self) -> None:
        self.pages.append(PdfPage())
        self.y = 20.0

    def ensure(self, height: float) -> None:
        if self.y + height > PAGE_BOTTOM_MM:
            self._new_page()

    def heading(self, title: str) -> None:
        self.ensure(20)
        self.y += 8
        self.page.text(20, self.y, title, size=14, bold=True)
        self.page.line(20, self.y + 3, 190)
        self.y += 11

    def row(self, cells: list[str], columns: list[float], bold: bool = False) -> None:
        self.ensure(7)
        for x, cell in zip(columns, cells):
            self.page.text(x, self.y, cell, size=10, bold=bold)
        self.y += 7


def render_report_pdf(
    report: ReportData,
    currency_symbol: Optional[str] = None,
) -> bytes:
    """Render the report as a (possibly multi-page) PDF."""
    symbol = currency_symbol if currency_symbol is not None else get_settings().app.currency_symbol

    def money(amount) -> str:
        return format_amount(amount, symbol)

    layout = _ReportLayout()
    page = layout.page

    # Header band
    page.rect(0, 0, 210, 30, fill=PRIMARY)
    page.text(20, 20, "FINANCIAL REPORT", size=22, bold=True, color=WHITE)
    page.text(140, 20, report.generated_at.strftime("%b %d, %Y"), size=12, color=WHITE)
    layout.y = 45

    page.text(20, layout.y, f"Period: {_period_text(report) or 'All time'}", size=11, color=SECONDARY)
    layout.y += 10

    # Summary box
    page.rect(20, layout.y, 170, 30, fill=PANEL, outline=PRIMARY)
    summary = [
        ("Total Income", report.total_income),
        ("Total Expenses", report.total_expenses),
        ("Net Income", report.net_income),
    ]
    for index, (label, amount) in enumerate(summary):
        x = 25 + index * 56
        page.text(x, layout.y + 11, label, size=10, color=SECONDARY)
        page.text(x, layout.y + 22, money(amount), size=14, bold=True, color=PRIMARY)
    layout.y += 38

    breakdown_columns = [20, 120, 165]
    for title, totals in (
        ("Expense Breakdown", report.expenses_by_category),
        ("Income Breakdown", report.income_by_category),
    ):
        if not totals:
            continue
        layout.heading(title)
        layout.row(BREAKDOWN_HEADER, breakdown_columns, bold=True)
        for entry in totals:
            layout.row([entry.category, money(entry.amount), str(entry.count)], breakdown_columns)

    layout.heading("Monthly Trends")
    trend_columns = [20, 70, 115, 160]
    layout.row(["Month", "Expenses", "Income", "Net"], trend_columns, bold=True)
    for trend in report.monthly_trends:
        layout.row(
            [trend.month, money(trend.expenses), money(trend.income), money(trend.net)],
            trend_columns,
        )

    if report.goal_progress:
        layout.heading("Goal Progress")
        goal_columns = [20, 100, 140, 175]
        layout.row(GOAL_HEADER, goal_columns, bold=True)
        for goal in report.goal_progress:
            layout.row(
                [
                    goal.title,
                    money(goal.current_amount),
                    money(goal.target_amount),
                    f"{goal.progress:.0f}%",
                ],
                goal_columns,
            )

    return save_pages(layout.pages)
