"""
Main Orchestrator for Expense Tracker

This module ties together all the components and defines the
end-to-end flows for:
1. Recording a transaction (validate → save → issue voucher)
2. Contributing to a goal (validate → update goal → issue voucher)
3. Reports (load → aggregate → export)

DESIGN DECISION: The orchestrator enforces the boundaries:
- No write happens without a signed-in user
- The two writes of a flow are independent: if the voucher fails, the
  transaction (or contribution) stays and the error is surfaced
- Every step is audited under one correlation id

This is the "glue" that ensures the system works correctly
even when individual components might behave unexpectedly.
"""

from datetime import datetime
from decimal import Decimal
from typing import Callable, NamedTuple, Optional
from uuid import UUID

import structlog

from expense_tracker.audit import AuditLogger, configure_logging, create_correlation_id
from expense_tracker.auth import require_user
from expense_tracker.config import get_settings
from expense_tracker.models.finance import (
    DateRange,
    Goal,
    Transaction,
    TransactionCreate,
    UserIdentity,
    Voucher,
)
from expense_tracker.models.report import DashboardStats, ReportData
from expense_tracker.reports import ReportAggregator
from expense_tracker.reports.aggregator import SpendingPeriod
from expense_tracker.services.export import (
    render_report_pdf,
    render_transaction_pdf,
    render_voucher_pdf,
    report_filename,
    report_to_csv,
    transaction_filename,
    voucher_filename,
)
from expense_tracker.services.storage import (
    DocumentStoreInterface,
    GoogleSheetsClient,
    GoogleSheetsDocumentStore,
    InMemoryDocumentStore,
)
from expense_tracker.stores import (
    CategoryStore,
    ContactStore,
    GoalStore,
    TransactionLedger,
    VoucherStore,
)
from expense_tracker.validation import FormValidator


logger = structlog.get_logger(__name__)


class TransactionFlow:
    """
    Orchestrates recording a transaction.

    Flow:
    1. Validate → required fields, then semantic warnings
    2. Save → transaction with its display code
    3. Issue → matching expense/income voucher (optional)
    """

    def __init__(
        self,
        ledger: TransactionLedger,
        vouchers: VoucherStore,
        categories: CategoryStore,
        audit_logger: AuditLogger,
    ):
        self._ledger = ledger
        self._vouchers = vouchers
        self._categories = categories
        self._audit_logger = audit_logger

    async def record(
        self,
        user: Optional[UserIdentity],
        data: TransactionCreate,
        issue_voucher: bool = True,
        correlation_id: Optional[UUID] = None,
    ) -> tuple[Transaction, Optional[Voucher]]:
        """
        Save a transaction and, optionally, its voucher.

        Returns:
            (transaction, voucher) - voucher is None when not requested

        If the voucher write fails, the transaction remains saved and the
        error is re-raised after being logged.
        """
        correlation_id = correlation_id or create_correlation_id()

        transaction = await self._ledger.create(user, data, correlation_id)

        if not issue_voucher:
            return transaction, None

        try:
            category = await self._categories.get(user, transaction.category_id)
            voucher = await self._vouchers.create_from_transaction(
                user,
                transaction,
                category=category.name if category else None,
                correlation_id=correlation_id,
            )
        except Exception as e:
            await self._audit_logger.log_error(
                error_type="voucher_issue_failed",
                error_message=str(e),
                details={"transaction_id": transaction.id},
                correlation_id=correlation_id,
            )
            raise

        return transaction, voucher


class GoalFlow:
    """
    Orchestrates goal contributions.

    Flow:
    1. Contribute → goal amount and status updated
    2. Issue → goal contribution voucher (optional)
    """

    def __init__(
        self,
        goals: GoalStore,
        vouchers: VoucherStore,
        audit_logger: AuditLogger,
    ):
        self._goals = goals
        self._vouchers = vouchers
        self._audit_logger = audit_logger

    async def contribute(
        self,
        user: Optional[UserIdentity],
        goal_id: str,
        amount: Decimal,
        issue_voucher: bool = True,
        correlation_id: Optional[UUID] = None,
    ) -> tuple[Goal, Optional[Voucher]]:
        """
        Add a contribution and, optionally, its voucher.

        Returns:
            (updated goal, voucher or None)
        """
        correlation_id = correlation_id or create_correlation_id()
        amount = Decimal(str(amount))

        goal = await self._goals.add_contribution(user, goal_id, amount, correlation_id)

        if not issue_voucher:
            return goal, None

        try:
            voucher = await self._vouchers.create_from_goal_contribution(
                user,
                goal,
                amount,
                correlation_id=correlation_id,
            )
        except Exception as e:
            await self._audit_logger.log_error(
                error_type="voucher_issue_failed",
                error_message=str(e),
                details={"goal_id": goal_id},
                correlation_id=correlation_id,
            )
            raise

        return goal, voucher


class ReportFlow:
    """
    Orchestrates reports and exports.

    Loading is the only I/O; aggregation is pure and lives in
    ReportAggregator.
    """

    def __init__(
        self,
        ledger: TransactionLedger,
        goals: GoalStore,
        categories: CategoryStore,
        aggregator: ReportAggregator,
        audit_logger: AuditLogger,
        clock: Optional[Callable[[], datetime]] = None,
        contacts: Optional[ContactStore] = None,
    ):
        self._ledger = ledger
        self._goals = goals
        self._categories = categories
        self._aggregator = aggregator
        self._audit_logger = audit_logger
        self._clock = clock or datetime.now
        self._contacts = contacts

    async def build(
        self,
        user: Optional[UserIdentity],
        date_range: Optional[DateRange] = None,
        correlation_id: Optional[UUID] = None,
    ) -> ReportData:
        """Aggregate the user's transactions and goals over `date_range`."""
        user = require_user(user, "report")
        correlation_id = correlation_id or create_correlation_id()

        transactions = await self._ledger.list(user)
        goals = await self._goals.list(user)
        categories = await self._categories.list_all(user)

        report = self._aggregator.aggregate(
            transactions,
            goals,
            date_range,
            category_names={c.id: c.name for c in categories},
        )

        await self._audit_logger.log_report_generated(
            owner_id=user.uid,
            period=date_range.describe() if date_range else "All time",
            transaction_count=report.transaction_count,
            correlation_id=correlation_id,
        )
        return report

    async def dashboard(self, user: Optional[UserIdentity]) -> DashboardStats:
        user = require_user(user, "dashboard")
        transactions = await self._ledger.list(user)
        goals = await self._goals.list(user)
        return self._aggregator.dashboard_stats(transactions, goals)

    async def spending(
        self,
        user: Optional[UserIdentity],
        period: SpendingPeriod,
    ) -> list[Transaction]:
        user = require_user(user, "spending trends")
        transactions = await self._ledger.list(user)
        return self._aggregator.spending_trends(transactions, period)

    async def export_csv(
        self,
        user: Optional[UserIdentity],
        report: ReportData,
        correlation_id: Optional[UUID] = None,
    ) -> tuple[str, bytes]:
        """Returns: (filename, csv bytes)"""
        user = require_user(user, "report export")
        filename = report_filename("csv", self._clock)
        content = report_to_csv(report)
        await self._audit_logger.log_report_exported(
            owner_id=user.uid,
            export_format="csv",
            filename=filename,
            correlation_id=correlation_id,
        )
        return filename, content

    async def export_pdf(
        self,
        user: Optional[UserIdentity],
        report: ReportData,
        correlation_id: Optional[UUID] = None,
    ) -> tuple[str, bytes]:
        """Returns: (filename, pdf bytes)"""
        user = require_user(user, "report export")
        filename = report_filename("pdf", self._clock)
        content = render_report_pdf(report)
        await self._audit_logger.log_report_exported(
            owner_id=user.uid,
            export_format="pdf",
            filename=filename,
            correlation_id=correlation_id,
        )
        return filename, content

    async def voucher_pdf(
        self,
        user: Optional[UserIdentity],
        voucher: Voucher,
    ) -> tuple[str, bytes]:
        """Returns: (filename, pdf bytes) for one voucher."""
        user = require_user(user, "voucher export")
        return voucher_filename(voucher), render_voucher_pdf(voucher, user, self._clock)

    async def transaction_pdf(
        self,
        user: Optional[UserIdentity],
        transaction: Transaction,
    ) -> tuple[str, bytes]:
        """Returns: (filename, pdf bytes) for one transaction."""
        user = require_user(user, "transaction export")

        category = await self._categories.get(user, transaction.category_id)
        contact = None
        if transaction.contact_id and self._contacts is not None:
            contact = await self._contacts.get(user, transaction.contact_id)

        contact_name = None
        if contact:
            contact_name = f"{contact.name} ({contact.phone})" if contact.phone else contact.name

        content = render_transaction_pdf(
            transaction,
            category_name=category.name if category else None,
            contact_name=contact_name,
            user=user,
            clock=self._clock,
        )
        return transaction_filename(transaction), content


class AppComponents(NamedTuple):
    storage: DocumentStoreInterface
    audit_logger: AuditLogger
    categories: CategoryStore
    transactions: TransactionLedger
    goals: GoalStore
    vouchers: VoucherStore
    contacts: ContactStore
    aggregator: ReportAggregator
    transaction_flow: TransactionFlow
    goal_flow: GoalFlow
    report_flow: ReportFlow


def create_storage_backend() -> DocumentStoreInterface:
    """
    Build the configured document store.

    Falls back to the in-memory store when Google Sheets is selected
    but not configured, so the app still starts.
    """
    app_settings = get_settings().app

    if app_settings.storage_backend == "google_sheets":
        try:
            return GoogleSheetsDocumentStore(GoogleSheetsClient())
        except Exception as e:
            # Storage not configured - continue without it
            logger.warning("storage_not_configured", backend="google_sheets", error=str(e))

    return InMemoryDocumentStore()


def create_app_components(
    backend: Optional[DocumentStoreInterface] = None,
    clock: Optional[Callable[[], datetime]] = None,
) -> AppComponents:
    """
    Factory function to create all application components.

    Args:
        backend: Document store to use. Built from settings when None.
        clock: Source of "now" for every component (tests pin it).
    """
    app_settings = get_settings().app
    configure_logging(app_settings.log_level)

    storage = backend or create_storage_backend()
    audit_logger = AuditLogger(storage)
    validator = FormValidator(app_settings, clock)

    store_args = dict(
        storage=storage,
        audit_logger=audit_logger,
        validator=validator,
        clock=clock,
    )
    categories = CategoryStore(**store_args)
    transactions = TransactionLedger(**store_args)
    goals = GoalStore(**store_args)
    vouchers = VoucherStore(**store_args)
    contacts = ContactStore(**store_args)
    aggregator = ReportAggregator(clock)

    return AppComponents(
        storage=storage,
        audit_logger=audit_logger,
        categories=categories,
        transactions=transactions,
        goals=goals,
        vouchers=vouchers,
        contacts=contacts,
        aggregator=aggregator,
        transaction_flow=TransactionFlow(transactions, vouchers, categories, audit_logger),
        goal_flow=GoalFlow(goals, vouchers, audit_logger),
        report_flow=ReportFlow(
            transactions, goals, categories, aggregator, audit_logger, clock, contacts=contacts,
        ),
    )
