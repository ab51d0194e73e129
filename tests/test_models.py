"""
Tests for Expense Tracker

Test strategy:
1. Unit tests for individual components (models, validators, aggregator)
2. Store and flow tests against the in-memory document store
3. No real API calls in tests (Google Sheets is faked)
"""

import pytest
from datetime import date, datetime
from decimal import Decimal
from uuid import uuid4

from pydantic import ValidationError as SchemaError

from expense_tracker.models.finance import (
    Category,
    CategoryNode,
    CategoryUpdate,
    DateRange,
    Goal,
    GoalStatus,
    GoalUpdate,
    Transaction,
    TransactionCreate,
    TransactionType,
    UserIdentity,
    Voucher,
    VoucherStatus,
    VoucherType,
)
from expense_tracker.models.validation import ValidationIssue, ValidationResult
from expense_tracker.models.audit import (
    AuditEvent,
    AuditEventBuilder,
    AuditEventType,
    AuditSeverity,
)


class TestRecordModels:
    """Tests for record Pydantic models."""

    def test_user_identity_strips_whitespace(self):
        """Test that whitespace is stripped from the uid."""
        user = UserIdentity(uid="  alice  ")
        assert user.uid == "alice"

    def test_user_identity_requires_uid(self):
        with pytest.raises(SchemaError):
            UserIdentity(uid="")

    def test_category_defaults(self):
        """Test Category model creation with defaults."""
        category = Category(owner_id="alice", name="Food")
        assert category.icon == "📂"
        assert category.parent_id is None
        assert category.is_root

    def test_transaction_rejects_negative_amount(self):
        """Test that negative amounts are rejected."""
        with pytest.raises(ValueError):
            Transaction(
                owner_id="alice",
                amount=Decimal("-1"),
                category_id="food",
                type=TransactionType.EXPENSE,
                date=date(2026, 10, 1),
            )

    def test_transaction_document_round_trip_keeps_id_outside_body(self):
        transaction = Transaction(
            id="doc-1",
            owner_id="alice",
            amount=Decimal("12.50"),
            category_id="food",
            type=TransactionType.EXPENSE,
            date=date(2026, 10, 1),
            created_at=datetime(2026, 10, 1, 9, 0),
        )
        document = transaction.to_document()

        assert "id" not in document
        assert document["date"] == "2026-10-01"
        assert document["type"] == "expense"

        restored = Transaction.from_document({**document, "id": "doc-1"})
        assert restored == transaction

    def test_signed_amount(self):
        expense = Transaction(
            owner_id="alice",
            amount=Decimal("10"),
            category_id="c",
            type=TransactionType.EXPENSE,
            date=date(2026, 10, 1),
        )
        income = expense.model_copy(update={"type": TransactionType.INCOME})
        assert expense.signed_amount == Decimal("-10")
        assert income.signed_amount == Decimal("10")

    def test_transaction_create_defaults_to_expense_today(self):
        data = TransactionCreate(amount=Decimal("5"), category_id="c")
        assert data.type == TransactionType.EXPENSE
        assert data.date == date.today()

    def test_goal_remaining_amount_never_negative(self):
        goal = Goal(
            owner_id="alice",
            title="Bike",
            target_amount=Decimal("100"),
            current_amount=Decimal("150"),
            target_date=date(2027, 1, 1),
        )
        assert goal.remaining_amount == Decimal("0")

    def test_voucher_defaults_to_active(self):
        voucher = Voucher(
            owner_id="alice",
            voucher_number="VCH-000001-ABCDEF",
            type=VoucherType.EXPENSE,
            title="Expense Voucher",
            amount=Decimal("1"),
            date=date(2026, 10, 1),
        )
        assert voucher.status == VoucherStatus.ACTIVE

    def test_category_node_walk_is_depth_first(self):
        root = Category(id="r", owner_id="a", name="Root")
        child = Category(id="c", owner_id="a", name="Child", parent_id="r")
        leaf = Category(id="l", owner_id="a", name="Leaf", parent_id="c")
        node = CategoryNode(
            category=root,
            children=[CategoryNode(category=child, children=[CategoryNode(category=leaf)])],
        )
        assert [c.id for c in node.walk()] == ["r", "c", "l"]


class TestPartialUpdates:
    """Typed partial updates only carry what was set."""

    def test_category_update_rejects_unknown_fields(self):
        with pytest.raises(SchemaError):
            CategoryUpdate(parent_id="x")

    def test_changes_only_include_set_fields(self):
        update = GoalUpdate(current_amount=Decimal("40"))
        assert update.changes() == {"current_amount": "40"}

    def test_empty_update(self):
        assert CategoryUpdate().is_empty()
        assert not CategoryUpdate(name="Food").is_empty()

    def test_goal_update_rejects_zero_target(self):
        with pytest.raises(SchemaError):
            GoalUpdate(target_amount=Decimal("0"))


class TestDateRange:
    """Tests for the inclusive date window."""

    def test_contains_is_inclusive(self):
        window = DateRange(start=date(2026, 1, 1), end=date(2026, 1, 31))
        assert window.contains(date(2026, 1, 1))
        assert window.contains(date(2026, 1, 31))
        assert not window.contains(date(2026, 2, 1))

    def test_end_before_start_rejected(self):
        with pytest.raises(ValueError):
            DateRange(start=date(2026, 2, 1), end=date(2026, 1, 1))

    def test_open_bounds(self):
        assert DateRange().is_open
        assert DateRange(end=date(2026, 1, 1)).contains(date(2000, 1, 1))

    def test_describe(self):
        window = DateRange(start=date(2026, 1, 1), end=date(2026, 3, 31))
        assert window.describe() == "Jan 01, 2026 - Mar 31, 2026"
        assert DateRange(start=date(2026, 1, 1)).describe() == "From Jan 01, 2026"
        assert DateRange().describe() == "All time"


class TestAuditModels:
    """Tests for audit-related models."""

    def test_audit_event_creation(self):
        """Test AuditEvent model creation."""
        event = AuditEvent(
            event_type=AuditEventType.ENTITY_CREATED,
            description="Category created",
        )
        assert event.event_type == AuditEventType.ENTITY_CREATED
        assert event.severity == AuditSeverity.INFO

    def test_audit_event_to_log_dict(self):
        """Test conversion to log dictionary."""
        event = AuditEvent(
            event_type=AuditEventType.VOUCHER_ISSUED,
            description="Voucher issued",
            details={"voucher_number": "VCH-1"},
        )
        log_dict = event.to_log_dict()
        assert "event_id" in log_dict
        assert log_dict["event_type"] == "voucher_issued"
        assert log_dict["details"]["voucher_number"] == "VCH-1"

    def test_audit_event_to_document_is_json_ready(self):
        event = AuditEvent(
            event_type=AuditEventType.REPORT_GENERATED,
            description="Report generated",
            correlation_id=uuid4(),
        )
        document = event.to_document()
        assert isinstance(document["event_id"], str)
        assert isinstance(document["timestamp"], str)
        assert document["event_type"] == "report_generated"

    def test_audit_event_builder_goal_completed(self):
        """A contribution that completes the goal is its own event type."""
        correlation_id = uuid4()
        event = AuditEventBuilder.goal_contribution(
            goal_id="g1",
            owner_id="alice",
            amount="50",
            new_amount="100",
            status="completed",
            correlation_id=correlation_id,
        )
        assert event.event_type == AuditEventType.GOAL_COMPLETED
        assert event.entity_id == "g1"
        assert event.correlation_id == correlation_id
        assert event.is_user_action is True

    def test_audit_event_builder_backend_error(self):
        event = AuditEventBuilder.backend_error(
            operation="create",
            collection="expenses",
            error_message="quota exceeded",
        )
        assert event.severity == AuditSeverity.ERROR
        assert event.error_message == "quota exceeded"
        assert event.details["collection"] == "expenses"


class TestValidationResult:
    """Tests for ValidationResult model."""

    def test_validation_result_has_errors(self):
        """Test has_errors property."""
        result = ValidationResult(
            subject="transaction",
            required_valid=False,
            semantic_valid=False,
            issues=[
                ValidationIssue(
                    field="amount",
                    issue_type="missing",
                    message="Amount required",
                    severity="error",
                ),
            ],
        )
        assert result.has_errors is True
        assert result.is_valid is False
        assert result.error_count == 1

    def test_validation_result_warnings_only(self):
        """Test that warnings don't count as errors."""
        result = ValidationResult(
            subject="transaction",
            required_valid=True,
            semantic_valid=False,
            issues=[
                ValidationIssue(
                    field="date",
                    issue_type="future_date",
                    message="Date in future",
                    severity="warning",
                ),
            ],
        )
        assert result.has_errors is False
        assert result.is_valid is True
        assert result.warnings == ["Date in future"]


class TestEnums:
    """Tests for enum string values."""

    def test_goal_status_values(self):
        assert GoalStatus("completed") is GoalStatus.COMPLETED
        assert {s.value for s in GoalStatus} == {"active", "completed", "paused"}

    def test_voucher_type_values(self):
        assert VoucherType.GOAL_CONTRIBUTION.value == "goal_contribution"
        assert len(VoucherType) == 5


if __name__ == "__main__":
    pytest.main([__file__, "-v"])
