"""
Data Models Package

This package contains all Pydantic models used in the Expense Tracker.
All data flowing through the system must conform to these schemas.
"""

from expense_tracker.models.finance import (
    Category,
    CategoryNode,
    CategoryUpdate,
    Contact,
    ContactCreate,
    ContactPriority,
    ContactUpdate,
    DateRange,
    Goal,
    GoalCreate,
    GoalPriority,
    GoalStatus,
    GoalUpdate,
    StoredRecord,
    Transaction,
    TransactionCreate,
    TransactionType,
    TransactionUpdate,
    UserIdentity,
    Voucher,
    VoucherCreate,
    VoucherStatus,
    VoucherType,
)
from expense_tracker.models.report import (
    CategoryTotal,
    DashboardStats,
    GoalProgress,
    MonthlyTrend,
    ReportData,
)
from expense_tracker.models.validation import (
    ValidationIssue,
    ValidationResult,
)
from expense_tracker.models.audit import (
    AuditEvent,
    AuditEventBuilder,
    AuditEventType,
    AuditSeverity,
)

__all__ = [
    # Records
    "Category",
    "CategoryNode",
    "CategoryUpdate",
    "Contact",
    "ContactCreate",
    "ContactPriority",
    "ContactUpdate",
    "DateRange",
    "Goal",
    "GoalCreate",
    "GoalPriority",
    "GoalStatus",
    "GoalUpdate",
    "StoredRecord",
    "Transaction",
    "TransactionCreate",
    "TransactionType",
    "TransactionUpdate",
    "UserIdentity",
    "Voucher",
    "VoucherCreate",
    "VoucherStatus",
    "VoucherType",
    # Reports
    "CategoryTotal",
    "DashboardStats",
    "GoalProgress",
    "MonthlyTrend",
    "ReportData",
    # Validation
    "ValidationIssue",
    "ValidationResult",
    # Audit models
    "AuditEvent",
    "AuditEventBuilder",
    "AuditEventType",
    "AuditSeverity",
]
