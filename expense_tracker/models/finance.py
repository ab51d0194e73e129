"""
Core Data Models for Expense Tracker

These models define the strict schemas for every record kept in the
document store. They are designed to:
1. Enforce type safety at runtime
2. Provide clear validation error messages
3. Convert to and from store documents at one boundary
4. Enumerate exactly which fields each update may touch

DESIGN DECISION: Partial updates use dedicated models (CategoryUpdate,
TransactionUpdate, ...) with extra="forbid". An unexpected field is a
validation error, never a silent pass-through into the store.

NOTE: the `datetime` module is imported as `dt` because several records
have a field literally called `date`.
"""

import datetime as dt
from decimal import Decimal
from enum import Enum
from typing import Any, Optional

from pydantic import BaseModel, ConfigDict, Field, model_validator


# =============================================================================
# ENUMS - Finite set of valid values
# =============================================================================

class TransactionType(str, Enum):
    """Direction of a transaction. Determines sign when aggregated."""
    EXPENSE = "expense"
    INCOME = "income"


class GoalPriority(str, Enum):
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"


class GoalStatus(str, Enum):
    """
    Goal lifecycle.

    COMPLETED is only ever set by the contribution operation.
    """
    ACTIVE = "active"
    COMPLETED = "completed"
    PAUSED = "paused"


class VoucherType(str, Enum):
    EXPENSE = "expense"
    INCOME = "income"
    LOAN = "loan"
    SETTLEMENT = "settlement"
    GOAL_CONTRIBUTION = "goal_contribution"


class VoucherStatus(str, Enum):
    """Vouchers are never edited; they can only be voided."""
    ACTIVE = "active"
    VOID = "void"


class ContactPriority(str, Enum):
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"


# =============================================================================
# IDENTITY
# =============================================================================

class UserIdentity(BaseModel):
    """
    The authenticated user, as supplied by the authentication provider.

    Passed explicitly into store operations instead of being read from
    ambient global state.
    """
    model_config = ConfigDict(str_strip_whitespace=True, frozen=True)

    uid: str = Field(..., min_length=1, max_length=128)
    display_name: Optional[str] = Field(default=None, max_length=200)
    email: Optional[str] = Field(default=None, max_length=320)
    photo_url: Optional[str] = None


# =============================================================================
# BASE RECORD
# =============================================================================

class StoredRecord(BaseModel):
    """
    Base for everything persisted in the document store.

    `id` is the store's opaque document key; it is not part of the
    document body.
    """
    model_config = ConfigDict(str_strip_whitespace=True)

    id: Optional[str] = Field(
        default=None,
        description="Opaque document identifier assigned by the store"
    )
    owner_id: str = Field(
        ...,
        min_length=1,
        description="uid of the user who created and controls this record"
    )

    def to_document(self) -> dict[str, Any]:
        """Serialize to a store document (ISO dates, string decimals)."""
        return self.model_dump(mode="json", exclude={"id"})

    @classmethod
    def from_document(cls, document: dict[str, Any]):
        """Build a record from a store document that includes its `id`."""
        return cls.model_validate(document)


class PartialUpdate(BaseModel):
    """Base for typed partial updates. Unknown fields are rejected."""
    model_config = ConfigDict(str_strip_whitespace=True, extra="forbid")

    def changes(self) -> dict[str, Any]:
        """Only the fields the caller actually set, serialized for the store."""
        return self.model_dump(mode="json", exclude_unset=True)

    def is_empty(self) -> bool:
        return not self.model_fields_set


# =============================================================================
# CATEGORIES
# =============================================================================

class Category(StoredRecord):
    """
    A named, iconized label in the user's category forest.

    Top-level categories have no parent.
    """
    name: str = Field(..., min_length=1, max_length=100)
    icon: str = Field(default="📂", max_length=16)
    parent_id: Optional[str] = Field(
        default=None,
        description="Parent category id, None for roots"
    )
    created_at: dt.datetime = Field(default_factory=dt.datetime.now)

    @property
    def is_root(self) -> bool:
        return self.parent_id is None


class CategoryUpdate(PartialUpdate):
    """Only the name and icon of a category may change."""
    name: Optional[str] = Field(default=None, min_length=1, max_length=100)
    icon: Optional[str] = Field(default=None, max_length=16)


class CategoryNode(BaseModel):
    """A category with its expanded subtree."""
    category: Category
    children: list["CategoryNode"] = Field(default_factory=list)

    def walk(self):
        """Yield this node's category and all descendants, depth first."""
        yield self.category
        for child in self.children:
            yield from child.walk()


# =============================================================================
# TRANSACTIONS
# =============================================================================

class TransactionCreate(BaseModel):
    """Fields a user supplies when recording a transaction."""
    model_config = ConfigDict(str_strip_whitespace=True)

    amount: Decimal = Field(..., ge=0, decimal_places=2)
    category_id: str = Field(default="", max_length=128)
    contact_id: Optional[str] = None
    description: str = Field(default="", max_length=1000)
    type: TransactionType = TransactionType.EXPENSE
    date: dt.date = Field(default_factory=dt.date.today)
    transaction_id: Optional[str] = Field(
        default=None,
        description="Preset display code; generated when absent"
    )


class Transaction(StoredRecord):
    """
    A dated monetary record. Stored in the `expenses` collection
    regardless of direction.
    """
    amount: Decimal = Field(..., ge=0, decimal_places=2)
    category_id: str = Field(..., min_length=1)
    contact_id: Optional[str] = None
    description: str = Field(default="", max_length=1000)
    type: TransactionType
    date: dt.date
    transaction_id: Optional[str] = Field(
        default=None,
        description="Human-readable {YYYYMMDD}-{owner}-{serial} code"
    )
    created_at: dt.datetime = Field(default_factory=dt.datetime.now)

    @property
    def signed_amount(self) -> Decimal:
        return self.amount if self.type == TransactionType.INCOME else -self.amount


class TransactionUpdate(PartialUpdate):
    amount: Optional[Decimal] = Field(default=None, ge=0, decimal_places=2)
    category_id: Optional[str] = Field(default=None, min_length=1)
    contact_id: Optional[str] = None
    description: Optional[str] = Field(default=None, max_length=1000)
    type: Optional[TransactionType] = None
    date: Optional[dt.date] = None


# =============================================================================
# GOALS
# =============================================================================

class GoalCreate(BaseModel):
    model_config = ConfigDict(str_strip_whitespace=True)

    title: str = Field(default="", max_length=200)
    description: str = Field(default="", max_length=1000)
    target_amount: Decimal = Field(..., decimal_places=2)
    current_amount: Decimal = Field(default=Decimal("0"), ge=0, decimal_places=2)
    category: str = Field(default="other", max_length=100)
    priority: GoalPriority = GoalPriority.MEDIUM
    status: GoalStatus = GoalStatus.ACTIVE
    target_date: dt.date


class Goal(StoredRecord):
    """
    A savings goal.

    `target_amount` is allowed to be zero here so legacy documents still
    load; progress computation rejects such goals explicitly.
    """
    title: str = Field(..., min_length=1, max_length=200)
    description: str = Field(default="", max_length=1000)
    target_amount: Decimal = Field(..., ge=0, decimal_places=2)
    current_amount: Decimal = Field(default=Decimal("0"), ge=0, decimal_places=2)
    category: str = Field(default="other", max_length=100)
    priority: GoalPriority = GoalPriority.MEDIUM
    status: GoalStatus = GoalStatus.ACTIVE
    target_date: dt.date
    created_at: dt.datetime = Field(default_factory=dt.datetime.now)
    updated_at: dt.datetime = Field(default_factory=dt.datetime.now)

    @property
    def remaining_amount(self) -> Decimal:
        return max(self.target_amount - self.current_amount, Decimal("0"))


class GoalUpdate(PartialUpdate):
    """
    Plain goal edit.

    Setting current_amount here does NOT re-derive status; only
    a contribution does that.
    """
    title: Optional[str] = Field(default=None, min_length=1, max_length=200)
    description: Optional[str] = Field(default=None, max_length=1000)
    target_amount: Optional[Decimal] = Field(default=None, gt=0, decimal_places=2)
    current_amount: Optional[Decimal] = Field(default=None, ge=0, decimal_places=2)
    category: Optional[str] = Field(default=None, max_length=100)
    priority: Optional[GoalPriority] = None
    status: Optional[GoalStatus] = None
    target_date: Optional[dt.date] = None


# =============================================================================
# VOUCHERS
# =============================================================================

class VoucherCreate(BaseModel):
    model_config = ConfigDict(str_strip_whitespace=True)

    type: VoucherType
    title: str = Field(..., min_length=1, max_length=200)
    description: str = Field(default="", max_length=2000)
    amount: Decimal = Field(..., ge=0, decimal_places=2)
    category: str = Field(default="other", max_length=100)
    date: dt.date = Field(default_factory=dt.date.today)
    related_transaction_id: Optional[str] = None
    related_goal_id: Optional[str] = None


class Voucher(StoredRecord):
    """A generated, numbered document summarizing one financial event."""
    voucher_number: str = Field(..., min_length=1)
    type: VoucherType
    title: str = Field(..., min_length=1, max_length=200)
    description: str = Field(default="", max_length=2000)
    amount: Decimal = Field(..., ge=0, decimal_places=2)
    category: str = Field(default="other", max_length=100)
    date: dt.date
    related_transaction_id: Optional[str] = None
    related_goal_id: Optional[str] = None
    status: VoucherStatus = VoucherStatus.ACTIVE
    created_at: dt.datetime = Field(default_factory=dt.datetime.now)


# =============================================================================
# CONTACTS
# =============================================================================

class ContactCreate(BaseModel):
    model_config = ConfigDict(str_strip_whitespace=True)

    name: str = Field(default="", max_length=200)
    category_id: str = Field(default="", max_length=128)
    phone: str = Field(default="", max_length=50)
    email: str = Field(default="", max_length=320)
    address: str = Field(default="", max_length=500)
    priority: ContactPriority = ContactPriority.MEDIUM


class Contact(StoredRecord):
    name: str = Field(..., min_length=1, max_length=200)
    category_id: str = Field(..., min_length=1)
    phone: str = Field(default="", max_length=50)
    email: str = Field(default="", max_length=320)
    address: str = Field(default="", max_length=500)
    priority: ContactPriority = ContactPriority.MEDIUM
    created_at: dt.datetime = Field(default_factory=dt.datetime.now)


class ContactUpdate(PartialUpdate):
    name: Optional[str] = Field(default=None, min_length=1, max_length=200)
    category_id: Optional[str] = Field(default=None, min_length=1)
    phone: Optional[str] = Field(default=None, max_length=50)
    email: Optional[str] = Field(default=None, max_length=320)
    address: Optional[str] = Field(default=None, max_length=500)
    priority: Optional[ContactPriority] = None


# =============================================================================
# QUERY HELPERS
# =============================================================================

class DateRange(BaseModel):
    """Inclusive date window. A missing bound is open-ended."""

    start: Optional[dt.date] = None
    end: Optional[dt.date] = None

    @model_validator(mode='after')
    def validate_bounds(self) -> 'DateRange':
        if self.start and self.end and self.end < self.start:
            raise ValueError("Date range end cannot be before start")
        return self

    @property
    def is_open(self) -> bool:
        return self.start is None and self.end is None

    def contains(self, day: dt.date) -> bool:
        if self.start and day < self.start:
            return False
        if self.end and day > self.end:
            return False
        return True

    def describe(self) -> str:
        """Human-readable period, e.g. 'Jan 01, 2026 - Mar 31, 2026'."""
        if self.start and self.end:
            return f"{self.start:%b %d, %Y} - {self.end:%b %d, %Y}"
        if self.start:
            return f"From {self.start:%b %d, %Y}"
        if self.end:
            return f"Until {self.end:%b %d, %Y}"
        return "All time"
