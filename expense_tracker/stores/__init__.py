"""
Typed Stores Package

One store per record kind, each layered over DocumentStoreInterface.
"""

from expense_tracker.stores.base import BaseStore, SnapshotMirror
from expense_tracker.stores.categories import CategoryStore
from expense_tracker.stores.contacts import ContactStore
from expense_tracker.stores.goals import GoalStore
from expense_tracker.stores.transactions import TransactionLedger, filter_transactions
from expense_tracker.stores.vouchers import VoucherStore, filter_vouchers

__all__ = [
    "BaseStore",
    "CategoryStore",
    "ContactStore",
    "GoalStore",
    "SnapshotMirror",
    "TransactionLedger",
    "VoucherStore",
    "filter_transactions",
    "filter_vouchers",
]
