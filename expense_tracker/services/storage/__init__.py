"""
Storage Services Package

Provides the abstract document store interface and its implementations.
Google Sheets is the hosted backend; the in-memory store backs tests and
local runs. Both are swappable behind DocumentStoreInterface.
"""

from expense_tracker.services.storage.changes import (
    ChangeEvent,
    ChangeFeed,
    ChangeListener,
    ChangeType,
)
from expense_tracker.services.storage.interface import (
    ALL_COLLECTIONS,
    AUDIT_LOG,
    CATEGORIES,
    CONTACTS,
    GOALS,
    TRANSACTION_COUNTERS,
    TRANSACTIONS,
    VOUCHERS,
    BackendError,
    ConnectionError,
    DocumentStoreInterface,
    NotFoundError,
    Unsubscribe,
)
from expense_tracker.services.storage.memory import InMemoryDocumentStore
from expense_tracker.services.storage.google_sheets import (
    GoogleSheetsClient,
    GoogleSheetsDocumentStore,
)

__all__ = [
    # Collections
    "ALL_COLLECTIONS",
    "AUDIT_LOG",
    "CATEGORIES",
    "CONTACTS",
    "GOALS",
    "TRANSACTION_COUNTERS",
    "TRANSACTIONS",
    "VOUCHERS",
    # Interface
    "DocumentStoreInterface",
    "Unsubscribe",
    # Change feed
    "ChangeEvent",
    "ChangeFeed",
    "ChangeListener",
    "ChangeType",
    # Exceptions
    "BackendError",
    "ConnectionError",
    "NotFoundError",
    # Implementations
    "GoogleSheetsClient",
    "GoogleSheetsDocumentStore",
    "InMemoryDocumentStore",
]
