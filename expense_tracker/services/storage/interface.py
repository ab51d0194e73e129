"""
Abstract Document Store Interface

DESIGN DECISION: We define an abstract interface for storage operations.
This allows us to:
1. Swap the hosted backend (Google Sheets today) for another store later
2. Use in-memory storage for testing
3. Keep business logic decoupled from storage implementation

The interface mirrors what a hosted document database offers: documents
keyed by opaque ids inside named collections, equality queries, an atomic
counter increment and push-based change subscriptions. Documents are plain
JSON-compatible dicts; typed records live one layer up.
"""

from abc import ABC, abstractmethod
from typing import Any, Callable, Optional

from expense_tracker.services.storage.changes import ChangeListener, matches_filters


# Collection names
CATEGORIES = "categories"
TRANSACTIONS = "expenses"
GOALS = "goals"
VOUCHERS = "vouchers"
CONTACTS = "contacts"
TRANSACTION_COUNTERS = "transaction_counters"
AUDIT_LOG = "audit_log"

ALL_COLLECTIONS = (
    CATEGORIES,
    TRANSACTIONS,
    GOALS,
    VOUCHERS,
    CONTACTS,
    TRANSACTION_COUNTERS,
    AUDIT_LOG,
)

Unsubscribe = Callable[[], None]


class DocumentStoreInterface(ABC):
    """
    Abstract interface for document storage operations.

    Any storage implementation (Google Sheets, Firestore, etc.)
    must implement these methods.

    Documents returned by reads always include their id under the
    "id" key.
    """

    @abstractmethod
    async def add(self, collection: str, data: dict[str, Any]) -> str:
        """
        Insert a new document.

        Args:
            collection: Collection name
            data: Document body (must not contain "id")

        Returns:
            The new document's id

        Raises:
            BackendError: If the write fails
        """
        pass

    @abstractmethod
    async def get(self, collection: str, doc_id: str) -> Optional[dict[str, Any]]:
        """
        Retrieve a document by id.

        Returns:
            The document if found, None otherwise
        """
        pass

    @abstractmethod
    async def update(
        self,
        collection: str,
        doc_id: str,
        changes: dict[str, Any],
    ) -> dict[str, Any]:
        """
        Merge fields into an existing document.

        Returns:
            The merged document

        Raises:
            NotFoundError: If the document doesn't exist
            BackendError: If the write fails
        """
        pass

    @abstractmethod
    async def delete(self, collection: str, doc_id: str) -> bool:
        """
        Delete a document by id.

        Returns:
            True if a document was removed, False if it didn't exist
        """
        pass

    @abstractmethod
    async def query(
        self,
        collection: str,
        filters: Optional[dict[str, Any]] = None,
    ) -> list[dict[str, Any]]:
        """
        List documents whose fields equal every filter value.

        A filter value of None matches documents where the field is
        missing or null. Result order is unspecified.
        """
        pass

    @abstractmethod
    async def increment(
        self,
        collection: str,
        doc_id: str,
        field: str,
        amount: int = 1,
    ) -> int:
        """
        Atomically add `amount` to an integer field and return the new value.

        The document (and field) are created at 0 first if missing.
        """
        pass

    @abstractmethod
    async def subscribe(
        self,
        collection: str,
        filters: Optional[dict[str, Any]],
        listener: ChangeListener,
    ) -> Unsubscribe:
        """
        Register a push listener for documents matching `filters`.

        The listener is called immediately with one batch holding an
        ADDED event per currently matching document (possibly empty),
        then with a batch for every later change.

        Returns:
            A callable that unregisters the listener
        """
        pass


class BackendError(Exception):
    """Base exception for storage operations."""
    pass


class NotFoundError(BackendError):
    """Document not found in storage."""
    pass


class ConnectionError(BackendError):
    """Could not connect to storage backend."""
    pass
