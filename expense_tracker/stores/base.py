"""
Shared Store Plumbing

Every typed store (categories, transactions, goals, vouchers, contacts)
sits on top of a DocumentStoreInterface and adds the same three things:

1. An authentication guard on writes
2. Logging and auditing of backend failures before re-raising them
3. Record <-> document conversion, including push subscriptions that
   deliver full, sorted snapshots instead of raw change events

Store operations are never retried. A BackendError always reaches the
caller after it has been logged.
"""

from datetime import datetime
from typing import Any, Awaitable, Callable, Generic, Optional, TypeVar
from uuid import UUID

import structlog
from pydantic import ValidationError as SchemaError

from expense_tracker.audit import AuditLogger
from expense_tracker.auth import AuthenticationError, require_user
from expense_tracker.models.finance import StoredRecord, UserIdentity
from expense_tracker.models.validation import ValidationResult
from expense_tracker.services.storage.changes import ChangeEvent, ChangeType
from expense_tracker.services.storage.interface import (
    BackendError,
    DocumentStoreInterface,
    Unsubscribe,
)
from expense_tracker.validation import FormValidator


RecordT = TypeVar("RecordT", bound=StoredRecord)
T = TypeVar("T")

Clock = Callable[[], datetime]


class SnapshotMirror(Generic[RecordT]):
    """
    Consumer-side mirror of a subscription.

    Applies batches of change events keyed by document id and hands the
    callback the complete, sorted list of records after every batch.
    """

    def __init__(
        self,
        record_type: type[RecordT],
        callback: Callable[[list[RecordT]], None],
        sort_key: Callable[[RecordT], Any],
        reverse: bool = True,
    ):
        self._record_type = record_type
        self._callback = callback
        self._sort_key = sort_key
        self._reverse = reverse
        self._records: dict[str, RecordT] = {}
        self._logger = structlog.get_logger(__name__)

    def apply(self, batch: list[ChangeEvent]) -> None:
        for event in batch:
            if event.change_type == ChangeType.REMOVED:
                self._records.pop(event.doc_id, None)
                continue
            try:
                self._records[event.doc_id] = self._record_type.from_document(event.data)
            except SchemaError as e:
                # Malformed documents are left out of the snapshot
                self._logger.warning(
                    "malformed_document_skipped",
                    collection=event.collection,
                    doc_id=event.doc_id,
                    error=str(e),
                )
                self._records.pop(event.doc_id, None)

        self._callback(self.snapshot())

    def snapshot(self) -> list[RecordT]:
        return sorted(self._records.values(), key=self._sort_key, reverse=self._reverse)


class BaseStore(Generic[RecordT]):
    """Common behaviour of the typed stores."""

    collection: str = ""
    entity_type: str = "record"
    record_type: type[StoredRecord] = StoredRecord

    def __init__(
        self,
        storage: DocumentStoreInterface,
        audit_logger: Optional[AuditLogger] = None,
        validator: Optional[FormValidator] = None,
        clock: Optional[Clock] = None,
    ):
        self._storage = storage
        self._audit = audit_logger or AuditLogger()
        self._clock = clock or datetime.now
        self._validator = validator or FormValidator(clock=self._clock)
        self._logger = structlog.get_logger(__name__).bind(collection=self.collection)

    # -------------------------------------------------------------------------
    # Guards
    # -------------------------------------------------------------------------

    async def _authenticate(
        self,
        user: Optional[UserIdentity],
        operation: str,
        correlation_id: Optional[UUID] = None,
    ) -> UserIdentity:
        """Reject anonymous writes before anything touches storage."""
        try:
            return require_user(user, f"{self.entity_type} {operation}")
        except AuthenticationError:
            await self._audit.log_authentication_failed(
                operation=f"{self.entity_type} {operation}",
                correlation_id=correlation_id,
            )
            raise

    async def _enforce(
        self,
        result: ValidationResult,
        owner_id: str,
        correlation_id: Optional[UUID] = None,
    ) -> ValidationResult:
        """Audit and raise when a validation result carries errors."""
        if result.has_errors:
            await self._audit.log_validation_failed(
                subject=result.subject,
                owner_id=owner_id,
                issues=[issue.model_dump() for issue in result.issues],
                correlation_id=correlation_id,
            )
        return self._validator.ensure_valid(result)

    async def _call(
        self,
        operation: str,
        action: Awaitable[T],
        owner_id: Optional[str] = None,
        correlation_id: Optional[UUID] = None,
    ) -> T:
        """Await a storage call; log, audit and re-raise backend failures."""
        try:
            return await action
        except BackendError as e:
            self._logger.error(
                "backend_operation_failed",
                operation=operation,
                owner_id=owner_id,
                error=str(e),
            )
            await self._audit.log_backend_error(
                operation=operation,
                collection=self.collection,
                error_message=str(e),
                owner_id=owner_id,
                correlation_id=correlation_id,
            )
            raise

    # -------------------------------------------------------------------------
    # Record helpers
    # -------------------------------------------------------------------------

    def _to_record(self, document: dict[str, Any]) -> RecordT:
        return self.record_type.from_document(document)

    def _to_records(self, documents: list[dict[str, Any]]) -> list[RecordT]:
        records = []
        for document in documents:
            try:
                records.append(self._to_record(document))
            except SchemaError as e:
                self._logger.warning(
                    "malformed_document_skipped",
                    doc_id=document.get("id"),
                    error=str(e),
                )
        return records

    async def _insert(
        self,
        record: RecordT,
        correlation_id: Optional[UUID] = None,
    ) -> RecordT:
        doc_id = await self._call(
            "create",
            self._storage.add(self.collection, record.to_document()),
            owner_id=record.owner_id,
            correlation_id=correlation_id,
        )
        return record.model_copy(update={"id": doc_id})

    async def _get_owned(self, user: UserIdentity, record_id: str) -> Optional[RecordT]:
        document = await self._call(
            "get",
            self._storage.get(self.collection, record_id),
            owner_id=user.uid,
        )
        if document is None or document.get("owner_id") != user.uid:
            return None
        return self._to_record(document)

    async def _query_owned(self, owner_id: str, **filters: Any) -> list[RecordT]:
        documents = await self._call(
            "query",
            self._storage.query(self.collection, {"owner_id": owner_id, **filters}),
            owner_id=owner_id,
        )
        return self._to_records(documents)

    async def _merge(
        self,
        user: UserIdentity,
        record_id: str,
        changes: dict[str, Any],
        correlation_id: Optional[UUID] = None,
    ) -> RecordT:
        document = await self._call(
            "update",
            self._storage.update(self.collection, record_id, changes),
            owner_id=user.uid,
            correlation_id=correlation_id,
        )
        await self._audit.log_entity_updated(
            entity_type=self.entity_type,
            entity_id=record_id,
            owner_id=user.uid,
            changed_fields=sorted(changes),
            correlation_id=correlation_id,
        )
        return self._to_record(document)

    async def _remove(
        self,
        user: UserIdentity,
        record_id: str,
        correlation_id: Optional[UUID] = None,
    ) -> bool:
        removed = await self._call(
            "delete",
            self._storage.delete(self.collection, record_id),
            owner_id=user.uid,
            correlation_id=correlation_id,
        )
        if removed:
            await self._audit.log_entity_deleted(
                entity_type=self.entity_type,
                entity_id=record_id,
                owner_id=user.uid,
                correlation_id=correlation_id,
            )
        return removed

    async def _subscribe_owned(
        self,
        owner_id: str,
        callback: Callable[[list[RecordT]], None],
        sort_key: Callable[[RecordT], Any],
        reverse: bool = True,
    ) -> Unsubscribe:
        mirror = SnapshotMirror(self.record_type, callback, sort_key, reverse)
        return await self._call(
            "subscribe",
            self._storage.subscribe(self.collection, {"owner_id": owner_id}, mirror.apply),
            owner_id=owner_id,
        )
