"""
In-Memory Document Store

Process-local implementation of the document store interface. Used by
the test suite and as the default backend when no hosted store is
configured.

Documents are deep-copied on the way in and out so callers can never
mutate stored state by accident.
"""

import asyncio
import copy
from collections import defaultdict
from typing import Any, Optional
from uuid import uuid4

from expense_tracker.services.storage.changes import ChangeFeed, ChangeListener
from expense_tracker.services.storage.interface import (
    BackendError,
    DocumentStoreInterface,
    NotFoundError,
    Unsubscribe,
    matches_filters,
)


class InMemoryDocumentStore(DocumentStoreInterface):
    """Dict-of-dicts document store with change subscriptions."""

    def __init__(self):
        self._collections: dict[str, dict[str, dict[str, Any]]] = defaultdict(dict)
        self._feed = ChangeFeed()
        self._counter_lock = asyncio.Lock()

    def _with_id(self, doc_id: str, data: dict[str, Any]) -> dict[str, Any]:
        document = copy.deepcopy(data)
        document["id"] = doc_id
        return document

    async def add(self, collection: str, data: dict[str, Any]) -> str:
        if "id" in data:
            raise BackendError("Document body must not contain an 'id' field")
        doc_id = uuid4().hex
        self._collections[collection][doc_id] = copy.deepcopy(data)
        self._feed.publish(collection, doc_id, None, self._with_id(doc_id, data))
        return doc_id

    async def get(self, collection: str, doc_id: str) -> Optional[dict[str, Any]]:
        data = self._collections[collection].get(doc_id)
        if data is None:
            return None
        return self._with_id(doc_id, data)

    async def update(
        self,
        collection: str,
        doc_id: str,
        changes: dict[str, Any],
    ) -> dict[str, Any]:
        existing = self._collections[collection].get(doc_id)
        if existing is None:
            raise NotFoundError(f"Document not found: {collection}/{doc_id}")

        before = self._with_id(doc_id, existing)
        merged = {**existing, **copy.deepcopy(changes)}
        merged.pop("id", None)
        self._collections[collection][doc_id] = merged

        after = self._with_id(doc_id, merged)
        self._feed.publish(collection, doc_id, before, after)
        return after

    async def delete(self, collection: str, doc_id: str) -> bool:
        existing = self._collections[collection].pop(doc_id, None)
        if existing is None:
            return False
        self._feed.publish(collection, doc_id, self._with_id(doc_id, existing), None)
        return True

    async def query(
        self,
        collection: str,
        filters: Optional[dict[str, Any]] = None,
    ) -> list[dict[str, Any]]:
        return [
            self._with_id(doc_id, data)
            for doc_id, data in self._collections[collection].items()
            if matches_filters(data, filters)
        ]

    async def increment(
        self,
        collection: str,
        doc_id: str,
        field: str,
        amount: int = 1,
    ) -> int:
        async with self._counter_lock:
            documents = self._collections[collection]
            existing = documents.get(doc_id)
            before = self._with_id(doc_id, existing) if existing is not None else None

            data = dict(existing or {})
            value = int(data.get(field, 0)) + amount
            data[field] = value
            documents[doc_id] = data

            self._feed.publish(collection, doc_id, before, self._with_id(doc_id, data))
            return value

    async def subscribe(
        self,
        collection: str,
        filters: Optional[dict[str, Any]],
        listener: ChangeListener,
    ) -> Unsubscribe:
        unsubscribe = self._feed.register(collection, filters, listener)
        current = await self.query(collection, filters)
        listener(self._feed.initial_batch(collection, current))
        return unsubscribe

    def clear(self) -> None:
        """Drop every collection. Subscriptions stay registered."""
        self._collections.clear()
