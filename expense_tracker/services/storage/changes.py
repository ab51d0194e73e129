"""
Change Feed

Push-based subscriptions shared by the storage backends.

Writers call ChangeFeed.publish() with the document's state before and
after the write. Each subscription sees the write through its own
filters, so a document that stops matching (e.g. its owner changed)
arrives as REMOVED and one that starts matching arrives as ADDED.

Listeners run synchronously on the writer's event loop, one batch per
write. A failing listener is logged and does not affect the write or
other listeners.
"""

from enum import Enum
from itertools import count
from typing import Any, Callable, Optional

import structlog
from pydantic import BaseModel, Field


class ChangeType(str, Enum):
    ADDED = "added"
    MODIFIED = "modified"
    REMOVED = "removed"


class ChangeEvent(BaseModel):
    """One document-level change over a stable document id."""

    change_type: ChangeType
    collection: str
    doc_id: str
    data: dict[str, Any] = Field(
        default_factory=dict,
        description="Document after the change (before it, for REMOVED)"
    )


ChangeListener = Callable[[list[ChangeEvent]], None]


def matches_filters(document: Optional[dict[str, Any]], filters: Optional[dict[str, Any]]) -> bool:
    """Equality match used by every backend (filtering happens in Python)."""
    if document is None:
        return False
    if not filters:
        return True
    return all(document.get(key) == value for key, value in filters.items())


class _Subscription:
    def __init__(
        self,
        collection: str,
        filters: Optional[dict[str, Any]],
        listener: ChangeListener,
    ):
        self.collection = collection
        self.filters = dict(filters or {})
        self.listener = listener


class ChangeFeed:
    """Registry of listeners plus fan-out of document changes."""

    def __init__(self):
        self._subscriptions: dict[int, _Subscription] = {}
        self._ids = count(1)
        self._logger = structlog.get_logger(__name__)

    def register(
        self,
        collection: str,
        filters: Optional[dict[str, Any]],
        listener: ChangeListener,
    ) -> Callable[[], None]:
        key = next(self._ids)
        self._subscriptions[key] = _Subscription(collection, filters, listener)

        def unsubscribe() -> None:
            self._subscriptions.pop(key, None)

        return unsubscribe

    @property
    def subscriber_count(self) -> int:
        return len(self._subscriptions)

    def publish(
        self,
        collection: str,
        doc_id: str,
        before: Optional[dict[str, Any]],
        after: Optional[dict[str, Any]],
    ) -> None:
        for subscription in list(self._subscriptions.values()):
            if subscription.collection != collection:
                continue

            was_match = matches_filters(before, subscription.filters)
            is_match = matches_filters(after, subscription.filters)

            if is_match and not was_match:
                event = ChangeEvent(
                    change_type=ChangeType.ADDED,
                    collection=collection,
                    doc_id=doc_id,
                    data=after,
                )
            elif is_match and was_match:
                event = ChangeEvent(
                    change_type=ChangeType.MODIFIED,
                    collection=collection,
                    doc_id=doc_id,
                    data=after,
                )
            elif was_match:
                event = ChangeEvent(
                    change_type=ChangeType.REMOVED,
                    collection=collection,
                    doc_id=doc_id,
                    data=before,
                )
            else:
                continue

            self._deliver(subscription, [event])

    def initial_batch(
        self,
        collection: str,
        documents: list[dict[str, Any]],
    ) -> list[ChangeEvent]:
        """ADDED events describing the current state of a new subscription."""
        return [
            ChangeEvent(
                change_type=ChangeType.ADDED,
                collection=collection,
                doc_id=document["id"],
                data=document,
            )
            for document in documents
        ]

    def _deliver(self, subscription: _Subscription, batch: list[ChangeEvent]) -> None:
        try:
            subscription.listener(batch)
        except Exception as e:
            self._logger.error(
                "change_listener_failed",
                collection=subscription.collection,
                error=str(e),
            )
