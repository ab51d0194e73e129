"""
Transaction Ledger

CRUD over dated, typed, categorized monetary records. Income and expenses
share the `expenses` collection and are told apart by `type`.

Every transaction gets a human-readable display code:

    {YYYYMMDD}-{owner_id}-{serial:04d}

The serial is per (owner, day) and comes from an atomic counter document,
so two concurrent creates can never draw the same number.
"""

from typing import Callable, Optional
from uuid import UUID

from expense_tracker.models.finance import (
    Transaction,
    TransactionCreate,
    TransactionUpdate,
    UserIdentity,
)
from expense_tracker.services.storage.interface import (
    TRANSACTION_COUNTERS,
    TRANSACTIONS,
    Unsubscribe,
)
from expense_tracker.stores.base import BaseStore
from expense_tracker.validation import ValidationError


COUNTER_FIELD = "value"


def _newest_first(transaction: Transaction):
    return (transaction.date, transaction.created_at)


def filter_transactions(
    transactions: list[Transaction],
    search: Optional[str] = None,
    category_names: Optional[dict[str, str]] = None,
    contact_names: Optional[dict[str, str]] = None,
) -> list[Transaction]:
    """
    Narrow a transaction list for display.

    `search` matches the date (2026-10-12 or 10/12/2026), display code,
    category name, contact name, description, type or amount, ignoring case.
    Categories and contacts are matched by name when a name map is given.
    """
    needle = (search or "").strip().casefold()
    if not needle:
        return list(transactions)

    category_names = category_names or {}
    contact_names = contact_names or {}
    result = []
    for transaction in transactions:
        texts = (
            transaction.date.isoformat(),
            transaction.date.strftime("%m/%d/%Y"),
            transaction.transaction_id or "",
            category_names.get(transaction.category_id, transaction.category_id),
            contact_names.get(transaction.contact_id or "", ""),
            transaction.description,
            transaction.type.value,
            f"{transaction.amount:.2f}",
        )
        if any(needle in text.casefold() for text in texts):
            result.append(transaction)
    return result


class TransactionLedger(BaseStore[Transaction]):
    collection = TRANSACTIONS
    entity_type = "transaction"
    record_type = Transaction

    async def generate_transaction_id(self, owner_id: str) -> str:
        """Next display code for `owner_id` today; the first of a day ends in 0001."""
        day = self._clock().strftime("%Y%m%d")
        serial = await self._call(
            "increment",
            self._storage.increment(
                TRANSACTION_COUNTERS,
                f"{owner_id}_{day}",
                COUNTER_FIELD,
            ),
            owner_id=owner_id,
        )
        return f"{day}-{owner_id}-{serial:04d}"

    async def create(
        self,
        user: Optional[UserIdentity],
        data: TransactionCreate,
        correlation_id: Optional[UUID] = None,
    ) -> Transaction:
        """
        Record a transaction.

        Raises:
            AuthenticationError: No signed-in user
            ValidationError: Missing category or non-positive amount
        """
        user = await self._authenticate(user, "create", correlation_id)
        await self._enforce(
            self._validator.validate_transaction(data),
            user.uid,
            correlation_id,
        )

        transaction_id = data.transaction_id or await self.generate_transaction_id(user.uid)

        transaction = await self._insert(
            Transaction(
                owner_id=user.uid,
                amount=data.amount,
                category_id=data.category_id,
                contact_id=data.contact_id,
                description=data.description,
                type=data.type,
                date=data.date,
                transaction_id=transaction_id,
                created_at=self._clock(),
            ),
            correlation_id,
        )
        await self._audit.log_entity_created(
            entity_type=self.entity_type,
            entity_id=transaction.id,
            owner_id=user.uid,
            label=f"{transaction.type.value} {transaction.amount} ({transaction_id})",
            correlation_id=correlation_id,
        )
        return transaction

    async def get(self, user: UserIdentity, record_id: str) -> Optional[Transaction]:
        return await self._get_owned(user, record_id)

    async def update(
        self,
        user: Optional[UserIdentity],
        record_id: str,
        changes: TransactionUpdate,
        correlation_id: Optional[UUID] = None,
    ) -> Transaction:
        user = await self._authenticate(user, "update", correlation_id)
        if changes.is_empty():
            raise ValidationError.single("transaction", "changes", "Nothing to update")
        return await self._merge(user, record_id, changes.changes(), correlation_id)

    async def delete(
        self,
        user: Optional[UserIdentity],
        record_id: str,
        correlation_id: Optional[UUID] = None,
    ) -> bool:
        user = await self._authenticate(user, "delete", correlation_id)
        return await self._remove(user, record_id, correlation_id)

    async def subscribe(
        self,
        owner_id: str,
        callback: Callable[[list[Transaction]], None],
    ) -> Unsubscribe:
        """
        Push the owner's full transaction list, newest first, on every change.

        The callback fires once immediately with the current list.
        """
        return await self._subscribe_owned(owner_id, callback, _newest_first)

    # Defined last: the method name shadows the builtin inside the class body
    async def list(self, user: UserIdentity) -> list[Transaction]:
        """All of the user's transactions, newest date first."""
        transactions = await self._query_owned(user.uid)
        return sorted(transactions, key=_newest_first, reverse=True)
