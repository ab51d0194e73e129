"""
Voucher Store

Numbered vouchers summarizing one financial event. A voucher is created
standalone, from a transaction, or from a goal contribution. Once issued
it is never edited; it can only be voided (or deleted outright).

Voucher numbers look like VCH-483920-K7Q2ZA:
    {prefix}-{last 6 digits of the ms timestamp}-{6 random base-36 chars}
"""

import secrets
import string
from decimal import Decimal
from typing import Callable, Optional
from uuid import UUID

from expense_tracker.config import get_settings
from expense_tracker.models.finance import (
    Goal,
    Transaction,
    TransactionType,
    UserIdentity,
    Voucher,
    VoucherCreate,
    VoucherStatus,
    VoucherType,
)
from expense_tracker.services.storage.interface import VOUCHERS, Unsubscribe
from expense_tracker.stores.base import BaseStore
from expense_tracker.validation import ValidationError


VOUCHER_ALPHABET = string.digits + string.ascii_uppercase


def _created_at(voucher: Voucher):
    return voucher.created_at


def filter_vouchers(
    vouchers: list[Voucher],
    search: Optional[str] = None,
    voucher_type: Optional[VoucherType] = None,
    status: Optional[VoucherStatus] = None,
) -> list[Voucher]:
    """
    Narrow a voucher list for display.

    `search` matches title, description or voucher number, ignoring case.
    """
    needle = (search or "").strip().casefold()
    result = []
    for voucher in vouchers:
        if voucher_type is not None and voucher.type != voucher_type:
            continue
        if status is not None and voucher.status != status:
            continue
        if needle and not any(
            needle in text.casefold()
            for text in (voucher.title, voucher.description, voucher.voucher_number)
        ):
            continue
        result.append(voucher)
    return result


class VoucherStore(BaseStore[Voucher]):
    collection = VOUCHERS
    entity_type = "voucher"
    record_type = Voucher

    def __init__(self, *args, prefix: Optional[str] = None, **kwargs):
        super().__init__(*args, **kwargs)
        self._prefix = prefix or get_settings().app.voucher_prefix

    def generate_voucher_number(self) -> str:
        millis = int(self._clock().timestamp() * 1000)
        suffix = "".join(secrets.choice(VOUCHER_ALPHABET) for _ in range(6))
        return f"{self._prefix}-{millis % 1_000_000:06d}-{suffix}"

    async def create(
        self,
        user: Optional[UserIdentity],
        data: VoucherCreate,
        correlation_id: Optional[UUID] = None,
    ) -> Voucher:
        """Issue a new ACTIVE voucher with a fresh number."""
        user = await self._authenticate(user, "create", correlation_id)

        voucher = await self._insert(
            Voucher(
                owner_id=user.uid,
                voucher_number=self.generate_voucher_number(),
                type=data.type,
                title=data.title,
                description=data.description,
                amount=data.amount,
                category=data.category,
                date=data.date,
                related_transaction_id=data.related_transaction_id,
                related_goal_id=data.related_goal_id,
                status=VoucherStatus.ACTIVE,
                created_at=self._clock(),
            ),
            correlation_id,
        )
        await self._audit.log_voucher_issued(
            voucher_id=voucher.id,
            owner_id=user.uid,
            voucher_number=voucher.voucher_number,
            voucher_type=voucher.type.value,
            related_id=voucher.related_transaction_id or voucher.related_goal_id,
            correlation_id=correlation_id,
        )
        return voucher

    async def create_from_transaction(
        self,
        user: Optional[UserIdentity],
        transaction: Transaction,
        category: Optional[str] = None,
        correlation_id: Optional[UUID] = None,
    ) -> Voucher:
        """
        Voucher mirroring a stored transaction.

        Args:
            category: Display name for the voucher; defaults to the
                      transaction's category id
        """
        if not transaction.id:
            raise ValidationError.single(
                "voucher",
                "related_transaction_id",
                "Cannot issue a voucher for a transaction that has not been saved",
            )

        is_income = transaction.type == TransactionType.INCOME
        return await self.create(
            user,
            VoucherCreate(
                type=VoucherType.INCOME if is_income else VoucherType.EXPENSE,
                title="Income Voucher" if is_income else "Expense Voucher",
                description=transaction.description,
                amount=transaction.amount,
                category=category or transaction.category_id,
                date=transaction.date,
                related_transaction_id=transaction.id,
            ),
            correlation_id,
        )

    async def create_from_goal_contribution(
        self,
        user: Optional[UserIdentity],
        goal: Goal,
        amount: Decimal,
        correlation_id: Optional[UUID] = None,
    ) -> Voucher:
        """Voucher for money put toward a goal, dated today."""
        if not goal.id:
            raise ValidationError.single(
                "voucher",
                "related_goal_id",
                "Cannot issue a voucher for a goal that has not been saved",
            )

        return await self.create(
            user,
            VoucherCreate(
                type=VoucherType.GOAL_CONTRIBUTION,
                title="Goal Contribution Voucher",
                description=f"Contribution to {goal.title}",
                amount=amount,
                category=goal.category,
                date=self._clock().date(),
                related_goal_id=goal.id,
            ),
            correlation_id,
        )

    async def get(self, user: UserIdentity, voucher_id: str) -> Optional[Voucher]:
        return await self._get_owned(user, voucher_id)

    async def void(
        self,
        user: Optional[UserIdentity],
        voucher_id: str,
        correlation_id: Optional[UUID] = None,
    ) -> Voucher:
        """Mark a voucher VOID. This is the only mutation a voucher allows."""
        user = await self._authenticate(user, "void", correlation_id)
        document = await self._call(
            "void",
            self._storage.update(self.collection, voucher_id, {
                "status": VoucherStatus.VOID.value,
            }),
            owner_id=user.uid,
            correlation_id=correlation_id,
        )
        await self._audit.log_voucher_voided(
            voucher_id=voucher_id,
            owner_id=user.uid,
            correlation_id=correlation_id,
        )
        return self._to_record(document)

    async def delete(
        self,
        user: Optional[UserIdentity],
        voucher_id: str,
        correlation_id: Optional[UUID] = None,
    ) -> bool:
        user = await self._authenticate(user, "delete", correlation_id)
        return await self._remove(user, voucher_id, correlation_id)

    async def subscribe(
        self,
        owner_id: str,
        callback: Callable[[list[Voucher]], None],
    ) -> Unsubscribe:
        """Push the owner's vouchers, newest first, on every change."""
        return await self._subscribe_owned(owner_id, callback, _created_at)

    async def list(self, user: UserIdentity) -> list[Voucher]:
        """The user's vouchers, most recently issued first."""
        vouchers = await self._query_owned(user.uid)
        return sorted(vouchers, key=_created_at, reverse=True)
