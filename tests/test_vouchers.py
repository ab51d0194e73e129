"""Tests for the voucher store."""

import re
from datetime import date
from decimal import Decimal

import pytest

from expense_tracker.auth import AuthenticationError
from expense_tracker.models.finance import (
    Goal,
    Transaction,
    TransactionType,
    VoucherCreate,
    VoucherStatus,
    VoucherType,
)
from expense_tracker.stores import filter_vouchers
from expense_tracker.validation import ValidationError


VOUCHER_NUMBER = re.compile(r"^VCH-\d{6}-[0-9A-Z]{6}$")


def saved_transaction(type_=TransactionType.EXPENSE, **extra):
    fields = dict(
        id="tx-1",
        owner_id="alice",
        amount=Decimal("42.00"),
        category_id="food",
        description="Groceries",
        type=type_,
        date=date(2026, 10, 12),
    )
    fields.update(extra)
    return Transaction(**fields)


class TestVoucherNumbers:

    def test_format(self, vouchers):
        assert VOUCHER_NUMBER.match(vouchers.generate_voucher_number())

    def test_numbers_differ_within_same_millisecond(self, vouchers):
        numbers = {vouchers.generate_voucher_number() for _ in range(50)}
        assert len(numbers) == 50


class TestVoucherCreate:

    @pytest.mark.asyncio
    async def test_create_standalone(self, vouchers, alice):
        voucher = await vouchers.create(alice, VoucherCreate(
            type=VoucherType.LOAN,
            title="Loan to Sam",
            amount=Decimal("900.00"),
            date=date(2026, 10, 1),
        ))
        assert voucher.id
        assert voucher.status == VoucherStatus.ACTIVE
        assert VOUCHER_NUMBER.match(voucher.voucher_number)

    @pytest.mark.asyncio
    async def test_requires_user(self, vouchers):
        with pytest.raises(AuthenticationError):
            await vouchers.create(None, VoucherCreate(
                type=VoucherType.EXPENSE, title="X", amount=Decimal("1"),
            ))

    @pytest.mark.asyncio
    async def test_from_expense_transaction(self, vouchers, alice):
        voucher = await vouchers.create_from_transaction(alice, saved_transaction(), "Food")

        assert voucher.type == VoucherType.EXPENSE
        assert voucher.title == "Expense Voucher"
        assert voucher.description == "Groceries"
        assert voucher.amount == Decimal("42.00")
        assert voucher.category == "Food"
        assert voucher.date == date(2026, 10, 12)
        assert voucher.related_transaction_id == "tx-1"

    @pytest.mark.asyncio
    async def test_from_income_transaction(self, vouchers, alice):
        voucher = await vouchers.create_from_transaction(
            alice, saved_transaction(TransactionType.INCOME)
        )
        assert voucher.type == VoucherType.INCOME
        assert voucher.title == "Income Voucher"
        assert voucher.category == "food"

    @pytest.mark.asyncio
    async def test_unsaved_transaction_rejected(self, vouchers, alice):
        with pytest.raises(ValidationError):
            await vouchers.create_from_transaction(alice, saved_transaction(id=None))

    @pytest.mark.asyncio
    async def test_from_goal_contribution(self, vouchers, alice):
        goal = Goal(
            id="g-1",
            owner_id="alice",
            title="New Bike",
            target_amount=Decimal("500"),
            category="transport",
            target_date=date(2027, 3, 1),
        )
        voucher = await vouchers.create_from_goal_contribution(alice, goal, Decimal("25"))

        assert voucher.type == VoucherType.GOAL_CONTRIBUTION
        assert voucher.title == "Goal Contribution Voucher"
        assert voucher.description == "Contribution to New Bike"
        assert voucher.category == "transport"
        assert voucher.date == date(2026, 10, 19)
        assert voucher.related_goal_id == "g-1"


class TestVoucherLifecycle:

    @pytest.mark.asyncio
    async def test_void(self, vouchers, alice):
        voucher = await vouchers.create_from_transaction(alice, saved_transaction())
        voided = await vouchers.void(alice, voucher.id)

        assert voided.status == VoucherStatus.VOID
        assert voided.voucher_number == voucher.voucher_number

    @pytest.mark.asyncio
    async def test_delete(self, vouchers, alice):
        voucher = await vouchers.create_from_transaction(alice, saved_transaction())
        assert await vouchers.delete(alice, voucher.id)
        assert await vouchers.list(alice) == []

    @pytest.mark.asyncio
    async def test_list_is_per_owner(self, vouchers, alice, bob):
        await vouchers.create_from_transaction(alice, saved_transaction())
        await vouchers.create_from_transaction(bob, saved_transaction(owner_id="bob"))

        listed = await vouchers.list(alice)
        assert [v.owner_id for v in listed] == ["alice"]


class TestFilterVouchers:

    @pytest.mark.asyncio
    async def test_search_type_and_status(self, vouchers, alice):
        expense = await vouchers.create_from_transaction(alice, saved_transaction())
        income = await vouchers.create_from_transaction(
            alice, saved_transaction(TransactionType.INCOME, description="Salary")
        )
        voided = await vouchers.void(alice, expense.id)
        everything = [voided, income]

        assert filter_vouchers(everything, search="salary") == [income]
        assert filter_vouchers(everything, search=income.voucher_number.lower()) == [income]
        assert filter_vouchers(everything, voucher_type=VoucherType.EXPENSE) == [voided]
        assert filter_vouchers(everything, status=VoucherStatus.ACTIVE) == [income]
        assert filter_vouchers(everything) == everything
