"""
Shared fixtures.

Every store runs against the in-memory document store with a pinned
clock, so ids, dates and trend windows are deterministic.
"""

from datetime import datetime

import pytest

from expense_tracker.audit import AuditLogger
from expense_tracker.config import AppSettings
from expense_tracker.models.finance import UserIdentity
from expense_tracker.reports import ReportAggregator
from expense_tracker.services.storage import InMemoryDocumentStore
from expense_tracker.stores import (
    CategoryStore,
    ContactStore,
    GoalStore,
    TransactionLedger,
    VoucherStore,
)
from expense_tracker.validation import FormValidator


FIXED_NOW = datetime(2026, 10, 19, 14, 30, 0)


@pytest.fixture
def clock():
    return lambda: FIXED_NOW


@pytest.fixture
def storage():
    return InMemoryDocumentStore()


@pytest.fixture
def alice():
    return UserIdentity(uid="alice", display_name="Alice", email="alice@example.com")


@pytest.fixture
def bob():
    return UserIdentity(uid="bob", display_name="Bob")


@pytest.fixture
def app_settings():
    return AppSettings(
        voucher_prefix="VCH",
        currency_symbol="$",
        max_transaction_amount=1000000,
        future_date_tolerance_days=7,
    )


@pytest.fixture
def audit_logger(storage):
    return AuditLogger(storage)


@pytest.fixture
def validator(app_settings, clock):
    return FormValidator(app_settings, clock)


@pytest.fixture
def store_args(storage, audit_logger, validator, clock):
    return dict(
        storage=storage,
        audit_logger=audit_logger,
        validator=validator,
        clock=clock,
    )


@pytest.fixture
def categories(store_args):
    return CategoryStore(**store_args, delete_policy="reparent")


@pytest.fixture
def ledger(store_args):
    return TransactionLedger(**store_args)


@pytest.fixture
def goals(store_args):
    return GoalStore(**store_args)


@pytest.fixture
def vouchers(store_args):
    return VoucherStore(**store_args, prefix="VCH")


@pytest.fixture
def contacts(store_args):
    return ContactStore(**store_args)


@pytest.fixture
def aggregator(clock):
    return ReportAggregator(clock)
