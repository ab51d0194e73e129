"""
Tests for the document store backends.

The in-memory store is exercised directly; the Google Sheets store runs
against fake worksheets that mimic the gspread calls it makes.
"""

import asyncio

import pytest

from expense_tracker.services.storage import (
    BackendError,
    ChangeType,
    GoogleSheetsDocumentStore,
    InMemoryDocumentStore,
    NotFoundError,
)
from expense_tracker.services.storage.google_sheets import DOCUMENT_COLUMNS


class FakeWorksheet:
    """Just enough of gspread.Worksheet for the document store."""

    def __init__(self):
        self.rows = [list(DOCUMENT_COLUMNS)]

    def get_all_values(self):
        return [list(row) for row in self.rows]

    def append_row(self, values, value_input_option=None):
        self.rows.append([str(v) for v in values])

    def update_cell(self, row, col, value):
        self.rows[row - 1][col - 1] = str(value)

    def delete_rows(self, index):
        del self.rows[index - 1]


class FakeSheetsClient:
    def __init__(self):
        self.sheets = {}

    def get_worksheet(self, collection):
        return self.sheets.setdefault(collection, FakeWorksheet())


class BrokenSheetsClient:
    def get_worksheet(self, collection):
        raise RuntimeError("quota exceeded")


@pytest.fixture(params=["memory", "sheets"])
def store(request):
    if request.param == "memory":
        return InMemoryDocumentStore()
    return GoogleSheetsDocumentStore(FakeSheetsClient())


class TestDocumentStore:
    """Behaviour shared by every backend."""

    @pytest.mark.asyncio
    async def test_add_and_get(self, store):
        doc_id = await store.add("categories", {"owner_id": "alice", "name": "Food"})
        document = await store.get("categories", doc_id)
        assert document == {"id": doc_id, "owner_id": "alice", "name": "Food"}

    @pytest.mark.asyncio
    async def test_get_missing_returns_none(self, store):
        assert await store.get("categories", "nope") is None

    @pytest.mark.asyncio
    async def test_add_rejects_id_in_body(self, store):
        with pytest.raises(BackendError):
            await store.add("categories", {"id": "x", "owner_id": "alice"})

    @pytest.mark.asyncio
    async def test_update_merges(self, store):
        doc_id = await store.add("goals", {"owner_id": "alice", "title": "Bike", "status": "active"})
        merged = await store.update("goals", doc_id, {"status": "paused"})
        assert merged == {"id": doc_id, "owner_id": "alice", "title": "Bike", "status": "paused"}
        assert (await store.get("goals", doc_id))["status"] == "paused"

    @pytest.mark.asyncio
    async def test_update_missing_raises_not_found(self, store):
        with pytest.raises(NotFoundError):
            await store.update("goals", "nope", {"status": "paused"})

    @pytest.mark.asyncio
    async def test_delete(self, store):
        doc_id = await store.add("goals", {"owner_id": "alice"})
        assert await store.delete("goals", doc_id) is True
        assert await store.delete("goals", doc_id) is False
        assert await store.get("goals", doc_id) is None

    @pytest.mark.asyncio
    async def test_query_equality_filters(self, store):
        await store.add("categories", {"owner_id": "alice", "parent_id": None, "name": "Food"})
        await store.add("categories", {"owner_id": "alice", "parent_id": "p", "name": "Fruit"})
        await store.add("categories", {"owner_id": "bob", "parent_id": None, "name": "Rent"})

        roots = await store.query("categories", {"owner_id": "alice", "parent_id": None})
        assert [d["name"] for d in roots] == ["Food"]
        assert len(await store.query("categories")) == 3

    @pytest.mark.asyncio
    async def test_increment_creates_counter_at_zero(self, store):
        assert await store.increment("transaction_counters", "alice_20261019", "value") == 1
        assert await store.increment("transaction_counters", "alice_20261019", "value") == 2
        assert await store.increment("transaction_counters", "bob_20261019", "value") == 1

    @pytest.mark.asyncio
    async def test_concurrent_increments_never_repeat(self, store):
        values = await asyncio.gather(*[
            store.increment("transaction_counters", "alice_20261019", "value")
            for _ in range(20)
        ])
        assert sorted(values) == list(range(1, 21))

    @pytest.mark.asyncio
    async def test_subscribe_delivers_initial_batch_then_changes(self, store):
        await store.add("expenses", {"owner_id": "alice", "amount": "1"})
        batches = []

        unsubscribe = await store.subscribe("expenses", {"owner_id": "alice"}, batches.append)
        assert len(batches) == 1
        assert [e.change_type for e in batches[0]] == [ChangeType.ADDED]

        doc_id = await store.add("expenses", {"owner_id": "alice", "amount": "2"})
        await store.add("expenses", {"owner_id": "bob", "amount": "3"})
        await store.update("expenses", doc_id, {"amount": "5"})
        await store.delete("expenses", doc_id)

        kinds = [batch[0].change_type for batch in batches[1:]]
        assert kinds == [ChangeType.ADDED, ChangeType.MODIFIED, ChangeType.REMOVED]

        unsubscribe()
        await store.add("expenses", {"owner_id": "alice", "amount": "9"})
        assert len(batches) == 4

    @pytest.mark.asyncio
    async def test_subscribe_empty_collection_gets_empty_batch(self, store):
        batches = []
        await store.subscribe("vouchers", {"owner_id": "alice"}, batches.append)
        assert batches == [[]]

    @pytest.mark.asyncio
    async def test_document_leaving_filter_is_removed(self, store):
        doc_id = await store.add("contacts", {"owner_id": "alice", "category_id": "a"})
        batches = []
        await store.subscribe("contacts", {"category_id": "a"}, batches.append)

        await store.update("contacts", doc_id, {"category_id": "b"})
        assert batches[-1][0].change_type == ChangeType.REMOVED

    @pytest.mark.asyncio
    async def test_failing_listener_does_not_break_writes(self, store):
        def explode(batch):
            if batch:
                raise RuntimeError("listener bug")

        await store.subscribe("goals", None, explode)
        doc_id = await store.add("goals", {"owner_id": "alice"})
        assert await store.get("goals", doc_id) is not None


class TestInMemoryDocumentStore:
    """Tests specific to the in-memory backend."""

    @pytest.mark.asyncio
    async def test_returned_documents_are_copies(self):
        store = InMemoryDocumentStore()
        doc_id = await store.add("goals", {"owner_id": "alice", "tags": ["a"]})

        document = await store.get("goals", doc_id)
        document["tags"].append("b")

        assert (await store.get("goals", doc_id))["tags"] == ["a"]

    @pytest.mark.asyncio
    async def test_clear(self):
        store = InMemoryDocumentStore()
        await store.add("goals", {"owner_id": "alice"})
        store.clear()
        assert await store.query("goals") == []


class TestGoogleSheetsDocumentStore:
    """Tests specific to the Sheets backend."""

    @pytest.mark.asyncio
    async def test_row_layout(self):
        client = FakeSheetsClient()
        store = GoogleSheetsDocumentStore(client)
        doc_id = await store.add("categories", {"owner_id": "alice", "name": "Food"})

        header, row = client.sheets["categories"].rows
        assert header == DOCUMENT_COLUMNS
        assert row[0] == doc_id
        assert row[1] == "alice"
        assert '"name": "Food"' in row[4]

    @pytest.mark.asyncio
    async def test_malformed_rows_are_skipped(self):
        client = FakeSheetsClient()
        store = GoogleSheetsDocumentStore(client)
        await store.add("categories", {"owner_id": "alice", "name": "Food"})
        client.sheets["categories"].rows.append(["bad", "alice", "", "", "{not json"])

        documents = await store.query("categories")
        assert [d["name"] for d in documents] == ["Food"]

    @pytest.mark.asyncio
    async def test_get_malformed_row_raises_backend_error(self):
        client = FakeSheetsClient()
        store = GoogleSheetsDocumentStore(client)
        await store.add("categories", {"owner_id": "alice", "name": "Food"})
        client.sheets["categories"].rows.append(["bad", "alice", "", "", "{not json"])

        with pytest.raises(BackendError, match="Malformed"):
            await store.get("categories", "bad")

    @pytest.mark.asyncio
    async def test_backend_failures_are_wrapped(self):
        store = GoogleSheetsDocumentStore(BrokenSheetsClient())
        with pytest.raises(BackendError, match="quota exceeded"):
            await store.query("expenses")
        with pytest.raises(BackendError):
            await store.add("expenses", {"owner_id": "alice"})
