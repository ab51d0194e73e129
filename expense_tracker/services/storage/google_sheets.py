"""
Google Sheets Storage Implementation

DESIGN DECISION: Google Sheets is used as the hosted document store because:
1. Users can view their data directly in Sheets
2. No database setup required
3. Built-in backup (Google's infrastructure)
4. Easy to export/migrate later

TRADEOFFS:
- Not suitable for high-volume data (we're fine for personal use)
- No server-side transactions: counter increments are serialized by a
  lock, so they are atomic within one process only
- Limited query capabilities (we filter in Python)
- No server push: subscribers are notified of writes made through
  this store instance

Each collection is one worksheet; each document one row. The document
body is JSON-serialized so records can evolve without sheet migrations.
"""

import asyncio
import json
from datetime import datetime
from typing import Any, Optional
from uuid import uuid4

import gspread
import structlog
from google.oauth2.service_account import Credentials
from tenacity import retry, stop_after_attempt, wait_exponential

from expense_tracker.config import get_settings
from expense_tracker.services.storage.changes import ChangeFeed, ChangeListener
from expense_tracker.services.storage.interface import (
    BackendError,
    ConnectionError,
    DocumentStoreInterface,
    NotFoundError,
    Unsubscribe,
    matches_filters,
)


# Column layout shared by every collection worksheet
DOCUMENT_COLUMNS = [
    "id",
    "owner_id",
    "created_at",
    "updated_at",
    "data_json",
]

ID_COLUMN = 0
DATA_COLUMN = 4


class GoogleSheetsClient:
    """
    Low-level Google Sheets client wrapper.

    Handles authentication and provides retry logic for connecting.
    """

    def __init__(self):
        self._client: Optional[gspread.Client] = None
        self._spreadsheet: Optional[gspread.Spreadsheet] = None
        self._worksheets: dict[str, gspread.Worksheet] = {}
        self._settings = get_settings().google_sheets

    @retry(
        stop=stop_after_attempt(3),
        wait=wait_exponential(multiplier=1, min=2, max=10),
        reraise=True,
    )
    def connect(self) -> gspread.Client:
        """
        Establish connection to Google Sheets.

        Uses service account credentials for authentication.
        """
        if self._client is None:
            try:
                scopes = [
                    "https://www.googleapis.com/auth/spreadsheets",
                    "https://www.googleapis.com/auth/drive",
                ]
                credentials = Credentials.from_service_account_file(
                    self._settings.credentials_path,
                    scopes=scopes,
                )
                self._client = gspread.authorize(credentials)
            except FileNotFoundError as e:
                raise ConnectionError(
                    f"Google credentials file not found: {self._settings.credentials_path}"
                ) from e
            except Exception as e:
                raise ConnectionError(f"Failed to connect to Google Sheets: {e}") from e

        return self._client

    def get_spreadsheet(self) -> gspread.Spreadsheet:
        """Get the configured spreadsheet."""
        if self._spreadsheet is None:
            client = self.connect()
            try:
                self._spreadsheet = client.open_by_key(
                    self._settings.spreadsheet_id
                )
            except gspread.SpreadsheetNotFound as e:
                raise ConnectionError(
                    f"Spreadsheet not found: {self._settings.spreadsheet_id}"
                ) from e
        return self._spreadsheet

    def get_worksheet(self, collection: str) -> gspread.Worksheet:
        """Get or create the worksheet backing a collection."""
        if collection in self._worksheets:
            return self._worksheets[collection]

        spreadsheet = self.get_spreadsheet()
        try:
            sheet = spreadsheet.worksheet(collection)
        except gspread.WorksheetNotFound:
            # Create the sheet with headers
            sheet = spreadsheet.add_worksheet(
                title=collection,
                rows=self._settings.worksheet_rows,
                cols=len(DOCUMENT_COLUMNS),
            )
            sheet.append_row(DOCUMENT_COLUMNS)

        self._worksheets[collection] = sheet
        return sheet


class GoogleSheetsDocumentStore(DocumentStoreInterface):
    """
    Google Sheets implementation of the document store.

    Writes are never retried here; a failed write surfaces as a
    BackendError to the caller.
    """

    def __init__(self, client: Optional[GoogleSheetsClient] = None):
        self._client = client or GoogleSheetsClient()
        self._feed = ChangeFeed()
        self._counter_lock = asyncio.Lock()
        self._logger = structlog.get_logger(__name__)

    def _document_to_row(self, doc_id: str, data: dict[str, Any], created_at: str) -> list:
        """Convert a document to a spreadsheet row."""
        return [
            doc_id,
            str(data.get("owner_id") or ""),
            created_at,
            datetime.now().isoformat(),
            json.dumps(data, ensure_ascii=False),
        ]

    def _row_to_document(self, row: list) -> dict[str, Any]:
        """Convert a spreadsheet row to a document (with its id)."""
        def safe_get(index: int, default: str = "") -> str:
            try:
                return row[index] if row[index] else default
            except IndexError:
                return default

        document = json.loads(safe_get(DATA_COLUMN, "{}"))
        document["id"] = safe_get(ID_COLUMN)
        return document

    def _find_row(self, sheet: gspread.Worksheet, doc_id: str) -> tuple[Optional[int], Optional[list]]:
        """Locate a document's row. Returns (1-based row index, row values)."""
        all_rows = sheet.get_all_values()
        for idx, row in enumerate(all_rows[1:], start=2):  # Row 1 is the header
            if row and row[ID_COLUMN] == doc_id:
                return idx, row
        return None, None

    def _write_row(self, sheet: gspread.Worksheet, idx: int, row: list) -> None:
        for col_idx, value in enumerate(row, start=1):
            sheet.update_cell(idx, col_idx, value)

    def _put(self, collection: str, doc_id: str, data: dict[str, Any]) -> tuple[Optional[dict], dict]:
        """Insert or overwrite a document. Returns (before, after)."""
        sheet = self._client.get_worksheet(collection)
        idx, row = self._find_row(sheet, doc_id)
        if idx is None:
            new_row = self._document_to_row(doc_id, data, datetime.now().isoformat())
            sheet.append_row(new_row, value_input_option="RAW")
            before = None
        else:
            before = self._row_to_document(row)
            created_at = row[2] if len(row) > 2 else datetime.now().isoformat()
            self._write_row(sheet, idx, self._document_to_row(doc_id, data, created_at))

        after = dict(data)
        after["id"] = doc_id
        return before, after

    async def add(self, collection: str, data: dict[str, Any]) -> str:
        """Append a new document row."""
        if "id" in data:
            raise BackendError("Document body must not contain an 'id' field")
        doc_id = uuid4().hex
        try:
            before, after = self._put(collection, doc_id, data)
        except BackendError:
            raise
        except Exception as e:
            raise BackendError(f"Failed to add document to {collection}: {e}") from e

        self._feed.publish(collection, doc_id, before, after)
        return doc_id

    async def get(self, collection: str, doc_id: str) -> Optional[dict[str, Any]]:
        """Retrieve a document by its id."""
        try:
            sheet = self._client.get_worksheet(collection)
            _, row = self._find_row(sheet, doc_id)
            return self._row_to_document(row) if row else None
        except BackendError:
            raise
        except json.JSONDecodeError as e:
            raise BackendError(f"Malformed document row {collection}/{doc_id}: {e}") from e
        except Exception as e:
            raise BackendError(f"Failed to get document {collection}/{doc_id}: {e}") from e

    async def update(
        self,
        collection: str,
        doc_id: str,
        changes: dict[str, Any],
    ) -> dict[str, Any]:
        """Merge fields into an existing document row."""
        try:
            sheet = self._client.get_worksheet(collection)
            idx, row = self._find_row(sheet, doc_id)
            if idx is None:
                raise NotFoundError(f"Document not found: {collection}/{doc_id}")

            before = self._row_to_document(row)
            merged = {**before, **changes}
            merged.pop("id", None)
            self._write_row(sheet, idx, self._document_to_row(doc_id, merged, row[2]))
        except NotFoundError:
            raise
        except BackendError:
            raise
        except Exception as e:
            raise BackendError(f"Failed to update document {collection}/{doc_id}: {e}") from e

        after = dict(merged)
        after["id"] = doc_id
        self._feed.publish(collection, doc_id, before, after)
        return after

    async def delete(self, collection: str, doc_id: str) -> bool:
        """Delete a document row."""
        try:
            sheet = self._client.get_worksheet(collection)
            idx, row = self._find_row(sheet, doc_id)
            if idx is None:
                return False
            before = self._row_to_document(row)
            sheet.delete_rows(idx)
        except BackendError:
            raise
        except Exception as e:
            raise BackendError(f"Failed to delete document {collection}/{doc_id}: {e}") from e

        self._feed.publish(collection, doc_id, before, None)
        return True

    async def query(
        self,
        collection: str,
        filters: Optional[dict[str, Any]] = None,
    ) -> list[dict[str, Any]]:
        """List documents matching every equality filter."""
        try:
            sheet = self._client.get_worksheet(collection)
            all_rows = sheet.get_all_values()[1:]  # Skip header
        except BackendError:
            raise
        except Exception as e:
            raise BackendError(f"Failed to query {collection}: {e}") from e

        documents = []
        for row in all_rows:
            if not row or not row[ID_COLUMN]:  # Skip empty rows
                continue

            try:
                document = self._row_to_document(row)
            except json.JSONDecodeError:
                self._logger.warning(
                    "malformed_row_skipped",
                    collection=collection,
                    doc_id=row[ID_COLUMN],
                )
                continue

            if matches_filters(document, filters):
                documents.append(document)

        return documents

    async def increment(
        self,
        collection: str,
        doc_id: str,
        field: str,
        amount: int = 1,
    ) -> int:
        """Read-modify-write under a process-wide lock."""
        async with self._counter_lock:
            try:
                existing = await self.get(collection, doc_id)
                data = dict(existing or {})
                data.pop("id", None)
                value = int(data.get(field, 0)) + amount
                data[field] = value
                before, after = self._put(collection, doc_id, data)
            except BackendError:
                raise
            except Exception as e:
                raise BackendError(f"Failed to increment {collection}/{doc_id}: {e}") from e

        self._feed.publish(collection, doc_id, before, after)
        return value

    async def subscribe(
        self,
        collection: str,
        filters: Optional[dict[str, Any]],
        listener: ChangeListener,
    ) -> Unsubscribe:
        unsubscribe = self._feed.register(collection, filters, listener)
        try:
            current = await self.query(collection, filters)
        except BackendError:
            unsubscribe()
            raise
        listener(self._feed.initial_batch(collection, current))
        return unsubscribe
