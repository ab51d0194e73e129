"""
Transaction PDF Rendering

A single transaction laid out like a voucher: header band, the detail
rows, an amount box and a footer. Used for the per-row download on the
expenses page.
"""

import textwrap
from datetime import datetime
from typing import Callable, Optional

from expense_tracker.models.finance import Transaction, UserIdentity
from expense_tracker.services.export.canvas import (
    PANEL,
    PRIMARY,
    SECONDARY,
    WHITE,
    PdfPage,
    save_pages,
)
from expense_tracker.services.export.voucher_pdf import DESCRIPTION_WRAP_CHARS, format_amount


NOT_AVAILABLE = "N/A"


def transaction_filename(transaction: Transaction) -> str:
    """Named after the display code; the document id when it has none."""
    return f"{transaction.transaction_id or transaction.id}.pdf"


def transaction_details(
    transaction: Transaction,
    category_name: Optional[str] = None,
    contact_name: Optional[str] = None,
) -> list[tuple[str, str]]:
    """The (label, value) rows printed under TRANSACTION DETAILS."""
    return [
        ("Transaction ID:", transaction.transaction_id or transaction.id or NOT_AVAILABLE),
        ("Date:", transaction.date.strftime("%B %d, %Y")),
        ("Type:", transaction.type.value.upper()),
        ("Category:", category_name or NOT_AVAILABLE),
        ("Contact:", contact_name or NOT_AVAILABLE),
    ]


def render_transaction_pdf(
    transaction: Transaction,
    category_name: Optional[str] = None,
    contact_name: Optional[str] = None,
    user: Optional[UserIdentity] = None,
    clock: Optional[Callable[[], datetime]] = None,
) -> bytes:
    """Render one transaction as PDF bytes."""
    now = (clock or datetime.now)()
    page = PdfPage()

    page.rect(0, 0, 210, 30, fill=PRIMARY)
    page.text(20, 20, "EXPENSE TRACKER", size=24, bold=True, color=WHITE)
    page.text(150, 20, "Transaction Voucher", size=12, color=WHITE)

    page.text(20, 50, "TRANSACTION DETAILS", size=16, bold=True)
    page.line(20, 55, 190)

    y = 70
    for label, value in transaction_details(transaction, category_name, contact_name):
        page.text(20, y, label, bold=True)
        page.text(70, y, value)
        y += 8

    page.text(20, y, "Description:", bold=True)
    lines = textwrap.wrap(transaction.description, DESCRIPTION_WRAP_CHARS) or [NOT_AVAILABLE]
    for offset, line in enumerate(lines):
        page.text(70, y + offset * 6, line)
    y += len(lines) * 6 + 10

    page.rect(20, y, 170, 25, fill=PANEL, outline=PRIMARY)
    page.text(25, y + 10, "AMOUNT:", size=14, bold=True)
    page.text(25, y + 20, format_amount(transaction.amount), size=18, bold=True, color=PRIMARY)

    y += 50
    if user and (user.display_name or user.email):
        page.text(20, y, f"Generated for: {user.display_name or user.email}", size=8, color=SECONDARY)
        y += 5
    page.text(20, y, f"Generated on: {now:%m/%d/%Y %H:%M:%S}", size=8, color=SECONDARY)
    page.text(
        20,
        y + 5,
        "This is a computer-generated voucher and does not require a signature.",
        size=8,
        color=SECONDARY,
    )

    return save_pages([page])
