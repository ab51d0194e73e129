"""
Voucher PDF Rendering

Fixed single-page layout:
header band, voucher details, transaction details (title, wrapped
description, category), amount box and a "generated for" footer.
"""

import textwrap
from datetime import datetime
from typing import Callable, Optional

from expense_tracker.config import get_settings
from expense_tracker.models.finance import UserIdentity, Voucher
from expense_tracker.services.export.canvas import (
    PANEL,
    PRIMARY,
    SECONDARY,
    WHITE,
    PdfPage,
    save_pages,
)


DESCRIPTION_WRAP_CHARS = 80


def voucher_filename(voucher: Voucher) -> str:
    return f"voucher-{voucher.voucher_number}.pdf"


def format_amount(amount, currency_symbol: Optional[str] = None) -> str:
    """1234.5 -> '$1,234.50'."""
    symbol = currency_symbol if currency_symbol is not None else get_settings().app.currency_symbol
    return f"{symbol}{amount:,.2f}"


def render_voucher_pdf(
    voucher: Voucher,
    user: Optional[UserIdentity] = None,
    clock: Optional[Callable[[], datetime]] = None,
) -> bytes:
    """Render a voucher as PDF bytes."""
    now = (clock or datetime.now)()
    page = PdfPage()

    # Header
    page.rect(0, 0, 210, 30, fill=PRIMARY)
    page.text(20, 20, "EXPENSE TRACKER", size=24, bold=True, color=WHITE)
    page.text(150, 20, "Transaction Voucher", size=12, color=WHITE)

    # Voucher details
    page.text(20, 50, "VOUCHER DETAILS", size=16, bold=True)
    page.line(20, 55, 190)

    details = [
        ("Voucher Number:", voucher.voucher_number),
        ("Date:", voucher.date.strftime("%m/%d/%Y")),
        ("Type:", voucher.type.value.replace("_", " ").upper()),
        ("Status:", voucher.status.value.upper()),
    ]

    y = 70
    for label, value in details:
        page.text(20, y, label, bold=True)
        page.text(70, y, value)
        y += 8

    # Transaction details
    page.text(20, y + 15, "TRANSACTION DETAILS", size=16, bold=True)
    page.line(20, y + 20, 190)
    y += 35

    page.text(20, y, "Title:", size=12, bold=True)
    page.text(20, y + 8, voucher.title, size=12)
    y += 20

    page.text(20, y, "Description:", size=12, bold=True)
    lines = textwrap.wrap(voucher.description, DESCRIPTION_WRAP_CHARS) or [""]
    for offset, line in enumerate(lines):
        page.text(20, y + 8 + offset * 6, line, size=12)
    y += 8 + len(lines) * 6

    page.text(20, y, "Category:", size=12, bold=True)
    page.text(70, y, voucher.category.upper(), size=12)
    y += 15

    # Amount box
    page.rect(20, y, 170, 25, fill=PANEL, outline=PRIMARY)
    page.text(25, y + 10, "AMOUNT:", size=14, bold=True)
    page.text(25, y + 20, format_amount(voucher.amount), size=18, bold=True, color=PRIMARY)

    # Footer
    y += 50
    if user and (user.display_name or user.email):
        page.text(20, y, "Generated for:", size=8, color=SECONDARY)
        if user.display_name:
            page.text(20, y + 5, user.display_name, size=8, color=SECONDARY)
        if user.email:
            page.text(20, y + 10, user.email, size=8, color=SECONDARY)

    page.text(20, y + 20, f"Generated on: {now:%m/%d/%Y %H:%M:%S}", size=8, color=SECONDARY)
    page.text(
        20,
        y + 25,
        "This is a computer-generated voucher and does not require a signature.",
        size=8,
        color=SECONDARY,
    )

    return save_pages([page])
