"""
Export Services Package

PDF vouchers and CSV/PDF reports. Rendering uses Pillow: each page is
drawn as an image and saved in PDF format.
"""

from expense_tracker.services.export.report_export import (
    render_report_pdf,
    report_filename,
    report_to_csv,
)
from expense_tracker.services.export.transaction_pdf import (
    render_transaction_pdf,
    transaction_filename,
)
from expense_tracker.services.export.voucher_pdf import (
    format_amount,
    render_voucher_pdf,
    voucher_filename,
)

__all__ = [
    "format_amount",
    "render_report_pdf",
    "render_transaction_pdf",
    "render_voucher_pdf",
    "report_filename",
    "report_to_csv",
    "transaction_filename",
    "voucher_filename",
]
