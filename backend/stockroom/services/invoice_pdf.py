# Overview: Renders a finalized Invoice as a single-page PDF 1.4 document.

"""
Minimal PDF writer for invoices.

- Standard Helvetica fonts only (no embedding), A4 page.
- Deterministic: the same invoice produces the same bytes.
- Text is escaped for PDF literal strings; non-latin characters become '?'.
"""

from __future__ import annotations

import io
import os

from ..models import Invoice
from ..models.catalog import money_str
from stockroom.time_utils import to_utc_z

PAGE_W = 595
PAGE_H = 842
MARGIN_LEFT = 50
TOP = 790
LINE_HEIGHT = 18


def _pdf_str(value) -> str:
    text = "" if value is None else str(value)
    text = text.replace("\\", "\\\\").replace("(", "\\(").replace(")", "\\)")
    safe = "".join(c if ord(c) < 128 else "?" for c in text)
    return f"({safe})"


def _invoice_lines(invoice: Invoice) -> list[tuple[str, str, int]]:
    """(font, text, size) rows, top to bottom."""
    breakdown = invoice.tax_breakdown
    return [
        ("/F2", "Invoice", 18),
        ("/F1", f"Invoice ID: {invoice.id}", 11),
        ("/F1", f"Sale ID: {invoice.sale_id}", 11),
        ("/F1", f"Date: {to_utc_z(invoice.invoice_date)}", 11),
        ("/F1", "", 11),
        ("/F2", "Item", 12),
        ("/F1", f"Product: {invoice.product_name}", 11),
        ("/F1", f"Category: {invoice.category or '-'}", 11),
        ("/F1", f"Quantity: {invoice.quantity} x {money_str(invoice.unit_price)}", 11),
        ("/F1", "", 11),
        ("/F2", "Totals", 12),
        ("/F1", f"Subtotal: {money_str(invoice.subtotal)}", 11),
        ("/F1", f"Taxable amount: {breakdown['taxable_amount']}", 11),
        ("/F1", f"Exempt amount: {breakdown['exempt_amount']}", 11),
        ("/F1", f"Tax ({breakdown['tax_rate']}): {money_str(invoice.tax_amount)}", 11),
        ("/F1", f"Discount: {money_str(invoice.discount)}", 11),
        ("/F2", f"Total: {money_str(invoice.total)}", 13),
    ]


def build_invoice_pdf(invoice: Invoice) -> bytes:
    stream_lines = []
    y = TOP
    for font, text, size in _invoice_lines(invoice):
        if text:
            stream_lines.append(f"BT {font} {size} Tf {MARGIN_LEFT} {y} Td {_pdf_str(text)} Tj ET")
        y -= LINE_HEIGHT
    stream = "\n".join(stream_lines)

    objects = [
        "<< /Type /Catalog /Pages 2 0 R >>",
        "<< /Type /Pages /Kids [3 0 R] /Count 1 >>",
        (
            f"<< /Type /Page /Parent 2 0 R /MediaBox [0 0 {PAGE_W} {PAGE_H}] "
            f"/Contents 4 0 R /Resources << /Font << "
            f"/F1 << /Type /Font /Subtype /Type1 /BaseFont /Helvetica >> "
            f"/F2 << /Type /Font /Subtype /Type1 /BaseFont /Helvetica-Bold >> "
            f">> >> >>"
        ),
        f"<< /Length {len(stream.encode('latin-1'))} >>\nstream\n{stream}\nendstream",
    ]

    out = io.BytesIO()
    out.write(b"%PDF-1.4\n")
    offsets = []
    for obj_id, content in enumerate(objects, start=1):
        offsets.append(out.tell())
        out.write(f"{obj_id} 0 obj\n{content}\nendobj\n".encode("latin-1"))

    xref_offset = out.tell()
    out.write(f"xref\n0 {len(objects) + 1}\n".encode("latin-1"))
    out.write(b"0000000000 65535 f \n")
    for offset in offsets:
        out.write(f"{offset:010d} 00000 n \n".encode("latin-1"))
    out.write(
        f"trailer\n<< /Size {len(objects) + 1} /Root 1 0 R >>\n"
        f"startxref\n{xref_offset}\n%%EOF\n".encode("latin-1")
    )
    return out.getvalue()


def write_invoice_pdf(invoice: Invoice, output_dir: str) -> str:
    os.makedirs(output_dir, exist_ok=True)
    path = os.path.join(output_dir, f"invoice_{invoice.id}.pdf")
    with open(path, "wb") as fh:
        fh.write(build_invoice_pdf(invoice))
    return path
