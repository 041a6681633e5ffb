# Overview: Invoice computation (pure) and persistence of finalized invoices.

"""
Invoice arithmetic (authoritative)

- amount(item) = unit_price * quantity, exact Decimal.
- Items whose category rate is zero accumulate into exempt_amount; all
  others into taxable_amount, with amount * rate summed UNROUNDED.
- subtotal = taxable_amount + exempt_amount.
- tax_amount = raw tax rounded ONCE to 0.01 (half-up). Rounding per line
  would compound error across items.
- total = subtotal + tax_amount - discount.
- discount must be 0 <= discount <= subtotal.

compute_invoice is pure: same inputs -> identical InvoiceTotals.
"""

from __future__ import annotations

import logging
import os
from dataclasses import dataclass
from decimal import ROUND_HALF_UP, Decimal, InvalidOperation
from typing import Iterable

from flask import current_app
from sqlalchemy.exc import IntegrityError, SQLAlchemyError

from ..extensions import db
from ..errors import DatabaseError, DuplicateEntry, NotFound, ValidationError
from ..models import Invoice, Product, Sale
from .invoice_pdf import write_invoice_pdf
from .tax_rates import is_exempt, rate_for

logger = logging.getLogger(__name__)

CENT = Decimal("0.01")
ZERO = Decimal("0")


def to_decimal(value, field: str) -> Decimal:
    """Coerce int/str/Decimal (float via str) to a finite Decimal."""
    if isinstance(value, bool) or value is None:
        raise ValidationError(f"{field} must be a number", details={"field": field})
    if isinstance(value, float):
        value = str(value)
    try:
        d = value if isinstance(value, Decimal) else Decimal(str(value).strip())
    except (InvalidOperation, ValueError):
        raise ValidationError(f"{field} must be a number", details={"field": field})
    if not d.is_finite():
        raise ValidationError(f"{field} must be a finite number", details={"field": field})
    return d


def quantize_money(value: Decimal) -> Decimal:
    return value.quantize(CENT, rounding=ROUND_HALF_UP)


@dataclass(frozen=True)
class LineItem:
    unit_price: Decimal
    quantity: int
    category: str | None = None


@dataclass(frozen=True)
class InvoiceTotals:
    subtotal: Decimal
    taxable_amount: Decimal
    exempt_amount: Decimal
    tax_amount: Decimal
    discount: Decimal
    total: Decimal

    def to_dict(self) -> dict:
        return {
            "subtotal": f"{self.subtotal:.2f}",
            "taxable_amount": f"{self.taxable_amount:.2f}",
            "exempt_amount": f"{self.exempt_amount:.2f}",
            "tax_amount": f"{self.tax_amount:.2f}",
            "discount": f"{self.discount:.2f}",
            "total": f"{self.total:.2f}",
        }


def compute_invoice(line_items: Iterable[LineItem], discount=ZERO) -> InvoiceTotals:
    items = list(line_items)
    if not items:
        raise ValidationError("Invoice requires at least one line item")

    discount = to_decimal(discount if discount is not None else ZERO, "discount")
    if discount < 0:
        raise ValidationError("discount must be >= 0", details={"field": "discount"})

    taxable = ZERO
    exempt = ZERO
    raw_tax = ZERO

    for i, item in enumerate(items):
        price = to_decimal(item.unit_price, f"line_items[{i}].unit_price")
        qty = item.quantity
        if isinstance(qty, bool) or not isinstance(qty, int) or qty <= 0:
            raise ValidationError(
                "quantity must be a positive integer",
                details={"field": f"line_items[{i}].quantity"},
            )
        if price < 0:
            raise ValidationError(
                "unit_price must be >= 0",
                details={"field": f"line_items[{i}].unit_price"},
            )

        amount = price * qty
        if is_exempt(item.category):
            exempt += amount
        else:
            taxable += amount
            raw_tax += amount * rate_for(item.category)

    subtotal = taxable + exempt
    if discount > subtotal:
        raise ValidationError(
            "discount cannot exceed subtotal",
            details={"discount": f"{discount:.2f}", "subtotal": f"{subtotal:.2f}"},
        )

    tax_amount = quantize_money(raw_tax)
    return InvoiceTotals(
        subtotal=quantize_money(subtotal),
        taxable_amount=quantize_money(taxable),
        exempt_amount=quantize_money(exempt),
        tax_amount=tax_amount,
        discount=quantize_money(discount),
        total=quantize_money(subtotal + tax_amount - discount),
    )


def create_invoice(sale_id: int, discount=ZERO) -> Invoice:
    """
    Snapshot sale + product, compute totals and persist the Invoice.

    One invoice per sale: a second call raises DuplicateEntry.
    """
    sale = db.session.get(Sale, sale_id)
    if sale is None:
        raise NotFound("Sale not found", details={"sale_id": sale_id})

    if db.session.query(Invoice.id).filter_by(sale_id=sale_id).first() is not None:
        raise DuplicateEntry("Sale already invoiced", details={"sale_id": sale_id})

    product = db.session.get(Product, sale.product_id)
    if product is None:
        raise NotFound("Product not found", details={"product_id": sale.product_id})

    item = LineItem(unit_price=product.price, quantity=sale.quantity_sold, category=product.category)
    totals = compute_invoice([item], discount)

    invoice = Invoice(
        sale_id=sale.id,
        subtotal=totals.subtotal,
        taxable_amount=totals.taxable_amount,
        exempt_amount=totals.exempt_amount,
        tax_amount=totals.tax_amount,
        discount=totals.discount,
        total=totals.total,
        product_name=product.name,
        unit_price=product.price,
        quantity=sale.quantity_sold,
        category=product.category,
        tax_rate=rate_for(product.category),
    )
    db.session.add(invoice)
    try:
        db.session.commit()
    except IntegrityError as exc:
        db.session.rollback()
        raise DuplicateEntry("Sale already invoiced", details={"sale_id": sale_id}) from exc
    except SQLAlchemyError as exc:
        db.session.rollback()
        logger.exception("Failed to persist invoice for sale %s", sale_id)
        raise DatabaseError() from exc

    return invoice


def get_invoice(invoice_id: int) -> Invoice:
    invoice = db.session.get(Invoice, invoice_id)
    if invoice is None:
        raise NotFound("Invoice not found", details={"invoice_id": invoice_id})
    return invoice


def list_invoices(*, limit: int = 500) -> list[Invoice]:
    return (
        db.session.query(Invoice)
        .order_by(Invoice.invoice_date.desc(), Invoice.id.desc())
        .limit(limit)
        .all()
    )


def render_invoice_pdf(invoice_id: int, output_dir: str | None = None) -> str:
    """Render a finalized invoice to PDF; returns the file path."""
    invoice = get_invoice(invoice_id)
    if output_dir is None:
        output_dir = current_app.config.get("INVOICE_PDF_DIR", "invoices")
        if not os.path.isabs(output_dir):
            output_dir = os.path.join(current_app.instance_path, output_dir)
    return write_invoice_pdf(invoice, output_dir)
