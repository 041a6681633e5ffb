"""
Sales Service - record a sale and its stock decrement as one unit

WHY: A Sale row without the matching decrement (or the reverse) would break
the conservation law between recorded sales and stock on hand. Both are
written in the same DB transaction; any failure rolls back both, including
any low-stock alert rows written along the way.
"""

from __future__ import annotations

import logging
from datetime import datetime

from sqlalchemy.exc import SQLAlchemyError

from ..extensions import db
from ..errors import DatabaseError, NotFound, StockroomError, ValidationError
from ..models import Product, Sale
from stockroom.time_utils import utcnow
from .stock_service import _adjust_stock_inner
from .concurrency import run_with_retry

logger = logging.getLogger(__name__)


def _validate_quantity(quantity_sold) -> int:
    if isinstance(quantity_sold, bool) or not isinstance(quantity_sold, int):
        raise ValidationError("quantity_sold must be an integer", details={"field": "quantity_sold"})
    if quantity_sold <= 0:
        raise ValidationError("quantity_sold must be > 0", details={"field": "quantity_sold"})
    return quantity_sold


def record_sale(product_id: int, quantity_sold: int, *, actor_user_id: int | None = None) -> Sale:
    """
    Record a sale exactly once.

    Order inside the transaction:
    1. Conditional decrement (NotFound / InsufficientStock abort here,
       before any Sale row exists).
    2. Insert Sale.
    3. Link the audit row to the sale and commit both together.
    """
    _validate_quantity(quantity_sold)

    def _op():
        try:
            _, stock_tx = _adjust_stock_inner(
                product_id=product_id,
                delta=-quantity_sold,
                transaction_type="SALE",
                reference=None,
                note=None,
                actor_user_id=actor_user_id,
            )

            sale = Sale(
                product_id=product_id,
                quantity_sold=quantity_sold,
                sale_date=utcnow(),
                sold_by_user_id=actor_user_id,
            )
            db.session.add(sale)
            db.session.flush()

            stock_tx.reference = f"sale:{sale.id}"

            db.session.commit()
            return sale
        except StockroomError:
            db.session.rollback()
            raise

    try:
        sale = run_with_retry(_op)
    except SQLAlchemyError as exc:
        db.session.rollback()
        logger.exception("Failed to record sale for product %s", product_id)
        raise DatabaseError() from exc

    logger.info("Recorded sale %s: product=%s quantity=%s", sale.id, product_id, quantity_sold)
    return sale


def get_sale(sale_id: int) -> Sale:
    sale = db.session.get(Sale, sale_id)
    if sale is None:
        raise NotFound("Sale not found", details={"sale_id": sale_id})
    return sale


def list_sales(
    *,
    start: datetime | None = None,
    end: datetime | None = None,
    product_id: int | None = None,
    limit: int = 500,
) -> list[dict]:
    """Sales joined with product name, newest first. Range is inclusive."""
    q = db.session.query(Sale, Product.name).join(Product, Product.id == Sale.product_id)
    if start is not None:
        q = q.filter(Sale.sale_date >= start)
    if end is not None:
        q = q.filter(Sale.sale_date <= end)
    if product_id is not None:
        q = q.filter(Sale.product_id == product_id)

    rows = q.order_by(Sale.sale_date.desc(), Sale.id.desc()).limit(limit).all()
    return [{**sale.to_dict(), "product_name": name} for sale, name in rows]
