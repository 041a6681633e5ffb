# Overview: Stock ledger; the only code path that mutates Product.quantity.

"""
Stockroom Stock Invariants (authoritative)

- Product.quantity >= 0 at all times (also a DB CHECK constraint).
- Every mutation is ONE conditional statement:
      UPDATE products SET quantity = quantity + :delta
       WHERE id = :id AND quantity + :delta >= 0
  Zero affected rows means the product is missing (NotFound) or the delta
  would go negative (InsufficientStock). There is no read-check-write
  window, so concurrent decrements can never oversell.
- Each successful mutation appends an InventoryTransaction in the same DB
  transaction (audit trail; never updated or deleted by services).
- A decrement that leaves quantity <= min_stock_level dispatches a
  low-stock alert inside a SAVEPOINT. Alert failure never undoes the
  mutation.

Conservation (checkable from inventory_transactions):
    current quantity == SUM(quantity_delta) over the product's rows
    SUM(sales.quantity_sold) == -SUM(quantity_delta WHERE type = 'SALE')
"""

from __future__ import annotations

import logging

from sqlalchemy import update
from sqlalchemy.exc import SQLAlchemyError

from ..extensions import db
from ..errors import DatabaseError, InsufficientStock, NotFound, StockroomError, ValidationError
from ..models import InventoryTransaction, Product
from .alert_service import dispatch_isolated
from .concurrency import run_with_retry

logger = logging.getLogger(__name__)

# SALE rows are written only by sales_service alongside their Sale row
MANUAL_TRANSACTION_TYPES = ("RECEIVE", "ADJUST")


def _require_int(name: str, value) -> int:
    if isinstance(value, bool) or not isinstance(value, int):
        raise ValidationError(f"{name} must be an integer", details={"field": name})
    return value


def get_product_or_404(product_id: int) -> Product:
    product = db.session.get(Product, product_id)
    if product is None:
        raise NotFound("Product not found", details={"product_id": product_id})
    return product


def _apply_delta(product_id: int, delta: int) -> Product:
    """Conditional write; returns the refreshed product or raises."""
    result = db.session.execute(
        update(Product)
        .where(Product.id == product_id, Product.quantity + delta >= 0)
        .values(quantity=Product.quantity + delta)
        .execution_options(synchronize_session=False)
    )

    if result.rowcount == 0:
        product = db.session.get(Product, product_id, populate_existing=True)
        if product is None:
            raise NotFound("Product not found", details={"product_id": product_id})
        raise InsufficientStock(
            "Insufficient stock",
            details={
                "product_id": product_id,
                "requested": -delta,
                "available": product.quantity,
            },
        )

    return db.session.get(Product, product_id, populate_existing=True)


def _adjust_stock_inner(
    *,
    product_id: int,
    delta: int,
    transaction_type: str,
    reference: str | None,
    note: str | None,
    actor_user_id: int | None,
) -> tuple[Product, InventoryTransaction]:
    """Mutation + audit row + alert, without commit. Caller owns the transaction."""
    product = _apply_delta(product_id, delta)

    tx = InventoryTransaction(
        product_id=product_id,
        transaction_type=transaction_type,
        quantity_delta=delta,
        quantity_after=product.quantity,
        reference=reference,
        note=note,
        actor_user_id=actor_user_id,
    )
    db.session.add(tx)
    db.session.flush()

    if delta < 0 and product.quantity <= product.min_stock_level:
        dispatch_isolated(product)

    return product, tx


def adjust_stock(
    product_id: int,
    delta: int,
    *,
    transaction_type: str = "ADJUST",
    reference: str | None = None,
    note: str | None = None,
    actor_user_id: int | None = None,
    commit: bool = True,
) -> Product:
    """
    Apply quantity += delta atomically.

    Raises NotFound, InsufficientStock or ValidationError; on any error the
    session is rolled back and nothing is persisted. With commit=False the
    mutation joins the caller's unit of work (see sales_service).
    """
    _require_int("delta", delta)
    if delta == 0:
        raise ValidationError("delta must be non-zero", details={"field": "delta"})
    if transaction_type not in MANUAL_TRANSACTION_TYPES:
        raise ValidationError(
            f"transaction_type must be one of {', '.join(MANUAL_TRANSACTION_TYPES)}",
            details={"field": "transaction_type"},
        )

    def _op():
        try:
            product, _ = _adjust_stock_inner(
                product_id=product_id,
                delta=delta,
                transaction_type=transaction_type,
                reference=reference,
                note=note,
                actor_user_id=actor_user_id,
            )
            if commit:
                db.session.commit()
            return product
        except StockroomError:
            db.session.rollback()
            raise

    if not commit:
        return _op()

    try:
        return run_with_retry(_op)
    except SQLAlchemyError as exc:
        db.session.rollback()
        logger.exception("Stock adjustment failed for product %s", product_id)
        raise DatabaseError() from exc


def receive_stock(
    product_id: int,
    quantity: int,
    *,
    reference: str | None = None,
    note: str | None = None,
    actor_user_id: int | None = None,
) -> Product:
    """Positive adjustment recorded as RECEIVE."""
    _require_int("quantity", quantity)
    if quantity <= 0:
        raise ValidationError("quantity must be > 0 for RECEIVE", details={"field": "quantity"})
    return adjust_stock(
        product_id,
        quantity,
        transaction_type="RECEIVE",
        reference=reference,
        note=note,
        actor_user_id=actor_user_id,
    )


def list_stock_history(product_id: int, *, limit: int = 200) -> list[InventoryTransaction]:
    get_product_or_404(product_id)
    return (
        db.session.query(InventoryTransaction)
        .filter_by(product_id=product_id)
        .order_by(InventoryTransaction.created_at.desc(), InventoryTransaction.id.desc())
        .limit(limit)
        .all()
    )
