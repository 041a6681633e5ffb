# backend/stockroom/services/products_service.py
"""
Products Service

- Every create/update validates location/supplier references first, so an
  invalid write is rejected before anything is flushed.
- Barcodes are unique. Missing barcodes are generated; supplied ones must
  pass barcode_service.validate.
- quantity is NOT patchable here. Opening stock on create is written through
  an opening RECEIVE audit row; every later change goes through
  stock_service.
"""
from __future__ import annotations

import logging

from sqlalchemy.exc import IntegrityError, SQLAlchemyError

from ..extensions import db
from ..errors import DatabaseError, DuplicateEntry, NotFound, ValidationError
from ..models import InventoryTransaction, Product, Sale
from ..validation import enforce_rules_product
from . import barcode_service
from .reference_service import validate_references

logger = logging.getLogger(__name__)

PRODUCT_MUTABLE_FIELDS = {
    "name", "barcode", "category", "price", "cost_price",
    "min_stock_level", "location_id", "supplier_id",
}

# Generated barcodes are random; a collision just means "draw again"
_BARCODE_ATTEMPTS = 5


def apply_product_patch(p: Product, patch: dict) -> None:
    for k, v in patch.items():
        if k not in PRODUCT_MUTABLE_FIELDS:
            continue
        setattr(p, k, v)


def _barcode_taken(barcode: str, *, exclude_id: int | None = None) -> bool:
    q = db.session.query(Product.id).filter(Product.barcode == barcode)
    if exclude_id is not None:
        q = q.filter(Product.id != exclude_id)
    return q.first() is not None


def _resolve_barcode(barcode: str | None, *, exclude_id: int | None = None) -> str:
    if barcode:
        if not barcode_service.validate(barcode):
            raise ValidationError("Invalid barcode", details={"field": "barcode", "value": barcode})
        if _barcode_taken(barcode, exclude_id=exclude_id):
            raise DuplicateEntry("Barcode already exists", details={"barcode": barcode})
        return barcode

    for _ in range(_BARCODE_ATTEMPTS):
        candidate = barcode_service.generate("INTERNAL")
        if not _barcode_taken(candidate):
            return candidate
    raise DatabaseError("Could not allocate a unique barcode")


def _commit_product(product: Product, *, write=None) -> Product:
    """
    Run the pending write (if any) and commit.

    An IntegrityError is re-checked after rollback: only a barcode that is
    now taken by another row is a DuplicateEntry (two writers racing for the
    same code). Anything else slipped past enforce_rules_product and surfaces
    as DatabaseError.
    """
    barcode = product.barcode
    product_id = product.id
    try:
        if write is not None:
            write()
        db.session.commit()
    except IntegrityError as exc:
        db.session.rollback()
        if _barcode_taken(barcode, exclude_id=product_id):
            raise DuplicateEntry("Barcode already exists", details={"barcode": barcode}) from exc
        logger.exception("Product write violated a database constraint")
        raise DatabaseError() from exc
    except SQLAlchemyError as exc:
        db.session.rollback()
        logger.exception("Failed to persist product")
        raise DatabaseError() from exc
    return product


def create_product(patch: dict, *, actor_user_id: int | None = None) -> Product:
    for field in ("name", "price"):
        if patch.get(field) is None:
            raise ValidationError(f"{field} is required", details={"field": field})
    enforce_rules_product(patch)

    opening_quantity = patch.get("quantity") or 0

    validate_references(patch.get("location_id"), patch.get("supplier_id"))

    barcode = _resolve_barcode(patch.get("barcode"))

    product = Product(quantity=opening_quantity, min_stock_level=0)
    apply_product_patch(product, patch)
    product.barcode = barcode

    def _write():
        db.session.add(product)
        db.session.flush()

        if opening_quantity > 0:
            db.session.add(InventoryTransaction(
                product_id=product.id,
                transaction_type="RECEIVE",
                quantity_delta=opening_quantity,
                quantity_after=opening_quantity,
                reference=f"product:{product.id}",
                note="Opening stock",
                actor_user_id=actor_user_id,
            ))

    return _commit_product(product, write=_write)


def get_product(product_id: int) -> Product:
    product = db.session.get(Product, product_id)
    if product is None:
        raise NotFound("Product not found", details={"product_id": product_id})
    return product


def update_product(product_id: int, patch: dict) -> Product:
    if "quantity" in patch:
        raise ValidationError(
            "quantity cannot be patched; use a stock adjustment",
            details={"field": "quantity"},
        )
    enforce_rules_product(patch)

    product = get_product(product_id)

    location_id = patch.get("location_id", product.location_id)
    supplier_id = patch.get("supplier_id", product.supplier_id)
    validate_references(location_id, supplier_id)

    if "barcode" in patch:
        if not patch["barcode"]:
            raise ValidationError("barcode cannot be blank", details={"field": "barcode"})
        if patch["barcode"] != product.barcode:
            _resolve_barcode(patch["barcode"], exclude_id=product.id)

    apply_product_patch(product, patch)
    return _commit_product(product)


def delete_product(product_id: int) -> None:
    """
    Delete a product and its derived stock history/alerts.

    Products with recorded sales cannot be deleted: sales are facts that
    must keep resolving to their product.
    """
    product = get_product(product_id)

    if db.session.query(Sale.id).filter_by(product_id=product_id).first() is not None:
        raise ValidationError(
            "Product has sales history and cannot be deleted",
            details={"product_id": product_id},
        )

    db.session.delete(product)
    try:
        db.session.commit()
    except SQLAlchemyError as exc:
        db.session.rollback()
        logger.exception("Failed to delete product %s", product_id)
        raise DatabaseError() from exc


def list_products(*, location_id: int | None = None, category: str | None = None) -> list[Product]:
    q = db.session.query(Product)
    if location_id is not None:
        q = q.filter(Product.location_id == location_id)
    if category:
        q = q.filter(db.func.lower(Product.category) == category.strip().lower())
    return q.order_by(Product.name.asc(), Product.id.asc()).all()


def find_by_barcode(barcode: str) -> Product:
    product = db.session.query(Product).filter_by(barcode=barcode).first()
    if product is None:
        raise NotFound("Product not found", details={"barcode": barcode})
    return product
