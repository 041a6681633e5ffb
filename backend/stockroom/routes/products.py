# backend/stockroom/routes/products.py
"""
Product catalog routes.

SECURITY: All routes require authentication.
- Read operations require inventory:read
- Write operations require inventory:write

Service errors (NotFound, InvalidReference, DuplicateEntry, ...) are mapped
to status codes by the app-level error handler.
"""
from flask import Blueprint, g, request

from ..models import Product
from ..permissions import INVENTORY_READ, INVENTORY_WRITE
from ..services import products_service
from ..validation import ModelValidationPolicy, validate_payload
from ..decorators import require_auth, require_permission

PRODUCT_POLICY = ModelValidationPolicy(
    writable_fields={
        "name", "barcode", "category", "price", "cost_price",
        "quantity", "min_stock_level", "location_id", "supplier_id",
    },
    # location_id presence is reported by the reference validator with the other references
    required_on_create={"name", "price"},
)

products_bp = Blueprint("products", __name__, url_prefix="/api/products")


@products_bp.get("")
@require_auth
@require_permission(INVENTORY_READ)
def list_products_route():
    """
    Query params:
    - location_id: int (optional)
    - category: str (optional, case-insensitive)
    """
    products = products_service.list_products(
        location_id=request.args.get("location_id", type=int),
        category=request.args.get("category"),
    )
    return {"items": [p.to_dict() for p in products], "count": len(products)}


@products_bp.post("")
@require_auth
@require_permission(INVENTORY_WRITE)
def create_product_route():
    payload = request.get_json(silent=True) or {}

    patch = validate_payload(model=Product, payload=payload, policy=PRODUCT_POLICY, partial=False)
    created = products_service.create_product(patch, actor_user_id=g.current_user.id)
    return created.to_dict(), 201


@products_bp.get("/<int:product_id>")
@require_auth
@require_permission(INVENTORY_READ)
def get_product_route(product_id: int):
    return products_service.get_product(product_id).to_dict()


@products_bp.get("/barcode/<string:barcode>")
@require_auth
@require_permission(INVENTORY_READ)
def scan_barcode_route(barcode: str):
    return products_service.find_by_barcode(barcode).to_dict()


@products_bp.put("/<int:product_id>")
@require_auth
@require_permission(INVENTORY_WRITE)
def update_product_route(product_id: int):
    payload = request.get_json(silent=True) or {}

    patch = validate_payload(model=Product, payload=payload, policy=PRODUCT_POLICY, partial=True)
    updated = products_service.update_product(product_id, patch)
    return updated.to_dict(), 200


@products_bp.delete("/<int:product_id>")
@require_auth
@require_permission(INVENTORY_WRITE)
def delete_product_route(product_id: int):
    products_service.delete_product(product_id)
    return {"ok": True}, 200
