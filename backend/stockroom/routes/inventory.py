# backend/stockroom/routes/inventory.py
"""
Stock ledger routes.

SECURITY: All routes require authentication.
- History requires inventory:read
- Receive/adjust require inventory:write

Stock changes go through stock_service only; the product catalog routes
cannot patch quantity.
"""
from flask import Blueprint, g, request

from ..decorators import require_auth, require_permission
from ..permissions import INVENTORY_READ, INVENTORY_WRITE
from ..services import stock_service
from ._params import int_field

inventory_bp = Blueprint("inventory", __name__, url_prefix="/api/inventory")


@inventory_bp.post("/<int:product_id>/receive")
@require_auth
@require_permission(INVENTORY_WRITE)
def receive_stock_route(product_id: int):
    """Body: {"quantity": int > 0, "note": str?, "reference": str?}"""
    payload = request.get_json(silent=True) or {}
    product = stock_service.receive_stock(
        product_id,
        int_field(payload, "quantity"),
        reference=payload.get("reference"),
        note=payload.get("note"),
        actor_user_id=g.current_user.id,
    )
    return {"product": product.to_dict()}, 201


@inventory_bp.post("/<int:product_id>/adjust")
@require_auth
@require_permission(INVENTORY_WRITE)
def adjust_stock_route(product_id: int):
    """
    Body: {"delta": int != 0, "note": str?}

    Negative deltas that would take quantity below zero return 409.
    """
    payload = request.get_json(silent=True) or {}
    product = stock_service.adjust_stock(
        product_id,
        int_field(payload, "delta"),
        note=payload.get("note"),
        actor_user_id=g.current_user.id,
    )
    return {"product": product.to_dict()}, 201


@inventory_bp.get("/<int:product_id>/history")
@require_auth
@require_permission(INVENTORY_READ)
def stock_history_route(product_id: int):
    limit = min(request.args.get("limit", 200, type=int), 1000)
    rows = stock_service.list_stock_history(product_id, limit=limit)
    return {"items": [row.to_dict() for row in rows], "count": len(rows)}
