# Overview: Flask API routes for sales operations; parses input and returns JSON responses.

"""Sales API routes with permission enforcement"""

from flask import Blueprint, g, jsonify, request

from ..decorators import require_auth, require_permission
from ..permissions import INVENTORY_READ, SALES_WRITE
from ..services import sales_service
from ._params import datetime_arg, int_field

sales_bp = Blueprint("sales", __name__, url_prefix="/api/sales")


@sales_bp.post("")
@require_auth
@require_permission(SALES_WRITE)
def record_sale_route():
    """
    Record a sale and decrement stock atomically.

    Body: {"product_id": int, "quantity_sold": int > 0}
    """
    data = request.get_json(silent=True) or {}
    quantity_sold = int_field(data, "quantity_sold")
    product_id = int_field(data, "product_id")

    sale = sales_service.record_sale(product_id, quantity_sold, actor_user_id=g.current_user.id)
    return jsonify({"sale": sale.to_dict()}), 201


@sales_bp.get("")
@require_auth
@require_permission(INVENTORY_READ)
def list_sales_route():
    """Query params: start, end (ISO-8601, inclusive), product_id."""
    items = sales_service.list_sales(
        start=datetime_arg("start"),
        end=datetime_arg("end"),
        product_id=request.args.get("product_id", type=int),
    )
    return jsonify({"items": items, "count": len(items)}), 200


@sales_bp.get("/<int:sale_id>")
@require_auth
@require_permission(INVENTORY_READ)
def get_sale_route(sale_id: int):
    sale = sales_service.get_sale(sale_id)
    return jsonify({"sale": sale.to_dict()}), 200
