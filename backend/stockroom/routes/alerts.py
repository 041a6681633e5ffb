# Overview: Read-only view of the low-stock alert log.

from flask import Blueprint, request

from ..decorators import require_auth, require_permission
from ..permissions import INVENTORY_READ
from ..services import alert_service

alerts_bp = Blueprint("alerts", __name__, url_prefix="/api/alerts")


@alerts_bp.get("")
@require_auth
@require_permission(INVENTORY_READ)
def list_alerts_route():
    alerts = alert_service.list_alerts(
        product_id=request.args.get("product_id", type=int),
        limit=min(request.args.get("limit", 200, type=int), 1000),
    )
    return {"items": [a.to_dict() for a in alerts], "count": len(alerts)}
