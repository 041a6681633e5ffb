# backend/stockroom/routes/reports.py
"""
Reporting routes.

SECURITY:
- Sales and inventory reports require reports:read (admin, manager)
- Financial report requires reports:write (admin only)
"""
from flask import Blueprint, request

from ..decorators import require_auth, require_permission
from ..permissions import REPORTS_READ, REPORTS_WRITE
from ..services import reporting_service
from ._params import datetime_arg

reports_bp = Blueprint("reports", __name__, url_prefix="/api/reports")


@reports_bp.get("/sales")
@require_auth
@require_permission(REPORTS_READ)
def sales_report_route():
    return reporting_service.sales_report(
        start=datetime_arg("start"),
        end=datetime_arg("end"),
        group_by=request.args.get("group_by", "day"),
    )


@reports_bp.get("/inventory")
@require_auth
@require_permission(REPORTS_READ)
def inventory_report_route():
    return reporting_service.inventory_report(location_id=request.args.get("location_id", type=int))


@reports_bp.get("/financial")
@require_auth
@require_permission(REPORTS_WRITE)
def financial_report_route():
    return reporting_service.financial_report(start=datetime_arg("start"), end=datetime_arg("end"))
