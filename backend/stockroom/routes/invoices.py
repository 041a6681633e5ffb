# Overview: Flask API routes for invoices; computation, issue, and PDF download.

from flask import Blueprint, current_app, jsonify, request, send_file

from ..decorators import require_auth, require_permission
from ..errors import ValidationError
from ..permissions import INVENTORY_READ, INVOICES_WRITE
from ..services import invoice_service
from ..services.invoice_service import LineItem
from ._params import int_field

invoices_bp = Blueprint("invoices", __name__, url_prefix="/api/invoices")


@invoices_bp.post("")
@require_auth
@require_permission(INVOICES_WRITE)
def create_invoice_route():
    """Body: {"sale_id": int, "discount": number?}"""
    data = request.get_json(silent=True) or {}
    invoice = invoice_service.create_invoice(int_field(data, "sale_id"), data.get("discount", 0))
    return jsonify({"invoice": invoice.to_dict()}), 201


@invoices_bp.post("/preview")
@require_auth
@require_permission(INVOICES_WRITE)
def preview_invoice_route():
    """
    Compute totals without persisting anything.

    Body: {"line_items": [{"unit_price", "quantity", "category"}], "discount"?}
    """
    data = request.get_json(silent=True) or {}
    raw_items = data.get("line_items")
    if not isinstance(raw_items, list):
        raise ValidationError("line_items must be a list", details={"field": "line_items"})

    items = []
    for i, raw in enumerate(raw_items):
        if not isinstance(raw, dict):
            raise ValidationError("line item must be an object", details={"field": f"line_items[{i}]"})
        items.append(LineItem(
            unit_price=raw.get("unit_price"),
            quantity=raw.get("quantity"),
            category=raw.get("category"),
        ))

    totals = invoice_service.compute_invoice(items, data.get("discount", 0))
    return jsonify({"totals": totals.to_dict()}), 200


@invoices_bp.get("")
@require_auth
@require_permission(INVENTORY_READ)
def list_invoices_route():
    invoices = invoice_service.list_invoices()
    return jsonify({"items": [i.to_dict() for i in invoices], "count": len(invoices)}), 200


@invoices_bp.get("/<int:invoice_id>")
@require_auth
@require_permission(INVENTORY_READ)
def get_invoice_route(invoice_id: int):
    return jsonify({"invoice": invoice_service.get_invoice(invoice_id).to_dict()}), 200


@invoices_bp.get("/<int:invoice_id>/pdf")
@require_auth
@require_permission(INVENTORY_READ)
def invoice_pdf_route(invoice_id: int):
    try:
        path = invoice_service.render_invoice_pdf(invoice_id)
    except OSError:
        current_app.logger.exception("Failed to render invoice %s", invoice_id)
        return jsonify({"error": "Could not render invoice"}), 500

    return send_file(
        path,
        mimetype="application/pdf",
        as_attachment=True,
        download_name=f"invoice_{invoice_id}.pdf",
    )
