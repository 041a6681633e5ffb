# Overview: Read-only sales, inventory and financial reports.

from __future__ import annotations

from datetime import datetime
from decimal import Decimal

from sqlalchemy import func

from stockroom.extensions import db
from stockroom.errors import ValidationError
from stockroom.models import Invoice, Product, Sale
from stockroom.models.catalog import money_str
from stockroom.time_utils import to_utc_z, utcnow

GROUP_BY_FORMATS = {
    "day": "%Y-%m-%d",
    "week": "%Y-W%W",
    "month": "%Y-%m",
}


def _period_expr(column, group_by: str):
    if group_by not in GROUP_BY_FORMATS:
        raise ValidationError("group_by must be day, week, or month", details={"field": "group_by"})
    if db.engine.dialect.name == "postgresql":
        return func.to_char(column, {"day": "YYYY-MM-DD", "week": 'IYYY-"W"IW', "month": "YYYY-MM"}[group_by])
    return func.strftime(GROUP_BY_FORMATS[group_by], column)


def _in_range(query, column, start: datetime | None, end: datetime | None):
    if start:
        query = query.filter(column >= start)
    if end:
        query = query.filter(column <= end)
    return query


def sales_report(
    *,
    start: datetime | None = None,
    end: datetime | None = None,
    group_by: str = "day",
    top: int = 10,
) -> dict:
    period = _period_expr(Sale.sale_date, group_by)
    revenue = func.coalesce(func.sum(Sale.quantity_sold * Product.price), 0)

    query = db.session.query(
        period.label("period"),
        func.count(Sale.id).label("transactions"),
        func.coalesce(func.sum(Sale.quantity_sold), 0).label("units_sold"),
        revenue.label("revenue"),
    ).join(Product, Product.id == Sale.product_id)
    rows = _in_range(query, Sale.sale_date, start, end).group_by("period").order_by("period").all()

    top_query = db.session.query(
        Product.id,
        Product.name,
        func.sum(Sale.quantity_sold).label("units_sold"),
        revenue.label("revenue"),
    ).join(Sale, Sale.product_id == Product.id)
    top_rows = (
        _in_range(top_query, Sale.sale_date, start, end)
        .group_by(Product.id, Product.name)
        .order_by(revenue.desc())
        .limit(top)
        .all()
    )

    return {
        "meta": {
            "start": to_utc_z(start),
            "end": to_utc_z(end),
            "group_by": group_by,
            "generated_at": to_utc_z(utcnow()),
        },
        "rows": [
            {
                "period": row.period,
                "transactions": int(row.transactions),
                "units_sold": int(row.units_sold),
                "revenue": money_str(Decimal(str(row.revenue))),
            }
            for row in rows
        ],
        "top_products": [
            {
                "product_id": row.id,
                "name": row.name,
                "units_sold": int(row.units_sold),
                "revenue": money_str(Decimal(str(row.revenue))),
            }
            for row in top_rows
        ],
    }


def stock_status(quantity: int, min_stock_level: int) -> str:
    if quantity <= min_stock_level:
        return "low"
    if quantity <= min_stock_level * Decimal("1.5"):
        return "medium"
    return "healthy"


def inventory_report(*, location_id: int | None = None) -> dict:
    q = db.session.query(Product)
    if location_id is not None:
        q = q.filter(Product.location_id == location_id)
    products = q.all()

    items = []
    total_value = Decimal("0")
    for p in products:
        value = p.price * p.quantity
        total_value += value
        items.append({
            "id": p.id,
            "name": p.name,
            "quantity": p.quantity,
            "min_stock_level": p.min_stock_level,
            "price": money_str(p.price),
            "total_value": money_str(value),
            "stock_status": stock_status(p.quantity, p.min_stock_level),
        })
    items.sort(key=lambda item: (-Decimal(item["total_value"]), item["id"]))

    return {
        "meta": {"location_id": location_id, "generated_at": to_utc_z(utcnow())},
        "summary": {
            "total_inventory_value": money_str(total_value),
            "total_products": len(items),
            "low_stock_items": sum(1 for item in items if item["stock_status"] == "low"),
        },
        "inventory": items,
        "stock_status": {
            status: [item["id"] for item in items if item["stock_status"] == status]
            for status in ("low", "medium", "healthy")
        },
    }


def financial_report(*, start: datetime | None = None, end: datetime | None = None) -> dict:
    query = db.session.query(
        func.coalesce(func.sum(Invoice.total), 0).label("total_revenue"),
        func.coalesce(func.sum(Invoice.tax_amount), 0).label("total_taxes"),
        func.coalesce(func.sum(Invoice.discount), 0).label("total_discounts"),
        func.count(Invoice.id).label("total_transactions"),
    )
    row = _in_range(query, Invoice.invoice_date, start, end).one()

    count = int(row.total_transactions)
    revenue = Decimal(str(row.total_revenue))
    taxes = Decimal(str(row.total_taxes))
    average = (revenue / count) if count else Decimal("0")

    return {
        "meta": {
            "start": to_utc_z(start),
            "end": to_utc_z(end),
            "generated_at": to_utc_z(utcnow()),
        },
        "financials": {
            "total_revenue": money_str(revenue),
            "total_taxes": money_str(taxes),
            "total_discounts": money_str(Decimal(str(row.total_discounts))),
            "total_transactions": count,
            "average_sale": money_str(average.quantize(Decimal("0.01"))),
            "net_of_tax": money_str(revenue - taxes),
        },
    }
