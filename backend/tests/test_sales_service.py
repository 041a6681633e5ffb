"""
Sales tests.

Verifies:
- A sale and its stock decrement commit together or not at all
- Recorded sales reconcile with SALE rows in the stock audit trail
"""

from datetime import timedelta

import pytest
from sqlalchemy import func

from stockroom.errors import InsufficientStock, NotFound, ValidationError
from stockroom.models import InventoryTransaction, Product, Sale, StockAlert
from stockroom.services import sales_service, stock_service
from stockroom.time_utils import utcnow


def test_record_sale_decrements_and_links_audit_row(db_session, make_product, staff_user):
    product = make_product(quantity=10)

    sale = sales_service.record_sale(product.id, 3, actor_user_id=staff_user.id)

    assert sale.quantity_sold == 3
    assert sale.sold_by_user_id == staff_user.id
    assert db_session.get(Product, product.id).quantity == 7
    tx = db_session.query(InventoryTransaction).filter_by(product_id=product.id).one()
    assert tx.transaction_type == "SALE"
    assert tx.quantity_delta == -3
    assert tx.reference == f"sale:{sale.id}"


def test_sale_for_missing_product_creates_nothing(db_session):
    with pytest.raises(NotFound):
        sales_service.record_sale(987654, 1)

    assert db_session.query(Sale).count() == 0
    assert db_session.query(StockAlert).count() == 0
    assert db_session.query(InventoryTransaction).count() == 0


def test_insufficient_stock_creates_no_sale(db_session, make_product):
    product = make_product(quantity=2, min_stock_level=5)

    with pytest.raises(InsufficientStock):
        sales_service.record_sale(product.id, 3)

    assert db_session.query(Sale).count() == 0
    assert db_session.query(StockAlert).count() == 0
    assert db_session.get(Product, product.id).quantity == 2


@pytest.mark.parametrize("quantity", [0, -1, "2", 1.0, True, None])
def test_rejects_invalid_quantity(db_session, make_product, quantity):
    product = make_product()

    with pytest.raises(ValidationError):
        sales_service.record_sale(product.id, quantity)

    assert db_session.query(Sale).count() == 0


def test_sales_reconcile_with_audit_trail(db_session, make_product):
    product = make_product(quantity=0)
    stock_service.receive_stock(product.id, 20)
    sales_service.record_sale(product.id, 3)
    sales_service.record_sale(product.id, 4)
    stock_service.adjust_stock(product.id, -2)
    with pytest.raises(InsufficientStock):
        sales_service.record_sale(product.id, 50)

    sold = db_session.query(func.sum(Sale.quantity_sold)).filter_by(product_id=product.id).scalar()
    sale_deltas = (
        db_session.query(func.sum(InventoryTransaction.quantity_delta))
        .filter_by(product_id=product.id, transaction_type="SALE")
        .scalar()
    )
    all_deltas = (
        db_session.query(func.sum(InventoryTransaction.quantity_delta))
        .filter_by(product_id=product.id)
        .scalar()
    )

    assert sold == -sale_deltas == 7
    assert db_session.get(Product, product.id).quantity == all_deltas == 11


def test_get_sale_missing(db_session):
    with pytest.raises(NotFound):
        sales_service.get_sale(123456)


def test_list_sales_filters(db_session, make_product):
    a = make_product(name="Alpha")
    b = make_product(name="Beta")
    sale_a = sales_service.record_sale(a.id, 1)
    sales_service.record_sale(b.id, 2)

    only_a = sales_service.list_sales(product_id=a.id)
    assert [row["id"] for row in only_a] == [sale_a.id]
    assert only_a[0]["product_name"] == "Alpha"

    now = utcnow()
    assert len(sales_service.list_sales(start=now - timedelta(hours=1), end=now + timedelta(hours=1))) == 2
    assert sales_service.list_sales(start=now + timedelta(hours=1)) == []
