"""
HTTP boundary tests.

Verifies:
- Error kinds map to status codes (404/409/422/400)
- Unauthenticated requests return 401, missing permissions return 403
- Happy paths for products, stock, sales, invoices and reports
"""

import pytest

from stockroom.models import Product
from conftest import TEST_PASSWORD, auth_headers


# =============================================================================
# AUTH
# =============================================================================


class TestAuth:

    def test_login_me_logout(self, client, staff_user):
        resp = client.post("/api/auth/login", json={"username": "staff_user", "password": TEST_PASSWORD})
        assert resp.status_code == 200
        headers = auth_headers(resp.json["token"])

        me = client.get("/api/auth/me", headers=headers)
        assert me.status_code == 200
        assert me.json["user"]["role"] == "staff"
        assert "sales:write" in me.json["permissions"]

        assert client.post("/api/auth/logout", headers=headers).status_code == 200
        assert client.get("/api/auth/me", headers=headers).status_code == 401

    def test_bad_credentials(self, client, staff_user):
        resp = client.post("/api/auth/login", json={"username": "staff_user", "password": "wrong-pass1"})
        assert resp.status_code == 401

    def test_missing_credentials(self, client, db_session):
        assert client.post("/api/auth/login", json={}).status_code == 400


@pytest.mark.parametrize("method,path", [
    ("GET", "/api/products"),
    ("POST", "/api/products"),
    ("POST", "/api/inventory/1/adjust"),
    ("GET", "/api/sales"),
    ("POST", "/api/sales"),
    ("GET", "/api/invoices"),
    ("GET", "/api/alerts"),
    ("GET", "/api/reports/sales"),
])
def test_requires_auth(client, db_session, method, path):
    resp = getattr(client, method.lower())(path)
    assert resp.status_code == 401, f"{method} {path} returned {resp.status_code}"


def test_invalid_token(client, db_session):
    assert client.get("/api/products", headers=auth_headers("not-a-token")).status_code == 401


class TestStaffDenied:

    def test_cannot_create_product(self, client, staff_headers, location):
        resp = client.post("/api/products", json={"name": "x", "price": 1, "location_id": location.id}, headers=staff_headers)
        assert resp.status_code == 403
        assert resp.json["required_permission"] == "inventory:write"

    def test_cannot_adjust_stock(self, client, staff_headers, make_product):
        resp = client.post(f"/api/inventory/{make_product().id}/adjust", json={"delta": 5}, headers=staff_headers)
        assert resp.status_code == 403

    def test_cannot_read_reports(self, client, staff_headers):
        assert client.get("/api/reports/inventory", headers=staff_headers).status_code == 403


def test_manager_cannot_read_financials(client, manager_headers):
    assert client.get("/api/reports/sales", headers=manager_headers).status_code == 200
    assert client.get("/api/reports/financial", headers=manager_headers).status_code == 403


def test_admin_reads_financials(client, admin_headers):
    resp = client.get("/api/reports/financial", headers=admin_headers)
    assert resp.status_code == 200
    assert resp.json["financials"]["total_transactions"] == 0


# =============================================================================
# ERROR KIND -> STATUS
# =============================================================================


class TestErrorMapping:

    def test_not_found(self, client, admin_headers):
        resp = client.get("/api/products/424242", headers=admin_headers)
        assert resp.status_code == 404
        assert resp.json["kind"] == "NOT_FOUND"

    def test_insufficient_stock(self, client, staff_headers, make_product):
        product = make_product(quantity=1)

        resp = client.post("/api/sales", json={"product_id": product.id, "quantity_sold": 2}, headers=staff_headers)

        assert resp.status_code == 409
        assert resp.json["kind"] == "INSUFFICIENT_STOCK"
        assert resp.json["details"]["available"] == 1

    def test_invalid_reference(self, client, admin_headers):
        resp = client.post(
            "/api/products",
            json={"name": "Ghost", "price": "1.00", "location_id": 999, "supplier_id": 888},
            headers=admin_headers,
        )
        assert resp.status_code == 422
        assert [v["field"] for v in resp.json["details"]["violations"]] == ["location_id", "supplier_id"]

    def test_validation(self, client, staff_headers, make_product):
        resp = client.post("/api/sales", json={"product_id": make_product().id, "quantity_sold": 0}, headers=staff_headers)
        assert resp.status_code == 400
        assert resp.json["kind"] == "VALIDATION"

    def test_duplicate_barcode(self, client, admin_headers, make_product, location):
        existing = make_product()
        resp = client.post(
            "/api/products",
            json={"name": "Clone", "price": 2, "barcode": existing.barcode, "location_id": location.id},
            headers=admin_headers,
        )
        assert resp.status_code == 409
        assert resp.json["kind"] == "DUPLICATE_ENTRY"

    def test_non_ascii_barcode(self, client, admin_headers, location):
        resp = client.post(
            "/api/products",
            json={"name": "Odd", "price": 2, "barcode": "²" * 13, "location_id": location.id},
            headers=admin_headers,
        )
        assert resp.status_code == 400
        assert resp.json["kind"] == "VALIDATION"

    def test_bad_date_filter(self, client, staff_headers):
        assert client.get("/api/sales?start=yesterday", headers=staff_headers).status_code == 400


# =============================================================================
# HAPPY PATHS
# =============================================================================


def test_product_lifecycle(client, admin_headers, location, db_session):
    created = client.post(
        "/api/products",
        json={"name": "Notebook", "price": "3.50", "category": "books", "quantity": 12, "min_stock_level": 2, "location_id": location.id},
        headers=admin_headers,
    )
    assert created.status_code == 201
    product_id = created.json["id"]
    assert created.json["price"] == "3.50"
    assert created.json["quantity"] == 12

    scanned = client.get(f"/api/products/barcode/{created.json['barcode']}", headers=admin_headers)
    assert scanned.json["id"] == product_id

    updated = client.put(f"/api/products/{product_id}", json={"price": 4}, headers=admin_headers)
    assert updated.status_code == 200
    assert updated.json["price"] == "4.00"

    rejected = client.put(f"/api/products/{product_id}", json={"quantity": 99}, headers=admin_headers)
    assert rejected.status_code == 400

    listed = client.get("/api/products?category=BOOKS", headers=admin_headers)
    assert listed.json["count"] == 1

    assert client.delete(f"/api/products/{product_id}", headers=admin_headers).status_code == 200
    assert db_session.get(Product, product_id) is None


def test_stock_endpoints(client, manager_headers, make_product):
    product = make_product(quantity=3, min_stock_level=2)

    received = client.post(f"/api/inventory/{product.id}/receive", json={"quantity": 5, "note": "delivery"}, headers=manager_headers)
    assert received.status_code == 201
    assert received.json["product"]["quantity"] == 8

    adjusted = client.post(f"/api/inventory/{product.id}/adjust", json={"delta": -7}, headers=manager_headers)
    assert adjusted.json["product"]["quantity"] == 1

    history = client.get(f"/api/inventory/{product.id}/history", headers=manager_headers)
    assert [row["quantity_delta"] for row in history.json["items"]] == [-7, 5]

    alerts = client.get(f"/api/alerts?product_id={product.id}", headers=manager_headers)
    assert alerts.json["count"] == 1


def test_sale_invoice_and_pdf(client, staff_headers, make_product, app, tmp_path):
    product = make_product(name="Cable", quantity=10)

    sale = client.post("/api/sales", json={"product_id": product.id, "quantity_sold": 2}, headers=staff_headers)
    assert sale.status_code == 201
    sale_id = sale.json["sale"]["id"]

    assert client.get(f"/api/sales/{sale_id}", headers=staff_headers).json["sale"]["quantity_sold"] == 2
    assert client.get("/api/sales", headers=staff_headers).json["items"][0]["product_name"] == "Cable"

    invoice = client.post("/api/invoices", json={"sale_id": sale_id}, headers=staff_headers)
    assert invoice.status_code == 201
    assert invoice.json["invoice"]["total"] == "23.60"

    again = client.post("/api/invoices", json={"sale_id": sale_id}, headers=staff_headers)
    assert again.status_code == 409

    app.config["INVOICE_PDF_DIR"] = str(tmp_path)
    try:
        pdf = client.get(f"/api/invoices/{invoice.json['invoice']['id']}/pdf", headers=staff_headers)
    finally:
        app.config["INVOICE_PDF_DIR"] = "invoices"
    assert pdf.status_code == 200
    assert pdf.mimetype == "application/pdf"
    assert pdf.data.startswith(b"%PDF-1.4")
    pdf.close()


def test_invoice_preview(client, staff_headers):
    resp = client.post(
        "/api/invoices/preview",
        json={"line_items": [
            {"unit_price": "500", "quantity": 1, "category": "electronics"},
            {"unit_price": "500", "quantity": 1, "category": "books"},
        ]},
        headers=staff_headers,
    )
    assert resp.status_code == 200
    assert resp.json["totals"]["total"] == "1090.00"
    assert resp.json["totals"]["exempt_amount"] == "500.00"


def test_health(client, db_session):
    resp = client.get("/api/health")
    assert resp.status_code == 200
    assert resp.json["status"] == "healthy"
