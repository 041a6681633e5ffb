"""
Low-stock alert tests.

Verifies:
- Crossing the threshold fires exactly one alert per cooldown window
- Cooldown expiry is honored (driven by an injected clock)
- Delivery failures never undo the stock mutation
- Notifications go out only once the enclosing transaction commits
"""

from datetime import timedelta

import pytest
from sqlalchemy.exc import OperationalError

from stockroom.extensions import db
from stockroom.models import Product, StockAlert
from stockroom.services import alert_service, sales_service, stock_service


def _alert_count(db_session, product_id):
    return db_session.query(StockAlert).filter_by(product_id=product_id).count()


def test_threshold_crossing_fires_once(db_session, make_product, sender):
    product = make_product(name="USB Cable", quantity=6, min_stock_level=5)

    stock_service.adjust_stock(product.id, -2)

    assert _alert_count(db_session, product.id) == 1
    alert = db_session.query(StockAlert).filter_by(product_id=product.id).one()
    assert alert.alert_type == "LOW_STOCK"
    assert alert.quantity_at_alert == 4
    assert alert.min_stock_level == 5
    assert sender.sent == [
        ("alerts@test.local", "Low Stock: USB Cable", "Only 4 units left (Min: 5)"),
    ]
    assert db_session.get(Product, product.id).last_alert_at is not None


def test_second_decrement_within_cooldown_is_silent(db_session, make_product, sender):
    product = make_product(quantity=6, min_stock_level=5)

    stock_service.adjust_stock(product.id, -2)
    sales_service.record_sale(product.id, 1)

    assert _alert_count(db_session, product.id) == 1
    assert len(sender.sent) == 1


def test_above_threshold_does_not_alert(db_session, make_product, sender):
    product = make_product(quantity=20, min_stock_level=5)

    stock_service.adjust_stock(product.id, -10)

    assert _alert_count(db_session, product.id) == 0
    assert sender.sent == []


def test_receive_below_threshold_does_not_alert(db_session, make_product, sender):
    product = make_product(quantity=0, min_stock_level=5)

    stock_service.receive_stock(product.id, 1)

    assert _alert_count(db_session, product.id) == 0


def test_cooldown_expiry(db_session, make_product):
    product = make_product(quantity=6, min_stock_level=5)
    stock_service.adjust_stock(product.id, -2)
    first_alert_at = db_session.get(Product, product.id).last_alert_at

    product = db_session.get(Product, product.id)
    still_cooling = alert_service.maybe_alert(product, now=first_alert_at + timedelta(hours=23))
    expired = alert_service.maybe_alert(product, now=first_alert_at + timedelta(hours=25))
    db_session.commit()

    assert still_cooling is None
    assert expired is not None
    assert _alert_count(db_session, product.id) == 2


def test_failing_sender_keeps_mutation(db_session, make_product, sender):
    sender.fail_with = RuntimeError("smtp unavailable")
    product = make_product(quantity=6, min_stock_level=5)

    sale = sales_service.record_sale(product.id, 2)

    assert sale.id is not None
    assert db_session.get(Product, product.id).quantity == 4
    # cooldown is claimed before delivery is attempted
    assert _alert_count(db_session, product.id) == 1


def test_undelivered_notification_keeps_mutation(db_session, make_product, sender):
    sender.deliver = False
    product = make_product(quantity=6, min_stock_level=5)

    stock_service.adjust_stock(product.id, -1)

    assert db_session.get(Product, product.id).quantity == 5


def test_dispatch_error_is_isolated(db_session, make_product, monkeypatch):
    def boom(product, *, now=None):
        raise RuntimeError("alert store down")

    monkeypatch.setattr(alert_service, "maybe_alert", boom)
    product = make_product(quantity=6, min_stock_level=5)

    updated = stock_service.adjust_stock(product.id, -3)

    assert updated.quantity == 3
    assert db_session.get(Product, product.id).quantity == 3
    assert _alert_count(db_session, product.id) == 0


def test_sweep_alerts_each_low_product_once(db_session, make_product, sender):
    low_a = make_product(quantity=1, min_stock_level=3)
    low_b = make_product(quantity=0, min_stock_level=0)
    make_product(quantity=50, min_stock_level=3)

    fired = alert_service.sweep_low_stock()
    again = alert_service.sweep_low_stock()

    assert sorted(a.product_id for a in fired) == sorted([low_a.id, low_b.id])
    assert again == []
    assert len(sender.sent) == 2


def test_list_alerts_filters_by_product(db_session, make_product):
    a = make_product(quantity=1, min_stock_level=3)
    b = make_product(quantity=1, min_stock_level=3)
    alert_service.sweep_low_stock()

    assert [x.product_id for x in alert_service.list_alerts(product_id=a.id)] == [a.id]
    assert len(alert_service.list_alerts()) == 2
    assert b.id in {x.product_id for x in alert_service.list_alerts()}


@pytest.mark.parametrize("hours", [1, 48])
def test_cooldown_window_follows_config(app, hours):
    original = app.config["LOW_STOCK_ALERT_COOLDOWN_HOURS"]
    app.config["LOW_STOCK_ALERT_COOLDOWN_HOURS"] = hours
    try:
        assert alert_service.cooldown_window() == timedelta(hours=hours)
    finally:
        app.config["LOW_STOCK_ALERT_COOLDOWN_HOURS"] = original


def test_notification_waits_for_commit(db_session, make_product, sender):
    product = make_product(quantity=6, min_stock_level=5)

    stock_service.adjust_stock(product.id, -2, commit=False)
    assert sender.sent == []

    db_session.commit()
    assert len(sender.sent) == 1


def test_rolled_back_alert_sends_nothing(db_session, make_product, sender):
    product = make_product(quantity=6, min_stock_level=5)

    stock_service.adjust_stock(product.id, -2, commit=False)
    db_session.rollback()
    db_session.commit()

    assert sender.sent == []
    assert _alert_count(db_session, product.id) == 0
    assert db_session.get(Product, product.id).last_alert_at is None


def test_retried_sale_notifies_once(db_session, make_product, sender, monkeypatch):
    product = make_product(quantity=6, min_stock_level=5)
    real_commit = db.session.commit
    failures = []

    def flaky_commit():
        if not failures:
            failures.append(1)
            raise OperationalError("COMMIT", {}, Exception("database is locked"))
        return real_commit()

    monkeypatch.setattr(db.session, "commit", flaky_commit)

    sales_service.record_sale(product.id, 2)

    assert failures == [1]
    assert len(sender.sent) == 1
    assert _alert_count(db_session, product.id) == 1
    assert db_session.get(Product, product.id).quantity == 4
