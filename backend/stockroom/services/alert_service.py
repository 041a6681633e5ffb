# Overview: Low-stock alert dispatcher; debounced by a per-product cooldown.

"""
Low-stock alert invariants (authoritative)

- An alert fires only when quantity <= min_stock_level AND last_alert_at is
  NULL or older than the cooldown window (LOW_STOCK_ALERT_COOLDOWN_HOURS).
- The cooldown is claimed with a conditional UPDATE on last_alert_at, so two
  concurrent decrements on the same product cannot both fire.
- On fire: a StockAlert row is appended and a notification is queued on the
  session. The sender is called only after the outermost transaction
  commits; a rollback (including one before a retry) drops the message
  together with the alert row and the cooldown claim. StockAlert rows are
  never updated or deleted here.
- Delivery failures (False return or exception from the sender) are logged
  and swallowed. They never reach the stock ledger's caller.
"""

from __future__ import annotations

import logging
from datetime import datetime, timedelta

from flask import current_app
from sqlalchemy import event, or_, update
from sqlalchemy.orm import Session
from sqlalchemy.orm.attributes import set_committed_value

from ..extensions import db
from ..models import Product, StockAlert
from stockroom.time_utils import utcnow
from .notification_service import get_sender

logger = logging.getLogger(__name__)

ALERT_TYPE_LOW_STOCK = "LOW_STOCK"


def cooldown_window() -> timedelta:
    return timedelta(hours=current_app.config.get("LOW_STOCK_ALERT_COOLDOWN_HOURS", 24))


def _claim_cooldown(product_id: int, now: datetime) -> bool:
    cutoff = now - cooldown_window()
    result = db.session.execute(
        update(Product)
        .where(
            Product.id == product_id,
            Product.quantity <= Product.min_stock_level,
            or_(Product.last_alert_at.is_(None), Product.last_alert_at < cutoff),
        )
        .values(last_alert_at=now)
        .execution_options(synchronize_session=False)
    )
    return result.rowcount == 1


_PENDING_KEY = "pending_low_stock_notifications"


def _deliver(product_id: int, target: str, subject: str, body: str) -> None:
    try:
        delivered = get_sender().send(target, subject, body)
    except Exception:
        logger.exception("Low-stock notification failed for product %s", product_id)
        return

    if not delivered:
        logger.warning("Low-stock notification for product %s was not delivered", product_id)


def _queue_notification(product: Product) -> None:
    """Hold the message on the session until the outermost transaction commits."""
    target = current_app.config.get("LOW_STOCK_ALERT_RECIPIENT")
    subject = f"Low Stock: {product.name}"
    body = f"Only {product.quantity} units left (Min: {product.min_stock_level})"
    db.session.info.setdefault(_PENDING_KEY, []).append((product.id, target, subject, body))


@event.listens_for(Session, "after_commit")
def _send_pending_notifications(session) -> None:
    # Releasing a SAVEPOINT is not the end of the unit of work
    if session.in_nested_transaction():
        return
    for pending in session.info.pop(_PENDING_KEY, None) or ():
        _deliver(*pending)


@event.listens_for(Session, "after_transaction_end")
def _drop_unsent_notifications(session, transaction) -> None:
    if transaction.parent is not None:
        return
    dropped = session.info.pop(_PENDING_KEY, None)
    if dropped:
        logger.info("Dropped %d low-stock notification(s) from a rolled back transaction", len(dropped))


def maybe_alert(product: Product, *, now: datetime | None = None) -> StockAlert | None:
    """
    Fire a low-stock alert for product if it is at/below threshold and out
    of cooldown. Returns the new StockAlert, or None when nothing fired.

    Runs inside the caller's transaction; does not commit. Delivery happens
    when that transaction commits.
    """
    if product.quantity > product.min_stock_level:
        return None

    now = now or utcnow()
    if not _claim_cooldown(product.id, now):
        return None
    set_committed_value(product, "last_alert_at", now)

    alert = StockAlert(
        product_id=product.id,
        alert_type=ALERT_TYPE_LOW_STOCK,
        quantity_at_alert=product.quantity,
        min_stock_level=product.min_stock_level,
        created_at=now,
    )
    db.session.add(alert)
    db.session.flush()

    logger.info(
        "Low-stock alert %s for product %s (quantity=%s, min=%s)",
        alert.id, product.id, product.quantity, product.min_stock_level,
    )
    _queue_notification(product)
    return alert


def dispatch_isolated(product: Product, *, now: datetime | None = None) -> StockAlert | None:
    """
    Run maybe_alert inside a SAVEPOINT of the current transaction.

    Any failure rolls back only the alert work; the enclosing stock mutation
    is left intact and the error is logged.
    """
    try:
        with db.session.begin_nested():
            return maybe_alert(product, now=now)
    except Exception:
        logger.exception("Low-stock alert dispatch failed for product %s", product.id)
        return None


def sweep_low_stock(*, now: datetime | None = None) -> list[StockAlert]:
    """
    Scheduled scan: alert every product at/below threshold whose cooldown
    has elapsed. Each product is committed independently.
    """
    now = now or utcnow()
    cutoff = now - cooldown_window()
    candidates = (
        db.session.query(Product)
        .filter(
            Product.quantity <= Product.min_stock_level,
            or_(Product.last_alert_at.is_(None), Product.last_alert_at < cutoff),
        )
        .order_by(Product.id.asc())
        .all()
    )

    fired: list[StockAlert] = []
    for product in candidates:
        try:
            alert = maybe_alert(product, now=now)
            db.session.commit()
        except Exception:
            db.session.rollback()
            raise
        if alert is not None:
            fired.append(alert)
    return fired


def list_alerts(*, product_id: int | None = None, limit: int = 200) -> list[StockAlert]:
    q = db.session.query(StockAlert)
    if product_id is not None:
        q = q.filter(StockAlert.product_id == product_id)
    return q.order_by(StockAlert.created_at.desc(), StockAlert.id.desc()).limit(limit).all()
