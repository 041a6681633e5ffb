from __future__ import annotations

from ..extensions import db
from stockroom.time_utils import to_utc_z, utcnow


class InventoryTransaction(db.Model):
    """
    Append-only audit row for one stock mutation.

    quantity_after is the product quantity returned by the same conditional
    UPDATE, so the trail can be replayed without re-reading products.
    """
    __tablename__ = "inventory_transactions"
    __table_args__ = (
        db.Index("ix_inventory_transactions_product_created", "product_id", "created_at"),
    )

    id = db.Column(db.Integer, primary_key=True)
    product_id = db.Column(db.Integer, db.ForeignKey("products.id", ondelete="CASCADE"), nullable=False, index=True)

    # RECEIVE | ADJUST | SALE
    transaction_type = db.Column(db.String(16), nullable=False, index=True)
    quantity_delta = db.Column(db.Integer, nullable=False)
    quantity_after = db.Column(db.Integer, nullable=False)

    # e.g. "sale:42"
    reference = db.Column(db.String(64), nullable=True, index=True)
    note = db.Column(db.String(255), nullable=True)

    actor_user_id = db.Column(db.Integer, db.ForeignKey("users.id"), nullable=True)
    created_at = db.Column(db.DateTime(timezone=True), nullable=False, default=utcnow)

    def __repr__(self) -> str:
        return (
            f"<InventoryTransaction id={self.id} product_id={self.product_id} "
            f"type={self.transaction_type} delta={self.quantity_delta}>"
        )

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "product_id": self.product_id,
            "transaction_type": self.transaction_type,
            "quantity_delta": self.quantity_delta,
            "quantity_after": self.quantity_after,
            "reference": self.reference,
            "note": self.note,
            "actor_user_id": self.actor_user_id,
            "created_at": to_utc_z(self.created_at),
        }


class StockAlert(db.Model):
    """Append-only log of low-stock notifications."""
    __tablename__ = "stock_alerts"

    id = db.Column(db.Integer, primary_key=True)
    product_id = db.Column(db.Integer, db.ForeignKey("products.id", ondelete="CASCADE"), nullable=False, index=True)
    alert_type = db.Column(db.String(32), nullable=False, default="LOW_STOCK")
    quantity_at_alert = db.Column(db.Integer, nullable=False)
    min_stock_level = db.Column(db.Integer, nullable=False)
    created_at = db.Column(db.DateTime(timezone=True), nullable=False, default=utcnow, index=True)

    def __repr__(self) -> str:
        return f"<StockAlert id={self.id} product_id={self.product_id} type={self.alert_type}>"

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "product_id": self.product_id,
            "alert_type": self.alert_type,
            "quantity_at_alert": self.quantity_at_alert,
            "min_stock_level": self.min_stock_level,
            "created_at": to_utc_z(self.created_at),
        }
