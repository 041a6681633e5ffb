from __future__ import annotations

from ..extensions import db
from stockroom.time_utils import to_utc_z, utcnow
from .catalog import money_str


class Sale(db.Model):
    """
    Immutable fact record of units sold.

    Created only by sales_service.record_sale, in the same transaction as the
    matching stock decrement. There is no update path.
    """
    __tablename__ = "sales"
    __table_args__ = (
        db.CheckConstraint("quantity_sold > 0", name="ck_sales_quantity_positive"),
        db.Index("ix_sales_product_date", "product_id", "sale_date"),
    )

    id = db.Column(db.Integer, primary_key=True)
    product_id = db.Column(db.Integer, db.ForeignKey("products.id"), nullable=False)
    quantity_sold = db.Column(db.Integer, nullable=False)
    sale_date = db.Column(db.DateTime(timezone=True), nullable=False, default=utcnow, index=True)
    sold_by_user_id = db.Column(db.Integer, db.ForeignKey("users.id"), nullable=True)

    product = db.relationship("Product", backref=db.backref("sales", lazy=True))

    def __repr__(self) -> str:
        return f"<Sale id={self.id} product_id={self.product_id} quantity_sold={self.quantity_sold}>"

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "product_id": self.product_id,
            "quantity_sold": self.quantity_sold,
            "sale_date": to_utc_z(self.sale_date),
            "sold_by_user_id": self.sold_by_user_id,
        }


class Invoice(db.Model):
    """
    Invoice computed once from a sale + product snapshot.

    total = subtotal + tax_amount - discount. One invoice per sale; amending
    requires a compensating document, which this service does not issue.
    """
    __tablename__ = "invoices"

    id = db.Column(db.Integer, primary_key=True)
    sale_id = db.Column(db.Integer, db.ForeignKey("sales.id"), nullable=False, unique=True)

    subtotal = db.Column(db.Numeric(12, 2), nullable=False)
    taxable_amount = db.Column(db.Numeric(12, 2), nullable=False)
    exempt_amount = db.Column(db.Numeric(12, 2), nullable=False)
    tax_amount = db.Column(db.Numeric(12, 2), nullable=False)
    discount = db.Column(db.Numeric(12, 2), nullable=False, default=0)
    total = db.Column(db.Numeric(12, 2), nullable=False)

    # Snapshot of what was invoiced
    product_name = db.Column(db.String(255), nullable=False)
    unit_price = db.Column(db.Numeric(12, 2), nullable=False)
    quantity = db.Column(db.Integer, nullable=False)
    category = db.Column(db.String(64), nullable=True)
    tax_rate = db.Column(db.Numeric(5, 4), nullable=False)

    invoice_date = db.Column(db.DateTime(timezone=True), nullable=False, default=utcnow, index=True)

    sale = db.relationship("Sale", backref=db.backref("invoice", uselist=False, lazy=True))

    def __repr__(self) -> str:
        return f"<Invoice id={self.id} sale_id={self.sale_id} total={self.total}>"

    @property
    def tax_breakdown(self) -> dict:
        return {
            "taxable_amount": money_str(self.taxable_amount),
            "exempt_amount": money_str(self.exempt_amount),
            "tax_rate": f"{self.tax_rate:.4f}" if self.tax_rate is not None else None,
        }

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "sale_id": self.sale_id,
            "product_name": self.product_name,
            "unit_price": money_str(self.unit_price),
            "quantity": self.quantity,
            "category": self.category,
            "subtotal": money_str(self.subtotal),
            "tax_amount": money_str(self.tax_amount),
            "discount": money_str(self.discount),
            "total": money_str(self.total),
            "tax_breakdown": self.tax_breakdown,
            "invoice_date": to_utc_z(self.invoice_date),
        }
