from __future__ import annotations

from ..extensions import db
from stockroom.time_utils import to_utc_z


def money_str(value) -> str | None:
    """Serialize a Numeric(12, 2) value without float conversion."""
    if value is None:
        return None
    return f"{value:.2f}"


class Location(db.Model):
    """Physical place that owns stock. Existence-checked by products."""
    __tablename__ = "locations"

    id = db.Column(db.Integer, primary_key=True)
    name = db.Column(db.String(128), nullable=False, unique=True)
    address = db.Column(db.String(255), nullable=True)
    created_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now())

    def __repr__(self) -> str:
        return f"<Location id={self.id} name={self.name!r}>"

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "name": self.name,
            "address": self.address,
            "created_at": to_utc_z(self.created_at),
        }


class Supplier(db.Model):
    __tablename__ = "suppliers"

    id = db.Column(db.Integer, primary_key=True)
    name = db.Column(db.String(128), nullable=False)
    email = db.Column(db.String(255), nullable=True)
    created_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now())

    def __repr__(self) -> str:
        return f"<Supplier id={self.id} name={self.name!r}>"

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "name": self.name,
            "email": self.email,
            "created_at": to_utc_z(self.created_at),
        }


class Product(db.Model):
    """
    Product master data and the authoritative stock count.

    STOCK OWNERSHIP:
    Product.quantity is mutated ONLY by stock_service (conditional UPDATE).
    products_service never patches it directly, and the CHECK constraint
    backs the non-negative invariant at the database level.

    BARCODE:
    Unique across the catalog. Generated by barcode_service when the caller
    does not supply one.
    """
    __tablename__ = "products"
    __table_args__ = (
        db.CheckConstraint("quantity >= 0", name="ck_products_quantity_non_negative"),
        db.CheckConstraint("min_stock_level >= 0", name="ck_products_min_stock_non_negative"),
        db.Index("ix_products_location_category", "location_id", "category"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)
    name = db.Column(db.String(255), nullable=False)
    barcode = db.Column(db.String(64), nullable=False, unique=True)
    category = db.Column(db.String(64), nullable=True, index=True)

    price = db.Column(db.Numeric(12, 2), nullable=False)
    cost_price = db.Column(db.Numeric(12, 2), nullable=True)

    quantity = db.Column(db.Integer, nullable=False, default=0)
    min_stock_level = db.Column(db.Integer, nullable=False, default=0)

    location_id = db.Column(db.Integer, db.ForeignKey("locations.id"), nullable=False, index=True)
    supplier_id = db.Column(db.Integer, db.ForeignKey("suppliers.id"), nullable=True, index=True)

    last_alert_at = db.Column(db.DateTime(timezone=True), nullable=True)

    created_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now())
    updated_at = db.Column(
        db.DateTime(timezone=True),
        nullable=False,
        server_default=db.func.now(),
        onupdate=db.func.now(),
    )

    location = db.relationship("Location", backref=db.backref("products", lazy=True))
    supplier = db.relationship("Supplier", backref=db.backref("products", lazy=True))
    stock_alerts = db.relationship("StockAlert", cascade="all, delete-orphan", lazy=True)
    stock_history = db.relationship("InventoryTransaction", cascade="all, delete-orphan", lazy=True)

    def __repr__(self) -> str:
        return f"<Product id={self.id} barcode={self.barcode!r} name={self.name!r} quantity={self.quantity}>"

    @property
    def is_low_stock(self) -> bool:
        return self.quantity <= self.min_stock_level

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "name": self.name,
            "barcode": self.barcode,
            "category": self.category,
            "price": money_str(self.price),
            "cost_price": money_str(self.cost_price),
            "quantity": self.quantity,
            "min_stock_level": self.min_stock_level,
            "is_low_stock": self.is_low_stock,
            "location_id": self.location_id,
            "supplier_id": self.supplier_id,
            "last_alert_at": to_utc_z(self.last_alert_at),
            "created_at": to_utc_z(self.created_at),
            "updated_at": to_utc_z(self.updated_at),
        }
