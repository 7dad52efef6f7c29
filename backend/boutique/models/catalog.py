from __future__ import annotations

from ..extensions import db
from ..money import as_float
from ..time_utils import to_utc_z


class Shop(db.Model):
    """A branch/boutique that stock groups and transactions belong to."""
    __tablename__ = "shops"
    __table_args__ = (
        db.UniqueConstraint("name", name="uq_shops_name"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)
    name = db.Column(db.String(128), nullable=False)
    location = db.Column(db.String(255), nullable=True)
    phone = db.Column(db.String(64), nullable=True)
    manager = db.Column(db.String(128), nullable=True)
    status = db.Column(db.String(16), nullable=False, default="active")

    created_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now())
    updated_at = db.Column(
        db.DateTime(timezone=True),
        nullable=False,
        server_default=db.func.now(),
        onupdate=db.func.now(),
    )

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "name": self.name,
            "location": self.location,
            "phone": self.phone,
            "manager": self.manager,
            "status": self.status,
            "created_at": to_utc_z(self.created_at),
            "updated_at": to_utc_z(self.updated_at),
        }


class StockGroup(db.Model):
    """
    A product line sold in several colors and sizes.

    unit_price is the selling price; original_price is the cost and only
    feeds profit (selling below cost is allowed).
    """
    __tablename__ = "stock_groups"
    __table_args__ = (
        db.Index("ix_stock_groups_shop_name", "shop", "group_name"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)
    group_name = db.Column(db.String(255), nullable=False)
    unit_price = db.Column(db.Numeric(12, 2), nullable=False)
    original_price = db.Column(db.Numeric(12, 2), nullable=False, default=0)
    category = db.Column(db.String(128), nullable=True)
    shop = db.Column(db.String(128), nullable=True, index=True)
    release_date = db.Column(db.Date, nullable=True)
    is_colorless = db.Column(db.Boolean, nullable=False, default=False)
    group_image = db.Column(db.String(1024), nullable=True)
    created_by = db.Column(db.String(128), nullable=True)

    created_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now())
    updated_at = db.Column(
        db.DateTime(timezone=True),
        nullable=False,
        server_default=db.func.now(),
        onupdate=db.func.now(),
    )

    color_variants = db.relationship(
        "ColorVariant",
        backref="stock_group",
        cascade="all, delete-orphan",
        order_by="ColorVariant.position",
        lazy=True,
    )
    wholesale_tiers = db.relationship(
        "WholesaleTier",
        backref="stock_group",
        cascade="all, delete-orphan",
        order_by="WholesaleTier.min_quantity",
        lazy=True,
    )

    def total_quantity(self) -> int:
        return sum(sq.quantity for v in self.color_variants for sq in v.size_quantities)

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "group_name": self.group_name,
            "unit_price": as_float(self.unit_price),
            "original_price": as_float(self.original_price),
            "category": self.category,
            "shop": self.shop,
            "release_date": self.release_date.isoformat() if self.release_date else None,
            "is_colorless": self.is_colorless,
            "group_image": self.group_image,
            "created_by": self.created_by,
            "color_variants": [v.to_dict() for v in self.color_variants],
            "wholesale_tiers": [t.to_dict() for t in self.wholesale_tiers],
            "total_quantity": self.total_quantity(),
            "created_at": to_utc_z(self.created_at),
            "updated_at": to_utc_z(self.updated_at),
        }


class ColorVariant(db.Model):
    __tablename__ = "color_variants"
    __table_args__ = (
        db.Index("ix_color_variants_barcode", "barcode"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)
    stock_group_id = db.Column(db.Integer, db.ForeignKey("stock_groups.id"), nullable=False, index=True)
    position = db.Column(db.Integer, nullable=False, default=0)
    color = db.Column(db.String(64), nullable=False)
    color_code = db.Column(db.String(16), nullable=True)
    barcode = db.Column(db.String(64), nullable=True)
    image = db.Column(db.String(1024), nullable=True)

    size_quantities = db.relationship(
        "SizeQuantity",
        backref="color_variant",
        cascade="all, delete-orphan",
        order_by="SizeQuantity.position",
        lazy=True,
    )

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "color": self.color,
            "color_code": self.color_code,
            "barcode": self.barcode,
            "image": self.image,
            "size_quantities": [sq.to_dict() for sq in self.size_quantities],
        }


class SizeQuantity(db.Model):
    """On-hand quantity for one size of one color variant (never negative)."""
    __tablename__ = "size_quantities"
    __table_args__ = (
        db.UniqueConstraint("color_variant_id", "size", name="uq_size_quantities_variant_size"),
        db.CheckConstraint("quantity >= 0", name="ck_size_quantities_quantity_nonneg"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)
    color_variant_id = db.Column(db.Integer, db.ForeignKey("color_variants.id"), nullable=False, index=True)
    position = db.Column(db.Integer, nullable=False, default=0)
    size = db.Column(db.String(32), nullable=False)
    quantity = db.Column(db.Integer, nullable=False, default=0)

    def to_dict(self) -> dict:
        return {"size": self.size, "quantity": self.quantity}


class WholesaleTier(db.Model):
    """Per-item price that applies when a cart holds exactly min_quantity of the group."""
    __tablename__ = "wholesale_tiers"
    __table_args__ = {"sqlite_autoincrement": True}

    id = db.Column(db.Integer, primary_key=True)
    stock_group_id = db.Column(db.Integer, db.ForeignKey("stock_groups.id"), nullable=False, index=True)
    min_quantity = db.Column(db.Integer, nullable=False)
    price = db.Column(db.Numeric(12, 2), nullable=False)

    def to_dict(self) -> dict:
        return {"min_quantity": self.min_quantity, "price": as_float(self.price)}
