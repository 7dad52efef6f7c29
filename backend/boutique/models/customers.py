from __future__ import annotations

from ..extensions import db
from ..money import as_float
from ..time_utils import to_utc_z


class Customer(db.Model):
    """
    A buyer the cashier can attach to a cart and its sale.

    total_purchases / total_spent / last_purchase_at are denormalized and
    bumped at checkout. total_spent is in the business default currency.
    receivables is edited by hand (credit the store is still owed).
    """
    __tablename__ = "customers"
    __table_args__ = (
        db.UniqueConstraint("email", name="uq_customers_email"),
        db.Index("ix_customers_type", "customer_type"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)
    name = db.Column(db.String(128), nullable=False)
    email = db.Column(db.String(255), nullable=False)
    customer_type = db.Column(db.String(16), nullable=False, default="individual")

    phone = db.Column(db.String(64), nullable=True)
    secondary_phone = db.Column(db.String(64), nullable=True)
    address = db.Column(db.String(255), nullable=True)
    township = db.Column(db.String(128), nullable=True)
    city = db.Column(db.String(128), nullable=True)

    receivables = db.Column(db.Numeric(12, 2), nullable=False, default=0)

    total_purchases = db.Column(db.Integer, nullable=False, default=0)
    total_spent = db.Column(db.Numeric(14, 2), nullable=False, default=0)
    last_purchase_at = db.Column(db.DateTime(timezone=True), nullable=True)

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
            "email": self.email,
            "customer_type": self.customer_type,
            "phone": self.phone,
            "secondary_phone": self.secondary_phone,
            "address": self.address,
            "township": self.township,
            "city": self.city,
            "receivables": as_float(self.receivables),
            "total_purchases": self.total_purchases,
            "total_spent": as_float(self.total_spent),
            "last_purchase_at": to_utc_z(self.last_purchase_at) if self.last_purchase_at else None,
            "created_at": to_utc_z(self.created_at),
            "updated_at": to_utc_z(self.updated_at),
        }
