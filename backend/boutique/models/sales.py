from __future__ import annotations

from ..extensions import db
from ..money import as_float, as_rate
from ..time_utils import to_utc_z


class Transaction(db.Model):
    """
    A completed checkout.

    Amounts (subtotal/discount/tax/total) are in the business default currency;
    selling_total and amount_paid/change are in selling_currency, related by
    exchange_rate. Rows are never deleted; only refunds and cancellation mutate
    them after checkout.
    """
    __tablename__ = "transactions"
    __table_args__ = (
        db.UniqueConstraint("transaction_id", name="uq_transactions_transaction_id"),
        db.Index("ix_transactions_status_timestamp", "status", "timestamp"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)

    # Human-readable id (e.g., "TXN-0000000000042")
    transaction_id = db.Column(db.String(32), nullable=False)

    status = db.Column(db.String(24), nullable=False, default="completed", index=True)
    payment_method = db.Column(db.String(16), nullable=False)

    subtotal = db.Column(db.Numeric(12, 2), nullable=False, default=0)
    discount = db.Column(db.Numeric(12, 2), nullable=False, default=0)
    tax = db.Column(db.Numeric(12, 2), nullable=False, default=0)
    total = db.Column(db.Numeric(12, 2), nullable=False, default=0)

    # Selling currency side of the sale
    selling_currency = db.Column(db.String(8), nullable=False)
    exchange_rate = db.Column(db.Numeric(18, 6), nullable=False, default=1)
    selling_total = db.Column(db.Numeric(14, 2), nullable=False, default=0)
    amount_paid = db.Column(db.Numeric(14, 2), nullable=False, default=0)
    change = db.Column(db.Numeric(14, 2), nullable=False, default=0)

    shop_id = db.Column(db.Integer, db.ForeignKey("shops.id"), nullable=True, index=True)
    branch_name = db.Column(db.String(128), nullable=True)
    created_by = db.Column(db.String(128), nullable=True)

    # Name is kept when the customer row is deleted
    customer_id = db.Column(db.Integer, db.ForeignKey("customers.id"), nullable=True, index=True)
    customer_name = db.Column(db.String(128), nullable=True)

    timestamp = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now(), index=True)

    # Cancellation audit trail
    cancelled_at = db.Column(db.DateTime(timezone=True), nullable=True)
    cancel_reason = db.Column(db.String(255), nullable=True)
    cancelled_by = db.Column(db.String(128), nullable=True)

    items = db.relationship(
        "TransactionItem",
        backref="transaction",
        cascade="all, delete-orphan",
        order_by="TransactionItem.position",
        lazy=True,
    )
    refunds = db.relationship(
        "Refund",
        backref="transaction",
        cascade="all, delete-orphan",
        order_by="Refund.id",
        lazy=True,
    )

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "transaction_id": self.transaction_id,
            "status": self.status,
            "payment_method": self.payment_method,
            "subtotal": as_float(self.subtotal),
            "discount": as_float(self.discount),
            "tax": as_float(self.tax),
            "total": as_float(self.total),
            "selling_currency": self.selling_currency,
            "exchange_rate": as_rate(self.exchange_rate),
            "selling_total": as_float(self.selling_total),
            "amount_paid": as_float(self.amount_paid),
            "change": as_float(self.change),
            "shop_id": self.shop_id,
            "branch_name": self.branch_name,
            "created_by": self.created_by,
            "customer_id": self.customer_id,
            "customer_name": self.customer_name,
            "timestamp": to_utc_z(self.timestamp),
            "cancelled_at": to_utc_z(self.cancelled_at) if self.cancelled_at else None,
            "cancel_reason": self.cancel_reason,
            "cancelled_by": self.cancelled_by,
            "items": [item.to_dict() for item in self.items],
            "refunds": [refund.to_dict() for refund in self.refunds],
        }


class TransactionItem(db.Model):
    """Snapshot of a cart line at checkout; position is what refunds refer to."""
    __tablename__ = "transaction_items"
    __table_args__ = (
        db.UniqueConstraint("transaction_id", "position", name="uq_transaction_items_position"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)
    transaction_id = db.Column(db.Integer, db.ForeignKey("transactions.id"), nullable=False, index=True)
    position = db.Column(db.Integer, nullable=False)

    stock_id = db.Column(db.Integer, nullable=True, index=True)
    group_name = db.Column(db.String(255), nullable=False)
    selected_color = db.Column(db.String(64), nullable=False)
    selected_size = db.Column(db.String(32), nullable=False)
    color_code = db.Column(db.String(16), nullable=True)
    shop = db.Column(db.String(128), nullable=True)

    quantity = db.Column(db.Integer, nullable=False)
    unit_price = db.Column(db.Numeric(12, 2), nullable=False)
    original_price = db.Column(db.Numeric(12, 2), nullable=False, default=0)
    discounted_price = db.Column(db.Numeric(12, 2), nullable=True)
    group_discount = db.Column(db.Numeric(6, 3), nullable=True)
    variant_discount = db.Column(db.Numeric(6, 3), nullable=True)
    is_wholesale_pricing = db.Column(db.Boolean, nullable=False, default=False)

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "position": self.position,
            "stock_id": self.stock_id,
            "group_name": self.group_name,
            "selected_color": self.selected_color,
            "selected_size": self.selected_size,
            "color_code": self.color_code,
            "shop": self.shop,
            "quantity": self.quantity,
            "unit_price": as_float(self.unit_price),
            "original_price": as_float(self.original_price),
            "discounted_price": as_float(self.discounted_price),
            "group_discount": as_rate(self.group_discount),
            "variant_discount": as_rate(self.variant_discount),
            "is_wholesale_pricing": self.is_wholesale_pricing,
        }


class Refund(db.Model):
    """
    Partial or full refund against a transaction.

    Proportional tax is recorded (tax_refund) but not part of total_amount.
    """
    __tablename__ = "refunds"
    __table_args__ = (
        db.UniqueConstraint("refund_id", name="uq_refunds_refund_id"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)
    refund_id = db.Column(db.String(48), nullable=False)
    transaction_id = db.Column(db.Integer, db.ForeignKey("transactions.id"), nullable=False, index=True)

    items_subtotal = db.Column(db.Numeric(12, 2), nullable=False, default=0)
    cart_discount_refund = db.Column(db.Numeric(12, 2), nullable=False, default=0)
    tax_refund = db.Column(db.Numeric(12, 2), nullable=False, default=0)
    total_amount = db.Column(db.Numeric(12, 2), nullable=False, default=0)

    reason = db.Column(db.String(255), nullable=True)
    processed_by = db.Column(db.String(128), nullable=True)
    status = db.Column(db.String(16), nullable=False, default="completed")
    created_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now())

    items = db.relationship(
        "RefundItem",
        backref="refund",
        cascade="all, delete-orphan",
        order_by="RefundItem.item_index",
        lazy=True,
    )

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "refund_id": self.refund_id,
            "items_subtotal": as_float(self.items_subtotal),
            "cart_discount_refund": as_float(self.cart_discount_refund),
            "tax_refund": as_float(self.tax_refund),
            "total_amount": as_float(self.total_amount),
            "reason": self.reason,
            "processed_by": self.processed_by,
            "status": self.status,
            "created_at": to_utc_z(self.created_at),
            "items": [item.to_dict() for item in self.items],
        }


class RefundItem(db.Model):
    __tablename__ = "refund_items"
    __table_args__ = {"sqlite_autoincrement": True}

    id = db.Column(db.Integer, primary_key=True)
    refund_id = db.Column(db.Integer, db.ForeignKey("refunds.id"), nullable=False, index=True)
    item_id = db.Column(db.Integer, db.ForeignKey("transaction_items.id"), nullable=True)
    # Index into Transaction.items at refund time
    item_index = db.Column(db.Integer, nullable=False)
    quantity = db.Column(db.Integer, nullable=False)
    unit_price = db.Column(db.Numeric(12, 2), nullable=False)
    total_amount = db.Column(db.Numeric(12, 2), nullable=False)

    def to_dict(self) -> dict:
        return {
            "item_id": self.item_id,
            "item_index": self.item_index,
            "quantity": self.quantity,
            "unit_price": as_float(self.unit_price),
            "total_amount": as_float(self.total_amount),
        }


class TransactionSequence(db.Model):
    """Monotonic counter backing human-readable transaction ids."""
    __tablename__ = "transaction_sequences"

    name = db.Column(db.String(32), primary_key=True)
    next_value = db.Column(db.Integer, nullable=False, default=1)


class SavedCart(db.Model):
    """JSON snapshot of one user's open cart."""
    __tablename__ = "saved_carts"
    __table_args__ = (
        db.UniqueConstraint("user_id", name="uq_saved_carts_user"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)
    user_id = db.Column(db.String(128), nullable=False)
    payload = db.Column(db.JSON, nullable=False, default=dict)
    updated_at = db.Column(
        db.DateTime(timezone=True),
        nullable=False,
        server_default=db.func.now(),
        onupdate=db.func.now(),
    )

    def to_dict(self) -> dict:
        return {
            "user_id": self.user_id,
            "cart": self.payload,
            "updated_at": to_utc_z(self.updated_at),
        }
