from __future__ import annotations

from ..extensions import db
from ..money import as_float
from ..time_utils import to_utc_z


class ExpenseCategory(db.Model):
    __tablename__ = "expense_categories"
    __table_args__ = (
        db.UniqueConstraint("name", name="uq_expense_categories_name"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)
    name = db.Column(db.String(128), nullable=False)
    created_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now())

    def to_dict(self) -> dict:
        return {"id": self.id, "name": self.name, "created_at": to_utc_z(self.created_at)}


class SpendingMenu(db.Model):
    __tablename__ = "spending_menus"
    __table_args__ = (
        db.UniqueConstraint("name", name="uq_spending_menus_name"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)
    name = db.Column(db.String(128), nullable=False)
    created_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now())

    def to_dict(self) -> dict:
        return {"id": self.id, "name": self.name, "created_at": to_utc_z(self.created_at)}


class Expense(db.Model):
    """
    A business expense.

    Category and spending menu names are denormalised onto the row so that
    deleting a category does not rewrite history.
    """
    __tablename__ = "expenses"
    __table_args__ = (
        db.Index("ix_expenses_currency_date", "currency", "date"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)
    date = db.Column(db.Date, nullable=False, index=True)
    currency = db.Column(db.String(8), nullable=False)
    amount = db.Column(db.Numeric(14, 2), nullable=False)

    category_id = db.Column(db.Integer, db.ForeignKey("expense_categories.id", ondelete="SET NULL"), nullable=True)
    category_name = db.Column(db.String(128), nullable=True)
    spending_menu_id = db.Column(db.Integer, db.ForeignKey("spending_menus.id", ondelete="SET NULL"), nullable=True)
    spending_menu_name = db.Column(db.String(128), nullable=True)

    note = db.Column(db.Text, nullable=True)
    image_url = db.Column(db.String(1024), nullable=True)
    created_by = db.Column(db.String(128), nullable=True)

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
            "date": self.date.isoformat() if self.date else None,
            "currency": self.currency,
            "amount": as_float(self.amount),
            "category_id": self.category_id,
            "category_name": self.category_name,
            "spending_menu_id": self.spending_menu_id,
            "spending_menu_name": self.spending_menu_name,
            "note": self.note,
            "image_url": self.image_url,
            "created_by": self.created_by,
            "created_at": to_utc_z(self.created_at),
            "updated_at": to_utc_z(self.updated_at),
        }
