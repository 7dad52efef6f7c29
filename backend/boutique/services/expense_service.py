# backend/boutique/services/expense_service.py
"""Expenses plus their lookup lists (categories and spending menus)."""
from __future__ import annotations

from sqlalchemy import or_

from ..extensions import db
from ..models import Expense, ExpenseCategory, SpendingMenu
from ..money import ZERO, quantize_money, to_decimal
from ..validation import (
    ConflictError,
    ModelValidationPolicy,
    NotFoundError,
    ValidationError,
    enforce_rules_expense,
    validate_payload,
)
from .settings_service import SUPPORTED_CURRENCIES, normalize_currency

EXPENSE_POLICY = ModelValidationPolicy(
    writable_fields={
        "date",
        "currency",
        "amount",
        "category_id",
        "spending_menu_id",
        "note",
        "image_url",
        "created_by",
    },
    required_on_create={"date", "currency", "amount"},
)

LOOKUP_MODELS = {
    "category": ExpenseCategory,
    "spendingMenu": SpendingMenu,
}


# =============================================================================
# CATEGORIES & SPENDING MENUS
# =============================================================================

def _lookup_model(kind: str):
    model = LOOKUP_MODELS.get(kind)
    if model is None:
        raise ValidationError(f"type must be one of: {', '.join(LOOKUP_MODELS)}")
    return model


def list_lookup(kind: str) -> list:
    model = _lookup_model(kind)
    return db.session.query(model).order_by(model.name.asc()).all()


def add_lookup(kind: str, name: str | None):
    model = _lookup_model(kind)
    name = (name or "").strip()
    if not name:
        raise ValidationError("name is required")
    if db.session.query(model).filter(model.name == name).first() is not None:
        raise ConflictError(f"{name} already exists")
    row = model(name=name)
    db.session.add(row)
    db.session.commit()
    return row


def delete_lookup(kind: str, row_id: int) -> None:
    model = _lookup_model(kind)
    row = db.session.get(model, row_id)
    if row is None:
        raise NotFoundError(f"{kind} not found")
    # Expenses keep the denormalised name
    column = Expense.category_id if model is ExpenseCategory else Expense.spending_menu_id
    db.session.query(Expense).filter(column == row_id).update({column: None}, synchronize_session=False)
    db.session.delete(row)
    db.session.commit()


# =============================================================================
# EXPENSES
# =============================================================================

def _resolve_names(patch: dict) -> None:
    if "category_id" in patch:
        category = db.session.get(ExpenseCategory, patch["category_id"]) if patch["category_id"] else None
        if patch["category_id"] and category is None:
            raise ValidationError("Unknown category_id")
        patch["category_name"] = category.name if category else None
    if "spending_menu_id" in patch:
        menu = db.session.get(SpendingMenu, patch["spending_menu_id"]) if patch["spending_menu_id"] else None
        if patch["spending_menu_id"] and menu is None:
            raise ValidationError("Unknown spending_menu_id")
        patch["spending_menu_name"] = menu.name if menu else None


def _clean(payload: dict | None, partial: bool) -> dict:
    if payload is not None and isinstance(payload, dict) and "currency" in payload:
        payload = dict(payload)
        payload["currency"] = normalize_currency(payload["currency"])
    patch = validate_payload(model=Expense, payload=payload, policy=EXPENSE_POLICY, partial=partial)
    enforce_rules_expense(patch)
    _resolve_names(patch)
    return patch


def get_expense(expense_id: int) -> Expense:
    expense = db.session.get(Expense, expense_id)
    if expense is None:
        raise NotFoundError("Expense not found")
    return expense


def create_expense(payload: dict) -> Expense:
    expense = Expense(**_clean(payload, partial=False))
    db.session.add(expense)
    db.session.commit()
    return expense


def update_expense(expense_id: int, payload: dict) -> Expense:
    expense = get_expense(expense_id)
    for key, value in _clean(payload, partial=True).items():
        setattr(expense, key, value)
    db.session.commit()
    return expense


def delete_expense(expense_id: int) -> None:
    expense = get_expense(expense_id)
    db.session.delete(expense)
    db.session.commit()


def list_expenses(
    *,
    start=None,
    end=None,
    currency: str | None = None,
    category_id: int | None = None,
    search: str | None = None,
    page: int | None = None,
    per_page: int | None = None,
) -> dict:
    """
    Filtered expense listing, newest first, with optional pagination.

    start/end are inclusive dates.
    """
    query = db.session.query(Expense)
    if start is not None:
        query = query.filter(Expense.date >= start)
    if end is not None:
        query = query.filter(Expense.date <= end)
    if currency:
        query = query.filter(Expense.currency == normalize_currency(currency))
    if category_id is not None:
        query = query.filter(Expense.category_id == category_id)
    if search:
        like = f"%{search.strip()}%"
        query = query.filter(
            or_(
                Expense.note.ilike(like),
                Expense.category_name.ilike(like),
                Expense.spending_menu_name.ilike(like),
            )
        )
    query = query.order_by(Expense.date.desc(), Expense.id.desc())

    if page is None:
        expenses = query.all()
        return {
            "items": expenses,
            "count": len(expenses),
            "totals": totals_by_currency(expenses),
        }

    per_page = min(per_page or 20, 100)
    page = max(page, 1)

    total = query.count()
    total_pages = (total + per_page - 1) // per_page if total > 0 else 1
    expenses = query.offset((page - 1) * per_page).limit(per_page).all()

    return {
        "items": expenses,
        "count": len(expenses),
        "totals": totals_by_currency(query.all()),
        "pagination": {
            "page": page,
            "per_page": per_page,
            "total": total,
            "total_pages": total_pages,
            "has_next": page < total_pages,
            "has_prev": page > 1,
        },
    }


def totals_by_currency(expenses) -> dict:
    """Sum amounts per currency; accepts models or their dicts."""
    totals = {code: ZERO for code in SUPPORTED_CURRENCIES}
    for expense in expenses:
        if isinstance(expense, dict):
            currency, amount = expense.get("currency"), expense.get("amount")
        else:
            currency, amount = expense.currency, expense.amount
        code = normalize_currency(currency)
        totals[code] = totals.get(code, ZERO) + to_decimal(amount)
    return {code: float(quantize_money(value)) for code, value in totals.items()}
