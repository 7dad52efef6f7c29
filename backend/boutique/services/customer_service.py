from __future__ import annotations

from datetime import datetime

from sqlalchemy import func, or_

from ..extensions import db
from ..models import Customer, Transaction
from ..money import ZERO, as_float, quantize_money, to_decimal
from ..validation import (
    ConflictError,
    ModelValidationPolicy,
    NotFoundError,
    ValidationError,
    enforce_rules_customer,
    validate_payload,
)

CUSTOMER_TYPES = {"retailer", "wholesaler", "distributor", "individual", "other"}

CUSTOMER_POLICY = ModelValidationPolicy(
    writable_fields={
        "name",
        "email",
        "customer_type",
        "phone",
        "secondary_phone",
        "address",
        "township",
        "city",
        "receivables",
    },
    required_on_create={"name", "email"},
)


def _check_patch(patch: dict, customer_id: int | None = None) -> None:
    enforce_rules_customer(patch)
    if "customer_type" in patch and patch["customer_type"] not in CUSTOMER_TYPES:
        raise ValidationError(f"customer_type must be one of: {', '.join(sorted(CUSTOMER_TYPES))}")
    if "email" in patch:
        email = patch["email"].lower()
        if "@" not in email:
            raise ValidationError("email must be a valid email address")
        patch["email"] = email
        existing = db.session.query(Customer).filter(Customer.email == email).first()
        if existing is not None and existing.id != customer_id:
            raise ConflictError(f"Customer {email} already exists")


def list_customers(*, customer_type: str | None = None, search: str | None = None) -> list[Customer]:
    """Newest first; search matches name or email, case-insensitively."""
    query = db.session.query(Customer)
    if customer_type:
        if customer_type not in CUSTOMER_TYPES:
            raise ValidationError(f"customer_type must be one of: {', '.join(sorted(CUSTOMER_TYPES))}")
        query = query.filter(Customer.customer_type == customer_type)
    if search and search.strip():
        pattern = f"%{search.strip()}%"
        query = query.filter(or_(Customer.name.ilike(pattern), Customer.email.ilike(pattern)))
    return query.order_by(Customer.created_at.desc(), Customer.id.desc()).all()


def get_customer(customer_id: int) -> Customer:
    customer = db.session.get(Customer, customer_id)
    if customer is None:
        raise NotFoundError("Customer not found")
    return customer


def create_customer(payload: dict) -> Customer:
    patch = validate_payload(model=Customer, payload=payload, policy=CUSTOMER_POLICY, partial=False)
    _check_patch(patch)
    customer = Customer(**patch)
    db.session.add(customer)
    db.session.commit()
    return customer


def update_customer(customer_id: int, payload: dict) -> Customer:
    customer = get_customer(customer_id)
    if not payload:
        raise ValidationError("Update data is required")
    patch = validate_payload(model=Customer, payload=payload, policy=CUSTOMER_POLICY, partial=True)
    _check_patch(patch, customer_id)
    for key, value in patch.items():
        setattr(customer, key, value)
    db.session.commit()
    return customer


def delete_customer(customer_id: int) -> None:
    customer = get_customer(customer_id)
    # Past sales keep customer_name
    db.session.query(Transaction).filter(Transaction.customer_id == customer_id).update(
        {Transaction.customer_id: None}, synchronize_session=False
    )
    db.session.delete(customer)
    db.session.commit()


def record_purchase(customer: Customer, total, when: datetime) -> None:
    """Bump the purchase aggregates; the caller commits with the sale."""
    customer.total_purchases = (customer.total_purchases or 0) + 1
    customer.total_spent = quantize_money(to_decimal(customer.total_spent) + to_decimal(total))
    customer.last_purchase_at = when


def customer_stats() -> dict:
    counts = dict(
        db.session.query(Customer.customer_type, func.count(Customer.id))
        .group_by(Customer.customer_type)
        .all()
    )
    receivables = db.session.query(func.coalesce(func.sum(Customer.receivables), 0)).scalar()
    by_type = {kind: int(counts.get(kind, 0)) for kind in sorted(CUSTOMER_TYPES)}
    return {
        "total_customers": sum(by_type.values()),
        "retailer_customers": by_type["retailer"],
        "wholesaler_customers": by_type["wholesaler"],
        "by_type": by_type,
        "total_receivables": as_float(receivables or ZERO),
    }
