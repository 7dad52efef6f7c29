from __future__ import annotations

from ..extensions import db
from ..models import Shop
from ..validation import ConflictError, ModelValidationPolicy, NotFoundError, ValidationError, validate_payload

SHOP_STATUSES = {"active", "inactive"}

SHOP_POLICY = ModelValidationPolicy(
    writable_fields={"name", "location", "phone", "manager", "status"},
    required_on_create={"name"},
)


def _check_patch(patch: dict, shop_id: int | None = None) -> None:
    if "status" in patch and patch["status"] not in SHOP_STATUSES:
        raise ValidationError(f"status must be one of: {', '.join(sorted(SHOP_STATUSES))}")
    if "name" in patch:
        existing = db.session.query(Shop).filter(Shop.name == patch["name"]).first()
        if existing is not None and existing.id != shop_id:
            raise ConflictError(f"Shop {patch['name']} already exists")


def list_shops(include_inactive: bool = True) -> list[Shop]:
    query = db.session.query(Shop)
    if not include_inactive:
        query = query.filter(Shop.status == "active")
    return query.order_by(Shop.name.asc()).all()


def get_shop(shop_id: int) -> Shop:
    shop = db.session.get(Shop, shop_id)
    if shop is None:
        raise NotFoundError("Shop not found")
    return shop


def create_shop(payload: dict) -> Shop:
    patch = validate_payload(model=Shop, payload=payload, policy=SHOP_POLICY, partial=False)
    _check_patch(patch)
    shop = Shop(**patch)
    db.session.add(shop)
    db.session.commit()
    return shop


def update_shop(shop_id: int, payload: dict) -> Shop:
    shop = get_shop(shop_id)
    patch = validate_payload(model=Shop, payload=payload, policy=SHOP_POLICY, partial=True)
    _check_patch(patch, shop_id)
    for key, value in patch.items():
        setattr(shop, key, value)
    db.session.commit()
    return shop


def delete_shop(shop_id: int) -> None:
    shop = get_shop(shop_id)
    db.session.delete(shop)
    db.session.commit()
