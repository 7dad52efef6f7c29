# backend/boutique/services/catalog_service.py
"""
Stock group catalog.

A stock group owns its color variants, their per-size quantities and its
wholesale tiers. Nested collections are replaced wholesale on update.
"""
from __future__ import annotations

import logging

from sqlalchemy import or_

from ..extensions import db
from ..models import ColorVariant, SizeQuantity, StockGroup, WholesaleTier
from ..validation import (
    NotFoundError,
    ModelValidationPolicy,
    ValidationError,
    enforce_rules_stock,
    parse_decimal,
    parse_int,
    validate_payload,
)

logger = logging.getLogger(__name__)

COLORLESS_LABEL = "No Color"

STOCK_POLICY = ModelValidationPolicy(
    writable_fields={
        "group_name",
        "unit_price",
        "original_price",
        "category",
        "shop",
        "release_date",
        "is_colorless",
        "group_image",
        "created_by",
    },
    required_on_create={"group_name", "unit_price"},
)

NESTED_FIELDS = ("color_variants", "wholesale_tiers")


def _split_payload(payload: dict | None) -> tuple[dict, dict]:
    if payload is None:
        payload = {}
    if not isinstance(payload, dict):
        raise ValidationError("Invalid JSON payload")
    flat = {k: v for k, v in payload.items() if k not in NESTED_FIELDS and k != "id"}
    nested = {k: payload[k] for k in NESTED_FIELDS if k in payload}
    return flat, nested


def _parse_size_quantities(raw, color: str) -> list[SizeQuantity]:
    if raw is None:
        return []
    if not isinstance(raw, list):
        raise ValidationError(f"size_quantities for {color} must be a list")

    rows: list[SizeQuantity] = []
    seen: set[str] = set()
    for position, entry in enumerate(raw):
        if not isinstance(entry, dict):
            raise ValidationError("size_quantities entries must be objects")
        size = str(entry.get("size") or "").strip()
        if not size:
            raise ValidationError(f"size is required for {color}")
        if size in seen:
            raise ValidationError(f"Duplicate size {size} for {color}")
        seen.add(size)
        quantity = parse_int(entry.get("quantity", 0), "quantity")
        if quantity < 0:
            raise ValidationError("quantity must be >= 0")
        rows.append(SizeQuantity(size=size, quantity=quantity, position=position))
    return rows


def _parse_variants(raw, is_colorless: bool) -> list[ColorVariant]:
    if not isinstance(raw, list):
        raise ValidationError("color_variants must be a list")

    variants: list[ColorVariant] = []
    seen: set[str] = set()
    for position, entry in enumerate(raw):
        if not isinstance(entry, dict):
            raise ValidationError("color_variants entries must be objects")
        color = str(entry.get("color") or "").strip()
        if not color:
            if not is_colorless:
                raise ValidationError("color is required for every color variant")
            color = COLORLESS_LABEL
        if color.casefold() in seen:
            raise ValidationError(f"Duplicate color variant: {color}")
        seen.add(color.casefold())

        variant = ColorVariant(
            color=color,
            color_code=(entry.get("color_code") or None),
            barcode=(str(entry["barcode"]).strip() or None) if entry.get("barcode") else None,
            image=entry.get("image") or None,
            position=position,
        )
        variant.size_quantities = _parse_size_quantities(entry.get("size_quantities"), color)
        variants.append(variant)
    return variants


def _parse_tiers(raw) -> list[WholesaleTier]:
    if not isinstance(raw, list):
        raise ValidationError("wholesale_tiers must be a list")

    tiers: list[WholesaleTier] = []
    seen: set[int] = set()
    for entry in raw:
        if not isinstance(entry, dict):
            raise ValidationError("wholesale_tiers entries must be objects")
        min_quantity = parse_int(entry.get("min_quantity"), "min_quantity")
        if min_quantity < 1:
            raise ValidationError("min_quantity must be >= 1")
        if min_quantity in seen:
            raise ValidationError(f"Duplicate wholesale tier for quantity {min_quantity}")
        seen.add(min_quantity)
        price = parse_decimal(entry.get("price"), "price")
        if price < 0:
            raise ValidationError("price must be >= 0")
        tiers.append(WholesaleTier(min_quantity=min_quantity, price=price))
    return tiers


def get_stock(stock_id: int) -> StockGroup:
    stock = db.session.get(StockGroup, stock_id)
    if stock is None:
        raise NotFoundError("Stock not found")
    return stock


def list_stocks(
    *,
    shop: str | None = None,
    category: str | None = None,
    search: str | None = None,
    barcode: str | None = None,
    recent: bool = False,
    limit: int | None = None,
) -> list[StockGroup]:
    """Catalog listing; recent=True orders newest first."""
    query = db.session.query(StockGroup)
    if shop:
        query = query.filter(StockGroup.shop == shop)
    if category:
        query = query.filter(StockGroup.category == category)
    if search:
        like = f"%{search.strip()}%"
        query = query.filter(or_(StockGroup.group_name.ilike(like), StockGroup.category.ilike(like)))
    if barcode:
        query = query.join(ColorVariant).filter(ColorVariant.barcode == barcode.strip())

    if recent:
        query = query.order_by(StockGroup.created_at.desc(), StockGroup.id.desc())
    else:
        query = query.order_by(StockGroup.group_name.asc(), StockGroup.id.asc())

    if limit:
        query = query.limit(limit)
    return query.all()


def create_stock(payload: dict, created_by: str | None = None) -> StockGroup:
    flat, nested = _split_payload(payload)
    patch = validate_payload(model=StockGroup, payload=flat, policy=STOCK_POLICY, partial=False)
    enforce_rules_stock(patch)
    if created_by and not patch.get("created_by"):
        patch["created_by"] = created_by

    stock = StockGroup(**patch)
    if stock.original_price is None:
        stock.original_price = 0
    stock.color_variants = _parse_variants(nested.get("color_variants", []), bool(stock.is_colorless))
    stock.wholesale_tiers = _parse_tiers(nested.get("wholesale_tiers", []))

    db.session.add(stock)
    db.session.commit()
    logger.info("Created stock group %s (%s)", stock.id, stock.group_name)
    return stock


def update_stock(stock_id: int, payload: dict) -> StockGroup:
    stock = get_stock(stock_id)
    flat, nested = _split_payload(payload)
    patch = validate_payload(model=StockGroup, payload=flat, policy=STOCK_POLICY, partial=True)
    enforce_rules_stock(patch)

    for key, value in patch.items():
        setattr(stock, key, value)

    if "color_variants" in nested:
        stock.color_variants = _parse_variants(nested["color_variants"], bool(stock.is_colorless))
    if "wholesale_tiers" in nested:
        stock.wholesale_tiers = _parse_tiers(nested["wholesale_tiers"])

    db.session.commit()
    return stock


def delete_stock(stock_id: int) -> None:
    stock = get_stock(stock_id)
    db.session.delete(stock)
    db.session.commit()
    logger.info("Deleted stock group %s", stock_id)


def stock_snapshot(stock_ids=None) -> list[dict]:
    """Serialized stock groups for in-memory inventory and reporting."""
    query = db.session.query(StockGroup).order_by(StockGroup.id.asc())
    if stock_ids is not None:
        ids = [sid for sid in stock_ids if sid is not None]
        if not ids:
            return []
        query = query.filter(StockGroup.id.in_(ids))
    return [stock.to_dict() for stock in query.all()]


def save_variant_quantities(stock_id: int, variant: dict) -> None:
    """Write one variant's size quantities from an inventory snapshot."""
    try:
        rows = (
            db.session.query(SizeQuantity)
            .join(ColorVariant)
            .filter(ColorVariant.stock_group_id == stock_id, ColorVariant.id == variant["id"])
            .all()
        )
        wanted = {sq["size"]: int(sq["quantity"]) for sq in variant.get("size_quantities", [])}
        for row in rows:
            if row.size in wanted:
                row.quantity = max(0, wanted[row.size])
        db.session.commit()
    except Exception:
        db.session.rollback()
        raise


def low_stock(threshold: int) -> list[dict]:
    rows = (
        db.session.query(StockGroup, ColorVariant, SizeQuantity)
        .join(ColorVariant, ColorVariant.stock_group_id == StockGroup.id)
        .join(SizeQuantity, SizeQuantity.color_variant_id == ColorVariant.id)
        .filter(SizeQuantity.quantity <= threshold)
        .order_by(SizeQuantity.quantity.asc(), StockGroup.group_name.asc())
        .all()
    )
    return [
        {
            "stock_id": stock.id,
            "group_name": stock.group_name,
            "shop": stock.shop,
            "color": variant.color,
            "size": sq.size,
            "quantity": sq.quantity,
        }
        for stock, variant, sq in rows
    ]
