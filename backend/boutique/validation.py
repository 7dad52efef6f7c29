from __future__ import annotations
from datetime import date, datetime
from decimal import Decimal, InvalidOperation

from dataclasses import dataclass
from typing import Any

from sqlalchemy import Boolean, Date, DateTime, Integer, Numeric, String, Text

from .time_utils import parse_iso_date, parse_iso_datetime


# Prices and expense amounts are capped at 999,999,999.99 in either currency
MAX_AMOUNT = Decimal("999999999.99")


class ValidationError(ValueError):
    """400-level input problem."""


class ConflictError(ValueError):
    """409-level business rule conflict (e.g., duplicate shop name)."""


class NotFoundError(LookupError):
    """404-level missing record."""


@dataclass(frozen=True)
class ModelValidationPolicy:
    """Which columns a client may write, and which a create must supply."""
    writable_fields: set[str]
    required_on_create: set[str] | None = None


TRUTHY = {"1", "true", "yes", "on"}


def parse_decimal(value: Any, field: str) -> Decimal:
    """Money and percentages: "12.50", 12.5 and Decimal are all accepted."""
    if isinstance(value, Decimal):
        result = value
    elif isinstance(value, (int, float, str)) and not isinstance(value, bool):
        try:
            result = Decimal(str(value).strip())
        except InvalidOperation:
            raise ValidationError(f"{field} must be a number")
    else:
        raise ValidationError(f"{field} must be a number")

    if not result.is_finite():
        raise ValidationError(f"{field} must be a finite number")
    return result


def parse_int(value: Any, field: str) -> int:
    if isinstance(value, bool):
        raise ValidationError(f"{field} must be an integer")
    if isinstance(value, int):
        return value
    if isinstance(value, float):
        raise ValidationError(f"{field} must be an integer, not a decimal")
    if not isinstance(value, str) or not value.strip():
        raise ValidationError(f"{field} must be an integer")

    text = value.strip()
    if "e" in text.lower():
        raise ValidationError(f"{field} must be a plain integer (scientific notation not allowed)")
    if "." in text:
        raise ValidationError(f"{field} must be an integer (no decimals)")
    try:
        return int(text)
    except ValueError:
        raise ValidationError(f"{field} must be an integer")


def _to_datetime(key: str, value: Any) -> datetime:
    if isinstance(value, datetime):
        return value
    if not isinstance(value, str):
        raise ValidationError(f"{key} must be a datetime")
    try:
        parsed = parse_iso_datetime(value)
    except ValueError:
        parsed = None
    if parsed is None:
        raise ValidationError(f"{key} must be an ISO-8601 datetime")
    return parsed


def _to_date(key: str, value: Any) -> date:
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    if not isinstance(value, str):
        raise ValidationError(f"{key} must be a date")
    try:
        parsed = parse_iso_date(value)
    except ValueError:
        parsed = None
    if parsed is None:
        raise ValidationError(f"{key} must be a YYYY-MM-DD date")
    return parsed


def _to_bool(value: Any) -> bool:
    if isinstance(value, str):
        return value.strip().lower() in TRUTHY
    return bool(value)


def _clean_column_value(col, value: Any):
    """Convert one non-null JSON value to the python type of its column."""
    coltype = col.type
    key = col.key

    if isinstance(coltype, Integer):
        return parse_int(value, key)
    if isinstance(coltype, Numeric):
        return parse_decimal(value, key)
    if isinstance(coltype, Boolean):
        return _to_bool(value)
    # DateTime ahead of Date
    if isinstance(coltype, DateTime):
        return _to_datetime(key, value)
    if isinstance(coltype, Date):
        return _to_date(key, value)
    if not isinstance(coltype, (String, Text)):
        return value

    text = str(value).strip()
    if not text and not col.nullable:
        raise ValidationError(f"{key} cannot be blank")
    limit = getattr(coltype, "length", None)
    if limit and len(text) > limit:
        raise ValidationError(f"{key} exceeds max length {limit}")
    return text


def validate_payload(
    *,
    model,
    payload: dict,
    policy: ModelValidationPolicy,
    partial: bool,
) -> dict:
    """
    Turn a JSON body into a dict of column values for ``model``.

    Keys outside ``policy.writable_fields`` are rejected outright. With
    ``partial=False`` (create) every ``required_on_create`` key must be
    present; with ``partial=True`` (update) only the keys sent are checked.
    Null, blank, over-long and badly typed values raise ValidationError.
    """
    payload = {} if payload is None else payload
    if not isinstance(payload, dict):
        raise ValidationError("Invalid JSON payload")

    if not partial:
        missing = sorted((policy.required_on_create or set()) - payload.keys())
        if missing:
            raise ValidationError(f"Missing required fields: {', '.join(missing)}")

    columns = {c.key: c for c in model.__mapper__.columns}
    for key in payload:
        if key not in policy.writable_fields:
            raise ValidationError(f"Field not allowed: {key}")
        if key not in columns:
            raise ValidationError(f"Unknown field: {key}")

    cleaned: dict = {}
    for key, value in payload.items():
        column = columns[key]
        if value is None and not column.nullable:
            raise ValidationError(f"{key} cannot be null")
        cleaned[key] = None if value is None else _clean_column_value(column, value)
    return cleaned


def _check_amount(patch: dict, field: str, *, allow_zero: bool = True) -> None:
    if field not in patch or patch[field] is None:
        return
    amount = patch[field]
    if amount < 0 or (not allow_zero and amount == 0):
        op = ">=" if allow_zero else ">"
        raise ValidationError(f"{field} must be {op} 0")
    if amount > MAX_AMOUNT:
        raise ValidationError(f"{field} cannot exceed {MAX_AMOUNT:,}")


def enforce_rules_stock(patch: dict) -> None:
    """unit_price must be non-negative; original_price only feeds profit."""
    _check_amount(patch, "unit_price")
    _check_amount(patch, "original_price")


def enforce_rules_expense(patch: dict) -> None:
    _check_amount(patch, "amount", allow_zero=False)


def enforce_rules_settings(patch: dict) -> None:
    if "tax_rate" in patch and patch["tax_rate"] is not None:
        if not (Decimal("0") <= patch["tax_rate"] <= Decimal("100")):
            raise ValidationError("tax_rate must be between 0 and 100")
    if "currency_rate" in patch and patch["currency_rate"] is not None:
        if patch["currency_rate"] < 0:
            raise ValidationError("currency_rate must be >= 0")
    prefix = patch.get("gs1_company_prefix")
    if prefix is not None and (not prefix.isdigit() or len(prefix) > 11):
        raise ValidationError("gs1_company_prefix must be up to 11 digits")


def enforce_rules_customer(patch: dict) -> None:
    _check_amount(patch, "receivables")
