# Overview: Sales report aggregation over transactions, expenses and the stock snapshot.

from __future__ import annotations

from dataclasses import dataclass
from datetime import date, datetime, timedelta
from decimal import Decimal
from typing import Iterable

from ..money import ZERO, quantize_money, to_decimal
from ..time_utils import (
    day_key,
    end_of_day,
    iter_days,
    parse_iso_date,
    parse_iso_datetime,
    start_of_day,
    to_utc_z,
    utcnow,
)
from .catalog_service import stock_snapshot
from .expense_service import list_expenses
from .settings_service import SUPPORTED_CURRENCIES, get_business_settings
from .transaction_service import list_transactions

REVENUE_STATUSES = {"completed", "partially_refunded", "refunded"}

RANGE_DAYS = {"7d": 7, "30d": 30, "90d": 90, "1y": 365}
RANGES = ("today", "7d", "30d", "90d", "1y", "all", "custom")

TOP_ITEMS_LIMIT = 5


class ReportError(Exception):
    """Raised when report generation fails."""
    def __init__(self, message: str, details: dict | None = None):
        super().__init__(message)
        self.details = details or {}


@dataclass(frozen=True)
class ReportWindow:
    range_key: str
    start: datetime | None = None
    end: datetime | None = None

    @property
    def bounded(self) -> bool:
        return self.start is not None and self.end is not None

    def contains(self, moment: datetime | None) -> bool:
        if moment is None:
            return False
        if self.start is not None and moment < self.start:
            return False
        if self.end is not None and moment > self.end:
            return False
        return True

    def contains_date(self, day: date | None) -> bool:
        if day is None:
            return False
        if self.start is not None and day < self.start.date():
            return False
        if self.end is not None and day > self.end.date():
            return False
        return True

    def to_dict(self) -> dict:
        return {"range": self.range_key, "start": to_utc_z(self.start), "end": to_utc_z(self.end)}


def _as_date(value) -> date | None:
    if value is None:
        return None
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    try:
        return parse_iso_date(str(value))
    except ValueError:
        raise ReportError(f"Invalid date: {value}")


def resolve_window(range_key: str | None = "30d", start=None, end=None, now: datetime | None = None) -> ReportWindow:
    """
    Turn a named range into inclusive [start, end] bounds.

    "7d" means today plus the six days before it; "custom" needs both dates.
    """
    range_key = (range_key or "30d").strip()
    if range_key not in RANGES:
        raise ReportError(f"range must be one of: {', '.join(RANGES)}")

    today = (now or utcnow()).date()

    if range_key == "all":
        return ReportWindow(range_key)
    if range_key == "today":
        return ReportWindow(range_key, start_of_day(today), end_of_day(today))
    if range_key == "custom":
        start_date, end_date = _as_date(start), _as_date(end)
        if start_date is None or end_date is None:
            raise ReportError("custom range requires start and end dates")
        if start_date > end_date:
            raise ReportError("start must be on or before end")
        return ReportWindow(range_key, start_of_day(start_date), end_of_day(end_date))

    days = RANGE_DAYS[range_key]
    return ReportWindow(range_key, start_of_day(today - timedelta(days=days - 1)), end_of_day(today))


# =============================================================================
# PER-TRANSACTION ARITHMETIC
# =============================================================================

def counts_as_revenue(txn: dict) -> bool:
    return txn.get("status") in REVENUE_STATUSES


def refunded_by_index(txn: dict) -> dict[int, int]:
    totals: dict[int, int] = {}
    for refund in txn.get("refunds") or []:
        for line in refund.get("items") or []:
            index = int(line["item_index"])
            totals[index] = totals.get(index, 0) + int(line["quantity"])
    return totals


def refunded_amount(txn: dict) -> Decimal:
    return sum((to_decimal(r.get("total_amount")) for r in txn.get("refunds") or []), ZERO)


def net_revenue(txn: dict) -> Decimal:
    """total - refunds, floored at 0 (default currency)."""
    return max(ZERO, to_decimal(txn.get("total")) - refunded_amount(txn))


def net_quantities(txn: dict) -> list[int]:
    refunded = refunded_by_index(txn)
    return [
        max(0, int(item["quantity"]) - refunded.get(index, 0))
        for index, item in enumerate(txn.get("items") or [])
    ]


def transaction_profit(txn: dict) -> Decimal:
    """Σ (unit_price - original_price) * net quantity, floored at 0."""
    profit = ZERO
    for item, quantity in zip(txn.get("items") or [], net_quantities(txn)):
        margin = to_decimal(item.get("unit_price")) - to_decimal(item.get("original_price"))
        profit += margin * quantity
    return max(ZERO, profit)


def _rate(txn: dict) -> Decimal:
    rate = txn.get("exchange_rate")
    return to_decimal(rate) if rate else Decimal("1")


def _currency(txn: dict, base_currency: str) -> str:
    return txn.get("selling_currency") or base_currency


def _timestamp(txn: dict) -> datetime | None:
    value = txn.get("timestamp")
    if isinstance(value, datetime):
        return value
    return parse_iso_datetime(value) if value else None


# =============================================================================
# AGGREGATES
# =============================================================================

def _empty_bucket() -> dict:
    return {"revenue": ZERO, "profit": ZERO, "expenses": ZERO, "transactions": 0}


def _render_bucket(bucket: dict) -> dict:
    revenue = bucket["revenue"]
    count = bucket["transactions"]
    return {
        "revenue": float(quantize_money(revenue)),
        "profit": float(quantize_money(bucket["profit"])),
        "expenses": float(quantize_money(bucket["expenses"])),
        "net_profit": float(quantize_money(bucket["profit"] - bucket["expenses"])),
        "transactions": count,
        "average_order_value": float(quantize_money(revenue / count)) if count else 0.0,
    }


def transaction_summary(transactions: Iterable[dict]) -> dict:
    """
    Status counts plus net figures for revenue transactions.

    Tax and discount are scaled by the unrefunded share of each total.
    """
    status_counts: dict[str, int] = {}
    gross = refunds = net = tax = discount = ZERO
    revenue_count = 0

    for txn in transactions:
        status = txn.get("status")
        status_counts[status] = status_counts.get(status, 0) + 1
        if not counts_as_revenue(txn):
            continue
        revenue_count += 1
        total = to_decimal(txn.get("total"))
        txn_net = net_revenue(txn)
        share = txn_net / total if total > ZERO else ZERO
        gross += total
        refunds += refunded_amount(txn)
        net += txn_net
        tax += to_decimal(txn.get("tax")) * share
        discount += to_decimal(txn.get("discount")) * share

    return {
        "total_transactions": sum(status_counts.values()),
        "revenue_transactions": revenue_count,
        "status_counts": status_counts,
        "gross_total": float(quantize_money(gross)),
        "refunded_total": float(quantize_money(refunds)),
        "net_revenue": float(quantize_money(net)),
        "net_tax": float(quantize_money(tax)),
        "net_discount": float(quantize_money(discount)),
        "average_order_value": float(quantize_money(net / revenue_count)) if revenue_count else 0.0,
    }


def top_selling_items(transactions: Iterable[dict], limit: int = TOP_ITEMS_LIMIT) -> list[dict]:
    """Group names ranked by net quantity sold (default-currency revenue)."""
    totals: dict[str, dict] = {}
    for txn in transactions:
        if not counts_as_revenue(txn):
            continue
        for item, quantity in zip(txn.get("items") or [], net_quantities(txn)):
            if quantity <= 0:
                continue
            entry = totals.setdefault(item["group_name"], {"quantity": 0, "revenue": ZERO})
            price = item.get("discounted_price")
            price = to_decimal(price if price is not None else item.get("unit_price"))
            entry["quantity"] += quantity
            entry["revenue"] += price * quantity

    ranked = sorted(totals.items(), key=lambda kv: (-kv[1]["quantity"], -kv[1]["revenue"], kv[0]))
    return [
        {"group_name": name, "quantity": data["quantity"], "revenue": float(quantize_money(data["revenue"]))}
        for name, data in ranked[:limit]
    ]


def payment_breakdown(transactions: Iterable[dict]) -> list[dict]:
    methods: dict[str, dict] = {}
    for txn in transactions:
        if not counts_as_revenue(txn):
            continue
        entry = methods.setdefault(txn.get("payment_method") or "unknown", {"transactions": 0, "amount": ZERO})
        entry["transactions"] += 1
        entry["amount"] += net_revenue(txn)
    return [
        {"method": method, "transactions": data["transactions"], "amount": float(quantize_money(data["amount"]))}
        for method, data in sorted(methods.items(), key=lambda kv: (-kv[1]["amount"], kv[0]))
    ]


def stock_totals(stocks: Iterable[dict], low_stock_threshold: int | None = None) -> dict:
    units = 0
    retail = cost = ZERO
    low: list[dict] = []
    groups = 0
    for stock in stocks:
        groups += 1
        unit_price = to_decimal(stock.get("unit_price"))
        original_price = to_decimal(stock.get("original_price"))
        for variant in stock.get("color_variants") or []:
            for entry in variant.get("size_quantities") or []:
                quantity = int(entry.get("quantity", 0))
                units += quantity
                retail += unit_price * quantity
                cost += original_price * quantity
                if low_stock_threshold is not None and quantity <= low_stock_threshold:
                    low.append({
                        "stock_id": stock.get("id"),
                        "group_name": stock.get("group_name"),
                        "color": variant.get("color"),
                        "size": entry.get("size"),
                        "quantity": quantity,
                    })
    return {
        "groups": groups,
        "total_units": units,
        "retail_value": float(quantize_money(retail)),
        "cost_value": float(quantize_money(cost)),
        "low_stock": sorted(low, key=lambda row: (row["quantity"], row["group_name"] or "")),
    }


def build_report(
    transactions: Iterable[dict],
    expenses: Iterable[dict],
    stocks: Iterable[dict],
    *,
    window: ReportWindow,
    base_currency: str = "THB",
    low_stock_threshold: int | None = None,
) -> dict:
    """
    Fold transactions and expenses inside the window into per-currency and
    per-day buckets.

    Revenue and profit are converted into each transaction's selling currency
    with its exchange rate; expenses stay in their own currency.
    """
    in_window = [txn for txn in transactions if window.contains(_timestamp(txn))]
    expenses_in_window = [exp for exp in expenses if window.contains_date(_as_date(exp.get("date")))]

    totals = {code: _empty_bucket() for code in SUPPORTED_CURRENCIES}
    daily: dict[str, dict] = {}

    def day_bucket(key: str) -> dict:
        if key not in daily:
            daily[key] = {code: _empty_bucket() for code in SUPPORTED_CURRENCIES}
        return daily[key]

    if window.bounded:
        for day in iter_days(window.start.date(), window.end.date()):
            day_bucket(day_key(day))

    for txn in in_window:
        if not counts_as_revenue(txn):
            continue
        currency = _currency(txn, base_currency)
        rate = _rate(txn)
        revenue = net_revenue(txn) * rate
        profit = transaction_profit(txn) * rate
        for bucket in (totals.setdefault(currency, _empty_bucket()),
                       day_bucket(day_key(_timestamp(txn))).setdefault(currency, _empty_bucket())):
            bucket["revenue"] += revenue
            bucket["profit"] += profit
            bucket["transactions"] += 1

    for exp in expenses_in_window:
        currency = exp.get("currency") or base_currency
        amount = to_decimal(exp.get("amount"))
        totals.setdefault(currency, _empty_bucket())["expenses"] += amount
        day_bucket(day_key(_as_date(exp.get("date")))).setdefault(currency, _empty_bucket())["expenses"] += amount

    return {
        "window": window.to_dict(),
        "base_currency": base_currency,
        "totals": {code: _render_bucket(bucket) for code, bucket in totals.items()},
        "daily": [
            {"date": key, "currencies": {code: _render_bucket(b) for code, b in buckets.items()}}
            for key, buckets in sorted(daily.items())
        ],
        "top_selling_items": top_selling_items(in_window),
        "payment_methods": payment_breakdown(in_window),
        "summary": transaction_summary(in_window),
        "stock": stock_totals(stocks, low_stock_threshold),
    }


def sales_report(
    *,
    range_key: str = "30d",
    start=None,
    end=None,
    shop_id: int | None = None,
    low_stock_threshold: int | None = None,
    now: datetime | None = None,
) -> dict:
    """Load the window's records from the database and build the report."""
    window = resolve_window(range_key, start, end, now=now)
    transactions = list_transactions(start=window.start, end=window.end, shop_id=shop_id)
    expenses = list_expenses(
        start=window.start.date() if window.start else None,
        end=window.end.date() if window.end else None,
    )["items"]

    return build_report(
        [txn.to_dict() for txn in transactions],
        [exp.to_dict() for exp in expenses],
        stock_snapshot(),
        window=window,
        base_currency=get_business_settings().default_currency,
        low_stock_threshold=low_stock_threshold,
    )
