"""
CSV exports.

Every field is double-quoted (embedded quotes doubled) and the document can
start with a UTF-8 BOM so spreadsheets pick up the encoding.
"""

from __future__ import annotations

import csv
import io
from typing import Iterable, Sequence

from ..money import quantize_money, to_decimal
from . import reporting_service

BOM = "\ufeff"

EXPENSE_HEADERS = ("Date", "Category", "Spending Menu", "Note", "Amount", "Currency")
INVENTORY_HEADERS = (
    "Group Name",
    "Shop",
    "Color",
    "Color Code",
    "Barcode",
    "Size",
    "Quantity",
    "Unit Price",
    "Original Price",
)
TRANSACTION_HEADERS = (
    "Transaction ID",
    "Date",
    "Items",
    "Net Total",
    "Net Profit",
    "Tax",
    "Branch",
    "Currency",
    "Payment Method",
    "Status",
)


def _money(value) -> str:
    return f"{quantize_money(value):.2f}"


def _text(value) -> str:
    return "" if value is None else str(value)


def build_csv(headers: Sequence[str], rows: Iterable[Sequence], *, include_bom: bool = True) -> str:
    buffer = io.StringIO()
    writer = csv.writer(buffer, quoting=csv.QUOTE_ALL, lineterminator="\n")
    writer.writerow(headers)
    for row in rows:
        writer.writerow([_text(value) for value in row])
    content = buffer.getvalue()
    return BOM + content if include_bom else content


def expenses_csv(expenses: Iterable[dict], *, include_bom: bool = True) -> str:
    rows = (
        (
            exp.get("date"),
            exp.get("category_name"),
            exp.get("spending_menu_name"),
            exp.get("note"),
            _money(exp.get("amount")),
            exp.get("currency"),
        )
        for exp in expenses
    )
    return build_csv(EXPENSE_HEADERS, rows, include_bom=include_bom)


def inventory_csv(stocks: Iterable[dict], *, include_bom: bool = True) -> str:
    """One row per (stock group, color, size)."""
    def rows():
        for stock in stocks:
            for variant in stock.get("color_variants") or []:
                for entry in variant.get("size_quantities") or []:
                    yield (
                        stock.get("group_name"),
                        stock.get("shop"),
                        variant.get("color"),
                        variant.get("color_code"),
                        variant.get("barcode"),
                        entry.get("size"),
                        entry.get("quantity"),
                        _money(stock.get("unit_price")),
                        _money(stock.get("original_price")),
                    )

    return build_csv(INVENTORY_HEADERS, rows(), include_bom=include_bom)


def _items_summary(txn: dict) -> str:
    parts = []
    for item, quantity in zip(txn.get("items") or [], reporting_service.net_quantities(txn)):
        parts.append(f"{item['group_name']} ({item['selected_color']}/{item['selected_size']}) x{quantity}")
    return "; ".join(parts)


def transactions_csv(transactions: Iterable[dict], *, include_bom: bool = True, base_currency: str = "THB") -> str:
    """Net figures are in the selling currency, converted with the stored rate."""
    def rows():
        for txn in transactions:
            rate = to_decimal(txn.get("exchange_rate") or 1)
            yield (
                txn.get("transaction_id"),
                txn.get("timestamp"),
                _items_summary(txn),
                _money(reporting_service.net_revenue(txn) * rate),
                _money(reporting_service.transaction_profit(txn) * rate),
                _money(to_decimal(txn.get("tax")) * rate),
                txn.get("branch_name"),
                txn.get("selling_currency") or base_currency,
                txn.get("payment_method"),
                txn.get("status"),
            )

    return build_csv(TRANSACTION_HEADERS, rows(), include_bom=include_bom)
