"""
Checkout, refunds and cancellation.

LIFECYCLE:
1. Checkout creates the transaction: cod -> pending, everything else -> completed
2. pending -> completed once a cash-on-delivery order is paid
3. completed/partially_refunded -> partially_refunded/refunded via refunds
4. pending/completed/partially_refunded -> cancelled (restores un-refunded stock)

Refund lines point at transaction items by positional index.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from decimal import Decimal

from ..extensions import db
from ..models import Customer, Refund, RefundItem, Transaction, TransactionItem, TransactionSequence
from ..money import ZERO, quantize_money, to_decimal
from ..time_utils import utcnow
from ..validation import NotFoundError, ValidationError, parse_decimal, parse_int
from . import customer_service
from .cart_service import Cart
from .inventory_service import InventoryStore, StockAdjustment
from .settings_service import PricingConfig, convert_price, normalize_currency

logger = logging.getLogger(__name__)


class TransactionError(Exception):
    """Raised for checkout/refund/cancel errors."""
    def __init__(self, message: str, details: dict | None = None):
        super().__init__(message)
        self.details = details or {}


# =============================================================================
# STATUS & PAYMENT CONSTANTS
# =============================================================================

STATUS_PENDING = "pending"
STATUS_COMPLETED = "completed"
STATUS_CANCELLED = "cancelled"
STATUS_REFUNDED = "refunded"
STATUS_PARTIALLY_REFUNDED = "partially_refunded"

STATUSES = {
    STATUS_PENDING,
    STATUS_COMPLETED,
    STATUS_CANCELLED,
    STATUS_REFUNDED,
    STATUS_PARTIALLY_REFUNDED,
}

REFUNDABLE_STATUSES = {STATUS_COMPLETED, STATUS_PARTIALLY_REFUNDED}
CANCELLABLE_STATUSES = {STATUS_PENDING, STATUS_COMPLETED, STATUS_PARTIALLY_REFUNDED}

# Manual status updates; refunds and cancellation have their own operations
STATUS_TRANSITIONS = {
    STATUS_PENDING: {STATUS_COMPLETED},
}

PAYMENT_CASH = "cash"
PAYMENT_COD = "cod"
PAYMENT_METHODS = {PAYMENT_CASH, "scan", "wallet", PAYMENT_COD}

SEQUENCE_NAME = "transaction"

# Refunds are rounded to the cent one at a time
REFUND_ROUNDING_TOLERANCE = Decimal("0.01")


# =============================================================================
# IDS
# =============================================================================

def next_transaction_id() -> str:
    """Allocate the next "TXN-0000000000001" style id (flushes, caller commits)."""
    seq = db.session.get(TransactionSequence, SEQUENCE_NAME)
    if seq is None:
        seq = TransactionSequence(name=SEQUENCE_NAME, next_value=1)
        db.session.add(seq)
    value = seq.next_value
    seq.next_value = value + 1
    db.session.flush()
    return f"TXN-{value:013d}"


def get_transaction(identifier) -> Transaction:
    """Look up by numeric primary key or by the TXN- id."""
    txn = None
    if isinstance(identifier, int) or (isinstance(identifier, str) and identifier.isdigit()):
        txn = db.session.get(Transaction, int(identifier))
    elif isinstance(identifier, str):
        txn = db.session.query(Transaction).filter_by(transaction_id=identifier.strip()).first()
    if txn is None:
        raise NotFoundError("Transaction not found")
    return txn


def list_transactions(
    *,
    start=None,
    end=None,
    status: str | None = None,
    shop_id: int | None = None,
    payment_method: str | None = None,
    customer_id: int | None = None,
    limit: int | None = None,
) -> list[Transaction]:
    query = db.session.query(Transaction)
    if start is not None:
        query = query.filter(Transaction.timestamp >= start)
    if end is not None:
        query = query.filter(Transaction.timestamp <= end)
    if status:
        query = query.filter(Transaction.status == status)
    if shop_id is not None:
        query = query.filter(Transaction.shop_id == shop_id)
    if payment_method:
        query = query.filter(Transaction.payment_method == payment_method)
    if customer_id is not None:
        query = query.filter(Transaction.customer_id == customer_id)
    query = query.order_by(Transaction.timestamp.desc(), Transaction.id.desc())
    if limit:
        query = query.limit(limit)
    return query.all()


# =============================================================================
# PAYMENT CLEARANCE
# =============================================================================

@dataclass
class PaymentClearance:
    method: str
    status: str
    selling_currency: str
    exchange_rate: Decimal
    selling_total: Decimal
    amount_paid: Decimal
    change: Decimal


def clear_payment(
    total,
    method: str,
    config: PricingConfig,
    *,
    amount_paid=None,
    selling_currency: str | None = None,
) -> PaymentClearance:
    """
    Validate a payment against the grand total.

    total is in the default currency; amount_paid is in the selling currency.
    Cash must cover the converted total and yields change. Cash on delivery
    leaves the transaction pending.
    """
    method = (method or "").strip().lower()
    if method not in PAYMENT_METHODS:
        raise ValidationError(f"payment_method must be one of: {', '.join(sorted(PAYMENT_METHODS))}")

    total = to_decimal(total)
    currency = normalize_currency(selling_currency) if selling_currency else config.default_currency
    selling_total = quantize_money(convert_price(total, config.default_currency, currency, config))

    if currency == config.default_currency:
        exchange_rate = Decimal("1")
    elif total > ZERO:
        exchange_rate = selling_total / quantize_money(total)
    else:
        exchange_rate = config.conversion_rate

    if method == PAYMENT_CASH:
        if amount_paid is None or str(amount_paid).strip() == "":
            raise ValidationError("amount_paid is required for cash payments")
        paid = quantize_money(parse_decimal(amount_paid, "amount_paid"))
        if paid < selling_total:
            raise TransactionError(
                "Insufficient payment amount",
                details={"required": float(selling_total), "amount_paid": float(paid), "currency": currency},
            )
        change = paid - selling_total
    else:
        paid = selling_total
        change = ZERO

    return PaymentClearance(
        method=method,
        status=STATUS_PENDING if method == PAYMENT_COD else STATUS_COMPLETED,
        selling_currency=currency,
        exchange_rate=exchange_rate,
        selling_total=selling_total,
        amount_paid=paid,
        change=change,
    )


# =============================================================================
# CHECKOUT
# =============================================================================

def _resolve_customer(customer_id) -> Customer | None:
    if customer_id is None or customer_id == "":
        return None
    customer = db.session.get(Customer, parse_int(customer_id, "customer_id"))
    if customer is None:
        raise ValidationError(f"Unknown customer_id: {customer_id}")
    return customer


def checkout(
    cart: Cart,
    payment: dict,
    *,
    shop_id: int | None = None,
    branch_name: str | None = None,
    created_by: str | None = None,
    customer_id=None,
) -> Transaction:
    """
    Record a sale for the cart and empty it.

    customer_id (or the one attached to the cart) links the sale to a customer
    and bumps that customer's purchase totals.

    Stock was reserved as items were added, so checkout only finalizes it
    (the cart is cleared without restoring). Nothing changes if validation,
    payment clearance or the database write fails.
    """
    if cart.is_empty():
        raise TransactionError("Cart is empty")

    payment = payment or {}
    totals = cart.compute_totals()
    customer = _resolve_customer(cart.customer_id if customer_id is None else customer_id)
    clearance = clear_payment(
        totals.grand_total,
        payment.get("method") or payment.get("payment_method"),
        cart.config,
        amount_paid=payment.get("amount_paid"),
        selling_currency=payment.get("currency") or cart.currency,
    )

    try:
        txn = Transaction(
            transaction_id=next_transaction_id(),
            status=clearance.status,
            payment_method=clearance.method,
            subtotal=quantize_money(totals.subtotal),
            discount=quantize_money(totals.discount),
            tax=quantize_money(totals.tax),
            total=quantize_money(totals.grand_total),
            selling_currency=clearance.selling_currency,
            exchange_rate=clearance.exchange_rate,
            selling_total=clearance.selling_total,
            amount_paid=clearance.amount_paid,
            change=clearance.change,
            shop_id=shop_id,
            branch_name=branch_name,
            created_by=created_by,
            customer_id=customer.id if customer else None,
            customer_name=customer.name if customer else None,
            timestamp=utcnow(),
        )
        txn.items = [
            TransactionItem(
                position=position,
                stock_id=item.stock_id,
                group_name=item.group_name,
                selected_color=item.selected_color,
                selected_size=item.selected_size,
                color_code=item.color_code,
                shop=item.shop,
                quantity=item.quantity,
                unit_price=quantize_money(item.unit_price),
                original_price=quantize_money(item.original_price),
                discounted_price=quantize_money(item.discounted_price) if item.discounted_price is not None else None,
                group_discount=item.group_discount,
                variant_discount=item.variant_discount,
                is_wholesale_pricing=item.is_wholesale_pricing,
            )
            for position, item in enumerate(cart.items)
        ]
        if customer is not None:
            customer_service.record_purchase(customer, txn.total, txn.timestamp)
        db.session.add(txn)
        db.session.commit()
    except Exception:
        db.session.rollback()
        raise

    cart.complete_purchase()
    logger.info("Checkout %s total=%s status=%s", txn.transaction_id, txn.total, txn.status)
    return txn


def update_transaction_status(identifier, status: str) -> Transaction:
    txn = get_transaction(identifier)
    status = (status or "").strip().lower()
    if status not in STATUSES:
        raise ValidationError(f"status must be one of: {', '.join(sorted(STATUSES))}")
    if status == txn.status:
        return txn
    if status not in STATUS_TRANSITIONS.get(txn.status, set()):
        raise TransactionError(
            f"Cannot change status from {txn.status} to {status}",
            details={"current_status": txn.status, "requested_status": status},
        )
    txn.status = status
    db.session.commit()
    return txn


# =============================================================================
# REFUNDS & CANCELLATION
# =============================================================================

def refunded_quantities(txn: Transaction) -> dict[int, int]:
    """Quantity already refunded per item index."""
    totals: dict[int, int] = {}
    for refund in txn.refunds:
        for line in refund.items:
            totals[line.item_index] = totals.get(line.item_index, 0) + line.quantity
    return totals


def _restore_inventory(entries: list[dict], inventory: InventoryStore | None, context: str) -> list[StockAdjustment]:
    """Best effort: failures are logged and never undo the recorded document."""
    if not entries:
        return []
    try:
        if inventory is None:
            inventory = InventoryStore.from_database({e["stock_id"] for e in entries})
        return inventory.restore_multiple(entries)
    except Exception:
        logger.exception("Inventory restore failed for %s", context)
        return []


def _parse_refund_lines(raw_items) -> dict[int, int]:
    if not isinstance(raw_items, list) or not raw_items:
        raise ValidationError("items must be a non-empty list")
    lines: dict[int, int] = {}
    for entry in raw_items:
        if not isinstance(entry, dict):
            raise ValidationError("items entries must be objects")
        index = parse_int(entry.get("item_index"), "item_index")
        quantity = parse_int(entry.get("quantity"), "quantity")
        if quantity < 1:
            raise ValidationError("quantity must be >= 1")
        lines[index] = lines.get(index, 0) + quantity
    return lines


def process_refund(
    identifier,
    items,
    *,
    reason: str | None = None,
    processed_by: str | None = None,
    inventory: InventoryStore | None = None,
) -> Refund:
    """
    Refund quantities of individual transaction items.

    Each line refunds its effective price times quantity, less its share of
    the cart discount. Proportional tax is recorded on the refund but not paid
    back. A refund larger than what is left of subtotal - discount (after
    earlier refunds) is rejected.
    """
    txn = get_transaction(identifier)
    if txn.status not in REFUNDABLE_STATUSES:
        raise TransactionError(
            f"Cannot refund a {txn.status} transaction",
            details={"status": txn.status},
        )

    lines = _parse_refund_lines(items)
    already = refunded_quantities(txn)
    tx_items = list(txn.items)

    refund_items: list[RefundItem] = []
    items_subtotal = ZERO
    for index in sorted(lines):
        quantity = lines[index]
        if index < 0 or index >= len(tx_items):
            raise TransactionError("Invalid item index", details={"item_index": index})
        item = tx_items[index]
        remaining = item.quantity - already.get(index, 0)
        if remaining <= 0:
            raise TransactionError("Item already fully refunded", details={"item_index": index})
        if quantity > remaining:
            raise TransactionError(
                "Refund quantity exceeds remaining quantity",
                details={"item_index": index, "requested": quantity, "remaining": remaining},
            )
        price = to_decimal(item.discounted_price if item.discounted_price is not None else item.unit_price)
        line_total = price * quantity
        items_subtotal += line_total
        refund_items.append(
            RefundItem(
                item_id=item.id,
                item_index=index,
                quantity=quantity,
                unit_price=quantize_money(price),
                total_amount=quantize_money(line_total),
            )
        )

    subtotal = to_decimal(txn.subtotal)
    discount = to_decimal(txn.discount)
    net_sale = subtotal - discount

    cart_discount_refund = items_subtotal * discount / subtotal if subtotal > ZERO else ZERO
    refundable = items_subtotal - cart_discount_refund
    tax_refund = refundable * to_decimal(txn.tax) / net_sale if net_sale > ZERO else ZERO

    refunded_so_far = sum((to_decimal(r.total_amount) for r in txn.refunds), ZERO)
    remaining_refundable = max(ZERO, net_sale - refunded_so_far)
    total_amount = quantize_money(refundable)
    if total_amount > remaining_refundable + REFUND_ROUNDING_TOLERANCE:
        raise TransactionError(
            "Refund exceeds refundable amount",
            details={
                "requested": float(total_amount),
                "refundable": float(quantize_money(remaining_refundable)),
            },
        )
    # Per-refund rounding can leave the last refund a cent over
    total_amount = min(total_amount, remaining_refundable)

    refund = Refund(
        refund_id=f"REF-{txn.transaction_id.removeprefix('TXN-')}-{len(txn.refunds) + 1:03d}",
        items_subtotal=quantize_money(items_subtotal),
        cart_discount_refund=quantize_money(cart_discount_refund),
        tax_refund=quantize_money(tax_refund),
        total_amount=total_amount,
        reason=(reason or "").strip() or None,
        processed_by=processed_by,
        status="completed",
    )
    refund.items = refund_items

    for index, quantity in lines.items():
        already[index] = already.get(index, 0) + quantity
    all_items_refunded = all(already.get(i, 0) >= item.quantity for i, item in enumerate(tx_items))
    fully_refunded = all_items_refunded or refunded_so_far + total_amount >= net_sale

    try:
        txn.refunds.append(refund)
        txn.status = STATUS_REFUNDED if fully_refunded else STATUS_PARTIALLY_REFUNDED
        db.session.commit()
    except Exception:
        db.session.rollback()
        raise

    logger.info("Refund %s on %s amount=%s", refund.refund_id, txn.transaction_id, refund.total_amount)

    _restore_inventory(
        [
            {
                "stock_id": tx_items[line.item_index].stock_id,
                "color": tx_items[line.item_index].selected_color,
                "size": tx_items[line.item_index].selected_size,
                "quantity": line.quantity,
            }
            for line in refund_items
            if tx_items[line.item_index].stock_id is not None
        ],
        inventory,
        f"refund {refund.refund_id}",
    )
    return refund


def cancel_transaction(
    identifier,
    *,
    reason: str | None,
    cancelled_by: str | None = None,
    inventory: InventoryStore | None = None,
) -> Transaction:
    """Cancel a sale and restore whatever quantity has not been refunded."""
    txn = get_transaction(identifier)
    reason = (reason or "").strip()
    if not reason:
        raise ValidationError("A cancellation reason is required")
    if txn.status == STATUS_CANCELLED:
        raise TransactionError("Transaction is already cancelled")
    if txn.status not in CANCELLABLE_STATUSES:
        raise TransactionError(
            f"Cannot cancel a {txn.status} transaction",
            details={"status": txn.status},
        )

    already = refunded_quantities(txn)
    entries = []
    for index, item in enumerate(txn.items):
        remaining = item.quantity - already.get(index, 0)
        if remaining > 0 and item.stock_id is not None:
            entries.append({
                "stock_id": item.stock_id,
                "color": item.selected_color,
                "size": item.selected_size,
                "quantity": remaining,
            })

    try:
        txn.status = STATUS_CANCELLED
        txn.cancelled_at = utcnow()
        txn.cancel_reason = reason
        txn.cancelled_by = cancelled_by
        db.session.commit()
    except Exception:
        db.session.rollback()
        raise

    logger.info("Cancelled %s (%s)", txn.transaction_id, reason)
    _restore_inventory(entries, inventory, f"cancellation of {txn.transaction_id}")
    return txn
