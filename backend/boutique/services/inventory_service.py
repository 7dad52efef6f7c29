# Overview: In-memory stock adjustments with best-effort persistence.

"""
Inventory semantics (authoritative)

- Stock lives on SizeQuantity rows: (stock group, color variant, size) -> quantity.
- Variants are located by case-insensitive color name; a missing variant or
  size is logged and ignored, never raised.
- Decrements clamp at 0; quantities never go negative.
- The in-memory snapshot is updated first. The durable write is best effort:
  a failed write is logged and the optimistic local state is kept.
- Every adjustment returns a StockAdjustment telling the caller whether the
  local state changed (applied) and whether it reached the database
  (persisted).
"""

from __future__ import annotations

import copy
import logging
from dataclasses import asdict, dataclass
from typing import Callable, Iterable

logger = logging.getLogger(__name__)

REDUCE = "reduce"
RESTORE = "restore"

Persister = Callable[[int, dict], None]


@dataclass
class StockAdjustment:
    stock_id: int
    color: str
    size: str
    quantity: int
    operation: str
    applied: bool = False
    persisted: bool = False
    previous_quantity: int | None = None
    new_quantity: int | None = None
    error: str | None = None

    def to_dict(self) -> dict:
        return asdict(self)


class InventoryStore:
    """
    Stock snapshot for one request.

    stocks are StockGroup.to_dict() documents; persist(stock_id, variant) is
    called after each local mutation.
    """

    def __init__(self, stocks: Iterable[dict] = (), persist: Persister | None = None):
        self._stocks: dict[int, dict] = {}
        for stock in stocks:
            self._stocks[stock["id"]] = copy.deepcopy(stock)
        self._persist = persist

    @classmethod
    def from_database(cls, stock_ids=None) -> "InventoryStore":
        from .catalog_service import save_variant_quantities, stock_snapshot

        return cls(stock_snapshot(stock_ids), persist=save_variant_quantities)

    def get(self, stock_id) -> dict | None:
        return self._stocks.get(stock_id)

    def stocks(self) -> list[dict]:
        return list(self._stocks.values())

    @staticmethod
    def find_variant(stock: dict, color: str) -> dict | None:
        wanted = (color or "").strip().casefold()
        for variant in stock.get("color_variants", []):
            if (variant.get("color") or "").strip().casefold() == wanted:
                return variant
        return None

    @staticmethod
    def _find_size(variant: dict, size: str) -> dict | None:
        for entry in variant.get("size_quantities", []):
            if entry.get("size") == size:
                return entry
        return None

    def check_stock(self, stock_id, color: str, size: str) -> int:
        stock = self.get(stock_id)
        if stock is None:
            return 0
        variant = self.find_variant(stock, color)
        if variant is None:
            return 0
        entry = self._find_size(variant, size)
        if entry is None:
            return 0
        return int(entry.get("quantity", 0))

    def reduce_stock(self, stock_id, color: str, size: str, quantity: int) -> StockAdjustment:
        return self._adjust(REDUCE, stock_id, color, size, quantity)

    def restore_stock(self, stock_id, color: str, size: str, quantity: int) -> StockAdjustment:
        return self._adjust(RESTORE, stock_id, color, size, quantity)

    def restore_multiple(self, items: Iterable[dict]) -> list[StockAdjustment]:
        """
        Restore a batch of {stock_id, color, size, quantity} entries,
        processed grouped by stock id.
        """
        grouped: dict = {}
        for item in items:
            grouped.setdefault(item["stock_id"], []).append(item)

        results: list[StockAdjustment] = []
        for stock_id, entries in grouped.items():
            for entry in entries:
                results.append(
                    self.restore_stock(stock_id, entry["color"], entry["size"], int(entry["quantity"]))
                )

        if results and not any(r.applied for r in results):
            logger.warning("Failed to restore any of %d inventory items", len(results))
        else:
            logger.info(
                "Restored inventory for %d/%d items",
                sum(1 for r in results if r.applied),
                len(results),
            )
        return results

    def _adjust(self, operation: str, stock_id, color: str, size: str, quantity: int) -> StockAdjustment:
        result = StockAdjustment(
            stock_id=stock_id,
            color=color,
            size=size,
            quantity=int(quantity),
            operation=operation,
        )

        if result.quantity <= 0:
            result.error = "Quantity must be positive"
            return result

        stock = self.get(stock_id)
        if stock is None:
            logger.warning("Stock %s not found for %s", stock_id, operation)
            result.error = "Stock not found"
            return result

        variant = self.find_variant(stock, color)
        if variant is None:
            logger.warning("Color variant %r not found on stock %s", color, stock_id)
            result.error = "Color variant not found"
            return result

        entry = self._find_size(variant, size)
        if entry is None:
            logger.warning("Size %r not found on stock %s variant %r", size, stock_id, color)
            result.error = "Size not found"
            return result

        previous = int(entry.get("quantity", 0))
        if operation == REDUCE:
            updated = max(0, previous - result.quantity)
        else:
            updated = previous + result.quantity

        entry["quantity"] = updated
        result.previous_quantity = previous
        result.new_quantity = updated
        result.applied = True

        if self._persist is None:
            return result

        try:
            self._persist(stock_id, variant)
            result.persisted = True
        except Exception as exc:
            # Optimistic local state is kept; the next full save reconciles it
            logger.exception("Failed to persist %s for stock %s", operation, stock_id)
            result.error = str(exc) or exc.__class__.__name__
        return result
