"""Inventory Ledger - on-hand quantity per (product, warehouse).

- Unknown pairs read as 0
- Deductions are not floored: a pair may go negative and stay tracked
- Records are never deleted, a zero quantity is kept
- Every mutation is written to the stock audit log
"""

from __future__ import annotations

import logging
import uuid
from typing import Iterable, Optional

from stockledger.models.inventory import AuditLogEntry, InventoryRecord, StockDelta

logger = logging.getLogger(__name__)


class InventoryLedger:
    """Sparse mapping of (product_id, warehouse_id) to an integer quantity."""

    def __init__(self, records: Optional[Iterable[InventoryRecord]] = None) -> None:
        # {(product_id, warehouse_id): quantity}, insertion order = creation order
        self._stock: dict[tuple[str, str], int] = {}
        self._audit_log: list[AuditLogEntry] = []
        for record in records or []:
            self._stock[(record.product_id, record.warehouse_id)] = int(record.quantity)

    # --- Lookups ---

    def get(self, product_id: str, warehouse_id: str) -> int:
        return self._stock.get((product_id, warehouse_id), 0)

    def get_total(self, product_id: str) -> int:
        """Sum of a product's quantity over all warehouses."""
        return sum(qty for (p, _), qty in self._stock.items() if p == product_id)

    def warehouse_total(self, warehouse_id: str) -> int:
        return sum(qty for (_, w), qty in self._stock.items() if w == warehouse_id)

    def has_record(self, product_id: str, warehouse_id: str) -> bool:
        return (product_id, warehouse_id) in self._stock

    def records(self, warehouse_id: Optional[str] = None) -> list[InventoryRecord]:
        return [
            InventoryRecord(product_id=p, warehouse_id=w, quantity=qty)
            for (p, w), qty in self._stock.items()
            if warehouse_id is None or w == warehouse_id
        ]

    def snapshot(self) -> dict[tuple[str, str], int]:
        return dict(self._stock)

    # --- Mutations ---

    def adjust(
        self, product_id: str, warehouse_id: str, delta: int, reference: Optional[str] = None
    ) -> int:
        """Adds delta to the pair's quantity, creating the record if absent."""
        self.apply_deltas([StockDelta(product_id, warehouse_id, delta)], reference=reference)
        return self.get(product_id, warehouse_id)

    def set_absolute(
        self, product_id: str, warehouse_id: str, new_quantity: int, reference: Optional[str] = None
    ) -> int:
        """Manual correction: overwrites the quantity unconditionally."""
        key = (product_id, warehouse_id)
        before = self._stock.get(key, 0)
        self._stock[key] = int(new_quantity)
        self._log_change("correction", product_id, warehouse_id, before, int(new_quantity), reference)
        return int(new_quantity)

    def apply_deltas(
        self,
        deltas: Iterable[StockDelta],
        operation_type: str = "adjust",
        reference: Optional[str] = None,
    ) -> None:
        """Applies a batch of deltas as one unit.

        The new state is computed on a copy and swapped in at the end, so
        readers never see a partially applied batch.
        """
        staged = dict(self._stock)
        changes: list[tuple[str, str, int, int]] = []

        for d in deltas:
            key = (d.product_id, d.warehouse_id)
            before = staged.get(key, 0)
            after = before + int(d.delta)
            staged[key] = after
            changes.append((d.product_id, d.warehouse_id, before, after))
            logger.debug("Stock delta %s/%s: %+d -> %d", d.product_id, d.warehouse_id, d.delta, after)

        self._stock = staged
        for product_id, warehouse_id, before, after in changes:
            self._log_change(operation_type, product_id, warehouse_id, before, after, reference)

    # --- Audit log ---

    def _log_change(
        self,
        operation_type: str,
        product_id: str,
        warehouse_id: str,
        before: int,
        after: int,
        reference: Optional[str],
    ) -> AuditLogEntry:
        entry = AuditLogEntry(
            entry_id=str(uuid.uuid4()),
            operation_type=operation_type,
            product_id=product_id,
            warehouse_id=warehouse_id,
            quantity_before=before,
            quantity_after=after,
            change_amount=after - before,
            reference=reference,
        )
        self._audit_log.append(entry)
        return entry

    def get_audit_log(
        self,
        product_id: Optional[str] = None,
        warehouse_id: Optional[str] = None,
    ) -> list[AuditLogEntry]:
        """Audit log entries, optionally filtered."""
        entries = self._audit_log
        if product_id:
            entries = [e for e in entries if e.product_id == product_id]
        if warehouse_id:
            entries = [e for e in entries if e.warehouse_id == warehouse_id]
        return list(entries)
