"""Transaction Engine - validates shipment transactions and applies them.

Each sale type maps to a list of ledger deltas:

- Buyout: source -qty
- Consignment transfer: source -qty, dealer warehouse +qty
- Consignment settlement: dealer warehouse -qty (goods left the tracked boundary)

A transaction is validated completely before anything is touched. On
failure the ledger, the registries and the history are left unchanged.
"""

from __future__ import annotations

import copy
import dataclasses
import logging
import uuid
from collections import defaultdict
from datetime import date
from typing import Callable, Optional

from stockledger.ledger.catalog import Catalog
from stockledger.ledger.errors import (
    InsufficientStockError,
    RecordNotFoundError,
    ValidationError,
)
from stockledger.ledger.inventory_ledger import InventoryLedger
from stockledger.ledger.registry import PartnerRegistry, WarehouseRegistry
from stockledger.models.inventory import (
    SaleType,
    ShippingMethod,
    StockDelta,
    Transaction,
    TransactionDraft,
    TransactionItem,
    dealer_warehouse_id,
)

logger = logging.getLogger(__name__)


# --- Sale type policies ---

def _buyout_deltas(items: list[TransactionItem]) -> list[StockDelta]:
    return [StockDelta(i.product_id, i.warehouse_id, -i.quantity) for i in items]


def _transfer_deltas(items: list[TransactionItem]) -> list[StockDelta]:
    deltas = []
    for i in items:
        deltas.append(StockDelta(i.product_id, i.warehouse_id, -i.quantity))
        deltas.append(StockDelta(i.product_id, i.target_warehouse_id, i.quantity))
    return deltas


def _settlement_deltas(items: list[TransactionItem]) -> list[StockDelta]:
    return [StockDelta(i.product_id, i.warehouse_id, -i.quantity) for i in items]


SALE_TYPE_POLICIES: dict[SaleType, Callable[[list[TransactionItem]], list[StockDelta]]] = {
    SaleType.BUYOUT: _buyout_deltas,
    SaleType.CONSIGNMENT_TRANSFER: _transfer_deltas,
    SaleType.CONSIGNMENT_SETTLEMENT: _settlement_deltas,
}


def stock_deltas(sale_type: SaleType, items: list[TransactionItem]) -> list[StockDelta]:
    """Ledger deltas a transaction of the given type produces."""
    return SALE_TYPE_POLICIES[sale_type](items)


def _coerce_enum(enum_cls, value, field_name: str):
    try:
        return enum_cls(value)
    except ValueError:
        raise ValidationError(f"Unknown {field_name}: {value}") from None


class TransactionEngine:
    """Validates drafts, mutates the ledger and keeps the transaction history."""

    def __init__(
        self,
        catalog: Catalog,
        warehouses: WarehouseRegistry,
        partners: PartnerRegistry,
        ledger: InventoryLedger,
        history: Optional[list[Transaction]] = None,
    ) -> None:
        self._catalog = catalog
        self._warehouses = warehouses
        self._partners = partners
        self._ledger = ledger
        # Newest first; never reordered or shrunk. Callers only ever see copies.
        self._history: list[Transaction] = copy.deepcopy(list(history or []))

    # --- Validation ---

    def validate(self, draft: TransactionDraft) -> tuple[SaleType, list[TransactionItem]]:
        """Checks a draft and returns its sale type and normalized items.

        Raises:
            ValidationError: dealer, items or fields are invalid.
            InsufficientStockError: a source warehouse cannot cover the request.
        """
        if not draft.dealer_id or draft.dealer_id not in self._partners:
            raise ValidationError(f"Dealer not found: {draft.dealer_id}")

        sale_type = _coerce_enum(SaleType, draft.sale_type, "sale type")
        _coerce_enum(ShippingMethod, draft.shipping_method, "shipping method")

        try:
            date.fromisoformat(draft.date)
        except (TypeError, ValueError):
            raise ValidationError(f"Invalid transaction date: {draft.date!r}") from None

        if draft.shipping_cost is not None and draft.shipping_cost < 0:
            raise ValidationError("Shipping cost cannot be negative")

        if not draft.items:
            raise ValidationError("Transaction needs at least one item")

        for index, item in enumerate(draft.items):
            if not item.product_id or not item.warehouse_id or item.quantity is None:
                raise ValidationError(f"Item {index + 1} is missing product, warehouse or quantity")
            # bool is an int subclass
            if isinstance(item.quantity, bool) or not isinstance(item.quantity, int) or item.quantity < 1:
                raise ValidationError(f"Item {index + 1} quantity must be a positive integer: {item.quantity!r}")

        items = [self._normalize_item(item, sale_type, draft.dealer_id) for item in draft.items]
        self._check_stock(items)
        return sale_type, items

    def _normalize_item(
        self, item: TransactionItem, sale_type: SaleType, dealer_id: str
    ) -> TransactionItem:
        """Copies an item, fixing the transfer target and the price snapshot."""
        normalized = dataclasses.replace(item)

        if sale_type == SaleType.CONSIGNMENT_TRANSFER:
            # Destination is always the dealer's warehouse, whatever the caller sent
            normalized.target_warehouse_id = dealer_warehouse_id(dealer_id)
            if normalized.warehouse_id == normalized.target_warehouse_id:
                raise ValidationError(
                    f"Source and target warehouse are the same: {normalized.warehouse_id}"
                )
        else:
            normalized.target_warehouse_id = None

        if normalized.price_at_sale is None:
            product = self._catalog.get(normalized.product_id)
            normalized.price_at_sale = product.price_retail if product else 0

        return normalized

    def _check_stock(self, items: list[TransactionItem]) -> None:
        """Every source cell must hold the total quantity requested from it."""
        requested: dict[tuple[str, str], int] = defaultdict(int)
        for item in items:
            requested[(item.product_id, item.warehouse_id)] += item.quantity

        for (product_id, warehouse_id), quantity in requested.items():
            available = self._ledger.get(product_id, warehouse_id)
            if quantity > available:
                raise InsufficientStockError(
                    product_id=product_id,
                    warehouse_id=warehouse_id,
                    requested=quantity,
                    available=available,
                    product_name=self._catalog.name_of(product_id),
                )

    # --- Application ---

    def submit(self, draft: TransactionDraft) -> Transaction:
        """Validates and applies a draft; all or nothing."""
        try:
            sale_type, items = self.validate(draft)
        except ValidationError as e:
            logger.warning("Transaction rejected for dealer %s: %s", draft.dealer_id, e)
            raise

        dealer = self._partners.get(draft.dealer_id)
        shipping_method = ShippingMethod(draft.shipping_method)
        shipping_cost = draft.shipping_cost or 0

        if sale_type == SaleType.CONSIGNMENT_SETTLEMENT:
            # No physical shipment happens on settlement
            shipping_method = ShippingMethod.NONE
            shipping_cost = 0

        transaction = Transaction(
            id=f"tx-{uuid.uuid4().hex[:12]}",
            date=draft.date,
            dealer_id=dealer.id,
            dealer_name=dealer.name,
            sale_type=sale_type,
            shipping_method=shipping_method,
            shipping_cost=shipping_cost,
            items=items,
            total_value=sum(i.quantity * i.price_at_sale for i in items),
            note=draft.note or "",
        )

        if sale_type == SaleType.CONSIGNMENT_TRANSFER:
            self._partners.ensure_dealer_warehouse(dealer.id)

        self._ledger.apply_deltas(
            stock_deltas(sale_type, items),
            operation_type=sale_type.value,
            reference=transaction.id,
        )
        self._history.insert(0, transaction)

        logger.info(
            "Transaction applied: %s %s dealer=%s items=%d total=%s",
            transaction.id,
            sale_type.value,
            dealer.id,
            len(items),
            transaction.total_value,
        )
        return copy.deepcopy(transaction)

    # --- History ---

    def history(self) -> list[Transaction]:
        """Transactions in storage order, newest submission first."""
        return copy.deepcopy(self._history)

    def list_transactions(self) -> list[Transaction]:
        """Transactions sorted by date, most recent first."""
        return sorted(self.history(), key=lambda tx: tx.date, reverse=True)

    def get_transaction(self, transaction_id: str) -> Optional[Transaction]:
        tx = self._find(transaction_id)
        return copy.deepcopy(tx) if tx else None

    def _find(self, transaction_id: str) -> Optional[Transaction]:
        for tx in self._history:
            if tx.id == transaction_id:
                return tx
        return None

    def update_note(self, transaction_id: str, note: str) -> Transaction:
        """Edits the note, the only field that may change after submission."""
        tx = self._find(transaction_id)
        if not tx:
            raise RecordNotFoundError(f"Transaction not found: {transaction_id}")
        tx.note = note
        return copy.deepcopy(tx)

    # --- Draft helpers ---

    def add_scanned_item(self, draft: TransactionDraft, code: str) -> TransactionItem:
        """Adds one unit of the product matching a scanned barcode or SKU.

        A miss raises ProductLookupError and leaves the draft untouched.
        """
        product = self._catalog.lookup_code(code)

        warehouses = self._warehouses.all()
        source_id = warehouses[0].id if warehouses else None
        target_id = None

        if draft.dealer_id:
            dealer_wh_id = dealer_warehouse_id(draft.dealer_id)
            if draft.sale_type == SaleType.CONSIGNMENT_SETTLEMENT and dealer_wh_id in self._warehouses:
                source_id = dealer_wh_id
            if draft.sale_type == SaleType.CONSIGNMENT_TRANSFER:
                target_id = dealer_wh_id

        item = TransactionItem(
            product_id=product.id,
            warehouse_id=source_id,
            quantity=1,
            price_at_sale=product.price_retail,
            target_warehouse_id=target_id,
        )

        for index, existing in enumerate(draft.items):
            if not existing.product_id:
                draft.items[index] = item
                return item
        draft.items.append(item)
        return item

    def add_consignment_item(self, draft: TransactionDraft, product_id: str) -> TransactionItem:
        """Picks one more unit from the dealer's consignment stock for settlement."""
        if not draft.dealer_id:
            raise ValidationError("Select a dealer before picking consignment stock")

        product = self._catalog.get(product_id)
        if not product:
            raise RecordNotFoundError(f"Product not found: {product_id}")

        warehouse_id = dealer_warehouse_id(draft.dealer_id)
        available = self._ledger.get(product_id, warehouse_id)

        for item in draft.items:
            if item.product_id == product_id and item.warehouse_id == warehouse_id:
                if item.quantity < available:
                    item.quantity += 1
                return item

        if available < 1:
            raise InsufficientStockError(
                product_id=product_id,
                warehouse_id=warehouse_id,
                requested=1,
                available=available,
                product_name=product.name,
            )

        item = TransactionItem(
            product_id=product_id,
            warehouse_id=warehouse_id,
            quantity=1,
            price_at_sale=product.price_retail,
        )
        draft.items.append(item)
        return item
