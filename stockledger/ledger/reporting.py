"""Reporting - billing statements, settlement exports and stock snapshots.

Everything here is derived from transaction history and the ledger on
every call. Nothing is cached and nothing is mutated.
"""

from __future__ import annotations

import logging
from datetime import date, datetime, timedelta
from decimal import ROUND_HALF_UP, Decimal
from typing import Callable, Optional, Union

from stockledger.ledger.catalog import Catalog
from stockledger.ledger.errors import ValidationError
from stockledger.ledger.inventory_ledger import InventoryLedger
from stockledger.ledger.registry import PartnerRegistry, WarehouseRegistry
from stockledger.models.inventory import (
    BILLABLE_SALE_TYPES,
    BillingStatement,
    ConsignmentStock,
    ConsignmentStockLine,
    Dealer,
    InventoryOverview,
    ProductSettlementSummary,
    SaleType,
    SettlementExport,
    Transaction,
    WarehouseType,
    dealer_warehouse_id,
)

logger = logging.getLogger(__name__)

DEFAULT_TAX_RATE = 0.05
UNKNOWN_DEALER_NAME = "Unknown"

DateLike = Union[str, date]


def round_currency(amount: float) -> int:
    """Rounds to the nearest whole currency unit, halves away from zero."""
    return int(Decimal(str(amount)).quantize(Decimal("1"), rounding=ROUND_HALF_UP))


def _to_date(value: DateLike) -> date:
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    try:
        return date.fromisoformat(value)
    except (TypeError, ValueError):
        raise ValidationError(f"Invalid date: {value!r}") from None


class Reporting:
    """Read-only queries over history and stock."""

    def __init__(
        self,
        catalog: Catalog,
        warehouses: WarehouseRegistry,
        partners: PartnerRegistry,
        ledger: InventoryLedger,
        history: Callable[[], list[Transaction]],
        tax_rate: float = DEFAULT_TAX_RATE,
    ) -> None:
        self._catalog = catalog
        self._warehouses = warehouses
        self._partners = partners
        self._ledger = ledger
        self._history = history
        self.tax_rate = tax_rate

    # --- Filtering ---

    def _filter(
        self,
        dealer_id: str,
        start_date: DateLike,
        end_date: DateLike,
        sale_types: frozenset[SaleType],
    ) -> list[Transaction]:
        start, end = _to_date(start_date), _to_date(end_date)
        return [
            tx for tx in self._history()
            if tx.dealer_id == dealer_id
            and tx.sale_type in sale_types
            and start <= _to_date(tx.date) <= end
        ]

    def _dealer_snapshot(self, dealer_id: str) -> Dealer:
        """Active dealer, or one rebuilt from history for removed dealers."""
        dealer = self._partners.get(dealer_id)
        if dealer:
            return dealer
        for tx in self._history():
            if tx.dealer_id == dealer_id:
                return Dealer(id=dealer_id, name=tx.dealer_name)
        return Dealer(id=dealer_id, name=UNKNOWN_DEALER_NAME)

    # --- Billing statement ---

    def generate_statement(
        self, dealer_id: str, start_date: DateLike, end_date: DateLike
    ) -> BillingStatement:
        """Billable transactions (buyouts and settlements) for a dealer and period.

        Consignment transfers are not billable. Tax applies to goods only.
        """
        transactions = self._filter(dealer_id, start_date, end_date, BILLABLE_SALE_TYPES)

        total_goods = sum(tx.total_value for tx in transactions)
        total_shipping = sum(tx.shipping_cost or 0 for tx in transactions)
        tax = round_currency(total_goods * self.tax_rate)
        logger.debug(
            "Statement %s %s..%s: %d transactions", dealer_id, start_date, end_date, len(transactions)
        )

        return BillingStatement(
            dealer=self._dealer_snapshot(dealer_id),
            start_date=_to_date(start_date).isoformat(),
            end_date=_to_date(end_date).isoformat(),
            transactions=transactions,
            total_goods_amount=total_goods,
            total_shipping=total_shipping,
            tax_amount=tax,
            grand_total=total_goods + tax + total_shipping,
        )

    # --- Settlement export ---

    def generate_settlement_export(
        self, dealer_id: str, start_date: DateLike, end_date: DateLike
    ) -> SettlementExport:
        """Settlement transactions with a per-product reconciliation summary."""
        transactions = self._filter(
            dealer_id, start_date, end_date, frozenset({SaleType.CONSIGNMENT_SETTLEMENT})
        )

        summary: dict[str, ProductSettlementSummary] = {}
        total = 0
        for tx in transactions:
            for item in tx.items:
                subtotal = item.subtotal
                total += subtotal
                line = summary.get(item.product_id)
                if line is None:
                    line = ProductSettlementSummary(
                        product_id=item.product_id,
                        name=self._catalog.name_of(item.product_id),
                    )
                    summary[item.product_id] = line
                line.quantity += item.quantity
                line.subtotal += subtotal

        return SettlementExport(
            dealer_id=dealer_id,
            dealer_name=self._dealer_snapshot(dealer_id).name,
            start_date=_to_date(start_date).isoformat(),
            end_date=_to_date(end_date).isoformat(),
            transactions=transactions,
            total_amount=total,
            product_summary=list(summary.values()),
        )

    # --- Consignment stock ---

    def get_consignment_stock(self, dealer_id: str) -> ConsignmentStock:
        """Positive stock held at the dealer's warehouse, valued at retail."""
        warehouse_id = dealer_warehouse_id(dealer_id)
        lines = []
        for record in self._ledger.records(warehouse_id):
            if record.quantity <= 0:
                continue
            product = self._catalog.get(record.product_id)
            if not product:
                continue
            lines.append(
                ConsignmentStockLine(
                    product_id=record.product_id,
                    warehouse_id=warehouse_id,
                    quantity=record.quantity,
                    product=product,
                    retail_value=record.quantity * product.price_retail,
                )
            )

        return ConsignmentStock(
            dealer_id=dealer_id,
            warehouse_id=warehouse_id,
            lines=lines,
            total_quantity=sum(line.quantity for line in lines),
            total_retail_value=sum(line.retail_value for line in lines),
        )

    # --- Inventory overview ---

    def inventory_overview(self) -> InventoryOverview:
        """Stock totals, low-stock classification and valuation split."""
        records = self._ledger.records()

        def retail(product_id: str) -> float:
            product = self._catalog.get(product_id)
            return product.price_retail if product else 0

        out_of_stock, low_stock, safe_stock = [], [], []
        for product in self._catalog.all():
            total = self._ledger.get_total(product.id)
            if total == 0:
                out_of_stock.append(product.id)
            elif 0 < total < product.min_stock:
                low_stock.append(product.id)
            elif total >= product.min_stock:
                safe_stock.append(product.id)

        internal_value = external_value = 0
        for r in records:
            warehouse_type = self._warehouses.type_of(r.warehouse_id)
            if warehouse_type == WarehouseType.INTERNAL:
                internal_value += retail(r.product_id) * r.quantity
            elif warehouse_type == WarehouseType.EXTERNAL:
                external_value += retail(r.product_id) * r.quantity

        return InventoryOverview(
            total_units=sum(r.quantity for r in records),
            total_retail_value=sum(retail(r.product_id) * r.quantity for r in records),
            out_of_stock=out_of_stock,
            low_stock=low_stock,
            safe_stock=safe_stock,
            units_by_warehouse={
                w.id: self._ledger.warehouse_total(w.id) for w in self._warehouses.all()
            },
            internal_value=internal_value,
            external_value=external_value,
        )

    def sales_trend(self, days: int = 30, today: Optional[DateLike] = None) -> list[tuple[str, float]]:
        """Daily billable goods value over the last `days` days, oldest first."""
        end = _to_date(today) if today else date.today()
        buckets: dict[str, float] = {
            (end - timedelta(days=offset)).isoformat(): 0 for offset in range(days - 1, -1, -1)
        }
        for tx in self._history():
            if tx.sale_type in BILLABLE_SALE_TYPES and tx.date in buckets:
                buckets[tx.date] += tx.total_value
        return list(buckets.items())
