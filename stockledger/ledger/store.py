"""InventoryStore - the single entry point callers use to read and mutate state.

Holds products, warehouses, dealers, stock and transaction history in
memory. Mutations are serialized through one lock; each either completes
or leaves state unchanged.
"""

from __future__ import annotations

import logging
import threading
from typing import Iterable, Optional

from stockledger.ledger.catalog import Catalog
from stockledger.ledger.inventory_ledger import InventoryLedger
from stockledger.ledger.registry import PartnerRegistry, WarehouseRegistry
from stockledger.ledger.reporting import DEFAULT_TAX_RATE, DateLike, Reporting
from stockledger.ledger.transaction_engine import TransactionEngine
from stockledger.models.inventory import (
    BatchImportResult,
    BillingStatement,
    ConsignmentStock,
    Dealer,
    ImportRow,
    InventoryOverview,
    InventoryRecord,
    Product,
    SettlementExport,
    StockDelta,
    Transaction,
    TransactionDraft,
    Warehouse,
)

logger = logging.getLogger(__name__)


class InventoryStore:
    """Repository over catalog, registries, ledger and history."""

    def __init__(
        self,
        products: Optional[list[Product]] = None,
        warehouses: Optional[list[Warehouse]] = None,
        dealers: Optional[list[Dealer]] = None,
        inventory: Optional[Iterable[InventoryRecord]] = None,
        transactions: Optional[list[Transaction]] = None,
        tax_rate: float = DEFAULT_TAX_RATE,
    ) -> None:
        self._lock = threading.RLock()
        self.catalog = Catalog(products)
        self.warehouses = WarehouseRegistry(warehouses)
        self.partners = PartnerRegistry(self.warehouses, dealers)
        self.ledger = InventoryLedger(inventory)
        self.engine = TransactionEngine(
            self.catalog, self.warehouses, self.partners, self.ledger, transactions
        )
        self.reporting = Reporting(
            self.catalog,
            self.warehouses,
            self.partners,
            self.ledger,
            history=self.engine.history,
            tax_rate=tax_rate,
        )

    # --- Transactions ---

    def submit_transaction(self, draft: TransactionDraft) -> Transaction:
        with self._lock:
            return self.engine.submit(draft)

    def update_transaction_note(self, transaction_id: str, note: str) -> Transaction:
        with self._lock:
            return self.engine.update_note(transaction_id, note)

    def list_transactions(self) -> list[Transaction]:
        with self._lock:
            return self.engine.list_transactions()

    # --- Stock ---

    def get_stock(self, product_id: str, warehouse_id: Optional[str] = None) -> int:
        """Quantity at one warehouse, or the total over all warehouses."""
        with self._lock:
            if warehouse_id:
                return self.ledger.get(product_id, warehouse_id)
            return self.ledger.get_total(product_id)

    def correct_inventory(self, product_id: str, warehouse_id: str, new_quantity: int) -> None:
        """Manual override of a stock cell; always succeeds."""
        with self._lock:
            before = self.ledger.get(product_id, warehouse_id)
            self.ledger.set_absolute(product_id, warehouse_id, new_quantity, reference="manual")
            logger.info(
                "Inventory corrected: %s/%s %d -> %d", product_id, warehouse_id, before, new_quantity
            )

    def batch_import(self, rows: Iterable[ImportRow]) -> BatchImportResult:
        """Updates product metadata and adds stock for rows matched by SKU.

        Unmatched SKUs are skipped. Empty or zero name/price values keep the
        current product value.
        """
        with self._lock:
            updated_products: dict[str, Product] = {}
            deltas: list[StockDelta] = []
            skipped: list[str] = []

            for row in rows:
                product = self.catalog.find_by_sku(row.sku)
                if not product:
                    logger.warning("Import row skipped, unknown SKU: %s", row.sku)
                    skipped.append(row.sku)
                    continue

                current = updated_products.get(product.id, product)
                updated_products[product.id] = Product(
                    id=current.id,
                    sku=current.sku,
                    barcode=current.barcode,
                    name=row.name or current.name,
                    category=current.category,
                    price_retail=row.retail or current.price_retail,
                    price_moq1=row.moq1 or current.price_moq1,
                    price_moq2=row.moq2 or current.price_moq2,
                    min_stock=current.min_stock,
                )
                deltas.append(StockDelta(product.id, row.warehouse_id, int(row.qty or 0)))

            for product in updated_products.values():
                self.catalog.update(product)
            self.ledger.apply_deltas(deltas, operation_type="import", reference="batch_import")

            result = BatchImportResult(updated_count=len(deltas), skipped_skus=skipped)
            logger.info(
                "Batch import: %d rows updated, %d skipped", result.updated_count, len(skipped)
            )
            return result

    # --- Dealers ---

    def add_dealer(self, dealer: Dealer) -> Dealer:
        with self._lock:
            return self.partners.add_dealer(dealer)

    def update_dealer(self, dealer: Dealer) -> Dealer:
        with self._lock:
            return self.partners.update_dealer(dealer)

    def remove_dealer(self, dealer_id: str) -> Optional[Dealer]:
        with self._lock:
            return self.partners.remove_dealer(dealer_id)

    # --- Products ---

    def add_product(self, product: Product) -> Product:
        with self._lock:
            return self.catalog.add(product)

    def update_product(self, product: Product) -> Product:
        with self._lock:
            return self.catalog.update(product)

    # --- Reports ---

    def generate_statement(
        self, dealer_id: str, start_date: DateLike, end_date: DateLike
    ) -> BillingStatement:
        with self._lock:
            return self.reporting.generate_statement(dealer_id, start_date, end_date)

    def generate_settlement_export(
        self, dealer_id: str, start_date: DateLike, end_date: DateLike
    ) -> SettlementExport:
        with self._lock:
            return self.reporting.generate_settlement_export(dealer_id, start_date, end_date)

    def get_consignment_stock(self, dealer_id: str) -> ConsignmentStock:
        with self._lock:
            return self.reporting.get_consignment_stock(dealer_id)

    def inventory_overview(self) -> InventoryOverview:
        with self._lock:
            return self.reporting.inventory_overview()

    def analysis_context(self, recent: int = 5) -> dict:
        """Plain snapshot of state handed to the AI analyst."""
        with self._lock:
            return {
                "warehouses": self.warehouses.all(),
                "products": self.catalog.all(),
                "inventory": self.ledger.records(),
                "transactions": self.engine.list_transactions()[:recent],
            }
