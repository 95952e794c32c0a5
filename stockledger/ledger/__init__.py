from stockledger.ledger.catalog import Catalog
from stockledger.ledger.errors import (
    DuplicateRecordError,
    ExternalServiceError,
    InsufficientStockError,
    ProductLookupError,
    RecordNotFoundError,
    StockLedgerError,
    ValidationError,
)
from stockledger.ledger.inventory_ledger import InventoryLedger
from stockledger.ledger.registry import PartnerRegistry, WarehouseRegistry
from stockledger.ledger.reporting import Reporting
from stockledger.ledger.store import InventoryStore
from stockledger.ledger.transaction_engine import TransactionEngine

__all__ = [
    "Catalog",
    "DuplicateRecordError",
    "ExternalServiceError",
    "InsufficientStockError",
    "InventoryLedger",
    "InventoryStore",
    "PartnerRegistry",
    "ProductLookupError",
    "RecordNotFoundError",
    "Reporting",
    "StockLedgerError",
    "TransactionEngine",
    "ValidationError",
    "WarehouseRegistry",
]
