"""In-memory stock, consignment and billing ledger for a small distributor."""

from stockledger.ledger.store import InventoryStore

__all__ = ["InventoryStore"]
__version__ = "0.1.0"
