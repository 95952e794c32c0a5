"""Ledger error taxonomy."""

from __future__ import annotations

from typing import Optional


class StockLedgerError(Exception):
    """Base class for all ledger errors."""
    pass


class ValidationError(StockLedgerError):
    """Transaction or record validation failure."""
    pass


class InsufficientStockError(ValidationError):
    """Requested quantity exceeds what the source warehouse holds."""

    def __init__(
        self,
        product_id: str,
        warehouse_id: str,
        requested: int,
        available: int,
        product_name: Optional[str] = None,
    ):
        self.product_id = product_id
        self.warehouse_id = warehouse_id
        self.requested = requested
        self.available = available
        self.product_name = product_name or product_id
        super().__init__(
            f"Insufficient stock for {self.product_name}: "
            f"available={available} at {warehouse_id}, requested={requested}"
        )


class DuplicateRecordError(ValidationError):
    """A record with the same id already exists."""
    pass


class RecordNotFoundError(StockLedgerError, LookupError):
    """Referenced record does not exist."""
    pass


class ProductLookupError(RecordNotFoundError):
    """No product matches a scanned barcode or SKU."""

    def __init__(self, code: str):
        self.code = code
        super().__init__(f"No product found for code: {code}")


class ExternalServiceError(StockLedgerError):
    """Call to an external service (Bedrock) failed."""
    pass
