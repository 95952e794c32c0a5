"""Product catalog."""

from __future__ import annotations

import logging
from typing import Optional

from stockledger.ledger.errors import (
    DuplicateRecordError,
    ProductLookupError,
    RecordNotFoundError,
)
from stockledger.models.inventory import Product

logger = logging.getLogger(__name__)


class Catalog:
    """Product definitions keyed by id, in insertion order."""

    def __init__(self, products: Optional[list[Product]] = None) -> None:
        self._products: dict[str, Product] = {}
        for product in products or []:
            self.add(product)

    def add(self, product: Product) -> Product:
        """Adds a product. SKU and barcode uniqueness is left to the caller."""
        if product.id in self._products:
            raise DuplicateRecordError(f"Product already exists: {product.id}")

        if self.find_by_sku(product.sku):
            logger.warning("Duplicate SKU added: %s (%s)", product.sku, product.id)
        if product.barcode and self.find_by_barcode(product.barcode):
            logger.warning("Duplicate barcode added: %s (%s)", product.barcode, product.id)

        self._products[product.id] = product
        return product

    def update(self, product: Product) -> Product:
        if product.id not in self._products:
            raise RecordNotFoundError(f"Product not found: {product.id}")
        self._products[product.id] = product
        return product

    def get(self, product_id: str) -> Optional[Product]:
        return self._products.get(product_id)

    def name_of(self, product_id: str) -> str:
        """Display name, falling back to the id for unknown products."""
        product = self._products.get(product_id)
        return product.name if product else product_id

    def find_by_sku(self, sku: str) -> Optional[Product]:
        for product in self._products.values():
            if product.sku == sku:
                return product
        return None

    def find_by_barcode(self, barcode: str) -> Optional[Product]:
        for product in self._products.values():
            if product.barcode == barcode:
                return product
        return None

    def lookup_code(self, code: str) -> Product:
        """Resolves a scanned code matching either a barcode or a SKU."""
        code = code.strip()
        for product in self._products.values():
            if product.barcode == code or product.sku == code:
                return product
        raise ProductLookupError(code)

    def all(self) -> list[Product]:
        return list(self._products.values())

    def __contains__(self, product_id: object) -> bool:
        return product_id in self._products

    def __len__(self) -> int:
        return len(self._products)
