"""Builds an InventoryStore from the YAML demo dataset."""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Optional, Union

import yaml

from stockledger.config import DEFAULT_SEED_FILE
from stockledger.ledger.reporting import DEFAULT_TAX_RATE
from stockledger.ledger.store import InventoryStore
from stockledger.models.inventory import (
    Dealer,
    InventoryRecord,
    Product,
    SaleType,
    ShippingMethod,
    Transaction,
    TransactionItem,
    Warehouse,
    WarehouseType,
)

logger = logging.getLogger(__name__)


def load_seed(path: Union[str, Path, None] = None) -> dict:
    """Reads the seed file; a missing or empty file yields an empty dataset."""
    path = Path(path or DEFAULT_SEED_FILE)
    if not path.exists():
        logger.warning("Seed file not found: %s", path)
        return {}
    with path.open(encoding="utf-8") as f:
        return yaml.safe_load(f) or {}


def _transaction(data: dict) -> Transaction:
    return Transaction(
        id=data["id"],
        date=str(data["date"]),
        dealer_id=data["dealer_id"],
        dealer_name=data["dealer_name"],
        sale_type=SaleType(data["sale_type"]),
        shipping_method=ShippingMethod(data.get("shipping_method", ShippingMethod.NONE.value)),
        shipping_cost=data.get("shipping_cost", 0),
        items=[TransactionItem(**item) for item in data.get("items", [])],
        total_value=data["total_value"],
        note=data.get("note", ""),
    )


def build_store(seed: Optional[dict] = None, tax_rate: float = DEFAULT_TAX_RATE) -> InventoryStore:
    seed = seed or {}
    warehouses = [
        Warehouse(
            id=w["id"],
            name=w["name"],
            location=w.get("location", ""),
            type=WarehouseType(w.get("type", WarehouseType.INTERNAL.value)),
        )
        for w in seed.get("warehouses", [])
    ]

    store = InventoryStore(
        products=[Product(**p) for p in seed.get("products", [])],
        warehouses=warehouses,
        dealers=[Dealer(**d) for d in seed.get("dealers", [])],
        inventory=[InventoryRecord(**r) for r in seed.get("inventory", [])],
        transactions=[_transaction(tx) for tx in seed.get("transactions", [])],
        tax_rate=tax_rate,
    )
    logger.info(
        "Store loaded: %d products, %d warehouses, %d dealers",
        len(store.catalog),
        len(store.warehouses.all()),
        len(store.partners.all()),
    )
    return store
