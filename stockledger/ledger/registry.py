"""Warehouse and dealer registries.

Every dealer owns exactly one External consignment warehouse whose id is
derived from the dealer id. The pairing is maintained here:

- adding a dealer provisions its warehouse in the same step
- renaming a dealer renames the warehouse, the id never changes
- removing a dealer leaves the warehouse (and its stock) in place
"""

from __future__ import annotations

import logging
from typing import Optional

from stockledger.ledger.errors import DuplicateRecordError, RecordNotFoundError
from stockledger.models.inventory import (
    Dealer,
    Warehouse,
    WarehouseType,
    dealer_warehouse_id,
    dealer_warehouse_name,
)

logger = logging.getLogger(__name__)

DEALER_SITE_LOCATION = "Dealer Site"


class WarehouseRegistry:
    """Warehouse definitions indexed by id."""

    def __init__(self, warehouses: Optional[list[Warehouse]] = None) -> None:
        self._warehouses: dict[str, Warehouse] = {}
        for warehouse in warehouses or []:
            self.add(warehouse)

    def add(self, warehouse: Warehouse) -> Warehouse:
        if warehouse.id in self._warehouses:
            raise DuplicateRecordError(f"Warehouse already exists: {warehouse.id}")
        self._warehouses[warehouse.id] = warehouse
        return warehouse

    def get(self, warehouse_id: str) -> Optional[Warehouse]:
        return self._warehouses.get(warehouse_id)

    def rename(self, warehouse_id: str, name: str) -> None:
        warehouse = self._warehouses.get(warehouse_id)
        if warehouse:
            warehouse.name = name

    def name_of(self, warehouse_id: str) -> str:
        warehouse = self._warehouses.get(warehouse_id)
        return warehouse.name if warehouse else warehouse_id

    def type_of(self, warehouse_id: str) -> Optional[WarehouseType]:
        warehouse = self._warehouses.get(warehouse_id)
        return warehouse.type if warehouse else None

    def all(self) -> list[Warehouse]:
        return list(self._warehouses.values())

    def by_type(self, warehouse_type: WarehouseType) -> list[Warehouse]:
        return [w for w in self._warehouses.values() if w.type == warehouse_type]

    def __contains__(self, warehouse_id: object) -> bool:
        return warehouse_id in self._warehouses


class PartnerRegistry:
    """Active dealers, kept in sync with their consignment warehouses."""

    def __init__(
        self,
        warehouses: WarehouseRegistry,
        dealers: Optional[list[Dealer]] = None,
    ) -> None:
        self._warehouses = warehouses
        self._dealers: dict[str, Dealer] = {}
        for dealer in dealers or []:
            self.add_dealer(dealer)

    def add_dealer(self, dealer: Dealer) -> Dealer:
        """Registers a dealer and provisions its consignment warehouse."""
        if dealer.id in self._dealers:
            raise DuplicateRecordError(f"Dealer already exists: {dealer.id}")

        warehouse_id = dealer_warehouse_id(dealer.id)
        existing = self._warehouses.get(warehouse_id)
        if existing and existing.type != WarehouseType.EXTERNAL:
            raise DuplicateRecordError(
                f"Warehouse id {warehouse_id} is taken by an internal warehouse"
            )

        self._dealers[dealer.id] = dealer
        if existing:
            # Warehouse outlived an earlier dealer with the same id
            self._warehouses.rename(warehouse_id, dealer_warehouse_name(dealer.name))
        else:
            self._create_warehouse(dealer)

        logger.info("Dealer added: %s (%s)", dealer.name, dealer.id)
        return dealer

    def update_dealer(self, dealer: Dealer) -> Dealer:
        """Replaces a dealer and propagates its name to the warehouse."""
        if dealer.id not in self._dealers:
            raise RecordNotFoundError(f"Dealer not found: {dealer.id}")

        previous = self._dealers[dealer.id]
        self._dealers[dealer.id] = dealer
        self._warehouses.rename(dealer_warehouse_id(dealer.id), dealer_warehouse_name(dealer.name))

        if previous.name != dealer.name:
            logger.info("Dealer renamed: %s -> %s (%s)", previous.name, dealer.name, dealer.id)
        return dealer

    def remove_dealer(self, dealer_id: str) -> Optional[Dealer]:
        """Drops a dealer from the active registry; its warehouse stays."""
        dealer = self._dealers.pop(dealer_id, None)
        if dealer:
            logger.info("Dealer removed: %s (%s), warehouse kept", dealer.name, dealer_id)
        return dealer

    def ensure_dealer_warehouse(self, dealer_id: str) -> Optional[Warehouse]:
        """Creates the dealer's warehouse if it is missing. Idempotent."""
        warehouse_id = dealer_warehouse_id(dealer_id)
        warehouse = self._warehouses.get(warehouse_id)
        if warehouse:
            return warehouse

        dealer = self._dealers.get(dealer_id)
        if not dealer:
            return None

        logger.warning("Consignment warehouse missing for dealer %s, creating", dealer_id)
        return self._create_warehouse(dealer)

    def get(self, dealer_id: str) -> Optional[Dealer]:
        return self._dealers.get(dealer_id)

    def all(self) -> list[Dealer]:
        return list(self._dealers.values())

    def __contains__(self, dealer_id: object) -> bool:
        return dealer_id in self._dealers

    def _create_warehouse(self, dealer: Dealer) -> Warehouse:
        warehouse = Warehouse(
            id=dealer_warehouse_id(dealer.id),
            name=dealer_warehouse_name(dealer.name),
            location=DEALER_SITE_LOCATION,
            type=WarehouseType.EXTERNAL,
        )
        self._warehouses.add(warehouse)
        logger.info("Consignment warehouse provisioned: %s", warehouse.id)
        return warehouse
