"""Catalog, partner, stock and shipment data models."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import Optional

DEALER_WAREHOUSE_PREFIX = "wh-dealer-"
DEALER_WAREHOUSE_NAME = "{name} (Consignment)"


def dealer_warehouse_id(dealer_id: str) -> str:
    """Consignment warehouse id derived from the dealer id."""
    return f"{DEALER_WAREHOUSE_PREFIX}{dealer_id}"


def dealer_warehouse_name(dealer_name: str) -> str:
    return DEALER_WAREHOUSE_NAME.format(name=dealer_name)


class SaleType(str, Enum):
    BUYOUT = "buyout"
    CONSIGNMENT_TRANSFER = "consignment_transfer"
    CONSIGNMENT_SETTLEMENT = "consignment_settlement"


BILLABLE_SALE_TYPES = frozenset({SaleType.BUYOUT, SaleType.CONSIGNMENT_SETTLEMENT})


class ShippingMethod(str, Enum):
    TRUCK = "truck"
    COURIER = "courier"
    POSTAL = "postal"
    PICKUP = "pickup"
    NONE = "none"


class WarehouseType(str, Enum):
    INTERNAL = "Internal"
    EXTERNAL = "External"


@dataclass
class Product:
    id: str
    sku: str
    barcode: str
    name: str
    category: str = "General"
    # Price tiers, tax excluded
    price_retail: float = 0.0
    price_moq1: float = 0.0
    price_moq2: float = 0.0
    min_stock: int = 5


@dataclass
class Dealer:
    id: str
    name: str
    contact_person: str = ""
    tax_id: str = ""
    email: str = ""


@dataclass
class Warehouse:
    id: str
    name: str
    location: str
    type: WarehouseType = WarehouseType.INTERNAL


@dataclass
class InventoryRecord:
    product_id: str
    warehouse_id: str
    quantity: int


@dataclass
class TransactionItem:
    product_id: Optional[str] = None
    warehouse_id: Optional[str] = None
    quantity: int = 0
    # Unit price snapshot at sale time; None means "use current retail price"
    price_at_sale: Optional[float] = None
    target_warehouse_id: Optional[str] = None

    @property
    def subtotal(self) -> float:
        return self.quantity * (self.price_at_sale or 0)


@dataclass
class TransactionDraft:
    """Candidate transaction collected by a caller before submission."""

    date: str
    dealer_id: Optional[str]
    sale_type: SaleType
    shipping_method: ShippingMethod = ShippingMethod.COURIER
    shipping_cost: float = 0.0
    items: list[TransactionItem] = field(default_factory=list)
    note: str = ""


@dataclass
class Transaction:
    id: str
    date: str  # YYYY-MM-DD
    dealer_id: str
    dealer_name: str
    sale_type: SaleType
    shipping_method: ShippingMethod
    shipping_cost: float
    items: list[TransactionItem]
    total_value: float  # goods only, shipping excluded
    note: str = ""

    @property
    def short_id(self) -> str:
        return self.id.split("-", 1)[-1]


@dataclass
class StockDelta:
    product_id: str
    warehouse_id: str
    delta: int


@dataclass
class ImportRow:
    sku: str
    qty: int
    warehouse_id: str
    name: Optional[str] = None
    retail: Optional[float] = None
    moq1: Optional[float] = None
    moq2: Optional[float] = None


@dataclass
class BatchImportResult:
    updated_count: int
    skipped_skus: list[str] = field(default_factory=list)


@dataclass
class BillingStatement:
    dealer: Dealer
    start_date: str
    end_date: str
    transactions: list[Transaction]
    total_goods_amount: float
    total_shipping: float
    tax_amount: int
    grand_total: float


@dataclass
class ProductSettlementSummary:
    product_id: str
    name: str
    quantity: int = 0
    subtotal: float = 0.0


@dataclass
class SettlementExport:
    dealer_id: str
    dealer_name: str
    start_date: str
    end_date: str
    transactions: list[Transaction]
    total_amount: float
    product_summary: list[ProductSettlementSummary]


@dataclass
class ConsignmentStockLine:
    product_id: str
    warehouse_id: str
    quantity: int
    product: Product
    retail_value: float


@dataclass
class ConsignmentStock:
    dealer_id: str
    warehouse_id: str
    lines: list[ConsignmentStockLine]
    total_quantity: int
    total_retail_value: float


@dataclass
class AuditLogEntry:
    entry_id: str
    operation_type: str
    product_id: str
    warehouse_id: str
    quantity_before: int
    quantity_after: int
    change_amount: int
    reference: Optional[str] = None
    timestamp: str = field(default_factory=lambda: datetime.now(timezone.utc).isoformat())


@dataclass
class InventoryOverview:
    total_units: int
    total_retail_value: float
    out_of_stock: list[str]
    low_stock: list[str]
    safe_stock: list[str]
    units_by_warehouse: dict[str, int]
    internal_value: float
    external_value: float


@dataclass
class AgentDecision:
    decision_id: str
    agent_name: str
    decision_type: str
    input_data: dict
    output_data: dict
    reasoning: str
    timestamp: str = field(default_factory=lambda: datetime.now(timezone.utc).isoformat())
