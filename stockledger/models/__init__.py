from stockledger.models.inventory import (
    BILLABLE_SALE_TYPES,
    AgentDecision,
    AuditLogEntry,
    BatchImportResult,
    BillingStatement,
    ConsignmentStock,
    ConsignmentStockLine,
    Dealer,
    ImportRow,
    InventoryOverview,
    InventoryRecord,
    Product,
    ProductSettlementSummary,
    SaleType,
    SettlementExport,
    ShippingMethod,
    StockDelta,
    Transaction,
    TransactionDraft,
    TransactionItem,
    Warehouse,
    WarehouseType,
    dealer_warehouse_id,
    dealer_warehouse_name,
)

__all__ = [
    "BILLABLE_SALE_TYPES",
    "AgentDecision",
    "AuditLogEntry",
    "BatchImportResult",
    "BillingStatement",
    "ConsignmentStock",
    "ConsignmentStockLine",
    "Dealer",
    "ImportRow",
    "InventoryOverview",
    "InventoryRecord",
    "Product",
    "ProductSettlementSummary",
    "SaleType",
    "SettlementExport",
    "ShippingMethod",
    "StockDelta",
    "Transaction",
    "TransactionDraft",
    "TransactionItem",
    "Warehouse",
    "WarehouseType",
    "dealer_warehouse_id",
    "dealer_warehouse_name",
]
