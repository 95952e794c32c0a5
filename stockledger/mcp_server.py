"""
Stock Ledger MCP Server

Exposes transaction submission, stock corrections, dealer and product
maintenance and billing reports as MCP tools over stdio.
"""

from __future__ import annotations

import asyncio
import json
import logging
from typing import Any, Callable, Dict, List, Optional

from mcp.server import Server
from mcp.types import TextContent, Tool

from stockledger.agents.inventory_analyst import InventoryAnalystAgent
from stockledger.config import configure_logging, load_settings
from stockledger.ledger.errors import StockLedgerError
from stockledger.ledger.store import InventoryStore
from stockledger.models.inventory import (
    Dealer,
    ImportRow,
    Product,
    SaleType,
    ShippingMethod,
    TransactionDraft,
    TransactionItem,
)
from stockledger.models.serialization import to_json
from stockledger.seed import build_store, load_seed

logger = logging.getLogger(__name__)

app = Server("stockledger")

_store: Optional[InventoryStore] = None
_analyst: Optional[InventoryAnalystAgent] = None


def get_store() -> InventoryStore:
    global _store
    if _store is None:
        settings = load_settings()
        _store = build_store(load_seed(settings.seed_file), tax_rate=settings.tax_rate)
    return _store


def get_analyst() -> InventoryAnalystAgent:
    global _analyst
    if _analyst is None:
        settings = load_settings()
        _analyst = InventoryAnalystAgent(region_name=settings.region_name, model_id=settings.model_id)
    return _analyst


def _result(data: Dict) -> List[TextContent]:
    return [TextContent(type="text", text=json.dumps(data, indent=2, ensure_ascii=False))]


_DATE_RANGE = {
    "type": "object",
    "properties": {
        "dealer_id": {"type": "string"},
        "start_date": {"type": "string"},
        "end_date": {"type": "string"},
    },
    "required": ["dealer_id", "start_date", "end_date"],
}

_ITEM = {
    "type": "object",
    "properties": {
        "product_id": {"type": "string"},
        "warehouse_id": {"type": "string"},
        "quantity": {"type": "integer"},
        "price_at_sale": {"type": "number"},
    },
    "required": ["product_id", "warehouse_id", "quantity"],
}

_DEALER = {
    "type": "object",
    "properties": {
        "id": {"type": "string"}, "name": {"type": "string"}, "contact_person": {"type": "string"},
        "tax_id": {"type": "string"}, "email": {"type": "string"},
    },
    "required": ["id", "name"],
}

_PRODUCT = {
    "type": "object",
    "properties": {
        "id": {"type": "string"}, "sku": {"type": "string"}, "barcode": {"type": "string"},
        "name": {"type": "string"}, "category": {"type": "string"},
        "price_retail": {"type": "number"}, "price_moq1": {"type": "number"},
        "price_moq2": {"type": "number"}, "min_stock": {"type": "integer"},
    },
    "required": ["id", "sku", "barcode", "name"],
}


@app.list_tools()
async def list_tools() -> List[Tool]:
    return [
        Tool(name="submit_transaction", description="Validate and apply a buyout, consignment transfer or consignment settlement",
             inputSchema={"type": "object", "properties": {
                 "date": {"type": "string"}, "dealer_id": {"type": "string"},
                 "sale_type": {"type": "string", "enum": [s.value for s in SaleType]},
                 "shipping_method": {"type": "string", "enum": [m.value for m in ShippingMethod]},
                 "shipping_cost": {"type": "number"}, "note": {"type": "string"},
                 "items": {"type": "array", "items": _ITEM}},
                 "required": ["date", "dealer_id", "sale_type", "items"]}),
        Tool(name="correct_inventory", description="Overwrite the stock quantity of a product in a warehouse",
             inputSchema={"type": "object", "properties": {"product_id": {"type": "string"}, "warehouse_id": {"type": "string"}, "quantity": {"type": "integer"}}, "required": ["product_id", "warehouse_id", "quantity"]}),
        Tool(name="batch_import", description="Update product names/prices and add stock for rows matched by SKU",
             inputSchema={"type": "object", "properties": {"rows": {"type": "array", "items": {"type": "object"}}}, "required": ["rows"]}),
        Tool(name="add_dealer", description="Register a dealer and its consignment warehouse", inputSchema=_DEALER),
        Tool(name="update_dealer", description="Update a dealer; the warehouse name follows", inputSchema=_DEALER),
        Tool(name="remove_dealer", description="Remove a dealer; history and warehouse are kept",
             inputSchema={"type": "object", "properties": {"dealer_id": {"type": "string"}}, "required": ["dealer_id"]}),
        Tool(name="add_product", description="Add a product to the catalog", inputSchema=_PRODUCT),
        Tool(name="update_product", description="Replace a product definition", inputSchema=_PRODUCT),
        Tool(name="get_stock", description="Stock of a product in one warehouse, or in total",
             inputSchema={"type": "object", "properties": {"product_id": {"type": "string"}, "warehouse_id": {"type": "string"}}, "required": ["product_id"]}),
        Tool(name="list_transactions", description="Transaction history, most recent first",
             inputSchema={"type": "object", "properties": {}}),
        Tool(name="update_transaction_note", description="Edit the note of a transaction",
             inputSchema={"type": "object", "properties": {"transaction_id": {"type": "string"}, "note": {"type": "string"}}, "required": ["transaction_id", "note"]}),
        Tool(name="generate_statement", description="Billing statement for a dealer and period", inputSchema=_DATE_RANGE),
        Tool(name="generate_settlement_export", description="Consignment settlements with product summary", inputSchema=_DATE_RANGE),
        Tool(name="get_consignment_stock", description="Stock held at a dealer's consignment warehouse",
             inputSchema={"type": "object", "properties": {"dealer_id": {"type": "string"}}, "required": ["dealer_id"]}),
        Tool(name="inventory_overview", description="Stock totals, low stock and valuation split",
             inputSchema={"type": "object", "properties": {}}),
        Tool(name="analyze_inventory", description="AI written inventory analysis report",
             inputSchema={"type": "object", "properties": {}}),
    ]


@app.call_tool()
async def call_tool(name: str, arguments: dict) -> List[TextContent]:
    return _result(handle_tool(get_store(), name, arguments or {}))


# --- Argument parsing ---

def _draft(a: dict) -> TransactionDraft:
    return TransactionDraft(
        date=a["date"],
        dealer_id=a["dealer_id"],
        sale_type=SaleType(a["sale_type"]),
        shipping_method=ShippingMethod(a.get("shipping_method", ShippingMethod.COURIER.value)),
        shipping_cost=a.get("shipping_cost", 0),
        items=[
            TransactionItem(
                product_id=i.get("product_id"),
                warehouse_id=i.get("warehouse_id"),
                quantity=i.get("quantity", 0),
                price_at_sale=i.get("price_at_sale"),
                target_warehouse_id=i.get("target_warehouse_id"),
            )
            for i in a.get("items", [])
        ],
        note=a.get("note", ""),
    )


def _import_row(r: dict) -> ImportRow:
    return ImportRow(
        sku=r["sku"],
        qty=int(r.get("qty", 0)),
        warehouse_id=r["warehouse_id"],
        name=r.get("name"),
        retail=r.get("retail"),
        moq1=r.get("moq1"),
        moq2=r.get("moq2"),
    )


def _correct(store: InventoryStore, a: dict) -> dict:
    store.correct_inventory(a["product_id"], a["warehouse_id"], int(a["quantity"]))
    return {"product_id": a["product_id"], "warehouse_id": a["warehouse_id"], "quantity": int(a["quantity"])}


def _analyze(store: InventoryStore, a: dict) -> dict:
    return {"report": get_analyst().analyze_inventory(store.analysis_context())}


HANDLERS: Dict[str, Callable[[InventoryStore, dict], Any]] = {
    "submit_transaction": lambda s, a: s.submit_transaction(_draft(a)),
    "correct_inventory": _correct,
    "batch_import": lambda s, a: s.batch_import([_import_row(r) for r in a["rows"]]),
    "add_dealer": lambda s, a: s.add_dealer(Dealer(**a)),
    "update_dealer": lambda s, a: s.update_dealer(Dealer(**a)),
    "remove_dealer": lambda s, a: s.remove_dealer(a["dealer_id"]),
    "add_product": lambda s, a: s.add_product(Product(**a)),
    "update_product": lambda s, a: s.update_product(Product(**a)),
    "get_stock": lambda s, a: {"quantity": s.get_stock(a["product_id"], a.get("warehouse_id"))},
    "list_transactions": lambda s, a: s.list_transactions(),
    "update_transaction_note": lambda s, a: s.update_transaction_note(a["transaction_id"], a["note"]),
    "generate_statement": lambda s, a: s.generate_statement(a["dealer_id"], a["start_date"], a["end_date"]),
    "generate_settlement_export": lambda s, a: s.generate_settlement_export(a["dealer_id"], a["start_date"], a["end_date"]),
    "get_consignment_stock": lambda s, a: s.get_consignment_stock(a["dealer_id"]),
    "inventory_overview": lambda s, a: s.inventory_overview(),
    "analyze_inventory": _analyze,
}


def handle_tool(store: InventoryStore, name: str, arguments: dict) -> Dict:
    """Runs a tool against the store and wraps the outcome."""
    handler = HANDLERS.get(name)
    if not handler:
        raise ValueError(f"Unknown tool: {name}")
    try:
        return {"success": True, "data": to_json(handler(store, arguments))}
    except StockLedgerError as e:
        return {"success": False, "error": str(e), "error_type": type(e).__name__}
    except (KeyError, TypeError, ValueError) as e:
        logger.warning("Invalid arguments for %s: %s", name, e)
        return {"success": False, "error": f"Invalid arguments: {e}", "error_type": "InvalidArguments"}


def main() -> None:
    from mcp.server.stdio import stdio_server

    configure_logging(load_settings().log_level)

    async def run():
        async with stdio_server() as (read, write):
            await app.run(read, write, app.create_initialization_options())

    asyncio.run(run())


if __name__ == "__main__":
    main()
