"""
Stock ledger walkthrough on the demo dataset.

Usage:
    python demo.py          # ledger, reports and CSV export only
    python demo.py --ai     # also requests the Bedrock inventory analysis
"""

import sys

from stockledger.agents.inventory_analyst import InventoryAnalystAgent
from stockledger.config import configure_logging, load_settings
from stockledger.exports import settlement_csv, statement_csv
from stockledger.ledger.errors import InsufficientStockError
from stockledger.models.inventory import (
    Dealer,
    SaleType,
    ShippingMethod,
    TransactionDraft,
    TransactionItem,
    dealer_warehouse_id,
)
from stockledger.seed import build_store, load_seed

TODAY = "2023-11-15"


def main(with_ai: bool = False):
    settings = load_settings()
    configure_logging(settings.log_level)
    store = build_store(load_seed(settings.seed_file), tax_rate=settings.tax_rate)

    print("🏭 Stock Ledger - Demo")
    print("=" * 60)

    # 1. New dealer gets a consignment warehouse
    print("\n🤝 Step 1: New dealer")
    store.add_dealer(Dealer(id="d-009", name="Acme Trading", contact_person="Ann Lee", tax_id="99887766"))
    wh_id = dealer_warehouse_id("d-009")
    print(f"   Warehouse provisioned: {wh_id} -> {store.warehouses.name_of(wh_id)}")

    # 2. Consignment transfer from main warehouse
    print("\n🚚 Step 2: Consignment transfer")
    tx = store.submit_transaction(TransactionDraft(
        date="2023-11-01",
        dealer_id="d-009",
        sale_type=SaleType.CONSIGNMENT_TRANSFER,
        shipping_method=ShippingMethod.TRUCK,
        shipping_cost=300,
        items=[TransactionItem(product_id="p-005", warehouse_id="wh-main", quantity=20, price_at_sale=2200)],
    ))
    print(f"   {tx.id}: wh-main={store.get_stock('p-005', 'wh-main')}, {wh_id}={store.get_stock('p-005', wh_id)}")

    # 3. Rejected buyout leaves everything unchanged
    print("\n⛔ Step 3: Oversized buyout")
    try:
        store.submit_transaction(TransactionDraft(
            date="2023-11-02",
            dealer_id="d-009",
            sale_type=SaleType.BUYOUT,
            items=[TransactionItem(product_id="p-001", warehouse_id="wh-main", quantity=50)],
        ))
    except InsufficientStockError as e:
        print(f"   Rejected: {e}")

    # 4. Buyout and settlement
    print("\n💰 Step 4: Buyout and settlement")
    store.submit_transaction(TransactionDraft(
        date="2023-11-03",
        dealer_id="d-009",
        sale_type=SaleType.BUYOUT,
        shipping_cost=150,
        items=[TransactionItem(product_id="p-004", warehouse_id="wh-main", quantity=2, price_at_sale=7800)],
    ))
    store.submit_transaction(TransactionDraft(
        date="2023-11-10",
        dealer_id="d-009",
        sale_type=SaleType.CONSIGNMENT_SETTLEMENT,
        items=[TransactionItem(product_id="p-005", warehouse_id=wh_id, quantity=7, price_at_sale=2200)],
        note="First week, 7 mice sold",
    ))

    stock = store.get_consignment_stock("d-009")
    print(f"   Consignment stock: {stock.total_quantity} units, retail value {stock.total_retail_value}")

    # 5. Statement and settlement
    print("\n🧾 Step 5: Statement")
    statement = store.generate_statement("d-009", "2023-11-01", TODAY)
    print(f"   Goods={statement.total_goods_amount} tax={statement.tax_amount} "
          f"shipping={statement.total_shipping} total={statement.grand_total}")
    print(statement_csv(statement))

    export = store.generate_settlement_export("d-009", "2023-11-01", TODAY)
    print(settlement_csv(export, store.catalog))

    overview = store.inventory_overview()
    print(f"\n📊 Units: {overview.total_units}, low stock: {overview.low_stock}, out of stock: {overview.out_of_stock}")

    if with_ai:
        print("\n🤖 AI analysis")
        analyst = InventoryAnalystAgent(region_name=settings.region_name, model_id=settings.model_id)
        print(analyst.analyze_inventory(store.analysis_context()))

    print("\n" + "=" * 60)
    print("🎉 Demo complete!")


if __name__ == "__main__":
    main(with_ai="--ai" in sys.argv)
