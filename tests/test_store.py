"""InventoryStore unit tests: batch import, corrections, dealer lifecycle."""

from stockledger.ledger.store import InventoryStore
from stockledger.models.inventory import (
    Dealer,
    ImportRow,
    InventoryRecord,
    Product,
    SaleType,
    TransactionDraft,
    TransactionItem,
    Warehouse,
)
from stockledger.seed import build_store, load_seed


def _create_store() -> InventoryStore:
    return InventoryStore(
        products=[
            Product(id="p-1", sku="SKU-1", barcode="1111", name="Widget", price_retail=100, price_moq1=90),
            Product(id="p-2", sku="SKU-2", barcode="2222", name="Gadget", price_retail=250),
        ],
        warehouses=[Warehouse(id="wh-main", name="Main", location="HQ")],
        dealers=[Dealer(id="d-1", name="Acme")],
        inventory=[InventoryRecord("p-1", "wh-main", 10), InventoryRecord("p-2", "wh-main", 4)],
    )


class TestBatchImport:
    """SKU matched metadata and stock updates."""

    def test_unknown_sku_skipped(self):
        store = _create_store()
        result = store.batch_import([ImportRow(sku="ZZZ-999", qty=5, warehouse_id="wh-main", name="Ghost")])

        assert result.updated_count == 0
        assert result.skipped_skus == ["ZZZ-999"]
        assert store.catalog.find_by_sku("ZZZ-999") is None
        assert len(store.catalog) == 2
        assert len(store.ledger.records()) == 2

    def test_quantity_is_added(self):
        store = _create_store()
        result = store.batch_import([ImportRow(sku="SKU-1", qty=5, warehouse_id="wh-main")])
        assert result.updated_count == 1
        assert store.get_stock("p-1", "wh-main") == 15

    def test_zero_price_keeps_current(self):
        store = _create_store()
        store.batch_import([ImportRow(sku="SKU-1", qty=0, warehouse_id="wh-main", name="", retail=0, moq1=85)])
        product = store.catalog.get("p-1")
        assert product.price_retail == 100
        assert product.price_moq1 == 85
        assert product.name == "Widget"

    def test_metadata_overwritten(self):
        store = _create_store()
        store.batch_import([ImportRow(sku="SKU-2", qty=1, warehouse_id="wh-main", name="Gadget II", retail=300)])
        product = store.catalog.get("p-2")
        assert product.name == "Gadget II"
        assert product.price_retail == 300

    def test_new_warehouse_cell_created(self):
        store = _create_store()
        store.batch_import([ImportRow(sku="SKU-2", qty=3, warehouse_id="wh-dealer-d-1")])
        assert store.get_stock("p-2", "wh-dealer-d-1") == 3
        assert store.get_stock("p-2") == 7

    def test_mixed_rows(self):
        store = _create_store()
        result = store.batch_import([
            ImportRow(sku="SKU-1", qty=1, warehouse_id="wh-main"),
            ImportRow(sku="NOPE", qty=1, warehouse_id="wh-main"),
            ImportRow(sku="SKU-1", qty=2, warehouse_id="wh-main"),
        ])
        assert result.updated_count == 2
        assert store.get_stock("p-1", "wh-main") == 13


class TestCorrection:
    """Manual overrides."""

    def test_overwrite_without_validation(self):
        store = _create_store()
        store.correct_inventory("p-1", "wh-main", 42)
        assert store.get_stock("p-1", "wh-main") == 42
        assert store.ledger.get_audit_log(product_id="p-1")[-1].reference == "manual"

    def test_negative_value_accepted(self):
        store = _create_store()
        store.correct_inventory("p-2", "wh-main", -1)
        assert store.get_stock("p-2", "wh-main") == -1


class TestDealerLifecycle:
    """Dealer changes through the store."""

    def test_new_dealer_warehouse_starts_empty(self):
        store = _create_store()
        store.add_dealer(Dealer(id="d-9", name="Nine"))
        assert "wh-dealer-d-9" in store.warehouses
        assert store.get_stock("p-1", "wh-dealer-d-9") == 0
        assert store.get_stock("p-2", "wh-dealer-d-9") == 0

    def test_rename_leaves_stock(self):
        store = _create_store()
        store.submit_transaction(TransactionDraft(
            date="2024-03-01",
            dealer_id="d-1",
            sale_type=SaleType.CONSIGNMENT_TRANSFER,
            items=[TransactionItem("p-1", "wh-main", 4)],
        ))
        before = store.ledger.snapshot()

        store.update_dealer(Dealer(id="d-1", name="Acme Corp"))

        assert store.ledger.snapshot() == before
        assert "Acme Corp" in store.warehouses.name_of("wh-dealer-d-1")

    def test_remove_keeps_consignment_stock(self):
        store = _create_store()
        store.submit_transaction(TransactionDraft(
            date="2024-03-01",
            dealer_id="d-1",
            sale_type=SaleType.CONSIGNMENT_TRANSFER,
            items=[TransactionItem("p-1", "wh-main", 4)],
        ))
        store.remove_dealer("d-1")
        assert store.get_stock("p-1", "wh-dealer-d-1") == 4
        assert len(store.list_transactions()) == 1


class TestSeed:
    """Demo dataset."""

    def test_seed_loads(self):
        store = build_store(load_seed())
        assert len(store.catalog) == 5
        assert store.partners.get("d-003") is not None
        assert "wh-dealer-d-003" in store.warehouses
        assert store.get_stock("p-001", "wh-dealer-d-001") == 5
        assert [tx.id for tx in store.list_transactions()] == ["tx-1002", "tx-1001"]

    def test_missing_seed_file(self, tmp_path):
        assert load_seed(tmp_path / "nope.yaml") == {}
        assert len(build_store({}).catalog) == 0

    def test_analysis_context(self):
        store = build_store(load_seed())
        context = store.analysis_context(recent=1)
        assert len(context["transactions"]) == 1
        assert len(context["products"]) == 5
