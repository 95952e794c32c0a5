"""Transaction Engine unit tests."""

import copy

import pytest

from stockledger.ledger.errors import (
    InsufficientStockError,
    ProductLookupError,
    ValidationError,
)
from stockledger.ledger.store import InventoryStore
from stockledger.ledger.transaction_engine import stock_deltas
from stockledger.models.inventory import (
    Dealer,
    InventoryRecord,
    Product,
    SaleType,
    ShippingMethod,
    TransactionDraft,
    TransactionItem,
    Warehouse,
)

DEALER_WH = "wh-dealer-d-1"


def _create_store() -> InventoryStore:
    return InventoryStore(
        products=[
            Product(id="p-1", sku="SKU-1", barcode="1111", name="Widget", price_retail=100, min_stock=5),
            Product(id="p-2", sku="SKU-2", barcode="2222", name="Gadget", price_retail=250, min_stock=2),
        ],
        warehouses=[
            Warehouse(id="wh-main", name="Main", location="HQ"),
            Warehouse(id="wh-south", name="South", location="Kaohsiung"),
        ],
        dealers=[Dealer(id="d-1", name="Acme"), Dealer(id="d-2", name="Beta")],
        inventory=[
            InventoryRecord("p-1", "wh-main", 10),
            InventoryRecord("p-1", "wh-south", 6),
            InventoryRecord("p-2", "wh-main", 4),
            InventoryRecord("p-1", DEALER_WH, 5),
        ],
    )


def _draft(sale_type: SaleType, *items: TransactionItem, dealer_id: str = "d-1", **kwargs) -> TransactionDraft:
    return TransactionDraft(
        date=kwargs.pop("date", "2024-03-01"),
        dealer_id=dealer_id,
        sale_type=sale_type,
        items=list(items),
        **kwargs,
    )


def _state(store: InventoryStore):
    return (
        store.ledger.snapshot(),
        copy.deepcopy(store.engine.history()),
        len(store.ledger.get_audit_log()),
        [w.id for w in store.warehouses.all()],
    )


class TestBuyout:
    """Outright sale deducts from the source only."""

    def test_source_decreases_by_quantity(self):
        store = _create_store()
        store.submit_transaction(_draft(SaleType.BUYOUT, TransactionItem("p-1", "wh-main", 3, 100)))
        assert store.get_stock("p-1", "wh-main") == 7

    def test_other_warehouses_unchanged(self):
        store = _create_store()
        store.submit_transaction(_draft(SaleType.BUYOUT, TransactionItem("p-1", "wh-main", 3, 100)))
        assert store.get_stock("p-1", "wh-south") == 6
        assert store.get_stock("p-1", DEALER_WH) == 5

    def test_total_value_excludes_shipping(self):
        store = _create_store()
        tx = store.submit_transaction(_draft(
            SaleType.BUYOUT,
            TransactionItem("p-1", "wh-main", 2, 100),
            TransactionItem("p-2", "wh-main", 1, 240),
            shipping_cost=80,
        ))
        assert tx.total_value == 440
        assert tx.shipping_cost == 80

    def test_no_target_warehouse(self):
        store = _create_store()
        tx = store.submit_transaction(_draft(
            SaleType.BUYOUT, TransactionItem("p-1", "wh-main", 1, 100, target_warehouse_id="wh-south")
        ))
        assert tx.items[0].target_warehouse_id is None
        assert store.get_stock("p-1", "wh-south") == 6


class TestConsignmentTransfer:
    """Goods move to the dealer's warehouse."""

    def test_zero_sum_move(self):
        store = _create_store()
        before = store.get_stock("p-1", "wh-main") + store.get_stock("p-1", DEALER_WH)

        store.submit_transaction(_draft(SaleType.CONSIGNMENT_TRANSFER, TransactionItem("p-1", "wh-main", 4, 90)))

        assert store.get_stock("p-1", "wh-main") == 6
        assert store.get_stock("p-1", DEALER_WH) == 9
        assert store.get_stock("p-1", "wh-main") + store.get_stock("p-1", DEALER_WH) == before
        assert store.get_stock("p-1") == 21

    def test_target_forced_to_dealer_warehouse(self):
        store = _create_store()
        tx = store.submit_transaction(_draft(
            SaleType.CONSIGNMENT_TRANSFER,
            TransactionItem("p-1", "wh-main", 2, 90, target_warehouse_id="wh-south"),
        ))
        assert tx.items[0].target_warehouse_id == DEALER_WH
        assert store.get_stock("p-1", "wh-south") == 6
        assert store.get_stock("p-1", DEALER_WH) == 7

    def test_missing_dealer_warehouse_recreated(self):
        store = _create_store()
        store.warehouses._warehouses.pop("wh-dealer-d-2")

        store.submit_transaction(_draft(
            SaleType.CONSIGNMENT_TRANSFER, TransactionItem("p-2", "wh-main", 1, 240), dealer_id="d-2"
        ))

        assert "wh-dealer-d-2" in store.warehouses
        assert store.get_stock("p-2", "wh-dealer-d-2") == 1

    def test_source_equal_to_target_rejected(self):
        store = _create_store()
        with pytest.raises(ValidationError):
            store.submit_transaction(_draft(
                SaleType.CONSIGNMENT_TRANSFER, TransactionItem("p-1", DEALER_WH, 1, 90)
            ))


class TestConsignmentSettlement:
    """Sold consignment goods leave the dealer's shelf."""

    def test_dealer_warehouse_decreases_only(self):
        store = _create_store()
        before = store.ledger.snapshot()

        store.submit_transaction(_draft(SaleType.CONSIGNMENT_SETTLEMENT, TransactionItem("p-1", DEALER_WH, 2, 100)))

        after = store.ledger.snapshot()
        assert after[("p-1", DEALER_WH)] == 3
        changed = {k for k in after if after[k] != before.get(k)}
        assert changed == {("p-1", DEALER_WH)}

    def test_shipping_suppressed(self):
        store = _create_store()
        tx = store.submit_transaction(_draft(
            SaleType.CONSIGNMENT_SETTLEMENT,
            TransactionItem("p-1", DEALER_WH, 1, 100),
            shipping_method=ShippingMethod.TRUCK,
            shipping_cost=500,
        ))
        assert tx.shipping_method == ShippingMethod.NONE
        assert tx.shipping_cost == 0


class TestValidation:
    """Rejected transactions change nothing."""

    @pytest.mark.parametrize("draft", [
        _draft(SaleType.BUYOUT, TransactionItem("p-1", "wh-main", 1, 100), dealer_id="d-404"),
        _draft(SaleType.BUYOUT, TransactionItem("p-1", "wh-main", 1, 100), dealer_id=None),
        _draft(SaleType.BUYOUT),
        _draft(SaleType.BUYOUT, TransactionItem(None, "wh-main", 1, 100)),
        _draft(SaleType.BUYOUT, TransactionItem("p-1", None, 1, 100)),
        _draft(SaleType.BUYOUT, TransactionItem("p-1", "wh-main", 0, 100)),
        _draft(SaleType.BUYOUT, TransactionItem("p-1", "wh-main", -1, 100)),
        _draft(SaleType.BUYOUT, TransactionItem("p-1", "wh-main", 0.5, 100)),
        _draft(SaleType.BUYOUT, TransactionItem("p-1", "wh-main", 1.5, 100)),
        _draft(SaleType.BUYOUT, TransactionItem("p-1", "wh-main", True, 100)),
        _draft(SaleType.BUYOUT, TransactionItem("p-1", "wh-main", "2", 100)),
        _draft(SaleType.BUYOUT, TransactionItem("p-1", "wh-main", 1, 100), date="not-a-date"),
        _draft(SaleType.BUYOUT, TransactionItem("p-1", "wh-main", 1, 100), shipping_cost=-5),
    ])
    def test_invalid_draft_rejected(self, draft):
        store = _create_store()
        before = _state(store)
        with pytest.raises(ValidationError):
            store.submit_transaction(draft)
        assert _state(store) == before

    def test_insufficient_stock_rejects_whole_transaction(self):
        store = _create_store()
        before = _state(store)

        with pytest.raises(InsufficientStockError) as exc:
            store.submit_transaction(_draft(
                SaleType.CONSIGNMENT_TRANSFER,
                TransactionItem("p-1", "wh-main", 2, 100),
                TransactionItem("p-2", "wh-main", 9, 240),
            ))

        assert exc.value.product_id == "p-2"
        assert exc.value.available == 4
        assert exc.value.requested == 9
        assert "Gadget" in str(exc.value)
        assert _state(store) == before

    def test_lines_on_same_cell_checked_together(self):
        store = _create_store()
        with pytest.raises(InsufficientStockError):
            store.submit_transaction(_draft(
                SaleType.BUYOUT,
                TransactionItem("p-2", "wh-main", 3, 240),
                TransactionItem("p-2", "wh-main", 3, 240),
            ))
        assert store.get_stock("p-2", "wh-main") == 4

    def test_removed_dealer_cannot_order(self):
        store = _create_store()
        store.remove_dealer("d-1")
        with pytest.raises(ValidationError):
            store.submit_transaction(_draft(SaleType.BUYOUT, TransactionItem("p-1", "wh-main", 1, 100)))

    def test_exact_available_quantity_allowed(self):
        store = _create_store()
        store.submit_transaction(_draft(SaleType.BUYOUT, TransactionItem("p-2", "wh-main", 4, 240)))
        assert store.get_stock("p-2", "wh-main") == 0


class TestSnapshots:
    """Prices and dealer names are copied at submission."""

    def test_missing_price_uses_current_retail(self):
        store = _create_store()
        tx = store.submit_transaction(_draft(SaleType.BUYOUT, TransactionItem("p-1", "wh-main", 2)))
        assert tx.items[0].price_at_sale == 100
        assert tx.total_value == 200

    def test_later_price_change_does_not_alter_history(self):
        store = _create_store()
        tx = store.submit_transaction(_draft(SaleType.BUYOUT, TransactionItem("p-1", "wh-main", 2)))
        store.update_product(Product(id="p-1", sku="SKU-1", barcode="1111", name="Widget", price_retail=999))
        assert store.engine.get_transaction(tx.id).items[0].price_at_sale == 100

    def test_dealer_rename_keeps_history_name(self):
        store = _create_store()
        tx = store.submit_transaction(_draft(SaleType.BUYOUT, TransactionItem("p-1", "wh-main", 1, 100)))
        store.update_dealer(Dealer(id="d-1", name="Acme Corp"))
        assert store.engine.get_transaction(tx.id).dealer_name == "Acme"

    def test_caller_item_mutation_does_not_leak(self):
        store = _create_store()
        item = TransactionItem("p-1", "wh-main", 1, 100)
        tx = store.submit_transaction(_draft(SaleType.BUYOUT, item))
        item.quantity = 50
        assert tx.items[0].quantity == 1


class TestHistory:
    """Append-only history."""

    def test_newest_submission_first(self):
        store = _create_store()
        first = store.submit_transaction(_draft(SaleType.BUYOUT, TransactionItem("p-1", "wh-main", 1, 100)))
        second = store.submit_transaction(_draft(SaleType.BUYOUT, TransactionItem("p-1", "wh-main", 1, 100)))
        assert [tx.id for tx in store.engine.history()] == [second.id, first.id]

    def test_listing_sorted_by_date_descending(self):
        store = _create_store()
        late = store.submit_transaction(_draft(SaleType.BUYOUT, TransactionItem("p-1", "wh-main", 1, 100), date="2024-05-01"))
        early = store.submit_transaction(_draft(SaleType.BUYOUT, TransactionItem("p-1", "wh-main", 1, 100), date="2024-01-01"))
        assert [tx.id for tx in store.list_transactions()] == [late.id, early.id]

    def test_note_can_be_edited(self):
        store = _create_store()
        tx = store.submit_transaction(_draft(SaleType.BUYOUT, TransactionItem("p-1", "wh-main", 1, 100)))
        store.update_transaction_note(tx.id, "tracking 123")
        assert store.engine.get_transaction(tx.id).note == "tracking 123"

    def test_listed_transactions_are_copies(self):
        store = _create_store()
        tx = store.submit_transaction(_draft(SaleType.BUYOUT, TransactionItem("p-1", "wh-main", 1, 100)))

        listed = store.list_transactions()[0]
        listed.total_value = 0
        listed.dealer_name = "Someone else"
        listed.items[0].quantity = 99
        tx.total_value = 0

        stored = store.engine.get_transaction(tx.id)
        assert stored.total_value == 100
        assert stored.dealer_name == "Acme"
        assert stored.items[0].quantity == 1
        assert store.generate_statement("d-1", "2024-03-01", "2024-03-01").total_goods_amount == 100

    def test_statement_transactions_are_copies(self):
        store = _create_store()
        store.submit_transaction(_draft(SaleType.BUYOUT, TransactionItem("p-1", "wh-main", 1, 100)))
        store.generate_statement("d-1", "2024-03-01", "2024-03-01").transactions[0].total_value = 0
        assert store.generate_statement("d-1", "2024-03-01", "2024-03-01").total_goods_amount == 100

    def test_note_edit_unknown_transaction(self):
        store = _create_store()
        with pytest.raises(LookupError):
            store.update_transaction_note("tx-missing", "x")


class TestStockDeltas:
    """Sale type to ledger delta mapping."""

    def test_every_sale_type_has_a_policy(self):
        items = [TransactionItem("p-1", "wh-main", 2, 100, target_warehouse_id=DEALER_WH)]
        for sale_type in SaleType:
            assert stock_deltas(sale_type, items)

    def test_transfer_touches_two_cells(self):
        items = [TransactionItem("p-1", "wh-main", 2, 100, target_warehouse_id=DEALER_WH)]
        deltas = stock_deltas(SaleType.CONSIGNMENT_TRANSFER, items)
        assert [(d.warehouse_id, d.delta) for d in deltas] == [("wh-main", -2), (DEALER_WH, 2)]


class TestScannedItems:
    """Barcode and SKU driven item entry."""

    def test_scan_by_barcode(self):
        store = _create_store()
        draft = _draft(SaleType.BUYOUT)
        item = store.engine.add_scanned_item(draft, "2222")
        assert item.product_id == "p-2"
        assert item.quantity == 1
        assert item.price_at_sale == 250
        assert item.warehouse_id == "wh-main"

    def test_scan_by_sku_fills_empty_line(self):
        store = _create_store()
        draft = _draft(SaleType.BUYOUT, TransactionItem(quantity=1))
        store.engine.add_scanned_item(draft, "SKU-1")
        assert len(draft.items) == 1
        assert draft.items[0].product_id == "p-1"

    def test_settlement_defaults_to_dealer_warehouse(self):
        store = _create_store()
        draft = _draft(SaleType.CONSIGNMENT_SETTLEMENT)
        item = store.engine.add_scanned_item(draft, "1111")
        assert item.warehouse_id == DEALER_WH

    def test_transfer_sets_target(self):
        store = _create_store()
        draft = _draft(SaleType.CONSIGNMENT_TRANSFER)
        item = store.engine.add_scanned_item(draft, "1111")
        assert item.target_warehouse_id == DEALER_WH

    def test_unknown_code_leaves_items(self):
        store = _create_store()
        existing = TransactionItem("p-1", "wh-main", 2, 100)
        draft = _draft(SaleType.BUYOUT, existing)
        with pytest.raises(ProductLookupError) as exc:
            store.engine.add_scanned_item(draft, "ZZZ-999")
        assert exc.value.code == "ZZZ-999"
        assert draft.items == [existing]


class TestConsignmentPicking:
    """Settlement lines picked from dealer stock."""

    def test_increments_up_to_available(self):
        store = _create_store()
        draft = _draft(SaleType.CONSIGNMENT_SETTLEMENT)
        for _ in range(7):
            store.engine.add_consignment_item(draft, "p-1")
        assert len(draft.items) == 1
        assert draft.items[0].quantity == 5

    def test_no_dealer_stock(self):
        store = _create_store()
        draft = _draft(SaleType.CONSIGNMENT_SETTLEMENT)
        with pytest.raises(InsufficientStockError):
            store.engine.add_consignment_item(draft, "p-2")
