"""CSV artifacts (shipment slip, statement, settlement) and import text parsing.

Output is UTF-8 text with a leading byte-order mark so spreadsheet tools
detect the encoding. Commas and newlines inside notes are blanked.
"""

from __future__ import annotations

import csv
import logging
import re
from io import StringIO
from typing import Optional

from stockledger.ledger.catalog import Catalog
from stockledger.models.inventory import (
    BillingStatement,
    ImportRow,
    SaleType,
    SettlementExport,
    Transaction,
)

logger = logging.getLogger(__name__)

BOM = "\ufeff"

SALE_TYPE_LABELS = {
    SaleType.BUYOUT: "Buyout",
    SaleType.CONSIGNMENT_TRANSFER: "Consignment Transfer",
    SaleType.CONSIGNMENT_SETTLEMENT: "Consignment Settlement",
}


def clean_note(note: Optional[str]) -> str:
    return (note or "").replace(",", " ").replace("\r", " ").replace("\n", " ")


def _render(rows: list[list]) -> str:
    buffer = StringIO()
    writer = csv.writer(buffer, lineterminator="\n")
    writer.writerows(rows)
    return BOM + buffer.getvalue()


def shipment_csv(transaction: Transaction, catalog: Catalog) -> str:
    """Packing slip: one row per item."""
    note = clean_note(transaction.note)
    rows: list[list] = [["Date", "Item", "Quantity", "Note"]]
    for item in transaction.items:
        rows.append([transaction.date, catalog.name_of(item.product_id), item.quantity, note])
    return _render(rows)


def statement_csv(statement: BillingStatement) -> str:
    dealer = statement.dealer
    rows: list[list] = [
        ["Statement"],
        ["Dealer", dealer.name],
        ["Tax ID", dealer.tax_id],
        ["Contact", dealer.contact_person],
        ["Period", f"{statement.start_date} ~ {statement.end_date}"],
        [],
        ["Date", "No.", "Type", "Shipping (tax incl.)", "Goods (tax excl.)"],
    ]
    for tx in statement.transactions:
        rows.append([
            tx.date,
            tx.short_id,
            SALE_TYPE_LABELS[tx.sale_type],
            tx.shipping_cost or 0,
            tx.total_value,
        ])
    rows += [
        [],
        ["", "", "", "Goods total (tax excl.)", statement.total_goods_amount],
        ["", "", "", "Tax (goods only)", statement.tax_amount],
        ["", "", "", "Shipping total (tax incl.)", statement.total_shipping],
        ["", "", "", "Amount due", statement.grand_total],
    ]
    return _render(rows)


def settlement_csv(export: SettlementExport, catalog: Catalog) -> str:
    """Settlement detail lines followed by the per-product summary."""
    rows: list[list] = [
        [f"Consignment settlement - {export.dealer_name}"],
        [f"Period: {export.start_date} ~ {export.end_date}"],
        [],
        ["Date", "No.", "Item", "Quantity", "Unit price (tax excl.)", "Subtotal", "Note"],
    ]
    for tx in export.transactions:
        note = clean_note(tx.note)
        for item in tx.items:
            rows.append([
                tx.date,
                tx.short_id,
                catalog.name_of(item.product_id),
                item.quantity,
                item.price_at_sale,
                item.subtotal,
                note,
            ])
    rows += [
        [],
        ["", "", "", "", "", "Total (tax excl.)", export.total_amount],
        [],
        ["Product summary"],
        ["Item", "Total quantity", "Total amount (tax excl.)"],
    ]
    for line in export.product_summary:
        rows.append([line.name, line.quantity, line.subtotal])
    return _render(rows)


def statement_filename(statement: BillingStatement) -> str:
    return f"statement_{statement.dealer.name}_{statement.start_date}_{statement.end_date}.csv"


def settlement_filename(export: SettlementExport) -> str:
    return f"settlement_{export.dealer_name}_{export.start_date}_{export.end_date}.csv"


def shipment_filename(transaction: Transaction) -> str:
    return f"shipment_{transaction.date}_{transaction.dealer_name}.csv"


# --- Import ---

_LEADING_INT = re.compile(r"\s*([+-]?\d+)")


def _optional_number(value: str) -> Optional[int]:
    """Leading integer of a cell ('199.9' reads as 199), None when there is none."""
    match = _LEADING_INT.match(value)
    return int(match.group(1)) if match else None


def parse_import_text(text: str, default_warehouse_id: str) -> list[ImportRow]:
    """Parses tab separated rows: SKU, Name, Qty, Retail, MOQ1, MOQ2, WarehouseID.

    Rows with fewer than two columns are ignored. A missing or unreadable
    quantity counts as 0, a missing warehouse falls back to the default.
    """
    rows: list[ImportRow] = []
    reader = csv.reader(StringIO(text.strip()), delimiter="\t", quoting=csv.QUOTE_NONE)
    for parts in reader:
        if len(parts) < 2:
            continue
        padded = parts + [""] * (7 - len(parts))
        rows.append(
            ImportRow(
                sku=padded[0].strip(),
                name=padded[1].strip() or None,
                qty=_optional_number(padded[2]) or 0,
                retail=_optional_number(padded[3]),
                moq1=_optional_number(padded[4]),
                moq2=_optional_number(padded[5]),
                warehouse_id=padded[6].strip() or default_warehouse_id,
            )
        )
    logger.debug("Parsed %d import rows", len(rows))
    return rows
