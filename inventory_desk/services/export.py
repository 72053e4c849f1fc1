import io
from datetime import datetime
from typing import Iterable

from openpyxl import Workbook
from openpyxl.styles import Alignment, Font, PatternFill
from openpyxl.worksheet.table import Table, TableStyleInfo

from inventory_desk.models import InventoryItem
from inventory_desk.services.repository import plain

HEADERS = [
    "ID", "Product Type", "Status", "Size", "Serial Number",
    "Date", "Location", "Issued By", "Notes", "Updated At",
]

COLUMN_WIDTHS = {
    "A": 8, "B": 14, "C": 12, "D": 10, "E": 24,
    "F": 14, "G": 20, "H": 20, "I": 30, "J": 20,
}


def norm_str(v, default: str = "") -> str:
    if v is None:
        return default
    s = str(plain(v)).strip()
    return s if s else default


def inventory_workbook(items: Iterable[InventoryItem]) -> bytes:
    """Render inventory rows as a styled xlsx ledger."""
    items = list(items)

    wb = Workbook()
    ws = wb.active
    ws.title = "Inventory"

    ws.append(HEADERS)
    ws.row_dimensions[1].height = 24
    for col in range(1, len(HEADERS) + 1):
        cell = ws.cell(row=1, column=col)
        cell.font = Font(bold=True)
        cell.fill = PatternFill("solid", fgColor="DDDDDD")
        cell.alignment = Alignment(horizontal="center", vertical="center")

    for item in items:
        ws.append([
            item.id,
            norm_str(item.product_type),
            norm_str(item.status),
            norm_str(item.size),
            norm_str(item.serial_number),
            norm_str(item.date),
            norm_str(item.location, "unknown"),
            norm_str(item.issued_by),
            norm_str(item.notes),
            item.updated_at.replace(tzinfo=None) if item.updated_at else None,
        ])

    last_row = 1 + len(items)
    ws.freeze_panes = "A2"
    for r in range(2, last_row + 1):
        ws.cell(row=r, column=10).number_format = "yyyy-mm-dd hh:mm:ss"

    for letter, width in COLUMN_WIDTHS.items():
        ws.column_dimensions[letter].width = width

    # header-only tables are fine, an empty range is not
    table = Table(displayName=f"InventoryLedger_{datetime.now().strftime('%H%M%S')}", ref=f"A1:J{max(1, last_row)}")
    table.tableStyleInfo = TableStyleInfo(
        name="TableStyleMedium9",
        showFirstColumn=False,
        showLastColumn=False,
        showRowStripes=True,
        showColumnStripes=False,
    )
    ws.add_table(table)

    ws.append([])
    ws.append(["Exported at", datetime.now().strftime("%Y-%m-%d %H:%M:%S")])

    buf = io.BytesIO()
    wb.save(buf)
    return buf.getvalue()
