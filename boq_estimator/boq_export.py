"""
Processed BOQ export - stored items back out as an .xlsx download.
"""

import io
from typing import List

from openpyxl import Workbook
from openpyxl.styles import Font, PatternFill

SHEET_TITLE = "Processed BOQ"

# (header, width)
COLUMNS = [
    ("Item No.", 10),
    ("Description", 60),
    ("Quantity", 15),
    ("Unit", 10),
    ("Rate", 20),
    ("Amount", 20),
]

HEADER_FONT = Font(bold=True, color="FFFFFFFF")
HEADER_FILL = PatternFill(fill_type="solid", fgColor="FF4F46E5")
MISSING = "N/A"


def build_boq_workbook(items: List, currency_symbol: str = "₹") -> bytes:
    """Render stored BOQ items (in order) to XLSX bytes."""
    workbook = Workbook()
    sheet = workbook.active
    sheet.title = SHEET_TITLE

    sheet.append([header for header, _ in COLUMNS])
    for index, (_, width) in enumerate(COLUMNS):
        sheet.column_dimensions[chr(ord("A") + index)].width = width
    for cell in sheet[1]:
        cell.font = HEADER_FONT
        cell.fill = HEADER_FILL

    money_format = f'"{currency_symbol}"#,##0.00'
    for index, item in enumerate(items, start=1):
        sheet.append([
            f"Item {index}",
            item.description,
            float(item.quantity),
            item.unit,
            float(item.rate) if item.rate is not None else MISSING,
            float(item.total) if item.total is not None else MISSING,
        ])
        row = sheet.max_row
        for column in ("E", "F"):
            sheet[f"{column}{row}"].number_format = money_format

    buffer = io.BytesIO()
    workbook.save(buffer)
    return buffer.getvalue()
