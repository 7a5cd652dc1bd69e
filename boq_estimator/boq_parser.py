"""
BOQ workbook parser.

Reads the first sheet of an uploaded .xlsx. Row 1 is the header and is
skipped. Every following row is read as:

    Item No. | Description | Quantity | Unit

A row needs a description, a quantity >= 0 and a unit. Rows that fail are
skipped and reported as RowDiagnostic entries. Fully blank rows are skipped
without a diagnostic. An unreadable file gives no rows and one file-level
diagnostic. Nothing here raises on bad input.

Quantities must be plain numbers. Thousands separators are accepted
("1,250.5"), but a number followed by text such as "850 m2" is rejected
and reported, not truncated to its leading digits.
"""

import io
import logging
import math
from dataclasses import dataclass, field
from typing import List, Optional

from openpyxl import load_workbook

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class SourceRow:
    row_number: int       # 1-based sheet row, for diagnostics
    item_no: str
    description: str
    quantity: float
    unit: str             # lower-cased


@dataclass(frozen=True)
class RowDiagnostic:
    row_number: Optional[int]   # None for file-level problems
    reason: str

    def as_dict(self) -> dict:
        return {"row_number": self.row_number, "reason": self.reason}


@dataclass
class ParsedBoq:
    rows: List[SourceRow] = field(default_factory=list)
    diagnostics: List[RowDiagnostic] = field(default_factory=list)


def parse_boq_workbook(file_bytes: bytes) -> ParsedBoq:
    """Parse an uploaded BOQ workbook into SourceRows plus skip diagnostics."""
    try:
        workbook = load_workbook(io.BytesIO(file_bytes), read_only=True, data_only=True)
    except Exception as e:
        logger.error("Could not read BOQ workbook: %s", e)
        return ParsedBoq(diagnostics=[RowDiagnostic(None, f"Unreadable workbook: {e}")])

    try:
        if not workbook.worksheets:
            return ParsedBoq(diagnostics=[RowDiagnostic(None, "Workbook has no sheets")])
        sheet = workbook.worksheets[0]
        # Read-only sheets stop at the stored <dimension> tag, which some tools write stale
        sheet.reset_dimensions()
        sheet_rows = list(sheet.iter_rows(values_only=True))
    finally:
        workbook.close()

    parsed = parse_boq_rows(sheet_rows)
    if parsed.diagnostics:
        logger.info("Skipped %d BOQ row(s) that were missing a description, quantity or unit",
                    len(parsed.diagnostics))
    return parsed


def parse_boq_rows(sheet_rows: list) -> ParsedBoq:
    """Validate raw sheet rows (header first) - split out so it can run without a workbook."""
    parsed = ParsedBoq()
    for row_number, values in enumerate(sheet_rows[1:], start=2):
        values = list(values or ()) + [None] * 4
        item_no_raw, description_raw, quantity_raw, unit_raw = values[:4]

        if all(_is_blank(v) for v in (item_no_raw, description_raw, quantity_raw, unit_raw)):
            continue

        description = _cell_text(description_raw)
        quantity = _parse_quantity(quantity_raw)
        unit = _cell_text(unit_raw).lower()

        reason = None
        if not description:
            reason = "Missing description"
        elif quantity is None:
            reason = f"Invalid quantity: {quantity_raw!r}"
        elif not unit:
            reason = "Missing unit"

        if reason:
            parsed.diagnostics.append(RowDiagnostic(row_number, reason))
            continue

        parsed.rows.append(SourceRow(
            row_number=row_number,
            item_no=_cell_text(item_no_raw),
            description=description,
            quantity=quantity,
            unit=unit,
        ))
    return parsed


def _is_blank(value) -> bool:
    return value is None or (isinstance(value, str) and not value.strip())


def _cell_text(value) -> str:
    if value is None:
        return ""
    # Excel stores "1" typed into a cell as 1.0
    if isinstance(value, float) and value.is_integer():
        value = int(value)
    return str(value).strip()


def _parse_quantity(value) -> Optional[float]:
    """Quantity as a float >= 0, or None if missing, non-numeric or negative."""
    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, (int, float)):
        quantity = float(value)
    else:
        text = str(value).strip().replace(",", "")
        if not text:
            return None
        try:
            quantity = float(text)
        except ValueError:
            return None
    if not math.isfinite(quantity) or quantity < 0:
        return None
    return quantity
