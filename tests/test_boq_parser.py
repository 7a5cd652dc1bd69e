"""
BOQ workbook parser tests.

Tests:
1-2. Valid rows, header skipped, order preserved
3-6. Row validation and diagnostics
7.   Blank rows skipped silently
8-9. Unreadable file / empty sheet
10.  Quantity parsing
11.  Stale <dimension> tag doesn't hide rows
12.  Quantity with trailing text rejected
"""

import io
import re
import zipfile

from conftest import make_workbook

from boq_estimator.boq_parser import parse_boq_rows, parse_boq_workbook, _parse_quantity


def test_parse_valid_rows_skips_header():
    parsed = parse_boq_workbook(make_workbook([
        (1, "Brick Masonry Walls", 850, "m²"),
        (2, "Install solar panel array", 10, "Unit"),
    ]))
    assert len(parsed.rows) == 2
    assert parsed.diagnostics == []
    first = parsed.rows[0]
    assert first.item_no == "1"
    assert first.description == "Brick Masonry Walls"
    assert first.quantity == 850.0
    assert first.unit == "m²"
    assert first.row_number == 2


def test_parse_lowercases_unit_and_keeps_order():
    parsed = parse_boq_workbook(make_workbook([
        ("A", "Second row in file", 1, "NOS"),
        ("B", "Third row in file", 2, "Kg"),
    ]))
    assert [r.item_no for r in parsed.rows] == ["A", "B"]
    assert [r.unit for r in parsed.rows] == ["nos", "kg"]


def test_parse_missing_description_is_diagnosed():
    parsed = parse_boq_workbook(make_workbook([
        (1, "", 10, "m²"),
        (2, "Good row", 5, "m²"),
    ]))
    assert [r.description for r in parsed.rows] == ["Good row"]
    assert len(parsed.diagnostics) == 1
    assert parsed.diagnostics[0].row_number == 2
    assert "description" in parsed.diagnostics[0].reason.lower()


def test_parse_invalid_quantity_is_diagnosed():
    parsed = parse_boq_workbook(make_workbook([
        (1, "Text quantity", "lots", "m²"),
        (2, "Negative quantity", -3, "m²"),
        (3, "Missing quantity", None, "m²"),
    ]))
    assert parsed.rows == []
    assert [d.row_number for d in parsed.diagnostics] == [2, 3, 4]
    assert all("quantity" in d.reason.lower() for d in parsed.diagnostics)


def test_parse_missing_unit_is_diagnosed():
    parsed = parse_boq_workbook(make_workbook([(1, "No unit here", 4, None)]))
    assert parsed.rows == []
    assert parsed.diagnostics[0].reason == "Missing unit"


def test_parse_zero_quantity_is_allowed():
    parsed = parse_boq_workbook(make_workbook([(1, "Provisional sum", 0, "ls")]))
    assert len(parsed.rows) == 1
    assert parsed.rows[0].quantity == 0.0


def test_parse_blank_rows_skipped_without_diagnostic():
    parsed = parse_boq_rows([
        ("Item No.", "Description", "Quantity", "Unit"),
        (None, None, None, None),
        ("", "  ", None, ""),
        (1, "Real row", 2, "m"),
        (),
    ])
    assert len(parsed.rows) == 1
    assert parsed.diagnostics == []


def test_parse_unreadable_file_gives_file_diagnostic():
    parsed = parse_boq_workbook(b"this is not a spreadsheet")
    assert parsed.rows == []
    assert len(parsed.diagnostics) == 1
    assert parsed.diagnostics[0].row_number is None
    assert "Unreadable" in parsed.diagnostics[0].reason


def test_parse_header_only_sheet():
    parsed = parse_boq_workbook(make_workbook([]))
    assert parsed.rows == []
    assert parsed.diagnostics == []


def test_parse_quantity_variants():
    assert _parse_quantity(12) == 12.0
    assert _parse_quantity(" 1,250.5 ") == 1250.5
    assert _parse_quantity("3") == 3.0
    assert _parse_quantity(True) is None
    assert _parse_quantity("nan") is None
    assert _parse_quantity("") is None


def _with_dimension(content: bytes, ref: str) -> bytes:
    """Rewrite sheet1's <dimension> tag, as some spreadsheet tools leave it stale."""
    source = zipfile.ZipFile(io.BytesIO(content))
    buffer = io.BytesIO()
    with zipfile.ZipFile(buffer, "w", zipfile.ZIP_DEFLATED) as target:
        for name in source.namelist():
            data = source.read(name)
            if name == "xl/worksheets/sheet1.xml":
                data = re.sub(rb'<dimension ref="[^"]*"\s*/>', b'<dimension ref="%s"/>' % ref.encode(), data)
                assert b'<dimension ref="%s"/>' % ref.encode() in data
            target.writestr(name, data)
    return buffer.getvalue()


def test_parse_ignores_stale_sheet_dimension():
    """Rows past a too-small <dimension> tag are still read."""
    content = _with_dimension(make_workbook([
        (1, "Brick Masonry Walls", 850, "m²"),
        (2, "Install solar panel array", 10, "unit"),
    ]), "A1:D1")
    parsed = parse_boq_workbook(content)
    assert [r.description for r in parsed.rows] == ["Brick Masonry Walls", "Install solar panel array"]
    assert parsed.diagnostics == []


def test_parse_quantity_with_trailing_text_is_rejected():
    """A number followed by text (850 m2) is reported, not read as 850."""
    assert _parse_quantity("850 m2") is None
    parsed = parse_boq_workbook(make_workbook([(1, "Brick wall", "850 m2", "m²")]))
    assert parsed.rows == []
    assert parsed.diagnostics[0].row_number == 2
