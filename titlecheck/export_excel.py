from __future__ import annotations

import logging
import os
import re
import tempfile
import zipfile
from pathlib import Path
from typing import Iterable, List, Optional

from .models import Cell, PlainCell, ReportRow, RichCell, Run, WriteFailureError

LOGGER = logging.getLogger(__name__)

SHEET_NAME = "Result"

CONTENT_TYPES_XML = """<?xml version="1.0" encoding="UTF-8"?>
<Types xmlns="http://schemas.openxmlformats.org/package/2006/content-types">
  <Default Extension="rels" ContentType="application/vnd.openxmlformats-package.relationships+xml"/>
  <Default Extension="xml" ContentType="application/xml"/>
  <Override PartName="/xl/workbook.xml" ContentType="application/vnd.openxmlformats-officedocument.spreadsheetml.sheet.main+xml"/>
  <Override PartName="/xl/worksheets/sheet1.xml" ContentType="application/vnd.openxmlformats-officedocument.spreadsheetml.worksheet+xml"/>
</Types>"""

PACKAGE_RELS_XML = """<?xml version="1.0" encoding="UTF-8"?>
<Relationships xmlns="http://schemas.openxmlformats.org/package/2006/relationships">
  <Relationship Id="rId1" Type="http://schemas.openxmlformats.org/officeDocument/2006/relationships/officeDocument" Target="xl/workbook.xml"/>
</Relationships>"""

WORKBOOK_XML = f"""<?xml version="1.0" encoding="UTF-8"?>
<workbook xmlns="http://schemas.openxmlformats.org/spreadsheetml/2006/main" xmlns:r="http://schemas.openxmlformats.org/officeDocument/2006/relationships">
  <sheets><sheet name="{SHEET_NAME}" sheetId="1" r:id="rId1"/></sheets>
</workbook>"""

WORKBOOK_RELS_XML = """<?xml version="1.0" encoding="UTF-8"?>
<Relationships xmlns="http://schemas.openxmlformats.org/package/2006/relationships">
  <Relationship Id="rId1" Type="http://schemas.openxmlformats.org/officeDocument/2006/relationships/worksheet" Target="worksheets/sheet1.xml"/>
</Relationships>"""

SHEET_PART = "xl/worksheets/sheet1.xml"

# code points XML 1.0 does not allow in character data
ILLEGAL_XML_CHARS = re.compile(r"[\x00-\x08\x0b\x0c\x0e-\x1f]")


def column_letter(index: int) -> str:
    """Zero-based column index to bijective base-26 letters (0 -> A, 26 -> AA)."""
    if index < 0:
        raise ValueError(f"column index must be >= 0, got {index}")
    x = index + 1
    letters: List[str] = []
    while x > 0:
        x -= 1
        letters.append(chr(ord("A") + x % 26))
        x //= 26
    return "".join(reversed(letters))


def a1_ref(col_index: int, row_number: int) -> str:
    return f"{column_letter(col_index)}{row_number}"


def xml_escape(text: Optional[str]) -> str:
    if not text:
        return ""
    return (
        ILLEGAL_XML_CHARS.sub("", text)
        .replace("&", "&amp;")
        .replace("<", "&lt;")
        .replace(">", "&gt;")
        .replace('"', "&quot;")
    )


def _format_size(size_pt: float) -> str:
    return f"{size_pt:g}"


def _run_xml(run: Run) -> str:
    parts = ["<r>"]
    if run.has_style:
        parts.append("<rPr>")
        if run.bold:
            parts.append("<b/>")
        if run.size_pt is not None:
            parts.append(f'<sz val="{_format_size(run.size_pt)}"/>')
        if run.color_rgb:
            parts.append(f'<color rgb="{xml_escape(run.color_rgb)}"/>')
        parts.append("</rPr>")
    parts.append(f'<t xml:space="preserve">{xml_escape(run.text)}</t></r>')
    return "".join(parts)


def _cell_xml(cell: Optional[Cell], ref: str) -> str:
    if isinstance(cell, RichCell):
        body = "".join(_run_xml(run) for run in cell.runs)
    else:
        text = cell.text if isinstance(cell, PlainCell) else ""
        body = f'<t xml:space="preserve">{xml_escape(text)}</t>'
    return f'<c r="{ref}" t="inlineStr"><is>{body}</is></c>'


def build_sheet_xml(rows: Iterable[Optional[ReportRow]]) -> str:
    parts = [
        '<?xml version="1.0" encoding="UTF-8"?>',
        '<worksheet xmlns="http://schemas.openxmlformats.org/spreadsheetml/2006/main">',
        "<sheetData>",
    ]
    row_number = 1
    for row in rows:
        if row is None:
            continue
        if not row:
            parts.append(f'<row r="{row_number}"/>')
        else:
            parts.append(f'<row r="{row_number}">')
            for col, cell in enumerate(row):
                parts.append(_cell_xml(cell, a1_ref(col, row_number)))
            parts.append("</row>")
        row_number += 1
    parts.append("</sheetData></worksheet>")
    return "".join(parts)


def _write_parts(path: str, sheet_xml: str) -> None:
    with zipfile.ZipFile(path, "w", compression=zipfile.ZIP_DEFLATED) as archive:
        archive.writestr("[Content_Types].xml", CONTENT_TYPES_XML)
        archive.writestr("_rels/.rels", PACKAGE_RELS_XML)
        archive.writestr("xl/workbook.xml", WORKBOOK_XML)
        archive.writestr("xl/_rels/workbook.xml.rels", WORKBOOK_RELS_XML)
        archive.writestr(SHEET_PART, sheet_xml)


def write_workbook(path: str, rows: Iterable[Optional[ReportRow]]) -> None:
    """Write ``rows`` as a single-sheet .xlsx at ``path``.

    The archive is built next to the target and moved over it only once
    complete, so a failed write never leaves a truncated workbook behind.
    """
    target = Path(path)
    tmp_name: Optional[str] = None
    try:
        target.parent.mkdir(parents=True, exist_ok=True)
        sheet_xml = build_sheet_xml(rows)
        fd, tmp_name = tempfile.mkstemp(prefix=".titlecheck-", suffix=".xlsx", dir=str(target.parent))
        os.close(fd)
        _write_parts(tmp_name, sheet_xml)
        os.replace(tmp_name, target)
        tmp_name = None
    except (OSError, ValueError, zipfile.BadZipFile) as exc:
        raise WriteFailureError(f"Could not write {path}: {exc}") from exc
    finally:
        if tmp_name is not None:
            try:
                os.remove(tmp_name)
            except OSError as exc:
                LOGGER.debug("Could not remove temporary file %s: %s", tmp_name, exc)
    LOGGER.info("Wrote %s", path)
