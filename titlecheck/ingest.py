from __future__ import annotations

import logging
from pathlib import Path
from typing import Callable, Iterable, List, Optional, Sequence, Tuple

from .models import Config, RecordMap

LOGGER = logging.getLogger(__name__)

BOM = "\ufeff"
CANDIDATE_DELIMITERS: Tuple[str, ...] = (",", ";", "\t")
NUMBER_HEADER = "Drawing Number"
TITLE_HEADER = "Drawing Title"

Rows = List[List[str]]


def read_csv_text(path: str) -> str:
    # utf-8-sig drops a leading BOM; invalid bytes must not abort the check
    return Path(path).read_text(encoding="utf-8-sig", errors="replace")


def read_sep_directive(text: str) -> Optional[str]:
    if text.startswith(BOM):
        text = text[1:]
    if len(text) >= 5 and text[:4].lower() == "sep=" and text[4] in CANDIDATE_DELIMITERS:
        return text[4]
    return None


def _skip_directive_line(text: str) -> str:
    if text[:4].lower() != "sep=":
        return text
    for i, ch in enumerate(text):
        if ch == "\n":
            return text[i + 1:]
        if ch == "\r":
            return text[i + 2:] if text[i + 1:i + 2] == "\n" else text[i + 1:]
    return ""


def parse_csv(text: str, sep: str) -> Rows:
    if text.startswith(BOM):
        text = text[1:]
    text = _skip_directive_line(text)

    rows: Rows = []
    fields: List[str] = []
    buf: List[str] = []
    in_quotes = False
    i = 0
    length = len(text)
    while i < length:
        ch = text[i]
        if in_quotes:
            if ch == '"':
                if i + 1 < length and text[i + 1] == '"':
                    buf.append('"')
                    i += 2
                    continue
                in_quotes = False
            else:
                buf.append(ch)
            i += 1
            continue

        if ch == '"':
            in_quotes = True
        elif ch == sep:
            fields.append("".join(buf))
            buf = []
        elif ch in "\r\n":
            fields.append("".join(buf))
            buf = []
            rows.append(fields)
            fields = []
            if ch == "\r" and i + 1 < length and text[i + 1] == "\n":
                i += 1
        else:
            buf.append(ch)
        i += 1

    fields.append("".join(buf))
    rows.append(fields)

    if rows and len(rows[-1]) == 1 and not rows[-1][0].strip():
        rows.pop()
    return rows


def normalize_header_cell(value: Optional[str]) -> str:
    if not value:
        return ""
    if value.startswith(BOM):
        value = value[1:]
    value = value.replace("\r\n", "\n").replace("\r", "\n")
    value = value.split("\n", 1)[0]
    for paren in ("（", "("):
        cut = value.find(paren)
        if cut >= 0:
            value = value[:cut]
    return value.strip()


def find_header(
    rows: Sequence[Sequence[str]],
    number_prefix: str = NUMBER_HEADER,
    title_prefix: str = TITLE_HEADER,
) -> Optional[Tuple[int, int]]:
    if not rows:
        return None
    number_prefix = number_prefix.upper()
    title_prefix = title_prefix.upper()
    col_num = col_title = -1
    for idx, cell in enumerate(rows[0]):
        header = normalize_header_cell(cell).upper()
        if col_num < 0 and header.startswith(number_prefix):
            col_num = idx
        if col_title < 0 and header.startswith(title_prefix):
            col_title = idx
        if col_num >= 0 and col_title >= 0:
            return col_num, col_title
    return None


def sniff_rows(
    text: str,
    accept: Callable[[Rows], bool],
    candidates: Iterable[str] = CANDIDATE_DELIMITERS,
) -> Optional[Rows]:
    """Parse ``text`` with the first delimiter whose rows satisfy ``accept``.

    A leading ``sep=`` directive is tried before the candidates; exporters
    sometimes write one that does not match the data.
    """
    directive = read_sep_directive(text)
    order: List[str] = [directive] if directive else []
    for sep in candidates:
        if sep not in order:
            order.append(sep)
    for sep in order:
        rows = parse_csv(text, sep)
        if accept(rows):
            LOGGER.debug("Delimiter %r accepted (%d rows)", sep, len(rows))
            return rows
        LOGGER.debug("Delimiter %r rejected", sep)
    return None


def build_record_map(rows: Sequence[Sequence[str]], col_num: int, col_title: int) -> RecordMap:
    mapping = RecordMap()
    needed = max(col_num, col_title)
    skipped = 0
    for line_no, row in enumerate(rows[1:], start=2):
        if row is None or len(row) <= needed:
            skipped += 1
            continue
        number = (row[col_num] or "").strip()
        title = (row[col_title] or "").strip()
        if not number or not title:
            LOGGER.debug("Skipping row %d: empty number or title", line_no)
            skipped += 1
            continue
        if not mapping.add(number, title):
            LOGGER.debug("Duplicate drawing number %s on row %d ignored", number, line_no)
    if skipped:
        LOGGER.debug("Skipped %d incomplete rows", skipped)
    return mapping


def load_number_title_map(path: str, config: Optional[Config] = None) -> RecordMap:
    csv_cfg = (config or {}).get("csv") or {}
    number_prefix = csv_cfg.get("number_header", NUMBER_HEADER)
    title_prefix = csv_cfg.get("title_header", TITLE_HEADER)

    text = read_csv_text(path)
    rows = sniff_rows(text, lambda parsed: find_header(parsed, number_prefix, title_prefix) is not None)
    if rows is None:
        LOGGER.warning("No '%s' / '%s' header found in %s", number_prefix, title_prefix, path)
        return RecordMap()

    col_num, col_title = find_header(rows, number_prefix, title_prefix)
    mapping = build_record_map(rows, col_num, col_title)
    LOGGER.info("Loaded %d drawing titles from %s", len(mapping), path)
    return mapping
