from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import datetime
from typing import Iterable, Optional

from .diff_titles import HighlightStyle, make_highlighted_pair
from .identify import join_fragments, normalize_key, normalize_title, titles_equal
from .models import (
    Classification,
    PlainCell,
    Record,
    RecordMap,
    Report,
    ReportRow,
    SheetCheck,
)

LOGGER = logging.getLogger(__name__)

REPORT_HEADERS = ["Sheet", "Drawing No", "Current Title", "Correct Title", "Issue"]
PREAMBLE_ROWS = 3  # summary, blank, header


@dataclass
class ReportContext:
    project: str = ""
    csv_path: str = ""
    scope: str = ""
    checked_at: Optional[datetime] = None

    def summary_line(self) -> str:
        stamp = (self.checked_at or datetime.now()).strftime("%Y-%m-%d %H:%M:%S")
        return f"Project: {self.project}; Checked: {stamp}; CSV: {self.csv_path}; Scope: {self.scope}"


def _plain_row(*values: str) -> ReportRow:
    return [PlainCell(value) for value in values]


class ReportAssembler:
    def __init__(self, style: Optional[HighlightStyle] = None, context: Optional[ReportContext] = None) -> None:
        self.style = style or HighlightStyle()
        self.context = context or ReportContext()

    def classify(self, record: Record, record_map: RecordMap) -> Optional[SheetCheck]:
        key = normalize_key(record.drawing_number)
        current = join_fragments(record.title_fragments)

        if not key:
            if not current:
                return None
            return SheetCheck(record, "", current, "", Classification.MISSING_NUMBER)

        correct_raw = record_map.get(key)
        if correct_raw is None:
            return SheetCheck(record, key, current, "", Classification.KEY_NOT_FOUND)

        correct = normalize_title(correct_raw)
        if titles_equal(current, correct):
            return SheetCheck(record, key, current, correct, Classification.MATCHED)
        return SheetCheck(record, key, current, correct, Classification.TITLE_MISMATCH)

    def row_for(self, check: SheetCheck) -> Optional[ReportRow]:
        kind = check.classification
        if kind is Classification.MATCHED:
            return None
        if kind is Classification.TITLE_MISMATCH:
            current_cell, correct_cell = make_highlighted_pair(check.current_title, check.correct_title, self.style)
            return [
                PlainCell(check.record.identifier),
                PlainCell(check.key),
                current_cell,
                correct_cell,
                PlainCell(kind.label),
            ]
        return _plain_row(check.record.identifier, check.key, check.current_title, "", kind.label)

    def assemble(self, records: Iterable[Record], record_map: RecordMap) -> Report:
        report = Report()
        report.rows.append(_plain_row(self.context.summary_line()))
        report.rows.append([])
        report.rows.append(_plain_row(*REPORT_HEADERS))

        for record in records:
            check = self.classify(record, record_map)
            if check is None:
                LOGGER.debug("Sheet %s has no drawing number or title; skipped", record.identifier)
                continue
            report.checks.append(check)
            report.counts.tally(check.classification)
            row = self.row_for(check)
            if row is not None:
                report.rows.append(row)

        counts = report.counts
        LOGGER.info(
            "Checked %d sheets: ok=%d, not found=%d, mismatched=%d, missing number=%d (%d report rows)",
            len(report.checks), counts.matched, counts.not_found, counts.mismatched, counts.missing_number,
            len(report.rows) - PREAMBLE_ROWS,
        )
        return report


def assemble_report(
    records: Iterable[Record],
    record_map: RecordMap,
    style: Optional[HighlightStyle] = None,
    context: Optional[ReportContext] = None,
) -> Report:
    return ReportAssembler(style, context).assemble(records, record_map)
