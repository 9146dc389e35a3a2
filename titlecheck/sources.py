from __future__ import annotations

import logging
import os
import subprocess
import sys
from typing import Dict, Iterable, List, Optional, Protocol, Sequence

from .ingest import normalize_header_cell, read_csv_text, sniff_rows
from .models import Config, Record

LOGGER = logging.getLogger(__name__)

DEFAULT_SHEET_FIELDS = {
    "identifier_field": "Sheet Number",
    "drawing_number_field": "Prefix_SheetNumber",
    "title_fields": ["Sheet_Title_1", "Sheet_Title_2", "Sheet_Title_3"],
    "name_fields": ["Sheet Name", "Name"],
}


class RecordSource(Protocol):
    def list_target_records(self) -> List[Record]:
        ...


class StaticRecordSource:
    def __init__(self, records: Iterable[Record], scope: str = "") -> None:
        self._records = list(records)
        self.scope_label = scope or f"All sheets ({len(self._records)})"

    def list_target_records(self) -> List[Record]:
        return list(self._records)


class SheetParameters:
    """Named parameter values of one exported sheet."""

    def __init__(self, values: Dict[str, str]) -> None:
        self._values = {name.upper(): value for name, value in values.items()}

    def try_get_parameter(self, name: str) -> Optional[str]:
        value = self._values.get((name or "").upper())
        if value is None or not value.strip():
            return None
        return value.strip()

    def first_of(self, names: Sequence[str]) -> Optional[str]:
        for name in names:
            value = self.try_get_parameter(name)
            if value is not None:
                return value
        return None


def sheet_fields(config: Optional[Config]) -> Dict[str, object]:
    fields = dict(DEFAULT_SHEET_FIELDS)
    fields.update((config or {}).get("sheets") or {})
    return fields


def record_from_parameters(params: SheetParameters, fields: Dict[str, object]) -> Record:
    fragments = [params.try_get_parameter(name) or "" for name in fields["title_fields"]]
    fragments.append(params.first_of(fields["name_fields"]) or "")
    return Record(
        identifier=params.try_get_parameter(fields["identifier_field"]) or "",
        drawing_number=params.try_get_parameter(fields["drawing_number_field"]) or "",
        title_fragments=tuple(fragments),
    )


class SheetExportSource:
    """Sheets exported from the host model as a CSV with one column per parameter."""

    def __init__(self, path: str, config: Optional[Config] = None, only: Optional[Iterable[str]] = None) -> None:
        self.path = path
        self.fields = sheet_fields(config)
        self.only = {item.strip().upper() for item in only or [] if item.strip()}
        self.scope_label = ""

    def _accept(self, rows: List[List[str]]) -> bool:
        if not rows:
            return False
        wanted = str(self.fields["identifier_field"]).upper()
        return any(normalize_header_cell(cell).upper() == wanted for cell in rows[0])

    def read_parameters(self) -> List[SheetParameters]:
        rows = sniff_rows(read_csv_text(self.path), self._accept)
        if rows is None:
            LOGGER.warning("No '%s' column found in %s", self.fields["identifier_field"], self.path)
            return []
        header = [normalize_header_cell(cell) for cell in rows[0]]
        sheets: List[SheetParameters] = []
        for row in rows[1:]:
            if not any(cell.strip() for cell in row):
                continue
            values: Dict[str, str] = {}
            for name, value in zip(header, row):
                # first column wins for repeated parameter names
                if name and name.upper() not in values:
                    values[name.upper()] = value
            sheets.append(SheetParameters(values))
        return sheets

    def list_target_records(self) -> List[Record]:
        records = [record_from_parameters(params, self.fields) for params in self.read_parameters()]
        if self.only:
            records = [rec for rec in records if rec.identifier.upper() in self.only]
            self.scope_label = f"Selected sheets ({len(records)})"
        else:
            self.scope_label = f"All sheets ({len(records)})"
        LOGGER.info("Read %d sheets from %s", len(records), self.path)
        return records


def open_for_viewing(path: str) -> bool:
    """Open ``path`` with the desktop's default application. Never raises."""
    try:
        if sys.platform.startswith("win"):
            os.startfile(path)  # type: ignore[attr-defined]
        elif sys.platform == "darwin":
            subprocess.Popen(["open", path])
        else:
            subprocess.Popen(["xdg-open", path], stdout=subprocess.DEVNULL, stderr=subprocess.DEVNULL)
        return True
    except Exception as exc:  # launch is best effort
        LOGGER.debug("Could not open %s: %s", path, exc)
        return False
