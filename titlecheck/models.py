from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, List, Optional, Tuple, Union

from .identify import fold_case


class TitleCheckError(Exception):
    """Base class for fatal title check failures."""


class InputNotFoundError(TitleCheckError):
    pass


class EmptyMappingError(TitleCheckError):
    pass


class WriteFailureError(TitleCheckError):
    pass


@dataclass(frozen=True)
class Record:
    identifier: str
    drawing_number: str
    title_fragments: Tuple[str, ...] = ()


class RecordMap:
    """Drawing number -> title lookup. Keys compare trimmed and case-insensitively;
    the first title seen for a key is kept."""

    def __init__(self) -> None:
        self._titles: Dict[str, str] = {}

    @staticmethod
    def _fold(key: str) -> str:
        return fold_case((key or "").strip())

    def add(self, key: str, title: str) -> bool:
        folded = self._fold(key)
        if folded in self._titles:
            return False
        self._titles[folded] = title
        return True

    def get(self, key: str) -> Optional[str]:
        return self._titles.get(self._fold(key))

    def __contains__(self, key: object) -> bool:
        return isinstance(key, str) and self._fold(key) in self._titles

    def __len__(self) -> int:
        return len(self._titles)


@dataclass(frozen=True)
class Run:
    text: str
    bold: bool = False
    size_pt: Optional[float] = None
    color_rgb: Optional[str] = None

    @property
    def has_style(self) -> bool:
        return self.bold or self.size_pt is not None or bool(self.color_rgb)


@dataclass(frozen=True)
class PlainCell:
    text: str = ""


@dataclass(frozen=True)
class RichCell:
    runs: Tuple[Run, ...]

    def __post_init__(self) -> None:
        if not self.runs:
            raise ValueError("RichCell needs at least one run")

    @property
    def text(self) -> str:
        return "".join(run.text for run in self.runs)


Cell = Union[PlainCell, RichCell]
ReportRow = List[Cell]


class Classification(Enum):
    MATCHED = "OK"
    MISSING_NUMBER = "Missing drawing number"
    KEY_NOT_FOUND = "No match in CSV"
    TITLE_MISMATCH = "Title mismatch"

    @property
    def label(self) -> str:
        return self.value


@dataclass
class SheetCheck:
    record: Record
    key: str
    current_title: str
    correct_title: str
    classification: Classification


@dataclass
class CheckCounts:
    matched: int = 0
    missing_number: int = 0
    not_found: int = 0
    mismatched: int = 0

    def tally(self, classification: Classification) -> None:
        if classification is Classification.MATCHED:
            self.matched += 1
        elif classification is Classification.MISSING_NUMBER:
            self.missing_number += 1
        elif classification is Classification.KEY_NOT_FOUND:
            self.not_found += 1
        else:
            self.mismatched += 1


@dataclass
class Report:
    rows: List[ReportRow] = field(default_factory=list)
    checks: List[SheetCheck] = field(default_factory=list)
    counts: CheckCounts = field(default_factory=CheckCounts)


@dataclass
class CheckOutcome:
    success: bool
    message: str
    output_path: Optional[str] = None
    counts: Optional[CheckCounts] = None


Config = Dict[str, Any]
