from __future__ import annotations

import argparse
import logging
from pathlib import Path
from typing import Iterable, Optional

import yaml

from .diff_titles import HighlightStyle
from .export_excel import write_workbook
from .ingest import load_number_title_map
from .models import (
    CheckCounts,
    CheckOutcome,
    Config,
    EmptyMappingError,
    InputNotFoundError,
    TitleCheckError,
)
from .report import ReportContext, assemble_report
from .sources import RecordSource, SheetExportSource, open_for_viewing

LOGGER = logging.getLogger(__name__)

DEFAULT_OUTPUT = "DrawingTitleCheckResult.xlsx"


def load_config(path: Optional[str]) -> Config:
    if not path:
        return {}
    if not Path(path).exists():
        LOGGER.warning("Config %s not found; using defaults", path)
        return {}
    with open(path, "r", encoding="utf-8") as file:
        return yaml.safe_load(file) or {}


def summary_message(counts: CheckCounts, scope: str, out_path: str) -> str:
    return (
        f"Check complete ({scope}):\n"
        f" OK: {counts.matched}\n"
        f" No match in CSV: {counts.not_found}\n"
        f" Title mismatch: {counts.mismatched}\n"
        f" Missing drawing number: {counts.missing_number}\n\n"
        f"Result written to:\n{out_path}"
    )


def run_check(
    csv_path: str,
    source: RecordSource,
    out_path: str,
    config: Optional[Config] = None,
    project: str = "",
    open_result: bool = False,
) -> CheckOutcome:
    config = config or {}
    try:
        if not Path(csv_path).is_file():
            raise InputNotFoundError(f"CSV file not found: {csv_path}")

        record_map = load_number_title_map(csv_path, config)
        if not len(record_map):
            raise EmptyMappingError(
                f"No usable drawing number / title pairs in {csv_path}; check the header and contents."
            )

        records = source.list_target_records()
        scope = getattr(source, "scope_label", "") or f"All sheets ({len(records)})"
        context = ReportContext(project=project, csv_path=csv_path, scope=scope)
        report = assemble_report(records, record_map, HighlightStyle.from_config(config), context)
        write_workbook(out_path, report.rows)
    except (TitleCheckError, OSError) as exc:
        LOGGER.error("%s", exc)
        return CheckOutcome(success=False, message=str(exc))

    if open_result:
        open_for_viewing(out_path)
    return CheckOutcome(
        success=True,
        message=summary_message(report.counts, scope, out_path),
        output_path=out_path,
        counts=report.counts,
    )


def run(argv: Iterable[str] | None = None) -> int:
    parser = argparse.ArgumentParser(description="Check sheet titles against a drawing register CSV")
    parser.add_argument("--csv", required=True, help="Drawing register CSV (Drawing Number / Drawing Title)")
    parser.add_argument("--sheets", required=True, help="Sheet parameter export CSV")
    parser.add_argument("--out", default=DEFAULT_OUTPUT)
    parser.add_argument("--config", default=None, help="config.yaml path")
    parser.add_argument("--project", default="")
    parser.add_argument("--only", action="append", help="Check only this sheet number; can repeat")
    parser.add_argument("--open", action="store_true", help="Open the result when done")
    parser.add_argument("--log-level", default="INFO")
    args = parser.parse_args(list(argv) if argv is not None else None)

    logging.basicConfig(level=getattr(logging, args.log_level.upper(), logging.INFO), format="%(levelname)s %(name)s: %(message)s")
    config = load_config(args.config)
    source = SheetExportSource(args.sheets, config, only=args.only)
    outcome = run_check(args.csv, source, args.out, config, project=args.project, open_result=args.open)
    print(outcome.message)
    return 0 if outcome.success else 1


def main() -> None:
    raise SystemExit(run())


if __name__ == "__main__":
    main()
