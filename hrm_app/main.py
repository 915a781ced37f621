#!/usr/bin/env python3
"""Run a high-resolution melt analysis on a CSV/TSV export or an .eds archive."""
from __future__ import annotations

import argparse
import logging
import math
import sys
from pathlib import Path
from typing import Optional, Sequence

from hrm_app.engine.errors import HrmError, InvalidReading, InvalidSettings
from hrm_app.engine.excel_writer import write_csv, write_workbook
from hrm_app.engine.models import TabularReading
from hrm_app.engine.session import AnalysisSession
from hrm_app.engine.settings_model import AnalysisSettings, load_settings, regions_from_value
from hrm_app.io.delimited import DELIMITED_SUFFIXES, read_delimited
from hrm_app.io.eds import read_eds

logger = logging.getLogger(__name__)


def load_reading(path: str | Path, temperature_column: Optional[str] = None) -> TabularReading:
    path = Path(path)
    suffix = path.suffix.lower()
    if suffix == ".eds":
        return read_eds(path)
    if suffix in DELIMITED_SUFFIXES:
        return read_delimited(path, temperature_column=temperature_column)
    raise InvalidReading(f"Unsupported file type '{suffix}': expected CSV, TSV, TXT or EDS")


def _resolve_reference(value: Optional[str], names: Sequence[str]) -> Optional[int]:
    if value is None:
        return None
    if value in names:
        return list(names).index(value)
    try:
        return int(value)
    except ValueError as exc:
        raise InvalidSettings(f"Reference '{value}' is neither a sample name nor an index") from exc


def build_settings(args: argparse.Namespace, sample_names: Sequence[str]) -> AnalysisSettings:
    settings = load_settings(args.settings) if args.settings else AnalysisSettings()
    if args.smoothing_window is not None:
        settings.smoothing_window = args.smoothing_window
    if args.regions:
        settings.manual_regions = regions_from_value(args.regions)
        settings.normalization_mode = "manual"
    reference = _resolve_reference(args.reference, sample_names)
    if reference is not None:
        settings.reference_sample_index = reference
    return settings


def parse_args(argv: Sequence[str]) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description=__doc__)
    parser.add_argument("input", type=Path, help="CSV/TSV/TXT table or .eds archive")
    parser.add_argument("--settings", type=Path, help="YAML file with analysis settings")
    parser.add_argument("--smoothing-window", type=int, help="Moving-average window (1 disables smoothing)")
    parser.add_argument("--reference", help="Reference sample name or index for difference curves")
    parser.add_argument(
        "--regions",
        help="Manual baseline windows as pre_start,pre_end,post_start,post_end",
    )
    parser.add_argument("--temperature-column", help="Temperature column name (default: first column)")
    parser.add_argument("--output", type=Path, help="Write the export table to .csv or .xlsx")
    parser.add_argument("-v", "--verbose", action="store_true", help="Enable debug logging")
    return parser.parse_args(argv)


def _format_tm(tm: Optional[float]) -> str:
    if tm is None or not math.isfinite(tm):
        return "n/a"
    return f"{tm:.2f}"


def main(argv: Sequence[str] | None = None) -> int:
    args = parse_args(sys.argv[1:] if argv is None else argv)
    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format="[%(levelname)s] %(message)s",
    )

    session = AnalysisSession()
    try:
        extraction = session.load(load_reading(args.input, args.temperature_column))
        settings = build_settings(args, [sample.name for sample in extraction.samples])
        result = session.analyze(settings)
    except (HrmError, OSError) as exc:
        logger.error("Analysis failed: %s", exc)
        return 1

    for row in session.tm_summary():
        print(f"{row['sample']}\t{_format_tm(row['tm'])}")

    if args.output:
        header, rows = session.export_table()
        if args.output.suffix.lower() == ".xlsx":
            write_workbook(
                args.output,
                header,
                rows,
                tm_summary=session.tm_summary(),
                settings=result.settings.to_dict(),
                audit=session.audit,
            )
        else:
            write_csv(args.output, header, rows)
        logger.info("Wrote %s", args.output)
    return 0


if __name__ == "__main__":
    sys.exit(main())
