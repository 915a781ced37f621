from __future__ import annotations

import csv
import math
from pathlib import Path
from typing import Any, Dict, Iterable, List, Sequence

import numpy as np
from openpyxl import Workbook


def _ensure_parent(path: Path) -> None:
    if not path.parent.exists():
        path.parent.mkdir(parents=True, exist_ok=True)


def _clean_value(value: Any) -> Any:
    if isinstance(value, np.generic):
        value = value.item()
    if isinstance(value, float):
        if not math.isfinite(value):
            return None
        return value
    if isinstance(value, str):
        if value and value[0] in "=+-@":
            if not value.startswith("'"):
                return "'" + value
        return value
    return value


def _write_dict_rows(ws, rows: List[Dict[str, Any]]):
    if not rows:
        ws.append(["No entries"])
        return
    header = list(rows[0].keys())
    ws.append(header)
    for row in rows:
        ws.append([_clean_value(row.get(key)) for key in header])


def write_csv(out_path: str | Path, header: Sequence[str], rows: Iterable[Sequence[Any]]) -> Path:
    """Write the flattened export table; non-finite cells become empty."""

    csv_path = Path(out_path)
    _ensure_parent(csv_path)
    with csv_path.open("w", newline="", encoding="utf-8") as handle:
        writer = csv.writer(handle)
        writer.writerow(list(header))
        for row in rows:
            cleaned = [_clean_value(v) for v in row]
            writer.writerow(["" if cell is None else cell for cell in cleaned])
    return csv_path


def write_workbook(
    out_path: str | Path,
    header: Sequence[str],
    rows: Iterable[Sequence[Any]],
    tm_summary: Sequence[Dict[str, Any]] = (),
    settings: Dict[str, Any] | None = None,
    audit: Sequence[str] = (),
) -> Path:
    workbook_path = Path(out_path)
    _ensure_parent(workbook_path)

    wb = Workbook()
    ws_curves = wb.active
    ws_curves.title = "Melt_Curves"
    ws_curves.append(list(header))
    for row in rows:
        ws_curves.append([_clean_value(v) for v in row])

    ws_tm = wb.create_sheet("Tm_Summary")
    _write_dict_rows(ws_tm, list(tm_summary))

    ws_settings = wb.create_sheet("Settings")
    ws_settings.append(["key", "value"])
    for key, value in (settings or {}).items():
        ws_settings.append([key, _clean_value(str(value) if isinstance(value, dict) else value)])

    ws_audit = wb.create_sheet("Audit_Log")
    ws_audit.append(["Index", "Entry"])
    for idx, entry in enumerate(audit or [], start=1):
        ws_audit.append([idx, _clean_value(entry)])

    wb.save(workbook_path)
    return workbook_path
