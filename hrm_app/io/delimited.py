from __future__ import annotations

import io
import logging
from pathlib import Path
from typing import BinaryIO, List, Optional, Set, Union

import pandas as pd

from hrm_app.engine.errors import InvalidReading
from hrm_app.engine.io_common import parse_float, sniff_locale, unique_label
from hrm_app.engine.models import TabularReading

DELIMITED_SUFFIXES = (".csv", ".tsv", ".txt")

TextSource = Union[str, Path, bytes, BinaryIO]

logger = logging.getLogger(__name__)


def _read_text(source: TextSource) -> tuple[str, str]:
    if isinstance(source, (str, Path)):
        path = Path(source)
        return path.read_text(encoding="utf-8-sig", errors="ignore"), path.name
    if isinstance(source, (bytes, bytearray)):
        return bytes(source).decode("utf-8-sig", errors="ignore"), "upload"
    raw = source.read()
    label = Path(str(getattr(source, "name", "upload"))).name
    if isinstance(raw, bytes):
        raw = raw.decode("utf-8-sig", errors="ignore")
    return raw, label


def _header_names(values: List[object]) -> List[str]:
    used: Set[str] = set()
    names: List[str] = []
    for position, value in enumerate(values, start=1):
        text = "" if value is None or pd.isna(value) else str(value).strip()
        names.append(unique_label(text or f"col_{position}", used, position))
    return names


def _drop_blank_columns(frame: pd.DataFrame) -> pd.DataFrame:
    blank = frame.fillna("").astype(str).apply(lambda col: col.str.strip().eq("")).all()
    return frame.loc[:, ~blank]


def read_delimited(
    source: TextSource,
    *,
    temperature_column: Optional[str] = None,
) -> TabularReading:
    """Parse a CSV/TSV melt export whose first row holds the column names.

    The temperature column defaults to the first column.  Cells are kept as
    raw strings; numeric parsing happens during sample extraction.
    """

    text, label = _read_text(source)
    lines = [line for line in text.splitlines() if line.strip()]
    if not lines:
        raise InvalidReading(f"No data found in {label}")

    locale = sniff_locale("\n".join(lines[:50]))
    # Rows may carry trailing delimiters; size the table to the widest line.
    width = max(line.count(locale["delimiter"]) for line in lines) + 1
    try:
        frame = pd.read_csv(
            io.StringIO("\n".join(lines)),
            sep=locale["delimiter"],
            header=None,
            names=list(range(width)),
            dtype=str,
            keep_default_na=False,
            engine="python",
        )
    except (pd.errors.ParserError, pd.errors.EmptyDataError) as exc:
        raise InvalidReading(f"Cannot parse {label}: {exc}") from exc
    frame = _drop_blank_columns(frame)
    if frame.shape[0] < 2 or frame.shape[1] < 2:
        raise InvalidReading("File must have a header row and at least 2 columns (Temperature + 1 sample)")

    names = _header_names(list(frame.iloc[0]))
    body = frame.iloc[1:].reset_index(drop=True).copy()
    body.columns = names

    temp_field = temperature_column or names[0]
    if temp_field not in names:
        raise InvalidReading(f"Temperature column '{temp_field}' not found in {label}")
    if parse_float(body[temp_field].iloc[0], locale["decimal"]) is None:
        raise InvalidReading("Temperature column must start with a numeric value")

    decimal = locale["decimal"]
    rows = []
    for record in body.to_dict(orient="records"):
        if decimal != ".":
            record = {key: _swap_decimal(value, decimal) for key, value in record.items()}
        rows.append(record)

    field_names = [temp_field] + [name for name in names if name != temp_field]
    logger.info("Read %s: %d rows, %d sample columns", label, len(rows), len(field_names) - 1)
    return TabularReading(
        temperature_field=temp_field,
        field_names=field_names,
        rows=rows,
        source=label,
        meta={"delimiter": locale["delimiter"], "decimal": decimal},
    )


def _swap_decimal(value: object, decimal: str) -> object:
    if isinstance(value, str):
        return value.replace(decimal, ".")
    return value
