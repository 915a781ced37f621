from __future__ import annotations

import math
import re
from typing import Any, Dict, List, Optional, Set

import numpy as np


DELIMITER_CANDIDATES = ("\t", ";", ",")
DEFAULT_LOCALE = {"decimal": ".", "delimiter": ","}


def _column_delimiter(lines: List[str], decimal: str) -> Optional[str]:
    """Pick the separator found on every line, preferring the most columns.

    A melt table has the same number of columns on each row, so a separator
    missing from any line is not the column delimiter.  Trailing delimiters
    only add to the count and do not disqualify a candidate.
    """

    best: Optional[str] = None
    best_count = 0
    for sep in DELIMITER_CANDIDATES:
        if sep == decimal:
            continue
        fewest = min(line.count(sep) for line in lines)
        if fewest > best_count:
            best, best_count = sep, fewest
    return best


def sniff_locale(sample: str) -> Dict[str, str]:
    """Infer delimiter and decimal separator from the head of a melt export.

    Decimal commas are counted first; a comma that is the decimal mark can
    only be the delimiter when nothing else separates the columns, in which
    case the file is read as comma separated with decimal points.
    """

    lines = [ln for ln in sample.splitlines() if ln.strip()]
    if not lines:
        return dict(DEFAULT_LOCALE)

    trimmed = "\n".join(lines)
    points = len(re.findall(r"\d\.\d", trimmed))
    commas = len(re.findall(r"\d,\d", trimmed))
    decimal = "," if commas > points else "."

    delimiter = _column_delimiter(lines, decimal)
    if delimiter is None:
        if decimal == ",":
            return dict(DEFAULT_LOCALE)
        delimiter = max(DELIMITER_CANDIDATES, key=trimmed.count)
        if not trimmed.count(delimiter):
            delimiter = ","
    return {"decimal": decimal, "delimiter": delimiter}


def parse_float(value: Any, decimal: str = ".") -> Optional[float]:
    """Return ``value`` as a finite float, or ``None`` when it is missing."""

    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, (int, float, np.integer, np.floating)):
        number = float(value)
    else:
        text = str(value).strip()
        if not text:
            return None
        if decimal != ".":
            text = text.replace(decimal, ".")
        try:
            number = float(text)
        except ValueError:
            return None
    if not math.isfinite(number):
        return None
    return number


def unique_label(name: str, used: Set[str], position: int) -> str:
    """Suffix ``name`` with its 1-based ``position`` when already in ``used``."""

    candidate = name
    if candidate in used:
        candidate = f"{name}_{position}"
        bump = 2
        while candidate in used:
            candidate = f"{name}_{position}_{bump}"
            bump += 1
    used.add(candidate)
    return candidate
