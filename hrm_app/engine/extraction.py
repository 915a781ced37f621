"""Turn a parsed table into a temperature axis plus cleaned sample curves."""

from __future__ import annotations

import logging
from typing import List, Optional, Sequence, Set

import numpy as np

from hrm_app.engine.errors import InvalidReading, NoValidSamples, NoValidTemperatureData
from hrm_app.engine.io_common import parse_float, unique_label
from hrm_app.engine.models import Extraction, Sample, TabularReading

__all__ = ["MIN_COVERAGE", "extract_samples", "fill_missing_values"]

logger = logging.getLogger(__name__)

# Columns need strictly more than this fraction of numeric cells.
MIN_COVERAGE = 0.5


def fill_missing_values(values: Sequence[Optional[float]]) -> np.ndarray:
    """Forward-fill gaps, then back-fill whatever leads the column.

    A column without any value collapses to zeros.
    """

    last: Optional[float] = None
    forward: List[Optional[float]] = []
    for value in values:
        if value is not None:
            last = value
        forward.append(last)

    nxt: Optional[float] = None
    filled: List[float] = []
    for value in reversed(forward):
        if value is not None:
            nxt = value
        filled.append(0.0 if nxt is None else nxt)
    filled.reverse()
    return np.asarray(filled, dtype=float)


def extract_samples(reading: TabularReading) -> Extraction:
    temp_field = reading.temperature_field
    if not reading.field_names or temp_field not in reading.field_names:
        raise InvalidReading(f"Temperature field '{temp_field}' is not among the table columns")
    sample_fields = reading.sample_fields
    if not sample_fields:
        raise InvalidReading("Table must have a temperature column and at least one sample column")

    valid_rows = []
    temperatures: List[float] = []
    for row in reading.rows:
        temp = parse_float(row.get(temp_field))
        if temp is None:
            continue
        valid_rows.append(row)
        temperatures.append(temp)

    if not valid_rows:
        raise NoValidTemperatureData("No valid temperature data found")

    n_points = len(temperatures)
    samples: List[Sample] = []
    warnings: List[str] = []
    used: Set[str] = set()
    for position, column in enumerate(sample_fields, start=1):
        cells = [parse_float(row.get(column)) for row in valid_rows]
        present = sum(1 for cell in cells if cell is not None)
        coverage = present / n_points
        if coverage <= MIN_COVERAGE:
            message = f"Sample {column} dropped: low data coverage ({coverage * 100:.1f}%)"
            logger.warning(message)
            warnings.append(message)
            continue
        samples.append(
            Sample(
                name=unique_label(str(column), used, position),
                fluorescence=fill_missing_values(cells),
            )
        )

    if not samples:
        raise NoValidSamples("No valid samples found. Check the table layout.")

    logger.info("Extracted %d samples with %d points", len(samples), n_points)
    return Extraction(
        temperatures=np.asarray(temperatures, dtype=float),
        samples=samples,
        warnings=warnings,
    )
