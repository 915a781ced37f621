"""Reader for melt-curve results stored in Applied Biosystems ``.eds`` archives.

An ``.eds`` file is a zip container.  The melt-curve stream is a tab separated
text file with one header line per well followed by labelled value lines::

    Session Name\t...
    Well\tSample Name\tDetector\tTask\tTm
    0\tA\tSNP_AG\tTarget\t60.8444,78.73188
    Sample Temperatures\t60.0\t60.5\t...
    Rn values\t1.02\t1.01\t...
    Delta Rn Sample Temperatures\t...
    Delta Rn values\t...
"""

from __future__ import annotations

import asyncio
import io
import logging
import re
import zipfile
import zlib
from dataclasses import dataclass, field
from pathlib import Path
from typing import BinaryIO, Dict, List, Optional, Set, Union

from hrm_app.engine.errors import ArchiveDecodeError, NoHrmDataFound, NoSamplesParsed
from hrm_app.engine.io_common import parse_float, unique_label
from hrm_app.engine.models import TabularReading

MELT_RESULT_PATH = "apldbio/sds/meltcuve_result.txt"
TEMPERATURE_FIELD = "Temperature"

SAMPLE_TEMPERATURES = "Sample Temperatures"
RN_VALUES = "Rn values"
DELTA_RN_TEMPERATURES = "Delta Rn Sample Temperatures"
DELTA_RN_VALUES = "Delta Rn values"

HEADER_PREFIXES = ("Session Name", "Well\t")

RECORD_LINE = re.compile(r"^(\d+)\t([^\t]*)\t([^\t]*)\t([^\t]*)\t(.*)$")

ArchiveSource = Union[bytes, bytearray, str, Path, BinaryIO]

logger = logging.getLogger(__name__)


@dataclass
class MeltRecord:
    well: int
    sample_name: str
    detector: str
    task: str
    tm_values: List[float]
    temperatures: List[float] = field(default_factory=list)
    rn_values: List[float] = field(default_factory=list)
    delta_rn_temperatures: List[float] = field(default_factory=list)
    delta_rn_values: List[float] = field(default_factory=list)


_FIELD_LABELS = {
    SAMPLE_TEMPERATURES: "temperatures",
    RN_VALUES: "rn_values",
    DELTA_RN_TEMPERATURES: "delta_rn_temperatures",
    DELTA_RN_VALUES: "delta_rn_values",
}


def parse_tab_values(text: str) -> List[float]:
    """Parse tab separated floats, skipping blank or non-numeric tokens."""

    values: List[float] = []
    for token in text.split("\t"):
        value = parse_float(token)
        if value is not None:
            values.append(value)
    return values


def _parse_tm_list(text: str) -> List[float]:
    values: List[float] = []
    for token in text.split(","):
        value = parse_float(token)
        if value is not None:
            values.append(value)
    return values


def _read_archive_bytes(source: ArchiveSource) -> bytes:
    if isinstance(source, (bytes, bytearray)):
        return bytes(source)
    if isinstance(source, (str, Path)):
        try:
            return Path(source).read_bytes()
        except OSError as exc:
            raise ArchiveDecodeError(f"Cannot read archive {source}: {exc}") from exc
    data = source.read()
    if hasattr(source, "seek"):
        source.seek(0)
    return data


def extract_melt_text(source: ArchiveSource) -> str:
    """Return the decoded melt-curve stream from the archive."""

    data = _read_archive_bytes(source)
    try:
        with zipfile.ZipFile(io.BytesIO(data)) as archive:
            try:
                raw = archive.read(MELT_RESULT_PATH)
            except KeyError as exc:
                raise NoHrmDataFound("No HRM/melt curve data found in this .eds file") from exc
    except (
        zipfile.BadZipFile,
        zipfile.LargeZipFile,
        zlib.error,
        NotImplementedError,
        RuntimeError,
        EOFError,
        OSError,
    ) as exc:
        raise ArchiveDecodeError(f"Failed to open .eds archive: {exc}") from exc
    try:
        return raw.decode("utf-8-sig")
    except UnicodeDecodeError as exc:
        raise ArchiveDecodeError(f"Melt curve stream is not valid UTF-8: {exc}") from exc


def parse_melt_records(text: str) -> List[MeltRecord]:
    lines = text.replace("\r\n", "\n").replace("\r", "\n").split("\n")

    idx = 0
    while idx < len(lines) and lines[idx].startswith(HEADER_PREFIXES):
        idx += 1

    records: List[MeltRecord] = []
    current: Optional[MeltRecord] = None
    for line in lines[idx:]:
        if not line.strip():
            continue

        match = RECORD_LINE.match(line)
        if match:
            if current is not None and current.temperatures:
                records.append(current)
            current = MeltRecord(
                well=int(match.group(1)),
                sample_name=match.group(2).strip(),
                detector=match.group(3).strip(),
                task=match.group(4).strip(),
                tm_values=_parse_tm_list(match.group(5)),
            )
            continue

        if current is None:
            continue
        label, sep, payload = line.partition("\t")
        attr = _FIELD_LABELS.get(label) if sep else None
        if attr is not None:
            setattr(current, attr, parse_tab_values(payload))

    if current is not None and current.temperatures:
        records.append(current)
    return records


def records_to_reading(records: List[MeltRecord], source: str = "eds") -> TabularReading:
    """Lay the records out as a temperature table keyed by sample name.

    The first record's temperatures are the shared axis.  Rn vectors are
    placed point for point without interpolation; length mismatches are
    reported in ``warnings``.
    """

    if not records:
        raise NoSamplesParsed("No valid melt curve data found in file")

    axis = records[0].temperatures
    used: Set[str] = set()
    names: List[str] = []
    warnings: List[str] = []
    for position, record in enumerate(records, start=1):
        base = record.sample_name or f"Well_{record.well + 1}"
        name = unique_label(base, used, position)
        names.append(name)
        if len(record.rn_values) != len(axis):
            message = (
                f"Sample {name} (well {record.well}) has {len(record.rn_values)} Rn values "
                f"for {len(axis)} reference temperatures; values are not interpolated"
            )
            logger.warning(message)
            warnings.append(message)
        elif record is not records[0] and len(record.temperatures) != len(axis):
            message = (
                f"Sample {name} (well {record.well}) has {len(record.temperatures)} temperatures "
                f"for {len(axis)} reference temperatures; values are aligned by index"
            )
            logger.warning(message)
            warnings.append(message)

    rows: List[Dict[str, object]] = []
    for i, temperature in enumerate(axis):
        row: Dict[str, object] = {TEMPERATURE_FIELD: temperature}
        for name, record in zip(names, records):
            row[name] = record.rn_values[i] if i < len(record.rn_values) else None
        rows.append(row)

    meta = {
        "source": "eds",
        "sample_count": len(records),
        "records": [
            {
                "name": name,
                "well": record.well,
                "detector": record.detector,
                "task": record.task,
                "vendor_tm": list(record.tm_values),
            }
            for name, record in zip(names, records)
        ],
    }
    logger.info("Parsed %d samples with %d temperature points", len(records), len(axis))
    return TabularReading(
        temperature_field=TEMPERATURE_FIELD,
        field_names=[TEMPERATURE_FIELD] + names,
        rows=rows,
        source=source,
        meta=meta,
        warnings=warnings,
    )


def parse_melt_curve_result(text: str, source: str = "eds") -> TabularReading:
    return records_to_reading(parse_melt_records(text), source=source)


def _source_label(source: ArchiveSource) -> str:
    if isinstance(source, (str, Path)):
        return Path(source).name
    return str(getattr(source, "name", "eds"))


def read_eds(source: ArchiveSource) -> TabularReading:
    return parse_melt_curve_result(extract_melt_text(source), source=_source_label(source))


async def read_eds_async(source: ArchiveSource) -> TabularReading:
    """Decompress off the event loop, then parse synchronously."""

    text = await asyncio.to_thread(extract_melt_text, source)
    return parse_melt_curve_result(text, source=_source_label(source))
