from __future__ import annotations

import logging
from typing import Any, List, Optional, Tuple

import numpy as np
import pandas as pd

from hrm_app.engine import audit as audit_trail
from hrm_app.engine.errors import NoDataLoaded
from hrm_app.engine.extraction import extract_samples
from hrm_app.engine.models import AnalysisResult, Extraction, Sample, TabularReading
from hrm_app.engine.pipeline import run_pipeline
from hrm_app.engine.settings_model import AnalysisSettings

logger = logging.getLogger(__name__)


class AnalysisSession:
    """Owns the current analysis result of one loaded reading.

    Not safe for concurrent ``analyze`` calls; the result is replaced in place.
    """

    def __init__(self, settings: Optional[AnalysisSettings] = None):
        self.settings = settings or AnalysisSettings()
        self.reading: Optional[TabularReading] = None
        self.extraction: Optional[Extraction] = None
        self.result: Optional[AnalysisResult] = None
        self.audit: List[str] = []

    @property
    def warnings(self) -> List[str]:
        collected: List[str] = []
        if self.reading is not None:
            collected.extend(self.reading.warnings)
        if self.extraction is not None:
            collected.extend(self.extraction.warnings)
        if self.result is not None:
            collected.extend(self.result.warnings)
        return collected

    def load(self, reading: TabularReading) -> Extraction:
        extraction = extract_samples(reading)
        self.reading = reading
        self.extraction = extraction
        self.result = None
        self.audit = audit_trail.start_audit(reading.source)
        audit_trail.log_step(
            self.audit,
            f"Loaded {len(extraction.samples)} samples with {extraction.temperatures.size} points",
        )
        for warning in reading.warnings + extraction.warnings:
            audit_trail.log_step(self.audit, f"Warning: {warning}")
        return extraction

    def analyze(self, settings: Optional[AnalysisSettings] = None) -> AnalysisResult:
        if self.extraction is None:
            raise NoDataLoaded("No data loaded; load a reading before analyzing")
        active = settings if settings is not None else self.settings
        samples = self.result.samples if self.result is not None else self.extraction.samples
        result = run_pipeline(self.extraction.temperatures, samples, active)
        self.settings = active
        self.result = result
        audit_trail.log_analysis(self.audit, result)
        return result

    # ------------------------------------------------------------------
    # Visibility
    def _samples(self) -> List[Sample]:
        if self.result is not None:
            return self.result.samples
        if self.extraction is not None:
            return self.extraction.samples
        return []

    def set_visibility(self, index: int, visible: bool) -> bool:
        samples = self._samples()
        if not 0 <= index < len(samples):
            return False
        samples[index].visible = bool(visible)
        return True

    def toggle_visibility(self, index: int) -> bool:
        samples = self._samples()
        if not 0 <= index < len(samples):
            return False
        samples[index].visible = not samples[index].visible
        return True

    def set_all_visibility(self, visible: bool) -> None:
        for sample in self._samples():
            sample.visible = bool(visible)

    def visible_samples(self) -> List[Sample]:
        return [sample for sample in self._samples() if sample.visible]

    # ------------------------------------------------------------------
    # Export
    def export_table(self) -> Tuple[List[str], List[List[Any]]]:
        """Header plus one row per temperature.

        Per sample the raw column comes first, followed by the normalized,
        derivative and difference columns that are populated.
        """

        if self.extraction is None:
            raise NoDataLoaded("No data loaded; nothing to export")
        temperatures = self.result.temperatures if self.result is not None else self.extraction.temperatures
        columns: List[Tuple[str, np.ndarray]] = []
        for sample in self._samples():
            columns.append((f"{sample.name}_Raw", sample.fluorescence))
            for suffix, values in (
                ("Normalized", sample.normalized),
                ("Derivative", sample.derivative),
                ("Difference", sample.difference),
            ):
                if values is not None:
                    columns.append((f"{sample.name}_{suffix}", values))

        header = ["Temperature"] + [label for label, _ in columns]
        rows: List[List[Any]] = []
        for idx, temperature in enumerate(temperatures):
            row: List[Any] = [float(temperature)]
            row.extend(float(values[idx]) for _, values in columns)
            rows.append(row)
        return header, rows

    def export_frame(self) -> pd.DataFrame:
        header, rows = self.export_table()
        return pd.DataFrame(rows, columns=header)

    def tm_summary(self) -> List[dict]:
        return [
            {"sample": sample.name, "tm": sample.tm, "visible": sample.visible}
            for sample in self._samples()
        ]
