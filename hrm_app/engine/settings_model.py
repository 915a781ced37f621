from __future__ import annotations

import numbers
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Dict, Mapping, Optional

import yaml

from hrm_app.engine.errors import InvalidSettings
from hrm_app.engine.models import MeltRegions

NORMALIZATION_MODES = ("auto", "manual")

_REGION_KEYS = ("pre_start", "pre_end", "post_start", "post_end")


def _is_integer(value: Any) -> bool:
    return isinstance(value, numbers.Integral) and not isinstance(value, bool)


@dataclass
class AnalysisSettings:
    normalization_mode: str = "auto"
    smoothing_window: int = 5
    reference_sample_index: Optional[int] = None
    manual_regions: Optional[MeltRegions] = None

    def validate(self) -> list[str]:
        errs = []
        if self.normalization_mode not in NORMALIZATION_MODES:
            errs.append(f"Normalization mode must be one of {', '.join(NORMALIZATION_MODES)}")
        if not _is_integer(self.smoothing_window):
            errs.append("Smoothing window must be an integer")
        elif self.smoothing_window < 1:
            errs.append("Smoothing window must be at least 1")
        if self.reference_sample_index is not None and not _is_integer(self.reference_sample_index):
            errs.append("Reference sample index must be an integer")
        if self.normalization_mode == "manual":
            regions = self.manual_regions
            if regions is None:
                errs.append("Manual normalization requires pre/post melt region indices")
            elif not (0 <= regions.pre_start <= regions.pre_end <= regions.post_start <= regions.post_end):
                errs.append("Manual regions must satisfy pre_start <= pre_end <= post_start <= post_end")
        return errs

    @classmethod
    def from_mapping(cls, data: Mapping[str, Any] | None) -> "AnalysisSettings":
        """Build settings from a plain mapping such as a parsed YAML file."""

        data = dict(data or {})
        kwargs: Dict[str, Any] = {}
        if "normalization_mode" in data:
            kwargs["normalization_mode"] = str(data["normalization_mode"]).strip().lower()
        if "smoothing_window" in data:
            try:
                kwargs["smoothing_window"] = int(data["smoothing_window"])
            except (TypeError, ValueError) as exc:
                raise InvalidSettings(f"Smoothing window is not an integer: {data['smoothing_window']!r}") from exc
        reference = data.get("reference_sample_index")
        if reference is not None and reference != "":
            try:
                kwargs["reference_sample_index"] = int(reference)
            except (TypeError, ValueError) as exc:
                raise InvalidSettings(f"Reference sample index is not an integer: {reference!r}") from exc
        regions = data.get("manual_regions") or data.get("regions")
        if regions is not None:
            kwargs["manual_regions"] = regions_from_value(regions)
        return cls(**kwargs)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "normalization_mode": self.normalization_mode,
            "smoothing_window": self.smoothing_window,
            "reference_sample_index": self.reference_sample_index,
            "manual_regions": self.manual_regions.as_dict() if self.manual_regions else None,
        }


def regions_from_value(value: Any) -> MeltRegions:
    """Accept a mapping with the four region keys, a 4-sequence or ``"a,b,c,d"``."""

    if isinstance(value, MeltRegions):
        return value
    if isinstance(value, Mapping):
        missing = [key for key in _REGION_KEYS if key not in value]
        if missing:
            raise InvalidSettings(f"Manual regions missing keys: {', '.join(missing)}")
        parts = [value[key] for key in _REGION_KEYS]
    elif isinstance(value, str):
        parts = [chunk.strip() for chunk in value.split(",")]
    else:
        parts = list(value)
    if len(parts) != 4:
        raise InvalidSettings("Manual regions need exactly four indices")
    try:
        indices = [int(part) for part in parts]
    except (TypeError, ValueError) as exc:
        raise InvalidSettings(f"Manual region indices must be integers: {value!r}") from exc
    return MeltRegions(*indices)


def load_settings(path: str | Path) -> AnalysisSettings:
    path = Path(path)
    try:
        with path.open("r", encoding="utf-8") as handle:
            content = yaml.safe_load(handle) or {}
    except (OSError, yaml.YAMLError) as exc:
        raise InvalidSettings(f"Could not read settings file {path}: {exc}") from exc
    if not isinstance(content, Mapping):
        raise InvalidSettings(f"Settings file {path} must contain a mapping")
    return AnalysisSettings.from_mapping(content)
