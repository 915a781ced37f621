"""Melt-curve analysis pipeline.

Each run goes normalize -> smooth -> differentiate -> negate -> pick Tm,
followed by the optional difference against a reference sample.  Stages
return new arrays; the input samples are never modified.
"""

from __future__ import annotations

import dataclasses
import logging
import warnings
from typing import List, Optional, Sequence

import numpy as np

from hrm_app.engine.derivative import find_tm, moving_average, negative_derivative
from hrm_app.engine.difference import compute_differences
from hrm_app.engine.errors import InvalidSettings, NumericDegeneracy
from hrm_app.engine.models import AnalysisResult, MeltRegions, Sample
from hrm_app.engine.regions import detect_melt_regions, normalize_curve
from hrm_app.engine.settings_model import AnalysisSettings

__all__ = ["resolve_regions", "analyze_sample", "run_pipeline"]

logger = logging.getLogger(__name__)


def resolve_regions(settings: AnalysisSettings, n_points: int) -> MeltRegions:
    if settings.normalization_mode == "manual":
        regions = settings.manual_regions
        if regions is None:
            raise InvalidSettings("Manual normalization requires pre/post melt region indices")
        if not regions.is_valid_for(n_points):
            raise InvalidSettings(
                f"Manual regions {regions.as_dict()} do not fit a {n_points}-point temperature axis"
            )
        return regions
    return detect_melt_regions(n_points)


def analyze_sample(
    temperatures: np.ndarray,
    sample: Sample,
    regions: MeltRegions,
    smoothing_window: int,
) -> Sample:
    normalized = normalize_curve(sample.fluorescence, regions)
    smoothed = moving_average(normalized, smoothing_window)
    derivative = negative_derivative(temperatures, smoothed)
    return dataclasses.replace(
        sample,
        normalized=normalized,
        derivative=derivative,
        tm=find_tm(temperatures, derivative),
        difference=None,
    )


def run_pipeline(
    temperatures: Sequence[float],
    samples: List[Sample],
    settings: Optional[AnalysisSettings] = None,
) -> AnalysisResult:
    settings = settings or AnalysisSettings()
    errs = settings.validate()
    if errs:
        raise InvalidSettings("; ".join(errs))

    temps = np.asarray(temperatures, dtype=float)
    for sample in samples:
        if np.asarray(sample.fluorescence).shape != temps.shape:
            raise ValueError(
                f"Sample {sample.name} has {len(sample.fluorescence)} points, expected {temps.size}"
            )

    regions = resolve_regions(settings, temps.size)
    logger.info("Melt regions: %s", regions.as_dict())

    result_warnings: List[str] = []
    analyzed: List[Sample] = []
    for sample in samples:
        processed = analyze_sample(temps, sample, regions, settings.smoothing_window)
        if not np.all(np.isfinite(processed.normalized)):
            message = (
                f"Sample {sample.name}: normalization produced non-finite values "
                "(empty baseline window or equal baselines)"
            )
            logger.warning(message)
            warnings.warn(message, NumericDegeneracy, stacklevel=2)
            result_warnings.append(message)
        analyzed.append(processed)

    analyzed = compute_differences(analyzed, settings.reference_sample_index)

    logger.info("Analyzed %d samples over %d points", len(analyzed), temps.size)
    return AnalysisResult(
        temperatures=temps,
        samples=analyzed,
        regions=regions,
        settings=settings,
        warnings=result_warnings,
    )
