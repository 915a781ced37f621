from __future__ import annotations

import math
from typing import Sequence

import numpy as np

from hrm_app.engine.models import MeltRegions

__all__ = ["PRE_MELT_FRACTION", "POST_MELT_FRACTION", "detect_melt_regions", "window_mean", "normalize_curve"]

PRE_MELT_FRACTION = 0.1
POST_MELT_FRACTION = 0.9


def detect_melt_regions(n_points: int) -> MeltRegions:
    """Baseline windows covering the first and last tenth of the axis."""

    pre_end = int(math.floor(n_points * PRE_MELT_FRACTION))
    post_start = int(math.floor(n_points * POST_MELT_FRACTION))
    return MeltRegions(pre_start=0, pre_end=pre_end, post_start=post_start, post_end=n_points)


def window_mean(values: np.ndarray, start: int, stop: int) -> float:
    # An empty window has no mean; NaN lets the degeneracy propagate.
    if stop <= start:
        return float("nan")
    return float(np.mean(values[start:stop]))


def normalize_curve(raw: Sequence[float], regions: MeltRegions) -> np.ndarray:
    """Scale ``raw`` so the pre-melt baseline maps to 1 and post-melt to 0.

    Values are not clipped to ``[0, 1]``.  Equal baselines or an empty window
    yield non-finite output.
    """

    y = np.asarray(raw, dtype=float)
    pre_avg = window_mean(y, regions.pre_start, regions.pre_end)
    post_avg = window_mean(y, regions.post_start, regions.post_end)
    with np.errstate(divide="ignore", invalid="ignore"):
        return (y - post_avg) / (pre_avg - post_avg)
